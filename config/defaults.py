"""
Default configuration values for asset-sync.

Centralized defaults that can be overridden by environment variables or config files.
"""

from typing import Dict, Any

# Global default settings
DEFAULT_SETTINGS = {
    # Watched directory layout, relative to the project root
    "watch": {
        "data_root": "Data",
        "source_root": "Source",
        "media_dir_name": "Media",
        "plugin_root": "Plugins",
        "plugin_patterns": ["*.dll", "*.so", "*.py"],
        "ignored_names": ["__pycache__", "Thumbs.db", "desktop.ini"]
    },

    # Event engine
    "engine": {
        "quiescence_ms": 100,
        "poll_interval_ms": 50,
        "reimport_grace_ms": 50,
        "report_directory_changes": False,
        "escalate_unknown_types": False,
        "default_content_prefix": "Default:"
    },

    # Project defaults
    "project": {
        "version": "1.0.0"
    }
}

# Environment variable mappings
ENV_VAR_MAPPING = {
    'ASSET_SYNC_DATA_ROOT': 'watch.data_root',
    'ASSET_SYNC_SOURCE_ROOT': 'watch.source_root',
    'ASSET_SYNC_PLUGIN_ROOT': 'watch.plugin_root',
    'ASSET_SYNC_QUIESCENCE_MS': 'engine.quiescence_ms',
    'ASSET_SYNC_POLL_INTERVAL_MS': 'engine.poll_interval_ms',
    'ASSET_SYNC_REIMPORT_GRACE_MS': 'engine.reimport_grace_ms',
    'ASSET_SYNC_REPORT_DIRECTORY_CHANGES': 'engine.report_directory_changes',
    'ASSET_SYNC_ESCALATE_UNKNOWN_TYPES': 'engine.escalate_unknown_types'
}


def get_default_project_config() -> Dict[str, Any]:
    """Get default project configuration template"""
    return {
        'name': '${project_name}',
        'path': '${project_path}',
        'watch': dict(DEFAULT_SETTINGS['watch']),
        'engine': dict(DEFAULT_SETTINGS['engine']),
        'description': None,
        'version': DEFAULT_SETTINGS['project']['version']
    }
