"""
asset-sync - keeps editor content consistent with outside file changes.

Watches a project's data and source trees, aggregates raw file system
notifications into semantic operations and synchronizes the content cache,
cross-references and the source/media tree with them.
"""

__version__ = "1.0.0"
__author__ = "asset-sync contributors"

from core.models.config import ProjectConfig, WatchConfig, EngineConfig
from core.sync import FileEventEngine, ProjectTreeWatcher

__all__ = [
    "ProjectConfig",
    "WatchConfig",
    "EngineConfig",
    "FileEventEngine",
    "ProjectTreeWatcher",
    "__version__",
]
