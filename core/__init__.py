"""
asset-sync core package

File event aggregation and content synchronization for editor projects.
"""

__version__ = "1.0.0"
__author__ = "asset-sync contributors"

from .models import ProjectConfig, WatchConfig, EngineConfig

__all__ = [
    "ProjectConfig",
    "WatchConfig",
    "EngineConfig",
]
