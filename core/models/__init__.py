"""
Core data models for asset-sync

Pydantic models for project, watch and engine configuration.
"""

from .config import ProjectConfig, WatchConfig, EngineConfig, GlobalSettings

__all__ = [
    # Configuration
    "ProjectConfig",
    "WatchConfig",
    "EngineConfig",
    "GlobalSettings",
]
