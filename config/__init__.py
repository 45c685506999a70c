"""
Configuration management for asset-sync

Handles loading, validation, and template-based configuration.
"""

from .loader import ConfigurationLoader, ConfigError
from .defaults import DEFAULT_SETTINGS

__all__ = ["ConfigurationLoader", "ConfigError", "DEFAULT_SETTINGS"]
