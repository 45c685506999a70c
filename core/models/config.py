"""
Configuration models for asset-sync.

Handles watched directory layout, engine timing and behavior switches,
and global settings with environment variable support.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WatchConfig(BaseModel):
    """Watched directory layout, relative to the project root"""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True
    )

    # Managed content
    data_root: str = "Data"

    # Authoring files; imported media lives in a subdirectory of it
    source_root: str = "Source"
    media_dir_name: str = "Media"

    # Plugin binaries (optional)
    plugin_root: Optional[str] = "Plugins"
    plugin_patterns: List[str] = Field(default_factory=lambda: ["*.dll", "*.so", "*.py"])

    # Path components that are never watched
    ignored_names: List[str] = Field(
        default_factory=lambda: ["__pycache__", "Thumbs.db", "desktop.ini"]
    )

    @field_validator('data_root', 'source_root', 'media_dir_name')
    @classmethod
    def validate_directory_name(cls, v: str) -> str:
        """Directory names must not be empty"""
        if not v:
            raise ValueError('Directory name cannot be empty')
        return v

    @field_validator('plugin_patterns')
    @classmethod
    def validate_patterns(cls, v: List[str]) -> List[str]:
        """Strip glob patterns and drop empty ones"""
        return [pattern.strip() for pattern in v if pattern.strip()]


class EngineConfig(BaseModel):
    """Event engine timing and behavior switches"""
    model_config = ConfigDict(
        validate_assignment=True
    )

    # Minimum time between two drain cycles
    quiescence_ms: int = Field(default=100, ge=0, le=10000)

    # Owner loop tick interval
    poll_interval_ms: int = Field(default=50, ge=1, le=5000)

    # Delay between host activation and reimport
    reimport_grace_ms: int = Field(default=50, ge=0, le=10000)

    # Directory CHANGED notifications are usually noise caused by children
    report_directory_changes: bool = False

    # Inspect resources of unknown type during rename instead of skipping them
    escalate_unknown_types: bool = False

    # Built-in content paths, never rewritten
    default_content_prefix: str = "Default:"

    @field_validator('default_content_prefix')
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if not v:
            raise ValueError('Default content prefix cannot be empty')
        return v

    @property
    def quiescence_seconds(self) -> float:
        return self.quiescence_ms / 1000.0

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def reimport_grace_seconds(self) -> float:
        return self.reimport_grace_ms / 1000.0


class ProjectConfig(BaseModel):
    """Project-specific configuration with validation"""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=False
    )

    # Project identification
    name: str
    path: Path

    # Component configurations
    watch: WatchConfig = Field(default_factory=WatchConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)

    # Project metadata
    description: Optional[str] = None
    version: str = "1.0.0"

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate project name"""
        if not v or not v.replace('-', '').replace('_', '').replace(' ', '').replace('.', '').isalnum():
            raise ValueError('Project name must be alphanumeric with dashes, underscores, dots or spaces')
        return v.strip()

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: Path) -> Path:
        """Validate project path exists"""
        if not v.exists():
            raise ValueError(f'Project path does not exist: {v}')
        if not v.is_dir():
            raise ValueError(f'Project path is not a directory: {v}')
        return v.resolve()

    @property
    def data_dir(self) -> Path:
        return self.path / self.watch.data_root

    @property
    def source_dir(self) -> Path:
        return self.path / self.watch.source_root

    @property
    def media_dir(self) -> Path:
        return self.source_dir / self.watch.media_dir_name

    @property
    def plugin_dir(self) -> Optional[Path]:
        if not self.watch.plugin_root:
            return None
        return self.path / self.watch.plugin_root

    @property
    def trash_dir(self) -> Path:
        return self.get_config_dir() / "trash"

    @property
    def settings_dir(self) -> Path:
        return self.get_config_dir() / "settings"

    def get_config_dir(self) -> Path:
        """Get project configuration directory"""
        return self.path / ".asset-sync"

    def get_config_file(self) -> Path:
        """Get project configuration file path"""
        return self.get_config_dir() / "config.json"

    @property
    def is_initialized(self) -> bool:
        """Check if project is properly initialized"""
        return self.get_config_file().exists()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        data = self.model_dump()
        data['path'] = str(data['path'])
        return data


class GlobalSettings(BaseSettings):
    """Global application settings with environment variable support"""
    model_config = SettingsConfigDict(
        env_prefix="ASSET_SYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    global_config_dir: Path = Field(
        default_factory=lambda: Path.home() / ".asset-sync"
    )

    # Logging
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_to_file: bool = False

    def get_log_file(self) -> Optional[Path]:
        """Get log file path if logging to file is enabled"""
        if not self.log_to_file:
            return None
        log_dir = self.global_config_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        return log_dir / "asset-sync.log"
