"""
Configuration loading and management with template support.

Handles project setup, template substitution and environment overrides.
"""

import json
import os
from pathlib import Path
from string import Template
from typing import Any, Dict, Optional, Union
import logging

from pydantic import ValidationError

from core.models.config import ProjectConfig, GlobalSettings
from .defaults import get_default_project_config, ENV_VAR_MAPPING

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a project configuration cannot be loaded or saved"""
    pass


class ConfigurationLoader:
    """Load and manage project configurations with template support"""

    def __init__(self, global_settings: Optional[GlobalSettings] = None):
        self.global_settings = global_settings or GlobalSettings()
        self.config_cache: Dict[str, ProjectConfig] = {}

    def load_project_config(
        self,
        project_path: Union[str, Path],
        project_name: Optional[str] = None
    ) -> ProjectConfig:
        """Load or create project configuration"""
        project_path = Path(project_path).resolve()

        if not project_path.is_dir():
            raise ConfigError(f"Project path does not exist: {project_path}")

        if not project_name:
            project_name = project_path.name.lower().replace(' ', '-')

        # Check cache first
        cache_key = str(project_path)
        if cache_key in self.config_cache:
            return self.config_cache[cache_key]

        config_file = project_path / ".asset-sync" / "config.json"

        if config_file.exists():
            config = self._load_existing_config(config_file, project_path)
        else:
            config = self._create_project_config(project_path, project_name)

        # Cache the configuration
        self.config_cache[cache_key] = config
        return config

    def _load_existing_config(self, config_file: Path, project_path: Path) -> ProjectConfig:
        """Load existing configuration file with validation"""
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to load config from {config_file}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_file} does not contain a JSON object")

        # Apply environment variable overrides
        data = self._apply_env_overrides(data)

        # The project may have been moved since the config was written
        data['path'] = project_path
        data.setdefault('name', project_path.name)

        try:
            return ProjectConfig(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e

    def _create_project_config(self, project_path: Path, project_name: str) -> ProjectConfig:
        """Create new project configuration from template"""
        config_data = get_default_project_config()

        substitutions = {
            'project_name': project_name,
            'project_path': str(project_path)
        }
        config_data = self._substitute_template_vars(config_data, substitutions)

        # Apply environment overrides
        config_data = self._apply_env_overrides(config_data)

        config_data['path'] = project_path

        try:
            return ProjectConfig(**config_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration for {project_path}: {e}") from e

    def _substitute_template_vars(
        self,
        data: Any,
        substitutions: Dict[str, str]
    ) -> Any:
        """Recursively substitute template variables in configuration"""
        if isinstance(data, dict):
            return {
                key: self._substitute_template_vars(value, substitutions)
                for key, value in data.items()
            }
        elif isinstance(data, list):
            return [
                self._substitute_template_vars(item, substitutions)
                for item in data
            ]
        elif isinstance(data, str):
            try:
                template = Template(data)
                return template.safe_substitute(substitutions)
            except (ValueError, KeyError):
                return data
        else:
            return data

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration"""
        for env_var, config_path in ENV_VAR_MAPPING.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                self._set_nested_value(config_data, config_path, env_value)

        return config_data

    def _set_nested_value(self, data: Dict[str, Any], path: str, value: str) -> None:
        """Set nested dictionary value using dot notation path"""
        keys = path.split('.')
        current = data

        for key in keys[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]

        # Convert value to appropriate type
        final_key = keys[-1]
        converted_value = self._convert_env_value(value)
        current[final_key] = converted_value

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to appropriate type"""
        # Boolean conversion
        if value.lower() in ('true', 'yes', 'on'):
            return True
        elif value.lower() in ('false', 'no', 'off'):
            return False

        # Numeric conversion
        try:
            if '.' in value:
                return float(value)
            else:
                return int(value)
        except ValueError:
            pass

        # Return as string
        return value

    def save_project_config(self, config: ProjectConfig) -> Path:
        """
        Save project configuration to disk.

        Returns:
            Path of the written config file
        """
        config_file = config.get_config_file()
        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(config_file, 'w', encoding='utf-8') as f:
                json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise ConfigError(f"Failed to save config for {config.path}: {e}") from e

        logger.info(f"Saved configuration to {config_file}")
        self.config_cache[str(config.path)] = config
        return config_file

    def setup_project(
        self,
        project_path: Union[str, Path],
        project_name: Optional[str] = None,
        overwrite: bool = False
    ) -> ProjectConfig:
        """Complete project setup with configuration and directory structure"""
        project_path = Path(project_path).resolve()

        if not project_path.exists():
            raise ConfigError(f"Project path does not exist: {project_path}")

        if not project_name:
            project_name = project_path.name.lower().replace(' ', '-')

        logger.info(f"Setting up project '{project_name}' at {project_path}")

        if overwrite:
            self.config_cache.pop(str(project_path), None)
            config = self._create_project_config(project_path, project_name)
        else:
            config = self.load_project_config(project_path, project_name)

        # Check if already initialized
        if config.is_initialized and not overwrite:
            logger.info(f"Project already initialized at {project_path}")
            return config

        self._create_project_structure(config)
        self.save_project_config(config)

        logger.info(f"Project setup complete for '{project_name}'")
        return config

    def _create_project_structure(self, config: ProjectConfig) -> None:
        """Create project directory structure"""
        config.get_config_dir().mkdir(parents=True, exist_ok=True)
        config.data_dir.mkdir(parents=True, exist_ok=True)
        config.media_dir.mkdir(parents=True, exist_ok=True)

    def clear_cache(self) -> None:
        """Clear configuration cache"""
        self.config_cache.clear()
        logger.info("Configuration cache cleared")
