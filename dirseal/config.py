"""
Configuration Management Module

Layered settings for dirseal: built-in defaults, then a TOML, YAML or
JSON file, then environment variables. Command line flags are applied
on top by the CLI.

The key derivation cost parameters are not configurable. They are not
recorded in the envelope, so changing them would make existing files
undecryptable.
"""

import json
import os
from typing import Any, Dict, Optional

import toml
import yaml

from .errors import ConfigError


class Config:
    """
    Configuration manager for dirseal.

    Supports loading from TOML/YAML/JSON files and environment variables,
    and provides sensible defaults.
    """

    DEFAULT_CONFIG = {
        'files': {
            'marker_extension': '.enc',
            'overwrite': False,
        },
        'security': {
            'secure_delete': {
                'enabled': False,
                'passes': 1,
            },
        },
        'output': {
            'verbose': False,
            'color_output': True,
            'progress_bars': True,
            'log_level': 'INFO',
            'log_file': None,
        },
    }

    ENV_MAPPINGS = {
        'DIRSEAL_MARKER_EXTENSION': (('files', 'marker_extension'), str),
        'DIRSEAL_OVERWRITE': (('files', 'overwrite'), bool),
        'DIRSEAL_SECURE_DELETE': (('security', 'secure_delete', 'enabled'), bool),
        'DIRSEAL_SHRED_PASSES': (('security', 'secure_delete', 'passes'), int),
        'DIRSEAL_VERBOSE': (('output', 'verbose'), bool),
        'DIRSEAL_LOG_LEVEL': (('output', 'log_level'), str),
        'DIRSEAL_LOG_FILE': (('output', 'log_file'), str),
    }

    def __init__(self, config_file: Optional[str] = None, search_defaults: bool = True):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file
            search_defaults: Look for a config file in the default locations
                when ``config_file`` is not given
        """
        self.config_file = self._expand_path(config_file) if config_file else None
        self._config = self._deep_copy_dict(self.DEFAULT_CONFIG)
        self._load_config(search_defaults)

    def _deep_copy_dict(self, d: Dict[str, Any]) -> Dict[str, Any]:
        result = {}
        for key, value in d.items():
            if isinstance(value, dict):
                result[key] = self._deep_copy_dict(value)
            else:
                result[key] = value
        return result

    @staticmethod
    def _expand_path(path: str) -> str:
        """Expand user home directory and environment variables."""
        expanded = os.path.expanduser(path)
        expanded = os.path.expandvars(expanded)
        return os.path.abspath(expanded)

    def _get_default_config_paths(self) -> list:
        config_dir = self._expand_path('~/.dirseal')
        names = ['config.toml', 'config.yaml', 'config.yml', 'config.json']

        paths = [os.path.join(config_dir, name) for name in names]
        paths += [
            './dirseal.toml',
            './dirseal.yaml',
            './dirseal.yml',
            './dirseal.json',
        ]
        return paths

    def _load_config(self, search_defaults: bool) -> None:
        if self.config_file:
            self._load_from_file(self.config_file)
        elif search_defaults:
            for path in self._get_default_config_paths():
                if os.path.exists(path):
                    self._load_from_file(path)
                    self.config_file = self._expand_path(path)
                    break

        self._load_from_environment()

    def _load_from_file(self, file_path: str) -> None:
        """Load configuration from a file."""
        file_path = self._expand_path(file_path)

        try:
            with open(file_path, 'r') as f:
                if file_path.endswith('.toml'):
                    file_config = toml.load(f)
                elif file_path.endswith(('.yaml', '.yml')):
                    file_config = yaml.safe_load(f)
                elif file_path.endswith('.json'):
                    file_config = json.load(f)
                else:
                    raise ConfigError(f"Unsupported config file format: {file_path}")
        except ConfigError:
            raise
        except (OSError, ValueError, toml.TomlDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {file_path}: {e}") from e

        if file_config is None:
            return
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {file_path} must contain a mapping")

        self._merge_config(file_config)

    def _load_from_environment(self) -> None:
        for env_var, (config_path, type_func) in self.ENV_MAPPINGS.items():
            value = os.environ.get(env_var)
            if value is None:
                continue

            if type_func is bool:
                value = value.lower() in ('true', '1', 'yes', 'on')
            elif type_func is int:
                try:
                    value = int(value)
                except ValueError as e:
                    raise ConfigError(f"{env_var} must be an integer, got {value!r}") from e

            self._set_nested_value(config_path, value)

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        self._deep_merge(self._config, new_config)

    def _deep_merge(self, target: Dict[str, Any], source: Dict[str, Any]) -> None:
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._deep_merge(target[key], value)
            else:
                target[key] = value

    def _set_nested_value(self, path: tuple, value: Any) -> None:
        current = self._config
        for key in path[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]
        current[path[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key not found

        Returns:
            Configuration value
        """
        current = self._config

        try:
            for k in key.split('.'):
                current = current[k]
            return current
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation."""
        self._set_nested_value(tuple(key.split('.')), value)

    def save(self, file_path: Optional[str] = None) -> None:
        """
        Save configuration to file.

        Args:
            file_path: Path to save configuration (uses current file if None)
        """
        save_path = file_path or self.config_file

        if not save_path:
            raise ConfigError("No configuration file specified")

        save_path = self._expand_path(save_path)
        os.makedirs(os.path.dirname(save_path), exist_ok=True)

        try:
            with open(save_path, 'w') as f:
                if save_path.endswith('.toml'):
                    toml.dump(self._config, f)
                elif save_path.endswith(('.yaml', '.yml')):
                    yaml.safe_dump(self._config, f, default_flow_style=False)
                elif save_path.endswith('.json'):
                    json.dump(self._config, f, indent=2)
                else:
                    raise ConfigError(f"Unsupported config file format: {save_path}")
        except OSError as e:
            raise ConfigError(f"Failed to save config to {save_path}: {e}") from e

        self.config_file = save_path

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigError: If a value is unusable
        """
        marker = self.get('files.marker_extension')
        if not isinstance(marker, str) or len(marker) < 2 or not marker.startswith('.'):
            raise ConfigError(f"Invalid marker extension: {marker!r}")
        if os.sep in marker or (os.altsep and os.altsep in marker):
            raise ConfigError(f"Marker extension must not contain a path separator: {marker!r}")

        passes = self.get('security.secure_delete.passes')
        if not isinstance(passes, int) or isinstance(passes, bool) or passes < 1:
            raise ConfigError(f"Secure delete passes must be a positive integer: {passes!r}")

        level = self.get('output.log_level')
        if not isinstance(level, str) or level.upper() not in (
            'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'
        ):
            raise ConfigError(f"Invalid log level: {level!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return self._deep_copy_dict(self._config)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


def load_config(config_file: Optional[str] = None) -> Config:
    """
    Load and validate configuration.

    Args:
        config_file: Path to configuration file

    Returns:
        Config object
    """
    config = Config(config_file)
    config.validate()
    return config


def create_default_config(config_file: str) -> None:
    """Write the default configuration to ``config_file``."""
    config = Config(search_defaults=False)
    config.save(config_file)
