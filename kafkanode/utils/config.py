"""
Configuration management for kafkanode.

Handles loading and merging configuration from:
- Built-in defaults
- Default configuration file
- An explicit configuration file
- Environment variables
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

COMMIT_POLICIES = ("permissive", "strict")
POLL_ERROR_MODES = ("all_or_nothing", "partial")
LOG_FORMATS = ("console", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULTS: Dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "format": "console",
        "output": "stderr",
    },
    "store": {
        "commit_policy": "permissive",
    },
    "dispatcher": {
        "poll_error_mode": "all_or_nothing",
    },
}


class Config:
    """Configuration manager for kafkanode."""

    def __init__(self, config_file: Optional[str] = None, use_env: bool = True):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration file. If None, only the
                defaults (and environment) apply.
            use_env: Whether environment variables override file values
        """
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULTS)
        self._load_default_config()

        if config_file:
            self._load_config_file(config_file)

        if use_env:
            self._apply_env_overrides()

    def _load_default_config(self) -> None:
        """Load the repository's default configuration file if it exists."""
        default_config_path = Path(__file__).parent.parent.parent / "config" / "default.yaml"
        if default_config_path.exists():
            self._load_config_file(str(default_config_path))

    def _load_config_file(self, config_file: str) -> None:
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML configuration file
        """
        with open(config_file, "r") as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"Configuration file must contain a mapping: {config_file}")
        self._merge_config(file_config)

    def _merge_config(self, new_config: Dict[str, Any]) -> None:
        self._config = self._deep_merge(self._config, new_config)

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries.

        Args:
            base: Base dictionary
            override: Override dictionary

        Returns:
            Merged dictionary
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides."""
        if log_level := os.getenv("LOG_LEVEL"):
            self.set("logging.level", log_level)

        if log_format := os.getenv("LOG_FORMAT"):
            self.set("logging.format", log_format)

        if commit_policy := os.getenv("COMMIT_POLICY"):
            self.set("store.commit_policy", commit_policy)

        if poll_error_mode := os.getenv("POLL_ERROR_MODE"):
            self.set("dispatcher.poll_error_mode", poll_error_mode)

    def validate(self) -> None:
        """
        Check enumerated settings.

        Raises:
            ValueError: If a setting holds an unsupported value
        """
        checks = (
            ("store.commit_policy", COMMIT_POLICIES),
            ("dispatcher.poll_error_mode", POLL_ERROR_MODES),
            ("logging.format", LOG_FORMATS),
        )
        for key, allowed in checks:
            value = self.get(key)
            if value not in allowed:
                raise ValueError(f"Invalid value for {key}: {value!r} (expected one of {allowed})")

        level = str(self.get("logging.level", "")).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.get('logging.level')!r}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "store.commit_policy")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key in dot notation
            value: Value to set
        """
        keys = key.split(".")
        config = self._config
        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]
        config[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Get entire configuration as a (deep) copy."""
        return copy.deepcopy(self._config)
