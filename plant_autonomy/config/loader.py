"""
Configuration loader for YAML-based application configuration.

This module provides utilities to load and validate configuration from YAML
files. All configuration is validated using Pydantic models to catch
configuration errors early.

Configuration files expected:
    - config/monitoring.yaml: Monitoring and logging settings (required)
    - config/hierarchy.yaml: Equipment tree for the static provider (optional)

Environment variables override:
    - LOG_LEVEL: Application log level
    - SITE_ID: Root hierarchy node to monitor

Example:
    >>> from plant_autonomy.config.loader import load_config
    >>> config = load_config("config")
    >>> config.monitoring.check_interval_ms
    5000
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from plant_autonomy.config.models import (
    AppConfig,
    LoggingConfig,
    LogLevel,
    MonitoringConfig,
)


class ConfigLoadError(Exception):
    """
    Raised when configuration loading fails.

    Attributes:
        message: Error message describing what went wrong.
        file_path: Path to the file that caused the error, if applicable.
        cause: Original exception that caused the error, if any.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[Path] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.file_path = file_path
        self.cause = cause
        super().__init__(message)


class ConfigLoader:
    """
    Loads and validates application configuration from YAML files.

    Expects the following directory structure:
        config/
        ├── monitoring.yaml  - Thresholds, interval, cascade timings, logging
        └── hierarchy.yaml   - Equipment tree (optional)

    Example:
        >>> loader = ConfigLoader("config")
        >>> config = loader.load()
        >>> config.monitoring.thresholds.temperature.max
        85.0
    """

    MONITORING_FILE = "monitoring.yaml"
    HIERARCHY_FILE = "hierarchy.yaml"

    def __init__(self, config_dir: Path | str = "config"):
        """
        Initialize config loader.

        Args:
            config_dir: Path to configuration directory (default: 'config').

        Raises:
            ConfigLoadError: If config directory does not exist.
        """
        self.config_dir = Path(config_dir)
        if not self.config_dir.exists():
            raise ConfigLoadError(
                f"Configuration directory not found: {self.config_dir}",
                file_path=self.config_dir,
            )
        if not self.config_dir.is_dir():
            raise ConfigLoadError(
                f"Configuration path is not a directory: {self.config_dir}",
                file_path=self.config_dir,
            )

    def _load_yaml(self, filename: str) -> Dict[str, Any]:
        """
        Load a YAML file from the config directory.

        Args:
            filename: Name of YAML file (e.g., 'monitoring.yaml').

        Returns:
            Dict containing parsed YAML content.

        Raises:
            ConfigLoadError: If file not found, empty, or invalid YAML.
        """
        file_path = self.config_dir / filename
        if not file_path.exists():
            raise ConfigLoadError(
                f"Configuration file not found: {file_path}",
                file_path=file_path,
            )

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigLoadError(
                f"Invalid YAML syntax in {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e
        except OSError as e:
            raise ConfigLoadError(
                f"Error reading {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e

        if data is None:
            raise ConfigLoadError(
                f"Configuration file is empty: {file_path}",
                file_path=file_path,
            )
        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"Configuration file must contain a mapping: {file_path}",
                file_path=file_path,
            )
        return data

    def _load_monitoring(self, data: Dict[str, Any]) -> MonitoringConfig:
        """
        Build the monitoring section, applying environment overrides.

        Environment variables:
            - SITE_ID: Root hierarchy node to monitor

        Returns:
            MonitoringConfig object.
        """
        raw = dict(data.get("monitoring") or {})
        site_id = os.getenv("SITE_ID")
        if site_id:
            raw["site_id"] = site_id
        return MonitoringConfig(**raw)

    def _load_logging(self, data: Dict[str, Any]) -> LoggingConfig:
        """
        Build the logging section, applying environment overrides.

        Environment variables:
            - LOG_LEVEL: Log level (default: from file, else INFO)

        Returns:
            LoggingConfig object.
        """
        raw = dict(data.get("logging") or {})
        # Unknown values keep the level from the file.
        level_str = os.getenv("LOG_LEVEL", "").upper()
        if level_str in LogLevel.__members__:
            raw["level"] = LogLevel(level_str)
        return LoggingConfig(**raw)

    def _load_hierarchy(self) -> Optional[Dict[str, Any]]:
        """
        Load the optional equipment tree.

        Returns:
            The raw root node mapping, or None if hierarchy.yaml is absent.
        """
        if not (self.config_dir / self.HIERARCHY_FILE).exists():
            return None

        data = self._load_yaml(self.HIERARCHY_FILE)
        root = data.get("hierarchy")
        if not isinstance(root, dict):
            raise ConfigLoadError(
                f"{self.HIERARCHY_FILE} must define a 'hierarchy' mapping",
                file_path=self.config_dir / self.HIERARCHY_FILE,
            )
        return root

    def load(self) -> AppConfig:
        """
        Load and validate all configuration files.

        Returns:
            AppConfig: Validated application configuration.

        Raises:
            ConfigLoadError: If any configuration is invalid or missing.
        """
        try:
            data = self._load_yaml(self.MONITORING_FILE)
            return AppConfig(
                monitoring=self._load_monitoring(data),
                logging=self._load_logging(data),
                hierarchy=self._load_hierarchy(),
            )

        except ConfigLoadError:
            raise
        except ValidationError as e:
            raise ConfigLoadError(
                f"Configuration validation failed: {e}",
                cause=e,
            ) from e
        except Exception as e:
            raise ConfigLoadError(
                f"Unexpected error loading configuration: {e}",
                cause=e,
            ) from e


def load_config(config_dir: Path | str = "config") -> AppConfig:
    """
    Convenience function to load application configuration.

    Args:
        config_dir: Path to configuration directory (default: 'config').

    Returns:
        AppConfig: Validated application configuration.

    Raises:
        ConfigLoadError: If configuration loading fails.
    """
    loader = ConfigLoader(config_dir)
    return loader.load()
