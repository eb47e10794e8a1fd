"""
Configuration management for the autonomous monitoring engine.

This module handles loading and validating configuration from YAML files.
All configuration values are validated using Pydantic models.

Configuration is loaded from YAML files in the config/ directory:
    - monitoring.yaml: Thresholds, polling interval, cascade timings, logging
    - hierarchy.yaml: Optional equipment tree for the static provider

Environment variables can override:
    - LOG_LEVEL: Application log level
    - SITE_ID: Root hierarchy node to monitor

Example:
    >>> from plant_autonomy.config import load_config
    >>> config = load_config()
    >>> config.monitoring.cooldown_seconds
    60.0
"""

from plant_autonomy.config.loader import ConfigLoadError, ConfigLoader, load_config
from plant_autonomy.config.models import (
    # Enums
    LogFormat,
    LogLevel,
    # Thresholds
    AnomalyThresholds,
    FloorThreshold,
    RangeThreshold,
    # Monitoring
    CascadeTimings,
    MonitoringConfig,
    # Logging
    LoggingConfig,
    # Root config
    AppConfig,
)

__all__: list[str] = [
    # Loader
    "load_config",
    "ConfigLoader",
    "ConfigLoadError",
    # Enums
    "LogFormat",
    "LogLevel",
    # Thresholds
    "RangeThreshold",
    "FloorThreshold",
    "AnomalyThresholds",
    # Monitoring
    "CascadeTimings",
    "MonitoringConfig",
    # Logging
    "LoggingConfig",
    # Root config
    "AppConfig",
]
