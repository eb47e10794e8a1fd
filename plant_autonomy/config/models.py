"""
Pydantic models for application configuration.

This module defines all configuration models that are validated when loading
YAML configuration files. The models ensure type safety and provide sensible
defaults for optional settings.

Configuration files:
    - config/monitoring.yaml: Monitoring thresholds, timings and logging
    - config/hierarchy.yaml: Optional equipment tree for the static provider

Configuration is constructed once when the engine is created and is
immutable thereafter (all models are frozen).

Example:
    >>> from plant_autonomy.config.models import MonitoringConfig
    >>> config = MonitoringConfig()
    >>> config.thresholds.temperature.max
    85.0
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class LogFormat(str, Enum):
    """Logging format options."""

    JSON = "json"
    TEXT = "text"


class LogLevel(str, Enum):
    """Logging level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# =============================================================================
# THRESHOLD CONFIGURATION
# =============================================================================


class RangeThreshold(BaseModel):
    """Lower and upper bound for a metric; both bounds are exclusive triggers."""

    model_config = {"frozen": True, "extra": "forbid"}

    min: float = Field(
        ...,
        description="Readings strictly below this value are anomalous",
    )
    max: float = Field(
        ...,
        description="Readings strictly above this value are anomalous",
    )

    @model_validator(mode="after")
    def validate_bounds(self) -> "RangeThreshold":
        """Ensure min does not exceed max."""
        if self.min > self.max:
            raise ValueError(f"min ({self.min}) must not exceed max ({self.max})")
        return self


class FloorThreshold(BaseModel):
    """Lower bound only (used for OEE, expressed as a ratio in [0, 1])."""

    model_config = {"frozen": True, "extra": "forbid"}

    min: float = Field(
        ...,
        description="Normalized readings strictly below this value are anomalous",
        ge=0.0,
        le=1.0,
    )


class AnomalyThresholds(BaseModel):
    """Static per-metric thresholds."""

    model_config = {"frozen": True, "extra": "forbid"}

    temperature: RangeThreshold = Field(
        default_factory=lambda: RangeThreshold(min=15.0, max=85.0),
        description="Temperature bounds (°C)",
    )
    speed: RangeThreshold = Field(
        default_factory=lambda: RangeThreshold(min=80.0, max=1200.0),
        description="Speed bounds (RPM or units/min)",
    )
    oee: FloorThreshold = Field(
        default_factory=lambda: FloorThreshold(min=0.75),
        description="Minimum acceptable OEE ratio",
    )


# =============================================================================
# CASCADE CONFIGURATION
# =============================================================================


class CascadeTimings(BaseModel):
    """
    Stage offsets of the response cascade, in seconds after detection.

    Offsets must be strictly increasing so that stage events within one
    cascade carry strictly increasing timestamps.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    agent_seconds: float = Field(
        default=1.5,
        description="Offset of the agent-trigger stage",
        gt=0,
    )
    work_order_seconds: float = Field(
        default=3.5,
        description="Offset of the work-order stage",
        gt=0,
    )
    escalation_seconds: float = Field(
        default=5.5,
        description="Offset of the escalation stage",
        gt=0,
    )

    @model_validator(mode="after")
    def validate_order(self) -> "CascadeTimings":
        """Ensure stage offsets are strictly increasing."""
        if not (self.agent_seconds < self.work_order_seconds < self.escalation_seconds):
            raise ValueError(
                "cascade stage offsets must be strictly increasing: "
                f"{self.agent_seconds} < {self.work_order_seconds} < {self.escalation_seconds}"
            )
        return self


# =============================================================================
# MONITORING CONFIGURATION
# =============================================================================


class MonitoringConfig(BaseModel):
    """
    Configuration of the autonomous monitoring engine.

    Attributes:
        enabled: Whether monitoring may be started at all.
        check_interval_ms: Polling interval of the scheduler.
        site_id: Root node requested from the hierarchy provider on each tick.
        cooldown_seconds: Debounce window per (metric, direction, equipment).
        history_capacity: Number of events retained by the event bus.
        cancel_cascades_on_stop: Cancel in-flight cascade stages on stop.
        escalation_margin: Degrees above the temperature max that stop a line.
        thresholds: Static anomaly thresholds.
        timings: Cascade stage offsets.

    Example:
        >>> config = MonitoringConfig(check_interval_ms=1000)
        >>> config.interval_seconds
        1.0
    """

    model_config = {"frozen": True, "extra": "forbid"}

    enabled: bool = Field(
        default=True,
        description="Whether monitoring may be started",
    )
    check_interval_ms: int = Field(
        default=5000,
        description="Polling interval in milliseconds",
        ge=100,
        le=3_600_000,
    )
    site_id: str = Field(
        default="site-1",
        description="Root hierarchy node to monitor",
        min_length=1,
    )
    cooldown_seconds: float = Field(
        default=60.0,
        description="Debounce window per anomaly signature",
        ge=0,
    )
    history_capacity: int = Field(
        default=100,
        description="Maximum number of events kept in history",
        ge=1,
        le=10_000,
    )
    cancel_cascades_on_stop: bool = Field(
        default=True,
        description="Cancel pending cascade stages when monitoring stops",
    )
    escalation_margin: float = Field(
        default=5.0,
        description="Temperature margin above max that triggers a line stop",
        ge=0,
    )
    thresholds: AnomalyThresholds = Field(
        default_factory=AnomalyThresholds,
        description="Static anomaly thresholds",
    )
    timings: CascadeTimings = Field(
        default_factory=CascadeTimings,
        description="Cascade stage offsets",
    )

    @property
    def interval_seconds(self) -> float:
        """Polling interval in seconds."""
        return self.check_interval_ms / 1000.0


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    format: LogFormat = Field(
        default=LogFormat.JSON,
        description="Log output format",
    )
    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Default log level",
    )


# =============================================================================
# ROOT CONFIGURATION
# =============================================================================


class AppConfig(BaseModel):
    """
    Root application configuration.

    Aggregates all configuration sections into a single validated object.

    Example:
        >>> config = AppConfig(monitoring=MonitoringConfig())
        >>> config.monitoring.site_id
        'site-1'
    """

    model_config = {"frozen": True, "extra": "forbid"}

    monitoring: MonitoringConfig = Field(
        default_factory=MonitoringConfig,
        description="Monitoring engine configuration",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    hierarchy: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Raw equipment tree for the static hierarchy provider",
    )
