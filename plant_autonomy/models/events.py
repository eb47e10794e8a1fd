"""
Event data models for the autonomous monitoring engine.

This module defines the events broadcast through the event bus and the
anomaly verdicts produced by the threshold evaluator.

Models:
    EventType: Kind of event (detection, agent trigger, work order, ...)
    EventSeverity: Severity levels (info, warning, critical)
    AnomalyDirection: Which bound a reading crossed
    AnomalyVerdict: Result of classifying one anomalous reading
    EventDetails: Structured payload attached to an event
    AnomalyEvent: A published event
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from plant_autonomy.models.equipment import MonitoredMetric


class EventType(str, Enum):
    """
    Event kinds, in the order a full cascade emits them.

    Attributes:
        ANOMALY_DETECTED: A reading crossed a threshold.
        AGENT_TRIGGERED: A specialist agent was engaged.
        ACTION_PLANNED: A corrective action (work order) was planned.
        MAINTENANCE_SCHEDULED: A maintenance work order was scheduled.
        LINE_STOPPED: The line was shut down for safety.
        ALERT: System or degraded-operation notice.
    """

    ANOMALY_DETECTED = "anomaly_detected"
    AGENT_TRIGGERED = "agent_triggered"
    ACTION_PLANNED = "action_planned"
    MAINTENANCE_SCHEDULED = "maintenance_scheduled"
    LINE_STOPPED = "line_stopped"
    ALERT = "alert"


class EventSeverity(str, Enum):
    """Event severity levels."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AnomalyDirection(str, Enum):
    """Which bound a reading crossed."""

    HIGH = "high"
    LOW = "low"


class AnomalyVerdict(BaseModel):
    """
    Result of classifying one anomalous metric reading.

    Attributes:
        metric: The metric that was evaluated.
        direction: Whether the reading was above max or below min.
        value: Observed value (OEE normalized to a ratio).
        threshold: The bound that was crossed.
        confidence: Fixed display confidence for (metric, direction).
        unit: Unit of the observed value.

    Example:
        >>> verdict = AnomalyVerdict(
        ...     metric=MonitoredMetric.TEMPERATURE,
        ...     direction=AnomalyDirection.HIGH,
        ...     value=92.0,
        ...     threshold=85.0,
        ...     confidence=0.95,
        ...     unit="°C",
        ... )
    """

    model_config = {"frozen": True, "extra": "forbid"}

    metric: MonitoredMetric
    direction: AnomalyDirection
    value: float
    threshold: float
    confidence: float = Field(..., ge=0.0, le=1.0)
    unit: str = ""


class EventDetails(BaseModel):
    """
    Optional structured payload of an event.

    Attributes:
        metric: Metric display name.
        value: Observed value.
        threshold: Threshold crossed.
        confidence: Confidence score in [0, 1].
        agent_triggered: Name of the specialist agent engaged.
        action_taken: Description of the action taken.
        work_order_id: Linked work order.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    metric: Optional[str] = None
    value: Optional[float] = None
    threshold: Optional[float] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    agent_triggered: Optional[str] = None
    action_taken: Optional[str] = None
    work_order_id: Optional[str] = None


class AnomalyEvent(BaseModel):
    """
    An event published through the event bus.

    Every event belongs to exactly one cascade; lifecycle alerts form a
    cascade of their own.

    Attributes:
        id: Unique, time-based event id.
        cascade_id: Cascade instance the event belongs to.
        timestamp: Creation time.
        type: Event kind.
        severity: Event severity.
        equipment: Source node name.
        location: Hierarchical path of the source node.
        message: Human-readable description.
        details: Optional structured payload.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    id: str
    cascade_id: str
    timestamp: datetime
    type: EventType
    severity: EventSeverity
    equipment: str
    location: str
    message: str
    details: Optional[EventDetails] = None
