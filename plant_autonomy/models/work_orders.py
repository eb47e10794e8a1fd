"""
Work order models.

This module defines the request sent to the work-order collaborator by the
response cascade and the work order it returns.

Models:
    WorkOrderType: preventive, corrective, predictive, emergency
    WorkOrderPriority: low, normal, high, urgent
    WorkOrderStatus: open, assigned, in-progress, completed, cancelled
    RequestSeverity: Severity vocabulary of autonomous requests
    WorkOrderPart: Suggested spare part
    WorkOrderRequest: Anomaly context passed to the collaborator
    WorkOrder: A created work order
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class WorkOrderType(str, Enum):
    """Kind of maintenance work."""

    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"
    PREDICTIVE = "predictive"
    EMERGENCY = "emergency"


class WorkOrderPriority(str, Enum):
    """Work order priority."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class WorkOrderStatus(str, Enum):
    """Work order lifecycle status."""

    OPEN = "open"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RequestSeverity(str, Enum):
    """Severity of an autonomous work-order request."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class WorkOrderCreator(str, Enum):
    """Who created a work order."""

    USER = "user"
    AUTONOMOUS_AI = "autonomous-ai"
    PREDICTIVE_AI = "predictive-ai"


class WorkOrderPart(BaseModel):
    """A suggested spare part."""

    model_config = {"frozen": True, "extra": "forbid"}

    id: str
    name: str
    part_number: str
    quantity: int = Field(default=1, ge=1)
    unit: str = "pcs"
    in_stock: bool = True
    estimated_cost: float = Field(default=0.0, ge=0)


class WorkOrderRequest(BaseModel):
    """
    Anomaly context passed to the work-order collaborator.

    Example:
        >>> request = WorkOrderRequest(
        ...     machine_id="filler-2",
        ...     machine_name="Filler-2",
        ...     anomaly_type="temperature",
        ...     metric="Temperature",
        ...     value=92.0,
        ...     threshold=85.0,
        ...     confidence=0.95,
        ...     severity=RequestSeverity.CRITICAL,
        ... )
    """

    model_config = {"frozen": True, "extra": "forbid"}

    machine_id: str
    machine_name: str
    anomaly_type: str
    metric: str
    value: float
    threshold: float
    confidence: float = Field(..., ge=0.0, le=1.0)
    severity: RequestSeverity


class WorkOrder(BaseModel):
    """
    A maintenance work order.

    Only ``id``, ``priority`` and ``estimated_duration`` are relied upon by
    the response cascade; the remaining fields are optional so that external
    collaborators may return sparse records.
    """

    model_config = {"extra": "forbid"}

    id: str
    priority: WorkOrderPriority
    estimated_duration: Optional[int] = Field(
        default=None,
        description="Estimated duration in minutes",
        ge=0,
    )
    type: WorkOrderType = WorkOrderType.PREDICTIVE
    machine_id: Optional[str] = None
    machine_name: Optional[str] = None
    title: str = ""
    description: str = ""
    status: WorkOrderStatus = WorkOrderStatus.OPEN
    assigned_to: Optional[str] = None
    created_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    parts: List[WorkOrderPart] = Field(default_factory=list)
    created_by: WorkOrderCreator = WorkOrderCreator.USER
    ai_confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    cost_estimate: Optional[float] = None

    @property
    def is_ai_created(self) -> bool:
        """True if created by an autonomous or predictive agent."""
        return self.created_by in (
            WorkOrderCreator.AUTONOMOUS_AI,
            WorkOrderCreator.PREDICTIVE_AI,
        )
