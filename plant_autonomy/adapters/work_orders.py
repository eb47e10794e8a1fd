"""
In-memory work-order service.

WorkOrderService is the reference WorkOrderClient. It turns anomaly context
into a fully populated predictive work order (title, description with
recommended actions, duration, suggested parts, due date and cost estimate)
and keeps every order in memory for querying.

Key Features:
    - Severity to priority mapping (critical -> urgent)
    - Per-anomaly-type duration, parts and recommended actions
    - Due date from severity, cost from labour rate plus parts
    - Listener notification on create, status change and assignment

Example:
    >>> service = WorkOrderService()
    >>> order = service.create_autonomous_work_order(request)
    >>> order.priority
    <WorkOrderPriority.URGENT: 'urgent'>
    >>> service.assign(order.id, "J. de Vries")
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

import structlog

from plant_autonomy.interfaces.clock import Clock
from plant_autonomy.interfaces.work_order_client import WorkOrderClient
from plant_autonomy.models.work_orders import (
    RequestSeverity,
    WorkOrder,
    WorkOrderCreator,
    WorkOrderPart,
    WorkOrderPriority,
    WorkOrderRequest,
    WorkOrderStatus,
    WorkOrderType,
)

logger = structlog.get_logger(__name__)

WorkOrderListener = Callable[[WorkOrder], None]

LABOUR_RATE_PER_HOUR = 75.0
DEFAULT_DURATION_MINUTES = 120
DEFAULT_DUE_HOURS = 48

PRIORITY_BY_SEVERITY: Dict[RequestSeverity, WorkOrderPriority] = {
    RequestSeverity.LOW: WorkOrderPriority.NORMAL,
    RequestSeverity.MEDIUM: WorkOrderPriority.HIGH,
    RequestSeverity.HIGH: WorkOrderPriority.HIGH,
    RequestSeverity.CRITICAL: WorkOrderPriority.URGENT,
}

DUE_HOURS_BY_SEVERITY: Dict[RequestSeverity, int] = {
    RequestSeverity.LOW: 168,
    RequestSeverity.MEDIUM: 48,
    RequestSeverity.HIGH: 24,
    RequestSeverity.CRITICAL: 4,
}

DURATION_MINUTES: Dict[str, int] = {
    "temperature": 120,
    "vibration": 180,
    "speed": 90,
    "oee": 240,
    "pressure": 150,
}

TITLE_TEMPLATES: Dict[str, str] = {
    "temperature": "{machine} Temperature Anomaly Detected",
    "vibration": "Abnormal {machine} Vibration - Maintenance Required",
    "speed": "{machine} Speed Deviation - Performance Check Needed",
    "oee": "{machine} Performance Degradation - Root Cause Analysis",
    "pressure": "{machine} Pressure Anomaly - System Check Required",
}
DEFAULT_TITLE = "{machine} Anomaly - Inspection Required"

RECOMMENDED_ACTIONS: Dict[str, List[str]] = {
    "temperature": [
        "Check cooling system operation",
        "Inspect thermal sensors",
        "Verify ambient conditions",
        "Clean heat exchangers if needed",
    ],
    "vibration": [
        "Inspect bearings for wear",
        "Check alignment and balance",
        "Tighten loose connections",
        "Replace worn components",
    ],
    "speed": [
        "Check motor and drive system",
        "Inspect belt tension and condition",
        "Verify control system settings",
        "Clean sensors and encoders",
    ],
    "oee": [
        "Analyze downtime root causes",
        "Review quality metrics",
        "Check equipment availability",
        "Optimize production parameters",
    ],
    "pressure": [
        "Inspect seals and gaskets",
        "Check for leaks",
        "Verify pump operation",
        "Clean or replace filters",
    ],
}
DEFAULT_ACTIONS = [
    "Perform visual inspection",
    "Run diagnostics",
    "Consult maintenance manual",
    "Contact support if needed",
]

# (name, part number, quantity, unit cost)
SUGGESTED_PARTS: Dict[str, List[tuple]] = {
    "temperature": [
        ("Cooling Fan", "FAN-001", 1, 245.0),
        ("Thermal Sensor", "SENSOR-T01", 1, 89.0),
    ],
    "vibration": [
        ("Bearing Set", "BEAR-X45", 2, 420.0),
    ],
    "speed": [
        ("Drive Belt", "BELT-V12", 1, 125.0),
    ],
}


class WorkOrderNotFoundError(LookupError):
    """Raised when a work order id is unknown."""

    def __init__(self, work_order_id: str):
        self.work_order_id = work_order_id
        super().__init__(f"Work order {work_order_id} not found")


def estimate_duration(anomaly_type: str) -> int:
    """Estimated repair time in minutes for an anomaly type."""
    return DURATION_MINUTES.get(anomaly_type, DEFAULT_DURATION_MINUTES)


def suggest_parts(anomaly_type: str, machine_id: str) -> List[WorkOrderPart]:
    """Spare parts typically needed for an anomaly type."""
    return [
        WorkOrderPart(
            id=f"part-{machine_id}-{index}",
            name=name,
            part_number=part_number,
            quantity=quantity,
            estimated_cost=cost,
        )
        for index, (name, part_number, quantity, cost) in enumerate(
            SUGGESTED_PARTS.get(anomaly_type, [])
        )
    ]


def estimate_cost(duration_minutes: int, parts: List[WorkOrderPart]) -> float:
    """Labour at LABOUR_RATE_PER_HOUR plus parts, rounded to whole units."""
    labour = duration_minutes / 60 * LABOUR_RATE_PER_HOUR
    materials = sum(part.estimated_cost * part.quantity for part in parts)
    return float(round(labour + materials))


class WorkOrderService(WorkOrderClient):
    """
    In-memory work-order store and autonomous work-order factory.

    Attributes:
        clock: Optional clock for timestamps; wall-clock UTC when omitted.
        _orders: Work orders in creation order.
        _listeners: Change listeners.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock = clock
        self._orders: List[WorkOrder] = []
        self._listeners: List[WorkOrderListener] = []
        self._last_millis = 0

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_autonomous_work_order(self, request: WorkOrderRequest) -> WorkOrder:
        """
        Create a predictive work order from anomaly context.

        Args:
            request: The anomaly context from the response cascade.

        Returns:
            WorkOrder: The stored, open work order.
        """
        now = self._now()
        duration = estimate_duration(request.anomaly_type)
        parts = suggest_parts(request.anomaly_type, request.machine_id)
        due_hours = DUE_HOURS_BY_SEVERITY.get(request.severity, DEFAULT_DUE_HOURS)

        order = WorkOrder(
            id=self._next_id(now),
            type=WorkOrderType.PREDICTIVE,
            machine_id=request.machine_id,
            machine_name=request.machine_name,
            title=self._title(request),
            description=self._description(request),
            priority=PRIORITY_BY_SEVERITY[request.severity],
            status=WorkOrderStatus.OPEN,
            created_at=now,
            due_date=now + timedelta(hours=due_hours),
            estimated_duration=duration,
            parts=parts,
            created_by=WorkOrderCreator.AUTONOMOUS_AI,
            ai_confidence=request.confidence,
            cost_estimate=estimate_cost(duration, parts),
        )
        self._orders.append(order)

        logger.info(
            "work_order_created",
            work_order_id=order.id,
            machine_id=order.machine_id,
            anomaly_type=request.anomaly_type,
            priority=order.priority.value,
            estimated_duration=duration,
            cost_estimate=order.cost_estimate,
        )
        self._notify(order)
        return order

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_all_work_orders(self) -> List[WorkOrder]:
        """All work orders, newest first."""
        return sorted(
            self._orders,
            key=lambda order: order.created_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )

    def get(self, work_order_id: str) -> Optional[WorkOrder]:
        for order in self._orders:
            if order.id == work_order_id:
                return order
        return None

    def get_by_status(self, status: WorkOrderStatus) -> List[WorkOrder]:
        return [order for order in self._orders if order.status == status]

    def get_by_machine(self, machine_id: str) -> List[WorkOrder]:
        return [order for order in self._orders if order.machine_id == machine_id]

    def get_ai_created(self) -> List[WorkOrder]:
        return [order for order in self._orders if order.is_ai_created]

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def update_status(self, work_order_id: str, status: WorkOrderStatus) -> WorkOrder:
        """
        Change a work order's status.

        Completing an order stamps ``completed_at``.

        Raises:
            WorkOrderNotFoundError: If the id is unknown.
        """
        order = self._require(work_order_id)
        order.status = status
        if status == WorkOrderStatus.COMPLETED:
            order.completed_at = self._now()

        logger.info("work_order_status_updated", work_order_id=order.id, status=status.value)
        self._notify(order)
        return order

    def assign(self, work_order_id: str, assignee: str) -> WorkOrder:
        """
        Assign a work order and mark it assigned.

        Raises:
            WorkOrderNotFoundError: If the id is unknown.
        """
        order = self._require(work_order_id)
        order.assigned_to = assignee
        order.status = WorkOrderStatus.ASSIGNED

        logger.info("work_order_assigned", work_order_id=order.id, assignee=assignee)
        self._notify(order)
        return order

    def subscribe(self, listener: WorkOrderListener) -> Callable[[], None]:
        """Register a change listener; returns its unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear_all(self) -> None:
        """Drop every stored work order."""
        count = len(self._orders)
        self._orders.clear()
        logger.debug("work_orders_cleared", count=count)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _now(self) -> datetime:
        if self.clock is not None:
            return self.clock.now()
        return datetime.now(timezone.utc)

    def _next_id(self, now: datetime) -> str:
        # Millisecond ids, bumped so that orders created together stay unique.
        millis = max(int(now.timestamp() * 1000), self._last_millis + 1)
        self._last_millis = millis
        return f"WO-{millis}"

    def _require(self, work_order_id: str) -> WorkOrder:
        order = self.get(work_order_id)
        if order is None:
            raise WorkOrderNotFoundError(work_order_id)
        return order

    def _notify(self, order: WorkOrder) -> None:
        for listener in list(self._listeners):
            try:
                listener(order)
            except Exception as e:
                logger.error(
                    "work_order_listener_failed",
                    work_order_id=order.id,
                    error=str(e),
                    error_type=type(e).__name__,
                )

    @staticmethod
    def _title(request: WorkOrderRequest) -> str:
        template = TITLE_TEMPLATES.get(request.anomaly_type, DEFAULT_TITLE)
        return template.format(machine=request.machine_name)

    @staticmethod
    def _description(request: WorkOrderRequest) -> str:
        actions = RECOMMENDED_ACTIONS.get(request.anomaly_type, DEFAULT_ACTIONS)
        numbered = "\n".join(f"{i}. {action}" for i, action in enumerate(actions, start=1))
        return (
            "AI-detected anomaly requires immediate attention.\n\n"
            "Detection Details:\n"
            f"- Metric: {request.metric}\n"
            f"- Current Value: {request.value:g}\n"
            f"- Threshold: {request.threshold:g}\n"
            f"- AI Confidence: {request.confidence * 100:.1f}%\n\n"
            "Recommended Actions:\n"
            f"{numbered}\n\n"
            "This work order was automatically created by the Autonomous "
            "Monitoring System based on real-time sensor data analysis."
        )
