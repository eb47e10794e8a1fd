"""
Shared Pydantic data models for the autonomous monitoring engine.

Modules:
    equipment: Equipment hierarchy nodes and the typed tree walk
    events: Published events and anomaly verdicts
    work_orders: Work order requests and records

Example:
    >>> from plant_autonomy.models import AnomalyEvent, EventType, EquipmentNode
"""

# Equipment models
from plant_autonomy.models.equipment import (
    LOCATION_SEPARATOR,
    EquipmentNode,
    MonitoredMetric,
    NodeProperty,
    NodeType,
    NodeVisit,
    walk_hierarchy,
)

# Event models
from plant_autonomy.models.events import (
    AnomalyDirection,
    AnomalyEvent,
    AnomalyVerdict,
    EventDetails,
    EventSeverity,
    EventType,
)

# Work order models
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

__all__: list[str] = [
    # Equipment
    "LOCATION_SEPARATOR",
    "EquipmentNode",
    "MonitoredMetric",
    "NodeProperty",
    "NodeType",
    "NodeVisit",
    "walk_hierarchy",
    # Events
    "AnomalyDirection",
    "AnomalyEvent",
    "AnomalyVerdict",
    "EventDetails",
    "EventSeverity",
    "EventType",
    # Work orders
    "RequestSeverity",
    "WorkOrder",
    "WorkOrderCreator",
    "WorkOrderPart",
    "WorkOrderPriority",
    "WorkOrderRequest",
    "WorkOrderStatus",
    "WorkOrderType",
]
