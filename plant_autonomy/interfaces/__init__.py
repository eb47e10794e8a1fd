"""
Abstract interfaces for the autonomous monitoring engine.

The engine consumes two external collaborators and one time source:

    hierarchy_provider: HierarchyProvider ABC for the equipment tree
    work_order_client: WorkOrderClient ABC for corrective work orders
    clock: Clock ABC and TimerHandle for delayed callbacks

Example:
    >>> from plant_autonomy.interfaces import HierarchyProvider
    >>> class TwinProvider(HierarchyProvider):
    ...     async def get_hierarchy(self, node_id: str) -> EquipmentNode:
    ...         ...
"""

from plant_autonomy.interfaces.clock import Clock, TimerCallback, TimerHandle
from plant_autonomy.interfaces.hierarchy_provider import (
    HierarchyProvider,
    NodeNotFoundError,
)
from plant_autonomy.interfaces.work_order_client import WorkOrderClient

__all__: list[str] = [
    "Clock",
    "TimerCallback",
    "TimerHandle",
    "HierarchyProvider",
    "NodeNotFoundError",
    "WorkOrderClient",
]
