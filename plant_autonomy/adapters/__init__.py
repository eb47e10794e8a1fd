"""
Concrete collaborators for the autonomous engine.

Adapters:
    clock: LoopClock (asyncio) and VirtualClock (tests)
    hierarchy: StaticHierarchyProvider, in-memory equipment tree
    work_orders: WorkOrderService, in-memory work-order store
"""

from plant_autonomy.adapters.clock import LoopClock, LoopTimerHandle, VirtualClock
from plant_autonomy.adapters.hierarchy import DEFAULT_HIERARCHY, StaticHierarchyProvider
from plant_autonomy.adapters.work_orders import (
    PRIORITY_BY_SEVERITY,
    WorkOrderNotFoundError,
    WorkOrderService,
    estimate_cost,
    estimate_duration,
    suggest_parts,
)

__all__: list[str] = [
    "LoopClock",
    "LoopTimerHandle",
    "VirtualClock",
    "DEFAULT_HIERARCHY",
    "StaticHierarchyProvider",
    "PRIORITY_BY_SEVERITY",
    "WorkOrderNotFoundError",
    "WorkOrderService",
    "estimate_cost",
    "estimate_duration",
    "suggest_parts",
]
