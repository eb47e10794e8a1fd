"""Shared fixtures for the plant-autonomy test suite."""

import asyncio
from datetime import timedelta
from typing import Any, Callable, List, Optional

import pytest

from plant_autonomy.adapters.clock import VirtualClock
from plant_autonomy.adapters.hierarchy import StaticHierarchyProvider
from plant_autonomy.adapters.work_orders import WorkOrderService
from plant_autonomy.config.models import MonitoringConfig
from plant_autonomy.detection.engine import AutonomousEngine
from plant_autonomy.interfaces.hierarchy_provider import HierarchyProvider
from plant_autonomy.interfaces.work_order_client import WorkOrderClient
from plant_autonomy.models.equipment import EquipmentNode, NodeProperty, NodeType
from plant_autonomy.models.events import AnomalyEvent, EventSeverity, EventType
from plant_autonomy.models.work_orders import (
    WorkOrder,
    WorkOrderPriority,
    WorkOrderRequest,
)


# =============================================================================
# COLLABORATOR DOUBLES
# =============================================================================


class FlakyHierarchyProvider(HierarchyProvider):
    """
    Serves a fixed tree, or raises ``error`` while it is set.

    ``gate``, when set, suspends every fetch until the event is set.
    ``on_fetch`` runs while the fetch is in flight.
    """

    def __init__(self, root: EquipmentNode) -> None:
        self.root = root
        self.error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self.on_fetch: Optional[Callable[[], Any]] = None
        self.calls = 0

    async def get_hierarchy(self, node_id: str) -> EquipmentNode:
        self.calls += 1
        if self.on_fetch is not None:
            self.on_fetch()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.root


class FailingWorkOrderClient(WorkOrderClient):
    """Always fails to create a work order."""

    def __init__(self, message: str = "CMMS unavailable") -> None:
        self.message = message
        self.requests: List[WorkOrderRequest] = []

    def create_autonomous_work_order(self, request: WorkOrderRequest) -> WorkOrder:
        self.requests.append(request)
        raise RuntimeError(self.message)


class AsyncWorkOrderClient(WorkOrderClient):
    """Coroutine-based client; runs ``on_call`` before returning."""

    def __init__(self, on_call: Optional[Callable[[], Any]] = None) -> None:
        self.on_call = on_call
        self.requests: List[WorkOrderRequest] = []

    async def create_autonomous_work_order(self, request: WorkOrderRequest) -> WorkOrder:
        self.requests.append(request)
        if self.on_call is not None:
            self.on_call()
        return WorkOrder(
            id=f"WO-ASYNC-{len(self.requests)}",
            priority=WorkOrderPriority.HIGH,
            estimated_duration=45,
        )


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def work_orders(clock: VirtualClock) -> WorkOrderService:
    return WorkOrderService(clock=clock)


@pytest.fixture
def make_machine() -> Callable[..., EquipmentNode]:
    """Factory for machine nodes with numeric readings."""

    def _make(
        node_id: str = "filler-9",
        name: str = "Filler-9",
        status: str = "running",
        **readings: float,
    ) -> EquipmentNode:
        properties = [NodeProperty(key="status", value=status)]
        properties.extend(
            NodeProperty(key=key, value=value) for key, value in readings.items()
        )
        return EquipmentNode(id=node_id, name=name, type=NodeType.MACHINE, properties=properties)

    return _make


@pytest.fixture
def make_site() -> Callable[..., EquipmentNode]:
    """Factory for a site with one line holding the given machines."""

    def _make(*machines: EquipmentNode) -> EquipmentNode:
        line = EquipmentNode(
            id="line-a",
            name="Line A",
            type=NodeType.LINE,
            children=list(machines),
        )
        return EquipmentNode(id="site-1", name="Plant", type=NodeType.SITE, children=[line])

    return _make


@pytest.fixture
def make_engine(
    clock: VirtualClock,
    work_orders: WorkOrderService,
) -> Callable[..., AutonomousEngine]:
    """Factory for engines on the virtual clock."""

    def _make(
        provider: Optional[HierarchyProvider] = None,
        client: Optional[WorkOrderClient] = None,
        **config: Any,
    ) -> AutonomousEngine:
        return AutonomousEngine(
            provider=provider or StaticHierarchyProvider(),
            work_orders=client or work_orders,
            clock=clock,
            config=MonitoringConfig(**config),
        )

    return _make


@pytest.fixture
def make_event(clock: VirtualClock) -> Callable[..., AnomalyEvent]:
    """Factory for standalone events with sequential ids."""

    def _make(index: int = 0, cascade_id: str = "cascade-1") -> AnomalyEvent:
        return AnomalyEvent(
            id=f"evt-{index}",
            cascade_id=cascade_id,
            timestamp=clock.now() + timedelta(seconds=index),
            type=EventType.ALERT,
            severity=EventSeverity.INFO,
            equipment="Autonomous System",
            location="site-1",
            message=f"event {index}",
        )

    return _make
