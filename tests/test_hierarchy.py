"""Tests for the equipment tree and the static hierarchy provider."""

import pytest

from plant_autonomy.adapters.hierarchy import StaticHierarchyProvider
from plant_autonomy.interfaces.hierarchy_provider import NodeNotFoundError
from plant_autonomy.models.equipment import (
    EquipmentNode,
    MonitoredMetric,
    NodeProperty,
    walk_hierarchy,
)


class TestWalkHierarchy:
    def test_depth_first_parent_before_children(self):
        provider = StaticHierarchyProvider()

        visits = [(v.node.id, v.location) for v in walk_hierarchy(provider.root)]

        assert [node_id for node_id, _ in visits] == [
            "site-1",
            "line-1",
            "filler-1",
            "temp-sensor-1",
            "filler-2",
            "line-2",
            "assembly-1",
            "line-3",
        ]
        assert visits[3][1] == (
            "Contoso Factory - Netherlands > Line 1 - Coffee Makers "
            "> Filler-1 > Temperature Sensor"
        )

    def test_single_node(self):
        node = EquipmentNode(id="m", name="Solo")

        assert [v.location for v in walk_hierarchy(node)] == ["Solo"]


class TestEquipmentNode:
    def test_metric_requires_numeric_value(self):
        node = EquipmentNode(
            id="m",
            name="M",
            properties=[
                NodeProperty(key="temperature", value="n/a"),
                NodeProperty(key="speed", value=120),
            ],
        )

        assert node.metric(MonitoredMetric.TEMPERATURE) is None
        assert node.metric(MonitoredMetric.SPEED).value == 120

    def test_stopped_status(self):
        node = EquipmentNode(id="m", name="M", properties=[NodeProperty(key="status", value="stopped")])

        assert node.is_stopped


class TestStaticHierarchyProvider:
    async def test_returns_subtree(self):
        provider = StaticHierarchyProvider()

        line = await provider.get_hierarchy("line-1")

        assert line.name == "Line 1 - Coffee Makers"
        assert [c.id for c in line.children] == ["filler-1", "filler-2"]

    async def test_unknown_node(self):
        with pytest.raises(NodeNotFoundError, match="Node nope not found"):
            await StaticHierarchyProvider().get_hierarchy("nope")

    async def test_set_property_replaces_value_keeps_unit(self):
        provider = StaticHierarchyProvider()

        provider.set_property("filler-1", "temperature", 93.5)
        node = await provider.get_hierarchy("filler-1")

        temperature = node.metric(MonitoredMetric.TEMPERATURE)
        assert temperature.value == 93.5
        assert temperature.unit == "°C"

    async def test_set_property_adds_new_key(self):
        provider = StaticHierarchyProvider()

        provider.set_property("assembly-1", "temperature", 40.0, unit="°C")
        node = await provider.get_hierarchy("assembly-1")

        assert node.metric(MonitoredMetric.TEMPERATURE).value == 40.0

    def test_set_property_unknown_node(self):
        with pytest.raises(NodeNotFoundError):
            StaticHierarchyProvider().set_property("nope", "temperature", 1.0)

    async def test_fetch_is_a_snapshot(self):
        provider = StaticHierarchyProvider()
        before = await provider.get_hierarchy("filler-2")

        provider.set_property("filler-2", "temperature", 120.0)

        assert before.metric(MonitoredMetric.TEMPERATURE).value == 87.4

    def test_from_config(self):
        provider = StaticHierarchyProvider.from_config(
            {"id": "plant-7", "name": "Plant 7", "type": "site"}
        )

        assert provider.root.id == "plant-7"
        assert StaticHierarchyProvider.from_config(None).root.id == "site-1"
