"""
In-memory equipment hierarchy provider.

StaticHierarchyProvider serves a fixed equipment tree, either the built-in
Contoso demo site or one loaded from ``config/hierarchy.yaml``. Readings can
be changed at runtime with ``set_property()`` so demos and tests can push a
machine out of bounds.

Example:
    >>> provider = StaticHierarchyProvider()
    >>> provider.set_property("filler-1", "temperature", 93.0, unit="°C")
    >>> site = await provider.get_hierarchy("site-1")
"""

from typing import Any, Dict, Optional

import structlog

from plant_autonomy.interfaces.hierarchy_provider import (
    HierarchyProvider,
    NodeNotFoundError,
)
from plant_autonomy.models.equipment import EquipmentNode, NodeProperty, PropertyValue

logger = structlog.get_logger(__name__)


DEFAULT_HIERARCHY: Dict[str, Any] = {
    "id": "site-1",
    "name": "Contoso Factory - Netherlands",
    "type": "site",
    "properties": [
        {"key": "location", "value": "Amsterdam"},
        {"key": "totalLines", "value": 4},
    ],
    "children": [
        {
            "id": "line-1",
            "name": "Line 1 - Coffee Makers",
            "type": "line",
            "properties": [
                {"key": "status", "value": "running"},
                {"key": "oee", "value": 85.3, "unit": "%"},
            ],
            "children": [
                {
                    "id": "filler-1",
                    "name": "Filler-1",
                    "type": "machine",
                    "properties": [
                        {"key": "status", "value": "running"},
                        {"key": "speed", "value": 120, "unit": "units/min"},
                        {"key": "temperature", "value": 68.2, "unit": "°C"},
                    ],
                    "children": [
                        {
                            "id": "temp-sensor-1",
                            "name": "Temperature Sensor",
                            "type": "sensor",
                            "properties": [
                                {"key": "value", "value": 68.2, "unit": "°C"},
                                {"key": "status", "value": "normal"},
                            ],
                        },
                    ],
                },
                {
                    "id": "filler-2",
                    "name": "Filler-2",
                    "type": "machine",
                    "properties": [
                        {"key": "status", "value": "warning"},
                        {"key": "speed", "value": 115, "unit": "units/min"},
                        {"key": "temperature", "value": 87.4, "unit": "°C"},
                    ],
                },
            ],
        },
        {
            "id": "line-2",
            "name": "Line 2 - Blenders",
            "type": "line",
            "properties": [
                {"key": "status", "value": "running"},
                {"key": "oee", "value": 78.2, "unit": "%"},
            ],
            "children": [
                {
                    "id": "assembly-1",
                    "name": "Assembly-1",
                    "type": "machine",
                    "properties": [
                        {"key": "status", "value": "running"},
                        {"key": "speed", "value": 90, "unit": "units/min"},
                    ],
                },
            ],
        },
        {
            "id": "line-3",
            "name": "Line 3 - Juicers",
            "type": "line",
            "properties": [
                {"key": "status", "value": "stopped"},
                {"key": "oee", "value": 0, "unit": "%"},
                {"key": "lastStop", "value": "10 minutes ago"},
            ],
        },
    ],
}


class StaticHierarchyProvider(HierarchyProvider):
    """
    HierarchyProvider backed by an in-memory tree.

    Attributes:
        root: The full equipment tree.
        fetches: Number of get_hierarchy() calls served.
    """

    def __init__(self, root: Optional[EquipmentNode] = None) -> None:
        self.root = root or EquipmentNode.model_validate(DEFAULT_HIERARCHY)
        self.fetches = 0

        logger.debug("static_hierarchy_provider_initialized", root_id=self.root.id)

    @classmethod
    def from_config(cls, hierarchy: Optional[Dict[str, Any]]) -> "StaticHierarchyProvider":
        """
        Build a provider from the ``hierarchy`` section of the config.

        Args:
            hierarchy: Raw tree mapping, or None for the built-in demo site.

        Raises:
            pydantic.ValidationError: If the mapping is not a valid tree.
        """
        if hierarchy is None:
            return cls()
        return cls(EquipmentNode.model_validate(hierarchy))

    async def get_hierarchy(self, node_id: str) -> EquipmentNode:
        node = self.root.find(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        self.fetches += 1
        # Callers get a snapshot; later set_property() calls do not leak in.
        return node.model_copy(deep=True)

    def set_property(
        self,
        node_id: str,
        key: str,
        value: PropertyValue,
        unit: Optional[str] = None,
    ) -> None:
        """
        Set or replace a property on a node.

        Args:
            node_id: Target node.
            key: Property key (e.g., "temperature").
            value: New value.
            unit: Unit; when omitted an existing property keeps its unit.

        Raises:
            NodeNotFoundError: If the node does not exist.
        """
        node = self.root.find(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)

        for index, prop in enumerate(node.properties):
            if prop.key == key:
                node.properties[index] = NodeProperty(
                    key=key,
                    value=value,
                    unit=unit if unit is not None else prop.unit,
                )
                break
        else:
            node.properties.append(NodeProperty(key=key, value=value, unit=unit))

        logger.info("node_property_set", node_id=node_id, key=key, value=value)
