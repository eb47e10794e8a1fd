"""
Equipment hierarchy models.

This module defines the strict schema for the equipment tree served by the
hierarchy provider (site -> line -> machine -> sensor) and a typed walk over
it used by the monitoring scheduler.

Models:
    NodeType: Level of a node in the plant hierarchy
    MonitoredMetric: Metrics the engine evaluates
    NodeProperty: A single key/value reading on a node
    EquipmentNode: A node with properties and children
    NodeVisit: A node paired with its hierarchical location
"""

from enum import Enum
from typing import Iterator, List, NamedTuple, Optional, Union

from pydantic import BaseModel, Field

LOCATION_SEPARATOR = " > "

PropertyValue = Union[bool, int, float, str]


class NodeType(str, Enum):
    """Level of a node in the plant hierarchy."""

    SITE = "site"
    LINE = "line"
    MACHINE = "machine"
    SENSOR = "sensor"


class MonitoredMetric(str, Enum):
    """
    Metrics evaluated by the engine.

    The value doubles as the property key looked up on equipment nodes.
    """

    TEMPERATURE = "temperature"
    SPEED = "speed"
    OEE = "oee"

    @property
    def label(self) -> str:
        """Display name used in event details and work orders."""
        if self == MonitoredMetric.OEE:
            return "OEE"
        return self.value.capitalize()

    @property
    def default_unit(self) -> str:
        """Unit assumed when the property carries none."""
        return {
            MonitoredMetric.TEMPERATURE: "°C",
            MonitoredMetric.SPEED: "RPM",
            MonitoredMetric.OEE: "%",
        }[self]


STATUS_KEY = "status"
STATUS_STOPPED = "stopped"


class NodeProperty(BaseModel):
    """
    A single reading or attribute on a node.

    Attributes:
        key: Property name (e.g., "temperature", "status").
        value: Raw value; only int/float values are treated as metrics.
        unit: Optional unit string.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    key: str = Field(..., min_length=1)
    value: PropertyValue
    unit: Optional[str] = None

    @property
    def is_numeric(self) -> bool:
        """True for int/float values (booleans excluded)."""
        return isinstance(self.value, (int, float)) and not isinstance(self.value, bool)


class EquipmentNode(BaseModel):
    """
    A node of the equipment hierarchy.

    Attributes:
        id: Unique node identifier.
        name: Human-readable name.
        type: Hierarchy level.
        properties: Readings and attributes.
        children: Child nodes.

    Example:
        >>> node = EquipmentNode(
        ...     id="filler-2",
        ...     name="Filler-2",
        ...     type=NodeType.MACHINE,
        ...     properties=[NodeProperty(key="temperature", value=87.4, unit="°C")],
        ... )
        >>> node.metric(MonitoredMetric.TEMPERATURE).value
        87.4
    """

    model_config = {"extra": "forbid"}

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: NodeType = NodeType.MACHINE
    properties: List[NodeProperty] = Field(default_factory=list)
    children: List["EquipmentNode"] = Field(default_factory=list)

    def get_property(self, key: str) -> Optional[NodeProperty]:
        """Return the first property with the given key, if any."""
        for prop in self.properties:
            if prop.key == key:
                return prop
        return None

    def metric(self, metric: MonitoredMetric) -> Optional[NodeProperty]:
        """Return the property for a monitored metric if it is numeric."""
        prop = self.get_property(metric.value)
        if prop is None or not prop.is_numeric:
            return None
        return prop

    @property
    def status(self) -> Optional[str]:
        """The node's status property as a string, if present."""
        prop = self.get_property(STATUS_KEY)
        if prop is None:
            return None
        return str(prop.value)

    @property
    def is_stopped(self) -> bool:
        """True when the node reports status 'stopped'."""
        return self.status == STATUS_STOPPED

    def find(self, node_id: str) -> Optional["EquipmentNode"]:
        """Depth-first search for a node by id in this subtree."""
        if self.id == node_id:
            return self
        for child in self.children:
            found = child.find(node_id)
            if found is not None:
                return found
        return None


EquipmentNode.model_rebuild()


class NodeVisit(NamedTuple):
    """A node together with its location path."""

    node: EquipmentNode
    location: str


def walk_hierarchy(root: EquipmentNode) -> Iterator[NodeVisit]:
    """
    Visit every node depth-first, parent before children.

    The location of the root is its own name; each child's location is its
    parent's location joined with the child's name.

    Example:
        >>> [v.location for v in walk_hierarchy(site)]
        ['Factory', 'Factory > Line 1', 'Factory > Line 1 > Filler-1']
    """
    stack: List[NodeVisit] = [NodeVisit(root, root.name)]
    while stack:
        visit = stack.pop()
        yield visit
        for child in reversed(visit.node.children):
            stack.append(
                NodeVisit(child, f"{visit.location}{LOCATION_SEPARATOR}{child.name}")
            )
