"""
Abstract base class for equipment hierarchy providers.

The monitoring scheduler fetches the equipment tree from a provider on every
tick. Providers are typically backed by a digital-twin service; an in-memory
implementation lives in ``plant_autonomy.adapters.hierarchy``.

Example:
    >>> class TwinServiceProvider(HierarchyProvider):
    ...     async def get_hierarchy(self, node_id: str) -> EquipmentNode:
    ...         payload = await self._http.get(f"/twins/{node_id}/hierarchy")
    ...         return EquipmentNode.model_validate(payload)
"""

from abc import ABC, abstractmethod

from plant_autonomy.models.equipment import EquipmentNode


class NodeNotFoundError(LookupError):
    """Raised when a requested hierarchy node does not exist."""

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"Node {node_id} not found")


class HierarchyProvider(ABC):
    """
    Source of the equipment hierarchy.

    Implementations may raise on transient failures; the scheduler logs the
    error and skips the tick.
    """

    @abstractmethod
    async def get_hierarchy(self, node_id: str) -> EquipmentNode:
        """
        Fetch a node together with its full subtree.

        Args:
            node_id: Identifier of the root node to fetch (e.g., "site-1").

        Returns:
            EquipmentNode: The node and all of its descendants.

        Raises:
            NodeNotFoundError: If the node does not exist.
            Exception: Any transport error from the backing service.
        """
        pass
