"""
Abstract base class for work-order collaborators.

The response cascade asks a work-order client to open a corrective work
order for each qualifying anomaly. Implementations may be synchronous or
return an awaitable; the cascade handles both.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Union

from plant_autonomy.models.work_orders import WorkOrder, WorkOrderRequest


class WorkOrderClient(ABC):
    """Creates work orders on behalf of the autonomous engine."""

    @abstractmethod
    def create_autonomous_work_order(
        self,
        request: WorkOrderRequest,
    ) -> Union[WorkOrder, Awaitable[WorkOrder]]:
        """
        Create a work order from anomaly context.

        Args:
            request: Machine, metric, value, threshold, confidence and severity
                of the detected anomaly.

        Returns:
            The created WorkOrder, or an awaitable resolving to it.
        """
        pass
