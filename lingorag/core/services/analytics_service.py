"""Analytics aggregator: usage and cost totals from the backend."""

import logging
from typing import Any

from ..domain import AnalyticsSnapshot, CostEstimate, OperationResult
from ..domain.exceptions import BackendUnavailableError
from ..ports.transport_port import TransportPort
from .cost_estimator import estimate_costs

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Requests the backend's analytics snapshot.

    The snapshot is mapped into local types as-is; derived figures such as
    average cost and reuse rate live on ``AnalyticsSnapshot``.
    """

    def __init__(self, transport: TransportPort) -> None:
        self.transport = transport

    async def get_analytics(self) -> OperationResult[AnalyticsSnapshot]:
        try:
            response = await self.transport.get_analytics()
        except BackendUnavailableError as e:
            logger.warning("Analytics unavailable: %s", e.message)
            return OperationResult.unavailable()

        if not response.success:
            return OperationResult.fail(response.error or "Failed to get analytics")

        raw = response.data.get("analytics")
        if not isinstance(raw, dict):
            return OperationResult.fail("Backend returned no analytics")

        try:
            snapshot = AnalyticsSnapshot.from_dict(raw)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Unparseable analytics: %s", e)
            return OperationResult.fail("Malformed analytics from backend")

        return OperationResult.ok(snapshot)

    @staticmethod
    def estimate_costs(operations: list[dict[str, Any]]) -> CostEstimate:
        """Estimate what a batch of planned operations would cost."""
        return estimate_costs(operations)
