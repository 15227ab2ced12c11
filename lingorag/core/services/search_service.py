"""Search orchestrator over the backend's similarity search."""

import logging

from ...common.inflight import InFlightRegistry
from ...common.utils import clean_text, is_blank, request_fingerprint
from ..domain import (
    OperationResult,
    ReuseSuggestion,
    SearchFilters,
    SearchResult,
    rank_results,
)
from ..domain.exceptions import BackendUnavailableError
from ..ports.transport_port import TransportPort

logger = logging.getLogger(__name__)

# Assumed saving for each stored document reused instead of regenerated (USD)
REUSE_SAVING_PER_DOCUMENT = 0.01


class SearchService:
    """Finds previously stored content relevant to a query.

    The similarity threshold and result count default to one configured
    value each; call sites that need different values pass them explicitly.
    """

    def __init__(
        self,
        transport: TransportPort,
        similarity_threshold: float = 0.7,
        max_results: int = 5,
    ) -> None:
        """Initialize the search service.

        Args:
            transport: Backend transport.
            similarity_threshold: Default minimum similarity.
            max_results: Default result cap.
        """
        self.transport = transport
        self.similarity_threshold = similarity_threshold
        self.max_results = max_results
        self._inflight = InFlightRegistry()

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        *,
        max_results: int | None = None,
        similarity_threshold: float | None = None,
        use_reranking: bool = False,
    ) -> OperationResult[list[SearchResult]]:
        """Search stored documents.

        Args:
            query: Search text (non-empty).
            filters: Optional exact-match filters.
            max_results: Result cap, defaults to the configured value.
            similarity_threshold: Minimum similarity, defaults to the configured value.
            use_reranking: Ask the backend for a reranking pass.

        Returns:
            OperationResult with results ordered by relevance. An empty list
            means no relevant prior content. Unreachable backend gives a
            DEGRADED result.
        """
        if is_blank(query):
            return OperationResult.invalid("Search query cannot be empty")

        limit = self.max_results if max_results is None else max_results
        if limit <= 0:
            return OperationResult.invalid("max_results must be greater than 0")

        threshold = (
            self.similarity_threshold if similarity_threshold is None else similarity_threshold
        )
        payload = {
            "query": clean_text(query).strip(),
            **(filters.to_dict() if filters else {}),
            "maxResults": limit,
            "similarityThreshold": threshold,
            "useReranking": use_reranking,
        }

        key = request_fingerprint("search", payload)
        return await self._inflight.run(key, lambda: self._search(payload, limit))

    async def _search(self, payload: dict, limit: int) -> OperationResult[list[SearchResult]]:
        try:
            response = await self.transport.search(payload)
        except BackendUnavailableError as e:
            logger.warning("Search degraded, backend unavailable: %s", e.message)
            return OperationResult.unavailable()

        if not response.success:
            logger.warning("Search failed: %s", response.error)
            return OperationResult.fail(response.error or "Failed to search documents")

        try:
            results = [SearchResult.from_dict(item) for item in response.data.get("results") or []]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Unparseable search results: %s", e)
            return OperationResult.fail("Malformed search results from backend")

        ranked = rank_results(results)[:limit]
        logger.debug("Search %r returned %d results", payload["query"], len(ranked))
        return OperationResult.ok(ranked)

    async def suggest_reuse(
        self,
        query: str,
        type: str | None = None,
        max_suggestions: int = 3,
    ) -> OperationResult[ReuseSuggestion]:
        """Offer stored content that can stand in for a new generation."""
        result = await self.search(
            query, SearchFilters(type=type), max_results=max_suggestions
        )
        if not result.success:
            return OperationResult(
                status=result.status, error=result.error, error_kind=result.error_kind
            )

        matches = result.data or []
        return OperationResult.ok(
            ReuseSuggestion(
                suggestions=[match.context for match in matches],
                cost_savings=len(matches) * REUSE_SAVING_PER_DOCUMENT,
                reused_document_ids=[match.document.id for match in matches],
            )
        )
