"""Application facade over the content cache services."""

from __future__ import annotations

import logging
from typing import Any

from ..core.domain import (
    AnalyticsSnapshot,
    AnswerResult,
    CostEstimate,
    GenerationRequest,
    GenerationResponse,
    LessonContext,
    OperationResult,
    ReuseSuggestion,
    SearchFilters,
    SearchResult,
)
from ..core.domain.exceptions import BackendUnavailableError
from ..core.ports.transport_port import TransportPort
from ..core.services.analytics_service import AnalyticsService
from ..core.services.document_store import DocumentStoreService
from ..core.services.generation_service import GenerationService
from ..core.services.persistence_queue import PersistenceQueue
from ..core.services.retry_policy import RetryOutcome
from ..core.services.search_service import SearchService

logger = logging.getLogger(__name__)


class RagClient:
    """Single entry point handed to every consumer.

    Constructed once with its transport and services and passed by
    reference. Readiness lives on the transport and is refreshed only by
    ``initialize()``.
    """

    def __init__(
        self,
        transport: TransportPort,
        documents: DocumentStoreService,
        search_service: SearchService,
        generation: GenerationService,
        analytics: AnalyticsService,
        persistence: PersistenceQueue,
    ) -> None:
        self.transport = transport
        self.documents = documents
        self.search_service = search_service
        self.generation = generation
        self.analytics = analytics
        self.persistence = persistence

    async def __aenter__(self) -> RagClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def initialize(self) -> OperationResult[bool]:
        """Check the backend and refresh readiness."""
        try:
            ready = await self.transport.initialize()
        except BackendUnavailableError as e:
            logger.error("RAG backend unreachable: %s", e.message)
            return OperationResult.unavailable()
        return OperationResult.ok(ready)

    def is_ready(self) -> bool:
        return self.transport.is_ready()

    async def store(
        self,
        content: str,
        type: str,
        topic: str,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[str]:
        return await self.documents.store(content, type, topic, metadata)

    async def store_ai_generated(
        self, content: str, type: str, topic: str, **kwargs: Any
    ) -> OperationResult[str]:
        return await self.documents.store_ai_generated(content, type, topic, **kwargs)

    async def batch_store(self, items: list[dict[str, Any]]) -> list[OperationResult[str]]:
        return await self.documents.batch_store(items)

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        **kwargs: Any,
    ) -> OperationResult[list[SearchResult]]:
        return await self.search_service.search(query, filters, **kwargs)

    async def suggest_reuse(
        self, query: str, type: str | None = None, max_suggestions: int = 3
    ) -> OperationResult[ReuseSuggestion]:
        return await self.search_service.suggest_reuse(query, type, max_suggestions)

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        return await self.generation.generate(request)

    async def answer(self, question: str, context: LessonContext | None = None) -> AnswerResult:
        return await self.generation.answer(question, context)

    async def search_and_generate(
        self,
        prompt: str,
        search_query: str,
        filters: SearchFilters | None = None,
        **kwargs: Any,
    ) -> GenerationResponse:
        return await self.generation.search_and_generate(prompt, search_query, filters, **kwargs)

    async def generate_with_retries(
        self, request: GenerationRequest, **kwargs: Any
    ) -> RetryOutcome[GenerationResponse]:
        return await self.generation.generate_with_retries(request, **kwargs)

    async def get_analytics(self) -> OperationResult[AnalyticsSnapshot]:
        return await self.analytics.get_analytics()

    def estimate_costs(self, operations: list[dict[str, Any]]) -> CostEstimate:
        return self.analytics.estimate_costs(operations)

    async def cleanup(self, max_age_days: int = 30) -> OperationResult[int]:
        """Delete old documents. Irreversible: confirm with the user first."""
        return await self.documents.cleanup(max_age_days)

    async def list_documents(self) -> OperationResult[list[dict[str, Any]]]:
        return await self.documents.list_documents()

    async def drain(self) -> None:
        """Wait for background persistence to settle."""
        await self.persistence.drain()

    async def aclose(self) -> None:
        """Let pending writes finish, then close the transport."""
        await self.persistence.drain()
        await self.transport.aclose()
