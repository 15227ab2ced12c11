"""Composition root wiring adapters to the application facade."""

from __future__ import annotations

import logging
from functools import lru_cache

import httpx

from ..adapters.outbound.http_transport import HttpTransportClient
from ..application.rag_client import RagClient
from ..config import Settings, settings
from ..core.domain.exceptions import MissingBackendURLError
from ..core.services.analytics_service import AnalyticsService
from ..core.services.document_store import DocumentStoreService
from ..core.services.generation_service import GenerationService
from ..core.services.persistence_queue import PersistenceQueue
from ..core.services.search_service import SearchService

logger = logging.getLogger(__name__)


def build_rag_client(
    config: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RagClient:
    """Build a fully wired RagClient.

    Args:
        config: Settings to use; defaults to the global settings.
        transport: Optional httpx transport (tests pass a MockTransport).

    Raises:
        MissingBackendURLError: No backend URL is configured.
    """
    config = config or settings
    if not config.rag_backend_url:
        raise MissingBackendURLError("RAG_BACKEND_URL is not set")

    http = HttpTransportClient(
        base_url=config.rag_backend_url,
        api_key=config.rag_api_key or None,
        timeout=config.request_timeout,
        transport=transport,
    )
    documents = DocumentStoreService(http, default_language=config.default_language)
    persistence = PersistenceQueue(
        lambda job: documents.store(job.content, job.type, job.topic, job.metadata)
    )
    search_service = SearchService(
        http,
        similarity_threshold=config.similarity_threshold,
        max_results=config.search_max_results,
    )
    generation = GenerationService(
        http,
        search_service,
        persistence,
        default_model=config.llm_model,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
        max_context_length=config.max_context_length,
        fallback_cost=config.fallback_generation_cost,
        default_language=config.default_language,
        retry_max_attempts=config.retry_max_attempts,
        retry_delay_seconds=config.retry_delay_seconds,
    )
    return RagClient(
        transport=http,
        documents=documents,
        search_service=search_service,
        generation=generation,
        analytics=AnalyticsService(http),
        persistence=persistence,
    )


@lru_cache
def get_rag_client() -> RagClient:
    """Shared RagClient for the inbound adapters."""
    logger.info("Initializing RagClient for %s", settings.rag_backend_url)
    return build_rag_client(settings)
