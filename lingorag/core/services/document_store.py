"""Document store interface: explicit writes and retention cleanup."""

import asyncio
import logging
from typing import Any

from ...common.utils import clean_text, format_timestamp, is_blank, unique_tags, utc_now
from ..domain import OperationResult
from ..domain.exceptions import BackendUnavailableError
from ..ports.transport_port import TransportPort

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_DAYS = 30


class DocumentStoreService:
    """Stores documents in the backend and removes old ones.

    Storage is best-effort: failures come back as failed results, never as
    exceptions, so a storage problem cannot abort a calling generation flow.
    """

    def __init__(self, transport: TransportPort, default_language: str = "ar") -> None:
        """Initialize the store.

        Args:
            transport: Backend transport.
            default_language: Language recorded when the caller gives none.
        """
        self.transport = transport
        self.default_language = default_language

    def build_metadata(self, metadata: dict[str, Any] | None = None) -> dict[str, Any]:
        """Apply defaults for language, tags and creation time.

        Caller-supplied keys win, except that tags are de-duplicated.
        """
        metadata = dict(metadata or {})
        metadata["language"] = metadata.get("language") or self.default_language
        metadata["tags"] = unique_tags(metadata.get("tags"))
        metadata.setdefault("createdAt", format_timestamp(utc_now()))
        return {k: v for k, v in metadata.items() if v is not None}

    async def store(
        self,
        content: str,
        type: str,
        topic: str,
        metadata: dict[str, Any] | None = None,
    ) -> OperationResult[str]:
        """Store one document.

        Args:
            content: Document text (non-empty).
            type: Document type such as ``lesson`` or ``question``.
            topic: Topic label such as ``grammar``.
            metadata: Optional language, tags and free-form keys.

        Returns:
            OperationResult carrying the new document id.
        """
        if is_blank(content):
            return OperationResult.invalid("Document content cannot be empty")
        if is_blank(type) or is_blank(topic):
            return OperationResult.invalid("Document type and topic are required")

        payload = {
            "content": clean_text(content),
            "type": type.strip(),
            "topic": topic.strip(),
            "metadata": self.build_metadata(metadata),
        }

        try:
            response = await self.transport.store(payload)
        except BackendUnavailableError as e:
            logger.warning("Store failed, backend unavailable: %s", e.message)
            return OperationResult.unavailable()

        if not response.success:
            return OperationResult.fail(response.error or "Failed to store document")

        document_id = response.data.get("documentId")
        chunk_ids = response.data.get("documentIds")
        if not document_id and isinstance(chunk_ids, list) and chunk_ids:
            # Chunking backends return one id per chunk; the first names the document
            document_id = chunk_ids[0]
        if not document_id or not isinstance(document_id, str | int):
            return OperationResult.fail("Backend did not return a document id")

        logger.info("Stored %s/%s as %s", payload["type"], payload["topic"], document_id)
        return OperationResult.ok(str(document_id))

    async def store_ai_generated(
        self,
        content: str,
        type: str,
        topic: str,
        *,
        model_used: str | None = None,
        cost: float | None = None,
        tags: list[str] | None = None,
        language: str | None = None,
        difficulty: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> OperationResult[str]:
        """Store content produced by the inference service."""
        metadata: dict[str, Any] = dict(extra or {})
        metadata.update(
            {
                "language": language,
                "difficulty": difficulty,
                "tags": ["ai-generated", *(tags or [])],
                "aiGenerated": True,
                "source": "ai-generation",
                "modelUsed": model_used,
                "cost": cost,
            }
        )
        return await self.store(content, type, topic, metadata)

    async def batch_store(self, items: list[dict[str, Any]]) -> list[OperationResult[str]]:
        """Store several documents concurrently.

        Each item needs ``content``, ``type`` and ``topic`` and may carry
        ``metadata``. Results are returned in input order; one failing item
        does not affect the others.
        """
        return list(
            await asyncio.gather(
                *(
                    self.store(
                        item.get("content", ""),
                        item.get("type", ""),
                        item.get("topic", ""),
                        item.get("metadata"),
                    )
                    for item in items
                )
            )
        )

    async def cleanup(self, max_age_days: int = DEFAULT_CLEANUP_DAYS) -> OperationResult[int]:
        """Delete documents older than ``max_age_days``.

        Irreversible. Callers must obtain confirmation before calling this.

        Returns:
            OperationResult carrying the number of deleted documents.
        """
        if isinstance(max_age_days, bool) or not isinstance(max_age_days, int) or max_age_days <= 0:
            return OperationResult.invalid("max_age_days must be a positive integer")

        try:
            response = await self.transport.cleanup(max_age_days)
        except BackendUnavailableError as e:
            logger.warning("Cleanup failed, backend unavailable: %s", e.message)
            return OperationResult.unavailable()

        if not response.success:
            return OperationResult.fail(response.error or "Failed to cleanup documents")

        deleted = response.data.get("deletedCount", 0)
        if deleted is None:
            deleted = 0
        if isinstance(deleted, bool) or not isinstance(deleted, int) or deleted < 0:
            logger.warning("Unusable deletedCount from backend: %r", deleted)
            return OperationResult.fail("Malformed cleanup response from backend")
        logger.info("Cleanup removed %d documents older than %d days", deleted, max_age_days)
        return OperationResult.ok(deleted)

    async def list_documents(self) -> OperationResult[list[dict[str, Any]]]:
        """List stored documents (debugging aid; contents are truncated)."""
        try:
            response = await self.transport.list_documents()
        except BackendUnavailableError:
            return OperationResult.unavailable()
        if not response.success:
            return OperationResult.fail(response.error or "Failed to list documents")
        documents = response.data.get("documents") or []
        if not isinstance(documents, list):
            return OperationResult.fail("Malformed document list from backend")
        return OperationResult.ok(documents)
