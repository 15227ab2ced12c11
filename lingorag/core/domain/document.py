"""Document and search result models for the content cache."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ...common.utils import format_timestamp, parse_timestamp, unique_tags, utc_now

# Keys of the wire metadata object that map onto DocumentMetadata fields
_METADATA_FIELDS = {
    "createdAt",
    "lastAccessed",
    "accessCount",
    "language",
    "tags",
    "difficulty",
    "timestamp",
}


class DocumentType:
    """Well-known document types. The backend accepts any non-empty string."""

    LESSON = "lesson"
    VOCABULARY = "vocabulary"
    GRAMMAR = "grammar"
    STORY = "story"
    CONVERSATION = "conversation"
    QUESTION = "question"
    TRANSLATION = "translation"
    EXPLANATION = "explanation"


@dataclass
class DocumentMetadata:
    """Bookkeeping attached to every stored document.

    Attributes:
        created_at: Creation time. Never changes after creation.
        last_accessed: Last search hit, never earlier than ``created_at``.
        access_count: Number of search hits that returned this document.
        language: ISO-like language code.
        tags: Ordered tags without duplicates.
        difficulty: Optional level (beginner, intermediate, advanced).
        extra: Any other keys the backend or caller attached.
    """

    created_at: datetime = field(default_factory=utc_now)
    last_accessed: datetime | None = None
    access_count: int = 0
    language: str = "ar"
    tags: list[str] = field(default_factory=list)
    difficulty: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.tags = unique_tags(self.tags)
        self.access_count = max(int(self.access_count or 0), 0)
        if self.last_accessed is None or self.last_accessed < self.created_at:
            self.last_accessed = self.created_at

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "DocumentMetadata":
        data = data or {}
        # Older backends report a single epoch-ms "timestamp"
        created_at = parse_timestamp(data.get("createdAt", data.get("timestamp")))
        return cls(
            created_at=created_at,
            last_accessed=parse_timestamp(data.get("lastAccessed"), default=created_at),
            access_count=data.get("accessCount", 0),
            language=data.get("language") or "ar",
            tags=data.get("tags") or [],
            difficulty=data.get("difficulty"),
            extra={k: v for k, v in data.items() if k not in _METADATA_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "createdAt": format_timestamp(self.created_at),
                "lastAccessed": format_timestamp(self.last_accessed or self.created_at),
                "accessCount": self.access_count,
                "language": self.language,
                "tags": list(self.tags),
            }
        )
        if self.difficulty:
            payload["difficulty"] = self.difficulty
        return payload


@dataclass
class Document:
    """A stored unit of content with retrieval metadata.

    The embedding is produced and consumed by the backend only; it is kept
    here so a round-tripped document is not silently stripped.
    """

    id: str
    content: str
    type: str
    topic: str
    embedding: list[float] = field(default_factory=list)
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        raw_metadata = data.get("metadata") or {}
        return cls(
            id=str(data.get("id", "")),
            content=data.get("content", ""),
            # Older backends nest type/topic inside metadata
            type=data.get("type") or raw_metadata.get("type", ""),
            topic=data.get("topic") or raw_metadata.get("topic", ""),
            embedding=list(data.get("embedding") or []),
            metadata=DocumentMetadata.from_dict(
                {k: v for k, v in raw_metadata.items() if k not in ("type", "topic")}
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "type": self.type,
            "topic": self.topic,
            "embedding": list(self.embedding),
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class SearchResult:
    """A matched document with its scores.

    Attributes:
        document: The matched Document.
        similarity: Raw semantic-match score (0.0 to 1.0).
        relevance: Final ordering score; equals similarity without reranking.
        context: The matched chunk, not necessarily the whole document.
        chunk_index: Index of the matched chunk within the document.
    """

    document: Document
    similarity: float
    relevance: float
    context: str
    chunk_index: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchResult":
        document = Document.from_dict(data.get("document") or {})
        similarity = float(data.get("similarity", 0.0))
        relevance = data.get("relevance")
        return cls(
            document=document,
            similarity=similarity,
            relevance=similarity if relevance is None else float(relevance),
            context=data.get("context") or document.content,
            chunk_index=max(int(data.get("chunkIndex", 0) or 0), 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "document": self.document.to_dict(),
            "similarity": self.similarity,
            "relevance": self.relevance,
            "context": self.context,
            "chunkIndex": self.chunk_index,
        }


def rank_results(results: list[SearchResult]) -> list[SearchResult]:
    """Order results by relevance, then similarity, both descending."""
    return sorted(results, key=lambda r: (r.relevance, r.similarity), reverse=True)


@dataclass
class SearchFilters:
    """Exact-match filters applied server-side."""

    type: str | None = None
    topic: str | None = None
    language: str | None = None
    difficulty: str | None = None

    def to_dict(self) -> dict[str, str]:
        return {
            key: value
            for key, value in (
                ("type", self.type),
                ("topic", self.topic),
                ("language", self.language),
                ("difficulty", self.difficulty),
            )
            if value
        }
