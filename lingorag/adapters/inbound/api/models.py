"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from ....core.domain import (
    AnalyticsSnapshot,
    GenerationContext,
    GenerationOptions,
    GenerationRequest,
    SearchFilters,
    SearchResult,
)


class StoreRequest(BaseModel):
    """Request model for storing a document."""

    content: str = Field(..., min_length=1, description="Document text")
    type: str = Field(..., min_length=1, description="Document type (lesson, vocabulary, ...)")
    topic: str = Field(..., min_length=1, description="Topic label, e.g. grammar")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Language, tags, extras")


class StoreResponse(BaseModel):
    document_id: str


class FiltersModel(BaseModel):
    """Exact-match search filters."""

    type: str | None = None
    topic: str | None = None
    language: str | None = None
    difficulty: str | None = None

    def to_domain(self) -> SearchFilters:
        return SearchFilters(**self.model_dump())


class SearchRequest(BaseModel):
    """Request model for a similarity search."""

    query: str = Field(
        ...,
        min_length=1,
        description="Search text",
        json_schema_extra={"example": "present simple"},
    )
    filters: FiltersModel = Field(default_factory=FiltersModel)
    max_results: int | None = Field(None, gt=0)
    similarity_threshold: float | None = Field(None, ge=0, le=1)
    use_reranking: bool = False


class DocumentModel(BaseModel):
    id: str
    content: str
    type: str
    topic: str
    language: str
    tags: list[str]
    created_at: datetime
    access_count: int


class SearchResultModel(BaseModel):
    """A ranked search hit."""

    document: DocumentModel
    similarity: float
    relevance: float
    context: str
    chunk_index: int

    @classmethod
    def from_domain(cls, result: SearchResult) -> "SearchResultModel":
        doc = result.document
        return cls(
            document=DocumentModel(
                id=doc.id,
                content=doc.content,
                type=doc.type,
                topic=doc.topic,
                language=doc.metadata.language,
                tags=doc.metadata.tags,
                created_at=doc.metadata.created_at,
                access_count=doc.metadata.access_count,
            ),
            similarity=result.similarity,
            relevance=result.relevance,
            context=result.context,
            chunk_index=result.chunk_index,
        )


class SearchResponse(BaseModel):
    results: list[SearchResultModel]


class GenerateRequest(BaseModel):
    """Request model for context-augmented generation."""

    prompt: str = Field(..., min_length=1)
    search_query: str = ""
    max_context_length: int | None = Field(None, gt=0)
    include_metadata: bool = True
    model: str | None = None
    max_tokens: int | None = Field(None, gt=0)
    temperature: float | None = Field(None, ge=0, le=1)
    use_reranking: bool = False
    domain: str = "text_generation"
    document_type: str = "explanation"
    topic: str = "general"
    language: str | None = None
    filters: FiltersModel | None = None
    retries: int = Field(0, ge=0, le=5, description="Retries for flows that must not fail")

    def to_domain(self) -> GenerationRequest:
        return GenerationRequest(
            prompt=self.prompt,
            context=GenerationContext(
                search_query=self.search_query,
                max_context_length=self.max_context_length,
                include_metadata=self.include_metadata,
            ),
            options=GenerationOptions(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                use_reranking=self.use_reranking,
            ),
            domain=self.domain,
            document_type=self.document_type,
            topic=self.topic,
            language=self.language,
            filters=self.filters.to_domain() if self.filters else None,
        )


class GenerateResponse(BaseModel):
    content: str
    rag_context: str
    document_ids: list[str]
    estimated_cost: float
    model: str | None = None
    attempts: int = 1


class AnswerRequest(BaseModel):
    """Request model for a tutoring question."""

    question: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        json_schema_extra={"example": "When do I use the present simple?"},
    )
    lesson_id: str | None = None
    lesson_title: str | None = None
    lesson_topic: str | None = None
    lesson_level: str | None = None


class AnswerResponse(BaseModel):
    answer: str
    sources: list[SearchResultModel]
    used_context: bool
    estimated_cost: float


class ActivityModel(BaseModel):
    id: str
    type: str
    topic: str
    created_at: datetime
    ai_generated: bool


class AnalyticsResponse(BaseModel):
    """Analytics snapshot plus derived figures."""

    total_documents: int
    total_chunks: int
    total_cost: float
    average_cost_per_document: float
    content_reuse_rate: float
    type_distribution: dict[str, int]
    language_distribution: dict[str, int]
    difficulty_distribution: dict[str, int]
    recent_activity: list[ActivityModel]

    @classmethod
    def from_domain(cls, snapshot: AnalyticsSnapshot) -> "AnalyticsResponse":
        return cls(
            total_documents=snapshot.total_documents,
            total_chunks=snapshot.total_chunks,
            total_cost=snapshot.total_cost,
            average_cost_per_document=snapshot.average_cost_per_document,
            content_reuse_rate=snapshot.content_reuse_rate,
            type_distribution=snapshot.type_distribution,
            language_distribution=snapshot.language_distribution,
            difficulty_distribution=snapshot.difficulty_distribution,
            recent_activity=[
                ActivityModel(
                    id=entry.id,
                    type=entry.type,
                    topic=entry.topic,
                    created_at=entry.created_at,
                    ai_generated=entry.ai_generated,
                )
                for entry in snapshot.recent_activity
            ],
        )


class CleanupRequest(BaseModel):
    """Request model for retention cleanup. ``confirm`` must be true."""

    max_age_days: int = Field(30, gt=0)
    confirm: bool = Field(False, description="Explicit user confirmation; deletion is irreversible")


class CleanupResponse(BaseModel):
    deleted_count: int


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    backend: str = Field(..., description="RAG backend status")
