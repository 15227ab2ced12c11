"""Generation request/response models and the per-call state machine."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .document import DocumentType, SearchFilters, SearchResult


class GenerationState(Enum):
    """States of a single generation call.

    IDLE -> SEARCHING -> (CONTEXT_FOUND | NO_CONTEXT) -> GENERATING
    -> STORING -> DONE, with FAILED reachable from SEARCHING or GENERATING.
    """

    IDLE = "idle"
    SEARCHING = "searching"
    CONTEXT_FOUND = "context_found"
    NO_CONTEXT = "no_context"
    GENERATING = "generating"
    STORING = "storing"
    DONE = "done"
    FAILED = "failed"


# Allowed transitions; anything else is a programming error
TRANSITIONS: dict[GenerationState, frozenset[GenerationState]] = {
    GenerationState.IDLE: frozenset({GenerationState.SEARCHING}),
    GenerationState.SEARCHING: frozenset(
        {GenerationState.CONTEXT_FOUND, GenerationState.NO_CONTEXT, GenerationState.FAILED}
    ),
    GenerationState.CONTEXT_FOUND: frozenset({GenerationState.GENERATING}),
    GenerationState.NO_CONTEXT: frozenset({GenerationState.GENERATING}),
    GenerationState.GENERATING: frozenset({GenerationState.STORING, GenerationState.FAILED}),
    GenerationState.STORING: frozenset({GenerationState.DONE}),
    GenerationState.DONE: frozenset(),
    GenerationState.FAILED: frozenset(),
}


class GenerationDomain:
    """Call-site labels attached to persisted generations."""

    TEXT_GENERATION = "text_generation"
    TRANSLATION = "translation"
    STORY_GENERATION = "story_generation"
    VOCABULARY_GENERATION = "vocabulary_generation"
    QUIZ_GENERATION = "quiz_generation"
    LESSON_TUTORING = "lesson_tutoring"


@dataclass
class GenerationContext:
    """How retrieved context is gathered for a generation call."""

    search_query: str = ""
    max_context_length: int | None = None
    include_metadata: bool = True
    max_results: int | None = None


@dataclass
class GenerationOptions:
    """Inference options. ``None`` means "use the configured default"."""

    model: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    use_reranking: bool = False


@dataclass
class GenerationRequest:
    """A prompt plus everything needed to search, generate and persist."""

    prompt: str
    context: GenerationContext = field(default_factory=GenerationContext)
    options: GenerationOptions = field(default_factory=GenerationOptions)
    domain: str = GenerationDomain.TEXT_GENERATION
    document_type: str = DocumentType.EXPLANATION
    topic: str = "general"
    language: str | None = None
    filters: SearchFilters | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class GenerationMetadata:
    """Bookkeeping about one inference call."""

    model: str
    prompt_length: int
    response_length: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "promptLength": self.prompt_length,
            "responseLength": self.response_length,
        }


@dataclass
class GenerationResponse:
    """Result of a generation call.

    ``content`` is set only when ``success`` is true. ``rag_context`` and
    ``document_ids`` describe the retrieved context actually used.
    """

    success: bool
    content: str | None = None
    rag_context: str = ""
    document_ids: list[str] = field(default_factory=list)
    estimated_cost: float = 0.0
    generation_metadata: GenerationMetadata | None = None
    error: str | None = None
    state: GenerationState = GenerationState.DONE
    degraded: bool = False

    @property
    def used_context(self) -> bool:
        return bool(self.document_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "content": self.content,
            "ragContext": self.rag_context,
            "documentIds": list(self.document_ids),
            "estimatedCost": self.estimated_cost,
            "generationMetadata": (
                self.generation_metadata.to_dict() if self.generation_metadata else None
            ),
            "error": self.error,
            "state": self.state.value,
            "degraded": self.degraded,
        }


@dataclass
class LessonContext:
    """What the tutoring UI knows about the lesson being studied."""

    lesson_id: str | None = None
    lesson_title: str | None = None
    lesson_topic: str | None = None
    lesson_level: str | None = None


@dataclass
class AnswerResult:
    """Result of a tutoring question.

    An empty ``sources`` list on success means the answer came from general
    knowledge rather than retrieved content.
    """

    success: bool
    answer: str | None = None
    sources: list[SearchResult] = field(default_factory=list)
    error: str | None = None
    search_error: str | None = None
    estimated_cost: float = 0.0
    degraded: bool = False

    @property
    def used_context(self) -> bool:
        return bool(self.sources)
