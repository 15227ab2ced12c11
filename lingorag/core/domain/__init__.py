"""Domain models for lingorag.

- document: Document, DocumentMetadata, SearchResult, SearchFilters
- generation: GenerationRequest/Response, the GenerationState machine, AnswerResult
- analytics: AnalyticsSnapshot and cost estimates
- results: OperationResult, the discriminated result of every public operation

All models are re-exported here:

    from lingorag.core.domain import Document, SearchResult, OperationResult
"""

from .analytics import (
    ActivityEntry,
    AnalyticsSnapshot,
    CostBreakdownItem,
    CostEstimate,
    ReuseSuggestion,
)
from .document import (
    Document,
    DocumentMetadata,
    DocumentType,
    SearchFilters,
    SearchResult,
    rank_results,
)
from .generation import (
    AnswerResult,
    GenerationContext,
    GenerationDomain,
    GenerationMetadata,
    GenerationOptions,
    GenerationRequest,
    GenerationResponse,
    GenerationState,
    LessonContext,
)
from .results import ErrorKind, OperationResult, ResultStatus

__all__ = [
    # Documents
    "Document",
    "DocumentMetadata",
    "DocumentType",
    "SearchFilters",
    "SearchResult",
    "rank_results",
    # Generation
    "AnswerResult",
    "GenerationContext",
    "GenerationDomain",
    "GenerationMetadata",
    "GenerationOptions",
    "GenerationRequest",
    "GenerationResponse",
    "GenerationState",
    "LessonContext",
    # Analytics
    "ActivityEntry",
    "AnalyticsSnapshot",
    "CostBreakdownItem",
    "CostEstimate",
    "ReuseSuggestion",
    # Results
    "ErrorKind",
    "OperationResult",
    "ResultStatus",
]
