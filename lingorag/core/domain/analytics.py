"""Analytics snapshot and cost models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ...common.utils import parse_timestamp

# Content-reuse heuristic: documents / (documents + REUSE_RATE_OFFSET)
REUSE_RATE_OFFSET = 10
RECENT_ACTIVITY_DISPLAY_COUNT = 5


@dataclass
class ActivityEntry:
    """A recently created document as listed by the analytics endpoint."""

    id: str
    type: str
    topic: str
    created_at: datetime
    language: str | None = None
    difficulty: str | None = None
    ai_generated: bool = False
    source: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActivityEntry":
        return cls(
            id=str(data.get("id", "")),
            type=data.get("type", ""),
            topic=data.get("topic", ""),
            created_at=parse_timestamp(data.get("createdAt", data.get("timestamp"))),
            language=data.get("language"),
            difficulty=data.get("difficulty"),
            ai_generated=bool(data.get("aiGenerated", False)),
            source=data.get("source"),
        )


@dataclass
class AnalyticsSnapshot:
    """Usage and cost totals computed by the backend over all documents."""

    total_documents: int = 0
    total_chunks: int = 0
    total_cost: float = 0.0
    type_distribution: dict[str, int] = field(default_factory=dict)
    language_distribution: dict[str, int] = field(default_factory=dict)
    difficulty_distribution: dict[str, int] = field(default_factory=dict)
    recent_activity: list[ActivityEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalyticsSnapshot":
        return cls(
            total_documents=int(data.get("totalDocuments", 0) or 0),
            total_chunks=int(data.get("totalChunks", 0) or 0),
            total_cost=float(data.get("totalCost", 0.0) or 0.0),
            type_distribution=dict(data.get("typeDistribution") or {}),
            language_distribution=dict(data.get("languageDistribution") or {}),
            difficulty_distribution=dict(data.get("difficultyDistribution") or {}),
            recent_activity=[
                ActivityEntry.from_dict(entry) for entry in data.get("recentActivity") or []
            ],
        )

    @property
    def average_cost_per_document(self) -> float:
        return self.total_cost / max(self.total_documents, 1)

    @property
    def content_reuse_rate(self) -> float:
        """Rough share of requests served from stored content (0.0 to 1.0)."""
        return self.total_documents / (self.total_documents + REUSE_RATE_OFFSET)

    def recent(self, count: int = RECENT_ACTIVITY_DISPLAY_COUNT) -> list[ActivityEntry]:
        return self.recent_activity[:count]


@dataclass
class CostBreakdownItem:
    """Estimated cost of one planned operation."""

    operation: str
    estimated_cost: float
    use_reranking: bool = False


@dataclass
class CostEstimate:
    """Estimated total cost of a batch of planned operations."""

    total_estimated_cost: float
    breakdown: list[CostBreakdownItem]


@dataclass
class ReuseSuggestion:
    """Existing content that can be reused instead of a fresh generation."""

    suggestions: list[str]
    cost_savings: float
    reused_document_ids: list[str]
