"""Transport Port Interface for the remote RAG backend."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class TransportResponse:
    """Normalized backend response.

    ``success`` is False for remote-side failures (non-2xx status or an
    unparseable body); ``error`` then carries the backend's own message when
    it supplied one.
    """

    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    status_code: int | None = None


class TransportPort(ABC):
    """Abstract interface to the store/search/generate/analytics/cleanup endpoints.

    Implementations raise ``BackendUnavailableError`` for transport-level
    faults and never raise for remote-side failures.
    """

    @abstractmethod
    async def initialize(self) -> bool:
        """Check the backend is reachable and record readiness."""
        ...

    @abstractmethod
    def is_ready(self) -> bool:
        """Last readiness reported by ``initialize()``."""
        ...

    @abstractmethod
    async def store(self, payload: dict[str, Any]) -> TransportResponse: ...

    @abstractmethod
    async def search(self, payload: dict[str, Any]) -> TransportResponse: ...

    @abstractmethod
    async def generate(self, payload: dict[str, Any]) -> TransportResponse: ...

    @abstractmethod
    async def get_analytics(self) -> TransportResponse: ...

    @abstractmethod
    async def cleanup(self, max_age_days: int) -> TransportResponse: ...

    @abstractmethod
    async def list_documents(self) -> TransportResponse: ...

    @abstractmethod
    async def aclose(self) -> None:
        """Release network resources."""
        ...
