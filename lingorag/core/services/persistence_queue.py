"""Fire-and-forget persistence of generated content.

Writes run as background asyncio tasks. Their outcome is reported through
``document_persisted`` / ``document_persist_failed`` events and logged; it
never reaches the caller whose generation triggered the write.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from ..domain import OperationResult

logger = logging.getLogger(__name__)

DOCUMENT_PERSISTED = "document_persisted"
DOCUMENT_PERSIST_FAILED = "document_persist_failed"

Listener = Callable[..., Any]


@dataclass
class PersistJob:
    """One document waiting to be written."""

    content: str
    type: str
    topic: str
    metadata: dict[str, Any] = field(default_factory=dict)


StoreFunc = Callable[[PersistJob], Awaitable[OperationResult[str]]]


class PersistenceQueue:
    """Tracks background writes and emits their outcome as events."""

    def __init__(self, store: StoreFunc) -> None:
        self._store = store
        self._tasks: set[asyncio.Task[None]] = set()
        self._listeners: dict[str, list[Listener]] = {
            DOCUMENT_PERSISTED: [],
            DOCUMENT_PERSIST_FAILED: [],
        }

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def on(self, event: str, listener: Listener) -> None:
        """Register a listener.

        ``document_persisted`` listeners receive ``(document_id, job)``;
        ``document_persist_failed`` listeners receive ``(error, job)``.
        """
        if event not in self._listeners:
            raise ValueError(f"Unknown persistence event: {event}")
        self._listeners[event].append(listener)

    def submit(self, job: PersistJob) -> asyncio.Task[None]:
        """Schedule a write and return immediately."""
        task = asyncio.create_task(self._persist(job))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _persist(self, job: PersistJob) -> None:
        try:
            result = await self._store(job)
        except asyncio.CancelledError:
            logger.warning("Persistence of %s/%s cancelled", job.type, job.topic)
            raise
        except Exception as e:
            logger.warning("Persistence of %s/%s raised: %s", job.type, job.topic, e, exc_info=True)
            self._emit(DOCUMENT_PERSIST_FAILED, str(e), job)
            return

        if result.success:
            logger.debug("Persisted %s/%s as %s", job.type, job.topic, result.data)
            self._emit(DOCUMENT_PERSISTED, result.data, job)
        else:
            logger.warning("Persistence of %s/%s failed: %s", job.type, job.topic, result.error)
            self._emit(DOCUMENT_PERSIST_FAILED, result.error, job)

    def _emit(self, event: str, *args: Any) -> None:
        for listener in self._listeners[event]:
            try:
                listener(*args)
            except Exception:
                logger.exception("Listener for %s failed", event)

    async def drain(self) -> None:
        """Wait until every scheduled write has settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_pending(self) -> int:
        """Cancel outstanding writes (used on shutdown). Returns how many."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        return len(tasks)
