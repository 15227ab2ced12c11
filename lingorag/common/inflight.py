"""Coalescing of identical concurrent requests."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class InFlightRegistry:
    """At most one in-flight call per request fingerprint.

    The first caller for a fingerprint starts the call; callers arriving
    while it is pending await the same task instead of issuing another
    round trip. The entry is dropped as soon as the call settles, so later
    identical requests hit the backend again.
    """

    def __init__(self) -> None:
        self._pending: dict[str, asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, key: str) -> bool:
        return key in self._pending

    async def run(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``factory()`` once per concurrent ``key`` and share its result."""
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda _t, k=key: self._pending.pop(k, None))
        else:
            logger.debug("Joining in-flight request %s", key)
        # Shielded so one cancelled waiter does not cancel the shared call
        return await asyncio.shield(task)
