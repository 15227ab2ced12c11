"""Fixed-delay retry policy for generation-style operations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..domain import GenerationResponse, OperationResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryOutcome(Generic[T]):
    """Final outcome of a retried operation.

    Attributes:
        result: The last outcome (the successful one, or the last failure).
            ``None`` when every attempt raised.
        attempts: How many times the operation was called.
        exhausted: True when every attempt failed; the terminal-failure signal.
        error: Message of the last failure, if any.
    """

    result: T | None
    attempts: int
    exhausted: bool
    error: str | None = None

    @property
    def success(self) -> bool:
        return not self.exhausted


def _default_is_success(outcome: Any) -> bool:
    if isinstance(outcome, OperationResult | GenerationResponse):
        return outcome.success
    return bool(outcome)


def _failure_message(outcome: Any) -> str:
    error = getattr(outcome, "error", None)
    return error or "Operation returned an unusable result"


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    max_retries: int,
    delay: float,
    *,
    is_success: Callable[[T], bool] | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> RetryOutcome[T]:
    """Call ``operation`` until it succeeds or retries run out.

    The operation is called at most ``max_retries + 1`` times and never again
    after a success. An outcome counts as a failure when it is an unsuccessful
    result, when ``is_success`` rejects it, or when the operation raises.
    ``is_success`` only narrows the default check; it cannot accept a
    failed result.

    Args:
        operation: Zero-argument coroutine function.
        max_retries: Retries allowed after the first attempt.
        delay: Fixed wait between attempts, in seconds.
        is_success: Caller's usability check for the outcome.
        sleep: Awaitable sleep, replaceable in tests.

    Returns:
        RetryOutcome describing the final attempt.
    """

    def check(outcome: T) -> bool:
        if not _default_is_success(outcome):
            return False
        return is_success(outcome) if is_success else True

    remaining = max(max_retries, 0)
    attempts = 0
    last: T | None = None
    last_error: str | None = None

    while True:
        attempts += 1
        try:
            last = await operation()
        except Exception as e:
            logger.warning("Attempt %d raised: %s", attempts, e)
            last, last_error = None, str(e) or type(e).__name__
        else:
            if check(last):
                return RetryOutcome(result=last, attempts=attempts, exhausted=False)
            last_error = _failure_message(last)
            logger.warning("Attempt %d failed: %s", attempts, last_error)

        if remaining <= 0:
            logger.error("Giving up after %d attempts: %s", attempts, last_error)
            return RetryOutcome(result=last, attempts=attempts, exhausted=True, error=last_error)

        remaining -= 1
        logger.info("Retrying in %.1fs (%d retries left)", delay, remaining)
        await sleep(delay)
