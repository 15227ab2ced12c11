"""Unit tests for the fixed-delay retry policy."""

from unittest.mock import AsyncMock

import pytest

from lingorag.core.domain import OperationResult
from lingorag.core.services.retry_policy import with_retries

pytestmark = pytest.mark.unit


@pytest.fixture
def sleep():
    return AsyncMock()


class TestWithRetries:
    """Tests for the retry bound and outcome reporting."""

    @pytest.mark.asyncio
    async def test_always_failing_operation_runs_three_times(self, sleep):
        operation = AsyncMock(return_value=OperationResult.fail("Quota exceeded"))

        outcome = await with_retries(operation, 2, 2.0, sleep=sleep)

        assert operation.await_count == 3
        assert outcome.exhausted
        assert not outcome.success
        assert outcome.attempts == 3
        assert outcome.error == "Quota exceeded"
        assert sleep.await_count == 2
        sleep.assert_awaited_with(2.0)

    @pytest.mark.asyncio
    async def test_never_called_again_after_success(self, sleep):
        operation = AsyncMock(
            side_effect=[OperationResult.fail("busy"), OperationResult.ok("done"), OperationResult.ok("again")]
        )

        outcome = await with_retries(operation, 5, 0.1, sleep=sleep)

        assert outcome.success
        assert outcome.result.data == "done"
        assert operation.await_count == 2
        assert sleep.await_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_retries", [0, 1, 3])
    async def test_call_bound(self, sleep, max_retries):
        operation = AsyncMock(return_value=False)

        outcome = await with_retries(operation, max_retries, 0.0, sleep=sleep)

        assert operation.await_count == max_retries + 1
        assert outcome.exhausted

    @pytest.mark.asyncio
    async def test_negative_retries_means_single_attempt(self, sleep):
        operation = AsyncMock(return_value=False)

        await with_retries(operation, -1, 0.0, sleep=sleep)

        assert operation.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exceptions_count_as_failures(self, sleep):
        operation = AsyncMock(side_effect=[ConnectionError("reset"), OperationResult.ok(1)])

        outcome = await with_retries(operation, 2, 0.0, sleep=sleep)

        assert outcome.success
        assert outcome.attempts == 2

    @pytest.mark.asyncio
    async def test_all_attempts_raise(self, sleep):
        operation = AsyncMock(side_effect=ValueError("bad json"))

        outcome = await with_retries(operation, 1, 0.0, sleep=sleep)

        assert outcome.exhausted
        assert outcome.result is None
        assert outcome.error == "bad json"

    @pytest.mark.asyncio
    async def test_custom_usability_check(self, sleep):
        operation = AsyncMock(side_effect=["not json", '{"questions": []}'])

        outcome = await with_retries(
            operation, 2, 0.0, is_success=lambda text: text.startswith("{"), sleep=sleep
        )

        assert outcome.result == '{"questions": []}'
        assert outcome.attempts == 2

    @pytest.mark.asyncio
    async def test_permissive_check_still_rejects_failed_results(self, sleep):
        operation = AsyncMock(return_value=OperationResult.fail("boom"))

        outcome = await with_retries(operation, 2, 0.0, is_success=lambda result: True, sleep=sleep)

        assert operation.await_count == 3
        assert outcome.exhausted
        assert outcome.error == "boom"
