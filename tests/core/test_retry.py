"""Tests for shopagent.core.llm.retry."""

import asyncio

import pytest

from shopagent.core.exceptions import RetryExhausted
from shopagent.core.llm.retry import RetryExecutor, RetryPolicy


class Flaky:
    """Fails the first *failures* calls, then returns "ok"."""

    def __init__(self, failures: int, error: Exception | None = None):
        self.failures = failures
        self.error = error or ConnectionError("reset by peer")
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def executor(sleeps):
    async def record_sleep(seconds):
        sleeps.append(seconds)

    return RetryExecutor(RetryPolicy(), sleep=record_sleep, rand=lambda: 0.5)


class TestRetryPolicy:
    def test_exponential_backoff(self):
        policy = RetryPolicy(base_delay=1, max_delay=10, jitter=0)
        assert [policy.get_delay(n) for n in (1, 2, 3, 4)] == [1, 2, 4, 8]

    def test_capped(self):
        policy = RetryPolicy(base_delay=1, max_delay=10, jitter=0)
        assert policy.get_delay(6) == 10

    def test_jitter_bounded(self):
        policy = RetryPolicy(base_delay=1, max_delay=10, jitter=1)
        assert policy.get_delay(1, rand=lambda: 0.0) == 1
        assert policy.get_delay(1, rand=lambda: 0.999) < 2


class TestRetryExecutor:
    async def test_succeeds_after_max_minus_one_failures(self, executor):
        op = Flaky(failures=2)
        assert await executor.run(op, max_attempts=3) == "ok"
        assert op.calls == 3

    async def test_exhaustion(self, executor):
        op = Flaky(failures=3)
        with pytest.raises(RetryExhausted) as exc_info:
            await executor.run(op, max_attempts=3)
        assert op.calls == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_error, ConnectionError)
        assert exc_info.value.__cause__ is exc_info.value.last_error

    async def test_sleeps_between_attempts_only(self, executor, sleeps):
        with pytest.raises(RetryExhausted):
            await executor.run(Flaky(failures=5), max_attempts=3)
        assert sleeps == [1.5, 2.5]

    async def test_first_try_success_does_not_sleep(self, executor, sleeps):
        assert await executor.run(Flaky(failures=0)) == "ok"
        assert sleeps == []

    async def test_timeout_counts_as_failure(self, executor):
        calls = 0

        async def slow():
            nonlocal calls
            calls += 1
            await asyncio.sleep(1)

        with pytest.raises(RetryExhausted, match="timed out") as exc_info:
            await executor.run(slow, max_attempts=2, timeout=0.01)
        assert calls == 2
        assert isinstance(exc_info.value.last_error, TimeoutError)

    async def test_invalid_attempts(self, executor):
        with pytest.raises(ValueError):
            await executor.run(Flaky(failures=0), max_attempts=0)
