"""
Bounded retries with exponential backoff and jitter.

Wraps calls into the reasoning service.  Each attempt runs under its own
timeout; a timeout counts as a failed attempt.  Tool executions are never
retried here — idempotency of a storefront operation is the tool's concern.

Usage::

    executor = RetryExecutor(RetryPolicy(base_delay=1.0, max_delay=10.0))
    text = await executor.run(lambda: client.complete(prompt, query), max_attempts=3, timeout=30)
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from loguru import logger

from ..exceptions import RetryExhausted

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff shape: ``min(base_delay * 2**(attempt-1), max_delay) + U(0, jitter)``."""

    base_delay: float = 1.0
    max_delay: float = 10.0
    jitter: float = 1.0

    def get_delay(self, attempt: int, rand: Callable[[], float] = random.random) -> float:
        """Seconds to wait after failed *attempt* (1-based)."""
        backoff = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        return backoff + rand() * self.jitter


class RetryExecutor:
    """Re-invoke an async operation until it succeeds or attempts run out.

    Args:
        policy: Backoff shape.
        sleep: Coroutine used between attempts; injectable for tests.
        rand: Uniform [0, 1) source for jitter.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rand: Callable[[], float] = random.random,
        name: str = "retry",
    ):
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._rand = rand
        self.name = name

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int = 3,
        timeout: float | None = None,
    ) -> T:
        """Call *operation* up to *max_attempts* times.

        Raises:
            RetryExhausted: After the final attempt fails; chained to the last error.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        last_error: BaseException | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                if timeout is not None:
                    return await asyncio.wait_for(operation(), timeout=timeout)
                return await operation()
            except TimeoutError as e:
                # wait_for raises a bare TimeoutError
                last_error = e if str(e) else TimeoutError(f"attempt {attempt} timed out after {timeout}s")
            except Exception as e:
                last_error = e

            if attempt == max_attempts:
                break
            delay = self.policy.get_delay(attempt, self._rand)
            logger.warning(
                f"[{self.name}] Attempt {attempt}/{max_attempts} failed "
                f"({type(last_error).__name__}: {last_error}), retrying in {delay:.2f}s"
            )
            await self._sleep(delay)

        assert last_error is not None
        logger.error(f"[{self.name}] All {max_attempts} attempts failed: {last_error}")
        raise RetryExhausted(last_error, max_attempts) from last_error
