"""Circuit breaker guarding an agent's reasoning-service calls.

Counts consecutive failures and opens the circuit (blocks calls) once they
reach a threshold.  After a cooldown the breaker goes half-open and lets
exactly one trial call through: success closes it, failure re-opens it.

Each :class:`~shopagent.agent.core.AgentCore` owns one breaker; state is
never shared across agents or processes.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from loguru import logger

from .models import CircuitBreakerState, CircuitState

TransitionHook = Callable[[CircuitState, CircuitState, CircuitBreakerState], None]


class CircuitBreaker:
    """Consecutive-failure breaker with a fixed cooldown window.

    Usage::

        cb = CircuitBreaker(threshold=5, cooldown=60)
        if not cb.can_execute():
            return unavailable()
        try:
            result = await call_service()
            cb.record_success()
        except ServiceError:
            cb.record_failure()

    Args:
        threshold: Consecutive failures that open the circuit.
        cooldown: Seconds the circuit stays open before a trial call.
        name: Label used in logs.
        on_transition: Called as ``(old, new, snapshot)`` on every state change.
        clock: Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        threshold: int = 5,
        cooldown: float = 60.0,
        *,
        name: str = "agent",
        on_transition: TransitionHook | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self.threshold = threshold
        self.cooldown = cooldown
        self.name = name
        self._on_transition = on_transition
        self._clock = clock
        self._lock = threading.RLock()
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure: float | None = None
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def snapshot(self) -> CircuitBreakerState:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> CircuitBreakerState:
        return CircuitBreakerState(
            state=self._state,
            failure_count=self._failure_count,
            last_failure_time=self._last_failure,
        )

    def can_execute(self) -> bool:
        """Return True if a call may proceed now.

        While half-open only the first caller gets True; later callers are
        refused until that trial records its outcome.
        """
        with self._lock:
            if self._state == CircuitState.CLOSED:
                return True
            if self._state == CircuitState.OPEN:
                assert self._last_failure is not None
                if self._clock() - self._last_failure <= self.cooldown:
                    return False
                self._transition(CircuitState.HALF_OPEN)
            if self._trial_in_flight:
                return False
            self._trial_in_flight = True
            return True

    def record_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            self._trial_in_flight = False
            if self._state != CircuitState.CLOSED:
                self._transition(CircuitState.CLOSED)

    def record_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure = self._clock()
            self._trial_in_flight = False
            if self._state == CircuitState.HALF_OPEN:
                self._transition(CircuitState.OPEN)
            elif self._state == CircuitState.CLOSED and self._failure_count >= self.threshold:
                self._transition(CircuitState.OPEN)

    def release(self) -> None:
        """Give back a half-open trial slot without recording an outcome.

        For requests that passed :meth:`can_execute` but never reached the
        guarded service (e.g. served from cache).
        """
        with self._lock:
            self._trial_in_flight = False

    def reset(self) -> None:
        """Manually close the circuit and clear the failure count."""
        with self._lock:
            self._failure_count = 0
            self._last_failure = None
            self._trial_in_flight = False
            if self._state != CircuitState.CLOSED:
                self._transition(CircuitState.CLOSED)

    def _transition(self, new: CircuitState) -> None:
        old, self._state = self._state, new
        if new == CircuitState.OPEN:
            logger.warning(f"[{self.name}] Circuit breaker OPEN after {self._failure_count} failures")
        else:
            logger.info(f"[{self.name}] Circuit breaker {old} -> {new}")
        if self._on_transition is not None:
            try:
                self._on_transition(old, new, self._snapshot())
            except Exception as e:
                logger.warning(f"[{self.name}] Circuit transition hook failed: {e}")
