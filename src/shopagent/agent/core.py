"""AgentCore — the per-request pipeline every specialist agent runs.

For each request:

1. circuit check (fail fast while open)
2. cache lookup by request fingerprint
3. model tier selection
4. reasoning call through the retry executor
5. validation, degrading to the fallback parse
6. tool dispatch
7. breaker/metrics/cache bookkeeping

Every path returns a :class:`~shopagent.agent.models.ProcessingResult`;
nothing raised inside the pipeline escapes :meth:`AgentCore.process`.
"""

from __future__ import annotations

import asyncio
import copy
import threading
import time
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from loguru import logger

from shopagent.core.events import (
    AGENT_REQUEST_COMPLETE,
    AGENT_REQUEST_START,
    AGENT_TOOL_CALLED,
    AGENT_TOOL_RESULT,
    CIRCUIT_STATE_CHANGED,
    Event,
    EventBus,
)
from shopagent.core.exceptions import RetryExhausted
from shopagent.core.llm.client import ReasoningService
from shopagent.core.llm.model_selector import ModelSelector
from shopagent.core.llm.retry import RetryExecutor
from shopagent.core.utils.cache import ResponseCache, make_cache_key
from shopagent.core.utils.context import context_flag

from .circuit_breaker import CircuitBreaker
from .dispatcher import ToolDispatcher, ToolStatus
from .errors import CIRCUIT_OPEN_MESSAGE, emergency_fallback, friendly_error_message
from .models import (
    NO_CACHE,
    AgentConfig,
    AgentHealth,
    CircuitBreakerState,
    CircuitState,
    Decision,
    ErrorKind,
    Metrics,
    ProcessingResult,
    utc_now,
)
from .prompts import PromptBuilder, PromptContext, StandardPromptBuilder
from .validator import ResponseValidator


class AgentCore:
    """One specialist agent: config, owned resilience state, and the pipeline.

    Args:
        config: Immutable agent settings and tools.
        reasoning: Reasoning service (usually an :class:`~shopagent.core.llm.LLMClient`).
        prompt_builder: System-prompt strategy for this specialization.
        model_selector: Tier selector; defaults to the standard fast/thorough pair.
        retry_executor: Retry/backoff wrapper for reasoning calls.
        event_bus: Optional telemetry bus.
        clock: Monotonic time source shared by breaker and cache.
    """

    def __init__(
        self,
        config: AgentConfig,
        reasoning: ReasoningService,
        *,
        prompt_builder: PromptBuilder | None = None,
        model_selector: ModelSelector | None = None,
        retry_executor: RetryExecutor | None = None,
        event_bus: EventBus | None = None,
        clock: Any = time.monotonic,
    ):
        self.config = config
        self.name = config.name
        self._reasoning = reasoning
        self._prompt_builder = prompt_builder or StandardPromptBuilder()
        self._selector = model_selector or ModelSelector()
        self._retry = retry_executor or RetryExecutor(name=config.name)
        self._events = event_bus

        self.circuit_breaker = CircuitBreaker(
            config.circuit_breaker_threshold,
            config.circuit_cooldown,
            name=config.name,
            on_transition=self._on_circuit_transition,
            clock=clock,
        )
        self.cache = ResponseCache(ttl=config.cache_ttl, capacity=config.cache_capacity, clock=clock)
        self.dispatcher = ToolDispatcher(config.tool_registry, agent_name=config.name)
        self.validator = ResponseValidator(config.tool_names, agent_name=config.name)

        self._metrics = Metrics()
        self._metrics_lock = threading.Lock()
        self._started = time.time()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def metrics(self) -> dict[str, Any]:
        with self._metrics_lock:
            return self._metrics.snapshot()

    async def process(self, request: str, context: Mapping[str, Any] | None = None) -> ProcessingResult:
        """Handle one request end to end.

        Never raises; cancellation propagates after the breaker trial slot is released.
        """
        context = dict(context or {})
        start = time.perf_counter()
        with self._metrics_lock:
            self._metrics.request_count += 1

        logger.info(f"[{self.name}] Processing: {request!r}")
        await self._emit(AGENT_REQUEST_START, {"request": request})

        try:
            result = await self._run_pipeline(request, context, start)
        except asyncio.CancelledError:
            logger.warning(f"[{self.name}] Request {request!r} cancelled")
            self.circuit_breaker.release()
            with self._metrics_lock:
                self._metrics.record(time.perf_counter() - start, success=False, error="cancelled")
            raise
        except Exception as e:
            logger.exception(f"[{self.name}] Unexpected error while processing: {e}")
            self.circuit_breaker.release()
            result = self._failure(
                request,
                start,
                error=str(e) or type(e).__name__,
                kind=ErrorKind.INTERNAL,
                human_message=friendly_error_message(e),
            )

        with self._metrics_lock:
            self._metrics.record(result.duration, success=result.success, error=result.error)

        await self._emit(
            AGENT_REQUEST_COMPLETE,
            {
                "request": request,
                "success": result.success,
                "action": result.action,
                "cached": result.cached,
                "error_kind": result.error_kind,
                "duration": result.duration,
            },
        )
        return result

    async def health_check(self) -> AgentHealth:
        """Probe the reasoning service and report breaker and metrics state."""
        error = None
        try:
            reachable = await asyncio.wait_for(self._reasoning.ping(), timeout=self.config.timeout)
        except Exception as e:
            reachable = False
            error = str(e) or type(e).__name__
        breaker = self.circuit_breaker.snapshot()
        healthy = reachable and breaker.state == CircuitState.CLOSED
        return AgentHealth(
            agent=self.name,
            status="healthy" if healthy else "degraded",
            metrics=self.metrics,
            circuit_breaker=breaker,
            reasoning_service_reachable=bool(reachable),
            tool_count=len(self.config.tools),
            cache_size=len(self.cache),
            error=error,
        )

    def statistics(self) -> dict[str, Any]:
        metrics = self.metrics
        return {
            "agent": self.name,
            "specialization": self.config.specialization,
            "uptime": round(time.time() - self._started, 3),
            "metrics": metrics,
            "success_rate": metrics["success_rate"],
            "average_response_time": metrics["average_response_time"],
            "circuit_breaker_state": self.circuit_breaker.state,
            "cache_size": len(self.cache),
            "cache_hit_rate": round(self.cache.hit_rate * 100, 1),
            "tools_available": self.config.tool_names,
            "last_error": metrics["last_error"],
        }

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run_pipeline(self, request: str, context: dict[str, Any], start: float) -> ProcessingResult:
        if not self.circuit_breaker.can_execute():
            logger.warning(f"[{self.name}] Circuit breaker open, rejecting request")
            return self._failure(
                request,
                start,
                error="Circuit breaker is OPEN - service temporarily unavailable",
                kind=ErrorKind.CIRCUIT_OPEN,
                human_message=CIRCUIT_OPEN_MESSAGE,
            )

        use_cache = not context_flag(context, NO_CACHE)
        cache_key = make_cache_key(request, context, namespace=self.name)
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"[{self.name}] Cache hit")
                self.circuit_breaker.release()
                hit = copy.deepcopy(cached)
                return replace(hit, cached=True, duration=time.perf_counter() - start, timestamp=utc_now())

        choice = self._selector.choose(request, context)
        logger.debug(f"[{self.name}] Using model {choice.model} ({choice.tier})")
        system_prompt = self._prompt_builder.build(self._prompt_context(context))

        try:
            raw = await self._retry.run(
                lambda: self._reasoning.complete(system_prompt, request, model=choice.model),
                max_attempts=self.config.max_retries,
                timeout=self.config.timeout,
            )
        except RetryExhausted as e:
            self.circuit_breaker.record_failure()
            return self._failure(
                request,
                start,
                error=str(e),
                kind=ErrorKind.RETRY_EXHAUSTED,
                human_message=friendly_error_message(e),
                model=choice.model,
                emergency=emergency_fallback(
                    request,
                    agent=self.name,
                    specialization=self.config.specialization,
                    tool_names=self.config.tool_names,
                    error=e,
                    metrics=self.metrics,
                ),
            )

        decision = self.validator.validate(raw, request)
        self.circuit_breaker.record_success()

        result = await self._execute(decision, context, request, start, choice.model)
        if result.success and use_cache:
            self.cache.set(cache_key, copy.deepcopy(result))
        return result

    async def _execute(
        self,
        decision: Decision,
        context: dict[str, Any],
        request: str,
        start: float,
        model: str,
    ) -> ProcessingResult:
        await self._emit(AGENT_TOOL_CALLED, {"tool": decision.action, "parameters": decision.parameters})
        outcome = await self.dispatcher.execute(decision.action, decision.parameters, context, request=request)
        await self._emit(
            AGENT_TOOL_RESULT,
            {"tool": outcome.tool, "status": outcome.status, "duration": outcome.duration},
        )

        error_kind = None
        human_message = decision.human_message
        if outcome.status == ToolStatus.NOT_FOUND:
            error_kind = ErrorKind.TOOL_NOT_FOUND
            human_message = f"{decision.action} is not available. Available tools: {', '.join(outcome.available_tools)}"
        elif outcome.status == ToolStatus.FAILED:
            error_kind = ErrorKind.TOOL_FAILED
            human_message = f"{decision.human_message}\n\n{decision.action} failed: {outcome.error}"

        return ProcessingResult(
            success=outcome.success,
            agent=self.name,
            human_message=human_message,
            analysis=decision.analysis,
            action=decision.action,
            parameters=decision.parameters,
            confidence=decision.confidence,
            reasoning=decision.reasoning,
            tool_result=outcome.result,
            execution=outcome,
            error=outcome.error,
            error_kind=error_kind,
            model=model,
            fallback=decision.fallback,
            parse_error=decision.parse_error,
            circuit_state=self.circuit_breaker.state,
            extras=decision.extras,
            duration=time.perf_counter() - start,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _prompt_context(self, context: Mapping[str, Any]) -> PromptContext:
        metrics = self.metrics
        return PromptContext(
            agent_name=self.name,
            specialization=self.config.specialization,
            tools=self.config.tools,
            context=context,
            success_rate=metrics["success_rate"],
            request_count=metrics["request_count"],
            circuit_state=self.circuit_breaker.state,
        )

    def _failure(
        self,
        request: str,
        start: float,
        *,
        error: str,
        kind: ErrorKind,
        human_message: str,
        model: str | None = None,
        emergency: dict[str, Any] | None = None,
    ) -> ProcessingResult:
        logger.error(f"[{self.name}] Request {request!r} failed ({kind}): {error}")
        return ProcessingResult(
            success=False,
            agent=self.name,
            human_message=human_message,
            error=error,
            error_kind=kind,
            model=model,
            emergency_fallback=emergency,
            circuit_state=self.circuit_breaker.state,
            duration=time.perf_counter() - start,
        )

    def _on_circuit_transition(self, old: CircuitState, new: CircuitState, snapshot: CircuitBreakerState) -> None:
        if self._events is None:
            return
        self._events.emit_sync(
            Event(
                name=CIRCUIT_STATE_CHANGED,
                payload={"from": old, "to": new, "failure_count": snapshot.failure_count},
                source=self.name,
            )
        )

    async def _emit(self, name: str, payload: dict[str, Any]) -> None:
        if self._events is not None:
            await self._events.emit(Event(name=name, payload=payload, source=self.name))
