"""Telemetry events published by agents and the router.

Operational tooling subscribes to these (breaker alerts, request timing,
tool audit logs, routing dashboards) without the agent core knowing who is
listening.  Subscribers may be plain functions or coroutines.  A subscriber
that raises is logged and skipped; it never changes a request's outcome.

Usage::

    from shopagent.core.events import CIRCUIT_STATE_CHANGED, Event, EventBus

    bus = EventBus()

    def alert(event: Event) -> None:
        if event.payload["to"] == "open":
            page_oncall(event.source)

    bus.on(CIRCUIT_STATE_CHANGED, alert)
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from dataclasses import dataclass, field
from time import time
from typing import Any

from loguru import logger

CIRCUIT_STATE_CHANGED = "circuit.state_changed"
AGENT_REQUEST_START = "agent.request.start"
AGENT_REQUEST_COMPLETE = "agent.request.complete"
AGENT_TOOL_CALLED = "agent.tool.called"
AGENT_TOOL_RESULT = "agent.tool.result"
ROUTER_DECISION = "router.decision"

# Callable[[Event], None] | Callable[[Event], Awaitable[None]]
Hook = Any


@dataclass(frozen=True)
class Event:
    """One telemetry record: what happened, details, when, and which agent."""

    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time)
    source: str = ""


class EventBus:
    """Fan-out of telemetry events to named and catch-all subscribers."""

    def __init__(self) -> None:
        self._hooks: dict[str, list[Hook]] = defaultdict(list)
        self._catch_all: list[Hook] = []
        self._pending: set[asyncio.Task] = set()

    def on(self, event_name: str, hook: Hook) -> None:
        """Subscribe *hook* to one event name."""
        self._hooks[event_name].append(hook)

    def on_all(self, hook: Hook) -> None:
        """Subscribe *hook* to every event."""
        self._catch_all.append(hook)

    def subscribers(self, event_name: str) -> list[Hook]:
        return [*self._hooks.get(event_name, ()), *self._catch_all]

    async def emit(self, event: Event) -> None:
        """Deliver *event*, awaiting coroutine subscribers in subscription order."""
        for hook in self.subscribers(event.name):
            try:
                outcome = hook(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                self._report(event, hook, exc)

    def emit_sync(self, event: Event) -> None:
        """Deliver *event* from synchronous code (e.g. a breaker transition).

        Coroutine subscribers become background tasks on the running loop;
        with no loop running they are skipped.
        """
        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for hook in self.subscribers(event.name):
            if inspect.iscoroutinefunction(hook):
                if loop is None:
                    logger.debug(f"No running loop; skipping async subscriber {hook!r} for {event.name}")
                    continue
                task = loop.create_task(self._guarded(hook, event))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
                continue
            try:
                hook(event)
            except Exception as exc:
                self._report(event, hook, exc)

    async def _guarded(self, hook: Hook, event: Event) -> None:
        try:
            await hook(event)
        except Exception as exc:
            self._report(event, hook, exc)

    @staticmethod
    def _report(event: Event, hook: Hook, exc: Exception) -> None:
        logger.warning(f"Telemetry subscriber {getattr(hook, '__name__', hook)!r} failed on {event.name}: {exc}")
