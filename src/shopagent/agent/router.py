"""Agent router — picks the specialist agent best suited to a request.

Scores every registered agent against the request text (specialization
keywords, domain regex patterns, conversation continuity and priority) and
delegates to the winner when it is confident enough.  Low-confidence
requests go to a "direct" agent (usually the orchestrator) instead of being
guessed at.

Agents are built once, from an explicit :class:`AgentRegistry`, when the
router is constructed.

Usage::

    registry = AgentRegistry()
    registry.register(AgentProfile("stripe", ("payments", "billing")), make_stripe_agent)
    router = AgentRouter(registry)
    result = await router.process("refund the last payment")
"""

from __future__ import annotations

import asyncio
import re
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from loguru import logger

from shopagent.core.events import ROUTER_DECISION, Event, EventBus
from shopagent.core.exceptions import UnknownAgentError

from .models import (
    MULTI_SYSTEM,
    ORCHESTRATED_BY,
    PREVIOUS_AGENT,
    ROUTING_CONFIDENCE,
    ErrorKind,
    ProcessingResult,
    RoutingDecision,
)

if TYPE_CHECKING:
    from .core import AgentCore

# Scoring weights.
EXACT_MATCH_POINTS = 10
PREFIX_MATCH_POINTS = 5
PREFIX_LENGTH = 4
CONTINUITY_BONUS = 3
PRIORITY_CEILING = 5
PATTERN_BONUS = 15

DEFAULT_THRESHOLD = 0.6
DEFAULT_SCORE_NORMALIZER = 25.0

ORCHESTRATION_KEYWORDS = (
    "analyze all",
    "comprehensive",
    "full analysis",
    "complete",
    "everything",
    "across all",
    "multi-system",
    "coordinate",
    "business intelligence",
)

AgentFactory = Callable[[], "AgentCore"]


@dataclass(frozen=True)
class AgentProfile:
    """What the router knows about an agent when scoring requests."""

    name: str
    specialization: tuple[str, ...]
    priority: int = 3
    patterns: tuple[re.Pattern[str], ...] = field(default_factory=tuple)
    description: str = ""

    def __post_init__(self) -> None:
        keywords = tuple(k.strip().lower() for k in self.specialization if k.strip())
        object.__setattr__(self, "specialization", keywords)
        object.__setattr__(
            self,
            "patterns",
            tuple(p if isinstance(p, re.Pattern) else re.compile(p, re.IGNORECASE) for p in self.patterns),
        )


class AgentRegistry:
    """Explicit name → (profile, factory) map assembled at startup."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[AgentProfile, AgentFactory]] = {}

    def register(self, profile: AgentProfile, factory: AgentFactory) -> None:
        if profile.name in self._entries:
            raise ValueError(f"Agent {profile.name!r} is already registered")
        self._entries[profile.name] = (profile, factory)

    def profiles(self) -> list[AgentProfile]:
        return [profile for profile, _ in self._entries.values()]

    def build(self) -> dict[str, AgentCore]:
        """Instantiate every registered agent once."""
        return {name: factory() for name, (_, factory) in self._entries.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def score_agent(profile: AgentProfile, request: str, context: Mapping[str, Any]) -> float:
    """Keyword/pattern score of one agent for one request."""
    lowered = request.lower()
    score = 0.0

    for keyword in profile.specialization:
        if keyword in lowered:
            score += EXACT_MATCH_POINTS
        if keyword[:PREFIX_LENGTH] in lowered:
            score += PREFIX_MATCH_POINTS

    if context.get(PREVIOUS_AGENT) == profile.name:
        score += CONTINUITY_BONUS

    score += max(PRIORITY_CEILING - profile.priority, 0)

    if any(p.search(request) for p in profile.patterns):
        score += PATTERN_BONUS

    return score


def needs_orchestration(request: str) -> bool:
    lowered = request.lower()
    return any(k in lowered for k in ORCHESTRATION_KEYWORDS)


class AgentRouter:
    """Routes requests across a fixed set of specialist agents.

    Args:
        registry: Agents to build and route between.
        direct_agent: Agent that handles low-confidence and cross-system
            requests.  May be assigned after construction.
        threshold: Minimum confidence required to delegate.
        score_normalizer: Score that maps to confidence 1.0.
        event_bus: Optional telemetry bus for ``router.decision`` events.
    """

    def __init__(
        self,
        registry: AgentRegistry,
        *,
        direct_agent: AgentCore | None = None,
        threshold: float = DEFAULT_THRESHOLD,
        score_normalizer: float = DEFAULT_SCORE_NORMALIZER,
        event_bus: EventBus | None = None,
        name: str = "router",
    ):
        if score_normalizer <= 0:
            raise ValueError("score_normalizer must be positive")
        self.name = name
        self.threshold = threshold
        self.score_normalizer = score_normalizer
        self.direct_agent = direct_agent
        self._events = event_bus
        self._profiles = {p.name: p for p in registry.profiles()}
        self._agents = registry.build()
        logger.info(f"Router initialized with agents: {', '.join(self._agents) or '(none)'}")

    @property
    def agents(self) -> dict[str, AgentCore]:
        return dict(self._agents)

    @property
    def profiles(self) -> list[AgentProfile]:
        return list(self._profiles.values())

    def get_agent(self, name: str) -> AgentCore:
        try:
            return self._agents[name]
        except KeyError:
            raise UnknownAgentError(f"Unknown agent {name!r}. Available: {', '.join(self._agents)}") from None

    def select_best_agent(self, request: str, context: Mapping[str, Any] | None = None) -> RoutingDecision:
        """Score all agents; the top score wins if it clears the threshold."""
        context = context or {}
        scores = {name: score_agent(profile, request, context) for name, profile in self._profiles.items()}
        if not scores:
            return RoutingDecision(
                agent=None, confidence=0.0, scores={}, rationale="no agents registered", delegate=False
            )

        # max() keeps the first of equal scores, so registration order breaks ties.
        best = max(scores, key=scores.__getitem__)
        confidence = min(max(scores[best] / self.score_normalizer, 0.0), 1.0)
        delegate = confidence >= self.threshold
        rationale = (
            f"{best} scored {scores[best]:g} (confidence {confidence:.0%})"
            if delegate
            else f"best match {best} at {confidence:.0%} is below the {self.threshold:.0%} threshold"
        )
        return RoutingDecision(
            agent=best, confidence=confidence, scores=scores, rationale=rationale, delegate=delegate
        )

    async def route_to_agent(
        self,
        name: str,
        request: str,
        context: Mapping[str, Any] | None = None,
        *,
        confidence: float | None = None,
    ) -> ProcessingResult:
        """Send a request straight to a named agent."""
        try:
            agent = self.get_agent(name)
        except UnknownAgentError as e:
            logger.warning(str(e))
            return ProcessingResult(
                success=False,
                agent=self.name,
                human_message=f"No agent named {name!r} is available.",
                error=str(e),
                error_kind=ErrorKind.UNKNOWN_AGENT,
            )

        enriched = {**(context or {}), ORCHESTRATED_BY: self.name}
        if confidence is not None:
            enriched[ROUTING_CONFIDENCE] = confidence
        result = await agent.process(request, enriched)
        return replace(result, routed_to=name)

    async def process(self, request: str, context: Mapping[str, Any] | None = None) -> ProcessingResult:
        """Route and process one request. Never raises."""
        context = dict(context or {})

        if needs_orchestration(request) and self.direct_agent is not None:
            logger.info("Router: cross-system request, handling directly")
            await self._emit({"request": request, "agent": self.direct_agent.name, "orchestrated": True})
            return await self.direct_agent.process(request, {**context, MULTI_SYSTEM: True})

        decision = self.select_best_agent(request, context)
        logger.info(f"Router: {decision.rationale}")
        await self._emit(
            {
                "request": request,
                "agent": decision.agent,
                "confidence": decision.confidence,
                "delegate": decision.delegate,
                "scores": decision.scores,
            }
        )

        if decision.delegate and decision.agent is not None:
            return await self.route_to_agent(decision.agent, request, context, confidence=decision.confidence)

        if self.direct_agent is not None:
            return await self.direct_agent.process(request, context)

        return ProcessingResult(
            success=False,
            agent=self.name,
            human_message=(
                "I'm not sure which system should handle this. "
                f"Try mentioning one of: {', '.join(self._agents) or 'no agents configured'}."
            ),
            error=decision.rationale,
            error_kind=ErrorKind.LOW_CONFIDENCE,
            confidence=decision.confidence,
        )

    async def coordinate(
        self,
        request: str,
        agents: Iterable[str] | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run several agents on the same request concurrently.

        One agent failing does not affect the others; each entry in
        ``results`` is either a result dict or an error string.
        """
        names = list(agents) if agents is not None else list(self._agents)
        start = time.perf_counter()
        ctx = {**(context or {}), MULTI_SYSTEM: True}

        outcomes = await asyncio.gather(
            *(self.route_to_agent(name, request, ctx) for name in names),
            return_exceptions=True,
        )

        results: dict[str, Any] = {}
        successful = 0
        for name, outcome in zip(names, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                logger.error(f"Router: {name} failed during coordination: {outcome}")
                results[name] = {"success": False, "error": str(outcome)}
                continue
            results[name] = outcome.to_dict()
            if outcome.success:
                successful += 1

        return {
            "request": request,
            "agents": names,
            "results": results,
            "summary": f"{successful}/{len(names)} agents completed successfully",
            "successful": successful,
            "total": len(names),
            "duration": time.perf_counter() - start,
        }

    def describe(self) -> list[dict[str, Any]]:
        """Agent listing for CLIs and the orchestrator prompt."""
        return [
            {
                "name": name,
                "specialization": list(profile.specialization),
                "priority": profile.priority,
                "description": profile.description,
                "tools": self._agents[name].config.tool_names if name in self._agents else [],
            }
            for name, profile in self._profiles.items()
        ]

    async def _emit(self, payload: dict[str, Any]) -> None:
        if self._events is not None:
            await self._events.emit(Event(name=ROUTER_DECISION, payload=payload, source=self.name))

