"""Data models for the agent core.

Pure data: agent settings, breaker snapshots, decisions, results, metrics
and routing decisions.  Results are frozen; ``Metrics`` is the one mutable
model and is only touched under its owning agent's lock.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from shopagent.core.exceptions import ConfigurationError
from shopagent.core.utils.context import (  # noqa: F401
    CRITICAL_OPERATION,
    MULTI_SYSTEM,
    NO_CACHE,
    ORCHESTRATED_BY,
    PREVIOUS_AGENT,
    ROUTING_CONFIDENCE,
)

if TYPE_CHECKING:
    from .dispatcher import ToolOutcome
    from .tools import ToolDefinition


def utc_now() -> str:
    return datetime.now(UTC).isoformat()


class CircuitState(StrEnum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class ErrorKind(StrEnum):
    CIRCUIT_OPEN = "circuit_open"
    RETRY_EXHAUSTED = "retry_exhausted"
    TOOL_NOT_FOUND = "tool_not_found"
    TOOL_FAILED = "tool_failed"
    LOW_CONFIDENCE = "low_confidence"
    UNKNOWN_AGENT = "unknown_agent"
    INTERNAL = "internal"


@dataclass(frozen=True)
class AgentConfig:
    """Immutable per-agent settings, fixed at construction."""

    name: str
    specialization: str
    tools: tuple[ToolDefinition, ...]
    max_retries: int = 3
    timeout: float = 30.0
    circuit_breaker_threshold: int = 5
    circuit_cooldown: float = 60.0
    cache_ttl: float = 300.0
    cache_capacity: int = 100

    def __post_init__(self) -> None:
        object.__setattr__(self, "tools", tuple(self.tools))
        if not self.tools:
            raise ConfigurationError(f"Agent {self.name!r} needs at least one tool")
        names = [t.name for t in self.tools]
        if len(names) != len(set(names)):
            raise ConfigurationError(f"Agent {self.name!r} has duplicate tool names: {names}")
        if self.max_retries < 1:
            raise ConfigurationError("max_retries must be >= 1")

    @property
    def tool_names(self) -> list[str]:
        return [t.name for t in self.tools]

    @property
    def tool_registry(self) -> Mapping[str, ToolDefinition]:
        return MappingProxyType({t.name: t for t in self.tools})


@dataclass(frozen=True)
class CircuitBreakerState:
    """Point-in-time view of a breaker."""

    state: CircuitState
    failure_count: int
    last_failure_time: float | None


@dataclass(frozen=True)
class Decision:
    """A validated (or fallback-inferred) plan from the reasoning service."""

    analysis: str
    action: str
    parameters: dict[str, Any]
    confidence: float
    reasoning: str
    human_message: str
    fallback: bool = False
    parse_error: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProcessingResult:
    """What every path through ``AgentCore.process`` returns."""

    success: bool
    agent: str
    human_message: str
    analysis: str = ""
    action: str | None = None
    parameters: dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0
    reasoning: str = ""
    tool_result: Any = None
    execution: ToolOutcome | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    model: str | None = None
    cached: bool = False
    fallback: bool = False
    parse_error: str | None = None
    emergency_fallback: dict[str, Any] | None = None
    routed_to: str | None = None
    circuit_state: CircuitState | None = None
    extras: dict[str, Any] = field(default_factory=dict)
    duration: float = 0.0
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def summary(self) -> str:
        """One human-readable block for CLIs and logs."""
        lines = [f"{'OK' if self.success else 'FAILED'} [{self.routed_to or self.agent}]"]
        if self.action:
            lines.append(f"Action: {self.action} (confidence {self.confidence:.0%})")
        if self.human_message:
            lines.append(self.human_message)
        if self.error:
            lines.append(f"Error: {self.error}")
        return "\n".join(lines)


@dataclass
class Metrics:
    request_count: int = 0
    success_count: int = 0
    error_count: int = 0
    average_response_time: float = 0.0
    last_error: str | None = None
    _timed: int = field(default=0, repr=False)

    def record(self, duration: float, *, success: bool, error: str | None = None) -> None:
        if success:
            self.success_count += 1
        else:
            self.error_count += 1
            if error:
                self.last_error = error
        self._timed += 1
        self.average_response_time += (duration - self.average_response_time) / self._timed

    @property
    def success_rate(self) -> float:
        """Percentage of completed requests that succeeded (100 before any request)."""
        completed = self.success_count + self.error_count
        if completed == 0:
            return 100.0
        return round(self.success_count / completed * 100, 1)

    def snapshot(self) -> dict[str, Any]:
        return {
            "request_count": self.request_count,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "average_response_time": round(self.average_response_time, 4),
            "success_rate": self.success_rate,
            "last_error": self.last_error,
        }


@dataclass(frozen=True)
class RoutingDecision:
    """Which agent should handle a request, and how sure the router is."""

    agent: str | None
    confidence: float
    scores: dict[str, float]
    rationale: str
    delegate: bool


@dataclass(frozen=True)
class AgentHealth:
    agent: str
    status: str  # "healthy" | "degraded"
    metrics: dict[str, Any]
    circuit_breaker: CircuitBreakerState
    reasoning_service_reachable: bool
    tool_count: int = 0
    cache_size: int = 0
    error: str | None = None
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
