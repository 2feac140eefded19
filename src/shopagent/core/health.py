"""Aggregated health check — one call to assess every agent.

Runs each agent's ``health_check()`` concurrently and folds the answers into
a single status for monitoring and the ``shopagent health`` command.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from shopagent.agent.router import AgentRouter

HEALTHY = "healthy"
DEGRADED = "degraded"
CRITICAL = "critical"


@dataclass
class SystemHealth:
    """Snapshot of system health across all agents."""

    status: str = HEALTHY
    """``healthy`` (all agents), ``degraded`` (some) or ``critical`` (none)."""

    agents: dict[str, dict[str, Any]] = field(default_factory=dict)
    """Per-agent health reports."""

    issues: list[str] = field(default_factory=list)
    """Human-readable problems found."""

    @property
    def healthy_count(self) -> int:
        return sum(1 for report in self.agents.values() if report.get("status") == HEALTHY)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["healthy_count"] = self.healthy_count
        data["total"] = len(self.agents)
        return data


def classify(healthy: int, total: int) -> str:
    if total == 0 or healthy == 0:
        return CRITICAL
    if healthy == total:
        return HEALTHY
    return DEGRADED


async def check_system_health(router: AgentRouter, *, include_direct: bool = False) -> SystemHealth:
    """Assess every routed agent (and optionally the direct agent).

    Returns:
        A :class:`SystemHealth` snapshot.
    """
    agents = dict(router.agents)
    if include_direct and router.direct_agent is not None:
        agents[router.direct_agent.name] = router.direct_agent

    names = list(agents)
    reports = await asyncio.gather(*(agents[n].health_check() for n in names), return_exceptions=True)

    health = SystemHealth()
    for name, report in zip(names, reports, strict=True):
        if isinstance(report, BaseException):
            logger.error(f"Health check for {name} failed: {report}")
            health.agents[name] = {"status": CRITICAL, "error": str(report)}
            health.issues.append(f"{name}: health check failed ({report})")
            continue

        health.agents[name] = report.to_dict()
        if report.status == HEALTHY:
            continue
        if not report.reasoning_service_reachable:
            health.issues.append(f"{name}: reasoning service unreachable")
        if report.circuit_breaker.state != "closed":
            health.issues.append(f"{name}: circuit breaker {report.circuit_breaker.state}")

    health.status = classify(health.healthy_count, len(names))
    logger.info(f"System health: {health.status} ({health.healthy_count}/{len(names)} agents healthy)")
    return health
