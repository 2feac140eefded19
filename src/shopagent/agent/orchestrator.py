"""Orchestrator agent — the router's "handle directly" agent.

A regular :class:`AgentCore` whose tools delegate back into the router:
one ``route_to_<agent>`` tool per specialist, ``multi_agent_analysis`` for
cross-system questions and ``system_health_check``.
"""

from __future__ import annotations

from typing import Any

from shopagent.core.events import EventBus
from shopagent.core.health import check_system_health
from shopagent.core.llm.client import ReasoningService
from shopagent.core.llm.model_selector import ModelSelector
from shopagent.core.llm.retry import RetryExecutor

from .core import AgentCore
from .models import AgentConfig
from .prompts import StandardPromptBuilder
from .router import AgentRouter
from .tools import ToolContext, ToolDefinition

ORCHESTRATOR_NAME = "orchestrator"

_PRINCIPLES = (
    "Understands how payments, content, order data and marketing fit together",
    "Delegates to the specialist that owns the system in question",
    "Coordinates several specialists when a question spans systems",
)


class DelegationError(RuntimeError):
    """A delegated agent returned an unsuccessful result."""


def _query(params: dict[str, Any], ctx: ToolContext) -> str:
    return str(params.get("query") or params.get("request") or ctx.request)


def _route_tool(router: AgentRouter, name: str, description: str) -> ToolDefinition:
    async def _route(params: dict[str, Any], ctx: ToolContext) -> dict[str, Any]:
        result = await router.route_to_agent(name, _query(params, ctx), ctx.context)
        if not result.success:
            raise DelegationError(f"{name}: {result.error or result.human_message}")
        return result.to_dict()

    return ToolDefinition(
        name=f"route_to_{name}",
        description=f"Route the request to the {name} agent ({description or name})",
        function=_route,
        parameters={"query": "string - the request to forward"},
    )


def build_orchestrator_tools(router: AgentRouter) -> list[ToolDefinition]:
    tools = [_route_tool(router, p.name, p.description) for p in router.profiles if p.name in router.agents]

    async def _multi_agent_analysis(params: dict[str, Any], ctx: ToolContext) -> dict[str, Any]:
        agents = params.get("agents") or None
        if isinstance(agents, str):
            agents = [a.strip() for a in agents.split(",") if a.strip()]
        return await router.coordinate(_query(params, ctx), agents, ctx.context)

    async def _system_health_check(params: dict[str, Any], ctx: ToolContext) -> dict[str, Any]:
        health = await check_system_health(router)
        return health.to_dict()

    tools.append(
        ToolDefinition(
            name="multi_agent_analysis",
            description="Run several agents on the request concurrently and collect their results",
            function=_multi_agent_analysis,
            parameters={"query": "string", "agents": "list of agent names (default: all)"},
        )
    )
    tools.append(
        ToolDefinition(
            name="system_health_check",
            description="Check the health of every agent and its reasoning service",
            function=_system_health_check,
        )
    )
    return tools


def create_orchestrator(
    router: AgentRouter,
    reasoning: ReasoningService,
    *,
    name: str = ORCHESTRATOR_NAME,
    event_bus: EventBus | None = None,
    model_selector: ModelSelector | None = None,
    retry_executor: RetryExecutor | None = None,
    **settings: Any,
) -> AgentCore:
    """Build the orchestrator and install it as ``router.direct_agent``.

    Extra keyword arguments are passed to :class:`AgentConfig` (timeouts,
    breaker threshold, cache settings).
    """
    agent_lines = "\n".join(
        f"- {a['name']}: {a['description'] or ', '.join(a['specialization'])}" for a in router.describe()
    )
    builder = StandardPromptBuilder(
        guidance=f"SPECIALIST AGENTS:\n{agent_lines}" if agent_lines else "",
        principles=_PRINCIPLES,
    )
    config = AgentConfig(
        name=name,
        specialization="cross-system coordination of the storefront agents",
        tools=tuple(build_orchestrator_tools(router)),
        **settings,
    )
    orchestrator = AgentCore(
        config,
        reasoning,
        prompt_builder=builder,
        model_selector=model_selector,
        retry_executor=retry_executor,
        event_bus=event_bus,
    )
    router.direct_agent = orchestrator
    return orchestrator
