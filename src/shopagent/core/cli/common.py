"""Shared setup logic for CLI commands."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
from loguru import logger

if TYPE_CHECKING:
    from shopagent.agent.router import AgentRouter
    from shopagent.core.config import Config
    from shopagent.core.config_schema import AgentEntry, ShopAgentConfig
    from shopagent.core.events import EventBus
    from shopagent.core.llm.client import ReasoningService

SHOPAGENT_DIR = Path.home() / ".shopagent"
CONFIG_PATH = SHOPAGENT_DIR / "config.yaml"

_AGENT_SETTINGS = (
    "max_retries",
    "timeout",
    "circuit_breaker_threshold",
    "circuit_cooldown",
    "cache_ttl",
    "cache_capacity",
)


def load_config(path: str | None = None) -> Config:
    """Load config from *path*, falling back to ~/.shopagent/config.yaml."""
    from shopagent.core.config import Config

    config_file = path or str(CONFIG_PATH)
    if path and not Path(path).expanduser().exists():
        raise click.BadParameter(f"Config file not found: {path}", param_hint="--config")
    return Config(config_file=config_file, data_dir=str(SHOPAGENT_DIR))


def set_api_key_env(settings: ShopAgentConfig) -> None:
    """Export ``llm.api_key`` under the provider's env var so litellm finds it."""
    from shopagent.core.llm.config import PROVIDER_ENV_MAP, infer_provider

    api_key = settings.llm.api_key
    if not api_key:
        return
    for model in (settings.llm.fast_model, settings.llm.thorough_model):
        env_var = PROVIDER_ENV_MAP.get(infer_provider(model))
        if env_var and env_var not in os.environ:
            os.environ[env_var] = api_key


def agent_settings(settings: ShopAgentConfig, entry: AgentEntry | None = None) -> dict[str, Any]:
    """Agent defaults with any per-agent overrides applied."""
    values = settings.agents.defaults.model_dump()
    if entry is not None:
        for key in _AGENT_SETTINGS:
            override = getattr(entry, key)
            if override is not None:
                values[key] = override
    return {k: values[k] for k in _AGENT_SETTINGS}


def parse_context(pairs: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``KEY=VALUE`` options into a context dict (true/false become bools)."""
    context: dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"Expected KEY=VALUE, got {pair!r}", param_hint="--context")
        lowered = value.strip().lower()
        context[key.strip()] = {"true": True, "false": False}.get(lowered, value)
    return context


def build_router(
    config: Config,
    *,
    reasoning: ReasoningService | None = None,
    event_bus: EventBus | None = None,
) -> AgentRouter:
    """Create every configured agent, the router and its orchestrator."""
    from shopagent.agent.core import AgentCore
    from shopagent.agent.models import AgentConfig
    from shopagent.agent.orchestrator import create_orchestrator
    from shopagent.agent.router import AgentProfile, AgentRegistry, AgentRouter
    from shopagent.agent.specialists import DEFAULT_PROFILES, SPECIALIZATIONS, prompt_builder_for
    from shopagent.agent.tools import http_tool
    from shopagent.core.exceptions import ConfigurationError
    from shopagent.core.llm.client import LLMClient
    from shopagent.core.llm.model_selector import ModelSelector
    from shopagent.core.llm.retry import RetryExecutor, RetryPolicy

    settings = config.validated()
    set_api_key_env(settings)

    if reasoning is None:
        reasoning = LLMClient(
            model=settings.llm.fast_model,
            temperature=settings.llm.temperature,
            max_tokens=settings.llm.max_tokens,
            api_key=settings.llm.api_key or None,
        )
    selector = ModelSelector(settings.llm.fast_model, settings.llm.thorough_model)
    policy = RetryPolicy(
        base_delay=settings.retry.base_delay,
        max_delay=settings.retry.max_delay,
        jitter=settings.retry.jitter,
    )

    registry = AgentRegistry()
    for name, entry in settings.agents.entries.items():
        if not entry.enabled:
            logger.debug(f"Agent {name} disabled in config")
            continue
        if not entry.tools:
            logger.warning(f"Agent {name} has no tools configured, skipping")
            continue

        profile = DEFAULT_PROFILES.get(name)
        if entry.keywords or profile is None:
            if not entry.keywords:
                raise ConfigurationError(f"Agent {name!r} needs routing keywords")
            profile = AgentProfile(
                name=name,
                specialization=tuple(entry.keywords),
                priority=entry.priority or 3,
                patterns=tuple(entry.patterns),
                description=entry.description,
            )

        tools = tuple(
            http_tool(
                t.name,
                t.description,
                t.url,
                method=t.method,
                parameters=t.parameters or None,
                headers=t.headers,
                timeout=t.timeout,
            )
            for t in entry.tools
        )
        agent_config = AgentConfig(
            name=name,
            specialization=entry.specialization or SPECIALIZATIONS.get(name) or ", ".join(profile.specialization),
            tools=tools,
            **agent_settings(settings, entry),
        )

        def factory(agent_config: AgentConfig = agent_config) -> AgentCore:
            return AgentCore(
                agent_config,
                reasoning,
                prompt_builder=prompt_builder_for(agent_config.name),
                model_selector=selector,
                retry_executor=RetryExecutor(policy, name=agent_config.name),
                event_bus=event_bus,
            )

        registry.register(profile, factory)

    router = AgentRouter(
        registry,
        threshold=settings.router.threshold,
        score_normalizer=settings.router.score_normalizer,
        event_bus=event_bus,
    )
    create_orchestrator(
        router,
        reasoning,
        event_bus=event_bus,
        model_selector=selector,
        retry_executor=RetryExecutor(policy, name="orchestrator"),
        **agent_settings(settings),
    )
    return router
