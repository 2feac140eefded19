"""Pydantic models for config validation.

``Config.validated()`` turns the merged config dict into a typed
``ShopAgentConfig``.  Env-var overrides arrive as strings; pydantic's lax
mode coerces them to the declared numeric types.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PathsConfig(BaseModel):
    """File-system paths used by the application."""

    data_dir: Path = Path("~/.shopagent")
    log_dir: Path | None = None

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def _expand_user(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v


class LLMConfig(BaseModel):
    """Reasoning-service settings."""

    fast_model: str = "gpt-4o-mini"
    thorough_model: str = "gpt-4o"
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    max_tokens: int = Field(default=3000, gt=0)
    api_key: str = ""


class AgentDefaults(BaseModel):
    """Per-agent resilience settings applied unless an agent overrides them."""

    max_retries: int = Field(default=3, ge=1)
    timeout: float = Field(default=30.0, gt=0)
    circuit_breaker_threshold: int = Field(default=5, ge=1)
    circuit_cooldown: float = Field(default=60.0, ge=0)
    cache_ttl: float = Field(default=300.0, ge=0)
    cache_capacity: int = Field(default=100, ge=1)


class RetrySettings(BaseModel):
    """Backoff shape for reasoning-service retries."""

    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=10.0, ge=0)
    jitter: float = Field(default=1.0, ge=0)


class RouterSettings(BaseModel):
    """Routing thresholds."""

    threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    score_normalizer: float = Field(default=25.0, gt=0)


class ToolEntry(BaseModel):
    """An HTTP-backed storefront tool declared in config."""

    name: str
    description: str
    url: str
    method: str = "POST"
    parameters: dict[str, Any] = {}
    headers: dict[str, str] = {}
    timeout: float = 15.0


class AgentEntry(BaseModel):
    """One specialist agent: enable flag, routing hints, overrides, and its tools.

    Routing hints (``keywords``, ``patterns``, ``priority``) replace the
    built-in profile when given; they are required for agents with no
    built-in profile.
    """

    model_config = ConfigDict(extra="allow")

    enabled: bool = True
    specialization: str = ""
    keywords: list[str] = []
    patterns: list[str] = []
    priority: int | None = Field(default=None, ge=1)
    description: str = ""
    max_retries: int | None = Field(default=None, ge=1)
    timeout: float | None = Field(default=None, gt=0)
    circuit_breaker_threshold: int | None = Field(default=None, ge=1)
    circuit_cooldown: float | None = Field(default=None, ge=0)
    cache_ttl: float | None = Field(default=None, ge=0)
    cache_capacity: int | None = Field(default=None, ge=1)
    tools: list[ToolEntry] = []

    @field_validator("keywords")
    @classmethod
    def _non_blank_keywords(cls, v: list[str]) -> list[str]:
        if any(not k.strip() for k in v):
            raise ValueError("keywords must not be blank")
        return [k.strip() for k in v]

    @field_validator("patterns")
    @classmethod
    def _compilable_patterns(cls, v: list[str]) -> list[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid pattern {pattern!r}: {e}") from e
        return v

    @model_validator(mode="after")
    def _unique_tool_names(self) -> AgentEntry:
        names = [t.name for t in self.tools]
        if len(names) != len(set(names)):
            raise ValueError(f"duplicate tool names: {sorted(names)}")
        return self


class AgentsConfig(BaseModel):
    """Agent defaults plus per-agent entries keyed by agent name.

    Any key other than ``defaults`` is an agent entry, so YAML reads naturally::

        agents:
          defaults: {cache_ttl: 120}
          payments:
            tools: [...]
    """

    defaults: AgentDefaults = AgentDefaults()
    entries: dict[str, AgentEntry] = {}

    @model_validator(mode="before")
    @classmethod
    def _collect_entries(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        entries = dict(data.pop("entries", None) or {})
        for key in [k for k in data if k != "defaults"]:
            entries[key] = data.pop(key) or {}
        data["entries"] = entries
        return data


class ShopAgentConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so hosts can bolt on custom sections
    without touching this schema.
    """

    model_config = ConfigDict(extra="allow")

    paths: PathsConfig = PathsConfig()
    llm: LLMConfig = LLMConfig()
    agents: AgentsConfig = AgentsConfig()
    retry: RetrySettings = RetrySettings()
    router: RouterSettings = RouterSettings()
