"""Agent framework — agent core, routing, circuit breaker, tools, orchestration."""

from shopagent.core.events import EventBus
from shopagent.core.llm.model_selector import ModelSelector

from .circuit_breaker import CircuitBreaker
from .core import AgentCore
from .dispatcher import ToolDispatcher, ToolOutcome, ToolStatus
from .models import (
    AgentConfig,
    AgentHealth,
    CircuitBreakerState,
    CircuitState,
    Decision,
    ErrorKind,
    ProcessingResult,
    RoutingDecision,
)
from .orchestrator import create_orchestrator
from .prompts import PromptBuilder, PromptContext, StandardPromptBuilder
from .router import AgentProfile, AgentRegistry, AgentRouter
from .tools import ToolContext, ToolDefinition, http_tool
from .validator import ResponseValidator

__all__ = [
    "AgentConfig",
    "AgentCore",
    "AgentHealth",
    "AgentProfile",
    "AgentRegistry",
    "AgentRouter",
    "CircuitBreaker",
    "CircuitBreakerState",
    "CircuitState",
    "Decision",
    "ErrorKind",
    "EventBus",
    "ModelSelector",
    "ProcessingResult",
    "PromptBuilder",
    "PromptContext",
    "ResponseValidator",
    "RoutingDecision",
    "StandardPromptBuilder",
    "ToolContext",
    "ToolDefinition",
    "ToolDispatcher",
    "ToolOutcome",
    "ToolStatus",
    "create_orchestrator",
    "http_tool",
]
