"""System-prompt construction.

Agents do not subclass to change their prompt; they are handed a
:class:`PromptBuilder`.  :class:`StandardPromptBuilder` renders the shared
layout (identity, tools, context, live metrics, response contract) and takes
optional specialist guidance, so each specialization is one configured
instance.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from shopagent.core.utils.context import CRITICAL_OPERATION, MULTI_SYSTEM, context_flag

from .models import CircuitState
from .tools import ToolDefinition

RESPONSE_FORMAT = """\
RESPONSE REQUIREMENTS:
Always respond with valid JSON in this exact format:
{
  "analysis": "Detailed analysis of the request and context",
  "strategy": "High-level approach",
  "action": "specific_tool_name_to_execute",
  "parameters": {"key": "value"},
  "confidence": 0.95,
  "reasoning": "Why this approach is right",
  "riskAssessment": "Potential risks and mitigations",
  "businessImpact": "Expected business outcome",
  "humanMessage": "Clear explanation for the operator"
}
"action" must be exactly one of the tool names listed above.
"confidence" is a number between 0 and 1."""

CRITICAL_NOTE = "CRITICAL OPERATION: This request requires extra caution and validation."
MULTI_SYSTEM_NOTE = "MULTI-SYSTEM OPERATION: Consider cross-system dependencies and data consistency."


@dataclass(frozen=True)
class PromptContext:
    """Everything a builder may draw on for one request."""

    agent_name: str
    specialization: str
    tools: Sequence[ToolDefinition]
    context: Mapping[str, Any] = field(default_factory=dict)
    success_rate: float = 100.0
    request_count: int = 0
    circuit_state: CircuitState = CircuitState.CLOSED


class PromptBuilder(Protocol):
    def build(self, prompt_context: PromptContext) -> str: ...


class StandardPromptBuilder:
    """Shared prompt layout with optional specialist guidance.

    Args:
        guidance: Domain-specific paragraph inserted after the identity block.
        principles: Bullet points describing the agent's core identity.
    """

    def __init__(self, guidance: str = "", principles: Sequence[str] | None = None):
        self.guidance = guidance.strip()
        self.principles = list(
            principles
            or (
                "Expert-level knowledge of the specialization",
                "Error prevention and risk assessment",
                "Clear, actionable recommendations",
            )
        )

    def build(self, prompt_context: PromptContext) -> str:
        pc = prompt_context
        sections = [
            f"You are {pc.agent_name}, an AI operations agent specializing in {pc.specialization}.",
            "CORE IDENTITY:\n" + "\n".join(f"- {p}" for p in self.principles),
        ]
        if self.guidance:
            sections.append(self.guidance)
        sections.extend(
            [
                "AVAILABLE TOOLS:\n" + "\n".join(t.to_prompt_line() for t in pc.tools),
                "CURRENT CONTEXT:\n" + json.dumps(dict(pc.context), indent=2, sort_keys=True, default=str),
                "SYSTEM METRICS:\n"
                f"- Success Rate: {pc.success_rate:g}%\n"
                f"- Total Requests: {pc.request_count}\n"
                f"- Circuit Breaker: {pc.circuit_state}",
                RESPONSE_FORMAT,
            ]
        )
        if context_flag(pc.context, CRITICAL_OPERATION):
            sections.append(CRITICAL_NOTE)
        if context_flag(pc.context, MULTI_SYSTEM):
            sections.append(MULTI_SYSTEM_NOTE)
        return "\n\n".join(sections)
