"""Tool framework — named operations an agent can dispatch to.

Tools are supplied by the host (storefront catalog, payments, content,
data store) and registered on an agent at construction.  The executor is
called as ``function(parameters, context)`` and may be sync or async.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ToolContext:
    """Execution context handed to every tool call."""

    agent: str
    context: Mapping[str, Any] = field(default_factory=dict)
    request: str = ""


ToolFunction = Callable[[dict[str, Any], ToolContext], Any]


@dataclass
class ToolDefinition:
    """A tool that an agent can invoke on behalf of a resolved action."""

    name: str
    description: str
    function: ToolFunction
    parameters: dict[str, Any] | None = None  # loose schema: param name -> type/description

    def to_prompt_line(self) -> str:
        """Render the tool for the system prompt's tool list."""
        line = f"- {self.name}: {self.description}"
        if self.parameters:
            line += f" (params: {json.dumps(self.parameters, sort_keys=True)})"
        return line


from .http_tool import http_tool  # noqa: E402

__all__ = ["ToolContext", "ToolDefinition", "ToolFunction", "http_tool"]
