"""Tool dispatch: resolve an action name and run the matching tool.

Neither a missing tool nor a failing executor raises — both are expected,
reportable conditions and come back as a :class:`ToolOutcome`.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from loguru import logger

from .tools import ToolContext, ToolDefinition


class ToolStatus(StrEnum):
    OK = "ok"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class ToolOutcome:
    status: ToolStatus
    tool: str
    result: Any = None
    error: str | None = None
    duration: float = 0.0
    available_tools: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == ToolStatus.OK


class ToolDispatcher:
    """Runs registered tools by name for one agent."""

    def __init__(self, tools: Mapping[str, ToolDefinition], agent_name: str = "agent"):
        self._tools = dict(tools)
        self.agent_name = agent_name

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    async def execute(
        self,
        action: str,
        parameters: Mapping[str, Any] | None = None,
        context: Mapping[str, Any] | None = None,
        *,
        request: str = "",
    ) -> ToolOutcome:
        tool = self._tools.get(action)
        if tool is None:
            logger.warning(f"[{self.agent_name}] Tool not found: {action}")
            return ToolOutcome(
                status=ToolStatus.NOT_FOUND,
                tool=action,
                error=f"Tool not found: {action}",
                available_tools=self.tool_names,
            )

        ctx = ToolContext(agent=self.agent_name, context=dict(context or {}), request=request)
        params = dict(parameters or {})
        logger.debug(f"[{self.agent_name}] Executing {action}")
        start = time.perf_counter()
        try:
            if inspect.iscoroutinefunction(tool.function):
                result = await tool.function(params, ctx)
            else:
                result = await asyncio.to_thread(tool.function, params, ctx)
                if inspect.isawaitable(result):
                    result = await result
        except Exception as e:
            duration = time.perf_counter() - start
            logger.error(f"[{self.agent_name}] Tool {action} failed after {duration:.3f}s: {e}")
            return ToolOutcome(
                status=ToolStatus.FAILED,
                tool=action,
                error=str(e) or type(e).__name__,
                duration=duration,
            )

        duration = time.perf_counter() - start
        logger.debug(f"[{self.agent_name}] {action} completed in {duration:.3f}s")
        return ToolOutcome(status=ToolStatus.OK, tool=action, result=result, duration=duration)
