"""Parse reasoning-service output into a :class:`Decision`.

The primary path expects a JSON object (optionally wrapped in code fences)
with ``analysis``, ``action``, ``confidence`` and ``humanMessage``.  When that
fails for any reason, the fallback path infers an action from keywords in
the reply and the original request.  The fallback is best-effort: it always
lands on *some* registered tool, not necessarily the one a human would pick.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from typing import Any

from loguru import logger

from shopagent.core.exceptions import ResponseValidationError, UnknownAction

from .models import Decision

REQUIRED_FIELDS = ("analysis", "action", "confidence", "humanMessage")
FALLBACK_CONFIDENCE = 0.6

# Extra fields the prompt asks for; kept verbatim on the decision.
_EXTRA_FIELDS = ("strategy", "riskAssessment", "businessImpact")

_FENCE_OPEN = re.compile(r"^```[\w-]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")
_INLINE_CODE = re.compile(r"^`(.+)`$", re.DOTALL)

# (keyword pattern, tool-name stems it has affinity with), scanned in order.
_ACTION_FAMILIES: tuple[tuple[re.Pattern[str], tuple[str, ...]], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), stems)
    for pattern, stems in (
        (r"\b(?:list|show|display|get)\b", ("list", "get", "show")),
        (r"\b(?:create|add|make|new)\b", ("create", "add")),
        (r"\b(?:update|modify|change|edit)\b", ("update", "modify", "edit")),
        (r"\b(?:delete|remove|destroy)\b", ("delete", "remove")),
        (r"\b(?:sync|synchronize|provision)\b", ("sync", "provision")),
        (r"\b(?:analy[sz]e|check|verify|examine)\b", ("analyze", "analyse", "check", "verify")),
        (r"\b(?:status|health|monitor)\b", ("status", "health", "check", "monitor")),
    )
)


def strip_code_fences(text: str) -> str:
    """Remove surrounding ```json fences or single backticks."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned)
    cleaned = _FENCE_CLOSE.sub("", cleaned)
    match = _INLINE_CODE.match(cleaned)
    return match.group(1) if match else cleaned


def _load_object(text: str) -> dict[str, Any]:
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as first_error:
        # Prose around the object: take the outermost braces.
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ResponseValidationError(f"Response is not JSON: {first_error}") from first_error
        try:
            parsed = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as e:
            raise ResponseValidationError(f"Response is not JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ResponseValidationError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


class ResponseValidator:
    """Validates decisions against one agent's tool registry.

    Args:
        tool_names: Registered tool names, in registration order.  The first
            one is the last-resort fallback action.
        agent_name: Label used in logs.
    """

    def __init__(self, tool_names: Sequence[str], agent_name: str = "agent"):
        if not tool_names:
            raise ValueError("ResponseValidator needs at least one tool name")
        self.tool_names = list(tool_names)
        self.agent_name = agent_name

    def parse(self, raw: str) -> Decision:
        """Strict parse.

        Raises:
            ResponseValidationError: Malformed JSON, missing fields, bad confidence.
            UnknownAction: ``action`` is not a registered tool.
        """
        data = _load_object(raw)

        missing = [f for f in REQUIRED_FIELDS if f not in data]
        if missing:
            raise ResponseValidationError(f"Missing required fields: {', '.join(missing)}")

        confidence = data["confidence"]
        if isinstance(confidence, bool) or not isinstance(confidence, int | float) or not 0 <= confidence <= 1:
            raise ResponseValidationError("Confidence must be a number between 0 and 1")

        action = data["action"]
        if not isinstance(action, str) or action not in self.tool_names:
            raise UnknownAction(str(action), self.tool_names)

        parameters = data.get("parameters") or {}
        if not isinstance(parameters, dict):
            raise ResponseValidationError("parameters must be an object")

        return Decision(
            analysis=str(data["analysis"]),
            action=action,
            parameters=parameters,
            confidence=float(confidence),
            reasoning=str(data.get("reasoning", "")),
            human_message=str(data["humanMessage"]),
            extras={k: data[k] for k in _EXTRA_FIELDS if k in data},
        )

    def validate(self, raw: str, request: str = "") -> Decision:
        """Parse *raw*, degrading to :meth:`fallback` on any validation failure. Never raises."""
        try:
            return self.parse(raw)
        except Exception as e:
            logger.warning(f"[{self.agent_name}] Response validation failed, using fallback: {e}")
            return self.fallback(raw, request, e)

    def fallback(self, raw: str, request: str, error: BaseException | None = None) -> Decision:
        raw = raw if isinstance(raw, str) else str(raw or "")
        action = self.infer_action(f"{raw} {request}")
        return Decision(
            analysis="Fallback parsing - response format was invalid",
            action=action,
            parameters={"fallback_response": raw},
            confidence=FALLBACK_CONFIDENCE,
            reasoning="Extracted from text analysis due to parsing failure",
            human_message=raw.strip() or f"Interpreted the request as {action}.",
            fallback=True,
            parse_error=str(error) if error is not None else None,
        )

    def infer_action(self, text: str) -> str:
        """Map free text to a registered tool by keyword family and name affinity."""
        for pattern, stems in _ACTION_FAMILIES:
            if not pattern.search(text):
                continue
            for name in self.tool_names:
                lowered = name.lower()
                if any(stem in lowered for stem in stems):
                    return name
            # First matching family decides, even without a close tool.
            break
        return self.tool_names[0]
