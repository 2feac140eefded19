"""User-facing error text.

Keeps internal details (tracebacks, URLs, API keys) out of the
``human_message`` of a failed result, and provides the static emergency
fallback returned when the reasoning service cannot be reached at all.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from shopagent.core.exceptions import RetryExhausted

CIRCUIT_OPEN_MESSAGE = "Service is temporarily unavailable. Please try again later."


def friendly_error_message(error: BaseException) -> str:
    """Return a short, user-readable message for common error types."""
    if isinstance(error, RetryExhausted):
        return (
            f"The AI service did not respond after {error.attempts} attempts. "
            "Please try again or rephrase your request."
        )

    error_type = type(error).__name__.lower()
    error_str = str(error).lower()

    if "ratelimit" in error_type or "rate limit" in error_str:
        return "The AI service is busy right now. Please try again in a moment."
    if "timeout" in error_type or "timed out" in error_str:
        return "The request took too long. Please try again."
    if "connection" in error_type:
        return "Having trouble connecting to the AI service. Please check if it is available."
    if "authentication" in error_type or "api key" in error_str:
        return "The AI service rejected our credentials. This has been logged for investigation."
    return "Something unexpected happened. Please try again."


def emergency_fallback(
    request: str,
    *,
    agent: str,
    specialization: str,
    tool_names: Sequence[str],
    error: BaseException,
    metrics: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Best-effort static help when no reasoning is possible."""
    lowered = request.lower()
    if "help" in lowered:
        return {
            "message": f"I'm {agent}, specialized in {specialization}. Available tools: {', '.join(tool_names)}",
        }
    if "status" in lowered:
        return {"message": f"Agent operational but encountered error: {friendly_error_message(error)}"}
    if "info" in lowered:
        return {
            "agent": agent,
            "specialization": specialization,
            "tool_count": len(tool_names),
            "metrics": metrics or {},
        }
    return {"message": 'Emergency fallback: basic agent information available. Try "help" for commands.'}
