"""
shopagent exception hierarchy.

All shopagent exceptions inherit from ShopAgentError, making it easy for
callers to catch library-level errors while still distinguishing specific
failure modes.  Most of these never escape ``AgentCore.process`` — they are
converted into a failed ``ProcessingResult`` at that boundary.
"""

from __future__ import annotations


class ShopAgentError(Exception):
    """Base exception class for all shopagent errors."""


class ConfigurationError(ShopAgentError):
    """Raised for configuration errors (missing keys, invalid values)."""


class APIError(ShopAgentError):
    """Raised for external API communication errors."""


class ReasoningServiceError(APIError):
    """Raised when the reasoning service fails or returns nothing usable."""


class RetryExhausted(ShopAgentError):
    """Raised when every attempt of a retried operation failed."""

    def __init__(self, last_error: BaseException, attempts: int):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"Retries exhausted after {attempts} attempts: {last_error}")


class ResponseValidationError(ShopAgentError):
    """Raised when reasoning output cannot be parsed into a decision."""


class UnknownAction(ResponseValidationError):
    """Raised when a decision names a tool the agent does not have."""

    def __init__(self, action: str, available: list[str]):
        self.action = action
        self.available = available
        super().__init__(f"Unknown action: {action}. Available: {', '.join(available)}")


class UnknownAgentError(ShopAgentError):
    """Raised when a router is asked for an agent it does not hold."""
