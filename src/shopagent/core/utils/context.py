"""Request-context keys the agents interpret, and flag parsing.

Every other context key is opaque pass-through.  Flags may arrive as
booleans or as strings from the CLI and env (``"true"``, ``"1"``, ...).
"""

from collections.abc import Mapping
from typing import Any

PREVIOUS_AGENT = "previous_agent"
MULTI_SYSTEM = "multi_system"
CRITICAL_OPERATION = "critical_operation"
NO_CACHE = "no_cache"
ORCHESTRATED_BY = "orchestrated_by"
ROUTING_CONFIDENCE = "routing_confidence"

_TRUTHY = {"1", "true", "yes", "on"}


def context_flag(context: Mapping[str, Any], key: str) -> bool:
    """True if *key* is set in *context* (``"false"``/``"0"`` strings count as unset)."""
    value = context.get(key)
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)
