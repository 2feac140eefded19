"""
LLM configuration — model tiers and provider constants.

Agents reason with one of two tiers: a fast/cheap model for routine
requests and a slower, thorough model for complex or critical ones.
"""

from __future__ import annotations

from enum import StrEnum

FAST_MODEL = "gpt-4o-mini"
THOROUGH_MODEL = "gpt-4o"

DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_TOKENS = 3000

PROVIDER_ENV_MAP: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "groq": "GROQ_API_KEY",
}


class ModelTier(StrEnum):
    FAST = "fast"
    THOROUGH = "thorough"


def infer_provider(model: str) -> str:
    """Infer the provider from a litellm-style model name."""
    if "/" in model:
        return model.split("/", 1)[0]
    if model.startswith("claude"):
        return "anthropic"
    if model.startswith("gemini"):
        return "gemini"
    return "openai"
