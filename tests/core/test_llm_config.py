"""Tests for shopagent.core.llm.config."""

import pytest

from shopagent.core.llm.config import ModelTier, infer_provider


@pytest.mark.parametrize(
    "model, provider",
    [
        ("gpt-4o", "openai"),
        ("claude-3-5-haiku", "anthropic"),
        ("gemini-2.5-flash", "gemini"),
        ("anthropic/claude-sonnet-4-20250514", "anthropic"),
        ("groq/llama-3.1-70b", "groq"),
    ],
)
def test_infer_provider(model, provider):
    assert infer_provider(model) == provider


def test_tiers_are_strings():
    assert ModelTier.FAST == "fast"
    assert ModelTier("thorough") is ModelTier.THOROUGH
