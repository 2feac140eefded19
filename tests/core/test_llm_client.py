"""Tests for shopagent.core.llm.client — the LiteLLM reasoning service."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from shopagent.core.exceptions import ReasoningServiceError
from shopagent.core.llm import client as client_module
from shopagent.core.llm.client import LLMClient, ReasoningService


def _make_response(content="Hello"):
    """Build a mock litellm response."""
    msg = MagicMock()
    msg.content = content
    choice = MagicMock()
    choice.message = msg
    return MagicMock(choices=[choice])


@pytest.fixture
def acompletion():
    mock = AsyncMock(return_value=_make_response('{"action": "list_products"}'))
    with patch.object(client_module.litellm, "acompletion", mock):
        yield mock


class TestComplete:
    async def test_returns_reply_text(self, acompletion):
        llm = LLMClient(model="gpt-4o-mini")
        text = await llm.complete("You are a storefront agent.", "list products")

        assert text == '{"action": "list_products"}'
        kwargs = acompletion.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == [
            {"role": "system", "content": "You are a storefront agent."},
            {"role": "user", "content": "list products"},
        ]

    async def test_litellm_retries_disabled(self, acompletion):
        await LLMClient().complete("sys", "req")
        assert acompletion.call_args.kwargs["num_retries"] == 0

    async def test_model_override(self, acompletion):
        await LLMClient(model="gpt-4o-mini").complete("sys", "req", model="gpt-4o")
        assert acompletion.call_args.kwargs["model"] == "gpt-4o"

    async def test_api_key_forwarded(self, acompletion):
        await LLMClient(api_key="sk-test").complete("sys", "req")
        assert acompletion.call_args.kwargs["api_key"] == "sk-test"

    async def test_no_api_key_not_sent(self, acompletion):
        await LLMClient().complete("sys", "req")
        assert "api_key" not in acompletion.call_args.kwargs

    async def test_empty_reply_raises(self, acompletion):
        acompletion.return_value = _make_response("   ")
        with pytest.raises(ReasoningServiceError, match="No response"):
            await LLMClient().complete("sys", "req")

    async def test_no_choices_raises(self, acompletion):
        acompletion.return_value = MagicMock(choices=[])
        with pytest.raises(ReasoningServiceError):
            await LLMClient().complete("sys", "req")

    async def test_provider_errors_propagate(self, acompletion):
        acompletion.side_effect = ConnectionError("reset")
        with pytest.raises(ConnectionError):
            await LLMClient().complete("sys", "req")


class TestPing:
    async def test_reachable(self, acompletion):
        assert await LLMClient().ping() is True
        assert acompletion.call_args.kwargs["max_tokens"] == 10

    async def test_unreachable(self, acompletion):
        acompletion.side_effect = RuntimeError("401 unauthorized")
        assert await LLMClient().ping() is False


class TestCredentials:
    def test_explicit_key(self):
        assert LLMClient(api_key="sk-x").has_credentials()

    def test_env_key(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
        assert LLMClient(model="anthropic/claude-sonnet-4-20250514").has_credentials()

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert not LLMClient(model="gpt-4o").has_credentials()


def test_satisfies_reasoning_protocol():
    assert isinstance(LLMClient(), ReasoningService)


def test_config_info():
    info = LLMClient(model="gemini/gemini-2.5-flash", max_tokens=500).get_config_info()
    assert info == {"provider": "gemini", "model": "gemini/gemini-2.5-flash", "temperature": 0.1, "max_tokens": 500}
