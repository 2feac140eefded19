"""
Reasoning-service client — async chat completions via LiteLLM.

The agent core only needs two coroutines from its reasoning service:
``complete`` (system prompt + request → raw text) and ``ping``.  Anything
implementing :class:`ReasoningService` can stand in for :class:`LLMClient`,
which is how tests and alternative backends plug in.

Model names follow litellm conventions:
  - OpenAI:    ``"gpt-4o"``, ``"gpt-4o-mini"``
  - Anthropic: ``"anthropic/claude-sonnet-4-20250514"``
  - Gemini:    ``"gemini/gemini-2.5-flash"``
"""

from __future__ import annotations

import os
from typing import Any, Protocol, runtime_checkable

import litellm
from loguru import logger

from ..exceptions import ReasoningServiceError
from .config import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    FAST_MODEL,
    PROVIDER_ENV_MAP,
    infer_provider,
)
from .utils import safe_get_content


@runtime_checkable
class ReasoningService(Protocol):
    async def complete(self, system_prompt: str, request: str, *, model: str | None = None) -> str: ...

    async def ping(self) -> bool: ...


class LLMClient:
    """LiteLLM-backed reasoning service.

    Retries and timeouts are owned by the caller (see
    :class:`~shopagent.core.llm.retry.RetryExecutor`), so litellm's own retry
    loop is disabled with ``num_retries=0``.
    """

    def __init__(
        self,
        model: str = FAST_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        api_key: str | None = None,
    ):
        self.model = model
        self.provider = infer_provider(model)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._api_key = api_key or None
        logger.debug(f"LLMClient: model={self.model} provider={self.provider} max_tokens={self.max_tokens}")

    def has_credentials(self) -> bool:
        """True if an API key was supplied or is present in the provider's env var."""
        if self._api_key:
            return True
        env_var = PROVIDER_ENV_MAP.get(self.provider)
        return bool(env_var and os.environ.get(env_var))

    async def complete(self, system_prompt: str, request: str, *, model: str | None = None) -> str:
        """Run one completion and return the reply text.

        Raises:
            ReasoningServiceError: If the provider returns no content.
        """
        kwargs = self._build_completion_kwargs(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": request},
            ],
            model=model,
        )
        response = await litellm.acompletion(**kwargs)
        text = safe_get_content(response)
        if not text.strip():
            raise ReasoningServiceError(f"No response from reasoning model {kwargs['model']}")
        return text

    async def ping(self) -> bool:
        """Issue a tiny completion to check the service is reachable."""
        kwargs = self._build_completion_kwargs([{"role": "user", "content": "Health check"}], max_tokens=10)
        try:
            await litellm.acompletion(**kwargs)
            return True
        except Exception as e:
            logger.warning(f"Reasoning service ping failed ({type(e).__name__}): {e}")
            return False

    def _build_completion_kwargs(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": max_tokens or self.max_tokens,
            "num_retries": 0,
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        return kwargs

    def get_config_info(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
