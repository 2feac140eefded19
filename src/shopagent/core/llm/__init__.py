"""
Reasoning-service access — powered by LiteLLM.
"""

from .client import LLMClient, ReasoningService
from .config import FAST_MODEL, PROVIDER_ENV_MAP, THOROUGH_MODEL, ModelTier, infer_provider
from .model_selector import ModelChoice, ModelSelector
from .retry import RetryExecutor, RetryPolicy
from .utils import extract_text_from_response, safe_get_content

__all__ = [
    "FAST_MODEL",
    "PROVIDER_ENV_MAP",
    "THOROUGH_MODEL",
    "LLMClient",
    "ModelChoice",
    "ModelSelector",
    "ModelTier",
    "ReasoningService",
    "RetryExecutor",
    "RetryPolicy",
    "extract_text_from_response",
    "infer_provider",
    "safe_get_content",
]
