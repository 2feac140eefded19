"""Utility functions for LLM response handling."""

from typing import Any

from loguru import logger


def safe_get_content(response: Any, default: str = "") -> str:
    """Safely extract text content from an LLM response.

    Guards against empty ``choices`` lists or missing ``message``/``content``
    attributes that can occur with malformed provider responses.
    """
    choices = getattr(response, "choices", None)
    if not choices:
        logger.warning("LLM response has no choices; returning default")
        return default
    message = getattr(choices[0], "message", None)
    if message is None:
        logger.warning("LLM response choice has no message; returning default")
        return default
    return extract_text_from_response(getattr(message, "content", None)) or default


def extract_text_from_response(content: Any) -> str:
    """Flatten message content into plain text.

    LiteLLM normalises responses to OpenAI format, so this is usually a
    string already; content-block lists are joined, non-text blocks dropped.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text" and "text" in part:
                parts.append(part["text"])
            elif getattr(part, "type", "text") == "text" and hasattr(part, "text"):
                parts.append(part.text)
        return "".join(parts)
    if hasattr(content, "text"):
        return content.text
    return str(content)
