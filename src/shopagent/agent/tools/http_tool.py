"""HTTP-backed storefront tools.

Most storefront operations the agents drive are already exposed as JSON
endpoints on the storefront itself (checkout creation, product
provisioning, webhook setup).  :func:`http_tool` wraps one such endpoint as
a :class:`~shopagent.agent.tools.ToolDefinition`.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from typing import Any

from loguru import logger

from . import ToolContext, ToolDefinition

_USER_AGENT = "shopagent/0.1"


def _http_json(
    url: str,
    method: str,
    payload: dict[str, Any] | None,
    headers: dict[str, str],
    timeout: float,
) -> Any:
    data = json.dumps(payload).encode("utf-8") if payload is not None else None
    req = urllib.request.Request(
        url=url,
        data=data,
        method=method,
        headers={"User-Agent": _USER_AGENT, "Content-Type": "application/json", **headers},
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            body = resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        detail = e.read().decode("utf-8", errors="replace")[:200]
        raise RuntimeError(f"{method} {url} failed with HTTP {e.code}: {detail}") from e
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except json.JSONDecodeError:
        return {"raw": body}


def http_tool(
    name: str,
    description: str,
    url: str,
    *,
    method: str = "POST",
    parameters: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float = 15.0,
) -> ToolDefinition:
    """Build a tool that sends its parameters as JSON to *url*.

    ``GET`` tools send no body.  The decoded JSON response is the tool result;
    HTTP errors raise so the dispatcher reports them as tool failures.
    """
    method = method.upper()
    extra_headers = dict(headers or {})

    async def _call(params: dict[str, Any], ctx: ToolContext) -> Any:
        payload = None if method == "GET" else params
        logger.debug(f"[{ctx.agent}] {name}: {method} {url}")
        return await asyncio.to_thread(_http_json, url, method, payload, extra_headers, timeout)

    return ToolDefinition(name=name, description=description, function=_call, parameters=parameters)
