"""Tests for shopagent.agent.dispatcher."""

import pytest

from shopagent.agent.dispatcher import ToolDispatcher, ToolStatus
from shopagent.agent.tools import ToolContext, ToolDefinition


def _list_products(params, ctx: ToolContext):
    return {"products": ["serum", "cream"][: params.get("limit", 2)], "agent": ctx.agent}


async def _create_product(params, ctx: ToolContext):
    return {"created": params["title"], "request": ctx.request}


def _broken(params, ctx):
    raise ConnectionError("catalog service unreachable")


@pytest.fixture
def dispatcher():
    tools = {
        "list_products": ToolDefinition("list_products", "List products", _list_products),
        "create_product": ToolDefinition("create_product", "Create a product", _create_product),
        "sync_products": ToolDefinition("sync_products", "Sync", _broken),
    }
    return ToolDispatcher(tools, agent_name="sanity")


async def test_sync_tool(dispatcher):
    outcome = await dispatcher.execute("list_products", {"limit": 1})
    assert outcome.status == ToolStatus.OK
    assert outcome.success
    assert outcome.result == {"products": ["serum"], "agent": "sanity"}
    assert outcome.duration >= 0


async def test_async_tool_receives_context(dispatcher):
    outcome = await dispatcher.execute("create_product", {"title": "Toner"}, {"k": "v"}, request="add toner")
    assert outcome.success
    assert outcome.result == {"created": "Toner", "request": "add toner"}


async def test_unknown_tool_is_reported_not_raised(dispatcher):
    outcome = await dispatcher.execute("delete_everything", {})
    assert outcome.status == ToolStatus.NOT_FOUND
    assert not outcome.success
    assert outcome.available_tools == ["list_products", "create_product", "sync_products"]
    assert "delete_everything" in outcome.error


async def test_tool_failure_is_captured(dispatcher):
    outcome = await dispatcher.execute("sync_products", {})
    assert outcome.status == ToolStatus.FAILED
    assert outcome.tool == "sync_products"
    assert "catalog service unreachable" in outcome.error
    assert outcome.result is None


async def test_missing_parameter_is_a_tool_failure(dispatcher):
    outcome = await dispatcher.execute("create_product", {})
    assert outcome.status == ToolStatus.FAILED
    assert "title" in outcome.error


def test_introspection(dispatcher):
    assert dispatcher.has_tool("list_products")
    assert not dispatcher.has_tool("nope")
    assert dispatcher.tool_names == ["list_products", "create_product", "sync_products"]
