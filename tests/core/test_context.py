"""Tests for shopagent.core.utils.context."""

import pytest

from shopagent.agent.prompts import MULTI_SYSTEM_NOTE, PromptContext, StandardPromptBuilder
from shopagent.agent.tools import ToolDefinition
from shopagent.core.utils.context import MULTI_SYSTEM, NO_CACHE, context_flag


@pytest.mark.parametrize("value", [True, 1, "true", "TRUE", " yes ", "on", "1"])
def test_set_flags(value):
    assert context_flag({NO_CACHE: value}, NO_CACHE)


@pytest.mark.parametrize("value", [False, 0, None, "", "false", "no", "0", "off"])
def test_unset_flags(value):
    assert not context_flag({NO_CACHE: value}, NO_CACHE)


def test_missing_key():
    assert not context_flag({}, NO_CACHE)


def test_prompt_honours_string_false():
    tools = (ToolDefinition("list_products", "List products", lambda params, ctx: []),)

    def build(context):
        return StandardPromptBuilder().build(
            PromptContext(agent_name="sanity", specialization="content", tools=tools, context=context)
        )

    assert MULTI_SYSTEM_NOTE not in build({MULTI_SYSTEM: "false"})
    assert MULTI_SYSTEM_NOTE in build({MULTI_SYSTEM: "true"})
