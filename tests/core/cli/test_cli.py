"""Tests for the CLI entry point."""

import json
from unittest.mock import MagicMock, patch

import click
import pytest
from click.testing import CliRunner

from shopagent.core.cli import common, main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def scripted_router(monkeypatch, reasoning_factory, make_decision):
    """Make every command build its router around a scripted reasoning service."""
    reasoning = reasoning_factory(make_decision("create_checkout", parameters={"slug": "vitamin-d"}))
    real_build = common.build_router

    def build(config, **kwargs):
        return real_build(config, reasoning=reasoning, **kwargs)

    monkeypatch.setattr(common, "build_router", build)
    return reasoning


def _http_response(body: str) -> MagicMock:
    resp = MagicMock()
    resp.read.return_value = body.encode()
    resp.__enter__.return_value = resp
    return resp


class TestCliGroup:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("ask", "route", "agents", "health"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_missing_config_file(self, runner, tmp_dir):
        result = runner.invoke(main, ["--config", f"{tmp_dir}/absent.yaml", "agents"])
        assert result.exit_code != 0
        assert "Config file not found" in result.output


class TestAgentsCommand:
    def test_lists_configured_agents(self, runner, tmp_config_file):
        result = runner.invoke(main, ["--config", tmp_config_file, "agents"])
        assert result.exit_code == 0
        assert "stripe (priority 1)" in result.output
        assert "create_checkout" in result.output

    def test_no_agents(self, runner, tmp_dir):
        path = f"{tmp_dir}/empty.yaml"
        with open(path, "w") as f:
            f.write("llm: {}\n")
        result = runner.invoke(main, ["--config", path, "agents"])
        assert result.exit_code == 0
        assert "No agents configured" in result.output

    def test_custom_agent_without_keywords_is_rejected(self, runner, tmp_dir):
        path = f"{tmp_dir}/custom.yaml"
        with open(path, "w") as f:
            f.write("agents:\n  shipping:\n    tools:\n      - {name: track, description: Track, url: http://x}\n")
        result = runner.invoke(main, ["--config", path, "agents"])
        assert result.exit_code != 0
        assert "needs routing keywords" in result.output


    def test_invalid_pattern_is_a_clean_error(self, runner, tmp_dir):
        path = f"{tmp_dir}/bad.yaml"
        with open(path, "w") as f:
            f.write(
                "agents:\n  shipping:\n    keywords: [shipping]\n    patterns: [\"ship((\"]\n"
                "    tools:\n      - {name: track, description: Track, url: http://x}\n"
            )
        result = runner.invoke(main, ["--config", path, "agents"])
        assert result.exit_code == 1
        assert "invalid pattern" in result.output


class TestRouteCommand:
    def test_picks_payments_agent(self, runner, tmp_config_file):
        result = runner.invoke(main, ["--config", tmp_config_file, "route", "billing question about a payment"])
        assert result.exit_code == 0
        assert "* stripe" in result.output
        assert "-> stripe" in result.output

    def test_orchestration_notice(self, runner, tmp_config_file):
        result = runner.invoke(main, ["--config", tmp_config_file, "route", "comprehensive review of the shop"])
        assert result.exit_code == 0
        assert "orchestrator" in result.output


class TestAskCommand:
    def test_routes_and_calls_tool(self, runner, tmp_config_file, scripted_router):
        with patch("urllib.request.urlopen", return_value=_http_response('{"url": "https://pay.test/s/1"}')):
            args = ["--config", tmp_config_file, "--log-level", "ERROR", "ask", "checkout for vitamin-d payment"]
            result = runner.invoke(main, [*args, "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output[result.output.index("{") :])
        assert data["success"] is True
        assert data["action"] == "create_checkout"
        assert data["routed_to"] == "stripe"
        assert scripted_router.calls[0]["request"] == "checkout for vitamin-d payment"

    def test_unknown_agent_exits_nonzero(self, runner, tmp_config_file, scripted_router):
        result = runner.invoke(main, ["--config", tmp_config_file, "ask", "hi", "--agent", "shipping"])
        assert result.exit_code == 1
        assert "FAILED" in result.output

    def test_bad_context_pair(self, runner, tmp_config_file):
        result = runner.invoke(main, ["--config", tmp_config_file, "ask", "hi", "--context", "oops"])
        assert result.exit_code != 0
        assert "KEY=VALUE" in result.output


class TestParseContext:
    def test_pairs(self):
        assert common.parse_context(("store=ie", "critical_operation=true", "no_cache=False")) == {
            "store": "ie",
            "critical_operation": True,
            "no_cache": False,
        }

    def test_value_may_contain_equals(self):
        assert common.parse_context(("filter=a=b",)) == {"filter": "a=b"}

    def test_rejects_missing_separator(self):
        with pytest.raises(click.BadParameter):
            common.parse_context(("store",))
