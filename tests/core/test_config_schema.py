"""Tests for shopagent.core.config_schema and Config.validated()."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from shopagent.core.config import Config, reset_config
from shopagent.core.config_schema import AgentEntry, ShopAgentConfig
from shopagent.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def _reset_singleton():
    reset_config()
    yield
    reset_config()


@pytest.mark.smoke
class TestConfigSchema:
    def test_defaults_populate(self):
        cfg = ShopAgentConfig.model_validate({})
        assert cfg.llm.fast_model == "gpt-4o-mini"
        assert cfg.llm.thorough_model == "gpt-4o"
        assert cfg.agents.defaults.max_retries == 3
        assert cfg.agents.defaults.timeout == 30
        assert cfg.agents.defaults.circuit_breaker_threshold == 5
        assert cfg.agents.defaults.circuit_cooldown == 60
        assert cfg.agents.defaults.cache_ttl == 300
        assert cfg.agents.defaults.cache_capacity == 100
        assert cfg.router.threshold == 0.6
        assert cfg.retry.max_delay == 10
        assert cfg.agents.entries == {}

    def test_agent_entries_collected(self):
        cfg = ShopAgentConfig.model_validate(
            {
                "agents": {
                    "defaults": {"cache_ttl": 60},
                    "stripe": {
                        "timeout": 10,
                        "tools": [{"name": "refund", "description": "Refund", "url": "http://x/refund"}],
                    },
                    "github": {"keywords": ["repo", "deploy"], "priority": 5},
                }
            }
        )
        assert cfg.agents.defaults.cache_ttl == 60
        assert set(cfg.agents.entries) == {"stripe", "github"}
        stripe = cfg.agents.entries["stripe"]
        assert stripe.timeout == 10
        assert stripe.max_retries is None
        assert stripe.tools[0].method == "POST"
        assert cfg.agents.entries["github"].keywords == ["repo", "deploy"]

    def test_empty_agent_entry(self):
        cfg = ShopAgentConfig.model_validate({"agents": {"marketing": None}})
        assert cfg.agents.entries["marketing"].enabled is True

    def test_duplicate_tool_names(self):
        tool = {"name": "refund", "description": "Refund", "url": "http://x"}
        with pytest.raises(ValidationError):
            AgentEntry.model_validate({"tools": [tool, tool]})

    def test_invalid_pattern_rejected(self):
        with pytest.raises(ValidationError, match="invalid pattern"):
            AgentEntry.model_validate({"keywords": ["shipping"], "patterns": ["ship(("]})

    def test_blank_keyword_rejected(self):
        with pytest.raises(ValidationError, match="blank"):
            AgentEntry.model_validate({"keywords": ["shipping", "  "]})

    def test_keywords_trimmed(self):
        assert AgentEntry.model_validate({"keywords": [" tracking "]}).keywords == ["tracking"]

    def test_bad_threshold(self):
        with pytest.raises(ValidationError):
            ShopAgentConfig.model_validate({"router": {"threshold": 1.5}})

    def test_path_expansion(self):
        cfg = ShopAgentConfig.model_validate({"paths": {"data_dir": "~/shop"}})
        assert cfg.paths.data_dir == Path("~/shop").expanduser()

    def test_extra_sections_allowed(self):
        cfg = ShopAgentConfig.model_validate({"storefront": {"url": "https://shop.test"}})
        assert cfg.model_extra["storefront"] == {"url": "https://shop.test"}


class TestValidated:
    def test_env_strings_coerced(self, tmp_dir, monkeypatch):
        monkeypatch.setenv("SHOPAGENT_AGENTS__DEFAULTS__TIMEOUT", "12.5")
        monkeypatch.setenv("SHOPAGENT_ROUTER__THRESHOLD", "0.75")
        cfg = Config(data_dir=tmp_dir).validated()
        assert cfg.agents.defaults.timeout == 12.5
        assert cfg.router.threshold == 0.75

    def test_invalid_raises_configuration_error(self, tmp_dir, monkeypatch):
        monkeypatch.setenv("SHOPAGENT_AGENTS__DEFAULTS__MAX_RETRIES", "zero")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            Config(data_dir=tmp_dir).validated()

    def test_invalid_pattern_raises_configuration_error(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        config.set("agents.shipping", {"keywords": ["shipping"], "patterns": ["ship(("]})
        with pytest.raises(ConfigurationError, match="invalid pattern"):
            config.validated()

    def test_from_file(self, tmp_config_file, tmp_dir):
        cfg = Config(config_file=tmp_config_file, data_dir=tmp_dir).validated()
        assert cfg.agents.defaults.cache_ttl == 120
        assert cfg.agents.entries["stripe"].tools[0].name == "create_checkout"
