"""Shared test fixtures for shopagent."""

import json
import os
import tempfile

import pytest


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file with one HTTP-backed agent."""
    import yaml

    config_data = {
        "paths": {"data_dir": os.path.join(tmp_dir, "data")},
        "llm": {"fast_model": "gpt-4o-mini", "thorough_model": "gpt-4o"},
        "agents": {
            "defaults": {"cache_ttl": 120},
            "stripe": {
                "tools": [
                    {
                        "name": "create_checkout",
                        "description": "Create a checkout session",
                        "url": "http://localhost:3000/api/checkout/create",
                    }
                ]
            },
        },
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeReasoning:
    """Scripted reasoning service.

    Each call pops the next item from *replies*: strings are returned,
    exceptions raised.  The last item repeats once the script runs out.
    """

    def __init__(self, *replies, reachable: bool = True):
        self.replies = list(replies)
        self.reachable = reachable
        self.calls: list[dict] = []

    async def complete(self, system_prompt: str, request: str, *, model: str | None = None) -> str:
        self.calls.append({"system_prompt": system_prompt, "request": request, "model": model})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def ping(self) -> bool:
        return self.reachable


def decision_json(action: str, confidence: float = 0.9, **extra) -> str:
    data = {
        "analysis": f"User wants {action}",
        "action": action,
        "parameters": extra.pop("parameters", {}),
        "confidence": confidence,
        "reasoning": "Direct match",
        "humanMessage": f"Running {action}.",
    }
    data.update(extra)
    return json.dumps(data)


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reasoning_factory():
    """The :class:`FakeReasoning` class, for building scripted services."""
    return FakeReasoning


@pytest.fixture
def make_decision():
    """Build a valid decision JSON string: ``make_decision("list_products")``."""
    return decision_json


@pytest.fixture
def instant_sleep():
    return no_sleep
