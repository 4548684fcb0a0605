"""Shared fixtures for agentloop tests."""

from __future__ import annotations

from typing import Any

import pytest

from agentloop.tools.base import Tool


@pytest.fixture
def get_time_tool() -> Tool:
    def _get_time(args: dict[str, Any]) -> str:
        return "12:00"

    return Tool(name="get_time", handler=_get_time, description="Current time")


@pytest.fixture
def add_tool() -> Tool:
    async def _add(args: dict[str, Any]) -> dict[str, Any]:
        return {"sum": args["a"] + args["b"]}

    return Tool(
        name="add",
        handler=_add,
        description="Add two integers",
        input_schema={
            "type": "object",
            "properties": {"a": {"type": "integer"}, "b": {"type": "integer"}},
            "required": ["a", "b"],
        },
    )


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "AGENTLOOP_MAX_ITERATIONS",
        "AGENTLOOP_ENABLE_THINKING",
        "AGENTLOOP_THINKING_BUDGET",
        "AGENTLOOP_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch

