"""Synthetic tool used to emulate structured output."""

from __future__ import annotations

import json
from typing import Any, Sequence

from ..errors import ReservedToolNameError
from .base import Tool
from .result_schema import make_tool_success

RETURN_RESULT_TOOL_NAME = "return_result"

RETURN_RESULT_DESCRIPTION = (
    "CRITICAL: You MUST ALWAYS call this tool to return ANY response. "
    "Never respond with plain text - ONLY use this tool. "
    "Every single response must go through return_result with data "
    "matching the JSON schema. This applies to initial responses AND "
    "follow-up requests. Call this tool whether or not you use other "
    "tools first."
)


def serialize_result(arguments: dict[str, Any]) -> str:
    return json.dumps(arguments, separators=(",", ":"), ensure_ascii=False)


def _echo(arguments: dict[str, Any]) -> dict[str, Any]:
    return make_tool_success(
        kind=RETURN_RESULT_TOOL_NAME,
        text=serialize_result(arguments),
        data=arguments,
    )


def make_return_result_tool(output_schema: dict[str, Any]) -> Tool:
    """Expose ``output_schema`` as a callable tool that echoes its arguments."""
    return Tool(
        name=RETURN_RESULT_TOOL_NAME,
        handler=_echo,
        description=RETURN_RESULT_DESCRIPTION,
        input_schema=output_schema,
    )


def with_return_result_tool(tools: Sequence[Tool], output_schema: dict[str, Any]) -> list[Tool]:
    if any(t.name == RETURN_RESULT_TOOL_NAME for t in tools):
        raise ReservedToolNameError(RETURN_RESULT_TOOL_NAME)
    return [*tools, make_return_result_tool(output_schema)]
