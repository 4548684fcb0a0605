"""Tool definitions, execution and the synthetic result tool."""

from __future__ import annotations

from .base import Tool, as_tool, build_tool_map
from .executor import ToolExecutionResult, ToolExecutor, build_tool_result_message
from .return_result import RETURN_RESULT_TOOL_NAME, make_return_result_tool

__all__ = [
    "RETURN_RESULT_TOOL_NAME",
    "Tool",
    "ToolExecutionResult",
    "ToolExecutor",
    "as_tool",
    "build_tool_map",
    "build_tool_result_message",
    "make_return_result_tool",
]
