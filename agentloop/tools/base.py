"""Caller-supplied tool definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union

from langchain_core.tools import BaseTool
from langchain_core.utils.function_calling import convert_to_openai_tool

ToolHandler = Callable[[dict[str, Any]], Union[Any, Awaitable[Any]]]

EMPTY_OBJECT_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}


@dataclass(frozen=True)
class Tool:
    """A named callable the model may invoke.

    ``handler`` receives the decoded argument object and may be a plain
    function or a coroutine function.
    """

    name: str
    handler: ToolHandler
    description: str = ""
    input_schema: dict[str, Any] = field(default_factory=lambda: dict(EMPTY_OBJECT_SCHEMA))

    @classmethod
    def from_langchain(cls, tool: BaseTool) -> Tool:
        spec = convert_to_openai_tool(tool)["function"]

        async def _handler(args: dict[str, Any]) -> Any:
            return await tool.ainvoke(args)

        return cls(
            name=tool.name,
            handler=_handler,
            description=spec.get("description", "") or tool.description,
            input_schema=spec.get("parameters") or dict(EMPTY_OBJECT_SCHEMA),
        )

    def to_function_spec(self) -> dict[str, Any]:
        """Render the tool in OpenAI function format, accepted by ``bind_tools``."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }


def as_tool(tool: Tool | BaseTool) -> Tool:
    if isinstance(tool, Tool):
        return tool
    if isinstance(tool, BaseTool):
        return Tool.from_langchain(tool)
    raise TypeError(f"Unsupported tool type: {type(tool).__name__}")


def build_tool_map(tools: list[Tool]) -> dict[str, Tool]:
    tool_map: dict[str, Tool] = {}
    for tool in tools:
        if tool.name in tool_map:
            raise ValueError(f"Duplicate tool name: {tool.name!r}")
        tool_map[tool.name] = tool
    return tool_map
