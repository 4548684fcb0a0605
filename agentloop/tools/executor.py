"""Concurrent execution of one assistant turn's tool calls."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError

from ..messages import Message, Role, ToolCallPart, ToolResultPart
from .base import Tool
from .result_schema import (
    INVALID_ARGUMENTS,
    TOOL_ERROR,
    UNKNOWN_TOOL,
    make_tool_error,
    make_tool_result,
    make_tool_success,
)

logger = logging.getLogger("agentloop.tools.executor")

MAX_VALIDATION_ERRORS = 5


@dataclass(frozen=True)
class ToolExecutionResult:
    call: ToolCallPart
    result_part: ToolResultPart

    @property
    def is_success(self) -> bool:
        return not self.result_part.is_error

    @property
    def error(self) -> str | None:
        return self.result_part.result.get("error")


def normalize_tool_output(tool_name: str, output: Any) -> dict[str, Any]:
    """Normalize a handler's return value into the standard envelope."""
    if isinstance(output, dict):
        if (
            isinstance(output.get("kind"), str)
            and isinstance(output.get("text"), str)
            and isinstance(output.get("success"), bool)
        ):
            return make_tool_result(
                kind=output["kind"],
                text=output["text"],
                success=output["success"],
                error=output.get("error"),
                code=output.get("code") or (None if output["success"] else TOOL_ERROR),
                data=output.get("data"),
                meta=output.get("meta") if isinstance(output.get("meta"), dict) else {},
            )
    if isinstance(output, str):
        return make_tool_success(kind=tool_name, text=output)
    if output is None:
        return make_tool_success(kind=tool_name, text="")
    try:
        text = json.dumps(output, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError):
        text = str(output)
    return make_tool_success(kind=tool_name, text=text, data=output)


def validate_arguments(schema: Mapping[str, Any], arguments: dict[str, Any]) -> list[str]:
    """Return human-readable schema violations for ``arguments``."""
    try:
        Draft7Validator.check_schema(schema)
    except SchemaError as exc:
        return [f"invalid input schema: {exc.message}"]
    errors = list(Draft7Validator(schema).iter_errors(arguments))
    messages = []
    for error in errors[:MAX_VALIDATION_ERRORS]:
        path = ".".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        messages.append(f"{path}: {error.message}")
    return messages


class ToolExecutor:
    """Runs tool calls and folds their results into one user message."""

    async def execute_batch(
        self,
        calls: Sequence[ToolCallPart],
        tool_map: Mapping[str, Tool],
    ) -> list[ToolExecutionResult]:
        if not calls:
            return []
        logger.info("Executing %d tool calls", len(calls))
        tasks = [asyncio.ensure_future(self._execute_one(call, tool_map)) for call in calls]
        # Tool handlers have no cancellation hook: if the caller goes away the
        # dispatched invocations run to completion and their results are dropped.
        results = await asyncio.shield(asyncio.gather(*tasks))
        return list(results)

    async def _execute_one(
        self,
        call: ToolCallPart,
        tool_map: Mapping[str, Tool],
    ) -> ToolExecutionResult:
        tool = tool_map.get(call.name)
        if tool is None:
            logger.warning("Model called unknown tool %r", call.name)
            envelope = make_tool_error(
                kind=call.name,
                error=f"Unknown tool: {call.name}",
                code=UNKNOWN_TOOL,
            )
            return self._result(call, envelope)

        if call.parse_error is not None:
            envelope = make_tool_error(
                kind=call.name,
                error=call.parse_error,
                code=INVALID_ARGUMENTS,
                data={"raw_arguments": call.raw_arguments},
            )
            return self._result(call, envelope)

        try:
            violations = validate_arguments(tool.input_schema, call.arguments)
        except Exception as exc:
            # e.g. a $ref that passes the metaschema check but cannot be resolved
            logger.warning("Could not validate arguments of %s (%s): %s", call.name, call.id, exc)
            violations = [f"invalid input schema: {exc}"]
        if violations:
            envelope = make_tool_error(
                kind=call.name,
                error=f"Argument validation failed: {'; '.join(violations)}",
                code=INVALID_ARGUMENTS,
                data={"validation_errors": violations},
            )
            return self._result(call, envelope)

        try:
            output = tool.handler(dict(call.arguments))
            if inspect.isawaitable(output):
                output = await output
            envelope = normalize_tool_output(call.name, output)
        except Exception as exc:
            logger.warning("Tool %s (%s) failed: %s", call.name, call.id, exc)
            envelope = make_tool_error(kind=call.name, error=f"Tool error: {exc}")
        return self._result(call, envelope)

    @staticmethod
    def _result(call: ToolCallPart, envelope: dict[str, Any]) -> ToolExecutionResult:
        part = ToolResultPart(tool_call_id=call.id, name=call.name, result=envelope)
        return ToolExecutionResult(call=call, result_part=part)


def build_tool_result_message(results: Sequence[ToolExecutionResult]) -> Message:
    """Fold a batch into a single ``user`` message, one part per call."""
    return Message(Role.USER, tuple(r.result_part for r in results))
