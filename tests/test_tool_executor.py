"""Tests for concurrent tool execution."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from langchain_core.tools import tool as lc_tool

from agentloop.messages import Role, ToolCallPart
from agentloop.tools import (
    RETURN_RESULT_TOOL_NAME,
    Tool,
    ToolExecutor,
    as_tool,
    build_tool_map,
    build_tool_result_message,
    make_return_result_tool,
)
from agentloop.errors import ReservedToolNameError
from agentloop.tools.executor import normalize_tool_output, validate_arguments
from agentloop.tools.return_result import with_return_result_tool


def _call(name: str, args: dict[str, Any] | None = None, tc_id: str = "tc-1", **kw) -> ToolCallPart:
    return ToolCallPart(id=tc_id, name=name, arguments=dict(args or {}), **kw)


class TestToolExecutor:
    async def test_results_keep_call_order(self):
        async def slow(args):
            await asyncio.sleep(0.05)
            return "slow"

        async def fast(args):
            return "fast"

        tool_map = build_tool_map([Tool("slow", slow), Tool("fast", fast)])
        calls = [_call("slow", tc_id="a"), _call("fast", tc_id="b")]
        results = await ToolExecutor().execute_batch(calls, tool_map)

        assert [r.call.id for r in results] == ["a", "b"]
        assert [r.result_part.text for r in results] == ["slow", "fast"]

    async def test_calls_run_concurrently(self):
        started = asyncio.Event()

        async def waiter(args):
            await asyncio.wait_for(started.wait(), timeout=1)
            return "done"

        async def trigger(args):
            started.set()
            return "set"

        tool_map = build_tool_map([Tool("waiter", waiter), Tool("trigger", trigger)])
        results = await ToolExecutor().execute_batch(
            [_call("waiter", tc_id="a"), _call("trigger", tc_id="b")], tool_map
        )
        assert all(r.is_success for r in results)

    async def test_unknown_tool(self):
        results = await ToolExecutor().execute_batch([_call("missing")], {})
        result = results[0]
        assert not result.is_success
        assert result.result_part.result["code"] == "unknown_tool"
        assert result.result_part.tool_call_id == "tc-1"

    async def test_invalid_arguments(self, add_tool):
        results = await ToolExecutor().execute_batch(
            [_call("add", {"a": "two"})], build_tool_map([add_tool])
        )
        envelope = results[0].result_part.result
        assert envelope["code"] == "invalid_arguments"
        assert envelope["success"] is False
        assert "a: 'two' is not of type 'integer'" in envelope["data"]["validation_errors"]
        assert "root: 'b' is a required property" in envelope["data"]["validation_errors"]

    async def test_parse_error_reported_as_invalid_arguments(self, add_tool):
        call = _call("add", raw_arguments="{bad", parse_error="Invalid tool arguments JSON")
        results = await ToolExecutor().execute_batch([call], build_tool_map([add_tool]))
        envelope = results[0].result_part.result
        assert envelope["code"] == "invalid_arguments"
        assert envelope["data"] == {"raw_arguments": "{bad"}

    async def test_exception_isolated_to_its_call(self, add_tool):
        def boom(args):
            raise RuntimeError("kaput")

        tool_map = build_tool_map([Tool("boom", boom), add_tool])
        results = await ToolExecutor().execute_batch(
            [_call("boom", tc_id="a"), _call("add", {"a": 2, "b": 3}, tc_id="b")], tool_map
        )
        assert results[0].result_part.result["code"] == "tool_error"
        assert results[0].error == "Tool error: kaput"
        assert results[1].is_success
        assert results[1].result_part.text == '{"sum":5}'

    async def test_unresolvable_schema_isolated_to_its_call(self, get_time_tool):
        broken = Tool("broken", lambda args: "never", input_schema={"$ref": "#/definitions/missing"})
        tool_map = build_tool_map([broken, get_time_tool])
        results = await ToolExecutor().execute_batch(
            [_call("broken", tc_id="a"), _call("get_time", tc_id="b")], tool_map
        )

        assert [r.call.id for r in results] == ["a", "b"]
        envelope = results[0].result_part.result
        assert envelope["code"] == "invalid_arguments"
        assert envelope["data"]["validation_errors"][0].startswith("invalid input schema:")
        assert results[1].is_success
        assert results[1].result_part.text == "12:00"

    async def test_sync_handler(self, get_time_tool):
        results = await ToolExecutor().execute_batch(
            [_call("get_time")], build_tool_map([get_time_tool])
        )
        assert results[0].result_part.text == "12:00"

    async def test_empty_batch(self):
        assert await ToolExecutor().execute_batch([], {}) == []

    async def test_cancelled_caller_does_not_cancel_tools(self):
        finished = asyncio.Event()

        async def slow(args):
            await asyncio.sleep(0.05)
            finished.set()
            return "ok"

        task = asyncio.ensure_future(
            ToolExecutor().execute_batch([_call("slow")], build_tool_map([Tool("slow", slow)]))
        )
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.wait_for(finished.wait(), timeout=1)


class TestBuildToolResultMessage:
    async def test_single_user_message_one_part_per_call(self, get_time_tool):
        calls = [_call("get_time", tc_id="a"), _call("nope", tc_id="b")]
        results = await ToolExecutor().execute_batch(calls, build_tool_map([get_time_tool]))
        message = build_tool_result_message(results)
        assert message.role == Role.USER
        assert [p.tool_call_id for p in message.tool_results] == ["a", "b"]


class TestNormalizeToolOutput:
    def test_string(self):
        assert normalize_tool_output("t", "hi")["text"] == "hi"

    def test_none(self):
        envelope = normalize_tool_output("t", None)
        assert envelope["text"] == ""
        assert envelope["success"] is True

    def test_structured(self):
        envelope = normalize_tool_output("t", {"n": 1})
        assert envelope["text"] == '{"n":1}'
        assert envelope["data"] == {"n": 1}

    def test_envelope_passthrough(self):
        envelope = normalize_tool_output(
            "t", {"kind": "x", "text": "nope", "success": False, "error": "bad"}
        )
        assert envelope["kind"] == "x"
        assert envelope["code"] == "tool_error"
        assert envelope["error"] == "bad"


class TestValidateArguments:
    def test_valid(self, add_tool):
        assert validate_arguments(add_tool.input_schema, {"a": 1, "b": 2}) == []

    def test_broken_schema(self):
        errors = validate_arguments({"type": "nonsense"}, {})
        assert errors and errors[0].startswith("invalid input schema")

    def test_error_count_capped(self):
        schema = {
            "type": "object",
            "properties": {k: {"type": "integer"} for k in "abcdefg"},
        }
        errors = validate_arguments(schema, {k: "x" for k in "abcdefg"})
        assert len(errors) == 5


class TestToolDefinitions:
    def test_duplicate_names_rejected(self, get_time_tool):
        with pytest.raises(ValueError, match="Duplicate tool name"):
            build_tool_map([get_time_tool, get_time_tool])

    def test_function_spec(self, add_tool):
        spec = add_tool.to_function_spec()
        assert spec["type"] == "function"
        assert spec["function"]["name"] == "add"
        assert spec["function"]["parameters"]["required"] == ["a", "b"]

    async def test_from_langchain_tool(self):
        @lc_tool
        def multiply(a: int, b: int) -> int:
            """Multiply two integers."""
            return a * b

        converted = as_tool(multiply)
        assert converted.name == "multiply"
        assert converted.description == "Multiply two integers."
        assert set(converted.input_schema["properties"]) == {"a", "b"}

        results = await ToolExecutor().execute_batch(
            [_call("multiply", {"a": 3, "b": 4})], build_tool_map([converted])
        )
        assert results[0].result_part.text == "12"

    def test_unsupported_tool_type(self):
        with pytest.raises(TypeError):
            as_tool(object())  # type: ignore[arg-type]


class TestReturnResultTool:
    async def test_echoes_compact_json(self):
        schema = {"type": "object", "properties": {"n": {"type": "integer"}}}
        rr = make_return_result_tool(schema)
        results = await ToolExecutor().execute_batch(
            [_call(RETURN_RESULT_TOOL_NAME, {"n": 5})], build_tool_map([rr])
        )
        assert results[0].result_part.text == '{"n":5}'
        assert results[0].result_part.result["data"] == {"n": 5}

    async def test_validated_against_output_schema(self):
        schema = {"type": "object", "properties": {"n": {"type": "integer"}}, "required": ["n"]}
        rr = make_return_result_tool(schema)
        results = await ToolExecutor().execute_batch(
            [_call(RETURN_RESULT_TOOL_NAME, {"n": "five"})], build_tool_map([rr])
        )
        assert results[0].result_part.result["code"] == "invalid_arguments"

    def test_reserved_name(self):
        clash = Tool(RETURN_RESULT_TOOL_NAME, lambda args: None)
        with pytest.raises(ReservedToolNameError, match="reserved"):
            with_return_result_tool([clash], {"type": "object"})

    def test_appended_last(self, get_time_tool):
        tools = with_return_result_tool([get_time_tool], {"type": "object"})
        assert [t.name for t in tools] == ["get_time", RETURN_RESULT_TOOL_NAME]
