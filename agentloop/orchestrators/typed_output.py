"""Typed output on top of the default loop.

Providers either honour an output schema natively, in which case the model's
text already is the JSON result, or the schema is exposed as the synthetic
``return_result`` tool. Both paths are checked on every turn because some
providers ignore the synthetic tool on some calls and use it on others.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator

from ..messages import Message, ToolCallPart
from ..streaming_state import StreamingState
from ..tools.base import Tool
from ..tools.return_result import RETURN_RESULT_TOOL_NAME
from .base import IterationResult
from .default import DefaultStreamingOrchestrator

logger = logging.getLogger("agentloop.orchestrator.typed")


def find_return_result_call(message: Message) -> ToolCallPart | None:
    for part in message.tool_calls:
        if part.name == RETURN_RESULT_TOOL_NAME:
            return part
    return None


class TypedOutputStreamingOrchestrator(DefaultStreamingOrchestrator):
    provider_hint = "typed-output"

    def __init__(self, *, has_return_result_tool: bool) -> None:
        self.has_return_result_tool = has_return_result_tool

    def allow_text_streaming(self, state: StreamingState) -> bool:
        # Prose is only the answer when no tool call can follow it.
        if self.has_return_result_tool:
            return False
        return self.request_tools(state) is None

    def request_tools(self, state: StreamingState) -> list[Tool] | None:
        tools = [
            tool
            for tool in state.tool_map.values()
            if self.has_return_result_tool or tool.name != RETURN_RESULT_TOOL_NAME
        ]
        return tools or None

    def request_schema(
        self,
        state: StreamingState,
        output_schema: dict[str, Any] | None,
    ) -> dict[str, Any] | None:
        # The schema travels as the return_result tool's input schema instead.
        return None if self.has_return_result_tool else output_schema

    async def on_consolidated_message(
        self,
        message: Message,
        state: StreamingState,
    ) -> AsyncIterator[IterationResult]:
        if find_return_result_call(message) is not None:
            async for result in self._return_result_flow(message, state):
                yield result
            return

        if not self.allow_text_streaming(state) and message.parts and not message.tool_calls:
            # A text answer held back while streaming is emitted once the turn
            # is known to carry no tool calls.
            final = self._with_suppressed(message, state)
            state.add_to_history(final)
            logger.debug("Turn ended without tool calls; emitting held-back text")
            yield self.final_result(state, output=final.text, messages=[final])
            state.clear_suppressed()
            return

        async for result in super().on_consolidated_message(message, state):
            yield result

    async def _return_result_flow(
        self,
        message: Message,
        state: StreamingState,
    ) -> AsyncIterator[IterationResult]:
        if not self.allow_text_streaming(state):
            state.add_suppressed_text(message.text)
        state.add_suppressed_metadata(message.metadata)
        state.add_to_history(message)
        yield self.continue_result(state, [message])

        tool_calls = message.tool_calls
        results = await self.execute_tool_batch(tool_calls, state)
        # Every call, return_result included, gets a result so the pairing
        # of calls and results stays intact for the next request.
        yield self.continue_result(state, [self.append_tool_results(results, state)])

        returned = next(
            (r for r in results if r.call.name == RETURN_RESULT_TOOL_NAME and r.is_success),
            None,
        )
        if returned is None:
            logger.warning("return_result call failed; letting the model retry")
            return

        json_output = returned.result_part.text
        synthetic = Message.model(json_output)
        synthetic = self._with_suppressed(
            synthetic,
            state,
            tool_id=returned.call.id,
            tool_name=returned.call.name,
        )
        state.add_to_history(synthetic)
        yield self.final_result(state, output=json_output, messages=[synthetic])
        state.clear_suppressed()

    @staticmethod
    def _with_suppressed(message: Message, state: StreamingState, **extra: str) -> Message:
        metadata = {**state.suppressed_metadata, **message.metadata, **extra}
        suppressed_text = state.suppressed_text
        if suppressed_text:
            metadata["suppressed_text"] = suppressed_text
        return message.with_metadata(metadata)

