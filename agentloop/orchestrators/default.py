"""Plain chat / tool-calling loop."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Sequence

from ..adapters.base import ModelAdapter
from ..messages import Message, ToolCallPart
from ..streaming_state import StreamingState
from ..tools.executor import ToolExecutionResult, build_tool_result_message
from .base import IterationResult, StreamingOrchestrator

logger = logging.getLogger("agentloop.orchestrator.default")


class DefaultStreamingOrchestrator(StreamingOrchestrator):
    """Request, accumulate, execute tools, repeat until no tool calls remain.

    Subclasses customise behaviour through the ``allow_text_streaming``,
    ``request_tools`` and ``on_consolidated_message`` hooks.
    """

    provider_hint = "default"

    async def process_iteration(
        self,
        adapter: ModelAdapter,
        state: StreamingState,
        *,
        output_schema: dict[str, Any] | None = None,
    ) -> AsyncIterator[IterationResult]:
        async for result in self.stream_model_turn(
            adapter,
            state,
            tools=self.request_tools(state),
            output_schema=self.request_schema(state, output_schema),
        ):
            yield result

        message = self.consolidated_message(state)
        async for result in self.on_consolidated_message(message, state):
            yield result

    async def on_consolidated_message(
        self,
        message: Message,
        state: StreamingState,
    ) -> AsyncIterator[IterationResult]:
        empty = self.handle_empty_message(message, state)
        if empty is not None:
            yield empty
            return

        tool_calls = message.tool_calls
        if tool_calls and not self.allow_text_streaming(state):
            state.add_suppressed_text(message.text)
            state.add_suppressed_metadata(message.metadata)

        state.add_to_history(message)
        if not tool_calls:
            logger.debug("No tool calls in consolidated message, finishing")
            yield self.final_result(state, messages=[message])
            return

        yield self.continue_result(state, [message])
        async for result in self.execute_tool_calls(tool_calls, state):
            yield result

    def handle_empty_message(
        self,
        message: Message,
        state: StreamingState,
    ) -> IterationResult | None:
        """Decide what an assistant message with no parts means.

        Right after a tool batch one re-request is allowed, since some
        providers return an empty turn before their synthesis. Any other
        empty message is accepted as the final answer.
        """
        if message.parts:
            return None
        if state.has_recent_tool_execution() and state.empty_after_tools_continuations < 1:
            logger.debug("Allowing one empty-after-tools continuation")
            state.note_empty_after_tools()
            return self.continue_result(state)

        logger.debug("Empty message treated as completion")
        state.add_to_history(message)
        return self.final_result(state, messages=[message])

    async def execute_tool_calls(
        self,
        tool_calls: Sequence[ToolCallPart],
        state: StreamingState,
    ) -> AsyncIterator[IterationResult]:
        results = await self.execute_tool_batch(tool_calls, state)
        if results:
            yield self.continue_result(state, [self.append_tool_results(results, state)])

    async def execute_tool_batch(
        self,
        tool_calls: Sequence[ToolCallPart],
        state: StreamingState,
    ) -> list[ToolExecutionResult]:
        state.register_tool_calls(tool_calls)
        return await state.executor.execute_batch(tool_calls, state.tool_map)

    def append_tool_results(
        self,
        results: Sequence[ToolExecutionResult],
        state: StreamingState,
    ) -> Message:
        message = build_tool_result_message(results)
        state.add_to_history(message)
        state.reset_empty_after_tools()
        return message
