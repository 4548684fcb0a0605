"""Two-phase typed output for providers that reject tools plus a schema.

Phase 1 sends the tools without the output schema and runs the tool loop
with the model's prose held back. Once the model stops calling tools, phase 2
sends the tool-augmented history with the schema and no tools; its text is
the structured answer.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, AsyncIterator

from ..adapters.base import ModelAdapter
from ..messages import TextPart
from ..streaming_state import StreamingState
from ..tools.base import Tool
from .base import IterationResult
from .default import DefaultStreamingOrchestrator

logger = logging.getLogger("agentloop.orchestrator.double-agent")


class Phase(enum.Enum):
    TOOLS = "tools"
    STRUCTURED = "structured"


class DoubleAgentOrchestrator(DefaultStreamingOrchestrator):
    """Carries phase state, so a fresh instance is needed for every call."""

    provider_hint = "double-agent"

    def __init__(self) -> None:
        self.phase = Phase.TOOLS

    def initialize(self, state: StreamingState) -> None:
        super().initialize(state)
        self.phase = Phase.TOOLS

    def allow_text_streaming(self, state: StreamingState) -> bool:
        return self.phase is Phase.STRUCTURED

    def request_tools(self, state: StreamingState) -> list[Tool] | None:
        if self.phase is Phase.STRUCTURED:
            return None
        return super().request_tools(state)

    async def process_iteration(
        self,
        adapter: ModelAdapter,
        state: StreamingState,
        *,
        output_schema: dict[str, Any] | None = None,
    ) -> AsyncIterator[IterationResult]:
        if self.phase is Phase.TOOLS:
            logger.debug(
                "Phase 1 (tools) with %d history messages", len(state.history)
            )
            stream = self._tool_phase(adapter, state)
        else:
            logger.debug(
                "Phase 2 (structured output) with %d history messages", len(state.history)
            )
            stream = self._structured_phase(adapter, state, output_schema)
        async for result in stream:
            yield result

    async def _tool_phase(
        self,
        adapter: ModelAdapter,
        state: StreamingState,
    ) -> AsyncIterator[IterationResult]:
        async for result in self.stream_model_turn(
            adapter, state, tools=self.request_tools(state), output_schema=None
        ):
            yield result

        message = self.consolidated_message(state)
        if not message.parts and state.has_recent_tool_execution():
            if state.empty_after_tools_continuations < 1:
                state.note_empty_after_tools()
                yield self.continue_result(state)
                return

        state.add_suppressed_text(message.text)
        state.add_suppressed_metadata(message.metadata)

        tool_calls = message.tool_calls
        if not tool_calls:
            # Prose from this phase is not the answer and stays out of history.
            logger.debug("Phase 1 finished without tool calls, moving to phase 2")
            self.phase = Phase.STRUCTURED
            yield self.continue_result(state)
            return

        tool_message = message.with_parts(
            [p for p in message.parts if not isinstance(p, TextPart)]
        )
        state.add_to_history(tool_message)
        yield self.continue_result(state, [tool_message])

        async for result in self.execute_tool_calls(tool_calls, state):
            yield result

    async def _structured_phase(
        self,
        adapter: ModelAdapter,
        state: StreamingState,
        output_schema: dict[str, Any] | None,
    ) -> AsyncIterator[IterationResult]:
        async for result in self.stream_model_turn(
            adapter, state, tools=None, output_schema=output_schema
        ):
            yield result

        message = self.consolidated_message(state)
        metadata = {**state.suppressed_metadata, **message.metadata}
        suppressed_text = state.suppressed_text
        if suppressed_text:
            metadata["suppressed_text"] = suppressed_text
        final = message.with_metadata(metadata)
        state.add_to_history(final)
        yield self.final_result(state, messages=[final])
        state.clear_suppressed()
