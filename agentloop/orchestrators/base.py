"""Shared orchestrator contract and model-stream plumbing."""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Sequence

from ..adapters.base import ModelAdapter
from ..messages import Message, ModelChunk, Usage
from ..streaming_state import StreamingState
from ..tools.base import Tool

logger = logging.getLogger("agentloop.orchestrator")


@dataclass(frozen=True)
class IterationResult:
    """One step of output produced while processing an iteration."""

    output: str = ""
    thinking: str | None = None
    messages: tuple[Message, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)
    usage: Usage | None = None
    finish_reason: str | None = None
    should_continue: bool = True


class StreamingOrchestrator(abc.ABC):
    """Drives one model request per ``process_iteration`` call.

    The agent keeps calling ``process_iteration`` until a result with
    ``should_continue=False`` is produced.
    """

    provider_hint = "base"

    def initialize(self, state: StreamingState) -> None:
        logger.debug("Initializing %s orchestrator", self.provider_hint)
        state.reset_for_new_message()

    def finalize(self, state: StreamingState) -> None:
        logger.debug("Finalizing %s orchestrator", self.provider_hint)

    @abc.abstractmethod
    def process_iteration(
        self,
        adapter: ModelAdapter,
        state: StreamingState,
        *,
        output_schema: dict[str, Any] | None = None,
    ) -> AsyncIterator[IterationResult]:
        ...

    def allow_text_streaming(self, state: StreamingState) -> bool:
        return True

    def request_tools(self, state: StreamingState) -> list[Tool] | None:
        tools = list(state.tool_map.values())
        return tools or None

    def request_schema(
        self,
        state: StreamingState,
        output_schema: dict[str, Any] | None,
    ) -> dict[str, Any] | None:
        return output_schema

    async def stream_model_turn(
        self,
        adapter: ModelAdapter,
        state: StreamingState,
        *,
        tools: Sequence[Tool] | None,
        output_schema: dict[str, Any] | None,
    ) -> AsyncIterator[IterationResult]:
        """Open the adapter stream and accumulate it into ``state``.

        Text is forwarded as it arrives unless suppressed; thinking and chunk
        metadata are always forwarded. Returns after the final chunk.
        """
        state.reset_for_new_message()
        stream = adapter.send_stream(
            state.history,
            tools=list(tools) if tools else None,
            output_schema=output_schema,
        )
        try:
            async for chunk in stream:
                result = self.on_model_chunk(chunk, state)
                if result is not None:
                    yield result
                state.record_chunk(chunk)
                if chunk.is_final:
                    break
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    def on_model_chunk(self, chunk: ModelChunk, state: StreamingState) -> IterationResult | None:
        text = chunk.message.text
        stream_text = bool(text) and self.allow_text_streaming(state)
        if not stream_text and not chunk.thinking and not chunk.metadata:
            return None
        return IterationResult(
            output=text if stream_text else "",
            thinking=chunk.thinking or None,
            metadata=dict(chunk.metadata),
            finish_reason=chunk.finish_reason,
        )

    def consolidated_message(self, state: StreamingState) -> Message:
        return state.accumulator.consolidate(state.accumulated_message)

    def final_result(
        self,
        state: StreamingState,
        *,
        output: str = "",
        messages: Sequence[Message] = (),
    ) -> IterationResult:
        return IterationResult(
            output=output,
            messages=tuple(messages),
            usage=state.usage,
            finish_reason=state.last_chunk.finish_reason,
            should_continue=False,
        )

    def continue_result(self, state: StreamingState, messages: Sequence[Message] = ()) -> IterationResult:
        return IterationResult(
            messages=tuple(messages),
            finish_reason=state.last_chunk.finish_reason,
            should_continue=True,
        )
