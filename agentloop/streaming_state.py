"""Per-call mutable context owned by the active orchestrator."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from .accumulator import MessageAccumulator
from .messages import Message, ModelChunk, ToolCallPart, Usage, empty_model_message
from .tools.base import Tool
from .tools.executor import ToolExecutor

logger = logging.getLogger("agentloop.state.streaming")


class StreamingState:
    """Everything one in-flight ``send``/``send_stream`` call mutates.

    A new instance is created for every call and discarded afterwards, so
    concurrent calls on the same agent never share state.
    """

    def __init__(
        self,
        history: Sequence[Message],
        tool_map: Mapping[str, Tool],
        *,
        accumulator: MessageAccumulator | None = None,
        executor: ToolExecutor | None = None,
    ) -> None:
        self._history: list[Message] = list(history)
        self._tool_map = dict(tool_map)
        self.accumulator = accumulator or MessageAccumulator()
        self.executor = executor or ToolExecutor()
        self.accumulated_message: Message = empty_model_message()
        self.last_chunk: ModelChunk = ModelChunk()
        self.usage: Usage | None = None
        self.iteration = 0
        self.empty_after_tools_continuations = 0
        self._tool_call_ids: set[str] = {
            call.id for message in self._history for call in message.tool_calls
        }
        self._suppressed_metadata: dict[str, Any] = {}
        self._suppressed_text: list[str] = []

    @property
    def history(self) -> list[Message]:
        return list(self._history)

    @property
    def tool_map(self) -> Mapping[str, Tool]:
        return MappingProxyType(self._tool_map)

    @property
    def suppressed_metadata(self) -> dict[str, Any]:
        return dict(self._suppressed_metadata)

    @property
    def suppressed_text(self) -> str:
        return "".join(self._suppressed_text)

    def reset_for_new_message(self) -> None:
        self.accumulated_message = empty_model_message()
        self.last_chunk = ModelChunk()

    def record_chunk(self, chunk: ModelChunk) -> None:
        self.accumulated_message = self.accumulator.accumulate(
            self.accumulated_message, chunk.message
        )
        self.last_chunk = chunk
        if chunk.usage is not None:
            self.usage = chunk.usage if self.usage is None else self.usage + chunk.usage

    def add_to_history(self, message: Message) -> None:
        self._history.append(message)

    def register_tool_calls(self, calls: Sequence[ToolCallPart]) -> None:
        for call in calls:
            if call.id in self._tool_call_ids:
                logger.warning("Duplicate tool call id %s (%s) in conversation", call.id, call.name)
            self._tool_call_ids.add(call.id)

    def add_suppressed_metadata(self, metadata: Mapping[str, Any]) -> None:
        self._suppressed_metadata.update(metadata)

    def add_suppressed_text(self, text: str) -> None:
        if text:
            self._suppressed_text.append(text)

    def clear_suppressed(self) -> None:
        self._suppressed_metadata.clear()
        self._suppressed_text.clear()

    def note_empty_after_tools(self) -> None:
        self.empty_after_tools_continuations += 1

    def reset_empty_after_tools(self) -> None:
        self.empty_after_tools_continuations = 0

    def has_recent_tool_execution(self) -> bool:
        return any(m.tool_results for m in self._history[-2:])
