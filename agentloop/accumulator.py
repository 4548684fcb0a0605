"""Merging of streamed message fragments and chunk streams."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import replace
from typing import Any

from .messages import (
    ChatResult,
    Chunk,
    Message,
    Part,
    TextPart,
    ToolCallPart,
    Usage,
)

logger = logging.getLogger("agentloop.accumulator")


def generate_tool_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:24]}"


def _merge_tool_call(existing: ToolCallPart, incoming: ToolCallPart) -> ToolCallPart:
    if incoming.partial:
        return replace(
            existing,
            name=incoming.name or existing.name,
            raw_arguments=existing.raw_arguments + incoming.raw_arguments,
        )
    if not incoming.name:
        return replace(incoming, name=existing.name)
    return incoming


def _finalize_tool_call(part: ToolCallPart) -> ToolCallPart | None:
    if not part.name:
        # Ghost entry from a vendor index gap.
        return None
    tc_id = part.id or generate_tool_call_id()
    if not part.partial:
        return part if part.id else replace(part, id=tc_id)

    raw = part.raw_arguments.strip()
    if not raw:
        return ToolCallPart(id=tc_id, name=part.name, arguments=dict(part.arguments))
    try:
        arguments = json.loads(raw)
    except json.JSONDecodeError as exc:
        return ToolCallPart(
            id=tc_id,
            name=part.name,
            raw_arguments=part.raw_arguments,
            parse_error=f"Invalid tool arguments JSON: {exc}",
        )
    if not isinstance(arguments, dict):
        return ToolCallPart(
            id=tc_id,
            name=part.name,
            raw_arguments=part.raw_arguments,
            parse_error=f"Tool arguments must be a JSON object, got {type(arguments).__name__}",
        )
    return ToolCallPart(id=tc_id, name=part.name, arguments=arguments)


class MessageAccumulator:
    """Builds one assistant message out of streamed fragments."""

    def accumulate(self, previous: Message, incoming: Message) -> Message:
        parts: list[Part] = list(previous.parts)
        for part in incoming.parts:
            if isinstance(part, TextPart):
                if parts and isinstance(parts[-1], TextPart):
                    parts[-1] = TextPart(parts[-1].text + part.text)
                else:
                    parts.append(part)
                continue

            if isinstance(part, ToolCallPart) and part.id:
                idx = next(
                    (
                        i
                        for i, p in enumerate(parts)
                        if isinstance(p, ToolCallPart) and p.id == part.id
                    ),
                    None,
                )
                existing = parts[idx] if idx is not None else None
                if isinstance(existing, ToolCallPart):
                    if existing.partial:
                        parts[idx] = _merge_tool_call(existing, part)
                    else:
                        logger.warning(
                            "Ignoring repeated tool call id %s (%s)", part.id, part.name
                        )
                    continue

            parts.append(part)

        metadata = {**previous.metadata, **incoming.metadata}
        return Message(previous.role, tuple(parts), metadata)

    def consolidate(self, message: Message) -> Message:
        parts: list[Part] = []
        for part in message.parts:
            if isinstance(part, TextPart):
                if not part.text:
                    continue
                if parts and isinstance(parts[-1], TextPart):
                    parts[-1] = TextPart(parts[-1].text + part.text)
                else:
                    parts.append(part)
                continue
            if isinstance(part, ToolCallPart):
                finalized = _finalize_tool_call(part)
                if finalized is not None:
                    parts.append(finalized)
                continue
            parts.append(part)
        return Message(message.role, tuple(parts), dict(message.metadata))


def merge_metadata(target: dict[str, Any], incoming: dict[str, Any]) -> None:
    """Merge chunk metadata in place.

    List values (tool progress events) are appended so that streamed and
    buffered consumption see the same event lists; other values are replaced.
    """
    for key, value in incoming.items():
        existing = target.get(key)
        if isinstance(existing, list) and isinstance(value, list):
            target[key] = [*existing, *value]
        elif isinstance(value, list):
            target[key] = list(value)
        else:
            target[key] = value


class ResponseAccumulator:
    """Buffers a chunk stream into a single :class:`ChatResult`."""

    def __init__(self) -> None:
        self._output: list[str] = []
        self._thinking: list[str] = []
        self._messages: list[Message] = []
        self._metadata: dict[str, Any] = {}
        self._usage: Usage | None = None
        self._finish_reason: str | None = None

    def add(self, chunk: Chunk) -> None:
        if chunk.output:
            self._output.append(chunk.output)
        if chunk.thinking:
            self._thinking.append(chunk.thinking)
        self._messages.extend(chunk.messages)
        merge_metadata(self._metadata, chunk.metadata)
        if chunk.usage is not None:
            self._usage = chunk.usage
        if chunk.finish_reason is not None:
            self._finish_reason = chunk.finish_reason

    def build(self) -> ChatResult:
        return ChatResult(
            output="".join(self._output),
            messages=tuple(self._messages),
            thinking="".join(self._thinking) if self._thinking else None,
            metadata=dict(self._metadata),
            usage=self._usage,
            finish_reason=self._finish_reason,
        )
