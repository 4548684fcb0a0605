"""Conversation data model shared by adapters, orchestrators and callers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Union


class Role(str, enum.Enum):
    SYSTEM = "system"
    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class TextPart:
    text: str


@dataclass(frozen=True)
class ToolCallPart:
    """A request from the model to run a tool.

    Vendors may stream argument JSON incrementally. Such fragments arrive as
    ``partial=True`` stubs whose ``raw_arguments`` hold the JSON text seen so
    far; consolidation turns them into complete calls. ``parse_error`` is set
    when the final argument text could not be decoded.
    """

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    raw_arguments: str = ""
    partial: bool = False
    parse_error: str | None = None


@dataclass(frozen=True)
class ToolResultPart:
    """The outcome of one tool call, keyed by the originating call id.

    ``result`` is the normalized envelope built by
    :mod:`agentloop.tools.result_schema`.
    """

    tool_call_id: str
    name: str
    result: dict[str, Any]

    @property
    def text(self) -> str:
        return str(self.result.get("text", ""))

    @property
    def is_error(self) -> bool:
        return not bool(self.result.get("success", False))


@dataclass(frozen=True)
class DataPart:
    data: bytes
    mime_type: str
    name: str | None = None


@dataclass(frozen=True)
class LinkPart:
    url: str
    mime_type: str | None = None


Part = Union[TextPart, ToolCallPart, ToolResultPart, DataPart, LinkPart]


@dataclass(frozen=True)
class Message:
    role: Role
    parts: tuple[Part, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.parts, tuple):
            object.__setattr__(self, "parts", tuple(self.parts))

    @classmethod
    def system(cls, text: str) -> Message:
        return cls(Role.SYSTEM, (TextPart(text),))

    @classmethod
    def user(cls, text: str, attachments: tuple[Part, ...] | list[Part] = ()) -> Message:
        parts: list[Part] = [TextPart(text)] if text else []
        parts.extend(attachments)
        return cls(Role.USER, tuple(parts))

    @classmethod
    def model(cls, text: str, metadata: dict[str, Any] | None = None) -> Message:
        return cls(Role.MODEL, (TextPart(text),) if text else (), dict(metadata or {}))

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def tool_calls(self) -> list[ToolCallPart]:
        return [p for p in self.parts if isinstance(p, ToolCallPart)]

    @property
    def tool_results(self) -> list[ToolResultPart]:
        return [p for p in self.parts if isinstance(p, ToolResultPart)]

    def with_parts(self, parts: tuple[Part, ...] | list[Part]) -> Message:
        return replace(self, parts=tuple(parts))

    def with_metadata(self, metadata: dict[str, Any]) -> Message:
        return replace(self, metadata=dict(metadata))


def empty_model_message() -> Message:
    return Message(Role.MODEL, ())


@dataclass(frozen=True)
class Usage:
    input_tokens: int | None = None
    output_tokens: int | None = None

    @property
    def total_tokens(self) -> int | None:
        if self.input_tokens is None and self.output_tokens is None:
            return None
        return (self.input_tokens or 0) + (self.output_tokens or 0)

    def __add__(self, other: Usage | None) -> Usage:
        if other is None:
            return self

        def _sum(a: int | None, b: int | None) -> int | None:
            if a is None and b is None:
                return None
            return (a or 0) + (b or 0)

        return Usage(
            input_tokens=_sum(self.input_tokens, other.input_tokens),
            output_tokens=_sum(self.output_tokens, other.output_tokens),
        )


@dataclass(frozen=True)
class ModelChunk:
    """One partial result emitted by a model adapter."""

    message: Message = field(default_factory=empty_model_message)
    thinking: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    usage: Usage | None = None
    finish_reason: str | None = None
    is_final: bool = False


@dataclass(frozen=True)
class Chunk:
    """One unit of streamed output handed to the caller.

    ``output`` is a delta: concatenating ``output`` across a stream yields the
    full answer.
    """

    output: str = ""
    thinking: str | None = None
    messages: tuple[Message, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)
    usage: Usage | None = None
    finish_reason: str | None = None
    is_final: bool = False


@dataclass(frozen=True)
class ChatResult:
    output: str
    messages: tuple[Message, ...] = ()
    thinking: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    usage: Usage | None = None
    finish_reason: str | None = None
