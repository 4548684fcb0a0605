"""Model adapter backed by a LangChain chat model."""

from __future__ import annotations

import base64
import logging
from typing import Any, AsyncIterator, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import (
    AIMessage,
    AIMessageChunk,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)

from ..accumulator import generate_tool_call_id
from ..config import AgentConfig
from ..messages import (
    DataPart,
    LinkPart,
    Message,
    ModelChunk,
    Part,
    Role,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    Usage,
)
from ..provider_capabilities import ProviderCapabilities
from ..tools.base import Tool
from .base import ModelAdapter
from .contracts import ProviderContract

logger = logging.getLogger("agentloop.adapters.langchain")

_REPLACEMENT_CHAR = "\ufffd"


def sanitize_delta(text: str) -> str:
    """Strip U+FFFD replacement characters from streaming deltas."""
    if _REPLACEMENT_CHAR not in text:
        return text
    logger.warning("Stripped %d U+FFFD from delta: %r",
                   text.count(_REPLACEMENT_CHAR), text[:200])
    return text.replace(_REPLACEMENT_CHAR, "")


def _data_uri(part: DataPart) -> str:
    encoded = base64.b64encode(part.data).decode("ascii")
    return f"data:{part.mime_type};base64,{encoded}"


def _content_block(part: Part) -> dict[str, Any] | None:
    if isinstance(part, TextPart):
        return {"type": "text", "text": part.text}
    if isinstance(part, DataPart):
        if part.mime_type.startswith("image/"):
            return {"type": "image_url", "image_url": {"url": _data_uri(part)}}
        block: dict[str, Any] = {
            "type": "file",
            "source_type": "base64",
            "data": base64.b64encode(part.data).decode("ascii"),
            "mime_type": part.mime_type,
        }
        if part.name:
            block["filename"] = part.name
        return block
    if isinstance(part, LinkPart):
        if (part.mime_type or "").startswith("image/"):
            return {"type": "image_url", "image_url": {"url": part.url}}
        return {"type": "text", "text": part.url}
    return None


def _user_content(parts: Sequence[Part]) -> str | list[dict[str, Any]]:
    blocks = [b for b in (_content_block(p) for p in parts) if b is not None]
    if all(b["type"] == "text" for b in blocks):
        return "".join(b["text"] for b in blocks)
    return blocks


def to_langchain_messages(history: Sequence[Message]) -> list[BaseMessage]:
    """Convert conversation messages to LangChain message objects.

    A user message carrying tool results becomes one ``ToolMessage`` per
    result; the vendor integration regroups them into its own wire format.
    """
    messages: list[BaseMessage] = []
    for message in history:
        if message.role == Role.SYSTEM:
            messages.append(SystemMessage(content=message.text))
        elif message.role == Role.USER:
            other_parts: list[Part] = []
            for part in message.parts:
                if isinstance(part, ToolResultPart):
                    messages.append(ToolMessage(
                        content=part.text,
                        tool_call_id=part.tool_call_id,
                        name=part.name,
                        status="error" if part.is_error else "success",
                    ))
                else:
                    other_parts.append(part)
            if other_parts or not message.tool_results:
                messages.append(HumanMessage(content=_user_content(other_parts)))
        else:
            messages.append(AIMessage(
                content=message.text,
                tool_calls=[
                    {"id": tc.id, "name": tc.name, "args": dict(tc.arguments)}
                    for tc in message.tool_calls
                ],
            ))
    return messages


def _usage_from_chunk(chunk: AIMessageChunk) -> Usage | None:
    usage = getattr(chunk, "usage_metadata", None)
    if not usage:
        return None
    return Usage(
        input_tokens=usage.get("input_tokens"),
        output_tokens=usage.get("output_tokens"),
    )


def _finish_reason(chunk: AIMessageChunk) -> str | None:
    metadata = getattr(chunk, "response_metadata", None) or {}
    reason = metadata.get("finish_reason") or metadata.get("stop_reason")
    return str(reason) if reason else None


class LangChainChatAdapter(ModelAdapter):
    """Streams a LangChain ``BaseChatModel`` as :class:`ModelChunk` values."""

    def __init__(
        self,
        llm: BaseChatModel,
        contract: ProviderContract,
        config: AgentConfig | None = None,
    ) -> None:
        self.llm = llm
        self.contract = contract
        self.config = config or AgentConfig()

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self.contract.capabilities

    def _prepare_llm(
        self,
        tools: Sequence[Tool] | None,
        output_schema: dict[str, Any] | None,
    ) -> Any:
        llm: Any = self.llm
        if tools:
            llm = llm.bind_tools([tool.to_function_spec() for tool in tools])
        kwargs = self.contract.build_request_kwargs(
            thinking_budget=(
                self.config.effective_thinking_budget if self.config.enable_thinking else None
            ),
            output_schema=output_schema,
        )
        if kwargs:
            llm = llm.bind(**kwargs)
        return llm

    def _convert_content(self, content: Any) -> tuple[list[Part], str]:
        texts, thinking = self.contract.split_content(content)
        parts: list[Part] = []
        for raw in texts:
            delta = sanitize_delta(raw)
            if delta:
                parts.append(TextPart(delta))
        return parts, sanitize_delta(thinking)

    @staticmethod
    def _tool_call_fragment(tc_chunk: Any, index_ids: dict[int, str]) -> ToolCallPart:
        def _get(obj: Any, key: str, default: Any = None) -> Any:
            if isinstance(obj, dict):
                return obj.get(key, default)
            return getattr(obj, key, default)

        idx = _get(tc_chunk, "index")
        if idx is None:
            idx = 0
        tc_id = _get(tc_chunk, "id") or index_ids.get(idx) or generate_tool_call_id()
        index_ids[idx] = tc_id
        return ToolCallPart(
            id=tc_id,
            name=_get(tc_chunk, "name") or "",
            raw_arguments=_get(tc_chunk, "args") or "",
            partial=True,
        )

    async def send_stream(
        self,
        history: Sequence[Message],
        *,
        tools: Sequence[Tool] | None = None,
        output_schema: dict[str, Any] | None = None,
    ) -> AsyncIterator[ModelChunk]:
        llm = self._prepare_llm(tools, output_schema)
        messages = to_langchain_messages(history)
        logger.debug(
            "Streaming %s request: %d messages, %d tools, schema=%s",
            self.contract.provider,
            len(messages),
            len(tools or ()),
            output_schema is not None,
        )

        index_ids: dict[int, str] = {}
        finish_reason: str | None = None
        async for chunk in llm.astream(messages):
            if not isinstance(chunk, AIMessageChunk):
                continue
            parts, thinking = self._convert_content(chunk.content)
            for tc_chunk in chunk.tool_call_chunks or []:
                parts.append(self._tool_call_fragment(tc_chunk, index_ids))
            finish_reason = _finish_reason(chunk) or finish_reason
            yield ModelChunk(
                message=Message(Role.MODEL, tuple(parts)),
                thinking=thinking or None,
                usage=_usage_from_chunk(chunk),
                finish_reason=finish_reason,
            )

        yield ModelChunk(finish_reason=finish_reason, is_final=True)
