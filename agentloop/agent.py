"""Agent facade: orchestrator selection and the top-level iteration loop."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Generic, Sequence, TypeVar, Union

from langchain_core.tools import BaseTool
from pydantic import BaseModel, ValidationError

from .accumulator import ResponseAccumulator
from .adapters.base import ModelAdapter
from .config import AgentConfig
from .errors import IterationLimitError, SchemaDecodeError
from .history import build_request_history
from .messages import ChatResult, Chunk, Message, Part, Role
from .orchestrators import select_orchestrator
from .provider_capabilities import ProviderCapabilities
from .streaming_state import StreamingState
from .tools.base import Tool, as_tool, build_tool_map

logger = logging.getLogger("agentloop.agent")

T = TypeVar("T")
OutputType = Union[type[BaseModel], dict[str, Any]]


@dataclass(frozen=True)
class TypedChatResult(Generic[T]):
    value: T
    result: ChatResult


def schema_for(output_type: OutputType) -> dict[str, Any]:
    if isinstance(output_type, type) and issubclass(output_type, BaseModel):
        return output_type.model_json_schema()
    if isinstance(output_type, dict):
        return dict(output_type)
    raise TypeError(f"Unsupported output type: {output_type!r}")


def decode_output(text: str, output_type: OutputType) -> Any:
    """Decode the final text of a typed call.

    Raises:
        SchemaDecodeError: If the text is not valid JSON or does not match
            the requested pydantic model.
    """
    if isinstance(output_type, type) and issubclass(output_type, BaseModel):
        try:
            return output_type.model_validate_json(text)
        except ValidationError as exc:
            raise SchemaDecodeError(text, exc) from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise SchemaDecodeError(text, exc) from exc


def final_text(result: ChatResult) -> str:
    """Text of the last model message, which carries a typed call's answer."""
    for message in reversed(result.messages):
        if message.role == Role.MODEL:
            return message.text
    return result.output


class Agent:
    """Sends prompts to one model adapter and streams unified results.

    The agent keeps no per-conversation state between calls: pass the
    ``messages`` of a result back as ``history`` to continue a conversation.
    """

    def __init__(
        self,
        adapter: ModelAdapter,
        *,
        tools: Sequence[Tool | BaseTool] = (),
        config: AgentConfig | None = None,
    ) -> None:
        self.adapter = adapter
        self.tools: list[Tool] = [as_tool(t) for t in tools]
        self.config = config or AgentConfig()
        build_tool_map(self.tools)

    @classmethod
    def for_model(
        cls,
        model_string: str,
        *,
        api_key: str,
        tools: Sequence[Tool | BaseTool] = (),
        config: AgentConfig | None = None,
        **kwargs: Any,
    ) -> Agent:
        from .providers import create_adapter

        config = config or AgentConfig()
        adapter = create_adapter(model_string, api_key=api_key, config=config, **kwargs)
        return cls(adapter, tools=tools, config=config)

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self.adapter.capabilities

    async def send_stream(
        self,
        prompt: str | Message,
        *,
        history: Sequence[Message] = (),
        tools: Sequence[Tool | BaseTool] | None = None,
        output_schema: dict[str, Any] | None = None,
        attachments: Sequence[Part] = (),
    ) -> AsyncIterator[Chunk]:
        """Stream the answer to ``prompt``.

        The first chunk carries the new user message; the last one has
        ``is_final`` set and the summed usage of every model request.

        Raises:
            HistoryAlternationError: Before any request, if ``history`` plus
                the prompt breaks role alternation.
            IterationLimitError: If the loop needs more than
                ``config.max_iterations`` model requests.
        """
        prompt_message = (
            prompt if isinstance(prompt, Message) else Message.user(prompt, tuple(attachments))
        )
        request_history = build_request_history(history, prompt_message, self.config.system_prompt)
        call_tools = self.tools if tools is None else [as_tool(t) for t in tools]
        orchestrator, executable_tools = select_orchestrator(
            self.capabilities, call_tools, output_schema
        )
        state = StreamingState(request_history, build_tool_map(executable_tools))
        orchestrator.initialize(state)
        logger.info(
            "Sending prompt via %s orchestrator (provider=%s, tools=%d, schema=%s)",
            orchestrator.provider_hint,
            self.capabilities.provider,
            len(call_tools),
            output_schema is not None,
        )

        yield Chunk(messages=(prompt_message,))

        done = False
        try:
            while not done:
                if state.iteration >= self.config.max_iterations:
                    logger.error(
                        "Agent exceeded maximum of %d iterations", self.config.max_iterations
                    )
                    raise IterationLimitError(self.config.max_iterations)
                state.iteration += 1
                logger.info("Agent iteration %d", state.iteration)

                async for result in orchestrator.process_iteration(
                    self.adapter, state, output_schema=output_schema
                ):
                    if not result.should_continue:
                        done = True
                    if not (
                        done
                        or result.output
                        or result.thinking
                        or result.messages
                        or result.metadata
                    ):
                        continue
                    yield Chunk(
                        output=result.output,
                        thinking=result.thinking,
                        messages=result.messages,
                        metadata=result.metadata,
                        usage=result.usage,
                        finish_reason=result.finish_reason,
                        is_final=done,
                    )
        finally:
            orchestrator.finalize(state)

    async def send(
        self,
        prompt: str | Message,
        *,
        history: Sequence[Message] = (),
        tools: Sequence[Tool | BaseTool] | None = None,
        output_schema: dict[str, Any] | None = None,
        attachments: Sequence[Part] = (),
    ) -> ChatResult:
        """Run :meth:`send_stream` to completion and return one result."""
        accumulator = ResponseAccumulator()
        async for chunk in self.send_stream(
            prompt,
            history=history,
            tools=tools,
            output_schema=output_schema,
            attachments=attachments,
        ):
            accumulator.add(chunk)
        return accumulator.build()

    async def send_for(
        self,
        prompt: str | Message,
        output_type: OutputType,
        *,
        history: Sequence[Message] = (),
        tools: Sequence[Tool | BaseTool] | None = None,
        attachments: Sequence[Part] = (),
    ) -> TypedChatResult[Any]:
        result = await self.send(
            prompt,
            history=history,
            tools=tools,
            output_schema=schema_for(output_type),
            attachments=attachments,
        )
        return TypedChatResult(value=decode_output(final_text(result), output_type), result=result)
