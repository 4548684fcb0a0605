"""Tests for the LangChain-backed model adapter."""

from __future__ import annotations

from unittest.mock import MagicMock

from langchain_core.messages import (
    AIMessage,
    AIMessageChunk,
    HumanMessage,
    SystemMessage,
    ToolCallChunk,
    ToolMessage,
)

from agentloop import Agent, AgentConfig
from agentloop.accumulator import MessageAccumulator
from agentloop.adapters import LangChainChatAdapter, get_provider_contract, to_langchain_messages
from agentloop.adapters.langchain import sanitize_delta
from agentloop.messages import (
    DataPart,
    LinkPart,
    Message,
    Role,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    Usage,
    empty_model_message,
)
from agentloop.tools.result_schema import make_tool_error, make_tool_success

from fakes import text_chunk, tool_call_chunk


def _mock_llm(*turns):
    """A chat model whose ``astream`` replays one chunk list per call."""
    llm = MagicMock()
    llm.bind_tools = MagicMock(return_value=llm)
    llm.bind = MagicMock(return_value=llm)
    llm.seen = []
    scripts = list(turns)

    async def fake_astream(messages):
        llm.seen.append(messages)
        for chunk in scripts.pop(0):
            yield chunk

    llm.astream = fake_astream
    return llm


async def _drain(adapter, history, **kwargs):
    return [chunk async for chunk in adapter.send_stream(history, **kwargs)]


class TestToLangchainMessages:
    def test_roles(self):
        history = [
            Message.system("sys"),
            Message.user("hi"),
            Message.model("hello"),
        ]
        converted = to_langchain_messages(history)
        assert [type(m) for m in converted] == [SystemMessage, HumanMessage, AIMessage]
        assert converted[1].content == "hi"

    def test_tool_calls_and_results(self):
        call = ToolCallPart(id="t1", name="add", arguments={"a": 1})
        results = Message(
            Role.USER,
            (
                ToolResultPart("t1", "add", make_tool_success(kind="add", text="2")),
                ToolResultPart("t2", "nope", make_tool_error(kind="nope", error="Unknown tool: nope")),
            ),
        )
        converted = to_langchain_messages([
            Message.user("q"),
            Message(Role.MODEL, (TextPart("Let me add."), call)),
            results,
        ])

        ai = converted[1]
        assert ai.content == "Let me add."
        assert ai.tool_calls[0]["id"] == "t1"
        assert ai.tool_calls[0]["args"] == {"a": 1}

        assert [type(m) for m in converted[2:]] == [ToolMessage, ToolMessage]
        assert converted[2].tool_call_id == "t1"
        assert converted[2].content == "2"
        assert converted[3].status == "error"
        assert converted[3].content == "Error: Unknown tool: nope"

    def test_attachments_become_content_blocks(self):
        msg = Message.user(
            "describe",
            [
                DataPart(data=b"abc", mime_type="image/png"),
                DataPart(data=b"%PDF", mime_type="application/pdf", name="doc.pdf"),
                LinkPart(url="https://example.com/cat.jpg", mime_type="image/jpeg"),
            ],
        )
        blocks = to_langchain_messages([msg])[0].content
        assert blocks[0] == {"type": "text", "text": "describe"}
        assert blocks[1]["image_url"]["url"] == "data:image/png;base64,YWJj"
        assert blocks[2]["type"] == "file"
        assert blocks[2]["filename"] == "doc.pdf"
        assert blocks[3]["image_url"]["url"] == "https://example.com/cat.jpg"


class TestSanitizeDelta:
    def test_strips_replacement_char(self):
        assert sanitize_delta("a\ufffdb") == "ab"

    def test_clean_text_unchanged(self):
        assert sanitize_delta("plain") == "plain"


class TestLangChainChatAdapter:
    async def test_text_stream(self):
        llm = _mock_llm([text_chunk("Hel"), text_chunk("lo")])
        adapter = LangChainChatAdapter(llm, get_provider_contract("openai"))

        chunks = await _drain(adapter, [Message.user("hi")])

        assert [c.message.text for c in chunks[:-1]] == ["Hel", "lo"]
        assert chunks[-1].is_final
        assert isinstance(llm.seen[0][0], HumanMessage)
        llm.bind_tools.assert_not_called()
        llm.bind.assert_not_called()

    async def test_tool_call_fragments_merge_by_index(self):
        llm = _mock_llm([
            AIMessageChunk(
                content="",
                tool_call_chunks=[ToolCallChunk(name="add", args='{"a": 2', id="c1", index=0)],
            ),
            AIMessageChunk(
                content="",
                tool_call_chunks=[ToolCallChunk(name=None, args=', "b": 3}', id=None, index=0)],
            ),
        ])
        adapter = LangChainChatAdapter(llm, get_provider_contract("openai"))

        chunks = await _drain(adapter, [Message.user("add")])

        acc = MessageAccumulator()
        message = empty_model_message()
        for chunk in chunks:
            message = acc.accumulate(message, chunk.message)
        final = acc.consolidate(message)
        assert final.tool_calls == [ToolCallPart(id="c1", name="add", arguments={"a": 2, "b": 3})]

    async def test_missing_tool_call_id_generated(self):
        llm = _mock_llm([
            AIMessageChunk(
                content="",
                tool_call_chunks=[ToolCallChunk(name="get_time", args="{}", id=None, index=0)],
            ),
        ])
        adapter = LangChainChatAdapter(llm, get_provider_contract("google"))

        chunks = await _drain(adapter, [Message.user("time")])
        assert chunks[0].message.tool_calls[0].id.startswith("call_")

    async def test_thinking_blocks_and_usage(self):
        llm = _mock_llm([
            AIMessageChunk(content=[
                {"type": "thinking", "thinking": "hmm"},
                {"type": "text", "text": "hi"},
            ]),
            AIMessageChunk(
                content="",
                usage_metadata={"input_tokens": 3, "output_tokens": 2, "total_tokens": 5},
                response_metadata={"stop_reason": "end_turn"},
            ),
        ])
        adapter = LangChainChatAdapter(llm, get_provider_contract("anthropic"))

        chunks = await _drain(adapter, [Message.user("hi")])

        assert chunks[0].thinking == "hmm"
        assert chunks[0].message.text == "hi"
        assert chunks[1].usage == Usage(3, 2)
        assert chunks[-1].finish_reason == "end_turn"

    async def test_binds_tools_schema_and_thinking(self, add_tool):
        llm = _mock_llm([text_chunk("{}")])
        adapter = LangChainChatAdapter(
            llm,
            get_provider_contract("openai"),
            AgentConfig(enable_thinking=True, thinking_budget=2048),
        )
        schema = {"type": "object"}

        await _drain(adapter, [Message.user("go")], tools=[add_tool], output_schema=schema)

        specs = llm.bind_tools.call_args.args[0]
        assert specs[0]["function"]["name"] == "add"
        bound = llm.bind.call_args.kwargs
        assert bound["response_format"]["json_schema"]["schema"] == schema
        assert bound["reasoning"] == {"effort": "high", "summary": "auto"}
        assert bound["max_completion_tokens"] == 2048

    async def test_thinking_not_bound_without_native_support(self):
        llm = _mock_llm([text_chunk("ok")])
        adapter = LangChainChatAdapter(
            llm, get_provider_contract("mistral"), AgentConfig(enable_thinking=True)
        )
        await _drain(adapter, [Message.user("go")])
        llm.bind.assert_not_called()


class TestAgentOverLangChain:
    async def test_tool_round_trip(self, add_tool):
        llm = _mock_llm(
            [text_chunk("Adding. "), tool_call_chunk("add", {"a": 2, "b": 3}, tc_id="c1")],
            [text_chunk("The sum is 5.")],
        )
        adapter = LangChainChatAdapter(llm, get_provider_contract("openai"))

        result = await Agent(adapter, tools=[add_tool]).send("2+3?")

        assert result.output == "Adding. The sum is 5."
        second_request = llm.seen[1]
        assert isinstance(second_request[-1], ToolMessage)
        assert second_request[-1].tool_call_id == "c1"
        assert second_request[-1].content == '{"sum":5}'
