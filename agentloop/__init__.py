"""Provider-agnostic agent loop over streaming chat models."""

from __future__ import annotations

from .agent import Agent, TypedChatResult
from .config import AgentConfig, configure_logging
from .errors import (
    AgentError,
    HistoryAlternationError,
    IterationLimitError,
    ReservedToolNameError,
    SchemaDecodeError,
    UnsupportedCapabilityError,
)
from .messages import (
    ChatResult,
    Chunk,
    DataPart,
    LinkPart,
    Message,
    ModelChunk,
    Role,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    Usage,
)
from .provider_capabilities import ProviderCapabilities, get_provider_capabilities
from .tools import Tool

__all__ = [
    "Agent",
    "AgentConfig",
    "AgentError",
    "ChatResult",
    "Chunk",
    "DataPart",
    "HistoryAlternationError",
    "IterationLimitError",
    "LinkPart",
    "Message",
    "ModelChunk",
    "ProviderCapabilities",
    "ReservedToolNameError",
    "Role",
    "SchemaDecodeError",
    "TextPart",
    "Tool",
    "ToolCallPart",
    "ToolResultPart",
    "TypedChatResult",
    "UnsupportedCapabilityError",
    "Usage",
    "configure_logging",
    "get_provider_capabilities",
]
