"""Model adapters."""

from __future__ import annotations

from .base import ModelAdapter
from .contracts import ProviderContract, get_provider_contract
from .langchain import LangChainChatAdapter, to_langchain_messages

__all__ = [
    "LangChainChatAdapter",
    "ModelAdapter",
    "ProviderContract",
    "get_provider_contract",
    "to_langchain_messages",
]
