"""Model adapter contract consumed by the orchestrators."""

from __future__ import annotations

import abc
from typing import Any, AsyncIterator, Sequence

from ..messages import Message, ModelChunk
from ..provider_capabilities import ProviderCapabilities
from ..tools.base import Tool


class ModelAdapter(abc.ABC):
    """One vendor chat model behind a uniform streaming interface.

    ``send_stream`` yields partial results for a single model request and
    finishes with a chunk whose ``is_final`` flag is set. Transport errors,
    timeouts and authentication are the adapter's business and propagate to
    the caller unchanged.
    """

    @property
    @abc.abstractmethod
    def capabilities(self) -> ProviderCapabilities:
        ...

    @abc.abstractmethod
    def send_stream(
        self,
        history: Sequence[Message],
        *,
        tools: Sequence[Tool] | None = None,
        output_schema: dict[str, Any] | None = None,
    ) -> AsyncIterator[ModelChunk]:
        ...
