"""Per-vendor request kwargs and streamed content parsing."""

from __future__ import annotations

from typing import Any

from ...errors import UnsupportedCapabilityError
from ...provider_capabilities import (
    ProviderCapabilities,
    get_provider_capabilities,
)


class ProviderContract:
    """What differs between vendors once LangChain has normalized transport.

    Subclasses override the kwargs builders and the content-block parsers;
    the adapter only ever talks to :meth:`build_request_kwargs` and
    :meth:`split_content`.
    """

    def __init__(self, provider: str) -> None:
        key = (provider or "").strip().lower()
        self.provider = key or "unknown"
        self.capabilities: ProviderCapabilities = get_provider_capabilities(self.provider)

    @property
    def token_limit_param(self) -> str:
        return self.capabilities.token_limit_param

    def build_budget_kwargs(self, budget: int) -> dict[str, Any]:
        return {self.token_limit_param: int(budget)}

    def build_thinking_kwargs(self, budget: int) -> dict[str, Any]:
        return self.build_budget_kwargs(budget)

    def build_schema_kwargs(self, schema: dict[str, Any]) -> dict[str, Any]:
        """Model kwargs that make the vendor emit JSON matching ``schema``."""
        raise UnsupportedCapabilityError(self.provider, "native typed output")

    def build_request_kwargs(
        self,
        *,
        thinking_budget: int | None = None,
        output_schema: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Kwargs to bind for one request.

        ``thinking_budget`` is None when thinking is off; it is ignored for
        providers without native thinking.
        """
        kwargs: dict[str, Any] = {}
        if thinking_budget is not None and self.capabilities.supports_native_thinking:
            kwargs.update(self.build_thinking_kwargs(thinking_budget))
        if output_schema is not None:
            kwargs.update(self.build_schema_kwargs(output_schema))
        return kwargs

    def split_content(self, content: Any) -> tuple[list[str], str]:
        """Split an ``AIMessageChunk.content`` into text deltas and thinking."""
        if isinstance(content, str):
            return ([content] if content else []), ""
        if not isinstance(content, list):
            return [], ""
        texts: list[str] = []
        thinking: list[str] = []
        for block in content:
            if isinstance(block, dict):
                thinking.extend(self.extract_thinking_deltas(block))
                delta = self.extract_text_delta(block)
            else:
                delta = str(block)
            if delta:
                texts.append(delta)
        return texts, "".join(thinking)

    def extract_thinking_deltas(self, block: dict[str, Any]) -> list[str]:
        if block.get("type") != "thinking":
            return []
        thinking = str(block.get("thinking", ""))
        return [thinking] if thinking else []

    def extract_text_delta(self, block: dict[str, Any]) -> str:
        if block.get("type") != "text":
            return ""
        return str(block.get("text", ""))
