"""Provider capability registry used for orchestrator selection."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderCapabilities:
    provider: str
    token_limit_param: str = "max_tokens"
    supports_tools: bool = False
    supports_native_schema: bool = False
    supports_tools_with_schema: bool = False
    supports_native_thinking: bool = False


_CAPABILITIES: dict[str, ProviderCapabilities] = {
    "openai": ProviderCapabilities(
        provider="openai",
        token_limit_param="max_completion_tokens",
        supports_tools=True,
        supports_native_schema=True,
        supports_tools_with_schema=True,
        supports_native_thinking=True,
    ),
    "anthropic": ProviderCapabilities(
        provider="anthropic",
        token_limit_param="max_tokens",
        supports_tools=True,
        supports_native_schema=False,
        supports_tools_with_schema=False,
        supports_native_thinking=True,
    ),
    "google": ProviderCapabilities(
        provider="google",
        token_limit_param="max_output_tokens",
        supports_tools=True,
        supports_native_schema=True,
        supports_tools_with_schema=False,
        supports_native_thinking=True,
    ),
    "mistral": ProviderCapabilities(
        provider="mistral",
        token_limit_param="max_tokens",
        supports_tools=True,
        supports_native_schema=True,
        supports_tools_with_schema=True,
        supports_native_thinking=False,
    ),
}


def get_provider_capabilities(provider: str) -> ProviderCapabilities:
    key = (provider or "").strip().lower()
    if key in _CAPABILITIES:
        return _CAPABILITIES[key]
    return ProviderCapabilities(provider=key or "unknown")
