"""Chat model and adapter construction from ``provider:model`` strings."""

from __future__ import annotations

import logging
from typing import Any, NamedTuple

from langchain.chat_models import init_chat_model
from langchain_core.language_models.chat_models import BaseChatModel

from .adapters import LangChainChatAdapter, get_provider_contract
from .config import AgentConfig

logger = logging.getLogger("agentloop.providers")

SUPPORTED_PROVIDERS = ("openai", "anthropic", "google", "mistral")

# Map our provider names to init_chat_model's model_provider values.
_PROVIDER_MAP = {
    "openai": "openai",
    "anthropic": "anthropic",
    "google": "google_genai",
    "mistral": "mistralai",
}

_PROVIDER_ALIASES = {
    "gemini": "google",
    "googleai": "google",
    "claude": "anthropic",
    "mistralai": "mistral",
}

DEFAULT_MODELS = {
    "openai": "gpt-4o",
    "anthropic": "claude-sonnet-4-20250514",
    "google": "gemini-2.5-flash",
    "mistral": "mistral-medium-latest",
}


class ModelString(NamedTuple):
    provider: str
    model: str


def normalize_provider(provider: str) -> str:
    """Lower-case ``provider`` and resolve aliases.

    Raises:
        ValueError: If the provider is not supported.
    """
    key = (provider or "").strip().lower()
    key = _PROVIDER_ALIASES.get(key, key)
    if key not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unsupported provider: {key!r}. "
            f"Supported: {', '.join(SUPPORTED_PROVIDERS)}"
        )
    return key


def parse_model_string(model_string: str) -> ModelString:
    """Parse ``provider``, ``provider:model`` or ``provider/model``.

    A bare provider name selects that provider's default model.
    """
    raw = (model_string or "").strip()
    if not raw:
        raise ValueError("Model string must not be empty")

    provider, model = raw, ""
    for sep in (":", "/"):
        if sep in raw:
            provider, model = raw.split(sep, 1)
            break
    provider = normalize_provider(provider)
    return ModelString(provider, model.strip() or DEFAULT_MODELS[provider])


def create_chat_model(
    provider: str,
    model: str,
    api_key: str,
    *,
    endpoint_url: str | None = None,
    streaming: bool = True,
    temperature: float = 0.0,
    **kwargs: Any,
) -> BaseChatModel:
    """Create a LangChain chat model for the given provider.

    Args:
        provider: A supported provider name or alias.
        model: Vendor model name.
        api_key: Provider API key.
        endpoint_url: Optional custom endpoint URL. Ignored for Google.
        streaming: Whether to enable streaming.
        temperature: Sampling temperature.
        **kwargs: Additional provider-specific kwargs.

    Raises:
        ValueError: If the provider is not supported.
    """
    provider = normalize_provider(provider)
    params: dict[str, Any] = {
        "api_key": api_key,
        "streaming": streaming,
        "temperature": temperature,
        **kwargs,
    }
    if endpoint_url:
        if provider == "mistral":
            params["endpoint"] = endpoint_url
        elif provider == "google":
            logger.warning("endpoint_url is not supported for google; ignoring")
        else:
            params["base_url"] = endpoint_url

    return init_chat_model(
        model=model,
        model_provider=_PROVIDER_MAP[provider],
        **params,
    )


def create_adapter(
    model_string: str,
    *,
    api_key: str,
    endpoint_url: str | None = None,
    config: AgentConfig | None = None,
    **kwargs: Any,
) -> LangChainChatAdapter:
    """Build a streaming model adapter from a ``provider:model`` string."""
    parsed = parse_model_string(model_string)
    logger.info("Creating %s adapter for model %s", parsed.provider, parsed.model)
    llm = create_chat_model(
        parsed.provider,
        parsed.model,
        api_key,
        endpoint_url=endpoint_url,
        **kwargs,
    )
    return LangChainChatAdapter(llm, get_provider_contract(parsed.provider), config)
