"""Provider identifier → adapter mapping."""

from __future__ import annotations

from typing import Literal

from chatwire.errors import ConfigurationError
from chatwire.providers.anthropic import AnthropicAdapter
from chatwire.providers.base import ProviderAdapter
from chatwire.providers.gemini import GoogleAdapter
from chatwire.providers.openai import OpenAIAdapter

ProviderName = Literal["anthropic", "openai", "deepseek", "google", "custom"]

# Adapters are stateless, so one shared instance per identifier is enough.
_ADAPTERS: dict[str, ProviderAdapter] = {
    "anthropic": AnthropicAdapter(),
    "openai": OpenAIAdapter("openai"),
    "deepseek": OpenAIAdapter("deepseek", send_reasoning_effort=False),
    "google": GoogleAdapter(),
    "custom": OpenAIAdapter("custom", send_reasoning_effort=False),
}


def provider_names() -> tuple[str, ...]:
    """Return the registered provider identifiers."""
    return tuple(_ADAPTERS)


def get_adapter(provider_type: str) -> ProviderAdapter:
    """Return the adapter registered for *provider_type*."""
    try:
        return _ADAPTERS[provider_type]
    except KeyError:
        supported = ", ".join(repr(name) for name in _ADAPTERS)
        raise ConfigurationError(
            f"Unknown provider: {provider_type!r}",
            hint=f"Supported providers: {supported}",
        ) from None
