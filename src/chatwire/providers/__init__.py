"""Provider adapters."""

from .anthropic import AnthropicAdapter
from .base import ProviderAdapter, ProviderCapabilities
from .gemini import GoogleAdapter
from .openai import OpenAIAdapter
from .registry import ProviderName, get_adapter, provider_names

__all__ = [
    "AnthropicAdapter",
    "GoogleAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "ProviderCapabilities",
    "ProviderName",
    "get_adapter",
    "provider_names",
]
