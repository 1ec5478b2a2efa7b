"""Configuration: frozen Config with explicit provider/model requirements."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import os
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from chatwire.errors import ConfigurationError
from chatwire.providers.models import (
    Message,
    StreamRequestInput,
    TitleRequestInput,
)
from chatwire.providers.registry import ProviderName, get_adapter, provider_names

if TYPE_CHECKING:
    from chatwire.providers.base import ProviderAdapter

load_dotenv()

# Provider-specific API key environment variable names
_API_KEY_ENV_VARS: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "google": "GEMINI_API_KEY",
    "custom": "CHATWIRE_API_KEY",
}

_DEFAULT_BASE_URLS: dict[str, str] = {
    "anthropic": "https://api.anthropic.com",
    "openai": "https://api.openai.com/v1",
    "deepseek": "https://api.deepseek.com",
    "google": "https://generativelanguage.googleapis.com",
}


@dataclass(frozen=True)
class Config:
    """Immutable connection settings for one provider channel.

    Provider and model are required. API keys and base URLs are
    auto-resolved when omitted; ``custom`` endpoints must pass ``base_url``.

    Example:
        config = Config(provider="anthropic", model="claude-sonnet-4-5")
        # API key is automatically resolved from ANTHROPIC_API_KEY
    """

    provider: ProviderName
    model: str
    #: Auto-resolved from the provider's environment variable when *None*.
    api_key: str | None = None
    base_url: str | None = None

    def __post_init__(self) -> None:
        """Auto-resolve credentials and endpoint, then validate."""
        if self.provider not in provider_names():
            supported = ", ".join(repr(name) for name in provider_names())
            raise ConfigurationError(
                f"Unknown provider: {self.provider!r}",
                hint=f"Supported providers: {supported}",
            )

        if not self.model or not self.model.strip():
            raise ConfigurationError(
                "model must be a non-empty string",
                hint="Pass the provider's model id, e.g. model='gpt-4o-mini'.",
            )

        if self.base_url is None:
            default = _DEFAULT_BASE_URLS.get(self.provider)
            if default is None:
                raise ConfigurationError(
                    f"base_url required for {self.provider}",
                    hint="Pass base_url=... pointing at an OpenAI-compatible endpoint.",
                )
            object.__setattr__(self, "base_url", default)

        env_var = _API_KEY_ENV_VARS[self.provider]
        if self.api_key is None:
            object.__setattr__(self, "api_key", os.environ.get(env_var))

        if not self.api_key:
            raise ConfigurationError(
                f"API key required for {self.provider}",
                hint=f"Set {env_var} environment variable or pass api_key=...",
            )

    @property
    def adapter(self) -> ProviderAdapter:
        """The adapter registered for this provider."""
        return get_adapter(self.provider)

    def stream_input(
        self,
        messages: Iterable[Message],
        *,
        tools: Iterable[dict[str, Any]] | None = None,
        system_prompt: str | None = None,
        thinking: bool = False,
        max_tokens: int | None = None,
    ) -> StreamRequestInput:
        """Build a StreamRequestInput bound to this channel."""
        return StreamRequestInput(
            base_url=str(self.base_url),
            api_key=str(self.api_key),
            model_id=self.model,
            messages=tuple(messages),
            tools=tuple(tools) if tools is not None else None,
            system_prompt=system_prompt,
            thinking_enabled=thinking,
            max_tokens=max_tokens,
        )

    def title_input(self, prompt: str) -> TitleRequestInput:
        """Build a TitleRequestInput bound to this channel."""
        return TitleRequestInput(
            base_url=str(self.base_url),
            api_key=str(self.api_key),
            model_id=self.model,
            prompt=prompt,
        )

    def __str__(self) -> str:
        """Return a redacted, developer-friendly representation."""
        return (
            f"Config(provider={self.provider!r}, model={self.model!r}, "
            f"base_url={self.base_url!r}, "
            f"api_key={'[REDACTED]' if self.api_key else None})"
        )

    __repr__ = __str__
