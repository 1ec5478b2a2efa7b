"""Adapter protocol: the contract every provider family implements."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from chatwire.events import StreamEvent
    from chatwire.providers.models import (
        ProviderRequest,
        StreamRequestInput,
        TitleRequestInput,
    )


@dataclass(frozen=True)
class ProviderCapabilities:
    """Feature flags exposed by adapters."""

    thinking: bool
    tools: bool = True
    attachments: bool = True


@runtime_checkable
class ProviderAdapter(Protocol):
    """Build provider requests and decode provider responses.

    Adapters hold no per-request state, so one instance can serve any number
    of concurrent streams.
    """

    @property
    def provider_type(self) -> str:
        """Identifier of the provider family (e.g. ``"anthropic"``)."""
        ...

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Feature flags for request validation."""
        ...

    def build_stream_request(self, input: StreamRequestInput) -> ProviderRequest:
        """Build a streaming chat request."""
        ...

    def parse_sse_line(self, raw_json_line: str) -> list[StreamEvent]:
        """Decode one SSE ``data:`` payload into zero or more events."""
        ...

    def build_title_request(self, input: TitleRequestInput) -> ProviderRequest:
        """Build a minimal, non-streaming title request."""
        ...

    def parse_title_response(self, body: Any) -> str | None:
        """Extract the title from a non-streaming response body, if present."""
        ...
