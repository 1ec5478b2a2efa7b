"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration and adapter test
doubles. Environment fixtures are autouse.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import suppress
from dataclasses import dataclass, field
import json
import logging
import os
from typing import Any

import pytest

from chatwire.events import StreamEvent
from chatwire.providers.base import ProviderCapabilities
from chatwire.providers.models import (
    Message,
    ProviderRequest,
    StreamRequestInput,
    TitleRequestInput,
)

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class FakeAdapter:
    """Adapter test double.

    ``parse_sse_line`` returns scripted events keyed by payload (unknown
    payloads decode to nothing) and ``parse_title_response`` delegates to a
    configurable callable. Every call is recorded for assertions.
    """

    lines: dict[str, list[StreamEvent]] = field(default_factory=dict)
    title_parser: Callable[[Any], str | None] = lambda _body: None
    seen_lines: list[str] = field(default_factory=list)
    seen_bodies: list[Any] = field(default_factory=list)
    raise_on: str | None = None

    @property
    def provider_type(self) -> str:
        return "fake"

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(thinking=False)

    def build_stream_request(self, input: StreamRequestInput) -> ProviderRequest:
        del input
        return ProviderRequest(url="https://example.com/stream", body="{}")

    def parse_sse_line(self, raw_json_line: str) -> list[StreamEvent]:
        self.seen_lines.append(raw_json_line)
        if self.raise_on is not None and raw_json_line == self.raise_on:
            raise ValueError(f"cannot decode {raw_json_line!r}")
        return list(self.lines.get(raw_json_line, []))

    def build_title_request(self, input: TitleRequestInput) -> ProviderRequest:
        del input
        return ProviderRequest(url="https://example.com/title", body="{}")

    def parse_title_response(self, body: Any) -> str | None:
        self.seen_bodies.append(body)
        return self.title_parser(body)


@pytest.fixture
def fake_adapter() -> FakeAdapter:
    """Return a fresh FakeAdapter."""
    return FakeAdapter()


async def aiter_chunks(chunks: Iterable[bytes | str]) -> AsyncIterator[bytes | str]:
    """Expose *chunks* as an async stream, like a response body."""
    for chunk in chunks:
        yield chunk


def sse(*payloads: dict[str, Any] | str) -> bytes:
    """Frame payloads as an SSE body (``data:`` lines separated by blank lines)."""
    frames = []
    for payload in payloads:
        text = payload if isinstance(payload, str) else json.dumps(payload)
        frames.append(f"data: {text}\n\n")
    return "".join(frames).encode("utf-8")


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================

_PROVIDER_ENV_PREFIXES = (
    "ANTHROPIC_",
    "OPENAI_",
    "DEEPSEEK_",
    "GEMINI_",
    "CHATWIRE_",
)


@pytest.fixture(autouse=True)
def block_dotenv(monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests."""
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_provider_env(monkeypatch):
    """Ensure a clean provider environment for each test."""
    for key in list(os.environ.keys()):
        if key.startswith(_PROVIDER_ENV_PREFIXES):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Shared Inputs
# =============================================================================

ANTHROPIC_MODEL = "claude-sonnet-4-5"
OPENAI_MODEL = "gpt-4o-mini"
GEMINI_MODEL = "gemini-2.5-flash"


@pytest.fixture
def hello_messages() -> tuple[Message, ...]:
    """A single-turn conversation."""
    return (Message(role="user", content="hello world"),)
