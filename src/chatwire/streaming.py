"""Drive provider adapters over live transports.

Three entry points:

- `read_sse_stream`: decode an injected byte/line stream into events.
- `stream_chat`: the same, bound to an ``httpx.AsyncClient``.
- `fetch_title_with_diagnostics`: one-shot title request that reports *why*
  it failed instead of raising.

Transports are always injected so every branch runs without a network.
"""

from __future__ import annotations

import asyncio
import codecs
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, replace
import json
import logging
from typing import TYPE_CHECKING, Any, Literal, Protocol

import httpx

from chatwire._http import SSE_DATA_FIELD, is_success_status, preview_text
from chatwire.errors import InternalError, describe_exception
from chatwire.events import (
    Complete,
    StreamError,
    StreamEvent,
    Usage,
    UsageUpdate,
    is_terminal,
)
from chatwire.extraction import probe_common_response

if TYPE_CHECKING:
    from chatwire.providers.base import ProviderAdapter
    from chatwire.providers.models import ProviderRequest

log = logging.getLogger(__name__)

__all__ = [
    "FetchFn",
    "TitleFailureReason",
    "TitleFetchResult",
    "TitleResponse",
    "fetch_title_with_diagnostics",
    "httpx_fetcher",
    "read_sse_stream",
    "stream_chat",
]

UNTERMINATED_STREAM_MESSAGE = "stream ended before a terminal event"

TitleFailureReason = Literal[
    "success", "http_non_200", "empty_content", "parse_failed", "network_error"
]


class TitleResponse(Protocol):
    """The slice of an HTTP response the title fetcher reads.

    ``httpx.Response`` satisfies it.
    """

    @property
    def status_code(self) -> int: ...  # noqa: D102

    @property
    def text(self) -> str: ...  # noqa: D102


FetchFn = Callable[["ProviderRequest"], Awaitable[TitleResponse]]


@dataclass(frozen=True)
class TitleFetchResult:
    """Diagnosed outcome of a title request.

    ``title`` is set exactly when ``reason == "success"``.
    """

    title: str | None
    reason: TitleFailureReason
    status: int | None = None
    data_preview: str | None = None

    def __post_init__(self) -> None:
        """Enforce the title/reason invariant."""
        if (self.title is not None) != (self.reason == "success"):
            raise InternalError(
                f"TitleFetchResult(title={self.title!r}, reason={self.reason!r}) "
                "violates title-iff-success"
            )

    @property
    def ok(self) -> bool:
        """Whether a title was obtained."""
        return self.reason == "success"


# --- SSE decoding ---


@dataclass
class _UsageTally:
    """Token counts seen so far in one stream."""

    input_tokens: int = 0
    output_tokens: int = 0

    def observe(self, event: UsageUpdate) -> None:
        if event.input_tokens is not None:
            self.input_tokens = event.input_tokens
        if event.output_tokens is not None:
            self.output_tokens = event.output_tokens

    def fill(self, event: Complete) -> Complete:
        """Fill zero counts on *event* from the tally."""
        usage = event.usage
        merged = Usage(
            input_tokens=usage.input_tokens or self.input_tokens,
            output_tokens=usage.output_tokens or self.output_tokens,
        )
        return event if merged == usage else replace(event, usage=merged)


async def _iter_lines(source: AsyncIterable[bytes | str]) -> AsyncIterator[str]:
    """Yield complete lines from arbitrarily chunked input.

    Bytes are decoded incrementally so multi-byte characters split across
    chunks survive. ``\\r\\n`` and ``\\n`` both end a line.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    async for chunk in source:
        buffer += decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        *lines, buffer = buffer.split("\n")
        for line in lines:
            yield line.removesuffix("\r")
    buffer += decoder.decode(b"", final=True)
    if buffer:
        yield buffer.removesuffix("\r")


def _data_payload(line: str) -> str | None:
    """Return the payload of a ``data:`` line, or None for any other line."""
    if not line.startswith(SSE_DATA_FIELD):
        # Blank separators, comments (":") and event/id/retry fields.
        return None
    payload = line[len(SSE_DATA_FIELD) :]
    return payload[1:] if payload.startswith(" ") else payload


async def read_sse_stream(
    source: AsyncIterable[bytes | str], adapter: ProviderAdapter
) -> AsyncIterator[StreamEvent]:
    """Decode an SSE stream into normalized events, ending with exactly one terminal.

    Events are yielded in the order their source lines arrive. The generator
    stops after the first ``Complete`` or ``StreamError``. Adapter and
    transport exceptions become a ``StreamError``; a source that ends without
    a terminal frame yields ``StreamError`` too. Cancellation propagates.
    """
    tally = _UsageTally()
    try:
        async for line in _iter_lines(source):
            payload = _data_payload(line)
            if payload is None or not payload.strip():
                continue
            for event in adapter.parse_sse_line(payload):
                if isinstance(event, UsageUpdate):
                    tally.observe(event)
                elif isinstance(event, Complete):
                    event = tally.fill(event)
                yield event
                if is_terminal(event):
                    return
    except asyncio.CancelledError:
        raise
    except Exception as e:
        log.warning(
            "%s stream aborted: %s", adapter.provider_type, describe_exception(e)
        )
        yield StreamError(describe_exception(e))
        return

    log.debug("%s stream closed without a terminal frame", adapter.provider_type)
    yield StreamError(UNTERMINATED_STREAM_MESSAGE)


async def stream_chat(
    request: ProviderRequest,
    adapter: ProviderAdapter,
    client: httpx.AsyncClient,
) -> AsyncIterator[StreamEvent]:
    """POST *request* with *client* and decode the SSE response body.

    A non-2xx status yields one ``StreamError`` carrying the status and a
    bounded preview of the body. Transport failures, including ones httpx
    raises outside ``httpx.HTTPError``, are reported the same way.
    """
    try:
        async with client.stream(
            request.method,
            request.url,
            headers=dict(request.headers),
            content=request.body,
        ) as response:
            if not is_success_status(response.status_code):
                body = (await response.aread()).decode("utf-8", errors="replace")
                message = f"HTTP {response.status_code}"
                if body.strip():
                    message = f"{message}: {preview_text(body)}"
                yield StreamError(message)
                return
            async for event in read_sse_stream(response.aiter_bytes(), adapter):
                yield event
    except asyncio.CancelledError:
        raise
    except Exception as e:
        log.warning(
            "%s stream request failed: %s", adapter.provider_type, describe_exception(e)
        )
        yield StreamError(describe_exception(e))


# --- Title requests ---


def httpx_fetcher(client: httpx.AsyncClient) -> FetchFn:
    """Build a title transport from an ``httpx.AsyncClient``."""

    async def _fetch(request: ProviderRequest) -> httpx.Response:
        return await client.request(
            request.method,
            request.url,
            headers=dict(request.headers),
            content=request.body,
        )

    return _fetch


def _parse_body(text: str) -> Any:
    """Decode JSON, falling back to the raw text."""
    try:
        return json.loads(text)
    except ValueError:
        return text


async def fetch_title_with_diagnostics(
    request: ProviderRequest,
    adapter: ProviderAdapter,
    fetch_fn: FetchFn,
) -> TitleFetchResult:
    """Perform one title request and classify the outcome.

    Never raises for wire problems: every failure is a ``TitleFetchResult``
    with a ``reason``. The adapter's fast path runs first, then the generic
    extractor. A body whose shape is known but holds no text is
    ``empty_content``; an unknown shape is ``parse_failed``.
    """
    provider = adapter.provider_type
    try:
        response = await fetch_fn(request)
        status = response.status_code
        text = response.text
    except asyncio.CancelledError:
        raise
    except Exception as e:
        log.warning("%s title request failed: %s", provider, describe_exception(e))
        return TitleFetchResult(title=None, reason="network_error")

    if not is_success_status(status):
        log.debug("%s title request returned HTTP %s", provider, status)
        return TitleFetchResult(
            title=None,
            reason="http_non_200",
            status=status,
            data_preview=preview_text(text),
        )

    body = _parse_body(text)

    title = adapter.parse_title_response(body)
    if title and title.strip():
        return TitleFetchResult(title=title.strip(), reason="success", status=status)

    probe = probe_common_response(body)
    if probe.text:
        log.debug("%s title recovered by generic extractor", provider)
        return TitleFetchResult(title=probe.text.strip(), reason="success", status=status)

    reason: TitleFailureReason = "empty_content" if probe.matched else "parse_failed"
    log.debug("%s title extraction failed: %s", provider, reason)
    return TitleFetchResult(
        title=None,
        reason=reason,
        status=status,
        data_preview=preview_text(text),
    )
