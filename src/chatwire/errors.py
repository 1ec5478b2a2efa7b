"""Exception hierarchy for chatwire.

Wire-level failures (bad status codes, truncated streams, unparseable title
responses) are reported as data. Exceptions are reserved for caller mistakes
and broken invariants.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class ChatwireError(Exception):
    """Base exception for all chatwire errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(ChatwireError):
    """Configuration validation or resolution failed."""


class RequestBuildError(ChatwireError):
    """A provider request could not be built from the given input."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        provider: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.provider = provider


class StreamDecodeError(ChatwireError):
    """An SSE payload could not be decoded by a provider adapter."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        provider: str | None = None,
        payload: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.provider = provider
        self.payload = payload


class InternalError(ChatwireError):
    """A chatwire internal error (bug) or invariant violation."""


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)


def describe_exception(exc: BaseException) -> str:
    """Return the first non-empty message along the exception chain.

    Transport libraries often raise wrappers with empty messages (timeouts,
    aborted reads); the underlying cause usually says what happened.
    """
    for e in _walk_exception_chain(exc):
        text = str(e).strip()
        if text:
            return text
    return type(exc).__name__
