"""Normalized stream events emitted while decoding provider SSE streams.

Every adapter maps its own wire events onto this small set. Consumers switch
on ``event.type`` (or ``isinstance``) and ignore tags they do not know.
Exactly one terminal event, ``Complete`` or ``StreamError``, ends a stream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeAlias


@dataclass(frozen=True)
class Usage:
    """Token accounting for a finished stream."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        """Input plus output tokens."""
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class TextDelta:
    """Incremental assistant text."""

    text: str
    type: Literal["text_delta"] = field(default="text_delta", init=False)


@dataclass(frozen=True)
class ThinkingDelta:
    """Incremental extended-reasoning text."""

    text: str
    type: Literal["thinking_delta"] = field(default="thinking_delta", init=False)


@dataclass(frozen=True)
class ToolCallEvent:
    """A tool invocation, either streamed in pieces or delivered whole.

    Streaming providers send the id and name once, then argument fragments
    that only carry ``index``; consumers correlate fragments by ``index``.
    """

    index: int
    id: str | None = None
    name: str | None = None
    arguments_delta: str | None = None
    arguments_complete: str | None = None
    type: Literal["tool_call"] = field(default="tool_call", init=False)


@dataclass(frozen=True)
class UsageUpdate:
    """Partial token accounting seen mid-stream."""

    input_tokens: int | None = None
    output_tokens: int | None = None
    type: Literal["usage_update"] = field(default="usage_update", init=False)


@dataclass(frozen=True)
class Complete:
    """Terminal event: the stream finished successfully."""

    usage: Usage = field(default_factory=Usage)
    type: Literal["complete"] = field(default="complete", init=False)


@dataclass(frozen=True)
class StreamError:
    """Terminal event: the stream ended abnormally."""

    message: str
    type: Literal["error"] = field(default="error", init=False)


StreamEvent: TypeAlias = (
    TextDelta | ThinkingDelta | ToolCallEvent | UsageUpdate | Complete | StreamError
)


def is_terminal(event: StreamEvent) -> bool:
    """Whether *event* ends its stream."""
    return isinstance(event, (Complete, StreamError))
