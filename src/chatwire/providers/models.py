"""Domain models for the provider translation layer."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import json
from typing import Any, Literal

MessageRole = Literal["user", "assistant", "tool"]


@dataclass(frozen=True)
class Attachment:
    """A file attached to a message, carried as base64 text."""

    mime_type: str
    data: str
    filename: str | None = None


@dataclass(frozen=True)
class ToolCall:
    """A tool call requested by the model, replayed in history."""

    id: str
    name: str
    arguments: str


@dataclass(frozen=True)
class Message:
    """A conversational message turn.

    ``tool`` messages carry the result of an earlier tool call: the call id in
    ``tool_call_id`` and, for providers that key results by function name,
    the tool name in ``name``.
    """

    role: MessageRole
    content: str = ""
    attachments: tuple[Attachment, ...] = ()
    tool_call_id: str | None = None
    tool_calls: tuple[ToolCall, ...] | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        """Freeze list arguments into tuples."""
        object.__setattr__(self, "attachments", tuple(self.attachments))
        if self.tool_calls is not None:
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))


@dataclass(frozen=True)
class StreamRequestInput:
    """Caller-supplied parameters for one streaming chat request.

    Tool definitions use the neutral ``{"name", "description", "parameters"}``
    shape; each adapter maps them to its own wire schema.
    """

    base_url: str
    api_key: str
    model_id: str
    messages: tuple[Message, ...]
    tools: tuple[dict[str, Any], ...] | None = None
    system_prompt: str | None = None
    thinking_enabled: bool = False
    max_tokens: int | None = None

    def __post_init__(self) -> None:
        """Freeze list arguments into tuples."""
        object.__setattr__(self, "messages", tuple(self.messages))
        if self.tools is not None:
            object.__setattr__(self, "tools", tuple(self.tools))


@dataclass(frozen=True)
class TitleRequestInput:
    """Parameters for a one-shot, non-streaming title request."""

    base_url: str
    api_key: str
    model_id: str
    prompt: str


@dataclass(frozen=True)
class ProviderRequest:
    """A fully built HTTP request: URL, headers and a pre-serialized JSON body."""

    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = "{}"
    method: str = "POST"

    def json(self) -> Any:
        """Decode the request body."""
        return json.loads(self.body)

