"""Anthropic Messages API adapter."""

from __future__ import annotations

import json
import logging
from typing import Any

from chatwire._http import JSON_CONTENT_TYPE, SSE_DONE_SENTINEL
from chatwire.errors import RequestBuildError
from chatwire.events import (
    Complete,
    StreamError,
    StreamEvent,
    TextDelta,
    ThinkingDelta,
    ToolCallEvent,
    UsageUpdate,
)
from chatwire.providers._utils import (
    TITLE_MAX_TOKENS,
    as_dict,
    as_int,
    as_list,
    decode_text_attachment,
    dump_body,
    error_message,
    is_text_like_mime_type,
    join_url,
    load_payload,
    non_blank,
    require_model,
)
from chatwire.providers.base import ProviderCapabilities
from chatwire.providers.models import (
    Attachment,
    Message,
    ProviderRequest,
    StreamRequestInput,
    TitleRequestInput,
)

log = logging.getLogger(__name__)

_ANTHROPIC_VERSION = "2023-06-01"
_ANTHROPIC_MAX_TOKENS = 8192
_THINKING_BUDGET_TOKENS = 4096
_THINKING_ANSWER_HEADROOM = 4096
_MESSAGES_PATH = "/v1/messages"


class AnthropicAdapter:
    """Anthropic Messages API adapter."""

    @property
    def provider_type(self) -> str:
        """Provider family identifier."""
        return "anthropic"

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Return supported feature flags."""
        return ProviderCapabilities(thinking=True, tools=True, attachments=True)

    @staticmethod
    def _headers(api_key: str) -> dict[str, str]:
        return {
            "content-type": JSON_CONTENT_TYPE,
            "x-api-key": api_key,
            "anthropic-version": _ANTHROPIC_VERSION,
        }

    @staticmethod
    def _normalize_tools(tools: tuple[dict[str, Any], ...]) -> list[dict[str, Any]]:
        """Convert tool dicts to Anthropic format (parameters → input_schema)."""
        anthropic_tools: list[dict[str, Any]] = []
        for t in tools:
            if "name" in t:
                tool_def: dict[str, Any] = {
                    "name": t["name"],
                    "input_schema": t.get("parameters", {"type": "object"}),
                }
                if "description" in t:
                    tool_def["description"] = t["description"]
                anthropic_tools.append(tool_def)
        return anthropic_tools

    @staticmethod
    def _build_messages(history: tuple[Message, ...]) -> list[dict[str, Any]]:
        """Build the messages list.

        Anthropic requires strict user/assistant role alternation, so
        consecutive same-role messages are merged via ``_append_message``.
        """
        messages: list[dict[str, Any]] = []

        for item in history:
            if item.role == "tool":
                call_id = item.tool_call_id
                if not call_id:
                    raise RequestBuildError(
                        "Anthropic tool results require the matching tool_use id",
                        hint="Set Message.tool_call_id on tool messages.",
                        provider="anthropic",
                    )
                _append_message(
                    messages,
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "tool_result",
                                "tool_use_id": call_id,
                                "content": item.content or "",
                            }
                        ],
                    },
                )
            elif item.role == "assistant":
                content_blocks: list[dict[str, Any]] = []
                if item.content:
                    content_blocks.append({"type": "text", "text": item.content})
                for tc in item.tool_calls or ():
                    try:
                        args = json.loads(tc.arguments) if tc.arguments else {}
                    except ValueError:
                        args = {}
                    content_blocks.append(
                        {
                            "type": "tool_use",
                            "id": tc.id,
                            "name": tc.name,
                            "input": args,
                        }
                    )
                if content_blocks:
                    _append_message(
                        messages, {"role": "assistant", "content": content_blocks}
                    )
            elif item.role == "user":
                if item.attachments:
                    blocks = [_attachment_block(a) for a in item.attachments]
                    if item.content:
                        blocks.append({"type": "text", "text": item.content})
                    _append_message(messages, {"role": "user", "content": blocks})
                elif item.content:
                    _append_message(
                        messages, {"role": "user", "content": item.content}
                    )

        return messages

    def build_stream_request(self, input: StreamRequestInput) -> ProviderRequest:
        """Build a streaming Messages API request."""
        model = require_model(input.model_id, provider=self.provider_type)

        payload: dict[str, Any] = {
            "model": model,
            "max_tokens": input.max_tokens or _ANTHROPIC_MAX_TOKENS,
            "messages": self._build_messages(input.messages),
            "stream": True,
        }
        if input.system_prompt:
            payload["system"] = input.system_prompt
        if input.tools:
            anthropic_tools = self._normalize_tools(input.tools)
            if anthropic_tools:
                payload["tools"] = anthropic_tools
        if input.thinking_enabled:
            payload["thinking"] = {
                "type": "enabled",
                "budget_tokens": _THINKING_BUDGET_TOKENS,
            }
            # budget_tokens must stay below max_tokens.
            if payload["max_tokens"] <= _THINKING_BUDGET_TOKENS:
                payload["max_tokens"] = (
                    _THINKING_BUDGET_TOKENS + _THINKING_ANSWER_HEADROOM
                )

        return ProviderRequest(
            url=join_url(input.base_url, _MESSAGES_PATH),
            headers=self._headers(input.api_key),
            body=dump_body(payload),
        )

    def parse_sse_line(self, raw_json_line: str) -> list[StreamEvent]:
        """Map one Messages API stream event to normalized events."""
        if raw_json_line.strip() == SSE_DONE_SENTINEL:
            # Appended by OpenAI-style gateways that proxy the Messages API.
            return [Complete()]

        payload = as_dict(load_payload(raw_json_line, provider=self.provider_type))
        if payload is None:
            return []

        event_type = payload.get("type")

        if event_type == "content_block_delta":
            return _parse_content_block_delta(payload)

        if event_type == "content_block_start":
            index = as_int(payload.get("index")) or 0
            block = as_dict(payload.get("content_block")) or {}
            block_type = block.get("type")
            if block_type == "tool_use":
                return [
                    ToolCallEvent(
                        index=index,
                        id=block.get("id"),
                        name=block.get("name"),
                    )
                ]
            if block_type == "text":
                text = block.get("text")
                if isinstance(text, str) and text:
                    return [TextDelta(text)]
            return []

        if event_type == "message_start":
            message = as_dict(payload.get("message")) or {}
            usage = as_dict(message.get("usage")) or {}
            input_tokens = as_int(usage.get("input_tokens"))
            if input_tokens is None:
                return []
            return [UsageUpdate(input_tokens=input_tokens)]

        if event_type == "message_delta":
            usage = as_dict(payload.get("usage")) or {}
            input_tokens = as_int(usage.get("input_tokens"))
            output_tokens = as_int(usage.get("output_tokens"))
            if input_tokens is None and output_tokens is None:
                return []
            return [UsageUpdate(input_tokens=input_tokens, output_tokens=output_tokens)]

        if event_type == "message_stop":
            return [Complete()]

        if event_type == "error":
            return [StreamError(error_message(payload) or "anthropic stream error")]

        # ping, content_block_stop and future event types
        return []

    def build_title_request(self, input: TitleRequestInput) -> ProviderRequest:
        """Build a minimal title request.

        Never carries ``thinking``: title calls must stay cheap and fast even
        on models where thinking is normally enabled.
        """
        payload = {
            "model": require_model(input.model_id, provider=self.provider_type),
            "max_tokens": TITLE_MAX_TOKENS,
            "messages": [{"role": "user", "content": input.prompt}],
        }
        return ProviderRequest(
            url=join_url(input.base_url, _MESSAGES_PATH),
            headers=self._headers(input.api_key),
            body=dump_body(payload),
        )

    def parse_title_response(self, body: Any) -> str | None:
        """Return the first non-blank text block of a Message response."""
        root = as_dict(body)
        if root is None:
            return None
        for block in as_list(root.get("content")):
            block_obj = as_dict(block)
            if block_obj is None or block_obj.get("type") != "text":
                continue
            text = non_blank(block_obj.get("text"))
            if text:
                return text
        log.debug("anthropic title response had no text block")
        return None


def _parse_content_block_delta(payload: dict[str, Any]) -> list[StreamEvent]:
    index = as_int(payload.get("index")) or 0
    delta = as_dict(payload.get("delta")) or {}
    delta_type = delta.get("type")

    if delta_type == "text_delta":
        text = delta.get("text")
        return [TextDelta(text)] if isinstance(text, str) and text else []
    if delta_type == "thinking_delta":
        thinking = delta.get("thinking")
        return (
            [ThinkingDelta(thinking)] if isinstance(thinking, str) and thinking else []
        )
    if delta_type == "input_json_delta":
        partial = delta.get("partial_json")
        if isinstance(partial, str) and partial:
            return [ToolCallEvent(index=index, arguments_delta=partial)]
        return []
    # signature_delta and unknown delta types carry nothing to render.
    return []


def _append_message(messages: list[dict[str, Any]], msg: dict[str, Any]) -> None:
    """Append *msg*, merging into the previous message when roles match.

    When consecutive messages share a role (e.g. a tool_result user message
    followed by a user prompt) their content blocks are merged into a single
    message.
    """
    if messages and messages[-1]["role"] == msg["role"]:
        prev = messages[-1]
        prev_content = prev["content"]
        new_content = msg["content"]
        # Normalize both sides to list-of-blocks for merging.
        if isinstance(prev_content, str):
            prev_content = [{"type": "text", "text": prev_content}]
        if isinstance(new_content, str):
            new_content = [{"type": "text", "text": new_content}]
        prev["content"] = prev_content + new_content
    else:
        messages.append(msg)


def _attachment_block(attachment: Attachment) -> dict[str, Any]:
    """Convert an attachment into an Anthropic content block."""
    mime_type = attachment.mime_type
    if mime_type.startswith("image/"):
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": mime_type, "data": attachment.data},
        }
    if mime_type == "application/pdf":
        return {
            "type": "document",
            "source": {"type": "base64", "media_type": mime_type, "data": attachment.data},
        }
    if is_text_like_mime_type(mime_type):
        text = decode_text_attachment(attachment.data, provider="anthropic")
        label = attachment.filename or "attachment"
        return {"type": "text", "text": f"<file name=\"{label}\">\n{text}\n</file>"}

    raise RequestBuildError(
        f"Unsupported attachment type for Anthropic: {mime_type}",
        hint="Anthropic accepts images, PDFs and text files.",
        provider="anthropic",
    )
