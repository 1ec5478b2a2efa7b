"""OpenAI Chat Completions adapter (also serves OpenAI-compatible gateways)."""

from __future__ import annotations

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

_CHAT_COMPLETIONS_PATH = "/chat/completions"
_DEFAULT_REASONING_EFFORT = "medium"


class OpenAIAdapter:
    """OpenAI Chat Completions adapter.

    The same wire format is spoken by DeepSeek and most self-hosted or proxy
    gateways, so one class serves several provider identifiers.
    ``send_reasoning_effort`` controls whether the thinking toggle maps to
    ``reasoning_effort``; families that select reasoning by model id (such as
    DeepSeek) leave it off.
    """

    def __init__(
        self, provider_type: str = "openai", *, send_reasoning_effort: bool = True
    ) -> None:
        """Initialize for a provider identifier."""
        self._provider_type = provider_type
        self._send_reasoning_effort = send_reasoning_effort

    def __repr__(self) -> str:
        """Return a compact representation."""
        return f"OpenAIAdapter(provider_type={self._provider_type!r})"

    @property
    def provider_type(self) -> str:
        """Provider family identifier."""
        return self._provider_type

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Return supported feature flags."""
        return ProviderCapabilities(
            thinking=self._send_reasoning_effort, tools=True, attachments=True
        )

    @staticmethod
    def _headers(api_key: str) -> dict[str, str]:
        return {
            "content-type": JSON_CONTENT_TYPE,
            "authorization": f"Bearer {api_key}",
        }

    @staticmethod
    def _normalize_tools(tools: tuple[dict[str, Any], ...]) -> list[dict[str, Any]]:
        """Wrap neutral tool dicts in the ``{"type": "function"}`` envelope."""
        openai_tools: list[dict[str, Any]] = []
        for t in tools:
            if "name" not in t:
                continue
            function: dict[str, Any] = {
                "name": t["name"],
                "parameters": t.get("parameters", {"type": "object"}),
            }
            if "description" in t:
                function["description"] = t["description"]
            openai_tools.append({"type": "function", "function": function})
        return openai_tools

    def _build_messages(
        self, history: tuple[Message, ...], system_prompt: str | None
    ) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        for item in history:
            role = item.role

            # Tool result message
            if role == "tool":
                if not item.tool_call_id:
                    raise RequestBuildError(
                        f"{self.provider_type} tool results require the matching tool call id",
                        hint="Set Message.tool_call_id on tool messages.",
                        provider=self.provider_type,
                    )
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": item.tool_call_id,
                        "content": item.content,
                    }
                )
                continue

            # Assistant message with tool_calls
            if role == "assistant" and item.tool_calls:
                messages.append(
                    {
                        "role": "assistant",
                        "content": item.content or None,
                        "tool_calls": [
                            {
                                "id": tc.id,
                                "type": "function",
                                "function": {
                                    "name": tc.name,
                                    "arguments": tc.arguments or "{}",
                                },
                            }
                            for tc in item.tool_calls
                        ],
                    }
                )
                continue

            if role == "user" and item.attachments:
                parts = [self._attachment_part(a) for a in item.attachments]
                if item.content:
                    parts.append({"type": "text", "text": item.content})
                messages.append({"role": "user", "content": parts})
                continue

            if not item.content:
                continue
            messages.append({"role": role, "content": item.content})

        return messages

    def _attachment_part(self, attachment: Attachment) -> dict[str, Any]:
        mime_type = attachment.mime_type
        if mime_type.startswith("image/"):
            return {
                "type": "image_url",
                "image_url": {"url": f"data:{mime_type};base64,{attachment.data}"},
            }
        if is_text_like_mime_type(mime_type):
            text = decode_text_attachment(attachment.data, provider=self.provider_type)
            label = attachment.filename or "attachment"
            return {"type": "text", "text": f"<file name=\"{label}\">\n{text}\n</file>"}
        raise RequestBuildError(
            f"Unsupported attachment type for {self.provider_type}: {mime_type}",
            hint="Chat Completions accepts images and text files.",
            provider=self.provider_type,
        )

    def build_stream_request(self, input: StreamRequestInput) -> ProviderRequest:
        """Build a streaming Chat Completions request."""
        payload: dict[str, Any] = {
            "model": require_model(input.model_id, provider=self.provider_type),
            "messages": self._build_messages(input.messages, input.system_prompt),
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if input.max_tokens is not None:
            payload["max_tokens"] = input.max_tokens
        if input.tools:
            openai_tools = self._normalize_tools(input.tools)
            if openai_tools:
                payload["tools"] = openai_tools
        if input.thinking_enabled and self._send_reasoning_effort:
            payload["reasoning_effort"] = _DEFAULT_REASONING_EFFORT

        return ProviderRequest(
            url=join_url(input.base_url, _CHAT_COMPLETIONS_PATH),
            headers=self._headers(input.api_key),
            body=dump_body(payload),
        )

    def parse_sse_line(self, raw_json_line: str) -> list[StreamEvent]:
        """Map one streamed chunk to normalized events.

        ``[DONE]`` is the terminal frame; ``finish_reason`` alone does not end
        the stream because the usage chunk follows it.
        """
        if raw_json_line.strip() == SSE_DONE_SENTINEL:
            return [Complete()]

        payload = as_dict(load_payload(raw_json_line, provider=self.provider_type))
        if payload is None:
            return []

        if payload.get("error") is not None:
            message = error_message(payload) or f"{self.provider_type} stream error"
            return [StreamError(message)]

        events: list[StreamEvent] = []
        choices = as_list(payload.get("choices"))
        choice = as_dict(choices[0]) if choices else None
        delta = as_dict(choice.get("delta")) if choice else None
        if delta:
            reasoning = delta.get("reasoning_content") or delta.get("reasoning")
            if isinstance(reasoning, str) and reasoning:
                events.append(ThinkingDelta(reasoning))

            content = delta.get("content")
            if isinstance(content, str) and content:
                events.append(TextDelta(content))

            for position, raw_call in enumerate(as_list(delta.get("tool_calls"))):
                call = as_dict(raw_call)
                if call is None:
                    continue
                function = as_dict(call.get("function")) or {}
                index = as_int(call.get("index"))
                arguments = function.get("arguments")
                events.append(
                    ToolCallEvent(
                        index=position if index is None else index,
                        id=call.get("id") or None,
                        name=function.get("name") or None,
                        arguments_delta=arguments
                        if isinstance(arguments, str) and arguments
                        else None,
                    )
                )

        usage = as_dict(payload.get("usage"))
        if usage:
            input_tokens = as_int(usage.get("prompt_tokens"))
            output_tokens = as_int(usage.get("completion_tokens"))
            if input_tokens is not None or output_tokens is not None:
                events.append(
                    UsageUpdate(input_tokens=input_tokens, output_tokens=output_tokens)
                )

        return events

    def build_title_request(self, input: TitleRequestInput) -> ProviderRequest:
        """Build a minimal, non-streaming title request."""
        payload = {
            "model": require_model(input.model_id, provider=self.provider_type),
            "max_tokens": TITLE_MAX_TOKENS,
            "messages": [{"role": "user", "content": input.prompt}],
            "stream": False,
        }
        return ProviderRequest(
            url=join_url(input.base_url, _CHAT_COMPLETIONS_PATH),
            headers=self._headers(input.api_key),
            body=dump_body(payload),
        )

    def parse_title_response(self, body: Any) -> str | None:
        """Return ``choices[0].message.content`` when it is plain text."""
        root = as_dict(body)
        if root is None:
            return None
        choices = as_list(root.get("choices"))
        choice = as_dict(choices[0]) if choices else None
        message = as_dict(choice.get("message")) if choice else None
        if message is None:
            return None
        title = non_blank(message.get("content"))
        if title is None:
            log.debug("%s title response had no message content", self.provider_type)
        return title
