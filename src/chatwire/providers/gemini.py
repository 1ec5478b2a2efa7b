"""Google Gemini ``generateContent`` adapter."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote, urlencode

from chatwire._http import JSON_CONTENT_TYPE, SSE_DONE_SENTINEL
from chatwire.errors import RequestBuildError
from chatwire.events import (
    Complete,
    StreamError,
    StreamEvent,
    TextDelta,
    ThinkingDelta,
    ToolCallEvent,
    Usage,
    UsageUpdate,
)
from chatwire.providers._utils import (
    TITLE_MAX_TOKENS,
    as_dict,
    as_int,
    as_list,
    dump_body,
    error_message,
    join_url,
    load_payload,
    non_blank,
    require_model,
)
from chatwire.providers.base import ProviderCapabilities
from chatwire.providers.models import (
    Message,
    ProviderRequest,
    StreamRequestInput,
    TitleRequestInput,
)

log = logging.getLogger(__name__)

_API_VERSION = "v1beta"
_NORMAL_FINISH_REASONS = frozenset({"STOP", "MAX_TOKENS"})


class GoogleAdapter:
    """Google Gemini API adapter.

    Credentials travel as the ``key`` query parameter; streaming uses
    ``:streamGenerateContent?alt=sse``.
    """

    @property
    def provider_type(self) -> str:
        """Provider family identifier."""
        return "google"

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Return supported feature flags."""
        return ProviderCapabilities(thinking=True, tools=True, attachments=True)

    @staticmethod
    def _url(base_url: str, model: str, method: str, query: dict[str, str]) -> str:
        path = f"/{_API_VERSION}/models/{quote(model, safe='')}:{method}"
        return f"{join_url(base_url, path)}?{urlencode(query)}"

    @staticmethod
    def _build_contents(history: tuple[Message, ...]) -> list[dict[str, Any]]:
        contents: list[dict[str, Any]] = []
        for item in history:
            parts: list[dict[str, Any]] = []
            if item.role == "tool":
                if not item.name:
                    raise RequestBuildError(
                        "Gemini tool results require the tool name",
                        hint="Set Message.name on tool messages.",
                        provider="google",
                    )
                parts.append(
                    {
                        "functionResponse": {
                            "name": item.name,
                            "response": {"content": item.content},
                        }
                    }
                )
                role = "user"
            elif item.role == "assistant":
                if item.content:
                    parts.append({"text": item.content})
                for tc in item.tool_calls or ():
                    try:
                        args = json.loads(tc.arguments) if tc.arguments else {}
                    except ValueError:
                        args = {}
                    parts.append({"functionCall": {"name": tc.name, "args": args}})
                role = "model"
            else:
                for attachment in item.attachments:
                    parts.append(
                        {
                            "inline_data": {
                                "mime_type": attachment.mime_type,
                                "data": attachment.data,
                            }
                        }
                    )
                if item.content:
                    parts.append({"text": item.content})
                role = "user"

            if not parts:
                continue
            # Consecutive same-role turns share one content entry.
            if contents and contents[-1]["role"] == role:
                contents[-1]["parts"].extend(parts)
            else:
                contents.append({"role": role, "parts": parts})
        return contents

    @staticmethod
    def _normalize_tools(tools: tuple[dict[str, Any], ...]) -> list[dict[str, Any]]:
        declarations: list[dict[str, Any]] = []
        for t in tools:
            if "name" not in t:
                continue
            decl: dict[str, Any] = {"name": t["name"]}
            if "description" in t:
                decl["description"] = t["description"]
            if "parameters" in t:
                decl["parameters"] = t["parameters"]
            declarations.append(decl)
        return [{"functionDeclarations": declarations}] if declarations else []

    def build_stream_request(self, input: StreamRequestInput) -> ProviderRequest:
        """Build a ``streamGenerateContent`` request."""
        model = require_model(input.model_id, provider=self.provider_type)
        payload: dict[str, Any] = {"contents": self._build_contents(input.messages)}
        if input.system_prompt:
            payload["systemInstruction"] = {"parts": [{"text": input.system_prompt}]}
        if input.tools:
            tools = self._normalize_tools(input.tools)
            if tools:
                payload["tools"] = tools

        generation_config: dict[str, Any] = {}
        if input.max_tokens is not None:
            generation_config["maxOutputTokens"] = input.max_tokens
        if input.thinking_enabled:
            generation_config["thinkingConfig"] = {"includeThoughts": True}
        if generation_config:
            payload["generationConfig"] = generation_config

        return ProviderRequest(
            url=self._url(
                input.base_url,
                model,
                "streamGenerateContent",
                {"alt": "sse", "key": input.api_key},
            ),
            headers={"content-type": JSON_CONTENT_TYPE},
            body=dump_body(payload),
        )

    def parse_sse_line(self, raw_json_line: str) -> list[StreamEvent]:
        """Map one streamed ``GenerateContentResponse`` to normalized events.

        Gemini has no sentinel frame of its own: the chunk whose candidate
        carries a ``finishReason`` is the last one. ``STOP`` and
        ``MAX_TOKENS`` produce ``Complete`` after any content the chunk holds;
        any other reason (``SAFETY``, ``RECITATION``, ...) is a ``StreamError``.
        A ``[DONE]`` frame appended by a gateway also completes the stream.
        """
        if raw_json_line.strip() == SSE_DONE_SENTINEL:
            return [Complete()]

        payload = as_dict(load_payload(raw_json_line, provider=self.provider_type))
        if payload is None:
            return []

        if payload.get("error") is not None:
            return [StreamError(error_message(payload) or "google stream error")]

        events: list[StreamEvent] = []
        candidates = as_list(payload.get("candidates"))
        candidate = as_dict(candidates[0]) if candidates else None

        if candidate is None:
            feedback = as_dict(payload.get("promptFeedback")) or {}
            block_reason = feedback.get("blockReason")
            if block_reason:
                return [StreamError(f"prompt blocked: {block_reason}")]

        content = as_dict(candidate.get("content")) if candidate else None
        for position, raw_part in enumerate(as_list(content and content.get("parts"))):
            part = as_dict(raw_part)
            if part is None:
                continue
            text = part.get("text")
            if isinstance(text, str) and text:
                if part.get("thought") is True:
                    events.append(ThinkingDelta(text))
                else:
                    events.append(TextDelta(text))
                continue
            call = as_dict(part.get("functionCall"))
            if call is not None:
                name = call.get("name")
                events.append(
                    ToolCallEvent(
                        index=position,
                        id=call.get("id") or name,
                        name=name,
                        arguments_complete=json.dumps(call.get("args") or {}),
                    )
                )

        usage_meta = as_dict(payload.get("usageMetadata"))
        usage = Usage()
        if usage_meta:
            input_tokens = as_int(usage_meta.get("promptTokenCount"))
            output_tokens = as_int(usage_meta.get("candidatesTokenCount"))
            if input_tokens is not None or output_tokens is not None:
                events.append(
                    UsageUpdate(input_tokens=input_tokens, output_tokens=output_tokens)
                )
                usage = Usage(
                    input_tokens=input_tokens or 0, output_tokens=output_tokens or 0
                )

        finish_reason = non_blank(candidate.get("finishReason")) if candidate else None
        if finish_reason in _NORMAL_FINISH_REASONS:
            events.append(Complete(usage=usage))
        elif finish_reason:
            events.append(StreamError(f"generation stopped: {finish_reason}"))

        return events

    def build_title_request(self, input: TitleRequestInput) -> ProviderRequest:
        """Build a minimal ``generateContent`` title request (no thinking config)."""
        model = require_model(input.model_id, provider=self.provider_type)
        payload = {
            "contents": [{"role": "user", "parts": [{"text": input.prompt}]}],
            "generationConfig": {"maxOutputTokens": TITLE_MAX_TOKENS},
        }
        return ProviderRequest(
            url=self._url(input.base_url, model, "generateContent", {"key": input.api_key}),
            headers={"content-type": JSON_CONTENT_TYPE},
            body=dump_body(payload),
        )

    def parse_title_response(self, body: Any) -> str | None:
        """Join the non-thought text parts of the first candidate."""
        root = as_dict(body)
        if root is None:
            return None
        candidates = as_list(root.get("candidates"))
        candidate = as_dict(candidates[0]) if candidates else None
        content = as_dict(candidate.get("content")) if candidate else None
        if content is None:
            return None
        texts: list[str] = []
        for raw_part in as_list(content.get("parts")):
            part = as_dict(raw_part)
            if part is None or part.get("thought") is True:
                continue
            text = part.get("text")
            if isinstance(text, str):
                texts.append(text)
        title = "".join(texts).strip()
        if not title:
            log.debug("google title response had no text parts")
        return title or None
