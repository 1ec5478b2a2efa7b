"""Shared utilities for adapter implementations."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from chatwire.errors import RequestBuildError, StreamDecodeError

TITLE_MAX_TOKENS = 50

_TEXT_LIKE_MIME_TYPES = frozenset(
    {
        "application/csv",
        "application/json",
        "application/xml",
        "application/yaml",
        "application/x-yaml",
        "application/javascript",
        "application/x-javascript",
    }
)


def join_url(base_url: str, path: str) -> str:
    """Join *base_url* and *path*, tolerating a version suffix on the base.

    ``join_url("https://api.example.com/v1/", "/v1/messages")`` and
    ``join_url("https://api.example.com", "/v1/messages")`` both produce
    ``https://api.example.com/v1/messages``.
    """
    base = base_url.rstrip("/")
    suffix = "/" + path.lstrip("/")
    first_segment = suffix.split("/", 2)[1]
    if first_segment and base.endswith("/" + first_segment):
        suffix = suffix[len(first_segment) + 1 :]
    return base + suffix


def dump_body(payload: dict[str, Any]) -> str:
    """Serialize a request body."""
    return json.dumps(payload, ensure_ascii=False)


def load_payload(raw_json_line: str, *, provider: str) -> Any:
    """Decode one SSE payload, raising StreamDecodeError on malformed JSON."""
    try:
        return json.loads(raw_json_line)
    except ValueError as e:
        raise StreamDecodeError(
            f"{provider} sent a malformed stream payload: {e}",
            provider=provider,
            payload=raw_json_line,
        ) from e


def as_dict(value: Any) -> dict[str, Any] | None:
    """Return *value* when it is a JSON object."""
    return value if isinstance(value, dict) else None


def as_list(value: Any) -> list[Any]:
    """Return *value* when it is a JSON array, otherwise an empty list."""
    return value if isinstance(value, list) else []


def as_int(value: Any) -> int | None:
    """Return *value* as an int when it is a JSON number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return None


def non_blank(value: Any) -> str | None:
    """Return *value* stripped when it is a non-blank string."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def error_message(payload: dict[str, Any]) -> str | None:
    """Pull a human-readable message out of a provider ``error`` payload."""
    error = payload.get("error")
    if isinstance(error, str) and error:
        return error
    error_obj = as_dict(error)
    if error_obj is None:
        return None
    message = error_obj.get("message")
    if isinstance(message, str) and message:
        return message
    kind = error_obj.get("type") or error_obj.get("status") or error_obj.get("code")
    return f"provider error: {kind}" if kind else "provider error"


def is_text_like_mime_type(mime_type: str) -> bool:
    """Return True when an attachment should be inlined as plain text."""
    if mime_type.startswith("text/"):
        return True
    if mime_type in _TEXT_LIKE_MIME_TYPES:
        return True
    return mime_type.endswith(("+json", "+xml"))


def decode_text_attachment(data: str, *, provider: str) -> str:
    """Decode a base64 text attachment."""
    try:
        return base64.b64decode(data, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise RequestBuildError(
            "Attachment payload is not valid base64-encoded UTF-8 text",
            provider=provider,
        ) from e


def require_model(model_id: str, *, provider: str) -> str:
    """Validate that a model id was supplied."""
    if not model_id or not model_id.strip():
        raise RequestBuildError(
            f"{provider} request requires a model id",
            hint="Pass model_id (e.g. via Config(model=...)).",
            provider=provider,
        )
    return model_id
