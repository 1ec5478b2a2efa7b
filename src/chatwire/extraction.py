"""Provider-agnostic title extraction from parsed response bodies.

Adapters know their own canonical response shape; this module is the second
line of defense for compatible gateways and proxies whose shapes drift. It
recognizes, in priority order:

1. a bare non-blank string;
2. ``output_text`` (OpenAI Responses API);
3. ``choices[0].message.content``, then ``choices[0].text``, then
   ``choices[0].delta.content`` (OpenAI Chat Completions);
4. ``content`` as text or content blocks (Anthropic Messages API);
5. ``candidates[0].content.parts``, then ``candidates[0].text`` (Gemini);
6. a ``data`` envelope, searched recursively up to ``MAX_ENVELOPE_DEPTH``.

Besides the text, `probe_common_response` reports whether any of those shapes
was present at all, which separates "recognized but empty" from "unknown".
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

log = logging.getLogger(__name__)

__all__ = [
    "MAX_ENVELOPE_DEPTH",
    "ShapeMatch",
    "extract_text_from_content_like",
    "extract_title_from_common_response",
    "probe_common_response",
]

MAX_ENVELOPE_DEPTH = 5


@dataclass(frozen=True)
class ShapeMatch:
    """Outcome of probing a response body.

    Attributes:
        matched: True when a known response shape was entered, even if it held
            no usable text.
        text: The extracted text, or None.
    """

    matched: bool
    text: str | None = None


_UNMATCHED = ShapeMatch(matched=False)


def _read_string(value: Any) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


def _as_record(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


def _as_array(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _last_non_empty_line(value: str) -> str | None:
    """Return the last non-empty line, without a leading ``"- "`` bullet.

    Reasoning traces end with the restated answer; earlier lines are scratch
    work and are discarded.
    """
    lines = [line.strip() for line in value.split("\n")]
    lines = [line for line in lines if line]
    if not lines:
        return None
    last = lines[-1]
    if last.startswith("- "):
        return last[2:].strip() or None
    return last


def extract_text_from_content_like(value: Any) -> str | None:
    """Extract text from a string or a sequence of content blocks.

    Handles ``"text"``, ``[{"text": ...}]``, ``[{"type": "text", "text": ...}]``,
    ``[{"output_text": ...}]``, ``[{"thinking": ...}]`` and blocks nesting
    ``content`` or ``parts``. The first item yielding text wins.
    """
    text = _read_string(value)
    if text:
        return text

    for item in _as_array(value):
        direct = _read_string(item)
        if direct:
            return direct

        rec = _as_record(item)
        if rec is None:
            continue

        item_text = _read_string(rec.get("text"))
        if item_text:
            return item_text

        output_text = _read_string(rec.get("output_text"))
        if output_text:
            return output_text

        thinking = _read_string(rec.get("thinking"))
        if thinking:
            extracted = _last_non_empty_line(thinking)
            if extracted:
                return extracted

        nested_content = extract_text_from_content_like(rec.get("content"))
        if nested_content:
            return nested_content

        nested_parts = extract_text_from_content_like(rec.get("parts"))
        if nested_parts:
            return nested_parts

    return None


def _is_content_like(value: Any) -> bool:
    return isinstance(value, (str, list))


def probe_common_response(value: Any, *, _depth: int = 0) -> ShapeMatch:
    """Search *value* for title text and record whether a known shape matched."""
    if _depth > MAX_ENVELOPE_DEPTH:
        log.debug("response envelope nested deeper than %d; giving up", MAX_ENVELOPE_DEPTH)
        return _UNMATCHED

    if isinstance(value, str):
        return ShapeMatch(matched=True, text=_read_string(value))

    root = _as_record(value)
    if root is None:
        return _UNMATCHED

    matched = False

    # OpenAI Responses API
    if isinstance(root.get("output_text"), str):
        matched = True
        output_text = _read_string(root["output_text"])
        if output_text:
            return ShapeMatch(matched=True, text=output_text)

    # OpenAI Chat Completions
    if isinstance(root.get("choices"), list):
        matched = True
        choices = root["choices"]
        choice = _as_record(choices[0]) if choices else None
        if choice is not None:
            message = _as_record(choice.get("message"))
            if message is not None:
                from_message = extract_text_from_content_like(message.get("content"))
                if from_message:
                    return ShapeMatch(matched=True, text=from_message)

            from_choice_text = _read_string(choice.get("text"))
            if from_choice_text:
                return ShapeMatch(matched=True, text=from_choice_text)

            delta = _as_record(choice.get("delta"))
            if delta is not None:
                from_delta = _read_string(delta.get("content"))
                if from_delta:
                    return ShapeMatch(matched=True, text=from_delta)

    # Anthropic Messages API (and compatible variants)
    if _is_content_like(root.get("content")):
        matched = True
        from_content = extract_text_from_content_like(root["content"])
        if from_content:
            return ShapeMatch(matched=True, text=from_content)

    # Google Gemini
    if isinstance(root.get("candidates"), list):
        matched = True
        candidates = root["candidates"]
        candidate = _as_record(candidates[0]) if candidates else None
        if candidate is not None:
            candidate_content = _as_record(candidate.get("content"))
            if candidate_content is not None:
                from_parts = extract_text_from_content_like(
                    candidate_content.get("parts")
                )
                if from_parts:
                    return ShapeMatch(matched=True, text=from_parts)

            from_candidate_text = extract_text_from_content_like(candidate.get("text"))
            if from_candidate_text:
                return ShapeMatch(matched=True, text=from_candidate_text)

    # Gateways that wrap the payload in `data`
    if "data" in root:
        wrapped = probe_common_response(root["data"], _depth=_depth + 1)
        if wrapped.text:
            return wrapped
        matched = matched or wrapped.matched

    return ShapeMatch(matched=matched)


def extract_title_from_common_response(value: Any) -> str | None:
    """Return the first non-blank title text found in a response body, or None.

    Never raises; unknown shapes return None.
    """
    return probe_common_response(value).text
