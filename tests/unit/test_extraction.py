"""Generic title extraction across provider response shapes."""

from __future__ import annotations

import copy
from typing import Any

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from chatwire.extraction import (
    MAX_ENVELOPE_DEPTH,
    ShapeMatch,
    extract_text_from_content_like,
    extract_title_from_common_response,
    probe_common_response,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        pytest.param(
            {"choices": [{"message": {"content": "OpenAI title"}}]},
            "OpenAI title",
            id="openai-chat",
        ),
        pytest.param({"output_text": "Responses title"}, "Responses title", id="openai-responses"),
        pytest.param(
            {"content": [{"type": "text", "text": "Anthropic title"}]},
            "Anthropic title",
            id="anthropic-text",
        ),
        pytest.param(
            {"content": [{"type": "thinking", "thinking": "step1\n- Thinking title"}]},
            "Thinking title",
            id="anthropic-thinking",
        ),
        pytest.param(
            {"candidates": [{"content": {"parts": [{"text": "Gemini title"}]}}]},
            "Gemini title",
            id="gemini-parts",
        ),
        pytest.param(
            {"data": {"choices": [{"message": {"content": "Wrapped title"}}]}},
            "Wrapped title",
            id="data-envelope",
        ),
        pytest.param("Plain title", "Plain title", id="bare-string"),
        pytest.param({"choices": [{"text": "Legacy completion"}]}, "Legacy completion", id="choice-text"),
        pytest.param(
            {"choices": [{"delta": {"content": "Delta title"}}]}, "Delta title", id="choice-delta"
        ),
        pytest.param(
            {"choices": [{"message": {"content": [{"type": "text", "text": "Block title"}]}}]},
            "Block title",
            id="openai-content-blocks",
        ),
        pytest.param({"candidates": [{"text": "Candidate text"}]}, "Candidate text", id="gemini-text"),
    ],
)
def test_extracts_known_shapes(body: Any, expected: str) -> None:
    assert extract_title_from_common_response(body) == expected


def test_returns_none_for_malformed_response() -> None:
    assert extract_title_from_common_response({"foo": {"bar": 1}}) is None
    assert extract_title_from_common_response(None) is None
    assert extract_title_from_common_response(42) is None
    assert extract_title_from_common_response([{"text": "not a response"}]) is None


def test_priority_prefers_output_text_over_choices() -> None:
    body = {
        "output_text": "first",
        "choices": [{"message": {"content": "second"}}],
    }
    assert extract_title_from_common_response(body) == "first"


def test_empty_chat_content_falls_through_to_later_shapes() -> None:
    body = {
        "choices": [{"message": {"content": "   "}}],
        "content": [{"type": "text", "text": "From content"}],
    }
    assert extract_title_from_common_response(body) == "From content"


def test_thinking_block_takes_last_line_only() -> None:
    content = [{"type": "thinking", "thinking": "Let me think.\n\nMaybe X?\n  Final Answer  \n\n"}]
    assert extract_text_from_content_like(content) == "Final Answer"


def test_content_like_mixed_arrays() -> None:
    content = [
        {"type": "image"},
        {"type": "text", "text": "Text block title"},
    ]
    assert extract_text_from_content_like(content) == "Text block title"


def test_content_like_nested_content_and_parts() -> None:
    assert extract_text_from_content_like([{"content": [{"text": "nested"}]}]) == "nested"
    assert extract_text_from_content_like([{"parts": [{"text": "in parts"}]}]) == "in parts"
    assert extract_text_from_content_like([{"output_text": "out"}]) == "out"
    assert extract_text_from_content_like(["", "second string"]) == "second string"


def test_content_like_rejects_non_text() -> None:
    assert extract_text_from_content_like(None) is None
    assert extract_text_from_content_like({"text": "dict is not a sequence"}) is None
    assert extract_text_from_content_like([1, None, {"type": "image"}]) is None


# --- Shape matching (recognized-but-empty vs unrecognized) ---


@pytest.mark.parametrize(
    "body",
    [
        {"content": []},
        {"content": ""},
        {"output_text": ""},
        {"choices": [{"message": {"content": ""}}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"data": {"content": []}},
        {"choices": []},
        {"candidates": []},
        {"choices": [None]},
        "   ",
    ],
)
def test_probe_reports_recognized_but_empty(body: Any) -> None:
    assert probe_common_response(body) == ShapeMatch(matched=True, text=None)


@pytest.mark.parametrize(
    "body",
    [{"foo": {"bar": 1}}, None, 3.5, {"choices": {}}, {"data": {"foo": 1}}, {"content": {"x": 1}}],
)
def test_probe_reports_unrecognized(body: Any) -> None:
    assert probe_common_response(body) == ShapeMatch(matched=False, text=None)


def _wrap(body: Any, depth: int) -> Any:
    for _ in range(depth):
        body = {"data": body}
    return body


def test_data_envelope_recursion_is_bounded() -> None:
    inner = {"output_text": "deep"}
    assert extract_title_from_common_response(_wrap(inner, MAX_ENVELOPE_DEPTH)) == "deep"
    too_deep = _wrap(inner, MAX_ENVELOPE_DEPTH + 1)
    assert extract_title_from_common_response(too_deep) is None
    assert probe_common_response(too_deep).matched is False


# --- Purity ---

_json = st.recursive(
    st.none() | st.booleans() | st.integers() | st.text(max_size=20),
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(
        st.sampled_from(
            ["content", "choices", "message", "text", "thinking", "data", "parts", "candidates", "output_text", "x"]
        ),
        children,
        max_size=4,
    ),
    max_leaves=20,
)


@given(_json)
@settings(max_examples=200, deadline=None)
def test_extractor_is_pure_and_never_raises(body: Any) -> None:
    snapshot = copy.deepcopy(body)
    first = extract_title_from_common_response(body)
    second = extract_title_from_common_response(body)
    assert first == second
    assert body == snapshot
    assert first is None or (isinstance(first, str) and first.strip())
