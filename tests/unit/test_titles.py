"""Title sanitizing, local fallbacks and result resolution."""

from __future__ import annotations

import pytest

from chatwire.streaming import TitleFetchResult
from chatwire.titles import (
    DEFAULT_AGENT_SESSION_TITLE,
    DEFAULT_CHAT_TITLE,
    MAX_TITLE_LENGTH,
    build_title_prompt,
    derive_agent_fallback_title,
    derive_fallback_title,
    is_default_agent_title,
    is_default_chat_title,
    resolve_title,
    sanitize_title_candidate,
)

pytestmark = pytest.mark.unit


def test_sanitizes_wrapping_punctuation_and_whitespace() -> None:
    assert sanitize_title_candidate('  "  hello   world  "  ') == "hello world"
    assert sanitize_title_candidate("《测试标题》") == "测试标题"
    assert sanitize_title_candidate("【Plan】") == "Plan"
    assert sanitize_title_candidate("(Q3 report)") == "Q3 report"


def test_truncates_long_titles() -> None:
    assert sanitize_title_candidate("abcdefghijklmnopqrstuvwxyz", 10) == "abcdefghij"


def test_truncation_does_not_leave_trailing_space() -> None:
    assert sanitize_title_candidate("abcd efgh", 5) == "abcd"


def test_returns_none_for_empty_candidate() -> None:
    assert sanitize_title_candidate("   ") is None
    assert sanitize_title_candidate('""') is None


def test_derives_deterministic_fallback_title() -> None:
    assert derive_fallback_title("  hello   world  ") == "hello world"
    assert derive_fallback_title("   ") != DEFAULT_CHAT_TITLE
    assert derive_fallback_title("   ") == derive_fallback_title("")


def test_fallback_stays_under_max_length() -> None:
    fallback = derive_fallback_title("x" * (MAX_TITLE_LENGTH + 50))
    assert len(fallback) <= MAX_TITLE_LENGTH


def test_agent_fallback_is_never_the_agent_default() -> None:
    assert derive_agent_fallback_title("") != DEFAULT_AGENT_SESSION_TITLE
    assert derive_agent_fallback_title(" deploy  script ") == "deploy script"


def test_detects_default_titles() -> None:
    assert is_default_chat_title(DEFAULT_CHAT_TITLE)
    assert is_default_chat_title(f"  {DEFAULT_CHAT_TITLE}  ")
    assert not is_default_chat_title("Custom title")
    assert is_default_chat_title(None)
    assert is_default_chat_title("")
    assert is_default_agent_title(DEFAULT_AGENT_SESSION_TITLE)
    assert not is_default_agent_title(DEFAULT_CHAT_TITLE)


def test_resolve_title_prefers_fetched_title() -> None:
    result = TitleFetchResult(title='"Trip to Rome"', reason="success", status=200)
    assert resolve_title(result, "plan my trip") == "Trip to Rome"


@pytest.mark.parametrize(
    "reason", ["http_non_200", "empty_content", "parse_failed", "network_error"]
)
def test_resolve_title_falls_back_on_every_failure(reason: str) -> None:
    result = TitleFetchResult(title=None, reason=reason)
    assert resolve_title(result, "  plan my trip  ") == "plan my trip"


def test_title_prompt_embeds_normalized_message() -> None:
    prompt = build_title_prompt("how do\n\nI bake bread?")
    assert "how do I bake bread?" in prompt
    assert str(MAX_TITLE_LENGTH) in prompt
