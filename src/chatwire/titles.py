"""Conversation title helpers: prompt, sanitizing and local fallbacks.

Title generation is best effort. When a title request fails for any reason,
callers substitute `derive_fallback_title` instead of surfacing an error.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chatwire.streaming import TitleFetchResult

DEFAULT_CHAT_TITLE = "New Chat"
DEFAULT_AGENT_SESSION_TITLE = "New Agent Session"
MAX_TITLE_LENGTH = 20

_EMPTY_FALLBACK_TITLE = "Untitled Chat"
_EMPTY_AGENT_FALLBACK_TITLE = "Untitled Session"

# Only this much of the first message goes into the title prompt.
_PROMPT_MESSAGE_LIMIT = 500

_WRAPPING = r"[\s\"'“”‘’「」《》()\[\]{}【】]+"
_LEADING_WRAP_RE = re.compile(f"^{_WRAPPING}")
_TRAILING_WRAP_RE = re.compile(f"{_WRAPPING}$")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_title_whitespace(value: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", value).strip()


def _strip_wrapping_punctuation(value: str) -> str:
    return _TRAILING_WRAP_RE.sub("", _LEADING_WRAP_RE.sub("", value))


def sanitize_title_candidate(raw: str, max_length: int = MAX_TITLE_LENGTH) -> str | None:
    """Clean and truncate a title candidate; None when nothing usable remains."""
    normalized = normalize_title_whitespace(raw)
    if not normalized:
        return None

    cleaned = normalize_title_whitespace(_strip_wrapping_punctuation(normalized))
    if not cleaned:
        return None

    truncated = cleaned[:max_length].strip()
    return truncated or None


def derive_fallback_title(user_message: str, max_length: int = MAX_TITLE_LENGTH) -> str:
    """Deterministic local title from the first user message.

    Never returns the default placeholder, even for an empty message.
    """
    return sanitize_title_candidate(user_message, max_length) or _EMPTY_FALLBACK_TITLE


def derive_agent_fallback_title(
    user_message: str, max_length: int = MAX_TITLE_LENGTH
) -> str:
    """Agent-session variant of `derive_fallback_title`."""
    return (
        sanitize_title_candidate(user_message, max_length)
        or _EMPTY_AGENT_FALLBACK_TITLE
    )


def is_default_chat_title(title: str | None) -> bool:
    """Whether *title* is still the placeholder (and may be overwritten)."""
    if not title:
        return True
    return normalize_title_whitespace(title) == DEFAULT_CHAT_TITLE


def is_default_agent_title(title: str | None) -> bool:
    """Agent-session variant of `is_default_chat_title`."""
    if not title:
        return True
    return normalize_title_whitespace(title) == DEFAULT_AGENT_SESSION_TITLE


def build_title_prompt(user_message: str) -> str:
    """Prompt asking the model for a short title of the first user message."""
    excerpt = normalize_title_whitespace(user_message)[:_PROMPT_MESSAGE_LIMIT]
    return (
        "Write a short title (at most "
        f"{MAX_TITLE_LENGTH} characters) for a conversation that starts with "
        "the message below. Reply with the title only, without quotes or "
        f"punctuation around it.\n\nMessage: {excerpt}"
    )


def resolve_title(
    result: TitleFetchResult,
    user_message: str,
    max_length: int = MAX_TITLE_LENGTH,
) -> str:
    """Pick the display title: the fetched one if usable, else the fallback."""
    if result.title is not None:
        candidate = sanitize_title_candidate(result.title, max_length)
        if candidate:
            return candidate
    return derive_fallback_title(user_message, max_length)
