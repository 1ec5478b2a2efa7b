"""Small HTTP and SSE constants shared across chatwire.

This module is intentionally tiny to avoid circular imports and drift.
"""

from __future__ import annotations

# SSE framing.
SSE_DATA_FIELD = "data:"
SSE_DONE_SENTINEL = "[DONE]"

# Upper bound on response text kept for diagnostics.
DATA_PREVIEW_LIMIT = 500

JSON_CONTENT_TYPE = "application/json"


def is_success_status(status_code: int) -> bool:
    """Whether an HTTP status code is in the 2xx range."""
    return 200 <= status_code < 300


def preview_text(text: str, limit: int = DATA_PREVIEW_LIMIT) -> str:
    """Return at most *limit* characters of *text*."""
    return text if len(text) <= limit else text[:limit]
