"""chatwire: one event model over heterogeneous LLM streaming APIs.

Public API:
    - get_adapter(): Provider adapter lookup
    - read_sse_stream() / stream_chat(): Stream decoding
    - fetch_title_with_diagnostics(): One-shot title requests
    - decide_title_trigger(): Title trigger decision
    - Config: Configuration dataclass
"""

from __future__ import annotations

import logging

from chatwire.config import Config
from chatwire.errors import (
    ChatwireError,
    ConfigurationError,
    InternalError,
    RequestBuildError,
    StreamDecodeError,
)
from chatwire.events import (
    Complete,
    StreamError,
    StreamEvent,
    TextDelta,
    ThinkingDelta,
    ToolCallEvent,
    Usage,
    UsageUpdate,
    is_terminal,
)
from chatwire.extraction import (
    extract_text_from_content_like,
    extract_title_from_common_response,
)
from chatwire.providers import ProviderAdapter, get_adapter
from chatwire.providers.models import (
    Attachment,
    Message,
    ProviderRequest,
    StreamRequestInput,
    TitleRequestInput,
    ToolCall,
)
from chatwire.streaming import (
    TitleFetchResult,
    fetch_title_with_diagnostics,
    httpx_fetcher,
    read_sse_stream,
    stream_chat,
)
from chatwire.title_trigger import (
    TitleTriggerDecision,
    TitleTriggerInput,
    decide_title_trigger,
)

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("chatwire")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("chatwire").addHandler(logging.NullHandler())

__all__ = [
    "Attachment",
    "ChatwireError",
    "Complete",
    "Config",
    "ConfigurationError",
    "InternalError",
    "Message",
    "ProviderAdapter",
    "ProviderRequest",
    "RequestBuildError",
    "StreamDecodeError",
    "StreamError",
    "StreamEvent",
    "StreamRequestInput",
    "TextDelta",
    "ThinkingDelta",
    "TitleFetchResult",
    "TitleRequestInput",
    "TitleTriggerDecision",
    "TitleTriggerInput",
    "ToolCall",
    "ToolCallEvent",
    "Usage",
    "UsageUpdate",
    "decide_title_trigger",
    "extract_text_from_content_like",
    "extract_title_from_common_response",
    "fetch_title_with_diagnostics",
    "get_adapter",
    "httpx_fetcher",
    "is_terminal",
    "read_sse_stream",
    "stream_chat",
]
