from __future__ import annotations

import pytest

from chatwire.errors import (
    ChatwireError,
    ConfigurationError,
    InternalError,
    RequestBuildError,
    StreamDecodeError,
    describe_exception,
)

pytestmark = pytest.mark.unit


def test_stream_decode_error_structured_metadata() -> None:
    err = StreamDecodeError(
        "bad frame",
        hint="check the proxy",
        provider="anthropic",
        payload="{oops",
    )

    assert str(err) == "bad frame"
    assert err.hint == "check the proxy"
    assert err.provider == "anthropic"
    assert err.payload == "{oops"


def test_request_build_error_defaults_to_none() -> None:
    err = RequestBuildError("fail")
    assert err.hint is None
    assert err.provider is None


def test_subclass_hierarchy() -> None:
    """Every chatwire error is catchable as ChatwireError."""
    for err in (
        ConfigurationError("c"),
        RequestBuildError("r"),
        StreamDecodeError("s"),
        InternalError("i"),
    ):
        assert isinstance(err, ChatwireError)


def test_describe_exception_uses_own_message() -> None:
    assert describe_exception(ValueError("broken")) == "broken"


def test_describe_exception_falls_back_to_cause_message() -> None:
    try:
        try:
            raise OSError("connection reset by peer")
        except OSError as inner:
            raise TimeoutError() from inner
    except TimeoutError as outer:
        assert describe_exception(outer) == "connection reset by peer"


def test_describe_exception_falls_back_to_class_name() -> None:
    assert describe_exception(TimeoutError()) == "TimeoutError"


def test_describe_exception_tolerates_cycles() -> None:
    a = RuntimeError()
    b = RuntimeError()
    a.__cause__ = b
    b.__cause__ = a
    assert describe_exception(a) == "RuntimeError"
