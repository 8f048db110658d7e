from __future__ import annotations

import requests

from errors import (
    MAX_BODY_CHARS,
    RemoteError,
    RemoteErrorKind,
    classify_transport_error,
    http_error,
    is_retryable_kind,
    truncate_body,
)


def test_request_timeout_is_retryable_network_timeout() -> None:
    error = classify_transport_error(requests.exceptions.ReadTimeout("read timed out"), timeout_s=30)

    assert error.kind == RemoteErrorKind.NETWORK_TIMEOUT
    assert error.is_retryable() is True
    assert "30s" in error.message


def test_connect_timeout_counts_as_timeout() -> None:
    error = classify_transport_error(requests.exceptions.ConnectTimeout("connect timed out"))

    assert error.kind == RemoteErrorKind.NETWORK_TIMEOUT


def test_builtin_timeout_error_is_network_timeout() -> None:
    assert classify_transport_error(TimeoutError()).kind == RemoteErrorKind.NETWORK_TIMEOUT


def test_connection_failure_is_retryable() -> None:
    error = classify_transport_error(requests.exceptions.ConnectionError("refused"))

    assert error.kind == RemoteErrorKind.CONNECTION_FAILED
    assert error.is_retryable() is True


def test_other_exceptions_are_unknown_and_fatal() -> None:
    error = classify_transport_error(ValueError("boom"))

    assert error.kind == RemoteErrorKind.UNKNOWN
    assert error.is_retryable() is False


def test_classify_passes_remote_error_through() -> None:
    original = RemoteError(RemoteErrorKind.PARSE_ERROR, "bad")
    assert classify_transport_error(original) is original


def test_404_is_http_error_and_not_retryable() -> None:
    error = http_error(404, "not found")

    assert error.kind == RemoteErrorKind.HTTP_ERROR
    assert error.status_code == 404
    assert error.response_text == "not found"
    assert error.is_retryable() is False


def test_http_error_truncates_body() -> None:
    error = http_error(500, "x" * 2000)
    assert len(error.response_text) == MAX_BODY_CHARS


def test_only_transport_kinds_are_retryable() -> None:
    retryable = {kind for kind in RemoteErrorKind if is_retryable_kind(kind)}
    assert retryable == {RemoteErrorKind.NETWORK_TIMEOUT, RemoteErrorKind.CONNECTION_FAILED}


def test_truncate_body_handles_empty() -> None:
    assert truncate_body(None) == ""
    assert truncate_body("short") == "short"
