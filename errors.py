"""Remote error taxonomy and user-facing messages."""

from __future__ import annotations

from enum import Enum
from typing import Optional

import requests

MAX_BODY_CHARS = 500

REFINE_BUSY = "REFINE_BUSY"
TRANSCRIBE_BUSY = "TRANSCRIBE_BUSY"
TRANSCRIBE_DISABLED = "TRANSCRIBE_DISABLED"
NO_TEXT = "NO_TEXT"
EMPTY_RESULT = "EMPTY_RESULT"
NO_SPEECH = "NO_SPEECH"
RECORDING_FAILED = "RECORDING_FAILED"
CLIPBOARD_FAILED = "CLIPBOARD_FAILED"
PASTE_MANUALLY = "PASTE_MANUALLY"
TEXT_READY = "TEXT_READY"

ERROR_MESSAGES = {
    REFINE_BUSY: "Refinement already in progress. Please wait.",
    TRANSCRIBE_BUSY: "Transcription already in progress. Please wait.",
    TRANSCRIBE_DISABLED: "Remote transcription is disabled. Enable it in settings first.",
    NO_TEXT: "No text selected or in clipboard.",
    EMPTY_RESULT: "Provider returned empty result.",
    NO_SPEECH: "No speech detected or transcription returned empty result.",
    RECORDING_FAILED: "Failed to record audio from microphone. Please check your microphone permissions.",
    CLIPBOARD_FAILED: "Failed to copy text to clipboard.",
    PASTE_MANUALLY: "Text is ready. You can paste manually with Ctrl+V.",
    TEXT_READY: "Text is ready to paste.",
}


class RemoteErrorKind(str, Enum):
    NETWORK_TIMEOUT = "NetworkTimeout"
    CONNECTION_FAILED = "ConnectionFailed"
    HTTP_ERROR = "HttpError"
    PARSE_ERROR = "ParseError"
    FORMAT_ERROR = "FormatError"
    UNKNOWN = "Unknown"


_RETRYABLE_KINDS = frozenset({RemoteErrorKind.NETWORK_TIMEOUT, RemoteErrorKind.CONNECTION_FAILED})


def is_retryable_kind(kind: RemoteErrorKind) -> bool:
    return kind in _RETRYABLE_KINDS


class ConfigurationError(RuntimeError):
    """A remote service is administratively disabled or misconfigured."""


class RemoteError(Exception):
    def __init__(
        self,
        kind: RemoteErrorKind,
        message: str,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.response_text = response_text

    def is_retryable(self) -> bool:
        return is_retryable_kind(self.kind)

    def __repr__(self) -> str:
        return f"RemoteError(kind={self.kind.value}, status_code={self.status_code}, message={self.message!r})"


def truncate_body(text: Optional[str], limit: int = MAX_BODY_CHARS) -> str:
    if not text:
        return ""
    return text if len(text) <= limit else text[:limit]


def http_error(status_code: int, body: str) -> RemoteError:
    return RemoteError(
        RemoteErrorKind.HTTP_ERROR,
        f"Remote API returned error (HTTP {status_code})",
        status_code=status_code,
        response_text=truncate_body(body),
    )


def classify_transport_error(exc: BaseException, timeout_s: Optional[float] = None) -> RemoteError:
    """Map a transport-level exception to a typed ``RemoteError``.

    Timeouts are checked before connection failures because requests'
    ``ConnectTimeout`` derives from both.
    """
    if isinstance(exc, RemoteError):
        return exc
    if _is_timeout(exc):
        suffix = f" after {timeout_s:g}s" if timeout_s else ""
        return RemoteError(RemoteErrorKind.NETWORK_TIMEOUT, f"Remote API request timed out{suffix}")
    if _is_connection_failure(exc):
        return RemoteError(RemoteErrorKind.CONNECTION_FAILED, f"Failed to connect to remote API: {exc}")
    return RemoteError(RemoteErrorKind.UNKNOWN, f"Unexpected error during remote call: {exc}")


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, TimeoutError):
        return True
    return isinstance(exc, requests.exceptions.Timeout)


def _is_connection_failure(exc: BaseException) -> bool:
    if isinstance(exc, ConnectionError):
        return True
    return isinstance(exc, requests.exceptions.ConnectionError)
