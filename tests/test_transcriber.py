"""Tests for TranscriptionClient and transcript extraction."""

from __future__ import annotations

import asyncio
import json

import pytest
import requests

from config import TranscriberConfig
from errors import ConfigurationError, RemoteError, RemoteErrorKind
from transcriber import TranscriptionClient, extract_transcript_text


class FakeResponse:
    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.text = body


class FakeSession:
    def __init__(self, outcome) -> None:  # noqa: ANN001
        self._outcome = outcome
        self.calls: list[tuple[str, dict]] = []

    def post(self, url: str, **kwargs) -> FakeResponse:  # noqa: ANN003
        self.calls.append((url, kwargs))
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome


def _client(outcome, **overrides) -> tuple[TranscriptionClient, FakeSession]:  # noqa: ANN001, ANN003
    session = FakeSession(outcome)
    config = TranscriberConfig(base_url="https://stt.example/v1/audio/transcriptions", **overrides)
    return TranscriptionClient(config, session=session), session


# ---------------------------------------------------------------
# extract_transcript_text
# ---------------------------------------------------------------

def test_top_level_text_wins_over_results() -> None:
    assert extract_transcript_text({"results": [{"text": "a"}], "text": "b"}) == "b"


def test_results_bare_string() -> None:
    assert extract_transcript_text({"results": ["c"]}) == "c"


def test_results_object_with_transcription_key() -> None:
    assert extract_transcript_text({"results": [{"transcription": "d"}]}) == "d"


def test_top_level_key_order() -> None:
    payload = {"result": "third", "transcription": "second"}
    assert extract_transcript_text(payload) == "second"


def test_nested_data_object() -> None:
    assert extract_transcript_text({"data": {"result": "e"}}) == "e"


def test_results_object_without_text_falls_through_to_data() -> None:
    payload = {"results": [{"confidence": 0.9}], "data": {"text": "g"}}
    assert extract_transcript_text(payload) == "g"


def test_non_string_values_are_skipped() -> None:
    assert extract_transcript_text({"text": 42, "data": {"text": "f"}}) == "f"


def test_unrecognized_shape_raises_parse_error_with_full_body() -> None:
    body = json.dumps({"segments": [], "padding": "x" * 800})

    with pytest.raises(RemoteError) as info:
        extract_transcript_text(json.loads(body), raw_body=body)

    assert info.value.kind == RemoteErrorKind.PARSE_ERROR
    assert info.value.response_text == body


# ---------------------------------------------------------------
# transcribe
# ---------------------------------------------------------------

def test_transcribe_posts_multipart_with_bearer() -> None:
    client, session = _client(FakeResponse(200, '{"text": "hello"}'), api_key="key-1", model="whisper-large")

    assert asyncio.run(client.transcribe(b"RIFFdata", "clip.wav")) == "hello"

    url, kwargs = session.calls[0]
    assert url == "https://stt.example/v1/audio/transcriptions"
    assert kwargs["files"] == {"file": ("clip.wav", b"RIFFdata", "audio/wav")}
    assert kwargs["data"] == {"model": "whisper-large"}
    assert kwargs["headers"] == {"Authorization": "Bearer key-1"}
    assert kwargs["timeout"] == 30.0


def test_transcribe_without_model_or_key(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.delenv("POLISHKEY_TRANSCRIBER_API_KEY", raising=False)
    client, session = _client(FakeResponse(200, '{"text": "x"}'), model="")

    asyncio.run(client.transcribe(b"RIFF"))

    _, kwargs = session.calls[0]
    assert kwargs["data"] == {}
    assert kwargs["headers"] == {}


def test_404_raises_http_error_not_retryable() -> None:
    client, _ = _client(FakeResponse(404, "missing"))

    with pytest.raises(RemoteError) as info:
        asyncio.run(client.transcribe(b"RIFF"))

    assert info.value.kind == RemoteErrorKind.HTTP_ERROR
    assert info.value.status_code == 404
    assert info.value.is_retryable() is False


def test_invalid_json_is_parse_error_with_truncated_body() -> None:
    client, _ = _client(FakeResponse(200, "<" * 1000))

    with pytest.raises(RemoteError) as info:
        asyncio.run(client.transcribe(b"RIFF"))

    assert info.value.kind == RemoteErrorKind.PARSE_ERROR
    assert len(info.value.response_text) == 500


def test_timeout_is_classified_as_network_timeout() -> None:
    client, _ = _client(requests.exceptions.Timeout("timed out"), timeout_seconds=5)

    with pytest.raises(RemoteError) as info:
        asyncio.run(client.transcribe(b"RIFF"))

    assert info.value.kind == RemoteErrorKind.NETWORK_TIMEOUT
    assert info.value.is_retryable() is True


def test_connection_failure_is_classified() -> None:
    client, _ = _client(requests.exceptions.ConnectionError("refused"))

    with pytest.raises(RemoteError) as info:
        asyncio.run(client.transcribe(b"RIFF"))

    assert info.value.kind == RemoteErrorKind.CONNECTION_FAILED


def test_unexpected_exception_is_unknown() -> None:
    client, _ = _client(RuntimeError("weird"))

    with pytest.raises(RemoteError) as info:
        asyncio.run(client.transcribe(b"RIFF"))

    assert info.value.kind == RemoteErrorKind.UNKNOWN


def test_empty_audio_is_format_error() -> None:
    client, session = _client(FakeResponse(200, '{"text": "x"}'))

    with pytest.raises(RemoteError) as info:
        asyncio.run(client.transcribe(b""))

    assert info.value.kind == RemoteErrorKind.FORMAT_ERROR
    assert session.calls == []


def test_disabled_transcriber_raises_configuration_error() -> None:
    client, _ = _client(FakeResponse(200, '{"text": "x"}'), enabled=False)

    with pytest.raises(ConfigurationError):
        asyncio.run(client.transcribe(b"RIFF"))


# ---------------------------------------------------------------
# test_connection
# ---------------------------------------------------------------

def test_connection_check_sends_silence_wav() -> None:
    client, session = _client(FakeResponse(200, '{"results": [""]}'))

    assert asyncio.run(client.test_connection()) == ""

    _, kwargs = session.calls[0]
    filename, payload, content_type = kwargs["files"]["file"]
    assert filename == "connection_test.wav"
    assert content_type == "audio/wav"
    assert payload[:4] == b"RIFF"
    # 0.6s of 16 kHz mono 16-bit audio plus the 44-byte header
    assert len(payload) == 44 + int(0.6 * 16000) * 2
