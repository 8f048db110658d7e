"""Speech-to-text client for OpenAI-compatible transcription endpoints.

Different servers put the transcript in different places, so the response
body is searched with a fixed key precedence instead of a single schema.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import requests

from config import TranscriberConfig
from errors import (
    ConfigurationError,
    RemoteError,
    RemoteErrorKind,
    classify_transport_error,
    http_error,
    truncate_body,
)
from recorder import silence_wav

_logger = logging.getLogger(__name__)

_TOP_LEVEL_KEYS = ("text", "transcription", "result")
_RESULT_ITEM_KEYS = ("text", "transcription")


def _first_string(obj: dict, keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = obj.get(key)
        if isinstance(value, str):
            return value
    return None


def extract_transcript_text(payload: Any, raw_body: str = "") -> str:
    """Find the transcript in a decoded response body.

    Lookup order, first match wins:

    1. top-level ``text``, ``transcription``, ``result``
    2. ``results[0]`` as an object (``text``/``transcription``) or a bare string
    3. ``data.text``, ``data.transcription``, ``data.result``
    """
    if isinstance(payload, dict):
        found = _first_string(payload, _TOP_LEVEL_KEYS)
        if found is not None:
            return found

        results = payload.get("results")
        if isinstance(results, list) and results:
            first = results[0]
            if isinstance(first, dict):
                found = _first_string(first, _RESULT_ITEM_KEYS)
                if found is not None:
                    return found
            elif isinstance(first, str):
                return first

        data = payload.get("data")
        if isinstance(data, dict):
            found = _first_string(data, _TOP_LEVEL_KEYS)
            if found is not None:
                return found

    raise RemoteError(
        RemoteErrorKind.PARSE_ERROR,
        "API response does not contain transcription text",
        response_text=raw_body or json.dumps(payload, ensure_ascii=False),
    )


class TranscriptionClient:
    def __init__(
        self,
        config: TranscriberConfig,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()

    @property
    def model(self) -> str:
        return self._config.model

    async def transcribe(self, audio_bytes: bytes, filename: str = "recording.wav") -> str:
        if not self._config.enabled:
            raise ConfigurationError("Remote transcription is disabled.")
        if not audio_bytes:
            raise RemoteError(RemoteErrorKind.FORMAT_ERROR, "Audio payload is empty")
        _logger.info("Sending %d bytes of audio to %s", len(audio_bytes), self._config.base_url)
        return await self._send(audio_bytes, filename)

    async def test_connection(self) -> str:
        """Send a short silent clip to validate the endpoint configuration."""
        return await self._send(silence_wav(0.6), "connection_test.wav")

    async def _send(self, audio_bytes: bytes, filename: str) -> str:
        try:
            response = await asyncio.to_thread(self._post, audio_bytes, filename)
        except Exception as exc:
            error = classify_transport_error(exc, self._config.timeout_seconds)
            _logger.info("Transcription transport failure: %r", error)
            raise error from exc

        body = response.text
        if not 200 <= response.status_code < 300:
            raise http_error(response.status_code, body)

        try:
            payload = json.loads(body)
        except ValueError as exc:
            raise RemoteError(
                RemoteErrorKind.PARSE_ERROR,
                "Remote API returned invalid JSON",
                response_text=truncate_body(body),
            ) from exc
        text = extract_transcript_text(payload, raw_body=body)
        _logger.info("Transcription completed: %d characters", len(text))
        return text

    def _post(self, audio_bytes: bytes, filename: str) -> requests.Response:
        headers: dict[str, str] = {}
        api_key = self._config.resolved_api_key()
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        data = {"model": self._config.model} if self._config.model else {}
        return self._session.post(
            self._config.base_url,
            files={"file": (filename, audio_bytes, "audio/wav")},
            data=data,
            headers=headers,
            timeout=self._config.timeout_seconds,
        )
