"""Chat-completions client that rewrites text for grammar, clarity and tone."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from typing import Any, Optional

import requests

from config import LlmConfig
from errors import (
    ConfigurationError,
    RemoteError,
    RemoteErrorKind,
    classify_transport_error,
    http_error,
    truncate_body,
)
from interfaces import Sleep

_logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a concise writing assistant. Improve grammar, clarity, and tone without "
    "changing meaning. Preserve formatting and line breaks. Return only the improved text."
)
REQUEST_TIMEOUT_S = 30.0
MAX_ATTEMPTS = 2
RETRY_BACKOFF_S = 1.0


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest().upper()


def build_chat_request(config: LlmConfig, text: str) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "model": config.model,
        "temperature": config.temperature,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": text},
        ],
    }
    if config.max_tokens is not None:
        payload["max_tokens"] = config.max_tokens
    return payload


def extract_chat_content(body: str) -> str:
    """Pull ``choices[0].message.content`` out of a chat-completions body."""
    try:
        parsed = json.loads(body)
    except ValueError as exc:
        raise RemoteError(
            RemoteErrorKind.PARSE_ERROR,
            "Invalid response JSON",
            response_text=truncate_body(body),
        ) from exc

    choices = parsed.get("choices") if isinstance(parsed, dict) else None
    if not isinstance(choices, list) or not choices:
        raise RemoteError(
            RemoteErrorKind.PARSE_ERROR,
            "No choices in response",
            response_text=truncate_body(body),
        )
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        raise RemoteError(
            RemoteErrorKind.PARSE_ERROR,
            "No message in first choice",
            response_text=truncate_body(body),
        )
    content = message.get("content")
    if content is None:
        return ""
    if not isinstance(content, str):
        raise RemoteError(
            RemoteErrorKind.PARSE_ERROR,
            "Message content is not text",
            response_text=truncate_body(body),
        )
    return content.strip()


class RefinementClient:
    def __init__(
        self,
        config: LlmConfig,
        session: Optional[requests.Session] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._sleep = sleep

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def endpoint(self) -> str:
        return self._config.base_url.rstrip("/") + "/chat/completions"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        api_key = self._config.resolved_api_key()
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        if self._config.http_referer:
            headers["HTTP-Referer"] = self._config.http_referer
        if self._config.x_title:
            headers["X-Title"] = self._config.x_title
        return headers

    def _post(self, payload: dict[str, Any]) -> requests.Response:
        return self._session.post(
            self.endpoint,
            json=payload,
            headers=self._headers(),
            timeout=REQUEST_TIMEOUT_S,
        )

    async def refine(self, text: str) -> str:
        if not self._config.enabled:
            raise ConfigurationError("Cloud LLM is disabled.")

        _logger.info(
            "Calling LLM endpoint: %s, model=%s, temp=%s",
            self.endpoint,
            self._config.model,
            self._config.temperature,
        )
        _logger.info("LLM input fingerprint: len=%d, sha256=%s", len(text), sha256_hex(text))
        payload = build_chat_request(self._config, text)

        last_error: Optional[RemoteError] = None
        for attempt in range(1, MAX_ATTEMPTS + 1):
            has_next = attempt < MAX_ATTEMPTS
            try:
                response = await asyncio.to_thread(self._post, payload)
            except Exception as exc:
                last_error = classify_transport_error(exc, REQUEST_TIMEOUT_S)
                _logger.info("LLM exception on attempt %d: %s", attempt, exc)
                if has_next:
                    await self._sleep(RETRY_BACKOFF_S)
                continue

            status = response.status_code
            _logger.info("LLM response status: %d", status)
            if status >= 500 or status == 429:
                last_error = http_error(status, response.text)
                if has_next:
                    _logger.info("Retryable status; backing off %gs", RETRY_BACKOFF_S)
                    await self._sleep(RETRY_BACKOFF_S)
                continue
            if not 200 <= status < 300:
                raise http_error(status, response.text)

            result = extract_chat_content(response.text)
            _logger.info("LLM output fingerprint: len=%d, sha256=%s", len(result), sha256_hex(result))
            return result

        assert last_error is not None
        raise RemoteError(
            last_error.kind,
            f"Max retries exceeded for LLM request: {last_error.message}",
            status_code=last_error.status_code,
            response_text=last_error.response_text,
        )
