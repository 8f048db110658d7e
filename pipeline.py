"""Refine and transcribe runs: capture, remote call, dispatch, history."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from config import AppConfig
from dispatcher import ResultDispatcher
from errors import (
    EMPTY_RESULT,
    ERROR_MESSAGES,
    NO_SPEECH,
    NO_TEXT,
    RECORDING_FAILED,
    TRANSCRIBE_DISABLED,
    RemoteError,
)
from history import HistoryLog
from interfaces import Notifier, Refiner, Sleep, Transcriber
from models import RemoteResult, Severity
from selection_capture import SelectionCapture

_logger = logging.getLogger(__name__)

AudioSource = Callable[[], Awaitable[bytes]]


async def call_remote(call: Awaitable[str]) -> RemoteResult:
    """Await a remote call and fold a ``RemoteError`` into a tagged result."""
    try:
        return RemoteResult.success(await call)
    except RemoteError as exc:
        return RemoteResult.failure(exc)


class RefinePipeline:
    def __init__(
        self,
        config: AppConfig,
        capture: SelectionCapture,
        refiner: Refiner,
        dispatcher: ResultDispatcher,
        history: HistoryLog,
        notifier: Notifier,
    ) -> None:
        self._config = config
        self._capture = capture
        self._refiner = refiner
        self._dispatcher = dispatcher
        self._history = history
        self._notifier = notifier

    async def run(self) -> None:
        try:
            await self._run()
        except Exception as exc:
            _logger.exception("Refinement failed")
            self._notifier.notify(Severity.ERROR, f"Refinement failed: {exc}")

    async def _run(self) -> None:
        _logger.info("Starting capture from selection/clipboard")
        captured = await self._capture.capture(self._config.use_clipboard_fallback)
        if captured.is_empty:
            self._notifier.notify(Severity.WARNING, ERROR_MESSAGES[NO_TEXT])
            return
        _logger.info("Captured %d chars (%s)", len(captured.text), captured.provenance.value)

        result = await call_remote(self._refiner.refine(captured.text))
        if not result.ok:
            _logger.info("Refinement error: %r", result.error)
            self._notifier.notify(Severity.ERROR, f"Refinement failed: {result.error.message}")
            return
        if not result.text.strip():
            self._notifier.notify(Severity.ERROR, ERROR_MESSAGES[EMPTY_RESULT])
            return

        dispatched = await self._dispatcher.dispatch(result.text, self._config.auto_paste)
        if not dispatched.clipboard_written:
            return

        await asyncio.to_thread(self._history.append, captured.text, result.text, self._refiner.model)
        _logger.info("Refinement completed successfully.")


class TranscribePipeline:
    def __init__(
        self,
        config: AppConfig,
        record_audio: AudioSource,
        transcriber: Transcriber,
        dispatcher: ResultDispatcher,
        notifier: Notifier,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config
        self._record_audio = record_audio
        self._transcriber = transcriber
        self._dispatcher = dispatcher
        self._notifier = notifier
        self._sleep = sleep

    async def run(self) -> None:
        try:
            await self._run()
        except Exception as exc:
            _logger.exception("Transcription failed")
            self._notifier.notify(Severity.ERROR, f"Transcription failed: {exc}")

    async def _run(self) -> None:
        settings = self._config.transcriber
        if not settings.enabled:
            self._notifier.notify(Severity.WARNING, ERROR_MESSAGES[TRANSCRIBE_DISABLED])
            return

        try:
            audio = await self._record_audio()
        except Exception as exc:
            _logger.info("Audio recording failed: %s", exc)
            self._notifier.notify(Severity.ERROR, ERROR_MESSAGES[RECORDING_FAILED])
            return
        _logger.info("Recorded %d bytes of audio", len(audio))

        result = await self._transcribe_with_retry(audio)
        if not result.ok:
            self._notifier.notify(Severity.ERROR, f"Transcription failed: {result.error.message}")
            return
        if not result.text.strip():
            self._notifier.notify(Severity.WARNING, ERROR_MESSAGES[NO_SPEECH])
            return

        await self._dispatcher.dispatch(result.text.strip(), settings.auto_paste)
        _logger.info("Transcription completed: %d characters", len(result.text))

    async def _transcribe_with_retry(self, audio: bytes) -> RemoteResult:
        settings = self._config.transcriber
        attempts = max(1, settings.max_attempts)
        for attempt in range(1, attempts + 1):
            result = await call_remote(self._transcriber.transcribe(audio))
            if result.ok:
                return result
            error = result.error
            if not error.is_retryable() or attempt == attempts:
                return result
            self._notifier.notify(Severity.WARNING, f"Transcription failed, will retry: {error.message}")
            await self._sleep(settings.retry_backoff_s)
        return result
