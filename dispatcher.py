"""Delivers a finished result to the clipboard and optionally pastes it."""

from __future__ import annotations

import asyncio
import logging

from config import CaptureTimings
from errors import CLIPBOARD_FAILED, ERROR_MESSAGES, PASTE_MANUALLY, TEXT_READY
from interfaces import Clipboard, KeyboardSimulator, Notifier, Sleep
from models import DispatchResult, Severity

_logger = logging.getLogger(__name__)


class ResultDispatcher:
    def __init__(
        self,
        clipboard: Clipboard,
        keyboard: KeyboardSimulator,
        notifier: Notifier,
        timings: CaptureTimings | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._clipboard = clipboard
        self._keyboard = keyboard
        self._notifier = notifier
        self._timings = timings or CaptureTimings()
        self._sleep = sleep

    async def dispatch(self, text: str, auto_paste: bool) -> DispatchResult:
        if not await self._write_clipboard(text):
            self._notifier.notify(Severity.ERROR, ERROR_MESSAGES[CLIPBOARD_FAILED])
            return DispatchResult(clipboard_written=False, pasted=False, reason="clipboard write failed")

        await self._sleep(self._timings.paste_settle_s)

        if not auto_paste:
            self._notifier.notify(Severity.SUCCESS, ERROR_MESSAGES[TEXT_READY])
            return DispatchResult(clipboard_written=True, pasted=False, reason="auto paste disabled")

        _logger.info("Auto-paste attempt")
        if self._keyboard.send_paste():
            return DispatchResult(clipboard_written=True, pasted=True, reason="ok")

        self._notifier.notify(Severity.INFO, ERROR_MESSAGES[PASTE_MANUALLY])
        return DispatchResult(clipboard_written=True, pasted=False, reason="paste gesture failed")

    async def _write_clipboard(self, text: str) -> bool:
        attempts = max(1, self._timings.write_attempts)
        for attempt in range(1, attempts + 1):
            try:
                self._clipboard.set_text(text)
                return True
            except Exception as exc:
                _logger.info("Clipboard write attempt %d/%d failed: %s", attempt, attempts, exc)
                if attempt < attempts:
                    await self._sleep(self._timings.write_retry_delay_s)
        return False
