"""Best-effort capture of the user's current text selection.

There is no portable way to read another application's selection, so the
capture drives the clipboard instead: snapshot it, clear it, send a copy
shortcut to the previously focused window and see what lands there. If
nothing does, the snapshot is put back untouched.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from config import CaptureTimings
from interfaces import Clipboard, KeyboardSimulator, Sleep, WindowFocus
from models import CaptureProvenance, CaptureResult

_logger = logging.getLogger(__name__)


class SelectionCapture:
    def __init__(
        self,
        clipboard: Clipboard,
        keyboard: KeyboardSimulator,
        window_focus: WindowFocus,
        timings: CaptureTimings | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._clipboard = clipboard
        self._keyboard = keyboard
        self._window_focus = window_focus
        self._timings = timings or CaptureTimings()
        self._sleep = sleep

    async def capture(self, use_clipboard_fallback: bool = True) -> CaptureResult:
        readable, original = self._snapshot()
        if not readable:
            # nothing to restore afterwards, so the clipboard is left alone
            return CaptureResult("", CaptureProvenance.EMPTY)
        foreground = self._foreground()

        try:
            self._clipboard.clear()
        except Exception as exc:
            _logger.info("Clipboard clear failed: %s", exc)
        await self._sleep(self._timings.clear_settle_s)

        if foreground is not None:
            try:
                self._window_focus.focus(foreground)
            except Exception as exc:
                _logger.info("Refocusing window %s failed: %s", foreground, exc)
            await self._sleep(self._timings.focus_settle_s)

        if not self._keyboard.send_copy():
            _logger.info("Copy shortcut could not be sent")
        await self._sleep(self._timings.copy_wait_s)

        fresh = self._read()
        if fresh is not None and fresh.strip():
            _logger.info("Captured new text: %d chars", len(fresh))
            return CaptureResult(fresh, CaptureProvenance.FRESH_SELECTION)

        self._restore(original)
        if use_clipboard_fallback and original and original.strip():
            _logger.info("Returning original clipboard: %d chars", len(original))
            return CaptureResult(original, CaptureProvenance.FALLBACK_CLIPBOARD)

        _logger.info("Nothing captured (fallback=%s)", use_clipboard_fallback)
        return CaptureResult("", CaptureProvenance.EMPTY)

    def _snapshot(self) -> tuple[bool, Optional[str]]:
        try:
            return True, self._clipboard.get_text()
        except Exception as exc:
            _logger.info("Clipboard snapshot failed: %s", exc)
            return False, None

    def _foreground(self) -> Optional[int]:
        try:
            return self._window_focus.get_foreground()
        except Exception as exc:
            _logger.info("Foreground window lookup failed: %s", exc)
            return None

    def _read(self) -> Optional[str]:
        try:
            return self._clipboard.get_text()
        except Exception as exc:
            _logger.info("Clipboard read failed: %s", exc)
            return None

    def _restore(self, original: Optional[str]) -> None:
        if original is None:
            return
        try:
            self._clipboard.set_text(original)
        except Exception as exc:
            _logger.warning("Restoring clipboard failed: %s", exc)
