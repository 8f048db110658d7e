"""Clipboard, keyboard and window-focus adapters."""

from __future__ import annotations

import logging
import sys
from typing import Optional

try:
    import pyperclip
except Exception:  # pragma: no cover
    pyperclip = None  # type: ignore

try:
    from pynput.keyboard import Controller, Key
except Exception:  # pragma: no cover
    Controller = None  # type: ignore
    Key = None  # type: ignore

_logger = logging.getLogger(__name__)


class PyperclipClipboard:
    def get_text(self) -> Optional[str]:
        if pyperclip is None:
            raise RuntimeError("pyperclip is not installed")
        text = pyperclip.paste()
        return text if isinstance(text, str) else None

    def set_text(self, text: str) -> None:
        if pyperclip is None:
            raise RuntimeError("pyperclip is not installed")
        pyperclip.copy(text)

    def clear(self) -> None:
        self.set_text("")


class PynputKeyboard:
    """Sends copy/paste shortcuts to the focused window."""

    def __init__(self, platform: str | None = None) -> None:
        self._platform = platform or sys.platform
        self._controller = None

    def send_copy(self) -> bool:
        return self._send_shortcut("c")

    def send_paste(self) -> bool:
        return self._send_shortcut("v")

    def _modifier(self) -> object:
        return Key.cmd if self._platform == "darwin" else Key.ctrl

    def _send_shortcut(self, char: str) -> bool:
        if Controller is None or Key is None:
            _logger.warning("pynput is not installed, cannot send shortcut %s", char)
            return False
        try:
            if self._controller is None:
                self._controller = Controller()
            keyboard = self._controller
            modifier = self._modifier()
            keyboard.press(modifier)
            keyboard.press(char)
            keyboard.release(char)
            keyboard.release(modifier)
            return True
        except Exception as exc:
            _logger.warning("Sending shortcut %s failed: %s", char, exc)
            return False


class ForegroundWindow:
    """Win32 foreground window tracking; a no-op on other platforms."""

    def __init__(self) -> None:
        self._user32 = None
        if sys.platform == "win32":
            import ctypes

            self._user32 = ctypes.windll.user32

    def get_foreground(self) -> Optional[int]:
        if self._user32 is None:
            return None
        handle = self._user32.GetForegroundWindow()
        return int(handle) if handle else None

    def focus(self, handle: int) -> bool:
        if self._user32 is None or not handle:
            return False
        return bool(self._user32.SetForegroundWindow(handle))
