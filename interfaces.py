"""Protocol interfaces used by the trigger pipelines."""

from __future__ import annotations

from queue import Queue
from typing import Awaitable, Callable, Optional, Protocol

from models import AudioFrame, Severity

Sleep = Callable[[float], Awaitable[None]]


class Clipboard(Protocol):
    def get_text(self) -> Optional[str]: ...

    def set_text(self, text: str) -> None: ...

    def clear(self) -> None: ...


class KeyboardSimulator(Protocol):
    def send_copy(self) -> bool: ...

    def send_paste(self) -> bool: ...


class WindowFocus(Protocol):
    def get_foreground(self) -> Optional[int]: ...

    def focus(self, handle: int) -> bool: ...


class Notifier(Protocol):
    def notify(self, severity: Severity, message: str) -> None: ...


class Recorder(Protocol):
    def start(self, audio_queue: Queue[AudioFrame | None]) -> None: ...

    def stop(self) -> None: ...


class Refiner(Protocol):
    @property
    def model(self) -> str: ...

    async def refine(self, text: str) -> str: ...


class Transcriber(Protocol):
    async def transcribe(self, audio_bytes: bytes, filename: str = "recording.wav") -> str: ...
