"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from errors import RemoteError


class ActionKind(str, Enum):
    REFINE = "refine"
    TRANSCRIBE = "transcribe"


class CaptureProvenance(str, Enum):
    FRESH_SELECTION = "fresh_selection"
    FALLBACK_CLIPBOARD = "fallback_clipboard"
    EMPTY = "empty"


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class CaptureResult:
    text: str
    provenance: CaptureProvenance

    @property
    def is_empty(self) -> bool:
        return self.provenance == CaptureProvenance.EMPTY or not self.text.strip()


@dataclass(frozen=True)
class RemoteResult:
    """Outcome of a remote call: either ``text`` or ``error``, never both."""

    text: str = ""
    error: Optional[RemoteError] = None

    def __post_init__(self) -> None:
        if self.error is not None and self.text:
            raise ValueError("RemoteResult cannot carry both text and an error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, text: str) -> "RemoteResult":
        return cls(text=text)

    @classmethod
    def failure(cls, error: RemoteError) -> "RemoteResult":
        return cls(error=error)


@dataclass
class HistoryEntry:
    timestamp: datetime
    model: str
    original: str
    refined: str

    def to_record(self) -> dict:
        return {
            "Timestamp": self.timestamp.isoformat(),
            "Model": self.model,
            "Original": self.original,
            "Refined": self.refined,
        }

    @classmethod
    def from_record(cls, record: dict) -> "HistoryEntry":
        return cls(
            timestamp=datetime.fromisoformat(record["Timestamp"]),
            model=str(record.get("Model", "")),
            original=str(record.get("Original", "")),
            refined=str(record.get("Refined", "")),
        )


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


@dataclass
class DispatchResult:
    clipboard_written: bool
    pasted: bool
    reason: str
