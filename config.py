"""JSON-backed app configuration."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

MOD_ALT = 0x0001
MOD_CONTROL = 0x0002
MOD_SHIFT = 0x0004
MOD_WIN = 0x0008

LLM_API_KEY_ENV = "POLISHKEY_LLM_API_KEY"
TRANSCRIBER_API_KEY_ENV = "POLISHKEY_TRANSCRIBER_API_KEY"


def default_config_dir() -> Path:
    return Path.home() / ".config" / "polishkey"


@dataclass
class HotkeyBinding:
    modifiers: int = MOD_CONTROL | MOD_ALT
    key: int = ord("R")


@dataclass
class LlmConfig:
    enabled: bool = True
    base_url: str = "http://localhost:11434/v1"
    model: str = "llama3.1"
    temperature: float = 0.2
    max_tokens: Optional[int] = None
    api_key: str = ""
    http_referer: str = ""
    x_title: str = ""

    def resolved_api_key(self) -> str:
        return self.api_key or os.getenv(LLM_API_KEY_ENV, "")


@dataclass
class TranscriberConfig:
    enabled: bool = True
    base_url: str = "http://localhost:18000/v1/audio/transcriptions"
    model: str = "whisper-1"
    api_key: str = ""
    timeout_seconds: float = 30.0
    auto_paste: bool = True
    record_seconds: float = 5.0
    max_attempts: int = 2
    retry_backoff_s: float = 1.0

    def resolved_api_key(self) -> str:
        return self.api_key or os.getenv(TRANSCRIBER_API_KEY_ENV, "")


@dataclass
class CaptureTimings:
    clear_settle_s: float = 0.1
    focus_settle_s: float = 0.1
    copy_wait_s: float = 0.5
    write_attempts: int = 3
    write_retry_delay_s: float = 0.05
    paste_settle_s: float = 0.1


@dataclass
class AppConfig:
    auto_paste: bool = True
    use_clipboard_fallback: bool = True
    hotkey: HotkeyBinding = field(default_factory=HotkeyBinding)
    transcriber_hotkey: HotkeyBinding = field(
        default_factory=lambda: HotkeyBinding(modifiers=MOD_CONTROL | MOD_ALT, key=ord("T"))
    )
    llm: LlmConfig = field(default_factory=LlmConfig)
    transcriber: TranscriberConfig = field(default_factory=TranscriberConfig)
    timings: CaptureTimings = field(default_factory=CaptureTimings)


_NESTED = {
    "hotkey": HotkeyBinding,
    "transcriber_hotkey": HotkeyBinding,
    "llm": LlmConfig,
    "transcriber": TranscriberConfig,
    "timings": CaptureTimings,
}


def _build(cls: type, data: Any) -> Any:
    if not isinstance(data, dict):
        return cls()
    valid_keys = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in valid_keys})


def config_from_dict(data: dict) -> AppConfig:
    valid_keys = {f.name for f in fields(AppConfig)}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in valid_keys:
            continue
        nested = _NESTED.get(key)
        kwargs[key] = _build(nested, value) if nested else value
    return AppConfig(**kwargs)


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or default_config_dir() / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AppConfig:
        data = self._read_all()
        if not data:
            return AppConfig()
        try:
            return config_from_dict(data)
        except (TypeError, ValueError):
            return AppConfig()

    def save(self, config: AppConfig) -> None:
        self._write_all(asdict(config))

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
