"""Append-only refinement history, capped to the most recent entries."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

from config import default_config_dir
from models import HistoryEntry

_logger = logging.getLogger(__name__)

MAX_ENTRIES = 50


class HistoryLog:
    """JSON-lines history file.

    Nothing is cached between calls; every append and trim reads the file
    again. Failures are logged and swallowed because history never affects
    a pipeline outcome.
    """

    def __init__(
        self,
        path: Path | None = None,
        max_entries: int = MAX_ENTRIES,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._path = path or default_config_dir() / "history.jsonl"
        self._max_entries = max_entries
        self._clock = clock

    @property
    def path(self) -> Path:
        return self._path

    def append(self, original: str, refined: str, model: str) -> None:
        try:
            entry = HistoryEntry(timestamp=self._clock(), model=model, original=original, refined=refined)
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry.to_record(), ensure_ascii=False) + "\n")
            self._trim()
        except Exception as exc:
            _logger.debug("History append failed: %s", exc)

    def read_all(self) -> list[HistoryEntry]:
        entries: list[HistoryEntry] = []
        try:
            if not self._path.exists():
                return entries
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except Exception as exc:
            _logger.debug("History read failed: %s", exc)
            return entries

        for line in lines:
            if not line.strip():
                continue
            try:
                entries.append(HistoryEntry.from_record(json.loads(line)))
            except (ValueError, KeyError, TypeError, AttributeError):
                continue
        return entries

    def _trim(self) -> None:
        entries = self.read_all()
        if len(entries) <= self._max_entries:
            return
        kept = entries[-self._max_entries:]
        lines = [json.dumps(e.to_record(), ensure_ascii=False) for e in kept]
        self._path.write_text("\n".join(lines) + "\n", encoding="utf-8")
