"""Single-flight guard that launches one pipeline run per action kind."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Mapping, Optional

from errors import ERROR_MESSAGES, REFINE_BUSY, TRANSCRIBE_BUSY
from interfaces import Notifier
from models import ActionKind, Severity

_logger = logging.getLogger(__name__)

PipelineFactory = Callable[[], Awaitable[None]]

_BUSY_MESSAGES = {
    ActionKind.REFINE: ERROR_MESSAGES[REFINE_BUSY],
    ActionKind.TRANSCRIBE: ERROR_MESSAGES[TRANSCRIBE_BUSY],
}


class TriggerGate:
    """Rejects a trigger while a run of the same kind is still in flight.

    Must be driven from the event loop thread. Other threads should hand
    triggers over with ``loop.call_soon_threadsafe(gate.trigger, kind)``.
    """

    def __init__(self, pipelines: Mapping[ActionKind, PipelineFactory], notifier: Notifier) -> None:
        self._pipelines = dict(pipelines)
        self._notifier = notifier
        self._busy: dict[ActionKind, bool] = {kind: False for kind in ActionKind}
        self._tasks: set[asyncio.Task] = set()

    def is_busy(self, kind: ActionKind) -> bool:
        return self._busy[kind]

    def trigger(self, kind: ActionKind) -> Optional[asyncio.Task]:
        if not self._acquire(kind):
            _logger.info("Trigger for %s rejected: already running", kind.value)
            self._notifier.notify(Severity.WARNING, _BUSY_MESSAGES[kind])
            return None

        try:
            task = asyncio.get_running_loop().create_task(self._pipelines[kind]())
        except BaseException:
            self._release(kind)
            raise
        self._tasks.add(task)
        task.add_done_callback(lambda done: self._on_done(kind, done))
        _logger.info("Pipeline %s started", kind.value)
        return task

    def _acquire(self, kind: ActionKind) -> bool:
        if self._busy[kind]:
            return False
        self._busy[kind] = True
        return True

    def _release(self, kind: ActionKind) -> None:
        self._busy[kind] = False

    def _on_done(self, kind: ActionKind, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        self._release(kind)
        if task.cancelled():
            _logger.info("Pipeline %s cancelled", kind.value)
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Pipeline %s crashed: %r", kind.value, exc)
        else:
            _logger.info("Pipeline %s finished", kind.value)
