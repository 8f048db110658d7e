from __future__ import annotations

import asyncio

from errors import ERROR_MESSAGES, REFINE_BUSY, TRANSCRIBE_BUSY
from models import ActionKind, Severity
from trigger_gate import TriggerGate


class FakeNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[Severity, str]] = []

    def notify(self, severity: Severity, message: str) -> None:
        self.messages.append((severity, message))


class BlockingPipeline:
    """Pipeline that stays in flight until ``release`` is set."""

    def __init__(self, fail: bool = False) -> None:
        self.runs = 0
        self.fail = fail
        self.release: asyncio.Event | None = None

    async def __call__(self) -> None:
        self.runs += 1
        if self.release is None:
            self.release = asyncio.Event()
        await self.release.wait()
        if self.fail:
            raise RuntimeError("pipeline blew up")


def _gate(refine: BlockingPipeline, transcribe: BlockingPipeline) -> tuple[TriggerGate, FakeNotifier]:
    notifier = FakeNotifier()
    gate = TriggerGate({ActionKind.REFINE: refine, ActionKind.TRANSCRIBE: transcribe}, notifier)
    return gate, notifier


def test_second_trigger_while_busy_is_rejected() -> None:
    refine = BlockingPipeline()
    gate, notifier = _gate(refine, BlockingPipeline())

    async def scenario() -> None:
        first = gate.trigger(ActionKind.REFINE)
        assert first is not None
        await asyncio.sleep(0)
        assert gate.trigger(ActionKind.REFINE) is None
        assert gate.trigger(ActionKind.REFINE) is None
        assert gate.is_busy(ActionKind.REFINE)
        refine.release.set()
        await first

    asyncio.run(scenario())

    assert refine.runs == 1
    assert notifier.messages == [(Severity.WARNING, ERROR_MESSAGES[REFINE_BUSY])] * 2
    assert gate.is_busy(ActionKind.REFINE) is False


def test_kinds_are_independent() -> None:
    refine = BlockingPipeline()
    transcribe = BlockingPipeline()
    gate, notifier = _gate(refine, transcribe)

    async def scenario() -> None:
        t1 = gate.trigger(ActionKind.REFINE)
        t2 = gate.trigger(ActionKind.TRANSCRIBE)
        assert t1 is not None and t2 is not None
        await asyncio.sleep(0)
        refine.release.set()
        transcribe.release.set()
        await asyncio.gather(t1, t2)

    asyncio.run(scenario())

    assert refine.runs == 1
    assert transcribe.runs == 1
    assert notifier.messages == []


def test_flag_released_after_failure() -> None:
    refine = BlockingPipeline(fail=True)
    gate, _ = _gate(refine, BlockingPipeline())

    async def scenario() -> None:
        task = gate.trigger(ActionKind.REFINE)
        await asyncio.sleep(0)
        refine.release.set()
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)
        assert gate.is_busy(ActionKind.REFINE) is False
        refine.fail = False
        refine.release = None
        again = gate.trigger(ActionKind.REFINE)
        assert again is not None
        await asyncio.sleep(0)
        refine.release.set()
        await again

    asyncio.run(scenario())

    assert refine.runs == 2


def test_transcribe_busy_message() -> None:
    transcribe = BlockingPipeline()
    gate, notifier = _gate(BlockingPipeline(), transcribe)

    async def scenario() -> None:
        task = gate.trigger(ActionKind.TRANSCRIBE)
        await asyncio.sleep(0)
        gate.trigger(ActionKind.TRANSCRIBE)
        transcribe.release.set()
        await task

    asyncio.run(scenario())

    assert notifier.messages == [(Severity.WARNING, ERROR_MESSAGES[TRANSCRIBE_BUSY])]
