"""Global hotkey adapter based on pynput."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional

from config import MOD_ALT, MOD_CONTROL, MOD_SHIFT, MOD_WIN, HotkeyBinding
from models import ActionKind

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore

_logger = logging.getLogger(__name__)

_MODIFIER_NAMES = (
    (MOD_CONTROL, "<ctrl>"),
    (MOD_ALT, "<alt>"),
    (MOD_SHIFT, "<shift>"),
    (MOD_WIN, "<cmd>"),
)

VK_F1 = 0x70
VK_F24 = 0x87
_SPECIAL_KEYS = {
    0x08: "<backspace>",
    0x09: "<tab>",
    0x0D: "<enter>",
    0x1B: "<esc>",
    0x20: "<space>",
    0x2D: "<insert>",
    0x2E: "<delete>",
}


def key_name(vk: int) -> str:
    if 0x30 <= vk <= 0x39 or 0x41 <= vk <= 0x5A:
        return chr(vk).lower()
    if VK_F1 <= vk <= VK_F24:
        return f"<f{vk - VK_F1 + 1}>"
    if vk in _SPECIAL_KEYS:
        return _SPECIAL_KEYS[vk]
    raise ValueError(f"Unsupported virtual key code: {vk:#x}")


_DEFAULT_KEYS = {ActionKind.REFINE: ord("R"), ActionKind.TRANSCRIBE: ord("T")}


def default_binding(kind: ActionKind) -> HotkeyBinding:
    return HotkeyBinding(modifiers=MOD_CONTROL | MOD_ALT, key=_DEFAULT_KEYS[kind])


def to_pynput_combo(binding: HotkeyBinding) -> str:
    """Render a modifier mask + virtual key as a pynput hotkey string."""
    modifiers = binding.modifiers or (MOD_CONTROL | MOD_ALT)
    vk = binding.key or ord("R")
    parts = [name for mask, name in _MODIFIER_NAMES if modifiers & mask]
    parts.append(key_name(vk))
    return "+".join(parts)


class GlobalHotkeyAdapter:
    """Registers one global hotkey per action kind.

    Bindings are validated up front. A key code pynput cannot express falls
    back to the kind's default binding, and a combo already taken by an
    earlier kind is not registered. Both cases are collected in ``problems``
    instead of raising.
    """

    def __init__(self, bindings: Mapping[ActionKind, HotkeyBinding]) -> None:
        self._listener: Optional[object] = None
        self.problems: list[str] = []
        self._combos = self._resolve(bindings)

    def _resolve(self, bindings: Mapping[ActionKind, HotkeyBinding]) -> dict[str, ActionKind]:
        combos: dict[str, ActionKind] = {}
        for kind, binding in bindings.items():
            try:
                combo = to_pynput_combo(binding)
            except ValueError as exc:
                combo = to_pynput_combo(default_binding(kind))
                self.problems.append(f"Invalid {kind.value} hotkey ({exc}), using {combo} instead.")
            taken_by = combos.get(combo)
            if taken_by is not None:
                self.problems.append(
                    f"Hotkey {combo} is already used for {taken_by.value}, {kind.value} hotkey not registered."
                )
                continue
            combos[combo] = kind
        for problem in self.problems:
            _logger.warning(problem)
        return combos

    def combos(self) -> dict[str, ActionKind]:
        return dict(self._combos)

    def start(self, on_fired: Callable[[ActionKind], None]) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")

        def _make_handler(kind: ActionKind) -> Callable[[], None]:
            return lambda: on_fired(kind)

        handlers = {combo: _make_handler(kind) for combo, kind in self.combos().items()}
        self._listener = keyboard.GlobalHotKeys(handlers)
        self._listener.start()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None
