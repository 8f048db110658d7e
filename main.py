"""Application entrypoint."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from typing import Optional

from clipboard import ForegroundWindow, PynputKeyboard, PyperclipClipboard
from config import JsonConfigStore, default_config_dir
from dispatcher import ResultDispatcher
from history import HistoryLog
from hotkey import GlobalHotkeyAdapter
from logging_setup import setup_logging
from models import ActionKind, Severity
from overlay import NotificationOverlay
from pipeline import RefinePipeline, TranscribePipeline
from recorder import SoundDeviceRecorder, record_clip
from refiner import RefinementClient
from selection_capture import SelectionCapture
from transcriber import TranscriptionClient
from trigger_gate import TriggerGate

try:
    from PySide6.QtCore import QObject, QSize, QUrl, Signal
    from PySide6.QtGui import QAction, QBrush, QColor, QDesktopServices, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import QApplication, QMenu, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

_logger = logging.getLogger(__name__)


def _create_icon(color: str = "#4A90D9", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


class UIBridge(QObject):
    notify_signal = Signal(str, str)  # severity, message


class BridgeNotifier:
    """Notifier usable from any thread; delivery happens on the Qt thread."""

    def __init__(self, bridge: UIBridge) -> None:
        self._bridge = bridge

    def notify(self, severity: Severity, message: str) -> None:
        _logger.info("Notify [%s]: %s", severity.value, message)
        self._bridge.notify_signal.emit(severity.value, message)


class EventLoopThread:
    """Runs the asyncio loop that owns every pipeline run."""

    def __init__(self) -> None:
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name="pipeline-loop", daemon=True)

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def start(self) -> None:
        self._thread.start()

    def call_soon(self, callback, *args) -> None:  # noqa: ANN001
        self.loop.call_soon_threadsafe(callback, *args)

    def stop(self) -> None:
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=2.0)


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.log_path = setup_logging(default_config_dir())
        self.config_store = JsonConfigStore()
        self.config = self.config_store.load()

        self.overlay = NotificationOverlay()
        self.ui = UIBridge()
        self.ui.notify_signal.connect(self._on_notify_ui)
        self.notifier = BridgeNotifier(self.ui)

        clipboard = PyperclipClipboard()
        keyboard = PynputKeyboard()
        timings = self.config.timings
        dispatcher = ResultDispatcher(clipboard, keyboard, self.notifier, timings)
        refine = RefinePipeline(
            config=self.config,
            capture=SelectionCapture(clipboard, keyboard, ForegroundWindow(), timings),
            refiner=RefinementClient(self.config.llm),
            dispatcher=dispatcher,
            history=HistoryLog(),
            notifier=self.notifier,
        )
        recorder = SoundDeviceRecorder()
        transcribe = TranscribePipeline(
            config=self.config,
            record_audio=lambda: record_clip(recorder, self.config.transcriber.record_seconds),
            transcriber=TranscriptionClient(self.config.transcriber),
            dispatcher=dispatcher,
            notifier=self.notifier,
        )
        self.gate = TriggerGate(
            {ActionKind.REFINE: refine.run, ActionKind.TRANSCRIBE: transcribe.run},
            self.notifier,
        )
        self.loop_thread = EventLoopThread()
        self.hotkey = GlobalHotkeyAdapter(
            {
                ActionKind.REFINE: self.config.hotkey,
                ActionKind.TRANSCRIBE: self.config.transcriber_hotkey,
            }
        )

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon())
        self.tray.setToolTip("polishkey")
        self._menu: Optional[QMenu] = None
        self._setup_menu()
        self.tray.show()
        _logger.info("App initialized, hotkeys=%s", self.hotkey.combos())

    def _setup_menu(self) -> None:
        menu = QMenu()

        refine_action = QAction("Refine Now", menu)
        refine_action.triggered.connect(lambda: self.fire(ActionKind.REFINE))
        menu.addAction(refine_action)

        transcribe_action = QAction("Transcribe Now", menu)
        transcribe_action.triggered.connect(lambda: self.fire(ActionKind.TRANSCRIBE))
        menu.addAction(transcribe_action)

        menu.addSeparator()
        auto_paste = QAction("Auto Paste", menu, checkable=True)
        auto_paste.setChecked(self.config.auto_paste)
        auto_paste.toggled.connect(self._set_auto_paste)
        menu.addAction(auto_paste)

        transcriber_paste = QAction("Transcriber Auto Paste", menu, checkable=True)
        transcriber_paste.setChecked(self.config.transcriber.auto_paste)
        transcriber_paste.toggled.connect(self._set_transcriber_auto_paste)
        menu.addAction(transcriber_paste)

        logs_action = QAction("Open Logs...", menu)
        logs_action.triggered.connect(self._open_logs)
        menu.addAction(logs_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self._menu = menu
        self.tray.setContextMenu(menu)

    def _set_auto_paste(self, checked: bool) -> None:
        self.config.auto_paste = checked
        self.config_store.save(self.config)

    def _set_transcriber_auto_paste(self, checked: bool) -> None:
        self.config.transcriber.auto_paste = checked
        self.config_store.save(self.config)

    def _open_logs(self) -> None:
        if not QDesktopServices.openUrl(QUrl.fromLocalFile(str(self.log_path))):
            self.notifier.notify(Severity.ERROR, "Failed to open logs.")

    # ------------------------------------------------------------------
    # Triggers (hotkey thread or Qt thread → pipeline loop)
    # ------------------------------------------------------------------

    def fire(self, kind: ActionKind) -> None:
        _logger.info("Hotkey fired: %s", kind.value)
        self.loop_thread.call_soon(self.gate.trigger, kind)

    def _on_notify_ui(self, severity: str, message: str) -> None:
        self.overlay.show_message(Severity(severity), message)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self.loop_thread.start()
        try:
            self.hotkey.start(self.fire)
        except Exception as exc:
            _logger.error("Hotkey registration failed: %s", exc)
            self.notifier.notify(Severity.ERROR, f"Failed to register hotkey: {exc}")
        for problem in self.hotkey.problems:
            self.notifier.notify(Severity.WARNING, problem)
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.loop_thread.stop()
        self.tray.hide()
        self.app.quit()


def main() -> int:
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
