"""Overlay window that shows pipeline notifications."""

from __future__ import annotations

from models import Severity

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QWidget, QVBoxLayout
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

SEVERITY_COLORS = {
    Severity.INFO: "#FFFFFF",
    Severity.SUCCESS: "#7CDB8A",
    Severity.WARNING: "#FFC857",
    Severity.ERROR: "#FF6B6B",
}

SEVERITY_PREFIX = {
    Severity.INFO: "",
    Severity.SUCCESS: "✅ ",
    Severity.WARNING: "⚠️ ",
    Severity.ERROR: "❌ ",
}

SEVERITY_DURATION_MS = {
    Severity.INFO: 3000,
    Severity.SUCCESS: 2000,
    Severity.WARNING: 3000,
    Severity.ERROR: 5000,
}


def label_style(severity: Severity) -> str:
    return (
        f"color: {SEVERITY_COLORS[severity]}; font-size: 16px; padding: 14px;"
        "background: rgba(0,0,0,200); border-radius: 12px;"
    )


class NotificationOverlay(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setAttribute(Qt.WA_ShowWithoutActivating, True)
        self.setFixedWidth(520)

        self._label = QLabel("")
        self._label.setWordWrap(True)
        self._label.setStyleSheet(label_style(Severity.INFO))

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def _bottom_right(self) -> None:
        """Position the window above the bottom-right corner of the primary screen."""
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + geom.width() - self.width() - 24
        y = geom.y() + geom.height() - self.height() - 24
        self.move(x, y)

    def show_message(self, severity: Severity, text: str) -> None:
        # Must not steal focus: the paste target is the window underneath.
        self._cancel_hide_timer()
        self._label.setStyleSheet(label_style(severity))
        self._label.setText(f"{SEVERITY_PREFIX[severity]}{text}")
        self._bottom_right()
        self.show()
        self.hide_with_delay(SEVERITY_DURATION_MS[severity])

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
