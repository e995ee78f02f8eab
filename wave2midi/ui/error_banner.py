from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal, Slot
from PySide6.QtWidgets import QLabel, QWidget


logger = logging.getLogger(__name__)

DEFAULT_DISMISS_MS = 5000


class ErrorReporter(QObject):
    """
    One visible error message at a time. Each report() replaces the current
    message and restarts the dismiss timer; there is no queue.
    """

    shown = Signal(str)
    cleared = Signal()

    def __init__(self, dismiss_ms: int = DEFAULT_DISMISS_MS, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.dismiss_ms = int(dismiss_ms)
        self._message: Optional[str] = None

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self.clear)

    @property
    def message(self) -> Optional[str]:
        return self._message

    @property
    def is_visible(self) -> bool:
        return self._message is not None

    @property
    def dismiss_pending(self) -> bool:
        return self._timer.isActive()

    def report(self, message: str) -> None:
        logger.warning("%s", message)
        self._message = message
        self.shown.emit(message)
        self._timer.start(self.dismiss_ms)

    @Slot()
    def clear(self) -> None:
        self._timer.stop()
        if self._message is None:
            return
        self._message = None
        self.cleared.emit()


class ErrorBanner(QLabel):
    """Hidden by default; mirrors an ErrorReporter."""

    def __init__(self, reporter: ErrorReporter, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWordWrap(True)
        self.setStyleSheet(
            "QLabel { background: #f8d7da; color: #842029; border: 1px solid #f5c2c7;"
            " border-radius: 4px; padding: 8px; }"
        )
        self.setVisible(False)

        reporter.shown.connect(self._on_shown)
        reporter.cleared.connect(self._on_cleared)

    @Slot(str)
    def _on_shown(self, message: str) -> None:
        self.setText(message)
        self.setVisible(True)

    @Slot()
    def _on_cleared(self) -> None:
        self.setText("")
        self.setVisible(False)
