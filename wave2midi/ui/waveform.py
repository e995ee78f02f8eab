from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QPainter, QPen
from PySide6.QtWidgets import QWidget

from wave2midi.audio.io import decode_audio_bytes, waveform_peaks
from wave2midi.config import WaveformStyle
from wave2midi.state import AudioSubmission
from wave2midi.workers.task_worker import Runner


logger = logging.getLogger(__name__)

PEAK_RESOLUTION = 1024


class WaveformWidget(QWidget):
    def __init__(self, style: Optional[WaveformStyle] = None, parent=None):
        super().__init__(parent)
        self.wave_style = style or WaveformStyle()
        self._peaks: Optional[np.ndarray] = None
        self._progress: Optional[float] = None  # 0..1 playback position

        self.setMinimumHeight(self.wave_style.height)
        self.setMaximumHeight(self.wave_style.height)

    @property
    def peaks(self) -> Optional[np.ndarray]:
        return self._peaks

    def set_peaks(self, peaks: Optional[np.ndarray]) -> None:
        self._peaks = None if peaks is None else np.asarray(peaks, dtype=np.float32)
        self._progress = None
        self.update()

    def clear(self) -> None:
        self.set_peaks(None)

    def set_progress(self, fraction: Optional[float]) -> None:
        self._progress = None if fraction is None else max(0.0, min(1.0, float(fraction)))
        self.update()

    def paintEvent(self, event):
        p = QPainter(self)
        p.fillRect(self.rect(), self.palette().base())

        if self._peaks is None or self._peaks.size == 0:
            p.setPen(QPen(self.palette().text().color()))
            p.drawText(self.rect(), Qt.AlignCenter, "Select an audio file and convert it to see its waveform.")
            return

        s = self.wave_style
        step = s.bar_width + s.bar_gap
        n_bars = max(1, self.width() // step)
        idx = np.linspace(0, self._peaks.size - 1, n_bars).astype(int)
        bars = self._peaks[idx]

        mid = self.height() / 2.0
        half = mid - 2
        progress_x = None if self._progress is None else self._progress * self.width()

        p.setRenderHint(QPainter.Antialiasing, True)
        p.setPen(Qt.NoPen)
        wave_brush = QBrush(QColor(s.wave_color))
        played_brush = QBrush(QColor(s.progress_color))

        for i, amp in enumerate(bars):
            x = i * step
            h = max(1.0, float(amp) * half)
            played = progress_x is not None and x <= progress_x
            p.setBrush(played_brush if played else wave_brush)
            p.drawRoundedRect(QRectF(x, mid - h, s.bar_width, 2 * h), s.bar_radius, s.bar_radius)

        if progress_x is not None:
            pen = QPen(QColor(s.cursor_color))
            pen.setWidth(s.cursor_width)
            p.setPen(pen)
            p.drawLine(int(progress_x), 0, int(progress_x), self.height())


class WaveformPreview:
    """
    Best-effort preview: decoding happens on a worker and the result lands on the
    widget. Failures are logged and never reach the caller.
    """
    def __init__(self, widget: WaveformWidget, runner: Runner) -> None:
        self.widget = widget
        self.runner = runner
        self._generation = 0

    def render(self, submission: AudioSubmission) -> None:
        self._generation += 1
        generation = self._generation
        self.widget.clear()

        def task() -> np.ndarray:
            audio, _sr = decode_audio_bytes(submission.data)
            return waveform_peaks(audio, PEAK_RESOLUTION)

        def on_done(peaks: np.ndarray) -> None:
            # a newer submission already took over the widget
            if generation == self._generation:
                self.widget.set_peaks(peaks)

        def on_failed(error: BaseException) -> None:
            logger.warning("Waveform preview failed for %s: %s", submission.filename, error)

        self.runner(task, on_done, on_failed)
