from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QObject, QUrl, Signal, Slot
from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer
from PySide6.QtWidgets import (
    QFileDialog, QFormLayout, QGroupBox, QHBoxLayout, QLabel, QMainWindow,
    QMessageBox, QPlainTextEdit, QProgressBar, QPushButton, QVBoxLayout, QWidget,
)

from wave2midi.config import AppConfig
from wave2midi.midi.writer import MidiEncoder
from wave2midi.pipeline.controller import PipelineController
from wave2midi.state import AppState, AudioSubmission, DownloadArtifact
from wave2midi.status import button_status
from wave2midi.transcription.basic_pitch_engine import BasicPitchTranscriber
from wave2midi.ui.error_banner import ErrorBanner, ErrorReporter
from wave2midi.ui.waveform import WaveformPreview, WaveformWidget
from wave2midi.utils.cache import SessionCache
from wave2midi.workers.task_worker import ThreadRunner


logger = logging.getLogger(__name__)

AUDIO_FILTER = "Audio (*.mp3 *.wav *.flac *.ogg *.m4a)"


class _LogBridge(QObject):
    record = Signal(str)


class QtLogHandler(logging.Handler):
    """Forwards formatted log records to the GUI thread through a Qt signal."""

    def __init__(self) -> None:
        super().__init__(level=logging.INFO)
        self.bridge = _LogBridge()
        self.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s", "%H:%M:%S"))

    def emit(self, rec: logging.LogRecord) -> None:
        self.bridge.record.emit(self.format(rec))


class MainWindow(QMainWindow):
    def __init__(self, config: Optional[AppConfig] = None, controller: Optional[PipelineController] = None) -> None:
        super().__init__()
        self.config = config or AppConfig()
        self.setWindowTitle("wave2midi")
        self.setMinimumSize(720, 560)

        self._selected: Optional[AudioSubmission] = None
        self._artifact: Optional[DownloadArtifact] = None

        # Players
        self.audio_out = QAudioOutput()
        self.audio_player = QMediaPlayer()
        self.audio_player.setAudioOutput(self.audio_out)

        central = QWidget()
        self.setCentralWidget(central)
        root = QVBoxLayout(central)

        # --- Error banner
        self.errors = controller.errors if controller else ErrorReporter(self.config.error_dismiss_ms, self)
        self.error_banner = ErrorBanner(self.errors)
        root.addWidget(self.error_banner)

        # --- Audio / file selection
        file_box = QGroupBox("Audio")
        file_form = QFormLayout(file_box)
        self.lbl_file = QLabel("No file selected")
        file_form.addRow("Selected", self.lbl_file)

        btn_row = QHBoxLayout()
        self.btn_open = QPushButton("Open…")
        self.btn_convert = QPushButton("Initializing…")
        self.btn_convert.setEnabled(False)
        self.spinner = QProgressBar()
        self.spinner.setRange(0, 0)
        self.spinner.setTextVisible(False)
        self.spinner.setMaximumWidth(120)
        btn_row.addWidget(self.btn_open)
        btn_row.addWidget(self.btn_convert)
        btn_row.addWidget(self.spinner)
        btn_row.addStretch(1)
        file_form.addRow(btn_row)

        self.lbl_status = QLabel("")
        file_form.addRow("Status", self.lbl_status)
        root.addWidget(file_box)

        # --- Waveform
        wave_box = QGroupBox("Waveform")
        wave_layout = QVBoxLayout(wave_box)
        self.waveform = WaveformWidget(self.config.waveform)
        wave_layout.addWidget(self.waveform)
        root.addWidget(wave_box)

        # --- Result (hidden until a conversion completes)
        self.result_box = QGroupBox("Result")
        result_layout = QVBoxLayout(self.result_box)

        arow = QHBoxLayout()
        self.btn_audio_play = QPushButton("Play Audio")
        self.btn_audio_pause = QPushButton("Pause")
        self.btn_audio_stop = QPushButton("Stop")
        arow.addWidget(self.btn_audio_play)
        arow.addWidget(self.btn_audio_pause)
        arow.addWidget(self.btn_audio_stop)
        arow.addStretch(1)
        result_layout.addLayout(arow)

        self.btn_download = QPushButton("Download MIDI")
        result_layout.addWidget(self.btn_download)
        self.result_box.setVisible(False)
        root.addWidget(self.result_box)

        # --- Log
        self.log = QPlainTextEdit()
        self.log.setReadOnly(True)
        self.log.setMaximumBlockCount(2000)
        root.addWidget(self.log, 1)

        self._log_handler = QtLogHandler()
        self._log_handler.bridge.record.connect(self._log)
        logging.getLogger("wave2midi").addHandler(self._log_handler)

        # --- Pipeline
        if controller is not None:
            self._cache = controller.cache
            self.controller = controller
        else:
            self._cache = SessionCache()
            self.controller = self._build_controller()

        self.controller.state_changed.connect(self._apply_state)
        self.controller.progress.connect(self.lbl_status.setText)
        self.controller.completed.connect(self._on_completed)
        self.controller.results_cleared.connect(self._on_results_cleared)

        self.btn_open.clicked.connect(self.open_audio)
        self.btn_convert.clicked.connect(self.convert)
        self.btn_download.clicked.connect(self.save_midi)
        self.btn_audio_play.clicked.connect(self.audio_player.play)
        self.btn_audio_pause.clicked.connect(self.audio_player.pause)
        self.btn_audio_stop.clicked.connect(self.audio_player.stop)
        self.audio_player.positionChanged.connect(self._on_audio_pos)

        self.controller.start()

    def _build_controller(self) -> PipelineController:
        runner = ThreadRunner()
        return PipelineController(
            transcriber=BasicPitchTranscriber(
                onset_threshold=self.config.onset_threshold,
                frame_threshold=self.config.frame_threshold,
                minimum_note_length_ms=self.config.minimum_note_length_ms,
                midi_tempo=self.config.midi_tempo_bpm,
            ),
            encoder=MidiEncoder(program=self.config.midi_program, tempo_bpm=self.config.midi_tempo_bpm),
            errors=self.errors,
            cache=self._cache,
            preview=WaveformPreview(self.waveform, runner),
            config=self.config,
            runner=runner,
            parent=self,
        )

    def _log(self, msg: str) -> None:
        self.log.appendPlainText(msg)

    # ---------------- State ----------------
    @Slot(object)
    def _apply_state(self, state: AppState) -> None:
        status = button_status(state)
        self.btn_convert.setEnabled(status.interactive)
        self.btn_convert.setText(status.label)
        self.spinner.setVisible(status.busy)
        self.btn_open.setEnabled(state is not AppState.PROCESSING)

    # ---------------- Commands ----------------
    def open_audio(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open audio", "", AUDIO_FILTER)
        if not path:
            return
        self.select_file(Path(path))

    def select_file(self, path: Path) -> None:
        try:
            submission = AudioSubmission.from_path(path)
        except OSError as e:
            self.errors.report(f"Could not read {path.name}: {e}")
            return

        self._selected = submission
        self.lbl_file.setText(str(path))
        self.controller.select(submission)
        logger.info("Selected: %s", path)

    def convert(self) -> None:
        self.controller.submit(self._selected)

    def save_midi(self) -> None:
        if self._artifact is None:
            QMessageBox.information(self, "Nothing to save", "Convert an audio file first.")
            return

        out_path, _ = QFileDialog.getSaveFileName(self, "Save MIDI", self._artifact.filename, "MIDI (*.mid)")
        if not out_path:
            return

        try:
            Path(out_path).write_bytes(self._artifact.payload)
        except OSError as e:
            self.errors.report(f"Save failed: {e}")
            return
        logger.info("Saved MIDI: %s", out_path)

    # ---------------- Results ----------------
    @Slot(object)
    def _on_completed(self, artifact: DownloadArtifact) -> None:
        self._artifact = artifact
        audio_path = self.controller.session.audio_preview
        if audio_path is not None:
            self.audio_player.setSource(QUrl.fromLocalFile(str(audio_path)))
        self.btn_download.setText(f"Download {artifact.filename}")
        self.result_box.setVisible(True)

    @Slot()
    def _on_results_cleared(self) -> None:
        # release the player's file handle before the cache deletes the copy
        self.audio_player.stop()
        self.audio_player.setSource(QUrl())
        self._artifact = None
        self.result_box.setVisible(False)

    def _on_audio_pos(self, pos_ms: int) -> None:
        dur = self.audio_player.duration()
        self.waveform.set_progress(pos_ms / dur if dur > 0 else None)

    # ---------------- Cleanup on close ----------------
    def closeEvent(self, event) -> None:
        self.audio_player.stop()
        self.controller.shutdown()
        logging.getLogger("wave2midi").removeHandler(self._log_handler)
        self._cache.cleanup()
        super().closeEvent(event)
