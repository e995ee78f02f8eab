from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Type

from PySide6.QtCore import QObject, Signal

from wave2midi.config import AppConfig
from wave2midi.errors import (
    EncodingError,
    InitializationError,
    InvalidTransitionError,
    SizeLimitError,
    TranscriptionError,
    ValidationError,
    Wave2MidiError,
)
from wave2midi.midi.model import NoteEvent
from wave2midi.midi.writer import MidiEncoder
from wave2midi.state import AppState, AudioSubmission, Session
from wave2midi.transcription.backend import BackendChoice, configure_backend
from wave2midi.transcription.base import Transcriber
from wave2midi.ui.error_banner import ErrorReporter
from wave2midi.utils.cache import SessionCache
from wave2midi.workers.task_worker import Runner, ThreadRunner


logger = logging.getLogger(__name__)

ConfigureFn = Callable[..., BackendChoice]

_SUBMITTABLE = (AppState.READY, AppState.COMPLETED)


class PipelineController(QObject):
    """
    Owns the Session and the lifecycle:

        UNINITIALIZED -> INITIALIZING -> READY <-> PROCESSING -> COMPLETED

    Blocking work goes through `runner`; its callbacks come back on the GUI
    thread, so every state change happens on one thread. Failures are reported
    through the ErrorReporter and never propagate to the caller, except
    InvalidTransitionError, which means the caller broke the lifecycle.
    """

    state_changed = Signal(object)  # AppState
    progress = Signal(str)
    completed = Signal(object)  # DownloadArtifact
    results_cleared = Signal()

    def __init__(
        self,
        transcriber: Transcriber,
        encoder: MidiEncoder,
        errors: ErrorReporter,
        cache: SessionCache,
        preview: Any = None,
        config: Optional[AppConfig] = None,
        runner: Optional[Runner] = None,
        configure: ConfigureFn = configure_backend,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self.transcriber = transcriber
        self.encoder = encoder
        self.errors = errors
        self.cache = cache
        self.preview = preview
        self.config = config or AppConfig()
        self.runner: Runner = runner if runner is not None else ThreadRunner()
        self._configure = configure
        self.session = Session()

    # ---------------- Queries ----------------
    @property
    def state(self) -> AppState:
        return self.session.state

    @property
    def artifact(self):
        return self.session.artifact

    @property
    def active_error(self) -> Optional[str]:
        return self.errors.message

    def _set_state(self, state: AppState) -> None:
        if state is self.session.state:
            return
        logger.debug("State %s -> %s", self.session.state.value, state.value)
        self.session.state = state
        self.state_changed.emit(state)

    # ---------------- Initialization ----------------
    def start(self) -> None:
        if self.session.state is not AppState.UNINITIALIZED:
            raise InvalidTransitionError(f"start() called in state {self.session.state.value}")

        self._set_state(AppState.INITIALIZING)
        self.progress.emit("Loading model…")

        preferred = self.config.preferred_backend
        checkpoint = self.config.checkpoint

        def task():
            backend = self._configure(preferred, checkpoint)
            engine = self.transcriber.initialize(backend.model_path)
            return backend, engine

        self.runner(task, self._on_initialized, self._on_initialize_failed)

    def _on_initialized(self, result) -> None:
        backend, engine = result
        self.session.backend = backend
        self.session.engine = engine
        if backend.fell_back:
            self.progress.emit("Using fallback backend (reduced performance)")
        logger.info("Transcription engine ready (%s backend)", backend.name)
        self._set_state(AppState.READY)

    def _on_initialize_failed(self, error: BaseException) -> None:
        # no retry: the trigger stays disabled until the app is restarted
        self.errors.report(self._user_message(error, InitializationError))
        self.progress.emit("Transcription model unavailable. Restart the application to try again.")

    # ---------------- File selection ----------------
    def select(self, submission: Optional[AudioSubmission]) -> None:
        if self.session.state is AppState.PROCESSING:
            raise InvalidTransitionError("cannot change the selected file while processing")

        self._clear_results()
        self.errors.clear()
        self.session.submission = submission

    # ---------------- Conversion ----------------
    def submit(self, submission: Optional[AudioSubmission]) -> None:
        if submission is None:
            self.errors.report(ValidationError("Please select an audio file first").user_message())
            return

        if self.session.engine is None:
            self.errors.report(InitializationError("transcription model is not loaded").user_message())
            return

        if self.session.state not in _SUBMITTABLE:
            raise InvalidTransitionError(f"submit() called in state {self.session.state.value}")

        # a new run supersedes whatever the last one produced
        self._clear_results()
        self.session.submission = submission

        if submission.size > self.config.max_upload_bytes:
            self.session.submission = None
            self.errors.report(
                SizeLimitError(f"File too large (limit: {self.config.max_upload_label})").user_message()
            )
            self._set_state(AppState.READY)
            return

        self._set_state(AppState.PROCESSING)
        logger.info("Processing %s (%d bytes)", submission.filename, submission.size)

        self._start_preview(submission)

        self.progress.emit("Analyzing audio…")
        engine = self.session.engine
        transcriber = self.transcriber
        self.runner(
            lambda: transcriber.transcribe(engine, submission.data, submission.suffix),
            self._on_transcribed,
            lambda e: self._fail(e, TranscriptionError),
        )

    def _start_preview(self, submission: AudioSubmission) -> None:
        if self.preview is None:
            return
        # detached: no join point, nothing flows back into this pipeline
        try:
            self.preview.render(submission)
        except Exception as e:
            logger.warning("Waveform preview could not start: %s", e)

    def _on_transcribed(self, notes: List[NoteEvent]) -> None:
        self.progress.emit("Generating MIDI file…")
        encoder = self.encoder
        self.runner(
            lambda: encoder.encode(notes),
            self._on_encoded,
            lambda e: self._fail(e, EncodingError),
        )

    def _on_encoded(self, payload: bytes) -> None:
        submission = self.session.submission
        try:
            artifact = self.cache.store_artifact(payload, submission.filename)
        except OSError as e:
            self._fail(EncodingError(f"Failed to store MIDI file ({e})"), EncodingError)
            return
        try:
            audio_path = self.cache.store_audio(submission)
        except OSError as e:
            self.cache.release_artifact(artifact)
            self._fail(EncodingError(f"Failed to store audio preview ({e})"), EncodingError)
            return

        self.session.artifact = artifact
        self.session.audio_preview = audio_path
        self.session.submission = None

        logger.info("Created %s (%d bytes)", artifact.filename, len(artifact.payload))
        self.progress.emit("Done.")
        self._set_state(AppState.COMPLETED)
        self.completed.emit(artifact)

    def _fail(self, error: BaseException, fallback: Type[Wave2MidiError]) -> None:
        self.session.submission = None
        self.errors.report(self._user_message(error, fallback))
        self.progress.emit("")
        self._set_state(AppState.READY)

    # ---------------- Helpers ----------------
    def _user_message(self, error: BaseException, fallback: Type[Wave2MidiError]) -> str:
        if isinstance(error, Wave2MidiError):
            if error.__cause__ is not None:
                logger.debug("%s caused by", type(error).__name__, exc_info=error.__cause__)
            return error.user_message()
        logger.error("Unexpected %s failure", fallback.__name__, exc_info=error)
        return fallback(str(error) or type(error).__name__).user_message()

    def _clear_results(self) -> None:
        # listeners drop their handles (player source, save button) before the files go
        self.results_cleared.emit()
        self.cache.release_artifact(self.session.artifact)
        self.cache.release(self.session.audio_preview)
        self.session.artifact = None
        self.session.audio_preview = None

    def shutdown(self) -> None:
        self._clear_results()
        wait_all = getattr(self.runner, "wait_all", None)
        if wait_all is not None:
            wait_all()
