from __future__ import annotations

import io
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from pathlib import Path
from typing import Any, List, Optional

import numpy as np
import pytest
import soundfile as sf

from wave2midi.config import AppConfig
from wave2midi.errors import ModelLoadError
from wave2midi.midi.model import NoteEvent
from wave2midi.midi.writer import MidiEncoder
from wave2midi.pipeline.controller import PipelineController
from wave2midi.state import AudioSubmission
from wave2midi.transcription.backend import BackendChoice
from wave2midi.transcription.base import Transcriber
from wave2midi.ui.error_banner import ErrorReporter
from wave2midi.utils.cache import SessionCache


def run_inline(task, on_done, on_failed) -> None:
    try:
        result = task()
    except Exception as e:
        on_failed(e)
        return
    on_done(result)


class DeferredRunner:
    """Holds tasks until the test steps them, to observe in-flight states."""

    def __init__(self) -> None:
        self.pending: List[Any] = []

    def __call__(self, task, on_done, on_failed) -> None:
        self.pending.append((task, on_done, on_failed))

    def step(self) -> None:
        run_inline(*self.pending.pop(0))


class FakeTranscriber(Transcriber):
    def __init__(self, notes: Optional[List[NoteEvent]] = None, fail_init: bool = False, fail: Optional[Exception] = None):
        self.notes = notes if notes is not None else [NoteEvent(0.0, 0.5, 60, 100), NoteEvent(0.5, 1.0, 64, 90)]
        self.fail_init = fail_init
        self.fail = fail
        self.initialized_with: List[Any] = []
        self.calls: List[bytes] = []

    def initialize(self, checkpoint):
        self.initialized_with.append(checkpoint)
        if self.fail_init:
            raise ModelLoadError("Failed to load the transcription model")
        return object()

    def transcribe(self, engine, audio_bytes, suffix=".wav"):
        self.calls.append(audio_bytes)
        if self.fail is not None:
            raise self.fail
        return list(self.notes)


class FakePreview:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.rendered: List[AudioSubmission] = []

    def render(self, submission: AudioSubmission) -> None:
        self.rendered.append(submission)
        if self.fail:
            raise RuntimeError("waveform decoder crashed")


def fake_configure(preferred, checkpoint=None) -> BackendChoice:
    return BackendChoice(preferred, Path("model.onnx"), fell_back=False)


def wav_bytes(seconds: float = 0.25, sr: int = 16000) -> bytes:
    t = np.arange(int(seconds * sr)) / sr
    audio = (0.5 * np.sin(2 * np.pi * 440.0 * t)).astype(np.float32)
    buf = io.BytesIO()
    sf.write(buf, audio, sr, format="WAV")
    return buf.getvalue()


def make_submission(filename: str = "song.wav", size: Optional[int] = None) -> AudioSubmission:
    data = wav_bytes()
    return AudioSubmission(data=data, size=len(data) if size is None else size, filename=filename)


@pytest.fixture
def errors(qapp) -> ErrorReporter:
    return ErrorReporter(dismiss_ms=5000)


@pytest.fixture
def cache(tmp_path: Path):
    c = SessionCache(root=tmp_path)
    yield c
    c.cleanup()


@pytest.fixture
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def preview() -> FakePreview:
    return FakePreview()


@pytest.fixture
def make_controller(errors, cache, transcriber, preview):
    def _make(runner=run_inline, **overrides) -> PipelineController:
        kwargs = dict(
            transcriber=transcriber,
            encoder=MidiEncoder(),
            errors=errors,
            cache=cache,
            preview=preview,
            config=AppConfig(),
            runner=runner,
            configure=fake_configure,
        )
        kwargs.update(overrides)
        return PipelineController(**kwargs)
    return _make


@pytest.fixture
def ready_controller(make_controller) -> PipelineController:
    controller = make_controller()
    controller.start()
    return controller
