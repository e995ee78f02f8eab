from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any, List, Sequence, Union

from wave2midi.errors import ModelLoadError, TranscriptionError
from wave2midi.midi.model import NoteEvent
from wave2midi.transcription.base import Transcriber


logger = logging.getLogger(__name__)


def _load_model(checkpoint: Union[str, Path]) -> Any:
    from basic_pitch.inference import Model  # type: ignore

    return Model(checkpoint)


def _run_predict(audio_path: Path, model: Any, **kwargs: Any) -> Any:
    from basic_pitch.inference import predict  # type: ignore

    return predict(str(audio_path), model, **kwargs)


def note_events_to_notes(note_events: Sequence[Sequence[Any]]) -> List[NoteEvent]:
    """
    basic-pitch yields (start_sec, end_sec, pitch, amplitude, pitch_bends) tuples.
    Amplitude (0..1) becomes MIDI velocity.
    """
    notes: List[NoteEvent] = []
    for ev in note_events:
        start, end, pitch, amplitude = ev[0], ev[1], ev[2], ev[3]
        vel = int(round(float(amplitude) * 127))
        notes.append(
            NoteEvent(
                start_sec=float(start),
                end_sec=max(float(start) + 0.001, float(end)),
                midi_pitch=int(pitch),
                velocity=max(1, min(127, vel)),
            )
        )
    notes.sort(key=lambda n: (n.start_sec, n.midi_pitch))
    return notes


class BasicPitchTranscriber(Transcriber):
    """Spotify's basic-pitch (ICASSP 2022) polyphonic note transcription."""

    def __init__(
        self,
        onset_threshold: float = 0.5,
        frame_threshold: float = 0.3,
        minimum_note_length_ms: float = 127.70,
        midi_tempo: float = 120,
    ) -> None:
        self.onset_threshold = onset_threshold
        self.frame_threshold = frame_threshold
        self.minimum_note_length_ms = minimum_note_length_ms
        self.midi_tempo = midi_tempo

    def initialize(self, checkpoint: Union[str, Path]) -> Any:
        if checkpoint is None:
            raise ModelLoadError("Failed to load the transcription model (no checkpoint available)")
        try:
            model = _load_model(checkpoint)
        except Exception as e:
            logger.error("Model loading failed: %s", e, exc_info=True)
            raise ModelLoadError("Failed to load the transcription model") from e
        logger.info("Loaded transcription model from %s", checkpoint)
        return model

    def transcribe(self, engine: Any, audio_bytes: bytes, suffix: str = ".wav") -> List[NoteEvent]:
        if engine is None:
            raise TranscriptionError("Transcription model is not loaded")

        # basic-pitch reads audio from a path
        with tempfile.TemporaryDirectory(prefix="wave2midi_basic_pitch_") as tmp:
            audio_path = Path(tmp) / f"input{suffix}"
            audio_path.write_bytes(audio_bytes)
            try:
                _, _, note_events = _run_predict(
                    audio_path,
                    engine,
                    onset_threshold=self.onset_threshold,
                    frame_threshold=self.frame_threshold,
                    minimum_note_length=self.minimum_note_length_ms,
                    midi_tempo=self.midi_tempo,
                )
            except Exception as e:
                raise TranscriptionError(f"Failed to analyze audio ({type(e).__name__}: {e})") from e

        notes = note_events_to_notes(note_events)
        logger.info("Transcribed %d notes", len(notes))
        return notes
