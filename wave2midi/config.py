from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


MIB = 1024 * 1024


@dataclass(frozen=True)
class WaveformStyle:
    wave_color: str = "#4a6bff"
    progress_color: str = "#2c4bff"
    cursor_color: str = "#1a2f99"
    height: int = 100
    bar_width: int = 2
    bar_gap: int = 1
    bar_radius: int = 3
    cursor_width: int = 1


@dataclass(frozen=True)
class AppConfig:
    # None means "use the model bundled with basic-pitch"
    checkpoint: Optional[Path] = None
    preferred_backend: str = "onnx"
    max_upload_bytes: int = 5 * MIB
    error_dismiss_ms: int = 5000
    onset_threshold: float = 0.5
    frame_threshold: float = 0.3
    minimum_note_length_ms: float = 127.70
    midi_program: int = 0
    midi_tempo_bpm: int = 120
    waveform: WaveformStyle = field(default_factory=WaveformStyle)

    @property
    def max_upload_label(self) -> str:
        return f"{self.max_upload_bytes // MIB}MB"
