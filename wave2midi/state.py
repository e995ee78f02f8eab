from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


MIDI_MIME_TYPE = "audio/midi"

_LAST_EXTENSION = re.compile(r"\.[^/.]+$")


class AppState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    PROCESSING = "processing"
    COMPLETED = "completed"


def midi_filename(original: str) -> str:
    """song.wav -> song.mid, track.tar.gz -> track.tar.mid (last extension only)."""
    return _LAST_EXTENSION.sub("", original) + ".mid"


@dataclass(frozen=True)
class AudioSubmission:
    data: bytes
    size: int
    filename: str
    source_path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: Path) -> "AudioSubmission":
        data = path.read_bytes()
        return cls(data=data, size=len(data), filename=path.name, source_path=path)

    @property
    def suffix(self) -> str:
        return Path(self.filename).suffix or ".wav"


@dataclass
class DownloadArtifact:
    payload: bytes
    filename: str
    path: Optional[Path] = None
    mime_type: str = MIDI_MIME_TYPE
    released: bool = False


@dataclass
class Session:
    state: AppState = AppState.UNINITIALIZED
    engine: Any = None
    backend: Any = None  # BackendChoice once configured
    submission: Optional[AudioSubmission] = None
    artifact: Optional[DownloadArtifact] = None
    audio_preview: Optional[Path] = None
