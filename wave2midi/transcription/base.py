from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Union

from wave2midi.midi.model import NoteEvent


class Transcriber(ABC):
    @abstractmethod
    def initialize(self, checkpoint: Union[str, Path]) -> Any:
        """Load the model once; raises ModelLoadError."""
        raise NotImplementedError

    @abstractmethod
    def transcribe(self, engine: Any, audio_bytes: bytes, suffix: str = ".wav") -> List[NoteEvent]:
        """Raises TranscriptionError."""
        raise NotImplementedError
