from __future__ import annotations


class Wave2MidiError(Exception):
    """Base class for failures the UI turns into a banner message."""

    category: str = ""

    def user_message(self) -> str:
        msg = str(self)
        if not self.category:
            return msg
        return f"{self.category}: {msg}"


class InitializationError(Wave2MidiError):
    """Backend or model load failure. The session stays inert afterwards."""

    category = "Initialization error"


class ModelLoadError(InitializationError):
    pass


class ValidationError(Wave2MidiError):
    """Bad user input. Recoverable, no state change."""


class SizeLimitError(ValidationError):
    category = "Processing error"


class TranscriptionError(Wave2MidiError):
    category = "Processing error"


class EncodingError(Wave2MidiError):
    category = "Processing error"


class InvalidTransitionError(RuntimeError):
    """A lifecycle operation was called from a state that does not allow it."""
