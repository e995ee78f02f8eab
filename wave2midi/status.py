from __future__ import annotations

from typing import Dict, NamedTuple

from wave2midi.state import AppState


class ButtonStatus(NamedTuple):
    interactive: bool
    label: str
    busy: bool


_STATUS: Dict[AppState, ButtonStatus] = {
    AppState.INITIALIZING: ButtonStatus(False, "Initializing…", True),
    AppState.READY: ButtonStatus(True, "Convert to MIDI", False),
    AppState.PROCESSING: ButtonStatus(False, "Processing…", True),
    AppState.COMPLETED: ButtonStatus(True, "Convert Again", False),
}


def button_status(state: AppState) -> ButtonStatus:
    # KeyError for anything else: the caller asked for a state the trigger never shows
    return _STATUS[state]
