import pytest

from wave2midi.state import AppState
from wave2midi.status import ButtonStatus, button_status


@pytest.mark.parametrize(
    "state, expected",
    [
        (AppState.INITIALIZING, (False, "Initializing…", True)),
        (AppState.READY, (True, "Convert to MIDI", False)),
        (AppState.PROCESSING, (False, "Processing…", True)),
        (AppState.COMPLETED, (True, "Convert Again", False)),
    ],
)
def test_button_status_table(state, expected):
    assert button_status(state) == ButtonStatus(*expected)


def test_button_status_is_stable():
    first = button_status(AppState.READY)
    for _ in range(3):
        assert button_status(AppState.READY) == first


def test_uninitialized_has_no_button_status():
    with pytest.raises(KeyError):
        button_status(AppState.UNINITIALIZED)
