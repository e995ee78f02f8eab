import dataclasses

import pytest

from wave2midi.state import AppState, Session, midi_filename


@pytest.mark.parametrize(
    "name, expected",
    [
        ("song.mp3", "song.mid"),
        ("my.track.wav", "my.track.mid"),
        ("noext", "noext.mid"),
        (".hidden", ".mid"),
    ],
)
def test_midi_filename(name, expected):
    assert midi_filename(name) == expected


def test_session_defaults():
    session = Session()

    assert session.state is AppState.UNINITIALIZED
    assert session.engine is None
    assert session.artifact is None


def test_session_holds_only_pipeline_data():
    # busy indication comes from button_status, not from the session
    names = [f.name for f in dataclasses.fields(Session)]

    assert names == ["state", "engine", "backend", "submission", "artifact", "audio_preview"]
    assert not hasattr(Session(), "busy")
