from __future__ import annotations

import io
from typing import Iterable

import pretty_midi

from wave2midi.errors import EncodingError
from wave2midi.midi.model import NoteEvent


class MidiEncoder:
    """
    Turns a note-event sequence into Standard MIDI File bytes.
    program: General MIDI program number (0 = Acoustic Grand Piano)
    """
    def __init__(self, program: int = 0, tempo_bpm: int = 120) -> None:
        self.program = int(program)
        self.tempo_bpm = max(1, int(tempo_bpm))

    def encode(self, note_events: Iterable[NoteEvent]) -> bytes:
        try:
            pm = pretty_midi.PrettyMIDI(initial_tempo=float(self.tempo_bpm))
            inst = pretty_midi.Instrument(program=self.program)

            for n in note_events:
                start = max(0.0, float(n.start_sec))
                end = max(start + 0.001, float(n.end_sec))
                pitch = int(max(0, min(127, n.midi_pitch)))
                vel = int(max(1, min(127, n.velocity)))

                inst.notes.append(pretty_midi.Note(velocity=vel, pitch=pitch, start=start, end=end))

            pm.instruments.append(inst)
            buf = io.BytesIO()
            pm.write(buf)
        except Exception as e:
            raise EncodingError("Failed to generate MIDI file") from e
        return buf.getvalue()
