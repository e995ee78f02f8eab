import numpy as np

from conftest import make_submission, run_inline
from wave2midi.state import AudioSubmission
from wave2midi.ui.waveform import PEAK_RESOLUTION, WaveformPreview, WaveformWidget


def test_render_sets_peaks(qtbot):
    widget = WaveformWidget()
    qtbot.addWidget(widget)

    WaveformPreview(widget, run_inline).render(make_submission())

    assert widget.peaks is not None
    assert widget.peaks.shape == (PEAK_RESOLUTION,)
    assert float(widget.peaks.max()) == 1.0


def test_render_failure_is_logged_not_raised(qtbot, caplog):
    widget = WaveformWidget()
    qtbot.addWidget(widget)
    bad = AudioSubmission(data=b"garbage", size=7, filename="broken.mp3")

    WaveformPreview(widget, run_inline).render(bad)

    assert widget.peaks is None
    assert "Waveform preview failed for broken.mp3" in caplog.text


def test_stale_render_is_dropped(qtbot):
    widget = WaveformWidget()
    qtbot.addWidget(widget)
    pending = []
    preview = WaveformPreview(widget, lambda task, done, failed: pending.append((task, done)))

    preview.render(make_submission("old.wav"))
    preview.render(make_submission("new.wav"))

    old_task, old_done = pending[0]
    old_done(old_task())
    assert widget.peaks is None

    new_task, new_done = pending[1]
    new_done(new_task())
    assert widget.peaks is not None


def test_widget_paints_with_and_without_peaks(qtbot):
    widget = WaveformWidget()
    qtbot.addWidget(widget)
    widget.resize(300, 100)
    widget.grab()

    widget.set_peaks(np.linspace(0, 1, 64, dtype=np.float32))
    widget.set_progress(0.5)
    widget.grab()

    widget.set_progress(3.0)
    assert widget._progress == 1.0
