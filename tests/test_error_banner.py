from wave2midi.ui.error_banner import ErrorBanner, ErrorReporter


def test_report_shows_message(errors):
    errors.report("Processing error: boom")
    assert errors.message == "Processing error: boom"
    assert errors.is_visible
    assert errors.dismiss_pending


def test_second_report_replaces_first(errors):
    seen = []
    errors.shown.connect(seen.append)

    errors.report("first")
    errors.report("second")

    assert errors.message == "second"
    assert seen == ["first", "second"]


def test_report_restarts_timer(qtbot):
    errors = ErrorReporter(dismiss_ms=1000)
    errors.report("first")
    qtbot.wait(600)
    errors.report("second")
    qtbot.wait(600)
    # 1200ms after the first report, but only 600ms after the second
    assert errors.message == "second"
    qtbot.waitUntil(lambda: errors.message is None, timeout=3000)


def test_auto_dismiss(qtbot):
    errors = ErrorReporter(dismiss_ms=50)
    with qtbot.waitSignal(errors.cleared, timeout=2000):
        errors.report("gone soon")
    assert errors.message is None
    assert not errors.dismiss_pending


def test_clear_cancels_timer(errors):
    cleared = []
    errors.cleared.connect(lambda: cleared.append(True))

    errors.report("oops")
    errors.clear()

    assert errors.message is None
    assert not errors.dismiss_pending
    assert cleared == [True]


def test_clear_without_message_is_quiet(errors):
    cleared = []
    errors.cleared.connect(lambda: cleared.append(True))
    errors.clear()
    assert cleared == []


def test_banner_follows_reporter(qtbot, errors):
    banner = ErrorBanner(errors)
    qtbot.addWidget(banner)
    assert banner.isHidden()

    errors.report("Initialization error: no model")
    assert not banner.isHidden()
    assert banner.text() == "Initialization error: no model"

    errors.clear()
    assert banner.isHidden()
