"""
Tests for the PySide6 adapters (timers, save executor, key translation).

Skipped when PySide6 is not installed.
"""

import pytest

pytest.importorskip("PySide6")

from PySide6.QtCore import QCoreApplication, QEvent, QEventLoop, Qt, QTimer  # noqa: E402
from PySide6.QtGui import QKeyEvent  # noqa: E402

from album_app.views.key_adapter import dispatch_key_event, translate_key  # noqa: E402
from album_app.views.qt_scheduling import QtSaveExecutor, QtTimer  # noqa: E402
from album_core.services.interfaces import SaveResult  # noqa: E402

LOOP_GUARD_MS = 5000


@pytest.fixture(scope="module")
def qapp():
    return QCoreApplication.instance() or QCoreApplication([])


def _run_loop_until(loop: QEventLoop) -> None:
    QTimer.singleShot(LOOP_GUARD_MS, loop.quit)
    loop.exec()


class RecordingEditor:
    def __init__(self, handled: bool = True) -> None:
        self.calls = []
        self.handled = handled

    def handle_key(self, key, *, shift=False, ctrl=False):
        self.calls.append((key, shift, ctrl))
        return self.handled


class TestTranslateKey:
    """Tests for translate_key()/dispatch_key_event()."""

    def test_translate_key_when_shift_arrow_then_shift_flag(self):
        assert translate_key(Qt.Key_Left, Qt.ShiftModifier) == ("Left", True, False)

    def test_translate_key_when_ctrl_shift_z_then_both_flags(self):
        modifiers = Qt.ControlModifier | Qt.ShiftModifier

        assert translate_key(Qt.Key_Z, modifiers) == ("z", True, True)

    def test_translate_key_when_unbound_then_none(self):
        assert translate_key(Qt.Key_F7, Qt.NoModifier) is None

    def test_dispatch_key_event_when_handled_then_forwarded(self, qapp):
        editor = RecordingEditor()
        event = QKeyEvent(QEvent.KeyPress, Qt.Key_Delete, Qt.NoModifier)

        assert dispatch_key_event(event, editor) is True
        assert editor.calls == [("Delete", False, False)]

    def test_dispatch_key_event_when_unbound_then_editor_not_called(self, qapp):
        editor = RecordingEditor()
        event = QKeyEvent(QEvent.KeyPress, Qt.Key_F7, Qt.NoModifier)

        assert dispatch_key_event(event, editor) is False
        assert editor.calls == []


class TestQtTimer:
    """Tests for QtTimer."""

    def test_start_when_called_then_active_until_stopped(self, qapp):
        timer = QtTimer(lambda: None, single_shot=True)

        timer.start(10_000)
        assert timer.is_active() is True

        timer.stop()
        assert timer.is_active() is False

    def test_single_shot_when_elapsed_then_callback_once(self, qapp):
        loop = QEventLoop()
        fired = []

        def on_timeout():
            fired.append(1)
            loop.quit()

        timer = QtTimer(on_timeout, single_shot=True)
        timer.start(10)
        _run_loop_until(loop)

        assert fired == [1]
        assert timer.is_active() is False


class TestQtSaveExecutor:
    """Tests for QtSaveExecutor."""

    def test_submit_when_job_succeeds_then_callback_on_loop(self, qapp):
        executor = QtSaveExecutor()
        loop = QEventLoop()
        results = []

        def on_done(result):
            results.append(result)
            loop.quit()

        executor.submit(lambda: SaveResult(success=True), on_done)
        _run_loop_until(loop)

        assert results == [SaveResult(success=True)]
        assert executor.pending_count == 0

    def test_submit_when_job_raises_then_failed_result(self, qapp):
        executor = QtSaveExecutor()
        loop = QEventLoop()
        results = []

        def explode():
            raise OSError("offline")

        def on_done(result):
            results.append(result)
            loop.quit()

        executor.submit(explode, on_done)
        _run_loop_until(loop)

        assert results[0].success is False
        assert results[0].reason == "offline"
