"""Qt adapters for the autosave timers and background persist jobs."""

from __future__ import annotations

from collections.abc import Callable
import itertools

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal, Slot
from loguru import logger

from album_core.services.interfaces import SaveResult


class QtTimer:
    """`Timer` backed by a `QTimer` living on the calling thread's event loop."""

    def __init__(self, callback: Callable[[], None], single_shot: bool) -> None:
        self._timer = QTimer()
        self._timer.setSingleShot(single_shot)
        self._timer.timeout.connect(callback)

    def start(self, interval_ms: int) -> None:
        self._timer.start(int(interval_ms))

    def stop(self) -> None:
        self._timer.stop()

    def is_active(self) -> bool:
        return self._timer.isActive()


def qt_timer_factory(callback: Callable[[], None], single_shot: bool) -> QtTimer:
    return QtTimer(callback, single_shot)


class _SaveTask(QRunnable):
    """QRunnable running one persist job.

    Emits `receiver.saveFinished(token, result)` upon completion; the signal
    is delivered on the receiver's thread.
    """

    def __init__(
        self, *, job: Callable[[], SaveResult], receiver: QtSaveExecutor, token: int
    ) -> None:
        super().__init__()
        self._job = job
        self._receiver = receiver
        self._token = token

    def run(self) -> None:  # type: ignore[override]
        try:
            result = self._job()
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.error("Save task failed: {}", ex)
            result = SaveResult(success=False, reason=str(ex))
        self._receiver.saveFinished.emit(self._token, result)


class QtSaveExecutor(QObject):
    """Dispatches persist jobs to a thread pool and reports back on the loop."""

    saveFinished = Signal(int, object)

    def __init__(self, pool: QThreadPool | None = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._pool = pool or QThreadPool.globalInstance()
        self._callbacks: dict[int, Callable[[SaveResult], None]] = {}
        self._tokens = itertools.count(1)
        self.saveFinished.connect(self._on_finished)

    @property
    def pending_count(self) -> int:
        return len(self._callbacks)

    def submit(
        self, job: Callable[[], SaveResult], on_done: Callable[[SaveResult], None]
    ) -> None:
        token = next(self._tokens)
        self._callbacks[token] = on_done
        self._pool.start(_SaveTask(job=job, receiver=self, token=token))

    @Slot(int, object)
    def _on_finished(self, token: int, result: SaveResult) -> None:
        callback = self._callbacks.pop(token, None)
        if callback is not None:
            callback(result)

    def wait_for_done(self, timeout_ms: int = -1) -> bool:
        """Block until every queued job has run (completions still need the loop)."""
        return self._pool.waitForDone(timeout_ms)
