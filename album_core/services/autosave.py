"""Debounced background persistence with a periodic fallback.

The coordinator watches the store's revision stamp. Its visible status is
derived, not stored:

* `saving`  - a persist call is in flight;
* `unsaved` - the album revision is newer than the last stored revision;
* `saved`   - otherwise.

Only one persist runs at a time. A flush that comes due while one is in
flight is remembered and replayed once, against the latest album, when the
outstanding call completes.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
import time

from loguru import logger

from album_core.models import Album
from album_core.services.document_store import DocumentStore
from album_core.services.interfaces import (
    ORIGIN_LOAD,
    Change,
    SaveExecutor,
    SaveResult,
    TimerFactory,
)

DEFAULT_DEBOUNCE_MS = 5_000
DEFAULT_PERIODIC_MS = 120_000


class SaveStatus(str, Enum):
    SAVED = "saved"
    UNSAVED = "unsaved"
    SAVING = "saving"


class InlineExecutor:
    """Runs persist jobs synchronously on the calling thread."""

    def submit(
        self, job: Callable[[], SaveResult], on_done: Callable[[SaveResult], None]
    ) -> None:
        on_done(job())


class SaveScheduler:
    """Debounce timer plus periodic fallback timer.

    `arm()` (re)starts the debounce countdown, `cancel()` drops it, and
    `force_flush()` cancels it and flushes right away. The periodic timer
    runs independently until `stop()`.
    """

    def __init__(
        self,
        timer_factory: TimerFactory,
        on_flush: Callable[[], None],
        on_periodic: Callable[[], None],
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        periodic_ms: int = DEFAULT_PERIODIC_MS,
    ) -> None:
        self._on_flush = on_flush
        self._debounce_ms = int(debounce_ms)
        self._periodic_ms = int(periodic_ms)
        self._debounce = timer_factory(self._fire, True)
        self._periodic = timer_factory(on_periodic, False)

    @property
    def is_armed(self) -> bool:
        return self._debounce.is_active()

    def _fire(self) -> None:
        self._on_flush()

    def arm(self) -> None:
        self._debounce.stop()
        self._debounce.start(self._debounce_ms)

    def cancel(self) -> None:
        self._debounce.stop()

    def force_flush(self) -> None:
        self.cancel()
        self._on_flush()

    def start_periodic(self) -> None:
        if self._periodic_ms > 0:
            self._periodic.start(self._periodic_ms)

    def stop(self) -> None:
        self._debounce.stop()
        self._periodic.stop()


class AutosaveCoordinator:
    """Keeps the remote copy of the album converging on the local one.

    Args:
        store: Store to observe.
        save_album: Persistence call (e.g. `repository.save`).
        executor: Runs `save_album` off the event loop.
        timer_factory: Creates the debounce and periodic timers.
        debounce_ms: Quiet period after the last change before saving.
        periodic_ms: Interval of the forced flush while unsaved.
        clock: Wall clock used for `last_saved_at`.
    """

    def __init__(
        self,
        store: DocumentStore,
        save_album: Callable[[Album], SaveResult],
        executor: SaveExecutor,
        timer_factory: TimerFactory,
        *,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        periodic_ms: int = DEFAULT_PERIODIC_MS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._save_album = save_album
        self._executor = executor
        self._clock = clock
        self._scheduler = SaveScheduler(
            timer_factory, self._flush, self._on_periodic, debounce_ms, periodic_ms
        )
        self._saved_revision = store.updated_at
        self._in_flight = False
        self._pending = False
        self._disposed = False
        self._last_status = SaveStatus.SAVED
        self.last_saved_at: float | None = None
        self.last_error: str | None = None
        self.persist_count = 0
        self._status_listeners: list[Callable[[SaveStatus], None]] = []
        self._failure_listeners: list[Callable[[str], None]] = []
        self._unsubscribe = store.subscribe(self._on_change)
        self._scheduler.start_periodic()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def status(self) -> SaveStatus:
        if self._in_flight:
            return SaveStatus.SAVING
        if self._store.updated_at > self._saved_revision:
            return SaveStatus.UNSAVED
        return SaveStatus.SAVED

    @property
    def scheduler(self) -> SaveScheduler:
        return self._scheduler

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def add_status_listener(self, listener: Callable[[SaveStatus], None]) -> None:
        self._status_listeners.append(listener)

    def add_failure_listener(self, listener: Callable[[str], None]) -> None:
        """`listener(reason)` runs once per failed persist (user-visible alert)."""
        self._failure_listeners.append(listener)

    def _notify_status(self) -> None:
        status = self.status
        if status == self._last_status:
            return
        self._last_status = status
        for listener in list(self._status_listeners):
            listener(status)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def _on_change(self, change: Change) -> None:
        if self._disposed:
            return
        if change.origin == ORIGIN_LOAD:
            self._saved_revision = change.updated_at
            self._pending = False
            self._scheduler.cancel()
        elif change.updated_at > self._saved_revision:
            self._scheduler.arm()
        self._notify_status()

    def _on_periodic(self) -> None:
        if self._disposed:
            return
        if self.status == SaveStatus.UNSAVED:
            logger.info("Periodic autosave flush")
            self._scheduler.force_flush()

    def save_now(self) -> None:
        """Flush immediately, bypassing the debounce wait."""
        if not self._disposed:
            self._scheduler.force_flush()

    def _flush(self) -> None:
        if self._disposed or self._store.album is None:
            return
        if self._in_flight:
            self._pending = True
            return
        if self._store.updated_at <= self._saved_revision:
            return
        self._start_persist()

    # ------------------------------------------------------------------
    # Persist cycle
    # ------------------------------------------------------------------

    def _start_persist(self) -> None:
        album = self._store.album
        assert album is not None
        revision = album.updated_at
        self._in_flight = True
        self.persist_count += 1
        logger.info("Autosave: persisting album {} (revision {})", album.id, revision)
        self._notify_status()

        def job() -> SaveResult:
            try:
                return self._save_album(album)
            except Exception as ex:  # pylint: disable=broad-exception-caught
                logger.exception("Autosave persist raised: {}", ex)
                return SaveResult(success=False, reason=str(ex))

        self._executor.submit(job, lambda result: self._on_persist_done(revision, result))

    def _on_persist_done(self, revision: float, result: SaveResult) -> None:
        self._in_flight = False
        if self._disposed:
            return
        if result.success:
            self._saved_revision = max(self._saved_revision, revision)
            self.last_saved_at = self._clock()
            self.last_error = None
            logger.info("Autosave: album saved (revision {})", revision)
        else:
            self.last_error = result.reason or "unknown error"
            logger.warning("Autosave failed: {}", self.last_error)
            for listener in list(self._failure_listeners):
                listener(self.last_error)

        follow_up = self._pending
        self._pending = False
        if follow_up and result.success and self._store.updated_at > self._saved_revision:
            self._start_persist()
            return
        if follow_up and not result.success:
            # Edits queued behind the failed persist still need a save.
            self._scheduler.arm()
        self._notify_status()

    def dispose(self) -> None:
        """Cancel timers and stop observing; nothing persists afterwards."""
        if self._disposed:
            return
        self._disposed = True
        self._scheduler.stop()
        self._unsubscribe()
