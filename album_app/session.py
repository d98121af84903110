"""Editing session: wires the store to history, autosave and local backup."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
import time

from loguru import logger

from album_core.models import Album, BackupSnapshot, create_album, generate_id
from album_core.services.autosave import (
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_PERIODIC_MS,
    AutosaveCoordinator,
    InlineExecutor,
    SaveStatus,
)
from album_core.services.document_store import DocumentStore
from album_core.services.history import DEFAULT_HISTORY_LIMIT, CommandHistory
from album_core.services.interfaces import (
    AlbumRepository,
    BackupStore,
    SaveExecutor,
    TimerFactory,
)
from album_core.services.recovery import BackupMirror, RecoveryService
from album_infra.logging import get_data_directory
from album_infra.settings import JsonSettings


@dataclass
class EditorSettings:
    """Typed view of the editor section of `settings.json`."""

    albums_dir: Path
    backups_dir: Path
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    periodic_ms: int = DEFAULT_PERIODIC_MS
    history_limit: int = DEFAULT_HISTORY_LIMIT
    nudge_step: float = 1.0
    nudge_step_large: float = 10.0
    pan_step: float = 20.0
    zoom_min: float = 0.25
    zoom_max: float = 4.0

    @classmethod
    def from_settings(cls, settings: JsonSettings, base_dir: Path | None = None) -> EditorSettings:
        """Read settings, resolving relative storage paths against `base_dir`.

        Missing storage paths default to the per-user data directory.
        """
        data_dir = get_data_directory()
        return cls(
            albums_dir=settings.get_path("storage.albums_dir", data_dir / "albums", base_dir),
            backups_dir=settings.get_path("storage.backups_dir", data_dir / "backups", base_dir),
            debounce_ms=int(settings.get("autosave.debounce_ms", DEFAULT_DEBOUNCE_MS)),
            periodic_ms=int(settings.get("autosave.periodic_ms", DEFAULT_PERIODIC_MS)),
            history_limit=max(1, int(settings.get("history.limit", DEFAULT_HISTORY_LIMIT))),
            nudge_step=float(settings.get("editor.nudge_step", 1.0)),
            nudge_step_large=float(settings.get("editor.nudge_step_large", 10.0)),
            pan_step=float(settings.get("editor.pan_step", 20.0)),
            zoom_min=float(settings.get("editor.zoom_min", 0.25)),
            zoom_max=float(settings.get("editor.zoom_max", 4.0)),
        )


class EditorSession:
    """Owns one open album and every observer attached to its store.

    Args:
        repository: Remote persistence (load/save).
        backups: Local crash-recovery store.
        settings: Editor settings.
        timer_factory: Creates autosave timers (Qt timers in the app).
        executor: Runs persist jobs (thread pool in the app).
        clock: Wall clock shared by the store, autosave and backups.
    """

    def __init__(
        self,
        repository: AlbumRepository,
        backups: BackupStore,
        settings: EditorSettings,
        timer_factory: TimerFactory,
        executor: SaveExecutor | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.repository = repository
        self.backups = backups
        self.settings = settings
        self._clock = clock
        self.store = DocumentStore(clock=clock)
        self.history = CommandHistory(self.store, limit=settings.history_limit)
        self.autosave = AutosaveCoordinator(
            self.store,
            repository.save,
            executor or InlineExecutor(),
            timer_factory,
            debounce_ms=settings.debounce_ms,
            periodic_ms=settings.periodic_ms,
            clock=clock,
        )
        self.mirror = BackupMirror(self.store, backups, clock=clock)
        self.recovery = RecoveryService(self.store, backups, self.autosave)
        self._closed = False

    @property
    def album(self) -> Album | None:
        return self.store.album

    @property
    def save_status(self) -> SaveStatus:
        return self.autosave.status

    def open(self, album_id: str) -> BackupSnapshot | None:
        """Load `album_id` and return a recovery snapshot worth offering, if any.

        Raises:
            NotFoundError: if the repository has no such album.
        """
        album = self.repository.load(album_id)
        self.store.load(album)
        return self.recovery.check()

    def create(self, title: str, album_id: str | None = None) -> Album:
        """Start a new album and store it immediately."""
        now = self._clock()
        album = create_album(album_id or generate_id(), title, created_at=now)
        self.store.load(album)
        result = self.repository.save(album)
        if not result.success:
            logger.warning("Initial save of album {} failed: {}", album.id, result.reason)
        return album

    def close(self) -> None:
        """Flush unsaved changes and detach every observer."""
        if self._closed:
            return
        if self.autosave.status == SaveStatus.UNSAVED:
            self.autosave.save_now()
        self._closed = True
        self.autosave.dispose()
        self.mirror.dispose()
        self.history.dispose()
        logger.info("Editing session closed")
