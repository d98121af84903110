"""Local crash-recovery: mirror every change to a backup, offer it on open."""

from __future__ import annotations

from collections.abc import Callable
import time

from loguru import logger

from album_core.errors import PersistenceFailure
from album_core.models import BackupSnapshot
from album_core.services.autosave import AutosaveCoordinator
from album_core.services.document_store import DocumentStore
from album_core.services.interfaces import ORIGIN_LOAD, BackupStore, Change


class BackupMirror:
    """Writes `{album, timestamp}` to the backup store after every change.

    Loads are not mirrored: a freshly loaded album is already stored remotely.
    A failing backup write is logged and otherwise ignored; the in-memory
    album is never affected by it.
    """

    def __init__(
        self,
        store: DocumentStore,
        backups: BackupStore,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._backups = backups
        self._clock = clock
        self.write_count = 0
        self._unsubscribe = store.subscribe(self._on_change)

    def _on_change(self, change: Change) -> None:
        album = self._store.album
        if change.origin == ORIGIN_LOAD or album is None:
            return
        try:
            snapshot = BackupSnapshot(album=album, timestamp=self._clock())
            self._backups.write_backup(album.id, snapshot)
            self.write_count += 1
        except PersistenceFailure as ex:
            logger.warning("Could not write local backup for {}: {}", album.id, ex)

    def dispose(self) -> None:
        self._unsubscribe()


class RecoveryService:
    """Offers, restores or discards the local backup of an album.

    Lifecycle of a backup entry:
        1. written by `BackupMirror` on every change;
        2. read by `check()` when the album is opened;
        3. removed by `dismiss()`, or silently by `check()` when it matches
           the loaded album; kept after `restore()` until the next change
           overwrites it.
    """

    def __init__(
        self,
        store: DocumentStore,
        backups: BackupStore,
        autosave: AutosaveCoordinator | None = None,
    ) -> None:
        self._store = store
        self._backups = backups
        self._autosave = autosave
        self._pending: BackupSnapshot | None = None

    @property
    def pending(self) -> BackupSnapshot | None:
        """Snapshot currently offered to the user, if any."""
        return self._pending

    def check(self) -> BackupSnapshot | None:
        """Look for a backup that differs from the loaded album."""
        album = self._store.album
        self._pending = None
        if album is None:
            return None
        try:
            snapshot = self._backups.read_backup(album.id)
        except PersistenceFailure as ex:
            logger.warning("Ignoring unreadable backup for {}: {}", album.id, ex)
            return None
        if snapshot is None:
            return None
        if snapshot.album == album:
            logger.debug("Backup for {} matches the stored album; clearing it", album.id)
            self._backups.clear_backup(album.id)
            return None
        logger.info("Found unsaved local changes for {} from {}", album.id, snapshot.timestamp)
        self._pending = snapshot
        return snapshot

    def restore(self) -> bool:
        """Install the offered snapshot and save it right away."""
        snapshot = self._pending
        if snapshot is None:
            return False
        self._pending = None
        self._store.restore(snapshot.album)
        if self._autosave is not None:
            self._autosave.save_now()
        return True

    def dismiss(self) -> None:
        """Discard the backup of the current album."""
        album = self._store.album
        self._pending = None
        if album is not None:
            self._backups.clear_backup(album.id)
            logger.info("Local backup for {} discarded", album.id)
