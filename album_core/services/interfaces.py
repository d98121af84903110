"""Core service interfaces and shared data structures.

The document store publishes `Change` records; the collaborators it talks
to (persistence, local backup, timers, background execution) are described
here as protocols so the core never depends on a concrete storage or UI
toolkit.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from album_core.models import Album, BackupSnapshot

ORIGIN_EDIT = "edit"
ORIGIN_UNDO = "undo"
ORIGIN_REDO = "redo"
ORIGIN_LOAD = "load"
ORIGIN_RESTORE = "restore"


@dataclass
class Change:
    """A committed mutation of the album.

    Attributes:
        label: Human readable name of the operation.
        before: Album field values replaced by the mutation.
        after: Album field values installed by the mutation.
        updated_at: Revision stamp the mutation produced.
        origin: One of the ORIGIN_* constants.
        merge_key: Successive edits sharing a key may collapse into one command.
    """

    label: str
    before: dict[str, Any]
    after: dict[str, Any]
    updated_at: float
    origin: str = ORIGIN_EDIT
    merge_key: str | None = None


@dataclass
class SaveResult:
    """Outcome of a persist call.

    Attributes:
        success: Whether the album was stored.
        reason: Failure description when `success` is False.
    """

    success: bool
    reason: str | None = None


class AlbumRepository(Protocol):
    """Remote persistence collaborator."""

    def load(self, album_id: str) -> Album:
        """Return the stored album or raise `NotFoundError`."""
        raise NotImplementedError

    def save(self, album: Album) -> SaveResult:
        """Store `album`; failures are reported, not raised."""
        raise NotImplementedError


class BackupStore(Protocol):
    """Local durable crash-recovery storage keyed by album id."""

    def write_backup(self, album_id: str, snapshot: BackupSnapshot) -> None:
        raise NotImplementedError

    def read_backup(self, album_id: str) -> BackupSnapshot | None:
        raise NotImplementedError

    def clear_backup(self, album_id: str) -> None:
        raise NotImplementedError


class Timer(Protocol):
    """Restartable timer owned by the event loop."""

    def start(self, interval_ms: int) -> None:
        """(Re)start the timer; a running timer is restarted from zero."""
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    def is_active(self) -> bool:
        raise NotImplementedError


# factory(callback, single_shot) -> Timer
TimerFactory = Callable[[Callable[[], None], bool], Timer]


class SaveExecutor(Protocol):
    """Runs a persist job off the event loop and reports back on it."""

    def submit(
        self, job: Callable[[], SaveResult], on_done: Callable[[SaveResult], None]
    ) -> None:
        raise NotImplementedError
