"""Local crash-recovery storage: one JSON snapshot per album id."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from album_core.errors import PersistenceFailure, ValidationError
from album_core.models import BackupSnapshot
from album_infra.album_codec import decode_snapshot, encode_snapshot
from album_infra.json_files import checked_id, read_json, write_json_atomic


class JsonBackupStore:
    """Stores `<root>/<album_id>.backup.json`, overwritten on every write."""

    def __init__(self, root_dir: str | Path) -> None:
        self._root = Path(root_dir)

    def path_for(self, album_id: str) -> Path:
        return self._root / f"{checked_id(album_id)}.backup.json"

    def write_backup(self, album_id: str, snapshot: BackupSnapshot) -> None:
        write_json_atomic(self.path_for(album_id), encode_snapshot(snapshot))

    def read_backup(self, album_id: str) -> BackupSnapshot | None:
        """Return the stored snapshot, or None when there is none.

        Raises:
            PersistenceFailure: if the backup exists but cannot be decoded.
        """
        path = self.path_for(album_id)
        try:
            data = read_json(path)
        except FileNotFoundError:
            return None
        try:
            return decode_snapshot(data)
        except (ValidationError, KeyError, TypeError, ValueError) as ex:
            raise PersistenceFailure(f"Corrupt backup {path}: {ex}") from ex

    def clear_backup(self, album_id: str) -> None:
        path = self.path_for(album_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as ex:
            logger.warning("Could not remove backup {}: {}", path, ex)
