"""JSON file persistence for albums (one document per album)."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from album_core.errors import NotFoundError, PersistenceFailure, ValidationError
from album_core.models import Album
from album_core.services.interfaces import SaveResult
from album_infra.album_codec import decode_album, encode_album
from album_infra.json_files import checked_id, read_json, write_json_atomic


@dataclass
class AlbumSummary:
    id: str
    title: str
    page_count: int
    updated_at: float


class JsonAlbumRepository:
    """Load and save albums as `<root>/<album_id>.json`."""

    def __init__(self, root_dir: str | Path) -> None:
        self._root = Path(root_dir)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, album_id: str) -> Path:
        return self._root / f"{checked_id(album_id)}.json"

    def exists(self, album_id: str) -> bool:
        return self.path_for(album_id).exists()

    def load(self, album_id: str) -> Album:
        """Return the stored album.

        Raises:
            NotFoundError: if no document exists for `album_id`.
            PersistenceFailure: if the document cannot be read or decoded.
        """
        path = self.path_for(album_id)
        try:
            data = read_json(path)
        except FileNotFoundError as ex:
            logger.error("Album not found: {}", path)
            raise NotFoundError("album", album_id) from ex
        try:
            album = decode_album(data)
        except (ValidationError, KeyError, TypeError, ValueError) as ex:
            raise PersistenceFailure(f"Corrupt album document {path}: {ex}") from ex
        logger.info("Loaded album {} from {}", album.id, path)
        return album

    def save(self, album: Album) -> SaveResult:
        """Write `album`; I/O problems are reported in the result."""
        try:
            path = self.path_for(album.id)
            write_json_atomic(path, encode_album(album))
        except (PersistenceFailure, ValidationError) as ex:
            logger.error("Saving album {} failed: {}", album.id, ex)
            return SaveResult(success=False, reason=str(ex))
        logger.info("Saved album {} to {}", album.id, path)
        return SaveResult(success=True)

    def iter_summaries(self) -> Iterator[AlbumSummary]:
        """Yield a summary per readable album document, sorted by file name."""
        if not self._root.exists():
            return
        for path in sorted(self._root.glob("*.json")):
            try:
                album = decode_album(read_json(path))
            except (PersistenceFailure, ValidationError, KeyError, TypeError, ValueError) as ex:
                logger.warning("Skipping unreadable album {}: {}", path, ex)
                continue
            yield AlbumSummary(
                id=album.id,
                title=album.title,
                page_count=len(album.pages),
                updated_at=album.updated_at,
            )
