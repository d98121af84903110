"""Media metadata probing with Pillow.

Best effort: every function returns None when the file cannot be read, and
callers fall back to default sizes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from PIL import Image, ImageOps
from loguru import logger

from album_core.services.media import media_partial, media_type_for

# EXIF DateTimeOriginal, DateTime
_EXIF_DATE_TAGS = (36867, 306)


@dataclass
class MediaInfo:
    width: int
    height: int
    captured_at: datetime | None = None


def _exif_datetime(im: Any) -> datetime | None:
    exif = im.getexif()
    if not exif:
        return None
    value = next((exif.get(tag) for tag in _EXIF_DATE_TAGS if exif.get(tag)), None)
    if not value:
        return None
    text = str(value)
    try:
        if len(text) >= 19 and text[4] == ":" and text[7] == ":":
            return datetime.strptime(text[:19], "%Y:%m:%d %H:%M:%S")
        return datetime.fromisoformat(text.replace("/", "-"))
    except ValueError:
        logger.debug("Unrecognized EXIF date: {}", text)
        return None


def probe_image(path: str | Path) -> MediaInfo | None:
    """Return display dimensions (EXIF orientation applied) and capture date."""
    try:
        with Image.open(path) as im:
            captured_at = _exif_datetime(im)
            try:
                im = ImageOps.exif_transpose(im)
            except (OSError, ValueError, AttributeError) as ex:
                logger.debug("EXIF transpose skipped for {}: {}", path, ex)
            return MediaInfo(width=im.width, height=im.height, captured_at=captured_at)
    except (OSError, ValueError) as ex:
        logger.debug("Pillow probe failed for {}: {}", path, ex)
        return None


def media_partial_for_file(path: str | Path, folder: str | None = None) -> dict[str, Any]:
    """Build a library asset partial for a local media file."""
    file_path = Path(path)
    media_type = media_type_for(file_path)
    info = probe_image(file_path) if media_type == "image" else None
    partial = media_partial(
        file_path.resolve().as_uri(),
        media_type,
        (info.width, info.height) if info else None,
        folder=folder,
    )
    if info and info.captured_at:
        partial["captured_at"] = info.captured_at.isoformat()
    return partial
