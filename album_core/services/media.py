"""Initial sizing of imported media."""

from __future__ import annotations

from pathlib import Path
from typing import Any

MAX_MEDIA_UNIT = 40.0
DEFAULT_MEDIA_SIZE = (40.0, 30.0)

VIDEO_SUFFIXES = frozenset({".mp4", ".mov", ".m4v", ".webm", ".avi", ".mkv"})


def fit_media_size(
    pixel_width: int, pixel_height: int, max_unit: float = MAX_MEDIA_UNIT
) -> tuple[float, float]:
    """Scale pixel dimensions so the longer side spans `max_unit` page percent.

    Degenerate sizes fall back to `DEFAULT_MEDIA_SIZE`.
    """
    if pixel_width <= 0 or pixel_height <= 0:
        return DEFAULT_MEDIA_SIZE
    aspect = pixel_width / pixel_height
    if pixel_width > pixel_height:
        return max_unit, max_unit / aspect
    return max_unit * aspect, max_unit


def media_type_for(path: str | Path) -> str:
    return "video" if Path(path).suffix.lower() in VIDEO_SUFFIXES else "image"


def media_partial(
    url: str,
    media_type: str = "image",
    pixel_size: tuple[int, int] | None = None,
    folder: str | None = None,
) -> dict[str, Any]:
    """Build the partial asset for a library import.

    `pixel_size` is the probed (width, height) of the file, when known.
    """
    if pixel_size:
        width, height = fit_media_size(*pixel_size)
    else:
        width, height = DEFAULT_MEDIA_SIZE
    partial: dict[str, Any] = {
        "type": media_type,
        "url": url,
        "x": 0.0,
        "y": 0.0,
        "width": width,
        "height": height,
        "lock_aspect_ratio": True,
    }
    if pixel_size:
        partial["original_dimensions"] = {"width": pixel_size[0], "height": pixel_size[1]}
        partial["aspect_ratio"] = pixel_size[0] / pixel_size[1] if pixel_size[1] else None
    if folder:
        partial["folder"] = folder
    return partial
