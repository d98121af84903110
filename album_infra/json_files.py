"""Small JSON file helpers shared by the repositories."""

from __future__ import annotations

import json
import os
from pathlib import Path
import re
import tempfile
from typing import Any

from album_core.errors import PersistenceFailure, ValidationError

_SAFE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def checked_id(album_id: str) -> str:
    """Return `album_id` if it is usable as a file name, else raise."""
    if not isinstance(album_id, str) or not _SAFE_ID.match(album_id) or ".." in album_id:
        raise ValidationError(f"Invalid album id: {album_id!r}")
    return album_id


def read_json(path: Path) -> Any:
    """Load JSON from `path`; missing files raise FileNotFoundError."""
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise
    except (OSError, ValueError) as ex:
        raise PersistenceFailure(f"Cannot read {path}: {ex}") from ex


def write_json_atomic(path: Path, data: Any) -> None:
    """Write `data` to a temp file beside `path`, then replace `path`.

    Readers never observe a partially written file.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except (OSError, TypeError, ValueError) as ex:
        raise PersistenceFailure(f"Cannot write {path}: {ex}") from ex
