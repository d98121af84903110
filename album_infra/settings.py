"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from loguru import logger


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class JsonSettings:
    """JSON settings reader with dotted-key access.

    Values from the file are layered over `defaults` section by section, so a
    file that only sets `autosave.debounce_ms` keeps every other default.
    """

    def __init__(self, settings_path: str | Path, defaults: dict[str, Any] | None = None) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"settings.json must hold an object: {self._path}")
        self._data = _merge(defaults or {}, data)
        logger.debug("Settings loaded from {}", self._path)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JsonSettings:
        """Build settings from an in-memory mapping (no file involved)."""
        settings = cls.__new__(cls)
        settings._path = Path("<memory>")
        settings._data = copy.deepcopy(data)
        return settings

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        node: Any = self._data
        for part in key.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def get_path(self, key: str, default: Path, base_dir: Path | None = None) -> Path:
        """Return a filesystem path setting.

        Blank values yield `default`; relative paths are resolved against
        `base_dir` when given. `~` is expanded.
        """
        raw = self.get(key)
        if not raw:
            return default
        path = Path(str(raw)).expanduser()
        if not path.is_absolute() and base_dir is not None:
            path = base_dir / path
        return path
