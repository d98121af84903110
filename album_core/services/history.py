"""Undo/redo history built from document store changes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger

from album_core.services.document_store import DocumentStore
from album_core.services.interfaces import (
    ORIGIN_EDIT,
    ORIGIN_LOAD,
    ORIGIN_REDO,
    ORIGIN_RESTORE,
    ORIGIN_UNDO,
    Change,
)

DEFAULT_HISTORY_LIMIT = 50


@dataclass
class Command:
    """A reversible unit of editing.

    Attributes:
        label: Name shown in undo/redo menus.
        before: Album field values to install on undo.
        after: Album field values to install on redo.
        updated_at: Revision stamp the original mutation produced.
        merge_key: Key used to fold rapid successive edits into this command.
    """

    label: str
    before: dict[str, Any]
    after: dict[str, Any]
    updated_at: float
    merge_key: str | None = None


class CommandHistory:
    """Two-stack undo/redo manager observing a `DocumentStore`.

    Every edit published by the store becomes exactly one command (batched
    edits arrive as one change already). Edits carrying the same `merge_key`
    as the top command are folded into it until `seal()` is called, which is
    how a slider drag ends up as a single undo step.
    """

    def __init__(self, store: DocumentStore, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self._store = store
        self._limit = limit
        self._past: list[Command] = []
        self._future: list[Command] = []
        self._sealed = True
        self._unsubscribe = store.subscribe(self._on_change)

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    @property
    def undo_label(self) -> str | None:
        return self._past[-1].label if self._past else None

    @property
    def redo_label(self) -> str | None:
        return self._future[-1].label if self._future else None

    def _on_change(self, change: Change) -> None:
        if change.origin in (ORIGIN_LOAD, ORIGIN_RESTORE):
            self.clear()
            return
        if change.origin != ORIGIN_EDIT:
            return

        top = self._past[-1] if self._past else None
        if (
            top is not None
            and not self._sealed
            and change.merge_key is not None
            and change.merge_key == top.merge_key
        ):
            for key, value in change.before.items():
                top.before.setdefault(key, value)
            top.after.update(change.after)
            top.updated_at = change.updated_at
        else:
            self._past.append(
                Command(
                    label=change.label,
                    before=dict(change.before),
                    after=dict(change.after),
                    updated_at=change.updated_at,
                    merge_key=change.merge_key,
                )
            )
            if len(self._past) > self._limit:
                del self._past[: len(self._past) - self._limit]
        self._sealed = change.merge_key is None
        self._future.clear()

    def seal(self) -> None:
        """Stop folding further edits into the top command."""
        self._sealed = True

    def undo(self) -> bool:
        """Revert the most recent command. Returns False when there is none."""
        if not self._past:
            return False
        command = self._past.pop()
        self._store.apply_state(command.before, origin=ORIGIN_UNDO, label=command.label)
        self._future.append(command)
        self._sealed = True
        logger.debug("Undo: {}", command.label)
        return True

    def redo(self) -> bool:
        """Re-apply the most recently undone command."""
        if not self._future:
            return False
        command = self._future.pop()
        self._store.apply_state(command.after, origin=ORIGIN_REDO, label=command.label)
        self._past.append(command)
        self._sealed = True
        logger.debug("Redo: {}", command.label)
        return True

    def clear(self) -> None:
        self._past.clear()
        self._future.clear()
        self._sealed = True

    def dispose(self) -> None:
        self._unsubscribe()
