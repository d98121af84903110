"""ViewModel for the album editor: selection, viewport and keyboard commands."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

from loguru import logger

from album_app.session import EditorSession
from album_app.viewmodels.page_vm import PageVM
from album_core.errors import NotFoundError
from album_core.models import Album, Page
from album_core.services import spread_service
from album_core.services.interfaces import Change
from album_infra.media_probe import media_partial_for_file

ARROW_DELTAS: dict[str, tuple[float, float]] = {
    "Left": (-1.0, 0.0),
    "Right": (1.0, 0.0),
    "Up": (0.0, -1.0),
    "Down": (0.0, 1.0),
}


class EditorVM:
    """Editor view-model.

    Mediates between an `EditorSession` and the canvas/filmstrip views. All
    editing goes through the session's store; this class only tracks what
    the user is looking at and which assets are selected.
    """

    def __init__(self, session: EditorSession) -> None:
        self._session = session
        self._store = session.store
        self._history = session.history
        self.current_index = 0
        self.selected_page_id: str | None = None
        self.selected_asset_ids: list[str] = []
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0
        self.editing_text = False
        self._listeners: list[Callable[[], None]] = []
        self._unsubscribe = self._store.subscribe(self._on_change)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def album(self) -> Album | None:
        return self._store.album

    @property
    def pages(self) -> list[Page]:
        album = self._store.album
        return list(album.pages) if album else []

    @property
    def use_spread_view(self) -> bool:
        album = self._store.album
        return bool(album and album.config.use_spread_view)

    def add_listener(self, listener: Callable[[], None]) -> None:
        """`listener()` runs after any album or view state change."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _on_change(self, _change: Change) -> None:
        pages = self.pages
        self.current_index = min(self.current_index, max(len(pages) - 1, 0))
        page = self._store.album.find_page(self.selected_page_id) if self.album else None
        if page is None:
            self.selected_page_id = None
            self.selected_asset_ids = []
        else:
            self.selected_asset_ids = [
                a for a in self.selected_asset_ids if page.find_asset(a) is not None
            ]
        self._notify()

    # ------------------------------------------------------------------
    # Pages and spreads
    # ------------------------------------------------------------------

    def current_spread(self) -> list[PageVM]:
        spread = spread_service.get_spread(self.pages, self.current_index, self.use_spread_view)
        return [PageVM(page=p) for p in spread]

    def go_to_page(self, index: int) -> None:
        pages = self.pages
        if not pages:
            return
        self.current_index = min(max(int(index), 0), len(pages) - 1)
        self._notify()

    def next_spread(self) -> None:
        self.current_index = spread_service.next_index(
            self.pages, self.current_index, self.use_spread_view
        )
        self._notify()

    def previous_spread(self) -> None:
        self.current_index = spread_service.previous_index(
            self.pages, self.current_index, self.use_spread_view
        )
        self._notify()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_asset(self, page_id: str, asset_id: str, additive: bool = False) -> None:
        """Select an asset; `additive` extends a selection on the same page."""
        album = self._store.album
        page = album.find_page(page_id) if album else None
        if page is None:
            raise NotFoundError("page", page_id)
        if page.find_asset(asset_id) is None:
            raise NotFoundError("asset", asset_id)
        if additive and self.selected_page_id == page_id:
            if asset_id not in self.selected_asset_ids:
                self.selected_asset_ids.append(asset_id)
        else:
            self.selected_page_id = page_id
            self.selected_asset_ids = [asset_id]
        self._history.seal()
        self._notify()

    def clear_selection(self) -> None:
        self.selected_asset_ids = []
        self._history.seal()
        self._notify()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        return self._history.undo()

    def redo(self) -> bool:
        return self._history.redo()

    def delete_selected(self) -> int:
        """Delete every selected asset as one undoable step."""
        page_id = self.selected_page_id
        if page_id is None or not self.selected_asset_ids:
            return 0
        removed = 0
        with self._store.batch("Delete selection"):
            for asset_id in list(self.selected_asset_ids):
                if self._store.remove_asset(page_id, asset_id):
                    removed += 1
        self._history.seal()
        return removed

    def duplicate_selected(self) -> list[str]:
        """Duplicate the selection and select the copies."""
        page_id = self.selected_page_id
        if page_id is None or not self.selected_asset_ids:
            return []
        created: list[str] = []
        with self._store.batch("Duplicate selection"):
            for asset_id in list(self.selected_asset_ids):
                new_id = self._store.duplicate_asset(page_id, asset_id)
                if new_id:
                    created.append(new_id)
        if created:
            self.selected_asset_ids = created
            self._notify()
        self._history.seal()
        return created

    def nudge_selected(self, dx: float, dy: float) -> bool:
        """Move the selection; consecutive nudges form one undo step."""
        page_id = self.selected_page_id
        album = self._store.album
        page = album.find_page(page_id) if album and page_id else None
        if page is None or not self.selected_asset_ids:
            return False
        merge_key = "nudge:" + ",".join(sorted(self.selected_asset_ids))
        with self._store.batch("Move selection", merge_key=merge_key):
            for asset_id in self.selected_asset_ids:
                asset = page.find_asset(asset_id)
                if asset is None:
                    continue
                self._store.update_asset(
                    page.id, asset_id, {"x": asset.x + dx, "y": asset.y + dy}
                )
        return True

    def pan_canvas(self, dx: float, dy: float) -> None:
        self.pan_x += dx
        self.pan_y += dy
        self._notify()

    def set_zoom(self, zoom: float) -> None:
        settings = self._session.settings
        self.zoom = min(max(float(zoom), settings.zoom_min), settings.zoom_max)
        self._notify()

    def reset_view(self) -> None:
        self.zoom = 1.0
        self.pan_x = 0.0
        self.pan_y = 0.0
        self._notify()

    def save_now(self) -> None:
        self._session.autosave.save_now()

    def import_media(self, paths: Iterable[str | Path]) -> list[str]:
        """Add local files to the album's media library (one undo step)."""
        album = self._store.album
        if album is None:
            return []
        ids: list[str] = []
        with self._store.batch("Import media"):
            for path in paths:
                asset_id = self._store.add_to_library(
                    media_partial_for_file(path, folder=album.title)
                )
                if asset_id:
                    ids.append(asset_id)
        logger.info("Imported {} media file(s) into {}", len(ids), album.id)
        self._history.seal()
        return ids

    def place_from_library(self, asset_id: str) -> bool:
        """Place a library asset on the current page."""
        pages = self.pages
        if not pages:
            return False
        page = pages[self.current_index]
        placed = bool(self._store.move_from_library(asset_id, page.id))
        self._history.seal()
        return placed

    # ------------------------------------------------------------------
    # Keyboard
    # ------------------------------------------------------------------

    def handle_key(self, key: str, *, shift: bool = False, ctrl: bool = False) -> bool:
        """Run the command bound to `key`. Returns True when the key was handled."""
        if ctrl:
            return self._handle_command_key(key.lower(), shift)
        if self.editing_text:
            return False
        if key in ("Delete", "Backspace"):
            return self.delete_selected() > 0
        if key in ARROW_DELTAS:
            ux, uy = ARROW_DELTAS[key]
            if self.selected_asset_ids:
                settings = self._session.settings
                step = settings.nudge_step_large if shift else settings.nudge_step
                return self.nudge_selected(ux * step, uy * step)
            step = self._session.settings.pan_step
            self.pan_canvas(ux * step, uy * step)
            return True
        if key == "PageDown":
            self.next_spread()
            return True
        if key == "PageUp":
            self.previous_spread()
            return True
        if key == "Escape":
            self.clear_selection()
            return True
        return False

    def _handle_command_key(self, key: str, shift: bool) -> bool:
        if key == "z":
            return self.redo() if shift else self.undo()
        if key == "y":
            return self.redo()
        if key == "d":
            return bool(self.duplicate_selected())
        if key == "0":
            self.reset_view()
            return True
        if key == "s":
            self.save_now()
            return True
        return False

    def dispose(self) -> None:
        self._unsubscribe()
