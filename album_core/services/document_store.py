"""Authoritative in-memory album and its mutation operations.

Every operation follows the same steps: validate, build replacement objects,
bump `updated_at`, publish a `Change` carrying the replaced album fields.
Listeners (command history, autosave, local backup) subscribe to those
changes; the store itself knows nothing about them.

Failure semantics:
    * unknown page/asset ids raise `NotFoundError`;
    * mutations of a locked album, page or asset are silently ignored and the
      operation returns None/False;
    * malformed input raises `ValidationError` before anything changes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import replace
import functools
import time
from typing import Any

from loguru import logger

from album_core.errors import AlbumError, LockedError, NotFoundError, ValidationError
from album_core.models import (
    COVER_BACK_TEMPLATE,
    COVER_FRONT_TEMPLATE,
    FREEFORM_TEMPLATE,
    MEDIA_TYPES,
    Album,
    Asset,
    AssetBase,
    FreeformAsset,
    Geotag,
    Page,
    apply_asset_patch,
    asset_from_partial,
    generate_id,
    new_page,
    normalize_hashtags,
    renumber_pages,
    to_freeform,
    to_slotted,
)
from album_core.services.interfaces import (
    ORIGIN_EDIT,
    ORIGIN_LOAD,
    ORIGIN_RESTORE,
    Change,
)
from album_core.services.layout_sync import absolute_geometry, parse_layout_config
from album_core.services.spread_service import get_spread, spread_start

ChangeListener = Callable[[Change], None]

DUPLICATE_OFFSET = 20.0
Z_DIRECTIONS = ("front", "back", "forward", "backward")

# Visual properties copied by `sync_styles`; they live in the asset payload.
STYLE_KEYS: tuple[str, ...] = (
    "border_radius",
    "border_color",
    "border_width",
    "filter",
    "filter_intensity",
    "font_family",
    "font_size",
    "font_weight",
    "color",
    "opacity",
)

_PAGE_PATCH_KEYS = frozenset(
    {"layout_template", "background_color", "background_opacity", "background_image", "is_locked"}
)
_METADATA_KEYS = frozenset(
    {"title", "description", "category", "hashtags", "geotag", "cover_url", "is_published"}
)


def _ignore_locked(func):
    """Turn a `LockedError` raised by an operation into a silent no-op."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except LockedError as ex:
            logger.debug("{} ignored: {}", func.__name__, ex)
            return None

    return wrapper


def _is_unlock_patch(patch: Mapping[str, Any]) -> bool:
    return dict(patch) == {"is_locked": False}


def _dense_z(assets: Sequence[Asset]) -> list[Asset]:
    """Reassign z-indices 1..n following the current stacking order."""
    order = sorted(range(len(assets)), key=lambda i: (assets[i].z_index, i))
    rank = {idx: pos + 1 for pos, idx in enumerate(order)}
    return [
        a if a.z_index == rank[i] else replace(a, z_index=rank[i]) for i, a in enumerate(assets)
    ]


class _Batch:
    def __init__(self, label: str, merge_key: str | None) -> None:
        self.label = label
        self.merge_key = merge_key
        self.before: dict[str, Any] = {}


class DocumentStore:
    """Holds the album being edited and publishes every committed change."""

    def __init__(self, album: Album | None = None, clock: Callable[[], float] = time.time) -> None:
        self._album = album
        self._clock = clock
        self._listeners: list[ChangeListener] = []
        self._batch: _Batch | None = None

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def album(self) -> Album | None:
        """The current album. Treat it as read-only."""
        return self._album

    @property
    def updated_at(self) -> float:
        return self._album.updated_at if self._album else 0.0

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register `listener`; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, change: Change) -> None:
        for listener in list(self._listeners):
            listener(change)

    # ------------------------------------------------------------------
    # Commit machinery
    # ------------------------------------------------------------------

    def _require_album(self) -> Album:
        if self._album is None:
            raise AlbumError("No album loaded")
        return self._album

    def _next_stamp(self) -> float:
        # Wall-clock based, but strictly increasing even if the clock stalls.
        return max(float(self._clock()), self.updated_at + 0.001)

    def _commit(self, label: str, values: Mapping[str, Any], merge_key: str | None = None) -> bool:
        album = self._require_album()
        before = {k: getattr(album, k) for k in values}
        if before == dict(values):
            return False
        self._album = replace(album, **values, updated_at=self._next_stamp())
        if self._batch is not None:
            for key, value in before.items():
                self._batch.before.setdefault(key, value)
            return True
        self._publish(
            Change(
                label=label,
                before=before,
                after=dict(values),
                updated_at=self._album.updated_at,
                origin=ORIGIN_EDIT,
                merge_key=merge_key,
            )
        )
        return True

    @contextmanager
    def batch(self, label: str, merge_key: str | None = None) -> Iterator[None]:
        """Coalesce every change made inside the block into one change.

        If the block raises, the album is put back to its state before the
        block and nothing is published. `merge_key` is carried by the
        published change.
        """
        if self._batch is not None:
            yield
            return
        self._batch = _Batch(label, merge_key)
        try:
            yield
        except BaseException:
            pending, self._batch = self._batch, None
            if pending.before and self._album is not None:
                self._album = replace(self._album, **pending.before)
            raise
        pending, self._batch = self._batch, None
        if not pending.before or self._album is None:
            return
        after = {k: getattr(self._album, k) for k in pending.before}
        if after != pending.before:
            self._publish(
                Change(
                    label=pending.label,
                    before=pending.before,
                    after=after,
                    updated_at=self._album.updated_at,
                    merge_key=pending.merge_key,
                )
            )

    def apply_state(self, values: Mapping[str, Any], *, origin: str, label: str) -> None:
        """Install recorded field values (undo/redo); bypasses locks."""
        album = self._require_album()
        before = {k: getattr(album, k) for k in values}
        self._album = replace(album, **values, updated_at=self._next_stamp())
        self._publish(
            Change(
                label=label,
                before=before,
                after=dict(values),
                updated_at=self._album.updated_at,
                origin=origin,
            )
        )

    def load(self, album: Album) -> None:
        """Replace the album wholesale with a freshly loaded one."""
        self._album = replace(album, pages=renumber_pages(album.pages))
        logger.info("Album loaded: {} ({} pages)", album.id, len(album.pages))
        self._publish(
            Change(
                label="Load album",
                before={},
                after={},
                updated_at=self._album.updated_at,
                origin=ORIGIN_LOAD,
            )
        )

    def restore(self, album: Album) -> None:
        """Replace the album wholesale with a recovered copy.

        Unlike `load`, the revision stamp advances so the restored state is
        seen as unsaved.
        """
        stamp = self._next_stamp()
        self._album = replace(album, pages=renumber_pages(album.pages), updated_at=stamp)
        logger.info("Album restored from backup: {}", album.id)
        self._publish(
            Change(
                label="Restore album",
                before={},
                after={},
                updated_at=stamp,
                origin=ORIGIN_RESTORE,
            )
        )

    # ------------------------------------------------------------------
    # Lookup and guards
    # ------------------------------------------------------------------

    def _check_album_unlocked(self) -> Album:
        album = self._require_album()
        if album.config.is_locked:
            raise LockedError(f"album {album.id} is locked")
        return album

    def _require_page(self, page_id: str) -> tuple[int, Page]:
        album = self._require_album()
        index = album.page_index(page_id)
        if index < 0:
            logger.error("Page not found: {}", page_id)
            raise NotFoundError("page", page_id)
        return index, album.pages[index]

    @staticmethod
    def _require_asset(page: Page, asset_id: str) -> tuple[int, Asset]:
        for i, asset in enumerate(page.assets):
            if asset.id == asset_id:
                return i, asset
        logger.error("Asset not found: {} on page {}", asset_id, page.id)
        raise NotFoundError("asset", asset_id)

    @staticmethod
    def _check_page_unlocked(page: Page) -> None:
        if page.is_locked:
            raise LockedError(f"page {page.id} is locked")

    @staticmethod
    def _check_asset_unlocked(asset: Asset) -> None:
        if asset.is_locked:
            raise LockedError(f"asset {asset.id} is locked")

    def _editable_page(self, page_id: str) -> tuple[int, Page]:
        self._check_album_unlocked()
        index, page = self._require_page(page_id)
        self._check_page_unlocked(page)
        return index, page

    def _with_page(self, index: int, page: Page) -> list[Page]:
        pages = list(self._require_album().pages)
        pages[index] = page
        return pages

    # ------------------------------------------------------------------
    # Asset operations
    # ------------------------------------------------------------------

    @_ignore_locked
    def add_asset(self, page_id: str, partial: Mapping[str, Any] | AssetBase) -> str | None:
        """Add an asset on top of the page's stack; returns its id."""
        index, page = self._editable_page(page_id)
        asset = asset_from_partial(partial, asset_id=generate_id(), z_index=page.max_z() + 1)
        self._commit(
            f"Add {asset.type}",
            {"pages": self._with_page(index, replace(page, assets=[*page.assets, asset]))},
        )
        logger.info("Asset added: {} ({}) on page {}", asset.id, asset.type, page.page_number)
        return asset.id

    def update_asset(
        self,
        page_id: str,
        asset_id: str,
        patch: Mapping[str, Any],
        *,
        merge_key: str | None = None,
    ) -> bool:
        """Merge `patch` into an asset. Returns True if the album changed.

        Locked assets and pages ignore everything but `{"is_locked": False}`,
        which is always honoured, even on a locked album.
        """
        unlock = _is_unlock_patch(patch)
        album = self._require_album()
        if album.config.is_locked and not unlock:
            logger.debug("update_asset ignored: album {} is locked", album.id)
            return False
        index, page = self._require_page(page_id)
        pos, asset = self._require_asset(page, asset_id)
        if (page.is_locked or asset.is_locked) and not unlock:
            logger.debug("update_asset ignored: asset {} or its page is locked", asset_id)
            return False
        updated = apply_asset_patch(asset, patch)
        assets = list(page.assets)
        assets[pos] = updated
        return self._commit(
            "Edit asset",
            {"pages": self._with_page(index, replace(page, assets=assets))},
            merge_key=merge_key,
        )

    @_ignore_locked
    def remove_asset(self, page_id: str, asset_id: str) -> bool:
        index, page = self._editable_page(page_id)
        _, asset = self._require_asset(page, asset_id)
        self._check_asset_unlocked(asset)
        assets = [a for a in page.assets if a.id != asset_id]
        return self._commit(
            f"Delete {asset.type}", {"pages": self._with_page(index, replace(page, assets=assets))}
        )

    @_ignore_locked
    def duplicate_asset(self, page_id: str, asset_id: str) -> str | None:
        """Clone an asset with a new id, offset position, on top of the stack.

        A slotted source is duplicated as a freeform copy placed over its slot.
        """
        index, page = self._editable_page(page_id)
        _, source = self._require_asset(page, asset_id)
        x, y, w, h = absolute_geometry(source, page.layout_slots)
        clone = to_freeform(
            replace(source, id=generate_id(), z_index=page.max_z() + 1, is_locked=False),
            x=x + DUPLICATE_OFFSET,
            y=y + DUPLICATE_OFFSET,
            width=w,
            height=h,
        )
        self._commit(
            f"Duplicate {source.type}",
            {"pages": self._with_page(index, replace(page, assets=[*page.assets, clone]))},
        )
        return clone.id

    @_ignore_locked
    def update_asset_z_index(self, page_id: str, asset_id: str, direction: str) -> bool:
        """Restack an asset and renormalize the page to z-indices 1..n."""
        if direction not in Z_DIRECTIONS:
            raise ValidationError(f"Unknown z-order direction: {direction!r}")
        index, page = self._editable_page(page_id)
        _, asset = self._require_asset(page, asset_id)
        self._check_asset_unlocked(asset)

        stack = sorted(page.assets, key=lambda a: a.z_index)
        pos = next(i for i, a in enumerate(stack) if a.id == asset_id)
        stack.pop(pos)
        if direction == "front":
            stack.append(asset)
        elif direction == "back":
            stack.insert(0, asset)
        elif direction == "forward":
            stack.insert(min(pos + 1, len(stack)), asset)
        else:
            stack.insert(max(pos - 1, 0), asset)
        rank = {a.id: i + 1 for i, a in enumerate(stack)}
        assets = [
            a if a.z_index == rank[a.id] else replace(a, z_index=rank[a.id]) for a in page.assets
        ]
        return self._commit(
            "Change stacking order", {"pages": self._with_page(index, replace(page, assets=assets))}
        )

    @_ignore_locked
    def set_page_assets(self, page_id: str, assets: Sequence[Asset]) -> bool:
        """Replace the page's assets in bulk (z-indices are renormalized)."""
        index, page = self._editable_page(page_id)
        return self._commit(
            "Edit page assets",
            {"pages": self._with_page(index, replace(page, assets=_dense_z(list(assets))))},
        )

    @_ignore_locked
    def move_asset_to_page(
        self, asset_id: str, from_page_id: str, to_page_id: str, x: float, y: float
    ) -> bool:
        """Move an asset to another page as a freeform asset at (x, y)."""
        album = self._check_album_unlocked()
        src_index, src = self._require_page(from_page_id)
        dst_index, dst = self._require_page(to_page_id)
        self._check_page_unlocked(src)
        self._check_page_unlocked(dst)
        _, asset = self._require_asset(src, asset_id)
        self._check_asset_unlocked(asset)
        if src_index == dst_index:
            return self.update_asset(from_page_id, asset_id, {"slot_id": None, "x": x, "y": y})

        _, _, w, h = absolute_geometry(asset, src.layout_slots)
        moved = to_freeform(replace(asset, z_index=dst.max_z() + 1), x=x, y=y, width=w, height=h)
        pages = list(album.pages)
        pages[src_index] = replace(src, assets=[a for a in src.assets if a.id != asset_id])
        pages[dst_index] = replace(dst, assets=[*dst.assets, moved])
        return self._commit("Move asset to page", {"pages": pages})

    @_ignore_locked
    def sync_styles(self, page_id: str, asset_id: str) -> int:
        """Copy the visual style of one asset to every asset of the same type.

        Locked pages and assets are skipped. The whole album update is one
        change, so a single undo restores every affected page. Returns the
        number of assets updated.
        """
        album = self._check_album_unlocked()
        _, page = self._require_page(page_id)
        _, source = self._require_asset(page, asset_id)
        style = {k: source.payload[k] for k in STYLE_KEYS if k in source.payload}
        if not style:
            return 0

        touched = 0
        pages: list[Page] = []
        for p in album.pages:
            if p.is_locked:
                pages.append(p)
                continue
            assets: list[Asset] = []
            for a in p.assets:
                if a.id != source.id and a.type == source.type and not a.is_locked:
                    merged = {**a.payload, **style}
                    if merged != a.payload:
                        a = replace(a, payload=merged)
                        touched += 1
                assets.append(a)
            pages.append(replace(p, assets=assets) if assets != p.assets else p)
        if touched:
            self._commit("Sync styles", {"pages": pages})
            logger.info("Styles synced from {} to {} assets", source.id, touched)
        return touched

    # ------------------------------------------------------------------
    # Page operations
    # ------------------------------------------------------------------

    def _insertion_bounds(self, pages: Sequence[Page]) -> tuple[int, int]:
        """Lowest and highest index a non-cover page may occupy."""
        low = 1 if pages and pages[0].layout_template == COVER_FRONT_TEMPLATE else 0
        high = len(pages) - 1
        if pages and pages[-1].layout_template == COVER_BACK_TEMPLATE:
            high -= 1
        return low, high

    @_ignore_locked
    def add_page(self, template: str = FREEFORM_TEMPLATE, count: int = 1) -> str | None:
        """Add `count` pages before the back cover (or at the end).

        Returns the id of the first new page.
        """
        album = self._check_album_unlocked()
        if count < 1:
            raise ValidationError("count must be >= 1")
        pages = list(album.pages)
        insert_at = len(pages)
        if pages and pages[-1].layout_template == COVER_BACK_TEMPLATE:
            insert_at -= 1
        created = [new_page(insert_at + i + 1, template) for i in range(count)]
        pages[insert_at:insert_at] = created
        self._commit("Add page", {"pages": renumber_pages(pages)})
        logger.info("Added {} page(s) at index {}", count, insert_at)
        return created[0].id

    @_ignore_locked
    def remove_page(self, page_id: str) -> bool:
        """Remove a page; the last remaining page is never removed."""
        album = self._check_album_unlocked()
        _, page = self._require_page(page_id)
        self._check_page_unlocked(page)
        if len(album.pages) <= 1:
            logger.debug("remove_page ignored: album must keep one page")
            return False
        pages = [p for p in album.pages if p.id != page_id]
        return self._commit("Delete page", {"pages": renumber_pages(pages)})

    @_ignore_locked
    def update_page(self, page_id: str, patch: Mapping[str, Any]) -> bool:
        unknown = set(patch) - _PAGE_PATCH_KEYS
        if unknown:
            raise ValidationError(f"Unknown page keys: {sorted(unknown)}")
        self._check_album_unlocked()
        index, page = self._require_page(page_id)
        if not _is_unlock_patch(patch):
            self._check_page_unlocked(page)
        return self._commit("Edit page", {"pages": self._with_page(index, replace(page, **patch))})

    @_ignore_locked
    def duplicate_page(self, page_id: str) -> str | None:
        """Insert a copy of the page (fresh ids throughout) right after it."""
        album = self._check_album_unlocked()
        index, page = self._require_page(page_id)
        clone = replace(
            page,
            id=generate_id(),
            is_locked=False,
            assets=[replace(a, id=generate_id()) for a in page.assets],
            layout_slots=list(page.layout_slots),
        )
        pages = list(album.pages)
        pages.insert(index + 1, clone)
        self._commit("Duplicate page", {"pages": renumber_pages(pages)})
        return clone.id

    @_ignore_locked
    def move_page(self, page_id: str, direction: str) -> bool:
        """Swap a page with its left/right neighbour; covers stay put."""
        if direction not in ("left", "right"):
            raise ValidationError(f"Unknown direction: {direction!r}")
        album = self._check_album_unlocked()
        index, page = self._require_page(page_id)
        if page.is_cover:
            return False
        target = index - 1 if direction == "left" else index + 1
        low, high = self._insertion_bounds(album.pages)
        if target < low or target > high:
            return False
        pages = list(album.pages)
        pages[index], pages[target] = pages[target], pages[index]
        return self._commit("Move page", {"pages": renumber_pages(pages)})

    @_ignore_locked
    def reorder_pages(self, from_index: int, to_index: int) -> bool:
        """Drag a page (or, in spread view, its whole spread) to a new place."""
        album = self._check_album_unlocked()
        pages = list(album.pages)
        for i in (from_index, to_index):
            if i < 0 or i >= len(pages):
                raise NotFoundError("page index", i)
        if from_index == to_index or pages[from_index].is_cover:
            return False
        low, high = self._insertion_bounds(pages)
        to_index = min(max(to_index, low), high)
        spread_view = album.config.use_spread_view

        if spread_view:
            from_start = spread_start(pages, from_index, True)
            to_start = spread_start(pages, to_index, True)
            if from_start == to_start:
                return False
            moving = get_spread(pages, from_start, True)
            target_id = pages[to_start].id
            moving_ids = {p.id for p in moving}
            if pages[to_start].is_cover or target_id in moving_ids:
                return False
            remaining = [p for p in pages if p.id not in moving_ids]
            insert_at = next(i for i, p in enumerate(remaining) if p.id == target_id)
            if to_start > from_start:
                # Land after the target spread.
                insert_at += len(get_spread(pages, to_start, True))
        else:
            moving = [pages[from_index]]
            target_id = pages[to_index].id
            remaining = [p for p in pages if p.id != moving[0].id]
            insert_at = next(i for i, p in enumerate(remaining) if p.id == target_id)
            if to_index > from_index:
                insert_at += 1

        low_r, high_r = self._insertion_bounds(remaining)
        insert_at = min(max(insert_at, low_r), high_r + 1)
        remaining[insert_at:insert_at] = moving
        return self._commit("Reorder pages", {"pages": renumber_pages(remaining)})

    @_ignore_locked
    def apply_layout(self, page_id: str, template: str, config: Any) -> bool:
        """Apply a layout template to a page.

        Media assets fill the slots in page order; everything else (and media
        beyond the slot count) becomes freeform. An invalid config raises
        `ValidationError` and leaves the page untouched.
        """
        slots = parse_layout_config(config)
        index, page = self._editable_page(page_id)
        assets: list[Asset] = []
        media_seen = 0
        for asset in page.assets:
            if asset.type in MEDIA_TYPES and media_seen < len(slots):
                assets.append(to_slotted(asset, media_seen, fill=True))
                media_seen += 1
            elif isinstance(asset, FreeformAsset):
                assets.append(asset)
            else:
                x, y, w, h = absolute_geometry(asset, page.layout_slots)
                assets.append(to_freeform(asset, x=x, y=y, width=w, height=h))
        updated = replace(
            page,
            layout_template=template if slots else FREEFORM_TEMPLATE,
            layout_slots=slots,
            assets=assets,
        )
        return self._commit(f"Apply layout {template}", {"pages": self._with_page(index, updated)})

    # ------------------------------------------------------------------
    # Album-level operations
    # ------------------------------------------------------------------

    @_ignore_locked
    def update_config(self, patch: Mapping[str, Any]) -> bool:
        """Merge `patch` into the album config (`is_locked` via toggle_lock)."""
        album = self._check_album_unlocked()
        config = album.config
        changes: dict[str, Any] = {}
        for key, value in patch.items():
            if key == "use_spread_view":
                changes[key] = bool(value)
            elif key in ("dimensions", "grid"):
                try:
                    changes[key] = replace(getattr(config, key), **dict(value))
                except (TypeError, ValueError) as ex:
                    raise ValidationError(f"Invalid {key}: {ex}") from ex
            else:
                raise ValidationError(f"Unknown config key: {key!r}")
        return self._commit("Edit album settings", {"config": replace(config, **changes)})

    def toggle_spread_view(self) -> bool:
        album = self._require_album()
        return bool(self.update_config({"use_spread_view": not album.config.use_spread_view}))

    def toggle_lock(self) -> bool:
        """Flip the album lock; always permitted. Returns the new lock state."""
        album = self._require_album()
        locked = not album.config.is_locked
        self._commit(
            "Lock album" if locked else "Unlock album",
            {"config": replace(album.config, is_locked=locked)},
        )
        logger.info("Album {} {}", album.id, "locked" if locked else "unlocked")
        return locked

    @_ignore_locked
    def update_metadata(self, **changes: Any) -> bool:
        """Edit title, description, category, hashtags, geotag, cover, publish flag."""
        unknown = set(changes) - _METADATA_KEYS
        if unknown:
            raise ValidationError(f"Unknown album keys: {sorted(unknown)}")
        self._check_album_unlocked()
        values = dict(changes)
        if "hashtags" in values:
            values["hashtags"] = normalize_hashtags(values["hashtags"] or [])
        geotag = values.get("geotag")
        if isinstance(geotag, Mapping):
            values["geotag"] = Geotag(lat=float(geotag["lat"]), lng=float(geotag["lng"]))
        return self._commit("Edit album details", values)

    @_ignore_locked
    def add_to_library(self, partial: Mapping[str, Any] | AssetBase) -> str | None:
        """Put an asset into the unplaced media library; returns its id."""
        album = self._check_album_unlocked()
        asset = asset_from_partial(partial, asset_id=generate_id(), z_index=1)
        if not isinstance(asset, FreeformAsset):
            asset = to_freeform(asset)
        self._commit("Add media", {"unplaced_media": [*album.unplaced_media, asset]})
        return asset.id

    @_ignore_locked
    def move_from_library(self, asset_id: str, page_id: str) -> bool:
        """Place a library asset centred on a page, on top of the stack."""
        album = self._check_album_unlocked()
        index, page = self._require_page(page_id)
        self._check_page_unlocked(page)
        asset = next((a for a in album.unplaced_media if a.id == asset_id), None)
        if asset is None:
            raise NotFoundError("library asset", asset_id)
        placed = replace(
            asset,
            x=(100.0 - asset.width) / 2,
            y=(100.0 - asset.height) / 2,
            z_index=page.max_z() + 1,
        )
        pages = self._with_page(index, replace(page, assets=[*page.assets, placed]))
        return self._commit(
            "Place media",
            {
                "pages": pages,
                "unplaced_media": [a for a in album.unplaced_media if a.id != asset_id],
            },
        )
