"""Core domain models for albums, pages and assets.

Objects here are plain dataclasses. The document store treats them as
copy-on-write values: a mutation builds replacement objects with
`dataclasses.replace` and never edits an instance another holder may share.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any, Union
import uuid

from album_core.errors import ValidationError

ASSET_TYPES: tuple[str, ...] = ("image", "video", "text", "location", "map", "frame")
MEDIA_TYPES: tuple[str, ...] = ("image", "video")

FREEFORM_TEMPLATE = "freeform"
COVER_FRONT_TEMPLATE = "cover-front"
COVER_BACK_TEMPLATE = "cover-back"
COVER_TEMPLATES: tuple[str, ...] = (COVER_FRONT_TEMPLATE, COVER_BACK_TEMPLATE)

DEFAULT_BACKGROUND = "#ffffff"

# Keys of an asset patch that address the asset itself rather than its payload.
_NON_PATCHABLE = frozenset({"id", "z_index"})


def generate_id() -> str:
    """Return a new random identifier."""
    return uuid.uuid4().hex


@dataclass
class Crop:
    """Crop/pan transform of media inside its frame (percent focal point)."""

    zoom: float = 1.0
    x: float = 50.0
    y: float = 50.0


@dataclass
class AssetBase:
    """Fields shared by freeform and slotted assets.

    Geometry is expressed in percent of the page (freeform) or of the slot
    (slotted). `payload` holds the type-specific bag: text content, fonts,
    lat/lng for maps, filter parameters and so on.
    """

    id: str
    type: str
    x: float = 0.0
    y: float = 0.0
    width: float = 40.0
    height: float = 30.0
    rotation: float = 0.0
    z_index: int = 1
    is_locked: bool = False
    url: str | None = None
    crop: Crop = field(default_factory=Crop)
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class FreeformAsset(AssetBase):
    """Asset positioned absolutely on the page."""


@dataclass
class SlottedAsset(AssetBase):
    """Asset bound to a template slot; geometry is a slot-relative override."""

    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 100.0
    slot_id: int = 0


Asset = Union[FreeformAsset, SlottedAsset]

_BASE_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(AssetBase))
_CROP_FIELDS = frozenset(f.name for f in fields(Crop))


@dataclass
class LayoutSlot:
    """Geometry of one template slot, in page percent."""

    index: int
    left: float
    top: float
    width: float
    height: float
    id: str | None = None
    z_index: int | None = None


@dataclass
class Page:
    """A single album page.

    `page_number` is 1-based and always equals the page's position in
    `Album.pages` plus one.
    """

    id: str
    page_number: int
    layout_template: str = FREEFORM_TEMPLATE
    layout_slots: list[LayoutSlot] = field(default_factory=list)
    background_color: str = DEFAULT_BACKGROUND
    background_opacity: float = 100.0
    background_image: str | None = None
    is_locked: bool = False
    assets: list[Asset] = field(default_factory=list)

    def find_asset(self, asset_id: str) -> Asset | None:
        """Return the asset with `asset_id`, or None."""
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None

    def max_z(self) -> int:
        """Highest z-index on the page (0 when empty)."""
        return max((a.z_index for a in self.assets), default=0)

    def slot(self, index: int) -> LayoutSlot | None:
        """Return the template slot at `index`, if the template defines it."""
        for s in self.layout_slots:
            if s.index == index:
                return s
        return None

    @property
    def is_cover(self) -> bool:
        return self.layout_template in COVER_TEMPLATES


@dataclass
class Dimensions:
    width: float = 1000.0
    height: float = 700.0
    unit: str = "px"
    bleed: float = 25.0
    gutter: float = 40.0


@dataclass
class GridSettings:
    size: int = 20
    snap: bool = True
    visible: bool = False


@dataclass
class AlbumConfig:
    """Album-wide presentation and editing configuration."""

    dimensions: Dimensions = field(default_factory=Dimensions)
    use_spread_view: bool = True
    is_locked: bool = False
    grid: GridSettings = field(default_factory=GridSettings)


@dataclass
class Geotag:
    lat: float
    lng: float


@dataclass
class Album:
    """The album document.

    `updated_at` is a strictly increasing revision stamp. It is excluded from
    equality so that two albums with the same content compare equal
    regardless of when they were last touched.
    """

    id: str
    title: str
    description: str = ""
    pages: list[Page] = field(default_factory=list)
    config: AlbumConfig = field(default_factory=AlbumConfig)
    cover_url: str | None = None
    hashtags: list[str] = field(default_factory=list)
    geotag: Geotag | None = None
    category: str | None = None
    is_published: bool = False
    unplaced_media: list[Asset] = field(default_factory=list)
    created_at: float = 0.0
    updated_at: float = field(default=0.0, compare=False)

    def find_page(self, page_id: str) -> Page | None:
        """Return the page with `page_id`, or None."""
        for page in self.pages:
            if page.id == page_id:
                return page
        return None

    def page_index(self, page_id: str) -> int:
        """Return the index of `page_id` in `pages`, or -1."""
        for i, page in enumerate(self.pages):
            if page.id == page_id:
                return i
        return -1


@dataclass
class BackupSnapshot:
    """Local crash-recovery copy of an album."""

    album: Album
    timestamp: float


def normalize_hashtags(tags: Iterable[str]) -> list[str]:
    """Lower-case, strip leading '#', drop blanks and duplicates (keep order)."""
    seen: set[str] = set()
    result: list[str] = []
    for tag in tags:
        norm = str(tag).strip().lstrip("#").strip().lower()
        if norm and norm not in seen:
            seen.add(norm)
            result.append(norm)
    return result


def renumber_pages(pages: Iterable[Page]) -> list[Page]:
    """Return pages with dense 1-based numbers, replacing only stale ones."""
    return [
        p if p.page_number == i + 1 else replace(p, page_number=i + 1)
        for i, p in enumerate(pages)
    ]


def new_page(page_number: int, template: str = FREEFORM_TEMPLATE) -> Page:
    """Create an empty page."""
    return Page(id=generate_id(), page_number=page_number, layout_template=template)


def create_album(album_id: str, title: str, *, created_at: float = 0.0) -> Album:
    """Create a new album with a front cover, one spread and a back cover."""
    templates = [COVER_FRONT_TEMPLATE, FREEFORM_TEMPLATE, FREEFORM_TEMPLATE, COVER_BACK_TEMPLATE]
    pages = [new_page(i + 1, t) for i, t in enumerate(templates)]
    return Album(
        id=album_id, title=title, pages=pages, created_at=created_at, updated_at=created_at
    )


# ---------------------------------------------------------------------------
# Asset variant helpers
# ---------------------------------------------------------------------------


def is_slotted(asset: AssetBase) -> bool:
    return isinstance(asset, SlottedAsset)


def _base_values(asset: AssetBase) -> dict[str, Any]:
    return {name: getattr(asset, name) for name in _BASE_FIELDS}


def to_slotted(asset: AssetBase, slot_id: int, *, fill: bool = True) -> SlottedAsset:
    """Bind `asset` to `slot_id`.

    With `fill` the geometry is reset to cover the whole slot; otherwise the
    existing values are kept as slot-relative overrides.
    """
    values = _base_values(asset)
    if fill:
        values.update(x=0.0, y=0.0, width=100.0, height=100.0)
    return SlottedAsset(**values, slot_id=int(slot_id))


def to_freeform(asset: AssetBase, **geometry: float) -> FreeformAsset:
    """Detach `asset` from any slot, optionally overriding its geometry."""
    values = _base_values(asset)
    values.update(geometry)
    return FreeformAsset(**values)


def _coerce_crop(current: Crop, value: Any) -> Crop:
    if isinstance(value, Crop):
        return value
    if isinstance(value, Mapping):
        unknown = set(value) - _CROP_FIELDS
        if unknown:
            raise ValidationError(f"Unknown crop keys: {sorted(unknown)}")
        return replace(current, **{k: float(v) for k, v in value.items()})
    raise ValidationError(f"Invalid crop value: {value!r}")


def _check_type(value: Any) -> str:
    if value not in ASSET_TYPES:
        raise ValidationError(f"Unknown asset type: {value!r}")
    return str(value)


def asset_from_partial(
    partial: Mapping[str, Any] | AssetBase, *, asset_id: str, z_index: int
) -> Asset:
    """Build a new asset from a partial mapping (or copy an existing asset).

    Known base fields are taken as-is, `slot_id` selects the slotted variant,
    and every other key lands in `payload`.
    """
    if isinstance(partial, AssetBase):
        return replace(partial, id=asset_id, z_index=z_index)

    values: dict[str, Any] = {}
    payload: dict[str, Any] = dict(partial.get("payload") or {})
    slot_id = partial.get("slot_id")
    for key, value in partial.items():
        if key in ("id", "z_index", "payload", "slot_id"):
            continue
        if key == "crop":
            values["crop"] = _coerce_crop(Crop(), value)
        elif key in _BASE_FIELDS:
            values[key] = value
        else:
            payload[key] = value
    values["type"] = _check_type(values.get("type", "image"))
    values.update(id=asset_id, z_index=z_index, payload=payload)
    if slot_id is not None:
        return SlottedAsset(**values, slot_id=int(slot_id))
    return FreeformAsset(**values)


def apply_asset_patch(asset: Asset, patch: Mapping[str, Any]) -> Asset:
    """Return `asset` with `patch` merged in.

    `slot_id` converts between variants (None detaches; an int binds with
    fill geometry unless the patch carries its own). Unknown keys merge into
    the payload. `id` and `z_index` cannot be patched.
    """
    blocked = _NON_PATCHABLE.intersection(patch)
    if blocked:
        raise ValidationError(f"Keys cannot be patched: {sorted(blocked)}")

    updated: Asset = asset
    if "slot_id" in patch:
        slot_id = patch["slot_id"]
        if slot_id is None:
            updated = to_freeform(updated)
        elif not is_slotted(updated) or updated.slot_id != slot_id:  # type: ignore[union-attr]
            updated = to_slotted(updated, int(slot_id), fill=not is_slotted(updated))

    changes: dict[str, Any] = {}
    payload = updated.payload
    for key, value in patch.items():
        if key == "slot_id":
            continue
        if key == "crop":
            changes["crop"] = _coerce_crop(updated.crop, value)
        elif key == "payload":
            payload = {**payload, **dict(value or {})}
        elif key == "type":
            changes["type"] = _check_type(value)
        elif key in _BASE_FIELDS:
            changes[key] = value
        else:
            payload = {**payload, key: value}
    if payload is not updated.payload:
        changes["payload"] = payload
    return replace(updated, **changes) if changes else updated
