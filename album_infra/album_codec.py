"""JSON document codec for albums and backup snapshots.

Encoding writes the canonical snake_case layout: template pages carry their
slotted assets nested in `layout_config`, every other asset goes to the
page's `assets` list. Decoding is tolerant of older and camelCase documents
(`x`/`left`, `y`/`top`, `z`/`zIndex`, `layoutTemplate`, stringified layout
JSON) and falls back to a freeform page when a layout config is malformed.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
import json
from typing import Any

from loguru import logger

from album_core.errors import ValidationError
from album_core.models import (
    ASSET_TYPES,
    DEFAULT_BACKGROUND,
    FREEFORM_TEMPLATE,
    Album,
    AlbumConfig,
    Asset,
    BackupSnapshot,
    Crop,
    Dimensions,
    FreeformAsset,
    Geotag,
    GridSettings,
    Page,
    SlottedAsset,
    generate_id,
)
from album_core.services.layout_sync import from_slots, parse_layout_config, prepare_layout_for_save

FORMAT_VERSION = 1

_ASSET_KEYS = frozenset(
    {
        "id",
        "type",
        "asset_type",
        "x",
        "left",
        "y",
        "top",
        "width",
        "height",
        "rotation",
        "z_index",
        "zIndex",
        "is_locked",
        "isLocked",
        "url",
        "crop",
        "payload",
        "config",
        "slot_id",
        "slotId",
    }
)


def _get(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first non-None value among `keys`."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _timestamp(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    return float(value)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_asset(asset: Asset) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": asset.id,
        "type": asset.type,
        "x": asset.x,
        "y": asset.y,
        "width": asset.width,
        "height": asset.height,
        "rotation": asset.rotation,
        "z_index": asset.z_index,
        "is_locked": asset.is_locked,
        "url": asset.url,
        "crop": {"zoom": asset.crop.zoom, "x": asset.crop.x, "y": asset.crop.y},
        "payload": dict(asset.payload),
    }
    if isinstance(asset, SlottedAsset):
        data["slot_id"] = asset.slot_id
    return data


def encode_page(page: Page) -> dict[str, Any]:
    layout = prepare_layout_for_save(page)
    nested: set[str] = set()
    for slot in layout:
        content = slot.get("content")
        if content and content.get("url"):
            nested.add(content["config"]["id"])
        else:
            # Slotted assets without media stay in `assets` with their slot_id.
            slot["content"] = None
    return {
        "id": page.id,
        "page_number": page.page_number,
        "layout_template": page.layout_template,
        "layout_config": layout,
        "assets": [encode_asset(a) for a in page.assets if a.id not in nested],
        "asset_order": [a.id for a in page.assets],
        "background_color": page.background_color,
        "background_opacity": page.background_opacity,
        "background_image": page.background_image,
        "is_locked": page.is_locked,
    }


def encode_album(album: Album) -> dict[str, Any]:
    """Return the JSON-compatible document for `album`."""
    config = album.config
    return {
        "format_version": FORMAT_VERSION,
        "id": album.id,
        "title": album.title,
        "description": album.description,
        "cover_url": album.cover_url,
        "hashtags": list(album.hashtags),
        "geotag": (
            {"lat": album.geotag.lat, "lng": album.geotag.lng} if album.geotag else None
        ),
        "category": album.category,
        "is_published": album.is_published,
        "created_at": album.created_at,
        "updated_at": album.updated_at,
        "config": {
            "dimensions": {
                "width": config.dimensions.width,
                "height": config.dimensions.height,
                "unit": config.dimensions.unit,
                "bleed": config.dimensions.bleed,
                "gutter": config.dimensions.gutter,
            },
            "use_spread_view": config.use_spread_view,
            "is_locked": config.is_locked,
            "grid": {
                "size": config.grid.size,
                "snap": config.grid.snap,
                "visible": config.grid.visible,
            },
        },
        "pages": [encode_page(p) for p in album.pages],
        "unplaced_media": [encode_asset(a) for a in album.unplaced_media],
    }


def encode_snapshot(snapshot: BackupSnapshot) -> dict[str, Any]:
    return {"timestamp": snapshot.timestamp, "album": encode_album(snapshot.album)}


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def decode_asset(data: Mapping[str, Any]) -> Asset:
    """Build an asset from a stored mapping; unknown keys go to the payload."""
    asset_type = _get(data, "type", "asset_type", default="image")
    if asset_type not in ASSET_TYPES:
        logger.warning("Unknown asset type {!r}; treating as image", asset_type)
        asset_type = "image"
    payload: dict[str, Any] = dict(_get(data, "payload", "config", default={}))
    payload.update({k: v for k, v in data.items() if k not in _ASSET_KEYS})
    crop_raw: Mapping[str, Any] = data.get("crop") or {}
    values: dict[str, Any] = {
        "id": str(_get(data, "id", default="") or generate_id()),
        "type": asset_type,
        "rotation": float(_get(data, "rotation", default=0.0)),
        "z_index": int(_get(data, "z_index", "zIndex", default=1)),
        "is_locked": bool(_get(data, "is_locked", "isLocked", default=False)),
        "url": data.get("url"),
        "crop": Crop(
            zoom=float(_get(crop_raw, "zoom", default=1.0)),
            x=float(_get(crop_raw, "x", default=50.0)),
            y=float(_get(crop_raw, "y", default=50.0)),
        ),
        "payload": payload,
    }
    slot_id = _get(data, "slot_id", "slotId")
    geometry = {
        "x": _get(data, "x", "left"),
        "y": _get(data, "y", "top"),
        "width": data.get("width"),
        "height": data.get("height"),
    }
    values.update({k: float(v) for k, v in geometry.items() if v is not None})
    if slot_id is not None:
        return SlottedAsset(**values, slot_id=int(slot_id))
    return FreeformAsset(**values)


def _layout_config(data: Mapping[str, Any]) -> Any:
    raw = _get(data, "layout_config", "layoutConfig", "layout_json", default=[])
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as ex:
            logger.warning("Unparseable layout JSON on page {}: {}", data.get("id"), ex)
            return None
    return raw


def decode_page(data: Mapping[str, Any], position: int) -> Page:
    page_id = str(_get(data, "id", default="") or f"page-{position + 1}")
    template = str(
        _get(data, "layout_template", "layoutTemplate", "template_id", default=FREEFORM_TEMPLATE)
    )
    config = _layout_config(data)
    try:
        if config is None:
            raise ValidationError("unparseable layout JSON")
        slots = parse_layout_config(config)
        slotted = from_slots(config)
    except ValidationError as ex:
        logger.warning("Invalid layout on page {}; falling back to freeform: {}", page_id, ex)
        slots, slotted, template = [], [], FREEFORM_TEMPLATE

    assets: list[Asset] = [*slotted, *(decode_asset(a) for a in data.get("assets") or [])]
    order = data.get("asset_order")
    if order:
        rank = {asset_id: i for i, asset_id in enumerate(order)}
        assets.sort(key=lambda a: rank.get(a.id, len(rank)))

    return Page(
        id=page_id,
        page_number=position + 1,
        layout_template=template,
        layout_slots=slots,
        background_color=str(
            _get(data, "background_color", "backgroundColor", default=DEFAULT_BACKGROUND)
        ),
        background_opacity=float(
            _get(data, "background_opacity", "backgroundOpacity", default=100.0)
        ),
        background_image=_get(data, "background_image", "backgroundImage"),
        is_locked=bool(_get(data, "is_locked", "isLocked", default=False)),
        assets=assets,
    )


def decode_config(data: Mapping[str, Any] | None) -> AlbumConfig:
    data = data or {}
    dims: Mapping[str, Any] = data.get("dimensions") or {}
    grid: Mapping[str, Any] = data.get("grid") or {}
    default_dims = Dimensions()
    default_grid = GridSettings()
    return AlbumConfig(
        dimensions=Dimensions(
            width=float(_get(dims, "width", default=default_dims.width)),
            height=float(_get(dims, "height", default=default_dims.height)),
            unit=str(_get(dims, "unit", default=default_dims.unit)),
            bleed=float(_get(dims, "bleed", default=default_dims.bleed)),
            gutter=float(_get(dims, "gutter", default=default_dims.gutter)),
        ),
        use_spread_view=bool(_get(data, "use_spread_view", "useSpreadView", default=True)),
        is_locked=bool(_get(data, "is_locked", "isLocked", default=False)),
        grid=GridSettings(
            size=int(_get(grid, "size", default=default_grid.size)),
            snap=bool(_get(grid, "snap", default=default_grid.snap)),
            visible=bool(_get(grid, "visible", default=default_grid.visible)),
        ),
    )


def decode_album(data: Mapping[str, Any]) -> Album:
    """Build an `Album` from a stored document.

    Raises:
        ValidationError: if the document has no album id.
    """
    album_id = data.get("id")
    if not album_id:
        raise ValidationError("Album document has no id")
    geotag = data.get("geotag")
    pages = sorted(
        data.get("pages") or [],
        key=lambda p: int(_get(p, "page_number", "pageNumber", default=0)),
    )
    return Album(
        id=str(album_id),
        title=str(data.get("title") or ""),
        description=str(data.get("description") or ""),
        pages=[decode_page(p, i) for i, p in enumerate(pages)],
        config=decode_config(data.get("config")),
        cover_url=_get(data, "cover_url", "coverUrl"),
        hashtags=list(data.get("hashtags") or []),
        geotag=Geotag(lat=float(geotag["lat"]), lng=float(geotag["lng"])) if geotag else None,
        category=data.get("category"),
        is_published=bool(_get(data, "is_published", "isPublished", default=False)),
        unplaced_media=[
            decode_asset(a) for a in _get(data, "unplaced_media", "unplacedMedia", default=[])
        ],
        created_at=_timestamp(_get(data, "created_at", "createdAt")),
        updated_at=_timestamp(_get(data, "updated_at", "updatedAt")),
    )


def decode_snapshot(data: Mapping[str, Any]) -> BackupSnapshot:
    return BackupSnapshot(album=decode_album(data["album"]), timestamp=float(data["timestamp"]))
