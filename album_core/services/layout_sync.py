"""Conversion between flat assets and template slot descriptors.

A template page is persisted as a list of slot descriptors
(`{left|x, top|y, width, height, id?, z?, content?}`). Slotted assets are
nested into their slot's `content`; freeform assets never pass through these
functions and are stored alongside the slots.

All functions are pure and never mutate their inputs.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from album_core.errors import ValidationError
from album_core.models import (
    Asset,
    AssetBase,
    Crop,
    FreeformAsset,
    LayoutSlot,
    Page,
    SlottedAsset,
    is_slotted,
)

_GEOMETRY_KEYS = ("x", "y", "width", "height")
_FILL = (0.0, 0.0, 100.0, 100.0)


def _first(mapping: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def _number(mapping: Mapping[str, Any], key: str, default: float) -> float:
    value = mapping.get(key)
    return default if value is None else float(value)


def is_valid_layout_config(config: Any) -> bool:
    """Return True if `config` is a list of well-formed slot descriptors.

    An empty list is valid and means a freeform page.
    """
    if not isinstance(config, (list, tuple)):
        return False
    return all(
        isinstance(slot, Mapping)
        and (slot.get("left") is not None or slot.get("x") is not None)
        and (slot.get("top") is not None or slot.get("y") is not None)
        and slot.get("width") is not None
        and slot.get("height") is not None
        for slot in config
    )


def parse_layout_config(config: Any) -> list[LayoutSlot]:
    """Validate `config` and return its slot geometry.

    Raises:
        ValidationError: if `config` is not a valid layout config.
    """
    if not is_valid_layout_config(config):
        raise ValidationError(f"Invalid layout config: {config!r}")
    slots: list[LayoutSlot] = []
    for index, raw in enumerate(config):
        try:
            z = _first(raw, "z", "zIndex", "z_index")
            slots.append(
                LayoutSlot(
                    index=index,
                    left=float(_first(raw, "left", "x")),
                    top=float(_first(raw, "top", "y")),
                    width=float(raw["width"]),
                    height=float(raw["height"]),
                    id=str(raw["id"]) if raw.get("id") is not None else f"slot-{index}",
                    z_index=int(z) if z is not None else None,
                )
            )
        except (TypeError, ValueError) as ex:
            raise ValidationError(f"Invalid slot {index}: {ex}") from ex
    return slots


def slots_to_config(slots: Iterable[LayoutSlot]) -> list[dict[str, Any]]:
    """Render slot geometry back into wire descriptors (without content)."""
    config: list[dict[str, Any]] = []
    for slot in slots:
        entry: dict[str, Any] = {
            "left": slot.left,
            "top": slot.top,
            "width": slot.width,
            "height": slot.height,
        }
        if slot.id is not None:
            entry["id"] = slot.id
        if slot.z_index is not None:
            entry["z"] = slot.z_index
        config.append(entry)
    return config


def _slot_content(asset: SlottedAsset) -> dict[str, Any]:
    config: dict[str, Any] = {
        "id": asset.id,
        "z_index": asset.z_index,
        "is_locked": asset.is_locked,
        "payload": dict(asset.payload),
    }
    # Only non-fill overrides survive; a plain fill carries no geometry.
    for key, fill in zip(_GEOMETRY_KEYS, _FILL):
        value = float(getattr(asset, key))
        if value != fill:
            config[key] = value
    return {
        "type": asset.type,
        "url": asset.url,
        "zoom": asset.crop.zoom,
        "x": asset.crop.x,
        "y": asset.crop.y,
        "rotation": asset.rotation,
        "config": config,
    }


def to_slots(
    layout_config: Sequence[Mapping[str, Any]], assets: Iterable[Asset]
) -> list[dict[str, Any]]:
    """Nest each slotted asset into the slot whose index equals its `slot_id`."""
    if not layout_config:
        return []
    by_slot: dict[int, SlottedAsset] = {}
    for asset in assets:
        if isinstance(asset, SlottedAsset) and asset.slot_id not in by_slot:
            by_slot[asset.slot_id] = asset

    result: list[dict[str, Any]] = []
    for index, slot in enumerate(layout_config):
        entry = {k: v for k, v in slot.items() if k != "content"}
        entry["id"] = slot.get("id") or f"slot-{index}"
        match = by_slot.get(index)
        entry["content"] = _slot_content(match) if match is not None else None
        result.append(entry)
    return result


def from_slots(layout_config: Sequence[Mapping[str, Any]]) -> list[SlottedAsset]:
    """Materialize a slotted asset for every slot carrying content."""
    assets: list[SlottedAsset] = []
    for index, slot in enumerate(layout_config or []):
        content = slot.get("content")
        if not isinstance(content, Mapping) or not content.get("url"):
            continue
        config: Mapping[str, Any] = content.get("config") or {}
        z = _first(config, "z_index", "zIndex")
        if z is None:
            z = _first(slot, "z", "zIndex", "z_index")
        assets.append(
            SlottedAsset(
                id=str(config.get("id") or slot.get("id") or f"asset-{index}"),
                type=str(content.get("type") or "image"),
                url=content.get("url"),
                slot_id=index,
                x=_number(config, "x", 0.0),
                y=_number(config, "y", 0.0),
                width=_number(config, "width", 100.0),
                height=_number(config, "height", 100.0),
                rotation=float(_first(content, "rotation") or config.get("rotation") or 0.0),
                z_index=int(z) if z else 1,
                is_locked=bool(config.get("is_locked", False)),
                crop=Crop(
                    zoom=float(content.get("zoom") or 1.0),
                    x=_number(content, "x", 50.0),
                    y=_number(content, "y", 50.0),
                ),
                payload=dict(config.get("payload") or {}),
            )
        )
    return assets


def sync_layout_with_assets(
    layout_config: Sequence[Mapping[str, Any]], assets: Iterable[Asset]
) -> tuple[list[dict[str, Any]], list[FreeformAsset]]:
    """Split `assets` into nested slots and the untouched freeform remainder."""
    items = list(assets)
    slotted = [a for a in items if is_slotted(a)]
    freeform = [a for a in items if isinstance(a, FreeformAsset)]
    return to_slots(layout_config, slotted), freeform


def prepare_layout_for_save(page: Page) -> list[dict[str, Any]]:
    """Return the page's layout config with its slotted assets nested in."""
    if not page.layout_slots:
        return []
    return to_slots(slots_to_config(page.layout_slots), page.assets)


def absolute_geometry(
    asset: AssetBase, slots: Iterable[LayoutSlot]
) -> tuple[float, float, float, float]:
    """Return (x, y, width, height) of `asset` in page percent.

    Slotted geometry is resolved against its slot; a slot missing from the
    template leaves the slot-relative values unchanged.
    """
    geometry = tuple(float(getattr(asset, k)) for k in _GEOMETRY_KEYS)
    if not isinstance(asset, SlottedAsset):
        return geometry  # type: ignore[return-value]
    slot = next((s for s in slots if s.index == asset.slot_id), None)
    if slot is None:
        return geometry  # type: ignore[return-value]
    x, y, w, h = geometry
    return (
        slot.left + x * slot.width / 100.0,
        slot.top + y * slot.height / 100.0,
        w * slot.width / 100.0,
        h * slot.height / 100.0,
    )
