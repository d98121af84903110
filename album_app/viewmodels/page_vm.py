"""Lightweight view model wrappers around `Page` and its assets."""

from __future__ import annotations

from dataclasses import dataclass

from album_core.models import (
    COVER_BACK_TEMPLATE,
    COVER_FRONT_TEMPLATE,
    Asset,
    Page,
    SlottedAsset,
    is_slotted,
)
from album_core.services.layout_sync import absolute_geometry


@dataclass
class AssetVM:
    """Expose convenient properties for bindings/templates."""

    asset: Asset
    page: Page

    @property
    def label(self) -> str:
        text = self.asset.payload.get("content")
        if self.asset.type == "text" and text:
            return str(text)[:24]
        return self.asset.type

    @property
    def geometry(self) -> tuple[float, float, float, float]:
        """Page-percent geometry (slot-relative values resolved)."""
        return absolute_geometry(self.asset, self.page.layout_slots)

    @property
    def is_slotted(self) -> bool:
        return is_slotted(self.asset)

    @property
    def is_locked(self) -> bool:
        """True if the asset or its page is locked."""
        return bool(self.asset.is_locked or self.page.is_locked)


@dataclass
class PageVM:
    page: Page

    @property
    def label(self) -> str:
        """Display name: covers by role, other pages by number."""
        if self.page.layout_template == COVER_FRONT_TEMPLATE:
            return "Front cover"
        if self.page.layout_template == COVER_BACK_TEMPLATE:
            return "Back cover"
        return f"Page {self.page.page_number}"

    @property
    def asset_count(self) -> int:
        return len(self.page.assets)

    @property
    def slot_count(self) -> int:
        return len(self.page.layout_slots)

    @property
    def filled_slot_count(self) -> int:
        slots = {a.slot_id for a in self.page.assets if isinstance(a, SlottedAsset)}
        return len(slots)

    @property
    def is_locked(self) -> bool:
        return bool(self.page.is_locked)

    def assets(self) -> list[AssetVM]:
        """Assets in stacking order, bottom first."""
        ordered = sorted(self.page.assets, key=lambda a: a.z_index)
        return [AssetVM(asset=a, page=self.page) for a in ordered]
