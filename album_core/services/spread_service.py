"""Spread pairing and page navigation.

With spread view on, the front cover stands alone, odd page indices open a
two-page spread with the following page, and the back cover stands alone.
Every result is derived from the pages passed in; nothing is cached, since a
template change (e.g. a page becoming the front cover) changes the pairing.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from album_core.models import COVER_TEMPLATES, Page


def get_spread(pages: Sequence[Page], index: int, use_spread_view: bool) -> list[Page]:
    """Return the 1 or 2 pages displayed together with `pages[index]`."""
    if index < 0 or index >= len(pages):
        return []
    page = pages[index]
    if not use_spread_view or page.layout_template in COVER_TEMPLATES:
        return [page]

    if index % 2 == 1:
        if index + 1 < len(pages) and pages[index + 1].layout_template not in COVER_TEMPLATES:
            return [page, pages[index + 1]]
        return [page]
    # Even index: right-hand page of the spread opened at index - 1. Index 0
    # has no left partner, so page 1 never pairs with an implicit page 0.
    if index > 0 and pages[index - 1].layout_template not in COVER_TEMPLATES:
        return [pages[index - 1], page]
    return [page]


def spread_start(pages: Sequence[Page], index: int, use_spread_view: bool) -> int:
    """Index of the first page of the spread containing `index`."""
    spread = get_spread(pages, index, use_spread_view)
    if not spread:
        return index
    return index - 1 if len(spread) == 2 and spread[1] is pages[index] else index


def next_index(pages: Sequence[Page], index: int, use_spread_view: bool) -> int:
    """Index shown after one forward turn from `index` (clamped at the end)."""
    if not pages:
        return 0
    start = spread_start(pages, index, use_spread_view)
    width = len(get_spread(pages, index, use_spread_view)) or 1
    return min(start + width, len(pages) - 1)


def previous_index(pages: Sequence[Page], index: int, use_spread_view: bool) -> int:
    """Index shown after one backward turn from `index` (clamped at 0)."""
    if not pages:
        return 0
    start = spread_start(pages, index, use_spread_view)
    if start <= 0:
        return 0
    return spread_start(pages, start - 1, use_spread_view)


def iter_spreads(pages: Sequence[Page], use_spread_view: bool) -> Iterator[list[Page]]:
    """Yield every spread of the album in reading order."""
    index = 0
    while index < len(pages):
        spread = get_spread(pages, index, use_spread_view)
        yield spread
        index += len(spread)
