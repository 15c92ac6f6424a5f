"""Resolution of "choose N of M" randomizer nodes in the bundle catalog.

The catalog lists every option a randomized slot could hold, ordered so that
the first ``selectionCount`` entries are the ones active in the player's
save. Resolution is therefore a deterministic slice, not a random draw.
"""

from __future__ import annotations

from dataclasses import replace

from .bundles import Bundle, BundleItem, Randomizer


def resolve_item_randomizers(bundle: Bundle) -> Bundle:
    """Return a copy of ``bundle`` whose items contain no randomizers.

    A bundle whose whole item list is a randomizer is replaced by its
    selected options. Randomizers interleaved with plain items are expanded
    in place, keeping the relative order of every entry.
    """

    if isinstance(bundle.items, Randomizer):
        return replace(bundle, items=tuple(bundle.items.selected()))

    items: list[BundleItem] = []
    for entry in bundle.items:
        if isinstance(entry, Randomizer):
            items.extend(entry.selected())
        else:
            items.append(entry)
    return replace(bundle, items=tuple(items))


def resolve_bundle_randomizer(randomizer: Randomizer[Bundle]) -> list[Bundle]:
    """Return the selected bundles of a room-level randomizer, item-resolved."""

    return [resolve_item_randomizers(bundle) for bundle in randomizer.selected()]


__all__ = ["resolve_bundle_randomizer", "resolve_item_randomizers"]
