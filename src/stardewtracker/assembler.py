"""Assembly of the player's active Community Center bundles.

Players without uploaded bundle progress get the catalog's default selection
with every item incomplete. Either way the bundle list is annotated with the
alternates that randomized bundles and item slots could be swapped for, so
the presentation layer never has to consult the catalog itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Mapping, Sequence

from .bundles import Bundle, BundleItem, BundleWithStatus, Randomizer, bundle_completed
from .catalog import COMMUNITY_CENTER_ROOMS, CommunityCenter, load_community_center
from .patching import IndexedArrayPatch
from .randomizers import resolve_bundle_randomizer, resolve_item_randomizers

logger = logging.getLogger(__name__)

LOCAL_LEGEND_BUNDLE_COUNT = 31


@dataclass(frozen=True)
class AchievementProgress:
    """Completion state of an achievement plus a hint for the remaining work."""

    completed: bool
    additional_description: str = ""


def get_active_bundles(
    player: Mapping[str, Any] | None = None,
    catalog: CommunityCenter | None = None,
) -> list[BundleWithStatus]:
    """Return the player's bundles annotated with randomizer alternates.

    Stored bundle progress is used as-is, since it was resolved when the save
    was parsed; entries that cannot be decoded are skipped. Without it every
    room in the catalog is resolved into fresh, incomplete bundles.
    """

    catalog = catalog if catalog is not None else load_community_center()

    stored = player.get("bundles") if player is not None else None
    if stored is not None:
        bundles = _decode_stored_bundles(stored)
    else:
        bundles = _default_bundles(catalog)

    return attach_randomizer_data(bundles, catalog)


def _decode_stored_bundles(stored: Sequence[Any]) -> list[BundleWithStatus]:
    bundles: list[BundleWithStatus] = []
    for index, entry in enumerate(stored):
        try:
            bundles.append(BundleWithStatus.from_payload(entry))
        except ValueError as exc:
            logger.debug("Skipping stored bundle %d: %s", index, exc)
    return bundles


def _default_bundles(catalog: CommunityCenter) -> list[BundleWithStatus]:
    bundles: list[BundleWithStatus] = []
    for room_name in COMMUNITY_CENTER_ROOMS:
        resolved: list[Bundle] = []
        for entry in catalog.get(room_name, ()):
            if isinstance(entry, Randomizer):
                resolved.extend(resolve_bundle_randomizer(entry))
            else:
                resolved.append(resolve_item_randomizers(entry))

        for bundle in resolved:
            stamped = replace(bundle, area_name=room_name, localized_name=bundle.name)
            bundles.append(BundleWithStatus.fresh(stamped))
    return bundles


def attach_randomizer_data(
    bundles: Sequence[BundleWithStatus],
    catalog: CommunityCenter | None = None,
) -> list[BundleWithStatus]:
    """Return copies of ``bundles`` annotated with swappable alternates.

    Bundles chosen by a room-level randomizer receive every sibling option
    (item-resolved) in ``options``. Items filling a randomized slot receive
    the slot's options whose item ids are not already used by the bundle.
    Entries whose room or bundle cannot be found in the catalog are returned
    without item annotations.
    """

    catalog = catalog if catalog is not None else load_community_center()

    sibling_options: dict[str, tuple[Bundle, ...]] = {}
    for room_name in COMMUNITY_CENTER_ROOMS:
        for entry in catalog.get(room_name, ()):
            if not isinstance(entry, Randomizer):
                continue
            options = tuple(
                replace(resolve_item_randomizers(option), localized_name=option.name)
                for option in entry.options
            )
            for option in entry.options:
                sibling_options[option.name] = options

    annotated: list[BundleWithStatus] = []
    for bundle_with_status in bundles:
        bundle = bundle_with_status.bundle
        annotated.append(
            replace(
                bundle_with_status,
                bundle=_annotate_item_slots(bundle, catalog),
                options=sibling_options.get(bundle.name, bundle_with_status.options),
            )
        )
    return annotated


def _annotate_item_slots(bundle: Bundle, catalog: CommunityCenter) -> Bundle:
    if not bundle.area_name or isinstance(bundle.items, Randomizer):
        return bundle

    room = catalog.get(bundle.area_name)
    if room is None:
        logger.debug("No catalog room '%s' for bundle '%s'", bundle.area_name, bundle.name)
        return bundle

    definition = _find_bundle_definition(room, bundle.name)
    if definition is None:
        logger.debug("No catalog entry for bundle '%s'", bundle.name)
        return bundle

    items = list(bundle.items)
    used_ids = {item.item_id for item in items if isinstance(item, BundleItem)}

    for start, randomizer in _randomized_slots(definition):
        alternates = tuple(
            option for option in randomizer.options if option.item_id not in used_ids
        )
        for slot in range(start, start + len(randomizer.selected())):
            if slot < len(items) and isinstance(items[slot], BundleItem):
                items[slot] = replace(items[slot], options=alternates)

    return replace(bundle, items=tuple(items))


def _find_bundle_definition(room: Sequence[Any], name: str) -> Bundle | None:
    for entry in room:
        candidates = entry.options if isinstance(entry, Randomizer) else (entry,)
        for candidate in candidates:
            if candidate.name == name:
                return candidate
    return None


def _randomized_slots(definition: Bundle) -> list[tuple[int, Randomizer[BundleItem]]]:
    """Return ``(first resolved index, randomizer)`` for each randomized slot."""

    if isinstance(definition.items, Randomizer):
        return [(0, definition.items)]

    slots: list[tuple[int, Randomizer[BundleItem]]] = []
    index = 0
    for entry in definition.items:
        if isinstance(entry, Randomizer):
            slots.append((index, entry))
            index += len(entry.selected())
        else:
            index += 1
    return slots


def swap_bundle(
    new_bundle: Bundle,
    old: BundleWithStatus,
    bundles: Sequence[BundleWithStatus],
    catalog: CommunityCenter | None = None,
) -> list[BundleWithStatus]:
    """Replace ``old`` with ``new_bundle`` and re-annotate the whole list.

    The replacement keeps the room of the bundle it replaces and starts with
    every item incomplete.

    Raises:
        KeyError: If ``old`` is not part of ``bundles``.
    """

    names = [entry.bundle.name for entry in bundles]
    try:
        index = names.index(old.bundle.name)
    except ValueError as exc:
        raise KeyError(f"Bundle '{old.bundle.name}' is not in the bundle list") from exc

    placed = replace(
        resolve_item_randomizers(new_bundle), area_name=old.bundle.area_name
    )
    updated = list(bundles)
    updated[index] = BundleWithStatus.fresh(placed)
    return attach_randomizer_data(updated, catalog)


def alternate_bundle_options(
    bundle_with_status: BundleWithStatus,
    bundles: Sequence[BundleWithStatus],
) -> tuple[Bundle, ...]:
    """Return the sibling options not already selected anywhere in ``bundles``."""

    if not bundle_with_status.options:
        return ()
    selected = {entry.bundle.name for entry in bundles}
    return tuple(
        option for option in bundle_with_status.options if option.name not in selected
    )


def set_status_patch(
    player: Mapping[str, Any],
    bundle_name: str,
    item_index: int,
    completed: bool,
) -> dict[str, Any] | None:
    """Return the sparse patch marking one bundle item (in)complete.

    Returns ``None`` when the player has no stored bundle called
    ``bundle_name``.
    """

    stored = player.get("bundles") or []
    for bundle_index, entry in enumerate(stored):
        bundle = entry.get("bundle") if isinstance(entry, Mapping) else None
        if isinstance(bundle, Mapping) and bundle.get("name") == bundle_name:
            return {
                "bundles": IndexedArrayPatch(
                    {
                        bundle_index: {
                            "bundleStatus": IndexedArrayPatch({item_index: completed})
                        }
                    }
                )
            }
    return None


def bundles_by_room(
    bundles: Sequence[BundleWithStatus],
) -> dict[str, list[BundleWithStatus]]:
    """Group ``bundles`` by room, in Community Center room order."""

    grouped: dict[str, list[BundleWithStatus]] = {
        room_name: [] for room_name in COMMUNITY_CENTER_ROOMS
    }
    for entry in bundles:
        area = entry.bundle.area_name
        if area in grouped:
            grouped[area].append(entry)
    return grouped


def local_legend_progress(bundles: Sequence[BundleWithStatus]) -> AchievementProgress:
    """Progress towards "Local Legend" (restore the Community Center)."""

    if not bundles:
        return AchievementProgress(completed=False)

    completed_count = sum(1 for entry in bundles if bundle_completed(entry))
    if completed_count >= LOCAL_LEGEND_BUNDLE_COUNT:
        return AchievementProgress(completed=True)

    remaining = LOCAL_LEGEND_BUNDLE_COUNT - completed_count
    return AchievementProgress(
        completed=False,
        additional_description=(
            f" - {remaining} more bundles to complete the community center"
        ),
    )


__all__ = [
    "AchievementProgress",
    "LOCAL_LEGEND_BUNDLE_COUNT",
    "alternate_bundle_options",
    "attach_randomizer_data",
    "bundles_by_room",
    "get_active_bundles",
    "local_legend_progress",
    "set_status_patch",
    "swap_bundle",
]
