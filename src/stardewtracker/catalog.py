"""Read-only game content: the Community Center bundle catalog and item data."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from types import MappingProxyType
from typing import Any, Mapping, Union

from .bundles import Bundle, Randomizer, is_randomizer, randomizer_from_payload

logger = logging.getLogger(__name__)

COMMUNITY_CENTER_ROOMS: tuple[str, ...] = (
    "Pantry",
    "Crafts Room",
    "Fish Tank",
    "Boiler Room",
    "Vault",
    "Bulletin Board",
    "Abandoned Joja Mart",
)

ICON_URL_TEMPLATE = "https://cdn.stardew.app/images/(O){item_id}.webp"

_DATA_PACKAGE = "stardewtracker.data"

RoomEntry = Union[Bundle, Randomizer[Bundle]]
CommunityCenter = Mapping[str, tuple[RoomEntry, ...]]


@dataclass(frozen=True)
class ItemMetadata:
    """Display information for an item referenced by bundles."""

    item_id: str
    name: str
    description: str

    @property
    def icon_url(self) -> str:
        return ICON_URL_TEMPLATE.format(item_id=self.item_id)


def community_center_from_mapping(payload: Mapping[str, Any]) -> CommunityCenter:
    """Build a read-only catalog from its JSON representation.

    Raises:
        ValueError: If a room is not a list of bundles and randomizers.
    """

    if not isinstance(payload, Mapping):
        raise ValueError("Bundle catalog must map room names to bundle lists")

    rooms: dict[str, tuple[RoomEntry, ...]] = {}
    for room_name, entries in payload.items():
        if isinstance(entries, (str, bytes)) or not isinstance(entries, list):
            raise ValueError(f"Room '{room_name}' must be a list of bundles")
        parsed: list[RoomEntry] = []
        for entry in entries:
            if is_randomizer(entry):
                parsed.append(randomizer_from_payload(entry, Bundle.from_payload))
            else:
                parsed.append(Bundle.from_payload(entry))
        rooms[str(room_name)] = tuple(parsed)
    return MappingProxyType(rooms)


def item_metadata_from_mapping(payload: Mapping[str, Any]) -> Mapping[str, ItemMetadata]:
    if not isinstance(payload, Mapping):
        raise ValueError("Item catalog must map item identifiers to metadata")

    items: dict[str, ItemMetadata] = {}
    for item_id, entry in payload.items():
        if not isinstance(entry, Mapping):
            raise ValueError(f"Item '{item_id}' metadata must be an object")
        items[str(item_id)] = ItemMetadata(
            item_id=str(item_id),
            name=str(entry.get("name", "")),
            description=str(entry.get("description", "")),
        )
    return MappingProxyType(items)


@lru_cache(maxsize=None)
def load_community_center() -> CommunityCenter:
    """Return the bundled Community Center catalog, loading it on first use."""

    catalog = community_center_from_mapping(_load_resource("bundles.json"))
    logger.debug("Loaded bundle catalog with %d rooms", len(catalog))
    return catalog


@lru_cache(maxsize=None)
def load_item_metadata() -> Mapping[str, ItemMetadata]:
    """Return the bundled item metadata table, loading it on first use."""

    items = item_metadata_from_mapping(_load_resource("objects.json"))
    logger.debug("Loaded metadata for %d items", len(items))
    return items


def item_details(item_id: str) -> ItemMetadata:
    """Return display metadata for ``item_id`` with placeholder fallbacks."""

    metadata = load_item_metadata().get(str(item_id))
    if metadata is not None:
        return metadata
    return ItemMetadata(
        item_id=str(item_id),
        name="No Info",
        description="No Description Found",
    )


def _load_resource(resource_name: str) -> Any:
    data_resource = resources.files(_DATA_PACKAGE).joinpath(resource_name)
    try:
        with data_resource.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise RuntimeError(f"Bundled catalog '{resource_name}' is missing.") from exc
    except OSError as exc:
        raise RuntimeError(f"Failed to read bundled catalog '{resource_name}'.") from exc


__all__ = [
    "COMMUNITY_CENTER_ROOMS",
    "CommunityCenter",
    "ICON_URL_TEMPLATE",
    "ItemMetadata",
    "RoomEntry",
    "community_center_from_mapping",
    "item_details",
    "item_metadata_from_mapping",
    "load_community_center",
    "load_item_metadata",
]
