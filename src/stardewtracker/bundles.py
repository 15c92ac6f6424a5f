"""Community Center bundle structures and their JSON representations."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Mapping, Sequence, TypeVar, Union

T = TypeVar("T")

GOLD_BUNDLE_ITEMS_REQUIRED = -1


@dataclass(frozen=True)
class BundleItem:
    """A single item requirement within a bundle.

    ``options`` is only populated on items that fill a randomized slot, and
    lists the alternates the player could have been given instead.
    """

    item_id: str
    quantity: int = 1
    quality: int = 0
    options: tuple["BundleItem", ...] | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BundleItem":
        if not isinstance(payload, Mapping):
            raise ValueError("Bundle item must be an object")
        item_id = payload.get("itemID")
        if item_id is None:
            raise ValueError("Bundle item must include 'itemID'")

        options_payload = payload.get("options")
        options: tuple[BundleItem, ...] | None = None
        if options_payload is not None:
            options = tuple(
                cls.from_payload(option) for option in _require_list(options_payload, "options")
            )

        return cls(
            item_id=str(item_id),
            quantity=_require_int(payload.get("quantity", 1), "quantity"),
            quality=_require_int(payload.get("quality", 0), "quality"),
            options=options,
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "itemID": self.item_id,
            "quantity": self.quantity,
            "quality": self.quality,
        }
        if self.options is not None:
            payload["options"] = [option.to_payload() for option in self.options]
        return payload


@dataclass(frozen=True)
class Randomizer(Generic[T]):
    """Content node meaning "the first ``selection_count`` options are active"."""

    options: tuple[T, ...]
    selection_count: int

    def __post_init__(self) -> None:
        if self.selection_count < 0:
            raise ValueError("selectionCount must not be negative")

    def selected(self) -> tuple[T, ...]:
        """Return the active options in declared order."""

        return self.options[: self.selection_count]


BundleEntry = Union[BundleItem, Randomizer[BundleItem]]


@dataclass(frozen=True)
class Bundle:
    """A named collection of required items owned by a Community Center room."""

    name: str
    items: Union[tuple[BundleEntry, ...], Randomizer[BundleItem]] = ()
    items_required: int = 0
    localized_name: str | None = None
    area_name: str | None = None

    @property
    def is_gold(self) -> bool:
        """Return ``True`` for bundles that only track overall completion."""

        return self.items_required == GOLD_BUNDLE_ITEMS_REQUIRED

    def resolved_items(self) -> tuple[BundleItem, ...]:
        """Return ``items`` assuming the bundle has already been resolved."""

        if isinstance(self.items, Randomizer):
            raise ValueError(f"Bundle '{self.name}' still contains a randomizer")
        resolved: list[BundleItem] = []
        for entry in self.items:
            if isinstance(entry, Randomizer):
                raise ValueError(f"Bundle '{self.name}' still contains a randomizer")
            resolved.append(entry)
        return tuple(resolved)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Bundle":
        if not isinstance(payload, Mapping):
            raise ValueError("Bundle must be an object")
        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Bundle must include a non-empty 'name'")

        items_payload = payload.get("items", [])
        items: Union[tuple[BundleEntry, ...], Randomizer[BundleItem]]
        if is_randomizer(items_payload):
            items = randomizer_from_payload(items_payload, BundleItem.from_payload)
        else:
            items = tuple(
                _entry_from_payload(entry) for entry in _require_list(items_payload, "items")
            )

        return cls(
            name=name,
            items=items,
            items_required=_require_int(payload.get("itemsRequired", 0), "itemsRequired"),
            localized_name=payload.get("localizedName"),
            area_name=payload.get("areaName"),
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": self.name}
        if self.localized_name is not None:
            payload["localizedName"] = self.localized_name
        if self.area_name is not None:
            payload["areaName"] = self.area_name
        payload["itemsRequired"] = self.items_required
        if isinstance(self.items, Randomizer):
            payload["items"] = randomizer_to_payload(self.items)
        else:
            payload["items"] = [_entry_to_payload(entry) for entry in self.items]
        return payload


@dataclass(frozen=True)
class BundleWithStatus:
    """A player's bundle together with per-item completion flags.

    ``bundle_status[i]`` tracks ``bundle.items[i]``; gold bundles carry a
    single flag describing the whole bundle. ``options`` lists the sibling
    bundles of a room-level randomizer.
    """

    bundle: Bundle
    bundle_status: tuple[bool, ...]
    options: tuple[Bundle, ...] | None = None

    @classmethod
    def fresh(cls, bundle: Bundle) -> "BundleWithStatus":
        """Return ``bundle`` with every item marked incomplete."""

        items = bundle.items
        item_count = len(items.selected()) if isinstance(items, Randomizer) else len(items)
        return cls(bundle=bundle, bundle_status=(False,) * item_count)

    @property
    def completed(self) -> bool:
        return bundle_completed(self)

    def with_options(self, options: Sequence[Bundle] | None) -> "BundleWithStatus":
        return replace(self, options=tuple(options) if options is not None else None)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BundleWithStatus":
        if not isinstance(payload, Mapping):
            raise ValueError("Bundle status entry must be an object")
        bundle_payload = payload.get("bundle")
        if not isinstance(bundle_payload, Mapping):
            raise ValueError("Bundle status entry must include a 'bundle' object")

        status_payload = payload.get("bundleStatus", [])
        if isinstance(status_payload, (str, bytes)) or not isinstance(
            status_payload, Sequence
        ):
            raise ValueError("'bundleStatus' must be a list of booleans")

        options_payload = payload.get("options")
        options: tuple[Bundle, ...] | None = None
        if options_payload is not None:
            options = tuple(
                Bundle.from_payload(option)
                for option in _require_list(options_payload, "options")
            )

        return cls(
            bundle=Bundle.from_payload(bundle_payload),
            bundle_status=tuple(bool(flag) for flag in status_payload),
            options=options,
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "bundle": self.bundle.to_payload(),
            "bundleStatus": list(self.bundle_status),
        }
        if self.options is not None:
            payload["options"] = [option.to_payload() for option in self.options]
        return payload


def bundle_completed(bundle_with_status: BundleWithStatus) -> bool:
    """Return ``True`` when the bundle has every required item."""

    bundle = bundle_with_status.bundle
    status = bundle_with_status.bundle_status
    if bundle.is_gold:
        return bool(status) and status[0]
    return all(status[: bundle.items_required])


def is_randomizer(payload: Any) -> bool:
    """Return ``True`` when ``payload`` is a randomizer in JSON form."""

    return (
        isinstance(payload, Mapping)
        and "options" in payload
        and "selectionCount" in payload
    )


def randomizer_from_payload(
    payload: Mapping[str, Any], parse: Callable[[Any], T]
) -> Randomizer[T]:
    options = payload.get("options")
    if isinstance(options, (str, bytes)) or not isinstance(options, Sequence):
        raise ValueError("Randomizer 'options' must be a list")
    return Randomizer(
        options=tuple(parse(option) for option in options),
        selection_count=_require_int(payload["selectionCount"], "selectionCount"),
    )


def randomizer_to_payload(randomizer: Randomizer[Any]) -> dict[str, Any]:
    return {
        "options": [option.to_payload() for option in randomizer.options],
        "selectionCount": randomizer.selection_count,
    }


def _entry_from_payload(payload: Mapping[str, Any]) -> BundleEntry:
    if is_randomizer(payload):
        return randomizer_from_payload(payload, BundleItem.from_payload)
    return BundleItem.from_payload(payload)


def _require_list(value: Any, field_name: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ValueError(f"'{field_name}' must be a list")
    return value


def _require_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"'{field_name}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{field_name}' must be an integer") from exc


def _entry_to_payload(entry: BundleEntry) -> dict[str, Any]:
    if isinstance(entry, Randomizer):
        return randomizer_to_payload(entry)
    return entry.to_payload()


__all__ = [
    "GOLD_BUNDLE_ITEMS_REQUIRED",
    "Bundle",
    "BundleEntry",
    "BundleItem",
    "BundleWithStatus",
    "Randomizer",
    "bundle_completed",
    "is_randomizer",
    "randomizer_from_payload",
    "randomizer_to_payload",
]
