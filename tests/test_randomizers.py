"""Tests for deterministic randomizer resolution."""

from __future__ import annotations

import pytest

from stardewtracker.bundles import Bundle, BundleItem, Randomizer
from stardewtracker.randomizers import resolve_bundle_randomizer, resolve_item_randomizers


def _items(*item_ids: str) -> tuple[BundleItem, ...]:
    return tuple(BundleItem(item_id) for item_id in item_ids)


def test_interleaved_randomizer_expands_in_place() -> None:
    bundle = Bundle(
        name="Artisan",
        items_required=3,
        items=(
            BundleItem("432"),
            Randomizer(options=_items("613", "634", "635"), selection_count=2),
            BundleItem("340"),
        ),
    )

    resolved = resolve_item_randomizers(bundle)

    assert [item.item_id for item in resolved.items] == ["432", "613", "634", "340"]
    assert resolved.name == "Artisan"
    assert resolved.items_required == 3
    assert isinstance(bundle.items[1], Randomizer)


def test_whole_items_randomizer_is_replaced_by_selection() -> None:
    bundle = Bundle(
        name="Quality Crops",
        items_required=3,
        items=Randomizer(options=_items("24", "188", "190", "192"), selection_count=3),
    )

    resolved = resolve_item_randomizers(bundle)

    assert resolved.items == _items("24", "188", "190")
    assert resolved.resolved_items() == _items("24", "188", "190")


def test_plain_bundle_is_unchanged() -> None:
    bundle = Bundle(name="Spring Crops", items=_items("24", "188"), items_required=2)

    assert resolve_item_randomizers(bundle) == bundle


def test_bundle_randomizer_selects_first_options_in_order() -> None:
    options = (
        Bundle(name="Animal", items=_items("186")),
        Bundle(
            name="Rare Crops",
            items=(Randomizer(options=_items("454", "417"), selection_count=1),),
        ),
        Bundle(name="Fodder", items=_items("262")),
    )

    selected = resolve_bundle_randomizer(Randomizer(options=options, selection_count=2))

    assert [bundle.name for bundle in selected] == ["Animal", "Rare Crops"]
    assert selected[1].items == _items("454")


def test_selection_count_larger_than_options_takes_all() -> None:
    randomizer = Randomizer(options=_items("1", "2"), selection_count=5)

    assert randomizer.selected() == _items("1", "2")


def test_negative_selection_count_is_rejected() -> None:
    with pytest.raises(ValueError):
        Randomizer(options=_items("1"), selection_count=-1)
