"""Test configuration for the Stardew tracker project."""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from typing import Any

import pytest

from stardewtracker.catalog import CommunityCenter, community_center_from_mapping


def _item(item_id: str, quantity: int = 1, quality: int = 0) -> dict[str, Any]:
    return {"itemID": item_id, "quantity": quantity, "quality": quality}


SAMPLE_CATALOG: dict[str, Any] = {
    "Pantry": [
        {
            "name": "Spring Crops",
            "itemsRequired": 4,
            "items": [_item("24"), _item("188"), _item("190"), _item("192")],
        },
        {
            "options": [
                {
                    "name": "Animal",
                    "itemsRequired": 2,
                    "items": [_item("186"), _item("182"), _item("174")],
                },
                {
                    "name": "Rare Crops",
                    "itemsRequired": 2,
                    "items": [_item("454"), _item("417")],
                },
            ],
            "selectionCount": 1,
        },
        {
            "name": "Artisan",
            "itemsRequired": 3,
            "items": [
                _item("432"),
                {
                    "options": [_item("613"), _item("634"), _item("635"), _item("636")],
                    "selectionCount": 2,
                },
                _item("340"),
            ],
        },
    ],
    "Vault": [
        {
            "name": "2,500g",
            "itemsRequired": -1,
            "items": [_item("-1", quantity=2500)],
        }
    ],
    "Fish Tank": [
        {
            "name": "Quality Fish",
            "itemsRequired": 2,
            "items": {
                "options": [_item("136", quality=2), _item("142", quality=2), _item("699", quality=2)],
                "selectionCount": 2,
            },
        }
    ],
}


@pytest.fixture()
def catalog() -> CommunityCenter:
    """Return a small catalog mixing plain bundles and randomizers."""

    return community_center_from_mapping(SAMPLE_CATALOG)


@pytest.fixture()
def player_record() -> dict[str, Any]:
    """Return a stored record with two bundles of progress."""

    return {
        "_id": "farmer-1",
        "general": {"name": "Robin", "farmName": "Hilltop"},
        "bundles": [
            {
                "bundle": {
                    "name": "Spring Crops",
                    "localizedName": "Spring Crops",
                    "areaName": "Pantry",
                    "itemsRequired": 4,
                    "items": [_item("24"), _item("188"), _item("190"), _item("192")],
                },
                "bundleStatus": [True, False, False, False],
            },
            {
                "bundle": {
                    "name": "Artisan",
                    "localizedName": "Artisan",
                    "areaName": "Pantry",
                    "itemsRequired": 3,
                    "items": [_item("432"), _item("634"), _item("636"), _item("340")],
                },
                "bundleStatus": [False, False, False, False],
            },
        ],
        "fishing": {"fishCaught": ["128"]},
    }


__all__ = ["SAMPLE_CATALOG", "catalog", "player_record"]
