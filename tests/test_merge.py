"""Tests for the non-mutating deep merge used on player records."""

from __future__ import annotations

import copy

import pytest

from stardewtracker.patching import IndexedArrayPatch, merge_deep


def test_merge_leaves_inputs_untouched() -> None:
    target = {"general": {"name": "Robin", "stats": {"level": 3}}, "bundles": [1, 2]}
    source = {"general": {"stats": {"level": 4}}}
    target_snapshot = copy.deepcopy(target)
    source_snapshot = copy.deepcopy(source)

    merged = merge_deep(target, source)

    assert merged == {
        "general": {"name": "Robin", "stats": {"level": 4}},
        "bundles": [1, 2],
    }
    assert target == target_snapshot
    assert source == source_snapshot
    assert merged is not target
    assert merged["general"] is not target["general"]


def test_untouched_subtrees_keep_identity() -> None:
    target = {"general": {"name": "Robin"}, "fishing": {"fishCaught": ["128"]}}

    merged = merge_deep(target, {"general": {"name": "Abigail"}})

    assert merged["fishing"] is target["fishing"]


def test_lists_are_replaced_not_concatenated() -> None:
    target = {"bundleStatus": [True, True, True]}
    source = {"bundleStatus": [False]}

    merged = merge_deep(target, source)

    assert merged == {"bundleStatus": [False]}
    assert merged["bundleStatus"] is not source["bundleStatus"]


def test_sources_apply_left_to_right() -> None:
    merged = merge_deep({"a": 1, "b": {"c": 1}}, {"a": 2}, {"b": {"c": 3}, "a": 4})

    assert merged == {"a": 4, "b": {"c": 3}}


def test_mapping_source_over_non_mapping_creates_object() -> None:
    assert merge_deep({"a": 5}, {"a": {"b": 1}}) == {"a": {"b": 1}}
    assert merge_deep(None, {"x": {"y": 2}}) == {"x": {"y": 2}}


def test_indexed_source_merges_elements() -> None:
    target = {"rows": [{"id": 1, "done": False}, {"id": 2, "done": False}]}

    merged = merge_deep(target, {"rows": IndexedArrayPatch({1: {"done": True}})})

    assert merged["rows"] == [{"id": 1, "done": False}, {"id": 2, "done": True}]
    assert merged["rows"][0] is target["rows"][0]
    assert target["rows"][1] == {"id": 2, "done": False}


def test_indexed_source_rejects_holes() -> None:
    with pytest.raises(ValueError):
        merge_deep({"rows": [1]}, {"rows": IndexedArrayPatch({3: 2})})


def test_indexed_source_over_missing_value_builds_list() -> None:
    merged = merge_deep({}, {"flags": IndexedArrayPatch({0: True, 1: False})})

    assert merged == {"flags": [True, False]}
