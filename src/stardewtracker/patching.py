"""Normalisation and merging of sparse player record patches.

Edits made in the tracker are expressed as *sparse* patches: only the fields
that changed are sent, and positions inside arrays are addressed by index via
:class:`IndexedArrayPatch`.  The storage layer merges objects recursively but
replaces arrays wholesale, so before a patch leaves the client every array it
touches is expanded into a complete replacement with :func:`normalize_patch`.
:func:`merge_deep` then applies the normalised patch to an in-memory record
without mutating it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Sequence


class ValueKind(str, Enum):
    """Shape categories understood by the patch helpers."""

    LEAF = "leaf"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    INDEXED = "indexed"


@dataclass(frozen=True)
class IndexedArrayPatch:
    """Sparse update addressing array elements by position.

    ``IndexedArrayPatch({2: {"bundleStatus": IndexedArrayPatch({5: True})}})``
    reads as "element 2 of the array, and inside it element 5 of its
    ``bundleStatus`` array".  Over the wire the same patch is a JSON object
    whose keys are decimal index strings; :meth:`from_mapping` decodes that
    form and :meth:`to_transport` produces it.
    """

    entries: Mapping[int, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        validated: dict[int, Any] = {}
        for index, value in self.entries.items():
            validated[_coerce_index(index)] = value
        object.__setattr__(self, "entries", MappingProxyType(validated))

    @classmethod
    def from_mapping(cls, payload: Mapping[Any, Any]) -> "IndexedArrayPatch":
        """Decode the transport form (``{"3": ...}``) into an index patch."""

        return cls({_coerce_index(key): value for key, value in payload.items()})

    def items(self) -> Iterator[tuple[int, Any]]:
        """Yield ``(index, element_patch)`` pairs in ascending index order."""

        for index in sorted(self.entries):
            yield index, self.entries[index]

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, index: object) -> bool:
        return index in self.entries

    def __getitem__(self, index: int) -> Any:
        return self.entries[index]

    def to_transport(self) -> dict[str, Any]:
        """Return the JSON object form with string index keys."""

        return {str(index): to_transport(value) for index, value in self.items()}


def _coerce_index(key: Any) -> int:
    if isinstance(key, bool):
        raise ValueError(f"Array index must be an integer, got {key!r}")
    if isinstance(key, int):
        index = key
    elif isinstance(key, str) and key.strip().isdigit():
        index = int(key.strip())
    else:
        raise ValueError(f"Array index must be an integer, got {key!r}")
    if index < 0:
        raise ValueError(f"Array index must not be negative, got {index}")
    return index


def classify(value: Any) -> ValueKind:
    """Return the :class:`ValueKind` describing ``value``."""

    if isinstance(value, IndexedArrayPatch):
        return ValueKind.INDEXED
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    return ValueKind.LEAF


def to_transport(value: Any) -> Any:
    """Convert ``value`` into plain JSON-compatible containers."""

    kind = classify(value)
    if kind is ValueKind.INDEXED:
        return value.to_transport()
    if kind is ValueKind.MAPPING:
        return {key: to_transport(item) for key, item in value.items()}
    if kind is ValueKind.SEQUENCE:
        return [to_transport(item) for item in value]
    return value


def normalize_patch(patch: Any, target: Any, in_array: bool = False) -> Any:
    """Expand every array touched by ``patch`` into a full replacement.

    Args:
        patch: The sparse update. Array positions are addressed with
            :class:`IndexedArrayPatch` values (or their transport-form
            mappings where ``target`` holds an array).
        target: The current record the patch will be applied to.
        in_array: ``True`` while normalising an element of an array; every
            field of the target element missing from the patch is then copied
            across so elements are never partially specified.

    Returns:
        A patch built from plain dictionaries and lists where every touched
        array is complete. ``patch`` is returned unchanged when there is no
        ``target`` to reconcile against or when it is a primitive value.

    Raises:
        ValueError: If an index patch skips past the end of the target array
            or uses a key that is not a non-negative integer.
    """

    if target is None:
        return patch

    kind = classify(patch)
    if kind is ValueKind.LEAF:
        return patch

    if isinstance(target, (list, tuple)):
        return _normalize_array(patch, target)

    if kind is not ValueKind.MAPPING or not isinstance(target, Mapping):
        return patch

    normalized: dict[Any, Any] = dict(patch)
    for key, value in patch.items():
        normalized[key] = normalize_patch(value, target.get(key), in_array)

    if in_array:
        for key, value in target.items():
            if key not in normalized:
                normalized[key] = value

    return normalized


def _normalize_array(patch: Any, target: Sequence[Any]) -> Any:
    kind = classify(patch)
    if kind is ValueKind.SEQUENCE:
        return [_normalize_element(item, target, index) for index, item in enumerate(patch)]

    if kind is ValueKind.MAPPING:
        patch = IndexedArrayPatch.from_mapping(patch)
    elif kind is not ValueKind.INDEXED:
        return patch

    result = list(target)
    for index, item in patch.items():
        value = _normalize_element(item, target, index)
        if index < len(result):
            result[index] = value
        elif index == len(result):
            result.append(value)
        else:
            raise ValueError(
                f"Patch index {index} is past the end of an array of length {len(result)}"
            )
    return result


def _normalize_element(item: Any, target: Sequence[Any], index: int) -> Any:
    if index < len(target):
        return normalize_patch(item, target[index], True)
    return _materialize(item)


def _materialize(patch: Any) -> Any:
    """Return ``patch`` with every nested index patch expanded into a list.

    Used for array elements that are being appended and so have no target
    element to back-fill from.
    """

    kind = classify(patch)
    if kind is ValueKind.INDEXED:
        return _normalize_array(patch, [])
    if kind is ValueKind.MAPPING:
        return {key: _materialize(value) for key, value in patch.items()}
    if kind is ValueKind.SEQUENCE:
        return [_materialize(value) for value in patch]
    return patch


def merge_deep(target: Any, *sources: Any) -> Any:
    """Merge ``sources`` into ``target`` left to right, returning a new value.

    Nested mappings are merged recursively into fresh containers that are
    shallow copies of the corresponding ``target`` level, so untouched
    subtrees keep their identity. Any other source value, lists included,
    overwrites the target's value for that key. ``target`` and ``sources``
    are never modified.
    """

    result = target
    for source in sources:
        result = _merge_one(result, source)
    return result


def _merge_one(target: Any, source: Any) -> Any:
    kind = classify(source)

    if kind is ValueKind.MAPPING:
        merged: dict[Any, Any] = dict(target) if isinstance(target, Mapping) else {}
        for key, value in source.items():
            if classify(value) in (ValueKind.MAPPING, ValueKind.INDEXED):
                merged[key] = _merge_one(merged.get(key), value)
            else:
                merged[key] = _copy_value(value)
        return merged

    if kind is ValueKind.INDEXED:
        elements = list(target) if isinstance(target, (list, tuple)) else []
        for index, value in source.items():
            if index > len(elements):
                raise ValueError(
                    f"Patch index {index} is past the end of an array of length {len(elements)}"
                )
            current = elements[index] if index < len(elements) else None
            if classify(value) in (ValueKind.MAPPING, ValueKind.INDEXED):
                value = _merge_one(current, value)
            else:
                value = _copy_value(value)
            if index < len(elements):
                elements[index] = value
            else:
                elements.append(value)
        return elements

    return _copy_value(source)


def _copy_value(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return list(value)
    return value


__all__ = [
    "IndexedArrayPatch",
    "ValueKind",
    "classify",
    "merge_deep",
    "normalize_patch",
    "to_transport",
]
