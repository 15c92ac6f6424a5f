"""Player record shape shared by the save API and the client session."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .bundles import BundleWithStatus

PLAYER_SECTIONS: tuple[str, ...] = (
    "general",
    "bundles",
    "fishing",
    "cooking",
    "crafting",
    "shipping",
    "museum",
    "social",
    "monsters",
    "walnuts",
    "notes",
    "scraps",
    "perfection",
    "powers",
)

ARRAY_SECTIONS = frozenset({"bundles"})


class PlayerRecord(BaseModel):
    """Full save-derived record for a single player.

    Every section is optional on upload and defaults to an empty payload, so
    stored records always carry the complete set of sections.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    general: dict[str, Any] = Field(default_factory=dict)
    bundles: list[dict[str, Any]] = Field(default_factory=list)
    fishing: dict[str, Any] = Field(default_factory=dict)
    cooking: dict[str, Any] = Field(default_factory=dict)
    crafting: dict[str, Any] = Field(default_factory=dict)
    shipping: dict[str, Any] = Field(default_factory=dict)
    museum: dict[str, Any] = Field(default_factory=dict)
    social: dict[str, Any] = Field(default_factory=dict)
    monsters: dict[str, Any] = Field(default_factory=dict)
    walnuts: dict[str, Any] = Field(default_factory=dict)
    notes: dict[str, Any] = Field(default_factory=dict)
    scraps: dict[str, Any] = Field(default_factory=dict)
    perfection: dict[str, Any] = Field(default_factory=dict)
    powers: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def _validate_id(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise TypeError("Player id must be provided as a string.")
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Player id must be a non-empty string.")
        return trimmed

    @field_validator(*PLAYER_SECTIONS, mode="before")
    @classmethod
    def _default_missing_section(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return [] if info.field_name in ARRAY_SECTIONS else {}
        return value

    @field_validator("bundles")
    @classmethod
    def _validate_bundles(cls, value: list[dict[str, Any]]) -> list[dict[str, Any]]:
        for index, entry in enumerate(value):
            try:
                BundleWithStatus.from_payload(entry)
            except ValueError as exc:
                raise ValueError(f"Bundle entry {index} is malformed: {exc}") from exc
        return value

    def to_record(self) -> dict[str, Any]:
        """Return the JSON object stored for this player."""

        return self.model_dump(by_alias=True)


def validate_patch_sections(patch: Mapping[str, Any], player_id: str) -> dict[str, Any]:
    """Return ``patch`` restricted to known sections.

    Raises:
        ValueError: If the patch names an unknown section or tries to change
            the player's identifier.
    """

    if not isinstance(patch, Mapping):
        raise ValueError("Patch body must be a JSON object.")

    validated: dict[str, Any] = {}
    for key, value in patch.items():
        if key == "_id":
            if value != player_id:
                raise ValueError("Patch cannot change the player identifier.")
            continue
        if key not in PLAYER_SECTIONS:
            raise ValueError(f"Unknown player section '{key}'.")
        validated[key] = value
    return validated


__all__ = [
    "ARRAY_SECTIONS",
    "PLAYER_SECTIONS",
    "PlayerRecord",
    "validate_patch_sections",
]
