"""Storage backends for player records, keyed by user and player id."""

from __future__ import annotations

import copy
import json
import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError

from .patching import merge_deep, normalize_patch
from .players import PlayerRecord

logger = logging.getLogger(__name__)

PlayerRecordPayload = Dict[str, Any]


class SaveStore(ABC):
    """Interface describing how player records are persisted."""

    @abstractmethod
    def list_players(self, user_id: str) -> List[PlayerRecordPayload]:
        """Return every record stored for ``user_id`` ordered by player id."""

    @abstractmethod
    def load(self, user_id: str, player_id: str) -> PlayerRecordPayload:
        """Return the record for the given player.

        Raises:
            KeyError: If the player cannot be found.
        """

    @abstractmethod
    def replace(self, user_id: str, record: Mapping[str, Any]) -> None:
        """Create or overwrite the record identified by ``record["_id"]``."""

    @abstractmethod
    def delete(self, user_id: str, player_id: str) -> None:
        """Remove the stored record if it exists."""

    @abstractmethod
    def delete_all(self, user_id: str) -> None:
        """Remove every record stored for ``user_id``."""

    @abstractmethod
    def list_users(self) -> List[str]:
        """Return all user identifiers with at least one stored record."""

    def patch(
        self, user_id: str, player_id: str, patch: Mapping[str, Any]
    ) -> PlayerRecordPayload:
        """Apply ``patch`` over the stored record and return the result.

        The patch is normalised against the stored record first, so sparse
        array updates are accepted as well as fully expanded ones.

        Raises:
            KeyError: If the player cannot be found.
            ValueError: If the patch addresses an array index that does not
                exist, or would leave the record with malformed sections. The
                stored record is left untouched in both cases.
        """

        current = self.load(user_id, player_id)
        normalized = normalize_patch(dict(patch), current)
        merged = merge_deep(current, normalized)
        merged["_id"] = current["_id"]
        try:
            record = PlayerRecord.model_validate(merged).to_record()
        except ValidationError as exc:
            raise ValueError(
                f"Patch would leave player '{player_id}' with an invalid record: {exc}"
            ) from exc
        self.replace(user_id, record)
        logger.debug(
            "Patched player %s sections %s", player_id, sorted(normalized.keys())
        )
        return record


class InMemorySaveStore(SaveStore):
    """Keep player records in local process memory."""

    def __init__(self) -> None:
        self._records: Dict[str, Dict[str, PlayerRecordPayload]] = {}

    def list_players(self, user_id: str) -> List[PlayerRecordPayload]:
        players = self._records.get(_validate_identifier(user_id, "user_id"), {})
        return [copy.deepcopy(players[key]) for key in sorted(players)]

    def load(self, user_id: str, player_id: str) -> PlayerRecordPayload:
        players = self._records.get(_validate_identifier(user_id, "user_id"), {})
        key = _validate_identifier(player_id, "player_id")
        try:
            return copy.deepcopy(players[key])
        except KeyError as exc:
            raise KeyError(f"Player '{player_id}' does not exist") from exc

    def replace(self, user_id: str, record: Mapping[str, Any]) -> None:
        user_key = _validate_identifier(user_id, "user_id")
        player_key = _record_id(record)
        self._records.setdefault(user_key, {})[player_key] = copy.deepcopy(dict(record))

    def delete(self, user_id: str, player_id: str) -> None:
        user_key = _validate_identifier(user_id, "user_id")
        player_key = _validate_identifier(player_id, "player_id")
        players = self._records.get(user_key)
        if players is None:
            return
        players.pop(player_key, None)
        if not players:
            del self._records[user_key]

    def delete_all(self, user_id: str) -> None:
        self._records.pop(_validate_identifier(user_id, "user_id"), None)

    def list_users(self) -> List[str]:
        return sorted(self._records.keys())


class FileSaveStore(SaveStore):
    """Persist player records as JSON files, one directory per user."""

    def __init__(self, storage_dir: Path) -> None:
        self.storage_dir = storage_dir
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def list_players(self, user_id: str) -> List[PlayerRecordPayload]:
        user_dir = self._user_dir(user_id)
        if not user_dir.is_dir():
            return []
        return [
            _read_record(path)
            for path in sorted(user_dir.glob("*.json"))
            if path.is_file()
        ]

    def load(self, user_id: str, player_id: str) -> PlayerRecordPayload:
        record_path = self._record_path(user_id, player_id)
        if not record_path.exists():
            raise KeyError(f"Player '{player_id}' does not exist")
        return _read_record(record_path)

    def replace(self, user_id: str, record: Mapping[str, Any]) -> None:
        record_path = self._record_path(user_id, _record_id(record))
        record_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            serialised = json.dumps(dict(record), ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as exc:
            raise ValueError("Player record could not be serialised to JSON.") from exc

        temporary = record_path.with_suffix(".json.tmp")
        try:
            temporary.write_text(serialised, encoding="utf-8")
            temporary.replace(record_path)
        except OSError as exc:
            raise RuntimeError("Failed to write player record.") from exc
        finally:
            if temporary.exists():
                temporary.unlink()

    def delete(self, user_id: str, player_id: str) -> None:
        record_path = self._record_path(user_id, player_id)
        if record_path.exists():
            record_path.unlink()

    def delete_all(self, user_id: str) -> None:
        user_dir = self._user_dir(user_id)
        if user_dir.is_dir():
            shutil.rmtree(user_dir)

    def list_users(self) -> List[str]:
        return sorted(
            user_dir.name
            for user_dir in self.storage_dir.iterdir()
            if user_dir.is_dir() and any(user_dir.glob("*.json"))
        )

    def _user_dir(self, user_id: str) -> Path:
        return self.storage_dir / _validate_identifier(user_id, "user_id")

    def _record_path(self, user_id: str, player_id: str) -> Path:
        validated = _validate_identifier(player_id, "player_id")
        return self._user_dir(user_id) / f"{validated}.json"


def _read_record(path: Path) -> PlayerRecordPayload:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Stored player record '{path.stem}' is corrupt.") from exc
    if not isinstance(payload, dict):
        raise RuntimeError(f"Stored player record '{path.stem}' is not an object.")
    return payload


def _record_id(record: Mapping[str, Any]) -> str:
    if not isinstance(record, Mapping):
        raise TypeError("record must be a mapping")
    return _validate_identifier(record.get("_id"), "_id")


def _validate_identifier(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field_name} must be a string")
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field_name} must be a non-empty string")
    if "/" in stripped or "\\" in stripped or stripped in {".", ".."}:
        raise ValueError(f"{field_name} must not contain path separators")
    return stripped


__all__ = [
    "FileSaveStore",
    "InMemorySaveStore",
    "PlayerRecordPayload",
    "SaveStore",
]
