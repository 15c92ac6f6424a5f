"""Client-side player state with optimistic patching against the save API.

Edits are normalised against the in-memory record, merged into it
immediately, and submitted to the gateway without waiting for the UI to be
updated. When the gateway rejects the write the error is raised to the caller
and, depending on the :class:`RollbackPolicy`, the optimistic change is kept
or reverted.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Protocol, Sequence

import httpx

from .assembler import get_active_bundles, set_status_patch
from .bundles import BundleWithStatus
from .catalog import CommunityCenter
from .patching import merge_deep, normalize_patch, to_transport

logger = logging.getLogger(__name__)

PlayerPayload = dict[str, Any]


class RollbackPolicy(str, Enum):
    """What happens to an optimistic update when the gateway write fails."""

    KEEP = "keep"
    ROLLBACK = "rollback"


class GatewayError(RuntimeError):
    """Raised when the save gateway rejects or fails a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SaveGateway(Protocol):
    """Protocol for the remote store holding authoritative player records."""

    async def fetch_players(self) -> list[PlayerPayload]:
        """Return every record visible to the caller."""

    async def upload_players(self, players: Sequence[Mapping[str, Any]]) -> None:
        """Create or replace the given full records."""

    async def patch_player(
        self, player_id: str, patch: Mapping[str, Any]
    ) -> PlayerPayload | None:
        """Apply a normalised patch to the stored record."""


class HttpSaveGateway:
    """:class:`SaveGateway` speaking to the save API over HTTP."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_path: str = "/api/saves",
    ) -> None:
        self._client = client
        self._base_path = base_path.rstrip("/")

    async def fetch_players(self) -> list[PlayerPayload]:
        response = await self._send("GET", self._base_path)
        payload = response.json()
        if not isinstance(payload, list):
            raise GatewayError("Save API returned a non-list player payload.")
        return payload

    async def upload_players(self, players: Sequence[Mapping[str, Any]]) -> None:
        await self._send(
            "POST", self._base_path, json=[to_transport(player) for player in players]
        )

    async def patch_player(
        self, player_id: str, patch: Mapping[str, Any]
    ) -> PlayerPayload | None:
        response = await self._send(
            "PATCH", f"{self._base_path}/{player_id}", json=to_transport(patch)
        )
        return response.json() if response.content else None

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise GatewayError(f"{method} {url} failed: {exc}") from exc

        if response.is_error:
            raise GatewayError(
                f"{method} {url} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response


class PlayerSession:
    """Hold the caller's players and apply edits to the active one."""

    def __init__(
        self,
        gateway: SaveGateway,
        *,
        rollback_policy: RollbackPolicy = RollbackPolicy.KEEP,
        catalog: CommunityCenter | None = None,
    ) -> None:
        self._gateway = gateway
        self.rollback_policy = rollback_policy
        self._catalog = catalog
        self._players: list[PlayerPayload] = []
        self._active_player_id: str | None = None

    @property
    def players(self) -> list[PlayerPayload]:
        return list(self._players)

    @property
    def active_player(self) -> PlayerPayload | None:
        if self._active_player_id is None:
            return None
        for player in self._players:
            if player.get("_id") == self._active_player_id:
                return player
        return None

    def set_active_player(self, player: Mapping[str, Any] | None) -> None:
        self._active_player_id = None if player is None else str(player["_id"])

    async def load(self) -> list[PlayerPayload]:
        """Fetch the caller's players, activating the first when none is."""

        self._players = await self._gateway.fetch_players()
        if self._active_player_id is None and self._players:
            self._active_player_id = str(self._players[0]["_id"])
        return self.players

    async def upload_players(self, players: Sequence[Mapping[str, Any]]) -> None:
        """Store full records remotely and make the first one active."""

        await self._gateway.upload_players(players)
        self._players = [dict(player) for player in players]
        if self._players:
            self._active_player_id = str(self._players[0]["_id"])

    async def patch_player(self, patch: Mapping[str, Any]) -> None:
        """Apply ``patch`` to the active player optimistically and persist it.

        Does nothing when no player is active.

        Raises:
            GatewayError: If the gateway write fails. The optimistic change is
                reverted first when the policy is :attr:`RollbackPolicy.ROLLBACK`
                and no later edit has replaced it.
        """

        previous = self.active_player
        if previous is None:
            return

        player_id = str(previous["_id"])
        normalized = normalize_patch(patch, previous)
        optimistic = merge_deep(previous, normalized)
        self._replace_player(player_id, previous, optimistic)

        try:
            await self._gateway.patch_player(player_id, normalized)
        except GatewayError:
            if self.rollback_policy is RollbackPolicy.ROLLBACK:
                if self._replace_player(player_id, optimistic, previous):
                    logger.warning("Reverted optimistic patch for player %s", player_id)
            else:
                logger.warning(
                    "Patch for player %s failed; keeping optimistic state", player_id
                )
            raise

    async def set_status(
        self, bundle_name: str, item_index: int, completed: bool
    ) -> bool:
        """Mark one bundle item of the active player (in)complete.

        Returns ``False`` when there is no active player or it has no bundle
        called ``bundle_name``.
        """

        player = self.active_player
        if player is None:
            return False
        patch = set_status_patch(player, bundle_name, item_index, completed)
        if patch is None:
            return False
        await self.patch_player(patch)
        return True

    def active_bundles(self) -> list[BundleWithStatus]:
        return get_active_bundles(self.active_player, self._catalog)

    def _replace_player(
        self, player_id: str, expected: PlayerPayload, replacement: PlayerPayload
    ) -> bool:
        """Swap in ``replacement`` if the stored record is still ``expected``."""

        for index, player in enumerate(self._players):
            if player.get("_id") == player_id:
                if player is not expected:
                    return False
                self._players[index] = replacement
                return True
        return False


__all__ = [
    "GatewayError",
    "HttpSaveGateway",
    "PlayerSession",
    "RollbackPolicy",
    "SaveGateway",
]
