"""FastAPI application exposing the player save endpoints."""

from __future__ import annotations

import logging
import secrets
from typing import Any, Literal

from fastapi import Body, Depends, FastAPI, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict, Field

from ..persistence import FileSaveStore, InMemorySaveStore, SaveStore
from ..players import PlayerRecord, validate_patch_sections
from .settings import SaveApiSettings

logger = logging.getLogger(__name__)

UID_COOKIE = "uid"
UID_COOKIE_MAX_AGE_SECONDS = 60 * 60 * 24 * 365


class SaveMutationResponse(BaseModel):
    """Response payload returned after records are uploaded."""

    saved: list[str] = Field(default_factory=list)


class DeleteRequest(BaseModel):
    """Optional body selecting what a ``DELETE /api/saves`` call removes.

    ``type == "player"`` removes the record named by ``_id``. Any other type
    removes the caller's whole identity.
    """

    model_config = ConfigDict(populate_by_name=True)

    type: str | None = None
    id: str | None = Field(None, alias="_id")


DeleteScope = Literal["all", "player", "identity"]


def _delete_scope(payload: DeleteRequest | None) -> DeleteScope:
    if payload is None:
        return "all"
    if payload.type == "player":
        return "player"
    return "identity"


def create_app(
    store: SaveStore | None = None,
    *,
    settings: SaveApiSettings | None = None,
) -> FastAPI:
    """Create a FastAPI app exposing the save endpoints."""

    resolved_settings = settings or SaveApiSettings.from_env()

    save_store = store
    if save_store is None:
        if resolved_settings.save_root is not None:
            save_store = FileSaveStore(resolved_settings.save_root)
        else:
            save_store = InMemorySaveStore()

    def _resolve_user_id(request: Request, response: Response) -> str:
        uid = request.cookies.get(UID_COOKIE)
        if uid and uid.strip():
            return uid.strip()

        uid = secrets.token_hex(16)
        response.set_cookie(
            UID_COOKIE,
            uid,
            max_age=UID_COOKIE_MAX_AGE_SECONDS,
            domain=resolved_settings.cookie_domain,
        )
        logger.info("Issued anonymous user id %s", uid)
        return uid

    tags_metadata = [
        {
            "name": "Saves",
            "description": (
                "Upload, list, patch and delete the save-derived records of the "
                "caller's players."
            ),
        },
    ]

    app = FastAPI(
        title="Stardew Tracker Save API",
        version="0.1.0",
        description=(
            "HTTP API storing per-player progress records. Partial edits are "
            "sent as normalised patches whose arrays are fully expanded."
        ),
        openapi_tags=tags_metadata,
    )

    @app.get(
        "/api/saves",
        response_model=list[PlayerRecord],
        tags=["Saves"],
    )
    def list_saves(user_id: str = Depends(_resolve_user_id)) -> list[dict[str, Any]]:
        try:
            return save_store.list_players(user_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except (RuntimeError, OSError) as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    @app.post(
        "/api/saves",
        response_model=SaveMutationResponse,
        tags=["Saves"],
    )
    def upload_saves(
        players: list[PlayerRecord],
        user_id: str = Depends(_resolve_user_id),
    ) -> SaveMutationResponse:
        saved: list[str] = []
        try:
            for player in players:
                save_store.replace(user_id, player.to_record())
                saved.append(player.id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except (RuntimeError, OSError) as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        logger.info("Stored %d player record(s) for user %s", len(saved), user_id)
        return SaveMutationResponse(saved=saved)

    @app.patch(
        "/api/saves/{player_id}",
        response_model=PlayerRecord,
        tags=["Saves"],
    )
    def patch_save(
        player_id: str,
        patch: dict[str, Any] = Body(...),
        user_id: str = Depends(_resolve_user_id),
    ) -> dict[str, Any]:
        try:
            sections = validate_patch_sections(patch, player_id)
            return save_store.patch(user_id, player_id, sections)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except (RuntimeError, OSError) as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    @app.delete(
        "/api/saves",
        status_code=204,
        response_class=Response,
        tags=["Saves"],
    )
    def delete_saves(
        response: Response,
        payload: DeleteRequest | None = Body(None),
        user_id: str = Depends(_resolve_user_id),
    ) -> None:
        scope = _delete_scope(payload)
        try:
            if scope == "player":
                if payload is None or not payload.id:
                    raise ValueError("Deleting a player requires '_id'.")
                save_store.delete(user_id, payload.id)
            else:
                save_store.delete_all(user_id)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except (RuntimeError, OSError) as exc:
            raise HTTPException(status_code=500, detail=str(exc)) from exc

        if scope == "identity":
            response.delete_cookie(UID_COOKIE, domain=resolved_settings.cookie_domain)
        logger.info("Deleted %s saves for user %s", scope, user_id)

    return app


__all__ = ["DeleteRequest", "SaveMutationResponse", "create_app"]
