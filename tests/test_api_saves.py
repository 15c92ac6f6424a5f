"""Tests for the FastAPI save endpoints."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from stardewtracker.api import SaveApiSettings, create_app
from stardewtracker.api.app import UID_COOKIE
from stardewtracker.persistence import FileSaveStore, InMemorySaveStore
from stardewtracker.players import PLAYER_SECTIONS


def _client(
    store: InMemorySaveStore | None = None, *, uid: str | None = "user-1"
) -> TestClient:
    app = create_app(store or InMemorySaveStore(), settings=SaveApiSettings())
    cookies = {UID_COOKIE: uid} if uid is not None else None
    return TestClient(app, cookies=cookies)


def test_get_saves_issues_anonymous_uid() -> None:
    client = _client(uid=None)

    response = client.get("/api/saves")

    assert response.status_code == 200
    assert response.json() == []
    issued = response.cookies.get(UID_COOKIE)
    assert issued
    assert len(issued) == 32


def test_existing_uid_cookie_is_reused() -> None:
    store = InMemorySaveStore()
    client = _client(store)

    response = client.post("/api/saves", json=[{"_id": "farmer-1"}])

    assert response.status_code == 200
    assert UID_COOKIE not in response.cookies
    assert store.list_users() == ["user-1"]


def test_upload_fills_missing_sections(player_record: dict[str, Any]) -> None:
    store = InMemorySaveStore()
    client = _client(store)

    response = client.post(
        "/api/saves", json=[player_record, {"_id": "farmer-2", "general": None}]
    )

    assert response.status_code == 200
    assert response.json() == {"saved": ["farmer-1", "farmer-2"]}

    listed = client.get("/api/saves").json()
    assert [record["_id"] for record in listed] == ["farmer-1", "farmer-2"]
    assert set(listed[1]) == {"_id", *PLAYER_SECTIONS}
    assert listed[1]["bundles"] == []
    assert listed[1]["general"] == {}
    assert listed[0]["bundles"] == player_record["bundles"]


def test_upload_requires_player_id() -> None:
    response = _client().post("/api/saves", json=[{"general": {}}])

    assert response.status_code == 422


def test_saves_are_isolated_per_user(player_record: dict[str, Any]) -> None:
    store = InMemorySaveStore()
    _client(store, uid="user-1").post("/api/saves", json=[player_record])

    assert _client(store, uid="user-2").get("/api/saves").json() == []


def test_patch_applies_sparse_bundle_status(player_record: dict[str, Any]) -> None:
    client = _client()
    client.post("/api/saves", json=[player_record])

    response = client.patch(
        "/api/saves/farmer-1",
        json={"bundles": {"1": {"bundleStatus": {"2": True}}}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["bundles"][1]["bundleStatus"] == [False, False, True, False]
    assert body["bundles"][0]["bundleStatus"] == [True, False, False, False]
    assert body["general"] == player_record["general"]

    stored = client.get("/api/saves").json()[0]
    assert stored["bundles"][1]["bundleStatus"] == [False, False, True, False]


def test_patch_accepts_normalised_arrays(player_record: dict[str, Any]) -> None:
    client = _client()
    client.post("/api/saves", json=[player_record])

    response = client.patch(
        "/api/saves/farmer-1",
        json={"fishing": {"fishCaught": ["128", "129"]}, "general": {"name": "Leah"}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["fishing"] == {"fishCaught": ["128", "129"]}
    assert body["general"] == {"name": "Leah", "farmName": "Hilltop"}


def test_patch_unknown_player_returns_404() -> None:
    response = _client().patch("/api/saves/nobody", json={"general": {}})

    assert response.status_code == 404


@pytest.mark.parametrize(
    "payload",
    [
        {"inventory": {}},
        {"_id": "someone-else"},
        {"bundles": {"9": {"bundleStatus": [True]}}},
    ],
)
def test_patch_rejects_invalid_bodies(
    player_record: dict[str, Any], payload: dict[str, Any]
) -> None:
    client = _client()
    client.post("/api/saves", json=[player_record])

    response = client.patch("/api/saves/farmer-1", json=payload)

    assert response.status_code == 400


def test_delete_without_body_removes_all_records(player_record: dict[str, Any]) -> None:
    store = InMemorySaveStore()
    client = _client(store)
    client.post("/api/saves", json=[player_record, {"_id": "farmer-2"}])

    response = client.delete("/api/saves")

    assert response.status_code == 204
    assert store.list_players("user-1") == []
    assert "set-cookie" not in response.headers


def test_delete_single_player(player_record: dict[str, Any]) -> None:
    store = InMemorySaveStore()
    client = _client(store)
    client.post("/api/saves", json=[player_record, {"_id": "farmer-2"}])

    response = client.request(
        "DELETE", "/api/saves", json={"type": "player", "_id": "farmer-1"}
    )

    assert response.status_code == 204
    assert [record["_id"] for record in store.list_players("user-1")] == ["farmer-2"]


def test_delete_player_requires_id() -> None:
    response = _client().request("DELETE", "/api/saves", json={"type": "player"})

    assert response.status_code == 400


def test_delete_identity_clears_cookie(player_record: dict[str, Any]) -> None:
    store = InMemorySaveStore()
    client = _client(store)
    client.post("/api/saves", json=[player_record])

    response = client.request("DELETE", "/api/saves", json={"type": "account"})

    assert response.status_code == 204
    assert store.list_users() == []
    set_cookie = response.headers.get("set-cookie", "")
    assert set_cookie.startswith(f"{UID_COOKIE}=")
    assert "Max-Age=0" in set_cookie


def test_create_app_uses_file_store_when_configured(
    tmp_path: Path, player_record: dict[str, Any]
) -> None:
    settings = SaveApiSettings(save_root=tmp_path)
    client = TestClient(create_app(settings=settings), cookies={UID_COOKIE: "user-1"})

    response = client.post("/api/saves", json=[player_record])

    assert response.status_code == 200
    assert (tmp_path / "user-1" / "farmer-1.json").exists()
    assert FileSaveStore(tmp_path).load("user-1", "farmer-1")["_id"] == "farmer-1"


def test_openapi_lists_save_routes() -> None:
    schema = _client().get("/openapi.json").json()

    assert "/api/saves" in schema["paths"]
    assert "/api/saves/{player_id}" in schema["paths"]
    assert schema["tags"][0]["name"] == "Saves"


@pytest.mark.parametrize(
    "payload",
    [
        {"general": 5},
        {"bundles": {"0": 5}},
        {"bundles": {"2": {"bundle": {"name": "Dye"}, "bundleStatus": {"0": True}}}},
    ],
)
def test_patch_with_malformed_section_is_rejected_and_not_stored(
    player_record: dict[str, Any], payload: dict[str, Any]
) -> None:
    store = InMemorySaveStore()
    client = _client(store)
    client.post("/api/saves", json=[player_record])
    before = store.load("user-1", "farmer-1")

    response = client.patch("/api/saves/farmer-1", json=payload)

    assert response.status_code == 400
    assert store.load("user-1", "farmer-1") == before
    listed = client.get("/api/saves")
    assert listed.status_code == 200
    assert listed.json()[0]["general"] == player_record["general"]


def test_patch_can_append_a_bundle(player_record: dict[str, Any]) -> None:
    client = _client()
    client.post("/api/saves", json=[player_record])

    response = client.patch(
        "/api/saves/farmer-1",
        json={
            "bundles": {
                "2": {
                    "bundle": {"name": "Dye", "itemsRequired": 1, "items": [{"itemID": "420"}]},
                    "bundleStatus": [True],
                }
            }
        },
    )

    assert response.status_code == 200
    bundles = response.json()["bundles"]
    assert len(bundles) == 3
    assert bundles[2]["bundleStatus"] == [True]


def test_upload_rejects_malformed_bundles() -> None:
    response = _client().post(
        "/api/saves",
        json=[{"_id": "farmer-1", "bundles": [{"bundle": {"name": "Dye"}, "bundleStatus": "no"}]}],
    )

    assert response.status_code == 422
