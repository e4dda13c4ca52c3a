from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from notebox.db import GetDb
from notebox.main import app
from notebox.modules.auth.deps import RequireAuthenticated
from notebox.modules.notes.deps import BuildEncryptionCodec, GetEncryptionCodec


@pytest.fixture()
def client(db, codec, owner):
    def _get_db():
        yield db

    app.dependency_overrides[GetDb] = _get_db
    app.dependency_overrides[RequireAuthenticated] = lambda: owner
    app.dependency_overrides[GetEncryptionCodec] = lambda: codec
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/api/health", headers={"X-Request-Id": "req-1"})
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-Id"] == "req-1"


def test_create_and_fetch_note(client):
    created = client.post("/api/notes", json={"title": "Hello", "content": "world", "tags": ["a"]})
    assert created.status_code == 201
    body = created.json()
    assert body["message"] == "Note created successfully"
    assert body["note"]["content"] == "world"
    assert "encrypted_content" not in body["note"]

    fetched = client.get(f"/api/notes/{body['note']['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["note"]["title"] == "Hello"


def test_missing_note_is_404(client):
    response = client.get("/api/notes/9999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Note not found"


def test_public_note_roundtrip(client):
    created = client.post("/api/notes", json={"title": "Post", "content": "hi", "is_public": True}).json()
    share_id = created["note"]["public_share_id"]

    public = client.get(f"/api/notes/public/{share_id}")
    assert public.status_code == 200
    assert public.json()["note"]["content"] == "hi"
    assert "owner_id" not in public.json()["note"]

    assert client.get("/api/notes/public/ffffffffffff").status_code == 404


def test_update_autosave_and_delete(client):
    note_id = client.post("/api/notes", json={"title": "Draft"}).json()["note"]["id"]

    updated = client.put(f"/api/notes/{note_id}", json={"is_draft": False})
    assert updated.status_code == 200
    assert updated.json()["note"]["published_at"] is not None

    autosaved = client.patch(f"/api/notes/{note_id}/autosave", json={"content": "typing"})
    assert autosaved.status_code == 200
    assert autosaved.json()["auto_saved_at"]

    deleted = client.delete(f"/api/notes/{note_id}")
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Note deleted successfully"}
    assert client.delete(f"/api/notes/{note_id}").status_code == 404


def test_null_title_maps_to_400_with_field(client):
    note_id = client.post("/api/notes", json={"title": "Keep"}).json()["note"]["id"]
    response = client.put(f"/api/notes/{note_id}", json={"title": None})
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "title"


def test_list_envelope_and_date_validation(client):
    for index in range(3):
        client.post("/api/notes", json={"title": f"Note {index}"})

    listed = client.get("/api/notes", params={"limit": 2, "sort_by": "bogus"})
    assert listed.status_code == 200
    body = listed.json()
    assert len(body["notes"]) == 2
    assert body["pagination"]["total"] == 3
    assert body["pagination"]["hasNext"] is True
    assert "query_time" in body["meta"]

    inverted = client.get(
        "/api/notes",
        params={"date_from": "2026-02-01T00:00:00", "date_to": "2026-01-01T00:00:00"},
    )
    assert inverted.status_code == 400
    assert inverted.json()["detail"]["field"] == "date_from"


def test_stats_route(client):
    client.post("/api/notes", json={"title": "One", "is_encrypted": True, "content": "x"})
    response = client.get("/api/notes/stats/overview")
    assert response.status_code == 200
    assert response.json()["stats"]["encrypted"] == 1


def test_label_routes(client):
    created = client.post("/api/labels", json={"name": "focus"})
    assert created.status_code == 201
    label_id = created.json()["label"]["id"]

    assert client.post("/api/labels", json={"name": "focus"}).status_code == 409
    assert client.post("/api/labels", json={"name": "bad", "color": "red"}).status_code == 422

    note_id = client.post("/api/notes", json={"title": "Tagged"}).json()["note"]["id"]
    assigned = client.post(f"/api/notes/{note_id}/labels", json={"labelIds": [label_id, label_id]})
    assert assigned.status_code == 200
    assert assigned.json()["tagIds"] == [label_id]

    unknown = client.post(f"/api/notes/{note_id}/labels", json={"labelIds": [label_id + 100]})
    assert unknown.status_code == 400
    assert unknown.json()["detail"]["field"] == "labelIds"

    joined = client.get("/api/notes-with-labels", params={"label_id": label_id})
    assert [note["title"] for note in joined.json()["notes"]] == ["Tagged"]
    assert joined.json()["notes"][0]["labels"][0]["name"] == "focus"


def test_category_routes(client):
    parent = client.post("/api/categories", json={"name": "Parent"}).json()["category"]
    child = client.post(
        "/api/categories", json={"name": "Child", "parent_category_id": parent["id"]}
    ).json()["category"]
    assert child["parent_category_id"] == parent["id"]

    cycle = client.put(f"/api/categories/{parent['id']}", json={"parent_category_id": child["id"]})
    assert cycle.status_code == 400

    assert client.delete(f"/api/categories/{parent['id']}").status_code == 200
    categories = client.get("/api/categories").json()["categories"]
    assert [(item["name"], item["parent_category_id"]) for item in categories] == [("Child", None)]


def test_requests_without_token_are_rejected(db, codec):
    def _get_db():
        yield db

    app.dependency_overrides[GetDb] = _get_db
    app.dependency_overrides[GetEncryptionCodec] = lambda: codec
    try:
        response = TestClient(app).get("/api/notes")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 401


def test_codec_dependency_requires_configured_state():
    request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace()))
    with pytest.raises(HTTPException) as exc_info:
        GetEncryptionCodec(request)
    assert exc_info.value.status_code == 503


def test_codec_builder_fails_fast_on_bad_keys(monkeypatch):
    monkeypatch.delenv("NOTES_ENCRYPTION_KEYS", raising=False)
    with pytest.raises(RuntimeError):
        BuildEncryptionCodec()

    monkeypatch.setenv("NOTES_ENCRYPTION_KEYS", "not-a-key")
    with pytest.raises(RuntimeError):
        BuildEncryptionCodec()
