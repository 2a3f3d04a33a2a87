import uuid

from user_manager.db.repositories import records as records_repo


def _create(client, name="Alice", email="alice@example.com", **extra):
    r = client.post("/records", json={"name": name, "email": email, **extra})
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "service": "user-manager"}


def test_create_returns_store_assigned_id_and_defaults(client):
    body = _create(client, name="  Alice  ")
    assert uuid.UUID(body["id"])
    assert body["name"] == "Alice"
    assert body["status"] == "active"
    assert body["created_at"] and body["updated_at"]


def test_list_returns_insertion_order(client):
    ids = [_create(client, name=n, email=f"{n.lower()}@example.com")["id"] for n in ["Zed", "Amy", "Bob"]]
    r = client.get("/records")
    assert r.status_code == 200
    assert [rec["id"] for rec in r.json()] == ids


def test_list_pagination(client):
    for n in ["a", "b", "c"]:
        _create(client, name=n, email=f"{n}@example.com")
    r = client.get("/records", params={"skip": 1, "limit": 1})
    assert [rec["name"] for rec in r.json()] == ["b"]
    assert client.get("/records", params={"limit": 0}).status_code == 422


def test_create_rejects_missing_and_invalid_fields(client):
    assert client.post("/records", json={}).status_code == 422
    assert client.post("/records", json={"name": "", "email": "a@example.com"}).status_code == 422
    assert client.post("/records", json={"name": "A", "email": "not-an-email"}).status_code == 422
    assert client.post("/records", json={"name": "A", "email": "a@example.com", "status": "gone"}).status_code == 422


def test_create_duplicate_email_conflict(client):
    _create(client)
    r = client.post("/records", json={"name": "Other", "email": "ALICE@example.com"})
    assert r.status_code == 409
    assert "already exists" in r.json()["detail"]


def test_get_record_and_not_found(client):
    created = _create(client)
    r = client.get(f"/records/{created['id']}")
    assert r.status_code == 200
    assert r.json()["email"] == "alice@example.com"
    assert client.get(f"/records/{uuid.uuid4()}").status_code == 404
    assert client.get("/records/not-a-uuid").status_code == 422


def test_patch_updates_only_given_fields(client):
    created = _create(client)
    r = client.patch(f"/records/{created['id']}", json={"name": "Alicia"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["name"] == "Alicia"
    assert body["email"] == "alice@example.com"
    assert body["id"] == created["id"]


def test_patch_rejects_empty_payload_and_null_fields(client):
    created = _create(client)
    assert client.patch(f"/records/{created['id']}", json={}).status_code == 422
    assert client.patch(f"/records/{created['id']}", json={"name": None}).status_code == 422


def test_patch_email_conflict_excludes_self(client):
    a = _create(client)
    _create(client, name="Bob", email="bob@example.com")
    assert client.patch(f"/records/{a['id']}", json={"email": "alice@example.com"}).status_code == 200
    assert client.patch(f"/records/{a['id']}", json={"email": "bob@example.com"}).status_code == 409


def test_put_replaces_record(client):
    created = _create(client)
    r = client.put(
        f"/records/{created['id']}",
        json={"name": "Al", "email": "al@example.com", "status": "inactive"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "inactive"
    assert client.put(f"/records/{uuid.uuid4()}", json={"name": "X", "email": "x@example.com"}).status_code == 404


def test_delete_record(client):
    created = _create(client)
    r = client.delete(f"/records/{created['id']}")
    assert r.status_code == 204
    assert r.content == b""
    assert client.get("/records").json() == []
    assert client.delete(f"/records/{created['id']}").status_code == 404


def test_records_seeded_through_repository_are_listed(client, record_factory):
    record_factory("Seeded", "seeded@example.com", status="inactive")
    data = client.get("/records").json()
    assert [(r["name"], r["status"]) for r in data] == [("Seeded", "inactive")]


def test_unpaged_list_returns_every_record(client, record_factory):
    for i in range(105):
        record_factory(f"User {i}", f"user{i}@example.com")
    data = client.get("/records").json()
    assert len(data) == 105
    assert data[-1]["name"] == "User 104"
    assert len(client.get("/records", params={"limit": 100}).json()) == 100


def test_email_race_past_precheck_is_a_conflict(client, monkeypatch):
    _create(client)
    monkeypatch.setattr(records_repo, "get_record_by_email", lambda *args, **kwargs: None)
    r = client.post("/records", json={"name": "Other", "email": "alice@example.com"})
    assert r.status_code == 409
    assert "already exists" in r.json()["detail"]

    bob = _create(client, name="Bob", email="bob@example.com")
    r = client.patch(f"/records/{bob['id']}", json={"email": "alice@example.com"})
    assert r.status_code == 409
    assert client.get(f"/records/{bob['id']}").json()["email"] == "bob@example.com"
