"""API tests against in-memory card storage. No Neo4j required."""

import threading
import time

import pytest
from fastapi.testclient import TestClient

from api import main as api_main
from api.main import app
from cardkeep.application import CardRepository
from cardkeep.domain import CardDraft
from cardkeep.infrastructure import InMemoryCardStorage


@pytest.fixture
def storage():
    return InMemoryCardStorage()


@pytest.fixture
def client(storage):
    app.state.repository = CardRepository(storage)
    yield TestClient(app)
    app.state.repository = None


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_get_and_list(client):
    r = client.post("/cards", json={"id": "c1", "name": "Jane Doe", "email": "jane@acme.com"})
    assert r.status_code == 201
    body = r.json()
    assert body["id"] == "c1"
    assert body["created_at"] == body["updated_at"]

    client.post("/cards", json={"id": "c2", "name": "Bob"})
    assert [c["id"] for c in client.get("/cards").json()] == ["c2", "c1"]
    assert client.get("/cards/c1").json()["email"] == "jane@acme.com"


def test_create_duplicate_returns_conflict_with_existing_card(client):
    client.post("/cards", json={"id": "c1", "name": "Jane Doe", "email": "jane@acme.com"})
    r = client.post("/cards", json={"id": "c2", "name": "J. Doe", "email": "JANE@ACME.COM"})
    assert r.status_code == 409
    assert r.json()["duplicate"]["id"] == "c1"
    assert client.get("/cards/c2").status_code == 404


def test_create_without_name_is_bad_request(client):
    assert client.post("/cards", json={"name": "   "}).status_code == 400


def test_duplicate_preflight_stores_nothing(client):
    client.post("/cards", json={"id": "c1", "name": "Jane", "phone": "+1 202 555 1234"})
    r = client.post("/cards/duplicates", json={"name": "Other", "phone": "12025551234"})
    assert r.status_code == 200
    assert r.json()["duplicate"]["id"] == "c1"

    r = client.post("/cards/duplicates", json={"name": "Nobody"})
    assert r.json() == {"duplicate": None}
    assert len(client.get("/cards").json()) == 1


def test_update_card(client):
    client.post("/cards", json={"id": "c1", "name": "Jane", "company": "Acme"})
    r = client.patch("/cards/c1", json={"title": "CTO"})
    assert r.status_code == 200
    assert r.json()["title"] == "CTO"
    assert r.json()["company"] == "Acme"

    assert client.patch("/cards/missing", json={"title": "CTO"}).status_code == 404
    assert client.patch("/cards/c1", json={"name": ""}).status_code == 400


def test_delete_is_idempotent(client):
    client.post("/cards", json={"id": "c1", "name": "Jane"})
    assert client.delete("/cards/c1").status_code == 204
    assert client.delete("/cards/c1").status_code == 204
    assert client.get("/cards/c1").status_code == 404


def test_search(client):
    client.post("/cards", json={"id": "c1", "name": "Jane", "company": "Acme"})
    client.post("/cards", json={"id": "c2", "name": "Bob", "company": "Globex"})
    assert [c["id"] for c in client.get("/cards/search", params={"q": "acme"}).json()] == ["c1"]
    assert client.get("/cards/search", params={"q": ""}).json() == []


def test_export_csv_and_vcard(client):
    client.post("/cards", json={"id": "c1", "name": "Jane", "email": "jane@acme.com"})
    r = client.get("/cards/export.csv")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "jane@acme.com" in r.text

    r = client.get("/cards/export.vcf")
    assert r.status_code == 200
    assert "FN:Jane" in r.text


def test_persistence_failure_returns_503_and_keeps_card(client, storage):
    storage.fail_writes = True
    r = client.post("/cards", json={"id": "c1", "name": "Jane"})
    assert r.status_code == 503
    assert r.json()["card_id"] == "c1"
    assert client.get("/cards/c1").status_code == 200


def test_json_storage_selected_from_environment(tmp_path, monkeypatch):
    from api import main as api_main

    data_file = tmp_path / "cards.json"
    monkeypatch.setenv("CARDKEEP_STORAGE", "json")
    monkeypatch.setenv("CARDKEEP_DATA_FILE", str(data_file))
    app.state.repository = None
    try:
        client = TestClient(app)
        assert client.post("/cards", json={"id": "c1", "name": "Jane"}).status_code == 201
        assert data_file.exists()
        assert isinstance(api_main.get_repository(app), CardRepository)
    finally:
        app.state.repository = None


def test_unknown_storage_kind_is_rejected(monkeypatch):
    from api import main as api_main

    monkeypatch.setenv("CARDKEEP_STORAGE", "carrier-pigeon")
    with pytest.raises(ValueError):
        api_main._build_storage(app)


def test_concurrent_first_requests_share_one_repository(monkeypatch):
    built = []

    def slow_build_storage(app):
        time.sleep(0.2)
        storage = InMemoryCardStorage()
        built.append(storage)
        return storage

    monkeypatch.setattr(api_main, "_build_storage", slow_build_storage)
    app.state.repository = None
    repos = []
    try:
        threads = [
            threading.Thread(target=lambda: repos.append(api_main.get_repository(app)))
            for _ in range(2)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(built) == 1
        assert repos[0] is repos[1]
        repos[0].insert(CardDraft(id="a", name="Alice"))
        repos[1].insert(CardDraft(id="b", name="Bob"))
        assert [c.id for c in built[0].load_all()] == ["b", "a"]
    finally:
        app.state.repository = None


@pytest.mark.parametrize(
    "field,value",
    [("email", "not-an-email"), ("phone", "call me"), ("website", "not a site")],
)
def test_update_rejects_malformed_contact_field(client, field, value):
    client.post("/cards", json={"id": "c1", "name": "Jane"})
    r = client.patch("/cards/c1", json={field: value})
    assert r.status_code == 400
    assert r.json()["detail"][0]["loc"][-1] == field
    assert client.get("/cards/c1").json()[field] is None


def test_update_accepts_well_formed_contact_fields(client):
    client.post("/cards", json={"id": "c1", "name": "Jane"})
    r = client.patch(
        "/cards/c1",
        json={"email": "jane@acme.com", "phone": "(202) 555-1234", "website": "https://acme.com"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["email"] == "jane@acme.com"
    assert body["phone"] == "(202) 555-1234"
    assert body["website"] == "https://acme.com"


def test_update_with_blank_email_clears_it(client):
    client.post("/cards", json={"id": "c1", "name": "Jane", "email": "jane@acme.com"})
    r = client.patch("/cards/c1", json={"email": ""})
    assert r.status_code == 200
    assert r.json()["email"] is None


def test_create_stores_contact_fields_as_extracted(client):
    r = client.post("/cards", json={"id": "c1", "name": "Jane", "email": "jane at acme"})
    assert r.status_code == 201
    assert r.json()["email"] == "jane at acme"
