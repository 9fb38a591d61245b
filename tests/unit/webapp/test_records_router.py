# =============================================================================
# Records Router Unit Tests
# =============================================================================
# Tests for listing the records ingested from one object.
# =============================================================================

import pytest
from starlette.testclient import TestClient

from libs.errors import PersistenceError
from libs.models import LineRecord


@pytest.fixture
def client(mongo_store):
    from app.main import app
    from app.services.ingestion import get_mongodb_store

    app.dependency_overrides[get_mongodb_store] = lambda: mongo_store
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_list_records_in_insertion_order(client, mongo_store):
    mongo_store.records.bulk_insert(
        [LineRecord(content=text, original_file="logs/a.log") for text in ["one", "two", "three"]]
    )
    mongo_store.records.bulk_insert([LineRecord(content="other", original_file="b.txt")])

    response = client.get("/records/logs/a.log", params={"limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["original_file"] == "logs/a.log"
    assert [record["content"] for record in body["records"]] == ["one", "two"]
    assert body["total"] == 3


def test_list_records_unknown_object_is_empty(client):
    response = client.get("/records/never-ingested.txt")

    assert response.status_code == 200
    assert response.json() == {"original_file": "never-ingested.txt", "records": [], "total": 0}


def test_list_records_rejects_bad_limit(client):
    assert client.get("/records/a.txt", params={"limit": 0}).status_code == 422
    assert client.get("/records/a.txt", params={"limit": 1001}).status_code == 422


def test_list_records_store_unavailable(client, mongo_store, monkeypatch):
    def fail(original_file, limit=100):
        raise PersistenceError("store down")

    monkeypatch.setattr(mongo_store.records, "list_for_file", fail)

    assert client.get("/records/a.txt").status_code == 503
