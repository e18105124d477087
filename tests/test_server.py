"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

import server

API_KEY = "test-key"
HEADERS = {"X-API-Key": API_KEY}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("API_KEY", API_KEY)
    with TestClient(server.app) as c:
        c.delete("/api/v1/entries", headers=HEADERS)
        yield c


class TestAuth:
    """X-API-Key checks."""

    def test_missing_key(self, client):
        resp = client.get("/api/v1/health")
        assert resp.status_code == 401
        assert resp.json()["error"] == "UNAUTHORIZED"

    def test_api_key_not_configured(self, client, monkeypatch):
        monkeypatch.setenv("API_KEY", "")
        resp = client.get("/api/v1/health", headers=HEADERS)
        assert resp.status_code == 503


class TestEntries:
    """Entry routes backed by the observable map."""

    def test_put_get_delete(self, client):
        resp = client.put("/api/v1/entries/color", json={"value": "red"}, headers=HEADERS)
        assert resp.json() == {"status": "added", "key": "color"}

        resp = client.put("/api/v1/entries/color", json={"value": "red"}, headers=HEADERS)
        assert resp.json()["status"] == "unchanged"

        resp = client.put("/api/v1/entries/color", json={"value": "blue"}, headers=HEADERS)
        assert resp.json()["status"] == "changed"

        resp = client.get("/api/v1/entries/color", headers=HEADERS)
        assert resp.json() == {"key": "color", "value": "blue"}

        resp = client.get("/api/v1/entries", headers=HEADERS)
        assert resp.json() == {"entries": {"color": "blue"}}

        resp = client.delete("/api/v1/entries/color", headers=HEADERS)
        assert resp.json() == {"status": "deleted", "key": "color"}

        resp = client.get("/api/v1/entries/color", headers=HEADERS)
        assert resp.status_code == 404
        assert resp.json()["error"] == "KEY_NOT_FOUND"

    def test_delete_missing(self, client):
        resp = client.delete("/api/v1/entries/nope", headers=HEADERS)
        assert resp.status_code == 404

    def test_clear(self, client):
        client.put("/api/v1/entries/a", json={"value": 1}, headers=HEADERS)
        client.put("/api/v1/entries/b", json={"value": 2}, headers=HEADERS)
        resp = client.delete("/api/v1/entries", headers=HEADERS)
        assert resp.json() == {"status": "cleared", "deleted": 2}
        assert server.store.size == 0

    def test_failing_subscriber_is_500(self, client):
        def boom(channel, data):
            raise RuntimeError("boom")

        unsub = server.store.events.subscribe("added:broken", boom)
        try:
            resp = client.put("/api/v1/entries/broken", json={"value": 1}, headers=HEADERS)
            assert resp.status_code == 500
            assert resp.json() == {"error": "INTERNAL", "message": "subscriber failed: boom", "key": "broken"}
            assert server.store.get("broken") == 1
        finally:
            unsub()


class TestObservability:
    """Health, stats and recent events."""

    def test_health(self, client):
        client.put("/api/v1/entries/a", json={"value": 1}, headers=HEADERS)
        body = client.get("/api/v1/health", headers=HEADERS).json()
        assert body["entries"] == 1
        assert body["channels"] == 1
        assert body["subscribers"] == 1

    def test_stats(self, client):
        client.put("/api/v1/entries/a", json={"value": 1}, headers=HEADERS)
        body = client.get("/api/v1/stats", headers=HEADERS).json()
        assert body["channels"] == {"*": 1}
        assert "published_wait" in body["metrics"]["counters"]

    def test_recent_events(self, client):
        client.put("/api/v1/entries/k", json={"value": "v1"}, headers=HEADERS)
        client.put("/api/v1/entries/k", json={"value": "v2"}, headers=HEADERS)
        events = client.get("/api/v1/events?last_n=2", headers=HEADERS).json()["events"]
        assert [e["channel"] for e in events] == ["added:k", "changed:k"]
        assert events[1]["payload"] == {"key": "k", "value": "v2", "oldValue": "v1"}
