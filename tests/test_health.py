"""Health endpoint."""
from fastapi.testclient import TestClient


def test_health_returns_ok(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j.get("status") == "ok"
    assert j.get("database") == "ok"
    assert j.get("token_store") == "memory"
    assert j.get("live_connections") == 0
    assert r.headers.get("X-Request-ID")


def test_unknown_route_uses_error_body(client: TestClient):
    r = client.get("/does-not-exist")
    assert r.status_code == 404
    j = r.json()
    assert j["status_code"] == 404
    assert "error" in j
