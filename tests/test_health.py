# tests/test_health.py
from fastapi.testclient import TestClient


def test_health_check(client: TestClient) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_root_describes_api(client: TestClient) -> None:
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["docs"] == "/docs"


def test_unknown_route_uses_error_body(client: TestClient) -> None:
    r = client.get("/nope")
    assert r.status_code == 404
    assert "error" in r.json()
