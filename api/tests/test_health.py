from fastapi.testclient import TestClient

from app.main import app


def test_health_ok() -> None:
    client = TestClient(app)
    resp = client.get("/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "version": "0.1.0", "storage": "memory", "maxDailySeconds": 180}
    assert resp.headers["cache-control"] == "no-store"
