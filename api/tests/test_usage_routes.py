from __future__ import annotations

from datetime import datetime, timezone

from fastapi.testclient import TestClient

from app.main import app
from app.routes import usage as usage_routes
from app.services.usage_ledger import UsageLedger
from app.services.usage_store import MemoryUsageStore, TransientBackendFailure

COOKIE = {"Cookie": "santa_user_id=alice-123"}


class FakeClock:
    def now(self) -> datetime:
        return datetime(2025, 12, 24, 18, 0, tzinfo=timezone.utc)


class BrokenStore:
    def get(self, key):
        raise TransientBackendFailure("read timed out")

    def set(self, key, record):
        raise TransientBackendFailure("write timed out")

    def delete(self, key):
        raise TransientBackendFailure("delete timed out")

    def mutate(self, key, fn):
        raise TransientBackendFailure("write timed out")


def _use_ledger(store=None) -> UsageLedger:
    ledger = UsageLedger(store=store or MemoryUsageStore(), clock=FakeClock(), max_daily_seconds=180)
    app.dependency_overrides[usage_routes.get_ledger] = lambda: ledger
    return ledger


def test_check_usage_issues_cookie_when_missing() -> None:
    _use_ledger()
    client = TestClient(app)

    resp = client.get("/v1/usage")
    assert resp.status_code == 200
    assert resp.json() == {
        "canStart": True,
        "usedSeconds": 0,
        "remainingSeconds": 180,
        "maxDailySeconds": 180,
        "degraded": False,
    }

    set_cookie = resp.headers["set-cookie"]
    assert set_cookie.startswith("santa_user_id=")
    assert "HttpOnly" in set_cookie
    assert "SameSite=strict" in set_cookie or "samesite=strict" in set_cookie.lower()
    assert resp.headers["x-cookie-set"] == "true"
    assert resp.headers["x-user-id"]
    assert resp.headers["cache-control"] == "no-store"


def test_existing_cookie_is_reused() -> None:
    _use_ledger()
    client = TestClient(app)

    resp = client.get("/v1/usage", headers=COOKIE)
    assert resp.status_code == 200
    assert "set-cookie" not in resp.headers
    assert resp.headers["x-user-id"] == "alice-123"


def test_record_and_check_flow() -> None:
    ledger = _use_ledger()
    client = TestClient(app)

    resp = client.post("/v1/usage/record", headers=COOKIE, json={"durationSeconds": 100})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "usedSeconds": 100, "remainingSeconds": 80, "maxDailySeconds": 180}

    resp = client.post("/v1/usage/record", headers=COOKIE, json={"durationSeconds": 100})
    assert resp.json()["usedSeconds"] == 180
    assert resp.json()["remainingSeconds"] == 0

    check = client.get("/v1/usage", headers=COOKIE).json()
    assert check["canStart"] is False
    assert ledger.get_usage("alice-123").used_seconds == 180


def test_record_rejects_invalid_duration() -> None:
    ledger = _use_ledger()
    client = TestClient(app)

    for bad in (-5, "ten", None, True):
        resp = client.post("/v1/usage/record", headers=COOKIE, json={"durationSeconds": bad})
        assert resp.status_code == 400, bad
        assert resp.json() == {"detail": "Invalid durationSeconds"}

    resp = client.post("/v1/usage/record", headers=COOKIE, json={})
    assert resp.status_code == 400

    assert ledger.get_usage("alice-123").sessions == []


def test_record_failure_is_503() -> None:
    _use_ledger(BrokenStore())
    client = TestClient(app)

    resp = client.post("/v1/usage/record", headers=COOKIE, json={"durationSeconds": 10})
    assert resp.status_code == 503
    assert resp.headers["retry-after"] == "1"


def test_check_usage_degraded_fails_closed() -> None:
    _use_ledger(BrokenStore())
    client = TestClient(app)

    body = client.get("/v1/usage", headers=COOKIE).json()
    assert body["degraded"] is True
    assert body["canStart"] is False


def test_reserve_does_not_consume() -> None:
    ledger = _use_ledger()
    ledger.record_session("alice-123", 150)
    client = TestClient(app)

    resp = client.post("/v1/usage/reserve", headers=COOKIE, json={"requestedSeconds": 60})
    assert resp.status_code == 200
    assert resp.json() == {"reservedSeconds": 30, "remainingSeconds": 0, "degraded": False}
    assert ledger.get_usage("alice-123").used_seconds == 150

    bad = client.post("/v1/usage/reserve", headers=COOKIE, json={"requestedSeconds": -1})
    assert bad.status_code == 400


def test_huge_integer_body_is_clamped_not_500() -> None:
    ledger = _use_ledger()
    client = TestClient(app)
    # Sent as raw JSON so the integer literal is not rounded by the client.
    huge = "1" + "0" * 400

    resp = client.post(
        "/v1/usage/record",
        headers={**COOKIE, "Content-Type": "application/json"},
        content='{"durationSeconds": ' + huge + "}",
    )
    assert resp.status_code == 200
    assert resp.json()["usedSeconds"] == 180
    assert resp.json()["remainingSeconds"] == 0
    assert ledger.get_usage("alice-123").used_seconds == 180

    ledger.clear_usage("alice-123")
    resp = client.post(
        "/v1/usage/reserve",
        headers={**COOKIE, "Content-Type": "application/json"},
        content='{"requestedSeconds": ' + huge + "}",
    )
    assert resp.status_code == 200
    assert resp.json() == {"reservedSeconds": 180, "remainingSeconds": 0, "degraded": False}

    resp = client.post(
        "/v1/usage/record",
        headers={**COOKIE, "Content-Type": "application/json"},
        content='{"durationSeconds": -' + huge + "}",
    )
    assert resp.status_code == 400
