from __future__ import annotations

import pytest

from app.main import app
from app.services.backend import reset_backend_resolver

_ENV_VARS = [
    "GOOGLE_CLOUD_PROJECT",
    "SANTA_MAX_DAILY_SECONDS",
    "SANTA_ADMIN_API_KEYS",
    "SANTA_BLOCKED_COUNTRIES",
    "SANTA_TEST_BLOCKED_COUNTRIES",
    "SANTA_GEO_HEADERS",
    "SANTA_SWEEP_INTERVAL_SECONDS",
]


@pytest.fixture(autouse=True)
def _isolated_app(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_backend_resolver()
    yield
    app.dependency_overrides = {}
    reset_backend_resolver()
