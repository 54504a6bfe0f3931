from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return int(default)
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return float(default)
    return float(raw)


def _env_positive_float(name: str, default: float) -> float:
    val = _env_float(name, default)
    if val <= 0:
        raise RuntimeError(f"{name} must be > 0, got {val}")
    return val


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


def _env_list(name: str, default: str = "", *, upper: bool = False) -> list[str]:
    raw = os.getenv(name)
    if raw is None:
        raw = default
    items = [v.strip() for v in raw.split(",") if v.strip()]
    if upper:
        items = [v.upper() for v in items]
    return items


@dataclass(frozen=True)
class Settings:
    max_daily_seconds: int = 180

    # Durable backend is enabled when a project is configured.
    project_id: str = ""
    usage_collection: str = "daily_usage"
    firestore_timeout_seconds: float = 5.0

    retention_days: int = 2
    sweep_interval_seconds: float = 3600.0

    admin_api_keys: tuple[str, ...] = ()

    frontend_url: str = ""
    secure_cookies: bool = False

    blocked_countries: tuple[str, ...] = ()
    test_blocked_countries: tuple[str, ...] = ("CN", "RU", "KP")
    geo_headers: tuple[str, ...] = ("x-vercel-ip-country", "x-vercel-ip-country-code")

    @property
    def durable_backend_configured(self) -> bool:
        return bool(self.project_id)


def get_settings() -> Settings:
    return Settings(
        max_daily_seconds=_env_int("SANTA_MAX_DAILY_SECONDS", 180),
        project_id=os.getenv("GOOGLE_CLOUD_PROJECT", "").strip(),
        usage_collection=os.getenv("SANTA_USAGE_COLLECTION", "daily_usage"),
        firestore_timeout_seconds=_env_float("SANTA_FIRESTORE_TIMEOUT_SECONDS", 5.0),
        retention_days=_env_int("SANTA_RETENTION_DAYS", 2),
        sweep_interval_seconds=_env_positive_float("SANTA_SWEEP_INTERVAL_SECONDS", 3600.0),
        admin_api_keys=tuple(_env_list("SANTA_ADMIN_API_KEYS")),
        frontend_url=os.getenv("SANTA_FRONTEND_URL", "").strip(),
        secure_cookies=_env_bool("SANTA_SECURE_COOKIES", False),
        blocked_countries=tuple(_env_list("SANTA_BLOCKED_COUNTRIES", upper=True)),
        test_blocked_countries=tuple(_env_list("SANTA_TEST_BLOCKED_COUNTRIES", "CN,RU,KP", upper=True)),
        geo_headers=tuple(
            h.lower() for h in _env_list("SANTA_GEO_HEADERS", "x-vercel-ip-country,x-vercel-ip-country-code")
        ),
    )
