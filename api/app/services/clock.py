from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Protocol


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return utcnow()


def utc_day(dt: datetime) -> date:
    """Calendar date of `dt` in UTC. Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).date()


def day_key(dt: datetime) -> str:
    return utc_day(dt).isoformat()
