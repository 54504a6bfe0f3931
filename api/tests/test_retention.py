from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from app.services.retention import RetentionSweeper, sweep_expired
from app.services.usage_store import MemoryUsageStore, UsageRecord


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now


NOW = FakeClock(datetime(2025, 12, 24, 9, 0, tzinfo=timezone.utc))


def _seed(store: MemoryUsageStore, *keys: str) -> None:
    for key in keys:
        store.set(key, UsageRecord(used_seconds=10))


def test_sweep_removes_records_older_than_retention() -> None:
    store = MemoryUsageStore()
    _seed(
        store,
        "a:2025-12-20",
        "a:2025-12-21",
        "a:2025-12-22",
        "a:2025-12-23",
        "a:2025-12-24",
        "2001:db8::1:2025-12-21",
    )

    removed = sweep_expired(store, clock=NOW, retention_days=2)

    assert removed == 3
    assert sorted(store.keys()) == ["a:2025-12-22", "a:2025-12-23", "a:2025-12-24"]


def test_sweep_on_empty_store_is_noop() -> None:
    assert sweep_expired(MemoryUsageStore(), clock=NOW) == 0


def test_sweeper_runs_periodically_and_stops() -> None:
    store = MemoryUsageStore()
    _seed(store, "old:2025-12-01", "new:2025-12-24")

    async def scenario() -> None:
        sweeper = RetentionSweeper(store, interval_seconds=0.01, retention_days=2, clock=NOW)
        await sweeper.start()
        await sweeper.start()  # second start is ignored
        for _ in range(100):
            if len(store) == 1:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()
        assert sweeper.is_running is False

    asyncio.run(scenario())
    assert store.keys() == ["new:2025-12-24"]
