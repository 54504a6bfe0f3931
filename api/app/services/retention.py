from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Optional

from .clock import Clock, SystemClock, utc_day
from .logging import get_logger
from .usage_store import MemoryUsageStore, split_usage_key

logger = get_logger(__name__)


def sweep_expired(store: MemoryUsageStore, *, clock: Clock, retention_days: int = 2) -> int:
    """Remove records whose day is older than `retention_days`. Returns the count removed."""
    cutoff = (utc_day(clock.now()) - timedelta(days=retention_days)).isoformat()

    # ISO dates compare correctly as strings.
    expired = [key for key in store.keys() if split_usage_key(key)[1] < cutoff]
    if not expired:
        return 0

    removed = store.delete_many(expired)
    logger.info("Retention sweep removed %d usage records older than %s", removed, cutoff)
    return removed


class RetentionSweeper:
    """Periodically sweeps the volatile store from the event loop."""

    def __init__(
        self,
        store: MemoryUsageStore,
        *,
        interval_seconds: float = 3600,
        retention_days: int = 2,
        clock: Optional[Clock] = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")
        self.store = store
        self.interval_seconds = interval_seconds
        self.retention_days = retention_days
        self.clock = clock or SystemClock()
        self.is_running = False
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self.is_running:
            logger.debug("RetentionSweeper is already running")
            return
        self.is_running = True
        self._task = asyncio.create_task(self._loop())
        logger.debug("RetentionSweeper started (interval=%ss)", self.interval_seconds)

    async def stop(self) -> None:
        self.is_running = False
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("RetentionSweeper stopped")

    def run_once(self) -> int:
        return sweep_expired(self.store, clock=self.clock, retention_days=self.retention_days)

    async def _loop(self) -> None:
        while self.is_running:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.run_once()
            except Exception as e:
                logger.warning("Retention sweep failed: %s", e)
