"""Daily call-time quota accounting.

Each identifier gets `max_daily_seconds` of call time per UTC calendar day.
Records are keyed `identifier:YYYY-MM-DD`, so a new day starts from zero
without any explicit reset.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Optional

from .clock import Clock, SystemClock, day_key
from .logging import get_logger, short_id
from .usage_store import SessionEntry, TransientBackendFailure, UsageRecord, UsageStore, usage_key

logger = get_logger(__name__)

MAX_DAILY_SECONDS = 180


class InvalidArgument(ValueError):
    """A duration was negative, non-finite or not a number."""


@dataclass(frozen=True)
class UsageSnapshot:
    used_seconds: float
    remaining_seconds: float
    sessions: list[SessionEntry] = field(default_factory=list)
    # True when the backend could not be read and zero usage was assumed.
    degraded: bool = False


@dataclass(frozen=True)
class UsageTotals:
    used_seconds: float
    remaining_seconds: float


@dataclass(frozen=True)
class Reservation:
    reserved_seconds: float
    remaining_seconds: float
    degraded: bool = False


def _validate_seconds(value: Any, name: str) -> float:
    # bool is a Real subclass; reject it along with strings and None.
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidArgument(f"{name} must be a number")
    # Sign is checked on the original value so huge negative ints are rejected too.
    if value < 0:
        raise InvalidArgument(f"{name} must be a finite number >= 0")
    try:
        seconds = float(value)
    except OverflowError:
        # Ints beyond float range are still finite; they clamp like any overage.
        seconds = sys.float_info.max
    if not math.isfinite(seconds):
        raise InvalidArgument(f"{name} must be a finite number >= 0")
    return seconds


class UsageLedger:
    def __init__(
        self,
        *,
        store: UsageStore,
        clock: Optional[Clock] = None,
        max_daily_seconds: int = MAX_DAILY_SECONDS,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.max_daily_seconds = max_daily_seconds

    def today(self) -> str:
        return day_key(self.clock.now())

    def _remaining(self, used_seconds: float) -> float:
        return max(0, self.max_daily_seconds - used_seconds)

    def get_usage(self, identifier: str, day: Optional[str] = None) -> UsageSnapshot:
        key = usage_key(identifier, day or self.today())
        try:
            record = self.store.get(key)
        except TransientBackendFailure as e:
            logger.warning("Usage read degraded for %s, assuming zero usage: %s", short_id(identifier), e)
            return UsageSnapshot(used_seconds=0, remaining_seconds=self.max_daily_seconds, sessions=[], degraded=True)

        record = record or UsageRecord()
        return UsageSnapshot(
            used_seconds=record.used_seconds,
            remaining_seconds=self._remaining(record.used_seconds),
            sessions=list(record.sessions),
        )

    def can_start_session(self, identifier: str) -> bool:
        usage = self.get_usage(identifier)
        if usage.degraded:
            # Fail closed: the client should check again rather than get time we cannot vouch for.
            return False
        return usage.remaining_seconds > 0

    def record_session(self, identifier: str, duration_seconds: Any) -> UsageTotals:
        duration = _validate_seconds(duration_seconds, "durationSeconds")
        now = self.clock.now()
        key = usage_key(identifier, day_key(now))

        def apply(record: UsageRecord) -> UsageRecord:
            actual = min(duration, self._remaining(record.used_seconds))
            record.used_seconds += actual
            record.sessions.append(SessionEntry(duration=actual, timestamp=now))
            return record

        # TransientBackendFailure propagates: a dropped write would lose accounting.
        record = self.store.mutate(key, apply)
        if record.sessions and record.sessions[-1].duration < duration:
            logger.info(
                "Clamped session for %s from %ss to %ss",
                short_id(identifier),
                duration,
                record.sessions[-1].duration,
            )
        return UsageTotals(used_seconds=record.used_seconds, remaining_seconds=self._remaining(record.used_seconds))

    def reserve_time(self, identifier: str, requested_seconds: Any) -> Reservation:
        """Advisory: how much of `requested_seconds` could be granted right now.

        Nothing is held. Two callers may both see the same window; the actual
        consumption is committed later by `record_session`.
        """
        requested = _validate_seconds(requested_seconds, "requestedSeconds")
        usage = self.get_usage(identifier)
        if usage.degraded:
            return Reservation(reserved_seconds=0, remaining_seconds=0, degraded=True)

        reserved = min(requested, usage.remaining_seconds)
        return Reservation(reserved_seconds=reserved, remaining_seconds=usage.remaining_seconds - reserved)

    def clear_usage(self, identifier: str, day: Optional[str] = None) -> bool:
        """Delete the record for `identifier` on `day` (default today)."""
        day = day or self.today()
        removed = self.store.delete(usage_key(identifier, day))
        logger.info("Cleared usage for %s on %s (existed=%s)", short_id(identifier), day, removed)
        return removed
