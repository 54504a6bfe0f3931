from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Iterable, Optional, Protocol


class BackendUnavailable(RuntimeError):
    """The durable store could not be initialised."""


class TransientBackendFailure(RuntimeError):
    """A single durable store call failed or timed out."""


@dataclass(frozen=True)
class SessionEntry:
    duration: float
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        # Datetimes stay native; Firestore stores them as timestamps.
        return {"duration": self.duration, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SessionEntry":
        return cls(duration=float(raw.get("duration") or 0), timestamp=raw["timestamp"])


@dataclass
class UsageRecord:
    used_seconds: float = 0.0
    sessions: list[SessionEntry] = field(default_factory=list)

    def copy(self) -> "UsageRecord":
        return UsageRecord(used_seconds=self.used_seconds, sessions=list(self.sessions))

    def to_dict(self) -> dict[str, Any]:
        return {
            "used_seconds": self.used_seconds,
            "sessions": [s.to_dict() for s in self.sessions],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "UsageRecord":
        sessions = [SessionEntry.from_dict(s) for s in raw.get("sessions") or [] if isinstance(s, dict)]
        return cls(used_seconds=float(raw.get("used_seconds") or 0), sessions=sessions)


def usage_key(identifier: str, day: str) -> str:
    return f"{identifier}:{day}"


def split_usage_key(key: str) -> tuple[str, str]:
    # Identifiers may contain ":" (IPv6 addresses), the day never does.
    identifier, _, day = key.rpartition(":")
    return identifier, day


class UsageStore(Protocol):
    def get(self, key: str) -> Optional[UsageRecord]: ...

    def set(self, key: str, record: UsageRecord) -> None: ...

    def delete(self, key: str) -> bool: ...

    def mutate(self, key: str, fn: Callable[[UsageRecord], UsageRecord]) -> UsageRecord: ...


class MemoryUsageStore:
    """Volatile in-process store. Lost on restart."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._records: dict[str, UsageRecord] = {}

    def get(self, key: str) -> Optional[UsageRecord]:
        with self._lock:
            rec = self._records.get(key)
            return rec.copy() if rec is not None else None

    def set(self, key: str, record: UsageRecord) -> None:
        with self._lock:
            self._records[key] = record.copy()

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._records.pop(key, None) is not None

    def mutate(self, key: str, fn: Callable[[UsageRecord], UsageRecord]) -> UsageRecord:
        with self._lock:
            current = self._records.get(key)
            updated = fn(current.copy() if current is not None else UsageRecord())
            self._records[key] = updated.copy()
            return updated

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._records)

    def delete_many(self, keys: Iterable[str]) -> int:
        removed = 0
        with self._lock:
            for key in keys:
                if self._records.pop(key, None) is not None:
                    removed += 1
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
