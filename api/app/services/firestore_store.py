from __future__ import annotations

import hashlib
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Optional

from google.api_core import exceptions as api_exceptions
from google.cloud import firestore

from .clock import utcnow
from .usage_store import TransientBackendFailure, UsageRecord, split_usage_key


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def _expires_at(day: str, retention_days: int) -> datetime | None:
    try:
        d = date.fromisoformat(day)
    except ValueError:
        return None
    return datetime.combine(d + timedelta(days=retention_days + 1), time.min, tzinfo=timezone.utc)


class FirestoreUsageStore:
    """Durable usage store.

    One document per `identifier:day` key. Document IDs are the sha256 of the
    key since identifiers are opaque and may contain `/`. Expiry is delegated
    to a Firestore TTL policy on `expires_at`.

    `mutate` is a plain read then write, not a transaction: two concurrent
    writers for the same key can lose an update.
    """

    def __init__(
        self,
        *,
        project_id: str,
        collection: str = "daily_usage",
        timeout_seconds: float = 5.0,
        retention_days: int = 2,
        client: firestore.Client | None = None,
    ) -> None:
        self.client = client or firestore.Client(project=project_id)
        self.collection = collection
        self.timeout_seconds = timeout_seconds
        self.retention_days = retention_days

    def _ref(self, key: str):
        return self.client.collection(self.collection).document(sha256_hex(key))

    def get(self, key: str) -> Optional[UsageRecord]:
        try:
            snap = self._ref(key).get(timeout=self.timeout_seconds)
        except api_exceptions.GoogleAPIError as e:
            raise TransientBackendFailure(f"Firestore read failed for usage record: {e}") from e
        if not snap.exists:
            return None
        return UsageRecord.from_dict(snap.to_dict() or {})

    def set(self, key: str, record: UsageRecord) -> None:
        identifier, day = split_usage_key(key)
        doc: dict[str, Any] = {
            **record.to_dict(),
            "key": key,
            "identifier": identifier,
            "day": day,
            "updated_at": utcnow(),
            "expires_at": _expires_at(day, self.retention_days),
        }
        try:
            self._ref(key).set(doc, timeout=self.timeout_seconds)
        except api_exceptions.GoogleAPIError as e:
            raise TransientBackendFailure(f"Firestore write failed for usage record: {e}") from e

    def delete(self, key: str) -> bool:
        ref = self._ref(key)
        try:
            existed = ref.get(timeout=self.timeout_seconds).exists
            ref.delete(timeout=self.timeout_seconds)
        except api_exceptions.GoogleAPIError as e:
            raise TransientBackendFailure(f"Firestore delete failed for usage record: {e}") from e
        return bool(existed)

    def mutate(self, key: str, fn: Callable[[UsageRecord], UsageRecord]) -> UsageRecord:
        current = self.get(key) or UsageRecord()
        updated = fn(current)
        self.set(key, updated)
        return updated
