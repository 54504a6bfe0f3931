from __future__ import annotations

from enum import Enum
from threading import Lock
from typing import Callable, Optional

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError

from .firestore_store import FirestoreUsageStore
from .logging import get_logger
from .settings import Settings
from .usage_store import BackendUnavailable, MemoryUsageStore, UsageStore

logger = get_logger(__name__)


class BackendState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    UNAVAILABLE = "unavailable"


DurableFactory = Callable[[], UsageStore]


def firestore_factory(settings: Settings) -> Optional[DurableFactory]:
    if not settings.durable_backend_configured:
        return None

    def build() -> UsageStore:
        try:
            return FirestoreUsageStore(
                project_id=settings.project_id,
                collection=settings.usage_collection,
                timeout_seconds=settings.firestore_timeout_seconds,
                retention_days=settings.retention_days,
            )
        except (GoogleAuthError, GoogleAPIError, ValueError, OSError) as e:
            # Missing credentials, bad project id, etc.
            raise BackendUnavailable(f"Firestore client init failed: {e}") from e

    return build


class BackendResolver:
    """Chooses the usage store once and remembers the outcome.

    READY holds the durable store. UNAVAILABLE means the durable store is not
    configured or failed to initialise; the volatile store is used for the
    rest of the process lifetime and the durable store is never retried.
    """

    def __init__(self, *, durable_factory: Optional[DurableFactory], volatile: MemoryUsageStore | None = None) -> None:
        self._durable_factory = durable_factory
        self._volatile = volatile or MemoryUsageStore()
        self._lock = Lock()
        self._state = BackendState.UNINITIALIZED
        self._durable: Optional[UsageStore] = None

    @property
    def state(self) -> BackendState:
        return self._state

    @property
    def volatile(self) -> MemoryUsageStore:
        return self._volatile

    def store(self) -> UsageStore:
        if self._state is BackendState.UNINITIALIZED:
            with self._lock:
                if self._state is BackendState.UNINITIALIZED:
                    self._initialize()

        if self._state is BackendState.READY and self._durable is not None:
            return self._durable
        return self._volatile

    def uses_volatile(self) -> bool:
        return self.store() is self._volatile

    def _initialize(self) -> None:
        if self._durable_factory is None:
            logger.info("Durable usage backend not configured; using in-memory storage")
            self._state = BackendState.UNAVAILABLE
            return

        try:
            self._durable = self._durable_factory()
        except BackendUnavailable as e:
            logger.warning("Durable usage backend unavailable, falling back to in-memory storage: %s", e)
            self._durable = None
            self._state = BackendState.UNAVAILABLE
            return

        logger.info("Using durable usage backend: %s", type(self._durable).__name__)
        self._state = BackendState.READY


_RESOLVER: BackendResolver | None = None


def get_backend_resolver(settings: Settings) -> BackendResolver:
    global _RESOLVER
    if _RESOLVER is None:
        _RESOLVER = BackendResolver(durable_factory=firestore_factory(settings))
    return _RESOLVER


def reset_backend_resolver() -> None:
    global _RESOLVER
    _RESOLVER = None
