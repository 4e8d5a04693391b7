"""In-memory TTL cache with lazy, read-time expiration.

Entries live in one store per namespace so live and forecast data keep
independent freshness budgets. There is no sweeper: a stale entry is evicted
by the read that finds it stale. Reads are lock-free; writes and evictions
take a short per-namespace lock so an entry is always replaced whole.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Generic, TypeVar

from airwatch.models.common import Clock, normalize_target, utc_now

logger = logging.getLogger(__name__)

LIVE_NAMESPACE = "live"
FORECAST_NAMESPACE = "forecast"

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    payload: T
    stored_at: datetime


class _Store:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: dict[str, CacheEntry[Any]] = {}


class TTLCache:
    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._stores: dict[str, _Store] = {}
        self._stores_lock = threading.Lock()

    def get(self, namespace: str, key: str, ttl: timedelta) -> tuple[Any | None, bool]:
        """Return ``(payload, True)`` if the entry is at most ``ttl`` old.

        A stale entry is removed before ``(None, False)`` is returned.
        """
        store = self._store(namespace)
        key = normalize_target(key)
        entry = store.entries.get(key)
        if entry is None:
            return None, False
        if self._clock() - entry.stored_at <= ttl:
            return entry.payload, True

        with store.lock:
            # A concurrent set may have replaced the entry; keep the newer one.
            if store.entries.get(key) is entry:
                del store.entries[key]
        logger.debug("Evicted stale %s entry for %s", namespace, key)
        return None, False

    def set(self, namespace: str, key: str, value: Any) -> None:
        store = self._store(namespace)
        entry = CacheEntry(payload=value, stored_at=self._clock())
        with store.lock:
            store.entries[normalize_target(key)] = entry

    def age(self, namespace: str, key: str) -> float | None:
        """Seconds since the entry was stored, or None if absent."""
        store = self._store(namespace)
        entry = store.entries.get(normalize_target(key))
        if entry is None:
            return None
        return (self._clock() - entry.stored_at).total_seconds()

    def _store(self, namespace: str) -> _Store:
        store = self._stores.get(namespace)
        if store is None:
            with self._stores_lock:
                store = self._stores.setdefault(namespace, _Store())
        return store
