"""Short-TTL in-memory cache for quote lookups."""

import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _StoredValue:
    value: Any
    stored_at: float


class QuoteCache:
    """
    Deduplicates rapid repeated calls to a slow or quota-limited quote source.

    Entries expire by age only and are never persisted. Failed fetches are
    never stored. Concurrent misses for the same key share one upstream call.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, _StoredValue] = {}
        self._in_flight: dict[str, Future] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get_or_fetch(self, key: str, ttl_seconds: float, fetch_fn: Callable[[], T]) -> T:
        """
        Return the cached value for key if younger than ttl_seconds, else fetch.

        Exceptions from fetch_fn propagate to the caller (and to every caller
        waiting on the same in-flight fetch) and leave the cache untouched.
        """
        with self._lock:
            stored = self._entries.get(key)
            if stored is not None and self._clock() - stored.stored_at < ttl_seconds:
                self._hits += 1
                return stored.value

            future = self._in_flight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._in_flight[key] = future
                self._misses += 1

        if not leader:
            logger.debug("Joining in-flight fetch for %s", key)
            return future.result()

        try:
            value = fetch_fn()
        except Exception as e:
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(e)
            raise

        with self._lock:
            self._entries[key] = _StoredValue(value=value, stored_at=self._clock())
            self._in_flight.pop(key, None)
        future.set_result(value)
        return value

    def peek(self, key: str, ttl_seconds: Optional[float] = None) -> Optional[Any]:
        """Return the stored value without fetching; with a TTL, only if still fresh."""
        with self._lock:
            stored = self._entries.get(key)
            if stored is None:
                return None
            if ttl_seconds is not None and self._clock() - stored.stored_at >= ttl_seconds:
                return None
            return stored.value

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def purge_expired(self, ttl_seconds: float) -> int:
        """Drop entries older than ttl_seconds; returns the number dropped."""
        with self._lock:
            now = self._clock()
            expired = [k for k, v in self._entries.items() if now - v.stored_at >= ttl_seconds]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "in_flight": len(self._in_flight),
            }
