"""In-memory TTL cache for tool results."""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache")


@dataclass
class CacheEntry:
    """Cached value with its absolute expiry on the cache clock."""
    key: str
    value: Any
    expires_at: float


class TTLCache:
    """Thread-safe key/value store with a per-entry TTL.

    Expiry is lazy: an entry past its deadline is dropped the next time it is
    read. `evict_expired` offers an explicit sweep. There is no capacity limit.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize an empty cache; `clock` returns seconds (monotonic by default)."""
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing/expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                self._entries.pop(key, None)
                logger.debug("Cache entry expired", extra={"key": key})
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store `value` under `key`, replacing any existing entry."""
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl_seconds)

    def evict_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if e.expires_at <= now]
            for k in expired:
                del self._entries[k]
        if expired:
            logger.debug("Evicted expired cache entries", extra={"count": len(expired)})
        return len(expired)

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
