"""In-memory TTL cache sitting in front of the persistent medium."""

import copy
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CacheEntry:
    """A cached value with the time it was stored and an optional expiry."""
    data: Any
    timestamp: datetime
    expiry: Optional[datetime] = None

    def is_valid(self, now: datetime) -> bool:
        """Check if the entry can still be served."""
        return self.expiry is None or self.expiry > now


class TTLCache:
    """
    Cache of decoded documents keyed by storage key.

    Expired entries are dropped lazily when looked up, never swept. Values
    are deep-copied on the way in and out so callers cannot mutate cached
    state. Access is guarded by a lock so the cache can be shared between
    threads.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self.clock = clock

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Get a valid entry for key.

        Returns:
            A copy of the entry, or None if missing or expired
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_valid(self.clock()):
                del self._entries[key]
                return None
            return CacheEntry(copy.deepcopy(entry.data), entry.timestamp, entry.expiry)

    def set(self, key: str, data: Any, ttl_minutes: Optional[float] = None) -> CacheEntry:
        """Store data under key, expiring after ttl_minutes if given."""
        now = self.clock()
        expiry = now + timedelta(minutes=ttl_minutes) if ttl_minutes else None
        entry = CacheEntry(copy.deepcopy(data), now, expiry)
        with self._lock:
            self._entries[key] = entry
        return entry

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def timestamps(self) -> Dict[str, datetime]:
        """Time each entry was stored, keyed by storage key."""
        with self._lock:
            return {key: entry.timestamp for key, entry in self._entries.items()}
