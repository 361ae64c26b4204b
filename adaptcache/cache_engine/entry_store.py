"""Entry Store - Bounded key/value storage with per-entry expiration"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..cache_core.exceptions import CacheCapacityError


@dataclass
class CacheEntry:
    """Individual cache entry with its expiration deadline"""
    key: str
    value: Any
    expires_at: Optional[float]     # None never expires
    created_at: float = field(default_factory=time.time)

    def is_expired(self, now: float) -> bool:
        """Check if entry has expired"""
        return self.expires_at is not None and now >= self.expires_at

    def time_to_live(self, now: float) -> float:
        """Get remaining time to live in seconds"""
        if self.expires_at is None:
            return float('inf')
        return max(0.0, self.expires_at - now)


class EntryStore:
    """Key -> entry map with a hard key ceiling.

    Expired entries stay in place until a delete drops them; lookups simply
    stop returning them and :meth:`expired_keys` lists them for the sweep. All methods take
    the store lock, which the owning cache shares with its access pattern
    table so composite operations stay atomic.
    """

    def __init__(self, max_keys: int, clock: Callable[[], float] = time.time,
                 lock: Optional[threading.RLock] = None):
        self.max_keys = max_keys
        self.clock = clock
        self.lock = lock or threading.RLock()
        self.storage: Dict[str, CacheEntry] = {}
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def set(self, key: str, value: Any, ttl: Optional[float]) -> CacheEntry:
        """Store value, expiring ``ttl`` seconds from now (0 or None: never)"""
        now = self.clock()
        expires_at = now + ttl if ttl else None

        with self.lock:
            if key not in self.storage and len(self.storage) >= self.max_keys:
                raise CacheCapacityError(key, self.max_keys)

            entry = CacheEntry(key=key, value=value, expires_at=expires_at, created_at=now)
            self.storage[key] = entry
            return entry

    def get(self, key: str) -> Optional[CacheEntry]:
        """Get the live entry for key, None if missing or expired"""
        with self.lock:
            entry = self.storage.get(key)
            if entry is None or entry.is_expired(self.clock()):
                return None
            return entry

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Get the stored entry whether or not it has expired"""
        with self.lock:
            return self.storage.get(key)

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> int:
        """Delete entry from store, return count removed (0 or 1)"""
        with self.lock:
            if key in self.storage:
                del self.storage[key]
                return 1
            return 0

    def clear(self):
        with self.lock:
            self.storage.clear()

    def keys(self) -> List[str]:
        """Snapshot of every stored key, expired ones included"""
        with self.lock:
            return list(self.storage)

    def live_count(self) -> int:
        """Number of entries that have not expired yet"""
        now = self.clock()
        with self.lock:
            return sum(1 for entry in self.storage.values() if not entry.is_expired(now))

    def expired_keys(self) -> List[str]:
        now = self.clock()
        with self.lock:
            return [key for key, entry in self.storage.items() if entry.is_expired(now)]

    def __len__(self) -> int:
        return len(self.storage)

    def __contains__(self, key: str) -> bool:
        return self.has(key)
