"""Preload & Warmup - Proactive cache population for high-value keys"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from ..cache_core.constants import (
    WARMUP_PATTERN_LIMIT, WARMUP_SEED_FREQUENCY, WARMUP_SEED_PRIORITY, WARMUP_SEED_INTERVAL
)

if TYPE_CHECKING:
    from .optimized_cache import OptimizedCache


DefaultValueFactory = Callable[[str], Optional[Any]]


class PreloadQueue:
    """Bounded FIFO of keys to refresh; a key is queued at most once"""

    def __init__(self, max_size: int):
        self.max_size = max_size
        self._items: 'OrderedDict[str, float]' = OrderedDict()
        self._lock = threading.Lock()

    def push(self, key: str) -> bool:
        """Queue key, False if already queued or the queue is full"""
        with self._lock:
            if key in self._items or len(self._items) >= self.max_size:
                return False
            self._items[key] = time.time()
            return True

    def pop_batch(self, limit: int) -> List[str]:
        """Dequeue up to ``limit`` keys in arrival order"""
        batch = []
        with self._lock:
            while self._items and len(batch) < limit:
                key, _ = self._items.popitem(last=False)
                batch.append(key)
        return batch

    def discard(self, key: str):
        with self._lock:
            self._items.pop(key, None)

    def clear(self):
        with self._lock:
            self._items.clear()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: str) -> bool:
        return key in self._items


@dataclass
class WarmingMetrics:
    """Counters for preload and warmup activity"""
    preloads_queued: int = 0
    preloads_dropped: int = 0
    preloads_succeeded: int = 0
    preloads_skipped: int = 0
    preloads_failed: int = 0
    warmup_runs: int = 0
    warmup_skipped: int = 0
    warmup_failures: int = 0
    keys_warmed: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def increment(self, name: str, amount: int = 1):
        """Thread-safe counter update"""
        with self._lock:
            setattr(self, name, getattr(self, name) + amount)

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'preload': {
                    'queued': self.preloads_queued,
                    'dropped': self.preloads_dropped,
                    'succeeded': self.preloads_succeeded,
                    'skipped': self.preloads_skipped,
                    'failed': self.preloads_failed,
                },
                'warmup': {
                    'runs': self.warmup_runs,
                    'skipped': self.warmup_skipped,
                    'failures': self.warmup_failures,
                    'keys_warmed': self.keys_warmed,
                }
            }


class CacheWarmingManager:
    """Drains the preload queue and runs startup warmups for one cache"""

    def __init__(self, cache: 'OptimizedCache',
                 default_value_factory: Optional[DefaultValueFactory] = None):
        self.cache = cache
        self.config = cache.config
        self.default_value_factory = default_value_factory
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self.queue = PreloadQueue(self.config.preload_queue_size)
        self.metrics = WarmingMetrics()
        self._warmup_lock = threading.Lock()

    # Preload queue

    def enqueue(self, key: str, reason: str = "manual") -> bool:
        """Add a key to the preload queue"""
        if self.queue.push(key):
            self.metrics.increment('preloads_queued')
            self.logger.debug(f"Cache {self.cache.name}: queued {key} for preload ({reason})")
            return True
        if key not in self.queue:
            self.metrics.increment('preloads_dropped')
            self.logger.debug(f"Cache {self.cache.name}: preload queue full, dropped {key}")
        return False

    def execute_preload_strategy(self) -> Dict[str, int]:
        """Materialize the next batch of queued keys.

        A failing key is logged and skipped; it is not retried in the same
        cycle.
        """
        batch = self.queue.pop_batch(self.config.preload_batch_size)
        results = {'attempted': len(batch), 'succeeded': 0, 'skipped': 0, 'failed': 0}
        if not batch:
            return results

        self.logger.debug(f"Cache {self.cache.name}: preloading {len(batch)} keys")

        for key in batch:
            try:
                if self.cache.preload_key(key):
                    results['succeeded'] += 1
                    self.metrics.increment('preloads_succeeded')
                else:
                    results['skipped'] += 1
                    self.metrics.increment('preloads_skipped')
            except Exception as e:
                results['failed'] += 1
                self.metrics.increment('preloads_failed')
                self.logger.error(f"Cache {self.cache.name}: failed to preload key {key}: {e}")

        return results

    # Warmup

    @property
    def warmup_in_progress(self) -> bool:
        return self._warmup_lock.locked()

    def warmup_cache(self) -> bool:
        """Seed critical keys and the most frequently used keys.

        Returns False without waiting if another warmup is already running on
        this cache. Errors are logged, never raised.
        """
        if not self._warmup_lock.acquire(blocking=False):
            self.metrics.increment('warmup_skipped')
            self.logger.debug(f"Cache {self.cache.name}: warmup already in progress, skipping")
            return False

        try:
            self.metrics.increment('warmup_runs')
            self.logger.info(f"Starting cache warmup for {self.cache.name}")
            warmed = self._warm_critical_keys() + self._warm_frequent_keys()
            self.metrics.increment('keys_warmed', warmed)
            self.logger.info(f"Cache warmup completed for {self.cache.name}. Warmed {warmed} keys")
        except Exception as e:
            self.metrics.increment('warmup_failures')
            self.logger.error(f"Cache warmup failed for {self.cache.name}: {e}")
        finally:
            self._warmup_lock.release()

        return True

    def _generate_default_value(self, key: str) -> Optional[Any]:
        if self.default_value_factory is None:
            return None
        return self.default_value_factory(key)

    def _warm_critical_keys(self) -> int:
        warmed = 0
        for key in self.config.critical_keys:
            if self.cache.has(key):
                continue

            value = self._generate_default_value(key)
            if value is None:
                continue

            if self.cache.store_value(key, value, ttl=self.config.base_ttl):
                # Synthetic history keeps fresh critical keys out of the first eviction rounds
                self.cache.patterns.seed(
                    key,
                    frequency=WARMUP_SEED_FREQUENCY,
                    priority=WARMUP_SEED_PRIORITY,
                    avg_access_interval=WARMUP_SEED_INTERVAL
                )
                warmed += 1
                self.logger.debug(f"Warmed up critical cache key: {key}")
        return warmed

    def _warm_frequent_keys(self) -> int:
        warmed = 0
        for pattern in self.cache.patterns.top_by_frequency(WARMUP_PATTERN_LIMIT):
            if pattern.frequency <= 0 or self.cache.has(pattern.key):
                continue

            value = self._generate_default_value(pattern.key)
            if value is None:
                continue

            if self.cache.store_value(pattern.key, value, ttl=self.config.base_ttl):
                warmed += 1
                self.logger.debug(f"Warmed up cache key: {pattern.key}")
        return warmed

    def clear(self):
        self.queue.clear()
