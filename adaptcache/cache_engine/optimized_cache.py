"""Optimized Cache - Self-tuning in-memory cache instance"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

import psutil

from ..cache_core.config import CacheConfig
from ..cache_core.constants import APPROX_ENTRY_SIZE_BYTES, TOP_PATTERNS_IN_REPORT
from ..cache_core.exceptions import CacheCapacityError, ConfigurationError, PreloadError
from ..cache_core.metrics import CacheStats, compute_hit_rate
from .access_patterns import AccessPatternTracker, PatternAnalysis
from .adaptive_ttl import calculate_adaptive_ttl
from .entry_store import EntryStore
from .eviction import LowPriorityEvictionPolicy
from .optimizer import HitRateOptimizer
from .preload import CacheWarmingManager, DefaultValueFactory
from .scheduler import MaintenanceScheduler


PreloadLoader = Callable[[str], Optional[Any]]

_MISSING = object()


class OptimizedCache:
    """Key/value cache with adaptive TTLs, priority eviction and preloading.

    Every public operation is synchronous and safe to call from any thread.
    The entry store and the access pattern table share ``self.lock``; the
    background maintenance tasks go through the same lock.

    Subsystem knowledge enters only through two hooks:

    - ``preload_loader(key)`` fetches a fresh value for a queued key
    - ``default_value_factory(key)`` supplies seed values during warmup

    Either may return None to decline. Subclasses may override
    :meth:`preload_key` instead of passing a loader.
    """

    def __init__(self, name: str, config: CacheConfig,
                 preload_loader: Optional[PreloadLoader] = None,
                 default_value_factory: Optional[DefaultValueFactory] = None,
                 clock: Callable[[], float] = time.time,
                 start_maintenance: bool = True):
        if not isinstance(config, CacheConfig):
            raise ConfigurationError(f"Cache '{name}' needs a CacheConfig, got {type(config).__name__}")

        self.name = name
        self.config = config
        self.clock = clock
        self.preload_loader = preload_loader
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self.lock = threading.RLock()
        self.store = EntryStore(config.max_keys, clock=clock, lock=self.lock)
        self.patterns = AccessPatternTracker(clock=clock, lock=self.lock)
        self.eviction_policy = LowPriorityEvictionPolicy(config.max_keys)
        self.warming = CacheWarmingManager(self, default_value_factory)
        self.optimizer = HitRateOptimizer(self)

        self.hits = 0
        self.misses = 0

        self.scheduler = MaintenanceScheduler(name)
        self._register_maintenance_tasks()
        if start_maintenance:
            self.start_maintenance()

        self.logger.info(f"OptimizedCache '{name}' initialized (ttl={config.base_ttl}s, "
                         f"max_keys={config.max_keys}, adaptive_ttl={config.adaptive_ttl_enabled})")

    # ------------------------------------------------------------------
    # Consumer operations
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Get a live value, or ``default`` on a miss"""
        with self.lock:
            entry = self.store.peek(key)
            if entry is not None and entry.is_expired(self.clock()):
                self._expire(key)
                entry = None

            if entry is not None:
                self.hits += 1
                self.patterns.record_access(key)
                self.logger.debug(f"Cache {self.name}: HIT for key {key}")
                return entry.value

            self.misses += 1
            pattern = self.patterns.record_access(key)
            if pattern.priority > self.config.preload_threshold:
                self.warming.enqueue(key, reason="miss")

        self.logger.debug(f"Cache {self.name}: MISS for key {key}")
        return default

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        """Store a value; False if the cache refused the write.

        Without an explicit ``ttl`` the adaptive TTL is used when enabled,
        otherwise the base TTL.
        """
        with self.lock:
            ttl = self._resolve_ttl(key, ttl)
            try:
                self.store.set(key, value, ttl)
            except CacheCapacityError as e:
                self.logger.warning(f"Cache {self.name}: FAILED to set key {key}: {e}")
                return False
            self.patterns.record_access(key)

        self.logger.debug(f"Cache {self.name}: SET key {key} with TTL {ttl}")
        return True

    def has(self, key: str) -> bool:
        """Existence check that leaves statistics untouched"""
        return self.store.has(key)

    def delete(self, key: str) -> int:
        """Delete a key and its access history, return count removed"""
        with self.lock:
            removed = self.store.delete(key)
            self.patterns.remove(key)
            self.warming.queue.discard(key)
        return removed

    def flush(self):
        """Remove all entries and patterns; counters survive (see flush_stats)"""
        with self.lock:
            self.store.clear()
            self.patterns.clear()
            self.warming.clear()
        self.logger.info(f"Cache {self.name}: All keys flushed")

    def flush_stats(self):
        """Reset hit/miss counters without touching cached data"""
        with self.lock:
            self.hits = 0
            self.misses = 0

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key containing ``pattern``, return count removed"""
        with self.lock:
            matching = [key for key in self.store.keys() if pattern in str(key)]
            deleted = sum(self.delete(key) for key in matching)

        self.logger.info(f"Cache {self.name}: Invalidated {deleted} keys matching pattern '{pattern}'")
        return deleted

    def track_hit(self):
        """Count a hit served outside get(), e.g. by HTTP middleware"""
        with self.lock:
            self.hits += 1

    def track_miss(self):
        with self.lock:
            self.misses += 1

    def get_or_load(self, key: str, loader: Callable[[], Any], ttl: Optional[float] = None) -> Any:
        """Return the cached value, or call ``loader`` and cache its result.

        A stored None counts as cached. A loader returning None is not
        cached. Loader errors propagate to the caller; nothing is cached for
        them.
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value

        value = loader()
        if value is not None:
            self.set(key, value, ttl)
        return value

    def get_stats(self) -> CacheStats:
        """Counters and live key count; entries waiting for the sweep are left out"""
        with self.lock:
            keys = self.store.live_count()
            return CacheStats(
                hits=self.hits,
                misses=self.misses,
                hit_rate=compute_hit_rate(self.hits, self.misses),
                keys=keys,
                size=keys * APPROX_ENTRY_SIZE_BYTES,
                total_operations=self.hits + self.misses
            )

    def get_optimization_report(self) -> Dict[str, Any]:
        """Diagnostic snapshot of tuning state"""
        top_patterns = self.patterns.top_by_priority(TOP_PATTERNS_IN_REPORT)
        report = {
            'name': self.name,
            'stats': self.get_stats().to_dict(),
            'current_hit_rate': self.optimizer.current_hit_rate,
            'target_hit_rate': self.optimizer.target_hit_rate,
            'top_access_patterns': [p.to_dict() for p in top_patterns],
            'preload_queue_size': self.preload_queue_size,
            'config': self.config.to_dict(),
            'warming': self.warming.metrics.to_dict(),
            'maintenance': self.scheduler.to_dict(),
        }

        try:
            memory_info = psutil.virtual_memory()
            report['system_memory'] = {
                'available_mb': memory_info.available / (1024 * 1024),
                'used_percent': memory_info.percent,
            }
        except Exception as e:
            self.logger.debug(f"System memory info unavailable: {e}")

        return report

    # ------------------------------------------------------------------
    # Adaptive TTL, preload and warmup
    # ------------------------------------------------------------------

    def calculate_adaptive_ttl(self, key: str) -> float:
        return calculate_adaptive_ttl(self.patterns.get(key), self.config.base_ttl)

    def _resolve_ttl(self, key: str, ttl: Optional[float]) -> float:
        if ttl is not None:
            return ttl
        if self.config.adaptive_ttl_enabled:
            return self.calculate_adaptive_ttl(key)
        return self.config.base_ttl

    def store_value(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        """Maintenance write used by preload, warmup and TTL extension.

        Unlike set() this does not count as an access, but it still makes
        sure the key has a pattern.
        """
        with self.lock:
            ttl = self._resolve_ttl(key, ttl)
            try:
                self.store.set(key, value, ttl)
            except CacheCapacityError as e:
                self.logger.warning(f"Cache {self.name}: FAILED to store key {key}: {e}")
                return False
            self.patterns.ensure(key)
        return True

    def preload_key(self, key: str) -> bool:
        """Fetch and store a fresh value for key; True if something was cached"""
        if self.preload_loader is None:
            self.logger.debug(f"Cache {self.name}: no preload loader, skipped {key}")
            return False

        try:
            value = self.preload_loader(key)
        except Exception as e:
            raise PreloadError(key, e) from e

        if value is None:
            return False

        stored = self.store_value(key, value)
        if stored:
            self.logger.debug(f"Cache {self.name}: Preloaded key {key}")
        return stored

    def warmup_cache(self) -> bool:
        """Run a warmup now; False if one is already running"""
        return self.warming.warmup_cache()

    def warmup_cache_async(self) -> threading.Thread:
        """Start a warmup on a background thread and return it for joining"""
        thread = threading.Thread(target=self.warmup_cache, name=f"{self.name}-warmup", daemon=True)
        thread.start()
        return thread

    @property
    def warmup_in_progress(self) -> bool:
        return self.warming.warmup_in_progress

    @property
    def preload_queue_size(self) -> int:
        return len(self.warming.queue)

    @property
    def current_hit_rate(self) -> float:
        return self.optimizer.current_hit_rate

    # ------------------------------------------------------------------
    # Maintenance cycles
    # ------------------------------------------------------------------

    def remove_expired(self) -> List[str]:
        """Expiry sweep: drop expired entries, queueing valuable ones for preload"""
        with self.lock:
            expired = self.store.expired_keys()
            for key in expired:
                self._expire(key)

        if expired:
            self.logger.debug(f"Cache {self.name}: expired {len(expired)} keys")
        return expired

    def _expire(self, key: str):
        """Caller holds the lock"""
        priority = self.patterns.priority_of(key)
        if priority is not None and priority > self.config.expiry_preload_threshold:
            self.warming.enqueue(key, reason="expired")
        self.store.delete(key)

    def analyze_access_patterns(self) -> PatternAnalysis:
        analysis = self.patterns.analyze()
        self.logger.debug(f"Cache {self.name} access patterns: High={analysis.high}, "
                          f"Medium={analysis.medium}, Low={analysis.low}")
        return analysis

    def optimize_cache_strategy(self) -> Dict[str, Any]:
        return self.optimizer.optimize_cache_strategy()

    def cleanup_low_priority_keys(self) -> List[str]:
        """Evict the bottom 10% of max_keys by priority when over 80% full"""
        with self.lock:
            evicted = self.eviction_policy.evict(self.store, self.patterns)
            for key in evicted:
                self.warming.queue.discard(key)

        if evicted:
            self.logger.info(f"Cache {self.name}: Cleaned up {len(evicted)} low-priority keys")
        return evicted

    def execute_preload_strategy(self) -> Dict[str, int]:
        return self.warming.execute_preload_strategy()

    def check_hit_rate(self) -> bool:
        return self.optimizer.check_hit_rate()

    def _register_maintenance_tasks(self):
        self.scheduler.add_task('expiry_sweep', self.config.check_period, self.remove_expired)
        self.scheduler.add_task('pattern_analysis', self.config.analysis_interval,
                                self.analyze_access_patterns)
        self.scheduler.add_task('strategy_optimization', self.config.optimization_interval,
                                self.optimize_cache_strategy)
        self.scheduler.add_task('preload_execution', self.config.preload_interval,
                                self.execute_preload_strategy)
        self.scheduler.add_task('hit_rate_check', self.config.hit_rate_check_interval,
                                self.check_hit_rate)

    def start_maintenance(self):
        self.scheduler.start()

    def shutdown(self):
        """Stop background maintenance; cached data stays readable"""
        self.scheduler.shutdown()
        self.logger.info(f"OptimizedCache '{self.name}' shutdown completed")

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        """Stored entries, including expired ones the sweep has not removed"""
        return len(self.store)

    def __repr__(self) -> str:
        return f"OptimizedCache(name={self.name!r}, keys={len(self.store)}, max_keys={self.config.max_keys})"
