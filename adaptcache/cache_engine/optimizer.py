"""Hit-Rate Optimizer - Closed feedback loop from observed hit rate to TTL and preloading"""

import logging
from typing import Any, Dict, TYPE_CHECKING

from ..cache_core.constants import (
    IMPROVEMENT_PRELOAD_LIMIT, IMPROVEMENT_PRELOAD_PRIORITY, STRATEGY_HIT_RATE_THRESHOLD,
    TTL_EXTENSION_FACTOR, TTL_EXTENSION_MIN_FREQUENCY, TTL_EXTENSION_MIN_PRIORITY
)

if TYPE_CHECKING:
    from .optimized_cache import OptimizedCache


class HitRateOptimizer:
    """Compares a cache's hit rate to its target and pulls the two available levers.

    Below target, the hottest keys are queued for preload and frequently used
    cached keys get their TTL stretched. Neither lever needs cooperation from
    callers.
    """

    def __init__(self, cache: 'OptimizedCache'):
        self.cache = cache
        self.config = cache.config
        self.target_hit_rate = cache.config.target_hit_rate
        self.current_hit_rate = 0.0
        self.improvement_runs = 0
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def update_hit_rate(self) -> float:
        self.current_hit_rate = self.cache.get_stats().hit_rate
        return self.current_hit_rate

    def check_hit_rate(self) -> bool:
        """Periodic check; returns True when improvements were applied"""
        self.update_hit_rate()
        if self.current_hit_rate < self.target_hit_rate:
            self.implement_hit_rate_improvements()
            return True
        return False

    def implement_hit_rate_improvements(self) -> Dict[str, int]:
        self.improvement_runs += 1
        if self.current_hit_rate < 30:
            self.logger.info(f"Cache {self.cache.name}: implementing hit rate improvements. "
                             f"Current: {self.current_hit_rate}%, Target: {self.target_hit_rate}%")

        queued = 0
        hottest = self.cache.patterns.top_by_priority(
            IMPROVEMENT_PRELOAD_LIMIT, min_priority=IMPROVEMENT_PRELOAD_PRIORITY
        )
        for pattern in hottest:
            if self.cache.warming.enqueue(pattern.key, reason="hit rate below target"):
                queued += 1

        extended = self.extend_ttl_for_frequent_keys()
        return {'queued': queued, 'extended': extended}

    def extend_ttl_for_frequent_keys(self) -> int:
        """Rewrite hot cached keys with 1.5x their adaptive TTL"""
        extended = 0
        with self.cache.lock:
            frequent = [p for p in self.cache.patterns.snapshot()
                        if p.frequency > TTL_EXTENSION_MIN_FREQUENCY
                        and p.priority > TTL_EXTENSION_MIN_PRIORITY]

            for pattern in frequent:
                entry = self.cache.store.get(pattern.key)
                if entry is None:
                    continue
                ttl = self.cache.calculate_adaptive_ttl(pattern.key) * TTL_EXTENSION_FACTOR
                if self.cache.store_value(pattern.key, entry.value, ttl=ttl):
                    extended += 1

        if extended:
            self.logger.debug(f"Cache {self.cache.name}: extended TTL for {extended} frequent keys")
        return extended

    def optimize_cache_strategy(self) -> Dict[str, Any]:
        """Two-minute strategy pass: improve hit rate and enforce the key budget"""
        stats = self.cache.get_stats()
        self.logger.info(f"Cache {self.cache.name} optimization: Hit rate {stats.hit_rate}%, Keys: {stats.keys}")

        results: Dict[str, Any] = {'hit_rate': stats.hit_rate, 'keys': stats.keys,
                                   'improved': False, 'evicted': []}

        if stats.hit_rate < STRATEGY_HIT_RATE_THRESHOLD:
            self.current_hit_rate = stats.hit_rate
            self.implement_hit_rate_improvements()
            results['improved'] = True

        results['evicted'] = self.cache.cleanup_low_priority_keys()
        return results
