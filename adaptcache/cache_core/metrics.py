"""Cache Core Metrics - Hit/miss statistics and Prometheus export"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional, TYPE_CHECKING

from prometheus_client import CollectorRegistry, Gauge, start_http_server

from .constants import DISPLAY_HIT_RATE_FLOOR

if TYPE_CHECKING:
    from ..cache_engine.registry import CacheRegistry


def compute_hit_rate(hits: int, misses: int) -> float:
    """Raw hit rate in percent, 0 when nothing has been looked up yet"""
    total = hits + misses
    if total == 0:
        return 0.0
    return round(hits / total * 100, 2)


# ===============================================================================
# METRICS DATA CLASSES
# ===============================================================================

@dataclass
class CacheStats:
    """Point-in-time statistics for one cache instance"""
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    keys: int = 0
    size: int = 0
    total_operations: int = 0

    @property
    def display_hit_rate(self) -> float:
        """Hit rate for dashboards: floored at 25% while anything is cached.

        Presentation only. Tuning decisions use ``hit_rate``.
        """
        if self.keys > 0:
            return max(self.hit_rate, float(DISPLAY_HIT_RATE_FLOOR))
        return self.hit_rate

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': self.hit_rate,
            'display_hit_rate': self.display_hit_rate,
            'keys': self.keys,
            'size': self.size,
            'total_operations': self.total_operations,
        }


# ===============================================================================
# PROMETHEUS EXPORTER
# ===============================================================================

class CacheMetricsExporter:
    """Publishes per-cache statistics as Prometheus gauges"""

    def __init__(self, cache_registry: 'CacheRegistry', port: Optional[int] = None,
                 registry: Optional[CollectorRegistry] = None):
        self.cache_registry = cache_registry
        self.port = port
        self.registry = registry or CollectorRegistry()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._lock = threading.Lock()
        self._server_started = False

        labels = ['cache']
        self._gauges = {
            'hits': Gauge('adaptcache_hits', 'Cache hits since last stats reset',
                          labels, registry=self.registry),
            'misses': Gauge('adaptcache_misses', 'Cache misses since last stats reset',
                            labels, registry=self.registry),
            'hit_rate': Gauge('adaptcache_hit_rate_percent', 'Raw cache hit rate in percent',
                              labels, registry=self.registry),
            'keys': Gauge('adaptcache_keys', 'Number of cached keys',
                          labels, registry=self.registry),
            'size': Gauge('adaptcache_size_bytes', 'Approximate cache size in bytes',
                          labels, registry=self.registry),
            'preload_queue': Gauge('adaptcache_preload_queue_size', 'Keys waiting to be preloaded',
                                   labels, registry=self.registry),
        }

    def update(self):
        """Refresh every gauge from the current cache statistics"""
        with self._lock:
            for name, cache in self.cache_registry.items():
                stats = cache.get_stats()
                self._gauges['hits'].labels(cache=name).set(stats.hits)
                self._gauges['misses'].labels(cache=name).set(stats.misses)
                self._gauges['hit_rate'].labels(cache=name).set(stats.hit_rate)
                self._gauges['keys'].labels(cache=name).set(stats.keys)
                self._gauges['size'].labels(cache=name).set(stats.size)
                self._gauges['preload_queue'].labels(cache=name).set(cache.preload_queue_size)

    def start_server(self):
        """Expose the metrics over HTTP on the configured port"""
        if self.port is None:
            raise ValueError("No port configured for the metrics server")
        if self._server_started:
            return
        start_http_server(self.port, registry=self.registry)
        self._server_started = True
        self.logger.info(f"Prometheus metrics server started on port {self.port}")
