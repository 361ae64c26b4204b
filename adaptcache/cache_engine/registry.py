"""Cache Registry - Named cache instances built once at startup and passed around explicitly"""

import hashlib
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..cache_core.config import CacheConfig, ConfigManager
from ..cache_core.metrics import CacheStats
from .optimized_cache import OptimizedCache, PreloadLoader
from .preload import DefaultValueFactory


def api_default_value(key: str) -> Optional[Any]:
    if key.startswith('/api/'):
        return {'data': 'default api response'}
    return None


def service_default_value(key: str) -> Optional[Any]:
    if key.startswith('services:'):
        return {'status': 'default_status'}
    if key.startswith('users:'):
        return {'count': 0}
    return None


def health_default_value(key: str) -> Optional[Any]:
    if key.startswith('system:'):
        return {'status': 'unknown'}
    if key.startswith('health:'):
        return {'value': None, 'status': 'pending'}
    return None


def session_default_value(key: str) -> Optional[Any]:
    if key.startswith('session:'):
        return {'active': 0}
    if key.startswith('user:'):
        return {'id': key.split(':', 1)[1], 'anonymous': True}
    return None


# Reference deployment: one cache per subsystem
DEFAULT_CACHE_PROFILES: Dict[str, Tuple[CacheConfig, DefaultValueFactory]] = {
    'database': (
        CacheConfig(base_ttl=300, check_period=60, max_keys=1000, adaptive_ttl_enabled=True,
                    critical_keys=('services:active', 'users:count'),
                    preload_strategies=('frequency', 'recency')),
        service_default_value,
    ),
    'api': (
        CacheConfig(base_ttl=60, check_period=30, max_keys=500, adaptive_ttl_enabled=True,
                    critical_keys=('/api/health', '/api/services', '/api/auth/me'),
                    preload_strategies=('frequency',)),
        api_default_value,
    ),
    'health': (
        CacheConfig(base_ttl=300, check_period=60, max_keys=500, adaptive_ttl_enabled=False,
                    critical_keys=('system:status', 'health:metric:0'),
                    preload_strategies=('critical',)),
        health_default_value,
    ),
    'session': (
        CacheConfig(base_ttl=1800, check_period=300, max_keys=2000, adaptive_ttl_enabled=True,
                    critical_keys=('user:1', 'session:active'),
                    preload_strategies=('frequency', 'recency')),
        session_default_value,
    ),
}


def make_cache_key(*parts: Any) -> str:
    """Create a deterministic cache key from arguments"""
    key_parts = []
    for part in parts:
        if part is None:
            key_parts.append("none")
        elif isinstance(part, (str, int, float, bool)):
            key_parts.append(str(part))
        else:
            key_parts.append(repr(part))

    combined = ":".join(key_parts)
    return hashlib.sha256(combined.encode('utf-8')).hexdigest()[:32]


class CacheRegistry:
    """Owns the named caches of a process.

    Build it once at startup and hand it (or single caches from it) to the
    code that needs caching. Instances never coordinate with each other.
    """

    def __init__(self):
        self._caches: Dict[str, OptimizedCache] = {}
        self._lock = threading.Lock()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def create(self, name: str, config: CacheConfig,
               preload_loader: Optional[PreloadLoader] = None,
               default_value_factory: Optional[DefaultValueFactory] = None,
               clock: Callable[[], float] = time.time,
               start_maintenance: bool = True) -> OptimizedCache:
        with self._lock:
            if name in self._caches:
                raise ValueError(f"Cache '{name}' already exists")
            cache = OptimizedCache(
                name, config,
                preload_loader=preload_loader,
                default_value_factory=default_value_factory,
                clock=clock,
                start_maintenance=start_maintenance
            )
            self._caches[name] = cache
        return cache

    def get(self, name: str) -> OptimizedCache:
        try:
            return self._caches[name]
        except KeyError:
            raise KeyError(f"No cache named '{name}'") from None

    def names(self) -> List[str]:
        return list(self._caches)

    def items(self) -> List[Tuple[str, OptimizedCache]]:
        return list(self._caches.items())

    def get_all_stats(self) -> Dict[str, CacheStats]:
        return {name: cache.get_stats() for name, cache in self.items()}

    def get_all_reports(self) -> Dict[str, Dict[str, Any]]:
        return {name: cache.get_optimization_report() for name, cache in self.items()}

    def warmup_all(self) -> Dict[str, bool]:
        """Warm every cache in turn; a failing cache does not stop the rest"""
        results = {}
        for name, cache in self.items():
            results[name] = cache.warmup_cache()
        return results

    def shutdown_all(self):
        for _, cache in self.items():
            cache.shutdown()
        self.logger.info(f"Shut down {len(self._caches)} caches")

    def __contains__(self, name: str) -> bool:
        return name in self._caches

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._caches)


def create_default_registry(config_manager: Optional[ConfigManager] = None,
                            preload_loaders: Optional[Dict[str, PreloadLoader]] = None,
                            clock: Callable[[], float] = time.time,
                            start_maintenance: bool = True) -> CacheRegistry:
    """Registry with the database/api/health/session caches.

    Configurations from ``config_manager`` replace the built-in profile of
    the same name and may add further caches, which get no default values.
    """
    preload_loaders = preload_loaders or {}
    configs: Dict[str, Tuple[CacheConfig, Optional[DefaultValueFactory]]] = dict(DEFAULT_CACHE_PROFILES)

    if config_manager is not None:
        for name in config_manager.names():
            factory = configs[name][1] if name in configs else None
            configs[name] = (config_manager.get(name), factory)

    registry = CacheRegistry()
    for name, (config, factory) in configs.items():
        registry.create(
            name, config,
            preload_loader=preload_loaders.get(name),
            default_value_factory=factory,
            clock=clock,
            start_maintenance=start_maintenance
        )
    return registry
