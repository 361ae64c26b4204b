__version__ = "1.0.0"

from .cache_core.config import CacheConfig, ConfigManager
from .cache_core.exceptions import AdaptCacheError, ConfigurationError, CacheCapacityError, PreloadError
from .cache_core.metrics import CacheStats, CacheMetricsExporter
from .cache_engine.optimized_cache import OptimizedCache
from .cache_engine.registry import CacheRegistry, create_default_registry, make_cache_key

__all__ = [
    "CacheConfig", "ConfigManager",
    "AdaptCacheError", "ConfigurationError", "CacheCapacityError", "PreloadError",
    "CacheStats", "CacheMetricsExporter",
    "OptimizedCache", "CacheRegistry", "create_default_registry", "make_cache_key",
]
