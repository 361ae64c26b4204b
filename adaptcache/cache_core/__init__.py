"""Cache Core - Configuration, errors and statistics shared by every cache"""

from .config import CacheConfig, ConfigManager
from .exceptions import AdaptCacheError, ConfigurationError, CacheCapacityError, PreloadError
from .metrics import CacheStats, CacheMetricsExporter, compute_hit_rate

__all__ = [
    'CacheConfig',
    'ConfigManager',
    'AdaptCacheError',
    'ConfigurationError',
    'CacheCapacityError',
    'PreloadError',
    'CacheStats',
    'CacheMetricsExporter',
    'compute_hit_rate',
]
