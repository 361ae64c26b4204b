"""Cache Engine - Self-tuning cache instances, maintenance and warmup"""

from .access_patterns import AccessPattern, AccessPatternTracker, PatternAnalysis, calculate_priority
from .adaptive_ttl import calculate_adaptive_ttl
from .entry_store import CacheEntry, EntryStore
from .eviction import LowPriorityEvictionPolicy
from .optimized_cache import OptimizedCache
from .optimizer import HitRateOptimizer
from .preload import CacheWarmingManager, PreloadQueue, WarmingMetrics
from .registry import CacheRegistry, DEFAULT_CACHE_PROFILES, create_default_registry, make_cache_key
from .scheduler import MaintenanceScheduler

__all__ = [
    'AccessPattern',
    'AccessPatternTracker',
    'PatternAnalysis',
    'calculate_priority',
    'calculate_adaptive_ttl',
    'CacheEntry',
    'EntryStore',
    'LowPriorityEvictionPolicy',
    'OptimizedCache',
    'HitRateOptimizer',
    'CacheWarmingManager',
    'PreloadQueue',
    'WarmingMetrics',
    'CacheRegistry',
    'DEFAULT_CACHE_PROFILES',
    'create_default_registry',
    'make_cache_key',
    'MaintenanceScheduler',
]
