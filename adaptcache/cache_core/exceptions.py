"""
AdaptCache Custom Exceptions
Standardized exception hierarchy for cache operations
"""

class AdaptCacheError(Exception):
    """Base exception for all AdaptCache errors"""
    pass


class ConfigurationError(AdaptCacheError):
    """Invalid cache configuration"""
    pass


class CacheCapacityError(AdaptCacheError):
    """Entry store refused a write because its key ceiling is reached"""

    def __init__(self, key: str, max_keys: int):
        super().__init__(f"Cache is full ({max_keys} keys), cannot store key '{key}'")
        self.key = key
        self.max_keys = max_keys


class PreloadError(AdaptCacheError):
    """A preload loader failed to materialize a key"""

    def __init__(self, key: str, cause: Exception):
        super().__init__(f"Preload of key '{key}' failed: {cause}")
        self.key = key
        self.cause = cause
