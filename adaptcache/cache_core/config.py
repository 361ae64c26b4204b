"""Cache Core Configuration - Per-instance cache settings and file loading"""

import json
import logging
import os
from dataclasses import dataclass, fields, asdict
from typing import Any, Dict, Optional, Tuple

import yaml

from .constants import (
    DEFAULT_CHECK_PERIOD, DEFAULT_ANALYSIS_INTERVAL, DEFAULT_OPTIMIZATION_INTERVAL,
    DEFAULT_PRELOAD_INTERVAL, DEFAULT_HIT_RATE_CHECK_INTERVAL, DEFAULT_TARGET_HIT_RATE,
    DEFAULT_PRELOAD_THRESHOLD, DEFAULT_EXPIRY_PRELOAD_THRESHOLD,
    DEFAULT_PRELOAD_BATCH_SIZE, DEFAULT_PRELOAD_QUEUE_SIZE
)
from .exceptions import ConfigurationError


# ===============================================================================
# CONFIGURATION DATA CLASS
# ===============================================================================

@dataclass(frozen=True)
class CacheConfig:
    """Immutable settings for a single named cache instance"""

    # Expiration
    base_ttl: float = 300           # seconds
    check_period: float = DEFAULT_CHECK_PERIOD
    adaptive_ttl_enabled: bool = True

    # Capacity
    max_keys: int = 1000

    # Warmup
    critical_keys: Tuple[str, ...] = ()
    preload_strategies: Tuple[str, ...] = ()     # informational tags, reported but not acted on

    # Hit rate feedback loop
    target_hit_rate: float = DEFAULT_TARGET_HIT_RATE

    # Preloading
    preload_threshold: int = DEFAULT_PRELOAD_THRESHOLD
    expiry_preload_threshold: int = DEFAULT_EXPIRY_PRELOAD_THRESHOLD
    preload_batch_size: int = DEFAULT_PRELOAD_BATCH_SIZE
    preload_queue_size: int = DEFAULT_PRELOAD_QUEUE_SIZE

    # Maintenance schedule (seconds)
    analysis_interval: float = DEFAULT_ANALYSIS_INTERVAL
    optimization_interval: float = DEFAULT_OPTIMIZATION_INTERVAL
    preload_interval: float = DEFAULT_PRELOAD_INTERVAL
    hit_rate_check_interval: float = DEFAULT_HIT_RATE_CHECK_INTERVAL

    def __post_init__(self):
        # Lists coming from YAML/JSON are normalized to tuples to keep the config hashable
        object.__setattr__(self, 'critical_keys', tuple(self.critical_keys or ()))
        object.__setattr__(self, 'preload_strategies', tuple(self.preload_strategies or ()))
        self.validate()

    def validate(self):
        """Reject settings the cache cannot run with"""
        if isinstance(self.max_keys, bool) or not isinstance(self.max_keys, int) or self.max_keys <= 0:
            raise ConfigurationError(f"max_keys must be a positive integer, got {self.max_keys!r}")

        positive = ('base_ttl', 'check_period', 'analysis_interval', 'optimization_interval',
                    'preload_interval', 'hit_rate_check_interval')
        for name in positive:
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive number, got {value!r}")

        if not 0 <= self.target_hit_rate <= 100:
            raise ConfigurationError(f"target_hit_rate must be within 0-100, got {self.target_hit_rate}")

        for name in ('preload_threshold', 'expiry_preload_threshold'):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ConfigurationError(f"{name} must be within 0-100, got {value}")

        if self.preload_batch_size <= 0:
            raise ConfigurationError("preload_batch_size must be at least 1")
        if self.preload_queue_size <= 0:
            raise ConfigurationError("preload_queue_size must be at least 1")

        for key in self.critical_keys:
            if not isinstance(key, str) or not key:
                raise ConfigurationError(f"critical_keys must be non-empty strings, got {key!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CacheConfig':
        """Build a config from a plain mapping, rejecting unknown settings"""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown cache settings: {', '.join(sorted(unknown))}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reports and serialization"""
        data = asdict(self)
        data['critical_keys'] = list(self.critical_keys)
        data['preload_strategies'] = list(self.preload_strategies)
        return data


# ===============================================================================
# CONFIGURATION MANAGER
# ===============================================================================

class ConfigManager:
    """Loads named cache configurations from a YAML or JSON file

    The file maps cache names to their settings::

        api:
          base_ttl: 60
          max_keys: 500
          critical_keys: ["/api/health"]
    """

    def __init__(self, config_path: Optional[str] = None,
                 overrides: Optional[Dict[str, Dict[str, Any]]] = None):
        self.config_path = config_path
        self.overrides = overrides or {}
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.configs: Dict[str, CacheConfig] = {}
        self._load_config()

    def _load_config(self):
        """Load configuration from file and apply overrides"""
        raw: Dict[str, Any] = {}

        if self.config_path:
            if not os.path.exists(self.config_path):
                raise ConfigurationError(f"Config file not found: {self.config_path}")
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    if self.config_path.endswith('.json'):
                        raw = json.load(f)
                    else:
                        raw = yaml.safe_load(f) or {}
            except (OSError, ValueError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {self.config_path}: {e}") from e

            if not isinstance(raw, dict):
                raise ConfigurationError(f"Config file {self.config_path} must contain a mapping of cache names")

        for name, settings in self.overrides.items():
            merged = dict(raw.get(name) or {})
            merged.update(settings)
            raw[name] = merged

        for name, settings in raw.items():
            if not isinstance(settings, dict):
                raise ConfigurationError(f"Settings for cache '{name}' must be a mapping")
            self.configs[name] = CacheConfig.from_dict(settings)

        self.logger.debug(f"Loaded {len(self.configs)} cache configurations")

    def get(self, name: str) -> Optional[CacheConfig]:
        """Get the configuration for a named cache"""
        return self.configs.get(name)

    def names(self):
        return list(self.configs)
