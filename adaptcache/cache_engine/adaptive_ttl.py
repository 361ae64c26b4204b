"""Adaptive TTL - Derive per-key expiration from access history"""

from typing import Optional

from ..cache_core.constants import (
    MAX_FREQUENCY_MULTIPLIER, MAX_INTERVAL_MULTIPLIER, INTERVAL_REFERENCE_SECONDS
)
from .access_patterns import AccessPattern


def frequency_multiplier(pattern: AccessPattern) -> float:
    """1x for a fresh key, +0.1x per access, capped at 3x"""
    return min(MAX_FREQUENCY_MULTIPLIER, pattern.frequency / 10 + 1)


def interval_multiplier(pattern: AccessPattern) -> float:
    """Keys touched more often than once a minute earn up to 2x; slower keys shrink"""
    if pattern.avg_access_interval <= 0:
        return 1.0
    return min(MAX_INTERVAL_MULTIPLIER, INTERVAL_REFERENCE_SECONDS / pattern.avg_access_interval)


def calculate_adaptive_ttl(pattern: Optional[AccessPattern], base_ttl: float) -> float:
    """TTL in seconds for a key, scaled from ``base_ttl`` by its access pattern"""
    if pattern is None:
        return base_ttl
    return base_ttl * frequency_multiplier(pattern) * interval_multiplier(pattern)
