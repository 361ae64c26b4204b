"""Access Pattern Tracker - Per-key access statistics and priority scoring"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from ..cache_core.constants import (
    HIGH_PRIORITY_TIER, MEDIUM_PRIORITY_TIER, NEW_PATTERN_PRIORITY, STALE_PATTERN_AGE,
    STALE_PATTERN_PRIORITY
)


@dataclass
class AccessPattern:
    """Observed access statistics for a single key"""
    key: str
    frequency: int = 1
    last_access: float = field(default_factory=time.time)
    avg_access_interval: float = 0.0   # seconds
    priority: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            'key': self.key,
            'frequency': self.frequency,
            'last_access': self.last_access,
            'avg_access_interval': self.avg_access_interval,
            'priority': self.priority,
        }


def calculate_priority(pattern: AccessPattern, now: float) -> int:
    """Score a pattern 0-100 from recency, frequency and access regularity.

    Each sub-score is 0-100 and the result is their rounded mean:

    - recency: 100 minus the minutes since the last access
    - frequency: two points per observed access
    - interval: 100 minus the smoothed interval in minutes, or a neutral 50
      while only one access has been seen
    """
    minutes_since = max(0.0, now - pattern.last_access) / 60
    recency_score = max(0.0, 100 - minutes_since)
    frequency_score = min(100, pattern.frequency * 2)
    if pattern.avg_access_interval > 0:
        interval_score = max(0.0, 100 - pattern.avg_access_interval / 60)
    else:
        interval_score = 50

    return int(round((recency_score + frequency_score + interval_score) / 3))


@dataclass
class PatternAnalysis:
    """Result of one pattern analysis pass"""
    high: int = 0
    medium: int = 0
    low: int = 0
    purged: int = 0

    @property
    def total(self) -> int:
        return self.high + self.medium + self.low


class AccessPatternTracker:
    """Table of AccessPattern records keyed by cache key"""

    def __init__(self, clock: Callable[[], float] = time.time,
                 lock: Optional[threading.RLock] = None):
        self.clock = clock
        self.lock = lock or threading.RLock()
        self.patterns: Dict[str, AccessPattern] = {}
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def record_access(self, key: str) -> AccessPattern:
        """Record a set, hit or miss for key and rescore it.

        A key seen for the first time keeps NEW_PATTERN_PRIORITY so one-off
        lookups never qualify for preloading.
        """
        now = self.clock()

        with self.lock:
            pattern = self.patterns.get(key)
            if pattern is None:
                pattern = AccessPattern(key=key, frequency=1, last_access=now,
                                        priority=NEW_PATTERN_PRIORITY)
                self.patterns[key] = pattern
                return pattern

            since_last = max(0.0, now - pattern.last_access)
            pattern.frequency += 1
            pattern.avg_access_interval = (pattern.avg_access_interval + since_last) / 2
            pattern.last_access = now
            pattern.priority = calculate_priority(pattern, now)
            return pattern

    def ensure(self, key: str) -> AccessPattern:
        """Get the pattern for key, creating one without counting an access"""
        with self.lock:
            pattern = self.patterns.get(key)
            if pattern is None:
                return self.record_access(key)
            return pattern

    def seed(self, key: str, frequency: int, priority: int,
             avg_access_interval: float = 0.0) -> AccessPattern:
        """Install a synthetic pattern, replacing any observed one"""
        pattern = AccessPattern(
            key=key,
            frequency=frequency,
            last_access=self.clock(),
            avg_access_interval=avg_access_interval,
            priority=priority
        )
        with self.lock:
            self.patterns[key] = pattern
        return pattern

    def get(self, key: str) -> Optional[AccessPattern]:
        with self.lock:
            return self.patterns.get(key)

    def priority_of(self, key: str) -> Optional[int]:
        pattern = self.get(key)
        return pattern.priority if pattern else None

    def remove(self, key: str) -> bool:
        with self.lock:
            return self.patterns.pop(key, None) is not None

    def clear(self):
        with self.lock:
            self.patterns.clear()

    def snapshot(self) -> List[AccessPattern]:
        with self.lock:
            return list(self.patterns.values())

    def refresh_priorities(self):
        """Rescore every pattern against the current time so idle keys decay"""
        now = self.clock()
        with self.lock:
            for pattern in self.patterns.values():
                pattern.priority = calculate_priority(pattern, now)

    def analyze(self) -> PatternAnalysis:
        """Bucket patterns into priority tiers and purge stale tracking state"""
        now = self.clock()
        cutoff = now - STALE_PATTERN_AGE
        analysis = PatternAnalysis()

        with self.lock:
            self.refresh_priorities()

            for pattern in self.patterns.values():
                if pattern.priority > HIGH_PRIORITY_TIER:
                    analysis.high += 1
                elif pattern.priority > MEDIUM_PRIORITY_TIER:
                    analysis.medium += 1
                else:
                    analysis.low += 1

            stale = [key for key, pattern in self.patterns.items()
                     if pattern.last_access < cutoff and pattern.priority < STALE_PATTERN_PRIORITY]
            for key in stale:
                del self.patterns[key]
            analysis.purged = len(stale)

        if analysis.purged:
            self.logger.debug(f"Cleaned up {analysis.purged} stale access patterns")

        return analysis

    def top_by_priority(self, limit: int, min_priority: Optional[int] = None) -> List[AccessPattern]:
        """Highest priority patterns first, optionally above a threshold"""
        with self.lock:
            candidates = [p for p in self.patterns.values()
                          if min_priority is None or p.priority > min_priority]
        candidates.sort(key=lambda p: p.priority, reverse=True)
        return candidates[:limit]

    def top_by_frequency(self, limit: int) -> List[AccessPattern]:
        with self.lock:
            candidates = list(self.patterns.values())
        candidates.sort(key=lambda p: p.frequency, reverse=True)
        return candidates[:limit]

    def lowest_priority(self, keys: Iterable[str], limit: int) -> List[str]:
        """The ``limit`` lowest priority keys among ``keys``.

        Keys without a pattern rank lowest of all.
        """
        with self.lock:
            ranked = sorted(keys, key=lambda k: self.patterns[k].priority if k in self.patterns else -1)
        return ranked[:limit]

    def __len__(self) -> int:
        return len(self.patterns)

    def __contains__(self, key: str) -> bool:
        return key in self.patterns
