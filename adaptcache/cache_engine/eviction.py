"""Eviction Policy - Priority-ranked cleanup that keeps a cache under its key budget"""

import logging
import math
from typing import List

from ..cache_core.constants import EVICTION_TRIGGER_RATIO, EVICTION_BATCH_RATIO
from .access_patterns import AccessPatternTracker
from .entry_store import EntryStore


class LowPriorityEvictionPolicy:
    """Drops the lowest priority keys once a cache passes 80% of max_keys.

    This is a priority/LRU hybrid rather than strict LRU: a key touched once a
    moment ago can still go if peers outscore it on frequency and regularity.
    """

    def __init__(self, max_keys: int,
                 trigger_ratio: float = EVICTION_TRIGGER_RATIO,
                 batch_ratio: float = EVICTION_BATCH_RATIO):
        self.max_keys = max_keys
        self.trigger_ratio = trigger_ratio
        self.batch_ratio = batch_ratio
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def trigger_threshold(self) -> float:
        return self.max_keys * self.trigger_ratio

    @property
    def batch_size(self) -> int:
        return int(math.floor(self.max_keys * self.batch_ratio))

    def needs_eviction(self, key_count: int) -> bool:
        return key_count > self.trigger_threshold

    def select_victims(self, store: EntryStore, patterns: AccessPatternTracker) -> List[str]:
        """Stored keys to evict, lowest priority first"""
        if self.batch_size <= 0:
            return []
        return patterns.lowest_priority(store.keys(), self.batch_size)

    def evict(self, store: EntryStore, patterns: AccessPatternTracker) -> List[str]:
        """Remove victims from both the store and the pattern table.

        Callers hold the shared cache lock so selection and removal see the
        same state.
        """
        if not self.needs_eviction(len(store)):
            return []

        victims = self.select_victims(store, patterns)
        for key in victims:
            store.delete(key)
            patterns.remove(key)

        return victims
