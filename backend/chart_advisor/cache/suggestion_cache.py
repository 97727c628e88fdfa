"""
Suggestion cache.

Caches local suggestion lists keyed by a content fingerprint of the table.
The cache is a pure optimization: local suggestions are deterministic, so a
hit returns exactly what a miss would recompute.
"""

import time
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Tuple

from chart_advisor.models.suggestion import ChartSuggestion
from chart_advisor.utils.logger import get_logger

# Initialize logger
logger = get_logger(__name__)


class SuggestionCache:
    """
    In-memory LRU cache for suggestion lists.

    Entries expire after ``ttl_seconds``; the least recently used entry is
    evicted when the cache is full.
    """

    def __init__(self, max_cache_size: int = 128, ttl_seconds: int = 3600):
        """
        Initialize the suggestion cache.

        Args:
            max_cache_size: Maximum number of cache entries
            ttl_seconds: Time-to-live in seconds for cache entries
        """
        self.max_cache_size = max_cache_size
        self.ttl_seconds = ttl_seconds

        self.cache: "OrderedDict[str, Tuple[float, List[ChartSuggestion]]]" = OrderedDict()

        # Stats
        self.hits = 0
        self.misses = 0
        self.inserts = 0
        self.evictions = 0

    def get(self, fingerprint: str) -> Optional[List[ChartSuggestion]]:
        """
        Get cached suggestions.

        Args:
            fingerprint: Table content fingerprint

        Returns:
            Copy of the cached list, or None if not found/expired
        """
        entry = self.cache.get(fingerprint)
        if entry is not None:
            timestamp, suggestions = entry
            if time.time() - timestamp <= self.ttl_seconds:
                self.cache.move_to_end(fingerprint)
                self.hits += 1
                logger.debug(f"Suggestion cache hit for table {fingerprint[:12]}")
                return list(suggestions)

            logger.debug(f"Suggestion cache expired for table {fingerprint[:12]}")
            del self.cache[fingerprint]

        self.misses += 1
        return None

    def set(self, fingerprint: str, suggestions: List[ChartSuggestion]) -> None:
        """
        Set a cache entry.

        Args:
            fingerprint: Table content fingerprint
            suggestions: Suggestions to cache
        """
        if self.max_cache_size <= 0:
            return

        self.cache[fingerprint] = (time.time(), list(suggestions))
        self.cache.move_to_end(fingerprint)
        self.inserts += 1

        while len(self.cache) > self.max_cache_size:
            evicted, _ = self.cache.popitem(last=False)
            self.evictions += 1
            logger.debug(f"Evicted suggestions for table {evicted[:12]}")

    def clear(self) -> int:
        count = len(self.cache)
        self.cache.clear()
        return count

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        lookups = self.hits + self.misses
        return {
            "entries": len(self.cache),
            "max_entries": self.max_cache_size,
            "hits": self.hits,
            "misses": self.misses,
            "inserts": self.inserts,
            "evictions": self.evictions,
            "hit_rate": self.hits / lookups if lookups else 0.0,
        }
