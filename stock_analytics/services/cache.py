import copy
import logging
import threading
from collections import OrderedDict

from stock_analytics.config import get_settings

logger = logging.getLogger(__name__)


class ResultCache:
    """Thread-safe LRU memo of analytics responses.

    Keys are ``(operation, query)`` pairs where ``query`` is one of the frozen
    filter models. Values are deep-copied on the way in and out.
    """

    def __init__(self, max_entries=None, enabled=None):
        settings = get_settings()
        self.max_entries = max_entries if max_entries is not None else settings.RESULT_CACHE_MAX_ENTRIES
        self.enabled = enabled if enabled is not None else settings.CACHE_ENABLED
        self._entries = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._generation = 0

    def get(self, operation, query):
        if not self.enabled:
            return None
        key = (operation, query)
        with self._lock:
            value = self._entries.get(key)
            if value is None:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return copy.deepcopy(value)

    def put(self, operation, query, value, generation=None):
        """Store ``value`` unless the cache was cleared since ``generation``."""
        if not self.enabled or self.max_entries <= 0:
            return
        key = (operation, query)
        stored = copy.deepcopy(value)
        with self._lock:
            if generation is not None and generation != self._generation:
                return
            self._entries[key] = stored
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def get_or_compute(self, operation, query, compute):
        cached = self.get(operation, query)
        if cached is not None:
            return cached
        generation = self.generation
        value = compute()
        self.put(operation, query, value, generation=generation)
        return value

    @property
    def generation(self):
        with self._lock:
            return self._generation

    def invalidate_all(self):
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            self._generation += 1
        if dropped:
            logger.debug("Result cache cleared (%d entries).", dropped)

    def stats(self):
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "generation": self._generation,
                "enabled": self.enabled,
            }


result_cache = ResultCache()


__all__ = ["ResultCache", "result_cache"]
