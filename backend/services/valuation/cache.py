"""
Bounded LRU cache for memoized valuation queries.

Keys come from utils.cache_key.build_json_cache_key(); the cache itself
knows nothing about what it stores. Values are immutable dataclasses,
so handing the same object to several callers is safe.
"""

import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional

_MISSING = object()


class LRUCache:
    """Least-recently-used cache with a max entry count."""

    def __init__(self, maxsize: int = 256):
        self._cache: 'OrderedDict[str, Any]' = OrderedDict()
        self._maxsize = maxsize
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
                self._hits += 1
                return self._cache[key]
            self._misses += 1
            return default

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._cache[key] = value
            self._cache.move_to_end(key)
            while len(self._cache) > self._maxsize:
                self._cache.popitem(last=False)

    def get_or_compute(self, key: str, compute: Callable[[], Any]) -> Any:
        """
        Cached value for key, computing and storing it on a miss.

        None is a valid cached value ("no valuation possible").
        """
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = compute()
        self.set(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def stats(self) -> Dict[str, Optional[int]]:
        return {
            'size': len(self._cache),
            'maxsize': self._maxsize,
            'hits': self._hits,
            'misses': self._misses,
        }
