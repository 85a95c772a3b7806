"""Bounded LRU cache for parse results."""

import hashlib
import logging
import threading
from cachetools import LRUCache
from typing import Any, Optional

logger = logging.getLogger(__name__)


def normalize_for_cache(sql: str) -> str:
    """Collapse whitespace and drop a trailing semicolon. Case is preserved."""
    return ' '.join(sql.split()).rstrip(';').strip()


def cache_key(sql: str, dialect: str) -> str:
    payload = f"{dialect}\x00{normalize_for_cache(sql)}"
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


class ParseCache:
    """Thread-safe LRU cache keyed by a hash of normalized SQL and dialect. A size of 0 disables it."""

    def __init__(self, max_size: int = 100):
        self.max_size = max_size
        self._entries: LRUCache = LRUCache(maxsize=max(max_size, 1))
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, sql: str, dialect: str) -> Optional[Any]:
        if self.max_size <= 0:
            return None
        key = cache_key(sql, dialect)
        with self._lock:
            value = self._entries.get(key)
            if value is None:
                self.misses += 1
            else:
                self.hits += 1
            return value

    def put(self, sql: str, dialect: str, value: Any) -> None:
        if self.max_size <= 0:
            return
        key = cache_key(sql, dialect)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_size:
                logger.debug("[ParseCache] Evicting least recently used entry")
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict:
        lookups = self.hits + self.misses
        return {
            "size": len(self),
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hits / lookups if lookups else 0.0,
        }
