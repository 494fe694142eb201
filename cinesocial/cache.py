"""
In-Memory Caching Layer for TMDB responses with TTL.

Trending lists, movie documents and search pages change slowly, so the
metadata proxy keeps successful responses for a while instead of calling
TMDB on every page view.

Key Features:
- Normalized keys built from the request path and query parameters
- Configurable TTL (default 1h) and maximum size, override via ENV
- LRU eviction when cache size exceeds maximum
- Cache statistics exported through get_stats() and Prometheus

Usage Example:
    >>> from cinesocial.cache import ResponseCache
    >>> cache = ResponseCache()
    >>> cache.set("/movie/27205", {"id": 27205, "title": "Inception"})
    >>> cache.get("/movie/27205")
    {'id': 27205, 'title': 'Inception'}
"""

import os
import re
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from cinesocial.logging_config import get_logger
from cinesocial.metrics import track_cache_operation

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    """
    A single cache entry with metadata.

    Attributes:
        value: The cached document
        timestamp: When the entry was created (Unix timestamp)
        ttl: Time-to-live in seconds
        source: Data source identifier (e.g., "tmdb")
        hits: Number of times this entry was served
    """
    value: Any
    timestamp: float
    ttl: float
    source: str
    hits: int = 0


@dataclass
class CacheStats:
    total_requests: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    current_size: int = 0
    max_size: int = 0

    @property
    def hit_ratio(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests


class ResponseCache:
    """
    In-memory cache for metadata-provider responses with TTL and LRU eviction.

    Configuration (via environment variables):
        TMDB_CACHE_TTL: Default TTL in seconds (default: 3600)
        TMDB_CACHE_MAX_SIZE: Maximum number of entries (default: 500)
        TMDB_CACHE_ENABLED: Enable/disable caching (default: 1)
    """

    def __init__(
        self,
        ttl: Optional[int] = None,
        max_size: Optional[int] = None,
        enabled: Optional[bool] = None
    ):
        self.ttl = ttl if ttl is not None else int(os.getenv("TMDB_CACHE_TTL", "3600"))
        self.max_size = max_size if max_size is not None else int(os.getenv("TMDB_CACHE_MAX_SIZE", "500"))
        self.enabled = enabled if enabled is not None else (os.getenv("TMDB_CACHE_ENABLED", "1") != "0")

        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._stats = CacheStats(max_size=self.max_size)
        self._lock = threading.Lock()

        logger.info(
            "cache_initialized",
            enabled=self.enabled,
            ttl=self.ttl,
            max_size=self.max_size,
        )

    def _normalize_key(self, path: str, params: Optional[Mapping[str, Any]] = None, source: str = "tmdb") -> str:
        """
        Normalize a cache key.

        Paths lose surrounding slashes; parameter values are lowercased with
        whitespace collapsed and parameters are sorted by name.

        Examples:
            >>> cache._normalize_key("/search/movie", {"query": "  The  Matrix ", "page": 1})
            'tmdb:search/movie?page=1&query=the matrix'
        """
        normalized_path = path.strip().strip("/")
        parts = []
        for name in sorted(params or {}):
            value = (params or {})[name]
            if value is None:
                continue
            value = re.sub(r"\s+", " ", str(value).strip().lower())
            parts.append(f"{name}={value}")

        key = f"{source}:{normalized_path}"
        if parts:
            key = f"{key}?{'&'.join(parts)}"
        return key

    def get(self, path: str, params: Optional[Mapping[str, Any]] = None, source: str = "tmdb") -> Optional[Any]:
        """Return the cached value if present and not expired, else None."""
        if not self.enabled:
            return None

        key = self._normalize_key(path, params, source)
        with self._lock:
            self._stats.total_requests += 1
            entry = self._cache.get(key)

            if entry is None:
                self._stats.misses += 1
                track_cache_operation(source, hit=False)
                return None

            age = time.time() - entry.timestamp
            if age > entry.ttl:
                del self._cache[key]
                self._stats.misses += 1
                self._stats.evictions += 1
                self._stats.current_size = len(self._cache)
                track_cache_operation(source, hit=False)
                logger.debug("cache_expired", key=key, age=round(age, 1))
                return None

            self._cache.move_to_end(key)
            entry.hits += 1
            self._stats.hits += 1

        track_cache_operation(source, hit=True)
        logger.debug("cache_hit", key=key, hits=entry.hits)
        return entry.value

    def set(
        self,
        path: str,
        value: Any,
        params: Optional[Mapping[str, Any]] = None,
        source: str = "tmdb",
        ttl: Optional[int] = None
    ) -> None:
        """
        Store a value; evicts the least recently used entry when full.
        """
        if not self.enabled:
            return

        key = self._normalize_key(path, params, source)
        effective_ttl = ttl if ttl is not None else self.ttl

        with self._lock:
            if key not in self._cache and len(self._cache) >= self.max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                self._stats.evictions += 1
                logger.debug("cache_lru_eviction", key=oldest_key)

            self._cache[key] = CacheEntry(
                value=value,
                timestamp=time.time(),
                ttl=effective_ttl,
                source=source,
            )
            self._cache.move_to_end(key)
            self._stats.current_size = len(self._cache)

    def clear(self) -> int:
        """Clear all entries and return how many were removed."""
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            self._stats.current_size = 0
        logger.info("cache_cleared", entries=count)
        return count

    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_requests": self._stats.total_requests,
            "hits": self._stats.hits,
            "misses": self._stats.misses,
            "evictions": self._stats.evictions,
            "current_size": self._stats.current_size,
            "max_size": self._stats.max_size,
            "hit_ratio": self._stats.hit_ratio,
            "enabled": self.enabled,
        }


_global_cache: Optional[ResponseCache] = None


def get_cache() -> ResponseCache:
    """Get or create the process-wide cache instance."""
    global _global_cache
    if _global_cache is None:
        _global_cache = ResponseCache()
    return _global_cache


def reset_global_cache():
    """Reset the global cache instance (useful for testing)."""
    global _global_cache
    _global_cache = None
