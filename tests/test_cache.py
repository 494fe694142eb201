"""
Unit tests for the ResponseCache module.

Tests cover:
- Cache initialization and configuration
- Get/set/clear operations
- Key normalization (path, parameter order, case, whitespace)
- TTL enforcement and LRU eviction
- Cache statistics
"""

import pytest
from unittest.mock import patch
from cinesocial.cache import ResponseCache, CacheStats, get_cache, reset_global_cache


class TestCacheInitialization:

    def test_custom_initialization(self):
        cache = ResponseCache(ttl=300, max_size=100, enabled=True)
        assert cache.enabled is True
        assert cache.ttl == 300
        assert cache.max_size == 100
        assert len(cache._cache) == 0

    @patch.dict('os.environ', {
        'TMDB_CACHE_TTL': '1800',
        'TMDB_CACHE_MAX_SIZE': '50',
        'TMDB_CACHE_ENABLED': '1'
    })
    def test_env_configuration(self):
        cache = ResponseCache()
        assert cache.ttl == 1800
        assert cache.max_size == 50
        assert cache.enabled is True

    @patch.dict('os.environ', {'TMDB_CACHE_ENABLED': '0'})
    def test_env_disabled(self):
        cache = ResponseCache()
        assert cache.enabled is False


class TestKeyNormalization:

    def test_path_slashes(self):
        cache = ResponseCache()
        assert cache._normalize_key("/movie/27205/") == cache._normalize_key("movie/27205")

    def test_params_sorted_and_lowercased(self):
        cache = ResponseCache()
        key = cache._normalize_key("/search/movie", {"query": "  The  Matrix ", "page": 1})
        assert key == "tmdb:search/movie?page=1&query=the matrix"

    def test_none_params_skipped(self):
        cache = ResponseCache()
        assert cache._normalize_key("/x", {"page": None}) == "tmdb:x"

    def test_source_prefix(self):
        cache = ResponseCache()
        assert cache._normalize_key("/x", source="other").startswith("other:")


class TestCacheOperations:

    def test_set_and_get(self):
        cache = ResponseCache(ttl=60, max_size=10, enabled=True)
        cache.set("/movie/27205", {"id": 27205})
        assert cache.get("/movie/27205") == {"id": 27205}

    def test_miss(self):
        cache = ResponseCache(enabled=True)
        assert cache.get("/movie/1") is None

    def test_disabled_cache_stores_nothing(self):
        cache = ResponseCache(enabled=False)
        cache.set("/movie/27205", {"id": 27205})
        assert cache.get("/movie/27205") is None

    def test_clear(self):
        cache = ResponseCache(enabled=True)
        cache.set("/a", 1)
        cache.set("/b", 2)
        assert cache.clear() == 2
        assert cache.get("/a") is None

    @patch('cinesocial.cache.time.time')
    def test_ttl_expiration(self, mock_time):
        cache = ResponseCache(ttl=60, enabled=True)
        mock_time.return_value = 1000.0
        cache.set("/movie/27205", {"id": 27205})

        mock_time.return_value = 1059.0
        assert cache.get("/movie/27205") == {"id": 27205}

        mock_time.return_value = 1061.0
        assert cache.get("/movie/27205") is None
        assert cache.get_stats()["evictions"] == 1

    @patch('cinesocial.cache.time.time')
    def test_per_entry_ttl(self, mock_time):
        cache = ResponseCache(ttl=3600, enabled=True)
        mock_time.return_value = 1000.0
        cache.set("/trending", [], ttl=10)

        mock_time.return_value = 1011.0
        assert cache.get("/trending") is None

    def test_lru_eviction(self):
        cache = ResponseCache(ttl=60, max_size=2, enabled=True)
        cache.set("/a", 1)
        cache.set("/b", 2)
        cache.get("/a")
        cache.set("/c", 3)

        assert cache.get("/a") == 1
        assert cache.get("/b") is None
        assert cache.get("/c") == 3


class TestCacheStats:

    def test_hit_ratio(self):
        cache = ResponseCache(enabled=True)
        cache.set("/a", 1)
        cache.get("/a")
        cache.get("/b")

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_ratio"] == pytest.approx(0.5)
        assert stats["current_size"] == 1

    def test_empty_hit_ratio(self):
        assert CacheStats().hit_ratio == 0.0


class TestGlobalCache:

    def test_singleton_and_reset(self):
        first = get_cache()
        assert get_cache() is first
        reset_global_cache()
        assert get_cache() is not first
