"""
Unit tests for the bounded FIFO embedding cache.
"""

import pytest

from app.services.embedding_cache import EmbeddingCache


class TestEmbeddingCache:
    def test_get_missing_returns_none(self) -> None:
        cache = EmbeddingCache()
        assert cache.get("nope") is None
        assert len(cache) == 0

    def test_put_then_get(self) -> None:
        cache = EmbeddingCache()
        cache.put("k", [0.1, 0.2])
        assert cache.get("k") == [0.1, 0.2]
        assert "k" in cache

    def test_never_exceeds_default_capacity(self) -> None:
        cache = EmbeddingCache()
        for i in range(1001):
            cache.put(f"key-{i}", [float(i)])
        assert len(cache) == 1000
        # The 1001st insert removed the earliest-inserted key
        assert cache.get("key-0") is None
        assert cache.get("key-1") == [1.0]
        assert cache.get("key-1000") == [1000.0]

    def test_eviction_ignores_access_recency(self) -> None:
        cache = EmbeddingCache(max_entries=2)
        cache.put("a", [1.0])
        cache.put("b", [2.0])
        cache.get("a")
        cache.put("c", [3.0])
        assert cache.keys() == ["b", "c"]

    def test_replacing_existing_key_does_not_evict(self) -> None:
        cache = EmbeddingCache(max_entries=2)
        cache.put("a", [1.0])
        cache.put("b", [2.0])
        cache.put("a", [9.0])
        assert len(cache) == 2
        assert cache.get("a") == [9.0]
        assert cache.keys() == ["a", "b"]

    def test_evicts_exactly_one_per_insert(self) -> None:
        cache = EmbeddingCache(max_entries=3)
        for key in "abcde":
            cache.put(key, [0.0])
        assert cache.keys() == ["c", "d", "e"]

    def test_invalid_capacity(self) -> None:
        with pytest.raises(ValueError):
            EmbeddingCache(max_entries=0)

    def test_clear(self) -> None:
        cache = EmbeddingCache()
        cache.put("a", [1.0])
        cache.clear()
        assert len(cache) == 0
