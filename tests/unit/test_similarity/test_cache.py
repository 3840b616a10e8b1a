"""Unit tests for the vector cache."""

import numpy as np
import pytest

from src.similarity.cache import VectorCache, content_key


def _vec(value: float) -> np.ndarray:
    return np.full(4, value, dtype=np.float32)


class TestContentKey:
    """Tests for content_key()."""

    def test_same_text_same_key(self) -> None:
        """Identical text always maps to the same key."""
        assert content_key("hello world") == content_key("hello world")

    def test_different_text_different_key(self) -> None:
        """Different text maps to different keys."""
        assert content_key("hello") != content_key("hello!")

    def test_key_is_short_hex(self) -> None:
        """Keys are 16 hex characters."""
        key = content_key("anything")
        assert len(key) == 16
        int(key, 16)


class TestVectorCache:
    """Tests for VectorCache."""

    def test_rejects_non_positive_size(self) -> None:
        """A cache needs room for at least one vector."""
        with pytest.raises(ValueError, match="max_size"):
            VectorCache(0)

    def test_get_miss_then_hit(self) -> None:
        """Lookups count hits and misses."""
        cache = VectorCache(4)
        assert cache.get("a") is None
        cache.put("a", _vec(1.0))
        assert cache.get("a") is not None
        assert cache.hits == 1
        assert cache.misses == 1

    def test_evicts_least_recently_used(self) -> None:
        """The least recently used entry is evicted first."""
        cache = VectorCache(2)
        cache.put("a", _vec(1.0))
        cache.put("b", _vec(2.0))
        cache.get("a")
        cache.put("c", _vec(3.0))

        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache
        assert cache.evictions == 1

    def test_put_existing_key_does_not_evict(self) -> None:
        """Overwriting a key refreshes it without eviction."""
        cache = VectorCache(2)
        cache.put("a", _vec(1.0))
        cache.put("b", _vec(2.0))
        cache.put("a", _vec(9.0))

        assert len(cache) == 2
        assert cache.evictions == 0
        assert cache.peek("a")[0] == pytest.approx(9.0)

    def test_peek_does_not_count(self) -> None:
        """peek() leaves counters and recency untouched."""
        cache = VectorCache(2)
        cache.put("a", _vec(1.0))
        cache.put("b", _vec(2.0))
        cache.peek("a")
        cache.put("c", _vec(3.0))

        assert cache.hits == 0
        assert cache.misses == 0
        assert "a" not in cache

    def test_clear_resets_entries_and_counters(self) -> None:
        """clear() empties the cache and zeroes counters."""
        cache = VectorCache(2)
        cache.put("a", _vec(1.0))
        cache.get("a")
        cache.get("z")
        cache.clear()

        assert len(cache) == 0
        assert cache.hits == 0
        assert cache.misses == 0
