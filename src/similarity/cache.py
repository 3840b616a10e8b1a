"""Bounded LRU cache for text embeddings."""

import hashlib
import threading
from collections import OrderedDict

import numpy as np
import numpy.typing as npt

from src.similarity.constants import DEFAULT_CACHE_SIZE


Vector = npt.NDArray[np.float32]


def content_key(text: str) -> str:
    """Compute the cache key for a piece of text.

    A short blake2b digest: deterministic and cheap. Collisions are
    tolerable at the scale of a per-run cache.

    Args:
        text: Text to key.

    Returns:
        16-character hex key.
    """
    return hashlib.blake2b(text.encode("utf-8"), digest_size=8).hexdigest()


class VectorCache:
    """Thread-safe least-recently-used cache of embedding vectors.

    Entries are content-addressed and never invalidated except by
    eviction when the cache is full.
    """

    def __init__(self, max_size: int = DEFAULT_CACHE_SIZE) -> None:
        """Initialize the cache.

        Args:
            max_size: Maximum number of vectors kept.

        Raises:
            ValueError: If max_size is not positive.
        """
        if max_size < 1:
            msg = "max_size must be at least 1"
            raise ValueError(msg)

        self._max_size = max_size
        self._entries: OrderedDict[str, Vector] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def max_size(self) -> int:
        """Get the capacity."""
        return self._max_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> Vector | None:
        """Look up a vector and mark it most recently used.

        Args:
            key: Cache key from content_key().

        Returns:
            Cached vector, or None on miss.
        """
        with self._lock:
            vector = self._entries.get(key)
            if vector is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return vector

    def peek(self, key: str) -> Vector | None:
        """Look up a vector without touching recency or counters.

        Args:
            key: Cache key from content_key().

        Returns:
            Cached vector, or None.
        """
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, vector: Vector) -> None:
        """Store a vector, evicting the least recently used entry if full.

        Args:
            key: Cache key from content_key().
            vector: Embedding vector.
        """
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self._max_size:
                self._entries.popitem(last=False)
                self.evictions += 1
            self._entries[key] = vector

    def clear(self) -> None:
        """Drop all entries and reset counters."""
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
            self.evictions = 0
