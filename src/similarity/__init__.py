"""Vector cache and similarity engine.

Wraps an embedding capability with a bounded per-run LRU cache, long-text
chunking and cosine similarity against a context baseline.
"""

from src.similarity.cache import VectorCache, content_key
from src.similarity.context_points import (
    ContextPoint,
    ContextPointKind,
    extract_context_points,
)
from src.similarity.engine import (
    SimilarityEngine,
    SimilarityStats,
    cosine_similarity,
    split_into_chunks,
)
from src.similarity.provider import (
    EmbeddingProvider,
    FastEmbedProvider,
    LoadProgress,
    default_provider,
    is_available,
)


__all__ = [
    "ContextPoint",
    "ContextPointKind",
    "EmbeddingProvider",
    "FastEmbedProvider",
    "LoadProgress",
    "SimilarityEngine",
    "SimilarityStats",
    "VectorCache",
    "content_key",
    "cosine_similarity",
    "default_provider",
    "extract_context_points",
    "is_available",
    "split_into_chunks",
]
