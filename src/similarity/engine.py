"""Similarity engine: cached, chunked embeddings compared to a baseline."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass

import numpy as np
import structlog

from src.data_model.errors import BaselineNotSetError, EmbeddingProviderError
from src.data_model.models import Item
from src.similarity.cache import Vector, VectorCache, content_key
from src.similarity.constants import (
    CHUNK_OVERLAP,
    CHUNK_SIZE,
    CHUNK_WEIGHT_DECAY,
    DEFAULT_CACHE_SIZE,
    DEFAULT_CONCURRENCY,
    MIN_POINT_MATCH_SCORE,
)
from src.similarity.context_points import ContextPoint
from src.similarity.provider import EmbeddingProvider, ProgressCallback


logger = structlog.get_logger()

BatchProgressCallback = Callable[[int, int], None]


def cosine_similarity(a: Vector, b: Vector) -> float:
    """Compute cosine similarity between two vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        Similarity clamped to [-1, 1]; 0.0 when either vector is zero.
    """
    magnitude = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if magnitude == 0.0:
        return 0.0
    return max(-1.0, min(1.0, float(np.dot(a, b)) / magnitude))


def split_into_chunks(
    text: str,
    chunk_size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
) -> list[str]:
    """Split text into overlapping fixed-size chunks.

    Args:
        text: Text to split.
        chunk_size: Maximum characters per chunk.
        overlap: Characters shared between consecutive chunks.

    Returns:
        Chunks in text order.
    """
    step = chunk_size - overlap
    return [text[i : i + chunk_size] for i in range(0, len(text), step)]


@dataclass(frozen=True)
class SimilarityStats:
    """Counters describing engine activity.

    Attributes:
        cache_hits: Embedding lookups served from cache.
        cache_misses: Embedding lookups that missed the cache.
        cache_evictions: Entries evicted by the LRU policy.
        cache_size: Entries currently cached.
        provider_calls: Calls made to the embedding provider.
        failures: Items scored 0 because embedding failed or timed out.
    """

    cache_hits: int
    cache_misses: int
    cache_evictions: int
    cache_size: int
    provider_calls: int
    failures: int


class SimilarityEngine:
    """Scores items against a baseline embedding of the context document.

    Owns the per-run state: the vector cache, the baseline vector and the
    embedded context points. The provider handle itself may be shared.
    Create one engine per context, or call reset() between contexts.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        *,
        cache_size: int = DEFAULT_CACHE_SIZE,
        chunk_size: int = CHUNK_SIZE,
        chunk_overlap: int = CHUNK_OVERLAP,
        chunk_weight_decay: float = CHUNK_WEIGHT_DECAY,
    ) -> None:
        """Initialize the engine.

        Args:
            provider: Embedding capability.
            cache_size: Maximum cached vectors.
            chunk_size: Texts longer than this are chunked.
            chunk_overlap: Overlap between consecutive chunks.
            chunk_weight_decay: Geometric weight decay per chunk position.

        Raises:
            ValueError: If chunking parameters are inconsistent.
        """
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            msg = "chunk_overlap must be in [0, chunk_size)"
            raise ValueError(msg)
        if not 0.0 < chunk_weight_decay <= 1.0:
            msg = "chunk_weight_decay must be in (0, 1]"
            raise ValueError(msg)

        self._provider = provider
        self._cache = VectorCache(cache_size)
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._chunk_weight_decay = chunk_weight_decay

        self._baseline: Vector | None = None
        self._context_points: list[tuple[ContextPoint, Vector]] = []

        self._lock = threading.Lock()
        self._inflight: dict[str, Future[Vector]] = {}
        self._provider_calls = 0
        self._failures = 0
        self._initialized = False

        self._log = logger.bind(component="similarity")

    @property
    def baseline(self) -> Vector | None:
        """Get the baseline vector, if set."""
        return self._baseline

    @property
    def is_initialized(self) -> bool:
        """Check whether init() has completed."""
        return self._initialized

    @property
    def context_points(self) -> list[ContextPoint]:
        """Get the embedded context points."""
        return [point for point, _ in self._context_points]

    @property
    def stats(self) -> SimilarityStats:
        """Get a snapshot of engine counters."""
        return SimilarityStats(
            cache_hits=self._cache.hits,
            cache_misses=self._cache.misses,
            cache_evictions=self._cache.evictions,
            cache_size=len(self._cache),
            provider_calls=self._provider_calls,
            failures=self._failures,
        )

    def init(self, progress_callback: ProgressCallback | None = None) -> None:
        """Initialize the embedding provider.

        Args:
            progress_callback: Optional model load progress receiver.
        """
        if self._initialized:
            return
        self._provider.init(progress_callback)
        self._initialized = True

    def reset(self) -> None:
        """Drop all context-bound state (cache, baseline, context points)."""
        self._cache.clear()
        self._baseline = None
        self._context_points = []
        self._provider_calls = 0
        self._failures = 0

    def embed(self, text: str) -> Vector:
        """Embed text through the cache.

        Concurrent requests for the same text share one computation, so
        the provider sees each distinct text at most once while cached.

        Args:
            text: Text to embed.

        Returns:
            Unit-normalized embedding vector.

        Raises:
            EmbeddingProviderError: If the provider fails.
        """
        key = content_key(text)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        with self._lock:
            cached = self._cache.peek(key)
            if cached is not None:
                return cached
            future = self._inflight.get(key)
            owner = future is None
            if future is None:
                future = Future()
                self._inflight[key] = future

        if not owner:
            return future.result()

        # Waiters block on this future, so it must resolve on every path.
        try:
            vector = self._compute_embedding(text, key)
        except BaseException as e:
            with self._lock:
                self._inflight.pop(key, None)
            future.set_exception(e)
            raise

        with self._lock:
            self._cache.put(key, vector)
            self._inflight.pop(key, None)
        future.set_result(vector)
        return vector

    def _call_provider(self, text: str, key: str) -> Vector:
        """Call the provider once, normalizing failures.

        Args:
            text: Text to embed.
            key: Cache key for error reporting.

        Returns:
            Provider vector as float32.

        Raises:
            EmbeddingProviderError: If the provider raises.
        """
        with self._lock:
            self._provider_calls += 1
        try:
            return np.asarray(self._provider.embed(text), dtype=np.float32)
        except EmbeddingProviderError:
            raise
        except Exception as e:  # noqa: BLE001
            raise EmbeddingProviderError(str(e), text_key=key) from e

    def _compute_embedding(self, text: str, key: str) -> Vector:
        """Embed text directly or as a weighted average of its chunks.

        Args:
            text: Text to embed.
            key: Cache key for error reporting.

        Returns:
            Unit-normalized embedding vector.

        Raises:
            EmbeddingProviderError: If the provider fails or returns chunk
                vectors of different dimensions.
        """
        if len(text) <= self._chunk_size:
            return self._call_provider(text, key)

        chunks = split_into_chunks(text, self._chunk_size, self._chunk_overlap)
        vectors = [self._call_provider(chunk, key) for chunk in chunks]
        try:
            embeddings = np.stack(vectors)
        except ValueError as e:
            msg = f"inconsistent chunk embeddings: {e}"
            raise EmbeddingProviderError(msg, text_key=key) from e

        weights = np.power(self._chunk_weight_decay, np.arange(len(chunks)))
        weights = weights / weights.sum()
        combined = (embeddings * weights[:, np.newaxis]).sum(axis=0)

        norm = float(np.linalg.norm(combined))
        if norm == 0.0:
            return combined.astype(np.float32)
        return (combined / norm).astype(np.float32)

    def set_baseline(self, text: str) -> Vector:
        """Embed the context document as the comparison baseline.

        Args:
            text: Context document text.

        Returns:
            Baseline vector.

        Raises:
            EmbeddingProviderError: If the provider fails.
        """
        self._baseline = self.embed(text)
        self._log.info(
            "baseline_set",
            context_key=content_key(text),
            context_chars=len(text),
            dim=int(self._baseline.shape[0]),
        )
        return self._baseline

    def similarity(self, item: Item) -> float:
        """Compute the similarity of an item to the baseline.

        Args:
            item: Item to score.

        Returns:
            Similarity in [0, 1]; 0.0 for items without text.

        Raises:
            BaselineNotSetError: If set_baseline() has not been called.
            EmbeddingProviderError: If the provider fails for this item.
        """
        if self._baseline is None:
            raise BaselineNotSetError

        text = item.text
        if not text:
            return 0.0

        return max(0.0, cosine_similarity(self._baseline, self.embed(text)))

    def batch_similarity(
        self,
        items: Sequence[Item],
        concurrency: int = DEFAULT_CONCURRENCY,
        on_progress: BatchProgressCallback | None = None,
        timeout_s: float | None = None,
    ) -> dict[str, float]:
        """Compute similarities in fixed-size concurrent groups.

        Each group completes before the next is started. A provider
        failure or timeout for one item scores that item 0.0 instead of
        failing the batch.

        Args:
            items: Items to score.
            concurrency: Group width (maximum concurrent computations).
            on_progress: Called with (done, total) after each group.
            timeout_s: Optional per-item wait limit.

        Returns:
            Mapping of item id to similarity.

        Raises:
            BaselineNotSetError: If set_baseline() has not been called.
            ValueError: If concurrency is not positive.
        """
        if self._baseline is None:
            raise BaselineNotSetError
        if concurrency < 1:
            msg = "concurrency must be at least 1"
            raise ValueError(msg)

        scores: dict[str, float] = {}
        total = len(items)
        timed_out = False
        start = time.perf_counter()

        executor = ThreadPoolExecutor(
            max_workers=concurrency, thread_name_prefix="similarity"
        )
        try:
            for offset in range(0, total, concurrency):
                group = items[offset : offset + concurrency]
                futures = [
                    (item, executor.submit(self.similarity, item)) for item in group
                ]

                for item, future in futures:
                    try:
                        scores[item.id] = future.result(timeout=timeout_s)
                    except EmbeddingProviderError as e:
                        self._record_failure(item, "provider_error", str(e))
                        scores[item.id] = 0.0
                    except FuturesTimeoutError:
                        timed_out = True
                        self._record_failure(
                            item, "timeout", f"exceeded {timeout_s}s"
                        )
                        scores[item.id] = 0.0

                if on_progress:
                    on_progress(min(offset + concurrency, total), total)
        finally:
            executor.shutdown(wait=not timed_out, cancel_futures=True)

        self._log.info(
            "similarity_batch_complete",
            items=total,
            concurrency=concurrency,
            failures=self._failures,
            cache_hits=self._cache.hits,
            provider_calls=self._provider_calls,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return scores

    def _record_failure(self, item: Item, reason: str, detail: str) -> None:
        with self._lock:
            self._failures += 1
        self._log.warning(
            "item_similarity_failed",
            item_id=item.id,
            source=item.source,
            reason=reason,
            detail=detail,
        )

    def set_context_points(self, points: Sequence[ContextPoint]) -> int:
        """Embed context points for match explanations.

        Points whose embedding fails are skipped.

        Args:
            points: Points extracted from the context document.

        Returns:
            Number of points embedded.
        """
        embedded: list[tuple[ContextPoint, Vector]] = []
        for point in points:
            try:
                embedded.append((point, self.embed(point.text)))
            except EmbeddingProviderError as e:
                self._log.warning(
                    "context_point_embed_failed", point=point.text[:50], error=str(e)
                )
        self._context_points = embedded
        return len(embedded)

    def best_matching_point(self, item: Item) -> str | None:
        """Explain an item's relevance by its closest context point.

        Args:
            item: Item to explain.

        Returns:
            Explanation sentence, or None if no point is close enough.
        """
        if not self._context_points:
            return None

        text = item.text
        if not text:
            return None

        try:
            item_vector = self.embed(text)
        except EmbeddingProviderError:
            return None

        best_point: ContextPoint | None = None
        best_score = 0.0
        for point, vector in self._context_points:
            score = cosine_similarity(item_vector, vector)
            if score > best_score:
                best_score = score
                best_point = point

        if best_point is None or best_score < MIN_POINT_MATCH_SCORE:
            return None
        return best_point.explain()
