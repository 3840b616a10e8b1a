"""Embedding capability consumed by the similarity engine.

The engine only depends on the ``EmbeddingProvider`` protocol. The
default implementation uses fastembed (ONNX-based) and is an optional
dependency; tests substitute a deterministic stub.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal, Protocol, runtime_checkable

import numpy as np
import structlog

from src.data_model.errors import EmbeddingProviderError
from src.similarity.cache import Vector
from src.similarity.constants import DEFAULT_MODEL_NAME


logger = structlog.get_logger()

try:
    from fastembed import TextEmbedding

    _FASTEMBED_AVAILABLE = True
except ImportError:
    _FASTEMBED_AVAILABLE = False


def is_available() -> bool:
    """Check if fastembed is installed and usable."""
    return _FASTEMBED_AVAILABLE


@dataclass(frozen=True)
class LoadProgress:
    """Model loading progress reported to init() callers.

    Attributes:
        status: Either "downloading" or "ready".
        loaded: Bytes or files loaded so far, if known.
        total: Total bytes or files, if known.
    """

    status: Literal["downloading", "ready"]
    loaded: int | None = None
    total: int | None = None


ProgressCallback = Callable[[LoadProgress], None]


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for text embedding capabilities.

    Implementations must be stateless given input text so a single
    handle can be shared by many engines.
    """

    def init(self, progress_callback: ProgressCallback | None = None) -> None:
        """Load the underlying model. Safe to call more than once.

        Args:
            progress_callback: Optional load progress receiver.
        """
        ...

    def embed(self, text: str) -> Vector:
        """Embed text into a fixed-length, unit-normalized vector.

        Args:
            text: Text to embed.

        Returns:
            Embedding vector.

        Raises:
            EmbeddingProviderError: If the embedding call fails.
        """
        ...


class FastEmbedProvider:
    """fastembed-backed embedding provider.

    Loads the ONNX model lazily on first init() or embed() call.
    """

    def __init__(self, model_name: str = DEFAULT_MODEL_NAME) -> None:
        """Initialize the provider.

        Args:
            model_name: fastembed model identifier.

        Raises:
            RuntimeError: If fastembed is not installed.
        """
        if not _FASTEMBED_AVAILABLE:
            msg = (
                "fastembed is required for the default embedding provider. "
                "Install with: pip install 'signal-filter[embeddings]'"
            )
            raise RuntimeError(msg)

        self._model_name = model_name
        self._model: TextEmbedding | None = None
        self._lock = threading.Lock()

    @property
    def model_name(self) -> str:
        """Get the model identifier."""
        return self._model_name

    @property
    def is_ready(self) -> bool:
        """Check whether the model has been loaded."""
        return self._model is not None

    def init(self, progress_callback: ProgressCallback | None = None) -> None:
        """Load the embedding model once.

        Args:
            progress_callback: Optional load progress receiver.
        """
        with self._lock:
            if self._model is not None:
                if progress_callback:
                    progress_callback(LoadProgress(status="ready"))
                return

            if progress_callback:
                progress_callback(LoadProgress(status="downloading"))

            start = time.perf_counter()
            self._model = TextEmbedding(model_name=self._model_name)

            logger.info(
                "embedding_model_loaded",
                model=self._model_name,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )

        if progress_callback:
            progress_callback(LoadProgress(status="ready"))

    def embed(self, text: str) -> Vector:
        """Embed text with the loaded model.

        Args:
            text: Text to embed.

        Returns:
            Unit-normalized float32 vector.

        Raises:
            EmbeddingProviderError: If the model call fails.
        """
        if self._model is None:
            self.init()

        try:
            raw = next(iter(self._model.embed([text])))  # type: ignore[union-attr]
        except Exception as e:
            raise EmbeddingProviderError(f"fastembed call failed: {e}") from e

        vector = np.asarray(raw, dtype=np.float32)
        norm = float(np.linalg.norm(vector))
        if norm == 0.0:
            return vector
        return vector / norm


@lru_cache(maxsize=1)
def default_provider(model_name: str = DEFAULT_MODEL_NAME) -> FastEmbedProvider:
    """Get the process-wide default provider handle.

    The model handle is stateless given its input, so sharing it across
    runs is safe; per-run state lives in the SimilarityEngine.

    Args:
        model_name: fastembed model identifier.

    Returns:
        Shared FastEmbedProvider instance.
    """
    return FastEmbedProvider(model_name=model_name)
