"""
Embedding Service - cached, batched embedding for ingest and search

Sits between callers and an EmbeddingProvider (normally OllamaEmbedder):
- looks every text up in the EmbeddingCache first
- sends only the misses to the model, in batches of `batch_size`
- checks that every returned vector has the model's fixed dimension
- converts provider failures into EmbeddingError subclasses

A batch either fully succeeds or raises; nothing from a failed batch is
written to the cache.

Usage:
    service = EmbeddingService(OllamaEmbedder(), EmbeddingCache(), batch_size=32)
    vectors = service.embed_batch(["alpha", "beta"])
"""

import logging
from typing import Optional

from common.exceptions import (
    EmbeddingDimensionError,
    EmbeddingError,
    EmbeddingUnavailableError,
)

from .cache import EmbeddingCache
from .embedder import EmbeddingProvider

logger = logging.getLogger(__name__)


class EmbeddingService:
    """
    Batches texts through an embedding provider with a content-hash cache.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        cache: Optional[EmbeddingCache] = None,
        batch_size: int = 32,
        expected_dimension: Optional[int] = None,
    ):
        """
        Initialize the service.

        Args:
            provider: The model wrapper producing vectors.
            cache: Shared embedding cache. A private unbounded cache is
                   created if not provided.
            batch_size: Maximum texts per provider call.
            expected_dimension: Vector dimension to enforce. If None, the
                                dimension of the first returned vector is
                                used from then on.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.provider = provider
        self.cache = cache if cache is not None else EmbeddingCache()
        self.batch_size = batch_size
        self._dimension = expected_dimension

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    @property
    def model(self) -> str:
        return self.provider.model

    def embed(self, text: str) -> list[float]:
        """Embed a single text (e.g. a search query)."""
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """
        Embed texts, returning one vector per text in input order.

        Raises:
            EmbeddingUnavailableError: If the model cannot be reached.
            EmbeddingDimensionError: If a vector has the wrong dimension.
            EmbeddingError: For any other provider failure.
        """
        if not texts:
            return []

        results: list[Optional[list[float]]] = [None] * len(texts)
        # text -> positions still needing a vector (duplicates embedded once)
        pending: dict[str, list[int]] = {}
        for i, text in enumerate(texts):
            cached = self.cache.get(text)
            if cached is not None:
                results[i] = cached
            else:
                pending.setdefault(text, []).append(i)

        if pending:
            logger.debug(
                "Embedding %d texts (%d cache hits)",
                len(pending),
                len(texts) - sum(len(p) for p in pending.values()),
            )
            fresh = self._embed_uncached(list(pending.keys()))
            for text, vector in zip(pending.keys(), fresh):
                for i in pending[text]:
                    results[i] = vector
            # Only cache once the whole call succeeded
            for text, vector in zip(pending.keys(), fresh):
                self.cache.put(text, vector)

        return [vector for vector in results if vector is not None]

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    def _embed_uncached(self, texts: list[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start:start + self.batch_size]
            try:
                batch_vectors = self.provider.embed_batch(batch)
            except ConnectionError as e:
                raise EmbeddingUnavailableError(self.provider.model, e) from e
            except (RuntimeError, ValueError) as e:
                raise EmbeddingError(
                    f"Embedding batch of {len(batch)} texts failed",
                    e,
                ) from e

            if len(batch_vectors) != len(batch):
                raise EmbeddingError(
                    f"Expected {len(batch)} vectors from '{self.provider.model}', "
                    f"got {len(batch_vectors)}"
                )
            for vector in batch_vectors:
                self._check_dimension(vector)
            vectors.extend(batch_vectors)
        return vectors

    def _check_dimension(self, vector: list[float]) -> None:
        if not vector:
            raise EmbeddingError(f"Model '{self.provider.model}' returned an empty vector")
        if self._dimension is None:
            self._dimension = len(vector)
        elif len(vector) != self._dimension:
            raise EmbeddingDimensionError(self._dimension, len(vector))
