"""Aggregation of several noisy face samples into one canonical embedding.

The canonical embedding is the L2-normalized element-wise mean of all
accepted samples. Every sample carries the same weight regardless of its
pose or confidence, which makes the result independent of sample order.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from faceid.errors import DimensionMismatch, EmptyInput
from faceid.interfaces import CaptureSample
from faceid.logging_config import get_logger
from faceid.utils import ArrayLike, as_embedding

logger = get_logger(__name__)


class EmbeddingAggregator:
    """Reduce accepted samples to a single unit-length embedding.

    Example:
        >>> aggregator = EmbeddingAggregator()
        >>> embedding = aggregator.aggregate(samples)
        >>> assert abs(np.linalg.norm(embedding) - 1.0) < 1e-5
    """

    def aggregate(self, samples: Sequence[CaptureSample]) -> np.ndarray:
        """Aggregate capture samples into one embedding.

        Args:
            samples: Non-empty list of accepted samples of equal dimension.

        Returns:
            Unit-length mean embedding, shape [N], dtype float32. The zero
            vector is returned unnormalized if the mean is exactly zero.

        Raises:
            EmptyInput: If no samples are given.
            DimensionMismatch: If samples disagree on embedding length.
        """
        if not samples:
            raise EmptyInput("Cannot aggregate an empty list of samples")

        return self.aggregate_embeddings([sample.embedding for sample in samples])

    def aggregate_embeddings(self, embeddings: Iterable[ArrayLike]) -> np.ndarray:
        """Aggregate raw embedding vectors (same rules as ``aggregate``)."""
        vectors = [as_embedding(e) for e in embeddings]
        if not vectors:
            raise EmptyInput("Cannot aggregate an empty list of embeddings")

        dim = vectors[0].shape[0]
        for vector in vectors[1:]:
            if vector.shape[0] != dim:
                raise DimensionMismatch(dim, vector.shape[0])

        if len(vectors) == 1:
            mean = vectors[0]
        else:
            mean = np.stack(vectors, axis=0).mean(axis=0)

        norm = float(np.linalg.norm(mean))
        if norm == 0.0:
            logger.warning(
                f"Mean of {len(vectors)} embedding(s) is the zero vector, "
                f"returning it unnormalized"
            )
            return mean.astype(np.float32)

        logger.debug(f"Aggregated {len(vectors)} embedding(s) (dim={dim}, raw norm={norm:.4f})")
        return (mean / norm).astype(np.float32)

    def __repr__(self) -> str:
        return "EmbeddingAggregator(mean+l2)"
