"""Euclidean-distance matcher for client-side ranking of face captures.

Matching here is advisory: it orders several login captures before they are
submitted, while the backend remains the authority on identity.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple, TypeVar, Union

import numpy as np

from faceid.interfaces import CaptureSample
from faceid.logging_config import get_logger
from faceid.utils import ArrayLike, as_embedding, check_same_dimension

logger = get_logger(__name__)

Candidate = TypeVar("Candidate", bound=Union[CaptureSample, np.ndarray, Sequence[float]])


def _vector_of(candidate: Union[CaptureSample, ArrayLike]) -> np.ndarray:
    if isinstance(candidate, CaptureSample):
        return as_embedding(candidate.embedding)
    return as_embedding(candidate)


class SimilarityMatcher:
    """Compare face embeddings by Euclidean distance.

    Two embeddings are considered the same identity when their distance is
    strictly below the threshold. The default of 0.6 is the standard cutoff
    for 128-D dlib-style descriptors.

    Attributes:
        threshold: Default distance threshold used by ``is_match``

    Example:
        >>> matcher = SimilarityMatcher(threshold=0.6)
        >>> matcher.distance(a, b)
        0.42
        >>> matcher.is_match(a, b)
        True
    """

    def __init__(self, threshold: float = 0.6):
        if threshold <= 0:
            raise ValueError(f"Threshold must be > 0, got {threshold}")
        self.threshold = threshold

    def distance(self, a: ArrayLike, b: ArrayLike) -> float:
        """Euclidean distance between two embeddings.

        Raises:
            DimensionMismatch: If the embeddings differ in length.
        """
        va = as_embedding(a)
        vb = as_embedding(b)
        check_same_dimension(va, vb)
        return float(np.linalg.norm(va - vb))

    def is_match(self, a: ArrayLike, b: ArrayLike, threshold: Optional[float] = None) -> bool:
        """Return True if ``distance(a, b) < threshold`` (strict)."""
        if threshold is None:
            threshold = self.threshold
        return self.distance(a, b) < threshold

    def rank(
        self,
        candidates: Sequence[Candidate],
        reference: ArrayLike,
    ) -> List[Tuple[Candidate, float]]:
        """Order candidates by ascending distance to a reference embedding.

        Ties keep their input order.

        Args:
            candidates: CaptureSamples or raw embedding vectors
            reference: Embedding to measure against (e.g. the consensus of
                all candidates)

        Returns:
            List of (candidate, distance) pairs, closest first.

        Raises:
            DimensionMismatch: If any candidate differs in length from the reference.
        """
        ref = as_embedding(reference)
        scored = [(candidate, self.distance(_vector_of(candidate), ref)) for candidate in candidates]
        scored.sort(key=lambda pair: pair[1])

        if scored:
            logger.debug(
                f"Ranked {len(scored)} candidate(s): "
                f"best={scored[0][1]:.4f}, worst={scored[-1][1]:.4f}"
            )

        return scored

    def __repr__(self) -> str:
        return f"SimilarityMatcher(threshold={self.threshold})"
