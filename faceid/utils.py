"""Vector helpers shared by the aggregator, matcher and backends."""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from faceid.errors import DimensionMismatch

ArrayLike = Union[np.ndarray, Sequence[float]]


def as_embedding(vector: ArrayLike) -> np.ndarray:
    """Convert a vector-like value into a 1-D float64 array.

    Args:
        vector: Embedding as numpy array or sequence of floats

    Returns:
        Flattened float64 copy of the input.

    Raises:
        ValueError: If the input is not one-dimensional (after squeezing).
    """
    arr = np.asarray(vector, dtype=np.float64)
    if arr.ndim == 2 and 1 in arr.shape:
        arr = arr.reshape(-1)
    if arr.ndim != 1:
        raise ValueError(f"Expected a 1-D embedding, got shape {arr.shape}")
    return arr


def check_same_dimension(a: np.ndarray, b: np.ndarray) -> None:
    """Raise DimensionMismatch unless both embeddings have the same length."""
    if a.shape[0] != b.shape[0]:
        raise DimensionMismatch(a.shape[0], b.shape[0])


def l2_normalize(vector: ArrayLike) -> np.ndarray:
    """Scale a vector to unit Euclidean length.

    The zero vector has no direction and is returned unchanged.

    Args:
        vector: Input vector, shape [N]

    Returns:
        Unit-length copy of the vector (or a zero vector), dtype float64.

    Example:
        >>> l2_normalize([3.0, 4.0])
        array([0.6, 0.8])
    """
    arr = as_embedding(vector)
    norm = np.linalg.norm(arr)
    if norm == 0.0:
        return arr.copy()
    return arr / norm
