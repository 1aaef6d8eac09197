"""Unit tests for the Euclidean similarity matcher."""

from __future__ import annotations

import numpy as np
import pytest

from faceid.errors import DimensionMismatch
from faceid.interfaces import CaptureSample
from faceid.matcher import SimilarityMatcher


@pytest.fixture
def matcher():
    """Create a SimilarityMatcher with the default threshold."""
    return SimilarityMatcher(threshold=0.6)


def test_distance_to_self_is_zero(matcher):
    """d(a, a) == 0."""
    a = np.random.default_rng(0).normal(size=128)

    assert matcher.distance(a, a) == 0.0
    assert matcher.is_match(a, a, threshold=1e-9)


def test_distance_is_symmetric(matcher):
    """d(a, b) == d(b, a)."""
    rng = np.random.default_rng(1)
    a, b = rng.normal(size=128), rng.normal(size=128)

    assert matcher.distance(a, b) == pytest.approx(matcher.distance(b, a))


def test_distance_is_euclidean(matcher):
    """Distance uses the L2 norm of the difference."""
    assert matcher.distance([0.0, 0.0], [3.0, 4.0]) == pytest.approx(5.0)


def test_is_match_threshold_is_strict(matcher):
    """A distance equal to the threshold is not a match."""
    a = [0.0, 0.0]

    assert matcher.is_match(a, [0.5, 0.0])
    assert not matcher.is_match(a, [0.75, 0.0], threshold=0.75)
    assert not matcher.is_match(a, [1.0, 0.0])


def test_is_match_threshold_override(matcher):
    """An explicit threshold overrides the default one."""
    a, b = [0.0, 0.0], [0.0, 0.7]

    assert not matcher.is_match(a, b)
    assert matcher.is_match(a, b, threshold=0.8)


def test_distance_mismatched_dimensions_raise(matcher):
    """Embeddings of different lengths cannot be compared."""
    with pytest.raises(DimensionMismatch):
        matcher.distance(np.zeros(128), np.zeros(512))

    with pytest.raises(ValueError):
        matcher.is_match(np.zeros(128), np.zeros(512))


def test_rank_orders_by_ascending_distance(matcher):
    """Closest candidate comes first."""
    reference = [0.0, 0.0]
    far = CaptureSample(embedding=[1.0, 1.0], confidence=0.9)
    near = CaptureSample(embedding=[0.1, 0.0], confidence=0.6)
    middle = CaptureSample(embedding=[0.5, 0.0], confidence=0.8)

    ranked = matcher.rank([far, near, middle], reference)

    assert [c for c, _ in ranked] == [near, middle, far]
    assert [d for _, d in ranked] == pytest.approx([0.1, 0.5, np.sqrt(2.0)])


def test_rank_keeps_input_order_for_ties(matcher):
    """Equally distant candidates keep their relative order."""
    first = np.array([1.0, 0.0])
    second = np.array([0.0, 1.0])

    ranked = matcher.rank([first, second], [0.0, 0.0])

    assert ranked[0][0] is first
    assert ranked[1][0] is second


def test_rank_empty(matcher):
    """Ranking nothing returns nothing."""
    assert matcher.rank([], [0.0, 1.0]) == []


def test_invalid_threshold():
    """Non-positive thresholds are rejected."""
    with pytest.raises(ValueError, match="Threshold"):
        SimilarityMatcher(threshold=0.0)
