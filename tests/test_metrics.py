"""Tests for distance metrics."""

import math

import pytest
import numpy as np

from kernelspace.metrics import (
    DistanceMetric,
    EuclideanDistance,
    SquaredEuclideanDistance,
    ManhattanDistance,
    ChebyshevDistance,
    MinkowskiDistance,
    CosineDistance,
)

ALL_METRICS = [
    EuclideanDistance(),
    SquaredEuclideanDistance(),
    ManhattanDistance(),
    ChebyshevDistance(),
    MinkowskiDistance(3.0),
    CosineDistance(),
]


@pytest.mark.parametrize("metric", ALL_METRICS, ids=repr)
def test_pairwise_matches_dist(metric, sample_data_2d):
    """The jitted distance matrix should agree with pairwise evaluation."""
    X, Y = sample_data_2d
    D = np.asarray(metric.pairwise(X, Y))
    expected = np.array([[metric.dist(x, y) for y in Y] for x in X])
    assert D.shape == (10, 8)
    assert np.allclose(D, expected, rtol=1e-9, atol=1e-9)


@pytest.mark.parametrize("metric", ALL_METRICS, ids=repr)
def test_cached_matches_direct(metric, sample_data_2d):
    """Index based evaluation agrees with the plain distance."""
    X, Y = sample_data_2d
    vecs = list(X)
    cache = metric.get_acceleration_cache(vecs)
    q = Y[0]
    qi = metric.get_query_info(q)
    for i in range(len(vecs)):
        assert math.isclose(metric.dist_query(i, q, qi, vecs, cache), metric.dist(vecs[i], q), rel_tol=1e-9)
        assert math.isclose(metric.dist_pair(i, 2, vecs, cache), metric.dist(vecs[i], vecs[2]), rel_tol=1e-9, abs_tol=1e-7)


@pytest.mark.parametrize("metric", ALL_METRICS, ids=repr)
def test_protocol_and_clone(metric):
    """Every metric satisfies the protocol and clones to an equal metric."""
    assert isinstance(metric, DistanceMetric)
    clone = metric.clone()
    assert clone == metric
    assert hash(clone) == hash(metric)
    assert metric.is_symmetric()


def test_known_values():
    """Distances for a 3-4-5 triangle."""
    a = np.array([0.0, 0.0])
    b = np.array([3.0, 4.0])
    assert EuclideanDistance().dist(a, b) == 5.0
    assert SquaredEuclideanDistance().dist(a, b) == 25.0
    assert ManhattanDistance().dist(a, b) == 7.0
    assert ChebyshevDistance().dist(a, b) == 4.0
    assert math.isclose(MinkowskiDistance(1.0).dist(a, b), 7.0)
    assert math.isclose(MinkowskiDistance(2.0).dist(a, b), 5.0)


def test_properties():
    """Only the squared distance breaks the triangle inequality."""
    assert not SquaredEuclideanDistance().is_subadditive()
    for metric in ALL_METRICS:
        if not isinstance(metric, SquaredEuclideanDistance):
            assert metric.is_subadditive()
            assert metric.is_indiscernible()
    assert CosineDistance().metric_bound() == 1.0
    assert EuclideanDistance().metric_bound() == float("inf")
    assert EuclideanDistance().supports_acceleration
    assert not ManhattanDistance().supports_acceleration


def test_cosine_distance():
    """Cosine distance spans [0, 1] and treats zero vectors as opposite."""
    metric = CosineDistance()
    x = np.array([1.0, 2.0])
    assert math.isclose(metric.dist(x, 3.0 * x), 0.0, abs_tol=1e-7)
    assert math.isclose(metric.dist(x, -x), 1.0)
    assert math.isclose(metric.dist(np.array([1.0, 0.0]), np.array([0.0, 1.0])), math.sqrt(0.5))
    assert metric.dist(np.zeros(2), x) == 1.0

    D = np.asarray(metric.pairwise(np.zeros((1, 2)), x[None, :]))
    assert math.isclose(D[0, 0], 1.0)


def test_minkowski_order():
    """Orders below 1 are not metrics."""
    with pytest.raises(ValueError):
        MinkowskiDistance(0.5)
    with pytest.raises(ValueError):
        MinkowskiDistance(float("inf"))
    assert MinkowskiDistance(3.0) != MinkowskiDistance(4.0)
    assert MinkowskiDistance(3.0).p == 3.0


def test_cached_distance_never_negative():
    """Round-off in the norm identity is clamped to zero."""
    metric = EuclideanDistance()
    vecs = [np.array([1e8, 1e8 + 1.0]), np.array([1e8, 1e8 + 1.0])]
    cache = metric.get_acceleration_cache(vecs)
    d = metric.dist_pair(0, 1, vecs, cache)
    assert d >= 0.0
    qi = metric.get_query_info(vecs[0])
    assert metric.dist_query(1, vecs[0], qi, vecs, cache) >= 0.0
