"""Lp family distance metrics."""

import math

import jax.numpy as jnp
from jax import jit
from functools import partial
from jaxtyping import Array, Float
import numpy as np

from .base import BaseMetric


class EuclideanDistance(BaseMetric):
    """
    Euclidean (L2) distance.

    Supports acceleration: the cache holds ``v·v`` for every vector, so a
    distance costs one dot product. Negative round-off is clamped to zero.
    """

    @property
    def supports_acceleration(self) -> bool:
        return True

    def dist(self, a: np.ndarray, b: np.ndarray) -> float:
        diff = a - b
        return math.sqrt(float(diff @ diff))

    def dist_pair(self, i, j, vecs, cache) -> float:
        if cache is None:
            return self.dist(vecs[i], vecs[j])
        sqrd = cache[i] + cache[j] - 2.0 * float(vecs[i] @ vecs[j])
        return math.sqrt(max(sqrd, 0.0))

    def dist_query(self, i, q, qi, vecs, cache) -> float:
        if cache is None or not qi:
            return self.dist(vecs[i], q)
        sqrd = cache[i] + qi[0] - 2.0 * float(vecs[i] @ q)
        return math.sqrt(max(sqrd, 0.0))

    def get_acceleration_cache(self, vecs):
        return [float(v @ v) for v in vecs]

    def get_query_info(self, q):
        return [float(q @ q)]

    @partial(jit, static_argnums=(0,))
    def pairwise(
        self,
        X: Float[Array, "n d"],
        Y: Float[Array, "m d"]
    ) -> Float[Array, "n m"]:
        X_sqnorm = jnp.sum(X ** 2, axis=1, keepdims=True)
        Y_sqnorm = jnp.sum(Y ** 2, axis=1, keepdims=True)
        sq_distances = X_sqnorm + Y_sqnorm.T - 2 * jnp.dot(X, Y.T)
        return jnp.sqrt(jnp.maximum(sq_distances, 0.0))


class SquaredEuclideanDistance(BaseMetric):
    """
    Squared Euclidean distance.

    Not subadditive, so it cannot back a metric index. Useful where only the
    ranking of distances matters.
    """

    def dist(self, a: np.ndarray, b: np.ndarray) -> float:
        diff = a - b
        return float(diff @ diff)

    def is_subadditive(self) -> bool:
        return False

    @partial(jit, static_argnums=(0,))
    def pairwise(self, X, Y):
        diff = X[:, None, :] - Y[None, :, :]
        return jnp.sum(diff ** 2, axis=-1)


class ManhattanDistance(BaseMetric):
    """Manhattan (L1) distance."""

    def dist(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(np.sum(np.abs(a - b)))

    @partial(jit, static_argnums=(0,))
    def pairwise(self, X, Y):
        return jnp.sum(jnp.abs(X[:, None, :] - Y[None, :, :]), axis=-1)


class ChebyshevDistance(BaseMetric):
    """Chebyshev (L-infinity) distance."""

    def dist(self, a: np.ndarray, b: np.ndarray) -> float:
        if a.size == 0:
            return 0.0
        return float(np.max(np.abs(a - b)))

    @partial(jit, static_argnums=(0,))
    def pairwise(self, X, Y):
        return jnp.max(jnp.abs(X[:, None, :] - Y[None, :, :]), axis=-1)


class MinkowskiDistance(BaseMetric):
    """
    Minkowski (Lp) distance.

    Parameters:
        p: Order of the norm, at least 1 for the triangle inequality to hold
    """

    def __init__(self, p: float = 2.0):
        if not p >= 1 or math.isinf(p):
            raise ValueError(f"p must be a finite value >= 1, not {p}")
        self._p = float(p)

    @property
    def p(self) -> float:
        return self._p

    def dist(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(np.sum(np.abs(a - b) ** self._p) ** (1.0 / self._p))

    @partial(jit, static_argnums=(0,))
    def pairwise(self, X, Y):
        diff = jnp.abs(X[:, None, :] - Y[None, :, :])
        return jnp.sum(diff ** self._p, axis=-1) ** (1.0 / self._p)

    def clone(self) -> "MinkowskiDistance":
        return MinkowskiDistance(self._p)

    def __repr__(self) -> str:
        return f"MinkowskiDistance(p={self._p})"

    def __eq__(self, other) -> bool:
        return isinstance(other, MinkowskiDistance) and other._p == self._p

    def __hash__(self) -> int:
        return hash((MinkowskiDistance, self._p))
