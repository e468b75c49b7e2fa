"""Cosine distance."""

import math

import jax.numpy as jnp
from jax import jit
from functools import partial
import numpy as np

from .base import BaseMetric


def _cosine_to_distance(cos: float) -> float:
    return math.sqrt(max(0.0, (1.0 - cos) / 2.0))


class CosineDistance(BaseMetric):
    """
    Cosine distance ``sqrt((1 - cos(a, b)) / 2)``.

    Unlike ``1 - cos`` this form satisfies the triangle inequality and is
    bounded by 1. A zero vector is treated as pointing away from everything.
    The acceleration cache stores each vector's L2 norm.
    """

    @property
    def supports_acceleration(self) -> bool:
        return True

    def metric_bound(self) -> float:
        return 1.0

    def _from_norms(self, dot: float, denom: float) -> float:
        if denom == 0:
            return _cosine_to_distance(-1.0)
        return _cosine_to_distance(min(dot / denom, 1.0))

    def dist(self, a: np.ndarray, b: np.ndarray) -> float:
        return self._from_norms(float(a @ b), float(np.linalg.norm(a) * np.linalg.norm(b)))

    def dist_pair(self, i, j, vecs, cache) -> float:
        if cache is None:
            return self.dist(vecs[i], vecs[j])
        return self._from_norms(float(vecs[i] @ vecs[j]), cache[i] * cache[j])

    def dist_query(self, i, q, qi, vecs, cache) -> float:
        if cache is None or not qi:
            return self.dist(vecs[i], q)
        return self._from_norms(float(vecs[i] @ q), cache[i] * qi[0])

    def get_acceleration_cache(self, vecs):
        return [float(np.linalg.norm(v)) for v in vecs]

    def get_query_info(self, q):
        return [float(np.linalg.norm(q))]

    @partial(jit, static_argnums=(0,))
    def pairwise(self, X, Y):
        norms = jnp.linalg.norm(X, axis=1)[:, None] * jnp.linalg.norm(Y, axis=1)[None, :]
        safe = jnp.where(norms == 0, 1.0, norms)
        cos = jnp.where(norms == 0, -1.0, jnp.minimum(jnp.dot(X, Y.T) / safe, 1.0))
        return jnp.sqrt(jnp.maximum((1.0 - cos) / 2.0, 0.0))
