"""Brute force vector collection."""

from typing import List, Sequence

import numpy as np

from ..metrics import DistanceMetric
from .base import BoundedSortedList, Neighbor, check_knn_args, check_range_args, sort_neighbors


class VectorArray:
    """
    Linear scan over every vector.

    Any symmetric distance works, subadditive or not. Serves as the
    reference answer for the tree based collections.

    Parameters:
        vectors: Vectors to index, a sequence of 1-D arrays or a 2-D array
        metric: Distance metric
    """

    def __init__(self, vectors: Sequence[np.ndarray], metric: DistanceMetric):
        self._vecs: List[np.ndarray] = [np.asarray(v, dtype=float) for v in vectors]
        self._metric = metric
        self._cache = metric.get_acceleration_cache(self._vecs) if metric.supports_acceleration else None

    @property
    def metric(self) -> DistanceMetric:
        return self._metric

    def __len__(self) -> int:
        return len(self._vecs)

    def _distances(self, q: np.ndarray) -> List[float]:
        qi = self._metric.get_query_info(q)
        return [self._metric.dist_query(i, q, qi, self._vecs, self._cache) for i in range(len(self._vecs))]

    def search_knn(self, query: np.ndarray, k: int) -> List[Neighbor]:
        check_knn_args(k)
        if not self._vecs:
            return []
        q = np.asarray(query, dtype=float)
        result = BoundedSortedList(k)
        for i, d in enumerate(self._distances(q)):
            result.add(Neighbor(i, self._vecs[i], d))
        return result.to_list()

    def search_range(self, query: np.ndarray, radius: float) -> List[Neighbor]:
        check_range_args(radius)
        q = np.asarray(query, dtype=float)
        hits = [
            Neighbor(i, self._vecs[i], d)
            for i, d in enumerate(self._distances(q))
            if d <= radius
        ]
        return sort_neighbors(hits)

    def clone(self) -> "VectorArray":
        return VectorArray(self._vecs, self._metric.clone())
