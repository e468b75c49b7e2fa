"""Distance metric protocols and interfaces."""

from abc import ABC, abstractmethod
from typing import List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
from jaxtyping import Array, Float


@runtime_checkable
class DistanceMetric(Protocol):
    """Protocol for distance metrics usable by vector collections."""

    def dist(self, a: np.ndarray, b: np.ndarray) -> float:
        """Distance between two vectors."""
        ...

    def dist_pair(
        self,
        i: int,
        j: int,
        vecs: Sequence[np.ndarray],
        cache: Optional[List[float]]
    ) -> float:
        """Distance between two members of a vector list."""
        ...

    def dist_query(
        self,
        i: int,
        q: np.ndarray,
        qi: List[float],
        vecs: Sequence[np.ndarray],
        cache: Optional[List[float]]
    ) -> float:
        """Distance between list member ``i`` and a query vector."""
        ...

    def get_acceleration_cache(
        self,
        vecs: Sequence[np.ndarray]
    ) -> Optional[List[float]]:
        ...

    def get_query_info(self, q: np.ndarray) -> List[float]:
        ...

    @property
    def supports_acceleration(self) -> bool:
        ...

    def is_symmetric(self) -> bool:
        ...

    def is_subadditive(self) -> bool:
        """Whether the triangle inequality holds."""
        ...

    def is_indiscernible(self) -> bool:
        """Whether ``dist(a, b) == 0`` implies ``a == b``."""
        ...

    def metric_bound(self) -> float:
        """Largest value the metric can return."""
        ...

    def pairwise(
        self,
        X: Float[Array, "n d"],
        Y: Float[Array, "m d"]
    ) -> Float[Array, "n m"]:
        """
        Compute the distance matrix between X and Y.

        Parameters:
            X: First set of points, shape (n, d)
            Y: Second set of points, shape (m, d)

        Returns:
            Distance matrix of shape (n, m)
        """
        ...

    def clone(self) -> "DistanceMetric":
        ...


class BaseMetric(ABC):
    """
    Shared plumbing for true metrics.

    Subclasses implement :meth:`dist` and :meth:`pairwise`. Without an
    acceleration cache the index based variants look the vectors up.
    """

    @abstractmethod
    def dist(self, a: np.ndarray, b: np.ndarray) -> float:
        ...

    @abstractmethod
    def pairwise(self, X, Y):
        ...

    def clone(self) -> "BaseMetric":
        return type(self)()

    @property
    def supports_acceleration(self) -> bool:
        return False

    def dist_pair(self, i, j, vecs, cache) -> float:
        return self.dist(vecs[i], vecs[j])

    def dist_query(self, i, q, qi, vecs, cache) -> float:
        return self.dist(vecs[i], q)

    def get_acceleration_cache(self, vecs) -> Optional[List[float]]:
        return None

    def get_query_info(self, q) -> List[float]:
        return []

    def is_symmetric(self) -> bool:
        return True

    def is_subadditive(self) -> bool:
        return True

    def is_indiscernible(self) -> bool:
        return True

    def metric_bound(self) -> float:
        return float("inf")

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __eq__(self, other) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))
