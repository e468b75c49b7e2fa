"""Base kernel protocols and interfaces."""

from abc import ABC, abstractmethod
from typing import List, Optional, Protocol, Sequence, runtime_checkable

import numpy as np
from jaxtyping import Array, Float


@runtime_checkable
class KernelTrick(Protocol):
    """Protocol for kernel functions usable by kernel points and learners."""

    def __call__(
        self,
        X: Float[Array, "n d"],
        Y: Float[Array, "m d"]
    ) -> Float[Array, "n m"]:
        """
        Compute kernel matrix between X and Y.

        Parameters:
            X: First set of points, shape (n, d)
            Y: Second set of points, shape (m, d)

        Returns:
            Kernel matrix of shape (n, m)
        """
        ...

    def eval(self, a: np.ndarray, b: np.ndarray) -> float:
        """Kernel value between two vectors."""
        ...

    def eval_pair(
        self,
        i: int,
        j: int,
        vecs: Sequence[np.ndarray],
        cache: Optional[List[float]]
    ) -> float:
        """Kernel value between two members of a basis list."""
        ...

    def eval_query(
        self,
        i: int,
        x: np.ndarray,
        qi: List[float],
        vecs: Sequence[np.ndarray],
        cache: Optional[List[float]]
    ) -> float:
        """Kernel value between basis member ``i`` and a query vector."""
        ...

    def eval_self(self, x: np.ndarray, qi: List[float]) -> float:
        """Kernel value of a query vector with itself."""
        ...

    def eval_basis(
        self,
        x: np.ndarray,
        qi: List[float],
        vecs: Sequence[np.ndarray],
        cache: Optional[List[float]]
    ) -> np.ndarray:
        """Kernel values between a query vector and every basis member."""
        ...

    def get_acceleration_cache(
        self,
        vecs: Sequence[np.ndarray]
    ) -> Optional[List[float]]:
        """Per-vector cached values, or None if unsupported."""
        ...

    def add_to_cache(self, x: np.ndarray, cache: List[float]) -> None:
        """Append the cache entries for ``x``."""
        ...

    def get_query_info(self, x: np.ndarray) -> List[float]:
        """Per-query values reused across many evaluations."""
        ...

    @property
    def supports_acceleration(self) -> bool:
        """Whether caches and query info carry any information."""
        ...

    def clone(self) -> "KernelTrick":
        """Independent copy of this kernel."""
        ...


class BaseKernel(ABC):
    """
    Shared plumbing for kernels without an acceleration cache.

    Subclasses implement :meth:`eval` and the batched :meth:`__call__`; the
    index based variants fall back to looking the vectors up.
    """

    @abstractmethod
    def eval(self, a: np.ndarray, b: np.ndarray) -> float:
        ...

    @abstractmethod
    def __call__(self, X, Y):
        ...

    @abstractmethod
    def clone(self) -> "BaseKernel":
        ...

    @property
    def supports_acceleration(self) -> bool:
        return False

    def eval_pair(self, i, j, vecs, cache) -> float:
        return self.eval(vecs[i], vecs[j])

    def eval_query(self, i, x, qi, vecs, cache) -> float:
        return self.eval(vecs[i], x)

    def eval_self(self, x, qi) -> float:
        return self.eval(x, x)

    def eval_sum(
        self,
        vecs: Sequence[np.ndarray],
        cache: Optional[List[float]],
        alpha: np.ndarray,
        x: np.ndarray,
        qi: List[float],
        start: int = 0,
        end: Optional[int] = None
    ) -> float:
        """
        Compute ``Σ_i alpha_i k(vecs_i, x)`` over ``[start, end)``.

        Zero coefficients are skipped.
        """
        if end is None:
            end = len(vecs)
        total = 0.0
        for i in range(start, end):
            if alpha[i] != 0.0:
                total += alpha[i] * self.eval_query(i, x, qi, vecs, cache)
        return total

    def eval_basis(
        self,
        x: np.ndarray,
        qi: List[float],
        vecs: Sequence[np.ndarray],
        cache: Optional[List[float]]
    ) -> Float[np.ndarray, "n"]:
        """Kernel values between ``x`` and every basis member."""
        return np.array(
            [self.eval_query(i, x, qi, vecs, cache) for i in range(len(vecs))],
            dtype=float
        )

    def get_acceleration_cache(self, vecs) -> Optional[List[float]]:
        return None

    def add_to_cache(self, x, cache) -> None:
        return None

    def get_query_info(self, x) -> List[float]:
        return []


class BaseL2Kernel(BaseKernel):
    """
    Base for kernels that depend on ``||x - y||²``.

    The acceleration cache stores ``x·x`` for every basis vector and the query
    info stores ``q·q``, so a squared distance costs a single dot product.
    """

    @abstractmethod
    def _from_sqrd_dist(self, sqrd_dist: float) -> float:
        ...

    @property
    def supports_acceleration(self) -> bool:
        return True

    def eval(self, a: np.ndarray, b: np.ndarray) -> float:
        if a is b:
            return self._from_sqrd_dist(0.0)
        diff = a - b
        return self._from_sqrd_dist(float(diff @ diff))

    def eval_pair(self, i, j, vecs, cache) -> float:
        if i == j:
            return self._from_sqrd_dist(0.0)
        if cache is None:
            return self.eval(vecs[i], vecs[j])
        sqrd = cache[i] + cache[j] - 2.0 * float(vecs[i] @ vecs[j])
        return self._from_sqrd_dist(max(sqrd, 0.0))

    def eval_query(self, i, x, qi, vecs, cache) -> float:
        if cache is None or not qi:
            return self.eval(vecs[i], x)
        sqrd = cache[i] + qi[0] - 2.0 * float(vecs[i] @ x)
        return self._from_sqrd_dist(max(sqrd, 0.0))

    def eval_self(self, x, qi) -> float:
        return self._from_sqrd_dist(0.0)

    def get_acceleration_cache(self, vecs) -> List[float]:
        return [float(v @ v) for v in vecs]

    def add_to_cache(self, x, cache) -> None:
        cache.append(float(x @ x))

    def get_query_info(self, x) -> List[float]:
        return [float(x @ x)]
