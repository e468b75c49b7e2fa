"""Points in a kernel-induced feature space with budget maintenance."""

import math
from enum import Enum
from typing import List, Optional, Sequence, Union

import numpy as np
from jaxtyping import Float
from scipy.optimize import minimize_scalar

from ..linalg import ExpandingMatrix, bordered_inverse_update, removal_inverse_update
from .base import KernelTrick
from .rbf import RBFKernel

# Residuals at or below this fraction of k(x, x) are round-off from an
# exactly dependent vector.
DEPENDENCE_RTOL = 1e-12


class BudgetStrategy(Enum):
    """How the shared basis is kept bounded as new vectors arrive."""

    PROJECTION = "projection"
    MERGE_RBF = "merge_rbf"
    STOP = "stop"
    RANDOM = "random"


def _check_config(
    kernel: KernelTrick,
    error_tolerance: float,
    budget_strategy: BudgetStrategy,
    max_budget: Optional[int]
) -> None:
    if not isinstance(budget_strategy, BudgetStrategy):
        raise ValueError(f"budget_strategy must be a BudgetStrategy, not {budget_strategy!r}")
    if not (error_tolerance >= 0) or math.isinf(error_tolerance):
        raise ValueError(
            f"error_tolerance must be a non-negative finite value, not {error_tolerance}"
        )
    if max_budget is not None:
        if isinstance(max_budget, bool) or not isinstance(max_budget, (int, np.integer)) or max_budget < 1:
            raise ValueError(f"max_budget must be a positive integer, not {max_budget}")
    elif budget_strategy is not BudgetStrategy.PROJECTION:
        raise ValueError(f"max_budget is required for the {budget_strategy.name} strategy")
    if budget_strategy is BudgetStrategy.MERGE_RBF and not isinstance(kernel, RBFKernel):
        raise ValueError(f"MERGE_RBF requires an RBFKernel, got {type(kernel).__name__}")


class KernelPoints:
    """
    A list of points in feature space that all share one basis.

    Each point ``p`` is ``Σ_i alpha[p, i] φ(basis_i)``. Basis vectors, the
    kernel acceleration cache, the Gram matrix ``K`` and (for PROJECTION) its
    inverse are owned here once, so a single pass of kernel evaluations serves
    every point. Results match N independent :class:`KernelPoint` objects
    whenever no lossy approximation takes place.

    Parameters:
        kernel: Kernel defining the feature space
        n_points: Number of points sharing the basis
        error_tolerance: Squared projection residual at or below which a new
            vector is folded into the existing basis (PROJECTION only)
        budget_strategy: Basis maintenance policy
        max_budget: Maximum basis size. Optional for PROJECTION, required
            otherwise
        seed: Random seed for the RANDOM strategy
    """

    def __init__(
        self,
        kernel: KernelTrick,
        n_points: int = 1,
        error_tolerance: float = 1e-2,
        budget_strategy: BudgetStrategy = BudgetStrategy.PROJECTION,
        max_budget: Optional[int] = None,
        seed: Optional[int] = None
    ):
        if n_points < 1:
            raise ValueError(f"n_points must be at least 1, not {n_points}")
        _check_config(kernel, error_tolerance, budget_strategy, max_budget)

        self._kernel = kernel
        self._error_tolerance = float(error_tolerance)
        self._budget_strategy = budget_strategy
        self._max_budget = None if max_budget is None else int(max_budget)
        self._rng = np.random.default_rng(seed)

        self._vecs: List[np.ndarray] = []
        self._cache: Optional[List[float]] = kernel.get_acceleration_cache([])
        self._K = ExpandingMatrix()
        self._inv_K = ExpandingMatrix() if budget_strategy is BudgetStrategy.PROJECTION else None
        self._alpha_buffer = np.zeros((n_points, self._K.capacity))
        self._used = False

    # ------------------------------------------------------------------
    # configuration

    @property
    def kernel(self) -> KernelTrick:
        return self._kernel

    @property
    def error_tolerance(self) -> float:
        return self._error_tolerance

    @error_tolerance.setter
    def error_tolerance(self, value: float) -> None:
        self._reconfigure(error_tolerance=value)

    @property
    def budget_strategy(self) -> BudgetStrategy:
        return self._budget_strategy

    @budget_strategy.setter
    def budget_strategy(self, value: BudgetStrategy) -> None:
        self._reconfigure(budget_strategy=value)

    @property
    def max_budget(self) -> Optional[int]:
        return self._max_budget

    @max_budget.setter
    def max_budget(self, value: Optional[int]) -> None:
        self._reconfigure(max_budget=value)

    def _reconfigure(self, **changes) -> None:
        if self._used:
            raise RuntimeError("budget parameters cannot change after vectors have been added")
        config = {
            "error_tolerance": self._error_tolerance,
            "budget_strategy": self._budget_strategy,
            "max_budget": self._max_budget,
        }
        config.update(changes)
        _check_config(self._kernel, **config)
        self._error_tolerance = float(config["error_tolerance"])
        self._budget_strategy = config["budget_strategy"]
        self._max_budget = None if config["max_budget"] is None else int(config["max_budget"])
        if self._budget_strategy is BudgetStrategy.PROJECTION:
            if self._inv_K is None:
                self._inv_K = ExpandingMatrix()
        else:
            self._inv_K = None

    # ------------------------------------------------------------------
    # introspection

    def __len__(self) -> int:
        return self._alpha_buffer.shape[0]

    def __getitem__(self, i: int) -> "KernelPoint":
        if not -len(self) <= i < len(self):
            raise IndexError(f"point index {i} out of range for {len(self)} points")
        return KernelPoint._bound_to(self, i % len(self))

    @property
    def basis_size(self) -> int:
        return len(self._vecs)

    def basis_vectors(self) -> List[np.ndarray]:
        """Copy of the basis list. The vectors themselves are shared."""
        return list(self._vecs)

    @property
    def _alpha(self) -> Float[np.ndarray, "p b"]:
        return self._alpha_buffer[:, :len(self._vecs)]

    def alpha(self, i: int) -> Float[np.ndarray, "b"]:
        """Copy of the coefficients of point ``i``."""
        return self._alpha[i].copy()

    def __repr__(self) -> str:
        return (
            f"KernelPoints(n_points={len(self)}, basis_size={self.basis_size}, "
            f"budget_strategy={self._budget_strategy.name}, kernel={self._kernel!r})"
        )

    # ------------------------------------------------------------------
    # feature space arithmetic

    def _kernel_row(self, x: np.ndarray, qi: List[float]) -> Float[np.ndarray, "b"]:
        return self._kernel.eval_basis(x, qi, self._vecs, self._cache)

    def sqrd_norm(self, i: int) -> float:
        """Squared feature space norm of point ``i``."""
        if not self._vecs:
            return 0.0
        a = self._alpha[i]
        return float(a @ self._K.view @ a)

    def dot(self, i: int, x: np.ndarray, qi: Optional[List[float]] = None) -> float:
        """
        Feature space dot product between point ``i`` and ``φ(x)``.

        Parameters:
            i: Point index
            x: Input space vector
            qi: Query info for ``x``, computed if omitted

        Returns:
            ``Σ_j alpha[i, j] k(basis_j, x)``
        """
        if not self._vecs:
            return 0.0
        if qi is None:
            qi = self._kernel.get_query_info(x)
        return float(self._kernel.eval_sum(self._vecs, self._cache, self._alpha[i], x, qi, 0, len(self._vecs)))

    def dot_all(self, x: np.ndarray, qi: Optional[List[float]] = None) -> Float[np.ndarray, "p"]:
        """Dot products of every point with ``φ(x)`` from one set of kernel evaluations."""
        if not self._vecs:
            return np.zeros(len(self))
        if qi is None:
            qi = self._kernel.get_query_info(x)
        return self._alpha @ self._kernel_row(x, qi)

    def dot_point(self, i: int, other: "KernelPoint") -> float:
        """Feature space dot product between point ``i`` and another kernel point."""
        owner, j = other._owner, other._index
        if owner is self:
            if not self._vecs:
                return 0.0
            return float(self._alpha[i] @ self._K.view @ self._alpha[j])
        if not self._vecs or not owner._vecs:
            return 0.0
        cross = np.array([
            self._kernel.eval_basis(v, self._kernel.get_query_info(v), owner._vecs, owner._cache)
            for v in self._vecs
        ])
        return float(self._alpha[i] @ cross @ owner._alpha[j])

    def dist(self, i: int, x: np.ndarray, qi: Optional[List[float]] = None) -> float:
        """Feature space distance between point ``i`` and ``φ(x)``."""
        if qi is None:
            qi = self._kernel.get_query_info(x)
        k_xx = self._kernel.eval_self(x, qi)
        return math.sqrt(max(0.0, self.sqrd_norm(i) + k_xx - 2.0 * self.dot(i, x, qi)))

    def dist_point(self, i: int, other: "KernelPoint") -> float:
        """Feature space distance between point ``i`` and another kernel point."""
        if other._owner is self and other._index == i:
            return 0.0
        sqrd = self.sqrd_norm(i) + other.sqrd_norm() - 2.0 * self.dot_point(i, other)
        return math.sqrt(max(0.0, sqrd))

    def mutable_multiply(self, c: float, i: Optional[int] = None) -> None:
        """Scale point ``i``, or every point when ``i`` is None, by ``c``."""
        if i is None:
            self._alpha_buffer *= c
        else:
            self._alpha_buffer[i] *= c

    def mutable_add(self, i: int, c: float, x: np.ndarray, qi: Optional[List[float]] = None) -> None:
        """Update point ``i`` to ``point_i + c·φ(x)``."""
        if c == 0:
            return
        coefficients = np.zeros(len(self))
        coefficients[i] = c
        self.mutable_add_all(x, coefficients, qi)

    def mutable_add_all(
        self,
        x: np.ndarray,
        coefficients: Sequence[float],
        qi: Optional[List[float]] = None
    ) -> None:
        """
        Update every point ``p`` to ``point_p + coefficients[p]·φ(x)``.

        The kernel evaluations against the basis are computed once and shared
        by all points. How ``x`` enters the basis depends on the budget
        strategy.

        Parameters:
            x: Input space vector
            coefficients: One coefficient per point
            qi: Query info for ``x``, computed if omitted
        """
        coefficients = np.asarray(coefficients, dtype=float)
        if coefficients.shape != (len(self),):
            raise ValueError(
                f"expected {len(self)} coefficients, got shape {coefficients.shape}"
            )
        if not np.any(coefficients):
            return
        if qi is None:
            qi = self._kernel.get_query_info(x)
        self._used = True

        k_xx = self._kernel.eval_self(x, qi)
        k_vec = self._kernel_row(x, qi)
        strategy = self._budget_strategy

        if strategy is BudgetStrategy.PROJECTION:
            self._add_projection(x, k_vec, k_xx, coefficients)
        elif strategy is BudgetStrategy.STOP:
            if self.basis_size < self._max_budget:
                self._append(x, k_vec, k_xx, coefficients)
        elif strategy is BudgetStrategy.RANDOM:
            if self.basis_size >= self._max_budget:
                self._swap_remove(int(self._rng.integers(self.basis_size)))
                k_vec = self._kernel_row(x, qi)
            self._append(x, k_vec, k_xx, coefficients)
        else:
            self._append(x, k_vec, k_xx, coefficients)
            while self.basis_size > self._max_budget:
                self._merge_rbf()

    def add_point(self) -> "KernelPoint":
        """Append a new zero point sharing the basis and return it."""
        self._alpha_buffer = np.vstack([self._alpha_buffer, np.zeros(self._alpha_buffer.shape[1])])
        return self[len(self) - 1]

    def copy(self) -> "KernelPoints":
        """Deep copy. Basis vectors are treated as immutable and shared."""
        return self._subset(range(len(self)))

    def _subset(self, indices: Sequence[int]) -> "KernelPoints":
        clone = KernelPoints.__new__(KernelPoints)
        clone._kernel = self._kernel.clone()
        clone._error_tolerance = self._error_tolerance
        clone._budget_strategy = self._budget_strategy
        clone._max_budget = self._max_budget
        clone._rng = np.random.default_rng(self._rng.integers(2 ** 32))
        clone._vecs = list(self._vecs)
        clone._cache = None if self._cache is None else list(self._cache)
        clone._K = self._K.copy()
        clone._inv_K = None if self._inv_K is None else self._inv_K.copy()
        clone._alpha_buffer = self._alpha_buffer[list(indices)].copy()
        clone._used = self._used
        return clone

    # ------------------------------------------------------------------
    # basis maintenance

    def _add_projection(self, x, k_vec, k_xx, coefficients) -> None:
        if self._vecs:
            proj = self._inv_K.view @ k_vec
            delta_sqrd = max(0.0, k_xx - float(k_vec @ proj))
            if delta_sqrd <= DEPENDENCE_RTOL * k_xx:
                delta_sqrd = 0.0
        else:
            proj = k_vec
            delta_sqrd = max(0.0, k_xx)

        full = self._max_budget is not None and self.basis_size >= self._max_budget
        if delta_sqrd > 0 and (not self._vecs or (delta_sqrd > self._error_tolerance and not full)):
            bordered_inverse_update(self._inv_K, proj, delta_sqrd)
            self._append(x, k_vec, k_xx, coefficients)
        elif self._vecs:
            self._alpha_buffer[:, :len(self._vecs)] += np.outer(coefficients, proj)
        # otherwise φ(x) is the zero vector and there is nothing to add

    def _append(self, x, k_vec, k_xx, coefficients) -> None:
        x = np.array(x, dtype=float)
        self._K.grow()
        n = self._K.size
        self._K[n - 1, :n - 1] = k_vec
        self._K[:n - 1, n - 1] = k_vec
        self._K[n - 1, n - 1] = k_xx

        if n > self._alpha_buffer.shape[1]:
            expanded = np.zeros((len(self), 2 * self._alpha_buffer.shape[1]))
            expanded[:, :n - 1] = self._alpha_buffer[:, :n - 1]
            self._alpha_buffer = expanded
        self._alpha_buffer[:, n - 1] = coefficients

        self._vecs.append(x)
        if self._cache is not None:
            self._kernel.add_to_cache(x, self._cache)

    def _swap_remove(self, j: int) -> None:
        last = len(self._vecs) - 1
        self._vecs[j] = self._vecs[last]
        self._vecs.pop()
        if self._cache is not None:
            self._cache[j] = self._cache[last]
            self._cache.pop()
        self._alpha_buffer[:, j] = self._alpha_buffer[:, last]
        self._alpha_buffer[:, last] = 0.0
        self._K.swap_remove(j)
        if self._inv_K is not None:
            removal_inverse_update(self._inv_K, j)

    def _merge_rbf(self) -> None:
        """
        Merge the lightest basis vector with its best partner.

        ``m`` has the smallest ``Σ_p alpha[p, m]²``. For each candidate ``n``
        the merge position ``h`` maximizes ``Σ_p alpha_z[p]²`` (equivalently
        minimizes the weight degradation), where ``z = h·m + (1-h)·n`` and
        ``alpha_z = alpha_m k_mn^((1-h)²) + alpha_n k_mn^(h²)``.
        """
        alpha = self._alpha
        m = int(np.argmin(np.sum(alpha ** 2, axis=0)))
        a_m = alpha[:, m].copy()

        best = None
        for n in range(len(self._vecs)):
            if n == m:
                continue
            k_mn = float(self._K[m, n])
            a_n = alpha[:, n]
            base = float(np.sum(a_m ** 2 + a_n ** 2 + 2.0 * a_m * a_n * k_mn))

            def degradation(h, k_mn=k_mn, a_n=a_n, base=base):
                a_z = a_m * k_mn ** ((1.0 - h) ** 2) + a_n * k_mn ** (h ** 2)
                return base - float(np.sum(a_z ** 2))

            result = minimize_scalar(degradation, bounds=(0.0, 1.0), method="bounded")
            # the bounded search never evaluates the endpoints
            h = min((float(result.x), 0.0, 1.0), key=degradation)
            loss = degradation(h)
            if best is None or loss < best[0]:
                best = (loss, n, h, k_mn)

        _, n, h, k_mn = best
        a_z = a_m * k_mn ** ((1.0 - h) ** 2) + alpha[:, n] * k_mn ** (h ** 2)
        z = h * self._vecs[m] + (1.0 - h) * self._vecs[n]

        self._vecs[m] = z
        if self._cache is not None:
            self._cache[m] = self._kernel.get_acceleration_cache([z])[0]
        qi = self._kernel.get_query_info(z)
        row = self._kernel_row(z, qi)
        row[m] = self._kernel.eval_self(z, qi)
        self._K[m, :] = row
        self._K[:, m] = row
        self._alpha_buffer[:, m] = a_z
        self._swap_remove(n)


class KernelPoint:
    """
    A single vector in the feature space of a kernel.

    The point is represented as ``Σ_i alpha_i φ(basis_i)``. A standalone
    point owns its basis; a point obtained from ``KernelPoints[i]`` is a view
    whose mutations go through the shared controller.

    Parameters:
        kernel: Kernel defining the feature space
        error_tolerance: Squared projection residual at or below which a new
            vector is folded into the basis (PROJECTION only)
        budget_strategy: Basis maintenance policy
        max_budget: Maximum basis size
        seed: Random seed for the RANDOM strategy
    """

    def __init__(
        self,
        kernel: KernelTrick,
        error_tolerance: float = 1e-2,
        budget_strategy: BudgetStrategy = BudgetStrategy.PROJECTION,
        max_budget: Optional[int] = None,
        seed: Optional[int] = None
    ):
        self._owner = KernelPoints(
            kernel,
            n_points=1,
            error_tolerance=error_tolerance,
            budget_strategy=budget_strategy,
            max_budget=max_budget,
            seed=seed
        )
        self._index = 0

    @classmethod
    def _bound_to(cls, owner: KernelPoints, index: int) -> "KernelPoint":
        point = cls.__new__(cls)
        point._owner = owner
        point._index = index
        return point

    @property
    def kernel(self) -> KernelTrick:
        return self._owner.kernel

    @property
    def error_tolerance(self) -> float:
        return self._owner.error_tolerance

    @error_tolerance.setter
    def error_tolerance(self, value: float) -> None:
        self._owner.error_tolerance = value

    @property
    def budget_strategy(self) -> BudgetStrategy:
        return self._owner.budget_strategy

    @budget_strategy.setter
    def budget_strategy(self, value: BudgetStrategy) -> None:
        self._owner.budget_strategy = value

    @property
    def max_budget(self) -> Optional[int]:
        return self._owner.max_budget

    @max_budget.setter
    def max_budget(self, value: Optional[int]) -> None:
        self._owner.max_budget = value

    @property
    def basis_size(self) -> int:
        return self._owner.basis_size

    def basis_vectors(self) -> List[np.ndarray]:
        return self._owner.basis_vectors()

    @property
    def alpha(self) -> Float[np.ndarray, "b"]:
        """Copy of the basis coefficients."""
        return self._owner.alpha(self._index)

    def sqrd_norm(self) -> float:
        return self._owner.sqrd_norm(self._index)

    def dot(self, other: Union["KernelPoint", np.ndarray], qi: Optional[List[float]] = None) -> float:
        """Dot product with another kernel point or with ``φ(x)`` for a raw vector."""
        if isinstance(other, KernelPoint):
            return self._owner.dot_point(self._index, other)
        return self._owner.dot(self._index, other, qi)

    def dist(self, other: Union["KernelPoint", np.ndarray], qi: Optional[List[float]] = None) -> float:
        """Distance to another kernel point or to ``φ(x)`` for a raw vector."""
        if isinstance(other, KernelPoint):
            return self._owner.dist_point(self._index, other)
        return self._owner.dist(self._index, other, qi)

    def mutable_add(self, c: float, x: np.ndarray, qi: Optional[List[float]] = None) -> None:
        """Update this point to ``self + c·φ(x)``."""
        self._owner.mutable_add(self._index, c, x, qi)

    def mutable_multiply(self, c: float) -> None:
        """Scale this point by ``c``."""
        self._owner.mutable_multiply(c, self._index)

    def copy(self) -> "KernelPoint":
        """Standalone deep copy of this point."""
        return KernelPoint._bound_to(self._owner._subset([self._index]), 0)

    def __repr__(self) -> str:
        return (
            f"KernelPoint(basis_size={self.basis_size}, "
            f"budget_strategy={self.budget_strategy.name}, kernel={self.kernel!r})"
        )
