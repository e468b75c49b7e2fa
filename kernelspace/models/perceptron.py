"""Kernel perceptrons: unbudgeted and the Forgetron."""

import math
from dataclasses import dataclass, field

import numpy as np

from ..kernels import KernelPoint, KernelTrick, RBFKernel
from .base import OnlineClassifier


@dataclass
class KernelPerceptron(OnlineClassifier):
    """
    Kernel perceptron.

    Every mistake adds ``y·φ(x)`` to the weight vector, which lives in a
    :class:`KernelPoint`. With the default tolerance of 0 nothing is
    approximated; a positive tolerance folds nearly dependent mistakes into
    the existing support set.

    Parameters:
        kernel: Kernel function
        error_tolerance: Projection tolerance of the weight vector
    """
    kernel: KernelTrick = field(default_factory=RBFKernel)
    error_tolerance: float = 0.0

    def reset(self) -> None:
        self._point = KernelPoint(self.kernel, error_tolerance=self.error_tolerance)
        self._mistakes = 0

    @property
    def weights(self) -> KernelPoint:
        return self._point

    @property
    def mistakes(self) -> int:
        return self._mistakes

    def _score(self, x) -> float:
        return self._point.dot(x)

    def _update(self, x, y_t) -> None:
        qi = self.kernel.get_query_info(x)
        if y_t * self._point.dot(x, qi) <= 0:
            self._mistakes += 1
            self._point.mutable_add(y_t, x, qi)


@dataclass
class Forgetron(OnlineClassifier):
    """
    Kernel perceptron on a fixed budget.

    Keeps at most ``budget`` support vectors in a ring buffer. Once full,
    each mistake overwrites the oldest support vector and every weight is
    shrunk so the removal cannot hurt much.

    Dekel, O., Shalev-Shwartz, S., & Singer, Y. (2008). The Forgetron: A
    Kernel-Based Perceptron on a Budget. SIAM Journal on Computing, 37(5).

    Parameters:
        kernel: Kernel function
        budget: Maximum number of support vectors
        self_tuned: Use the self-tuned shrinking schedule instead of the
            fixed one
    """
    kernel: KernelTrick = field(default_factory=RBFKernel)
    budget: int = 100
    self_tuned: bool = True

    def _validate(self) -> None:
        if self.budget < 1:
            raise ValueError(f"budget must be a positive integer, not {self.budget}")

    def reset(self) -> None:
        B = self.budget
        self._U = math.sqrt((B + 1) / math.log(B + 1)) / 4.0
        self._B_const = (B + 1) ** (1.0 / (2 * B + 2))
        self._vecs = [None] * B
        self._s = np.zeros(B)
        self._size = 0
        self._cur = 0
        self._Q = 0.0
        self._M = 0

    @property
    def support_vectors(self):
        return list(self._vecs[:self._size])

    @property
    def weights(self) -> np.ndarray:
        return self._s[:self._size].copy()

    def _score(self, x) -> float:
        return sum(self._s[i] * self.kernel.eval(self._vecs[i], x) for i in range(self._size))

    @staticmethod
    def _psi(lam: float, mu: float) -> float:
        return lam * lam + 2.0 * lam - 2.0 * lam * mu

    def _update(self, x, y_t) -> None:
        if y_t * self._score(x) > 0:
            return

        self._M += 1
        x = np.array(x, dtype=float)
        if self.self_tuned:
            if self._size + 1 <= self.budget:
                self._size += 1
                self._vecs[self._cur] = x
                self._s[self._cur] = y_t
            else:
                r = self._cur
                fp_t = self._score(self._vecs[r]) + y_t * self.kernel.eval(x, self._vecs[r])
                s_r = abs(self._s[r])
                y_r = np.sign(self._s[r])
                a = s_r * s_r - 2.0 * y_r * s_r * fp_t
                b = 2.0 * s_r
                c = self._Q - (15.0 / 32.0) * self._M
                d = b * b - 4.0 * a * c

                if a > 0 or (a < 0 and d > 0 and (-b - math.sqrt(d)) / (2.0 * a) > 1):
                    phi_t = min(1.0, (-b + math.sqrt(max(d, 0.0))) / (2.0 * a))
                elif abs(a) <= 1e-13 and b != 0:
                    phi_t = min(1.0, -c / b)
                else:
                    phi_t = 1.0

                self._Q += self._psi(phi_t * s_r, y_r * phi_t * fp_t)
                self._vecs[self._cur] = x
                self._s[self._cur] = y_t
                if phi_t != 1.0:
                    self._s *= phi_t
        else:
            ff = 1.0
            for i in range(self._size):
                ff += self._s[i] ** 2 * self.kernel.eval(self._vecs[i], self._vecs[i])
            phi = min(self._B_const, self._U / math.sqrt(ff))
            self._vecs[self._cur] = x
            self._s[self._cur] = y_t
            if self._size < self.budget:
                self._size += 1
            self._s[:self._size] *= phi

        self._cur = (self._cur + 1) % self.budget
