"""Projectron and Projectron++ kernel perceptrons."""

import math
from dataclasses import dataclass, field

import numpy as np

from ..kernels import KernelTrick, RBFKernel
from ..linalg import ExpandingMatrix, bordered_inverse_update
from .base import OnlineClassifier


@dataclass
class Projectron(OnlineClassifier):
    """
    Bounded kernel perceptron that projects mistakes onto its support set.

    On a mistake the new example is projected onto the span of the current
    support vectors. If the projection residual ``δ`` is below ``eta`` the
    projection replaces the example, otherwise the example becomes a new
    support vector. The inverse Gram matrix of the support set is kept up to
    date with rank-1 updates. With ``use_margin_updates`` (Projectron++)
    correctly classified examples inside the margin also trigger projected
    updates.

    Orabona, F., Keshet, J., & Caputo, B. (2009). Bounded Kernel-Based Online
    Learning. JMLR, 10, 2643–2666.

    Parameters:
        kernel: Kernel function
        eta: Projection residual threshold, larger values mean fewer
            support vectors
        use_margin_updates: Enable Projectron++ margin updates
    """
    kernel: KernelTrick = field(default_factory=RBFKernel)
    eta: float = 0.1
    use_margin_updates: bool = True

    def _validate(self) -> None:
        if not self.eta >= 0 or math.isinf(self.eta):
            raise ValueError(f"eta must be a non-negative finite constant, not {self.eta}")

    def reset(self) -> None:
        self._basis = []
        self._alpha = np.zeros(0)
        self._cache = self.kernel.get_acceleration_cache([])
        self._inv_K = ExpandingMatrix()

    @property
    def support_vectors(self):
        return list(self._basis)

    @property
    def alpha(self) -> np.ndarray:
        return self._alpha.copy()

    @property
    def inverse_gram(self) -> np.ndarray:
        return self._inv_K.view.copy()

    def _kernel_row(self, x, qi) -> np.ndarray:
        return self.kernel.eval_basis(x, qi, self._basis, self._cache)

    def _score(self, x) -> float:
        if not self._basis:
            return 0.0
        qi = self.kernel.get_query_info(x)
        return float(self._alpha @ self._kernel_row(x, qi))

    def _add_support_vector(self, x, y_t: float) -> None:
        x = np.array(x, dtype=float)
        self._basis.append(x)
        self._alpha = np.append(self._alpha, y_t)
        if self._cache is not None:
            self.kernel.add_to_cache(x, self._cache)

    def _update(self, x, y_t) -> None:
        qi = self.kernel.get_query_info(x)
        k_xx = self.kernel.eval_self(x, qi)

        if not self._basis:
            if k_xx > 0:
                bordered_inverse_update(self._inv_K, np.zeros(0), k_xx)
                self._add_support_vector(x, y_t)
            return

        k_t = self._kernel_row(x, qi)
        score = float(self._alpha @ k_t)
        margin = y_t * score
        if margin > 1:
            return
        if 0 < margin <= 1 and not self.use_margin_updates:
            return

        d = self._inv_K.view @ k_t
        k_t_d = float(k_t @ d)
        delta_sqrd = max(k_xx - k_t_d, 0.0)
        delta = math.sqrt(delta_sqrd)

        if np.sign(score) != y_t:
            if delta < self.eta:
                self._alpha += y_t * d
            else:
                if delta_sqrd > 0:
                    bordered_inverse_update(self._inv_K, d, delta_sqrd)
                else:
                    self._inv_K.grow()
                self._add_support_vector(x, y_t)
            return

        # margin error
        loss = 1.0 - margin
        if self.eta > 0:
            threshold = delta / self.eta
        else:
            threshold = math.inf if delta > 0 else 0.0
        if loss < threshold or k_t_d <= 0:
            return
        tau = min(loss / k_t_d, 2.0 * (loss - threshold) / k_t_d, 1.0)
        self._alpha += y_t * tau * d
