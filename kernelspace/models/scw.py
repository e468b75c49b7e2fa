"""Soft Confidence-Weighted linear classifier."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
from jax.scipy.stats import norm

from ..linalg import outer_product_update
from .base import OnlineClassifier


class SCWMode(Enum):
    """Update rule variant."""

    CW = "cw"
    SCW_I = "scw_i"
    SCW_II = "scw_ii"


@dataclass
class SCW(OnlineClassifier):
    """
    Soft Confidence-Weighted learning.

    Keeps a Gaussian over the weight vector (mean ``w`` and covariance
    ``Σ``) and updates it so that the current example is classified correctly
    with probability at least ``eta``.

    Wang, J., Zhao, P., & Hoi, S. C. (2012). Exact Soft Confidence-Weighted
    Learning. ICML.

    Parameters:
        eta: Target confidence, strictly between 0.5 and 1
        C: Aggressiveness, only used by SCW_I and SCW_II
        mode: Update rule
        diagonal_only: Keep only the diagonal of the covariance
    """
    eta: float = 0.9
    C: float = 1.0
    mode: SCWMode = SCWMode.SCW_I
    diagonal_only: bool = False

    def _validate(self) -> None:
        if not 0.5 < self.eta < 1.0:
            raise ValueError(f"eta must be in (0.5, 1), not {self.eta}")
        if not self.C > 0 or math.isinf(self.C):
            raise ValueError(f"C must be a positive constant, not {self.C}")
        if not isinstance(self.mode, SCWMode):
            raise ValueError(f"mode must be an SCWMode, not {self.mode!r}")
        self._phi = float(norm.ppf(self.eta))
        self._phi_sqrd = self._phi ** 2
        self._zeta = 1.0 + self._phi_sqrd
        self._psi = 1.0 + self._phi_sqrd / 2.0

    def reset(self) -> None:
        self._w: Optional[np.ndarray] = None
        self._sigma: Optional[np.ndarray] = None

    @property
    def weights(self) -> np.ndarray:
        self._check_trained()
        return self._w.copy()

    @property
    def covariance(self) -> np.ndarray:
        """Full covariance, or its diagonal when ``diagonal_only``."""
        self._check_trained()
        return self._sigma.copy()

    def _check_trained(self) -> None:
        if self._w is None:
            raise RuntimeError("Model must be fit before prediction")

    def _score(self, x) -> float:
        self._check_trained()
        if x.shape != self._w.shape:
            raise ValueError(f"expected {self._w.shape[0]} features, got {x.shape}")
        return float(self._w @ x)

    def _step_size(self, m_t: float, v_t: float) -> float:
        phi, phi_sqrd = self._phi, self._phi_sqrd
        if self.mode is SCWMode.SCW_II:
            n_t = v_t + 1.0 / (2.0 * self.C)
            gamma = phi * math.sqrt(phi_sqrd * v_t * v_t * m_t * m_t + 4.0 * n_t * v_t * (n_t + v_t * phi_sqrd))
            return max(0.0, (-(2.0 * m_t * n_t + phi_sqrd * m_t * v_t) + gamma)
                       / (2.0 * (n_t * n_t + n_t * v_t * phi_sqrd)))

        alpha_t = max(0.0, (-m_t * self._psi
                            + math.sqrt(m_t * m_t * phi_sqrd * phi_sqrd / 4.0 + v_t * phi_sqrd * self._zeta))
                      / (v_t * self._zeta))
        if self.mode is SCWMode.SCW_I:
            alpha_t = min(self.C, alpha_t)
        return alpha_t

    def _update(self, x, y_t) -> None:
        if self._w is None:
            self._w = np.zeros(x.shape[0])
            self._sigma = np.ones(x.shape[0]) if self.diagonal_only else np.eye(x.shape[0])
        elif x.shape != self._w.shape:
            raise ValueError(f"expected {self._w.shape[0]} features, got {x.shape}")

        if self.diagonal_only:
            sigma_x = self._sigma * x
        else:
            sigma_x = self._sigma @ x
        v_t = float(x @ sigma_x)
        if v_t <= 0:
            raise FloatingPointError(f"non-positive variance {v_t} in SCW update")

        m_t = y_t * float(self._w @ x)
        loss = max(0.0, self._phi * math.sqrt(v_t) - m_t)
        if loss <= 1e-15:
            return

        alpha_t = self._step_size(m_t, v_t)
        if alpha_t < 1e-7:
            return

        phi = self._phi
        u_t = (-alpha_t * v_t * phi + math.sqrt(alpha_t * alpha_t * v_t * v_t * self._phi_sqrd + 4.0 * v_t)) ** 2 / 4.0

        self._w += alpha_t * y_t * sigma_x
        if self.diagonal_only:
            coef = alpha_t * phi / math.sqrt(u_t)
            self._sigma = 1.0 / (1.0 / self._sigma + coef * x * x)
        else:
            beta_t = alpha_t * phi / (math.sqrt(u_t) + v_t * alpha_t * phi)
            outer_product_update(self._sigma, sigma_x, sigma_x, -beta_t)
