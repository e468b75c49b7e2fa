"""Dot-product kernels."""

import jax.numpy as jnp
from jax import jit
from functools import partial
from jaxtyping import Array, Float
import numpy as np

from .base import BaseKernel


class LinearKernel(BaseKernel):
    """
    Linear kernel k(x, y) = <x, y> + c.

    Parameters:
        c: Non-negative additive constant
    """

    def __init__(self, c: float = 0.0):
        if c < 0 or np.isnan(c):
            raise ValueError(f"c must be non-negative, not {c}")
        self._c = c

    @property
    def c(self) -> float:
        return self._c

    def eval(self, a: np.ndarray, b: np.ndarray) -> float:
        return float(a @ b) + self._c

    @partial(jit, static_argnums=(0,))
    def __call__(
        self,
        X: Float[Array, "n d"],
        Y: Float[Array, "m d"]
    ) -> Float[Array, "n m"]:
        return jnp.dot(X, Y.T) + self._c

    def clone(self) -> "LinearKernel":
        return LinearKernel(self._c)

    def __repr__(self) -> str:
        return f"LinearKernel(c={self._c})"


class PolynomialKernel(BaseKernel):
    """
    Polynomial kernel k(x, y) = (alpha <x, y> + c)^degree.

    Parameters:
        degree: Positive integer degree
        alpha: Scale applied to the dot product
        c: Additive constant
    """

    def __init__(self, degree: int = 2, alpha: float = 1.0, c: float = 1.0):
        if degree < 1:
            raise ValueError(f"degree must be a positive integer, not {degree}")
        self._degree = int(degree)
        self._alpha = alpha
        self._c = c

    @property
    def degree(self) -> int:
        return self._degree

    def eval(self, a: np.ndarray, b: np.ndarray) -> float:
        return (self._alpha * float(a @ b) + self._c) ** self._degree

    @partial(jit, static_argnums=(0,))
    def __call__(
        self,
        X: Float[Array, "n d"],
        Y: Float[Array, "m d"]
    ) -> Float[Array, "n m"]:
        return (self._alpha * jnp.dot(X, Y.T) + self._c) ** self._degree

    def clone(self) -> "PolynomialKernel":
        return PolynomialKernel(self._degree, self._alpha, self._c)

    def __repr__(self) -> str:
        return f"PolynomialKernel(degree={self._degree}, alpha={self._alpha}, c={self._c})"
