"""Radial Basis Function (RBF) kernel implementation."""

import math

import jax.numpy as jnp
from jax import jit
from functools import partial
from jaxtyping import Array, Float

from .base import BaseL2Kernel


class RBFKernel(BaseL2Kernel):
    """
    Radial Basis Function (Gaussian) kernel.

    k(x, y) = exp(-||x - y||² / (2σ²))

    This is the only kernel accepted by the MERGE_RBF budget strategy, since
    merging relies on ``k(m, z) = k(m, n)^((1-h)²)`` for ``z = h·m + (1-h)·n``.

    Parameters:
        sigma: Bandwidth parameter (length scale)
    """

    def __init__(self, sigma: float = 1.0):
        if not sigma > 0 or math.isinf(sigma):
            raise ValueError(f"sigma must be a positive constant, not {sigma}")
        self._sigma = sigma
        self._gamma = 0.5 / (sigma * sigma)

    @property
    def sigma(self) -> float:
        """Kernel bandwidth parameter."""
        return self._sigma

    @property
    def gamma(self) -> float:
        """Equivalent ``1 / (2σ²)`` parameterization."""
        return self._gamma

    def _from_sqrd_dist(self, sqrd_dist: float) -> float:
        return math.exp(-sqrd_dist * self._gamma)

    @partial(jit, static_argnums=(0,))
    def __call__(
        self,
        X: Float[Array, "n d"],
        Y: Float[Array, "m d"]
    ) -> Float[Array, "n m"]:
        """
        Compute RBF kernel matrix.

        Uses the identity:
        ||x - y||² = ||x||² + ||y||² - 2<x, y>

        Parameters:
            X: First set of points, shape (n, d)
            Y: Second set of points, shape (m, d)

        Returns:
            Kernel matrix of shape (n, m)
        """
        X_sqnorm = jnp.sum(X ** 2, axis=1, keepdims=True)  # (n, 1)
        Y_sqnorm = jnp.sum(Y ** 2, axis=1, keepdims=True)  # (m, 1)

        sq_distances = X_sqnorm + Y_sqnorm.T - 2 * jnp.dot(X, Y.T)  # (n, m)
        sq_distances = jnp.maximum(sq_distances, 0.0)

        return jnp.exp(-sq_distances / (2 * self._sigma ** 2))

    @partial(jit, static_argnums=(0,))
    def diagonal(self, X: Float[Array, "n d"]) -> Float[Array, "n"]:
        """
        Diagonal of K(X, X) - always 1 for RBF.

        Parameters:
            X: Input points, shape (n, d)

        Returns:
            Diagonal values, shape (n,)
        """
        return jnp.ones(X.shape[0])

    def clone(self) -> "RBFKernel":
        return RBFKernel(self._sigma)

    def __repr__(self) -> str:
        return f"RBFKernel(sigma={self._sigma})"

    @staticmethod
    def sigma_to_gamma(sigma: float) -> float:
        """Convert a bandwidth to the ``1 / (2σ²)`` form."""
        if not sigma > 0 or math.isinf(sigma):
            raise ValueError(f"sigma must be positive, not {sigma}")
        return 1.0 / (2.0 * sigma * sigma)

    @staticmethod
    def gamma_to_sigma(gamma: float) -> float:
        """Convert ``1 / (2σ²)`` back to a bandwidth."""
        if not gamma > 0 or math.isinf(gamma):
            raise ValueError(f"gamma must be positive, not {gamma}")
        return 1.0 / math.sqrt(2.0 * gamma)
