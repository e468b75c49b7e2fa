"""Growable dense matrices and incremental (inverse) Gram matrix updates."""

import numpy as np
from jaxtyping import Float


class ExpandingMatrix:
    """
    Square matrix whose logical extent is a view into a larger buffer.

    Adding a row and column is O(size) until the buffer is full, at which point
    the buffer doubles and the old contents are copied over. The logical matrix
    is always ``buffer[:size, :size]``.

    Parameters:
        capacity: Initial buffer side length
    """

    def __init__(self, capacity: int = 16):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self._buffer = np.zeros((capacity, capacity))
        self._size = 0

    @property
    def size(self) -> int:
        """Side length of the logical matrix."""
        return self._size

    @property
    def capacity(self) -> int:
        """Side length of the backing buffer."""
        return self._buffer.shape[0]

    @property
    def view(self) -> Float[np.ndarray, "n n"]:
        """Writable view of the logical matrix."""
        return self._buffer[:self._size, :self._size]

    def __getitem__(self, key):
        return self.view[key]

    def __setitem__(self, key, value):
        self.view[key] = value

    def grow(self) -> None:
        """Extend the logical matrix by one zeroed row and column."""
        if self._size == self.capacity:
            expanded = np.zeros((2 * self.capacity, 2 * self.capacity))
            expanded[:self._size, :self._size] = self.view
            self._buffer = expanded
        self._size += 1
        self._buffer[self._size - 1, :self._size] = 0.0
        self._buffer[:self._size, self._size - 1] = 0.0

    def swap_remove(self, i: int) -> None:
        """
        Remove row and column ``i`` by moving the last row/column into its place.

        Parameters:
            i: Index to remove
        """
        if not 0 <= i < self._size:
            raise IndexError(f"index {i} out of range for size {self._size}")
        last = self._size - 1
        if i != last:
            self._buffer[i, :self._size] = self._buffer[last, :self._size]
            self._buffer[:self._size, i] = self._buffer[:self._size, last]
            self._buffer[i, i] = self._buffer[last, last]
        self._size = last

    def copy(self) -> "ExpandingMatrix":
        """Deep copy, keeping the same capacity."""
        clone = ExpandingMatrix(self.capacity)
        clone._buffer[:self._size, :self._size] = self.view
        clone._size = self._size
        return clone

    def __repr__(self) -> str:
        return f"ExpandingMatrix(size={self._size}, capacity={self.capacity})"


def outer_product_update(
    A: Float[np.ndarray, "n m"],
    x: Float[np.ndarray, "n"],
    y: Float[np.ndarray, "m"],
    c: float
) -> None:
    """In place ``A += c * x yᵀ``."""
    A += c * np.outer(x, y)


def bordered_inverse_update(
    inv: ExpandingMatrix,
    proj: Float[np.ndarray, "n"],
    delta_sqrd: float
) -> None:
    """
    Grow an inverse Gram matrix by one basis element.

    With ``proj = K⁻¹ k`` and ``δ² = k(x, x) - kᵀ proj``, the inverse of the
    bordered matrix ``[[K, k], [kᵀ, k(x, x)]]`` is
    ``[[K⁻¹, 0], [0, 0]] + (1/δ²) [proj; -1][proj; -1]ᵀ``.

    Parameters:
        inv: Inverse Gram matrix, updated in place
        proj: Projection coefficients of the new vector onto the basis
        delta_sqrd: Squared projection residual (must be positive)
    """
    inv.grow()
    extended = np.append(proj, -1.0)
    outer_product_update(inv.view, extended, extended, 1.0 / delta_sqrd)


def removal_inverse_update(inv: ExpandingMatrix, i: int) -> None:
    """
    Remove basis element ``i`` from an inverse Gram matrix.

    Uses ``Q' = Q₋ᵢ - qᵢ qᵢᵀ / qᵢᵢ`` and then swap-removes row/column ``i`` so
    the ordering matches a swap-with-last removal of the basis itself.

    Parameters:
        inv: Inverse Gram matrix, updated in place
        i: Index of the basis element to remove
    """
    Q = inv.view
    q_ii = Q[i, i]
    if q_ii != 0.0:
        q_i = Q[:, i].copy()
        outer_product_update(Q, q_i, q_i, -1.0 / q_ii)
    inv.swap_remove(i)
