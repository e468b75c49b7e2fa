"""Synthetic data for testing and examples."""

from typing import Optional, Sequence, Tuple

import numpy as np
import jax.numpy as jnp
import jax.random as random
import pandas as pd


def _split_labels(n_samples: int) -> Tuple[int, int]:
    n_pos = n_samples // 2
    return n_samples - n_pos, n_pos


def _shuffle(key, X, y) -> Tuple[np.ndarray, np.ndarray]:
    perm = random.permutation(key, X.shape[0])
    return np.asarray(X[perm], dtype=np.float64), np.asarray(y[perm], dtype=np.int32)


def make_blobs(
    n_samples: int = 200,
    n_features: int = 2,
    separation: float = 4.0,
    scale: float = 1.0,
    seed: int = 0
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Two Gaussian blobs, linearly separable for large ``separation``.

    Parameters:
        n_samples: Total number of points
        n_features: Dimension of each point
        separation: Distance between the two centers
        scale: Standard deviation of each blob
        seed: Random seed

    Returns:
        Tuple of (X, y) with labels in {0, 1}
    """
    key = random.PRNGKey(seed)
    k_noise, k_perm = random.split(key)
    n_neg, n_pos = _split_labels(n_samples)

    center = jnp.zeros(n_features).at[0].set(separation / 2)
    noise = scale * random.normal(k_noise, (n_samples, n_features))
    X = noise + jnp.concatenate([
        jnp.tile(-center, (n_neg, 1)),
        jnp.tile(center, (n_pos, 1))
    ])
    y = jnp.concatenate([jnp.zeros(n_neg), jnp.ones(n_pos)])
    return _shuffle(k_perm, X, y)


def make_xor(
    n_samples: int = 200,
    margin: float = 0.1,
    seed: int = 0
) -> Tuple[np.ndarray, np.ndarray]:
    """
    XOR pattern on the square [-1, 1]², not linearly separable.

    Points within ``margin`` of either axis are pushed away from it so the
    classes have a gap.

    Returns:
        Tuple of (X, y), y is 1 where both coordinates share a sign
    """
    key = random.PRNGKey(seed)
    k_pts, k_perm = random.split(key)
    X = random.uniform(k_pts, (n_samples, 2), minval=-1.0, maxval=1.0)
    X = jnp.sign(X) * (margin + (1.0 - margin) * jnp.abs(X))
    y = (X[:, 0] * X[:, 1] > 0).astype(jnp.int32)
    return _shuffle(k_perm, X, y)


def make_rings(
    n_samples: int = 200,
    inner_radius: float = 1.0,
    outer_radius: float = 3.0,
    noise: float = 0.1,
    seed: int = 0
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Two concentric rings. The inner ring is class 1.

    Returns:
        Tuple of (X, y)
    """
    key = random.PRNGKey(seed)
    k_angle, k_noise, k_perm = random.split(key, 3)
    n_outer, n_inner = _split_labels(n_samples)

    angles = random.uniform(k_angle, (n_samples,), maxval=2 * jnp.pi)
    radii = jnp.concatenate([
        jnp.full(n_outer, outer_radius),
        jnp.full(n_inner, inner_radius)
    ])
    X = jnp.stack([radii * jnp.cos(angles), radii * jnp.sin(angles)], axis=1)
    X = X + noise * random.normal(k_noise, X.shape)
    y = jnp.concatenate([jnp.zeros(n_outer), jnp.ones(n_inner)])
    return _shuffle(k_perm, X, y)


def make_sine_regression(
    n_samples: int = 200,
    noise: float = 0.1,
    seed: int = 0
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Noisy ``sin(x)`` on [0, 2π].

    Returns:
        Tuple of (X, y) with X of shape (n_samples, 1)
    """
    key = random.PRNGKey(seed)
    k_x, k_noise = random.split(key)
    x = random.uniform(k_x, (n_samples,), maxval=2 * jnp.pi)
    y = jnp.sin(x) + noise * random.normal(k_noise, (n_samples,))
    return np.asarray(x[:, None], dtype=np.float64), np.asarray(y, dtype=np.float64)


def make_line(n_points: int = 1000) -> np.ndarray:
    """The points 0, 1, ..., n_points - 1 on a line, shape (n_points, 1)."""
    return np.arange(n_points, dtype=np.float64)[:, None]


def to_frame(
    X: np.ndarray,
    y: Optional[np.ndarray] = None,
    feature_names: Optional[Sequence[str]] = None
) -> pd.DataFrame:
    """
    Collect features (and optionally labels) into a DataFrame.

    Parameters:
        X: Feature matrix
        y: Labels or targets, stored in a ``label`` column
        feature_names: Column names, defaults to var1, var2, ...

    Returns:
        DataFrame with one row per point
    """
    X = np.asarray(X)
    if feature_names is None:
        feature_names = [f"var{i + 1}" for i in range(X.shape[1])]
    df = pd.DataFrame(X, columns=list(feature_names))
    if y is not None:
        df['label'] = np.asarray(y)
    return df
