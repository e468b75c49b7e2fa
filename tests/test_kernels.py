"""Tests for kernel implementations."""

import math

import pytest
import numpy as np
import jax.numpy as jnp

from kernelspace.kernels import (
    KernelTrick,
    RBFKernel,
    LinearKernel,
    PolynomialKernel,
)


def test_rbf_kernel_properties(rbf_kernel, sample_data_2d):
    """RBF kernel should satisfy kernel properties."""
    X, _ = sample_data_2d
    K = rbf_kernel(X, X)

    # Symmetric
    assert jnp.allclose(K, K.T, atol=1e-6)

    # Positive semi-definite (eigenvalues >= 0)
    eigenvalues = jnp.linalg.eigvalsh(K)
    assert jnp.all(eigenvalues >= -1e-10)

    # Diagonal is 1
    assert jnp.allclose(jnp.diag(K), 1.0, atol=1e-6)


def test_rbf_kernel_diagonal(rbf_kernel, sample_data_2d):
    """RBF kernel diagonal should be all ones."""
    X, _ = sample_data_2d
    assert jnp.allclose(rbf_kernel.diagonal(X), 1.0)


def test_batch_matches_scalar(sample_data_2d):
    """The jitted kernel matrix should agree with pairwise evaluation."""
    X, Y = sample_data_2d
    for kernel in (RBFKernel(0.7), LinearKernel(c=0.5), PolynomialKernel(degree=3, alpha=0.5, c=1.0)):
        K = np.asarray(kernel(X, Y))
        expected = np.array([[kernel.eval(x, y) for y in Y] for x in X])
        assert np.allclose(K, expected, rtol=1e-10, atol=1e-10), kernel


def test_rbf_value():
    """RBF value for a known distance."""
    kernel = RBFKernel(sigma=2.0)
    a = np.array([0.0, 0.0])
    b = np.array([3.0, 4.0])
    assert math.isclose(kernel.eval(a, b), math.exp(-25.0 / 8.0))
    assert kernel.eval(a, a) == 1.0


def test_rbf_acceleration(rbf_kernel, sample_data_2d):
    """Cached evaluations should match direct ones."""
    X, Y = sample_data_2d
    vecs = list(X)
    cache = rbf_kernel.get_acceleration_cache(vecs)
    assert rbf_kernel.supports_acceleration
    assert len(cache) == len(vecs)

    q = Y[0]
    qi = rbf_kernel.get_query_info(q)
    for i in range(len(vecs)):
        assert math.isclose(rbf_kernel.eval_query(i, q, qi, vecs, cache), rbf_kernel.eval(vecs[i], q), rel_tol=1e-10)
        assert math.isclose(rbf_kernel.eval_pair(i, 0, vecs, cache), rbf_kernel.eval(vecs[i], vecs[0]), rel_tol=1e-10)
    assert rbf_kernel.eval_self(q, qi) == 1.0


@pytest.mark.parametrize("kernel", [RBFKernel(0.7), LinearKernel(), PolynomialKernel(degree=2)])
def test_eval_basis_matches_batch(kernel, sample_data_2d):
    """A basis row equals the matching row of the batched kernel matrix."""
    X, Y = sample_data_2d
    vecs = list(X)
    cache = kernel.get_acceleration_cache(vecs)
    row = kernel.eval_basis(Y[2], kernel.get_query_info(Y[2]), vecs, cache)
    assert row.shape == (len(vecs),)
    assert np.allclose(row, np.asarray(kernel(Y[2:3], X))[0], atol=1e-10)


def test_add_to_cache(rbf_kernel, sample_data_2d):
    """Appending to a cache should equal building it from scratch."""
    X, _ = sample_data_2d
    cache = rbf_kernel.get_acceleration_cache(list(X[:3]))
    rbf_kernel.add_to_cache(X[3], cache)
    assert np.allclose(cache, rbf_kernel.get_acceleration_cache(list(X[:4])))


def test_eval_sum(rbf_kernel, sample_data_2d):
    """Weighted sums should skip zero weights and honour the range."""
    X, Y = sample_data_2d
    vecs = list(X)
    cache = rbf_kernel.get_acceleration_cache(vecs)
    alpha = np.linspace(-1.0, 1.0, len(vecs))
    alpha[3] = 0.0
    q = Y[1]
    qi = rbf_kernel.get_query_info(q)

    expected = sum(alpha[i] * rbf_kernel.eval(vecs[i], q) for i in range(2, 7))
    assert math.isclose(rbf_kernel.eval_sum(vecs, cache, alpha, q, qi, 2, 7), expected, rel_tol=1e-10)


def test_linear_kernel_has_no_cache(linear_kernel):
    """Dot product kernels do not use acceleration."""
    assert not linear_kernel.supports_acceleration
    assert linear_kernel.get_acceleration_cache([np.ones(2)]) is None
    assert linear_kernel.get_query_info(np.ones(2)) == []


def test_polynomial_value():
    """Polynomial kernel matches its formula."""
    kernel = PolynomialKernel(degree=2, alpha=2.0, c=1.0)
    a = np.array([1.0, 2.0])
    b = np.array([3.0, -1.0])
    assert kernel.eval(a, b) == (2.0 * 1.0 + 1.0) ** 2


def test_invalid_parameters():
    """Bad hyperparameters should fail fast."""
    with pytest.raises(ValueError):
        RBFKernel(sigma=0.0)
    with pytest.raises(ValueError):
        RBFKernel(sigma=-1.0)
    with pytest.raises(ValueError):
        PolynomialKernel(degree=0)
    with pytest.raises(ValueError):
        LinearKernel(c=-1.0)


def test_protocol_conformance():
    """Every kernel satisfies the protocol."""
    for kernel in (RBFKernel(), LinearKernel(), PolynomialKernel()):
        assert isinstance(kernel, KernelTrick)


def test_clone_is_equivalent(sample_data_2d):
    """Clones evaluate identically."""
    X, Y = sample_data_2d
    kernel = RBFKernel(sigma=0.3)
    clone = kernel.clone()
    assert clone is not kernel
    assert clone.sigma == kernel.sigma
    assert kernel.eval(X[0], Y[0]) == clone.eval(X[0], Y[0])


def test_sigma_gamma_conversion():
    """Bandwidth conversions are inverses of each other."""
    gamma = RBFKernel.sigma_to_gamma(1.5)
    assert math.isclose(RBFKernel.gamma_to_sigma(gamma), 1.5)
    assert math.isclose(RBFKernel(1.5).gamma, gamma)
