"""Shared fixtures for tests."""

import pytest
import jax.random as random
import numpy as np

from kernelspace.kernels import RBFKernel, LinearKernel
from kernelspace.metrics import EuclideanDistance
from kernelspace.data import make_blobs, make_xor, make_line


@pytest.fixture
def rng_key():
    """Random number generator key."""
    return random.PRNGKey(42)


@pytest.fixture
def sample_data_2d(rng_key):
    """Sample 2D data for testing."""
    key1, key2 = random.split(rng_key)
    X = np.asarray(random.normal(key1, (10, 5)))
    Y = np.asarray(random.normal(key2, (8, 5)))
    return X, Y


@pytest.fixture
def np_rng():
    """NumPy generator for test data."""
    return np.random.default_rng(7)


@pytest.fixture
def rbf_kernel():
    """RBF kernel for testing."""
    return RBFKernel(sigma=1.0)


@pytest.fixture
def linear_kernel():
    """Plain dot product kernel."""
    return LinearKernel()


@pytest.fixture
def euclidean():
    """Euclidean metric."""
    return EuclideanDistance()


@pytest.fixture
def line_points():
    """The values 0..999 as 1-D vectors."""
    return make_line(1000)


@pytest.fixture
def cloud_points(np_rng):
    """300 random points in 3D."""
    return np_rng.normal(size=(300, 3))


@pytest.fixture
def blobs():
    """Two well separated Gaussian blobs."""
    return make_blobs(n_samples=200, separation=6.0, seed=3)


@pytest.fixture
def xor_data():
    """XOR pattern with a gap around the axes."""
    return make_xor(n_samples=100, margin=0.1, seed=5)
