"""Tests for the online kernel learners."""

import pytest
import numpy as np

from kernelspace.kernels import BudgetStrategy, KernelPoints, LinearKernel, RBFKernel
from kernelspace.models import (
    SCW,
    SCWMode,
    Forgetron,
    HingeLoss,
    KernelPerceptron,
    KernelSGD,
    LogisticLoss,
    Projectron,
    SoftmaxLoss,
    SquaredLoss,
)
from kernelspace.data import make_sine_regression


def _accuracy(model, X, y):
    return float(np.mean(model.predict(X) == y))


@pytest.fixture
def three_classes(np_rng):
    """Three Gaussian clusters in the plane."""
    centers = np.array([[0.0, 4.0], [-4.0, -2.0], [4.0, -2.0]])
    y = np.repeat(np.arange(3), 50)
    X = centers[y] + 0.7 * np_rng.normal(size=(150, 2))
    order = np_rng.permutation(150)
    return X[order], y[order].astype(np.int32)


# ----------------------------------------------------------------------
# Projectron


def test_projectron_blobs(blobs):
    """Separable blobs are learned in one pass."""
    X, y = blobs
    model = Projectron().fit(X, y)
    assert _accuracy(model, X, y) >= 0.9


def test_projectron_xor(xor_data):
    """The kernel handles a pattern no line separates."""
    X, y = xor_data
    model = Projectron(kernel=RBFKernel(0.5), eta=0.1).fit(X, y, epochs=5)
    assert _accuracy(model, X, y) >= 0.85


def test_projectron_inverse_gram(xor_data):
    """The incremental inverse matches the support set Gram matrix."""
    X, y = xor_data
    model = Projectron(kernel=RBFKernel(0.5), eta=0.1).fit(X, y, epochs=2)
    S = np.stack(model.support_vectors)
    K = np.asarray(model.kernel(S, S))
    assert model.inverse_gram.shape == K.shape
    assert np.allclose(model.inverse_gram @ K, np.eye(len(S)), atol=1e-6)
    assert model.alpha.shape == (len(S),)


def test_projectron_large_eta_keeps_one_vector(xor_data):
    """An RBF residual never exceeds 1, so eta above it always projects."""
    X, y = xor_data
    model = Projectron(eta=10.0).fit(X, y, epochs=2)
    assert len(model.support_vectors) == 1


def test_projectron_without_margin_updates(blobs):
    """Plain Projectron only reacts to mistakes."""
    X, y = blobs
    model = Projectron(use_margin_updates=False).fit(X, y)
    assert _accuracy(model, X, y) >= 0.9


def test_projectron_invalid_eta():
    """Negative and infinite thresholds are rejected."""
    with pytest.raises(ValueError):
        Projectron(eta=-0.1)
    with pytest.raises(ValueError):
        Projectron(eta=float("inf"))


def test_untrained_projectron_scores_zero(blobs):
    """Nothing learned means no preference."""
    X, _ = blobs
    model = Projectron()
    assert np.all(model.decision_function(X[:5]) == 0.0)
    assert np.all(model.predict(X[:5]) == 0)


def test_reset(blobs):
    """Reset forgets the support set."""
    X, y = blobs
    model = Projectron().fit(X, y)
    model.reset()
    assert model.support_vectors == []


# ----------------------------------------------------------------------
# SCW


@pytest.mark.parametrize("mode", list(SCWMode))
@pytest.mark.parametrize("diagonal_only", [False, True])
def test_scw_blobs(mode, diagonal_only, blobs):
    """Every variant separates linearly separable blobs."""
    X, y = blobs
    model = SCW(eta=0.9, C=1.0, mode=mode, diagonal_only=diagonal_only).fit(X, y, epochs=2)
    assert _accuracy(model, X, y) >= 0.9


def test_scw_defaults_learn(blobs):
    """The default confidence gives a non-zero margin target."""
    X, y = blobs
    model = SCW().fit(X, y, epochs=2)
    assert np.any(model.weights != 0)
    assert _accuracy(model, X, y) >= 0.9


def test_scw_covariance_positive_definite(blobs):
    """Full covariance stays symmetric positive definite."""
    X, y = blobs
    model = SCW(eta=0.9).fit(X, y)
    sigma = model.covariance
    assert np.allclose(sigma, sigma.T)
    assert np.all(np.linalg.eigvalsh(sigma) > 0)
    assert model.weights.shape == (2,)

    diag = SCW(eta=0.9, diagonal_only=True).fit(X, y).covariance
    assert diag.shape == (2,)
    assert np.all(diag > 0)


def test_scw_untrained():
    """Predicting before any update is an error."""
    with pytest.raises(RuntimeError, match="must be fit"):
        SCW().predict(np.ones((1, 2)))


def test_scw_zero_vector():
    """A zero example has no variance to update with."""
    with pytest.raises(FloatingPointError):
        SCW().update(np.zeros(3), 1)


def test_scw_dimension_mismatch(blobs):
    """Examples must keep the dimension of the first one."""
    X, y = blobs
    model = SCW().fit(X, y)
    with pytest.raises(ValueError):
        model.update(np.ones(3), 1)
    with pytest.raises(ValueError):
        model.predict(np.ones((1, 3)))


def test_scw_invalid_parameters():
    """Confidence must be strictly between 0.5 and 1 and C positive."""
    for eta in (0.4, 0.5, 1.0, float("nan")):
        with pytest.raises(ValueError):
            SCW(eta=eta)
    with pytest.raises(ValueError):
        SCW(C=0.0)
    with pytest.raises(ValueError):
        SCW(mode="scw_i")


def test_invalid_labels():
    """Binary learners take 0/1 labels."""
    with pytest.raises(ValueError):
        SCW().update(np.ones(2), 2)
    with pytest.raises(ValueError):
        SCW().fit(np.ones((3, 2)), np.array([0, 1]))


# ----------------------------------------------------------------------
# Perceptrons


def test_kernel_perceptron_blobs(blobs):
    """Separable blobs are learned in one pass."""
    X, y = blobs
    model = KernelPerceptron().fit(X, y)
    assert _accuracy(model, X, y) >= 0.9
    assert model.mistakes == model.weights.basis_size


def test_kernel_perceptron_xor(xor_data):
    """Repeated passes fit the XOR pattern."""
    X, y = xor_data
    model = KernelPerceptron(kernel=RBFKernel(0.5)).fit(X, y, epochs=10)
    assert _accuracy(model, X, y) >= 0.9


def test_kernel_perceptron_linear():
    """With a linear kernel the perceptron finds a separating line."""
    X = np.array([[2.0, 1.0], [1.0, 3.0], [-1.0, -2.0], [-3.0, -1.0]])
    y = np.array([1, 1, 0, 0])
    model = KernelPerceptron(kernel=LinearKernel()).fit(X, y, epochs=3)
    assert np.array_equal(model.predict(X), y)


@pytest.mark.parametrize("self_tuned", [True, False])
def test_forgetron_blobs(self_tuned, blobs):
    """The budgeted perceptron still learns easy data."""
    X, y = blobs
    model = Forgetron(budget=50, self_tuned=self_tuned).fit(X, y)
    assert _accuracy(model, X, y) >= 0.85


@pytest.mark.parametrize("self_tuned", [True, False])
def test_forgetron_budget(self_tuned, xor_data):
    """The support set never exceeds the budget."""
    X, y = xor_data
    model = Forgetron(kernel=RBFKernel(0.5), budget=5, self_tuned=self_tuned).fit(X, y, epochs=3)
    assert len(model.support_vectors) <= 5
    assert model.weights.shape == (len(model.support_vectors),)
    assert np.all(np.isfinite(model.weights))


def test_forgetron_invalid_budget():
    """Budget must be positive."""
    with pytest.raises(ValueError):
        Forgetron(budget=0)


# ----------------------------------------------------------------------
# Losses


def test_loss_values():
    """Known values of each loss and its derivative."""
    hinge = HingeLoss()
    assert hinge.loss(0.5, 1) == 0.5
    assert hinge.deriv(0.5, 1) == -1
    assert hinge.loss(2.0, 1) == 0.0
    assert hinge.deriv(2.0, 1) == 0.0
    assert hinge.loss(0.5, -1) == 1.5

    logistic = LogisticLoss()
    assert np.isclose(logistic.loss(0.0, 1), np.log(2.0))
    assert np.isclose(logistic.deriv(0.0, -1), 0.5)
    assert np.isclose(logistic.probability(0.0), 0.5)

    squared = SquaredLoss()
    assert squared.loss(3.0, 1.0) == 2.0
    assert squared.deriv(3.0, 1.0) == 2.0


@pytest.mark.parametrize("loss", [LogisticLoss(), SquaredLoss()])
def test_loss_derivative_matches_difference(loss):
    """The analytic derivative agrees with a central difference."""
    h = 1e-6
    for pred in (-1.3, 0.2, 2.5):
        numeric = (loss.loss(pred + h, 1) - loss.loss(pred - h, 1)) / (2 * h)
        assert np.isclose(loss.deriv(pred, 1), numeric, atol=1e-6)


def test_softmax_gradient():
    """The score gradient is the probabilities minus the one-hot target."""
    loss = SoftmaxLoss()
    probs = loss.process(np.array([1.0, 1.0, 1.0]))
    assert np.allclose(probs, 1.0 / 3.0)
    assert np.allclose(loss.deriv_vector(probs, 2), [1.0 / 3.0, 1.0 / 3.0, -2.0 / 3.0])


# ----------------------------------------------------------------------
# Kernel SGD


@pytest.mark.parametrize("loss", [HingeLoss(), LogisticLoss()], ids=repr)
def test_kernel_sgd_blobs(loss, blobs):
    """Binary classification with both margin losses."""
    X, y = blobs
    model = KernelSGD(loss=loss).fit(X, y)
    assert _accuracy(model, X, y) >= 0.9


def test_kernel_sgd_probabilities(blobs):
    """Logistic loss gives two-column probabilities."""
    X, y = blobs
    model = KernelSGD(loss=LogisticLoss()).fit(X, y)
    proba = model.predict_proba(X[:10])
    assert proba.shape == (10, 2)
    assert np.allclose(proba.sum(axis=1), 1.0)

    with pytest.raises(ValueError):
        KernelSGD(loss=HingeLoss()).fit(X, y).predict_proba(X[:2])


def test_kernel_sgd_multiclass(three_classes):
    """Softmax loss learns three classes on one shared basis."""
    X, y = three_classes
    model = KernelSGD(loss=SoftmaxLoss(), n_classes=3).fit(X, y, epochs=3)

    assert isinstance(model.weights, KernelPoints)
    assert len(model.weights) == 3
    assert _accuracy(model, X, y) >= 0.85

    proba = model.predict_proba(X[:20])
    assert proba.shape == (20, 3)
    assert np.allclose(proba.sum(axis=1), 1.0)
    assert np.array_equal(np.argmax(proba, axis=1), model.predict(X[:20]))


def test_kernel_sgd_regression():
    """Squared loss fits a noisy sine curve."""
    X, y = make_sine_regression(n_samples=200, noise=0.1, seed=1)
    model = KernelSGD(loss=SquaredLoss(), kernel=RBFKernel(0.5)).fit_regression(X, y, epochs=5)
    mse = float(np.mean((model.predict_regression(X) - y) ** 2))
    assert mse < 0.1


@pytest.mark.parametrize("strategy", [BudgetStrategy.STOP, BudgetStrategy.RANDOM, BudgetStrategy.MERGE_RBF])
def test_kernel_sgd_budget(strategy, xor_data):
    """Budget strategies bound the number of support vectors."""
    X, y = xor_data
    model = KernelSGD(budget_strategy=strategy, budget_size=10, kernel=RBFKernel(0.5)).fit(X, y)
    assert model.basis_size <= 10


def test_kernel_sgd_loss_mismatch(blobs):
    """Losses are only used for the tasks they support."""
    X, y = blobs
    with pytest.raises(ValueError):
        KernelSGD(loss=HingeLoss(), n_classes=3)
    with pytest.raises(ValueError):
        KernelSGD(loss=SquaredLoss()).fit(X, y)
    with pytest.raises(ValueError):
        KernelSGD(loss=HingeLoss()).fit_regression(X, y.astype(float))


def test_kernel_sgd_invalid_parameters():
    """Hyperparameters are validated on construction."""
    with pytest.raises(ValueError):
        KernelSGD(lam=0.0)
    with pytest.raises(ValueError):
        KernelSGD(eta=-1.0)
    with pytest.raises(ValueError):
        KernelSGD(error_tolerance=1.5)
    with pytest.raises(ValueError):
        KernelSGD(budget_size=0)


def test_kernel_sgd_multiclass_labels(three_classes):
    """Multi-class labels must index a class."""
    X, _ = three_classes
    model = KernelSGD(loss=SoftmaxLoss(), n_classes=3)
    with pytest.raises(ValueError):
        model.update(X[0], 3)
