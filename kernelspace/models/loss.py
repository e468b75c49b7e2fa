"""Loss functions for stochastic gradient learners."""

from abc import ABC, abstractmethod

import numpy as np
from jaxtyping import Float
from scipy.special import expit, softmax


class LossFunction(ABC):
    """A loss on a real valued prediction and target."""

    supports_classification = False
    supports_multiclass = False
    supports_regression = False

    @abstractmethod
    def loss(self, pred: float, y: float) -> float:
        ...

    @abstractmethod
    def deriv(self, pred: float, y: float) -> float:
        """Derivative of the loss with respect to ``pred``."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class HingeLoss(LossFunction):
    """Hinge loss ``max(0, 1 - y·pred)`` for labels in {-1, +1}."""

    supports_classification = True

    def loss(self, pred, y):
        return max(0.0, 1.0 - y * pred)

    def deriv(self, pred, y):
        return -y if y * pred < 1 else 0.0


class LogisticLoss(LossFunction):
    """Logistic loss ``log(1 + exp(-y·pred))`` for labels in {-1, +1}."""

    supports_classification = True

    def loss(self, pred, y):
        return float(np.logaddexp(0.0, -y * pred))

    def deriv(self, pred, y):
        return float(-y * expit(-y * pred))

    def probability(self, pred: float) -> float:
        """P(y = +1) for a raw score."""
        return float(expit(pred))


class SquaredLoss(LossFunction):
    """Squared loss ``(pred - y)² / 2``."""

    supports_regression = True

    def loss(self, pred, y):
        return 0.5 * (pred - y) ** 2

    def deriv(self, pred, y):
        return pred - y

    def regression(self, pred: float) -> float:
        return pred


class SoftmaxLoss(LogisticLoss):
    """
    Multinomial logistic loss.

    Binary problems fall back to the logistic loss. For ``C`` classes the
    scores are turned into probabilities with a softmax and the gradient with
    respect to the scores is ``p - onehot(y)``.
    """

    supports_multiclass = True

    def process(self, scores: Float[np.ndarray, "c"]) -> Float[np.ndarray, "c"]:
        """Class probabilities for raw per-class scores."""
        return softmax(scores)

    def deriv_vector(self, probs: Float[np.ndarray, "c"], target: int) -> Float[np.ndarray, "c"]:
        grad = np.array(probs, dtype=float)
        grad[target] -= 1.0
        return grad
