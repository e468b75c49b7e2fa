"""Kernelized stochastic gradient descent (Pegasos style)."""

import math
from dataclasses import dataclass, field
from typing import Union

import numpy as np
from jaxtyping import Float, Int
from tqdm import tqdm

from ..kernels import BudgetStrategy, KernelPoint, KernelPoints, KernelTrick, RBFKernel
from .base import OnlineClassifier
from .loss import HingeLoss, LossFunction, SoftmaxLoss


@dataclass
class KernelSGD(OnlineClassifier):
    """
    Stochastic gradient descent in a kernel feature space.

    Each update first shrinks the weights by ``1 - eta_t·lam`` and then takes
    a gradient step ``-eta_t·loss'(f(x), y)·φ(x)``, with the decaying step
    size ``eta_t = eta / (lam·(t + 2/lam))``. The weights are a
    :class:`KernelPoint` (binary or regression) or a :class:`KernelPoints`
    with one point per class (multi-class with :class:`SoftmaxLoss`), so the
    budget strategy bounds the number of support vectors.

    Parameters:
        loss: Loss function
        kernel: Kernel function
        lam: Regularization strength
        budget_strategy: Basis maintenance policy
        budget_size: Maximum number of support vectors
        eta: Base learning rate
        error_tolerance: Projection tolerance in [0, 1]
        n_classes: Number of classes, more than 2 requires a multi-class loss
    """
    loss: LossFunction = field(default_factory=HingeLoss)
    kernel: KernelTrick = field(default_factory=RBFKernel)
    lam: float = 1e-4
    budget_strategy: BudgetStrategy = BudgetStrategy.PROJECTION
    budget_size: int = 300
    eta: float = 1.0
    error_tolerance: float = 0.05
    n_classes: int = 2

    def _validate(self) -> None:
        if not self.lam > 0 or math.isinf(self.lam):
            raise ValueError(f"lam must be a positive constant, not {self.lam}")
        if not self.eta > 0 or math.isinf(self.eta):
            raise ValueError(f"eta must be a positive constant, not {self.eta}")
        if self.budget_size < 1:
            raise ValueError(f"budget_size must be a positive constant, not {self.budget_size}")
        if not 0 <= self.error_tolerance <= 1:
            raise ValueError(f"error_tolerance must be in [0, 1], not {self.error_tolerance}")
        if self.n_classes < 2:
            raise ValueError(f"n_classes must be at least 2, not {self.n_classes}")
        if self.n_classes > 2 and not self.loss.supports_multiclass:
            raise ValueError(f"{self.loss!r} does not support multi-class classification")

    def reset(self) -> None:
        self._time = 0
        self._points = None
        self._point = None
        if self.n_classes > 2:
            self._points = KernelPoints(
                self.kernel,
                n_points=self.n_classes,
                error_tolerance=self.error_tolerance,
                budget_strategy=self.budget_strategy,
                max_budget=self.budget_size
            )
        else:
            self._point = KernelPoint(
                self.kernel,
                error_tolerance=self.error_tolerance,
                budget_strategy=self.budget_strategy,
                max_budget=self.budget_size
            )

    @property
    def weights(self) -> Union[KernelPoint, KernelPoints]:
        return self._point if self._point is not None else self._points

    @property
    def basis_size(self) -> int:
        return self.weights.basis_size

    def _next_eta(self) -> float:
        self._time += 1
        return self.eta / (self.lam * (self._time + 2.0 / self.lam))

    def _encode_label(self, y):
        if self.n_classes == 2:
            return super()._encode_label(y)
        if int(y) != y or not 0 <= y < self.n_classes:
            raise ValueError(f"labels must be in [0, {self.n_classes}), got {y}")
        return int(y)

    def _score(self, x):
        if self._points is not None:
            return self._points.dot_all(x)
        return self._point.dot(x)

    def _gradient_step(self, x, y) -> None:
        qi = self.kernel.get_query_info(x)
        eta_t = self._next_eta()
        self._point.mutable_multiply(1.0 - eta_t * self.lam)
        loss_d = self.loss.deriv(self._point.dot(x, qi), y)
        if loss_d != 0:
            self._point.mutable_add(-eta_t * loss_d, x, qi)

    def _update(self, x, y) -> None:
        if not self.loss.supports_classification:
            raise ValueError(f"{self.loss!r} does not support classification")
        if self._points is None:
            self._gradient_step(x, y)
            return

        qi = self.kernel.get_query_info(x)
        eta_t = self._next_eta()
        self._points.mutable_multiply(1.0 - eta_t * self.lam)
        probs = self.loss.process(self._points.dot_all(x, qi))
        grad = self.loss.deriv_vector(probs, y)
        self._points.mutable_add_all(x, -eta_t * grad, qi)

    def predict(self, X: Float[np.ndarray, "n d"]) -> Int[np.ndarray, "n"]:
        """Predicted class labels."""
        if self._points is None:
            return super().predict(X)
        return np.argmax(self.decision_function(X), axis=1).astype(np.int32)

    def predict_proba(self, X: Float[np.ndarray, "n d"]) -> Float[np.ndarray, "n c"]:
        """
        Class probabilities.

        Only available for losses that model probabilities (logistic and
        softmax).
        """
        scores = self.decision_function(X)
        if self._points is not None:
            return np.array([self.loss.process(s) for s in scores])
        if not hasattr(self.loss, "probability"):
            raise ValueError(f"{self.loss!r} does not produce probabilities")
        p = np.array([self.loss.probability(s) for s in scores])
        return np.column_stack([1.0 - p, p])

    # ------------------------------------------------------------------
    # regression

    def _check_regression(self) -> None:
        if not self.loss.supports_regression:
            raise ValueError(f"{self.loss!r} does not support regression")
        if self._point is None:
            raise ValueError("regression requires n_classes == 2")

    def update_regression(self, x: Float[np.ndarray, "d"], y: float) -> None:
        """Learn from a single regression example."""
        self._check_regression()
        self._gradient_step(np.asarray(x, dtype=float), float(y))

    def fit_regression(
        self,
        X: Float[np.ndarray, "n d"],
        y: Float[np.ndarray, "n"],
        epochs: int = 1,
        show_progress: bool = False
    ) -> "KernelSGD":
        """
        Run ``epochs`` passes of :meth:`update_regression` over the data.

        Parameters:
            X: Feature matrix
            y: Real valued targets
            epochs: Number of passes over the data
            show_progress: Show a progress bar per epoch

        Returns:
            self
        """
        self._check_regression()
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        if len(y) != X.shape[0]:
            raise ValueError("y must have same length as X")
        if epochs < 1:
            raise ValueError(f"epochs must be positive, not {epochs}")
        for epoch in range(epochs):
            iterator = range(X.shape[0])
            if show_progress:
                iterator = tqdm(iterator, desc=f"Epoch {epoch + 1}/{epochs}")
            for i in iterator:
                self._gradient_step(X[i], y[i])
        return self

    def predict_regression(self, X: Float[np.ndarray, "n d"]) -> Float[np.ndarray, "n"]:
        """Real valued predictions."""
        self._check_regression()
        return np.array([self.loss.regression(s) for s in self.decision_function(X)])
