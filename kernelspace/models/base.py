"""Shared plumbing for online binary classifiers."""

from dataclasses import dataclass
from typing import Union

import numpy as np
from jaxtyping import Float, Int
from tqdm import tqdm


@dataclass
class OnlineClassifier:
    """
    Base for classifiers that learn one example at a time.

    Hyperparameters are dataclass fields validated on construction. Labels
    are 0/1 and are mapped to -1/+1 internally. Subclasses implement
    :meth:`reset`, :meth:`_update` and :meth:`_score`.
    """

    def __post_init__(self):
        self._validate()
        self.reset()

    def _validate(self) -> None:
        pass

    def reset(self) -> None:
        """Forget everything learned so far."""
        raise NotImplementedError

    def _update(self, x: np.ndarray, y: Union[int, float]) -> None:
        raise NotImplementedError

    def _score(self, x: np.ndarray):
        raise NotImplementedError

    def _encode_label(self, y) -> Union[int, float]:
        if y not in (0, 1):
            raise ValueError(f"labels must be 0 or 1, got {y}")
        return 2.0 * int(y) - 1.0

    def update(self, x: Float[np.ndarray, "d"], y: int) -> None:
        """
        Learn from a single example.

        Parameters:
            x: Feature vector
            y: Class label
        """
        self._update(np.asarray(x, dtype=float), self._encode_label(y))

    def fit(
        self,
        X: Float[np.ndarray, "n d"],
        y: Int[np.ndarray, "n"],
        epochs: int = 1,
        show_progress: bool = False
    ) -> "OnlineClassifier":
        """
        Run ``epochs`` passes of :meth:`update` over the data in order.

        Parameters:
            X: Feature matrix
            y: Class labels
            epochs: Number of passes over the data
            show_progress: Show a progress bar per epoch

        Returns:
            self
        """
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)
        if X.ndim != 2:
            raise ValueError("X must be 2D")
        if len(y) != X.shape[0]:
            raise ValueError("y must have same length as X")
        if epochs < 1:
            raise ValueError(f"epochs must be positive, not {epochs}")

        for epoch in range(epochs):
            iterator = range(X.shape[0])
            if show_progress:
                iterator = tqdm(iterator, desc=f"Epoch {epoch + 1}/{epochs}")
            for i in iterator:
                self.update(X[i], y[i].item())
        return self

    def decision_function(self, X: Float[np.ndarray, "n d"]) -> np.ndarray:
        """Raw scores. Positive means class 1."""
        X = np.atleast_2d(np.asarray(X, dtype=float))
        return np.array([self._score(x) for x in X])

    def predict(self, X: Float[np.ndarray, "n d"]) -> Int[np.ndarray, "n"]:
        """Predicted 0/1 labels."""
        return (self.decision_function(X) > 0).astype(np.int32)
