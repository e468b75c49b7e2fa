"""Validation and metrics utilities for online learners."""

from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd
from jaxtyping import Array, Float
from tqdm import tqdm

from ..models.base import OnlineClassifier


def confusion_quads(
    pred: Union[Float[Array, "n"], np.ndarray, List[float]],
    obs: Union[np.ndarray, List[int]],
    threshold: Union[float, List[float]] = 0.0
) -> pd.DataFrame:
    """
    Compute confusion matrix quadrants at one or more thresholds.

    Parameters:
        pred: Predicted scores
        obs: Observed labels (1/0)
        threshold: Single threshold or list of thresholds. Online learners
            produce raw margins, so the default is 0

    Returns:
        DataFrame with TP, FP, TN, FN for each threshold
    """
    pred = np.asarray(pred)
    obs = np.asarray(obs)

    if isinstance(threshold, (int, float)):
        threshold = [threshold]

    rows = []
    for thresh in threshold:
        pred_cat = (pred > thresh).astype(int)
        rows.append({
            'Threshold': thresh,
            'TP': int(np.sum((pred_cat == 1) & (obs == 1))),
            'FP': int(np.sum((pred_cat == 1) & (obs == 0))),
            'TN': int(np.sum((pred_cat == 0) & (obs == 0))),
            'FN': int(np.sum((pred_cat == 0) & (obs == 1))),
        })

    return pd.DataFrame(rows)


def cohens_kappa(TP: int, TN: int, FP: int, FN: int) -> float:
    """
    Compute Cohen's Kappa statistic.

    Parameters:
        TP: True Positives
        TN: True Negatives
        FP: False Positives
        FN: False Negatives

    Returns:
        Cohen's Kappa value
    """
    n = TP + TN + FP + FN
    if n == 0:
        return 0.0

    Po = (TP + TN) / n
    Pe = ((TP + FP) * (TP + FN) + (FN + TN) * (FP + TN)) / (n * n)

    if Pe == 1:
        return 1.0 if Po == 1 else 0.0
    return float((Po - Pe) / (1 - Pe))


def classification_metrics(TP: int, TN: int, FP: int, FN: int) -> Dict[str, float]:
    """
    Compute binary classification metrics from confusion counts.

    Undefined ratios (zero denominators) are reported as 0.

    Parameters:
        TP: True Positives
        TN: True Negatives
        FP: False Positives
        FN: False Negatives

    Returns:
        Dictionary of metric names and values
    """
    n = TP + TN + FP + FN
    if n == 0:
        return {}

    def ratio(num, den):
        return num / den if den > 0 else 0.0

    sensitivity = ratio(TP, TP + FN)
    specificity = ratio(TN, TN + FP)
    precision = ratio(TP, TP + FP)
    mcc_den = (TP + FP) * (TP + FN) * (TN + FP) * (TN + FN)

    return {
        'Accuracy': (TP + TN) / n,
        'Err_Rate': (FP + FN) / n,
        'Prevalence': (TP + FN) / n,
        'Sensitivity': sensitivity,
        'Specificity': specificity,
        'Precision': precision,
        'Recall': sensitivity,
        'F_Measure': ratio(2 * precision * sensitivity, precision + sensitivity),
        'FPR': 1 - specificity,
        'FNR': 1 - sensitivity,
        'NPV': ratio(TN, TN + FN),
        'Informedness': sensitivity + specificity - 1,
        'MCC': float((TP * TN - FP * FN) / np.sqrt(mcc_den)) if mcc_den > 0 else 0.0,
        'Kappa': cohens_kappa(TP, TN, FP, FN),
    }


def compute_roc_auc(
    pred: Union[Float[Array, "n"], np.ndarray, List[float]],
    obs: Union[np.ndarray, List[int]]
) -> float:
    """
    Compute ROC AUC.

    Parameters:
        pred: Predicted scores
        obs: Observed labels (1/0)

    Returns:
        AUC value, 0.5 when only one class is present
    """
    from sklearn.metrics import roc_auc_score

    pred = np.asarray(pred)
    obs = np.asarray(obs)

    try:
        return float(roc_auc_score(obs, pred))
    except ValueError:
        return 0.5


def progressive_validation(
    model: OnlineClassifier,
    X: Float[np.ndarray, "n d"],
    y: np.ndarray,
    warmup: int = 1,
    show_progress: bool = False,
    reset: bool = True
) -> Dict:
    """
    Test-then-train evaluation of an online classifier.

    Each example is scored before the model learns from it, so every
    prediction is made on unseen data. This is the online counterpart of
    cross validation.

    Parameters:
        model: Online binary classifier
        X: Feature matrix, in arrival order
        y: Labels (1/0)
        warmup: Number of leading examples used for training only
        show_progress: Show a progress bar
        reset: Reset the model before evaluating

    Returns:
        Dictionary with the per-example scores, the confusion counts, the
        metrics from :func:`classification_metrics` and the AUC
    """
    X = np.asarray(X, dtype=float)
    y = np.asarray(y)
    if len(y) != X.shape[0]:
        raise ValueError("y must have same length as X")
    if warmup < 0 or warmup >= len(y):
        raise ValueError(f"warmup must be in [0, {len(y)}), not {warmup}")
    if getattr(model, "n_classes", 2) > 2:
        raise ValueError("progressive validation requires a binary classifier")

    if reset:
        model.reset()

    iterator = range(len(y))
    if show_progress:
        iterator = tqdm(iterator, desc="Progressive validation")

    scores: List[Optional[float]] = []
    for i in iterator:
        if i >= warmup:
            scores.append(float(model.decision_function(X[i:i + 1])[0]))
        model.update(X[i], y[i].item())

    scores = np.array(scores)
    obs = y[warmup:]
    cm = confusion_quads(scores, obs).iloc[0]
    TP, FP, TN, FN = int(cm['TP']), int(cm['FP']), int(cm['TN']), int(cm['FN'])

    metrics = classification_metrics(TP, TN, FP, FN)
    metrics['AUC'] = compute_roc_auc(scores, obs)

    return {
        'scores': scores,
        'TP': TP,
        'FP': FP,
        'TN': TN,
        'FN': FN,
        'metrics': metrics,
        'n_evaluated': len(obs),
    }
