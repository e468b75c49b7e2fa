"""Utility functions for validation."""

from .validation import (
    confusion_quads,
    cohens_kappa,
    classification_metrics,
    compute_roc_auc,
    progressive_validation,
)

__all__ = [
    "confusion_quads",
    "cohens_kappa",
    "classification_metrics",
    "compute_roc_auc",
    "progressive_validation",
]
