"""Distance metrics for metric-space indexes."""

from .base import DistanceMetric, BaseMetric
from .minkowski import (
    EuclideanDistance,
    SquaredEuclideanDistance,
    ManhattanDistance,
    ChebyshevDistance,
    MinkowskiDistance,
)
from .cosine import CosineDistance

__all__ = [
    "DistanceMetric",
    "BaseMetric",
    "EuclideanDistance",
    "SquaredEuclideanDistance",
    "ManhattanDistance",
    "ChebyshevDistance",
    "MinkowskiDistance",
    "CosineDistance",
]
