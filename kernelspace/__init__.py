"""
kernelspace - Kernel-space points, vantage point trees and online kernel learners

Budgeted feature-space vectors, exact metric-space search and the online
classifiers built on them, with NumPy for incremental updates and JAX for
batched kernel and distance matrices.
"""

import jax

# Incremental Gram matrix algebra needs double precision on both paths.
jax.config.update("jax_enable_x64", True)

__version__ = "0.1.0"

# Kernels and kernel-space points
from .kernels import (
    KernelTrick,
    RBFKernel,
    LinearKernel,
    PolynomialKernel,
    BudgetStrategy,
    KernelPoint,
    KernelPoints,
)

# Distance metrics
from .metrics import (
    DistanceMetric,
    EuclideanDistance,
    SquaredEuclideanDistance,
    ManhattanDistance,
    ChebyshevDistance,
    MinkowskiDistance,
    CosineDistance,
)

# Nearest neighbor search
from .index import (
    Neighbor,
    VectorCollection,
    VectorArray,
    VPTree,
    VPSelection,
)

# Online learners
from .models import (
    Projectron,
    SCW,
    SCWMode,
    KernelPerceptron,
    Forgetron,
    KernelSGD,
    HingeLoss,
    LogisticLoss,
    SquaredLoss,
    SoftmaxLoss,
)

__all__ = [
    # Version
    "__version__",
    # Kernels
    "KernelTrick",
    "RBFKernel",
    "LinearKernel",
    "PolynomialKernel",
    "BudgetStrategy",
    "KernelPoint",
    "KernelPoints",
    # Metrics
    "DistanceMetric",
    "EuclideanDistance",
    "SquaredEuclideanDistance",
    "ManhattanDistance",
    "ChebyshevDistance",
    "MinkowskiDistance",
    "CosineDistance",
    # Search
    "Neighbor",
    "VectorCollection",
    "VectorArray",
    "VPTree",
    "VPSelection",
    # Models
    "Projectron",
    "SCW",
    "SCWMode",
    "KernelPerceptron",
    "Forgetron",
    "KernelSGD",
    "HingeLoss",
    "LogisticLoss",
    "SquaredLoss",
    "SoftmaxLoss",
]
