"""Kernel functions and kernel-space points."""

from .base import KernelTrick, BaseKernel, BaseL2Kernel
from .rbf import RBFKernel
from .linear import LinearKernel, PolynomialKernel
from .points import BudgetStrategy, KernelPoint, KernelPoints

__all__ = [
    "KernelTrick",
    "BaseKernel",
    "BaseL2Kernel",
    "RBFKernel",
    "LinearKernel",
    "PolynomialKernel",
    "BudgetStrategy",
    "KernelPoint",
    "KernelPoints",
]
