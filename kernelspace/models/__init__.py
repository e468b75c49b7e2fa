"""Online kernel learners."""

from .base import OnlineClassifier
from .loss import LossFunction, HingeLoss, LogisticLoss, SquaredLoss, SoftmaxLoss
from .projectron import Projectron
from .scw import SCW, SCWMode
from .perceptron import KernelPerceptron, Forgetron
from .kernel_sgd import KernelSGD

__all__ = [
    "OnlineClassifier",
    "LossFunction",
    "HingeLoss",
    "LogisticLoss",
    "SquaredLoss",
    "SoftmaxLoss",
    "Projectron",
    "SCW",
    "SCWMode",
    "KernelPerceptron",
    "Forgetron",
    "KernelSGD",
]
