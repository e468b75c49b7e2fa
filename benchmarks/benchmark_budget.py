"""Benchmark budget strategies for kernel SGD."""

import time

from kernelspace.data import make_rings
from kernelspace.kernels import BudgetStrategy, RBFKernel
from kernelspace.models import KernelSGD
from kernelspace.utils import progressive_validation


def benchmark_strategy(strategy: BudgetStrategy, budget_size: int = 50, n_samples: int = 2000):
    """Progressive validation accuracy and time for one strategy."""
    X, y = make_rings(n_samples=n_samples, noise=0.3, seed=42)
    model = KernelSGD(kernel=RBFKernel(1.0), budget_strategy=strategy, budget_size=budget_size)

    start = time.time()
    result = progressive_validation(model, X, y)
    elapsed = time.time() - start

    print(f"{strategy.name:>10}: accuracy {result['metrics']['Accuracy']:.3f}, "
          f"AUC {result['metrics']['AUC']:.3f}, "
          f"basis {model.basis_size}, time {elapsed:.2f} seconds")

    return elapsed


def compare_strategies():
    """Compare every budget strategy at a few budgets."""
    for budget_size in [10, 50, 200]:
        print("=" * 60)
        print(f"Budget size {budget_size}")
        print("=" * 60)
        for strategy in BudgetStrategy:
            benchmark_strategy(strategy, budget_size=budget_size)


if __name__ == "__main__":
    compare_strategies()
