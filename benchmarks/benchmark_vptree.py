"""Benchmark vantage point tree construction and queries."""

import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from kernelspace.index import VectorArray, VPSelection, VPTree
from kernelspace.metrics import EuclideanDistance


def make_points(n_samples: int = 20000, n_features: int = 8):
    return np.random.default_rng(42).normal(size=(n_samples, n_features))


def benchmark_build(X, executor=None, selection=VPSelection.RANDOM):
    """Benchmark tree construction."""
    start = time.time()
    tree = VPTree(X, EuclideanDistance(), selection=selection, seed=0, executor=executor)
    elapsed = time.time() - start

    print(f"Build: {X.shape[0]} points, {X.shape[1]} features, selection={selection.name}, "
          f"parallel={executor is not None}")
    print(f"Time: {elapsed:.4f} seconds, depth {tree.depth()}")

    return tree, elapsed


def benchmark_queries(tree, X, n_queries: int = 200, k: int = 10):
    """Benchmark k-NN queries against a linear scan."""
    queries = np.random.default_rng(7).normal(size=(n_queries, X.shape[1]))
    brute = VectorArray(X, tree.metric)

    start = time.time()
    for q in queries:
        tree.search_knn(q, k)
    tree_time = time.time() - start

    start = time.time()
    for q in queries:
        brute.search_knn(q, k)
    brute_time = time.time() - start

    print(f"{n_queries} queries, k={k}")
    print(f"VPTree: {tree_time:.4f} seconds, linear scan: {brute_time:.4f} seconds")
    print(f"Speedup: {brute_time / tree_time:.2f}x")


def compare_build_modes():
    """Compare sequential, sampled and parallel construction."""
    X = make_points()

    print("=" * 60)
    print("VPTree Construction")
    print("=" * 60)

    tree, _ = benchmark_build(X)
    benchmark_build(X, selection=VPSelection.SAMPLING)
    with ThreadPoolExecutor(max_workers=4) as executor:
        benchmark_build(X, executor=executor)

    print("\n" + "=" * 60)
    print("VPTree Queries")
    print("=" * 60)
    benchmark_queries(tree, X)


if __name__ == "__main__":
    compare_build_modes()
