"""Vantage point tree for exact search in metric spaces."""

import threading
import warnings
from concurrent.futures import CancelledError, Executor, Future
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

import numpy as np

from ..metrics import DistanceMetric
from .base import BoundedSortedList, Neighbor, check_knn_args, check_range_args, sort_neighbors

MIN_LEAF_SIZE = 5

# Right subtrees smaller than this are built inline instead of submitted.
PARALLEL_SPLIT_SIZE = 64


class VPSelection(Enum):
    """Vantage point selection policy."""

    RANDOM = "random"
    SAMPLING = "sampling"


@dataclass
class VPLeaf:
    """
    Bucket of at most ``max_leaf_size`` points.

    ``bounds[i]`` is the distance from ``points[i]`` to the parent's vantage
    point. The root of a tree small enough to be a single leaf has no parent
    and ``bounds`` is None.
    """

    points: np.ndarray
    bounds: Optional[np.ndarray]

    def __len__(self) -> int:
        return len(self.points)


@dataclass
class VPNode:
    """
    Interior node.

    Every point under ``left`` is between ``left_low`` and ``left_high`` from
    the vantage point, and likewise for ``right``.
    """

    vantage_point: int
    left_low: float
    left_high: float
    right_low: float
    right_high: float
    left: Optional[Union["VPNode", VPLeaf]] = field(default=None, repr=False)
    right: Optional[Union["VPNode", VPLeaf]] = field(default=None, repr=False)

    def search_in_left(self, x: float, tau: float) -> bool:
        return self.left_low - tau <= x <= self.left_high + tau

    def search_in_right(self, x: float, tau: float) -> bool:
        return self.right_low - tau <= x <= self.right_high + tau


TreeNode = Union[VPNode, VPLeaf]


def _clone_node(node: Optional[TreeNode]) -> Optional[TreeNode]:
    if node is None:
        return None
    if isinstance(node, VPLeaf):
        bounds = None if node.bounds is None else node.bounds.copy()
        return VPLeaf(node.points.copy(), bounds)
    return replace(node, left=_clone_node(node.left), right=_clone_node(node.right))


class VPTree:
    """
    Vantage point tree.

    Built once from a fixed set of vectors, then answers exact k-nearest
    neighbor and range queries by branch and bound. Requires a metric that
    satisfies the triangle inequality.

    Parameters:
        vectors: Vectors to index, a sequence of 1-D arrays or a 2-D array.
            The arrays are referenced, not copied
        metric: Subadditive distance metric
        selection: Vantage point selection policy
        max_leaf_size: Largest bucket stored in a leaf, at least 5
        sample_size: Points sampled to score candidates (SAMPLING only)
        search_iterations: Candidate vantage points scored (SAMPLING only)
        seed: Random seed for vantage point selection
        executor: Optional executor used to build right subtrees concurrently
    """

    def __init__(
        self,
        vectors: Sequence[np.ndarray],
        metric: DistanceMetric,
        selection: VPSelection = VPSelection.RANDOM,
        max_leaf_size: int = MIN_LEAF_SIZE,
        sample_size: int = 80,
        search_iterations: int = 40,
        seed: Optional[int] = None,
        executor: Optional[Executor] = None
    ):
        if not metric.is_subadditive():
            raise ValueError(
                f"VPTree requires a metric that obeys the triangle inequality, {metric!r} does not"
            )
        if sample_size < 1:
            raise ValueError(f"sample_size must be positive, not {sample_size}")
        if search_iterations < 1:
            raise ValueError(f"search_iterations must be positive, not {search_iterations}")

        self._metric = metric
        self._selection = selection
        self._max_leaf_size = max(MIN_LEAF_SIZE, int(max_leaf_size))
        self._sample_size = sample_size
        self._search_iterations = search_iterations
        self._vecs: List[np.ndarray] = [np.asarray(v, dtype=float) for v in vectors]
        self._cache = metric.get_acceleration_cache(self._vecs) if metric.supports_acceleration else None

        indices = np.arange(len(self._vecs))
        if executor is None:
            self._root = self._build(indices, None, np.random.default_rng(seed), None)
        else:
            self._root = self._build_parallel(indices, seed, executor)

    # ------------------------------------------------------------------
    # introspection

    @property
    def metric(self) -> DistanceMetric:
        return self._metric

    @property
    def root(self) -> Optional[TreeNode]:
        return self._root

    @property
    def max_leaf_size(self) -> int:
        return self._max_leaf_size

    @property
    def size(self) -> int:
        return len(self._vecs)

    def __len__(self) -> int:
        return len(self._vecs)

    def depth(self) -> int:
        """Number of levels, 0 for an empty tree."""
        def _depth(node):
            if node is None:
                return 0
            if isinstance(node, VPLeaf):
                return 1
            return 1 + max(_depth(node.left), _depth(node.right))
        return _depth(self._root)

    def leaves(self) -> List[VPLeaf]:
        """Every leaf, left to right."""
        found = []
        stack = [self._root]
        while stack:
            node = stack.pop()
            if node is None:
                continue
            if isinstance(node, VPLeaf):
                found.append(node)
            else:
                stack.append(node.right)
                stack.append(node.left)
        return found

    def __repr__(self) -> str:
        return (
            f"VPTree(size={self.size}, metric={self._metric!r}, "
            f"selection={self._selection.name}, max_leaf_size={self._max_leaf_size})"
        )

    # ------------------------------------------------------------------
    # construction

    def _distances_to(self, vp: int, others: np.ndarray) -> np.ndarray:
        return np.array(
            [self._metric.dist_pair(vp, int(j), self._vecs, self._cache) for j in others],
            dtype=float
        )

    def _select_vantage_point(self, indices: np.ndarray, rng: np.random.Generator) -> int:
        """Position within ``indices`` of the chosen vantage point."""
        n = len(indices)
        if self._selection is VPSelection.RANDOM:
            return int(rng.integers(n))

        sample = indices[rng.choice(n, size=self._sample_size, replace=n < self._sample_size)]
        candidates = rng.choice(n, size=min(self._search_iterations, n), replace=False)
        best_pos, best_spread = int(candidates[0]), -1.0
        for pos in candidates:
            dists = np.sort(self._distances_to(int(indices[pos]), sample))
            median = dists[len(dists) // 2]
            spread = float(np.sum(np.abs(dists - median)))
            if spread > best_spread:
                best_pos, best_spread = int(pos), spread
        return best_pos

    def _build(
        self,
        indices: np.ndarray,
        parent_dists: Optional[np.ndarray],
        rng: np.random.Generator,
        spawn: Optional[Callable[[Callable[[], None]], None]]
    ) -> Optional[TreeNode]:
        if len(indices) == 0:
            return None
        if len(indices) <= self._max_leaf_size:
            return VPLeaf(indices.copy(), None if parent_dists is None else parent_dists.copy())

        pos = self._select_vantage_point(indices, rng)
        vp = int(indices[pos])
        rest = np.delete(indices, pos)
        dists = self._distances_to(vp, rest)
        order = np.argsort(dists, kind="stable")
        rest, dists = rest[order], dists[order]

        split = len(rest) // 2
        node = VPNode(
            vantage_point=vp,
            left_low=float(dists[0]),
            left_high=float(dists[split]),
            right_low=float(dists[split + 1]),
            right_high=float(dists[-1]),
        )
        left, left_dists = rest[:split + 1], dists[:split + 1]
        right, right_dists = rest[split + 1:], dists[split + 1:]

        if spawn is not None and len(right) >= PARALLEL_SPLIT_SIZE:
            right_rng = rng.spawn(1)[0]

            def build_right():
                node.right = self._build(right, right_dists, right_rng, spawn)

            spawn(build_right)
        else:
            node.right = self._build(right, right_dists, rng, spawn)
        node.left = self._build(left, left_dists, rng, spawn)
        return node

    def _build_parallel(self, indices: np.ndarray, seed: Optional[int], executor: Executor) -> Optional[TreeNode]:
        """
        Build with right subtrees submitted to ``executor``.

        Submitted tasks never wait on each other. Each task registers the
        tasks it spawns before it finishes, so once every registered future
        has resolved the tree is complete.
        """
        futures: List[Future] = []
        lock = threading.Lock()

        def spawn(task):
            future = executor.submit(task)
            with lock:
                futures.append(future)

        try:
            root = self._build(indices, None, np.random.default_rng(seed), spawn)
            joined = 0
            while True:
                with lock:
                    if joined >= len(futures):
                        break
                    future = futures[joined]
                future.result()
                joined += 1
            return root
        except (CancelledError, RuntimeError) as exc:
            with lock:
                for future in futures:
                    future.cancel()
            warnings.warn(
                f"Parallel VPTree construction failed ({exc!r}), rebuilding sequentially",
                RuntimeWarning
            )
            return self._build(indices, None, np.random.default_rng(seed), None)

    # ------------------------------------------------------------------
    # queries

    def search_knn(self, query: np.ndarray, k: int) -> List[Neighbor]:
        """
        Exact k nearest neighbors.

        Parameters:
            query: Query vector
            k: Number of neighbors, all points are returned if k exceeds the size

        Returns:
            Neighbors sorted by (distance, index)
        """
        check_knn_args(k)
        if self._root is None:
            return []
        q = np.asarray(query, dtype=float)
        qi = self._metric.get_query_info(q)
        result = BoundedSortedList(k)
        self._knn(self._root, q, qi, result, None)
        return result.to_list()

    def search_range(self, query: np.ndarray, radius: float) -> List[Neighbor]:
        """
        Every point within ``radius`` (inclusive) of the query.

        Parameters:
            query: Query vector
            radius: Positive search radius

        Returns:
            Neighbors sorted by (distance, index)
        """
        check_range_args(radius)
        if self._root is None:
            return []
        q = np.asarray(query, dtype=float)
        qi = self._metric.get_query_info(q)
        hits: List[Neighbor] = []
        self._range(self._root, q, qi, radius, hits, None)
        return sort_neighbors(hits)

    def _dist(self, i: int, q: np.ndarray, qi: List[float]) -> float:
        return self._metric.dist_query(i, q, qi, self._vecs, self._cache)

    def _knn(self, node: TreeNode, q, qi, result: BoundedSortedList, x_parent: Optional[float]) -> None:
        if isinstance(node, VPLeaf):
            for idx, bound in zip(node.points, node.bounds if node.bounds is not None else [None] * len(node)):
                tau = result.worst
                if x_parent is not None and result.is_full and not (bound - tau <= x_parent <= bound + tau):
                    continue
                idx = int(idx)
                result.add(Neighbor(idx, self._vecs[idx], self._dist(idx, q, qi)))
            return

        x = self._dist(node.vantage_point, q, qi)
        result.add(Neighbor(node.vantage_point, self._vecs[node.vantage_point], x))

        middle = (node.left_high + node.right_low) / 2
        if x < middle:
            first, first_in, second, second_in = node.left, node.search_in_left, node.right, node.search_in_right
        else:
            first, first_in, second, second_in = node.right, node.search_in_right, node.left, node.search_in_left

        if first is not None and (first_in(x, result.worst) or not result.is_full):
            self._knn(first, q, qi, result, x)
        if second is not None and (second_in(x, result.worst) or not result.is_full):
            self._knn(second, q, qi, result, x)

    def _range(self, node: TreeNode, q, qi, radius: float, hits: List[Neighbor], x_parent: Optional[float]) -> None:
        if isinstance(node, VPLeaf):
            for pos, idx in enumerate(node.points):
                if x_parent is not None:
                    bound = node.bounds[pos]
                    if not (bound - radius <= x_parent <= bound + radius):
                        continue
                idx = int(idx)
                d = self._dist(idx, q, qi)
                if d <= radius:
                    hits.append(Neighbor(idx, self._vecs[idx], d))
            return

        x = self._dist(node.vantage_point, q, qi)
        if x <= radius:
            hits.append(Neighbor(node.vantage_point, self._vecs[node.vantage_point], x))
        if node.left is not None and node.search_in_left(x, radius):
            self._range(node.left, q, qi, radius, hits, x)
        if node.right is not None and node.search_in_right(x, radius):
            self._range(node.right, q, qi, radius, hits, x)

    # ------------------------------------------------------------------

    def clone(self) -> "VPTree":
        """Copy with its own node structure. Vector objects are shared."""
        clone = VPTree.__new__(VPTree)
        clone._metric = self._metric.clone()
        clone._selection = self._selection
        clone._max_leaf_size = self._max_leaf_size
        clone._sample_size = self._sample_size
        clone._search_iterations = self._search_iterations
        clone._vecs = list(self._vecs)
        clone._cache = None if self._cache is None else list(self._cache)
        clone._root = _clone_node(self._root)
        return clone
