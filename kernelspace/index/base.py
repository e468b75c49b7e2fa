"""Search results and the vector collection protocol."""

import bisect
from typing import Iterator, List, NamedTuple, Protocol, Tuple, runtime_checkable

import numpy as np


class Neighbor(NamedTuple):
    """A search hit: position in the collection, the vector and its distance."""

    index: int
    vector: np.ndarray
    distance: float

    @property
    def key(self) -> Tuple[float, int]:
        """Ordering key. Ties on distance go to the lower index."""
        return (self.distance, self.index)


class BoundedSortedList:
    """
    Best ``capacity`` neighbors seen so far, ordered by :attr:`Neighbor.key`.

    Parameters:
        capacity: Maximum number of neighbors kept
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, not {capacity}")
        self._capacity = capacity
        self._keys: List[Tuple[float, int]] = []
        self._items: List[Neighbor] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self._capacity

    @property
    def worst(self) -> float:
        """Largest kept distance, or infinity while not full."""
        if not self.is_full:
            return float("inf")
        return self._keys[-1][0]

    def add(self, neighbor: Neighbor) -> bool:
        """
        Insert ``neighbor`` if it belongs in the list.

        Returns:
            True if the neighbor was kept
        """
        key = neighbor.key
        if self.is_full and key >= self._keys[-1]:
            return False
        pos = bisect.bisect_right(self._keys, key)
        self._keys.insert(pos, key)
        self._items.insert(pos, neighbor)
        if len(self._items) > self._capacity:
            self._keys.pop()
            self._items.pop()
        return True

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Neighbor]:
        return iter(self._items)

    def to_list(self) -> List[Neighbor]:
        return list(self._items)


@runtime_checkable
class VectorCollection(Protocol):
    """A fixed set of vectors answering exact nearest neighbor queries."""

    def search_knn(self, query: np.ndarray, k: int) -> List[Neighbor]:
        """The ``k`` nearest vectors, sorted by (distance, index)."""
        ...

    def search_range(self, query: np.ndarray, radius: float) -> List[Neighbor]:
        """Every vector within ``radius`` (inclusive), sorted by (distance, index)."""
        ...

    def __len__(self) -> int:
        ...

    def clone(self) -> "VectorCollection":
        ...


def check_knn_args(k: int) -> None:
    if k < 1:
        raise ValueError(f"k must be a positive integer, not {k}")


def check_range_args(radius: float) -> None:
    if not radius > 0:
        raise ValueError(f"range must be positive, not {radius}")


def sort_neighbors(neighbors: List[Neighbor]) -> List[Neighbor]:
    return sorted(neighbors, key=lambda n: n.key)
