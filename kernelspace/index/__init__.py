"""Exact nearest neighbor search over fixed vector sets."""

from .base import Neighbor, BoundedSortedList, VectorCollection
from .brute import VectorArray
from .vptree import VPTree, VPNode, VPLeaf, VPSelection

__all__ = [
    "Neighbor",
    "BoundedSortedList",
    "VectorCollection",
    "VectorArray",
    "VPTree",
    "VPNode",
    "VPLeaf",
    "VPSelection",
]
