"""Nearest-neighbour structures: FastPair closest pairs and k-NN search."""

from .cover_tree import CoverTree
from .fastpair import ClosestPair, FastPair, MergeRecord, NeighborEntry, PointState, centroid
from .knn import KNNClassifier, KNNFitted
from .linear_search import LinearKNNSearch

__all__ = [
    "ClosestPair",
    "CoverTree",
    "FastPair",
    "KNNClassifier",
    "KNNFitted",
    "LinearKNNSearch",
    "MergeRecord",
    "NeighborEntry",
    "PointState",
    "centroid",
]
