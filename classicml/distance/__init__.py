"""Distance metrics and distance matrices."""

from .metrics import (
    distance,
    euclidean,
    get_metric,
    hamming,
    list_metrics,
    manhattan,
    minkowski,
    register_metric,
    squared_euclidean,
)
from .pairwise import euclidean_distances, pairwise_distances

__all__ = [
    "distance",
    "euclidean",
    "euclidean_distances",
    "get_metric",
    "hamming",
    "list_metrics",
    "manhattan",
    "minkowski",
    "pairwise_distances",
    "register_metric",
    "squared_euclidean",
]
