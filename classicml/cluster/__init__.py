"""Clustering estimators."""

from .agglomerative import AgglomerativeClustering, AgglomerativeResult, agglomerative_clustering
from .format import format_agglomerative_result, format_kmeans_result
from .kmeans import KMeans, KMeansResult, kmeans_plus_plus

__all__ = [
    "AgglomerativeClustering",
    "AgglomerativeResult",
    "KMeans",
    "KMeansResult",
    "agglomerative_clustering",
    "format_agglomerative_result",
    "format_kmeans_result",
    "kmeans_plus_plus",
]
