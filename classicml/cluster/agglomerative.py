"""Centroid-linkage agglomerative clustering driven by FastPair."""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
import polars as pl

from classicml.core.config import AgglomerativeConfig
from classicml.core.errors import InsufficientPoints, ShapeMismatch
from classicml.core.estimator import BaseEstimator
from classicml.distance import get_metric
from classicml.linalg import asarray, to_numpy
from classicml.neighbors import FastPair, MergeRecord

__all__ = ["AgglomerativeClustering", "AgglomerativeResult", "agglomerative_clustering"]

log = logging.getLogger(__name__)


class AgglomerativeResult(NamedTuple):
    """Outcome of an agglomerative clustering run.

    Attributes
    ----------
    merges : list of MergeRecord
        Merge steps in the order they were performed.
    linkage : ndarray
        Array of shape (n_merges, 4) with rows ``[left, right, distance,
        size]``. Merged points get ids ``n, n + 1, ...`` as in
        :func:`scipy.cluster.hierarchy.linkage`.
    labels : ndarray
        Cluster label per input row. Labels are numbered in order of each
        cluster's smallest member row.
    centroids : ndarray
        Array of shape (n_clusters, d); row ``c`` is the centroid of label ``c``.
    n_clusters : int
        Number of clusters left when merging stopped.
    metric : str
        Name of the distance metric.
    """

    merges: list[MergeRecord]
    linkage: np.ndarray
    labels: np.ndarray
    centroids: np.ndarray
    n_clusters: int
    metric: str

    def to_dataframe(self):
        """Return the merge history as a :class:`polars.DataFrame`."""
        return pl.DataFrame(
            {
                "step": list(range(len(self.merges))),
                "left": [m.left for m in self.merges],
                "right": [m.right for m in self.merges],
                "merged": [m.merged for m in self.merges],
                "distance": [m.distance for m in self.merges],
                "size": [m.size for m in self.merges],
            },
            schema={
                "step": pl.Int64,
                "left": pl.Int64,
                "right": pl.Int64,
                "merged": pl.Int64,
                "distance": pl.Float64,
                "size": pl.Float64,
            },
        )

    def to_dict(self):
        return {
            "merges": [m._asdict() for m in self.merges],
            "linkage": self.linkage.tolist(),
            "labels": self.labels.tolist(),
            "centroids": self.centroids.tolist(),
            "n_clusters": self.n_clusters,
            "metric": self.metric,
        }


def agglomerative_clustering(x, n_clusters=1, metric="euclidean", backend=None, **metric_params):
    """Merge the closest pair of clusters until *n_clusters* remain.

    Each merge replaces two clusters by their size-weighted centroid, so the
    distance between clusters is the distance between their centroids.

    Parameters
    ----------
    x : NumericArray or array_like
        Points of shape (n, d).
    n_clusters : int, default=1
        Number of clusters at which to stop. ``1`` builds the full tree.
    metric : str or callable, default="euclidean"
        Distance between centroids.
    backend : str, optional
        Backend for the points; defaults to that of *x* or the active one.
    **metric_params
        Extra metric parameters.

    Returns
    -------
    AgglomerativeResult
        Merge history, linkage matrix, labels and centroids.

    Raises
    ------
    ValueError
        If *n_clusters* is not between 1 and the number of points.
    NumericError
        If a distance is NaN or infinite.
    """
    x = asarray(x, backend=backend)
    if x.ndim != 2:
        raise ShapeMismatch(f"Expected a 2-D array of points, got shape {x.shape}.")
    n = x.shape[0]
    if not 1 <= n_clusters <= max(n, 1):
        raise ValueError(f"n_clusters must be between 1 and {n}, got {n_clusters}.")

    fp = FastPair(metric=metric, **metric_params)
    fp.initialize(x)
    log.debug("Agglomerating %d points down to %d clusters", n, n_clusters)

    while len(fp) > n_clusters:
        try:
            p, q, _ = fp.closest_pair()
        except InsufficientPoints:
            break
        fp.merge(p, q)

    merges = list(fp.history)
    labels, active = _labels_from_merges(n, merges, fp.active_ids)
    centroids = np.vstack([to_numpy(fp.point(i)) for i in active]) if active else np.empty((0, x.shape[1]))
    linkage = np.array(
        [[m.left, m.right, m.distance, m.size] for m in merges],
        dtype=np.float64,
    ).reshape(len(merges), 4)

    metric_name = metric if isinstance(metric, str) else getattr(metric, "__name__", repr(metric))
    log.info("Agglomerative clustering finished with %d clusters after %d merges", len(active), len(merges))
    return AgglomerativeResult(merges, linkage, labels, centroids, len(active), metric_name)


def _labels_from_merges(n, merges, active_ids):
    """Label rows by final cluster, ordered by each cluster's smallest row."""
    members = {i: [i] for i in range(n)}
    for m in merges:
        members[m.merged] = members.pop(m.left) + members.pop(m.right)
    active = sorted(active_ids, key=lambda i: min(members[i]))
    labels = np.empty(n, dtype=np.int64)
    for label, cluster_id in enumerate(active):
        labels[members[cluster_id]] = label
    return labels, active


class AgglomerativeClustering(BaseEstimator):
    """Estimator wrapper around :func:`agglomerative_clustering`.

    Parameters
    ----------
    n_clusters : int, default=2
        Number of clusters to stop at.
    metric : str or callable, default="euclidean"
        Distance between centroids.
    **metric_params
        Extra metric parameters.

    Attributes
    ----------
    labels_ : ndarray
        Cluster label of each training row after :meth:`fit`.
    """

    def __init__(self, n_clusters=2, metric="euclidean", **metric_params):
        super().__init__()
        self.config = AgglomerativeConfig(n_clusters=n_clusters, metric=metric, metric_params=metric_params)
        self.labels_ = None

    def fit(self, x, y=None):
        x = self._validate_x(x)
        self.backend_ = x.backend_name
        self.n_features_ = x.shape[1]
        if self.config.n_clusters > x.shape[0]:
            raise ValueError(f"n_clusters={self.config.n_clusters} exceeds the number of samples ({x.shape[0]}).")
        result = agglomerative_clustering(
            x, n_clusters=self.config.n_clusters, metric=self.config.metric, **self.config.metric_params
        )
        self._params = result
        self.labels_ = result.labels
        self._fitted = True
        return self

    def fit_predict(self, x, y=None):
        return self.fit(x).labels_

    def predict(self, x):
        """Assign each row of *x* to the nearest final centroid.

        Ties go to the lowest label.
        """
        x = self._validate_predict_x(x)
        fn = get_metric(self.config.metric, **self.config.metric_params)
        centroids = asarray(self._params.centroids, backend=self.backend_)
        rows = [centroids.row(c) for c in range(centroids.shape[0])]
        labels = np.empty(x.shape[0], dtype=np.int64)
        for i in range(x.shape[0]):
            xi = x.row(i)
            distances = [float(fn(xi, c)) for c in rows]
            labels[i] = int(np.argmin(distances))
        return labels
