"""K-Means clustering with k-means++ seeding."""

from __future__ import annotations

import logging
import math
import warnings
from typing import NamedTuple

import numpy as np

from classicml.core.config import KMeansConfig
from classicml.core.errors import NumericError
from classicml.core.estimator import BaseEstimator
from classicml.distance import euclidean_distances
from classicml.linalg import to_numpy

__all__ = ["KMeans", "KMeansResult", "kmeans_plus_plus"]

log = logging.getLogger(__name__)


class KMeansResult(NamedTuple):
    """Fitted K-Means model.

    Attributes
    ----------
    centroids : ndarray
        Array of shape (k, d).
    labels : ndarray
        Cluster index of each training row.
    sizes : ndarray
        Number of training rows per cluster.
    distortion : float
        Sum of squared distances from each row to its centroid.
    n_iter : int
        Number of Lloyd iterations performed.
    """

    centroids: np.ndarray
    labels: np.ndarray
    sizes: np.ndarray
    distortion: float
    n_iter: int

    def to_dict(self):
        return {
            "centroids": self.centroids.tolist(),
            "labels": self.labels.tolist(),
            "sizes": self.sizes.tolist(),
            "distortion": self.distortion,
            "n_iter": self.n_iter,
        }


def kmeans_plus_plus(x, k, rng):
    """Choose *k* seed rows with the k-means++ rule.

    The first seed is uniform; each next seed is drawn with probability
    proportional to its squared distance to the nearest seed so far.

    Parameters
    ----------
    x : NumericArray
        Points of shape (n, d).
    k : int
        Number of seeds.
    rng : numpy.random.Generator
        Source of randomness.

    Returns
    -------
    list of int
        Row indices of the seeds.
    """
    n = x.shape[0]
    seeds = [int(rng.integers(n))]
    closest = np.full(n, np.inf)
    for _ in range(1, k):
        d = to_numpy(euclidean_distances(x, x.take([seeds[-1]]), squared=True)).ravel()
        closest = np.minimum(closest, d)
        total = closest.sum()
        if total > 0:
            cutoff = rng.random() * total
            idx = int(np.searchsorted(np.cumsum(closest), cutoff, side="left"))
            seeds.append(min(idx, n - 1))
        else:
            seeds.append(int(rng.integers(n)))
    return seeds


def _assign(x, centroids):
    """Nearest-centroid labels and the resulting sum of squared distances."""
    d = euclidean_distances(x, centroids, squared=True)
    labels = d.argmin(axis=1)
    return labels, math.fsum(d.get(i, c) for i, c in enumerate(labels))


class KMeans(BaseEstimator):
    """Lloyd's K-Means clustering.

    Parameters
    ----------
    k : int, default=2
        Number of clusters, at least 2.
    max_iter : int, default=100
        Maximum number of Lloyd iterations.
    random_state : int or numpy.random.Generator, optional
        Seed for :func:`numpy.random.default_rng`.

    Notes
    -----
    Iterations stop as soon as the distortion no longer decreases. A cluster
    that loses all its points keeps its previous centroid.
    """

    def __init__(self, k=2, max_iter=100, random_state=None):
        super().__init__()
        self.config = KMeansConfig(k=k, max_iter=max_iter, random_state=random_state)
        self.labels_ = None

    def fit(self, x, y=None):
        x = self._validate_x(x)
        self.backend_ = x.backend_name
        self.n_features_ = x.shape[1]
        n = x.shape[0]
        k = self.config.k
        if k > n:
            raise ValueError(f"k={k} exceeds the number of samples ({n}).")
        if not x.is_finite():
            raise NumericError("K-Means input contains NaN or infinite values.")

        rng = np.random.default_rng(self.config.random_state)
        centroids = x.take(kmeans_plus_plus(x, k, rng))
        labels = None
        distortion = math.inf
        n_iter = 0
        converged = False

        for n_iter in range(1, self.config.max_iter + 1):
            new_labels, new_distortion = _assign(x, centroids)
            log.debug("K-Means iteration %d: distortion %.6g", n_iter, new_distortion)
            converged = new_distortion >= distortion
            labels, distortion = new_labels, new_distortion
            if converged:
                break
            centroids = self._update_centroids(x, labels, centroids)

        if not converged:
            warnings.warn(
                f"K-Means did not converge within max_iter={self.config.max_iter} iterations.",
                UserWarning,
                stacklevel=2,
            )
            labels, distortion = _assign(x, centroids)

        labels = np.asarray(labels, dtype=np.int64)
        sizes = np.bincount(labels, minlength=k)
        self._params = KMeansResult(to_numpy(centroids), labels, sizes, float(distortion), n_iter)
        self.labels_ = labels
        self._fitted = True
        log.info("K-Means finished after %d iterations with distortion %.6g", n_iter, distortion)
        return self

    def _update_centroids(self, x, labels, centroids):
        rows = []
        for c in range(self.config.k):
            members = [i for i, label in enumerate(labels) if label == c]
            if members:
                rows.append(x.take(members).mean(axis=0))
            else:
                warnings.warn(
                    f"Cluster {c} is empty; keeping its previous centroid.",
                    UserWarning,
                    stacklevel=3,
                )
                rows.append(centroids.row(c))
        return type(x).stack(rows)

    def fit_predict(self, x, y=None):
        return self.fit(x).labels_

    def predict(self, x):
        """Assign each row of *x* to the nearest centroid; ties go to the lowest index."""
        x = self._validate_predict_x(x)
        d = euclidean_distances(x, self._params.centroids.tolist())
        return np.asarray(d.argmin(axis=1), dtype=np.int64)
