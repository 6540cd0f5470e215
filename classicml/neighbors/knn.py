"""k-nearest-neighbour classifier."""

from __future__ import annotations

from typing import NamedTuple

import numpy as np

from classicml.core.config import KNNAlgorithm, KNNConfig, KNNWeights
from classicml.core.estimator import BaseEstimator
from classicml.core.parallel import parallel_map

from .cover_tree import CoverTree
from .linear_search import LinearKNNSearch

__all__ = ["KNNClassifier", "KNNFitted"]


class KNNFitted(NamedTuple):
    """Fitted state of a :class:`KNNClassifier`."""

    classes: np.ndarray
    n_samples: int
    n_features: int
    backend: str

    def to_dict(self):
        return {
            "classes": self.classes.tolist(),
            "n_samples": self.n_samples,
            "n_features": self.n_features,
            "backend": self.backend,
        }


class KNNClassifier(BaseEstimator):
    """Classify points by a vote among their *k* nearest training points.

    Parameters
    ----------
    k : int, default=3
        Number of neighbours consulted per query.
    metric : str or callable, default="euclidean"
        Distance metric.
    weights : {"uniform", "distance"}, default="uniform"
        ``"distance"`` weights each vote by the inverse distance; neighbours
        at distance zero then take the whole vote.
    algorithm : {"linear", "cover_tree"}, default="linear"
        Neighbour search structure. Both return the same neighbours; the
        cover tree evaluates fewer distances on large training sets.
    n_jobs : int, default=1
        Threads used to answer queries.
    **metric_params
        Extra metric parameters.

    Notes
    -----
    Vote ties go to the lowest class label.
    """

    def __init__(self, k=3, metric="euclidean", weights="uniform", algorithm="linear", n_jobs=1, **metric_params):
        super().__init__()
        self.config = KNNConfig(
            k=k, metric=metric, weights=weights, algorithm=algorithm, n_jobs=n_jobs, metric_params=metric_params
        )
        self._search = None
        self._codes = None

    def fit(self, x, y=None):
        if y is None:
            raise ValueError("KNNClassifier.fit() requires labels y.")
        x, y = self._validate_xy(x, y)
        if self.config.k > x.shape[0]:
            raise ValueError(f"k={self.config.k} exceeds the number of training samples ({x.shape[0]}).")
        classes, codes = np.unique(y, return_inverse=True)
        search_cls = CoverTree if self.config.algorithm is KNNAlgorithm.COVER_TREE else LinearKNNSearch
        self._search = search_cls(x, self.config.metric, **self.config.metric_params)
        self._codes = codes
        self._params = KNNFitted(classes, x.shape[0], x.shape[1], self.backend_)
        self._fitted = True
        return self

    def _votes(self, query):
        indices, distances = self._search.find(query, self.config.k)
        votes = np.zeros(len(self._params.classes))
        if self.config.weights is KNNWeights.DISTANCE:
            distances = np.asarray(distances)
            exact = distances == 0
            w = exact.astype(float) if exact.any() else 1.0 / distances
        else:
            w = np.ones(len(indices))
        np.add.at(votes, self._codes[indices], w)
        return votes

    def predict_proba(self, x):
        """Return the normalized vote share of each class per row of *x*."""
        x = self._validate_predict_x(x)
        rows = parallel_map(self._votes, [(x.row(i),) for i in range(x.shape[0])], n_jobs=self.config.n_jobs)
        votes = np.vstack(rows)
        return votes / votes.sum(axis=1, keepdims=True)

    def predict(self, x):
        proba = self.predict_proba(x)
        return self._params.classes[np.argmax(proba, axis=1)]

    def kneighbors(self, x, k=None):
        """Return neighbour indices and distances for each row of *x*."""
        x = self._validate_predict_x(x)
        k = self.config.k if k is None else k
        results = [self._search.find(x.row(i), k) for i in range(x.shape[0])]
        return np.array([r[0] for r in results]), np.array([r[1] for r in results])
