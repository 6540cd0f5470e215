"""Brute-force k-nearest-neighbour search."""

from __future__ import annotations

import heapq

from classicml.core.errors import ShapeMismatch
from classicml.distance import get_metric
from classicml.linalg import asarray

__all__ = ["LinearKNNSearch"]


class LinearKNNSearch:
    """Exhaustive nearest-neighbour search over the rows of a 2-D array.

    Parameters
    ----------
    data : NumericArray or array_like
        Reference points, shape (n, d).
    metric : str or callable, default="euclidean"
        Distance between a query and a reference point.
    **metric_params
        Extra metric parameters.

    Examples
    --------
    >>> search = LinearKNNSearch([[1, 2], [3, 4], [5, 6], [7, 8], [9, 10]])
    >>> search.find([3.0, 4.0], 1)
    ([1], [0.0])
    """

    def __init__(self, data, metric="euclidean", **metric_params):
        data = asarray(data)
        if data.ndim != 2:
            raise ShapeMismatch(f"Reference data must be 2-D, got shape {data.shape}.")
        self.data = data
        self.metric = metric
        self._distance = get_metric(metric, **metric_params)
        self._rows = [data.row(i) for i in range(data.shape[0])]

    def __len__(self):
        return len(self._rows)

    def find(self, query, k):
        """Return the *k* reference points closest to *query*.

        Parameters
        ----------
        query : NumericArray or array_like
            1-D point with as many coordinates as the reference rows.
        k : int
            Number of neighbours, between 1 and the number of reference points.

        Returns
        -------
        indices : list of int
            Row indices ordered by increasing distance; equal distances are
            ordered by index.
        distances : list of float
            The matching distances.
        """
        n = len(self._rows)
        if k < 1 or k > n:
            raise ValueError("k should be >= 1 and <= length(data)")
        query = asarray(query, backend=self.data.backend_name)
        if query.ndim != 1 or query.shape[0] != self.data.shape[1]:
            raise ShapeMismatch(f"Query must have shape ({self.data.shape[1]},), got {query.shape}.")

        scored = ((float(self._distance(query, row)), i) for i, row in enumerate(self._rows))
        best = heapq.nsmallest(k, scored)
        return [i for _, i in best], [d for d, _ in best]

    def find_radius(self, query, radius):
        """Return every reference point within *radius* of *query*, nearest first."""
        if radius < 0:
            raise ValueError(f"radius must be non-negative, got {radius}.")
        query = asarray(query, backend=self.data.backend_name)
        if query.ndim != 1 or query.shape[0] != self.data.shape[1]:
            raise ShapeMismatch(f"Query must have shape ({self.data.shape[1]},), got {query.shape}.")
        scored = sorted(
            (d, i) for i, row in enumerate(self._rows) if (d := float(self._distance(query, row))) <= radius
        )
        return [i for _, i in scored], [d for d, _ in scored]
