"""Distance matrices between the rows of two arrays."""

from __future__ import annotations

from classicml.core.errors import ShapeMismatch
from classicml.core.parallel import parallel_map
from classicml.linalg import asarray

from .metrics import get_metric

__all__ = ["euclidean_distances", "pairwise_distances"]


def _check_pair(x, y):
    x = asarray(x)
    y = x if y is None else asarray(y, backend=x.backend_name)
    if x.ndim != 2 or y.ndim != 2:
        raise ShapeMismatch(f"Expected 2-D arrays of row vectors, got shapes {x.shape} and {y.shape}.")
    if x.shape[1] != y.shape[1]:
        raise ShapeMismatch(f"Row vectors have different lengths: {x.shape[1]} and {y.shape[1]}.")
    return x, y


def pairwise_distances(x, y=None, metric="euclidean", n_jobs=1, **params):
    """Compute the distance between every row of *x* and every row of *y*.

    Parameters
    ----------
    x : NumericArray or array_like
        2-D array of shape (n, d).
    y : NumericArray or array_like, optional
        2-D array of shape (m, d). Defaults to *x*.
    metric : str or callable, default="euclidean"
        Metric name or distance callable, see
        :func:`~classicml.distance.metrics.get_metric`.
    n_jobs : int, default=1
        Number of threads used to compute rows, see
        :func:`~classicml.core.parallel.parallel_map`.
    **params
        Metric parameters.

    Returns
    -------
    NumericArray
        Matrix of shape (n, m) in the backend of *x*.
    """
    fn = get_metric(metric, **params)
    x, y = _check_pair(x, y)
    y_rows = [y.row(j) for j in range(y.shape[0])]

    def _row_distances(i):
        xi = x.row(i)
        return [fn(xi, yj) for yj in y_rows]

    rows = parallel_map(_row_distances, [(i,) for i in range(x.shape[0])], n_jobs=n_jobs)
    return type(x).from_flat([d for row in rows for d in row], (x.shape[0], y.shape[0]))


def euclidean_distances(x, y=None, squared=False):
    """Euclidean distance matrix via ``|x|^2 - 2 x y^T + |y|^2``.

    Faster than :func:`pairwise_distances` for the Euclidean case because it
    reduces to matrix products; results are clipped at zero to absorb
    cancellation error.

    Parameters
    ----------
    x : NumericArray or array_like
        2-D array of shape (n, d).
    y : NumericArray or array_like, optional
        2-D array of shape (m, d). Defaults to *x*.
    squared : bool, default=False
        Return squared distances.

    Returns
    -------
    NumericArray
        Matrix of shape (n, m).
    """
    x, y = _check_pair(x, y)
    n, m = x.shape[0], y.shape[0]
    adapter = type(x)
    x_norms = (x * x).sum(axis=1) if x.shape[1] else adapter.zeros(n)
    y_norms = (y * y).sum(axis=1) if y.shape[1] else adapter.zeros(m)
    cross = x.matmul(y.T)
    # Outer sums built from products with ones so no broadcasting is needed.
    x_term = x_norms.reshape(n, 1).matmul(adapter.ones((1, m)))
    y_term = adapter.ones((n, 1)).matmul(y_norms.reshape(1, m))
    dist = (x_term + y_term - 2.0 * cross).clip(lower=0.0)
    if squared:
        return dist
    return dist.sqrt()
