"""Pairwise distance functions over 1-D NumericArray views."""

from __future__ import annotations

import functools
import operator

from classicml.core.errors import ShapeMismatch, UnsupportedMetric
from classicml.linalg import asarray

__all__ = [
    "distance",
    "euclidean",
    "get_metric",
    "hamming",
    "list_metrics",
    "manhattan",
    "minkowski",
    "register_metric",
    "squared_euclidean",
]


def _check_vectors(a, b):
    a = asarray(a)
    b = asarray(b)
    if a.ndim != 1 or b.ndim != 1:
        raise ShapeMismatch(f"Distances are defined between 1-D vectors, got shapes {a.shape} and {b.shape}.")
    if a.shape != b.shape:
        raise ShapeMismatch(f"Input vector sizes are different: {a.shape[0]} and {b.shape[0]}.")
    return a, b


def squared_euclidean(a, b):
    """Sum of squared coordinate differences.

    Not a metric (it violates the triangle inequality) but orders points
    exactly like :func:`euclidean` at a lower cost.
    """
    a, b = _check_vectors(a, b)
    diff = a - b
    return diff.matmul(diff) if diff.size else 0.0


def euclidean(a, b):
    """Euclidean (L2) distance.

    Examples
    --------
    >>> euclidean([1.0, 2.0, 3.0], [4.0, 5.0, 6.0])  # doctest: +ELLIPSIS
    5.196152...
    """
    return squared_euclidean(a, b) ** 0.5


def manhattan(a, b):
    """Manhattan (L1, city block) distance."""
    a, b = _check_vectors(a, b)
    if not a.size:
        return 0.0
    return abs(a - b).sum()


def minkowski(a, b, p=2.0):
    """Minkowski distance of order *p*.

    Parameters
    ----------
    a, b : NumericArray or array_like
        Equally long 1-D vectors.
    p : float, default=2.0
        Order of the norm. Must be at least 1 for the result to be a metric.

    Raises
    ------
    ValueError
        If ``p < 1``.
    """
    if p < 1:
        raise ValueError("p must be at least 1")
    a, b = _check_vectors(a, b)
    if not a.size:
        return 0.0
    return (abs(a - b) ** float(p)).sum() ** (1.0 / p)


def hamming(a, b):
    """Fraction of coordinates at which *a* and *b* differ."""
    a, b = _check_vectors(a, b)
    if not a.size:
        return 0.0
    return a.zip(b, operator.ne).mean()


_METRICS = {
    "euclidean": euclidean,
    "manhattan": manhattan,
    "minkowski": minkowski,
    "hamming": hamming,
    "squared_euclidean": squared_euclidean,
}

_ALIASES = {
    "l2": "euclidean",
    "l1": "manhattan",
    "cityblock": "manhattan",
}


def register_metric(name, fn):
    """Register a distance function ``fn(a, b, **params) -> float`` by name."""
    key = name.strip().lower()
    if not key:
        raise ValueError("metric name cannot be empty")
    _METRICS[key] = fn


def list_metrics():
    """Return the registered metric names (aliases excluded)."""
    return tuple(sorted(_METRICS))


def get_metric(metric, **params):
    """Resolve *metric* to a callable ``(a, b) -> float``.

    Parameters
    ----------
    metric : str or callable
        Registered metric name or alias, or a distance callable which is
        returned as is (bound to *params* when given).
    **params
        Extra metric parameters, e.g. ``p`` for ``"minkowski"``.

    Raises
    ------
    UnsupportedMetric
        If *metric* is a name that is not registered.
    """
    if callable(metric):
        return functools.partial(metric, **params) if params else metric
    if not isinstance(metric, str):
        raise TypeError(f"metric must be a string or a callable, got {type(metric).__name__}.")
    key = metric.strip().lower()
    key = _ALIASES.get(key, key)
    if key not in _METRICS:
        available = ", ".join(sorted(_METRICS))
        raise UnsupportedMetric(f"Unsupported metric {metric!r}. Registered metrics: {available}.")
    fn = _METRICS[key]
    if key == "minkowski" and params.get("p", 2.0) < 1:
        raise ValueError("p must be at least 1")
    return functools.partial(fn, **params) if params else fn


def distance(metric, a, b, **params):
    """Distance between two vectors under a named metric.

    Parameters
    ----------
    metric : str or callable
        ``"euclidean"``, ``"manhattan"``, ``"minkowski"``, ``"hamming"``,
        ``"squared_euclidean"``, an alias, or a registered custom name.
    a, b : NumericArray or array_like
        Equally long 1-D vectors.
    **params
        Metric parameters such as ``p``.

    Returns
    -------
    float
        The non-negative, symmetric distance.

    Raises
    ------
    UnsupportedMetric
        If *metric* is not registered.
    ShapeMismatch
        If the vectors differ in length.
    """
    return get_metric(metric, **params)(a, b)
