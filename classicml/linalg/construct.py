"""Construction and backend conversion of numeric arrays."""

from __future__ import annotations

import numpy as np

from classicml.core.backend import resolve_backend
from classicml.core.errors import ShapeMismatch

from .base import NumericArray

__all__ = [
    "array",
    "asarray",
    "from_native",
    "to_backend",
    "to_native",
    "to_numpy",
]


def array(values, shape=None, backend=None):
    """Build a NumericArray.

    Parameters
    ----------
    values : sequence of float, nested sequence, ndarray or NumericArray
        Either a flat sequence in row-major order (when *shape* is given) or
        any 1-D/2-D array-like (when *shape* is ``None``). Objects exposing a
        ``to_numpy()`` method (pandas/polars frames and series) are accepted.
    shape : int or tuple of int, optional
        Explicit shape for flat *values*.
    backend : str, optional
        Registered backend name. Defaults to the active backend.

    Returns
    -------
    NumericArray
        A new array owned by the chosen adapter.

    Raises
    ------
    ShapeMismatch
        If the element count differs from the product of *shape*, or the
        input is ragged or not 1-D/2-D.
    """
    adapter = resolve_backend(backend)
    if isinstance(values, NumericArray):
        if shape is None:
            return adapter.from_flat(values.to_flat(), values.shape)
        return adapter.from_flat(values.to_flat(), shape)
    if shape is not None:
        if isinstance(values, np.ndarray):
            values = values.ravel()
        return adapter.from_flat(values, shape)

    data = _as_ndarray(values)
    return adapter.from_flat(data.ravel(), data.shape)


def asarray(x, backend=None):
    """Return *x* as a NumericArray, avoiding a copy when possible.

    A NumericArray that already belongs to the requested backend is returned
    unchanged. When *backend* is ``None`` an existing NumericArray keeps its
    own backend, and anything else is built with the active backend.
    """
    if isinstance(x, NumericArray):
        if backend is None:
            return x
        return to_backend(x, backend)
    return array(x, backend=backend)


def to_backend(arr, backend):
    """Convert a NumericArray to another registered backend."""
    adapter = resolve_backend(backend)
    if isinstance(arr, adapter):
        return arr
    return adapter.from_flat(arr.to_flat(), arr.shape)


def from_native(obj, backend=None):
    """Wrap an adapter's native storage object."""
    return resolve_backend(backend).from_native(obj)


def to_native(arr):
    """Return the native storage object behind a NumericArray."""
    return arr.to_native()


def to_numpy(arr):
    """Return a float64 :class:`numpy.ndarray` copy of any NumericArray or array-like."""
    if isinstance(arr, NumericArray):
        return np.asarray(arr.to_flat(), dtype=np.float64).reshape(arr.shape)
    return _as_ndarray(arr)


def _as_ndarray(values):
    if hasattr(values, "to_numpy") and not isinstance(values, np.ndarray):
        values = values.to_numpy()
    try:
        data = np.asarray(values, dtype=np.float64)
    except ValueError as e:
        raise ShapeMismatch(f"Cannot build a rectangular numeric array from the input: {e}") from e
    if data.ndim not in (1, 2):
        raise ShapeMismatch(f"Only 1-D and 2-D arrays are supported, got shape {data.shape}.")
    return data
