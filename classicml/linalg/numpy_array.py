"""NumPy-backed array adapter."""

from __future__ import annotations

import math
import operator

import numpy as np

from classicml.core.errors import ShapeMismatch

from .base import (
    NumericArray,
    ScalarOp,
    safe_exp,
    safe_log,
    safe_pow,
    safe_sqrt,
    safe_truediv,
)

__all__ = ["NumpyArray"]

_UNARY_UFUNCS = {
    abs: np.abs,
    math.fabs: np.abs,
    operator.neg: np.negative,
    safe_log: np.log,
    safe_exp: np.exp,
    safe_sqrt: np.sqrt,
    math.floor: np.floor,
    math.ceil: np.ceil,
}

_BINARY_UFUNCS = {
    operator.add: np.add,
    operator.sub: np.subtract,
    operator.mul: np.multiply,
    safe_truediv: np.divide,
    safe_pow: np.power,
    operator.ne: np.not_equal,
    operator.eq: np.equal,
    operator.gt: np.greater,
    operator.lt: np.less,
    max: np.maximum,
    min: np.minimum,
}

_REDUCERS = {
    "sum": np.sum,
    "mean": np.mean,
    "min": np.min,
    "max": np.max,
}


class NumpyArray(NumericArray):
    """Array adapter over a float64 :class:`numpy.ndarray`.

    Elementwise callables with a matching ufunc run vectorised; any other
    callable is applied element by element through :func:`numpy.frompyfunc`.
    """

    backend_name = "numpy"

    __slots__ = ("_data",)

    def __init__(self, data):
        self._data = data

    @classmethod
    def _from_flat(cls, values, shape):
        return cls(np.asarray(values, dtype=np.float64).reshape(shape))

    @classmethod
    def from_native(cls, obj):
        """Wrap an ndarray (or anything ``np.asarray`` accepts) as float64."""
        data = np.asarray(obj, dtype=np.float64)
        if data.ndim not in (1, 2):
            raise ShapeMismatch(f"Only 1-D and 2-D arrays are supported, got shape {data.shape}.")
        return cls(data)

    def to_native(self):
        return self._data

    def to_flat(self):
        return [float(v) for v in self._data.ravel()]

    @property
    def shape(self):
        return tuple(int(s) for s in self._data.shape)

    def _get(self, index):
        return float(self._data[index])

    def _set(self, index, value):
        self._data[index] = value

    def _row(self, i):
        return NumpyArray(self._data[i])

    def _column(self, j):
        return NumpyArray(self._data[:, j])

    def _take(self, indices, axis):
        return NumpyArray(np.take(self._data, np.asarray(indices, dtype=np.intp), axis=axis))

    def _map(self, fn):
        with np.errstate(all="ignore"):
            if isinstance(fn, ScalarOp) and fn.op in _BINARY_UFUNCS:
                ufunc = _BINARY_UFUNCS[fn.op]
                out = ufunc(fn.value, self._data) if fn.reflected else ufunc(self._data, fn.value)
            elif fn in _UNARY_UFUNCS:
                out = _UNARY_UFUNCS[fn](self._data)
            else:
                out = np.frompyfunc(fn, 1, 1)(self._data)
        return NumpyArray(np.asarray(out, dtype=np.float64).reshape(self._data.shape))

    def _zip(self, other, fn):
        with np.errstate(all="ignore"):
            if fn in _BINARY_UFUNCS:
                out = _BINARY_UFUNCS[fn](self._data, other._data)
            else:
                out = np.frompyfunc(fn, 2, 1)(self._data, other._data)
        return NumpyArray(np.asarray(out, dtype=np.float64).reshape(self._data.shape))

    def _reduce(self, op, axis, ddof):
        with np.errstate(all="ignore"):
            if op == "var":
                if (self._data.size if axis is None else self._data.shape[axis]) - ddof <= 0:
                    out = np.full(() if axis is None else self._data.shape[1 - axis], np.nan)
                else:
                    out = np.var(self._data, axis=axis, ddof=ddof)
            elif op in ("argmin", "argmax"):
                fn = np.argmin if op == "argmin" else np.argmax
                out = fn(self._data, axis=axis)
                if axis is None:
                    return int(out)
                return [int(i) for i in out]
            else:
                out = _REDUCERS[op](self._data, axis=axis)
        if axis is None:
            return float(out)
        return NumpyArray(np.asarray(out, dtype=np.float64))

    def _matmul(self, other):
        out = self._data @ other._data
        if np.ndim(out) == 0:
            return float(out)
        return NumpyArray(np.asarray(out, dtype=np.float64))

    def _transpose(self):
        return NumpyArray(self._data.T)
