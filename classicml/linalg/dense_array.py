"""Pure-Python dense array adapter with column-major storage."""

from __future__ import annotations

import math
import operator

from classicml.core.errors import ShapeMismatch

from .base import ARG_REDUCTIONS, NumericArray, check_shape

__all__ = ["DenseArray"]


def _fsum(values):
    # fsum is exact and therefore independent of summation order, but it
    # refuses inf - inf and intermediate overflow.
    try:
        return math.fsum(values)
    except (OverflowError, ValueError):
        return sum(values)


def _first_nan(values):
    for i, v in enumerate(values):
        if math.isnan(v):
            return i
    return None


def _reduce_values(op, values, ddof):
    n = len(values)
    if op == "sum":
        return _fsum(values)
    if op == "mean":
        return _fsum(values) / n
    if op == "var":
        if n - ddof <= 0:
            return math.nan
        mean = _fsum(values) / n
        return _fsum([(v - mean) ** 2 for v in values]) / (n - ddof)
    nan_at = _first_nan(values)
    if op in ("min", "max"):
        if nan_at is not None:
            return math.nan
        return min(values) if op == "min" else max(values)
    if nan_at is not None:
        return nan_at
    best = 0
    for i in range(1, n):
        if (op == "argmin" and values[i] < values[best]) or (op == "argmax" and values[i] > values[best]):
            best = i
    return best


class DenseArray(NumericArray):
    """Dense array stored as a flat list of Python floats.

    Two-dimensional arrays are laid out column by column, so element
    ``(i, j)`` of an ``n x m`` array lives at ``j * n + i``. The native form
    exchanged by :meth:`from_native` / :meth:`to_native` is the tuple
    ``(values, shape)`` in that layout.
    """

    backend_name = "dense"

    __slots__ = ("_shape", "_values")

    def __init__(self, values, shape):
        self._values = values
        self._shape = shape

    @classmethod
    def _from_flat(cls, values, shape):
        if len(shape) == 1:
            return cls(values, shape)
        n_rows, n_cols = shape
        col_major = [values[i * n_cols + j] for j in range(n_cols) for i in range(n_rows)]
        return cls(col_major, shape)

    @classmethod
    def from_native(cls, obj):
        """Wrap a ``(column_major_values, shape)`` pair."""
        try:
            values, shape = obj
        except (TypeError, ValueError) as e:
            raise TypeError("DenseArray native storage is a (values, shape) pair.") from e
        shape = check_shape(shape)
        values = [float(v) for v in values]
        if len(values) != math.prod(shape):
            raise ShapeMismatch(f"Cannot wrap {len(values)} values as shape {shape}.")
        return cls(values, shape)

    def to_native(self):
        return list(self._values), self._shape

    def to_flat(self):
        if len(self._shape) == 1:
            return list(self._values)
        n_rows, n_cols = self._shape
        return [self._values[j * n_rows + i] for i in range(n_rows) for j in range(n_cols)]

    @property
    def shape(self):
        return self._shape

    def _offset(self, index):
        if len(index) == 1:
            return index[0]
        return index[1] * self._shape[0] + index[0]

    def _get(self, index):
        return self._values[self._offset(index)]

    def _set(self, index, value):
        self._values[self._offset(index)] = value

    def _row(self, i):
        n_rows, n_cols = self._shape
        return DenseArray([self._values[j * n_rows + i] for j in range(n_cols)], (n_cols,))

    def _column(self, j):
        n_rows = self._shape[0]
        return DenseArray(self._values[j * n_rows : (j + 1) * n_rows], (n_rows,))

    def _take(self, indices, axis):
        if len(self._shape) == 1:
            return DenseArray([self._values[i] for i in indices], (len(indices),))
        n_rows, n_cols = self._shape
        if axis == 0:
            values = [self._values[j * n_rows + i] for j in range(n_cols) for i in indices]
            return DenseArray(values, (len(indices), n_cols))
        values = []
        for j in indices:
            values.extend(self._values[j * n_rows : (j + 1) * n_rows])
        return DenseArray(values, (n_rows, len(indices)))

    def _map(self, fn):
        return DenseArray([float(fn(v)) for v in self._values], self._shape)

    def _zip(self, other, fn):
        return DenseArray([float(fn(a, b)) for a, b in zip(self._values, other._values, strict=True)], self._shape)

    def _groups(self, axis):
        n_rows, n_cols = self._shape
        if axis == 0:
            return [self._values[j * n_rows : (j + 1) * n_rows] for j in range(n_cols)]
        return [[self._values[j * n_rows + i] for j in range(n_cols)] for i in range(n_rows)]

    def _reduce(self, op, axis, ddof):
        if axis is None:
            # Arg reductions report row-major positions.
            return _reduce_values(op, self.to_flat() if op in ARG_REDUCTIONS else self._values, ddof)
        results = [_reduce_values(op, group, ddof) for group in self._groups(axis)]
        if op in ARG_REDUCTIONS:
            return results
        return DenseArray([float(r) for r in results], (len(results),))

    def _rows(self):
        if len(self._shape) == 1:
            return [self._values]
        return self._groups(1)

    def _matmul(self, other):
        if len(self._shape) == 1 and len(other._shape) == 1:
            return _fsum(list(map(operator.mul, self._values, other._values)))
        rows = self._rows()
        cols = [other._values] if len(other._shape) == 1 else other._groups(0)
        # Column-major output: iterate result columns in the outer loop.
        values = [_fsum(list(map(operator.mul, r, c))) for c in cols for r in rows]
        if len(self._shape) == 1:
            return DenseArray(values, (len(cols),))
        if len(other._shape) == 1:
            return DenseArray(values, (len(rows),))
        return DenseArray(values, (len(rows), len(cols)))

    def _transpose(self):
        n_rows, n_cols = self._shape
        # The row-major order of this array is the column-major order of its transpose.
        return DenseArray(self.to_flat(), (n_cols, n_rows))
