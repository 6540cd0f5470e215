"""Backend-agnostic numeric array interface.

Algorithms in classicml are written once against :class:`NumericArray` and
never inspect which adapter stores the data. Adapters implement the
underscore-prefixed primitives; the public methods here validate operand
shapes first and only then delegate, so a shape violation never yields a
partially computed result.
"""

from __future__ import annotations

import math
import numbers
import operator
from abc import ABC, abstractmethod

from classicml.core.errors import ShapeMismatch

__all__ = [
    "REDUCTIONS",
    "NumericArray",
    "ScalarOp",
    "check_shape",
    "safe_exp",
    "safe_log",
    "safe_pow",
    "safe_sqrt",
    "safe_truediv",
]

REDUCTIONS = ("sum", "mean", "var", "min", "max", "argmin", "argmax")
ARG_REDUCTIONS = ("argmin", "argmax")


def safe_truediv(x, y):
    """Divide with IEEE-754 semantics instead of raising on zero."""
    if y == 0:
        if x == 0 or math.isnan(x):
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1.0, y)
    return x / y


def safe_pow(x, y):
    """Raise to a power, mapping complex and undefined results to NaN."""
    try:
        result = x**y
    except ZeroDivisionError:
        return math.inf
    except OverflowError:
        return math.inf
    if isinstance(result, complex):
        return math.nan
    return result


def safe_log(x):
    """Natural log with ``log(0) = -inf`` and NaN for negative input."""
    if x > 0:
        return math.log(x)
    if x == 0:
        return -math.inf
    return math.nan


def safe_exp(x):
    """Exponential that overflows to ``inf``."""
    try:
        return math.exp(x)
    except OverflowError:
        return math.inf


def safe_sqrt(x):
    """Square root with NaN for negative input."""
    if x < 0 or math.isnan(x):
        return math.nan
    return math.sqrt(x)


class ScalarOp:
    """Elementwise binary operation with one operand fixed to a scalar.

    Adapters may recognise ``op`` and vectorise the whole call.
    """

    __slots__ = ("op", "reflected", "value")

    def __init__(self, op, value, reflected=False):
        self.op = op
        self.value = float(value)
        self.reflected = reflected

    def __call__(self, x):
        if self.reflected:
            return self.op(self.value, x)
        return self.op(x, self.value)


def check_shape(shape):
    """Normalise a shape to a tuple of ints and validate it.

    Parameters
    ----------
    shape : int or sequence of int
        One or two non-negative dimension sizes.

    Returns
    -------
    tuple of int
        The normalised shape.
    """
    if isinstance(shape, numbers.Integral):
        shape = (shape,)
    try:
        shape = tuple(operator.index(s) for s in shape)
    except TypeError as e:
        raise ShapeMismatch(f"Shape must be a sequence of integers, got {shape!r}.") from e
    if len(shape) not in (1, 2):
        raise ShapeMismatch(f"Only 1-D and 2-D arrays are supported, got shape {shape}.")
    if any(s < 0 for s in shape):
        raise ShapeMismatch(f"Shape dimensions must be non-negative, got {shape}.")
    return shape


class NumericArray(ABC):
    """Shape-checked dense container of 64-bit floats.

    Subclasses register under a backend name (see
    :func:`~classicml.core.backend.register_backend`) and implement the
    storage-specific primitives.
    """

    backend_name: str = ""

    # Make numpy defer to our reflected operators instead of broadcasting.
    __array_ufunc__ = None

    @classmethod
    def from_flat(cls, values, shape):
        """Build an array from row-major flat values and an explicit shape.

        Parameters
        ----------
        values : iterable of float
            Elements in row-major order.
        shape : int or tuple of int
            One or two dimension sizes.

        Returns
        -------
        NumericArray
            A new array of this adapter.

        Raises
        ------
        ShapeMismatch
            If the number of values differs from the product of *shape*.
        """
        shape = check_shape(shape)
        values = [float(v) for v in values]
        if len(values) != math.prod(shape):
            raise ShapeMismatch(
                f"Cannot build an array of shape {shape} from {len(values)} values; "
                f"expected {math.prod(shape)}."
            )
        return cls._from_flat(values, shape)

    @classmethod
    @abstractmethod
    def _from_flat(cls, values, shape):
        """Build from a validated row-major list of floats."""

    @classmethod
    @abstractmethod
    def from_native(cls, obj):
        """Wrap the adapter's native storage."""

    @abstractmethod
    def to_native(self):
        """Return the adapter's native storage."""

    @abstractmethod
    def to_flat(self):
        """Return the elements as a row-major list of floats."""

    @property
    @abstractmethod
    def shape(self):
        """Tuple of dimension sizes."""

    @abstractmethod
    def _get(self, index): ...

    @abstractmethod
    def _set(self, index, value): ...

    @abstractmethod
    def _row(self, i): ...

    @abstractmethod
    def _column(self, j): ...

    @abstractmethod
    def _take(self, indices, axis): ...

    @abstractmethod
    def _map(self, fn): ...

    @abstractmethod
    def _zip(self, other, fn): ...

    @abstractmethod
    def _reduce(self, op, axis, ddof): ...

    @abstractmethod
    def _matmul(self, other): ...

    @abstractmethod
    def _transpose(self): ...

    @property
    def ndim(self):
        return len(self.shape)

    @property
    def size(self):
        return math.prod(self.shape)

    def __len__(self):
        return self.shape[0]

    def __iter__(self):
        if self.ndim == 1:
            return iter(self.to_flat())
        return (self.row(i) for i in range(self.shape[0]))

    def get(self, *index):
        """Return the element at *index* as a float.

        Example:
            >>> value = arr.get(1, 2)
        """
        return self._get(self._normalize_index(index))

    def set(self, *args):
        """Set one element in place; the last argument is the value.

        Example:
            >>> arr.set(1, 2, 3.5)
        """
        if not args:
            raise ShapeMismatch("set() requires an index and a value.")
        *index, value = args
        self._set(self._normalize_index(tuple(index)), float(value))

    def row(self, i):
        """Return row *i* of a 2-D array as a 1-D array.

        The result may share storage with this array and must be treated as
        read-only.
        """
        self._require_2d("row")
        (i,) = self._normalize_axis_index(i, 0)
        return self._row(i)

    def column(self, j):
        """Return column *j* of a 2-D array as a 1-D array."""
        self._require_2d("column")
        (j,) = self._normalize_axis_index(j, 1)
        return self._column(j)

    def take(self, indices, axis=0):
        """Gather rows (``axis=0``) or columns (``axis=1``) into a new array."""
        axis = self._normalize_axis(axis)
        if axis is None:
            axis = 0
        normalized = [self._normalize_axis_index(i, axis)[0] for i in indices]
        return self._take(normalized, axis)

    def map(self, fn):
        """Apply *fn* to every element, returning a new array of the same shape."""
        return self._map(fn)

    def zip(self, other, fn):
        """Combine two equally shaped arrays elementwise with ``fn(a, b)``.

        Raises
        ------
        ShapeMismatch
            If the shapes differ. No broadcasting is performed.
        """
        other = self._coerce(other)
        if other.shape != self.shape:
            raise ShapeMismatch(f"Elementwise operands have different shapes: {self.shape} and {other.shape}.")
        return self._zip(other, fn)

    def reduce(self, op, axis=None, ddof=0):
        """Reduce over all elements or along one axis.

        Parameters
        ----------
        op : {"sum", "mean", "var", "min", "max", "argmin", "argmax"}
            Reduction to apply. ``var`` is divided by ``n - ddof``.
        axis : {None, 0, 1}, default=None
            ``None`` reduces everything. On a 2-D array ``0`` reduces each
            column and ``1`` reduces each row.
        ddof : int, default=0
            Delta degrees of freedom for ``var``.

        Returns
        -------
        float, int, NumericArray or list of int
            Full reductions return a scalar. Axis reductions return a 1-D
            array, except ``argmin``/``argmax`` which return a list of ints.
            Arg reductions pick the lowest index on ties.
        """
        if op not in REDUCTIONS:
            raise ValueError(f"Unknown reduction {op!r}. Choose one of: {', '.join(REDUCTIONS)}.")
        axis = self._normalize_axis(axis)
        extent = self.size if axis is None else self.shape[axis]
        if extent == 0:
            raise ShapeMismatch(f"Cannot compute {op} over an empty axis of an array with shape {self.shape}.")
        return self._reduce(op, axis, ddof)

    def matmul(self, other):
        """Matrix product following the usual 1-D/2-D promotion rules.

        Raises
        ------
        ShapeMismatch
            If the inner dimensions differ.
        """
        other = self._coerce(other)
        a, b = self.shape, other.shape
        inner_a = a[-1]
        inner_b = b[0]
        if inner_a != inner_b:
            raise ShapeMismatch(f"matmul: inner dimensions differ for shapes {a} and {b}.")
        return self._matmul(other)

    def transpose(self):
        """Return the transpose; 1-D arrays are returned unchanged."""
        if self.ndim == 1:
            return self
        return self._transpose()

    @property
    def T(self):  # noqa: N802
        return self.transpose()

    def reshape(self, *shape):
        """Return a copy with a new shape holding the same number of elements."""
        if len(shape) == 1 and not isinstance(shape[0], numbers.Integral):
            shape = shape[0]
        shape = check_shape(shape)
        if math.prod(shape) != self.size:
            raise ShapeMismatch(f"Cannot reshape array of shape {self.shape} into {shape}.")
        return type(self).from_flat(self.to_flat(), shape)

    def copy(self):
        return type(self).from_flat(self.to_flat(), self.shape)

    def to_list(self):
        """Return the elements as (nested) Python lists."""
        flat = self.to_flat()
        if self.ndim == 1:
            return flat
        n_cols = self.shape[1]
        return [flat[i * n_cols : (i + 1) * n_cols] for i in range(self.shape[0])]

    @classmethod
    def full(cls, shape, value):
        shape = check_shape(shape)
        return cls.from_flat([float(value)] * math.prod(shape), shape)

    @classmethod
    def zeros(cls, shape):
        return cls.full(shape, 0.0)

    @classmethod
    def ones(cls, shape):
        return cls.full(shape, 1.0)

    @classmethod
    def stack(cls, rows):
        """Stack equally long 1-D arrays into the rows of a 2-D array."""
        rows = list(rows)
        if not rows:
            raise ShapeMismatch("Cannot stack an empty sequence of rows.")
        width = rows[0].shape
        values = []
        for r in rows:
            if r.ndim != 1 or r.shape != width:
                raise ShapeMismatch(f"Cannot stack rows of shapes {width} and {r.shape}.")
            values.extend(r.to_flat())
        return cls.from_flat(values, (len(rows), width[0]))

    def sum(self, axis=None):
        return self.reduce("sum", axis)

    def mean(self, axis=None):
        return self.reduce("mean", axis)

    def var(self, axis=None, ddof=0):
        return self.reduce("var", axis, ddof=ddof)

    def min(self, axis=None):
        return self.reduce("min", axis)

    def max(self, axis=None):
        return self.reduce("max", axis)

    def argmin(self, axis=None):
        return self.reduce("argmin", axis)

    def argmax(self, axis=None):
        return self.reduce("argmax", axis)

    def log(self):
        return self.map(safe_log)

    def exp(self):
        return self.map(safe_exp)

    def sqrt(self):
        return self.map(safe_sqrt)

    def clip(self, lower=None, upper=None):
        out = self
        if lower is not None:
            out = out.map(ScalarOp(max, lower))
        if upper is not None:
            out = out.map(ScalarOp(min, upper))
        return out

    def qr(self):
        """Householder QR factorization, see :func:`classicml.linalg.qr.qr`."""
        from .qr import qr

        return qr(self)

    def qr_solve(self, b):
        """Least-squares solution of ``self @ x = b`` through QR."""
        return self.qr().solve(b)

    def is_finite(self):
        """Return True when no element is NaN or infinite."""
        return all(math.isfinite(v) for v in self.to_flat())

    def allclose(self, other, rtol=1e-5, atol=1e-8):
        """Compare elementwise within tolerance; differing shapes compare unequal."""
        other = self._coerce(other)
        if other.shape != self.shape:
            return False
        return all(abs(a - b) <= atol + rtol * abs(b) for a, b in zip(self.to_flat(), other.to_flat(), strict=True))

    def _binary(self, other, op, reflected=False):
        if isinstance(other, NumericArray):
            if reflected:
                return self._coerce(other).zip(self, op)
            return self.zip(other, op)
        if isinstance(other, numbers.Real):
            return self.map(ScalarOp(op, other, reflected=reflected))
        return NotImplemented

    def __add__(self, other):
        return self._binary(other, operator.add)

    def __radd__(self, other):
        return self._binary(other, operator.add, reflected=True)

    def __sub__(self, other):
        return self._binary(other, operator.sub)

    def __rsub__(self, other):
        return self._binary(other, operator.sub, reflected=True)

    def __mul__(self, other):
        return self._binary(other, operator.mul)

    def __rmul__(self, other):
        return self._binary(other, operator.mul, reflected=True)

    def __truediv__(self, other):
        return self._binary(other, safe_truediv)

    def __rtruediv__(self, other):
        return self._binary(other, safe_truediv, reflected=True)

    def __pow__(self, other):
        return self._binary(other, safe_pow)

    def __rpow__(self, other):
        return self._binary(other, safe_pow, reflected=True)

    def __neg__(self):
        return self.map(operator.neg)

    def __abs__(self):
        return self.map(abs)

    def __matmul__(self, other):
        if not isinstance(other, NumericArray):
            return NotImplemented
        return self.matmul(other)

    def __repr__(self):
        return f"{type(self).__name__}(shape={self.shape}, values={self.to_list()})"

    def _coerce(self, other):
        """Convert *other* to this adapter when it comes from another backend."""
        if isinstance(other, type(self)):
            return other
        if isinstance(other, NumericArray):
            return type(self).from_flat(other.to_flat(), other.shape)
        raise TypeError(f"Expected a NumericArray, got {type(other).__name__}.")

    def _require_2d(self, what):
        if self.ndim != 2:
            raise ShapeMismatch(f"{what}() requires a 2-D array, got shape {self.shape}.")

    def _normalize_axis(self, axis):
        if axis is None:
            return None
        axis = operator.index(axis)
        if axis < 0:
            axis += self.ndim
        if not 0 <= axis < self.ndim:
            raise ShapeMismatch(f"axis {axis} is out of bounds for an array with shape {self.shape}.")
        if self.ndim == 1:
            return None
        return axis

    def _normalize_axis_index(self, i, axis):
        n = self.shape[axis]
        i = operator.index(i)
        if i < 0:
            i += n
        if not 0 <= i < n:
            raise IndexError(f"index {i} is out of bounds for axis {axis} with size {n}.")
        return (i,)

    def _normalize_index(self, index):
        if len(index) != self.ndim:
            raise ShapeMismatch(f"Expected {self.ndim} indices for shape {self.shape}, got {len(index)}.")
        out = []
        for axis, i in enumerate(index):
            out.extend(self._normalize_axis_index(i, axis))
        return tuple(out)
