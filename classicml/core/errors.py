"""Exception taxonomy shared by every classicml component."""

__all__ = [
    "ClassicMLError",
    "InsufficientPoints",
    "NumericError",
    "ShapeMismatch",
    "UnfittedModelError",
    "UnsupportedMetric",
]


class ClassicMLError(Exception):
    """Base class for all errors raised by classicml."""


class ShapeMismatch(ClassicMLError, ValueError):
    """Operand dimensions violate the shape contract of an operation."""


class InsufficientPoints(ClassicMLError):
    """A pairwise operation needs at least two active points.

    Clustering loops use this as their stop condition rather than as a
    failure.
    """


class NumericError(ClassicMLError, ArithmeticError):
    """A computation produced NaN or an infinite value."""


class UnsupportedMetric(ClassicMLError, ValueError):
    """The requested distance metric is not registered."""


class UnfittedModelError(ClassicMLError, RuntimeError):
    """An operation requires a prior ``fit`` or ``initialize`` call."""
