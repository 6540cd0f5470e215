"""Numeric array interface, backend adapters, and default registry bindings."""

from classicml.core.backend import register_backend

from .base import NumericArray, ScalarOp, check_shape
from .construct import array, asarray, from_native, to_backend, to_native, to_numpy
from .dense_array import DenseArray
from .numpy_array import NumpyArray
from .qr import QR, qr, qr_solve

register_backend(NumpyArray.backend_name, NumpyArray)
register_backend(DenseArray.backend_name, DenseArray)

__all__ = [
    "DenseArray",
    "NumericArray",
    "NumpyArray",
    "QR",
    "ScalarOp",
    "array",
    "asarray",
    "check_shape",
    "from_native",
    "qr",
    "qr_solve",
    "to_backend",
    "to_native",
    "to_numpy",
]
