"""Backend dispatch for numeric array construction."""

from __future__ import annotations

import contextlib
from contextvars import ContextVar

from .config import default_backend_name

__all__ = [
    "get_backend",
    "get_backend_name",
    "list_backends",
    "register_backend",
    "resolve_backend",
    "set_backend",
    "use_backend",
]

_BACKENDS: dict[str, type] = {}
_active_backend: ContextVar[str] = ContextVar("classicml_backend", default=default_backend_name())


def register_backend(name, adapter):
    """Register a NumericArray adapter class under a backend name.

    Parameters
    ----------
    name : str
        Backend name (case-insensitive).
    adapter : type
        A concrete :class:`~classicml.linalg.base.NumericArray` subclass.
    """
    key = name.strip().lower()
    if not key:
        raise ValueError("backend name cannot be empty")
    _BACKENDS[key] = adapter


def list_backends():
    """Return the registered backend names in sorted order."""
    return tuple(sorted(_BACKENDS))


def set_backend(name):
    """Set the active array backend.

    Parameters
    ----------
    name : str
        Registered backend to activate, e.g. ``"numpy"`` or ``"dense"``.

    Raises
    ------
    ValueError
        If *name* is not a registered backend.
    """
    _active_backend.set(_validate_backend_name(name))


def get_backend_name():
    """Return the name of the active backend."""
    return _validate_backend_name(_active_backend.get())


def get_backend():
    """Return the active NumericArray adapter class.

    Returns
    -------
    type
        The adapter registered under the active backend name.
    """
    return _BACKENDS[get_backend_name()]


def resolve_backend(name=None):
    """Return the adapter class for *name*, or the active one when ``None``."""
    if name is None:
        return get_backend()
    return _BACKENDS[_validate_backend_name(name)]


@contextlib.contextmanager
def use_backend(name):
    """Context manager that temporarily activates a backend.

    The previous backend is restored when the context exits, even if an
    exception is raised. Each ``copy_context()`` snapshot inherits the
    value set here, so ``use_backend`` composes correctly with
    :func:`~classicml.core.parallel.parallel_map`.

    Parameters
    ----------
    name : str
        Backend to activate for the duration of the block.
    """
    token = _active_backend.set(_validate_backend_name(name))
    try:
        yield
    finally:
        _active_backend.reset(token)


def _validate_backend_name(name):
    """Validate and normalise a backend name.

    Parameters
    ----------
    name : str
        Backend name (case-insensitive).

    Returns
    -------
    str
        Normalised backend name.
    """
    if not isinstance(name, str):
        raise TypeError(f"backend name must be a string, got {type(name).__name__}.")
    key = name.strip().lower()
    if key not in _BACKENDS:
        available = ", ".join(repr(b) for b in sorted(_BACKENDS)) or "<none>"
        raise ValueError(f"Unknown backend {name!r}. Choose one of: {available}.")
    return key
