"""Householder QR decomposition on NumericArray matrices."""

from __future__ import annotations

import math
import sys

from classicml.core.errors import NumericError, ShapeMismatch

from .construct import asarray

__all__ = ["QR", "qr", "qr_solve"]

_EPS = sys.float_info.epsilon


class QR:
    r"""Compact Householder QR factorization :math:`A = QR` of an (m, n) matrix, m >= n.

    The reflector vectors are stored below and on the diagonal of the packed
    factor; the diagonal of :math:`R` is kept separately.

    Parameters
    ----------
    packed : list of list of float
        Reflectors and the strict upper triangle of :math:`R`.
    r_diagonal : list of float
        Diagonal of :math:`R`.
    adapter : type
        NumericArray class used for the returned factors.

    Attributes
    ----------
    singular : bool
        True when a column is linearly dependent on the previous ones, so a
        diagonal entry of :math:`R` is zero relative to the largest one.
    """

    def __init__(self, packed, r_diagonal, adapter):
        self._packed = packed
        self._r_diagonal = r_diagonal
        self._adapter = adapter
        # Same relative cutoff as numpy.linalg.matrix_rank.
        scale = max((abs(t) for t in r_diagonal), default=0.0)
        tol = scale * max(len(packed), len(r_diagonal)) * _EPS
        self.singular = any(abs(t) <= tol for t in r_diagonal)

    @property
    def shape(self):
        return len(self._packed), len(self._r_diagonal)

    @property
    def R(self):  # noqa: N802
        """Upper-triangular factor of shape (n, n)."""
        _, n = self.shape
        values = []
        for i in range(n):
            values.extend(0.0 for _ in range(i))
            values.append(self._r_diagonal[i])
            values.extend(self._packed[i][j] for j in range(i + 1, n))
        return self._adapter.from_flat(values, (n, n))

    @property
    def Q(self):  # noqa: N802
        """Factor of shape (m, n) with orthonormal columns."""
        m, n = self.shape
        a = self._packed
        q = [[0.0] * n for _ in range(m)]
        for k in range(n - 1, -1, -1):
            q[k][k] = 1.0
            if a[k][k] == 0:
                continue
            for j in range(k, n):
                s = -math.fsum(a[i][k] * q[i][j] for i in range(k, m)) / a[k][k]
                for i in range(k, m):
                    q[i][j] += s * a[i][k]
        return self._adapter.from_flat([v for row in q for v in row], (m, n))

    def solve(self, b):
        """Least-squares solution ``x`` of ``A x = b``.

        Parameters
        ----------
        b : NumericArray or array_like
            Right-hand side of shape (m,) or (m, k).

        Returns
        -------
        NumericArray
            Solution of shape (n,) or (n, k).

        Raises
        ------
        ShapeMismatch
            If *b* does not have ``m`` rows.
        NumericError
            If the matrix is rank deficient.
        """
        m, n = self.shape
        b = asarray(b, backend=self._adapter.backend_name)
        vector = b.ndim == 1
        if b.shape[0] != m:
            raise ShapeMismatch(f"Row dimensions do not agree: A is {m} x {n}, but b has shape {b.shape}.")
        if self.singular:
            raise NumericError("Matrix is rank deficient.")

        rhs = [[v] for v in b.to_flat()] if vector else b.to_list()
        n_rhs = len(rhs[0]) if rhs else 0
        a = self._packed
        # Apply Q^T, then back-substitute through R.
        for k in range(n):
            for j in range(n_rhs):
                s = -math.fsum(a[i][k] * rhs[i][j] for i in range(k, m)) / a[k][k]
                for i in range(k, m):
                    rhs[i][j] += s * a[i][k]
        for k in range(n - 1, -1, -1):
            for j in range(n_rhs):
                rhs[k][j] /= self._r_diagonal[k]
            for i in range(k):
                for j in range(n_rhs):
                    rhs[i][j] -= rhs[k][j] * a[i][k]

        if vector:
            return self._adapter.from_flat([rhs[i][0] for i in range(n)], (n,))
        return self._adapter.from_flat([v for row in rhs[:n] for v in row], (n, n_rhs))


def qr(a):
    """Factor a 2-D array with Householder reflections.

    Parameters
    ----------
    a : NumericArray or array_like
        Matrix of shape (m, n) with ``m >= n``.

    Returns
    -------
    QR
        The factorization; the input is not modified.

    Examples
    --------
    >>> a = array([[0.9, 0.4, 0.7], [0.4, 0.5, 0.3], [0.7, 0.3, 0.8]])
    >>> f = qr(a)
    >>> f.Q.matmul(f.R).allclose(a)
    True
    """
    a = asarray(a)
    if a.ndim != 2:
        raise ShapeMismatch(f"qr() requires a 2-D array, got shape {a.shape}.")
    m, n = a.shape
    if m < n:
        raise ShapeMismatch(f"qr() requires at least as many rows as columns, got shape {a.shape}.")
    if not a.is_finite():
        raise NumericError("qr() input contains NaN or infinite values.")

    work = a.to_list()
    r_diagonal = [0.0] * n
    for k in range(n):
        nrm = 0.0
        for i in range(k, m):
            nrm = math.hypot(nrm, work[i][k])
        if abs(nrm) > _EPS:
            if work[k][k] < 0:
                nrm = -nrm
            for i in range(k, m):
                work[i][k] /= nrm
            work[k][k] += 1.0
            for j in range(k + 1, n):
                s = -math.fsum(work[i][k] * work[i][j] for i in range(k, m)) / work[k][k]
                for i in range(k, m):
                    work[i][j] += s * work[i][k]
        r_diagonal[k] = -nrm
    return QR(work, r_diagonal, type(a))


def qr_solve(a, b):
    """Solve ``a x = b`` in the least-squares sense through :func:`qr`."""
    return qr(a).solve(b)
