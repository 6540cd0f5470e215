"""Shared Naive Bayes machinery."""

from __future__ import annotations

import logging
import math
from abc import abstractmethod

import numpy as np
from scipy.special import logsumexp

from classicml.core.errors import NumericError
from classicml.core.estimator import BaseEstimator
from classicml.linalg import to_numpy

log = logging.getLogger(__name__)


class BaseNB(BaseEstimator):
    """Naive Bayes classifier over sorted class labels.

    Subclasses estimate per-class statistics in :meth:`_fit_classes` and
    score samples in :meth:`_joint_log_likelihood`.
    """

    def fit(self, x, y=None):
        """Estimate class priors and per-class feature statistics.

        Parameters
        ----------
        x : NumericArray or array_like
            Training samples, shape (n_samples, n_features).
        y : array_like
            Class label per sample.

        Returns
        -------
        self
        """
        if y is None:
            raise ValueError(f"{type(self).__name__}.fit() requires labels y.")
        x, y = self._validate_xy(x, y)
        classes, codes = np.unique(y, return_inverse=True)
        members = [np.flatnonzero(codes == c).tolist() for c in range(len(classes))]
        class_count = np.array([len(m) for m in members], dtype=np.float64)
        self._params = self._fit_classes(x, classes, members, class_count)
        self._fitted = True
        log.debug("Fitted %s on %d samples, %d classes", type(self).__name__, x.shape[0], len(classes))
        return self

    @abstractmethod
    def _fit_classes(self, x, classes, members, class_count):
        """Return the fitted-parameter NamedTuple."""

    @abstractmethod
    def _joint_log_likelihood(self, x):
        """Return ``log P(c) + log P(x | c)`` as an (n_samples, n_classes) NumericArray."""

    def _class_log_prior(self, class_count, fit_prior=True):
        priors = self.config.priors
        n_classes = len(class_count)
        if priors is not None:
            if len(priors) != n_classes:
                raise ValueError(f"Number of priors ({len(priors)}) must match number of classes ({n_classes}).")
            with np.errstate(divide="ignore"):
                return np.log(np.asarray(priors, dtype=np.float64))
        if not fit_prior:
            return np.full(n_classes, -np.log(n_classes))
        return np.log(class_count) - np.log(class_count.sum())

    @staticmethod
    def _tile_rows(adapter, n, vector):
        """Repeat a 1-D vector as the rows of an (n, len(vector)) array."""
        row = adapter.from_flat(vector, (1, len(vector)))
        return adapter.ones((n, 1)).matmul(row)

    def joint_log_likelihood(self, x):
        """Unnormalized log-posterior of each class for each row of *x*.

        Returns
        -------
        NumericArray
            Array of shape (n_samples, n_classes), columns ordered as
            ``fitted_.classes``.

        Raises
        ------
        NumericError
            If any score is NaN. A class with zero prior scores ``-inf``.
        """
        x = self._validate_predict_x(x)
        jll = self._joint_log_likelihood(x)
        if any(math.isnan(v) for v in jll.to_flat()):
            raise NumericError("Joint log-likelihood is NaN; check the input for NaN or infinite values.")
        return jll

    def predict(self, x):
        """Return the most probable class per row; ties go to the lowest label."""
        jll = self.joint_log_likelihood(x)
        return self._params.classes[np.asarray(jll.argmax(axis=1), dtype=np.intp)]

    def predict_log_proba(self, x):
        """Return normalized log-probabilities of shape (n_samples, n_classes)."""
        jll = to_numpy(self.joint_log_likelihood(x))
        return jll - logsumexp(jll, axis=1, keepdims=True)

    def predict_proba(self, x):
        """Return class probabilities of shape (n_samples, n_classes)."""
        return np.exp(self.predict_log_proba(x))
