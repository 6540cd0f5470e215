"""Common fit/predict plumbing for classicml estimators."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from .errors import ShapeMismatch, UnfittedModelError


class BaseEstimator(ABC):
    """Abstract base class for estimators with a ``fit``/``predict`` protocol.

    Subclasses store their hyper-parameters in a config dataclass under
    ``self.config`` and set ``self._fitted = True`` at the end of ``fit``.
    Inputs seen by ``fit`` fix the backend and the feature count that later
    ``predict`` calls are checked against.
    """

    config = None

    def __init__(self):
        self._fitted = False
        self._params = None
        self.backend_ = None
        self.n_features_ = None

    @abstractmethod
    def fit(self, x, y=None):
        """Fit the estimator and return ``self``."""

    @abstractmethod
    def predict(self, x):
        """Predict one label per row of *x*."""

    @property
    def is_fitted(self):
        return self._fitted

    @property
    def fitted_(self):
        """Fitted parameters as a NamedTuple.

        Raises
        ------
        UnfittedModelError
            If the estimator has not been fitted.
        """
        self._check_is_fitted()
        return self._params

    def get_params(self):
        """Return the estimator's hyper-parameters as a dictionary."""
        return {} if self.config is None else self.config.to_dict()

    def _check_is_fitted(self):
        if not self._fitted:
            raise UnfittedModelError(
                f"This {type(self).__name__} instance is not fitted yet. Call 'fit' before using this estimator."
            )

    def _validate_x(self, x, backend=None):
        from classicml.linalg import asarray

        x = asarray(x, backend=backend)
        if x.ndim != 2:
            raise ShapeMismatch(f"Expected a 2-D array of shape (n_samples, n_features), got shape {x.shape}.")
        if x.shape[0] == 0 or x.shape[1] == 0:
            raise ShapeMismatch(f"Expected at least one sample and one feature, got shape {x.shape}.")
        return x

    def _validate_xy(self, x, y):
        """Validate training inputs and record the backend and feature count."""
        x = self._validate_x(x)
        y = np.asarray(y)
        if y.ndim != 1:
            raise ShapeMismatch(f"Labels must be 1-D, got shape {y.shape}.")
        if y.shape[0] != x.shape[0]:
            raise ShapeMismatch(f"x has {x.shape[0]} rows but y has {y.shape[0]} labels.")
        self.backend_ = x.backend_name
        self.n_features_ = x.shape[1]
        return x, y

    def _validate_predict_x(self, x):
        """Validate prediction input against the fitted feature count.

        A single 1-D sample is promoted to one row.
        """
        self._check_is_fitted()
        from classicml.linalg import asarray

        x = asarray(x, backend=self.backend_)
        if x.ndim == 1:
            x = x.reshape(1, x.shape[0])
        x = self._validate_x(x)
        if x.shape[1] != self.n_features_:
            raise ShapeMismatch(f"x has {x.shape[1]} features, but {type(self).__name__} was fitted with {self.n_features_}.")
        return x
