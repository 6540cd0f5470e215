"""Gaussian Naive Bayes."""

from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np

from classicml.core.config import GaussianNBConfig
from classicml.core.errors import NumericError
from classicml.linalg import to_numpy

from .base import BaseNB

__all__ = ["GaussianNB", "GaussianNBParams"]


class GaussianNBParams(NamedTuple):
    """Fitted Gaussian Naive Bayes parameters.

    Attributes
    ----------
    classes : ndarray
        Sorted class labels.
    class_count : ndarray
        Training samples per class.
    class_log_prior : ndarray
        Log prior probability per class.
    theta : ndarray
        Per-class feature means, shape (n_classes, n_features).
    var : ndarray
        Per-class feature variances including ``epsilon``.
    epsilon : float
        Variance floor added to every entry of ``var``.
    """

    classes: np.ndarray
    class_count: np.ndarray
    class_log_prior: np.ndarray
    theta: np.ndarray
    var: np.ndarray
    epsilon: float

    def to_dict(self):
        return {
            "classes": self.classes.tolist(),
            "class_count": self.class_count.tolist(),
            "class_log_prior": self.class_log_prior.tolist(),
            "theta": self.theta.tolist(),
            "var": self.var.tolist(),
            "epsilon": self.epsilon,
        }


class GaussianNB(BaseNB):
    r"""Naive Bayes with a normal likelihood per feature and class.

    .. math::

        \log P(x \mid c) = -\frac{1}{2} \sum_j \left[\log(2\pi\sigma_{cj}^2)
        + \frac{(x_j - \theta_{cj})^2}{\sigma_{cj}^2}\right]

    Parameters
    ----------
    priors : sequence of float, optional
        Class prior probabilities in sorted-label order. Estimated from class
        frequencies when omitted.
    var_smoothing : float, default=1e-9
        Fraction of the largest feature variance added to every variance.
    """

    def __init__(self, priors=None, var_smoothing=1e-9):
        super().__init__()
        self.config = GaussianNBConfig(priors=priors, var_smoothing=var_smoothing)
        self._inv_var = None
        self._scaled_theta = None
        self._const = None

    def _fit_classes(self, x, classes, members, class_count):
        if not x.is_finite():
            raise NumericError("GaussianNB cannot be fitted on NaN or infinite values.")
        max_var = x.var(axis=0).max()
        epsilon = self.config.var_smoothing * max_var
        theta_rows, var_rows = [], []
        for rows in members:
            xc = x.take(rows)
            theta_rows.append(xc.mean(axis=0))
            var_rows.append(xc.var(axis=0) + epsilon)
        adapter = type(x)
        theta = adapter.stack(theta_rows)
        var = adapter.stack(var_rows)
        if var.min() <= 0:
            raise NumericError(
                "A class has zero variance in some feature after smoothing (every feature constant, or var_smoothing=0)."
            )
        log_prior = self._class_log_prior(class_count)

        # Expanded square: (x - t)^2 / v = x^2 / v - 2 x t / v + t^2 / v
        self._inv_var = 1.0 / var
        self._scaled_theta = theta * self._inv_var
        norm = (var * (2.0 * math.pi)).log().sum(axis=1)
        quad = (theta * self._scaled_theta).sum(axis=1)
        self._const = to_numpy(adapter.from_flat(log_prior, len(classes)) - 0.5 * norm - 0.5 * quad)

        return GaussianNBParams(classes, class_count, log_prior, to_numpy(theta), to_numpy(var), float(epsilon))

    def _joint_log_likelihood(self, x):
        n = x.shape[0]
        adapter = type(x)
        inv_var = adapter.from_flat(self._inv_var.to_flat(), self._inv_var.shape)
        scaled_theta = adapter.from_flat(self._scaled_theta.to_flat(), self._scaled_theta.shape)
        jll = -0.5 * (x * x).matmul(inv_var.T) + x.matmul(scaled_theta.T)
        return jll + self._tile_rows(adapter, n, self._const.tolist())
