"""Count-based Naive Bayes variants."""

from __future__ import annotations

import operator
from typing import NamedTuple

import numpy as np

from classicml.core.config import BernoulliNBConfig, MultinomialNBConfig
from classicml.linalg import ScalarOp, to_numpy

from .base import BaseNB

__all__ = ["BernoulliNB", "DiscreteNBParams", "MultinomialNB"]


class DiscreteNBParams(NamedTuple):
    """Fitted parameters of a count-based Naive Bayes model."""

    classes: np.ndarray
    class_count: np.ndarray
    class_log_prior: np.ndarray
    feature_count: np.ndarray
    feature_log_prob: np.ndarray
    alpha: float

    def to_dict(self):
        return {
            "classes": self.classes.tolist(),
            "class_count": self.class_count.tolist(),
            "class_log_prior": self.class_log_prior.tolist(),
            "feature_count": self.feature_count.tolist(),
            "feature_log_prob": self.feature_log_prob.tolist(),
            "alpha": self.alpha,
        }


class MultinomialNB(BaseNB):
    r"""Naive Bayes for non-negative count features.

    Feature probabilities are Laplace smoothed:

    .. math::

        \hat\theta_{cj} = \frac{N_{cj} + \alpha}{N_c + \alpha d}

    Parameters
    ----------
    alpha : float, default=1.0
        Additive smoothing, must be positive.
    fit_prior : bool, default=True
        Learn class priors from frequencies; otherwise use a uniform prior.
    priors : sequence of float, optional
        Explicit class priors, overriding ``fit_prior``.
    """

    def __init__(self, alpha=1.0, fit_prior=True, priors=None):
        super().__init__()
        self.config = MultinomialNBConfig(alpha=alpha, fit_prior=fit_prior, priors=priors)
        self._flp = None

    def _prepare(self, x):
        if x.size and x.min() < 0:
            raise ValueError(f"Negative values in data passed to {type(self).__name__}.")
        return x

    def _fit_classes(self, x, classes, members, class_count):
        x = self._prepare(x)
        adapter = type(x)
        feature_count = adapter.stack([x.take(rows).sum(axis=0) for rows in members])
        flp = self._feature_log_prob(adapter, feature_count, class_count)
        self._flp = flp
        log_prior = self._class_log_prior(class_count, self.config.fit_prior)
        return DiscreteNBParams(
            classes, class_count, log_prior, to_numpy(feature_count), to_numpy(flp), float(self.config.alpha)
        )

    def _feature_log_prob(self, adapter, feature_count, class_count):
        alpha = self.config.alpha
        d = feature_count.shape[1]
        smoothed = feature_count + alpha
        totals = smoothed.sum(axis=1)
        denom = totals.reshape(len(class_count), 1).matmul(adapter.ones((1, d)))
        return smoothed.log() - denom.log()

    def _joint_log_likelihood(self, x):
        x = self._prepare(x)
        adapter = type(x)
        flp = adapter.from_flat(self._flp.to_flat(), self._flp.shape)
        return x.matmul(flp.T) + self._tile_rows(adapter, x.shape[0], self._params.class_log_prior.tolist())


class BernoulliNB(MultinomialNB):
    r"""Naive Bayes for binary features.

    Each feature is a Bernoulli variable with

    .. math::

        \hat p_{cj} = \frac{N_{cj} + \alpha}{N_c + 2\alpha}

    and absent features contribute :math:`\log(1 - \hat p_{cj})`.

    Parameters
    ----------
    alpha : float, default=1.0
        Additive smoothing, must be positive.
    binarize : float or None, default=0.0
        Threshold above which a feature counts as present. ``None`` assumes
        the input is already binary.
    fit_prior : bool, default=True
        Learn class priors from frequencies.
    priors : sequence of float, optional
        Explicit class priors.
    """

    def __init__(self, alpha=1.0, binarize=0.0, fit_prior=True, priors=None):
        BaseNB.__init__(self)
        self.config = BernoulliNBConfig(alpha=alpha, fit_prior=fit_prior, priors=priors, binarize=binarize)
        self._flp = None
        self._neg_flp = None

    def _prepare(self, x):
        if self.config.binarize is not None:
            return x.map(ScalarOp(operator.gt, self.config.binarize))
        return super()._prepare(x)

    def _feature_log_prob(self, adapter, feature_count, class_count):
        alpha = self.config.alpha
        d = feature_count.shape[1]
        denom = adapter.from_flat(class_count + 2.0 * alpha, (len(class_count), 1)).matmul(adapter.ones((1, d)))
        p = (feature_count + alpha) / denom
        self._neg_flp = (1.0 - p).log()
        return p.log()

    def _joint_log_likelihood(self, x):
        x = self._prepare(x)
        adapter = type(x)
        n = x.shape[0]
        flp = adapter.from_flat(self._flp.to_flat(), self._flp.shape)
        neg = adapter.from_flat(self._neg_flp.to_flat(), self._neg_flp.shape)
        # x log p + (1 - x) log(1 - p) = x (log p - log(1 - p)) + sum log(1 - p)
        jll = x.matmul((flp - neg).T)
        const = self._params.class_log_prior + to_numpy(neg).sum(axis=1)
        return jll + self._tile_rows(adapter, n, np.asarray(const).tolist())
