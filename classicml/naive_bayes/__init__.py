"""Naive Bayes classifiers."""

from .base import BaseNB
from .format import format_discrete_nb, format_gaussian_nb
from .gaussian import GaussianNB, GaussianNBParams
from .multinomial import BernoulliNB, DiscreteNBParams, MultinomialNB

__all__ = [
    "BaseNB",
    "BernoulliNB",
    "DiscreteNBParams",
    "GaussianNB",
    "GaussianNBParams",
    "MultinomialNB",
    "format_discrete_nb",
    "format_gaussian_nb",
]
