"""Configuration classes for estimators."""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_BACKEND = "numpy"
BACKEND_ENV_VAR = "CLASSICML_BACKEND"

DEFAULT_ALPHA = 1.0
DEFAULT_VAR_SMOOTHING = 1e-9
DEFAULT_BINARIZE = 0.0
DEFAULT_MAX_ITER = 100
DEFAULT_N_NEIGHBORS = 3
DEFAULT_METRIC = "euclidean"
DEFAULT_MIN_SAMPLES_LEAF = 1
DEFAULT_MIN_SAMPLES_SPLIT = 2


class KNNWeights(str, Enum):
    """Vote weighting for nearest-neighbour classification."""

    UNIFORM = "uniform"
    DISTANCE = "distance"


class KNNAlgorithm(str, Enum):
    """Neighbour search structure used by nearest-neighbour estimators."""

    LINEAR = "linear"
    COVER_TREE = "cover_tree"


def default_backend_name():
    """Return the backend named by ``CLASSICML_BACKEND``, or ``"numpy"``."""
    name = os.environ.get(BACKEND_ENV_VAR, "").strip().lower()
    return name or DEFAULT_BACKEND


def _validate_priors(priors):
    if priors is None:
        return None
    priors = [float(p) for p in priors]
    if any(p < 0 for p in priors):
        raise ValueError("priors must be non-negative.")
    if abs(sum(priors) - 1.0) > 1e-8:
        raise ValueError(f"priors must sum to 1, got {sum(priors):.6f}.")
    return priors


@dataclass
class BaseConfig:
    """Base estimator config."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {k: v.value if isinstance(v, Enum) else v for k, v in self.__dict__.items()}


@dataclass
class GaussianNBConfig(BaseConfig):
    """Gaussian Naive Bayes config."""

    priors: list[float] | None = None
    var_smoothing: float = DEFAULT_VAR_SMOOTHING

    def __post_init__(self):
        self.priors = _validate_priors(self.priors)
        if self.var_smoothing < 0:
            raise ValueError("var_smoothing must be non-negative.")


@dataclass
class MultinomialNBConfig(BaseConfig):
    """Multinomial Naive Bayes config."""

    alpha: float = DEFAULT_ALPHA
    fit_prior: bool = True
    priors: list[float] | None = None

    def __post_init__(self):
        if not self.alpha > 0:
            raise ValueError(f"alpha must be positive, got {self.alpha}.")
        self.priors = _validate_priors(self.priors)


@dataclass
class BernoulliNBConfig(MultinomialNBConfig):
    """Bernoulli Naive Bayes config."""

    binarize: float | None = DEFAULT_BINARIZE


@dataclass
class KMeansConfig(BaseConfig):
    """K-Means config."""

    k: int = 2
    max_iter: int = DEFAULT_MAX_ITER
    random_state: int | None = None

    def __post_init__(self):
        if not isinstance(self.k, int) or self.k < 2:
            raise ValueError(f"Invalid number of clusters: {self.k}")
        if not isinstance(self.max_iter, int) or self.max_iter <= 0:
            raise ValueError(f"Invalid maximum number of iterations: {self.max_iter}")


@dataclass
class AgglomerativeConfig(BaseConfig):
    """Agglomerative clustering config."""

    n_clusters: int = 2
    metric: str = DEFAULT_METRIC
    metric_params: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.n_clusters, int) or self.n_clusters < 1:
            raise ValueError(f"n_clusters must be a positive integer, got {self.n_clusters}.")


@dataclass
class KNNConfig(BaseConfig):
    """k-nearest-neighbours classifier config."""

    k: int = DEFAULT_N_NEIGHBORS
    metric: str = DEFAULT_METRIC
    weights: KNNWeights = KNNWeights.UNIFORM
    algorithm: KNNAlgorithm = KNNAlgorithm.LINEAR
    n_jobs: int = 1
    metric_params: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.k, int) or self.k < 1:
            raise ValueError(f"k must be a positive integer, got {self.k}.")
        self.weights = KNNWeights(self.weights)
        self.algorithm = KNNAlgorithm(self.algorithm)


@dataclass
class DecisionTreeConfig(BaseConfig):
    """Decision tree regressor config."""

    max_depth: int | None = None
    min_samples_leaf: int = DEFAULT_MIN_SAMPLES_LEAF
    min_samples_split: int = DEFAULT_MIN_SAMPLES_SPLIT

    def __post_init__(self):
        if self.max_depth is not None and (not isinstance(self.max_depth, int) or self.max_depth < 1):
            raise ValueError(f"max_depth must be None or a positive integer, got {self.max_depth}.")
        if not isinstance(self.min_samples_leaf, int) or self.min_samples_leaf < 1:
            raise ValueError(f"min_samples_leaf must be a positive integer, got {self.min_samples_leaf}.")
        if not isinstance(self.min_samples_split, int) or self.min_samples_split < 2:
            raise ValueError(f"min_samples_split must be an integer >= 2, got {self.min_samples_split}.")
