"""Core utilities shared by classicml components."""

from classicml.core.backend import (
    get_backend,
    get_backend_name,
    list_backends,
    register_backend,
    resolve_backend,
    set_backend,
    use_backend,
)
from classicml.core.config import (
    AgglomerativeConfig,
    BaseConfig,
    BernoulliNBConfig,
    DecisionTreeConfig,
    GaussianNBConfig,
    KMeansConfig,
    KNNAlgorithm,
    KNNConfig,
    KNNWeights,
    MultinomialNBConfig,
)
from classicml.core.errors import (
    ClassicMLError,
    InsufficientPoints,
    NumericError,
    ShapeMismatch,
    UnfittedModelError,
    UnsupportedMetric,
)
from classicml.core.estimator import BaseEstimator
from classicml.core.parallel import parallel_map

__all__ = [
    "AgglomerativeConfig",
    "BaseConfig",
    "BaseEstimator",
    "BernoulliNBConfig",
    "ClassicMLError",
    "DecisionTreeConfig",
    "GaussianNBConfig",
    "InsufficientPoints",
    "KMeansConfig",
    "KNNAlgorithm",
    "KNNConfig",
    "KNNWeights",
    "MultinomialNBConfig",
    "NumericError",
    "ShapeMismatch",
    "UnfittedModelError",
    "UnsupportedMetric",
    "get_backend",
    "get_backend_name",
    "list_backends",
    "parallel_map",
    "register_backend",
    "resolve_backend",
    "set_backend",
    "use_backend",
]
