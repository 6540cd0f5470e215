"""classicml: classic machine-learning algorithms over interchangeable numeric backends."""

from classicml.linalg import (
    QR,
    DenseArray,
    NumericArray,
    NumpyArray,
    array,
    asarray,
    from_native,
    qr,
    qr_solve,
    to_backend,
    to_native,
    to_numpy,
)
from classicml.core import (
    ClassicMLError,
    InsufficientPoints,
    NumericError,
    ShapeMismatch,
    UnfittedModelError,
    UnsupportedMetric,
    get_backend,
    get_backend_name,
    list_backends,
    register_backend,
    set_backend,
    use_backend,
)
from classicml.distance import distance, euclidean_distances, get_metric, pairwise_distances, register_metric
from classicml.neighbors import CoverTree, FastPair, KNNClassifier, LinearKNNSearch, MergeRecord
from classicml.cluster import (
    AgglomerativeClustering,
    AgglomerativeResult,
    KMeans,
    KMeansResult,
    agglomerative_clustering,
)
from classicml.naive_bayes import BernoulliNB, GaussianNB, MultinomialNB
from classicml.tree import DecisionTreeRegressor

__version__ = "0.1.0"

__all__ = [
    "AgglomerativeClustering",
    "AgglomerativeResult",
    "BernoulliNB",
    "ClassicMLError",
    "CoverTree",
    "DecisionTreeRegressor",
    "DenseArray",
    "FastPair",
    "GaussianNB",
    "InsufficientPoints",
    "KMeans",
    "KMeansResult",
    "KNNClassifier",
    "LinearKNNSearch",
    "MergeRecord",
    "MultinomialNB",
    "NumericArray",
    "NumericError",
    "NumpyArray",
    "QR",
    "ShapeMismatch",
    "UnfittedModelError",
    "UnsupportedMetric",
    "agglomerative_clustering",
    "array",
    "asarray",
    "distance",
    "euclidean_distances",
    "from_native",
    "get_backend",
    "get_backend_name",
    "get_metric",
    "list_backends",
    "pairwise_distances",
    "qr",
    "qr_solve",
    "register_backend",
    "register_metric",
    "set_backend",
    "to_backend",
    "to_native",
    "to_numpy",
    "use_backend",
]
