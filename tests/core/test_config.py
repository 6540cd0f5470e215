"""Tests for configuration dataclasses, errors, and the estimator base class."""

import numpy as np
import pytest

from classicml.core.config import (
    BACKEND_ENV_VAR,
    AgglomerativeConfig,
    BernoulliNBConfig,
    DecisionTreeConfig,
    GaussianNBConfig,
    KMeansConfig,
    KNNAlgorithm,
    KNNConfig,
    KNNWeights,
    MultinomialNBConfig,
    default_backend_name,
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


class TestConfigs:
    def test_defaults(self):
        assert GaussianNBConfig().var_smoothing == 1e-9
        assert MultinomialNBConfig().alpha == 1.0
        assert BernoulliNBConfig().binarize == 0.0
        assert KMeansConfig().max_iter == 100
        assert KNNConfig().k == 3
        assert AgglomerativeConfig().metric == "euclidean"
        assert KNNConfig().algorithm is KNNAlgorithm.LINEAR
        assert DecisionTreeConfig().to_dict() == {"max_depth": None, "min_samples_leaf": 1, "min_samples_split": 2}

    def test_to_dict_unwraps_enums(self):
        d = KNNConfig(weights="distance").to_dict()
        assert d["weights"] == "distance"
        assert KNNConfig(weights="distance").weights is KNNWeights.DISTANCE

    def test_negative_var_smoothing(self):
        with pytest.raises(ValueError):
            GaussianNBConfig(var_smoothing=-1.0)

    def test_kmeans_messages(self):
        with pytest.raises(ValueError, match="Invalid number of clusters: 1"):
            KMeansConfig(k=1)
        with pytest.raises(ValueError, match="Invalid maximum number of iterations: 0"):
            KMeansConfig(max_iter=0)

    @pytest.mark.parametrize(
        "kwargs", [{"max_depth": 0}, {"max_depth": 2.5}, {"min_samples_leaf": 0}, {"min_samples_split": 1}]
    )
    def test_invalid_tree_config(self, kwargs):
        with pytest.raises(ValueError):
            DecisionTreeConfig(**kwargs)

    def test_priors_normalised_to_floats(self):
        assert GaussianNBConfig(priors=(1, 0)).priors == [1.0, 0.0]


class TestDefaultBackend:
    def test_env_var(self, monkeypatch):
        monkeypatch.setenv(BACKEND_ENV_VAR, " Dense ")
        assert default_backend_name() == "dense"

    def test_fallback(self, monkeypatch):
        monkeypatch.delenv(BACKEND_ENV_VAR, raising=False)
        assert default_backend_name() == "numpy"


class TestErrors:
    @pytest.mark.parametrize(
        "exc, base",
        [
            (ShapeMismatch, ValueError),
            (UnsupportedMetric, ValueError),
            (NumericError, ArithmeticError),
            (UnfittedModelError, RuntimeError),
            (InsufficientPoints, ClassicMLError),
        ],
    )
    def test_hierarchy(self, exc, base):
        assert issubclass(exc, ClassicMLError)
        assert issubclass(exc, base)


class _MeanModel(BaseEstimator):
    def fit(self, x, y=None):
        x, y = self._validate_xy(x, y)
        self._params = float(np.mean(y))
        self._fitted = True
        return self

    def predict(self, x):
        x = self._validate_predict_x(x)
        return np.full(x.shape[0], self._params)


class TestBaseEstimator:
    def test_unfitted(self):
        model = _MeanModel()
        assert not model.is_fitted
        with pytest.raises(UnfittedModelError, match="not fitted yet"):
            model.predict([[1.0]])
        with pytest.raises(UnfittedModelError):
            _ = model.fitted_

    def test_fit_records_backend_and_features(self, backend):
        from classicml.linalg import array

        model = _MeanModel().fit(array([[1.0, 2.0], [3.0, 4.0]], backend=backend), [1, 3])
        assert model.backend_ == backend
        assert model.n_features_ == 2
        assert model.fitted_ == 2.0
        np.testing.assert_array_equal(model.predict([1.0, 1.0]), [2.0])

    def test_rejects_bad_shapes(self):
        with pytest.raises(ShapeMismatch):
            _MeanModel().fit([1.0, 2.0], [1, 2])
        with pytest.raises(ShapeMismatch):
            _MeanModel().fit([[1.0], [2.0]], [[1], [2]])
        with pytest.raises(ShapeMismatch):
            _MeanModel().fit(np.empty((0, 2)), [])

    def test_get_params_without_config(self):
        assert _MeanModel().get_params() == {}
