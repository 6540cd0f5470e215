"""Tests for the k-nearest-neighbour classifier."""

import numpy as np
import pytest

from classicml.core.errors import ShapeMismatch, UnfittedModelError
from classicml.linalg import array
from classicml.neighbors import KNNClassifier, KNNFitted


class TestKNNClassifier:
    def test_two_blobs(self, backend, two_blobs):
        x, y = two_blobs
        model = KNNClassifier(k=3).fit(array(x, backend=backend), y)
        np.testing.assert_array_equal(model.predict([[0.5, 0.5], [9.5, 9.5]]), [0, 1])
        np.testing.assert_array_equal(model.predict(x), y)

    def test_string_labels(self, two_blobs):
        x, y = two_blobs
        labels = np.where(y == 0, "A", "B")
        model = KNNClassifier(k=5).fit(x, labels)
        assert model.predict([[0.5, 0.5]])[0] == "A"
        assert model.predict([[9.5, 9.5]])[0] == "B"

    def test_vote_tie_goes_to_lowest_label(self):
        x = [[0.0], [2.0]]
        model = KNNClassifier(k=2).fit(x, [7, 3])
        assert model.predict([[1.0]])[0] == 3

    def test_distance_weights(self):
        x = [[0.0], [1.0], [1.1]]
        y = [0, 1, 1]
        uniform = KNNClassifier(k=3).fit(x, y)
        weighted = KNNClassifier(k=3, weights="distance").fit(x, y)
        assert uniform.predict([[0.05]])[0] == 1
        assert weighted.predict([[0.05]])[0] == 0

    def test_exact_match_takes_vote(self):
        model = KNNClassifier(k=3, weights="distance").fit([[0.0], [1.0], [1.1]], [0, 1, 1])
        np.testing.assert_allclose(model.predict_proba([[0.0]]), [[1.0, 0.0]])

    def test_predict_proba_rows_sum_to_one(self, two_blobs):
        x, y = two_blobs
        proba = KNNClassifier(k=4).fit(x, y).predict_proba(x[:5])
        np.testing.assert_allclose(proba.sum(axis=1), 1.0)

    def test_parallel_matches_sequential(self, two_blobs):
        x, y = two_blobs
        seq = KNNClassifier(k=3).fit(x, y).predict(x)
        par = KNNClassifier(k=3, n_jobs=2).fit(x, y).predict(x)
        np.testing.assert_array_equal(seq, par)

    def test_cover_tree_matches_linear(self, backend, rng):
        x = rng.normal(size=(40, 3))
        y = rng.integers(0, 3, size=40)
        q = rng.normal(size=(8, 3))
        linear = KNNClassifier(k=5).fit(array(x, backend=backend), y)
        tree = KNNClassifier(k=5, algorithm="cover_tree").fit(array(x, backend=backend), y)
        np.testing.assert_array_equal(tree.kneighbors(q)[0], linear.kneighbors(q)[0])
        np.testing.assert_array_equal(tree.predict(q), linear.predict(q))
        assert tree.get_params()["algorithm"] == "cover_tree"

    def test_kneighbors(self):
        model = KNNClassifier(k=2).fit([[0.0], [1.0], [5.0]], [0, 0, 1])
        idx, dist = model.kneighbors([[0.9]])
        np.testing.assert_array_equal(idx, [[1, 0]])
        np.testing.assert_allclose(dist, [[0.1, 0.9]])

    def test_fitted_params(self, two_blobs):
        x, y = two_blobs
        model = KNNClassifier().fit(x, y)
        assert isinstance(model.fitted_, KNNFitted)
        assert model.fitted_.to_dict()["classes"] == [0, 1]
        assert model.get_params()["weights"] == "uniform"

    def test_predict_before_fit(self):
        with pytest.raises(UnfittedModelError):
            KNNClassifier().predict([[0.0]])

    def test_label_length_mismatch(self):
        with pytest.raises(ShapeMismatch):
            KNNClassifier(k=1).fit([[0.0], [1.0]], [0])

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            KNNClassifier(k=0)
        with pytest.raises(ValueError):
            KNNClassifier(weights="cosine")
        with pytest.raises(ValueError):
            KNNClassifier(algorithm="kd_tree")

    def test_k_larger_than_training_set(self):
        with pytest.raises(ValueError):
            KNNClassifier(k=5).fit([[0.0], [1.0]], [0, 1])
