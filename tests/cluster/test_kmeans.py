"""Tests for K-Means."""

import warnings

import numpy as np
import pytest

from classicml.cluster import KMeans, KMeansResult, kmeans_plus_plus
from classicml.core.errors import NumericError, ShapeMismatch, UnfittedModelError
from classicml.linalg import array

IRIS_HEAD = np.array(
    [
        [5.1, 3.5, 1.4, 0.2],
        [4.9, 3.0, 1.4, 0.2],
        [4.7, 3.2, 1.3, 0.2],
        [4.6, 3.1, 1.5, 0.2],
        [5.0, 3.6, 1.4, 0.2],
        [7.0, 3.2, 4.7, 1.4],
        [6.4, 3.2, 4.5, 1.5],
        [6.9, 3.1, 4.9, 1.5],
        [5.5, 2.3, 4.0, 1.3],
        [6.5, 2.8, 4.6, 1.5],
    ]
)


class TestFit:
    def test_separates_blobs(self, backend, two_blobs):
        x, y = two_blobs
        model = KMeans(k=2, random_state=0).fit(array(x, backend=backend))
        labels = model.labels_
        # Cluster numbering is arbitrary; the partition must match.
        assert len(set(zip(labels.tolist(), y.tolist(), strict=True))) == 2
        assert sorted(model.fitted_.sizes.tolist()) == [20, 20]

    def test_iris_head_partition(self):
        model = KMeans(k=2, random_state=42).fit(IRIS_HEAD)
        labels = model.labels_
        assert len(set(labels[:5].tolist())) == 1
        assert len(set(labels[5:].tolist())) == 1
        assert labels[0] != labels[5]

    def test_distortion_matches_labels(self, two_blobs):
        x, _ = two_blobs
        result = KMeans(k=2, random_state=1).fit(x).fitted_
        expected = sum(float(np.sum((x[i] - result.centroids[c]) ** 2)) for i, c in enumerate(result.labels))
        assert result.distortion == pytest.approx(expected)

    def test_reproducible_with_seed(self, rng):
        x = rng.normal(size=(60, 3))
        a = KMeans(k=4, random_state=7).fit(x).fitted_
        b = KMeans(k=4, random_state=7).fit(x).fitted_
        np.testing.assert_array_equal(a.labels, b.labels)
        np.testing.assert_allclose(a.centroids, b.centroids)

    def test_backends_agree(self, two_blobs):
        x, _ = two_blobs
        a = KMeans(k=2, random_state=3).fit(array(x, backend="numpy")).fitted_
        b = KMeans(k=2, random_state=3).fit(array(x, backend="dense")).fitted_
        np.testing.assert_array_equal(a.labels, b.labels)
        np.testing.assert_allclose(a.centroids, b.centroids)

    def test_max_iter_warning(self, rng):
        x = rng.normal(size=(200, 2))
        with pytest.warns(UserWarning, match="did not converge"):
            KMeans(k=5, max_iter=1, random_state=0).fit(x)

    def test_converged_run_does_not_warn(self, two_blobs):
        x, _ = two_blobs
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            KMeans(k=2, random_state=0).fit(x)

    def test_result_to_dict_and_repr(self, two_blobs):
        x, _ = two_blobs
        result = KMeans(k=2, random_state=0).fit(x).fitted_
        assert isinstance(result, KMeansResult)
        d = result.to_dict()
        assert set(d) == {"centroids", "labels", "sizes", "distortion", "n_iter"}
        assert "K-Means Clustering" in repr(result)

    def test_identical_points(self):
        x = np.ones((5, 2))
        result = KMeans(k=2, random_state=0).fit(x).fitted_
        assert result.distortion == 0.0


class TestPredict:
    def test_assigns_nearest_centroid(self, two_blobs):
        x, _ = two_blobs
        model = KMeans(k=2, random_state=0).fit(x)
        low, high = model.predict([[0.5, 0.5], [9.5, 9.5]])
        assert low != high
        assert low == model.labels_[0]
        assert high == model.labels_[-1]

    def test_predict_before_fit(self):
        with pytest.raises(UnfittedModelError):
            KMeans().predict([[0.0, 0.0]])

    def test_feature_mismatch(self, two_blobs):
        x, _ = two_blobs
        model = KMeans(k=2, random_state=0).fit(x)
        with pytest.raises(ShapeMismatch):
            model.predict([[0.0]])


class TestValidation:
    @pytest.mark.parametrize("k", [0, 1])
    def test_invalid_k(self, k):
        with pytest.raises(ValueError, match="Invalid number of clusters"):
            KMeans(k=k)

    def test_invalid_max_iter(self):
        with pytest.raises(ValueError, match="Invalid maximum number of iterations"):
            KMeans(max_iter=0)

    def test_k_larger_than_n(self):
        with pytest.raises(ValueError):
            KMeans(k=5).fit(np.ones((3, 2)))

    def test_non_finite_input(self):
        with pytest.raises(NumericError):
            KMeans(k=2).fit([[0.0, 1.0], [np.nan, 2.0], [3.0, 3.0]])


def test_kmeans_plus_plus_returns_distinct_seeds(two_blobs):
    x, _ = two_blobs
    seeds = kmeans_plus_plus(array(x), 2, np.random.default_rng(0))
    assert len(seeds) == 2
    # The second seed is drawn from the opposite blob with overwhelming probability.
    assert (seeds[0] < 20) != (seeds[1] < 20)
