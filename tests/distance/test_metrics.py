"""Tests for distance metrics and distance matrices."""

import numpy as np
import pytest
from scipy.spatial import distance as sp_distance

from classicml.core.errors import ShapeMismatch, UnsupportedMetric
from classicml.distance import (
    distance,
    euclidean,
    euclidean_distances,
    get_metric,
    hamming,
    list_metrics,
    manhattan,
    minkowski,
    pairwise_distances,
    register_metric,
    squared_euclidean,
)
from classicml.linalg import array, to_numpy


class TestMetricValues:
    def test_minkowski_known_values(self, backend):
        a = array([1.0, 2.0, 3.0], backend=backend)
        b = array([4.0, 5.0, 6.0], backend=backend)
        assert minkowski(a, b, p=1) == pytest.approx(9.0)
        assert minkowski(a, b, p=2) == pytest.approx(5.19615242)
        assert minkowski(a, b, p=3) == pytest.approx(4.32674871)

    def test_euclidean(self, backend):
        a = array([1.0, 2.0, 3.0], backend=backend)
        b = array([4.0, 5.0, 6.0], backend=backend)
        assert euclidean(a, b) == pytest.approx(5.19615242)
        assert squared_euclidean(a, b) == pytest.approx(27.0)

    def test_manhattan_and_hamming(self, backend):
        a = array([1.0, 0.0, 1.0, 1.0], backend=backend)
        b = array([1.0, 1.0, 0.0, 1.0], backend=backend)
        assert manhattan(a, b) == 2.0
        assert hamming(a, b) == 0.5

    @pytest.mark.parametrize(
        "name, oracle",
        [
            ("euclidean", sp_distance.euclidean),
            ("manhattan", sp_distance.cityblock),
            ("hamming", sp_distance.hamming),
            ("squared_euclidean", sp_distance.sqeuclidean),
        ],
    )
    def test_against_scipy(self, backend, rng, name, oracle):
        for _ in range(5):
            u = rng.normal(size=7)
            v = rng.normal(size=7)
            got = distance(name, array(u, backend=backend), array(v, backend=backend))
            assert got == pytest.approx(oracle(u, v))

    def test_minkowski_against_scipy(self, rng):
        u = rng.normal(size=5)
        v = rng.normal(size=5)
        assert distance("minkowski", u, v, p=3) == pytest.approx(sp_distance.minkowski(u, v, p=3))


class TestMetricProperties:
    @pytest.mark.parametrize("name", ["euclidean", "manhattan", "minkowski", "hamming"])
    def test_symmetry_and_identity(self, rng, name):
        u = rng.normal(size=4)
        v = rng.normal(size=4)
        assert distance(name, u, v) == pytest.approx(distance(name, v, u))
        assert distance(name, u, u) == 0.0
        assert distance(name, u, v) >= 0.0

    def test_empty_vectors(self):
        a = array([], shape=(0,))
        assert manhattan(a, a) == 0.0
        assert squared_euclidean(a, a) == 0.0


class TestMetricErrors:
    def test_length_mismatch(self, backend):
        with pytest.raises(ShapeMismatch, match="sizes are different"):
            euclidean(array([1.0, 2.0], backend=backend), array([1.0, 2.0, 3.0], backend=backend))

    def test_non_vector(self):
        with pytest.raises(ShapeMismatch):
            euclidean([[1.0, 2.0]], [[1.0, 2.0]])

    def test_minkowski_p_below_one(self):
        with pytest.raises(ValueError, match="p must be at least 1"):
            minkowski([0.0], [1.0], p=0.5)
        with pytest.raises(ValueError, match="p must be at least 1"):
            get_metric("minkowski", p=0.5)

    def test_unknown_metric(self):
        with pytest.raises(UnsupportedMetric):
            get_metric("cosine")

    def test_unsupported_metric_is_value_error(self):
        with pytest.raises(ValueError):
            distance("chebyshev", [0.0], [1.0])

    def test_non_string_metric(self):
        with pytest.raises(TypeError):
            get_metric(3)


class TestRegistry:
    def test_aliases(self):
        assert get_metric("L2") is euclidean
        assert get_metric("cityblock") is manhattan

    def test_register_custom(self):
        def chebyshev(a, b):
            return abs(a - b).max()

        register_metric("chebyshev_test", chebyshev)
        assert "chebyshev_test" in list_metrics()
        assert distance("chebyshev_test", array([0.0, 3.0]), array([1.0, 1.0])) == 2.0

    def test_callable_passthrough(self):
        fn = get_metric(lambda a, b, scale=1.0: scale * euclidean(a, b), scale=2.0)
        assert fn([0.0, 0.0], [3.0, 4.0]) == pytest.approx(10.0)


class TestPairwise:
    def test_matches_scipy_cdist(self, backend, rng):
        x = rng.normal(size=(6, 3))
        y = rng.normal(size=(4, 3))
        got = pairwise_distances(array(x, backend=backend), array(y, backend=backend), metric="manhattan")
        np.testing.assert_allclose(to_numpy(got), sp_distance.cdist(x, y, "cityblock"), rtol=1e-12)

    def test_self_distances(self, rng):
        x = rng.normal(size=(5, 2))
        got = to_numpy(pairwise_distances(x))
        np.testing.assert_allclose(got, sp_distance.cdist(x, x), atol=1e-12)
        np.testing.assert_allclose(np.diag(got), 0.0)

    def test_parallel_matches_sequential(self, rng):
        x = rng.normal(size=(8, 3))
        seq = to_numpy(pairwise_distances(x, metric="euclidean", n_jobs=1))
        par = to_numpy(pairwise_distances(x, metric="euclidean", n_jobs=3))
        np.testing.assert_array_equal(seq, par)

    def test_euclidean_distances(self, backend, rng):
        x = rng.normal(size=(5, 3))
        y = rng.normal(size=(7, 3))
        got = euclidean_distances(array(x, backend=backend), array(y, backend=backend))
        np.testing.assert_allclose(to_numpy(got), sp_distance.cdist(x, y), rtol=1e-9, atol=1e-9)
        sq = euclidean_distances(array(x, backend=backend), array(y, backend=backend), squared=True)
        np.testing.assert_allclose(to_numpy(sq), sp_distance.cdist(x, y, "sqeuclidean"), rtol=1e-9, atol=1e-9)

    def test_euclidean_distances_never_negative(self):
        x = np.array([[1e8, 1e8], [1e8, 1e8]])
        got = to_numpy(euclidean_distances(x, squared=True))
        assert (got >= 0).all()

    def test_column_mismatch(self):
        with pytest.raises(ShapeMismatch):
            pairwise_distances(np.ones((2, 3)), np.ones((2, 2)))
