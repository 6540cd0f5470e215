"""Tests for the FastPair closest-pair structure."""

import math

import numpy as np
import pytest
from scipy.spatial.distance import cdist

from classicml.core.errors import InsufficientPoints, NumericError, ShapeMismatch, UnfittedModelError
from classicml.linalg import array, to_numpy
from classicml.neighbors import ClosestPair, FastPair, MergeRecord, PointState


def brute_force_closest(points):
    """Closest pair among ``{id: coords}`` with ties broken by lowest ``(p, q)``."""
    ids = sorted(points)
    coords = np.array([points[i] for i in ids])
    d = cdist(coords, coords)
    best = None
    for a in range(len(ids)):
        for b in range(a + 1, len(ids)):
            key = (d[a, b], ids[a], ids[b])
            if best is None or key < best:
                best = key
    return best


def snapshot(fp):
    return {i: to_numpy(fp.point(i)) for i in fp.active_ids}


class TestInitialize:
    def test_ids_are_row_indices(self, backend):
        fp = FastPair()
        fp.initialize(array([[0.0, 0.0], [0.0, 1.0], [5.0, 5.0]], backend=backend))
        assert fp.active_ids == [0, 1, 2]
        assert len(fp) == 3
        assert 2 in fp

    def test_neighbors_are_exact(self, backend, rng):
        x = rng.normal(size=(12, 3))
        fp = FastPair()
        fp.initialize(array(x, backend=backend))
        d = cdist(x, x)
        np.fill_diagonal(d, np.inf)
        for i in range(12):
            entry = fp.neighbor(i)
            assert entry.neighbor == int(np.argmin(d[i]))
            assert entry.distance == pytest.approx(d[i].min())
            assert entry.state is PointState.ACTIVE

    def test_accepts_list_of_rows(self):
        rows = [array([0.0, 0.0]), array([3.0, 4.0])]
        fp = FastPair()
        fp.initialize(rows)
        assert fp.closest_pair() == ClosestPair(0, 1, 5.0)

    def test_requires_2d(self):
        with pytest.raises(ShapeMismatch):
            FastPair().initialize([1.0, 2.0, 3.0])

    def test_weight_count_mismatch(self):
        with pytest.raises(ShapeMismatch):
            FastPair().initialize([[0.0], [1.0]], weights=[1.0])

    def test_reinitialize_resets(self):
        fp = FastPair()
        fp.initialize([[0.0], [1.0], [3.0]])
        fp.merge(0, 1)
        fp.initialize([[0.0], [2.0]])
        assert fp.active_ids == [0, 1]
        assert fp.history == []

    def test_non_finite_distance_raises(self):
        with pytest.raises(NumericError):
            FastPair().initialize([[0.0, 0.0], [math.nan, 1.0], [2.0, 2.0]])

    def test_failed_reinitialize_is_uninitialized(self):
        fp = FastPair()
        fp.initialize([[0.0], [1.0]])
        with pytest.raises(NumericError):
            fp.initialize([[0.0], [math.nan], [2.0]])
        assert not fp.is_initialized
        with pytest.raises(UnfittedModelError):
            fp.closest_pair()

    def test_infinite_coordinates_raise(self):
        with pytest.raises(NumericError):
            FastPair().initialize([[0.0], [math.inf]])


class TestClosestPair:
    @pytest.mark.parametrize("n", [2, 10, 100])
    def test_matches_brute_force(self, backend, rng, n):
        x = rng.uniform(-10, 10, size=(n, 3))
        fp = FastPair()
        fp.initialize(array(x, backend=backend))
        d, p, q = brute_force_closest(snapshot(fp))
        got = fp.closest_pair()
        assert (got.p, got.q) == (p, q)
        assert got.distance == pytest.approx(d)

    def test_ties_broken_by_lowest_ids(self):
        # Unit square corners: four pairs at distance 1.
        fp = FastPair()
        fp.initialize([[1.0, 1.0], [0.0, 1.0], [1.0, 0.0], [0.0, 0.0]])
        assert fp.closest_pair() == ClosestPair(0, 1, 1.0)

    def test_duplicate_points(self):
        fp = FastPair()
        fp.initialize([[2.0, 2.0], [5.0, 5.0], [2.0, 2.0]])
        assert fp.closest_pair() == ClosestPair(0, 2, 0.0)

    def test_before_initialize(self):
        with pytest.raises(UnfittedModelError):
            FastPair().closest_pair()

    @pytest.mark.parametrize("points", [[[1.0, 2.0]], np.empty((0, 2))])
    def test_insufficient_points(self, points):
        fp = FastPair()
        fp.initialize(points)
        assert fp.is_empty
        with pytest.raises(InsufficientPoints):
            fp.closest_pair()

    def test_alternative_metric(self, rng):
        x = rng.normal(size=(15, 2))
        fp = FastPair(metric="manhattan")
        fp.initialize(x)
        d = cdist(x, x, "cityblock")
        iu = np.triu_indices(15, k=1)
        k = int(np.argmin(d[iu]))
        assert (fp.closest_pair().p, fp.closest_pair().q) == (iu[0][k], iu[1][k])


class TestMerge:
    def test_new_ids_are_fresh(self):
        fp = FastPair()
        fp.initialize([[0.0, 0.0], [0.0, 1.0], [5.0, 5.0]])
        r = fp.merge(0, 1)
        assert r == 3
        assert fp.active_ids == [2, 3]
        assert fp.state(0) is PointState.REMOVED
        assert fp.weight(3) == 2
        np.testing.assert_allclose(to_numpy(fp.point(3)), [0.0, 0.5])

    def test_history_records_merges(self):
        fp = FastPair()
        fp.initialize([[0.0], [1.0], [10.0]])
        fp.merge(1, 0)
        assert fp.history == [MergeRecord(0, 1, 3, 1.0, 2)]

    def test_merged_ids_never_returned(self, backend, rng):
        x = rng.normal(size=(30, 2))
        fp = FastPair()
        fp.initialize(array(x, backend=backend))
        removed = set()
        while len(fp) > 1:
            p, q, _ = fp.closest_pair()
            assert p not in removed and q not in removed
            fp.merge(p, q)
            removed.update((p, q))

    def test_closest_pair_after_every_merge(self, backend, rng):
        x = rng.uniform(0, 100, size=(40, 2))
        fp = FastPair()
        fp.initialize(array(x, backend=backend))
        while len(fp) > 2:
            d, p, q = brute_force_closest(snapshot(fp))
            got = fp.closest_pair()
            assert (got.p, got.q) == (p, q)
            assert got.distance == pytest.approx(d)
            fp.merge(got.p, got.q)

    def test_explicit_replacement_point(self):
        fp = FastPair()
        fp.initialize([[0.0], [1.0], [4.0]])
        r = fp.merge(0, 1, point=[3.9])
        assert fp.closest_pair() == ClosestPair(2, r, pytest.approx(0.1))

    def test_stale_entries_refreshed(self):
        fp = FastPair()
        fp.initialize([[0.0], [1.0], [1.5], [10.0]])
        # Point 3's neighbour is 2; removing 2 forces a recomputation.
        fp.delete(2)
        assert fp.neighbor(3).neighbor == 1
        assert fp.neighbor(3).state is PointState.ACTIVE
        assert fp.closest_pair() == ClosestPair(0, 1, 1.0)

    def test_merge_same_point(self):
        fp = FastPair()
        fp.initialize([[0.0], [1.0]])
        with pytest.raises(ValueError):
            fp.merge(0, 0)

    def test_merge_removed_point(self):
        fp = FastPair()
        fp.initialize([[0.0], [1.0], [2.0]])
        fp.merge(0, 1)
        with pytest.raises(KeyError):
            fp.merge(0, 2)
        with pytest.raises(KeyError):
            fp.point(99)

    def test_merge_before_initialize(self):
        with pytest.raises(UnfittedModelError):
            FastPair().merge(0, 1)

    def test_merge_to_single_point(self):
        fp = FastPair()
        fp.initialize([[0.0], [1.0]])
        fp.merge(0, 1)
        with pytest.raises(InsufficientPoints):
            fp.closest_pair()

    def test_replacement_with_wrong_dimension(self):
        fp = FastPair()
        fp.initialize([[0.0, 0.0], [1.0, 1.0]])
        with pytest.raises(ShapeMismatch):
            fp.merge(0, 1, point=[1.0])

    def test_non_finite_replacement_raises(self):
        fp = FastPair()
        fp.initialize([[0.0], [1.0], [5.0]])
        with pytest.raises(NumericError):
            fp.merge(0, 1, point=[math.nan])
        assert fp.active_ids == [0, 1, 2]
        assert fp.history == []
        assert fp.closest_pair() == ClosestPair(0, 1, 1.0)
        assert fp.merge(0, 1) == 3

    def test_non_finite_combine_leaves_state(self):
        def broken(a, wa, b, wb):
            return a * math.inf

        fp = FastPair(combine=broken)
        fp.initialize([[1.0], [2.0], [5.0]])
        with pytest.raises(NumericError):
            fp.merge(0, 1)
        assert fp.active_ids == [0, 1, 2]
        assert fp.state(0) is PointState.ACTIVE

    def test_mutual_neighbours_merge(self):
        # 0 and 1 point at each other; 2 points at 1.
        fp = FastPair()
        fp.initialize([[0.0], [1.0], [5.0]])
        r = fp.merge(0, 1)
        entry = fp.neighbor(2)
        assert entry.neighbor == r
        assert entry.distance == pytest.approx(4.5)
        assert entry.state is PointState.ACTIVE
        assert fp.closest_pair() == ClosestPair(2, r, 4.5)

    def test_dependents_lose_removed_neighbour(self):
        fp = FastPair()
        fp.initialize([[0.0], [1.0], [1.5], [10.0]])
        fp.merge(1, 2)
        for pid in fp.active_ids:
            assert fp.neighbor(pid).neighbor in fp.active_ids


class TestInsertDelete:
    def test_insert_becomes_closest(self):
        fp = FastPair()
        fp.initialize([[0.0], [10.0], [20.0]])
        r = fp.insert([10.5])
        assert r == 3
        assert fp.closest_pair() == ClosestPair(1, 3, 0.5)

    def test_delete_then_query(self, rng):
        x = rng.normal(size=(20, 2))
        fp = FastPair()
        fp.initialize(x)
        for pid in (3, 7, 11):
            fp.delete(pid)
        d, p, q = brute_force_closest(snapshot(fp))
        assert fp.closest_pair()[:2] == (p, q)

    def test_insert_weight_validation(self):
        fp = FastPair()
        fp.initialize([[0.0], [1.0]])
        with pytest.raises(ValueError):
            fp.insert([2.0], weight=0)
