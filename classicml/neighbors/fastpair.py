"""Incremental closest-pair maintenance for agglomerative clustering."""

from __future__ import annotations

import dataclasses
import heapq
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from classicml.core.errors import InsufficientPoints, NumericError, ShapeMismatch, UnfittedModelError
from classicml.distance import get_metric
from classicml.linalg import NumericArray, asarray

__all__ = [
    "ClosestPair",
    "FastPair",
    "MergeRecord",
    "NeighborEntry",
    "PointState",
    "centroid",
]

log = logging.getLogger(__name__)


class PointState(str, Enum):
    """Lifecycle of a point's cached neighbour."""

    ACTIVE = "active"
    STALE = "stale"
    REMOVED = "removed"


@dataclass
class NeighborEntry:
    """Cached nearest neighbour of one point."""

    neighbor: int | None = None
    distance: float = math.inf
    state: PointState = PointState.ACTIVE


class ClosestPair(NamedTuple):
    """Globally closest active pair, with ``p < q``."""

    p: int
    q: int
    distance: float


class MergeRecord(NamedTuple):
    """One merge step: ``left`` and ``right`` were replaced by ``merged``.

    Attributes
    ----------
    left : int
        Smaller id of the merged pair.
    right : int
        Larger id of the merged pair.
    merged : int
        Id of the point that replaced them.
    distance : float
        Distance between ``left`` and ``right`` at merge time.
    size : float
        Combined weight, i.e. number of input points represented.
    """

    left: int
    right: int
    merged: int
    distance: float
    size: float


def centroid(a, weight_a, b, weight_b):
    """Weighted centroid of two points."""
    total = weight_a + weight_b
    return (a * weight_a + b * weight_b) / total


class FastPair:
    r"""Closest-pair structure over a dynamic point set.

    Every active point caches its exact nearest neighbour among the other
    active points, with ties going to the lowest neighbour id. The closest
    pair is then the cached entry with the smallest ``(distance, p, q)``,
    kept in a heap whose superseded entries are discarded lazily.

    Removing a point only invalidates the entries that pointed at it; those
    become :attr:`PointState.STALE` and are recomputed with one scan each.
    Inserting a point costs one scan, during which every other point
    compares its cached distance with the newcomer. A merge is a removal of
    two points followed by one insertion, so it touches
    :math:`O(k \cdot n)` distances where :math:`k` is the number of points
    that had either merged point as their neighbour, instead of the
    :math:`O(n^2)` of a full rescan.

    Parameters
    ----------
    metric : str or callable, default="euclidean"
        Distance used between points, see
        :func:`~classicml.distance.metrics.get_metric`.
    combine : callable, default=centroid
        ``combine(point_p, weight_p, point_q, weight_q)`` returning the point
        that replaces a merged pair.
    **metric_params
        Extra metric parameters such as ``p`` for ``"minkowski"``.

    Examples
    --------
    >>> fp = FastPair()
    >>> fp.initialize([[0.0, 0.0], [0.0, 1.0], [5.0, 5.0]])
    >>> fp.closest_pair()
    ClosestPair(p=0, q=1, distance=1.0)
    >>> fp.merge(0, 1)
    3
    """

    def __init__(self, metric="euclidean", combine=centroid, **metric_params):
        self.metric = metric
        self.metric_params = metric_params
        self.combine = combine
        self._distance = get_metric(metric, **metric_params)
        self._reset()

    def _reset(self):
        self._initialized = False
        self._points: dict[int, NumericArray] = {}
        self._weights: dict[int, float] = {}
        self._entries: dict[int, NeighborEntry] = {}
        self._pointed_by: dict[int, set[int]] = {}
        self._stale: set[int] = set()
        self._heap: list[tuple[float, int, int, int, int]] = []
        self._next_id = 0
        self._dim = None
        self.history: list[MergeRecord] = []

    def initialize(self, points, weights=None):
        """Load a point set and compute every point's nearest neighbour.

        This is the one-time :math:`O(n^2)` pass that later merges and
        deletions amortize against. Point ids are the row indices. Calling
        it again discards all previous state.

        Parameters
        ----------
        points : NumericArray, array_like or sequence of 1-D NumericArray
            2-D array of shape (n, d).
        weights : sequence of float, optional
            Positive weight per point (defaults to 1), used by ``combine``.

        Raises
        ------
        ShapeMismatch
            If *points* is not 2-D or *weights* has the wrong length.
        NumericError
            If a distance evaluates to NaN or infinity.
        """
        points = _as_point_matrix(points)
        n, dim = points.shape
        if weights is None:
            weights = [1] * n
        weights = list(weights)
        if len(weights) != n:
            raise ShapeMismatch(f"Expected {n} weights, got {len(weights)}.")
        if any(not w > 0 for w in weights):
            raise ValueError("weights must be positive.")

        self._reset()
        self._dim = dim
        for i in range(n):
            self._points[i] = points.row(i)
            self._weights[i] = weights[i]
            self._entries[i] = NeighborEntry()
            self._pointed_by[i] = set()
        self._next_id = n

        for i in range(n):
            for j in range(i + 1, n):
                d = self._measure(i, j)
                self._offer(i, j, d)
                self._offer(j, i, d)
        for i in range(n):
            self._push(i)

        self._initialized = True
        log.debug("FastPair initialized with %d points of dimension %d", n, dim)

    def closest_pair(self):
        """Return the active pair with the smallest distance.

        Ties are broken by the lowest ``(p, q)`` id pair.

        Returns
        -------
        ClosestPair
            ``(p, q, distance)`` with ``p < q``.

        Raises
        ------
        UnfittedModelError
            If :meth:`initialize` has not been called.
        InsufficientPoints
            If fewer than two points are active.
        """
        self._check_initialized()
        if len(self._points) < 2:
            raise InsufficientPoints(f"closest_pair() needs at least two active points, have {len(self._points)}.")
        while self._heap:
            d, lo, hi, owner, neighbor = self._heap[0]
            if self._is_current(owner, neighbor, d):
                return ClosestPair(lo, hi, d)
            heapq.heappop(self._heap)
        raise RuntimeError("FastPair neighbour cache is inconsistent: no valid entry for an active pair.")

    def merge(self, p, q, point=None):
        """Replace points *p* and *q* with a single new point.

        Parameters
        ----------
        p, q : int
            Distinct active point ids.
        point : NumericArray or array_like, optional
            The replacement point. Defaults to
            ``combine(point_p, weight_p, point_q, weight_q)``.

        Returns
        -------
        int
            Id of the new point; ids are never reused.

        Raises
        ------
        NumericError
            If the replacement point is at a NaN or infinite distance from
            a surviving point. The structure is left unchanged.
        """
        self._check_initialized()
        if p == q:
            raise ValueError(f"Cannot merge point {p} with itself.")
        self._require_active(p)
        self._require_active(q)

        d = self._measure(p, q)
        weight = self._weights[p] + self._weights[q]
        if point is None:
            point = self.combine(self._points[p], self._weights[p], self._points[q], self._weights[q])
        point = self._check_point(point)
        distances = self._distances_from(point, [y for y in self._points if y != p and y != q])

        self._remove(p)
        self._remove(q)
        r = self._add(point, weight, distances)
        self._refresh_stale()

        record = MergeRecord(min(p, q), max(p, q), r, d, weight)
        self.history.append(record)
        log.debug("Merged %d and %d into %d at distance %.6g", record.left, record.right, r, d)
        return r

    def delete(self, p):
        """Remove point *p* without replacement."""
        self._check_initialized()
        self._require_active(p)
        self._remove(p)
        self._refresh_stale()
        log.debug("Deleted point %d", p)

    def insert(self, point, weight=1):
        """Add a new point and return its id."""
        self._check_initialized()
        if not weight > 0:
            raise ValueError("weight must be positive.")
        point = self._check_point(point)
        return self._add(point, weight, self._distances_from(point, list(self._points)))

    def __len__(self):
        return len(self._points)

    def __contains__(self, point_id):
        return point_id in self._points

    @property
    def is_initialized(self):
        return self._initialized

    @property
    def is_empty(self):
        """True when fewer than two points remain, so no pair exists."""
        return len(self._points) < 2

    @property
    def active_ids(self):
        return sorted(self._points)

    def point(self, point_id):
        self._require_active(point_id)
        return self._points[point_id]

    def weight(self, point_id):
        self._require_active(point_id)
        return self._weights[point_id]

    def neighbor(self, point_id):
        """Return a copy of the cached :class:`NeighborEntry` of a point."""
        if point_id not in self._entries:
            raise KeyError(f"Unknown point id {point_id}.")
        return dataclasses.replace(self._entries[point_id])

    def state(self, point_id):
        if point_id not in self._entries:
            raise KeyError(f"Unknown point id {point_id}.")
        return self._entries[point_id].state

    def _check_initialized(self):
        if not self._initialized:
            raise UnfittedModelError("FastPair.initialize() must be called first.")

    def _require_active(self, point_id):
        if point_id not in self._points:
            if point_id in self._entries:
                raise KeyError(f"Point {point_id} has been removed.")
            raise KeyError(f"Unknown point id {point_id}.")

    def _check_point(self, point):
        point = asarray(point)
        if point.ndim != 1 or (self._dim is not None and point.shape[0] != self._dim):
            raise ShapeMismatch(f"Expected a point of shape ({self._dim},), got {point.shape}.")
        return point

    def _measure(self, i, j):
        return _checked(self._distance(self._points[i], self._points[j]), f"points {i} and {j}")

    def _distances_from(self, point, ids):
        """Distances from a point not yet stored to each active id in *ids*."""
        return {y: _checked(self._distance(self._points[y], point), f"point {y} and the new point") for y in ids}

    def _set_neighbor(self, owner, neighbor, d):
        entry = self._entries[owner]
        refs = self._pointed_by.get(entry.neighbor)
        if refs is not None:
            refs.discard(owner)
        entry.neighbor = neighbor
        entry.distance = d
        if neighbor is not None:
            self._pointed_by[neighbor].add(owner)

    def _offer(self, owner, candidate, d):
        """Adopt *candidate* as neighbour of *owner* if it is strictly better."""
        entry = self._entries[owner]
        if entry.neighbor is None or d < entry.distance or (d == entry.distance and candidate < entry.neighbor):
            self._set_neighbor(owner, candidate, d)
            return True
        return False

    def _push(self, owner):
        entry = self._entries[owner]
        if entry.neighbor is None:
            return
        lo, hi = min(owner, entry.neighbor), max(owner, entry.neighbor)
        heapq.heappush(self._heap, (entry.distance, lo, hi, owner, entry.neighbor))

    def _is_current(self, owner, neighbor, d):
        entry = self._entries[owner]
        return (
            owner in self._points
            and neighbor in self._points
            and entry.state is PointState.ACTIVE
            and entry.neighbor == neighbor
            and entry.distance == d
        )

    def _remove(self, p):
        entry = self._entries[p]
        self._set_neighbor(p, None, math.inf)
        entry.state = PointState.REMOVED
        del self._points[p]
        del self._weights[p]
        self._stale.discard(p)
        for y in self._pointed_by.pop(p):
            dependent = self._entries[y]
            dependent.neighbor = None
            dependent.distance = math.inf
            dependent.state = PointState.STALE
            self._stale.add(y)

    def _add(self, point, weight, distances):
        r = self._next_id
        self._next_id += 1
        self._points[r] = point
        self._weights[r] = weight
        self._entries[r] = NeighborEntry()
        self._pointed_by[r] = set()
        for y, d in distances.items():
            self._offer(r, y, d)
            if y not in self._stale and self._offer(y, r, d):
                self._push(y)
        self._push(r)
        return r

    def _refresh_stale(self):
        for y in sorted(self._stale):
            self._set_neighbor(y, None, math.inf)
            for z in self._points:
                if z != y:
                    self._offer(y, z, self._measure(y, z))
            self._entries[y].state = PointState.ACTIVE
            self._push(y)
        self._stale.clear()


def _checked(d, between):
    d = float(d)
    if not math.isfinite(d):
        raise NumericError(f"Distance between {between} is {d}.")
    if d < 0:
        raise NumericError(f"Distance between {between} is negative ({d}).")
    return d


def _as_point_matrix(points):
    if isinstance(points, (list, tuple)) and points and all(isinstance(p, NumericArray) for p in points):
        points = type(points[0]).stack([points[0]._coerce(p) for p in points])
    points = asarray(points)
    if points.ndim != 2:
        raise ShapeMismatch(f"Points must form a 2-D array of shape (n, d), got shape {points.shape}.")
    return points
