"""Cover tree for exact nearest-neighbour search in a metric space."""

from __future__ import annotations

import heapq
import logging
import math

from classicml.core.errors import NumericError, ShapeMismatch
from classicml.distance import get_metric
from classicml.linalg import asarray

__all__ = ["CoverTree"]

log = logging.getLogger(__name__)


class _Node:
    __slots__ = ("children", "index", "level", "max_dist")

    def __init__(self, index, level):
        self.index = index
        self.level = level
        self.children = []
        self.max_dist = 0.0


class CoverTree:
    r"""Hierarchy of nested coverings over the rows of a 2-D array.

    A node at level :math:`i` covers its children within
    :math:`\text{base}^i`. Each node also records the largest distance to
    any of its descendants, which bounds every subtree during a search, so
    :meth:`find` returns the same neighbours as an exhaustive scan while
    pruning most of the distance evaluations. Any metric satisfying the
    triangle inequality can be used.

    Parameters
    ----------
    data : NumericArray or array_like
        Reference points, shape (n, d). Row ``i`` gets index ``i``.
    metric : str or callable, default="euclidean"
        Distance between points; must be a true metric.
    base : float, default=2.0
        Expansion constant between levels, greater than 1.
    **metric_params
        Extra metric parameters.

    Examples
    --------
    >>> tree = CoverTree([[v] for v in range(1, 10)])
    >>> tree.find([5.0], 3)
    ([4, 3, 5], [0.0, 1.0, 1.0])
    """

    def __init__(self, data, metric="euclidean", base=2.0, **metric_params):
        if not base > 1:
            raise ValueError(f"base must be greater than 1, got {base}.")
        data = asarray(data)
        if data.ndim != 2:
            raise ShapeMismatch(f"Reference data must be 2-D, got shape {data.shape}.")
        self.metric = metric
        self.base = float(base)
        self._distance = get_metric(metric, **metric_params)
        self._backend = data.backend_name
        self._dim = data.shape[1]
        self._points = []
        self._root = None
        for i in range(data.shape[0]):
            self._insert(data.row(i))
        log.debug("Built cover tree over %d points", len(self._points))

    def __len__(self):
        return len(self._points)

    def insert(self, point):
        """Add a point and return its index."""
        return self._insert(self._check_query(point))

    def find(self, query, k):
        """Return the *k* indexed points closest to *query*.

        Parameters
        ----------
        query : NumericArray or array_like
            1-D point with as many coordinates as the indexed rows.
        k : int
            Number of neighbours, between 1 and the number of indexed points.

        Returns
        -------
        indices : list of int
            Indices ordered by increasing distance, equal distances by index.
        distances : list of float
            The matching distances.
        """
        n = len(self._points)
        if k < 1 or k > n:
            raise ValueError("k should be >= 1 and <= length(data)")
        query = self._check_query(query)

        # Max-heap of the best k as (-distance, -index).
        best = []

        def kth():
            return -best[0][0] if len(best) == k else math.inf

        def offer(d, index):
            item = (-d, -index)
            if len(best) < k:
                heapq.heappush(best, item)
            elif item > best[0]:
                heapq.heapreplace(best, item)

        self._search(query, offer, kth)
        found = sorted((-d, -i) for d, i in best)
        return [i for _, i in found], [d for d, _ in found]

    def find_radius(self, query, radius):
        """Return every indexed point within *radius* of *query*, nearest first."""
        if radius < 0:
            raise ValueError(f"radius must be non-negative, got {radius}.")
        query = self._check_query(query)
        if self._root is None:
            return [], []
        found = []

        def offer(d, index):
            if d <= radius:
                found.append((d, index))

        self._search(query, offer, lambda: radius)
        found.sort()
        return [i for _, i in found], [d for d, _ in found]

    def _search(self, query, offer, bound):
        """Depth-first walk visiting closer children first.

        A subtree is skipped once its lower bound ``d(query, node) - max_dist``
        exceeds ``bound()``.
        """
        d_root = self._measure(query, self._root.index)
        stack = [(d_root, self._root)]
        while stack:
            d, node = stack.pop()
            if d - node.max_dist > bound():
                continue
            offer(d, node.index)
            scored = [(self._measure(query, c.index), c.index, c) for c in node.children]
            scored.sort(key=lambda t: (t[0], t[1]), reverse=True)
            for dc, _, child in scored:
                if dc - child.max_dist <= bound():
                    stack.append((dc, child))

    def _insert(self, point):
        index = len(self._points)
        if self._root is None:
            if not point.is_finite():
                raise NumericError("Cannot index a point with NaN or infinite coordinates.")
            self._points.append(point)
            self._root = _Node(index, 0)
            return index

        # Nothing is modified until every distance on the path is known.
        path = []
        d = self._measure(point, self._root.index)
        node = self._root
        while True:
            path.append((node, d))
            parent = None
            for child in node.children:
                dc = self._measure(point, child.index)
                if dc <= self._cover(child.level):
                    parent, d = child, dc
                    break
            if parent is None:
                break
            node = parent

        root_d = path[0][1]
        if root_d > self._cover(self._root.level):
            self._root.level = self._level_for(root_d)
        for ancestor, da in path:
            ancestor.max_dist = max(ancestor.max_dist, da)
        self._points.append(point)
        node.children.append(_Node(index, node.level - 1))
        return index

    def _cover(self, level):
        try:
            return self.base**level
        except OverflowError:
            return math.inf

    def _level_for(self, d):
        level = math.ceil(math.log(d, self.base))
        while self._cover(level) < d:
            level += 1
        return level

    def _measure(self, point, index):
        d = float(self._distance(point, self._points[index]))
        if not math.isfinite(d):
            raise NumericError(f"Distance to point {index} is {d}.")
        return d

    def _check_query(self, query):
        query = asarray(query, backend=self._backend)
        if query.ndim != 1 or query.shape[0] != self._dim:
            raise ShapeMismatch(f"Query must have shape ({self._dim},), got {query.shape}.")
        return query
