"""Regression tree grown greedily on squared error."""

from __future__ import annotations

import logging
from collections import deque
from typing import NamedTuple

import numpy as np

from classicml.core.config import DecisionTreeConfig
from classicml.core.errors import NumericError
from classicml.core.estimator import BaseEstimator
from classicml.linalg import to_numpy

__all__ = ["DecisionTreeParams", "DecisionTreeRegressor"]

log = logging.getLogger(__name__)

LEAF = -1


class DecisionTreeParams(NamedTuple):
    """Fitted regression tree, stored as parallel per-node arrays.

    Node 0 is the root and nodes are numbered breadth first. A leaf has
    ``feature == -1`` and ``left == right == -1``.

    Attributes
    ----------
    feature : ndarray of int
        Feature tested at each node.
    threshold : ndarray of float
        Split value; samples with ``x[feature] <= threshold`` go left. NaN at leaves.
    value : ndarray of float
        Mean training target of the samples reaching each node.
    left, right : ndarray of int
        Child node ids.
    n_node_samples : ndarray of int
        Training samples reaching each node.
    depth : int
        Number of splits on the longest root-to-leaf path.
    n_leaves : int
        Number of leaves.
    """

    feature: np.ndarray
    threshold: np.ndarray
    value: np.ndarray
    left: np.ndarray
    right: np.ndarray
    n_node_samples: np.ndarray
    depth: int
    n_leaves: int

    @property
    def node_count(self):
        return len(self.value)

    def to_dict(self):
        return {
            "feature": self.feature.tolist(),
            "threshold": self.threshold.tolist(),
            "value": self.value.tolist(),
            "left": self.left.tolist(),
            "right": self.right.tolist(),
            "n_node_samples": self.n_node_samples.tolist(),
            "depth": self.depth,
            "n_leaves": self.n_leaves,
        }


class _Split(NamedTuple):
    feature: int
    threshold: float
    gain: float


class DecisionTreeRegressor(BaseEstimator):
    r"""Binary regression tree predicting the mean target of each leaf.

    Every node is split on the feature and threshold maximising

    .. math::

        n_L \bar{y}_L^2 + n_R \bar{y}_R^2 - n \bar{y}^2,

    which is the reduction in squared error. Candidate thresholds are the
    midpoints between consecutive distinct feature values. Features are
    scanned in order and a later candidate only replaces the current best
    when its gain is strictly larger.

    Parameters
    ----------
    max_depth : int, optional
        Maximum number of splits from the root to any leaf. Unlimited when None.
    min_samples_leaf : int, default=1
        Minimum number of training samples on each side of a split.
    min_samples_split : int, default=2
        Minimum number of training samples a node needs to be split.

    Examples
    --------
    >>> model = DecisionTreeRegressor(max_depth=1).fit([[0.0], [1.0], [2.0], [3.0]], [1.0, 1.0, 5.0, 5.0])
    >>> model.predict([[0.5], [2.5]]).tolist()
    [1.0, 5.0]
    """

    def __init__(self, max_depth=None, min_samples_leaf=1, min_samples_split=2):
        super().__init__()
        self.config = DecisionTreeConfig(
            max_depth=max_depth, min_samples_leaf=min_samples_leaf, min_samples_split=min_samples_split
        )

    def fit(self, x, y=None):
        if y is None:
            raise ValueError("DecisionTreeRegressor.fit() requires targets y.")
        x, y = self._validate_xy(x, y)
        if not x.is_finite():
            raise NumericError("DecisionTreeRegressor cannot be fitted on NaN or infinite values.")
        try:
            y = y.astype(float)
        except (TypeError, ValueError) as e:
            raise ValueError("Regression targets must be numeric.") from e
        if not np.isfinite(y).all():
            raise NumericError("Regression targets contain NaN or infinite values.")

        x = to_numpy(x)
        order = [np.argsort(x[:, j], kind="stable") for j in range(x.shape[1])]
        max_depth = self.config.max_depth

        feature, threshold, value, left, right, n_node_samples = [], [], [], [], [], []

        def new_node(mask):
            feature.append(LEAF)
            threshold.append(np.nan)
            value.append(float(y[mask].mean()))
            left.append(LEAF)
            right.append(LEAF)
            n_node_samples.append(int(mask.sum()))
            return len(value) - 1

        depth = 0
        queue = deque([(new_node(np.ones(len(y), dtype=bool)), np.ones(len(y), dtype=bool), 0)])
        while queue:
            node, mask, level = queue.popleft()
            if max_depth is not None and level >= max_depth:
                continue
            split = self._best_split(x, y, order, mask, value[node])
            if split is None:
                continue
            goes_left = mask & (x[:, split.feature] <= split.threshold)
            goes_right = mask & ~goes_left
            feature[node] = split.feature
            threshold[node] = split.threshold
            left[node] = new_node(goes_left)
            right[node] = new_node(goes_right)
            depth = max(depth, level + 1)
            queue.append((left[node], goes_left, level + 1))
            queue.append((right[node], goes_right, level + 1))

        feature = np.array(feature, dtype=int)
        self._params = DecisionTreeParams(
            feature=feature,
            threshold=np.array(threshold, dtype=float),
            value=np.array(value, dtype=float),
            left=np.array(left, dtype=int),
            right=np.array(right, dtype=int),
            n_node_samples=np.array(n_node_samples, dtype=int),
            depth=depth,
            n_leaves=int((feature == LEAF).sum()),
        )
        self._fitted = True
        log.debug("Grew regression tree with %d nodes, depth %d", len(value), depth)
        return self

    def _best_split(self, x, y, order, mask, mean):
        """Best split of the samples in *mask*, or None when the node stays a leaf."""
        n = int(mask.sum())
        if n < self.config.min_samples_split:
            return None
        y_node = y[mask]
        if np.all(y_node == y_node[0]):
            return None
        min_leaf = self.config.min_samples_leaf
        total = mean * n
        parent_gain = n * mean * mean

        best = None
        for j, idx in enumerate(order):
            idx = idx[mask[idx]]
            xs = x[idx, j]
            ys = y[idx]
            left_sum = 0.0
            for count in range(1, n):
                left_sum += ys[count - 1]
                if xs[count] == xs[count - 1]:
                    continue
                if count < min_leaf or n - count < min_leaf:
                    continue
                left_mean = left_sum / count
                right_mean = (total - left_sum) / (n - count)
                gain = count * left_mean * left_mean + (n - count) * right_mean * right_mean - parent_gain
                if best is None or gain > best.gain:
                    cut = (xs[count] + xs[count - 1]) / 2.0
                    # Adjacent floats can round the midpoint up onto the right value.
                    if cut == xs[count]:
                        cut = xs[count - 1]
                    best = _Split(j, float(cut), gain)
        return best

    def apply(self, x):
        """Return the id of the leaf each row of *x* lands in."""
        x = self._validate_predict_x(x)
        if not x.is_finite():
            raise NumericError("Cannot route NaN or infinite values through the tree.")
        x = to_numpy(x)
        p = self._params
        leaves = np.empty(x.shape[0], dtype=int)
        for i, row in enumerate(x):
            node = 0
            while p.feature[node] != LEAF:
                node = p.left[node] if row[p.feature[node]] <= p.threshold[node] else p.right[node]
            leaves[i] = node
        return leaves

    def predict(self, x):
        """Predict the target of each row of *x* as the mean of its leaf."""
        leaves = self.apply(x)
        return self._params.value[leaves]

    def score(self, x, y):
        """Coefficient of determination :math:`R^2` of the predictions on *x*."""
        y = np.asarray(y, dtype=float)
        residual = ((y - self.predict(x)) ** 2).sum()
        total = ((y - y.mean()) ** 2).sum()
        if total == 0:
            return 1.0 if residual == 0 else 0.0
        return float(1.0 - residual / total)
