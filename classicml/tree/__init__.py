"""Decision trees."""

from .format import format_decision_tree
from .regressor import DecisionTreeParams, DecisionTreeRegressor

__all__ = ["DecisionTreeParams", "DecisionTreeRegressor", "format_decision_tree"]
