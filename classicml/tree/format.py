"""Formatting for fitted regression trees."""

from classicml.core.format import (
    adjust_separators,
    attach_format,
    format_footer,
    format_kv_line,
    format_section_header,
    format_table,
    format_title,
    format_value,
)

from .regressor import LEAF, DecisionTreeParams

MAX_NODE_ROWS = 15


def _node_rows(params, limit):
    rows = []
    for node in range(min(params.node_count, limit)):
        if params.feature[node] == LEAF:
            test, children = "leaf", ""
        else:
            test = f"x[{params.feature[node]}] <= {format_value(params.threshold[node])}"
            children = f"{params.left[node]} / {params.right[node]}"
        rows.append([str(node), test, children, f"{params.n_node_samples[node]}", format_value(params.value[node])])
    return rows


def format_decision_tree(params):
    """Format a fitted regression tree for display."""
    lines = []
    lines.extend(format_title("Decision Tree Regressor", "Squared-error splits"))
    lines.append(format_kv_line("Samples", params.n_node_samples[0]))
    lines.append(format_kv_line("Nodes", params.node_count))
    lines.append(format_kv_line("Leaves", params.n_leaves))
    lines.append(format_kv_line("Depth", params.depth))

    shown = min(params.node_count, MAX_NODE_ROWS)
    label = "Nodes" if shown == params.node_count else f"First {shown} nodes"
    lines.extend(format_section_header(label))
    lines.extend(
        format_table(["Node", "Test", "Left / Right", "Samples", "Value"], _node_rows(params, shown), {"Test": "l"})
    )

    lines.extend(format_footer())
    return "\n".join(adjust_separators(lines))


attach_format(DecisionTreeParams, format_decision_tree)
