"""Formatting for fitted Naive Bayes parameters."""

import numpy as np

from classicml.core.format import (
    adjust_separators,
    attach_format,
    format_footer,
    format_kv_line,
    format_section_header,
    format_table,
    format_title,
    format_value,
    format_vector,
)

from .gaussian import GaussianNBParams
from .multinomial import DiscreteNBParams


def _class_table(params, stat_header, stats):
    rows = []
    for i, label in enumerate(params.classes):
        rows.append(
            [
                str(label),
                f"{int(params.class_count[i])}",
                format_value(float(np.exp(params.class_log_prior[i]))),
                format_vector(stats[i]),
            ]
        )
    return format_table(["Class", "Count", "Prior", stat_header], rows, {"Class": "l", stat_header: "l"})


def format_gaussian_nb(params):
    """Format fitted Gaussian Naive Bayes parameters for display."""
    lines = []
    lines.extend(format_title("Gaussian Naive Bayes"))
    lines.append(format_kv_line("Classes", len(params.classes)))
    lines.append(format_kv_line("Features", params.theta.shape[1]))
    lines.append(format_kv_line("Variance floor", format_value(params.epsilon, ".3e")))

    lines.extend(format_section_header("Class means"))
    lines.extend(_class_table(params, "Mean", params.theta))
    lines.extend(format_section_header("Class variances"))
    lines.extend(_class_table(params, "Variance", params.var))

    lines.extend(format_footer())
    return "\n".join(adjust_separators(lines))


def format_discrete_nb(params):
    """Format fitted count-based Naive Bayes parameters for display."""
    lines = []
    lines.extend(format_title("Discrete Naive Bayes", f"Additive smoothing alpha = {params.alpha:g}"))
    lines.append(format_kv_line("Classes", len(params.classes)))
    lines.append(format_kv_line("Features", params.feature_count.shape[1]))

    lines.extend(format_section_header("Feature log-probabilities"))
    lines.extend(_class_table(params, "log P(feature | class)", params.feature_log_prob))

    lines.extend(format_footer())
    return "\n".join(adjust_separators(lines))


attach_format(GaussianNBParams, format_gaussian_nb)
attach_format(DiscreteNBParams, format_discrete_nb)
