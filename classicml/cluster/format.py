"""Formatting for clustering result objects."""

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

from .agglomerative import AgglomerativeResult
from .kmeans import KMeansResult

MAX_MERGE_ROWS = 10


def _cluster_rows(centroids, sizes):
    return [[str(c), f"{int(sizes[c])}", format_vector(centroids[c])] for c in range(len(centroids))]


def format_agglomerative_result(result):
    """Format an agglomerative clustering result for display."""
    lines = []
    lines.extend(format_title("Agglomerative Clustering", "Centroid linkage"))
    lines.append(format_kv_line("Metric", result.metric))
    lines.append(format_kv_line("Observations", len(result.labels)))
    lines.append(format_kv_line("Clusters", result.n_clusters))
    lines.append(format_kv_line("Merges", len(result.merges)))

    if result.n_clusters:
        sizes = np.bincount(result.labels, minlength=result.n_clusters)
        lines.extend(format_section_header("Clusters"))
        lines.extend(format_table(["Label", "Size", "Centroid"], _cluster_rows(result.centroids, sizes), {"Centroid": "l"}))

    if result.merges:
        shown = result.merges[-MAX_MERGE_ROWS:]
        label = "Merges" if len(shown) == len(result.merges) else f"Last {len(shown)} merges"
        lines.extend(format_section_header(label))
        rows = [
            [str(m.left), str(m.right), str(m.merged), format_value(m.distance), format_value(m.size, ".0f")]
            for m in shown
        ]
        lines.extend(format_table(["Left", "Right", "Merged", "Distance", "Size"], rows))

    lines.extend(format_footer())
    return "\n".join(adjust_separators(lines))


def format_kmeans_result(result):
    """Format a fitted K-Means model for display."""
    lines = []
    lines.extend(format_title("K-Means Clustering", "k-means++ initialization"))
    lines.append(format_kv_line("Observations", len(result.labels)))
    lines.append(format_kv_line("Clusters", len(result.centroids)))
    lines.append(format_kv_line("Iterations", result.n_iter))
    lines.append(format_kv_line("Distortion", format_value(result.distortion)))

    lines.extend(format_section_header("Clusters"))
    lines.extend(
        format_table(["Cluster", "Size", "Centroid"], _cluster_rows(result.centroids, result.sizes), {"Centroid": "l"})
    )

    lines.extend(format_footer())
    return "\n".join(adjust_separators(lines))


attach_format(AgglomerativeResult, format_agglomerative_result)
attach_format(KMeansResult, format_kmeans_result)
