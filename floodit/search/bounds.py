"""
Bounds on the minimal solution length.

Lower bound:
  - every cluster at hop distance k from the start needs at least k moves
  - every color present outside the start cluster must be picked at least once

Upper bound (both constructive):
  - picking the color of any neighbouring cluster absorbs at least one
    cluster per move: N - 1 moves
  - cycling through all C colors absorbs every cluster one hop further
    out per cycle: C * eccentricity moves
"""

from floodit.features.clusters import ClusterGraph


def lower_bound(graph: ClusterGraph) -> int:
    """
    Largest of the distance bound and the color-count bound.

    Example:
        >>> graph, _ = build_cluster_graph(np.array([[0, 1, 2]]))
        >>> lower_bound(graph)
        2
    """
    other_colors = {c.color for c in graph.clusters if c.id != graph.start}
    return max(graph.eccentricity, len(other_colors))


def upper_bound(graph: ClusterGraph) -> int:
    """
    Smallest of the two constructive upper bounds.

    Example:
        >>> graph, _ = build_cluster_graph(np.array([[0, 1], [1, 1]]))
        >>> upper_bound(graph)
        1
    """
    return min(graph.num_clusters - 1, graph.num_colors * graph.eccentricity)
