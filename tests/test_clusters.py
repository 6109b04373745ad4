"""
Tests for the cluster graph builder.

Covers:
  - labeling: every tile belongs to exactly one cluster (partition)
  - adjacency: symmetric, no self loops, matches touching tiles
  - start cluster selection
  - BFS distances and cluster-level replay
  - rejection of malformed grids
"""

import numpy as np
import pytest

from floodit.core.grid_types import MalformedGridError, as_grid
from floodit.features.clusters import build_cluster_graph


SAMPLE_GRID = np.array([
    [0, 1, 1, 2],
    [0, 0, 1, 2],
    [2, 0, 1, 1],
], dtype=int)


def _tile_level_edges(grid, labels):
    """Brute-force cluster pairs whose tiles touch."""
    H, W = grid.shape
    edges = set()
    for r in range(H):
        for c in range(W):
            for nr, nc in ((r, c + 1), (r + 1, c)):
                if nr >= H or nc >= W:
                    continue
                a, b = int(labels[r, c]), int(labels[nr, nc])
                if a != b:
                    edges.add((min(a, b), max(a, b)))
    return sorted(edges)


def test_sample_grid_clusters():
    print("\n" + "=" * 70)
    print("TEST: cluster labeling on sample grid")
    print("=" * 70)

    graph, start = build_cluster_graph(SAMPLE_GRID)

    assert graph.num_clusters == 4, f"Expected 4 clusters, got {graph.num_clusters}"
    assert start == 0 and graph.start == 0
    assert graph.num_colors == 3
    assert graph.shape == (3, 4)

    assert [c.color for c in graph.clusters] == [0, 1, 2, 2]
    assert [c.size for c in graph.clusters] == [4, 5, 2, 1]
    assert graph.clusters[2].bbox == (0, 1, 3, 3)
    assert graph.clusters[3].bbox == (2, 2, 0, 0)

    assert graph.adjacency == ((1, 3), (0, 2), (1,), (0,)), \
        f"Unexpected adjacency {graph.adjacency}"
    assert graph.edges() == [(0, 1), (0, 3), (1, 2)]

    print("  ✓ clusters, colors and adjacency match")


def test_partition_and_adjacency_on_random_grids():
    """Every tile maps to one cluster and edges match touching tiles."""
    rng = np.random.default_rng(7)

    for trial in range(20):
        H, W = rng.integers(1, 8, size=2)
        grid = rng.integers(0, 4, size=(H, W))
        grid[0, 0] = 0

        graph, _ = build_cluster_graph(grid)
        labels = graph.labels

        assert labels.shape == grid.shape
        assert labels.min() >= 0, "Every tile must belong to a cluster"
        assert labels.max() == graph.num_clusters - 1

        sizes = np.bincount(labels.ravel(), minlength=graph.num_clusters)
        assert sizes.tolist() == [c.size for c in graph.clusters], \
            f"trial {trial}: cluster sizes do not partition the grid"
        assert sizes.sum() == grid.size

        for cluster in graph.clusters:
            assert np.all(grid[labels == cluster.id] == cluster.color)

            coords = np.argwhere(labels == cluster.id)
            bbox = (coords[:, 0].min(), coords[:, 0].max(), coords[:, 1].min(), coords[:, 1].max())
            assert cluster.bbox == tuple(int(v) for v in bbox), \
                f"trial {trial}: bbox of cluster {cluster.id} is {cluster.bbox}, tiles span {bbox}"

        for n, nbrs in enumerate(graph.adjacency):
            assert n not in nbrs, "Adjacency must not contain self loops"
            for m in nbrs:
                assert n in graph.adjacency[m], "Adjacency must be symmetric"
                assert graph.color_of(n) != graph.color_of(m), \
                    "Adjacent clusters must have different colors"

        assert graph.edges() == _tile_level_edges(grid, labels)


def test_build_is_deterministic():
    graph_a, _ = build_cluster_graph(SAMPLE_GRID)
    graph_b, _ = build_cluster_graph(SAMPLE_GRID.copy())

    assert graph_a.clusters == graph_b.clusters
    assert graph_a.adjacency == graph_b.adjacency
    assert np.array_equal(graph_a.labels, graph_b.labels)


def test_start_tile_selects_cluster():
    graph, start = build_cluster_graph(SAMPLE_GRID, start_tile=(2, 0))

    assert start == 3
    assert graph.start == 3


def test_distances_and_eccentricity():
    graph, _ = build_cluster_graph(SAMPLE_GRID)

    assert graph.distances_from_start() == {0: 0, 1: 1, 3: 1, 2: 2}
    assert graph.eccentricity == 2


def test_simulate_moves():
    graph, _ = build_cluster_graph(SAMPLE_GRID)

    history = graph.simulate([1, 2])
    assert history == [frozenset({0}), frozenset({0, 1}), frozenset({0, 1, 2, 3})]
    assert graph.is_flooded_by([1, 2])

    # 2 first only reaches the lone cluster in the corner
    assert graph.simulate([2, 1])[-1] == frozenset({0, 1, 3})
    assert not graph.is_flooded_by([2, 1])


def test_single_tile_grid():
    graph, start = build_cluster_graph(as_grid([[0]]))

    assert graph.num_clusters == 1
    assert graph.adjacency == ((),)
    assert graph.edges() == []
    assert graph.eccentricity == 0
    assert graph.is_flooded_by([])


def test_single_row_and_column():
    row, _ = build_cluster_graph(as_grid([[0, 1, 0, 1]]))
    col, _ = build_cluster_graph(as_grid([[0], [1], [0], [1]]))

    for graph in (row, col):
        assert graph.num_clusters == 4
        assert len(graph.edges()) == 3
        assert graph.eccentricity == 3


@pytest.mark.parametrize("bad", [
    np.zeros((0, 3), dtype=int),
    np.array([[1, 2], [2, 1]]),
    np.array([0, 1, 2]),
    np.array([[0.0, 1.0]]),
])
def test_malformed_grids_are_rejected(bad):
    with pytest.raises(MalformedGridError):
        build_cluster_graph(bad)


def test_start_tile_outside_grid_is_rejected():
    with pytest.raises(MalformedGridError):
        build_cluster_graph(SAMPLE_GRID, start_tile=(3, 0))


def test_ragged_rows_are_rejected():
    with pytest.raises(MalformedGridError):
        as_grid([[0, 1], [0]])


if __name__ == "__main__":
    test_sample_grid_clusters()
    test_partition_and_adjacency_on_random_grids()
    test_simulate_moves()
    print("\n✓ cluster tests passed")
