"""
Cluster graph for Flood-it grids.

A cluster is a maximal 4-connected region of same-colored tiles. Flooding
always absorbs whole clusters, so the solver works on the graph of clusters
instead of on tiles:

  - nodes: clusters, identified by stable integer ids (0, 1, 2, ...)
  - edges: two clusters are adjacent if any of their tiles are grid-adjacent
  - start: the cluster that contains the start tile

The graph is stored as a node list plus adjacency-by-index, and is immutable
once built. It is shared read-only by every encoding probe.
"""

from collections import deque
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Tuple

import numpy as np
from scipy import ndimage as ndi

from floodit.core.grid_types import (
    DEFAULT_START,
    FOUR_CONNECTIVITY,
    Grid,
    Tile,
    num_colors,
    validate_grid,
)


@dataclass(frozen=True)
class Cluster:
    """
    One same-color connected region of the grid.

    Attributes:
        id: Index of this cluster in ClusterGraph.clusters
        color: Color shared by all tiles of the cluster
        size: Number of tiles in the cluster
        bbox: Bounding box as (r_min, r_max, c_min, c_max), inclusive, 0-based
    """
    id: int
    color: int
    size: int
    bbox: Tuple[int, int, int, int]


@dataclass(frozen=True, eq=False)
class ClusterGraph:
    """
    Cluster adjacency graph of one puzzle instance.

    Attributes:
        clusters: Clusters indexed by id
        adjacency: adjacency[n] is the sorted tuple of ids adjacent to n
        start: Id of the cluster containing the start tile
        num_colors: Number of colors C of the grid (moves pick from [0, C))
        shape: (H, W) of the grid
        labels: (H, W) array mapping every tile to its cluster id
    """
    clusters: Tuple[Cluster, ...]
    adjacency: Tuple[Tuple[int, ...], ...]
    start: int
    num_colors: int
    shape: Tuple[int, int]
    labels: np.ndarray

    @property
    def num_clusters(self) -> int:
        return len(self.clusters)

    def color_of(self, n: int) -> int:
        return self.clusters[n].color

    def neighbours(self, n: int) -> Tuple[int, ...]:
        return self.adjacency[n]

    def edges(self) -> List[Tuple[int, int]]:
        """Undirected edges as (a, b) pairs with a < b, sorted."""
        return [(a, b) for a, nbrs in enumerate(self.adjacency) for b in nbrs if a < b]

    def distances_from_start(self) -> Dict[int, int]:
        """
        Hop distance of every cluster from the start cluster (BFS).

        One move can absorb at most one more ring of clusters, so the
        largest distance is a lower bound on the solution length.
        """
        dist = {self.start: 0}
        queue = deque([self.start])
        while queue:
            n = queue.popleft()
            for m in self.adjacency[n]:
                if m not in dist:
                    dist[m] = dist[n] + 1
                    queue.append(m)
        return dist

    @property
    def eccentricity(self) -> int:
        """Largest hop distance from the start cluster."""
        return max(self.distances_from_start().values())

    def simulate(self, colors: Iterable[int]) -> List[FrozenSet[int]]:
        """
        Replay a move sequence on the cluster graph.

        Each move absorbs every cluster that is adjacent to the flooded
        region and has the chosen color. Two adjacent clusters never share a
        color, so one pass over the frontier is enough.

        Args:
            colors: Move sequence

        Returns:
            Flooded cluster ids before the first move and after every move
            (len(colors) + 1 entries)
        """
        flooded = {self.start}
        history = [frozenset(flooded)]
        for color in colors:
            frontier = {
                m
                for n in flooded
                for m in self.adjacency[n]
                if m not in flooded and self.clusters[m].color == color
            }
            flooded |= frontier
            history.append(frozenset(flooded))
        return history

    def is_flooded_by(self, colors: Iterable[int]) -> bool:
        """True if playing colors floods every cluster."""
        return len(self.simulate(colors)[-1]) == self.num_clusters


def _label_clusters(grid: Grid) -> Tuple[np.ndarray, List[Cluster]]:
    """
    Label clusters with scipy.ndimage.label, one color at a time.

    Ids are assigned by color (ascending) then by label index within the
    color, so labeling is deterministic for a given grid. Sizes come from
    np.bincount and bounding boxes from ndi.find_objects, one pass per color.

    Returns:
        (labels, clusters) where labels[r, c] is the cluster id of tile (r, c)
    """
    labels = np.full(grid.shape, -1, dtype=int)
    clusters: List[Cluster] = []

    for color in np.unique(grid):
        color_labels, count = ndi.label(grid == color, structure=FOUR_CONNECTIVITY)

        # label k of this color becomes cluster id offset + k - 1
        offset = len(clusters)
        in_color = color_labels > 0
        labels[in_color] = color_labels[in_color] + (offset - 1)

        sizes = np.bincount(color_labels.ravel(), minlength=count + 1)
        for k, (rows, cols) in enumerate(ndi.find_objects(color_labels)):
            clusters.append(Cluster(
                id=offset + k,
                color=int(color),
                size=int(sizes[k + 1]),
                bbox=(int(rows.start), int(rows.stop) - 1, int(cols.start), int(cols.stop) - 1)
            ))

    return labels, clusters


def _adjacent_pairs(labels: np.ndarray) -> np.ndarray:
    """
    Deduplicated (a, b) cluster pairs, a < b, whose tiles touch.

    Compares each tile with its right and lower neighbour; differing
    labels mark a boundary between two clusters.
    """
    left, right = labels[:, :-1], labels[:, 1:]
    upper, lower = labels[:-1, :], labels[1:, :]

    horiz = left != right
    vert = upper != lower

    pairs = np.concatenate([
        np.stack([left[horiz], right[horiz]], axis=1),
        np.stack([upper[vert], lower[vert]], axis=1),
    ])
    if pairs.size == 0:
        return np.empty((0, 2), dtype=int)

    return np.unique(np.sort(pairs, axis=1), axis=0)


def build_cluster_graph(grid: Grid, start_tile: Tile = DEFAULT_START) -> Tuple[ClusterGraph, int]:
    """
    Compress a grid into its cluster adjacency graph.

    Args:
        grid: Input grid (H, W) with integer colors in [0, C)
        start_tile: Tile the flooded region grows from

    Returns:
        (graph, start_cluster_id)

    Raises:
        MalformedGridError: If the grid or start tile is invalid

    Example:
        >>> grid = np.array([[0, 1], [1, 1]], dtype=int)
        >>> graph, start = build_cluster_graph(grid)
        >>> graph.num_clusters, start
        (2, 0)
        >>> graph.adjacency
        ((1,), (0,))
    """
    validate_grid(grid, start_tile)

    labels, clusters = _label_clusters(grid)

    neighbours: List[List[int]] = [[] for _ in clusters]
    for a, b in _adjacent_pairs(labels).tolist():
        neighbours[a].append(b)
        neighbours[b].append(a)

    start = int(labels[start_tile])
    labels.setflags(write=False)

    graph = ClusterGraph(
        clusters=tuple(clusters),
        adjacency=tuple(tuple(sorted(nbrs)) for nbrs in neighbours),
        start=start,
        num_colors=num_colors(grid),
        shape=(int(grid.shape[0]), int(grid.shape[1])),
        labels=labels,
    )
    return graph, start


if __name__ == "__main__":
    from floodit.core.grid_types import print_grid

    grid = np.array([
        [0, 1, 1, 2],
        [0, 0, 1, 2],
        [2, 0, 1, 1],
    ], dtype=int)

    print("Grid:")
    print_grid(grid)

    graph, start = build_cluster_graph(grid)
    print(f"\nClusters ({graph.num_clusters}), start={start}:")
    for cluster in graph.clusters:
        print(f"  id={cluster.id}, color={cluster.color}, size={cluster.size}, "
              f"bbox={cluster.bbox}, neighbours={graph.neighbours(cluster.id)}")

    print("\nTile -> cluster id:")
    print(graph.labels)
