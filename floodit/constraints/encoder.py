"""
Flood constraint encoder.

Turns a cluster graph and a candidate length L into a linear system over
binary and integer variables (layout in constraints/indexing.py):

  f[n, t]    cluster n is flooded at time t          t in [0, L]
  x[i, c]    move i picks color c                    one-hot per move
  color[i]   integer color of move i                 in [0, C)
  d[t]       all clusters flooded at time t          optimization only

Rules, one constraint family each:

  color_domain  0 <= color[i] <= C-1, sum_c x[i,c] = 1, color[i] = sum_c c*x[i,c]
  no_repeat     x[i,c] + x[i-1,c] <= 1
  terminal      f[n, L] = 1
  start         f[start, t] = 1
  initial       f[n, 0] = 0                                  (n != start)
  monotone      f[n,t] - f[n,t+1] <= 0                       (n != start)
  propagate     f[m,t] + x[t,color(n)] - f[n,t+1] <= 1       (m adjacent to n)
  block         f[n,t+1] <= f[n,t] + x[t,color(n)]
                f[n,t+1] <= f[n,t] + sum_m f[m,t]
  tight         sum_n f[n, L-1] <= N-1                       (EXACT, L >= 1)
  done          d[t] - f[n,t] <= 0, objective max sum_t d[t] (OPTIMIZE)

An unflooded cluster joins the flooded region at t+1 exactly when some
neighbour is flooded at t and move t picks the cluster's own color.

The encoder is a pure function: same (graph, L, mode) gives the same formula.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from floodit.constraints.builder import (
    ConstraintBuilder,
    LinearConstraint,
    LinearObjective,
    add_one_hot_constraint,
    count_families,
)
from floodit.constraints.indexing import FloodLayout, VariableSpec
from floodit.features.clusters import ClusterGraph


class EncodingMode(str, Enum):
    """
    How the end of the move sequence is constrained.

    EXACT: every cluster flooded at L but not all at L-1 (tight length)
    BOUNDED: every cluster flooded by L (finishing early is allowed)
    OPTIMIZE: BOUNDED plus an objective that rewards finishing early
    """
    EXACT = "exact"
    BOUNDED = "bounded"
    OPTIMIZE = "optimize"


@dataclass(frozen=True)
class FloodFormula:
    """
    Complete constraint system for one candidate length.

    Attributes:
        layout: Variable layout the constraint indices refer to
        mode: Encoding mode used
        start: Start cluster id
        constraints: All constraints, in emission order
        objective: Objective to maximize (OPTIMIZE only)
    """
    layout: FloodLayout
    mode: EncodingMode
    start: int
    constraints: Tuple[LinearConstraint, ...]
    objective: Optional[LinearObjective] = None

    @property
    def length(self) -> int:
        return self.layout.length

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)

    @property
    def variables(self) -> List[VariableSpec]:
        return self.layout.variable_specs()

    def family_counts(self) -> Dict[str, int]:
        return count_families(self.constraints)

    def to_lp_text(self) -> str:
        """Render the formula in CPLEX LP format."""
        from floodit.solver.pulp_backend import render_lp
        return render_lp(self)


def _add_color_domain(builder: ConstraintBuilder, layout: FloodLayout) -> None:
    builder.family = "color_domain"
    C = layout.num_colors
    for i in range(layout.length):
        color_i = layout.color_index(i)
        choices = [layout.choice_index(i, c) for c in range(C)]

        builder.add_ge([color_i], [1], 0)
        builder.add_le([color_i], [1], C - 1)
        add_one_hot_constraint(builder, choices)
        builder.add_eq([color_i] + choices, [1] + [-c for c in range(C)], 0)


def _add_no_repeat(builder: ConstraintBuilder, layout: FloodLayout) -> None:
    builder.family = "no_repeat"
    for i in range(1, layout.length):
        for c in range(layout.num_colors):
            builder.add_le([layout.choice_index(i, c), layout.choice_index(i - 1, c)], [1, 1], 1)


def _add_static_flooding(builder: ConstraintBuilder, layout: FloodLayout, start: int) -> None:
    L = layout.length

    builder.family = "terminal"
    for n in range(layout.num_clusters):
        builder.fix_true(layout.flood_index(n, L))

    builder.family = "start"
    for t in range(L + 1):
        builder.fix_true(layout.flood_index(start, t))

    builder.family = "initial"
    for n in range(layout.num_clusters):
        if n != start:
            builder.fix_false(layout.flood_index(n, 0))


def _add_dynamic_flooding(builder: ConstraintBuilder, layout: FloodLayout, graph: ClusterGraph) -> None:
    """Monotonicity and propagation rules for every non-start cluster."""
    for n in range(layout.num_clusters):
        if n == graph.start:
            continue

        neighbours = graph.neighbours(n)
        color = graph.color_of(n)

        for t in range(layout.length):
            f_now = layout.flood_index(n, t)
            f_next = layout.flood_index(n, t + 1)
            picked = layout.choice_index(t, color)
            nbrs_now = [layout.flood_index(m, t) for m in neighbours]

            builder.family = "monotone"
            builder.implies(f_now, f_next)

            builder.family = "propagate"
            for f_m in nbrs_now:
                builder.add_le([f_m, picked, f_next], [1, 1, -1], 1)

            builder.family = "block"
            builder.add_le([f_next, f_now, picked], [1, -1, -1], 0)
            builder.add_le([f_next, f_now] + nbrs_now, [1, -1] + [-1] * len(nbrs_now), 0)


def _add_tightness(builder: ConstraintBuilder, layout: FloodLayout) -> None:
    N = layout.num_clusters
    builder.family = "tight"
    before_last = [layout.flood_index(n, layout.length - 1) for n in range(N)]
    builder.add_le(before_last, [1] * N, N - 1)


def _add_done_objective(builder: ConstraintBuilder, layout: FloodLayout) -> LinearObjective:
    builder.family = "done"
    for t in range(layout.num_times):
        d_t = layout.done_index(t)
        for n in range(layout.num_clusters):
            builder.implies(d_t, layout.flood_index(n, t))

    done = [layout.done_index(t) for t in range(layout.num_times)]
    return LinearObjective(indices=tuple(done), coeffs=tuple([1] * len(done)))


def encode_flood_constraints(
    graph: ClusterGraph,
    length: int,
    mode: EncodingMode = EncodingMode.EXACT,
) -> FloodFormula:
    """
    Encode "the puzzle is solved within `length` moves" as a linear system.

    Args:
        graph: Cluster graph of the puzzle (read only)
        length: Candidate length L >= 0
        mode: EXACT, BOUNDED or OPTIMIZE (see EncodingMode)

    Returns:
        FloodFormula with O((N + E) * L) constraints

    Raises:
        ValueError: If length is negative or mode is unknown

    Example:
        >>> graph, _ = build_cluster_graph(np.array([[0, 1], [1, 1]]))
        >>> formula = encode_flood_constraints(graph, 1)
        >>> formula.family_counts()["terminal"]
        2
    """
    if length < 0:
        raise ValueError(f"Candidate length must be >= 0, got {length}")
    mode = EncodingMode(mode)

    layout = FloodLayout(
        num_clusters=graph.num_clusters,
        num_colors=graph.num_colors,
        length=length,
        with_done=mode is EncodingMode.OPTIMIZE,
    )

    builder = ConstraintBuilder()
    _add_color_domain(builder, layout)
    _add_no_repeat(builder, layout)
    _add_static_flooding(builder, layout, graph.start)
    _add_dynamic_flooding(builder, layout, graph)

    objective = None
    if mode is EncodingMode.EXACT and length >= 1:
        _add_tightness(builder, layout)
    elif mode is EncodingMode.OPTIMIZE:
        objective = _add_done_objective(builder, layout)

    return FloodFormula(
        layout=layout,
        mode=mode,
        start=graph.start,
        constraints=tuple(builder.constraints),
        objective=objective,
    )


if __name__ == "__main__":
    import numpy as np

    from floodit.features.clusters import build_cluster_graph

    grid = np.array([
        [0, 1, 2],
        [1, 2, 0],
    ], dtype=int)
    graph, start = build_cluster_graph(grid)

    for mode in EncodingMode:
        formula = encode_flood_constraints(graph, 3, mode)
        print(f"{mode.value}: {formula.num_constraints} constraints, "
              f"{formula.layout.num_variables} variables")
        for family, count in formula.family_counts().items():
            print(f"  {family:14s} {count}")
