"""
Search driver for the Flood-it solver.

This module provides the main entrypoints for finding (minimal) solutions:
  1. Validate the mode's bounds (InvalidBoundsError before any encoding)
  2. Derive the candidate lengths to probe from the mode
  3. For each probe: encode the cluster graph at length L, assert the
     formula inside a fresh backend scope, check or maximize, pop the scope
  4. Decode the model into a move sequence and replay it on the cluster
     graph as a sanity check
  5. Return a SearchResult with status, solution and probe history

Probe verdicts drive the search: UNSAT probes are normal and the search
continues, the first UNKNOWN probe ends the search as "indeterminate".

Binary search and Solve probe the BOUNDED encoding ("flooded by L"),
which is monotone in L. Exact(n) probes the EXACT encoding ("flooded at L,
not at L-1"). Opt maximizes the number of fully flooded time steps.
"""

import logging
import time
from typing import List, Optional, Tuple

import numpy as np

from floodit.constraints.encoder import EncodingMode, FloodFormula, encode_flood_constraints
from floodit.core.config import SolveConfig
from floodit.core.grid_types import DEFAULT_START, Grid, Tile, as_grid
from floodit.features.clusters import ClusterGraph, build_cluster_graph
from floodit.search.bounds import lower_bound, upper_bound
from floodit.search.modes import Exact, Min, Opt, Search, SearchMode, Solve, validate_mode
from floodit.search.results import ProbeRecord, SearchResult, Solution
from floodit.solver.backend import CheckResult, SatResult, SolverBackend
from floodit.solver.decoding import color_sequence, first_flooded_time, flooded_matrix
from floodit.solver.pulp_backend import PulpBackend

logger = logging.getLogger(__name__)


def mode_bounds(graph: ClusterGraph, mode: SearchMode) -> Tuple[int, int]:
    """
    Candidate length range (lo, hi) a mode will consider.

    Solve and Opt probe a single length; Min derives both ends from the
    puzzle (see search/bounds.py).
    """
    if isinstance(mode, Exact):
        return mode.size, mode.size
    if isinstance(mode, Search):
        return mode.lower_bound, mode.upper_bound
    if isinstance(mode, Min):
        return lower_bound(graph), upper_bound(graph)
    if isinstance(mode, Opt) and mode.upper_bound is not None:
        return mode.upper_bound, mode.upper_bound
    hi = upper_bound(graph)
    return hi, hi


def _first_probe(mode: SearchMode, lo: int, hi: int) -> Tuple[int, EncodingMode]:
    """Length and encoding of the first probe a mode runs."""
    if isinstance(mode, Exact):
        return lo, EncodingMode.EXACT
    if isinstance(mode, Opt):
        return hi, EncodingMode.OPTIMIZE
    if isinstance(mode, Solve):
        return hi, EncodingMode.BOUNDED
    return (lo + hi) // 2, EncodingMode.BOUNDED


def _record(formula: FloodFormula, verdict: Optional[SatResult], elapsed: float,
            objective_value: Optional[float] = None) -> ProbeRecord:
    return ProbeRecord(
        length=formula.length,
        encoding=formula.mode.value,
        verdict=verdict,
        num_constraints=formula.num_constraints,
        num_variables=formula.layout.num_variables,
        family_counts=formula.family_counts(),
        elapsed_sec=elapsed,
        objective_value=objective_value,
    )


def probe(
    graph: ClusterGraph,
    length: int,
    encoding: EncodingMode,
    backend: SolverBackend,
) -> Tuple[ProbeRecord, CheckResult, FloodFormula]:
    """
    Encode and solve one candidate length.

    The formula is asserted inside its own scope, which is popped before
    returning, so nothing from this probe leaks into the next one.

    Returns:
        (record, result, formula)
    """
    t0 = time.perf_counter()
    formula = encode_flood_constraints(graph, length, encoding)
    logger.info("Starting solver with size %d (%s, %d constraints)...",
                length, encoding.value, formula.num_constraints)
    logger.debug("Constraint families: %s", formula.family_counts())

    backend.push_scope()
    try:
        backend.assert_formula(formula)
        if formula.objective is not None:
            result = backend.maximize(formula.objective)
        else:
            result = backend.check()
    finally:
        backend.pop_scope()

    record = _record(formula, result.verdict, time.perf_counter() - t0, result.objective_value)
    logger.info("Size %d: %s (%.2fs)", length, result.verdict.value, record.elapsed_sec)
    return record, result, formula


def extract_solution(graph: ClusterGraph, formula: FloodFormula, result: CheckResult) -> Solution:
    """
    Decode a SAT model into the shortest prefix that floods the graph.

    The decoded flooding must match a replay of the colors on the cluster
    graph at every time step up to the finish.

    Raises:
        AssertionError: If the model is inconsistent with the game rules
    """
    assert result.is_sat and result.values is not None, "extract_solution needs a SAT result"

    layout = formula.layout
    flooded = flooded_matrix(result.values, layout)
    colors = color_sequence(result.values, layout)

    finish = first_flooded_time(flooded)
    if finish is None:
        raise AssertionError(f"Model at size {layout.length} leaves clusters unflooded")

    if formula.mode is EncodingMode.EXACT and finish != layout.length:
        raise AssertionError(f"Exact model finishes at {finish}, expected {layout.length}")

    if formula.mode is EncodingMode.OPTIMIZE and result.objective_value is not None:
        implied = layout.num_times - int(round(result.objective_value))
        if implied != finish:
            raise AssertionError(
                f"Objective {result.objective_value} implies length {implied}, model floods at {finish}"
            )

    solution = Solution.from_colors(colors[:finish])

    history = graph.simulate(solution.colors)
    for t, expected in enumerate(history):
        decoded = set(np.flatnonzero(flooded[:, t]).tolist())
        if decoded != expected:
            raise AssertionError(
                f"Model flooding at t={t} {sorted(decoded)} disagrees with replay {sorted(expected)}"
            )

    return solution


def _run_single(graph: ClusterGraph, mode: SearchMode, length: int, encoding: EncodingMode,
                backend: SolverBackend, bounds: Tuple[int, int]) -> SearchResult:
    record, result, formula = probe(graph, length, encoding, backend)

    if result.verdict is SatResult.UNKNOWN:
        return SearchResult("indeterminate", mode.name, bounds, probes=[record])
    if result.verdict is SatResult.UNSAT:
        return SearchResult("no_solution", mode.name, bounds, probes=[record])

    solution = extract_solution(graph, formula, result)
    logger.info("Solution length: %d", solution.length)
    return SearchResult("solved", mode.name, bounds, solution=solution, probes=[record])


def _binary_search(graph: ClusterGraph, mode: SearchMode, lo: int, hi: int,
                   backend: SolverBackend) -> SearchResult:
    """
    Smallest length in [lo, hi] whose BOUNDED probe is SAT.

    A SAT probe at L yields a solution of some length k <= L, so the
    upper end moves to k - 1 directly, but never below lo. If the puzzle
    can be finished before lo, every length in the window is SAT and the
    answer comes from _tight_scan instead.
    """
    probes: List[ProbeRecord] = []
    best: Optional[Solution] = None
    low, high = lo, hi

    while low <= high:
        mid = (low + high) // 2
        record, result, formula = probe(graph, mid, EncodingMode.BOUNDED, backend)
        probes.append(record)

        if result.verdict is SatResult.UNKNOWN:
            logger.warning("Size %d is indeterminate, stopping search", mid)
            return SearchResult("indeterminate", mode.name, (lo, hi), probes=probes)

        if result.is_sat:
            best = extract_solution(graph, formula, result)
            high = max(min(mid, best.length), lo) - 1
        else:
            low = mid + 1
        logger.debug("Search window now [%d, %d]", low, high)

    if best is None:
        return SearchResult("no_solution", mode.name, (lo, hi), probes=probes)

    if best.length < lo:
        logger.info("Puzzle finishes in %d moves, below %d; scanning exact sizes", best.length, lo)
        return _tight_scan(graph, mode, lo, hi, backend, probes)

    logger.info("Solution length: %d", best.length)
    return SearchResult("solved", mode.name, (lo, hi), solution=best, probes=probes)


def _tight_scan(graph: ClusterGraph, mode: SearchMode, lo: int, hi: int,
                backend: SolverBackend, probes: List[ProbeRecord]) -> SearchResult:
    """First length from lo upward with a solution of exactly that many moves."""
    for length in range(lo, hi + 1):
        record, result, formula = probe(graph, length, EncodingMode.EXACT, backend)
        probes.append(record)

        if result.verdict is SatResult.UNKNOWN:
            logger.warning("Size %d is indeterminate, stopping search", length)
            return SearchResult("indeterminate", mode.name, (lo, hi), probes=probes)

        if result.is_sat:
            solution = extract_solution(graph, formula, result)
            logger.info("Solution length: %d", solution.length)
            return SearchResult("solved", mode.name, (lo, hi), solution=solution, probes=probes)

    return SearchResult("no_solution", mode.name, (lo, hi), probes=probes)


def _inspect(graph: ClusterGraph, mode: SearchMode, lo: int, hi: int,
             config: SolveConfig) -> SearchResult:
    """Build the first formula without solving (dry_run / print_asserts)."""
    length, encoding = _first_probe(mode, lo, hi)

    t0 = time.perf_counter()
    formula = encode_flood_constraints(graph, length, encoding)
    record = _record(formula, None, time.perf_counter() - t0)

    formula_text = None
    if config.print_asserts:
        formula_text = formula.to_lp_text()
        logger.info("Got %d asserts:\n%s", formula.num_constraints, formula_text)

    return SearchResult("dry_run", mode.name, (lo, hi), probes=[record], formula_text=formula_text)


def run_search(
    graph: ClusterGraph,
    mode: SearchMode,
    backend: Optional[SolverBackend] = None,
    config: Optional[SolveConfig] = None,
) -> SearchResult:
    """
    Run a search mode on a cluster graph.

    Args:
        graph: Cluster graph of the puzzle
        mode: Exact, Solve, Search, Min or Opt
        backend: Solver backend; a PulpBackend built from config by default
        config: Solver limits and inspection switches

    Returns:
        SearchResult; status "solved", "no_solution", "indeterminate"
        or "dry_run"

    Raises:
        InvalidBoundsError: If the mode's bounds are unusable

    Example:
        >>> graph, _ = build_cluster_graph(np.array([[0, 1], [1, 1]]))
        >>> result = run_search(graph, Min())
        >>> result.status, result.solution.colors
        ('solved', (1,))
    """
    validate_mode(mode)
    config = config or SolveConfig()
    lo, hi = mode_bounds(graph, mode)

    logger.info("Clusters: %d, colors: %d, strategy: %s, solution bounds: [%d, %d]",
                graph.num_clusters, graph.num_colors, mode, lo, hi)

    if graph.num_clusters == 1:
        return SearchResult("solved", mode.name, (lo, hi), solution=Solution(colors=()))

    if config.dry_run or config.print_asserts:
        return _inspect(graph, mode, lo, hi, config)

    if backend is None:
        backend = PulpBackend.from_config(config)

    if isinstance(mode, Exact):
        return _run_single(graph, mode, lo, EncodingMode.EXACT, backend, (lo, hi))
    if isinstance(mode, Solve):
        return _run_single(graph, mode, hi, EncodingMode.BOUNDED, backend, (lo, hi))
    if isinstance(mode, Opt):
        return _run_single(graph, mode, hi, EncodingMode.OPTIMIZE, backend, (lo, hi))
    return _binary_search(graph, mode, lo, hi, backend)


def solve_grid(
    grid: Grid,
    mode: SearchMode,
    start_tile: Tile = DEFAULT_START,
    backend: Optional[SolverBackend] = None,
    config: Optional[SolveConfig] = None,
) -> SearchResult:
    """Build the cluster graph of a grid and run a search mode on it."""
    graph, _ = build_cluster_graph(as_grid(grid), start_tile)
    return run_search(graph, mode, backend=backend, config=config)


def solve_exact(graph: ClusterGraph, size: int, **kwargs) -> SearchResult:
    return run_search(graph, Exact(size), **kwargs)


def solve_heuristic(graph: ClusterGraph, **kwargs) -> SearchResult:
    return run_search(graph, Solve(), **kwargs)


def binary_search(graph: ClusterGraph, lo: int, hi: int, **kwargs) -> SearchResult:
    return run_search(graph, Search(lo, hi), **kwargs)


def solve_min(graph: ClusterGraph, **kwargs) -> SearchResult:
    return run_search(graph, Min(), **kwargs)


def solve_opt(graph: ClusterGraph, hi: Optional[int] = None, **kwargs) -> SearchResult:
    return run_search(graph, Opt(hi), **kwargs)
