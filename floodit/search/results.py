"""
Result structures for Flood-it searches.

This module defines the objects a search hands back to its caller:
  - Solution: the move sequence, with replay on the tile grid
  - ProbeRecord: one encode+solve attempt at a candidate length
  - SearchResult: final status, solution and the full probe history

Status values:
  - "solved": a solution was found (minimal for search/min/opt/exact)
  - "no_solution": every probe was UNSAT
  - "indeterminate": a probe came back UNKNOWN; the search stopped there
  - "dry_run": formulas were built but never solved
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

from floodit.core.grid_types import DEFAULT_START, Grid, Tile, apply_color
from floodit.solver.backend import SatResult


SearchStatus = Literal["solved", "no_solution", "indeterminate", "dry_run"]


@dataclass(frozen=True)
class Solution:
    """
    A solution to a puzzle, encoded as a sequence of colors.

    Attributes:
        colors: Color picked by each move, in order
    """
    colors: Tuple[int, ...]

    @classmethod
    def from_colors(cls, colors) -> "Solution":
        return cls(colors=tuple(int(c) for c in colors))

    @property
    def length(self) -> int:
        return len(self.colors)

    def replay(self, grid: Grid, start: Tile = DEFAULT_START) -> List[Grid]:
        """
        Apply the moves to a tile grid, step by step.

        Returns:
            Grid before the first move followed by the grid after each move
        """
        states = [grid]
        for color in self.colors:
            states.append(apply_color(states[-1], color, start))
        return states

    def __str__(self) -> str:
        return " ".join(str(c) for c in self.colors)


@dataclass
class ProbeRecord:
    """
    One encode+solve attempt.

    Attributes:
        length: Candidate length L
        encoding: Encoding mode value ("exact", "bounded", "optimize")
        verdict: Backend verdict, or None if the probe was not solved
        num_constraints: Constraints in the formula
        num_variables: Variables in the formula
        family_counts: Constraints per family
        elapsed_sec: Wall time for encode + solve
        objective_value: Optimal objective (optimization probes only)
    """
    length: int
    encoding: str
    verdict: Optional[SatResult]
    num_constraints: int
    num_variables: int
    family_counts: Dict[str, int] = field(default_factory=dict)
    elapsed_sec: float = 0.0
    objective_value: Optional[float] = None


@dataclass
class SearchResult:
    """
    Complete record of one search invocation.

    Attributes:
        status: "solved", "no_solution", "indeterminate" or "dry_run"
        mode: Name of the search mode ("exact", "search", ...)
        bounds: (lo, hi) candidate lengths considered
        solution: The solution (status == "solved" only)
        probes: Every probe in the order it ran
        formula_text: LP rendering of the first formula (print_asserts only)
    """
    status: SearchStatus
    mode: str
    bounds: Tuple[int, int]
    solution: Optional[Solution] = None
    probes: List[ProbeRecord] = field(default_factory=list)
    formula_text: Optional[str] = None

    @property
    def solved(self) -> bool:
        return self.status == "solved"

    @property
    def length(self) -> Optional[int]:
        """Number of moves of the solution, or None if unsolved."""
        return self.solution.length if self.solution is not None else None
