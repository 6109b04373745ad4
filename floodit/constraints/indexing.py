"""
Variable indexing for the flood constraint system.

All solver variables of one probe live in a single flat vector v. This
module fixes the layout of that vector for N clusters, C colors and a
candidate length L:

  block      symbol          count      index
  ---------  --------------  ---------  ---------------------------------
  flooded    f[n, t]         N*(L+1)    n*(L+1) + t
  choice     x[i, c]         L*C        F + i*C + c
  color      color[i]        L          F + X + i
  done       d[t]            L+1        F + X + L + t   (optimization only)

where F = N*(L+1) and X = L*C. Moves are 0-based: move i takes the game
from time i to time i+1, so t ranges over [0, L].

This is pure indexing math with no dependencies on constraints or solver.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class VariableSpec:
    """
    Declaration of one solver variable.

    Attributes:
        index: Position in the flat variable vector
        name: Unique solver-safe name (no spaces)
        cat: "Binary" or "Integer"
        low: Lower bound, or None for unbounded
        up: Upper bound, or None for unbounded
    """
    index: int
    name: str
    cat: str
    low: Optional[int] = None
    up: Optional[int] = None


@dataclass(frozen=True)
class FloodLayout:
    """
    Flat variable layout for one candidate length.

    Attributes:
        num_clusters: N
        num_colors: C
        length: L, number of moves
        with_done: Whether the done[t] block exists (optimization encoding)

    Example:
        >>> layout = FloodLayout(num_clusters=2, num_colors=2, length=1)
        >>> layout.flood_index(1, 1), layout.choice_index(0, 1), layout.color_index(0)
        (3, 5, 6)
        >>> layout.num_variables
        7
    """
    num_clusters: int
    num_colors: int
    length: int
    with_done: bool = False

    @property
    def num_times(self) -> int:
        """Number of time points, L+1."""
        return self.length + 1

    @property
    def _choice_offset(self) -> int:
        return self.num_clusters * self.num_times

    @property
    def _color_offset(self) -> int:
        return self._choice_offset + self.length * self.num_colors

    @property
    def _done_offset(self) -> int:
        return self._color_offset + self.length

    @property
    def num_variables(self) -> int:
        total = self._done_offset
        if self.with_done:
            total += self.num_times
        return total

    def flood_index(self, n: int, t: int) -> int:
        """Index of f[n, t]: cluster n is flooded at time t."""
        assert 0 <= n < self.num_clusters, f"cluster {n} out of range"
        assert 0 <= t <= self.length, f"time {t} out of range [0, {self.length}]"
        return n * self.num_times + t

    def choice_index(self, i: int, c: int) -> int:
        """Index of x[i, c]: move i picks color c."""
        assert 0 <= i < self.length, f"move {i} out of range"
        assert 0 <= c < self.num_colors, f"color {c} out of range"
        return self._choice_offset + i * self.num_colors + c

    def color_index(self, i: int) -> int:
        """Index of color[i]: the integer color of move i."""
        assert 0 <= i < self.length, f"move {i} out of range"
        return self._color_offset + i

    def done_index(self, t: int) -> int:
        """Index of d[t]: every cluster is flooded at time t."""
        assert self.with_done, "layout has no done block"
        assert 0 <= t <= self.length, f"time {t} out of range [0, {self.length}]"
        return self._done_offset + t

    def unflatten_flood_index(self, idx: int) -> Tuple[int, int]:
        """Inverse of flood_index: idx -> (n, t)."""
        return idx // self.num_times, idx % self.num_times

    def variable_specs(self) -> List[VariableSpec]:
        """Declarations for every variable, ordered by index."""
        specs = []
        for n in range(self.num_clusters):
            for t in range(self.num_times):
                specs.append(VariableSpec(self.flood_index(n, t), f"f_{n}_{t}", "Binary", 0, 1))
        for i in range(self.length):
            for c in range(self.num_colors):
                specs.append(VariableSpec(self.choice_index(i, c), f"x_{i}_{c}", "Binary", 0, 1))
        for i in range(self.length):
            specs.append(VariableSpec(self.color_index(i), f"color_{i}", "Integer"))
        if self.with_done:
            for t in range(self.num_times):
                specs.append(VariableSpec(self.done_index(t), f"d_{t}", "Binary", 0, 1))
        return specs


if __name__ == "__main__":
    layout = FloodLayout(num_clusters=3, num_colors=2, length=2, with_done=True)
    specs = layout.variable_specs()

    assert [s.index for s in specs] == list(range(layout.num_variables)), \
        "variable_specs must cover every index exactly once"

    for n in range(layout.num_clusters):
        for t in range(layout.num_times):
            assert layout.unflatten_flood_index(layout.flood_index(n, t)) == (n, t)

    print(f"{layout.num_variables} variables:")
    for s in specs:
        print(f"  {s.index:3d} {s.name}")
    print("✓ FloodLayout self-test passed")
