"""
Search modes for the Flood-it solver.

A mode says how candidate lengths are probed. Each mode is a small frozen
dataclass carrying only its own parameters; SearchMode is their union and
the driver dispatches on the concrete type.

  Exact(n)        one probe, the solution must take exactly n moves
  Solve()         one probe at the heuristic upper bound, not minimal
  Search(lo, hi)  binary search for the minimal length in [lo, hi]
  Min()           Search with bounds derived from the puzzle
  Opt(hi)         one optimization probe; hi defaults to the upper bound
"""

from dataclasses import dataclass
from typing import Optional, Union


class InvalidBoundsError(ValueError):
    """Raised when a mode's numeric parameters cannot describe any search."""
    pass


@dataclass(frozen=True)
class Exact:
    size: int
    name = "exact"


@dataclass(frozen=True)
class Solve:
    name = "solve"


@dataclass(frozen=True)
class Search:
    lower_bound: int
    upper_bound: int
    name = "search"


@dataclass(frozen=True)
class Min:
    name = "min"


@dataclass(frozen=True)
class Opt:
    upper_bound: Optional[int] = None
    name = "opt"


SearchMode = Union[Exact, Solve, Search, Min, Opt]


def validate_mode(mode: SearchMode) -> None:
    """
    Reject modes whose bounds are unusable, before any encoding work.

    Raises:
        InvalidBoundsError: On negative lengths or lower_bound > upper_bound
        TypeError: If mode is not one of the SearchMode types
    """
    if isinstance(mode, Exact):
        if mode.size < 0:
            raise InvalidBoundsError(f"Exact size must be >= 0, got {mode.size}")
    elif isinstance(mode, Search):
        if mode.lower_bound < 0:
            raise InvalidBoundsError(f"Lower bound must be >= 0, got {mode.lower_bound}")
        if mode.lower_bound > mode.upper_bound:
            raise InvalidBoundsError(
                f"Lower bound {mode.lower_bound} exceeds upper bound {mode.upper_bound}"
            )
    elif isinstance(mode, Opt):
        if mode.upper_bound is not None and mode.upper_bound < 0:
            raise InvalidBoundsError(f"Upper bound must be >= 0, got {mode.upper_bound}")
    elif not isinstance(mode, (Solve, Min)):
        raise TypeError(f"Unknown search mode: {mode!r}")


def parse_mode(name: str, *params: int) -> SearchMode:
    """
    Build a mode from its name and positional parameters.

    Example:
        >>> parse_mode("search", 2, 9)
        Search(lower_bound=2, upper_bound=9)
        >>> parse_mode("opt")
        Opt(upper_bound=None)

    Raises:
        ValueError: If the name is unknown or the parameter count is wrong
    """
    builders = {
        "exact": (Exact, 1, 1),
        "solve": (Solve, 0, 0),
        "search": (Search, 2, 2),
        "min": (Min, 0, 0),
        "opt": (Opt, 0, 1),
    }
    if name not in builders:
        available = ", ".join(builders)
        raise ValueError(f"Unknown search mode: {name}. Available: {available}")

    cls, min_params, max_params = builders[name]
    if not min_params <= len(params) <= max_params:
        raise ValueError(
            f"Mode '{name}' takes {min_params}..{max_params} parameters, got {len(params)}"
        )
    return cls(*params)
