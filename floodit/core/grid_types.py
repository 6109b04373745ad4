"""
Core grid types and utilities for the Flood-it solver.

This module defines the Grid representation shared by every stage of the
pipeline, plus the few tile-level helpers the core needs:

Grid: always shape (H, W), integer dtype, values in {0, ..., C-1}
Tiles: addressed as (row, col) tuples, 4-connected
Start tile: (0, 0) unless a caller says otherwise

Grids are never mutated in place; apply_color returns a fresh array.
"""

from typing import Sequence, Tuple, TypeAlias, Union

import numpy as np
from scipy import ndimage as ndi


Grid: TypeAlias = np.ndarray  # shape: (H, W), dtype: int, values in {0, ..., C-1}
Tile: TypeAlias = Tuple[int, int]  # (row, col) in {0, ..., H-1} x {0, ..., W-1}

# 4-connectivity structure for scipy.ndimage.label (no diagonals)
FOUR_CONNECTIVITY = np.array([[0, 1, 0],
                              [1, 1, 1],
                              [0, 1, 0]], dtype=int)

DEFAULT_START: Tile = (0, 0)


class MalformedGridError(ValueError):
    """Raised when a grid or start tile violates the Grid invariants."""
    pass


def as_grid(data: Union[Grid, Sequence[Sequence[int]]]) -> Grid:
    """
    Convert nested lists (or an existing array) into a Grid.

    Args:
        data: 2D array-like of integer colors

    Returns:
        Read-only numpy array of shape (H, W), dtype=int

    Raises:
        MalformedGridError: If rows are ragged or values are not integers
    """
    try:
        grid = np.array(data)
    except ValueError as e:
        raise MalformedGridError(f"Grid rows must have equal length: {e}") from e

    if grid.dtype == object:
        raise MalformedGridError("Grid rows must have equal length")
    if grid.size > 0 and not np.issubdtype(grid.dtype, np.integer):
        raise MalformedGridError(f"Grid values must be integers, got dtype={grid.dtype}")

    grid = grid.astype(int)
    grid.setflags(write=False)
    return grid


def validate_grid(grid: Grid, start: Tile = DEFAULT_START) -> None:
    """
    Check the Grid invariants before any labeling work starts.

    Invariants:
      - 2-dimensional, at least one row and one column
      - integer colors, smallest color is 0 (colors are contiguous from 0)
      - start tile lies inside the grid

    Args:
        grid: Grid to check
        start: Designated start tile

    Raises:
        MalformedGridError: If any invariant is violated
    """
    if grid.ndim != 2:
        raise MalformedGridError(f"Grid must be 2D, got {grid.ndim}D")
    if grid.shape[0] == 0 or grid.shape[1] == 0:
        raise MalformedGridError(f"Grid must not be empty, got shape {grid.shape}")
    if not np.issubdtype(grid.dtype, np.integer):
        raise MalformedGridError(f"Grid values must be integers, got dtype={grid.dtype}")
    if int(grid.min()) != 0:
        raise MalformedGridError(f"Min color value must be 0, got {int(grid.min())}")

    r, c = start
    H, W = grid.shape
    if not (0 <= r < H and 0 <= c < W):
        raise MalformedGridError(f"Start tile {start} outside grid of shape {grid.shape}")


def num_colors(grid: Grid) -> int:
    """
    Number of colors C used by this grid (max color + 1).

    Colors that do not appear in the grid but lie below the maximum still
    count, matching the [0, C) color domain of the move variables.
    """
    return int(grid.max()) + 1


def flooded_region(grid: Grid, start: Tile = DEFAULT_START) -> np.ndarray:
    """
    Boolean mask of the tiles currently connected to the start tile.

    The region is the 4-connected component of start's color that
    contains start.
    """
    mask = grid == grid[start]
    labels, _ = ndi.label(mask, structure=FOUR_CONNECTIVITY)
    return labels == labels[start]


def apply_color(grid: Grid, color: int, start: Tile = DEFAULT_START) -> Grid:
    """
    Play one move: recolor the region connected to the start tile.

    Args:
        grid: Current grid (unchanged)
        color: Color chosen for this move
        start: Start tile

    Returns:
        New grid after the move

    Example:
        >>> grid = np.array([[0, 1], [1, 1]])
        >>> apply_color(grid, 1)
        array([[1, 1],
               [1, 1]])
    """
    out = np.array(grid, copy=True)
    out[flooded_region(grid, start)] = color
    return out


def is_single_color(grid: Grid) -> bool:
    """True if every tile has the same color (the puzzle is solved)."""
    return bool(np.all(grid == grid.flat[0]))


def print_grid(grid: Grid) -> None:
    """
    Print a small ASCII representation of the grid for debugging.

    Each row is printed on its own line with space-separated integer values.
    """
    assert grid.ndim == 2, f"Grid must be 2D, got {grid.ndim}D"

    for row in grid:
        print(' '.join(str(int(val)) for val in row))


if __name__ == "__main__":
    # Self-test: play the one-move puzzle
    grid = as_grid([[0, 1], [1, 1]])
    print("Grid:")
    print_grid(grid)

    validate_grid(grid)
    after = apply_color(grid, 1)
    print("After move 1:")
    print_grid(after)

    assert is_single_color(after), "Grid should be flooded after one move"
    print("apply_color self-test passed.")
