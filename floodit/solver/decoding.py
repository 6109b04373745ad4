"""
Model decoding from the solved variable vector.

Given the value vector v returned by a backend and the FloodLayout it was
solved under, this module recovers:

  - the flooded matrix F with F[n, t] = f[n, t]      shape (N, L+1)
  - the color sequence color[0..L-1]
  - the first time at which every cluster is flooded

The color of move i is read from the one-hot block x[i, :] and checked
against the integer color[i] variable.
"""

from typing import List, Optional

import numpy as np

from floodit.constraints.indexing import FloodLayout


def flooded_matrix(values: np.ndarray, layout: FloodLayout) -> np.ndarray:
    """
    Decode f[n, t] into a boolean matrix.

    Args:
        values: Solved variable vector (length >= layout.num_variables
                minus any trailing undeclared block)
        layout: Layout the values were solved under

    Returns:
        Boolean array of shape (N, L+1)

    Example:
        >>> layout = FloodLayout(num_clusters=2, num_colors=2, length=1)
        >>> values = np.array([1, 1, 0, 1, 0, 1, 1])
        >>> flooded_matrix(values, layout)
        array([[ True,  True],
               [False,  True]])
    """
    size = layout.num_clusters * layout.num_times
    if values.size < size:
        raise ValueError(f"Value vector of length {values.size} is shorter than flood block {size}")

    return values[:size].reshape(layout.num_clusters, layout.num_times) > 0


def color_sequence(values: np.ndarray, layout: FloodLayout) -> List[int]:
    """
    Decode the color of every move.

    Raises:
        AssertionError: If a one-hot row does not have exactly one 1, or
                        disagrees with the integer color variable
    """
    colors = []
    for i in range(layout.length):
        row = np.array([values[layout.choice_index(i, c)] for c in range(layout.num_colors)])
        if row.sum() != 1:
            raise AssertionError(f"One-hot constraint violated for move {i}: {row.tolist()}")

        color = int(np.argmax(row))
        declared = int(values[layout.color_index(i)])
        if declared != color:
            raise AssertionError(f"Move {i}: color variable {declared} disagrees with one-hot {color}")

        colors.append(color)
    return colors


def first_flooded_time(flooded: np.ndarray) -> Optional[int]:
    """
    First time t at which every cluster is flooded, or None if never.

    Args:
        flooded: Boolean (N, L+1) matrix from flooded_matrix
    """
    all_flooded = np.all(flooded, axis=0)
    hits = np.flatnonzero(all_flooded)
    if hits.size == 0:
        return None
    return int(hits[0])
