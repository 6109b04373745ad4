"""
Tests for grid helpers and run configuration.
"""

import json

import numpy as np
import pytest

from floodit.core.config import SolveConfig, load_solve_config, save_solve_config
from floodit.core.grid_types import (
    MalformedGridError,
    apply_color,
    as_grid,
    flooded_region,
    is_single_color,
    num_colors,
    validate_grid,
)


def test_as_grid_is_read_only():
    grid = as_grid([[0, 1], [2, 0]])

    assert grid.shape == (2, 2)
    assert np.issubdtype(grid.dtype, np.integer)
    with pytest.raises(ValueError):
        grid[0, 0] = 3


def test_as_grid_rejects_floats():
    with pytest.raises(MalformedGridError):
        as_grid([[0.5, 1.0]])


def test_validate_grid_rejects_bad_start():
    with pytest.raises(MalformedGridError):
        validate_grid(as_grid([[0, 1]]), start=(0, 2))
    with pytest.raises(MalformedGridError):
        validate_grid(as_grid([[0, 1]]), start=(-1, 0))


def test_num_colors_counts_gaps():
    # color 1 is absent but still part of the move domain
    assert num_colors(as_grid([[0, 2], [2, 0]])) == 3


def test_flooded_region_is_four_connected():
    grid = as_grid([
        [0, 1, 0],
        [1, 0, 0],
    ])
    region = flooded_region(grid)

    # (1, 1) touches (0, 0) only diagonally
    assert region.tolist() == [[True, False, False], [False, False, False]]


def test_apply_color_returns_new_grid():
    grid = as_grid([
        [0, 0, 1],
        [2, 0, 1],
    ])
    after = apply_color(grid, 1)

    assert after.tolist() == [[1, 1, 1], [2, 1, 1]]
    assert grid.tolist() == [[0, 0, 1], [2, 0, 1]], "Input grid must not change"

    final = apply_color(after, 2)
    assert is_single_color(final)
    assert not is_single_color(after)


def test_apply_color_from_other_start():
    grid = as_grid([[0, 1, 1]])
    assert apply_color(grid, 0, start=(0, 2)).tolist() == [[0, 0, 0]]


def test_config_defaults_when_missing(tmp_path):
    config = load_solve_config(tmp_path / "missing.json")
    assert config == SolveConfig()


def test_config_round_trip(tmp_path):
    path = tmp_path / "nested" / "floodit.json"
    config = SolveConfig(time_limit_sec=30.0, threads=4, msg=True, dry_run=True)

    save_solve_config(config, path)
    assert path.exists()
    assert load_solve_config(path) == config


def test_config_ignores_unknown_keys(tmp_path):
    path = tmp_path / "floodit.json"
    path.write_text(json.dumps({"threads": 2, "colour_scheme": "dark"}), encoding="utf-8")

    config = load_solve_config(path)
    assert config.threads == 2
    assert config.time_limit_sec is None


def test_config_invalid_json_falls_back(tmp_path):
    path = tmp_path / "floodit.json"
    path.write_text("{not json", encoding="utf-8")

    assert load_solve_config(path) == SolveConfig()
