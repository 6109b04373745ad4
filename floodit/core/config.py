"""
Run configuration for the Flood-it solver.

SolveConfig collects the knobs that do not change the meaning of a search
mode: solver limits and the two inspection switches (print_asserts and
dry_run). Configs can be stored as JSON on disk:

    {"time_limit_sec": 60, "threads": 2, "msg": false}

Missing keys fall back to the defaults below.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional


DEFAULT_CONFIG_PATH = Path("floodit.json")


@dataclass
class SolveConfig:
    """
    Settings shared by every probe of a search.

    Attributes:
        time_limit_sec: Per-probe CBC time limit; None means no limit.
                        Hitting the limit makes the probe UNKNOWN.
        threads: Number of CBC threads, or None for the solver default
        msg: Echo CBC's own log to stdout
        print_asserts: Render the first formula as LP text instead of solving
        dry_run: Build the formulas but never call the backend
    """
    time_limit_sec: Optional[float] = None
    threads: Optional[int] = None
    msg: bool = False
    print_asserts: bool = False
    dry_run: bool = False


def load_solve_config(path: Path = DEFAULT_CONFIG_PATH) -> SolveConfig:
    """
    Load a SolveConfig from a JSON file.

    Args:
        path: JSON file to read

    Returns:
        SolveConfig with file values merged over the defaults.
        Returns the defaults if the file is missing or unreadable.

    Example:
        >>> config = load_solve_config(Path("floodit.json"))
        >>> config.time_limit_sec is None or config.time_limit_sec > 0
        True
    """
    if not path.exists():
        return SolveConfig()

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

        known = {f.name for f in fields(SolveConfig)}
        return SolveConfig(**{k: v for k, v in data.items() if k in known})

    except (json.JSONDecodeError, AttributeError, TypeError):
        return SolveConfig()


def save_solve_config(config: SolveConfig, path: Path = DEFAULT_CONFIG_PATH) -> None:
    """
    Save a SolveConfig as JSON, creating parent directories if needed.

    Args:
        config: Config to write
        path: Destination file (overwritten)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        json.dump(asdict(config), f, indent=2)
