"""
Solver backend interface.

The search driver only needs a narrow set of operations from a solver:

  - declare variables and assert constraints (formula fragments)
  - push/pop assertion scopes so a probe can retract its constraints
  - check satisfiability, or maximize a linear objective
  - render the asserted system as text for inspection

Any mixed-integer or SMT engine with linear integer arithmetic can sit
behind this interface. PulpBackend (solver/pulp_backend.py) is the
implementation shipped with the package.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

import numpy as np

from floodit.constraints.builder import LinearConstraint, LinearObjective
from floodit.constraints.encoder import FloodFormula
from floodit.constraints.indexing import VariableSpec


class SatResult(str, Enum):
    """
    Verdict of one solver call.

    UNKNOWN covers time limits and any status the solver cannot prove
    either way. It is never treated as UNSAT.
    """
    SAT = "sat"
    UNSAT = "unsat"
    UNKNOWN = "unknown"


@dataclass
class CheckResult:
    """
    Result of check() or maximize().

    Attributes:
        verdict: SAT, UNSAT or UNKNOWN
        values: Variable values indexed like the variable vector (SAT only)
        objective_value: Optimal objective (maximize() with SAT only)
        solver_status: Raw status string reported by the engine
    """
    verdict: SatResult
    values: Optional[np.ndarray] = None
    objective_value: Optional[float] = None
    solver_status: str = ""

    @property
    def is_sat(self) -> bool:
        return self.verdict is SatResult.SAT


class SolverBackend(ABC):
    """
    Abstract base class for solver backends.

    Subclasses keep a stack of scopes. Declarations and assertions go
    into the innermost scope; pop_scope() discards everything asserted
    since the matching push_scope().
    """
    name: str = "base"

    @abstractmethod
    def declare(self, variables: Iterable[VariableSpec]) -> None:
        """Declare variables in the current scope."""

    @abstractmethod
    def assert_constraint(self, constraint: LinearConstraint) -> None:
        """Assert one constraint in the current scope."""

    @abstractmethod
    def push_scope(self) -> None:
        """Open a new assertion scope."""

    @abstractmethod
    def pop_scope(self) -> None:
        """
        Discard the innermost scope.

        Raises:
            RuntimeError: If only the base scope is left
        """

    @abstractmethod
    def check(self) -> CheckResult:
        """Decide satisfiability of everything asserted."""

    @abstractmethod
    def maximize(self, objective: LinearObjective) -> CheckResult:
        """Maximize objective subject to everything asserted."""

    @abstractmethod
    def render(self) -> str:
        """Asserted system as text in the engine's exchange format."""

    @property
    @abstractmethod
    def num_constraints(self) -> int:
        """Number of currently asserted constraints."""

    @property
    @abstractmethod
    def num_variables(self) -> int:
        """Number of currently declared variables."""

    def assert_formula(self, formula: FloodFormula) -> None:
        """Declare the formula's variables and assert all its constraints."""
        self.declare(formula.variables)
        for constraint in formula.constraints:
            self.assert_constraint(constraint)
