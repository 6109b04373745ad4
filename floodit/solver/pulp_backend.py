"""
PuLP/CBC solver backend.

This module provides the SolverBackend used by the search driver:
  - Keeps declared variables and asserted constraints in a scope stack
  - On every check()/maximize() builds a fresh LpProblem from the
    active scopes
  - Solves it with PuLP's bundled CBC solver
  - Returns the verdict and the variable values as a numpy vector

CBC status mapping:
  - Optimal                       -> SAT
  - Infeasible                    -> UNSAT
  - Not Solved / Undefined / time limit without proof / Unbounded -> UNKNOWN

Uses standard pulp library (no custom solver implementation).
"""

import logging
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pulp

from floodit.constraints.builder import LinearConstraint, LinearObjective
from floodit.constraints.encoder import FloodFormula
from floodit.constraints.indexing import VariableSpec
from floodit.core.config import SolveConfig
from floodit.solver.backend import CheckResult, SatResult, SolverBackend

logger = logging.getLogger(__name__)


@dataclass
class _Scope:
    variables: List[VariableSpec] = field(default_factory=list)
    constraints: List[LinearConstraint] = field(default_factory=list)


def _relation(expr: pulp.LpAffineExpression, sense: str, rhs: int) -> pulp.LpConstraint:
    if sense == "<=":
        return expr <= rhs
    if sense == ">=":
        return expr >= rhs
    if sense == "==":
        return expr == rhs
    raise ValueError(f"Unknown constraint sense: {sense!r}")


class PulpBackend(SolverBackend):
    """
    SolverBackend on top of PuLP's CBC command-line solver.

    Args:
        time_limit_sec: CBC time limit per call, None for no limit
        threads: CBC thread count, None for the solver default
        msg: Echo CBC's log to stdout

    Example:
        >>> backend = PulpBackend()
        >>> backend.assert_formula(encode_flood_constraints(graph, 1))
        >>> backend.check().verdict
        <SatResult.SAT: 'sat'>
    """
    name = "pulp_cbc"

    def __init__(
        self,
        time_limit_sec: Optional[float] = None,
        threads: Optional[int] = None,
        msg: bool = False,
    ):
        self.time_limit_sec = time_limit_sec
        self.threads = threads
        self.msg = msg
        self._scopes: List[_Scope] = [_Scope()]

    @classmethod
    def from_config(cls, config: SolveConfig) -> "PulpBackend":
        return cls(
            time_limit_sec=config.time_limit_sec,
            threads=config.threads,
            msg=config.msg,
        )

    # ------------------------------------------------------------------
    # Assertions and scopes
    # ------------------------------------------------------------------

    def declare(self, variables: Iterable[VariableSpec]) -> None:
        self._scopes[-1].variables.extend(variables)

    def assert_constraint(self, constraint: LinearConstraint) -> None:
        self._scopes[-1].constraints.append(constraint)

    def push_scope(self) -> None:
        self._scopes.append(_Scope())

    def pop_scope(self) -> None:
        if len(self._scopes) == 1:
            raise RuntimeError("pop_scope() called without a matching push_scope()")
        self._scopes.pop()

    @property
    def scope_depth(self) -> int:
        """Number of pushed scopes above the base scope."""
        return len(self._scopes) - 1

    @property
    def num_constraints(self) -> int:
        return sum(len(s.constraints) for s in self._scopes)

    @property
    def num_variables(self) -> int:
        return len({v.index for s in self._scopes for v in s.variables})

    # ------------------------------------------------------------------
    # Solving
    # ------------------------------------------------------------------

    def _build_problem(self, sense: int) -> Tuple[pulp.LpProblem, Dict[int, pulp.LpVariable]]:
        """Translate the active scopes into a fresh LpProblem."""
        prob = pulp.LpProblem("floodit", sense)

        variables: Dict[int, pulp.LpVariable] = {}
        for scope in self._scopes:
            for spec in scope.variables:
                variables[spec.index] = pulp.LpVariable(
                    spec.name, lowBound=spec.low, upBound=spec.up, cat=spec.cat
                )

        for scope in self._scopes:
            for lc in scope.constraints:
                assert len(lc.indices) == len(lc.coeffs), \
                    f"Constraint has mismatched indices/coeffs: {len(lc.indices)} vs {len(lc.coeffs)}"
                expr = pulp.lpSum(coeff * variables[idx] for idx, coeff in zip(lc.indices, lc.coeffs))
                prob += _relation(expr, lc.sense, lc.rhs)

        return prob, variables

    def _solver(self) -> pulp.LpSolver:
        kwargs = {"msg": self.msg}
        if self.time_limit_sec is not None:
            kwargs["timeLimit"] = self.time_limit_sec
        if self.threads is not None:
            kwargs["threads"] = self.threads
        return pulp.PULP_CBC_CMD(**kwargs)

    def _solve(self, prob: pulp.LpProblem, variables: Dict[int, pulp.LpVariable],
               require_optimal: bool) -> CheckResult:
        logger.debug("Solving %d constraints over %d variables",
                     len(prob.constraints), len(variables))

        t0 = time.perf_counter()
        status = prob.solve(self._solver())
        elapsed = time.perf_counter() - t0

        solver_status = pulp.LpStatus[status]
        sol_status = getattr(prob, "sol_status", pulp.LpSolutionOptimal)

        if status == pulp.LpStatusOptimal and (
            sol_status == pulp.LpSolutionOptimal
            or (not require_optimal and sol_status == pulp.LpSolutionIntegerFeasible)
        ):
            verdict = SatResult.SAT
        elif status == pulp.LpStatusInfeasible:
            verdict = SatResult.UNSAT
        else:
            verdict = SatResult.UNKNOWN

        logger.info("CBC finished in %.2fs: %s -> %s", elapsed, solver_status, verdict.value)

        if verdict is not SatResult.SAT:
            return CheckResult(verdict=verdict, solver_status=solver_status)

        size = max(variables) + 1 if variables else 0
        values = np.zeros(size, dtype=int)
        for idx, var in variables.items():
            val = var.varValue
            # Guard against None or float noise
            values[idx] = int(round(val)) if val is not None else 0

        return CheckResult(verdict=verdict, values=values, solver_status=solver_status)

    def check(self) -> CheckResult:
        prob, variables = self._build_problem(pulp.LpMinimize)
        # Zero objective (feasibility only)
        prob += 0
        return self._solve(prob, variables, require_optimal=False)

    def maximize(self, objective: LinearObjective) -> CheckResult:
        prob, variables = self._build_problem(pulp.LpMaximize)
        prob += pulp.lpSum(
            coeff * variables[idx] for idx, coeff in zip(objective.indices, objective.coeffs)
        )

        result = self._solve(prob, variables, require_optimal=True)
        if result.is_sat:
            result.objective_value = float(pulp.value(prob.objective))
        return result

    def render(self, objective: Optional[LinearObjective] = None) -> str:
        """
        Asserted system in CPLEX LP format.

        Args:
            objective: Objective to include (rendered as Maximize), or None
        """
        if objective is None:
            prob, _ = self._build_problem(pulp.LpMinimize)
            prob += 0
        else:
            prob, variables = self._build_problem(pulp.LpMaximize)
            prob += pulp.lpSum(
                coeff * variables[idx] for idx, coeff in zip(objective.indices, objective.coeffs)
            )

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "floodit.lp"
            prob.writeLP(str(path))
            return path.read_text(encoding="utf-8")


def render_lp(formula: FloodFormula) -> str:
    """Render a formula in CPLEX LP format without solving it."""
    backend = PulpBackend()
    backend.assert_formula(formula)
    return backend.render(formula.objective)


if __name__ == "__main__":
    from floodit.constraints.builder import ConstraintBuilder
    from floodit.constraints.indexing import VariableSpec

    print("Testing pulp_backend.py with minimal example...")
    print("=" * 70)

    # a -> b, a = 1: forces b = 1
    builder = ConstraintBuilder()
    builder.implies(0, 1)
    builder.fix_true(0)

    backend = PulpBackend()
    backend.declare([VariableSpec(0, "a", "Binary", 0, 1), VariableSpec(1, "b", "Binary", 0, 1)])
    for lc in builder.constraints:
        backend.assert_constraint(lc)

    result = backend.check()
    print(f"Verdict: {result.verdict.value}, values: {result.values}")
    assert result.is_sat and list(result.values) == [1, 1]

    # b = 0 in a pushed scope contradicts the base scope
    backend.push_scope()
    builder = ConstraintBuilder()
    builder.fix_false(1)
    backend.assert_constraint(builder.constraints[0])
    assert backend.check().verdict is SatResult.UNSAT
    backend.pop_scope()
    assert backend.check().is_sat

    print("\n✓ pulp_backend.py self-test passed.")
    print("=" * 70)
