"""
Linear constraint builder for the flood constraint system.

This module defines the data structures used to collect linear constraints
over the flat variable vector v described in constraints/indexing.py.

Constraints have the form:
    sum_i coeffs[i] * v[indices[i]]  (<=, >=, ==)  rhs

Every constraint carries the name of the constraint family that emitted it,
so formulas can report how many constraints each rule produced.

This is the generic constraint plumbing used by the encoder. No solver logic
here.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Literal


Sense = Literal["<=", ">=", "=="]


@dataclass(frozen=True)
class LinearConstraint:
    """
    Represents a single linear constraint over the variable vector:

        sum_i coeffs[i] * v[indices[i]]  sense  rhs

    Attributes:
        indices: Indices into v
        coeffs: Coefficients (same length as indices)
        sense: "<=", ">=" or "=="
        rhs: Right-hand side value
        family: Name of the constraint family (e.g. "monotone")

    Example:
        # f[0,0] -> f[0,1], written as f[0,0] - f[0,1] <= 0
        LinearConstraint(indices=(0, 1), coeffs=(1, -1), sense="<=", rhs=0, family="monotone")
    """
    indices: tuple
    coeffs: tuple
    sense: Sense
    rhs: int
    family: str = ""


@dataclass(frozen=True)
class LinearObjective:
    """
    Linear objective sum_i coeffs[i] * v[indices[i]], always maximized.

    Attributes:
        indices: Indices into v
        coeffs: Coefficients (same length as indices)
    """
    indices: tuple
    coeffs: tuple


@dataclass
class ConstraintBuilder:
    """
    Collects linear constraints over the variable vector.

    The encoder sets `family` before emitting each rule so that every
    constraint is tagged with the rule it belongs to.

    Attributes:
        constraints: List of LinearConstraint objects, in emission order
        family: Tag applied to constraints added from now on
    """
    constraints: List[LinearConstraint] = field(default_factory=list)
    family: str = ""

    def add(self, indices: List[int], coeffs: List[int], sense: Sense, rhs: int) -> None:
        """
        Add a generic linear constraint.

        Args:
            indices: Indices into the variable vector
            coeffs: Coefficients (must be same length as indices)
            sense: "<=", ">=" or "=="
            rhs: Right-hand side value

        Raises:
            AssertionError: If indices and coeffs have different lengths
                            or sense is not recognised
        """
        assert len(indices) == len(coeffs), \
            f"indices and coeffs must have same length, got {len(indices)} != {len(coeffs)}"
        assert sense in ("<=", ">=", "=="), f"Unknown sense: {sense!r}"

        self.constraints.append(
            LinearConstraint(
                indices=tuple(indices),
                coeffs=tuple(coeffs),
                sense=sense,
                rhs=rhs,
                family=self.family,
            )
        )

    def add_eq(self, indices: List[int], coeffs: List[int], rhs: int) -> None:
        self.add(indices, coeffs, "==", rhs)

    def add_le(self, indices: List[int], coeffs: List[int], rhs: int) -> None:
        self.add(indices, coeffs, "<=", rhs)

    def add_ge(self, indices: List[int], coeffs: List[int], rhs: int) -> None:
        self.add(indices, coeffs, ">=", rhs)

    def fix_true(self, idx: int) -> None:
        """Force binary variable v[idx] = 1."""
        self.add_eq([idx], [1], 1)

    def fix_false(self, idx: int) -> None:
        """Force binary variable v[idx] = 0."""
        self.add_eq([idx], [1], 0)

    def implies(self, a: int, b: int) -> None:
        """
        Binary implication v[a] -> v[b], written as v[a] - v[b] <= 0.
        """
        self.add_le([a, b], [1, -1], 0)

    def family_counts(self) -> Dict[str, int]:
        """Number of constraints emitted per family, in first-seen order."""
        return count_families(self.constraints)


def count_families(constraints: Iterable[LinearConstraint]) -> Dict[str, int]:
    """Number of constraints per family tag, in first-seen order."""
    return dict(Counter(c.family for c in constraints))


def add_one_hot_constraint(builder: ConstraintBuilder, indices: List[int]) -> None:
    """
    Enforce that exactly one of the given binary variables is 1:

        sum_k v[indices[k]] = 1

    Example:
        >>> builder = ConstraintBuilder()
        >>> add_one_hot_constraint(builder, [4, 5, 6])
        >>> builder.constraints[0].rhs
        1
    """
    builder.add_eq(list(indices), [1] * len(indices), 1)


if __name__ == "__main__":
    print("Testing ConstraintBuilder...")
    b = ConstraintBuilder()

    b.family = "one_hot"
    add_one_hot_constraint(b, [0, 1, 2])
    b.family = "monotone"
    b.implies(3, 4)
    b.fix_true(5)

    assert len(b.constraints) == 3, f"Expected 3 constraints, got {len(b.constraints)}"
    assert b.constraints[1].coeffs == (1, -1)
    assert b.constraints[1].sense == "<="
    assert b.family_counts() == {"one_hot": 1, "monotone": 2}
    print(f"  ✓ family counts: {b.family_counts()}")

    print("\n✓ builder.py sanity checks passed.")
