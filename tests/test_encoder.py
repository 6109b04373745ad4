"""
Tests for the variable layout and the flood constraint encoder.

Covers:
  - FloodLayout index blocks are disjoint and cover every variable
  - per-family constraint counts for each encoding mode
  - determinism of the encoder
  - argument validation
"""

import numpy as np
import pytest

from floodit.constraints.builder import ConstraintBuilder, add_one_hot_constraint, count_families
from floodit.constraints.encoder import EncodingMode, encode_flood_constraints
from floodit.constraints.indexing import FloodLayout
from floodit.features.clusters import build_cluster_graph


TWO_CLUSTERS = np.array([[0, 1], [1, 1]], dtype=int)
PATH_OF_FOUR = np.array([[0, 1, 0, 1]], dtype=int)


def _expected_counts(graph, length, mode):
    """Constraint counts per family, derived from the graph by hand."""
    N, C, L = graph.num_clusters, graph.num_colors, length
    non_start = [n for n in range(N) if n != graph.start]
    degree_sum = sum(len(graph.neighbours(n)) for n in non_start)

    counts = {
        "color_domain": 4 * L,
        "no_repeat": max(L - 1, 0) * C,
        "terminal": N,
        "start": L + 1,
        "initial": N - 1,
        "monotone": len(non_start) * L,
        "propagate": degree_sum * L,
        "block": 2 * len(non_start) * L,
    }
    if mode is EncodingMode.EXACT and L >= 1:
        counts["tight"] = 1
    if mode is EncodingMode.OPTIMIZE:
        counts["done"] = N * (L + 1)
    return {k: v for k, v in counts.items() if v > 0}


def test_layout_blocks_cover_every_index():
    print("\n" + "=" * 70)
    print("TEST: FloodLayout index blocks")
    print("=" * 70)

    for with_done in (False, True):
        layout = FloodLayout(num_clusters=3, num_colors=4, length=5, with_done=with_done)
        specs = layout.variable_specs()

        assert [s.index for s in specs] == list(range(layout.num_variables))
        assert len({s.name for s in specs}) == len(specs), "Variable names must be unique"

        expected = 3 * 6 + 5 * 4 + 5 + (6 if with_done else 0)
        assert layout.num_variables == expected, \
            f"Expected {expected} variables, got {layout.num_variables}"

    layout = FloodLayout(num_clusters=3, num_colors=4, length=5)
    for idx in range(3 * 6):
        n, t = layout.unflatten_flood_index(idx)
        assert layout.flood_index(n, t) == idx

    print("  ✓ indices contiguous, names unique, flood index invertible")


def test_layout_variable_kinds():
    layout = FloodLayout(num_clusters=2, num_colors=3, length=2)
    specs = {s.name: s for s in layout.variable_specs()}

    assert specs["f_1_2"].cat == "Binary"
    assert specs["x_1_2"].cat == "Binary"
    assert specs["color_0"].cat == "Integer"
    assert specs["color_0"].low is None and specs["color_0"].up is None


def test_done_index_requires_done_block():
    layout = FloodLayout(num_clusters=2, num_colors=2, length=1)
    with pytest.raises(AssertionError):
        layout.done_index(0)


def test_two_cluster_exact_counts():
    graph, _ = build_cluster_graph(TWO_CLUSTERS)
    formula = encode_flood_constraints(graph, 1, EncodingMode.EXACT)

    assert formula.family_counts() == {
        "color_domain": 4,
        "terminal": 2,
        "start": 2,
        "initial": 1,
        "monotone": 1,
        "propagate": 1,
        "block": 2,
        "tight": 1,
    }
    assert formula.num_constraints == 14
    assert formula.objective is None
    assert formula.length == 1


@pytest.mark.parametrize("mode", list(EncodingMode))
@pytest.mark.parametrize("length", [0, 1, 3])
def test_family_counts_match_graph(mode, length):
    graph, _ = build_cluster_graph(PATH_OF_FOUR)
    formula = encode_flood_constraints(graph, length, mode)

    assert formula.family_counts() == _expected_counts(graph, length, mode)
    assert formula.num_constraints == sum(_expected_counts(graph, length, mode).values())


def test_every_constraint_is_well_formed():
    graph, _ = build_cluster_graph(PATH_OF_FOUR)
    formula = encode_flood_constraints(graph, 3, EncodingMode.OPTIMIZE)
    num_vars = formula.layout.num_variables

    for lc in formula.constraints:
        assert len(lc.indices) == len(lc.coeffs)
        assert lc.sense in ("<=", ">=", "==")
        assert all(0 <= idx < num_vars for idx in lc.indices), \
            f"{lc.family} constraint references a variable outside the layout"

    assert formula.objective is not None
    assert formula.objective.indices == tuple(
        formula.layout.done_index(t) for t in range(formula.layout.num_times)
    )


def test_encoder_is_deterministic():
    graph, _ = build_cluster_graph(PATH_OF_FOUR)

    first = encode_flood_constraints(graph, 3, EncodingMode.BOUNDED)
    second = encode_flood_constraints(graph, 3, EncodingMode.BOUNDED)

    assert first.constraints == second.constraints
    assert first.layout == second.layout


def test_mode_accepts_string_values():
    graph, _ = build_cluster_graph(TWO_CLUSTERS)
    formula = encode_flood_constraints(graph, 1, "bounded")

    assert formula.mode is EncodingMode.BOUNDED
    assert "tight" not in formula.family_counts()


def test_negative_length_is_rejected():
    graph, _ = build_cluster_graph(TWO_CLUSTERS)
    with pytest.raises(ValueError):
        encode_flood_constraints(graph, -1)


def test_unknown_mode_is_rejected():
    graph, _ = build_cluster_graph(TWO_CLUSTERS)
    with pytest.raises(ValueError):
        encode_flood_constraints(graph, 1, "fastest")


def test_builder_helpers():
    builder = ConstraintBuilder(family="demo")
    add_one_hot_constraint(builder, [0, 1, 2])
    builder.implies(3, 4)
    builder.fix_true(5)

    one_hot, implication, fixed = builder.constraints
    assert (one_hot.indices, one_hot.coeffs, one_hot.sense, one_hot.rhs) == ((0, 1, 2), (1, 1, 1), "==", 1)
    assert (implication.indices, implication.coeffs, implication.sense, implication.rhs) == ((3, 4), (1, -1), "<=", 0)
    assert (fixed.indices, fixed.sense, fixed.rhs) == ((5,), "==", 1)
    assert builder.family_counts() == {"demo": 3}


def test_family_counts_follow_emission_order():
    graph, _ = build_cluster_graph(PATH_OF_FOUR)
    formula = encode_flood_constraints(graph, 3, EncodingMode.EXACT)

    assert formula.family_counts() == count_families(formula.constraints)
    assert list(formula.family_counts()) == [
        "color_domain", "no_repeat", "terminal", "start", "initial",
        "monotone", "propagate", "block", "tight",
    ]

    builder = ConstraintBuilder()
    for family in ("b", "a", "b"):
        builder.family = family
        builder.fix_true(0)
    assert builder.family_counts() == {"b": 2, "a": 1}
    assert list(builder.family_counts()) == ["b", "a"]


def test_lp_text_names_variables():
    graph, _ = build_cluster_graph(TWO_CLUSTERS)

    text = encode_flood_constraints(graph, 1).to_lp_text()
    assert "Subject To" in text
    assert "f_1_1" in text
    assert "x_0_1" in text

    text = encode_flood_constraints(graph, 1, EncodingMode.OPTIMIZE).to_lp_text()
    assert "Maximize" in text
    assert "d_1" in text


if __name__ == "__main__":
    test_layout_blocks_cover_every_index()
    test_two_cluster_exact_counts()
    test_encoder_is_deterministic()
    print("\n✓ encoder tests passed")
