import math
from collections import Counter

import numpy as np
import pytest

from normtree.errors import SelectionError
from normtree.gen import ChoiceMap
from normtree.nodes import (
    Colour,
    NoNorm,
    Norm,
    Obligation,
    Prohibition,
    Zone,
    iter_nodes,
    subtree_at,
)
from normtree.selection import (
    Selection,
    recurse_left_probability,
    select_random_node,
    stop_probability,
)


def _path_choices(idx: int) -> ChoiceMap:
    """Selection choices that walk from the root to heap index ``idx``."""

    cm = ChoiceMap()
    current, depth = 1, 1
    for step in bin(idx)[3:]:
        cm[("done", depth)] = False
        cm[("recurse_left", current)] = step == "0"
        current = 2 * current + int(step)
        depth += 1
    cm[("done", depth)] = True
    return cm


SMALL = Obligation(Colour("red"), Zone("2"))
LARGE = Norm(
    Obligation(Colour("red"), Zone("2")),
    Norm(Prohibition(Colour("any"), Zone("1")), NoNorm("true")),
)


def test_stop_probability() -> None:
    assert stop_probability(Zone("1"), leaf_only=False, exclude_root=False) == 1.0
    assert stop_probability(Zone("1"), leaf_only=True, exclude_root=False) == 1.0
    assert stop_probability(SMALL, leaf_only=False, exclude_root=False) == pytest.approx(1 / 3)
    assert stop_probability(SMALL, leaf_only=True, exclude_root=False) == 0.0
    assert stop_probability(SMALL, leaf_only=False, exclude_root=True) == 0.0


def test_recurse_left_probability_is_proportional_to_size() -> None:
    assert recurse_left_probability(SMALL) == pytest.approx(0.5)
    assert recurse_left_probability(LARGE) == pytest.approx(3 / 8)


@pytest.mark.parametrize("idx", [1, 2, 3])
def test_each_node_of_three_node_tree_has_probability_one_third(idx: int) -> None:
    weight, selection = select_random_node.assess((SMALL, 1, 1, False, False), _path_choices(idx))
    assert selection == Selection(subtree_at(SMALL, idx), idx, idx.bit_length())
    assert math.exp(weight) == pytest.approx(1 / 3)


def test_selection_is_uniform_over_every_node() -> None:
    n = LARGE.size
    for idx, depth, node in iter_nodes(LARGE):
        weight, selection = select_random_node.assess(
            (LARGE, 1, 1, False, False), _path_choices(idx)
        )
        assert selection == Selection(node, idx, depth)
        assert math.exp(weight) == pytest.approx(1 / n)


def test_empirical_frequencies_converge_to_uniform() -> None:
    rng = np.random.default_rng(0)
    trials = 3000
    counts = Counter(
        select_random_node.simulate((SMALL, 1, 1, False, False), rng).retval.idx
        for _ in range(trials)
    )
    assert set(counts) == {1, 2, 3}
    for idx in (1, 2, 3):
        assert counts[idx] / trials == pytest.approx(1 / 3, abs=0.05)


def test_single_leaf_always_selects_root() -> None:
    leaf = NoNorm("true")
    rng = np.random.default_rng(0)
    for _ in range(20):
        trace = select_random_node.simulate((leaf, 1, 1, False, False), rng)
        assert trace.retval == Selection(leaf, 1, 1)
        assert trace.score == 0.0


def test_excluding_root_of_leaf_is_impossible() -> None:
    with pytest.raises(SelectionError, match="Impossible selection"):
        select_random_node.simulate((NoNorm("true"), 1, 1, False, True), np.random.default_rng(0))


def test_excluding_root_never_returns_root() -> None:
    rng = np.random.default_rng(2)
    for _ in range(200):
        selection = select_random_node.simulate((LARGE, 1, 1, False, True), rng).retval
        assert selection.idx != 1


def test_leaf_only_returns_leaves() -> None:
    rng = np.random.default_rng(3)
    seen = set()
    for _ in range(300):
        selection = select_random_node.simulate((LARGE, 1, 1, True, False), rng).retval
        assert selection.node.is_terminal
        seen.add(selection.idx)
    assert seen == {4, 5, 12, 13, 7}


def test_selection_choices_are_keyed_by_depth_and_index() -> None:
    trace, _ = select_random_node.generate((SMALL, 1, 1, False, False), _path_choices(3))
    assert trace is not None
    assert trace.choices.flatten() == {
        (("done", 1),): False,
        (("recurse_left", 1),): False,
        (("done", 2),): True,
    }
