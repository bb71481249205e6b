"""Random node selection by recursive descent.

Starting from a subtree root, the walk stops at the current node with
probability ``1 / size`` and otherwise descends left with probability
``size(left) / (size - 1)``. Every node of a subtree of size ``s`` is thus
selected with probability exactly ``1 / s``, without enumerating the tree.
"""

from __future__ import annotations

from typing import NamedTuple

from normtree.errors import SelectionError
from normtree.gen import Tracer, gen
from normtree.nodes import Branch, Leaf, Node, left_child, right_child


class Selection(NamedTuple):
    node: Node
    idx: int
    depth: int


def stop_probability(node: Node, leaf_only: bool, exclude_root: bool) -> float:
    match node:
        case Leaf():
            if exclude_root:
                raise SelectionError(
                    f"Impossible selection: cannot exclude the root of leaf {node}"
                )
            return 1.0
        case Branch():
            if exclude_root or leaf_only:
                return 0.0
            return 1.0 / node.size
        case _:
            raise TypeError(f"Unexpected node in stop_probability: {node!r}")


def recurse_left_probability(node: Branch) -> float:
    return node.left.size / (node.size - 1)


@gen
def select_random_node(
    t: Tracer,
    node: Node,
    idx: int,
    depth: int,
    leaf_only: bool,
    exclude_root: bool,
) -> Selection:
    """
    Pick a node of the subtree rooted at ``node`` (heap index ``idx``).

    Choices: ``("done", depth)`` at each visited level and
    ``("recurse_left", idx)`` at each branch descended through.
    ``exclude_root`` applies only to this call's own node.
    """

    if t.bernoulli(("done", depth), stop_probability(node, leaf_only, exclude_root)):
        return Selection(node, idx, depth)
    match node:
        case Branch(left, right):
            if t.bernoulli(("recurse_left", idx), recurse_left_probability(node)):
                return t.splice(select_random_node, left, left_child(idx), depth + 1, leaf_only, False)
            return t.splice(select_random_node, right, right_child(idx), depth + 1, leaf_only, False)
        case _:
            raise TypeError(f"Unexpected node in select_random_node: {node!r}")


__all__ = ["Selection", "recurse_left_probability", "select_random_node", "stop_probability"]
