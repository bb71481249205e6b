"""Immutable norm-tree nodes.

A norm tree is built from four leaf variants (``NoNorm``, ``Zone``, ``Colour``
and the ``Empty`` placeholder) and three binary variants (``Norm``,
``Obligation``, ``Prohibition``). Binary nodes cache their ``size`` and
``depth`` when constructed.

Positions are addressed with 1-based binary-heap indices: the root is ``1``,
the left child of ``idx`` is ``2 * idx`` and the right child ``2 * idx + 1``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Iterator


@dataclass(frozen=True)
class Node:
    """Base class for all norm-tree nodes."""

    is_terminal: ClassVar[bool] = False

    @property
    def type_name(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        from normtree.pretty import pretty

        return pretty(self)


@dataclass(frozen=True)
class Leaf(Node):
    is_terminal: ClassVar[bool] = True
    size: ClassVar[int] = 1
    depth: ClassVar[int] = 0


@dataclass(frozen=True)
class ValueLeaf(Leaf):
    value: str


@dataclass(frozen=True)
class NoNorm(ValueLeaf):
    pass


@dataclass(frozen=True)
class Zone(ValueLeaf):
    pass


@dataclass(frozen=True)
class Colour(ValueLeaf):
    pass


@dataclass(frozen=True)
class Empty(Leaf):
    """Placeholder for a missing second child."""


@dataclass(frozen=True)
class Branch(Node):
    left: Node
    right: Node
    size: int = field(init=False)
    depth: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "size", 1 + self.left.size + self.right.size)
        object.__setattr__(self, "depth", 1 + max(self.left.depth, self.right.depth))


@dataclass(frozen=True)
class Norm(Branch):
    pass


@dataclass(frozen=True)
class Obligation(Branch):
    pass


@dataclass(frozen=True)
class Prohibition(Branch):
    pass


LEAF_TYPES: tuple[type[Leaf], ...] = (NoNorm, Zone, Colour, Empty)
BRANCH_TYPES: tuple[type[Branch], ...] = (Norm, Obligation, Prohibition)


def left_child(idx: int) -> int:
    return 2 * idx


def right_child(idx: int) -> int:
    return 2 * idx + 1


def iter_nodes(node: Node, idx: int = 1, depth: int = 1) -> Iterator[tuple[int, int, Node]]:
    """Yield ``(idx, depth, node)`` for every node, parents before children."""

    yield idx, depth, node
    match node:
        case Branch(left, right):
            yield from iter_nodes(left, left_child(idx), depth + 1)
            yield from iter_nodes(right, right_child(idx), depth + 1)
        case Leaf():
            pass
        case _:
            raise TypeError(f"Unexpected node in iter_nodes: {node!r}")


def _path(idx: int) -> str:
    if idx < 1:
        raise IndexError(f"Invalid tree index {idx}")
    # Binary digits after the leading 1 spell the route: 0 = left, 1 = right.
    return bin(idx)[3:]


def subtree_at(node: Node, idx: int) -> Node:
    """Return the subtree rooted at heap index ``idx``."""

    current = node
    for step in _path(idx):
        if not isinstance(current, Branch):
            raise IndexError(f"No node at index {idx}")
        current = current.left if step == "0" else current.right
    return current


def replace_at(node: Node, idx: int, new: Node) -> Node:
    """Return a copy of ``node`` with the subtree at ``idx`` replaced by ``new``.

    Only the nodes on the path to ``idx`` are rebuilt; ``node`` itself is left
    untouched.
    """

    def go(current: Node, steps: str) -> Node:
        if not steps:
            return new
        if not isinstance(current, Branch):
            raise IndexError(f"No node at index {idx}")
        cls = type(current)
        if steps[0] == "0":
            return cls(go(current.left, steps[1:]), current.right)
        return cls(current.left, go(current.right, steps[1:]))

    return go(node, _path(idx))


def check_invariants(node: Node) -> None:
    """Re-derive every cached size/depth and compare with the stored values."""

    match node:
        case Branch(left, right):
            check_invariants(left)
            check_invariants(right)
            expected_size = 1 + left.size + right.size
            expected_depth = 1 + max(left.depth, right.depth)
            if node.size != expected_size or node.depth != expected_depth:
                raise ValueError(
                    f"{node.type_name} caches size={node.size}, depth={node.depth}; "
                    f"expected size={expected_size}, depth={expected_depth}"
                )
        case Leaf():
            if node.size != 1 or node.depth != 0:
                raise ValueError(f"Leaf {node!r} must have size 1 and depth 0")
        case _:
            raise TypeError(f"Unexpected node in check_invariants: {node!r}")


__all__ = [
    "BRANCH_TYPES",
    "Branch",
    "Colour",
    "Empty",
    "LEAF_TYPES",
    "Leaf",
    "Node",
    "NoNorm",
    "Norm",
    "Obligation",
    "Prohibition",
    "ValueLeaf",
    "Zone",
    "check_invariants",
    "iter_nodes",
    "left_child",
    "replace_at",
    "right_child",
    "subtree_at",
]
