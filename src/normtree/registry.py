"""Explicit mapping from grammar node-type names to node constructors."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping

from normtree.errors import ConfigError
from normtree.nodes import (
    Branch,
    Colour,
    Leaf,
    Node,
    NoNorm,
    Norm,
    Obligation,
    Prohibition,
    Zone,
)


@dataclass(frozen=True)
class NodeKind:
    """
    A grammar node type.

    - name: the node-type name used in the grammar tables
    - constructor: builds the node (one value for leaves, two children for branches)
    - node_cls: the class of the nodes ``constructor`` returns
    - regrow_rule: for leaves, the rule a leaf of this kind is regrown under
    """

    name: str
    constructor: Callable[..., Node]
    node_cls: type[Node]
    regrow_rule: str | None = None

    @property
    def is_leaf(self) -> bool:
        return self.node_cls.is_terminal

    @staticmethod
    def leaf(name: str, cls: type[Leaf], regrow_rule: str) -> NodeKind:
        return NodeKind(name, lambda value: cls(value), cls, regrow_rule)

    @staticmethod
    def branch(name: str, cls: type[Branch]) -> NodeKind:
        return NodeKind(name, lambda left, right: cls(left, right), cls)


@dataclass(frozen=True)
class NodeRegistry:
    kinds: Mapping[str, NodeKind]
    by_class: Mapping[type[Node], NodeKind] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_class: dict[type[Node], NodeKind] = {}
        for kind in self.kinds.values():
            by_class.setdefault(kind.node_cls, kind)
        object.__setattr__(self, "by_class", MappingProxyType(by_class))

    @staticmethod
    def of(*kinds: NodeKind) -> NodeRegistry:
        return NodeRegistry(MappingProxyType({k.name: k for k in kinds}))

    def __contains__(self, name: object) -> bool:
        return name in self.kinds

    def lookup(self, name: str) -> NodeKind:
        try:
            return self.kinds[name]
        except KeyError:
            raise ConfigError(f"Unregistered node type {name!r}") from None

    def build_leaf(self, name: str, value: str) -> Node:
        kind = self.lookup(name)
        if not kind.is_leaf:
            raise ConfigError(f"Node type {name!r} is not a leaf")
        return kind.constructor(value)

    def build_branch(self, name: str, left: Node, right: Node) -> Node:
        kind = self.lookup(name)
        if kind.is_leaf:
            raise ConfigError(f"Node type {name!r} is not an internal node")
        return kind.constructor(left, right)

    def kind_of(self, node: Node) -> NodeKind:
        """Return the first registered kind whose class is exactly ``type(node)``."""

        try:
            return self.by_class[type(node)]
        except KeyError:
            raise ConfigError(f"No registered node type for {node.type_name}") from None

    def regrow_rule(self, node: Node) -> str:
        kind = self.kind_of(node)
        if kind.regrow_rule is None:
            raise ConfigError(f"Node type {kind.name!r} has no regrowth rule")
        return kind.regrow_rule


DEFAULT_REGISTRY = NodeRegistry.of(
    NodeKind.leaf("No_norm", NoNorm, "NO_NORM"),
    NodeKind.leaf("Zone", Zone, "ZONE"),
    NodeKind.leaf("Colour", Colour, "COLOUR"),
    NodeKind.branch("Norm", Norm),
    NodeKind.branch("Obl", Obligation),
    NodeKind.branch("Pro", Prohibition),
)


__all__ = ["DEFAULT_REGISTRY", "NodeKind", "NodeRegistry"]
