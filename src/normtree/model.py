"""Grammar-driven generation of norm trees."""

from __future__ import annotations

from normtree.config import NormConfig
from normtree.errors import ConfigError
from normtree.gen import Tracer, gen
from normtree.nodes import Empty, Node, left_child, right_child


@gen
def generate(t: Tracer, idx: int, rule: str, config: NormConfig) -> Node:
    """
    Grow the subtree at heap index ``idx`` from grammar rule ``rule``.

    Choices are recorded at ``(idx, "node_type")`` and, for leaves, at
    ``(idx, <leaf type>)``. Children are grown at ``2 * idx`` and
    ``2 * idx + 1`` in the same namespace, left before right.
    """

    node_type = t.categorical((idx, "node_type"), config.node_type_probabilities[rule])
    child_rules = config.rules[rule][node_type]

    if not child_rules:
        values = config.terminal_value_probabilities.get(node_type)
        if values is None:
            raise ConfigError(f"No distribution found for terminal parameter {node_type!r}")
        value = t.categorical((idx, node_type), values)
        return config.registry.build_leaf(node_type, value)

    if len(child_rules) > 2:
        raise ConfigError(
            f"Invalid arity for {node_type!r}: internal nodes support at most two children"
        )
    left = t.splice(generate, left_child(idx), child_rules[0], config)
    right: Node = Empty()
    if len(child_rules) == 2:
        right = t.splice(generate, right_child(idx), child_rules[1], config)
    return config.registry.build_branch(node_type, left, right)


@gen
def model(t: Tracer, config: NormConfig) -> Node:
    """A whole norm tree, with its choices under the ``"tree"`` address."""

    return t.call("tree", generate, 1, config.root_rule, config)


__all__ = ["generate", "model"]
