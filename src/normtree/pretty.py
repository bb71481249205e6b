"""Pretty-printing utilities for norm trees and choice maps."""

from __future__ import annotations

import re

from normtree.gen import ChoiceMap
from normtree.nodes import Branch, Empty, Node, ValueLeaf

_BARE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*|\d+")


def _value(text: str) -> str:
    if _BARE.fullmatch(text):
        return text
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def pretty(node: Node) -> str:
    """Return ``node`` in the syntax accepted by :func:`normtree.parse.parse_node`."""

    match node:
        case Empty():
            return "Empty()"
        case ValueLeaf(value):
            return f"{node.type_name}({_value(value)})"
        case Branch(left, right):
            return f"{node.type_name}({pretty(left)}, {pretty(right)})"
        case _:
            raise TypeError(f"Unexpected node in pretty: {node!r}")


def pretty_choices(choices: ChoiceMap) -> str:
    """One ``address : value`` line per choice."""

    lines = []
    for path, value in choices:
        address = " => ".join(repr(key) for key in path)
        lines.append(f"{address} : {value!r}")
    return "\n".join(lines)


__all__ = ["pretty", "pretty_choices"]
