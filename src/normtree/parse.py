"""Parser for the textual norm-tree syntax produced by :func:`normtree.pretty.pretty`.

    Obligation(Colour(red), Zone(2))
    Obl(Colour(any), Zone(1))       # grammar names from a registry work too
    Norm(NoNorm(true), Empty())
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import cast

import ply.lex as lex  # type: ignore[import-untyped]
import ply.yacc as yacc  # type: ignore[import-untyped]

from normtree.errors import ParseError, Span
from normtree.nodes import BRANCH_TYPES, LEAF_TYPES, Branch, Empty, Node, ValueLeaf
from normtree.registry import DEFAULT_REGISTRY, NodeRegistry

_SOURCE: str = ""

tokens = ("IDENT", "INT", "STRING", "LPAREN", "RPAREN", "COMMA")

t_LPAREN = r"\("
t_RPAREN = r"\)"
t_COMMA = r","

t_ignore = " \t"


def t_newline(t: lex.LexToken) -> None:
    r"\n+"
    t.lexer.lineno += len(t.value)


def t_STRING(t: lex.LexToken) -> lex.LexToken:
    r'"([^"\\]|\\.)*"'
    t.end = t.lexpos + len(t.value)
    t.value = re.sub(r"\\(.)", r"\1", t.value[1:-1])
    return t


def t_INT(t: lex.LexToken) -> lex.LexToken:
    r"\d+"
    t.end = t.lexpos + len(t.value)
    return t


def t_IDENT(t: lex.LexToken) -> lex.LexToken:
    r"[A-Za-z_][A-Za-z0-9_]*"
    t.end = t.lexpos + len(t.value)
    return t


def t_error(t: lex.LexToken) -> None:
    span = Span(t.lexpos, t.lexpos + 1)
    raise ParseError(f"Unexpected character {t.value[0]!r}", span, _SOURCE)


@dataclass(frozen=True)
class _Call:
    name: str
    args: tuple[_Call | str, ...]
    span: Span


def _tok_span(tok: lex.LexToken) -> Span:
    end = getattr(tok, "end", tok.lexpos + len(str(tok.value)))
    return Span(tok.lexpos, end)


def _span(p: yacc.YaccProduction, start: int, end: int) -> Span:
    return Span(p.lexpos(start), p.lexpos(end) + 1)


def p_node_nullary(p: yacc.YaccProduction) -> None:
    "node : IDENT LPAREN RPAREN"
    p[0] = _Call(p[1], (), _span(p, 1, 3))


def p_node_leaf(p: yacc.YaccProduction) -> None:
    "node : IDENT LPAREN value RPAREN"
    p[0] = _Call(p[1], (p[3],), _span(p, 1, 4))


def p_node_branch(p: yacc.YaccProduction) -> None:
    "node : IDENT LPAREN node COMMA node RPAREN"
    p[0] = _Call(p[1], (p[3], p[5]), _span(p, 1, 6))


def p_value(p: yacc.YaccProduction) -> None:
    """value : IDENT
    | INT
    | STRING"""
    p[0] = p[1]


def p_error(p: lex.LexToken | None) -> None:
    if p is None:
        span = Span(len(_SOURCE), len(_SOURCE))
        raise ParseError("Unexpected end of input", span, _SOURCE)
    span = _tok_span(cast(lex.LexToken, p))
    raise ParseError("Unexpected token", span, _SOURCE)


_PARSER = None

_CLASSES: dict[str, type[Node]] = {cls.__name__: cls for cls in (*LEAF_TYPES, *BRANCH_TYPES)}


def _resolve(call: _Call, registry: NodeRegistry, source: str) -> type[Node]:
    if call.name in _CLASSES:
        return _CLASSES[call.name]
    if call.name in registry:
        return registry.lookup(call.name).node_cls
    raise ParseError(f"Unknown node type {call.name}", call.span, source)


def _build(call: _Call, registry: NodeRegistry, source: str) -> Node:
    cls = _resolve(call, registry, source)
    args = call.args
    if issubclass(cls, Empty):
        if args:
            raise ParseError("Empty takes no arguments", call.span, source)
        return cls()
    if issubclass(cls, ValueLeaf):
        if len(args) != 1 or not isinstance(args[0], str):
            raise ParseError(f"{cls.__name__} takes exactly one value", call.span, source)
        return cls(args[0])
    if issubclass(cls, Branch):
        if len(args) != 2 or not all(isinstance(a, _Call) for a in args):
            raise ParseError(f"{cls.__name__} takes exactly two nodes", call.span, source)
        left, right = (_build(cast(_Call, a), registry, source) for a in args)
        return cls(left, right)
    raise ParseError(f"Cannot build {cls.__name__}", call.span, source)


def parse_node(source: str, registry: NodeRegistry = DEFAULT_REGISTRY) -> Node:
    global _SOURCE, _PARSER
    _SOURCE = source
    lexer = lex.lex()
    if _PARSER is None:
        _PARSER = yacc.yacc(start="node", debug=False, write_tables=False)
    call = cast(_Call | None, _PARSER.parse(source, lexer=lexer))
    if call is None:
        span = Span(len(source), len(source))
        raise ParseError("Unexpected end of input", span, source)
    return _build(call, registry, source)


__all__ = ["parse_node"]
