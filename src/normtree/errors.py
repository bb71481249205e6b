"""Error types raised by the norm-tree core."""

from __future__ import annotations

from dataclasses import dataclass


class ConfigError(ValueError):
    """Malformed grammar or probability tables."""


class SelectionError(ValueError):
    """A node selection request that cannot be satisfied."""


@dataclass(frozen=True)
class Span:
    start: int
    end: int

    def extract(self, source: str) -> str:
        return source[self.start : self.end]


@dataclass
class ParseError(Exception):
    message: str
    span: Span
    source: str | None = None

    def __str__(self) -> str:
        if self.source is None:
            return f"{self.message} @ {self.span.start}:{self.span.end}"
        snippet = self.span.extract(self.source)
        return f"{self.message} @ {self.span.start}:{self.span.end}: {snippet!r}"


__all__ = ["ConfigError", "ParseError", "SelectionError", "Span"]
