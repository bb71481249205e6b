"""Grammar configuration for norm-tree generation.

A configuration holds three read-only tables:

- ``rules``: rule name -> node-type name -> child rule names (empty for leaves)
- ``node_type_probabilities``: rule name -> node-type name -> probability
- ``terminal_value_probabilities``: leaf node-type name -> value -> probability

plus the ``root_rule`` a whole tree is grown from and the ``registry`` that
turns node-type names into nodes.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from normtree.errors import ConfigError
from normtree.registry import DEFAULT_REGISTRY, NodeRegistry

PROBABILITY_TOLERANCE = 1e-6

Rules = Mapping[str, Mapping[str, Sequence[str]]]
Table = Mapping[str, Mapping[str, float]]


def _freeze_rules(rules: Rules) -> Rules:
    return MappingProxyType(
        {
            rule: MappingProxyType({name: tuple(children) for name, children in options.items()})
            for rule, options in rules.items()
        }
    )


def _freeze_table(table: Table) -> Table:
    return MappingProxyType(
        {key: MappingProxyType({k: float(p) for k, p in dist.items()}) for key, dist in table.items()}
    )


def _check_distribution(what: str, dist: Mapping[str, float]) -> None:
    if not dist:
        raise ConfigError(f"Empty probability table for {what}")
    if any(p < 0 for p in dist.values()):
        raise ConfigError(f"Negative probability in table for {what}")
    total = math.fsum(dist.values())
    if not math.isclose(total, 1.0, abs_tol=PROBABILITY_TOLERANCE):
        raise ConfigError(f"Probabilities for {what} sum to {total}, not 1")


@dataclass(frozen=True)
class NormConfig:
    rules: Rules
    node_type_probabilities: Table
    terminal_value_probabilities: Table
    root_rule: str = "NORMS"
    registry: NodeRegistry = field(default=DEFAULT_REGISTRY, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", _freeze_rules(self.rules))
        object.__setattr__(
            self, "node_type_probabilities", _freeze_table(self.node_type_probabilities)
        )
        object.__setattr__(
            self,
            "terminal_value_probabilities",
            _freeze_table(self.terminal_value_probabilities),
        )

    def validate(self) -> NormConfig:
        """Check the tables against each other and the registry; return ``self``."""

        if self.root_rule not in self.rules:
            raise ConfigError(f"Unknown root rule {self.root_rule!r}")
        for rule, options in self.rules.items():
            dist = self.node_type_probabilities.get(rule)
            if dist is None:
                raise ConfigError(f"No node-type probabilities for rule {rule!r}")
            if set(dist) != set(options):
                raise ConfigError(
                    f"Rule {rule!r} expands to {sorted(options)} "
                    f"but has probabilities for {sorted(dist)}"
                )
            _check_distribution(f"rule {rule!r}", dist)
            for name, children in options.items():
                self._check_node_type(rule, name, children)
        for rule in self.node_type_probabilities:
            if rule not in self.rules:
                raise ConfigError(f"Probabilities given for unknown rule {rule!r}")
        for name, dist in self.terminal_value_probabilities.items():
            _check_distribution(f"terminal parameter {name!r}", dist)
        return self

    def _check_node_type(self, rule: str, name: str, children: Sequence[str]) -> None:
        kind = self.registry.lookup(name)
        if len(children) > 2:
            raise ConfigError(
                f"Invalid arity for {name!r} in rule {rule!r}: "
                "internal nodes support at most two children"
            )
        for child in children:
            if child not in self.rules:
                raise ConfigError(f"Rule {rule!r} refers to unknown rule {child!r}")
        if not children:
            if not kind.is_leaf:
                raise ConfigError(f"Internal node type {name!r} has no child rules")
            if name not in self.terminal_value_probabilities:
                raise ConfigError(f"No distribution found for terminal parameter {name!r}")
            if kind.regrow_rule not in self.rules:
                raise ConfigError(
                    f"Leaf type {name!r} regrows under unknown rule {kind.regrow_rule!r}"
                )
            regrown = set(self.rules[kind.regrow_rule])
            if regrown != {name}:
                raise ConfigError(
                    f"Leaf type {name!r} regrows under rule {kind.regrow_rule!r}, "
                    f"which expands to {sorted(regrown)} instead of only {name!r}"
                )
        elif kind.is_leaf:
            raise ConfigError(f"Leaf node type {name!r} cannot have child rules")

    @staticmethod
    def from_dict(data: Mapping[str, Any], registry: NodeRegistry = DEFAULT_REGISTRY) -> NormConfig:
        try:
            config = NormConfig(
                rules=data["rules"],
                node_type_probabilities=data["node_type_probabilities"],
                terminal_value_probabilities=data["terminal_value_probabilities"],
                root_rule=data.get("root_rule", "NORMS"),
                registry=registry,
            )
        except KeyError as exc:
            raise ConfigError(f"Missing configuration table {exc.args[0]!r}") from None
        return config.validate()

    def to_dict(self) -> dict[str, Any]:
        return {
            "rules": {r: {n: list(c) for n, c in o.items()} for r, o in self.rules.items()},
            "node_type_probabilities": {r: dict(d) for r, d in self.node_type_probabilities.items()},
            "terminal_value_probabilities": {
                n: dict(d) for n, d in self.terminal_value_probabilities.items()
            },
            "root_rule": self.root_rule,
        }


def default_config() -> NormConfig:
    """The obligation/prohibition grammar over colours and three zones."""

    return NormConfig(
        rules={
            "NORMS": {"No_norm": [], "Obl": ["COLOUR", "ZONE"], "Pro": ["COLOUR", "ZONE"]},
            "ZONE": {"Zone": []},
            "COLOUR": {"Colour": []},
            "NO_NORM": {"No_norm": []},
        },
        node_type_probabilities={
            "NORMS": {"No_norm": 0.3, "Obl": 0.4, "Pro": 0.3},
            "ZONE": {"Zone": 1.0},
            "COLOUR": {"Colour": 1.0},
            "NO_NORM": {"No_norm": 1.0},
        },
        terminal_value_probabilities={
            "Colour": {"red": 1 / 6, "green": 1 / 2, "blue": 1 / 6, "any": 1 / 6},
            "Zone": {"1": 1 / 2, "2": 1 / 4, "3": 1 / 4},
            "No_norm": {"true": 1.0},
        },
    ).validate()


def load_config(path: str | Path, registry: NodeRegistry = DEFAULT_REGISTRY) -> NormConfig:
    """Read and validate a configuration from a JSON document."""

    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a JSON object")
    return NormConfig.from_dict(data, registry)


__all__ = ["NormConfig", "PROBABILITY_TOLERANCE", "default_config", "load_config"]
