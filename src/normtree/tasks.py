"""Tasks, zones and norm inference from observed behaviour.

A task is a coloured item that an agent places into one of a fixed number of
zones. A norm changes the distribution over zones: an obligation that applies
to the task's colour forces its zone, a prohibition that applies removes its
zone. Anything else leaves the choice uniform.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from normtree.config import NormConfig
from normtree.errors import ConfigError
from normtree.gen import ChoiceMap, Tracer, gen
from normtree.model import generate
from normtree.nodes import Colour, Node, NoNorm, Obligation, Prohibition, Zone

logger = logging.getLogger(__name__)

TASK_COLOURS = ("red", "blue", "green")
ANY_COLOUR = "any"
ZONE_COUNT = 3


def _uniform(zones: int) -> list[float]:
    return [1 / zones] * zones


def _applies(norm_colour: str, task_colour: str) -> bool:
    return norm_colour == task_colour or norm_colour == ANY_COLOUR


def _zone_index(zone: str, zones: int) -> int:
    if not zone.isdigit() or not 1 <= int(zone) <= zones:
        raise ConfigError(f"Zone label {zone!r} is not one of 1..{zones}")
    return int(zone) - 1


def handle_obligation(colour: str, zone: str, task_colour: str, zones: int = ZONE_COUNT) -> list[float]:
    if not _applies(colour, task_colour):
        return _uniform(zones)
    probs = [0.0] * zones
    probs[_zone_index(zone, zones)] = 1.0
    return probs


def handle_prohibition(colour: str, zone: str, task_colour: str, zones: int = ZONE_COUNT) -> list[float]:
    if not _applies(colour, task_colour):
        return _uniform(zones)
    probs = [1.0] * zones
    probs[_zone_index(zone, zones)] = 0.0
    total = sum(probs)
    return [p / total for p in probs]


def zone_probabilities(task: str, norm: Node, zones: int = ZONE_COUNT) -> list[float]:
    """Distribution over zones ``1..zones`` for a task of colour ``task`` under ``norm``."""

    match norm:
        case NoNorm():
            return _uniform(zones)
        case Obligation(Colour(colour), Zone(zone)):
            return handle_obligation(colour, zone, task, zones)
        case Prohibition(Colour(colour), Zone(zone)):
            return handle_prohibition(colour, zone, task, zones)
        case _:
            logger.debug("No zone handler for %s; using uniform zones", norm)
            return _uniform(zones)


@gen
def generate_task(t: Tracer) -> str:
    return t.categorical("color", {c: 1 / len(TASK_COLOURS) for c in TASK_COLOURS})


@gen
def task_norm_zone(t: Tracer, config: NormConfig) -> tuple[str, Node, int]:
    """A task, a norm, and the zone (``1..ZONE_COUNT``) the task is placed in."""

    task = t.call("task", generate_task)
    norm = t.call("norm", generate, 1, config.root_rule, config)
    probs = zone_probabilities(task, norm)
    zone = t.categorical("zone", {i + 1: p for i, p in enumerate(probs)})
    return task, norm, zone


def observation(colour: str, zone: int) -> ChoiceMap:
    """Constraints for observing a ``colour`` task placed in ``zone``."""

    constraints = ChoiceMap()
    constraints.set_value(("task", "color"), colour)
    constraints["zone"] = zone
    return constraints


def generate_norms(
    n: int,
    constraints: ChoiceMap,
    config: NormConfig,
    rng: np.random.Generator | None = None,
) -> tuple[list[Node], list[float]]:
    """
    Draw ``n`` norms consistent with ``constraints``.

    Returns the norms of the draws with non-zero weight together with their
    importance weights ``exp(log_weight)``; impossible draws are dropped.
    """

    norms: list[Node] = []
    weights: list[float] = []
    for _ in range(n):
        trace, log_weight = task_norm_zone.generate((config,), constraints, rng)
        if trace is None or log_weight == -math.inf:
            logger.debug("Discarded a draw inconsistent with the observation")
            continue
        norms.append(trace.retval[1])
        weights.append(math.exp(log_weight))
    logger.info("Kept %d of %d constrained draws", len(norms), n)
    return norms, weights


__all__ = [
    "ANY_COLOUR",
    "TASK_COLOURS",
    "ZONE_COUNT",
    "generate_norms",
    "generate_task",
    "handle_obligation",
    "handle_prohibition",
    "observation",
    "task_norm_zone",
    "zone_probabilities",
]
