"""Subtree-replacement moves over norm trees.

The forward move picks a node uniformly (choices under ``"pick_node"``) and
regrows the subtree at that position (choices under ``"subtree"``). The
involution grafts the regrown choices into the model trace; the choices it
displaces become the regrowth choices of the reverse move, while the
position choices are reused unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, NamedTuple

import numpy as np

from normtree.config import NormConfig
from normtree.gen import ChoiceMap, Trace, Tracer, gen, involution_mh
from normtree.model import generate
from normtree.nodes import Empty, Leaf, Node
from normtree.selection import select_random_node

logger = logging.getLogger(__name__)


class Proposal(NamedTuple):
    node: Node
    idx: int
    depth: int
    subtree: Node


def regrowth_rule(node: Node, config: NormConfig) -> str:
    """Rule a picked node is regrown under: its own leaf rule, or the root rule."""

    if isinstance(node, Leaf):
        return config.registry.regrow_rule(node)
    return config.root_rule


@gen
def subtree_replace_proposal(t: Tracer, trace: Trace, config: NormConfig) -> Proposal:
    root = trace.retval
    node, idx, depth = t.call("pick_node", select_random_node, root, 1, 1, False, False)
    if isinstance(node, Empty):
        # A missing child has no choices of its own; the move leaves it alone.
        return Proposal(node, idx, depth, node)
    subtree = t.call("subtree", generate, idx, regrowth_rule(node, config), config)
    return Proposal(node, idx, depth, subtree)


def subtree_replace_involution(
    model_trace: Trace,
    proposal_choices: ChoiceMap,
    proposal_retval: Any,
    proposal_args: tuple[Any, ...] = (),
) -> tuple[Trace | None, ChoiceMap, float]:
    """
    Graft the proposed subtree into ``model_trace``.

    Returns ``(new_trace, reverse_choices, log_weight)``. Applying this function
    to ``new_trace`` and ``reverse_choices`` restores ``model_trace``.
    """

    edits = ChoiceMap()
    edits.set_submap("tree", proposal_choices.get_submap("subtree"))
    new_trace, weight, discard = model_trace.update(edits)

    reverse = ChoiceMap()
    reverse.set_submap("pick_node", proposal_choices.get_submap("pick_node"))
    reverse.set_submap("subtree", discard.get_submap("tree"))
    logger.debug("Subtree replacement %r: weight=%.4f", proposal_retval, weight)
    return new_trace, reverse, weight


apply_move = subtree_replace_involution


def subtree_replace_step(
    trace: Trace, config: NormConfig, rng: np.random.Generator, *, check: bool = False
) -> tuple[Trace, bool]:
    return involution_mh(
        trace, subtree_replace_proposal, (config,), subtree_replace_involution, rng, check=check
    )


def run_chain(
    trace: Trace, config: NormConfig, steps: int, rng: np.random.Generator, *, check: bool = False
) -> tuple[Trace, int]:
    """Run ``steps`` subtree-replacement MH steps; return the final trace and acceptance count."""

    accepted = 0
    for step in range(steps):
        trace, ok = subtree_replace_step(trace, config, rng, check=check)
        accepted += ok
        logger.debug("step %d: %s accepted=%s", step, trace.retval, ok)
    logger.info("Accepted %d of %d subtree-replacement moves", accepted, steps)
    return trace, accepted


__all__ = [
    "Proposal",
    "apply_move",
    "regrowth_rule",
    "run_chain",
    "subtree_replace_involution",
    "subtree_replace_proposal",
    "subtree_replace_step",
]
