"""Involutive Metropolis-Hastings."""

from __future__ import annotations

import logging
import math
from typing import Any, Callable

import numpy as np

from normtree.gen.choicemap import ChoiceMap
from normtree.gen.trace import GenerativeFunction, Trace

logger = logging.getLogger(__name__)

Involution = Callable[
    [Trace, ChoiceMap, Any, tuple[Any, ...]], tuple["Trace | None", ChoiceMap, float]
]


class InvolutionError(RuntimeError):
    """Applying an involution twice did not return to the starting point."""


def check_round_trip(
    trace: Trace,
    forward_choices: ChoiceMap,
    forward_retval: Any,
    proposal_args: tuple[Any, ...],
    involution: Involution,
    new_trace: Trace,
    reverse_choices: ChoiceMap,
    weight: float,
) -> None:
    """Apply ``involution`` to its own output and compare with the input."""

    back_trace, back_choices, back_weight = involution(
        new_trace, reverse_choices, forward_retval, proposal_args
    )
    if back_trace is None or back_trace.retval != trace.retval:
        raise InvolutionError(
            "Involution did not restore the model state:\n"
            f"  before = {trace.retval}\n"
            f"  after  = {None if back_trace is None else back_trace.retval}"
        )
    if back_choices != forward_choices:
        raise InvolutionError(
            "Involution did not restore the proposal choices:\n"
            f"  before = {forward_choices!r}\n"
            f"  after  = {back_choices!r}"
        )
    if not math.isclose(back_weight, -weight, rel_tol=1e-9, abs_tol=1e-9):
        raise InvolutionError(f"Reverse weight {back_weight} is not the negation of {weight}")


def involution_mh(
    trace: Trace,
    proposal: GenerativeFunction,
    proposal_args: tuple[Any, ...],
    involution: Involution,
    rng: np.random.Generator,
    *,
    check: bool = False,
) -> tuple[Trace, bool]:
    """
    One Metropolis-Hastings step with an involutive proposal.

    The proposal is run with ``(trace, *proposal_args)``. The move is accepted
    with probability ``min(1, exp(w - q_fwd + q_bwd))`` where ``w`` is the model
    weight reported by the involution and ``q_fwd``/``q_bwd`` are the forward
    and reverse proposal log-probabilities.
    """

    fwd = proposal.simulate((trace, *proposal_args), rng)
    new_trace, reverse_choices, weight = involution(
        trace, fwd.choices, fwd.retval, proposal_args
    )
    if new_trace is None or weight == -math.inf:
        logger.debug("Rejected: proposed state has zero probability")
        return trace, False
    if check:
        check_round_trip(
            trace, fwd.choices, fwd.retval, proposal_args, involution,
            new_trace, reverse_choices, weight,
        )
    bwd_score, _ = proposal.assess((new_trace, *proposal_args), reverse_choices)
    alpha = weight - fwd.score + bwd_score
    u = rng.random()
    accepted = alpha >= 0 or u < math.exp(alpha)
    logger.debug(
        "weight=%.4f q_fwd=%.4f q_bwd=%.4f alpha=%.4f accepted=%s",
        weight, fwd.score, bwd_score, alpha, accepted,
    )
    return (new_trace, True) if accepted else (trace, False)


__all__ = ["Involution", "InvolutionError", "check_round_trip", "involution_mh"]
