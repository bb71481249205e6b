"""Generative functions, execution tracing and incremental update.

A generative function is a plain Python function decorated with :func:`gen`.
Its first parameter is a :class:`Tracer`; every random choice goes through the
tracer under a caller-chosen key, so the same body can be simulated from
scratch, run against constraints, scored, or re-executed against an edit set.

    @gen
    def coin(t: Tracer, p: float) -> bool:
        return t.bernoulli("flip", p)

    trace = coin.simulate((0.3,), rng)
"""

from __future__ import annotations

import functools
import math
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Mapping

import numpy as np

from normtree.gen.choicemap import ChoiceMap, Path
from normtree.gen.distributions import Bernoulli, Categorical, Distribution


class _ZeroDensity(Exception):
    """Execution reached a choice whose forced value has probability zero."""

    def __init__(self, address: Path) -> None:
        super().__init__(address)
        self.address = address


class Tracer:
    """
    Records the random choices of one execution.

    - constraints: values forced at the given addresses
    - previous: choices of an earlier execution, reused where not constrained
    - strict: every choice must be constrained (used for scoring)
    """

    def __init__(
        self,
        rng: np.random.Generator | None = None,
        constraints: ChoiceMap | None = None,
        previous: ChoiceMap | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self._rng = rng
        self._constraints = constraints.flatten() if constraints is not None else {}
        self._previous = previous.flatten() if previous is not None else {}
        self._strict = strict
        self._prefix: Path = ()
        self._visited: set[Path] = set()
        self.choices = ChoiceMap()
        self.discard = ChoiceMap()
        self.score = 0.0
        self.constrained_score = 0.0
        self.fresh_score = 0.0

    # --- primitive choices -----------------------------------------------------
    def categorical(self, key: Hashable, probabilities: Mapping[Hashable, float]) -> Any:
        return self.sample(key, Categorical(probabilities))

    def bernoulli(self, key: Hashable, probability: float) -> bool:
        return self.sample(key, Bernoulli(probability))

    def sample(self, key: Hashable, dist: Distribution) -> Any:
        addr = self._prefix + (key,)
        if addr in self._visited:
            raise ValueError(f"Address {addr!r} visited twice")
        self._visited.add(addr)

        if addr in self._constraints:
            value = self._constraints[addr]
            logp = dist.logpdf(value)
            if addr in self._previous:
                self.discard.set_value(addr, self._previous[addr])
            if logp == -math.inf:
                raise _ZeroDensity(addr)
            self.constrained_score += logp
        elif addr in self._previous:
            value = self._previous[addr]
            logp = dist.logpdf(value)
            if logp == -math.inf:
                raise _ZeroDensity(addr)
        elif self._strict:
            raise ValueError(f"No value provided for address {addr!r}")
        else:
            if self._rng is None:
                self._rng = np.random.default_rng()
            value = dist.sample(self._rng)
            logp = dist.logpdf(value)
            self.fresh_score += logp

        self.choices.set_value(addr, value)
        self.score += logp
        return value

    # --- composition -------------------------------------------------------------
    def call(self, key: Hashable, gen_fn: GenerativeFunction, *args: Any) -> Any:
        """Run ``gen_fn`` with its choices namespaced under ``key``."""

        saved = self._prefix
        self._prefix = saved + (key,)
        try:
            return gen_fn.fn(self, *args)
        finally:
            self._prefix = saved

    def splice(self, gen_fn: GenerativeFunction, *args: Any) -> Any:
        """Run ``gen_fn`` with its choices in the caller's namespace."""

        return gen_fn.fn(self, *args)

    def _finish(self) -> None:
        for addr in self._constraints:
            if addr not in self._visited:
                raise ValueError(f"Constraint at address {addr!r} was not visited")
        for addr, value in self._previous.items():
            if addr not in self._visited:
                self.discard.set_value(addr, value)


@dataclass(frozen=True)
class Trace:
    gen_fn: GenerativeFunction
    args: tuple[Any, ...]
    retval: Any
    choices: ChoiceMap
    score: float

    def __getitem__(self, path: Path) -> Any:
        return self.choices.get_value(path)

    def update(
        self, edits: ChoiceMap, rng: np.random.Generator | None = None
    ) -> tuple[Trace | None, float, ChoiceMap]:
        """
        Re-execute with ``edits`` forced and every other old choice reused.

        Returns ``(new_trace, log_weight, discard)`` where ``discard`` holds the
        old values of overwritten or no-longer-visited addresses and
        ``log_weight = new_score - old_score - fresh_score``. When the edits
        force a probability-zero execution the result is ``(None, -inf, discard)``.
        """

        tracer = Tracer(rng, constraints=edits, previous=self.choices)
        try:
            retval = self.gen_fn.fn(tracer, *self.args)
        except _ZeroDensity:
            return None, -math.inf, tracer.discard
        tracer._finish()
        new_trace = Trace(self.gen_fn, self.args, retval, tracer.choices, tracer.score)
        weight = tracer.score - self.score - tracer.fresh_score
        return new_trace, weight, tracer.discard


class GenerativeFunction:
    def __init__(self, fn: Callable[..., Any]) -> None:
        self.fn = fn
        functools.update_wrapper(self, fn)

    def __repr__(self) -> str:
        return f"<gen {self.fn.__qualname__}>"

    def simulate(self, args: tuple[Any, ...] = (), rng: np.random.Generator | None = None) -> Trace:
        tracer = Tracer(rng)
        retval = self.fn(tracer, *args)
        tracer._finish()
        return Trace(self, args, retval, tracer.choices, tracer.score)

    def generate(
        self,
        args: tuple[Any, ...],
        constraints: ChoiceMap,
        rng: np.random.Generator | None = None,
    ) -> tuple[Trace | None, float]:
        """
        Run with ``constraints`` forced.

        The log weight is the joint log-probability of the constrained choices.
        Constraints that no execution can realize give ``(None, -inf)``.
        """

        tracer = Tracer(rng, constraints=constraints)
        try:
            retval = self.fn(tracer, *args)
        except _ZeroDensity:
            return None, -math.inf
        tracer._finish()
        return Trace(self, args, retval, tracer.choices, tracer.score), tracer.constrained_score

    def assess(self, args: tuple[Any, ...], choices: ChoiceMap) -> tuple[float, Any]:
        """Return ``(log_probability, retval)`` of the execution fixed by ``choices``."""

        tracer = Tracer(constraints=choices, strict=True)
        try:
            retval = self.fn(tracer, *args)
        except _ZeroDensity:
            return -math.inf, None
        tracer._finish()
        return tracer.score, retval


def gen(fn: Callable[..., Any]) -> GenerativeFunction:
    return GenerativeFunction(fn)


__all__ = ["GenerativeFunction", "Trace", "Tracer", "gen"]
