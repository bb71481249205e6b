"""Primitive distributions used by generative functions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Hashable, Mapping

import numpy as np


@dataclass(frozen=True)
class Categorical:
    """Distribution over labelled outcomes; the recorded value is the label."""

    probabilities: Mapping[Hashable, float]

    def sample(self, rng: np.random.Generator) -> Hashable:
        labels = list(self.probabilities)
        weights = np.fromiter(self.probabilities.values(), dtype=float, count=len(labels))
        return labels[int(rng.choice(len(labels), p=weights / weights.sum()))]

    def logpdf(self, value: Any) -> float:
        try:
            p = self.probabilities.get(value, 0.0)
        except TypeError:
            return -math.inf
        return math.log(p) if p > 0 else -math.inf


@dataclass(frozen=True)
class Bernoulli:
    probability: float

    def sample(self, rng: np.random.Generator) -> bool:
        return bool(rng.random() < self.probability)

    def logpdf(self, value: Any) -> float:
        p = self.probability if value else 1.0 - self.probability
        return math.log(p) if p > 0 else -math.inf


Distribution = Categorical | Bernoulli


__all__ = ["Bernoulli", "Categorical", "Distribution"]
