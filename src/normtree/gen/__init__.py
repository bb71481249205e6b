"""Generative execution engine: choice maps, traces, updates and MH moves."""

from normtree.gen.choicemap import ChoiceMap, Path
from normtree.gen.distributions import Bernoulli, Categorical
from normtree.gen.inference import InvolutionError, check_round_trip, involution_mh
from normtree.gen.trace import GenerativeFunction, Trace, Tracer, gen

__all__ = [
    "Bernoulli",
    "Categorical",
    "ChoiceMap",
    "GenerativeFunction",
    "InvolutionError",
    "Path",
    "Trace",
    "Tracer",
    "check_round_trip",
    "gen",
    "involution_mh",
]
