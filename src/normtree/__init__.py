"""Grammar-generated norm trees and reversible subtree-replacement moves."""

from normtree.config import NormConfig, default_config, load_config
from normtree.errors import ConfigError, ParseError, SelectionError
from normtree.model import generate, model
from normtree.moves import (
    Proposal,
    apply_move,
    run_chain,
    subtree_replace_involution,
    subtree_replace_proposal,
    subtree_replace_step,
)
from normtree.nodes import (
    Colour,
    Empty,
    Node,
    NoNorm,
    Norm,
    Obligation,
    Prohibition,
    Zone,
)
from normtree.parse import parse_node
from normtree.pretty import pretty
from normtree.selection import Selection, select_random_node

__all__ = [
    "Colour",
    "ConfigError",
    "Empty",
    "Node",
    "NoNorm",
    "Norm",
    "NormConfig",
    "Obligation",
    "ParseError",
    "Prohibition",
    "Proposal",
    "Selection",
    "SelectionError",
    "Zone",
    "apply_move",
    "default_config",
    "generate",
    "load_config",
    "model",
    "parse_node",
    "pretty",
    "run_chain",
    "select_random_node",
    "subtree_replace_involution",
    "subtree_replace_proposal",
    "subtree_replace_step",
]
