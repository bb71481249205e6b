"""
Command-line driver for norm-tree sampling.

Usage:
  python -m normtree sample [--seed N] [--config FILE] [--choices]
  python -m normtree chain --steps N [--seed N] [--config FILE] [--check]
  python -m normtree infer --color green --zone 1 [-n 10] [--seed N] [--config FILE]
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import numpy as np

from normtree.config import NormConfig, default_config, load_config
from normtree.model import model
from normtree.moves import run_chain
from normtree.pretty import pretty, pretty_choices
from normtree.tasks import TASK_COLOURS, ZONE_COUNT, generate_norms, observation

logger = logging.getLogger(__name__)


def _config(path: Path | None) -> NormConfig:
    return default_config() if path is None else load_config(path)


def sample_command(args: argparse.Namespace) -> int:
    rng = np.random.default_rng(args.seed)
    trace = model.simulate((_config(args.config),), rng)
    print(pretty(trace.retval))
    if args.choices:
        print(pretty_choices(trace.choices))
    return 0


def chain_command(args: argparse.Namespace) -> int:
    config = _config(args.config)
    rng = np.random.default_rng(args.seed)
    trace = model.simulate((config,), rng)
    print(f"initial: {pretty(trace.retval)}")
    trace, accepted = run_chain(trace, config, args.steps, rng, check=args.check)
    print(f"final:   {pretty(trace.retval)}")
    print(f"accepted {accepted}/{args.steps}")
    return 0


def infer_command(args: argparse.Namespace) -> int:
    config = _config(args.config)
    rng = np.random.default_rng(args.seed)
    norms, weights = generate_norms(args.n, observation(args.color, args.zone), config, rng)
    for norm, weight in zip(norms, weights):
        print(f"{weight:.6f}  {pretty(norm)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="normtree", description="Sample and mutate norm trees.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log every step")
    ap.add_argument("--seed", type=int, default=None, help="Random seed")
    ap.add_argument("--config", type=Path, default=None, help="Grammar configuration (JSON)")
    sub = ap.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("sample", help="Draw one norm tree from the grammar")
    sp.add_argument("--choices", action="store_true", help="Also print the recorded choices")
    sp.set_defaults(func=sample_command)

    cp = sub.add_parser("chain", help="Run subtree-replacement MH moves")
    cp.add_argument("--steps", type=int, default=100)
    cp.add_argument("--check", action="store_true", help="Verify each involution round-trips")
    cp.set_defaults(func=chain_command)

    ip = sub.add_parser("infer", help="Sample norms consistent with an observed placement")
    ip.add_argument("--color", choices=TASK_COLOURS, required=True)
    ip.add_argument("--zone", type=int, choices=range(1, ZONE_COUNT + 1), required=True)
    ip.add_argument("-n", type=int, default=10, help="Number of constrained draws")
    ip.set_defaults(func=infer_command)

    args = ap.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logger.debug("Running %s", args.command)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
