# changepoint_jax/cli.py
"""
Command-line entry point.

    changepoint-rjmcmc <max_changepoints> <num_simulations> <input_path>

Writes one line per accepted relocate/birth/death move to stdout, the
changepoints of the current model as comma-separated integers. Argument
echoes and diagnostics go to stderr.

Example:
    changepoint-rjmcmc 10 1000000 exampledata.csv > examplechangepoints.csv
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import jax

from .core import rng
from .core.data import load_delimited
from .inference.rj.rjmcmc import RJMCMCCFG, format_changepoints, iterate_chain

logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """argparse with exit status 1 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="changepoint-rjmcmc",
        description="Detect changepoints in a delimited multivariate series by RJMCMC.",
    )
    parser.add_argument(
        "max_changepoints", type=int,
        help="maximum number of changepoints; <= 0 means rows - 1",
    )
    parser.add_argument("num_simulations", type=int, help="number of MCMC iterations")
    parser.add_argument("input_path", help="delimited text file, rows are time steps")
    parser.add_argument("--seed", type=int, default=None, help="PRNG seed (default: from the clock)")
    parser.add_argument("--delimiter", default=",", help="field separator (default: ',')")
    parser.add_argument("--chunk-size", type=int, default=10_000, help="iterations per compiled scan")
    parser.add_argument("--debug", action="store_true", help="log every executed move to stderr")
    return parser


def _configure_logging(debug: bool) -> None:
    pkg = logging.getLogger("changepoint_jax")
    for handler in list(pkg.handlers):
        pkg.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    pkg.addHandler(handler)
    pkg.setLevel(logging.DEBUG if debug else logging.INFO)
    pkg.propagate = False


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    _configure_logging(args.debug)
    jax.config.update("jax_enable_x64", True)

    if args.num_simulations < 0:
        build_parser().error("num_simulations must be non-negative")

    data = load_delimited(args.input_path, delimiter=args.delimiter)
    cfg = RJMCMCCFG(
        n_steps=args.num_simulations,
        max_changepoints=args.max_changepoints,
        chunk_size=max(1, args.chunk_size),
        debug=args.debug,
    )
    logger.info("npmax: %d", cfg.resolve_max_changepoints(data.rows))
    logger.info("Nsims: %d", cfg.n_steps)

    out = sys.stdout
    for chunk in iterate_chain(rng.seed(args.seed), data.Y, cfg):
        for changepoints in chunk.changepoints():
            out.write(format_changepoints(changepoints) + "\n")
        out.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
