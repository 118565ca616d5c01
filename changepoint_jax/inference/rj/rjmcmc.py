# changepoint_jax/inference/rj/rjmcmc.py
"""
RJMCMC (Reversible Jump MCMC) for multiple changepoint detection.

This module implements trans-dimensional MCMC sampling over the number and
positions of changepoints in a multivariate series with a piecewise-constant
mean and per-column Gaussian noise. Each iteration draws a move kind
against fixed cumulative weights, runs the matching kernel from
`kernels`, and applies one Metropolis test. Accepted relocate, birth and
death moves emit the current changepoint set.

The chain itself runs inside jax.lax.scan, in chunks whose records are
handed back to the host so that the changepoint trace can be streamed while
sampling continues.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from functools import partial
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np
import jax
import jax.numpy as jnp
from jax import lax
from jax import random as jrand

from ...core import rng
from ...core.data import standardize
from ..base import InferenceMethod
from .kernels import (
    RELOCATE, RESCALE, BIRTH, DEATH, UPDATE, SKIP,
    MOVE_NAMES, EMITTING_MOVES, STEP_FACTOR,
    birth, commit, death, metropolis_accept, relocate, rescale, skip, update,
)
from .state import ChangepointState, init_state

logger = logging.getLogger(__name__)

NPMIN = 0  # Minimum number of changepoints

# Upper bound on boundary entries kept per chunk of step records
_TRACE_BUDGET = 1 << 22


@dataclass(frozen=True)
class MoveWeights:
    """
    Probabilities of the move kinds.

    Whatever mass is left after relocate, rescale, birth and death goes to
    the update move.
    """
    relocate: float = 0.30
    rescale: float = 0.20
    birth: float = 0.25
    death: float = 0.25

    def __post_init__(self):
        for name in ("relocate", "rescale", "birth", "death"):
            if getattr(self, name) < 0.0:
                raise ValueError(f"Move weight '{name}' must be non-negative")
        if self.total > 1.0 + 1e-12:
            raise ValueError(f"Move weights must sum to at most 1, got {self.total}")

    @property
    def total(self) -> float:
        return self.relocate + self.rescale + self.birth + self.death

    @property
    def update(self) -> float:
        return max(0.0, 1.0 - self.total)

    def thresholds(self) -> Tuple[float, float, float, float]:
        """Cumulative cut points in the order relocate, rescale, birth, death."""
        c1 = self.relocate
        c2 = c1 + self.rescale
        c3 = c2 + self.birth
        return (c1, c2, c3, c3 + self.death)


@dataclass(frozen=True)
class RJMCMCCFG:
    """Configuration for the changepoint RJMCMC sampler."""
    n_steps: int = 1000
    max_changepoints: int = 0  # <= 0 means N - 1
    n_init: int = 2  # Initial boundary draws (duplicates collapse)
    weights: MoveWeights = field(default_factory=MoveWeights)
    step_factor: float = STEP_FACTOR  # Step scale = factor * last accepted jump
    standardize: bool = True
    chunk_size: int = 10_000  # Iterations per compiled scan
    debug: bool = False  # Log every executed move

    def __post_init__(self):
        if self.n_steps < 0:
            raise ValueError("n_steps must be non-negative")
        if self.n_init < 0:
            raise ValueError("n_init must be non-negative")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be positive")

    def resolve_max_changepoints(self, rows: int) -> int:
        """Apply the `<= 0 means N - 1` rule and cap at N - 1."""
        K = max(rows - 1, 0)  # Number of possible changepoint locations
        if self.max_changepoints <= 0 or self.max_changepoints > K:
            return K
        return self.max_changepoints


class StepRecord(NamedTuple):
    """Per-iteration record produced by the scan."""
    move: jnp.ndarray      # drawn move kind
    executed: jnp.ndarray  # guard held
    accepted: jnp.ndarray
    emitted: jnp.ndarray   # accepted relocate/birth/death
    n_cp: jnp.ndarray
    bounds: jnp.ndarray    # (npmax + 2,)
    loglik: jnp.ndarray


@dataclass
class ChainChunk:
    """Host-side records of a contiguous block of iterations."""
    records: StepRecord  # numpy arrays with a leading iteration axis
    state: ChangepointState  # state after the last iteration of the block

    def changepoints(self) -> List[Tuple[int, ...]]:
        """Changepoint sets of the emitting iterations, in order."""
        out = []
        for t in np.flatnonzero(self.records.emitted):
            n = int(self.records.n_cp[t])
            out.append(tuple(int(b) for b in self.records.bounds[t, 1:n + 1]))
        return out


@dataclass
class RJMCMCRun:
    """RJMCMC run results."""
    changepoints: List[Tuple[int, ...]]  # one entry per emitted line
    moves: np.ndarray  # (n_steps,) drawn move kind
    executed: np.ndarray  # (n_steps,) bool
    accepted: np.ndarray  # (n_steps,) bool
    n_cps: np.ndarray  # (n_steps,) np after each step
    logliks: np.ndarray  # (n_steps,) cached log-likelihood after each step
    state: ChangepointState  # final state
    npmax: int

    def acceptance_summary(self) -> Dict[str, Dict[str, int]]:
        """Proposed/accepted counts per move kind; infeasible draws count as skipped."""
        summary = {}
        for move in (RELOCATE, RESCALE, BIRTH, DEATH, UPDATE):
            ran = self.executed & (self.moves == move)
            summary[MOVE_NAMES[move]] = {
                "proposed": int(np.sum(ran)),
                "accepted": int(np.sum(ran & self.accepted)),
            }
        summary[MOVE_NAMES[SKIP]] = {"proposed": int(np.sum(~self.executed)), "accepted": 0}
        return summary


def format_changepoints(changepoints) -> str:
    """Comma-separated changepoint line."""
    return ",".join(str(int(b)) for b in changepoints)


# ============================================================
# Compiled step
# ============================================================

def _log_move(branch, ll_prop, ll, log_ratio, accept):
    branch = int(branch)
    if branch == SKIP:
        return
    logger.debug(
        "%s: llP - ll = %g - %g, log ratio %g, %s",
        MOVE_NAMES[branch], float(ll_prop), float(ll), float(log_ratio),
        "accepted" if bool(accept) else "rejected",
    )


def select_move(u, thresholds):
    """Move kind for a uniform draw: first cut point above u, else update."""
    return jnp.searchsorted(thresholds, u, side="right").astype(jnp.int32)


def make_step(Y, npmax: int, weights: MoveWeights, step_factor: float = STEP_FACTOR, debug: bool = False):
    """
    Build the scan body for one RJMCMC iteration.

    Per iteration the key is split in a fixed order: move kind, acceptance
    draw, kernel draws.
    """
    thresholds = jnp.asarray(weights.thresholds(), dtype=Y.dtype)
    branches = [
        lambda k, s: relocate(k, s, Y, step_factor),
        lambda k, s: rescale(k, s, Y),
        lambda k, s: birth(k, s, Y),
        lambda k, s: death(k, s, Y),
        lambda k, s: update(k, s, Y),
        lambda k, s: skip(k, s, Y),
    ]
    emitting = jnp.array([m in EMITTING_MOVES for m in range(len(MOVE_NAMES))])

    def one_step(carry, _):
        key, state = carry
        key, k_cat, k_acc, k_move = jrand.split(key, 4)

        move = select_move(rng.uniform(k_cat, dtype=Y.dtype), thresholds)
        u = rng.uniform(k_acc, dtype=Y.dtype)

        feasible = jnp.stack([
            state.n_cp > 0,
            jnp.asarray(True),
            state.n_cp < npmax,
            state.n_cp > NPMIN,
            jnp.asarray(True),
        ])[move]
        branch = jnp.where(feasible, move, SKIP)

        proposal = lax.switch(branch, branches, k_move, state)
        accept = proposal.valid & metropolis_accept(u, proposal.log_ratio)
        new_state = commit(state, proposal, accept)

        if debug:
            jax.debug.callback(
                _log_move, branch, proposal.state.loglik, state.loglik,
                proposal.log_ratio, accept,
            )

        record = StepRecord(
            move=move,
            executed=feasible,
            accepted=accept,
            emitted=accept & emitting[move],
            n_cp=new_state.n_cp,
            bounds=new_state.bounds,
            loglik=new_state.loglik,
        )
        return (key, new_state), record

    return one_step


@partial(jax.jit, static_argnames=("length", "npmax", "weights", "step_factor", "debug"))
def run_chunk(key, state, Y, *, length, npmax, weights, step_factor=STEP_FACTOR, debug=False):
    """Run `length` iterations; returns (key, state, stacked StepRecord)."""
    step = make_step(Y, npmax, weights, step_factor, debug)
    (key, state), records = lax.scan(step, (key, state), None, length=length)
    return key, state, records


# ============================================================
# Main chain
# ============================================================

def _prepare(key, Y, cfg: RJMCMCCFG):
    Y = jnp.asarray(Y)
    if Y.ndim == 1:
        Y = Y[:, None]
    if Y.ndim != 2 or Y.shape[0] == 0 or Y.shape[1] == 0:
        raise ValueError(f"Y must be a non-empty (N, D) matrix, got shape {Y.shape}")
    if not jnp.issubdtype(Y.dtype, jnp.floating):
        Y = Y.astype(float)
    if cfg.standardize:
        Y = standardize(Y)

    N, D = Y.shape
    npmax = cfg.resolve_max_changepoints(N)

    key, k0 = jrand.split(key)
    state = init_state(k0, Y, npmax, n_init=cfg.n_init)
    logger.info(
        "RJMCMC: rows=%d columns=%d npmax=%d nsims=%d initial changepoints=%s",
        N, D, npmax, cfg.n_steps, state.changepoints,
    )
    return key, Y, npmax, state


def _chunks(key, Y, state, npmax: int, cfg: RJMCMCCFG) -> Iterator[ChainChunk]:
    chunk = max(1, min(cfg.chunk_size, _TRACE_BUDGET // (npmax + 2)))
    done = 0
    while done < cfg.n_steps:
        length = min(chunk, cfg.n_steps - done)
        key, state, records = run_chunk(
            key, state, Y,
            length=length, npmax=npmax, weights=cfg.weights,
            step_factor=cfg.step_factor, debug=cfg.debug,
        )
        done += length
        yield ChainChunk(records=StepRecord(*(np.asarray(r) for r in records)), state=state)


def _resolve_cfg(cfg: Optional[RJMCMCCFG], overrides) -> RJMCMCCFG:
    cfg = cfg if cfg is not None else RJMCMCCFG()
    return replace(cfg, **overrides) if overrides else cfg


def iterate_chain(key, Y, cfg: Optional[RJMCMCCFG] = None, **overrides) -> Iterator[ChainChunk]:
    """
    Run the chain and yield its records chunk by chunk.

    Args:
        key: PRNG key
        Y: Observations (N, D) or (N,)
        cfg: Optional RJMCMCCFG; keyword overrides replace its fields

    Yields:
        ChainChunk for each block of at most `cfg.chunk_size` iterations
    """
    cfg = _resolve_cfg(cfg, overrides)
    key, Y, npmax, state = _prepare(key, Y, cfg)
    yield from _chunks(key, Y, state, npmax, cfg)


def run_chain(key, Y, cfg: Optional[RJMCMCCFG] = None, **overrides) -> RJMCMCRun:
    """
    Run the chain to completion.

    Args:
        key: PRNG key
        Y: Observations (N, D) or (N,)
        cfg: Optional RJMCMCCFG; keyword overrides replace its fields,
            e.g. run_chain(key, Y, n_steps=5000, max_changepoints=5)

    Returns:
        RJMCMCRun with the emitted changepoint trace and per-step records
    """
    cfg = _resolve_cfg(cfg, overrides)
    key, Y, npmax, state = _prepare(key, Y, cfg)

    changepoints: List[Tuple[int, ...]] = []
    records: List[StepRecord] = []
    for chunk in _chunks(key, Y, state, npmax, cfg):
        changepoints.extend(chunk.changepoints())
        records.append(chunk.records)
        state = chunk.state

    if records:
        hist = StepRecord(*(np.concatenate(parts) for parts in zip(*records)))
    else:
        hist = StepRecord(
            move=np.zeros((0,), np.int32),
            executed=np.zeros((0,), bool),
            accepted=np.zeros((0,), bool),
            emitted=np.zeros((0,), bool),
            n_cp=np.zeros((0,), np.int32),
            bounds=np.zeros((0, npmax + 2), np.int32),
            loglik=np.zeros((0,), np.asarray(state.loglik).dtype),
        )

    run = RJMCMCRun(
        changepoints=changepoints,
        moves=hist.move,
        executed=hist.executed,
        accepted=hist.accepted,
        n_cps=hist.n_cp,
        logliks=hist.loglik,
        state=state,
        npmax=npmax,
    )
    for name, counts in run.acceptance_summary().items():
        logger.info("%s: %d/%d accepted", name, counts["accepted"], counts["proposed"])
    logger.debug("final state: %s", state.get_summary())
    return run


# ============================================================
# High-level interface
# ============================================================

class RJMCMC(InferenceMethod):
    """
    High-level interface for changepoint RJMCMC.

    This wraps the functional interface above.
    """

    def __init__(self, cfg: RJMCMCCFG = RJMCMCCFG()):
        self.cfg = cfg

    def run(self, key, Y) -> RJMCMCRun:
        """
        Run RJMCMC sampling.

        Args:
            key: PRNG key
            Y: Observations (N, D) or (N,)

        Returns:
            RJMCMCRun with traces
        """
        return run_chain(key, Y, self.cfg)


__all__ = [
    "NPMIN",
    "MoveWeights",
    "RJMCMCCFG",
    "StepRecord",
    "ChainChunk",
    "RJMCMCRun",
    "format_changepoints",
    "select_move",
    "make_step",
    "run_chunk",
    "iterate_chain",
    "run_chain",
    "RJMCMC",
]
