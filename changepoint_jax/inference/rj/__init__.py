# changepoint_jax/inference/rj/__init__.py
"""
Reversible Jump MCMC for multiple changepoint detection.

This module provides:
- ChangepointState: boundary buffer, model, scales and cached likelihood
- kernels: relocate / rescale / birth / death / update moves
- RJMCMC: the chain driver
"""
from .state import ChangepointState, init_state
from .kernels import Proposal, metropolis_accept, commit
from .rjmcmc import (
    MoveWeights,
    RJMCMC, RJMCMCCFG, RJMCMCRun,
    ChainChunk,
    format_changepoints,
    iterate_chain,
    run_chain,
)

__all__ = [
    "ChangepointState", "init_state",
    "Proposal", "metropolis_accept", "commit",
    "MoveWeights",
    "RJMCMC", "RJMCMCCFG", "RJMCMCRun",
    "ChainChunk",
    "format_changepoints",
    "iterate_chain",
    "run_chain",
]
