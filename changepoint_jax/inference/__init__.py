# changepoint_jax/inference/__init__.py
"""
Inference layer (dynamics).

Samplers here are compositions of:
  - a likelihood (likelihoods.*),
  - a state container with static shapes (inference.rj.state), and
  - move kernels with a shared acceptance test (inference.rj.kernels).

Variable-dimension structure (the number of changepoints) lives in the
state as a count over a fixed buffer, so every step can run under jit.
"""
from __future__ import annotations

from .base import InferenceMethod
from .rj import (
    ChangepointState,
    MoveWeights,
    RJMCMC, RJMCMCCFG, RJMCMCRun,
    iterate_chain, run_chain,
)

__all__ = [
    "InferenceMethod",
    "ChangepointState",
    "MoveWeights",
    "RJMCMC", "RJMCMCCFG", "RJMCMCRun",
    "iterate_chain", "run_chain",
]
