# changepoint_jax/__init__.py
"""
Changepoint detection by reversible-jump MCMC, in JAX.
"""
from .core import ObservationMatrix, load_delimited, standardize
from .inference import (
    ChangepointState,
    MoveWeights,
    RJMCMC, RJMCMCCFG, RJMCMCRun,
    iterate_chain, run_chain,
)

__version__ = "0.1.0"

__all__ = [
    "ObservationMatrix",
    "load_delimited",
    "standardize",
    "ChangepointState",
    "MoveWeights",
    "RJMCMC", "RJMCMCCFG", "RJMCMCRun",
    "iterate_chain", "run_chain",
]
