# changepoint_jax/inference/rj/state.py
"""
RJ-MCMC state for piecewise-constant changepoint models.

The state carries everything a move kernel may read or write. Dimension
varies through `n_cp`, while every array keeps a static shape so the state
can be carried through jax.lax.scan:

- bounds is a boundary buffer of length npmax + 2 (see core.boundaries)
- model, scale and loglik always describe the same accepted configuration
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

import jax
import jax.numpy as jnp

from ...core import boundaries as bnd
from ...likelihoods import log_likelihood


@jax.tree_util.register_pytree_node_class
@dataclass
class ChangepointState:
    """
    Sampler state.

    Attributes:
        bounds: Boundary buffer (npmax + 2,) int32; first n_cp + 2 entries active
        n_cp: Current number of changepoints (scalar int32)
        model: Piecewise-constant levels (N, D)
        scale: Per-column noise standard deviation (D,)
        loglik: Cached log-likelihood of (model, scale) against the data
        step_scale: Adaptive spread of Gaussian relocation proposals
    """

    bounds: jnp.ndarray       # (npmax + 2,) int32
    n_cp: jnp.ndarray         # () int32
    model: jnp.ndarray        # (N, D)
    scale: jnp.ndarray        # (D,)
    loglik: jnp.ndarray       # ()
    step_scale: jnp.ndarray   # ()

    def tree_flatten(self):
        """Flatten ChangepointState into children and auxiliary data for PyTree."""
        children = (
            self.bounds,
            self.n_cp,
            self.model,
            self.scale,
            self.loglik,
            self.step_scale,
        )
        return children, None

    @classmethod
    def tree_unflatten(cls, aux, children):
        """Unflatten children and auxiliary data into ChangepointState."""
        return cls(*children)

    @property
    def changepoints(self) -> Tuple[int, ...]:
        """Interior boundaries b_1..b_np (host-side)."""
        return bnd.interior(self.bounds, self.n_cp)

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics for logging/debugging."""
        return {
            "n_cp": int(self.n_cp),
            "changepoints": self.changepoints,
            "loglik": float(self.loglik),
            "scale": [float(s) for s in self.scale],
            "step_scale": float(self.step_scale),
        }


def init_state(key, Y, npmax: int, n_init: int = 2) -> ChangepointState:
    """
    Initial state: unit scales, zero model and a random boundary set.

    Args:
        key: PRNG key
        Y: standardized observations (N, D)
        npmax: maximum number of changepoints (fixes the buffer length)
        n_init: number of initial boundary draws (duplicates collapse)
    """
    N, D = Y.shape
    bounds, n_cp = bnd.init_boundaries(key, N, npmax, n_init=n_init)
    model = jnp.zeros_like(Y)
    scale = jnp.ones((D,), dtype=Y.dtype)
    return ChangepointState(
        bounds=bounds,
        n_cp=n_cp,
        model=model,
        scale=scale,
        loglik=log_likelihood(Y, model, scale),
        step_scale=jnp.asarray((N - 1) / 2.0, dtype=Y.dtype),
    )


__all__ = ["ChangepointState", "init_state"]
