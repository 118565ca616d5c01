# changepoint_jax/inference/rj/kernels.py
"""
Move kernels for changepoint RJ-MCMC.

Every kernel maps (key, state, Y) to a Proposal: a complete candidate state,
its log acceptance ratio and a validity flag. Kernels never touch the
current state; the driver commits a proposal atomically on acceptance or
drops it.

Moves:
- relocate: shift one changepoint between its neighbours (symmetric)
- rescale:  redraw the noise scale of one column
- birth:    add a changepoint inside a segment (dimension +1)
- death:    remove a changepoint (dimension -1)
- update:   redraw the segment levels for the current boundaries

Birth and death carry the dimension-matching density in their ratio;
rescale carries the Jacobian N * log(s'/s).
"""
from __future__ import annotations

from dataclasses import replace
from typing import NamedTuple

import jax
import jax.numpy as jnp
from jax import random as jrand

from ...core import rng
from ...core import boundaries as bnd
from ...likelihoods import dimension_match_density, log_likelihood, resample_model
from .state import ChangepointState

RELOCATE, RESCALE, BIRTH, DEATH, UPDATE, SKIP = range(6)
MOVE_NAMES = ("relocate", "rescale", "birth", "death", "update", "skip")

# accepted moves of these kinds write a changepoint line
EMITTING_MOVES = (RELOCATE, BIRTH, DEATH)

STEP_FACTOR = 2.9


class Proposal(NamedTuple):
    """Candidate state with its log acceptance ratio."""
    state: ChangepointState
    log_ratio: jnp.ndarray  # ()
    valid: jnp.ndarray      # () bool


def metropolis_accept(u, log_ratio):
    """Accept iff u < exp(log_ratio). A NaN ratio compares False and rejects."""
    return u < jnp.exp(log_ratio)


def commit(state: ChangepointState, proposal: Proposal, accept) -> ChangepointState:
    """Take every field of the proposed state if accepted, else keep the current one."""
    return jax.tree_util.tree_map(
        lambda p, c: jnp.where(accept, p, c), proposal.state, state
    )


def _resampled(key, state: ChangepointState, Y, bounds, n_cp) -> ChangepointState:
    model = resample_model(key, bounds, Y)
    return replace(
        state,
        bounds=bounds,
        n_cp=n_cp,
        model=model,
        loglik=log_likelihood(Y, model, state.scale),
    )


def relocate(key, state: ChangepointState, Y, step_factor: float = STEP_FACTOR) -> Proposal:
    """
    Move changepoint i (uniform over 1..np) strictly between its neighbours.

    Two candidates are drawn: one uniform on the open interval and one
    Gaussian around the current position with the adaptive step scale. The
    Gaussian one is used only if it is inside the interval, differs from the
    current position and is closer to it than the uniform one.
    Requires np > 0.
    """
    k_pick, k_unif, k_gauss, k_model = jrand.split(key, 4)
    b = state.bounds

    i = rng.randint(k_pick, 1, state.n_cp + 1)
    lo, cur, hi = b[i - 1], b[i], b[i + 1]

    v_unif = rng.randint(k_unif, lo + 1, hi)
    v_gauss = jnp.trunc(rng.gaussian(k_gauss, state.step_scale) + cur).astype(b.dtype)

    gauss_ok = (v_gauss > lo) & (v_gauss < hi) & (v_gauss != cur)
    gauss_closer = jnp.abs(v_unif - cur) > jnp.abs(v_gauss - cur)
    new = jnp.where(gauss_ok & gauss_closer, v_gauss, v_unif)

    prop = _resampled(k_model, state, Y, bnd.relocate_boundary(b, i, new), state.n_cp)
    step = step_factor * jnp.abs(new - cur).astype(state.step_scale.dtype)
    prop = replace(prop, step_scale=step)
    return Proposal(prop, prop.loglik - state.loglik, jnp.asarray(True))


def rescale(key, state: ChangepointState, Y) -> Proposal:
    """
    Replace the noise scale of one column with a Uniform(0, 1) draw.

    log_ratio = N * log(s'_j / s_j) + ll' - ll
    """
    k_col, k_val = jrand.split(key)
    N, D = Y.shape

    j = rng.randint(k_col, 0, D)
    s_new = rng.uniform(k_val, dtype=state.scale.dtype)
    scale = state.scale.at[j].set(s_new)
    ll = log_likelihood(Y, state.model, scale)

    jacobian = N * jnp.log(s_new / state.scale[j])
    prop = replace(state, scale=scale, loglik=ll)
    return Proposal(prop, jacobian + ll - state.loglik, jnp.asarray(True))


def birth(key, state: ChangepointState, Y) -> Proposal:
    """
    Insert a changepoint uniformly inside a uniformly chosen segment.

    log_ratio = -DM(b'_k, b'_{k+1}) + ll' - ll, with DM the dimension-matching
    density of the left half of the split segment. A segment of length one
    has no interior position; the insert reports no change and the proposal
    is invalid. Requires np < npmax.
    """
    k_pick, k_pos, k_model = jrand.split(key, 3)
    b = state.bounds

    k = rng.randint(k_pick, 0, state.n_cp + 1)
    value = rng.randint(k_pos, b[k] + 1, b[k + 1])
    bounds, n_cp, changed = bnd.insert_boundary(b, state.n_cp, value)

    prop = _resampled(k_model, state, Y, bounds, n_cp)
    dm = dimension_match_density(Y, bounds[k], bounds[k + 1])
    log_ratio = -dm.value + prop.loglik - state.loglik
    return Proposal(prop, log_ratio, changed & dm.valid)


def death(key, state: ChangepointState, Y) -> Proposal:
    """
    Remove a uniformly chosen changepoint.

    log_ratio = +DM(b_i, b_{i+1}) + ll' - ll, with DM evaluated on the set
    before removal. Requires np > npmin.
    """
    k_pick, k_model = jrand.split(key)
    b = state.bounds

    i = rng.randint(k_pick, 1, state.n_cp + 1)
    dm = dimension_match_density(Y, b[i], b[i + 1])
    bounds, n_cp = bnd.remove_boundary(b, state.n_cp, i)

    prop = _resampled(k_model, state, Y, bounds, n_cp)
    log_ratio = dm.value + prop.loglik - state.loglik
    return Proposal(prop, log_ratio, dm.valid)


def update(key, state: ChangepointState, Y) -> Proposal:
    """Redraw the segment levels for the current boundaries."""
    prop = _resampled(key, state, Y, state.bounds, state.n_cp)
    return Proposal(prop, prop.loglik - state.loglik, jnp.asarray(True))


def skip(key, state: ChangepointState, Y) -> Proposal:
    """Infeasible move: leave the state as it is."""
    return Proposal(state, jnp.zeros_like(state.loglik), jnp.asarray(False))


__all__ = [
    "RELOCATE", "RESCALE", "BIRTH", "DEATH", "UPDATE", "SKIP",
    "MOVE_NAMES", "EMITTING_MOVES",
    "Proposal",
    "metropolis_accept",
    "commit",
    "relocate", "rescale", "birth", "death", "update", "skip",
]
