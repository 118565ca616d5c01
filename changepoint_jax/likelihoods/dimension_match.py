# changepoint_jax/likelihoods/dimension_match.py
"""
Dimension-matching density for birth/death moves.

Adding or removing a boundary changes the dimension of the model, so the
acceptance ratio needs a proposal-density term (Green, 1995). For a segment
[start, end) it is

    sum_c [ log N(Y[start, c] | mu_c, sigma_c) + log(range_c) ]

where mu_c, sigma_c are the segment moments (sigma floored by 1e-15) and
range_c is the spread of column c over the whole series. Columns whose
terms are NaN (an empty segment) are skipped; if no column remains the
density is invalid and the move must be rejected.
"""
from __future__ import annotations

from typing import NamedTuple

import jax
import jax.numpy as jnp

from ..core.stats import column_range, range_moments

SIGMA_FLOOR = 1e-15
RANGE_FLOOR = 1e-15


class DimensionMatch(NamedTuple):
    """Log density and whether at least one column contributed to it."""
    value: jnp.ndarray  # ()
    valid: jnp.ndarray  # () bool


@jax.jit
def dimension_match_density(Y, start, end) -> DimensionMatch:
    """
    Dimension-matching log density of segment [start, end).

    Args:
        Y: observations (N, D)
        start, end: segment edges (may be traced)

    Returns:
        DimensionMatch(value, valid). `value` sums the contributing columns,
        so a partially valid density is still valid.
    """
    mu, sigma = range_moments(Y, start, end)
    sigma = sigma + SIGMA_FLOOR
    x = Y[jnp.clip(start, 0, Y.shape[0] - 1)]
    lq = -jnp.log(sigma * jnp.sqrt(2.0 * jnp.pi)) - 0.5 * ((x - mu) / sigma) ** 2
    lz = jnp.log(column_range(Y) + RANGE_FLOOR)
    ok = ~jnp.isnan(lq) & ~jnp.isnan(lz)
    value = jnp.sum(jnp.where(ok, lq + lz, 0.0))
    return DimensionMatch(value=value, valid=jnp.any(ok))


__all__ = ["DimensionMatch", "dimension_match_density", "SIGMA_FLOOR", "RANGE_FLOOR"]
