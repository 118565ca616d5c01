# changepoint_jax/core/stats.py
"""
Segment statistics.

Means and standard deviations are population moments (ddof=0), so a
one-point segment has standard deviation 0 rather than an undefined value.
An empty range has no moments and yields NaN, which callers treat as
"no contribution".
"""
from __future__ import annotations

import jax
import jax.numpy as jnp


def segment_moments(values, seg, num_segments: int):
    """
    Per-segment count, mean and standard deviation of every column.

    Args:
        values: (N, D) observations
        seg: (N,) segment id of each row, in [0, num_segments)
        num_segments: static number of segment slots

    Returns:
        count (S,), mu (S, D), sigma (S, D). Empty slots report count 0
        and zero moments.
    """
    ones = jnp.ones(values.shape[0], dtype=values.dtype)
    count = jax.ops.segment_sum(ones, seg, num_segments=num_segments)
    n = jnp.maximum(count, 1.0)[:, None]
    mu = jax.ops.segment_sum(values, seg, num_segments=num_segments) / n
    # two-pass variance
    resid = values - mu[seg]
    var = jax.ops.segment_sum(resid * resid, seg, num_segments=num_segments) / n
    return count, mu, jnp.sqrt(var)


def range_moments(values, start, end):
    """
    Mean and standard deviation of rows [start, end) for every column.

    Bounds may be traced. An empty range gives NaN.
    """
    r = jnp.arange(values.shape[0])
    mask = ((r >= start) & (r < end)).astype(values.dtype)[:, None]
    n = jnp.sum(mask)
    mu = jnp.sum(values * mask, axis=0) / n
    resid = (values - mu) * mask
    sigma = jnp.sqrt(jnp.sum(resid * resid, axis=0) / n)
    return mu, sigma


def column_range(values):
    """max - min of every column over all rows."""
    return jnp.max(values, axis=0) - jnp.min(values, axis=0)


__all__ = ["segment_moments", "range_moments", "column_range"]
