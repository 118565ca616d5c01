# changepoint_jax/core/boundaries.py
"""
Boundary sets in a fixed-size buffer.

A boundary set is the sorted list of segment edges [0, b_1, ..., b_np, N].
The interior entries b_1..b_np are the changepoints. To keep shapes static
under jit the set lives in a buffer of length npmax + 2:

    bounds = [0, b_1, ..., b_np, N, N, ..., N]

Only the first np + 2 entries are active; the tail is padded with N so the
whole buffer stays non-decreasing and `segment_ids` can use searchsorted.

All operations are pure and return new buffers.
"""
from __future__ import annotations

from typing import Tuple

import numpy as np
import jax.numpy as jnp
from jax import random as jrand

from . import rng


def empty_boundaries(rows: int, npmax: int) -> jnp.ndarray:
    """Buffer holding only the two sentinels."""
    return jnp.full((npmax + 2,), rows, dtype=jnp.int32).at[0].set(0)


def insert_boundary(bounds, n_cp, value):
    """
    Set-semantics insert.

    Returns:
        (bounds, n_cp, changed). When `value` is already present (including
        either sentinel) or the buffer is full, the set is returned unchanged
        and `changed` is False.
    """
    n_cp = jnp.asarray(n_cp, dtype=jnp.int32)
    active = jnp.arange(bounds.shape[0]) <= n_cp + 1
    present = jnp.any(active & (bounds == value))
    changed = (~present) & (n_cp + 2 < bounds.shape[0])
    candidate = jnp.sort(bounds.at[-1].set(jnp.asarray(value, dtype=bounds.dtype)))
    new_bounds = jnp.where(changed, candidate, bounds)
    return new_bounds, n_cp + changed.astype(n_cp.dtype), changed


def remove_boundary(bounds, n_cp, index):
    """
    Remove interior entry `index` (1 <= index <= n_cp) by shifting the tail left.

    The last slot keeps its value, which is always the N sentinel or padding.
    """
    pos = jnp.arange(bounds.shape[0])
    shifted = jnp.concatenate([bounds[1:], bounds[-1:]])
    return jnp.where(pos >= index, shifted, bounds), n_cp - 1


def relocate_boundary(bounds, index, value):
    """Replace interior entry `index`; the caller keeps it between its neighbours."""
    return bounds.at[index].set(jnp.asarray(value, dtype=bounds.dtype))


def segment_ids(bounds, rows: int):
    """Segment id of every row: k such that bounds[k] <= r < bounds[k+1]."""
    r = jnp.arange(rows, dtype=bounds.dtype)
    return jnp.searchsorted(bounds, r, side="right") - 1


def init_boundaries(key, rows: int, npmax: int, n_init: int = 2):
    """
    Random initial boundary set.

    Draws min(n_init, npmax) positions uniformly from [0, rows) and inserts
    them with set semantics, so draws that hit 0 or repeat collapse.

    Returns:
        (bounds, n_cp)
    """
    bounds = empty_boundaries(rows, npmax)
    n_cp = jnp.array(0, dtype=jnp.int32)
    n_draws = min(n_init, npmax)
    if n_draws > 0:
        for k in jrand.split(key, n_draws):
            bounds, n_cp, _ = insert_boundary(bounds, n_cp, rng.randint(k, 0, rows))
    return bounds, n_cp


def interior(bounds, n_cp) -> Tuple[int, ...]:
    """Host-side tuple of the changepoints b_1..b_np."""
    n = int(n_cp)
    return tuple(int(b) for b in np.asarray(bounds)[1:n + 1])


def is_valid(bounds, n_cp, rows: int, npmin: int = 0, npmax: int = None) -> bool:
    """
    Host-side check of the boundary-set invariants: sentinels present,
    active entries strictly increasing, padding equal to N, and
    npmin <= n_cp <= npmax.
    """
    b = np.asarray(bounds)
    n = int(n_cp)
    if npmax is None:
        npmax = b.shape[0] - 2
    if not npmin <= n <= npmax:
        return False
    active = b[:n + 2]
    return (
        active[0] == 0
        and active[-1] == rows
        and bool(np.all(np.diff(active) > 0))
        and bool(np.all(b[n + 2:] == rows))
    )


__all__ = [
    "empty_boundaries",
    "insert_boundary",
    "remove_boundary",
    "relocate_boundary",
    "segment_ids",
    "init_boundaries",
    "interior",
    "is_valid",
]
