# changepoint_jax/core/rng.py
"""
Random source.

The sampler owns a single jax.random key and threads it through every
consumer. These helpers give that key the draws the kernels need:
uniform reals in [0, 1), bounded integers, and zero-mean Gaussian deviates
parameterised by standard deviation only (callers add the offset).
"""
from __future__ import annotations

import time
from typing import Optional

import jax.numpy as jnp
from jax import random as jrand


def seed(value: Optional[int] = None) -> jnp.ndarray:
    """
    Build the root PRNG key.

    With no value the seed is taken from the wall clock mixed with the
    process CPU clock; pass an explicit integer for reproducible runs.
    """
    if value is None:
        value = (time.time_ns() ^ time.process_time_ns()) & 0xFFFFFFFF
    return jrand.PRNGKey(value)


def uniform(key, shape=(), dtype=float):
    """Uniform reals in [0, 1)."""
    return jrand.uniform(key, shape=shape, dtype=dtype)


def gaussian(key, sd, shape=()):
    """Zero-mean Gaussian deviates with standard deviation `sd` (broadcast to shape)."""
    sd = jnp.asarray(sd)
    if not jnp.issubdtype(sd.dtype, jnp.floating):
        sd = sd.astype(float)
    return sd * jrand.normal(key, shape=shape, dtype=sd.dtype)


def randint(key, low, high):
    """
    Uniform integer in [low, high).

    Bounds may be traced values. An empty range returns `low`.
    """
    low = jnp.asarray(low, dtype=jnp.int32)
    high = jnp.maximum(jnp.asarray(high, dtype=jnp.int32), low + 1)
    return jrand.randint(key, (), low, high, dtype=jnp.int32)


__all__ = ["seed", "uniform", "gaussian", "randint"]
