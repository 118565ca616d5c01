# changepoint_jax/likelihoods/gaussian.py
"""
Gaussian likelihood for a piecewise-constant mean.

    p(Y | model, s) = prod_{r,c} N(Y[r, c]; model[r, c], s[c]^2)

The model is constant inside every segment of a boundary set and is
redrawn from an approximate posterior whenever the boundaries change.
"""
from __future__ import annotations

import jax
import jax.numpy as jnp

from ..core import rng
from ..core.boundaries import segment_ids
from ..core.stats import segment_moments


@jax.jit
def log_likelihood(Y, model, scale):
    """
    Unnormalised Gaussian log-likelihood.

        ll = -1/2 * sum_c sum_r ((Y[r, c] - model[r, c]) / scale[c])^2

    Args:
        Y: observations (N, D)
        model: piecewise-constant levels (N, D)
        scale: per-column noise standard deviation (D,)
    """
    z = (Y - model) / scale[None, :]
    return -0.5 * jnp.sum(z * z)


@jax.jit
def resample_model(key, bounds, Y):
    """
    Draw a piecewise-constant model for the given boundary set.

    For each column and segment [b_k, b_{k+1}) the level is

        mu + N(0, sigma / sqrt(len))

    with mu, sigma the segment's empirical mean and standard deviation,
    a normal approximation to the posterior of the segment mean. The same
    key always gives the same model.

    Args:
        key: PRNG key
        bounds: boundary buffer (npmax + 2,)
        Y: observations (N, D)

    Returns:
        model (N, D)
    """
    seg = segment_ids(bounds, Y.shape[0])
    count, mu, sigma = segment_moments(Y, seg, bounds.shape[0] - 1)
    sd = sigma / jnp.sqrt(jnp.maximum(count, 1.0))[:, None]
    level = mu + rng.gaussian(key, sd, shape=mu.shape)
    return level[seg]


__all__ = ["log_likelihood", "resample_model"]
