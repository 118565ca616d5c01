# changepoint_jax/core/data.py
"""
Data view layer.

This module provides the observation container consumed by the changepoint
sampler, plus the reader and standardizer that produce it.
It deliberately contains no model assumptions and no inference logic.

Design principle:
  Data is input to the likelihood, but not part of sampler state.
  The matrix follows the (N, D) convention used throughout the package:
  N = rows (time steps), D = columns (variables).
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
import jax.numpy as jnp


@dataclass(frozen=True)
class ObservationMatrix:
    """
    Equally-sampled multivariate series.

    - Y: observations (N, D), rows are time steps, columns are variables

    Instances are immutable; the sampler only ever reads Y.
    """
    Y: jnp.ndarray  # (N, D)

    @property
    def rows(self) -> int:
        """Number of time steps."""
        return self.Y.shape[0]

    @property
    def columns(self) -> int:
        """Number of variables."""
        return self.Y.shape[1]

    def standardized(self) -> ObservationMatrix:
        """Return a copy with zero mean and unit variance per column."""
        return ObservationMatrix(standardize(self.Y))

    def __len__(self) -> int:
        """Return number of time steps."""
        return self.rows


def load_delimited(
    path: Union[str, Path],
    delimiter: str = ",",
    dtype=np.float64,
) -> ObservationMatrix:
    """
    Read a delimited text matrix.

    Rows of the file are time steps and columns are variables; both counts
    are discovered from the file. A single column or a single row still
    yields a 2-D matrix.

    Args:
        path: Path to the text file
        delimiter: Field separator
        dtype: Floating dtype of the parsed values

    Returns:
        ObservationMatrix with Y of shape (rows, columns)

    Raises:
        ValueError: if the file cannot be parsed or holds no values
    """
    raw = np.loadtxt(path, delimiter=delimiter, dtype=dtype, ndmin=2)
    if raw.size == 0:
        raise ValueError(f"No observations found in {path}")
    return ObservationMatrix(jnp.asarray(raw))


def standardize(Y: jnp.ndarray) -> jnp.ndarray:
    """
    Subtract the column mean and divide by the column standard deviation.

    Columns with zero spread (constant columns, or a single row) are only
    centred, so they become zeros instead of NaN.
    """
    Y = jnp.asarray(Y)
    centred = Y - jnp.mean(Y, axis=0, keepdims=True)
    sd = jnp.std(Y, axis=0, keepdims=True)
    return jnp.where(sd > 0, centred / jnp.where(sd > 0, sd, 1.0), centred)


__all__ = [
    "ObservationMatrix",
    "load_delimited",
    "standardize",
]
