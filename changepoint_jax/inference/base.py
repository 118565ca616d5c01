# changepoint_jax/inference/base.py
from __future__ import annotations

from typing import Protocol, runtime_checkable, Any


@runtime_checkable
class InferenceMethod(Protocol):
    """
    Protocol for inference methods.

    Design principles
    -----------------
    - An InferenceMethod consumes an observation matrix and a PRNG key.
    - It owns its configuration; the data and the key are passed per run.
    - It MUST NOT keep random state between runs: the key is the only
      source of randomness, so equal keys reproduce equal runs.

    Canonical contract
    ------------------
    The exact result type is method-specific, but all methods:
    - accept a PRNG key and the observations,
    - return inference results (traces, final state, bookkeeping).
    """

    def run(self, key: Any, Y: Any) -> Any:
        """
        Run inference on the given observations.

        Parameters
        ----------
        key : PRNGKey
            Root key of the run.
        Y : array (N, D)
            Observations, rows are time steps.

        Returns
        -------
        Any
            Inference results (method-specific).
        """
        ...
