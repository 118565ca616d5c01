from .data import ObservationMatrix, load_delimited, standardize
from . import boundaries, rng, stats

__all__ = [
    "ObservationMatrix",
    "load_delimited",
    "standardize",
    "boundaries",
    "rng",
    "stats",
]
