from .gaussian import log_likelihood, resample_model
from .dimension_match import DimensionMatch, dimension_match_density

__all__ = [
    "log_likelihood",
    "resample_model",
    "DimensionMatch",
    "dimension_match_density",
]
