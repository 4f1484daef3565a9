"""Population-level statistics computed from a kinship matrix.

- weights: Hierarchically balanced per-individual weights
- fst: Inbreeding coefficients and generalized FST
"""

from kinfst.stats.fst import estimate_fst, inbreeding, validate_weights
from kinfst.stats.weights import balance_weights, uniform_weights

__all__ = [
    "balance_weights",
    "estimate_fst",
    "inbreeding",
    "uniform_weights",
    "validate_weights",
]
