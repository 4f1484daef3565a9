"""Inbreeding coefficients and generalized FST from a kinship matrix.

Self-kinship phi_ii and the inbreeding coefficient f_i are related by
phi_ii = (1 + f_i) / 2, so f_i = 2 phi_ii - 1. FST is the weighted mean
inbreeding coefficient over individuals.
"""

from __future__ import annotations

import numpy as np
from loguru import logger

from kinfst.core.config import WEIGHT_SUM_RTOL
from kinfst.core.errors import UndefinedKinshipError, WeightMismatchError
from kinfst.stats.weights import uniform_weights


def _square(kinship: np.ndarray) -> np.ndarray:
    kinship = np.asarray(kinship, dtype=np.float64)
    if kinship.ndim != 2 or kinship.shape[0] != kinship.shape[1]:
        raise ValueError(f"Kinship matrix must be square, got shape {kinship.shape}")
    return kinship


def inbreeding(kinship: np.ndarray) -> np.ndarray:
    """Inbreeding coefficient of each individual, 2 * diag(kinship) - 1.

    Undefined self-kinship stays NaN.
    """
    return 2.0 * np.diag(_square(kinship)) - 1.0


def validate_weights(weights, n: int, rtol: float = WEIGHT_SUM_RTOL) -> np.ndarray:
    """Check a weight vector against a matrix dimension.

    Raises:
        WeightMismatchError: If the length differs from n, a weight is
            negative or not finite, or the sum is not 1 within rtol.
    """
    w = np.asarray(weights, dtype=np.float64)
    if w.shape != (n,):
        raise WeightMismatchError(
            f"Weight vector has shape {w.shape}, kinship matrix has dimension {n}"
        )
    if not np.all(np.isfinite(w)) or np.any(w < 0):
        raise WeightMismatchError("Weights must be finite and non-negative")

    total = float(w.sum())
    if abs(total - 1.0) > rtol:
        raise WeightMismatchError(f"Weights sum to {total:.10g}, expected 1")
    return w


def estimate_fst(kinship: np.ndarray, weights=None) -> float:
    """Generalized FST: the weighted mean inbreeding coefficient.

    Args:
        kinship: (n, n) kinship matrix with self-kinship on the diagonal.
        weights: Weight vector summing to 1 (e.g. from balance_weights);
            uniform 1/n when None. Never renormalized.

    Returns:
        FST estimate.

    Raises:
        WeightMismatchError: If the weights do not fit the matrix.
        UndefinedKinshipError: If an individual with nonzero weight has any
            undefined kinship entry (self-kinship or with anyone else).

    Example:
        >>> K = np.full((3, 3), 0.1)
        >>> np.fill_diagonal(K, [0.6, 0.4, 0.5])
        >>> abs(estimate_fst(K)) < 1e-12
        True
    """
    K = _square(kinship)
    inbr = inbreeding(K)
    n = inbr.size
    w = uniform_weights(n) if weights is None else validate_weights(weights, n)

    used = w != 0
    # An undefined pair (i, j) taints both rows, so it is caught if either
    # individual carries weight
    undefined = used & np.isnan(K).any(axis=1)
    if np.any(undefined):
        first = int(np.flatnonzero(undefined)[0])
        raise UndefinedKinshipError(
            f"{int(undefined.sum())} individuals with nonzero weight have "
            f"undefined kinship entries (first: index {first})"
        )

    fst = float(np.dot(w[used], inbr[used]))
    logger.debug(f"FST = {fst:.6g} over {int(used.sum())} weighted individuals")
    return fst
