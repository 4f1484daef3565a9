"""Reference allele frequency estimation.

Frequencies are computed per locus from observed genotypes only. A locus
with no observed genotype in the reference set has an undefined frequency,
reported as NaN so the kinship accumulator can skip it; no value is ever
imputed for it.
"""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from kinfst.core.errors import EmptyGroupError, GroupingError


def estimate_allele_frequencies(
    block: np.ndarray,
    weights: np.ndarray | None = None,
) -> np.ndarray:
    """Estimate the reference allele frequency of each locus in a block.

    p_l = sum_i w_i x_li / (2 sum_i w_i), summing over individuals observed at
    locus l. Without weights every individual counts equally; a boolean mask
    restricts the estimate to a reference subgroup.

    Args:
        block: Genotypes of shape (n_loci, n_individuals), NaN for missing.
        weights: Optional non-negative per-individual weights or boolean mask
            of length n_individuals.

    Returns:
        Array of length n_loci with values in [0, 1], NaN where no weighted
        individual is observed.

    Example:
        >>> X = np.array([[0.0, 2.0, np.nan], [np.nan, np.nan, np.nan]])
        >>> estimate_allele_frequencies(X)
        array([0.5, nan])
    """
    observed = ~np.isnan(block)
    counts = np.where(observed, block, 0.0)

    if weights is None:
        numer = counts.sum(axis=1)
        denom = observed.sum(axis=1).astype(np.float64)
    else:
        w = np.asarray(weights, dtype=np.float64)
        if w.shape != (block.shape[1],):
            raise ValueError(
                f"Expected {block.shape[1]} frequency weights, got shape {w.shape}"
            )
        if np.any(w < 0):
            raise ValueError("Frequency weights must be non-negative")
        numer = counts @ w
        denom = observed @ w

    freqs = np.full(block.shape[0], np.nan)
    defined = denom > 0
    freqs[defined] = numer[defined] / (2.0 * denom[defined])
    return freqs


def reference_mask(
    labels: np.ndarray,
    reference: str | int | Iterable | None,
) -> np.ndarray | None:
    """Build the boolean mask of individuals forming the frequency reference.

    Args:
        labels: Per-individual group labels.
        reference: A label, an iterable of labels, or None for everyone.

    Returns:
        Boolean mask, or None when reference is None.

    Raises:
        GroupingError: If reference labels are given without labels.
        EmptyGroupError: If no individual carries a reference label.
    """
    if reference is None:
        return None
    if labels is None:
        raise GroupingError("A frequency reference group requires group labels")

    if isinstance(reference, (str, bytes, int, np.integer)):
        reference = [reference]
    wanted = list(reference)

    labels = np.asarray(labels)
    mask = np.isin(labels, wanted)
    if not mask.any():
        raise EmptyGroupError(f"No individuals in reference group(s) {wanted}")
    return mask
