"""Zero-kinship baseline selection and rescaling.

Raw kinship estimates are only relative: some value has to be declared
"unrelated". Which individuals are least related depends on the dataset, so
the choice is a policy, a callable (kinship, labels) -> baseline. The
default takes the pair of groups with the smallest mean kinship.

rescale_baseline() recalibrates a finished matrix after the fact, for
example when it was estimated without labels, by shifting every entry so
that two designated extreme groups have zero mean kinship.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import numpy as np
from loguru import logger

from kinfst.core.errors import EmptyGroupError, GroupingError, UndefinedKinshipError

BaselinePolicy = Callable[[np.ndarray, np.ndarray], float]


def group_mean_kinship(
    kinship: np.ndarray, labels: np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """Mean kinship within and between every pair of groups.

    Diagonal (self-kinship) entries are left out of within-group means and
    undefined entries are ignored.

    Args:
        kinship: (n, n) kinship matrix.
        labels: Per-individual group labels.

    Returns:
        Tuple of (unique_labels, means) where means[g, h] is the mean
        kinship between groups g and h (NaN if no defined pair exists).
    """
    labels = np.asarray(labels)
    if labels.shape != (kinship.shape[0],):
        raise GroupingError(
            f"Expected {kinship.shape[0]} labels, got shape {labels.shape}"
        )
    uniq, inverse = np.unique(labels, return_inverse=True)

    # G is the (n, k) one-hot group membership
    G = np.zeros((labels.size, uniq.size))
    G[np.arange(labels.size), inverse] = 1.0

    defined = ~np.isnan(kinship)
    np.fill_diagonal(defined, False)
    values = np.where(defined, kinship, 0.0)

    sums = G.T @ values @ G
    counts = G.T @ defined.astype(np.float64) @ G
    with np.errstate(invalid="ignore", divide="ignore"):
        means = np.where(counts > 0, sums / np.where(counts > 0, counts, 1.0), np.nan)
    return uniq, means


def min_mean_baseline(kinship: np.ndarray, labels: np.ndarray) -> float:
    """Baseline from the least related pair of groups.

    Takes the smallest mean kinship between two distinct groups; with a
    single group, the mean off-diagonal kinship within it.

    Raises:
        UndefinedKinshipError: If every candidate block is undefined.
    """
    uniq, means = group_mean_kinship(kinship, labels)

    if uniq.size == 1:
        candidates = means[0:1, 0:1]
    else:
        candidates = np.where(np.eye(uniq.size, dtype=bool), np.nan, means)

    if np.all(np.isnan(candidates)):
        raise UndefinedKinshipError("No defined kinship between any pair of groups")

    g, h = np.unravel_index(np.nanargmin(candidates), candidates.shape)
    value = float(candidates[g, h])
    logger.debug(f"Baseline groups: {uniq[g]!s} x {uniq[h]!s} (mean {value:.6g})")
    return value


def pair_baseline(group_a, group_b) -> BaselinePolicy:
    """Policy fixing the baseline to the mean kinship between two named groups.

    Example:
        >>> policy = pair_baseline("YRI", "PEL")
        >>> K = estimate_kinship(source, labels, baseline=policy)
    """

    def policy(kinship: np.ndarray, labels: np.ndarray) -> float:
        extremes = extreme_groups_from_labels(labels, group_a, group_b)
        return _extreme_mean(kinship, *extremes)

    return policy


def extreme_groups_from_labels(
    labels: np.ndarray, group_a, group_b
) -> tuple[np.ndarray, np.ndarray]:
    """Boolean masks of the individuals carrying two given labels."""
    labels = np.asarray(labels)
    return labels == group_a, labels == group_b


def tail_groups(order: np.ndarray, k: int) -> tuple[np.ndarray, np.ndarray]:
    """Take the two ends of an ordering of individuals as extreme groups.

    Args:
        order: Individual indices sorted by genetic similarity (e.g. along
            the first principal component or a tree ordering).
        k: Individuals to take from each end.

    Returns:
        (first_k, last_k) index arrays.

    Raises:
        EmptyGroupError: If k < 1 or 2 * k exceeds the number of individuals.
    """
    order = np.asarray(order)
    if k < 1 or 2 * k > order.size:
        raise EmptyGroupError(
            f"Cannot take {k} individuals from each end of {order.size}"
        )
    return order[:k], order[-k:]


def _as_index(group, n: int) -> np.ndarray:
    group = np.asarray(group)
    if group.dtype == bool:
        if group.shape != (n,):
            raise GroupingError(f"Boolean group mask must have length {n}")
        return np.flatnonzero(group)
    index = group.astype(np.int64).ravel()
    if index.size and (index.min() < 0 or index.max() >= n):
        raise GroupingError(f"Group indices out of range for {n} individuals")
    return np.unique(index)


def _extreme_mean(kinship: np.ndarray, group_a, group_b) -> float:
    n = kinship.shape[0]
    a = _as_index(group_a, n)
    b = _as_index(group_b, n)

    if a.size == 0 or b.size == 0:
        raise EmptyGroupError("Both extreme groups need at least one individual")
    if np.intersect1d(a, b).size:
        raise GroupingError("Extreme groups must be disjoint")

    block = kinship[np.ix_(a, b)]
    if np.any(np.isnan(block)):
        raise UndefinedKinshipError(
            f"{int(np.sum(np.isnan(block)))} undefined kinship entries "
            "between the extreme groups"
        )
    return float(block.mean())


def rescale_baseline(
    kinship: np.ndarray,
    extreme_groups: Sequence,
    inplace: bool = False,
) -> np.ndarray:
    """Shift a kinship matrix so two extreme groups have zero mean kinship.

    The baseline c is the mean kinship over all pairs (i, j) with i in the
    first group and j in the second, and c is subtracted from every entry,
    diagonal included. Differences between entries are unchanged.

    Args:
        kinship: (n, n) kinship matrix.
        extreme_groups: Two groups, each an index array or boolean mask.
        inplace: Modify ``kinship`` instead of returning a new matrix. The
            caller must make sure nothing else reads it meanwhile.

    Returns:
        The rescaled matrix (``kinship`` itself when inplace).

    Raises:
        EmptyGroupError: If a group is empty.
        GroupingError: If there are not exactly two groups or they overlap.
        UndefinedKinshipError: If an entry between the groups is undefined.

    Example:
        >>> K2 = rescale_baseline(K, tail_groups(order, 10))
    """
    if len(extreme_groups) != 2:
        raise GroupingError(
            f"Exactly two extreme groups are required, got {len(extreme_groups)}"
        )
    c = _extreme_mean(kinship, *extreme_groups)
    logger.info(f"Rescaling kinship baseline by {c:.6g}")

    if inplace:
        kinship -= c
        return kinship
    return kinship - c
