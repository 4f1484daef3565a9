"""Per-individual weights balancing hierarchical population structure.

Sample sizes in real panels are very uneven (hundreds of individuals from
one population, a handful from another). Weighting every individual equally
lets large groups dominate aggregate statistics such as FST; these weights
give every group, and every sub-group within a group, an equal share.
"""

from __future__ import annotations

import numpy as np
from loguru import logger

from kinfst.core.errors import EmptyGroupError, GroupingError


def _labels(values, name: str) -> np.ndarray:
    labels = np.asarray(values)
    if labels.ndim != 1:
        raise GroupingError(f"{name} must be 1-D, got shape {labels.shape}")
    if labels.size == 0:
        raise EmptyGroupError(f"{name} is empty; no individuals to weight")
    return labels


def balance_weights(groups, subgroups=None) -> np.ndarray:
    """Weights giving equal total weight to each group (and sub-group).

    Flat grouping with K groups:
        w_i = 1 / (K * n_group(i))
    Two-level grouping, where group g holds S_g sub-groups:
        w_i = 1 / (K * S_group(i) * n_subgroup(i))

    Only labels carried by the individuals being weighted count towards K
    and S_g, so group tables must already be restricted to those labels
    (see kinfst.groups.map_groups).

    Args:
        groups: Top-level label of each individual.
        subgroups: Optional sub-group label of each individual. Labels
            identify sub-groups across the whole panel, so each must sit
            inside exactly one group; reused names such as "1" under
            both AFR and EUR must be qualified first (e.g. "AFR/1").

    Returns:
        Weight vector summing to 1.

    Raises:
        EmptyGroupError: If there are no individuals.
        GroupingError: If label arrays differ in length or a sub-group
            spans more than one group.

    Example:
        >>> balance_weights(["AFR", "AFR", "EUR"])
        array([0.25, 0.25, 0.5 ])
    """
    groups = _labels(groups, "groups")
    group_ids, group_index, group_sizes = np.unique(
        groups, return_inverse=True, return_counts=True
    )
    k = group_ids.size

    if subgroups is None:
        weights = 1.0 / (k * group_sizes[group_index])
        logger.debug(f"Balanced weights over {k} groups")
        return weights

    subgroups = _labels(subgroups, "subgroups")
    if subgroups.shape != groups.shape:
        raise GroupingError(
            f"groups and subgroups differ in length "
            f"({groups.size} vs {subgroups.size})"
        )

    sub_ids, sub_index, sub_sizes = np.unique(
        subgroups, return_inverse=True, return_counts=True
    )

    # Group each sub-group belongs to; must be unique
    parent = np.full(sub_ids.size, -1)
    for s, g in zip(sub_index, group_index):
        if parent[s] == -1:
            parent[s] = g
        elif parent[s] != g:
            raise GroupingError(
                f"Sub-group {sub_ids[s]!s} appears in groups "
                f"{group_ids[parent[s]]!s} and {group_ids[g]!s}; "
                "sub-group labels must be unique across groups"
            )

    n_subgroups = np.bincount(parent, minlength=k)
    weights = 1.0 / (k * n_subgroups[group_index] * sub_sizes[sub_index])
    logger.debug(f"Balanced weights over {k} groups and {sub_ids.size} sub-groups")
    return weights


def uniform_weights(n: int) -> np.ndarray:
    """Equal weights 1/n."""
    if n < 1:
        raise EmptyGroupError("Cannot weight zero individuals")
    return np.full(n, 1.0 / n)
