"""Helpers for per-individual group labels.

Population labels usually arrive in pieces: sub-population labels in the
.fam family-ID column, a separate table mapping each sub-population to a
continent or super-population, or a sample sheet keyed by individual ID.
These helpers join those pieces into per-individual label arrays and check
them on the way.
"""

from __future__ import annotations

from collections.abc import Mapping

import numpy as np
from loguru import logger

from kinfst.core.errors import GroupingError


def singleton_groups(labels) -> list:
    """Labels carried by exactly one individual, in sorted order."""
    uniq, counts = np.unique(np.asarray(labels), return_counts=True)
    return uniq[counts == 1].tolist()


def labels_from_table(ids, table: Mapping) -> np.ndarray:
    """Look up the label of each individual ID in a table.

    Args:
        ids: Individual IDs, in data order.
        table: Mapping from individual ID to label; may contain extra IDs.

    Returns:
        Label array aligned with ``ids``.

    Raises:
        GroupingError: If any ID is absent from the table.
    """
    ids = [str(i) for i in np.asarray(ids)]
    missing = [i for i in ids if i not in table]
    if missing:
        raise GroupingError(
            f"{len(missing)} individuals missing from label table "
            f"(first: {missing[0]!r})"
        )
    return np.asarray([table[i] for i in ids])


def restrict_table(table: Mapping, present) -> dict:
    """Restrict a sub-group -> group table to sub-groups actually present.

    Entries for absent sub-groups would otherwise inflate group counts.

    Raises:
        GroupingError: If a present sub-group has no entry in the table.
    """
    present = {str(label) for label in np.unique(np.asarray(present))}
    missing = sorted(present - {str(key) for key in table})
    if missing:
        raise GroupingError(
            f"Sub-groups missing from group table: {', '.join(missing[:5])}"
        )

    restricted = {str(k): v for k, v in table.items() if str(k) in present}
    n_dropped = len(table) - len(restricted)
    if n_dropped:
        logger.debug(f"Dropped {n_dropped} group-table entries with no individuals")
    return restricted


def map_groups(subgroups, table: Mapping) -> np.ndarray:
    """Top-level group label of each individual from its sub-group.

    Args:
        subgroups: Sub-group label of each individual.
        table: Mapping from sub-group label to group label.

    Returns:
        Group label array aligned with ``subgroups``.
    """
    subgroups = np.asarray(subgroups)
    restricted = restrict_table(table, subgroups)
    return np.asarray([restricted[str(s)] for s in subgroups])


def order_by_groups(labels, group_order=None) -> np.ndarray:
    """Stable permutation placing individuals of the same group together.

    Args:
        labels: Per-individual group labels.
        group_order: Optional sequence fixing the order of groups (e.g.
            geographic); defaults to sorted label order.

    Returns:
        Index array, usable with reorder_kinship().

    Raises:
        GroupingError: If group_order omits a label that is present.
    """
    labels = np.asarray(labels)
    if group_order is None:
        group_order = np.unique(labels)

    rank = {str(g): r for r, g in enumerate(group_order)}
    missing = {str(label) for label in labels} - set(rank)
    if missing:
        raise GroupingError(f"group_order lacks labels: {', '.join(sorted(missing))}")

    keys = np.asarray([rank[str(label)] for label in labels])
    return np.argsort(keys, kind="stable")
