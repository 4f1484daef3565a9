"""Tests for group label helpers."""

import numpy as np
import pytest

from kinfst.core import GroupingError
from kinfst.groups import (
    labels_from_table,
    map_groups,
    order_by_groups,
    restrict_table,
    singleton_groups,
)
from kinfst.kinship import reorder_kinship
from kinfst.stats import balance_weights

pytestmark = pytest.mark.tier0


class TestSingletonGroups:
    def test_singletons(self):
        assert singleton_groups(["b", "a", "a", "c", "d", "d"]) == ["b", "c"]

    def test_none(self):
        assert singleton_groups(["a", "a"]) == []


class TestLabelsFromTable:
    def test_lookup(self):
        table = {"i1": "YRI", "i2": "CEU", "i3": "YRI", "extra": "CHB"}
        labels = labels_from_table(["i3", "i1", "i2"], table)
        assert labels.tolist() == ["YRI", "YRI", "CEU"]

    def test_missing_id(self):
        with pytest.raises(GroupingError, match="i9"):
            labels_from_table(["i1", "i9"], {"i1": "YRI"})


class TestMapGroups:
    TABLE = {"YRI": "AFR", "LWK": "AFR", "CEU": "EUR", "CHB": "EAS"}

    def test_restrict_drops_absent(self):
        restricted = restrict_table(self.TABLE, ["YRI", "CEU", "YRI"])
        assert restricted == {"YRI": "AFR", "CEU": "EUR"}

    def test_restrict_missing_subgroup(self):
        with pytest.raises(GroupingError, match="PEL"):
            restrict_table(self.TABLE, ["YRI", "PEL"])

    def test_map(self):
        subgroups = np.array(["YRI", "CEU", "LWK", "YRI"])
        groups = map_groups(subgroups, self.TABLE)
        assert groups.tolist() == ["AFR", "EUR", "AFR", "AFR"]

    def test_absent_group_does_not_count(self):
        """EAS has no individuals, so only two groups share the weight."""
        subgroups = np.array(["YRI", "CEU"])
        w = balance_weights(map_groups(subgroups, self.TABLE), subgroups)
        np.testing.assert_allclose(w, [0.5, 0.5])


class TestOrderByGroups:
    def test_sorted_order_is_stable(self):
        labels = np.array(["b", "a", "b", "a"])
        assert order_by_groups(labels).tolist() == [1, 3, 0, 2]

    def test_explicit_order(self):
        labels = np.array(["AFR", "EUR", "AMR", "AFR"])
        order = order_by_groups(labels, ["EUR", "AFR", "AMR"])
        assert labels[order].tolist() == ["EUR", "AFR", "AFR", "AMR"]

    def test_order_missing_label(self):
        with pytest.raises(GroupingError, match="AMR"):
            order_by_groups(np.array(["AFR", "AMR"]), ["AFR"])

    def test_reorder_kinship_by_groups(self):
        labels = np.array(["b", "a", "b"])
        K = np.array([[1.0, 0.1, 0.3], [0.1, 2.0, 0.2], [0.3, 0.2, 3.0]])
        out = reorder_kinship(K, order_by_groups(labels))
        np.testing.assert_allclose(np.diag(out), [2.0, 1.0, 3.0])
        assert out[1, 2] == pytest.approx(0.3)
