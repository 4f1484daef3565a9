"""Tests for in-memory genotype sources and label tables."""

from pathlib import Path

import numpy as np
import pytest

from kinfst.io import (
    ArrayGenotypes,
    GenotypeSource,
    as_genotype_source,
    read_group_table,
)

pytestmark = pytest.mark.tier0


class TestArrayGenotypes:
    """Block-wise access to an in-memory matrix."""

    def test_dimensions(self):
        source = ArrayGenotypes(np.zeros((5, 3)), labels=["a", "a", "b"])
        assert source.n_loci == 5
        assert source.n_individuals == 3
        assert source.labels.tolist() == ["a", "a", "b"]
        assert isinstance(source, GenotypeSource)

    def test_blocks_cover_all_loci(self):
        X = np.arange(7 * 2).reshape(7, 2) % 3
        source = ArrayGenotypes(X)
        blocks = list(source.iter_blocks(3))

        assert [(start, end) for _, start, end in blocks] == [(0, 3), (3, 6), (6, 7)]
        np.testing.assert_array_equal(np.vstack([b for b, _, _ in blocks]), X)

    def test_blocks_are_read_only(self):
        source = ArrayGenotypes(np.ones((2, 2)))
        block, _, _ = next(source.iter_blocks())
        with pytest.raises(ValueError):
            block[0, 0] = 2.0

    def test_float64_input_is_not_copied(self):
        X = np.ones((200, 50))
        source = ArrayGenotypes(X)
        block, _, _ = next(source.iter_blocks())

        assert np.shares_memory(block, X)
        assert X.flags.writeable
        X[0, 0] = 0.0

    def test_integer_input_is_converted(self):
        X = np.ones((3, 2), dtype=np.int8)
        block, _, _ = next(ArrayGenotypes(X).iter_blocks())

        assert block.dtype == np.float64
        assert not np.shares_memory(block, X)

    def test_missing_allowed(self):
        source = ArrayGenotypes(np.array([[0.0, np.nan], [2.0, 1.0]]))
        assert source.n_loci == 2

    def test_invalid_values(self):
        with pytest.raises(ValueError, match="0, 1, 2"):
            ArrayGenotypes(np.array([[0.0, 3.0], [0.5, 1.0]]))

    def test_not_two_dimensional(self):
        with pytest.raises(ValueError, match="2-D"):
            ArrayGenotypes(np.zeros(4))

    def test_label_length(self):
        with pytest.raises(ValueError, match="labels"):
            ArrayGenotypes(np.zeros((2, 3)), labels=["a"])


class TestAsGenotypeSource:
    def test_wraps_array(self):
        source = as_genotype_source(np.zeros((2, 2)))
        assert isinstance(source, ArrayGenotypes)

    def test_passes_source_through(self):
        source = ArrayGenotypes(np.zeros((2, 2)))
        assert as_genotype_source(source) is source

    def test_labels_only_with_arrays(self):
        source = ArrayGenotypes(np.zeros((2, 2)))
        with pytest.raises(ValueError):
            as_genotype_source(source, labels=["a", "b"])


class TestReadGroupTable:
    def test_read(self, tmp_path: Path):
        path = tmp_path / "pops.txt"
        path.write_text("# subpop superpop\nYRI\tAFR\nCEU EUR\nYRI\tAFR\n")
        assert read_group_table(path) == {"YRI": "AFR", "CEU": "EUR"}

    def test_single_row(self, tmp_path: Path):
        path = tmp_path / "pops.txt"
        path.write_text("YRI AFR\n")
        assert read_group_table(path) == {"YRI": "AFR"}

    def test_conflict(self, tmp_path: Path):
        path = tmp_path / "pops.txt"
        path.write_text("YRI AFR\nYRI EUR\n")
        with pytest.raises(ValueError, match="YRI"):
            read_group_table(path)

    def test_one_column(self, tmp_path: Path):
        path = tmp_path / "pops.txt"
        path.write_text("YRI\nCEU\n")
        with pytest.raises(ValueError, match="two columns"):
            read_group_table(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            read_group_table(tmp_path / "absent.txt")
