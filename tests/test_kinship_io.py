"""Tests for kinship matrix text I/O."""

from pathlib import Path

import numpy as np
import pytest

from kinfst.kinship import read_kinship_matrix, write_kinship_matrix

pytestmark = pytest.mark.tier0


@pytest.fixture
def kinship():
    K = np.array(
        [
            [0.55, 0.012345678901, np.nan],
            [0.012345678901, 0.6, -0.003],
            [np.nan, -0.003, 0.51],
        ]
    )
    return K


class TestKinshipIO:
    def test_write_format(self, kinship, tmp_path: Path):
        path = tmp_path / "k.txt"
        write_kinship_matrix(kinship, path)

        lines = path.read_text().splitlines()
        assert len(lines) == 3
        assert lines[0].split("\t") == ["0.55", "0.0123456789", "nan"]

    def test_roundtrip_keeps_nan(self, kinship, tmp_path: Path):
        path = tmp_path / "k.txt"
        write_kinship_matrix(kinship, path)
        K = read_kinship_matrix(path, n_individuals=3)

        assert np.isnan(K[0, 2]) and np.isnan(K[2, 0])
        np.testing.assert_allclose(K, kinship, rtol=1e-9, equal_nan=True)

    def test_creates_parent_directory(self, kinship, tmp_path: Path):
        path = tmp_path / "nested" / "dir" / "k.txt"
        write_kinship_matrix(kinship, path)
        assert path.exists()

    def test_single_individual(self, tmp_path: Path):
        path = tmp_path / "k.txt"
        write_kinship_matrix(np.array([[0.5]]), path)
        assert read_kinship_matrix(path).shape == (1, 1)

    def test_not_square(self, tmp_path: Path):
        path = tmp_path / "k.txt"
        path.write_text("1\t2\t3\n4\t5\t6\n")
        with pytest.raises(ValueError, match="square"):
            read_kinship_matrix(path)

    def test_not_symmetric(self, tmp_path: Path):
        path = tmp_path / "k.txt"
        path.write_text("1\t0.2\n0.3\t1\n")
        with pytest.raises(ValueError, match="symmetric"):
            read_kinship_matrix(path)

    def test_dimension_mismatch(self, kinship, tmp_path: Path):
        path = tmp_path / "k.txt"
        write_kinship_matrix(kinship, path)
        with pytest.raises(ValueError, match="n_individuals=4"):
            read_kinship_matrix(path, n_individuals=4)
