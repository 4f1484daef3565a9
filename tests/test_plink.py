"""Tests for the PLINK genotype source."""

from pathlib import Path

import numpy as np
import pytest

from kinfst.io import BedGenotypes, get_plink_metadata, read_fam_labels
from kinfst.kinship import compute_kinship

pytestmark = pytest.mark.tier0


@pytest.fixture
def small_genotypes(rng):
    X = rng.binomial(2, 0.3, size=(23, 6)).astype(np.float64)
    X[rng.random(X.shape) < 0.1] = np.nan
    return X


class TestPlinkMetadata:
    def test_metadata(self, write_bfile, small_genotypes):
        bfile = write_bfile(small_genotypes, labels=["p1"] * 3 + ["p2"] * 3)
        meta = get_plink_metadata(bfile)

        assert meta["n_individuals"] == 6
        assert meta["n_loci"] == 23
        assert list(meta["iid"]) == [f"ind{i}" for i in range(6)]

    def test_missing_bed(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            get_plink_metadata(tmp_path / "absent")


class TestFamLabels:
    def test_labels_from_fid(self, write_bfile, small_genotypes):
        bfile = write_bfile(small_genotypes, labels=["p1"] * 3 + ["p2"] * 3)
        assert read_fam_labels(bfile).tolist() == ["p1"] * 3 + ["p2"] * 3

    def test_no_family_ids(self, write_bfile, small_genotypes):
        bfile = write_bfile(small_genotypes)
        assert read_fam_labels(bfile) is None


class TestBedGenotypes:
    """Streaming blocks of loci from .bed files."""

    def test_dimensions_and_labels(self, write_bfile, small_genotypes):
        bfile = write_bfile(small_genotypes, labels=list("aabbcc"))
        source = BedGenotypes(bfile)

        assert source.n_loci == 23
        assert source.n_individuals == 6
        assert source.labels.tolist() == list("aabbcc")
        assert source.iid.tolist() == [f"ind{i}" for i in range(6)]

    def test_labels_disabled(self, write_bfile, small_genotypes):
        bfile = write_bfile(small_genotypes, labels=list("aabbcc"))
        assert BedGenotypes(bfile, use_fam_labels=False).labels is None

    def test_blocks_are_loci_major(self, write_bfile, small_genotypes):
        bfile = write_bfile(small_genotypes)
        source = BedGenotypes(bfile)
        blocks = list(source.iter_blocks(10))

        assert [(s, e) for _, s, e in blocks] == [(0, 10), (10, 20), (20, 23)]
        assert blocks[0][0].shape == (10, 6)
        stacked = np.vstack([b for b, _, _ in blocks])
        np.testing.assert_array_equal(stacked, small_genotypes)

    def test_kinship_matches_array(self, write_bfile, small_genotypes):
        labels = list("aabbcc")
        bfile = write_bfile(small_genotypes, labels=labels)

        from_bed = compute_kinship(BedGenotypes(bfile), labels)
        from_array = compute_kinship(small_genotypes, labels)

        np.testing.assert_allclose(
            from_bed.kinship, from_array.kinship, rtol=1e-12, atol=1e-14, equal_nan=True
        )
        np.testing.assert_array_equal(from_bed.n_informative, from_array.n_informative)
