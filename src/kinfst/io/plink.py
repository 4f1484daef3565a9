"""PLINK binary format genotype source using bed-reader.

Datasets prepared for kinship estimation (1000 Genomes, Human Origins,
Pacific panels, simulations) are stored as PLINK .bed/.bim/.fam files with
the subpopulation label kept in the family-ID column of the .fam file.
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import numpy as np
from bed_reader import open_bed
from loguru import logger


def _bed_file(bfile: Path) -> Path:
    bed_path = Path(f"{bfile}.bed")
    if not bed_path.exists():
        raise FileNotFoundError(f"PLINK .bed file not found: {bed_path}")
    return bed_path


def get_plink_metadata(bfile: Path) -> dict[str, Any]:
    """Get PLINK file metadata without loading genotypes.

    Args:
        bfile: Path prefix for PLINK files (without .bed/.bim/.fam extension).

    Returns:
        Dictionary with keys:
        - n_individuals: Number of individuals
        - n_loci: Number of loci (variants)
        - fid: Family IDs (subpopulation labels by convention)
        - iid: Individual IDs
        - sid: Variant IDs
        - chromosome: Chromosome for each locus

    Raises:
        FileNotFoundError: If the .bed file does not exist.

    Example:
        >>> meta = get_plink_metadata(Path("data/tgp_hispanics"))
        >>> print(f"{meta['n_individuals']} individuals, {meta['n_loci']} loci")
        347 individuals, 7214349 loci
    """
    with open_bed(_bed_file(bfile)) as bed:
        return {
            "n_individuals": bed.iid_count,
            "n_loci": bed.sid_count,
            "fid": bed.fid,
            "iid": bed.iid,
            "sid": bed.sid,
            "chromosome": bed.chromosome,
        }


def read_fam_labels(bfile: Path) -> np.ndarray | None:
    """Read subpopulation labels stored in the .fam family-ID column.

    A family-ID column that is entirely "0" carries no labels (plain PLINK
    output), so None is returned in that case.

    Args:
        bfile: Path prefix for PLINK files.

    Returns:
        String array of labels, one per individual, or None.
    """
    fid = np.asarray(get_plink_metadata(bfile)["fid"]).astype(str)
    if np.all(fid == "0"):
        logger.warning(f"{bfile}.fam has no family IDs; no group labels available")
        return None
    logger.debug(f"Read {len(np.unique(fid))} group labels from {bfile}.fam")
    return fid


class BedGenotypes:
    """Genotype source streaming blocks of loci from PLINK binary files.

    The .bed file is reopened for each pass and read with windowed reads,
    so memory is O(n_individuals * block_size) regardless of the number of
    loci.

    Args:
        bfile: Path prefix for PLINK files (without .bed/.bim/.fam extension).
        use_fam_labels: Take group labels from the .fam family-ID column.

    Raises:
        FileNotFoundError: If the .bed file does not exist.

    Example:
        >>> source = BedGenotypes(Path("data/human_origins"))
        >>> for block, start, end in source.iter_blocks(5000):
        ...     print(block.shape)
        (5000, 2922)
    """

    def __init__(self, bfile: Path, use_fam_labels: bool = True) -> None:
        self.bfile = Path(bfile)
        meta = get_plink_metadata(self.bfile)
        self._n_loci = int(meta["n_loci"])
        self._n_individuals = int(meta["n_individuals"])
        self.iid = np.asarray(meta["iid"]).astype(str)
        self._labels = read_fam_labels(self.bfile) if use_fam_labels else None

    @property
    def n_loci(self) -> int:
        return self._n_loci

    @property
    def n_individuals(self) -> int:
        return self._n_individuals

    @property
    def labels(self) -> np.ndarray | None:
        return self._labels

    def iter_blocks(
        self, block_size: int = 10_000
    ) -> Iterator[tuple[np.ndarray, int, int]]:
        n_blocks = (self._n_loci + block_size - 1) // block_size
        logger.debug(
            f"Reading {self._n_loci} loci in {n_blocks} blocks of {block_size} "
            f"({self._n_individuals} individuals)"
        )

        with open_bed(_bed_file(self.bfile)) as bed:
            for start in range(0, self._n_loci, block_size):
                end = min(start + block_size, self._n_loci)
                # bed-reader returns (individuals, loci); blocks are loci-major
                chunk = bed.read(index=np.s_[:, start:end], dtype=np.float64)
                yield np.ascontiguousarray(chunk.T), start, end
