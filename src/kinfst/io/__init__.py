"""I/O modules for kinfst.

This package contains genotype sources and readers:
- genotypes: GenotypeSource protocol and in-memory source
- plink: PLINK binary format (.bed/.bim/.fam) streaming source
- tables: Two-column label tables
"""

from kinfst.io.genotypes import ArrayGenotypes, GenotypeSource, as_genotype_source
from kinfst.io.plink import BedGenotypes, get_plink_metadata, read_fam_labels
from kinfst.io.tables import read_group_table

__all__ = [
    "ArrayGenotypes",
    "BedGenotypes",
    "GenotypeSource",
    "as_genotype_source",
    "get_plink_metadata",
    "read_fam_labels",
    "read_group_table",
]
