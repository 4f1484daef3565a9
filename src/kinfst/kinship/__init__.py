"""Kinship matrix estimation.

The kinship matrix holds, for every pair of individuals, the probability
that an allele drawn from each is identical by descent relative to an
ancestral reference population. Its diagonal holds self-kinship, from which
inbreeding coefficients follow.

Key functions:
- estimate_kinship / compute_kinship: Streaming ratio-of-sums estimator
- estimate_allele_frequencies: Per-locus reference allele frequency
- min_mean_baseline / pair_baseline: Zero-kinship baseline policies
- rescale_baseline: Shift a finished matrix to a new baseline
- reorder_kinship: Permute rows and columns together
- read_kinship_matrix / write_kinship_matrix: Text I/O
"""

from kinfst.kinship.baseline import (
    BaselinePolicy,
    extreme_groups_from_labels,
    group_mean_kinship,
    min_mean_baseline,
    pair_baseline,
    rescale_baseline,
    tail_groups,
)
from kinfst.kinship.compute import (
    KinshipResult,
    compute_kinship,
    estimate_kinship,
    reorder_kinship,
)
from kinfst.kinship.frequency import estimate_allele_frequencies, reference_mask
from kinfst.kinship.io import read_kinship_matrix, write_kinship_matrix

__all__ = [
    "BaselinePolicy",
    "KinshipResult",
    "compute_kinship",
    "estimate_allele_frequencies",
    "estimate_kinship",
    "extreme_groups_from_labels",
    "group_mean_kinship",
    "min_mean_baseline",
    "pair_baseline",
    "read_kinship_matrix",
    "reference_mask",
    "reorder_kinship",
    "rescale_baseline",
    "tail_groups",
    "write_kinship_matrix",
]
