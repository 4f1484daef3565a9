"""kinfst: kinship and FST estimation for structured populations.

kinfst estimates a genome-wide kinship matrix from biallelic genotypes
without assuming the sampled individuals are unrelated, calibrates it
against the least related groups in the sample, and turns it into
inbreeding coefficients and a generalized FST with weights that balance
uneven sampling across (sub)populations.

Key features:
- Streaming ratio-of-sums estimator over blocks of loci (JAX kernels)
- PLINK .bed/.bim/.fam input with labels from the family-ID column
- Hierarchical per-individual weights for FST

Example:
    >>> from kinfst import BedGenotypes, estimate_kinship, estimate_fst
    >>> source = BedGenotypes("data/human_origins")
    >>> K = estimate_kinship(source, source.labels)
    >>> print(f"FST = {estimate_fst(K):.3f}")
"""

import sys
from importlib.metadata import version

from loguru import logger

__version__ = version("kinfst")

# Configure loguru with sensible defaults on import
# Uses stdout so output is visible in notebook cells (stderr may be buffered)
# Users can override by calling logger.remove()/add()
logger.remove()
logger.add(
    sys.stdout,
    level="INFO",
    format="{time:HH:mm:ss} | <level>{level: <8}</level> | {message}",
    colorize=True,
)

from kinfst.io import ArrayGenotypes, BedGenotypes  # noqa: E402
from kinfst.kinship import (  # noqa: E402
    KinshipResult,
    compute_kinship,
    estimate_kinship,
    rescale_baseline,
)
from kinfst.stats import balance_weights, estimate_fst, inbreeding  # noqa: E402

__all__ = [
    "ArrayGenotypes",
    "BedGenotypes",
    "KinshipResult",
    "__version__",
    "balance_weights",
    "compute_kinship",
    "estimate_fst",
    "estimate_kinship",
    "inbreeding",
    "rescale_baseline",
]
