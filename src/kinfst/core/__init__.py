"""Core infrastructure for kinfst.

This package contains the shared pieces used by the estimators:
- config: Configuration dataclasses
- errors: Exception hierarchy
- jax_config: JAX configuration
- memory: Pre-flight memory checks
- progress: Progress bars for streaming passes
- threading: Worker and BLAS thread counts
"""

from kinfst.core.config import WEIGHT_SUM_RTOL, KinshipConfig, OutputConfig
from kinfst.core.errors import (
    EmptyGroupError,
    EstimationCancelled,
    GroupingError,
    KinfstError,
    UndefinedKinshipError,
    WeightMismatchError,
)
from kinfst.core.jax_config import (
    configure_jax,
    ensure_jax_configured,
    get_jax_info,
)
from kinfst.core.memory import check_memory_available, estimate_kinship_memory

__all__ = [
    "WEIGHT_SUM_RTOL",
    "EmptyGroupError",
    "EstimationCancelled",
    "GroupingError",
    "KinfstError",
    "KinshipConfig",
    "OutputConfig",
    "UndefinedKinshipError",
    "WeightMismatchError",
    "check_memory_available",
    "configure_jax",
    "ensure_jax_configured",
    "estimate_kinship_memory",
    "get_jax_info",
]
