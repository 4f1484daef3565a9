"""Memory estimation and checks for kinship accumulation.

Accumulation keeps three N x N float64 buffers (numerator, denominator,
pair counts) per worker, plus the finalized matrix. Genotypes are never held
beyond one block per worker.
"""

from typing import NamedTuple

import psutil
from loguru import logger


class KinshipMemoryBreakdown(NamedTuple):
    """Memory estimate for streaming kinship accumulation, all values in GB."""

    accumulators_gb: float  # 3 * n^2 * 8 bytes per worker
    kinship_gb: float  # n^2 * 8 bytes finalized matrix
    blocks_gb: float  # n * block_size * 8 bytes per worker (genotypes + mask)
    total_gb: float
    available_gb: float
    sufficient: bool  # available >= total * 1.1


def estimate_kinship_memory(
    n_individuals: int,
    block_size: int = 10_000,
    n_workers: int = 1,
) -> KinshipMemoryBreakdown:
    """Estimate peak memory for streaming kinship accumulation.

    Args:
        n_individuals: Number of individuals (matrix dimension).
        block_size: Loci per block.
        n_workers: Worker threads, each with private accumulators.

    Returns:
        KinshipMemoryBreakdown with component estimates.

    Example:
        >>> est = estimate_kinship_memory(10_000, n_workers=4)
        >>> round(est.accumulators_gb, 1)
        9.6
    """
    accumulators_gb = 3 * n_workers * n_individuals**2 * 8 / 1e9
    kinship_gb = n_individuals**2 * 8 / 1e9
    blocks_gb = 2 * n_workers * n_individuals * block_size * 8 / 1e9
    total_gb = accumulators_gb + kinship_gb + blocks_gb

    available_gb = psutil.virtual_memory().available / 1e9
    return KinshipMemoryBreakdown(
        accumulators_gb=accumulators_gb,
        kinship_gb=kinship_gb,
        blocks_gb=blocks_gb,
        total_gb=total_gb,
        available_gb=available_gb,
        sufficient=total_gb * 1.1 < available_gb,
    )


def check_memory_available(
    required_gb: float,
    safety_margin: float = 0.1,
    operation: str = "operation",
) -> bool:
    """Check if sufficient memory is available, raise if not.

    Args:
        required_gb: Memory required in GB.
        safety_margin: Additional margin (0.1 = 10%).
        operation: Description for error message.

    Returns:
        True if sufficient memory available.

    Raises:
        MemoryError: If insufficient memory with detailed message.
    """
    available_gb = psutil.virtual_memory().available / 1e9
    required_with_margin = required_gb * (1 + safety_margin)

    if required_with_margin > available_gb:
        raise MemoryError(
            f"Insufficient memory for {operation}. "
            f"Need {required_gb:.1f}GB (+{safety_margin*100:.0f}% margin = "
            f"{required_with_margin:.1f}GB), but only {available_gb:.1f}GB available. "
            f"Reduce block size or worker count."
        )

    logger.debug(
        f"Memory check passed for {operation}: "
        f"{required_with_margin:.2f}GB of {available_gb:.1f}GB"
    )
    return True
