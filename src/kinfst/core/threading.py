"""Thread management for parallel kinship accumulation.

Accumulation is parallel across blocks of loci: each worker thread owns
private accumulators that are summed once at the end. NumPy work in the
workers (masking, frequency estimation) goes through system BLAS, which is
scoped with threadpool_limits so workers do not oversubscribe cores.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import contextmanager

import psutil
from loguru import logger
from threadpoolctl import threadpool_limits


def get_thread_count() -> int:
    """Determine how many worker threads to use.

    Priority:
    1. KINFST_THREADS env var (explicit override)
    2. Physical core count via psutil (avoids hyperthreading oversubscription)

    Returns:
        Positive integer thread count, capped at os.cpu_count().
    """
    max_threads = os.cpu_count() or 64

    env_override = os.environ.get("KINFST_THREADS")
    if env_override is not None:
        try:
            n = int(env_override)
        except ValueError:
            logger.warning(
                f"KINFST_THREADS={env_override!r} is not a valid integer, "
                "falling back to physical core count"
            )
        else:
            n = max(1, min(n, max_threads))
            logger.debug(f"Threads from KINFST_THREADS: {n}")
            return n

    n = psutil.cpu_count(logical=False) or max_threads
    n = max(1, min(n, max_threads))
    logger.debug(f"Threads from physical core count: {n}")
    return n


@contextmanager
def blas_threads(n_threads: int | None = None) -> Generator[None, None, None]:
    """Scope the BLAS thread pool used by NumPy.

    Args:
        n_threads: Number of BLAS threads. None uses get_thread_count().

    Example:
        >>> with blas_threads(1):
        ...     freqs = np.nanmean(block, axis=1) / 2
    """
    if n_threads is None:
        n_threads = get_thread_count()

    with threadpool_limits(limits=n_threads, user_api="blas"):
        yield
