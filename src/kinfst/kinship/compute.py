"""Streaming kinship matrix estimation.

For every locus l with reference allele frequency p_l, and every pair of
individuals (i, j) observed at l (including i == j), three sums are
accumulated:

    A_ij += (x_li - 1)(x_lj - 1) - 1 + v_l
    B_ij += v_l
    M_ij += 1

where v_l = 4 p_l (1 - p_l). The raw kinship estimate is the ratio of sums
A_ij / B_ij. Its expectation is (phi_ij - phi_bar) / (1 - phi_bar), with
phi_bar the mean kinship of the individuals used to estimate p_l, so the
bias of the raw matrix is one global affine term. Baseline calibration
removes it: the mean raw kinship of the least related groups is the
baseline b, and phi = (raw - b) / (1 - b).

Per block of loci the sums reduce to matrix products. With Y the genotypes
minus one (zero where unused), O the 0/1 usage mask and v the per-locus
weights:

    A += Y'Y + O' diag(v - 1) O
    B += O' diag(v) O
    M += O'O

Missing genotypes therefore drop out pair by pair, never locus by locus,
and loci with an undefined frequency drop out entirely. A locus fixed in
the reference set has v = 0: it still adds (x_i - 1)(x_j - 1) - 1 to A
but nothing to B, so no per-locus division ever happens.
"""

from __future__ import annotations

import queue
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

import jax.numpy as jnp
import numpy as np
from jax import jit
from loguru import logger

from kinfst.core.config import KinshipConfig
from kinfst.core.errors import EstimationCancelled, GroupingError
from kinfst.core.jax_config import ensure_jax_configured
from kinfst.core.memory import check_memory_available, estimate_kinship_memory
from kinfst.core.progress import progress_iterator
from kinfst.core.threading import blas_threads, get_thread_count
from kinfst.io.genotypes import as_genotype_source
from kinfst.kinship.baseline import BaselinePolicy, min_mean_baseline
from kinfst.kinship.frequency import estimate_allele_frequencies, reference_mask

if TYPE_CHECKING:
    from jaxtyping import Array, Float


@jit
def _accumulate_block(
    A: Float[Array, "n n"],
    B: Float[Array, "n n"],
    M: Float[Array, "n n"],
    Y: Float[Array, "b n"],
    O: Float[Array, "b n"],
    v: Float[Array, " b"],
) -> tuple[Float[Array, "n n"], Float[Array, "n n"], Float[Array, "n n"]]:
    """Add one block's contribution to the ratio-of-sums accumulators.

    Args:
        A, B, M: Numerator, denominator and pair-count accumulators (n, n).
        Y: Genotypes minus one, zero where unused (block_loci, n).
        O: 0/1 usage mask (block_loci, n).
        v: Per-locus weights 4p(1-p), zero for undefined loci (block_loci,).

    Returns:
        Updated (A, B, M).
    """
    Ov = O * v[:, None]
    A = A + Y.T @ Y + O.T @ (Ov - O)
    B = B + O.T @ Ov
    M = M + O.T @ O
    return A, B, M


def _prepare_block(
    block: np.ndarray, freq_weights: np.ndarray | None
) -> tuple[np.ndarray, np.ndarray, np.ndarray, int]:
    """Turn a genotype block into (Y, O, v) plus its undefined-locus count."""
    freqs = estimate_allele_frequencies(block, freq_weights)
    defined = ~np.isnan(freqs)

    used = ~np.isnan(block) & defined[:, None]
    Y = np.where(used, block - 1.0, 0.0)
    O = used.astype(np.float64)
    v = np.where(defined, 4.0 * freqs * (1.0 - freqs), 0.0)
    return Y, O, v, int(np.sum(~defined))


class _PartialSums:
    """Private accumulators owned by one worker at a time."""

    def __init__(self, n: int) -> None:
        self.A = jnp.zeros((n, n), dtype=jnp.float64)
        self.B = jnp.zeros((n, n), dtype=jnp.float64)
        self.M = jnp.zeros((n, n), dtype=jnp.float64)
        self.n_undefined = 0

    def add(self, block: np.ndarray, freq_weights: np.ndarray | None) -> None:
        Y, O, v, n_undefined = _prepare_block(block, freq_weights)
        self.A, self.B, self.M = _accumulate_block(
            self.A, self.B, self.M, jnp.asarray(Y), jnp.asarray(O), jnp.asarray(v)
        )
        self.A.block_until_ready()
        self.n_undefined += n_undefined


@dataclass
class KinshipResult:
    """Kinship matrix together with its estimation diagnostics.

    Attributes:
        kinship: Symmetric (n, n) kinship matrix; NaN marks undefined pairs.
        n_informative: Loci that contributed to each pair (n, n).
        baseline: Raw kinship value treated as zero, or None if uncalibrated.
        n_loci: Loci streamed from the source.
        n_loci_undefined: Loci skipped because their frequency was undefined.
    """

    kinship: np.ndarray
    n_informative: np.ndarray
    baseline: float | None
    n_loci: int
    n_loci_undefined: int

    @property
    def n_individuals(self) -> int:
        return self.kinship.shape[0]

    def undefined_pairs(self) -> np.ndarray:
        """Return (i, j) index pairs, i <= j, whose kinship is undefined."""
        i, j = np.nonzero(np.triu(np.isnan(self.kinship)))
        return np.column_stack([i, j])

    def insufficient_overlap(self, min_loci: int) -> np.ndarray:
        """Return (i, j) pairs, i <= j, sharing fewer than min_loci informative loci."""
        i, j = np.nonzero(np.triu(self.n_informative < min_loci))
        return np.column_stack([i, j])


def _mirror_upper(K: np.ndarray) -> np.ndarray:
    """Copy the upper triangle onto the lower one so K == K.T exactly."""
    iu = np.triu_indices(K.shape[0], k=1)
    K[iu[1], iu[0]] = K[iu]
    return K


def _accumulate_serial(blocks, n, freq_weights, cancel) -> _PartialSums:
    partial = _PartialSums(n)
    for block, _start, _end in blocks:
        if cancel is not None and cancel.is_set():
            raise EstimationCancelled("Kinship estimation cancelled between blocks")
        partial.add(block, freq_weights)
    return partial


def _accumulate_parallel(blocks, n, freq_weights, cancel, n_workers) -> _PartialSums:
    """Spread blocks over worker threads, each with private partial sums.

    Blocks are read in the calling thread (sources need not be thread-safe)
    and at most 2 * n_workers are in flight, bounding genotype memory.
    """
    pool: queue.Queue[_PartialSums] = queue.Queue()
    partials = [_PartialSums(n) for _ in range(n_workers)]
    for partial in partials:
        pool.put(partial)

    def work(block: np.ndarray) -> None:
        partial = pool.get()
        try:
            partial.add(block, freq_weights)
        finally:
            pool.put(partial)

    in_flight: deque[Future] = deque()
    # BLAS limits are process-wide, so they are set once around the pool
    with blas_threads(1), ThreadPoolExecutor(max_workers=n_workers) as executor:
        try:
            for block, _start, _end in blocks:
                if cancel is not None and cancel.is_set():
                    raise EstimationCancelled(
                        "Kinship estimation cancelled between blocks"
                    )
                if len(in_flight) >= 2 * n_workers:
                    in_flight.popleft().result()
                in_flight.append(executor.submit(work, block))
            while in_flight:
                in_flight.popleft().result()
        except BaseException:
            for future in in_flight:
                future.cancel()
            raise

    total = partials[0]
    for partial in partials[1:]:
        total.A = total.A + partial.A
        total.B = total.B + partial.B
        total.M = total.M + partial.M
        total.n_undefined += partial.n_undefined
    return total


def compute_kinship(
    genotypes,
    groups: np.ndarray | None = None,
    *,
    reference=None,
    baseline: BaselinePolicy = min_mean_baseline,
    config: KinshipConfig | None = None,
    cancel: threading.Event | None = None,
) -> KinshipResult:
    """Estimate a genome-wide kinship matrix by streaming blocks of loci.

    Args:
        genotypes: A GenotypeSource, or an array of shape (n_loci,
            n_individuals) with NaN for missing genotypes.
        groups: Optional per-individual group labels. When given, the
            baseline policy picks the raw kinship treated as zero; when
            absent the matrix is returned uncalibrated.
        reference: Label (or labels) in ``groups`` whose members alone are
            used to estimate allele frequencies. None uses everyone.
        baseline: Callable (raw_kinship, groups) -> baseline value.
        config: Block size, worker count, normalization and checks.
        cancel: Event checked between blocks; when set the estimation stops
            with EstimationCancelled.

    Returns:
        KinshipResult with the matrix and per-pair diagnostics.

    Raises:
        GroupingError: If groups has the wrong length, or reference is
            given without groups.
        EmptyGroupError: If no individual belongs to the reference group.
        EstimationCancelled: If ``cancel`` was set during accumulation.
        MemoryError: If config.check_memory and accumulators do not fit.
        ValueError: If the baseline leaves no positive scale (b >= 1).

    Example:
        >>> X = np.array([[0, 1, 2, 2], [1, 1, 0, 2], [2, 0, 1, 1]], dtype=float)
        >>> result = compute_kinship(X, groups=["a", "a", "b", "b"])
        >>> result.kinship.shape
        (4, 4)
    """
    ensure_jax_configured()
    config = config or KinshipConfig()
    source = as_genotype_source(genotypes)
    n = source.n_individuals

    if groups is not None:
        groups = np.asarray(groups)
        if groups.shape != (n,):
            raise GroupingError(
                f"Expected {n} group labels (one per individual), "
                f"got shape {groups.shape}"
            )
    freq_weights = reference_mask(groups, reference)

    n_workers = config.n_workers or get_thread_count()
    n_blocks = (source.n_loci + config.block_size - 1) // config.block_size
    n_workers = max(1, min(n_workers, n_blocks))

    logger.info("Computing Kinship Matrix")
    logger.info(f"  Individuals: {n:,}")
    logger.info(f"  Loci: {source.n_loci:,}")
    logger.info(f"  Blocks: {n_blocks} of {config.block_size:,} ({n_workers} workers)")

    if config.check_memory:
        est = estimate_kinship_memory(n, config.block_size, n_workers)
        check_memory_available(
            est.total_gb, operation=f"kinship accumulation ({n:,} individuals)"
        )

    start_time = time.perf_counter()
    blocks = source.iter_blocks(config.block_size)
    if config.show_progress:
        blocks = progress_iterator(blocks, total=n_blocks, desc="Kinship")

    if n_workers == 1:
        sums = _accumulate_serial(blocks, n, freq_weights, cancel)
    else:
        sums = _accumulate_parallel(blocks, n, freq_weights, cancel, n_workers)

    A = np.asarray(sums.A)
    B = np.asarray(sums.B)
    M = np.rint(np.asarray(sums.M)).astype(np.int64)

    if sums.n_undefined:
        logger.info(
            f"Skipped {sums.n_undefined:,} loci with undefined allele frequency"
        )

    undefined = (M == 0) | (B <= 0)
    with np.errstate(divide="ignore", invalid="ignore"):
        K = np.where(undefined, np.nan, A / np.where(undefined, 1.0, B))
    K = _mirror_upper(K)
    M = _mirror_upper(M)

    n_undefined_pairs = int(np.sum(np.triu(undefined)))
    if n_undefined_pairs:
        logger.warning(
            f"{n_undefined_pairs:,} kinship entries undefined "
            "(no shared informative locus)"
        )

    b = None
    if groups is not None:
        b = float(baseline(K, groups))
        K = K - b
        if config.normalize:
            if not b < 1.0:
                raise ValueError(
                    f"Baseline kinship {b:.6g} leaves no positive scale"
                )
            K = K / (1.0 - b)
        logger.info(f"  Baseline kinship: {b:.6g}")
    else:
        logger.info("  No groups given: baseline left uncalibrated")

    elapsed = time.perf_counter() - start_time
    logger.info(f"Kinship matrix computed in {elapsed:.2f}s")

    return KinshipResult(
        kinship=K,
        n_informative=M,
        baseline=b,
        n_loci=source.n_loci,
        n_loci_undefined=sums.n_undefined,
    )


def estimate_kinship(
    genotypes,
    groups: np.ndarray | None = None,
    *,
    reference=None,
    baseline: BaselinePolicy = min_mean_baseline,
    config: KinshipConfig | None = None,
    cancel: threading.Event | None = None,
) -> np.ndarray:
    """Estimate the kinship matrix and return only the matrix.

    Same arguments as compute_kinship(); use that function when the
    per-pair overlap diagnostics are needed.
    """
    return compute_kinship(
        genotypes,
        groups,
        reference=reference,
        baseline=baseline,
        config=config,
        cancel=cancel,
    ).kinship


def reorder_kinship(kinship: np.ndarray, order: np.ndarray) -> np.ndarray:
    """Permute rows and columns of a kinship matrix in tandem.

    Args:
        kinship: (n, n) kinship matrix.
        order: Permutation of range(n).

    Returns:
        New matrix with entry [a, b] = kinship[order[a], order[b]].

    Raises:
        ValueError: If order is not a permutation of range(n).
    """
    order = np.asarray(order)
    n = kinship.shape[0]
    if order.shape != (n,) or not np.array_equal(np.sort(order), np.arange(n)):
        raise ValueError(f"order must be a permutation of range({n})")
    return kinship[np.ix_(order, order)]

