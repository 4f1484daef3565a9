"""Simulated genotypes for structured populations.

Independent-subpopulation model: each locus has an ancestral allele
frequency p; every subpopulation k drifts away from it following the
Balding-Nichols model with its own inbreeding coefficient F_k,

    p_k ~ Beta(p (1 - F_k) / F_k, (1 - p)(1 - F_k) / F_k),

and individuals in k draw genotypes Binomial(2, p_k). Relative to the
ancestral population, individuals in k then have inbreeding F_k, kinship F_k
with other members of k, and zero kinship with everyone else. The FST of
the whole sample with equal-group weights is the mean of F_k.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


def draw_subpop_sizes(
    n_ind: int,
    k_subpops: int,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Draw random subpopulation sizes summing to n_ind.

    Proportions come from a flat Dirichlet, redrawn until the smallest size
    exceeds a third of the mean size; rounding error is then removed one
    individual at a time from (or added to) random subpopulations, never
    emptying one.

    Args:
        n_ind: Total number of individuals.
        k_subpops: Number of subpopulations.
        rng: Random generator (default: fresh unseeded generator).

    Returns:
        Integer array of k_subpops sizes summing to n_ind.

    Raises:
        ValueError: If n_ind < k_subpops or k_subpops < 1.
    """
    if k_subpops < 1 or n_ind < k_subpops:
        raise ValueError(
            f"Need 1 <= k_subpops <= n_ind, got k_subpops={k_subpops}, n_ind={n_ind}"
        )
    rng = rng or np.random.default_rng()

    while True:
        sizes = np.rint(n_ind * rng.dirichlet(np.ones(k_subpops))).astype(np.int64)
        if sizes.min() > n_ind / k_subpops / 3:
            break

    while (delta := n_ind - int(sizes.sum())) != 0:
        if delta > 0:
            sizes[rng.integers(k_subpops)] += 1
        else:
            # never empty a subpopulation
            sizes[rng.choice(np.flatnonzero(sizes > 1))] -= 1
    return sizes


def subpop_labels(sizes) -> np.ndarray:
    """Contiguous 1-based labels: sizes [2, 3] give [1, 1, 2, 2, 2]."""
    sizes = np.asarray(sizes, dtype=np.int64)
    return np.repeat(np.arange(1, sizes.size + 1), sizes)


@dataclass
class SimulatedPopulation:
    """Simulated genotypes with their ground truth.

    Attributes:
        genotypes: (n_loci, n_individuals) genotypes, NaN for missing.
        labels: Subpopulation label of each individual (1-based).
        inbreeding: True F_k per subpopulation.
        ancestral_freqs: Ancestral allele frequency per locus.
    """

    genotypes: np.ndarray
    labels: np.ndarray
    inbreeding: np.ndarray
    ancestral_freqs: np.ndarray

    def true_kinship(self) -> np.ndarray:
        """Kinship matrix implied by the model."""
        idx = self.labels - 1
        same = idx[:, None] == idx[None, :]
        f = self.inbreeding[idx]
        K = np.where(same, f[:, None], 0.0)
        np.fill_diagonal(K, (1.0 + f) / 2.0)
        return K

    def true_fst(self) -> float:
        """FST with equal weight per subpopulation: the mean of F_k."""
        return float(np.mean(self.inbreeding))


def simulate_independent_subpops(
    n_loci: int,
    sizes,
    inbreeding,
    rng: np.random.Generator | None = None,
    p_anc_range: tuple[float, float] = (0.01, 0.5),
    missing_rate: float = 0.0,
) -> SimulatedPopulation:
    """Simulate genotypes under the independent-subpopulations model.

    Args:
        n_loci: Number of loci.
        sizes: Individuals per subpopulation.
        inbreeding: F_k per subpopulation, each in (0, 1).
        rng: Random generator (default: fresh unseeded generator).
        p_anc_range: Uniform range of ancestral allele frequencies.
        missing_rate: Fraction of genotypes set to NaN at random.

    Returns:
        SimulatedPopulation with genotypes and ground truth.

    Example:
        >>> rng = np.random.default_rng(1)
        >>> sim = simulate_independent_subpops(1000, [10, 10], [0.1, 0.3], rng=rng)
        >>> sim.genotypes.shape
        (1000, 20)
    """
    sizes = np.asarray(sizes, dtype=np.int64)
    F = np.asarray(inbreeding, dtype=np.float64)
    if sizes.shape != F.shape:
        raise ValueError(
            f"sizes and inbreeding differ in length ({sizes.size} vs {F.size})"
        )
    if np.any((F <= 0) | (F >= 1)):
        raise ValueError("Inbreeding coefficients must lie in (0, 1)")
    if not 0.0 <= missing_rate < 1.0:
        raise ValueError(f"missing_rate must be in [0, 1), got {missing_rate}")
    rng = rng or np.random.default_rng()

    p_anc = rng.uniform(*p_anc_range, size=n_loci)

    # (n_loci, k) subpopulation frequencies
    nu = (1.0 - F) / F
    p_sub = rng.beta(p_anc[:, None] * nu, (1.0 - p_anc[:, None]) * nu)

    labels = subpop_labels(sizes)
    X = rng.binomial(2, p_sub[:, labels - 1]).astype(np.float64)

    if missing_rate > 0:
        X[rng.random(X.shape) < missing_rate] = np.nan

    return SimulatedPopulation(
        genotypes=X, labels=labels, inbreeding=F, ancestral_freqs=p_anc
    )
