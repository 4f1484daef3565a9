"""Genotype sources consumed by the kinship estimator.

A genotype source exposes a fixed L x N matrix (loci x individuals) of
reference-allele counts 0, 1, 2 with NaN for missing values. The estimator
only ever sees it one block of loci at a time, so sources backed by disk
never need to hold the full matrix in memory.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class GenotypeSource(Protocol):
    """Read-only, block-wise access to a loci x individuals genotype matrix."""

    @property
    def n_loci(self) -> int: ...

    @property
    def n_individuals(self) -> int: ...

    @property
    def labels(self) -> np.ndarray | None:
        """Per-individual group labels, or None if the source has none."""
        ...

    def iter_blocks(
        self, block_size: int = 10_000
    ) -> Iterator[tuple[np.ndarray, int, int]]:
        """Yield (block, start, end) with block of shape (end - start, n_individuals)."""
        ...


class ArrayGenotypes:
    """Genotype source over an in-memory (n_loci, n_individuals) array.

    Args:
        genotypes: Array of shape (n_loci, n_individuals) with values in
            {0, 1, 2} and NaN for missing entries. A float64 array is
            wrapped without copying, so it must not be modified while the
            source is in use.
        labels: Optional per-individual group labels.

    Raises:
        ValueError: If the array is not 2-D, contains values other than
            0, 1, 2 or NaN, or labels have the wrong length.

    Example:
        >>> X = np.array([[0, 1, 2], [1, np.nan, 1]])
        >>> source = ArrayGenotypes(X, labels=["a", "a", "b"])
        >>> source.n_loci, source.n_individuals
        (2, 3)
    """

    def __init__(
        self,
        genotypes: np.ndarray,
        labels: Sequence | np.ndarray | None = None,
    ) -> None:
        # read-only view; copies only when the dtype must change
        X = np.asarray(genotypes, dtype=np.float64).view()
        if X.ndim != 2:
            raise ValueError(f"Genotype matrix must be 2-D, got shape {X.shape}")

        observed = X[~np.isnan(X)]
        if not np.all(np.isin(observed, (0.0, 1.0, 2.0))):
            bad = np.unique(observed[~np.isin(observed, (0.0, 1.0, 2.0))])
            raise ValueError(
                f"Genotypes must be 0, 1, 2 or NaN; found {bad[:5].tolist()}"
            )

        if labels is not None:
            labels = np.asarray(labels)
            if labels.shape != (X.shape[1],):
                raise ValueError(
                    f"Expected {X.shape[1]} labels (one per individual), "
                    f"got shape {labels.shape}"
                )

        self._genotypes = X
        self._genotypes.setflags(write=False)
        self._labels = labels

    @property
    def n_loci(self) -> int:
        return self._genotypes.shape[0]

    @property
    def n_individuals(self) -> int:
        return self._genotypes.shape[1]

    @property
    def labels(self) -> np.ndarray | None:
        return self._labels

    def iter_blocks(
        self, block_size: int = 10_000
    ) -> Iterator[tuple[np.ndarray, int, int]]:
        for start in range(0, self.n_loci, block_size):
            end = min(start + block_size, self.n_loci)
            yield self._genotypes[start:end], start, end


def as_genotype_source(genotypes, labels=None) -> GenotypeSource:
    """Wrap a bare array as a source; pass sources through unchanged."""
    if isinstance(genotypes, GenotypeSource):
        if labels is not None:
            raise ValueError("labels can only be given with a bare genotype array")
        return genotypes
    return ArrayGenotypes(genotypes, labels=labels)
