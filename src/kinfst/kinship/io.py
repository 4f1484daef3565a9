"""Kinship matrix I/O as tab-separated text."""

from pathlib import Path

import numpy as np


def read_kinship_matrix(path: Path, n_individuals: int | None = None) -> np.ndarray:
    """Read a kinship matrix written by write_kinship_matrix().

    Args:
        path: Path to the kinship matrix file.
        n_individuals: Expected dimension (optional validation).

    Returns:
        Kinship matrix as numpy array (n x n); undefined entries are NaN.

    Raises:
        ValueError: If matrix is not square, not symmetric, or dimension mismatch
    """
    K = np.loadtxt(path, dtype=np.float64, ndmin=2)

    if K.shape[0] != K.shape[1]:
        raise ValueError(f"Kinship matrix must be square, got shape {K.shape}")

    if n_individuals is not None and K.shape[0] != n_individuals:
        raise ValueError(
            f"Kinship matrix dimension {K.shape[0]} does not match "
            f"expected n_individuals={n_individuals}"
        )

    if not np.allclose(K, K.T, rtol=1e-10, equal_nan=True):
        raise ValueError("Kinship matrix is not symmetric")

    return K


def write_kinship_matrix(K: np.ndarray, path: Path) -> None:
    """Write a kinship matrix as tab-separated text.

    One row per line, 10 significant digits, no header, undefined entries
    written as ``nan``.

    Args:
        K: Kinship matrix (n x n).
        path: Output file path.

    Example:
        >>> write_kinship_matrix(K, Path("output/result.kinship.txt"))
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        for row in K:
            f.write("\t".join(f"{value:.10g}" for value in row) + "\n")
