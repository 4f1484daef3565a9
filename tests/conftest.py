"""Pytest fixtures for the kinfst test suite."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from bed_reader import to_bed

from kinfst.core import configure_jax
from kinfst.simulate import simulate_independent_subpops

# =============================================================================
# Test Tier System
# =============================================================================
#
# tier0 - Fast Unit Tests (<5s each)
#   - Small hand-built or simulated matrices, no large allocations
#   - Run: pytest -m tier0
#
# tier2 - Simulation and Scale Tests
#   - Tens of thousands of loci, convergence to ground truth
#   - Run manually or in nightly CI
#   - Run: pytest -m tier2
#
# The @pytest.mark.slow marker is an alias for tier2.
#
# Quick reference:
#   pytest -m tier0           # Fast tests only
#   pytest -m "not tier2"     # Exclude simulation tests
#   pytest                    # All tests
# =============================================================================


@pytest.fixture(autouse=True)
def setup_jax():
    """Configure JAX with 64-bit precision before each test."""
    configure_jax(enable_x64=True)


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20240131)


@pytest.fixture
def structured_population(rng):
    """Three subpopulations of 8 individuals over 400 loci."""
    return simulate_independent_subpops(
        n_loci=400, sizes=[8, 8, 8], inbreeding=[0.05, 0.1, 0.2], rng=rng
    )


@pytest.fixture
def structured_genotypes(structured_population) -> np.ndarray:
    """(n_loci, n_individuals) genotypes of structured_population."""
    return structured_population.genotypes


@pytest.fixture
def structured_labels(structured_population) -> np.ndarray:
    """String labels "pop1".."pop3" for structured_population."""
    return np.asarray([f"pop{k}" for k in structured_population.labels])


@pytest.fixture
def write_bfile(tmp_path: Path):
    """Factory writing a (n_loci, n_individuals) matrix as PLINK files.

    Returns the bfile prefix. Family IDs are the given labels, or "0" when
    labels is None.
    """

    def _write(genotypes: np.ndarray, labels=None, name: str = "test") -> Path:
        n_loci, n_ind = genotypes.shape
        properties = {
            "iid": [f"ind{i}" for i in range(n_ind)],
            "sid": [f"snp{j}" for j in range(n_loci)],
            "chromosome": ["1"] * n_loci,
        }
        if labels is not None:
            properties["fid"] = [str(label) for label in labels]
        bfile = tmp_path / name
        to_bed(Path(f"{bfile}.bed"), genotypes.T, properties=properties)
        return bfile

    return _write


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Create temporary output directory for test results."""
    out = tmp_path / "output"
    out.mkdir()
    return out
