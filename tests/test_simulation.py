"""Tests for the structured-population simulator and end-to-end recovery.

The tier2 test simulates independent subpopulations with known inbreeding
coefficients and checks that kinship estimation followed by FST with
equal-group weights recovers their mean.
"""

import numpy as np
import pytest

from kinfst.kinship import estimate_kinship
from kinfst.simulate import (
    draw_subpop_sizes,
    simulate_independent_subpops,
    subpop_labels,
)
from kinfst.stats import balance_weights, estimate_fst, inbreeding


@pytest.mark.tier0
class TestDrawSubpopSizes:
    """Random subpopulation sizes."""

    @pytest.mark.parametrize("n_ind,k", [(100, 10), (50, 3), (7, 7), (1000, 2)])
    def test_sizes(self, rng, n_ind, k):
        sizes = draw_subpop_sizes(n_ind, k, rng=rng)
        assert sizes.shape == (k,)
        assert sizes.sum() == n_ind
        assert sizes.min() >= 1

    def test_no_tiny_subpops(self, rng):
        for _ in range(20):
            sizes = draw_subpop_sizes(300, 5, rng=rng)
            # 300 / 5 / 3 = 20 before the final +-1 adjustment
            assert sizes.min() >= 20 - 5

    def test_too_many_subpops(self, rng):
        with pytest.raises(ValueError):
            draw_subpop_sizes(3, 4, rng=rng)

    def test_reproducible(self):
        a = draw_subpop_sizes(100, 4, rng=np.random.default_rng(5))
        b = draw_subpop_sizes(100, 4, rng=np.random.default_rng(5))
        np.testing.assert_array_equal(a, b)


@pytest.mark.tier0
class TestSimulateIndependentSubpops:
    """Genotype simulation under the Balding-Nichols model."""

    def test_labels(self):
        assert subpop_labels([2, 3]).tolist() == [1, 1, 2, 2, 2]

    def test_shapes_and_values(self, structured_population):
        sim = structured_population
        assert sim.genotypes.shape == (400, 24)
        assert set(np.unique(sim.genotypes)) <= {0.0, 1.0, 2.0}
        assert sim.labels.tolist() == [1] * 8 + [2] * 8 + [3] * 8
        assert np.all((sim.ancestral_freqs >= 0.01) & (sim.ancestral_freqs <= 0.5))

    def test_missing_rate(self, rng):
        sim = simulate_independent_subpops(
            2000, [10, 10], [0.1, 0.2], rng=rng, missing_rate=0.1
        )
        assert np.mean(np.isnan(sim.genotypes)) == pytest.approx(0.1, abs=0.01)

    def test_true_kinship(self):
        sim = simulate_independent_subpops(
            10, [2, 1], [0.1, 0.3], rng=np.random.default_rng(0)
        )
        K = sim.true_kinship()
        np.testing.assert_allclose(np.diag(K), [0.55, 0.55, 0.65])
        assert K[0, 1] == pytest.approx(0.1)
        assert K[0, 2] == 0.0
        assert sim.true_fst() == pytest.approx(0.2)
        np.testing.assert_allclose(inbreeding(K), [0.1, 0.1, 0.3])

    @pytest.mark.parametrize(
        "sizes,fst",
        [([5, 5], [0.1]), ([5], [0.0]), ([5], [1.0])],
    )
    def test_invalid_parameters(self, rng, sizes, fst):
        with pytest.raises(ValueError):
            simulate_independent_subpops(10, sizes, fst, rng=rng)

    def test_invalid_missing_rate(self, rng):
        with pytest.raises(ValueError, match="missing_rate"):
            simulate_independent_subpops(10, [5], [0.1], rng=rng, missing_rate=1.0)


@pytest.mark.tier2
@pytest.mark.slow
class TestRecovery:
    """Estimated FST converges to the mean inbreeding of the subpopulations."""

    def test_fst_recovers_mean_inbreeding(self):
        rng = np.random.default_rng(42)
        inbr = np.linspace(0.01, 0.15, 10)
        sizes = draw_subpop_sizes(100, 10, rng=rng)
        sim = simulate_independent_subpops(30_000, sizes, inbr, rng=rng)

        K = estimate_kinship(sim.genotypes, sim.labels)
        fst = estimate_fst(K, balance_weights(sim.labels))

        assert fst == pytest.approx(sim.true_fst(), abs=0.02)

    def test_recovery_with_missing_data(self):
        rng = np.random.default_rng(7)
        inbr = np.linspace(0.01, 0.15, 10)
        sim = simulate_independent_subpops(
            30_000, [10] * 10, inbr, rng=rng, missing_rate=0.05
        )

        K = estimate_kinship(sim.genotypes, sim.labels)
        fst = estimate_fst(K, balance_weights(sim.labels))

        assert fst == pytest.approx(sim.true_fst(), abs=0.02)

    def test_within_group_kinship(self):
        rng = np.random.default_rng(3)
        inbr = np.array([0.05, 0.2])
        sim = simulate_independent_subpops(20_000, [15, 15], inbr, rng=rng)

        K = estimate_kinship(sim.genotypes, sim.labels)
        first = sim.labels == 1
        second = sim.labels == 2
        off = ~np.eye(30, dtype=bool)

        assert K[np.ix_(first, first)][off[:15, :15]].mean() == pytest.approx(
            0.05, abs=0.02
        )
        assert K[np.ix_(second, second)][off[:15, :15]].mean() == pytest.approx(
            0.2, abs=0.03
        )
