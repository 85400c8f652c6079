"""Tests for the BCa interval estimator."""

import numpy as np
import pytest
from scipy.stats import norm

from dscore_ci.bootstrap import (
    BcaDegeneracyError,
    BootstrapDistribution,
    DegenerateSampleError,
    ExtremeQuantileError,
    InsufficientReplicatesError,
    acceleration,
    adjusted_percentiles,
    bca_interval,
    bias_correction,
    bootstrap_bca,
)


def _mean(values):
    return np.asarray(values, dtype=float).mean(axis=-1)


class TestBiasCorrection:

    def test_centered_distribution(self):
        t = np.array([1.0, 2.0, 3.0, 4.0])
        assert bias_correction(t, 2.5) == pytest.approx(0.0)

    def test_ties_count_half(self):
        t = np.array([1.0, 2.0, 2.0, 3.0])
        # (1 + 0.5 * 2) / 4 = 0.5
        assert bias_correction(t, 2.0) == pytest.approx(0.0)

    def test_known_share(self):
        t = np.arange(10, dtype=float)
        assert bias_correction(t, 2.5) == pytest.approx(norm.ppf(0.3))

    def test_all_replicates_below_is_degenerate(self):
        with pytest.raises(BcaDegeneracyError):
            bias_correction(np.array([1.0, 2.0, 3.0]), 10.0)


class TestAcceleration:

    def test_symmetric_jackknife(self):
        assert acceleration(np.array([-1.0, 0.0, 1.0])) == pytest.approx(0.0)

    def test_matches_formula(self):
        theta = np.array([0.1, 0.4, 0.2, 1.3, 0.5])
        diff = theta.mean() - theta
        expected = np.sum(diff ** 3) / (6 * np.sum(diff ** 2) ** 1.5)
        assert acceleration(theta) == pytest.approx(expected)

    def test_constant_jackknife(self):
        assert acceleration(np.full(5, 0.3)) == 0.0

    def test_non_finite_values_dropped(self):
        theta = np.array([0.1, np.nan, 0.4, 0.2])
        assert acceleration(theta) == pytest.approx(acceleration(np.array([0.1, 0.4, 0.2])))

    def test_too_few_values(self):
        with pytest.raises(BcaDegeneracyError):
            acceleration(np.array([np.nan, 1.0]))


class TestAdjustedPercentiles:

    def test_no_correction_returns_alphas(self):
        out = adjusted_percentiles(0.0, 0.0, [0.025, 0.975])
        np.testing.assert_allclose(out, [0.025, 0.975])

    def test_bias_shifts_both_tails(self):
        low, high = adjusted_percentiles(0.2, 0.0, [0.025, 0.975])
        assert low > 0.025
        assert high > 0.975

    def test_undefined_percentile_raises(self):
        # a * (z0 + z_alpha) >= 1 for the upper tail
        with pytest.raises(BcaDegeneracyError):
            adjusted_percentiles(0.0, 0.6, [0.025, 0.975])


class TestBcaInterval:

    def test_normal_mean_close_to_theory(self):
        rng = np.random.default_rng(11)
        data = rng.normal(10.0, 2.0, size=60)
        dist, interval = bootstrap_bca((data,), _mean, 4000, np.random.default_rng(12))
        se = data.std(ddof=1) / np.sqrt(len(data))
        assert interval.lower == pytest.approx(data.mean() - 1.96 * se, abs=0.5 * se)
        assert interval.upper == pytest.approx(data.mean() + 1.96 * se, abs=0.5 * se)
        assert interval.lower <= dist.t0 <= interval.upper

    def test_constant_distribution(self):
        dist = BootstrapDistribution(t0=0.0, t=np.zeros(100))
        interval = bca_interval(dist, np.zeros(10))
        assert interval.lower == 0.0
        assert interval.upper == 0.0

    def test_too_few_replicates_for_tail(self):
        t = np.linspace(-1, 1, 10)
        dist = BootstrapDistribution(t0=0.05, t=t)
        with pytest.raises(ExtremeQuantileError):
            bca_interval(dist, np.zeros(5), confidence=0.99)

    def test_nan_replicates_excluded(self):
        t = np.concatenate([np.linspace(-1, 1, 1000), [np.nan] * 10])
        dist = BootstrapDistribution(t0=0.0, t=t)
        interval = bca_interval(dist, np.array([-0.1, 0.0, 0.1]))
        assert np.isfinite(interval.lower)
        assert np.isfinite(interval.upper)
        assert interval.lower == pytest.approx(np.quantile(np.linspace(-1, 1, 1000), 0.025))


class TestBootstrapBca:

    def test_undefined_observed_statistic(self):
        def always_nan(values):
            return np.full(np.asarray(values).shape[:-1], np.nan)

        with pytest.raises(DegenerateSampleError):
            bootstrap_bca((np.arange(5.0),), always_nan, 50, np.random.default_rng(0))

    def test_empty_sample(self):
        with pytest.raises(DegenerateSampleError):
            bootstrap_bca((np.array([]),), np.mean, 50, np.random.default_rng(0))

    def test_mostly_undefined_replicates(self):
        data = np.arange(10.0)

        def fragile(values):
            values = np.asarray(values, dtype=float)
            out = values.mean(axis=-1)
            # undefined unless the last observation is drawn
            return np.where((values == 9.0).any(axis=-1), out, np.nan)

        with pytest.raises(InsufficientReplicatesError):
            bootstrap_bca((data,), fragile, 500, np.random.default_rng(0), min_valid_fraction=0.9)
