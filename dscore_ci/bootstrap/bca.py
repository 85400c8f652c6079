"""
Bias-corrected and accelerated (BCa) bootstrap intervals.

Follows Efron (1987): bias correction z0 from the share of replicates below
the observed statistic, acceleration from jackknife skewness, and bounds read
off the empirical distribution at the adjusted percentiles (type-7 quantile).

Numerical problems are raised, never clamped:
    - a * (z0 + z_alpha) >= 1, or non-finite z0 -> BcaDegeneracyError
    - adjusted percentile outside [1/R, 1 - 1/R] -> ExtremeQuantileError
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np
from scipy.stats import norm

from .exceptions import (
    BcaDegeneracyError,
    DegenerateSampleError,
    ExtremeQuantileError,
    InsufficientReplicatesError,
)
from .resampling import BootstrapDistribution, bootstrap, jackknife


@dataclass(frozen=True)
class BcaInterval:
    lower: float
    upper: float
    z0: float
    acceleration: float
    alpha_lower: float
    alpha_upper: float


def bias_correction(t: np.ndarray, t0: float) -> float:
    """z0 = Phi^-1((#{t < t0} + 0.5 * #{t == t0}) / R)."""
    t = np.asarray(t, dtype=float)
    if len(t) == 0:
        raise BcaDegeneracyError("No bootstrap replicates to correct bias from.")
    share = (np.count_nonzero(t < t0) + 0.5 * np.count_nonzero(t == t0)) / len(t)
    z0 = float(norm.ppf(share))
    if not np.isfinite(z0):
        raise BcaDegeneracyError(
            f"Bias correction is infinite: {share:.0%} of replicates fall below the observed statistic."
        )
    return z0


def acceleration(jackknife_values: np.ndarray) -> float:
    """
    a = sum((mean - theta_i)^3) / (6 * sum((mean - theta_i)^2)^1.5)

    Non-finite leave-one-out values are dropped. A constant jackknife carries
    no skewness information and yields a = 0.
    """
    theta = np.asarray(jackknife_values, dtype=float)
    theta = theta[np.isfinite(theta)]
    if len(theta) < 2:
        raise BcaDegeneracyError("Fewer than two finite jackknife values; acceleration undefined.")
    diff = theta.mean() - theta
    denom = 6.0 * np.sum(diff ** 2) ** 1.5
    if denom == 0:
        return 0.0
    return float(np.sum(diff ** 3) / denom)


def adjusted_percentiles(z0: float, a: float, alphas) -> np.ndarray:
    """Phi(z0 + (z0 + z_alpha) / (1 - a * (z0 + z_alpha))) for each alpha."""
    z = z0 + norm.ppf(np.asarray(alphas, dtype=float))
    denom = 1.0 - a * z
    if np.any(denom <= 0):
        raise BcaDegeneracyError(
            f"Acceleration {a:.4f} with bias {z0:.4f} leaves the adjusted percentile undefined."
        )
    return norm.cdf(z0 + z / denom)


def bca_interval(
    distribution: BootstrapDistribution,
    jackknife_values: np.ndarray,
    confidence: float = 0.95,
) -> BcaInterval:
    """BCa interval from the finite replicates of ``distribution``."""
    t = distribution.finite
    n_boot = len(t)
    z0 = bias_correction(t, distribution.t0)
    a = acceleration(jackknife_values)

    tail = (1.0 - confidence) / 2.0
    alpha_lower, alpha_upper = adjusted_percentiles(z0, a, [tail, 1.0 - tail])
    lo_limit, hi_limit = 1.0 / n_boot, 1.0 - 1.0 / n_boot
    for alpha in (alpha_lower, alpha_upper):
        if not lo_limit <= alpha <= hi_limit:
            raise ExtremeQuantileError(
                f"Adjusted percentile {alpha:.5f} outside [{lo_limit:.5f}, {hi_limit:.5f}] for R={n_boot}."
            )

    lower, upper = np.quantile(t, [alpha_lower, alpha_upper], method="linear")
    return BcaInterval(
        lower=float(lower),
        upper=float(upper),
        z0=z0,
        acceleration=a,
        alpha_lower=float(alpha_lower),
        alpha_upper=float(alpha_upper),
    )


def bootstrap_bca(
    data: Sequence[np.ndarray],
    statistic: Callable[..., np.ndarray],
    n_boot: int,
    rng: np.random.Generator,
    confidence: float = 0.95,
    min_valid_fraction: float = 0.9,
) -> tuple[BootstrapDistribution, BcaInterval]:
    """
    Bootstrap ``statistic`` on ``data`` and return its distribution and BCa interval.

    Raises DegenerateSampleError when the sample is empty or the observed
    statistic is undefined, and InsufficientReplicatesError when fewer than
    ``min_valid_fraction`` of the replicates are finite. Undefined replicates
    are otherwise dropped.
    """
    if len(data) > 0 and len(data[0]) == 0:
        raise DegenerateSampleError("Sample is empty.")
    distribution = bootstrap(data, statistic, n_boot, rng)
    if not np.isfinite(distribution.t0):
        raise DegenerateSampleError("Statistic is undefined on the observed sample.")
    if distribution.valid_fraction < min_valid_fraction:
        raise InsufficientReplicatesError(
            f"Only {distribution.n_valid}/{distribution.n_boot} replicates are finite "
            f"(minimum share {min_valid_fraction:.0%})."
        )
    interval = bca_interval(distribution, jackknife(data, statistic), confidence)
    return distribution, interval
