"""
Ordinary nonparametric bootstrap and jackknife replicates.

Samples are passed as a sequence of equally long column arrays. Row indices
are resampled, never values, so paired columns (e.g. RT and block label)
stay aligned within a replicate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np


@dataclass(frozen=True)
class BootstrapDistribution:
    """Observed statistic and its R bootstrap replicates (NaN kept in place)."""
    t0: float
    t: np.ndarray

    @property
    def n_boot(self) -> int:
        return int(len(self.t))

    @property
    def finite(self) -> np.ndarray:
        return self.t[np.isfinite(self.t)]

    @property
    def n_valid(self) -> int:
        return int(np.isfinite(self.t).sum())

    @property
    def valid_fraction(self) -> float:
        return self.n_valid / self.n_boot if self.n_boot else 0.0


def _as_columns(data: Sequence[np.ndarray]) -> list[np.ndarray]:
    columns = [np.asarray(col) for col in data]
    if not columns:
        raise ValueError("At least one data column is required.")
    n = len(columns[0])
    if any(len(col) != n for col in columns):
        raise ValueError("All data columns must have the same length.")
    return columns


def draw_indices(n: int, n_boot: int, rng: np.random.Generator) -> np.ndarray:
    """Uniform row indices with replacement, one row of n per replicate."""
    if n < 1:
        raise ValueError("Cannot resample an empty sample.")
    return rng.integers(0, n, size=(n_boot, n))


def leave_one_out_indices(n: int) -> np.ndarray:
    """(n, n-1) matrix; row i holds every index except i."""
    keep = ~np.eye(n, dtype=bool)
    return np.broadcast_to(np.arange(n), (n, n))[keep].reshape(n, n - 1)


def bootstrap(
    data: Sequence[np.ndarray],
    statistic: Callable[..., np.ndarray],
    n_boot: int,
    rng: np.random.Generator,
) -> BootstrapDistribution:
    """
    Evaluate ``statistic`` on the original sample and on ``n_boot`` resamples.

    ``statistic`` must accept the columns with a leading replicate axis and
    return one value per replicate.
    """
    columns = _as_columns(data)
    n = len(columns[0])
    t0 = float(statistic(*columns))
    idx = draw_indices(n, n_boot, rng)
    t = np.asarray(statistic(*(col[idx] for col in columns)), dtype=float).reshape(n_boot)
    return BootstrapDistribution(t0=t0, t=t)


def jackknife(
    data: Sequence[np.ndarray],
    statistic: Callable[..., np.ndarray],
) -> np.ndarray:
    """Leave-one-out values of ``statistic``, one per observation."""
    columns = _as_columns(data)
    n = len(columns[0])
    if n < 2:
        return np.full(n, np.nan)
    idx = leave_one_out_indices(n)
    return np.asarray(statistic(*(col[idx] for col in columns)), dtype=float).reshape(n)
