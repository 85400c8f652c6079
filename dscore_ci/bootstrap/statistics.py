"""
Effect-size statistics computed from one participant's trials.

Both statistics take ``(values, flag)`` arrays whose last axis holds the
observations, and reduce over that axis. Passing a ``(R, n)`` matrix of
resampled rows evaluates all R replicates in a single call.
"""

from __future__ import annotations

from enum import Enum

import numpy as np
from scipy import stats


def _as_scalar(result: np.ndarray):
    return float(result) if result.ndim == 0 else result


def d_score(rt, incongruent):
    """
    Standardized mean RT difference between block types.

    (mean(incongruent) - mean(congruent)) / sd(all trials), sd with ddof=1.
    Undefined (NaN) when either block is empty or the pooled SD is zero.
    """
    rt = np.asarray(rt, dtype=float)
    inc = np.asarray(incongruent, dtype=bool)
    n = rt.shape[-1]
    if n < 2:
        return _as_scalar(np.full(rt.shape[:-1], np.nan))

    n_inc = inc.sum(axis=-1)
    n_con = n - n_inc
    with np.errstate(divide="ignore", invalid="ignore"):
        mean_inc = np.where(inc, rt, 0.0).sum(axis=-1) / n_inc
        mean_con = np.where(inc, 0.0, rt).sum(axis=-1) / n_con
        sd = rt.std(axis=-1, ddof=1)
        d = (mean_inc - mean_con) / sd
    d = np.where((n_inc > 0) & (n_con > 0) & (sd > 0), d, np.nan)
    return _as_scalar(d)


def pi_score(values, is_x):
    """
    Probability of superiority of x over y, scaled to [0, 1].

    PI = (sum of x ranks in x+y / nx - (nx + 1) / 2) / ny, with average ranks
    for ties. This is Mann-Whitney U / (nx * ny); 0.5 means no difference.
    Missing values must be removed by the caller.
    """
    values = np.asarray(values, dtype=float)
    x = np.asarray(is_x, dtype=bool)
    n = values.shape[-1]
    if n < 2:
        return _as_scalar(np.full(values.shape[:-1], np.nan))

    ranks = stats.rankdata(values, axis=-1)
    nx = x.sum(axis=-1)
    ny = n - nx
    with np.errstate(divide="ignore", invalid="ignore"):
        rank_sum = np.where(x, ranks, 0.0).sum(axis=-1)
        pi = (rank_sum / nx - (nx + 1) / 2) / ny
    pi = np.where((nx > 0) & (ny > 0), pi, np.nan)
    return _as_scalar(pi)


class StatisticKind(str, Enum):
    """Supported trial-level effect sizes."""

    D = "d"
    PI = "pi"

    @property
    def function(self):
        return d_score if self is StatisticKind.D else pi_score

    @property
    def reference(self) -> float:
        """Value meaning 'no effect'; intervals excluding it are significant."""
        return 0.0 if self is StatisticKind.D else 0.5

    @classmethod
    def parse(cls, value) -> "StatisticKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = [k.value for k in cls]
            raise ValueError(f"Unknown statistic: {value}. Valid statistics: {valid}") from None
