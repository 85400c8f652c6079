"""
Discriminability of participant scores within a domain.

The statistic is the proportion of participant pairs whose scores differ by
more than ``critical_z * sqrt(se_i^2 + se_j^2)``. It is itself bootstrapped
over participants (rows of the D-score table) and given a BCa interval.

Pairs are evaluated on the upper triangle only: the criterion is symmetric,
so the proportion over ordered pairs (i != j) equals the proportion over
unordered ones, at half the memory. Replicates are processed in chunks so
that no temporary holds more than ``max_elements`` pair values.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from ..bootstrap import EstimationError, bootstrap_bca
from ..config import BootstrapConfig
from ..preprocessing.constants import (
    DOMAIN_COL,
    TRIAL_TYPE_COL,
    DEFAULT_N_BOOT,
    DEFAULT_CONFIDENCE,
    DEFAULT_CRITICAL_Z,
    DEFAULT_MIN_VALID_FRACTION,
)
from .intervals import IntervalEstimate, failure_report, results_to_frame
from .parallel import run_units, spawn_streams

MAX_PAIR_ELEMENTS = 2 ** 22


def standard_errors_from_ci(ci_lower, ci_upper, critical_z: float = DEFAULT_CRITICAL_Z) -> np.ndarray:
    """SE implied by a symmetric interval: (upper - lower) / (2 * z)."""
    lower = np.asarray(ci_lower, dtype=float)
    upper = np.asarray(ci_upper, dtype=float)
    return (upper - lower) / (critical_z * 2)


def discriminability_proportion(
    estimate,
    se,
    critical_z: float = DEFAULT_CRITICAL_Z,
    max_elements: int = MAX_PAIR_ELEMENTS,
):
    """
    Share of pairs (i != j) with |e_i - e_j| > z * sqrt(se_i^2 + se_j^2).

    Accepts 1-D inputs (one sample) or 2-D inputs with replicates on the
    first axis. NaN when fewer than two rows are given.
    """
    est = np.asarray(estimate, dtype=float)
    var = np.asarray(se, dtype=float) ** 2
    single = est.ndim == 1
    est = np.atleast_2d(est)
    var = np.atleast_2d(var)

    n_rows, n = est.shape
    if n < 2:
        out = np.full(n_rows, np.nan)
        return float(out[0]) if single else out

    left, right = np.triu_indices(n, k=1)
    n_pairs = len(left)
    crit_sq = critical_z ** 2
    step = max(1, max_elements // n_pairs)

    out = np.empty(n_rows, dtype=float)
    for start in range(0, n_rows, step):
        rows = slice(start, start + step)
        e = est[rows]
        v = var[rows]
        diff = e[:, left] - e[:, right]
        threshold = crit_sq * (v[:, left] + v[:, right])
        out[rows] = np.count_nonzero(diff * diff > threshold, axis=1) / n_pairs

    return float(out[0]) if single else out


def _domain_columns(domain_table: pd.DataFrame, critical_z: float) -> tuple[np.ndarray, np.ndarray]:
    if "estimate" not in domain_table.columns:
        raise KeyError("Domain table needs an 'estimate' column.")
    if "se" in domain_table.columns:
        se = domain_table["se"].to_numpy(dtype=float)
    elif {"ci_lower", "ci_upper"} <= set(domain_table.columns):
        se = standard_errors_from_ci(domain_table["ci_lower"], domain_table["ci_upper"], critical_z)
    else:
        raise KeyError("Domain table needs an 'se' column or 'ci_lower'/'ci_upper' columns.")
    estimate = domain_table["estimate"].to_numpy(dtype=float)
    keep = np.isfinite(estimate) & np.isfinite(se)
    return estimate[keep], se[keep]


def _estimate_domain(
    estimate: np.ndarray,
    se: np.ndarray,
    n_boot: int,
    confidence: float,
    rng: np.random.Generator,
    critical_z: float,
    min_valid_fraction: float,
    keys: Optional[Dict[str, Any]] = None,
) -> IntervalEstimate:
    statistic = partial(discriminability_proportion, critical_z=critical_z)
    try:
        distribution, interval = bootstrap_bca(
            (estimate, se),
            statistic,
            n_boot,
            rng,
            confidence=confidence,
            min_valid_fraction=min_valid_fraction,
        )
    except EstimationError as exc:
        return IntervalEstimate.failed(exc.reason, n_obs=len(estimate), keys=keys)

    return IntervalEstimate(
        estimate=distribution.t0,
        ci_lower=interval.lower,
        ci_upper=interval.upper,
        reference=0.0,
        n_obs=len(estimate),
        n_valid_replicates=distribution.n_valid,
        keys=dict(keys or {}),
    ).reordered()


def estimate_discriminability(
    domain_table: pd.DataFrame,
    replicates: int = DEFAULT_N_BOOT,
    confidence: float = DEFAULT_CONFIDENCE,
    rng: Optional[np.random.Generator] = None,
    critical_z: float = DEFAULT_CRITICAL_Z,
    min_valid_fraction: float = DEFAULT_MIN_VALID_FRACTION,
    keys: Optional[Dict[str, Any]] = None,
) -> IntervalEstimate:
    """
    Discriminability proportion and BCa interval for one domain.

    ``domain_table`` holds one row per participant with ``estimate`` and
    either ``se`` or the ``ci_lower``/``ci_upper`` of a previous D-score pass.
    Rows with missing values are ignored.
    """
    if rng is None:
        rng = np.random.default_rng()
    estimate, se = _domain_columns(domain_table, critical_z)
    return _estimate_domain(estimate, se, replicates, confidence, rng, critical_z, min_valid_fraction, keys)


@dataclass(frozen=True)
class DiscriminabilityTask:
    keys: Dict[str, Any]
    estimate: np.ndarray
    se: np.ndarray
    n_boot: int
    confidence: float
    critical_z: float
    min_valid_fraction: float
    seed: np.random.SeedSequence


def run_discriminability_task(task: DiscriminabilityTask) -> IntervalEstimate:
    try:
        return _estimate_domain(
            task.estimate,
            task.se,
            task.n_boot,
            task.confidence,
            np.random.default_rng(task.seed),
            task.critical_z,
            task.min_valid_fraction,
            task.keys,
        )
    except Exception as exc:
        print(f"[WARN] {task.keys} failed: {exc}")
        return IntervalEstimate.failed(
            f"unexpected_error:{type(exc).__name__}",
            n_obs=len(task.estimate),
            keys=task.keys,
        )


def estimate_discriminability_by_domain(
    scores: pd.DataFrame,
    config: Optional[BootstrapConfig] = None,
    group_cols: Optional[List[str]] = None,
    verbose: bool = False,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    One discriminability estimate per domain from a D-score result table.

    Failed D-score rows are excluded before resampling; a domain left with
    no usable rows gets a failed row. Returns ``(results, failures)`` like
    ``estimate_effects``.
    """
    config = (config or BootstrapConfig()).validate()
    if group_cols is None:
        group_cols = [DOMAIN_COL]
        if TRIAL_TYPE_COL in scores.columns and scores[TRIAL_TYPE_COL].notna().any():
            group_cols.append(TRIAL_TYPE_COL)

    groups = list(scores.groupby(group_cols, sort=True))
    streams = spawn_streams(config.seed, len(groups))
    tasks = []
    for (key, grp), seed in zip(groups, streams):
        if not isinstance(key, tuple):
            key = (key,)
        if "status" in grp.columns:
            grp = grp[grp["status"] == "ok"]
        estimate, se = _domain_columns(grp, config.critical_z)
        tasks.append(
            DiscriminabilityTask(
                keys=dict(zip(group_cols, key)),
                estimate=estimate,
                se=se,
                n_boot=config.n_boot,
                confidence=config.confidence,
                critical_z=config.critical_z,
                min_valid_fraction=config.min_valid_fraction,
                seed=seed,
            )
        )

    estimates = run_units(
        run_discriminability_task,
        tasks,
        n_workers=config.workers,
        label="discriminability bootstrap",
        verbose=verbose,
    )
    results = results_to_frame(estimates, group_cols)
    failures = failure_report(results, group_cols)
    if verbose:
        print(f"[INFO] discriminability bootstrap: {len(results) - len(failures)} ok, {len(failures)} failed")
    return results, failures
