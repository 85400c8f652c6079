"""
Per-participant D / PI score estimation with BCa intervals.

The trial table is partitioned by grouping key (participant x domain, plus
trial type for IRAP data); every partition is bootstrapped independently
and the rows are concatenated into one result table.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..bootstrap import EstimationError, StatisticKind, bootstrap_bca
from ..config import BootstrapConfig
from ..preprocessing.constants import (
    PARTICIPANT_COL,
    DOMAIN_COL,
    TRIAL_TYPE_COL,
    BLOCK_COL,
    RT_COL,
    INCONGRUENT,
    RECTIFY_COL,
    BLOCK_ORDER_COL,
    DEFAULT_N_BOOT,
    DEFAULT_CONFIDENCE,
    DEFAULT_MIN_VALID_FRACTION,
)
from .intervals import IntervalEstimate, apply_sign_correction, failure_report, results_to_frame
from .parallel import run_units, spawn_streams


def default_group_cols(trials: pd.DataFrame) -> List[str]:
    cols = [PARTICIPANT_COL, DOMAIN_COL]
    if TRIAL_TYPE_COL in trials.columns and trials[TRIAL_TYPE_COL].notna().any():
        cols.append(TRIAL_TYPE_COL)
    return cols


def _sample_columns(sample: pd.DataFrame) -> tuple[np.ndarray, np.ndarray]:
    missing = [c for c in (RT_COL, BLOCK_COL) if c not in sample.columns]
    if missing:
        raise KeyError(f"Trial sample is missing required columns: {missing}")
    sample = sample.dropna(subset=[RT_COL])
    rt = pd.to_numeric(sample[RT_COL], errors="coerce").to_numpy(dtype=float)
    incongruent = (sample[BLOCK_COL] == INCONGRUENT).to_numpy()
    return rt, incongruent


def _estimate_columns(
    columns: Sequence[np.ndarray],
    kind: StatisticKind,
    n_boot: int,
    confidence: float,
    rng: np.random.Generator,
    min_valid_fraction: float,
    keys: Optional[Dict[str, Any]] = None,
) -> IntervalEstimate:
    n_obs = len(columns[0])
    try:
        distribution, interval = bootstrap_bca(
            columns,
            kind.function,
            n_boot,
            rng,
            confidence=confidence,
            min_valid_fraction=min_valid_fraction,
        )
    except EstimationError as exc:
        return IntervalEstimate.failed(exc.reason, reference=kind.reference, n_obs=n_obs, keys=keys)

    return IntervalEstimate(
        estimate=distribution.t0,
        ci_lower=interval.lower,
        ci_upper=interval.upper,
        reference=kind.reference,
        n_obs=n_obs,
        n_valid_replicates=distribution.n_valid,
        keys=dict(keys or {}),
    ).reordered()


def estimate_effect(
    sample: pd.DataFrame,
    statistic: StatisticKind | str = StatisticKind.D,
    replicates: int = DEFAULT_N_BOOT,
    confidence: float = DEFAULT_CONFIDENCE,
    rng: Optional[np.random.Generator] = None,
    min_valid_fraction: float = DEFAULT_MIN_VALID_FRACTION,
    keys: Optional[Dict[str, Any]] = None,
) -> IntervalEstimate:
    """
    BCa interval for one participant sample.

    Parameters
    ----------
    sample : pd.DataFrame
        Trials of one grouping key with ``rt_ms`` and ``block_type`` columns.
    statistic : StatisticKind or str
        ``"d"`` (D score) or ``"pi"`` (probability of superiority).
    replicates : int
        Number of bootstrap replicates R.
    confidence : float
        Coverage of the two-sided interval.
    rng : np.random.Generator, optional
        Random stream; a fresh unseeded generator when omitted.

    Returns
    -------
    IntervalEstimate
        Failed estimates carry NaN values and a reason code instead of raising.
    """
    kind = StatisticKind.parse(statistic)
    if rng is None:
        rng = np.random.default_rng()
    rt, incongruent = _sample_columns(sample)
    return _estimate_columns((rt, incongruent), kind, replicates, confidence, rng, min_valid_fraction, keys)


@dataclass(frozen=True)
class EffectTask:
    """Picklable unit of work for one grouping key."""
    keys: Dict[str, Any]
    rt: np.ndarray
    incongruent: np.ndarray
    rectify: bool
    block_order_reversed: bool
    statistic: str
    n_boot: int
    confidence: float
    min_valid_fraction: float
    seed: np.random.SeedSequence


def run_effect_task(task: EffectTask) -> IntervalEstimate:
    kind = StatisticKind.parse(task.statistic)
    try:
        result = _estimate_columns(
            (task.rt, task.incongruent),
            kind,
            task.n_boot,
            task.confidence,
            np.random.default_rng(task.seed),
            task.min_valid_fraction,
            task.keys,
        )
        return apply_sign_correction(result, task.rectify, task.block_order_reversed)
    except Exception as exc:
        print(f"[WARN] {task.keys} failed: {exc}")
        return IntervalEstimate.failed(
            f"unexpected_error:{type(exc).__name__}",
            reference=kind.reference,
            n_obs=len(task.rt),
            keys=task.keys,
        )


def _flag(group: pd.DataFrame, col: str) -> bool:
    if col not in group.columns:
        return False
    return bool(group[col].fillna(False).astype(bool).any())


def build_effect_tasks(
    trials: pd.DataFrame,
    statistic: StatisticKind | str,
    config: BootstrapConfig,
    group_cols: List[str],
) -> List[EffectTask]:
    kind = StatisticKind.parse(statistic)
    missing = [c for c in group_cols if c not in trials.columns]
    if missing:
        raise KeyError(f"Trial table is missing grouping columns: {missing}")

    groups = list(trials.groupby(group_cols, sort=True))
    streams = spawn_streams(config.seed, len(groups))
    tasks = []
    for (key, grp), seed in zip(groups, streams):
        if not isinstance(key, tuple):
            key = (key,)
        rt, incongruent = _sample_columns(grp)
        tasks.append(
            EffectTask(
                keys=dict(zip(group_cols, key)),
                rt=rt,
                incongruent=incongruent,
                rectify=_flag(grp, RECTIFY_COL),
                block_order_reversed=_flag(grp, BLOCK_ORDER_COL),
                statistic=kind.value,
                n_boot=config.n_boot,
                confidence=config.confidence,
                min_valid_fraction=config.min_valid_fraction,
                seed=seed,
            )
        )
    return tasks


def estimate_effects(
    trials: pd.DataFrame,
    statistic: StatisticKind | str = StatisticKind.D,
    config: Optional[BootstrapConfig] = None,
    group_cols: Optional[List[str]] = None,
    verbose: bool = False,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Estimate one interval per grouping key.

    Returns
    -------
    (results, failures)
        ``results`` has one row per key (failed keys included as NaN rows);
        ``failures`` lists failed keys with their reason codes.
    """
    config = (config or BootstrapConfig()).validate()
    kind = StatisticKind.parse(statistic)
    if group_cols is None:
        group_cols = default_group_cols(trials)

    tasks = build_effect_tasks(trials, kind, config, group_cols)
    estimates = run_units(
        run_effect_task,
        tasks,
        n_workers=config.workers,
        label=f"{kind.value} score bootstrap",
        verbose=verbose,
    )
    results = results_to_frame(estimates, group_cols)
    failures = failure_report(results, group_cols)
    if verbose:
        print(f"[INFO] {kind.value} score bootstrap: {len(results) - len(failures)} ok, {len(failures)} failed")
    return results, failures
