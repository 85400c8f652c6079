"""
Trial cleaning + inclusion rules applied before estimation.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd

from ...config import TrialQCCriteria
from ..constants import (
    DOMAIN_COL,
    BLOCK_COL,
    RT_COL,
    TRIAL_ORDER_COL,
    TRIAL_TYPE_COL,
    RECTIFY_COL,
    BLOCK_ORDER_COL,
    DOMAIN_ALIASES,
    BLOCK_ALIASES,
    RT_ALIASES,
    TRIAL_ORDER_ALIASES,
    TRIAL_TYPE_ALIASES,
    BLOCK_LABELS,
    CONGRUENT,
    INCONGRUENT,
    PARTICIPANT_COL,
)
from ..core import coerce_bool_series, ensure_participant_id, pick_column


def clean_trial_records(df: pd.DataFrame, criteria: Optional[TrialQCCriteria] = None) -> pd.DataFrame:
    """
    Canonical trial columns, normalised block labels and RT floor/ceiling.

    Rows with an unknown block label, a missing RT or an RT outside
    (rt_min, rt_max] are dropped.
    """
    if criteria is None:
        criteria = TrialQCCriteria()
    df = ensure_participant_id(df.copy())

    domain_col = pick_column(df, DOMAIN_ALIASES)
    block_col = pick_column(df, BLOCK_ALIASES)
    rt_col = pick_column(df, RT_ALIASES)
    trial_col = pick_column(df, TRIAL_ORDER_ALIASES)
    trial_type_col = pick_column(df, TRIAL_TYPE_ALIASES)

    if block_col is None:
        raise KeyError(f"No block column found; expected one of {BLOCK_ALIASES}")
    if rt_col is None:
        raise KeyError(f"No reaction time column found; expected one of {RT_ALIASES}")

    df[DOMAIN_COL] = df[domain_col].astype(str) if domain_col is not None else "all"
    df[BLOCK_COL] = df[block_col].astype(str).str.strip().str.lower().map(BLOCK_LABELS)
    df[RT_COL] = pd.to_numeric(df[rt_col], errors="coerce")

    if trial_col is not None:
        df[TRIAL_ORDER_COL] = pd.to_numeric(df[trial_col], errors="coerce")
    else:
        df[TRIAL_ORDER_COL] = np.nan

    if trial_type_col is not None and trial_type_col != TRIAL_TYPE_COL:
        df[TRIAL_TYPE_COL] = df[trial_type_col]

    for flag in (RECTIFY_COL, BLOCK_ORDER_COL):
        if flag in df.columns:
            df[flag] = coerce_bool_series(df[flag])
        else:
            df[flag] = False

    valid = (
        df[PARTICIPANT_COL].notna()
        & df[BLOCK_COL].isin({CONGRUENT, INCONGRUENT})
        & (df[RT_COL] > criteria.rt_min)
        & (df[RT_COL] <= criteria.rt_max)
    )
    return df[valid].reset_index(drop=True)


def compute_block_counts(df: pd.DataFrame, group_cols: List[str]) -> pd.DataFrame:
    """Trials per block type for each grouping key (missing blocks count as 0)."""
    counts = df.groupby(group_cols + [BLOCK_COL]).size().unstack(fill_value=0)
    for label in (CONGRUENT, INCONGRUENT):
        if label not in counts.columns:
            counts[label] = 0
    return counts[[CONGRUENT, INCONGRUENT]].reset_index()


def filter_min_trials(
    df: pd.DataFrame,
    group_cols: List[str],
    criteria: Optional[TrialQCCriteria] = None,
    verbose: bool = False,
) -> pd.DataFrame:
    """Drop grouping keys with fewer than ``min_trials_per_block`` trials in either block."""
    if criteria is None:
        criteria = TrialQCCriteria()
    if df.empty:
        return df
    counts = compute_block_counts(df, group_cols)
    enough = (counts[CONGRUENT] >= criteria.min_trials_per_block) & (
        counts[INCONGRUENT] >= criteria.min_trials_per_block
    )
    keep = counts.loc[enough, group_cols]
    if verbose:
        print(f"[INFO] trial QC: {int(enough.sum())}/{len(counts)} groups pass min_trials_per_block={criteria.min_trials_per_block}")
    return df.merge(keep, on=group_cols, how="inner")


def load_trials(path: Path, criteria: Optional[TrialQCCriteria] = None) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Trial file not found: {path}")
    df = pd.read_csv(path, encoding="utf-8-sig")
    return clean_trial_records(df, criteria)
