"""
Core helpers for preprocessing.
"""

from __future__ import annotations

from typing import Iterable
import warnings

import pandas as pd

from .constants import PARTICIPANT_COL, PARTICIPANT_ID_ALIASES


def ensure_participant_id(df: pd.DataFrame, warn_threshold: float = 1.0) -> pd.DataFrame:
    """
    Ensure there is exactly one 'participant_id' column.
    Prefers an existing participant_id column, otherwise renames common aliases.
    """
    canonical = PARTICIPANT_COL
    if canonical not in df.columns:
        for col in df.columns:
            if col in PARTICIPANT_ID_ALIASES and col != canonical:
                df = df.rename(columns={col: canonical})
                break
    if canonical not in df.columns:
        raise KeyError("No participant id column found in dataframe.")

    missing_count = df[canonical].isna().sum()
    missing_pct = missing_count / len(df) * 100 if len(df) > 0 else 0

    if missing_pct > warn_threshold:
        warnings.warn(
            f"participant_id column has {missing_pct:.1f}% missing values ({missing_count}/{len(df)} rows). "
            "These trials are dropped before estimation.",
            UserWarning,
        )

    aliases = [col for col in df.columns if col in PARTICIPANT_ID_ALIASES and col != canonical]
    if aliases:
        df = df.drop(columns=aliases)
    df[canonical] = df[canonical].astype("string")
    return df


def pick_column(df: pd.DataFrame, candidates: Iterable[str]) -> str | None:
    for col in candidates:
        if col in df.columns and df[col].notna().any():
            return col
    return None


def coerce_bool_series(series: pd.Series) -> pd.Series:
    if series.dtype == bool:
        return series
    mapped = series.astype(str).str.strip().str.lower().map(
        {
            "true": True, "1": True, "1.0": True, "yes": True,
            "false": False, "0": False, "0.0": False, "no": False,
        }
    )
    return mapped.fillna(False).astype(bool)
