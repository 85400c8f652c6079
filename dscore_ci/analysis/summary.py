"""
Domain-level summaries of interval estimates.

Per domain: number of scored participants, failures, mean estimate, CI
width, and the share of intervals excluding the reference value with a
Wilson interval.

Usage:
    python -m dscore_ci.analysis.summary --results outputs/stats/d_scores.csv
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd
from statsmodels.stats.proportion import proportion_confint

from ..preprocessing.constants import DOMAIN_COL, TRIAL_TYPE_COL
from .utils import save_table

SUMMARY_COLUMNS = [
    "n_participants",
    "n_failed",
    "mean_estimate",
    "mean_ci_width",
    "median_ci_width",
    "n_significant",
    "pct_significant",
    "pct_significant_ci_low",
    "pct_significant_ci_high",
]


def _as_bool(series: pd.Series) -> pd.Series:
    if series.dtype == bool:
        return series
    return series.astype(str).str.strip().str.lower().isin({"true", "1", "1.0"})


def _summarize_group(group: pd.DataFrame, alpha: float) -> dict:
    ok = group[group["status"] == "ok"]
    n_ok = len(ok)
    n_sig = int(_as_bool(ok["significant"]).sum()) if n_ok else 0
    if n_ok:
        ci_low, ci_high = proportion_confint(n_sig, n_ok, alpha=alpha, method="wilson")
    else:
        ci_low, ci_high = np.nan, np.nan
    return {
        "n_participants": n_ok,
        "n_failed": int(len(group) - n_ok),
        "mean_estimate": float(ok["estimate"].mean()) if n_ok else np.nan,
        "mean_ci_width": float(ok["ci_width"].mean()) if n_ok else np.nan,
        "median_ci_width": float(ok["ci_width"].median()) if n_ok else np.nan,
        "n_significant": n_sig,
        "pct_significant": n_sig / n_ok if n_ok else np.nan,
        "pct_significant_ci_low": float(ci_low),
        "pct_significant_ci_high": float(ci_high),
    }


def summarize_by_domain(
    results: pd.DataFrame,
    group_cols: Optional[List[str]] = None,
    alpha: float = 0.05,
) -> pd.DataFrame:
    if group_cols is None:
        group_cols = [DOMAIN_COL]
        if TRIAL_TYPE_COL in results.columns and results[TRIAL_TYPE_COL].notna().any():
            group_cols.append(TRIAL_TYPE_COL)
    if results.empty:
        return pd.DataFrame(columns=group_cols + SUMMARY_COLUMNS)

    rows = []
    for key, grp in results.groupby(group_cols, sort=True):
        if not isinstance(key, tuple):
            key = (key,)
        row = dict(zip(group_cols, key))
        row.update(_summarize_group(grp, alpha))
        rows.append(row)
    return pd.DataFrame(rows, columns=group_cols + SUMMARY_COLUMNS)


def run(results_path: Path, out_path: Optional[Path] = None, verbose: bool = True) -> pd.DataFrame:
    results = pd.read_csv(results_path, encoding="utf-8-sig")
    summary = summarize_by_domain(results)
    if out_path is None:
        out_path = Path(results_path).with_name(Path(results_path).stem + "_summary.csv")
    save_table(summary, out_path, verbose=verbose)
    if verbose:
        print(summary.to_string(index=False))
    return summary


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Summarize interval estimates by domain.")
    parser.add_argument("--results", type=Path, required=True)
    parser.add_argument("--out", type=Path, default=None)
    args = parser.parse_args()
    run(args.results, args.out)
