"""
Interval estimate rows and sign correction.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List

import numpy as np
import pandas as pd

from ..preprocessing.constants import RESULT_COLUMNS


@dataclass(frozen=True)
class IntervalEstimate:
    """
    Point estimate and confidence interval for one grouping key.

    Failed units keep NaN values, ``status='failed'`` and a ``reason`` code.
    """
    estimate: float
    ci_lower: float
    ci_upper: float
    reference: float = 0.0
    n_obs: int = 0
    n_valid_replicates: int = 0
    status: str = "ok"
    reason: str = ""
    keys: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failed(cls, reason: str, reference: float = 0.0, n_obs: int = 0,
               n_valid_replicates: int = 0, keys: Dict[str, Any] | None = None) -> "IntervalEstimate":
        return cls(
            estimate=np.nan,
            ci_lower=np.nan,
            ci_upper=np.nan,
            reference=reference,
            n_obs=n_obs,
            n_valid_replicates=n_valid_replicates,
            status="failed",
            reason=reason,
            keys=dict(keys or {}),
        )

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def ci_width(self) -> float:
        return self.ci_upper - self.ci_lower

    @property
    def significant(self) -> bool | None:
        """True when the interval excludes the reference value; None for failed rows."""
        if not self.ok:
            return None
        return bool(not (self.ci_lower <= self.reference <= self.ci_upper))

    def reordered(self) -> "IntervalEstimate":
        lower, upper = sorted((self.ci_lower, self.ci_upper))
        return replace(self, ci_lower=lower, ci_upper=upper)

    def reflected(self) -> "IntervalEstimate":
        """Mirror estimate and bounds about the reference value, then reorder."""
        mirror = 2.0 * self.reference
        flipped = replace(
            self,
            estimate=mirror - self.estimate,
            ci_lower=mirror - self.ci_lower,
            ci_upper=mirror - self.ci_upper,
        )
        return flipped.reordered()

    def with_keys(self, **keys: Any) -> "IntervalEstimate":
        return replace(self, keys={**self.keys, **keys})

    def to_row(self) -> Dict[str, Any]:
        row = dict(self.keys)
        row.update(
            {
                "estimate": self.estimate,
                "ci_lower": self.ci_lower,
                "ci_upper": self.ci_upper,
                "ci_width": self.ci_width,
                "significant": self.significant,
                "n_obs": int(self.n_obs),
                "n_valid_replicates": int(self.n_valid_replicates),
                "status": self.status,
                "reason": self.reason,
            }
        )
        return row


def apply_sign_correction(
    result: IntervalEstimate,
    rectify: bool = False,
    block_order_reversed: bool = False,
) -> IntervalEstimate:
    """
    Apply the rectification and block-order flags as two independent reflections.

    Each reflection acts on (estimate, ci_lower, ci_upper) as a tuple and the
    bounds are re-ordered after each step, so [a, b] becomes [-b, -a].
    """
    if not result.ok:
        return result
    if rectify:
        result = result.reflected()
    if block_order_reversed:
        result = result.reflected()
    return result


def results_to_frame(results: Iterable[IntervalEstimate], key_cols: List[str]) -> pd.DataFrame:
    rows = [r.to_row() for r in results]
    columns = list(key_cols) + RESULT_COLUMNS
    if not rows:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(rows)
    for col in columns:
        if col not in df.columns:
            df[col] = np.nan
    return df[columns]


def failure_report(results: pd.DataFrame, key_cols: List[str]) -> pd.DataFrame:
    """Failed rows only: grouping keys, sample size and reason code."""
    failed = results.loc[results["status"] != "ok", list(key_cols) + ["n_obs", "reason"]]
    return failed.reset_index(drop=True)
