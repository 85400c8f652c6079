"""
Observed (non-bootstrapped) scores per grouping key.
"""

from __future__ import annotations

from typing import List

import pandas as pd

from ...bootstrap import StatisticKind
from ..constants import BLOCK_COL, RT_COL, INCONGRUENT


def compute_observed_scores(
    trials: pd.DataFrame,
    group_cols: List[str],
    statistic: StatisticKind | str = StatisticKind.D,
) -> pd.Series:
    kind = StatisticKind.parse(statistic)
    if trials.empty:
        return pd.Series(dtype=float, name=f"{kind.value}_score")

    def _score(group: pd.DataFrame) -> float:
        group = group.dropna(subset=[RT_COL])
        return kind.function(group[RT_COL].to_numpy(dtype=float), (group[BLOCK_COL] == INCONGRUENT).to_numpy())

    scores = trials.groupby(group_cols)[[RT_COL, BLOCK_COL]].apply(_score)
    return scores.astype(float).rename(f"{kind.value}_score")
