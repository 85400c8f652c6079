"""Trial-level preprocessing helpers."""

from .qc import (
    clean_trial_records,
    compute_block_counts,
    filter_min_trials,
    load_trials,
)
from .features import compute_observed_scores

__all__ = [
    "clean_trial_records",
    "compute_block_counts",
    "filter_min_trials",
    "load_trials",
    "compute_observed_scores",
]
