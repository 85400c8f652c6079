"""Per-group orchestration of bootstrap interval estimation."""

from .intervals import IntervalEstimate, apply_sign_correction, results_to_frame, failure_report
from .effects import estimate_effect, estimate_effects, default_group_cols
from .discriminability import (
    standard_errors_from_ci,
    discriminability_proportion,
    estimate_discriminability,
    estimate_discriminability_by_domain,
)
from .parallel import run_units, spawn_streams

__all__ = [
    "IntervalEstimate",
    "apply_sign_correction",
    "results_to_frame",
    "failure_report",
    "estimate_effect",
    "estimate_effects",
    "default_group_cols",
    "standard_errors_from_ci",
    "discriminability_proportion",
    "estimate_discriminability",
    "estimate_discriminability_by_domain",
    "run_units",
    "spawn_streams",
]
