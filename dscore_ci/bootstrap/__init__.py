"""Bootstrap engine: statistics, resampling and BCa intervals."""

from .statistics import StatisticKind, d_score, pi_score
from .resampling import (
    BootstrapDistribution,
    bootstrap,
    draw_indices,
    jackknife,
    leave_one_out_indices,
)
from .bca import (
    BcaInterval,
    acceleration,
    adjusted_percentiles,
    bca_interval,
    bias_correction,
    bootstrap_bca,
)
from .exceptions import (
    EstimationError,
    DegenerateSampleError,
    InsufficientReplicatesError,
    BcaDegeneracyError,
    ExtremeQuantileError,
)

__all__ = [
    "StatisticKind",
    "d_score",
    "pi_score",
    "BootstrapDistribution",
    "bootstrap",
    "draw_indices",
    "jackknife",
    "leave_one_out_indices",
    "BcaInterval",
    "acceleration",
    "adjusted_percentiles",
    "bca_interval",
    "bias_correction",
    "bootstrap_bca",
    "EstimationError",
    "DegenerateSampleError",
    "InsufficientReplicatesError",
    "BcaDegeneracyError",
    "ExtremeQuantileError",
]
