"""
Exceptions raised by the bootstrap engine.

Each class carries a machine-readable ``reason`` that ends up in the
``reason`` column of result tables.
"""


class EstimationError(Exception):
    """Base exception for interval estimation."""

    reason = "estimation_error"


class DegenerateSampleError(EstimationError):
    """Raised when the statistic is undefined on the observed sample."""

    reason = "degenerate_sample"


class InsufficientReplicatesError(EstimationError):
    """Raised when too few bootstrap replicates produced a finite statistic."""

    reason = "insufficient_replicates"


class BcaDegeneracyError(EstimationError):
    """Raised when the bias/acceleration terms make the adjusted percentile undefined."""

    reason = "bca_degenerate"


class ExtremeQuantileError(EstimationError):
    """Raised when an adjusted percentile is not supported by the replicate count."""

    reason = "extreme_quantile"
