"""
BCa bootstrap confidence intervals for IRAP / IAT D scores.

Public entry points:
    estimate_effect            - one participant sample -> IntervalEstimate
    estimate_discriminability  - one domain table -> IntervalEstimate
    estimate_effects           - trial table -> per-key result table
"""

from .bootstrap import StatisticKind
from .config import BootstrapConfig, TrialQCCriteria
from .estimation import (
    IntervalEstimate,
    estimate_effect,
    estimate_effects,
    estimate_discriminability,
    estimate_discriminability_by_domain,
)

__version__ = "0.1.0"

__all__ = [
    "StatisticKind",
    "BootstrapConfig",
    "TrialQCCriteria",
    "IntervalEstimate",
    "estimate_effect",
    "estimate_effects",
    "estimate_discriminability",
    "estimate_discriminability_by_domain",
]
