"""
Run configuration for the bootstrap pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, asdict
from typing import Optional

from .preprocessing.constants import (
    DEFAULT_N_BOOT,
    DEFAULT_CONFIDENCE,
    DEFAULT_SEED,
    DEFAULT_CRITICAL_Z,
    DEFAULT_MIN_VALID_FRACTION,
    DEFAULT_RT_MIN,
    DEFAULT_RT_MAX,
    DEFAULT_MIN_TRIALS_PER_BLOCK,
)


def default_workers() -> int:
    """All cores but one."""
    return max(1, (os.cpu_count() or 1) - 1)


@dataclass
class BootstrapConfig:
    """Bootstrap settings shared by every unit of a run."""
    n_boot: int = DEFAULT_N_BOOT
    confidence: float = DEFAULT_CONFIDENCE
    seed: int = DEFAULT_SEED
    n_workers: Optional[int] = None  # None -> default_workers()
    min_valid_fraction: float = DEFAULT_MIN_VALID_FRACTION
    critical_z: float = DEFAULT_CRITICAL_Z

    def validate(self) -> "BootstrapConfig":
        if self.n_boot < 2:
            raise ValueError(f"n_boot must be >= 2, got {self.n_boot}")
        if not 0 < self.confidence < 1:
            raise ValueError(f"confidence must be in (0, 1), got {self.confidence}")
        if not 0 < self.min_valid_fraction <= 1:
            raise ValueError(f"min_valid_fraction must be in (0, 1], got {self.min_valid_fraction}")
        if self.n_workers is not None and self.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {self.n_workers}")
        if self.critical_z <= 0:
            raise ValueError(f"critical_z must be positive, got {self.critical_z}")
        return self

    @property
    def workers(self) -> int:
        return self.n_workers if self.n_workers is not None else default_workers()

    def cache_params(self) -> dict:
        """Parameters that change estimator output (worker count does not)."""
        params = asdict(self)
        params.pop("n_workers")
        return params


@dataclass
class TrialQCCriteria:
    """Trial inclusion rules applied before estimation."""
    rt_min: float = DEFAULT_RT_MIN      # exclusive
    rt_max: float = DEFAULT_RT_MAX      # inclusive
    min_trials_per_block: int = DEFAULT_MIN_TRIALS_PER_BLOCK
