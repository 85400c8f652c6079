"""
Process-pool execution of independent estimation units.

Every unit is a picklable (function, task) pair whose task carries its own
``np.random.SeedSequence`` child. Streams are spawned from one run seed in
sorted key order, so results do not depend on the worker count.
"""

from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from typing import Any, Callable, List, Sequence

import numpy as np


def spawn_streams(seed: int, n_units: int) -> List[np.random.SeedSequence]:
    """Independent, non-overlapping child seeds for ``n_units`` units."""
    return np.random.SeedSequence(seed).spawn(n_units)


def run_units(
    func: Callable[[Any], Any],
    tasks: Sequence[Any],
    n_workers: int = 1,
    label: str = "units",
    verbose: bool = False,
) -> List[Any]:
    """
    Map ``func`` over ``tasks`` and return results in task order.

    ``func`` is expected to turn its own failures into result rows; an
    exception escaping it is a bug and propagates.
    """
    tasks = list(tasks)
    if not tasks:
        return []
    workers = max(1, min(n_workers, len(tasks)))
    if verbose:
        print(f"[INFO] {label}: {len(tasks)} units on {workers} worker(s)")

    if workers == 1:
        return [func(task) for task in tasks]

    chunksize = max(1, len(tasks) // (workers * 4))
    with ProcessPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(func, tasks, chunksize=chunksize))
