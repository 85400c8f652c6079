"""Shared fixtures: synthetic IAT/IRAP-style trial tables."""

import numpy as np
import pandas as pd
import pytest


def make_trials(
    n_participants=20,
    trials_per_block=18,
    congruent_mean=600.0,
    incongruent_mean=700.0,
    sd=100.0,
    domains=("d1",),
    seed=1,
):
    rng = np.random.default_rng(seed)
    rows = []
    for domain in domains:
        for p in range(n_participants):
            pid = f"p{p:02d}"
            order = 0
            for block, mean in (("congruent", congruent_mean), ("incongruent", incongruent_mean)):
                rts = rng.normal(mean, sd, size=trials_per_block)
                for rt in rts:
                    rows.append(
                        {
                            "participant_id": pid,
                            "domain": domain,
                            "block_type": block,
                            "rt_ms": float(max(rt, 150.0)),
                            "trial_order": order,
                        }
                    )
                    order += 1
    return pd.DataFrame(rows)


@pytest.fixture
def trials():
    return make_trials()


@pytest.fixture
def participant_sample():
    return make_trials(n_participants=1, trials_per_block=30, seed=7)
