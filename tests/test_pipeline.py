"""End-to-end run of the pipeline on a synthetic trial file."""

import pandas as pd

from conftest import make_trials
from dscore_ci import BootstrapConfig
from dscore_ci.bootstrap import StatisticKind
from dscore_ci.estimation import default_group_cols, estimate_effects
from dscore_ci.preprocessing.constants import RESULT_COLUMNS
from dscore_ci.run_pipeline import build_parser, check_observed_scores, main


def test_pipeline_writes_contract_tables(tmp_path):
    trials_path = tmp_path / "trials.csv"
    make_trials(n_participants=8, domains=("a", "b"), seed=11).to_csv(trials_path, index=False)
    out_dir = tmp_path / "stats"

    outputs = main(
        trials_path,
        statistics=("d", "pi"),
        n_boot=400,
        seed=3,
        n_workers=1,
        use_cache=False,
        out_dir=out_dir,
        verbose=False,
    )

    for name in ("d_scores", "pi_scores", "d_scores_summary", "pi_scores_summary", "discriminability"):
        assert (out_dir / f"{name}.csv").exists()

    d_scores = pd.read_csv(out_dir / "d_scores.csv", encoding="utf-8-sig")
    assert list(d_scores.columns) == ["participant_id", "domain"] + RESULT_COLUMNS
    assert len(d_scores) == 16

    discrim = outputs["discriminability"]
    assert list(discrim["domain"]) == ["a", "b"]
    assert set(discrim["status"]) <= {"ok", "failed"}
    ok = discrim[discrim["status"] == "ok"]
    assert ok["estimate"].between(0, 1).all()


def test_parser_defaults():
    args = build_parser().parse_args(["trials.csv"])
    assert args.statistic is None
    assert args.n_boot == 2000
    assert not args.no_cache


def test_second_run_loads_every_table_from_cache(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr("dscore_ci.analysis.cache.OUTPUT_CACHE_DIR", tmp_path / "cache")
    trials_path = tmp_path / "trials.csv"
    make_trials(n_participants=6, seed=5).to_csv(trials_path, index=False)
    kwargs = dict(n_boot=300, seed=1, n_workers=1, out_dir=tmp_path / "stats", verbose=True)

    first = main(trials_path, **kwargs)
    capsys.readouterr()
    second = main(trials_path, **kwargs)
    out = capsys.readouterr().out

    assert "Loaded cached d scores" in out
    assert "Loaded cached discriminability" in out
    pd.testing.assert_frame_equal(first["d_scores"], second["d_scores"])
    pd.testing.assert_frame_equal(first["discriminability"], second["discriminability"])


class TestObservedCheck:

    def _scores(self, trials, kind=StatisticKind.D):
        results, _ = estimate_effects(
            trials, kind, config=BootstrapConfig(n_boot=200, seed=2, n_workers=1)
        )
        return results

    def test_estimates_match_observed(self):
        trials = make_trials(n_participants=4, seed=8)
        for kind in StatisticKind:
            scores = self._scores(trials, kind)
            assert check_observed_scores(trials, scores, kind, default_group_cols(trials), verbose=False) == 0

    def test_reflected_estimates_still_match(self):
        trials = make_trials(n_participants=4, seed=8)
        trials["rectify"] = trials["participant_id"] == "p01"
        scores = self._scores(trials)
        assert check_observed_scores(trials, scores, StatisticKind.D, default_group_cols(trials), verbose=False) == 0

    def test_stale_estimate_is_reported(self, capsys):
        trials = make_trials(n_participants=4, seed=8)
        scores = self._scores(trials)
        first_ok = scores.index[scores["status"] == "ok"][0]
        scores.loc[first_ok, "estimate"] += 0.5
        n = check_observed_scores(trials, scores, StatisticKind.D, default_group_cols(trials), verbose=False)
        assert n == 1
        assert "[WARN]" in capsys.readouterr().out
