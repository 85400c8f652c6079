"""Tests for result caching and domain summaries."""

import numpy as np
import pandas as pd
import pytest

from dscore_ci.analysis.cache import cached_table, generate_cache_key, hash_frame
from dscore_ci.analysis.summary import SUMMARY_COLUMNS, summarize_by_domain
from dscore_ci.analysis.utils import get_output_dir
from dscore_ci.preprocessing.constants import OUTPUT_CACHE_DIR, OUTPUT_STATS_DIR


class TestCache:

    def test_compute_once_then_load(self, tmp_path):
        inputs = {"trials": pd.DataFrame({"x": [1, 2, 3]})}
        calls = []

        def compute():
            calls.append(1)
            return pd.DataFrame({"estimate": [0.5]})

        first, info1 = cached_table("d_scores", inputs, {"n_boot": 10}, compute, cache_dir=tmp_path)
        second, info2 = cached_table("d_scores", inputs, {"n_boot": 10}, compute, cache_dir=tmp_path)
        assert len(calls) == 1
        assert info1["cached"] is False
        assert info2["cached"] is True
        assert info1["path"] == info2["path"]
        pd.testing.assert_frame_equal(first, second)

    def test_force_rebuild_and_no_cache(self, tmp_path):
        inputs = {"trials": pd.DataFrame({"x": [1]})}
        calls = []

        def compute():
            calls.append(1)
            return pd.DataFrame({"estimate": [0.1]})

        cached_table("p", inputs, {}, compute, cache_dir=tmp_path)
        cached_table("p", inputs, {}, compute, cache_dir=tmp_path, force_rebuild=True)
        _, info = cached_table("q", inputs, {}, compute, cache_dir=tmp_path, use_cache=False)
        assert len(calls) == 3
        assert not info["path"].exists()

    def test_key_depends_on_inputs_and_params(self):
        a = {"trials": pd.DataFrame({"x": [1, 2]})}
        b = {"trials": pd.DataFrame({"x": [1, 3]})}
        assert generate_cache_key("d", a, n_boot=1) != generate_cache_key("d", b, n_boot=1)
        assert generate_cache_key("d", a, n_boot=1) != generate_cache_key("d", a, n_boot=2)
        assert generate_cache_key("d", a, n_boot=1) == generate_cache_key("d", a, n_boot=1)

    def test_hash_includes_column_names(self):
        assert hash_frame(pd.DataFrame({"x": [1]})) != hash_frame(pd.DataFrame({"y": [1]}))

    def test_fresh_and_loaded_tables_hash_alike(self, tmp_path):
        inputs = {"trials": pd.DataFrame({"x": [1]})}

        def compute():
            return pd.DataFrame(
                {
                    "participant_id": pd.Series(["p1", "p2"], dtype="string"),
                    "estimate": [0.4, np.nan],
                    "significant": [True, None],
                    "status": ["ok", "failed"],
                }
            )

        fresh, _ = cached_table("d_scores", inputs, {}, compute, cache_dir=tmp_path)
        loaded, info = cached_table("d_scores", inputs, {}, compute, cache_dir=tmp_path)
        assert info["cached"] is True
        assert hash_frame(fresh) == hash_frame(loaded)


def test_output_dirs(tmp_path):
    assert OUTPUT_STATS_DIR.parent == OUTPUT_CACHE_DIR.parent
    out = get_output_dir("run1", base_dir=tmp_path)
    assert out == tmp_path / "run1"
    assert out.is_dir()


def test_summarize_by_domain():
    results = pd.DataFrame(
        {
            "participant_id": ["p1", "p2", "p3", "p4", "p5"],
            "domain": ["a", "a", "a", "b", "b"],
            "estimate": [0.5, 0.1, np.nan, 0.9, 1.1],
            "ci_width": [0.4, 0.6, np.nan, 0.2, 0.4],
            "significant": [True, False, None, True, True],
            "status": ["ok", "ok", "failed", "ok", "ok"],
        }
    )
    summary = summarize_by_domain(results).set_index("domain")
    assert list(summary.columns) == SUMMARY_COLUMNS
    assert summary.loc["a", "n_participants"] == 2
    assert summary.loc["a", "n_failed"] == 1
    assert summary.loc["a", "pct_significant"] == pytest.approx(0.5)
    assert summary.loc["a", "mean_ci_width"] == pytest.approx(0.5)
    assert summary.loc["b", "pct_significant"] == pytest.approx(1.0)
    assert summary.loc["b", "pct_significant_ci_low"] < 1.0
    assert summary.loc["b", "pct_significant_ci_high"] == pytest.approx(1.0)


def test_summarize_reads_csv_booleans():
    results = pd.DataFrame(
        {
            "domain": ["a", "a"],
            "estimate": [0.5, 0.2],
            "ci_width": [0.3, 0.3],
            "significant": ["True", "False"],
            "status": ["ok", "ok"],
        }
    )
    summary = summarize_by_domain(results)
    assert summary.loc[0, "n_significant"] == 1
