"""Estimate BCa intervals on D / PI scores and domain discriminability."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from dscore_ci.analysis.cache import cached_table
from dscore_ci.analysis.summary import summarize_by_domain
from dscore_ci.analysis.utils import get_output_dir, print_section_header, save_table
from dscore_ci.bootstrap import StatisticKind
from dscore_ci.config import BootstrapConfig, TrialQCCriteria
from dscore_ci.estimation import (
    default_group_cols,
    estimate_discriminability_by_domain,
    estimate_effects,
    failure_report,
)
from dscore_ci.preprocessing.constants import (
    DEFAULT_CONFIDENCE,
    DEFAULT_N_BOOT,
    DEFAULT_RT_MAX,
    DEFAULT_RT_MIN,
    DEFAULT_SEED,
)
from dscore_ci.preprocessing.trials import compute_observed_scores, filter_min_trials, load_trials


def _safe_run(step: str, func, *args, **kwargs):
    try:
        return func(*args, **kwargs)
    except Exception as exc:
        print(f"[WARN] {step} failed: {exc}")
        return None


def _score_table(
    trials: pd.DataFrame,
    kind: StatisticKind,
    config: BootstrapConfig,
    use_cache: bool,
    force_rebuild: bool,
    verbose: bool,
) -> pd.DataFrame:
    group_cols = default_group_cols(trials)

    def _compute() -> pd.DataFrame:
        results, _ = estimate_effects(trials, kind, config=config, group_cols=group_cols, verbose=verbose)
        return results

    results, info = cached_table(
        f"{kind.value}_scores",
        {"trials": trials},
        {"statistic": kind.value, **config.cache_params()},
        _compute,
        use_cache=use_cache,
        force_rebuild=force_rebuild,
    )
    if verbose and info["cached"]:
        print(f"[INFO] Loaded cached {kind.value} scores: {info['path']}")
    return results


def check_observed_scores(
    trials: pd.DataFrame,
    scores: pd.DataFrame,
    kind: StatisticKind,
    group_cols: list[str],
    verbose: bool = True,
) -> int:
    """
    Compare bootstrap estimates with scores computed directly from the trials.

    Sign correction reflects an estimate about the reference value, so the
    distance to the reference is compared. Returns the number of mismatches.
    """
    observed = compute_observed_scores(trials, group_cols, kind)
    observed = observed.reset_index().astype({c: str for c in group_cols})
    ok = scores.loc[scores["status"] == "ok", group_cols + ["estimate"]]
    ok = ok.astype({c: str for c in group_cols})
    merged = observed.merge(ok, on=group_cols, how="inner")

    ref = kind.reference
    match = np.isclose(
        (merged[observed.columns[-1]] - ref).abs(),
        (merged["estimate"] - ref).abs(),
    )
    n_mismatch = int((~match).sum())
    if n_mismatch:
        print(
            f"[WARN] {n_mismatch}/{len(merged)} {kind.value} estimates differ from the observed scores; "
            "rerun with --force-rebuild if the cached table is stale."
        )
    elif verbose:
        print(f"[INFO] {len(merged)} {kind.value} estimates match the observed scores")
    return n_mismatch


def _discriminability_table(
    scores: pd.DataFrame,
    config: BootstrapConfig,
    use_cache: bool,
    force_rebuild: bool,
    verbose: bool,
) -> pd.DataFrame:
    def _compute() -> pd.DataFrame:
        results, _ = estimate_discriminability_by_domain(scores, config=config, verbose=verbose)
        return results

    results, info = cached_table(
        "discriminability",
        {"scores": scores},
        config.cache_params(),
        _compute,
        use_cache=use_cache,
        force_rebuild=force_rebuild,
    )
    if verbose and info["cached"]:
        print(f"[INFO] Loaded cached discriminability: {info['path']}")
    return results


def main(
    trials_path: Path,
    statistics: tuple[str, ...] = ("d",),
    n_boot: int = DEFAULT_N_BOOT,
    confidence: float = DEFAULT_CONFIDENCE,
    seed: int = DEFAULT_SEED,
    n_workers: Optional[int] = None,
    rt_min: float = DEFAULT_RT_MIN,
    rt_max: float = DEFAULT_RT_MAX,
    run_discriminability: bool = True,
    use_cache: bool = True,
    force_rebuild: bool = False,
    out_dir: Optional[Path] = None,
    verbose: bool = True,
) -> dict[str, pd.DataFrame]:
    if sys.platform.startswith("win") and hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")

    config = BootstrapConfig(n_boot=n_boot, confidence=confidence, seed=seed, n_workers=n_workers).validate()
    criteria = TrialQCCriteria(rt_min=rt_min, rt_max=rt_max)

    trials = load_trials(trials_path, criteria)
    trials = filter_min_trials(trials, default_group_cols(trials), criteria, verbose=verbose)
    if trials.empty:
        raise RuntimeError(f"No trials left after cleaning {trials_path}.")
    if verbose:
        print(f"[INFO] {len(trials)} trials, {trials['participant_id'].nunique()} participants")

    out_dir = get_output_dir(base_dir=out_dir)
    outputs: dict[str, pd.DataFrame] = {}

    for statistic in statistics:
        kind = StatisticKind.parse(statistic)
        if verbose:
            print_section_header(f"{kind.value.upper()} scores (R={config.n_boot}, {config.confidence:.0%} BCa)")
        scores = _score_table(trials, kind, config, use_cache, force_rebuild, verbose)
        outputs[f"{kind.value}_scores"] = scores
        save_table(scores, out_dir / f"{kind.value}_scores.csv", verbose=verbose)
        _safe_run(
            f"{kind.value}_observed_check",
            check_observed_scores,
            trials,
            scores,
            kind,
            default_group_cols(trials),
            verbose=verbose,
        )

        failures = failure_report(scores, default_group_cols(trials))
        if not failures.empty:
            save_table(failures, out_dir / f"{kind.value}_scores_failures.csv", verbose=verbose)

        summary = _safe_run(f"{kind.value}_summary", summarize_by_domain, scores)
        if summary is not None:
            outputs[f"{kind.value}_summary"] = summary
            save_table(summary, out_dir / f"{kind.value}_scores_summary.csv", verbose=verbose)
            if verbose:
                print(summary.to_string(index=False))

    if run_discriminability and "d_scores" in outputs:
        if verbose:
            print_section_header("Discriminability of D scores")
        discrim = _discriminability_table(outputs["d_scores"], config, use_cache, force_rebuild, verbose)
        outputs["discriminability"] = discrim
        save_table(discrim, out_dir / "discriminability.csv", verbose=verbose)
        if verbose:
            print(discrim.to_string(index=False))

    return outputs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="BCa bootstrap intervals for D / PI scores.")
    parser.add_argument("trials", type=Path, help="Trial-level CSV (participant, domain, block, rt).")
    parser.add_argument(
        "--statistic",
        choices=[k.value for k in StatisticKind],
        action="append",
        help="Score to estimate; repeat for several (default: d).",
    )
    parser.add_argument("--n-boot", type=int, default=DEFAULT_N_BOOT)
    parser.add_argument("--confidence", type=float, default=DEFAULT_CONFIDENCE)
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED)
    parser.add_argument("--workers", type=int, default=None, help="Worker processes (default: all cores but one).")
    parser.add_argument("--rt-min", type=float, default=DEFAULT_RT_MIN, help="Exclusive RT floor in ms.")
    parser.add_argument("--rt-max", type=float, default=DEFAULT_RT_MAX, help="Inclusive RT ceiling in ms.")
    parser.add_argument("--skip-discriminability", action="store_true")
    parser.add_argument("--no-cache", action="store_true", help="Neither read nor write cached tables.")
    parser.add_argument("--force-rebuild", action="store_true", help="Recompute and overwrite cached tables.")
    parser.add_argument("--out-dir", type=Path, default=None)
    parser.add_argument("--quiet", action="store_true")
    return parser


def cli(argv=None) -> None:
    args = build_parser().parse_args(argv)
    main(
        trials_path=args.trials,
        statistics=tuple(args.statistic or ["d"]),
        n_boot=args.n_boot,
        confidence=args.confidence,
        seed=args.seed,
        n_workers=args.workers,
        rt_min=args.rt_min,
        rt_max=args.rt_max,
        run_discriminability=not args.skip_discriminability,
        use_cache=not args.no_cache,
        force_rebuild=args.force_rebuild,
        out_dir=args.out_dir,
        verbose=not args.quiet,
    )


if __name__ == "__main__":
    cli()
