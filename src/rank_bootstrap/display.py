"""Formatted ASCII tables for bootstrap results.

The tables follow the statsmodels summary layout: an 80-column frame, a
header panel with the model metadata, then one row per predictor (or
per model).  The significance-test table adds a ``±`` sub-row with the
half-width of the Clopper–Pearson interval for each p-value, flagged
``[!]`` when that interval straddles a significance threshold, so the
reader can see at a glance which conclusions still depend on Monte
Carlo noise.
"""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from .diagnostics import recommend_n_bootstrap

if TYPE_CHECKING:
    from ._results import (
        BootstrapTestResult,
        ConfidenceIntervalResult,
        ModelComparisonResult,
    )

_W = 80


def _truncate(name: str, max_len: int) -> str:
    """Truncate *name* to *max_len*, appending ``'...'`` if needed."""
    if len(name) <= max_len:
        return name
    return name[: max_len - 3] + "..."


def _wrap(text: str, width: int = _W, indent: int = 2) -> str:
    """Word-wrap *text*, indenting only the continuation lines."""
    return textwrap.fill(
        text, width=width, initial_indent="", subsequent_indent=" " * indent
    )


def _print_title(title: str) -> None:
    print("=" * _W)
    for line in textwrap.wrap(title, width=_W - 2):
        print(f"{line:^{_W}}")
    print("=" * _W)


def _header_row(
    left_label: str,
    left_value: object,
    right_label: str,
    right_value: object,
) -> None:
    left = f"{left_label:<16}{_truncate(str(left_value), 24):<24}"
    right = f"{right_label:>27} {str(right_value):>12}"
    print(f"{left}{right}")


def _straddled(lo: float, hi: float, thresholds: list[float]) -> float | None:
    """Threshold strictly inside ``(lo, hi)``, if any."""
    for t in thresholds:
        if lo < t < hi:
            return t
    return None


def _print_notes(notes: list[str]) -> None:
    if not notes:
        return
    print("-" * _W)
    print("Notes")
    print("-" * _W)
    for note in notes:
        print(_wrap(f"  [!] {note}", width=_W, indent=6))


def print_results_table(
    results: BootstrapTestResult,
    *,
    title: str = "Bootstrap Significance Test Results",
) -> None:
    """Print per-predictor bootstrap p-values in a statsmodels-style table.

    Args:
        results: Result of :func:`~rank_bootstrap.bootstrap_test_regression`.
        title: Table title.
    """
    _print_title(title)
    _header_row(
        "Dep. Variable:",
        results.target_name,
        "No. Observations:",
        results.n_observations,
    )
    _header_row(
        "Fitter:", results.fitter, "No. Features:", len(results.feature_names)
    )
    _header_row(
        "Noise:", results.noise, "Bootstrap Draws:", f"{results.n_bootstrap:,}"
    )
    seed = "N/A" if results.random_state is None else results.random_state
    _header_row("Intercept:", f"{results.intercept:.4f}", "Seed:", seed)
    print("-" * _W)

    # Feature (22) | Coef (10) | G (14) | p-value (20) | B_eff (14) = 80
    print(f"{'Feature':<22}{'Coef':>10}{'G':>14}{'P>G* (Boot)':>20}{'B_eff':>14}")
    print("-" * _W)

    thresholds = [
        results.p_value_threshold_one,
        results.p_value_threshold_two,
        results.p_value_threshold_three,
    ]
    borderline: list[tuple[str, float, float]] = []

    for i, feat in enumerate(results.feature_names):
        print(
            f"{_truncate(feat, 22):<22}{results.model_coefs[i]:>10.4f}"
            f"{results.observed_statistics[i]:>14.4f}"
            f"{results.p_values[i]:>20}{int(results.n_effective[i]):>14,}"
        )
        lo, hi = results.pvalue_ci[i]
        if np.isfinite(lo) and np.isfinite(hi):
            margin = (hi - lo) / 2
            num = f"{margin:.0e}" if 0 < margin < 0.001 else f"{margin:.3f}"
            t = _straddled(lo, hi, thresholds)
            suffix = "  [!]" if t is not None else "     "
            # 22 + 10 + 14 = 46 columns of prefix; the margin's decimal
            # lines up under the p-value's.
            print(f"{'':<46}{'± ' + num:>15}{suffix}")
            if t is not None:
                borderline.append((feat, float(results.raw_p_values[i]), t))
        if i < len(results.feature_names) - 1:
            print()

    if results.overall is not None:
        ov = results.overall
        print("-" * _W)
        label = f"Overall (vs. constant {ov.baseline:.4g})"
        print(
            f"{label:<32}{ov.observed_statistic:>14.4f}"
            f"{ov.p_value:>20}{ov.n_effective:>14,}"
        )

    notes: list[str] = []
    if borderline:
        alpha = 1 - results.confidence_level
        recs = [(f, recommend_n_bootstrap(p, t, alpha)) for f, p, t in borderline]
        notes.append(
            f"Consider n_bootstrap ≥ {max(b for _, b in recs):,} to resolve "
            f"borderline p-values for: {', '.join(f for f, _ in recs)}."
        )
    failed = [
        f"{f} ({int(k)})"
        for f, k in zip(results.feature_names, results.n_failed)
        if k
    ]
    if failed:
        notes.append(
            f"Failed refits were excluded from B_eff for: {', '.join(failed)}."
        )
    _print_notes(notes)

    print("=" * _W)
    print(
        f"(***) p < {results.p_value_threshold_three}   "
        f"(**) p < {results.p_value_threshold_two}   "
        f"(*) p < {results.p_value_threshold_one}   "
        f"(ns) p >= {results.p_value_threshold_one}"
    )
    print()


def print_interval_table(
    results: ConfidenceIntervalResult,
    *,
    title: str = "Bootstrap-t Confidence Intervals",
) -> None:
    """Print coefficient intervals, bootstrap-t beside percentile."""
    _print_title(title)
    level = f"{results.confidence_level:.0%}"
    _header_row(
        "Dep. Variable:",
        results.target_name,
        "No. Observations:",
        results.n_observations,
    )
    _header_row("Fitter:", results.fitter, "Confidence:", level)
    _header_row(
        "Outer Draws:",
        f"{results.n_outer_effective}/{results.n_outer}",
        "Inner Draws:",
        results.n_inner,
    )
    print("-" * _W)

    # Feature (18) | Coef (10) | SE (10) | boot-t (21) | pct (21) = 80
    boot_hdr = f"[Boot-t {level}]"
    print(
        f"{'Feature':<18}{'Coef':>10}{'SE':>10}{boot_hdr:>21}{'[Percentile]':>21}"
    )
    print("-" * _W)
    for i, feat in enumerate(results.feature_names):
        boot_t = f"{results.lower[i]:.3f}, {results.upper[i]:.3f}"
        pct = f"{results.percentile_lower[i]:.3f}, {results.percentile_upper[i]:.3f}"
        print(
            f"{_truncate(feat, 18):<18}{results.model_coefs[i]:>10.4f}"
            f"{results.standard_errors[i]:>10.4f}{boot_t:>21}{pct:>21}"
        )

    notes: list[str] = []
    if results.n_failed:
        notes.append(
            f"{results.n_failed} outer replicate(s) were dropped after failed "
            f"or degenerate refits."
        )
    _print_notes(notes)
    print("=" * _W)
    print()


def print_comparison_table(
    results: ModelComparisonResult,
    *,
    title: str = "Model Comparison (Mean Absolute Error)",
) -> None:
    """Print cross-validated and in-sample MAE, best model first."""
    _print_title(title)
    _header_row(
        "Dep. Variable:",
        results.target_name,
        "No. Observations:",
        results.n_observations,
    )
    _header_row("Validation:", results.cv_scheme, "Folds:", results.n_splits)
    print("-" * _W)
    print(f"{'Model':<30}{'CV MAE':>25}{'Train MAE':>25}")
    print("-" * _W)
    frame = results.to_frame()
    for name, row in frame.iterrows():
        cv = "N/A" if pd.isna(row["cv_mae"]) else f"{row['cv_mae']:.4f}"
        tr = "N/A" if pd.isna(row["train_mae"]) else f"{row['train_mae']:.4f}"
        print(f"{_truncate(str(name), 30):<30}{cv:>25}{tr:>25}")
    print("=" * _W)
    if np.isfinite(results.cv_mae).any():
        print(f"Lowest out-of-sample error: {results.best_model}")
    print()


def print_descriptive_table(
    summary: pd.DataFrame,
    *,
    title: str = "Descriptive Statistics",
) -> None:
    """Print the output of :func:`~rank_bootstrap.describe_columns`.

    Grouped summaries from :func:`~rank_bootstrap.describe_by_group`
    print one block per group.
    """
    _print_title(title)
    cols = ["count", "mean", "sd", "min", "median", "max", "skew", "kurtosis"]
    header = f"{'Column':<16}" + "".join(f"{c:>8}" for c in cols)

    def _block(frame: pd.DataFrame) -> None:
        print(header)
        print("-" * _W)
        for name, row in frame.iterrows():
            vals = "".join(
                f"{int(row[c]):>8d}" if c == "count" else f"{row[c]:>8.2f}"
                for c in cols
            )
            print(f"{_truncate(str(name), 16):<16}{vals}")

    if isinstance(summary.index, pd.MultiIndex):
        group_name = summary.index.names[0]
        for level in summary.index.get_level_values(0).unique():
            print(f"{group_name} = {level}")
            _block(summary.xs(level, level=0))
            print()
    else:
        _block(summary)
    print("=" * _W)
    print()


__all__ = [
    "print_comparison_table",
    "print_descriptive_table",
    "print_interval_table",
    "print_results_table",
]
