"""Tests for the display module."""

import numpy as np
import pandas as pd

from rank_bootstrap import (
    bootstrap_t_intervals,
    bootstrap_test_regression,
    compare_models,
    describe_by_group,
    describe_columns,
)
from rank_bootstrap.display import (
    _straddled,
    _truncate,
    print_comparison_table,
    print_descriptive_table,
    print_interval_table,
    print_results_table,
)
from rank_bootstrap.smoothers import FitterRegressor


def _make_data(n=60, seed=0):
    rng = np.random.default_rng(seed)
    df = pd.DataFrame(
        {
            "cement": rng.uniform(100, 500, n),
            "a_very_long_predictor_name_indeed": rng.standard_normal(n),
        }
    )
    df["strength"] = 0.08 * df["cement"] + rng.standard_normal(n) * 3
    return df


class TestTruncate:
    def test_short_name_unchanged(self):
        assert _truncate("abc", 10) == "abc"

    def test_long_name_truncated(self):
        result = _truncate("abcdefghijk", 10)
        assert len(result) == 10
        assert result.endswith("...")


class TestStraddled:
    def test_threshold_inside(self):
        assert _straddled(0.04, 0.06, [0.05, 0.01]) == 0.05

    def test_threshold_outside(self):
        assert _straddled(0.02, 0.04, [0.05, 0.01]) is None


class TestPrintResultsTable:
    def test_layout(self, capsys):
        result = bootstrap_test_regression(
            _make_data(),
            "strength",
            fitter="least_squares",
            n_bootstrap=50,
            random_state=0,
            include_overall=True,
        )
        print_results_table(result)
        out = capsys.readouterr().out
        assert "Bootstrap Significance Test Results" in out
        assert "strength" in out
        assert "least_squares" in out
        assert "Overall (vs. constant" in out
        assert "(***) p < 0.001" in out
        assert "±" in out
        assert "a_very_long_predict..." in out
        for line in out.splitlines():
            assert len(line) <= 80

    def test_custom_title(self, capsys):
        result = bootstrap_test_regression(
            _make_data(), "strength", fitter="least_squares", n_bootstrap=20
        )
        print_results_table(result, title="Concrete")
        assert "Concrete" in capsys.readouterr().out


class TestPrintIntervalTable:
    def test_layout(self, capsys):
        res = bootstrap_t_intervals(
            _make_data(),
            "strength",
            fitter="least_squares",
            n_outer=20,
            n_inner=5,
            random_state=0,
        )
        print_interval_table(res)
        out = capsys.readouterr().out
        assert "Bootstrap-t Confidence Intervals" in out
        assert "[Boot-t 95%]" in out
        assert "20/20" in out
        for line in out.splitlines():
            assert len(line) <= 80


class TestPrintComparisonTable:
    def test_layout(self, capsys):
        res = compare_models(
            _make_data(),
            "strength",
            models=[FitterRegressor("least_squares"), FitterRegressor("rank")],
            n_splits=3,
            random_state=0,
        )
        print_comparison_table(res)
        out = capsys.readouterr().out
        assert "Mean Absolute Error" in out
        assert "k-fold" in out
        assert f"Lowest out-of-sample error: {res.best_model}" in out


class TestPrintDescriptiveTable:
    def test_flat(self, capsys):
        print_descriptive_table(describe_columns(_make_data()))
        out = capsys.readouterr().out
        assert "Descriptive Statistics" in out
        assert "cement" in out
        assert "kurtosis" in out

    def test_grouped(self, capsys):
        df = _make_data()
        df["high"] = (df["strength"] > df["strength"].median()).astype(int)
        print_descriptive_table(describe_by_group(df, ["cement"], by="high"))
        out = capsys.readouterr().out
        assert "high = 0" in out
        assert "high = 1" in out
