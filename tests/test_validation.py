"""Tests for input coercion and the column contract."""

import numpy as np
import pandas as pd
import pytest

from rank_bootstrap._validation import (
    ensure_pandas_df,
    extract_design,
    resolve_predictors,
)


def _frame():
    return pd.DataFrame(
        {
            "y": [1.0, 2.0, 3.0, 4.0],
            "a": [0.5, 0.1, 0.9, 0.3],
            "b": [10, 20, 15, 30],
        },
        index=[40, 10, 30, 20],
    )


class TestEnsurePandasDf:
    def test_pandas_passthrough(self):
        df = _frame()
        assert ensure_pandas_df(df) is df

    def test_rejects_invalid_type(self):
        with pytest.raises(TypeError, match="must be a pandas DataFrame"):
            ensure_pandas_df({"a": [1]})

    def test_error_includes_name(self):
        with pytest.raises(TypeError, match="'frame'"):
            ensure_pandas_df([1, 2], name="frame")

    def test_polars_converted(self):
        pl = pytest.importorskip("polars")
        result = ensure_pandas_df(pl.DataFrame({"a": [1, 2, 3]}))
        assert isinstance(result, pd.DataFrame)
        assert result["a"].tolist() == [1, 2, 3]

    def test_polars_lazyframe_collected(self):
        pl = pytest.importorskip("polars")
        result = ensure_pandas_df(pl.DataFrame({"a": [1, 2]}).lazy())
        assert result["a"].tolist() == [1, 2]


class TestResolvePredictors:
    def test_defaults_to_all_other_columns(self):
        assert resolve_predictors(_frame(), "y", None) == ["a", "b"]

    def test_explicit_order_kept(self):
        assert resolve_predictors(_frame(), "y", ["b", "a"]) == ["b", "a"]

    def test_missing_outcome(self):
        with pytest.raises(ValueError, match="Outcome column 'z'"):
            resolve_predictors(_frame(), "z", None)

    def test_outcome_among_predictors(self):
        with pytest.raises(ValueError, match="must not appear"):
            resolve_predictors(_frame(), "y", ["a", "y"])

    def test_missing_predictor(self):
        with pytest.raises(ValueError, match=r"\['c'\]"):
            resolve_predictors(_frame(), "y", ["a", "c"])

    def test_duplicate_predictor(self):
        with pytest.raises(ValueError, match="unique"):
            resolve_predictors(_frame(), "y", ["a", "a"])

    def test_empty_predictors(self):
        with pytest.raises(ValueError, match="At least one predictor"):
            resolve_predictors(_frame(), "y", [])


class TestExtractDesign:
    def test_rows_stay_aligned(self):
        X, y, index = extract_design(_frame(), "y", ["a", "b"])
        assert X.shape == (4, 2)
        np.testing.assert_array_equal(y, [1.0, 2.0, 3.0, 4.0])
        np.testing.assert_array_equal(X[:, 1], [10, 20, 15, 30])
        assert list(index) == [40, 10, 30, 20]

    def test_returns_copies(self):
        df = _frame()
        X, _, _ = extract_design(df, "y", ["a"])
        X[0, 0] = 99.0
        assert df.loc[40, "a"] == 0.5

    def test_non_numeric_column(self):
        df = _frame().assign(c=["u", "v", "w", "x"])
        with pytest.raises(ValueError, match="non-numeric"):
            extract_design(df, "y", ["a", "c"])

    def test_missing_value(self):
        df = _frame()
        df.loc[10, "a"] = np.nan
        with pytest.raises(ValueError, match=r"\['a'\]"):
            extract_design(df, "y", ["a", "b"])

    def test_infinite_outcome(self):
        df = _frame()
        df.loc[30, "y"] = np.inf
        with pytest.raises(ValueError, match="infinite"):
            extract_design(df, "y", ["a"])

    def test_too_few_rows(self):
        with pytest.raises(ValueError, match="At least 3"):
            extract_design(_frame().iloc[:2], "y", ["a"])
