"""Column summaries for exploratory reporting.

Skewness and kurtosis matter here more than in a least-squares
workflow: a heavily skewed or heavy-tailed outcome is the usual reason
to reach for rank regression in the first place.  Both use the
bias-corrected sample estimators (pandas ``skew`` / ``kurt``), and
kurtosis is reported as *excess* kurtosis (0 for a normal).
"""

from __future__ import annotations

import pandas as pd

from ._validation import DataFrameLike, ensure_pandas_df

_STAT_COLUMNS = [
    "count",
    "missing",
    "mean",
    "sd",
    "min",
    "q1",
    "median",
    "q3",
    "max",
    "skew",
    "kurtosis",
]


def _check_columns(frame: pd.DataFrame, columns: list[str]) -> None:
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise ValueError(f"Columns not found in data: {missing}.")
    non_numeric = [
        c for c in columns if not pd.api.types.is_numeric_dtype(frame[c])
    ]
    if non_numeric:
        raise ValueError(f"Columns must be numeric: {non_numeric}.")


def _summarise(frame: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    sub = frame[columns]
    out = pd.DataFrame(
        {
            "count": sub.count(),
            "missing": sub.isna().sum(),
            "mean": sub.mean(),
            "sd": sub.std(ddof=1),
            "min": sub.min(),
            "q1": sub.quantile(0.25),
            "median": sub.median(),
            "q3": sub.quantile(0.75),
            "max": sub.max(),
            "skew": sub.skew(),
            "kurtosis": sub.kurt(),
        }
    )
    out.index.name = "column"
    return out[_STAT_COLUMNS]


def describe_columns(
    data: DataFrameLike,
    columns: list[str] | None = None,
) -> pd.DataFrame:
    """Summary statistics, one row per column.

    Args:
        data: Input frame (pandas or polars).
        columns: Columns to summarise; defaults to every numeric column.

    Returns:
        DataFrame indexed by column name with count, missing, mean, sd,
        min, q1, median, q3, max, skew and (excess) kurtosis.

    Raises:
        ValueError: If a column is missing or non-numeric, or nothing
            is left to summarise.
    """
    frame = ensure_pandas_df(data, name="data")
    if columns is None:
        columns = [
            c for c in frame.columns if pd.api.types.is_numeric_dtype(frame[c])
        ]
    columns = list(columns)
    if not columns:
        raise ValueError("No numeric columns to describe.")
    _check_columns(frame, columns)
    return _summarise(frame, columns)


def describe_by_group(
    data: DataFrameLike,
    columns: list[str],
    by: str,
) -> pd.DataFrame:
    """Summary statistics per level of a grouping column.

    Returns:
        DataFrame with a ``(by, column)`` MultiIndex, groups in sorted
        order.  Rows whose group value is missing are dropped.
    """
    frame = ensure_pandas_df(data, name="data")
    if by not in frame.columns:
        raise ValueError(f"Grouping column {by!r} not found in data.")
    columns = list(columns)
    if not columns:
        raise ValueError("At least one column is required.")
    if by in columns:
        raise ValueError(f"Grouping column {by!r} cannot also be summarised.")
    _check_columns(frame, columns)

    pieces = {
        level: _summarise(group, columns)
        for level, group in frame.groupby(by, sort=True, dropna=True)
    }
    return pd.concat(pieces, names=[by, "column"])


__all__ = ["describe_by_group", "describe_columns"]
