"""Input coercion and fail-fast validation.

Every public entry point accepts a pandas DataFrame.  Polars frames are
converted at the boundary so the rest of the package only ever sees
pandas; Polars itself stays an optional dependency.

The checks in :func:`extract_design` run once, before any model is fit.
Missing or non-numeric values are an upstream preprocessing problem,
so they are rejected here with a message naming the offending columns
rather than surfacing later as an opaque linear-algebra error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeAlias

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    import polars as pl

    DataFrameLike: TypeAlias = pd.DataFrame | pl.DataFrame | pl.LazyFrame
else:
    DataFrameLike: TypeAlias = pd.DataFrame

# Polars is optional.
try:
    import polars as pl

    _HAS_POLARS = True
except ImportError:
    _HAS_POLARS = False

_MIN_ROWS = 3


def ensure_pandas_df(obj: DataFrameLike, *, name: str = "data") -> pd.DataFrame:
    """Return *obj* as a :class:`pandas.DataFrame`.

    Args:
        obj: A pandas DataFrame, Polars DataFrame, or Polars LazyFrame.
        name: Label used in the error message.

    Raises:
        TypeError: If *obj* is not a recognised DataFrame type.
    """
    if isinstance(obj, pd.DataFrame):
        return obj

    if _HAS_POLARS:
        if isinstance(obj, pl.LazyFrame):
            return obj.collect().to_pandas()
        if isinstance(obj, pl.DataFrame):
            return obj.to_pandas()

    raise TypeError(
        f"'{name}' must be a pandas DataFrame"
        + (" or Polars DataFrame/LazyFrame" if _HAS_POLARS else "")
        + f", got {type(obj).__name__}."
    )


def resolve_predictors(
    data: pd.DataFrame,
    outcome: str,
    predictors: list[str] | None,
) -> list[str]:
    """Validate the outcome / predictor column contract.

    When *predictors* is ``None`` every column except *outcome* is used.

    Raises:
        ValueError: If a column is missing, the outcome is listed among
            the predictors, a predictor is repeated, or no predictors
            remain.
    """
    if outcome not in data.columns:
        raise ValueError(f"Outcome column '{outcome}' not found in data.")

    if predictors is None:
        predictors = [str(c) for c in data.columns if c != outcome]
    else:
        predictors = list(predictors)

    if outcome in predictors:
        raise ValueError(
            f"Outcome column '{outcome}' must not appear among the predictors."
        )
    missing = [c for c in predictors if c not in data.columns]
    if missing:
        raise ValueError(f"Predictor columns not found in data: {missing}.")
    if len(set(predictors)) != len(predictors):
        raise ValueError("Predictor columns must be unique.")
    if not predictors:
        raise ValueError("At least one predictor column is required.")
    return predictors


def extract_design(
    data: pd.DataFrame,
    outcome: str,
    predictors: list[str],
) -> tuple[np.ndarray, np.ndarray, pd.Index]:
    """Pull ``X``, ``y`` and the row labels out of *data* in one selection.

    Both arrays come from the same ``data[[outcome, *predictors]]``
    frame, so row *i* of ``X`` and element *i* of ``y`` always refer to
    the same observation, labelled ``row_index[i]``.

    Returns:
        ``(X, y, row_index)`` with ``X`` of shape ``(n, p)`` and ``y`` of
        shape ``(n,)``, both ``float64``.

    Raises:
        ValueError: On non-numeric columns, missing / infinite values, or
            fewer than three rows.
    """
    frame = data[[outcome, *predictors]]

    non_numeric = [
        str(c) for c in frame.columns if not pd.api.types.is_numeric_dtype(frame[c])
    ]
    if non_numeric:
        raise ValueError(
            f"Columns must be numeric; non-numeric columns: {non_numeric}."
        )

    values = frame.to_numpy(dtype=float)
    bad = ~np.isfinite(values)
    if bad.any():
        cols = [str(c) for c, flag in zip(frame.columns, bad.any(axis=0)) if flag]
        raise ValueError(
            f"Missing or infinite values in columns {cols}; clean the data "
            f"before testing."
        )
    if values.shape[0] < _MIN_ROWS:
        raise ValueError(
            f"At least {_MIN_ROWS} observations are required, got {values.shape[0]}."
        )

    return values[:, 1:].copy(), values[:, 0].copy(), frame.index
