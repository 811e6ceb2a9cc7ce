"""Typed result objects.

Frozen dataclasses that provide:

* **Attribute access** — ``result.fitter``, ``result.raw_p_values``.
* **Dict-like access** — ``result["fitter"]``, ``result.get("key")``,
  ``"key" in result``.
* **Serialisation** — ``.to_dict()`` returns a plain ``dict[str, Any]``
  with NumPy and pandas types converted to native Python.
* **Tabular view** — ``.to_frame()`` returns one row per predictor (or
  per model) as a ``pandas.DataFrame``.

Three result types mirror the three analyses:

* :class:`BootstrapTestResult` — per-predictor significance tests,
  optionally with an :class:`OverallTestResult` block.
* :class:`ConfidenceIntervalResult` — nested bootstrap-t intervals.
* :class:`ModelComparisonResult` — cross-validated MAE per model.

All are frozen: a result is a snapshot of a completed computation.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, ClassVar

import numpy as np
import pandas as pd

# ------------------------------------------------------------------ #
# Serialisation helper
# ------------------------------------------------------------------ #


def _numpy_to_python(obj: Any) -> Any:
    """Recursively convert NumPy / pandas values to Python-native types."""
    if isinstance(obj, _DictAccessMixin):
        return obj.to_dict()
    if isinstance(obj, (np.ndarray, pd.Index)):
        return [_numpy_to_python(v) for v in obj.tolist()]
    if isinstance(obj, (np.integer, np.bool_)):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _numpy_to_python(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        converted = [_numpy_to_python(item) for item in obj]
        return type(obj)(converted)
    return obj


# ------------------------------------------------------------------ #
# Dict-compatibility mixin
# ------------------------------------------------------------------ #


class _DictAccessMixin:
    """Dict-like access convenience for result dataclasses.

    1. ``result["key"]``      — raises ``KeyError`` on miss
    2. ``result.get(key, d)`` — returns *d* on miss
    3. ``"key" in result``    — membership test
    """

    # Fields to exclude from to_dict() serialisation.
    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset()

    def __getitem__(self, key: str) -> Any:
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self, key, default)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return hasattr(self, key)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        result: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            if f.name in self._EXCLUDE_FROM_DICT:
                continue
            result[f.name] = _numpy_to_python(getattr(self, f.name))
        return result


# ------------------------------------------------------------------ #
# Significance test
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class OverallTestResult(_DictAccessMixin):
    """Full model versus the constant (intercept-only) baseline."""

    observed_statistic: float
    """Observed G against the constant fit."""

    bootstrap_statistics: np.ndarray
    """Null draws ``(B,)``; NaN marks a failed replicate."""

    raw_p_value: float
    """Empirical p-value."""

    p_value: str
    """Formatted p-value with significance marker."""

    exceed_count: int
    """Replicates with ``G* ≥ G``."""

    n_effective: int
    """Successful replicates."""

    n_failed: int
    """Failed replicates."""

    monte_carlo_se: float
    """Binomial SE of the p-value."""

    pvalue_ci: tuple[float, float]
    """Clopper–Pearson interval for the p-value."""

    baseline: float
    """Constant the baseline model predicts (median or mean of y)."""


@dataclass(frozen=True)
class BootstrapTestResult(_DictAccessMixin):
    """Result of :func:`~rank_bootstrap.bootstrap_test_regression`.

    Per-predictor arrays are ordered like ``feature_names``.
    """

    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset({"bootstrap_statistics"})

    # ---- Observed fit ----------------------------------------------
    feature_names: list[str]
    """Predictor column names, in design order."""

    target_name: str
    """Outcome column name."""

    model_coefs: list[float]
    """Full-model slope coefficients."""

    intercept: float
    """Full-model intercept."""

    # ---- Statistics ------------------------------------------------
    observed_statistics: np.ndarray
    """Observed G per predictor, shape ``(p,)``."""

    bootstrap_statistics: np.ndarray
    """Null draws ``(B, p)``; NaN marks a failed replicate."""

    # ---- P-values --------------------------------------------------
    raw_p_values: np.ndarray
    """Empirical p-values ``(p,)``."""

    p_values: list[str]
    """Formatted p-values with significance markers."""

    exceed_counts: np.ndarray
    """Replicates with ``G* ≥ G`` per predictor."""

    n_effective: np.ndarray
    """Successful replicates per predictor."""

    n_failed: np.ndarray
    """Failed replicates per predictor."""

    monte_carlo_se: np.ndarray
    """Binomial SE of each p-value."""

    pvalue_ci: np.ndarray
    """Clopper–Pearson intervals ``(p, 2)``."""

    overall: OverallTestResult | None
    """Whole-model test, when requested."""

    # ---- Thresholds ------------------------------------------------
    p_value_threshold_one: float
    p_value_threshold_two: float
    p_value_threshold_three: float
    confidence_level: float
    """Coverage of ``pvalue_ci``."""

    # ---- Metadata --------------------------------------------------
    fitter: str
    """Name of the fitting routine."""

    noise: str
    """``"resampled"`` or ``"parametric"``."""

    n_bootstrap: int
    """Replicates requested per hypothesis."""

    n_observations: int
    """Rows in the analysed data."""

    random_state: int | None
    """Integer seed, when one was given."""

    row_index: pd.Index
    """Row labels of the analysed data, in fitting order."""

    def to_frame(self) -> pd.DataFrame:
        """One row per predictor: coefficient, G, p-value and precision."""
        frame = pd.DataFrame(
            {
                "coef": self.model_coefs,
                "G": self.observed_statistics,
                "p_value": self.raw_p_values,
                "mc_se": self.monte_carlo_se,
                "ci_lower": self.pvalue_ci[:, 0],
                "ci_upper": self.pvalue_ci[:, 1],
                "n_effective": self.n_effective,
            },
            index=pd.Index(self.feature_names, name="feature"),
        )
        return frame


# ------------------------------------------------------------------ #
# Confidence intervals
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class ConfidenceIntervalResult(_DictAccessMixin):
    """Result of :func:`~rank_bootstrap.bootstrap_t_intervals`."""

    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset(
        {"outer_coefs", "t_statistics"}
    )

    feature_names: list[str]
    target_name: str
    model_coefs: np.ndarray
    """Full-model slopes ``(p,)``."""

    intercept: float

    standard_errors: np.ndarray
    """SD of the outer bootstrap coefficients ``(p,)``."""

    lower: np.ndarray
    """Bootstrap-t lower bounds ``(p,)``."""

    upper: np.ndarray
    """Bootstrap-t upper bounds ``(p,)``."""

    percentile_lower: np.ndarray
    """Plain percentile lower bounds ``(p,)``."""

    percentile_upper: np.ndarray
    """Plain percentile upper bounds ``(p,)``."""

    outer_coefs: np.ndarray
    """Outer replicate coefficients ``(B_outer_eff, p)``."""

    t_statistics: np.ndarray
    """Pivotal statistics ``(B_outer_eff, p)``."""

    confidence_level: float
    n_outer: int
    n_inner: int
    n_outer_effective: int
    n_failed: int
    fitter: str
    n_observations: int
    random_state: int | None

    def to_frame(self) -> pd.DataFrame:
        """One row per predictor."""
        return pd.DataFrame(
            {
                "coef": self.model_coefs,
                "se": self.standard_errors,
                "lower": self.lower,
                "upper": self.upper,
                "pct_lower": self.percentile_lower,
                "pct_upper": self.percentile_upper,
            },
            index=pd.Index(self.feature_names, name="feature"),
        )


# ------------------------------------------------------------------ #
# Model comparison
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class ModelComparisonResult(_DictAccessMixin):
    """Result of :func:`~rank_bootstrap.compare_models`."""

    _EXCLUDE_FROM_DICT: ClassVar[frozenset[str]] = frozenset({"cv_predictions"})

    model_names: list[str]
    cv_mae: np.ndarray
    """Cross-validated mean absolute error per model."""

    train_mae: np.ndarray
    """In-sample mean absolute error per model."""

    cv_predictions: np.ndarray
    """Out-of-fold predictions ``(m, n)``."""

    cv_scheme: str
    """``"leave-one-out"`` or ``"k-fold"``."""

    n_splits: int
    feature_names: list[str]
    target_name: str
    n_observations: int

    @property
    def best_model(self) -> str:
        """Name of the model with the lowest cross-validated MAE."""
        return self.model_names[int(np.nanargmin(self.cv_mae))]

    def to_frame(self) -> pd.DataFrame:
        """One row per model, sorted by cross-validated MAE."""
        frame = pd.DataFrame(
            {"cv_mae": self.cv_mae, "train_mae": self.train_mae},
            index=pd.Index(self.model_names, name="model"),
        )
        return frame.sort_values("cv_mae")
