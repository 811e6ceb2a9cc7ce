"""Nested bootstrap-t confidence intervals for regression coefficients.

A percentile interval of bootstrap coefficients is only as good as the
bootstrap distribution's centring and scale.  The bootstrap-t (studentised)
approach instead resamples a *pivot*:

    t_b = (β̂*_b − β̂) / SE*_b

where β̂*_b is the coefficient refit on outer pairs-bootstrap sample b
and SE*_b is that replicate's own standard error.  Robust fitters have
no closed-form SE, so SE*_b comes from an **inner** pairs bootstrap of
the outer sample: ``n_inner`` refits whose coefficient SD is SE*_b.

Interval
~~~~~~~~
With ``se_full`` the SD of the ``n_outer`` outer coefficients and
``q(·)`` the empirical quantiles of ``t_b``:

    [β̂ + se_full · q(α/2),  β̂ + se_full · q(1 − α/2)]

The plain percentile interval of the outer coefficients is reported
alongside for comparison.

Cost
~~~~
Every outer replicate costs ``1 + n_inner`` fits, so the whole
estimator costs ``n_outer × (1 + n_inner)`` fits.  The defaults
(100 outer, 30 inner) are a compute compromise: a small ``n_inner``
makes each SE*_b noisy, which widens the tails of the ``t_b``
distribution; a small ``n_outer`` makes the quantiles themselves
coarse.  Both counts are independently tunable.

Failures
~~~~~~~~
An outer replicate is dropped when its own refit fails, when fewer than
two inner refits succeed, or when any inner SE is zero (a degenerate
resample).  Dropped replicates count against ``max_failed_fraction``
exactly like failed refits in :func:`~rank_bootstrap.bootstrap_test_regression`.
"""

from __future__ import annotations

import logging
import warnings

import numpy as np
from joblib import Parallel, delayed

from ._results import ConfidenceIntervalResult
from ._validation import (
    DataFrameLike,
    ensure_pandas_df,
    extract_design,
    resolve_predictors,
)
from .diagnostics import (
    InsufficientReplicatesError,
    check_failures,
    validate_failed_fraction,
)
from .fitters import FitFailedError, RobustFitter, resolve_fitter
from .resampling import RandomState, bootstrap_indices, spawn_generators

logger = logging.getLogger(__name__)


def _validate_count(value: int, name: str, minimum: int) -> None:
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, np.integer))
        or value < minimum
    ):
        raise ValueError(f"{name} must be an integer >= {minimum}, got {value!r}.")


def _outer_replicate(
    fitter: RobustFitter,
    X: np.ndarray,
    y: np.ndarray,
    n_inner: int,
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray] | None:
    """One outer replicate: ``(coef_b, se_b)`` or ``None`` if dropped."""
    n = X.shape[0]
    idx = bootstrap_indices(n, 1, rng)[0]
    X_b, y_b = X[idx], y[idx]
    try:
        coef_b = fitter.fit(X_b, y_b).coefficients
    except FitFailedError as exc:
        logger.debug("Outer refit failed: %s", exc)
        return None

    inner_idx = bootstrap_indices(n, n_inner, rng)  # (n_inner, n)
    inner = fitter.batch_fit_paired(X_b[inner_idx], y_b[inner_idx])
    inner = inner[np.all(np.isfinite(inner), axis=1)]
    if inner.shape[0] < 2:
        logger.debug("Only %d inner refits succeeded.", inner.shape[0])
        return None

    se_b = np.std(inner, axis=0, ddof=1)
    if np.any(se_b <= 0):
        logger.debug("Zero inner standard error; replicate dropped.")
        return None
    return coef_b, se_b


def bootstrap_t_intervals(
    data: DataFrameLike,
    outcome: str,
    predictors: list[str] | None = None,
    *,
    fitter: str | RobustFitter | None = None,
    n_outer: int = 100,
    n_inner: int = 30,
    confidence_level: float = 0.95,
    random_state: RandomState = None,
    max_failed_fraction: float = 0.1,
    n_jobs: int = 1,
) -> ConfidenceIntervalResult:
    """Bootstrap-t confidence intervals for every slope of the full model.

    Args:
        data: DataFrame with the outcome and predictor columns.
        outcome: Outcome column name.
        predictors: Predictor columns; defaults to all but *outcome*.
        fitter: Fitter name, instance, or ``None`` for the default.
        n_outer: Outer pairs-bootstrap replicates (at least 2).
        n_inner: Inner replicates per outer replicate (at least 2).
        confidence_level: Interval coverage, in ``(0, 1)``.
        random_state: Seed.  Each outer replicate gets its own spawned
            stream, so results do not depend on ``n_jobs``.
        max_failed_fraction: Largest share of dropped outer replicates
            tolerated.
        n_jobs: joblib threads over the outer replicates.

    Returns:
        A :class:`~rank_bootstrap.ConfidenceIntervalResult`.

    Raises:
        ValueError: On invalid parameters or data.
        FitFailedError: If the full model cannot be fit.
        InsufficientReplicatesError: If too many outer replicates are
            dropped, or fewer than two survive.
    """
    _validate_count(n_outer, "n_outer", 2)
    _validate_count(n_inner, "n_inner", 2)
    if not 0.0 < confidence_level < 1.0:
        raise ValueError(
            f"confidence_level must be in (0, 1), got {confidence_level}."
        )
    if isinstance(n_jobs, bool) or not isinstance(n_jobs, int) or n_jobs == 0:
        raise ValueError(f"n_jobs must be a non-zero integer, got {n_jobs!r}.")
    validate_failed_fraction(max_failed_fraction)

    fitter_obj = resolve_fitter(fitter)
    frame = ensure_pandas_df(data, name="data")
    feature_names = resolve_predictors(frame, outcome, predictors)
    X, y, _ = extract_design(frame, outcome, feature_names)

    full = fitter_obj.fit(X, y)
    rngs = spawn_generators(random_state, int(n_outer))

    logger.debug(
        "bootstrap_t_intervals: n=%d, p=%d, fitter=%s, outer=%d, inner=%d",
        X.shape[0],
        X.shape[1],
        fitter_obj.name,
        n_outer,
        n_inner,
    )

    if n_jobs == 1:
        replicates = [
            _outer_replicate(fitter_obj, X, y, int(n_inner), rng) for rng in rngs
        ]
    else:
        replicates = Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(_outer_replicate)(fitter_obj, X, y, int(n_inner), rng)
            for rng in rngs
        )

    kept = [r for r in replicates if r is not None]
    n_failed = len(replicates) - len(kept)
    check_failures(
        n_failed, int(n_outer), max_failed_fraction, label="Confidence intervals"
    )
    if len(kept) < 2:
        raise InsufficientReplicatesError(
            f"Confidence intervals: only {len(kept)} outer replicate survived; "
            f"at least 2 are needed for a standard error."
        )
    if n_failed:
        warnings.warn(
            f"{n_failed} of {n_outer} outer bootstrap replicates were dropped.",
            UserWarning,
            stacklevel=2,
        )

    outer_coefs = np.vstack([c for c, _ in kept])  # (B_eff, p)
    inner_se = np.vstack([s for _, s in kept])  # (B_eff, p)
    t_stats = (outer_coefs - full.coefficients) / inner_se

    alpha = 1.0 - confidence_level
    probs = [alpha / 2, 1 - alpha / 2]
    se_full = np.std(outer_coefs, axis=0, ddof=1)
    q_lo, q_hi = np.quantile(t_stats, probs, axis=0)
    pct_lo, pct_hi = np.quantile(outer_coefs, probs, axis=0)

    return ConfidenceIntervalResult(
        feature_names=list(feature_names),
        target_name=str(outcome),
        model_coefs=full.coefficients,
        intercept=full.intercept,
        standard_errors=se_full,
        lower=full.coefficients + se_full * q_lo,
        upper=full.coefficients + se_full * q_hi,
        percentile_lower=pct_lo,
        percentile_upper=pct_hi,
        outer_coefs=outer_coefs,
        t_statistics=t_stats,
        confidence_level=confidence_level,
        n_outer=int(n_outer),
        n_inner=int(n_inner),
        n_outer_effective=len(kept),
        n_failed=n_failed,
        fitter=fitter_obj.name,
        n_observations=int(X.shape[0]),
        random_state=(
            int(random_state)
            if isinstance(random_state, (int, np.integer))
            else None
        ),
    )
