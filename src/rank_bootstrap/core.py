"""Residual-bootstrap significance tests for robust regression.

The question each test answers is: *does predictor X_j improve the fit
beyond what the other predictors already explain?*  Classical answers
rely on the sampling distribution of β̂_j, which for rank-based or
M-estimators is only known asymptotically.  The bootstrap replaces
that distributional assumption with simulation:

    Under H₀: "X_j has no effect beyond X₋ⱼ", the reduced model
    Y ~ X₋ⱼ is correct.  Its fitted values plus resampled residuals
    are therefore plausible realisations of Y under H₀.  Refitting the
    full model on each realisation shows how much the full model
    "improves" on the reduced one by chance alone.

The improvement is measured by the discrepancy statistic
``G = max(0, Σ|e_reduced| − Σ|e_full|)`` (see ``pvalues.py``), and the
p-value is the share of bootstrap replicates whose G* reaches the
observed G.

Procedure (per predictor j)
~~~~~~~~~~~~~~~~~~~~~~~~~~~
1. Fit the full model Y ~ X and the reduced model Y ~ X₋ⱼ.
2. G_j = max(0, Σ|e₋ⱼ| − Σ|e_full|).
3. For b = 1..B: Y*_b = ŷ₋ⱼ + ε*_b, where ε*_b is a with-replacement
   draw from e₋ⱼ (``noise="resampled"``) or N(0, SD(e₋ⱼ)²) noise
   (``noise="parametric"``).  Refit Y*_b ~ X and record
   G*_b = max(0, Σ|e₋ⱼ| − Σ|e*_b|).
4. p_j = #{G*_b ≥ G_j} / B_eff.

With ``include_overall=True`` the same body runs once more with a
reduced model that keeps *no* predictors — a constant fit at the
outcome's median (rank / Huber) or mean (least squares) — giving a
test of the whole model.

Failed refits
~~~~~~~~~~~~~
A replicate whose refit raises ``FitFailedError`` is excluded, B shrinks
to B_eff and a ``UserWarning`` lists the affected hypotheses.  Beyond
``max_failed_fraction`` the test raises
``InsufficientReplicatesError`` instead of reporting a p-value built
from too few draws.

References:
    Jaeckel, L. A. (1972). Estimating regression coefficients by
    minimizing the dispersion of the residuals. *Ann. Math. Statist.*,
    43(5), 1449–1458.

    Efron, B. & Tibshirani, R. J. (1993). *An Introduction to the
    Bootstrap*, ch. 16.  Chapman & Hall.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Callable

import numpy as np

from ._results import BootstrapTestResult, OverallTestResult
from ._validation import DataFrameLike
from .diagnostics import compute_monte_carlo_se, compute_pvalue_ci
from .engine import BootstrapEngine, HypothesisOutcome
from .fitters import RobustFitter
from .pvalues import format_p_value
from .resampling import RandomState

logger = logging.getLogger(__name__)


def bootstrap_test_regression(
    data: DataFrameLike,
    outcome: str,
    predictors: list[str] | None = None,
    *,
    fitter: str | RobustFitter | None = None,
    n_bootstrap: int = 5_000,
    noise: str = "resampled",
    random_state: RandomState = None,
    include_overall: bool = False,
    max_failed_fraction: float = 0.1,
    n_jobs: int = 1,
    precision: int = 3,
    p_value_threshold_one: float = 0.05,
    p_value_threshold_two: float = 0.01,
    p_value_threshold_three: float = 0.001,
    confidence_level: float = 0.95,
) -> BootstrapTestResult:
    """Bootstrap significance test for every predictor of a robust regression.

    Args:
        data: DataFrame holding the outcome and predictor columns.
            Polars frames are accepted.
        outcome: Name of the outcome column.
        predictors: Predictor column names; defaults to every column
            except *outcome*.
        fitter: ``"rank"``, ``"least_squares"``, ``"huber"``, a
            ``RobustFitter`` instance, or ``None`` for the configured
            default.
        n_bootstrap: Replicates per hypothesis (B).  Monte Carlo error
            in each p-value shrinks as ``1/√B``; runtime grows linearly.
        noise: ``"resampled"`` (residual bootstrap) or ``"parametric"``
            (Gaussian noise).
        random_state: Seed for reproducibility.  With a fixed seed the
            p-values are bit-identical across runs and ``n_jobs``
            settings.
        include_overall: Also test the full model against a constant
            baseline.
        max_failed_fraction: Largest share of failed refits tolerated
            per hypothesis.
        n_jobs: joblib threads for the replicate refits (``-1`` = all
            cores).
        precision: Decimal places in the formatted p-values.
        p_value_threshold_one: First significance level.
        p_value_threshold_two: Second significance level.
        p_value_threshold_three: Third significance level.
        confidence_level: Coverage of the Clopper–Pearson p-value CIs.

    Returns:
        A :class:`~rank_bootstrap.BootstrapTestResult`.

    Raises:
        ValueError: On invalid parameters or input data.
        TypeError: If *data* is not a DataFrame.
        FitFailedError: If the full or a reduced model cannot be fit on
            the observed data.
        InsufficientReplicatesError: If too many refits fail.
    """
    if not (
        0.0 < p_value_threshold_three
        <= p_value_threshold_two
        <= p_value_threshold_one
        < 1.0
    ):
        raise ValueError(
            "p-value thresholds must satisfy 0 < three <= two <= one < 1, got "
            f"{p_value_threshold_one}, {p_value_threshold_two}, "
            f"{p_value_threshold_three}."
        )
    if not 0.0 < confidence_level < 1.0:
        raise ValueError(
            f"confidence_level must be in (0, 1), got {confidence_level}."
        )

    engine = BootstrapEngine(
        data,
        outcome,
        predictors,
        fitter=fitter,
        n_bootstrap=n_bootstrap,
        noise=noise,
        random_state=random_state,
        max_failed_fraction=max_failed_fraction,
        n_jobs=n_jobs,
    )

    outcomes = [engine.test_hypothesis(h) for h in engine.hypotheses]
    overall_outcome = (
        engine.test_hypothesis(engine.overall) if include_overall else None
    )

    _warn_failures(outcomes + ([overall_outcome] if overall_outcome else []))

    def _fmt(p: float) -> str:
        return format_p_value(
            p,
            precision,
            p_value_threshold_one,
            p_value_threshold_two,
            p_value_threshold_three,
        )

    raw_p = np.array([o.p_value for o in outcomes])
    counts = np.array([o.exceed_count for o in outcomes])
    n_eff = np.array([o.n_effective for o in outcomes])

    overall = None
    if overall_outcome is not None:
        overall = _package_overall(overall_outcome, _fmt, confidence_level)

    logger.debug("Raw p-values: %s", dict(zip(engine.feature_names, raw_p.tolist())))

    return BootstrapTestResult(
        feature_names=list(engine.feature_names),
        target_name=engine.target_name,
        model_coefs=engine.full_fit.coefficients.tolist(),
        intercept=engine.full_fit.intercept,
        observed_statistics=np.array([o.observed_statistic for o in outcomes]),
        bootstrap_statistics=np.column_stack(
            [o.bootstrap_statistics for o in outcomes]
        ),
        raw_p_values=raw_p,
        p_values=[_fmt(p) for p in raw_p],
        exceed_counts=counts,
        n_effective=n_eff,
        n_failed=np.array([o.n_failed for o in outcomes]),
        monte_carlo_se=compute_monte_carlo_se(raw_p, n_eff),
        pvalue_ci=compute_pvalue_ci(counts, n_eff, confidence_level),
        overall=overall,
        p_value_threshold_one=p_value_threshold_one,
        p_value_threshold_two=p_value_threshold_two,
        p_value_threshold_three=p_value_threshold_three,
        confidence_level=confidence_level,
        fitter=engine.fitter.name,
        noise=engine.noise.name,
        n_bootstrap=engine.n_bootstrap,
        n_observations=int(engine.X.shape[0]),
        random_state=(
            int(random_state)
            if isinstance(random_state, (int, np.integer))
            else None
        ),
        row_index=engine.row_index,
    )


def _package_overall(
    outcome: HypothesisOutcome,
    fmt: Callable[[float], str],
    confidence_level: float,
) -> OverallTestResult:
    """Build the overall-test block from its hypothesis outcome."""
    ci = compute_pvalue_ci(
        np.array([outcome.exceed_count]),
        np.array([outcome.n_effective]),
        confidence_level,
    )[0]
    se = compute_monte_carlo_se(
        np.array([outcome.p_value]), np.array([outcome.n_effective])
    )[0]
    return OverallTestResult(
        observed_statistic=outcome.observed_statistic,
        bootstrap_statistics=outcome.bootstrap_statistics,
        raw_p_value=outcome.p_value,
        p_value=fmt(outcome.p_value),
        exceed_count=outcome.exceed_count,
        n_effective=outcome.n_effective,
        n_failed=outcome.n_failed,
        monte_carlo_se=float(se),
        pvalue_ci=(float(ci[0]), float(ci[1])),
        baseline=outcome.reduced.intercept,
    )


def _warn_failures(outcomes: list[HypothesisOutcome]) -> None:
    """Surface excluded replicates to the user."""
    failed = [
        f"{o.hypothesis.label} ({o.n_failed}/{o.n_failed + o.n_effective})"
        for o in outcomes
        if o.n_failed
    ]
    if failed:
        warnings.warn(
            "Some bootstrap refits failed and were excluded; effective B is "
            f"reduced for: {', '.join(failed)}.",
            UserWarning,
            stacklevel=3,
        )
