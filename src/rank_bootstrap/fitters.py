"""Robust fitting protocol, concrete fitters, and resolution logic.

The ``RobustFitter`` protocol is the only thing the bootstrap machinery
knows about regression.  A fitter turns ``(X, y)`` into a
:class:`FitResult` — slope coefficients, an intercept, fitted values and
residuals, row-aligned with the data it was given — and knows how to
refit many response vectors (or many resampled datasets) at once.

Three fitters ship with the package:

* :class:`RankFitter` — Jaeckel (1972) rank-based regression with
  Wilcoxon scores, the estimator used in the reference analysis.
* :class:`LeastSquaresFitter` — ordinary least squares.
* :class:`HuberFitter` — Huber M-estimation via statsmodels ``RLM``.

Every concrete fitter is a frozen ``@dataclass``: configuration lives in
its fields, data flows only through method arguments.  The
``resolve_fitter`` helper maps a user-facing string to an instance and
``register_fitter`` adds new ones.

Failure semantics
~~~~~~~~~~~~~~~~~
A fit that cannot be trusted raises :class:`FitFailedError` — a
constant predictor column, a rank-deficient design, too few rows, or an
optimiser that stopped before converging.  The batch methods catch the
error per replicate and return a NaN row instead, so one degenerate
resample never aborts a run of thousands; the caller decides how many
NaN rows it is willing to tolerate.

Zero-column designs
~~~~~~~~~~~~~~~~~~~
Dropping the only predictor (or testing the whole model against a
constant) leaves a design with no columns.  Each fitter then returns a
constant fit at its natural location estimate: the median for the rank
and Huber fitters, the mean for least squares.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import numpy as np
import statsmodels.api as sm
from joblib import Parallel, delayed
from scipy.optimize import minimize
from sklearn.linear_model import LinearRegression
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning as SmConvergenceWarning,
)

from ._config import get_default_fitter

logger = logging.getLogger(__name__)


class FitFailedError(RuntimeError):
    """Raised when a single regression fit cannot produce usable estimates."""


# ------------------------------------------------------------------ #
# Fit result
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class FitResult:
    """Estimates from one regression fit.

    ``fitted_values`` and ``residuals`` are aligned with the rows of the
    design the model was fit on, and ``fitted_values + residuals``
    reproduces the response exactly.
    """

    coefficients: np.ndarray
    """Slope coefficients, shape ``(p,)`` (intercept excluded)."""

    intercept: float
    """Location term."""

    fitted_values: np.ndarray
    """In-sample predictions, shape ``(n,)``."""

    residuals: np.ndarray
    """``y - fitted_values``, shape ``(n,)``."""

    @property
    def abs_residual_sum(self) -> float:
        """``Σ|eᵢ|`` — the residual magnitude compared by the G statistic."""
        return float(np.sum(np.abs(self.residuals)))

    def predict(self, X: np.ndarray) -> np.ndarray:
        """Linear prediction ``β₀ + Xβ`` for new rows."""
        X = np.asarray(X, dtype=float)
        return np.asarray(self.intercept + X @ self.coefficients)


# ------------------------------------------------------------------ #
# RobustFitter protocol
# ------------------------------------------------------------------ #


@runtime_checkable
class RobustFitter(Protocol):
    """Interface every fitting routine must implement.

    Attributes:
        name: Short identifier used in results and report headers
            (e.g. ``"rank"``).
    """

    @property
    def name(self) -> str: ...

    def fit(self, X: np.ndarray, y: np.ndarray) -> FitResult:
        """Fit ``y ~ X`` with an intercept.

        Args:
            X: Design matrix ``(n, p)`` without an intercept column;
                ``p`` may be zero.
            y: Response vector ``(n,)``.

        Raises:
            FitFailedError: If the fit is degenerate or did not converge.
        """
        ...

    def batch_fit_and_score(
        self,
        X: np.ndarray,
        Y_matrix: np.ndarray,
        *,
        n_jobs: int = 1,
    ) -> tuple[np.ndarray, np.ndarray]:
        """Refit a shared design against many responses.

        Args:
            X: Design matrix ``(n, p)``.
            Y_matrix: Responses ``(B, n)``.
            n_jobs: joblib thread count for looped fitters.

        Returns:
            ``(coefs, scores)`` with ``coefs`` of shape ``(B, p)`` and
            ``scores = Σ|residuals|`` of shape ``(B,)``.  Failed
            replicates are NaN.
        """
        ...

    def batch_fit_paired(
        self,
        X_batch: np.ndarray,
        Y_batch: np.ndarray,
        *,
        n_jobs: int = 1,
    ) -> np.ndarray:
        """Refit many resampled datasets where both X and y vary.

        Args:
            X_batch: Design matrices ``(B, n, p)``.
            Y_batch: Responses ``(B, n)``.
            n_jobs: joblib thread count.

        Returns:
            Slope coefficients ``(B, p)``; failed replicates are NaN.
        """
        ...


# ------------------------------------------------------------------ #
# Shared helpers
# ------------------------------------------------------------------ #


def _check_design(X: np.ndarray, y: np.ndarray) -> None:
    """Raise :class:`FitFailedError` for designs no fitter can identify.

    Shape mismatches are caller errors and raise ``ValueError``.
    """
    if X.ndim != 2 or y.ndim != 1 or X.shape[0] != y.shape[0]:
        raise ValueError(
            f"X must be (n, p) and y must be (n,); got {X.shape} and {y.shape}."
        )
    n, p = X.shape
    if n < p + 2:
        raise FitFailedError(
            f"{n} observations cannot identify {p} slopes plus an intercept."
        )
    if p == 0:
        return
    constant = np.flatnonzero(np.ptp(X, axis=0) == 0)
    if constant.size:
        raise FitFailedError(
            f"Constant predictor column(s) at position(s) {constant.tolist()}."
        )
    if np.linalg.matrix_rank(X - X.mean(axis=0)) < p:
        raise FitFailedError("Predictor columns are linearly dependent.")


def _constant_fit(y: np.ndarray, location: Callable[[np.ndarray], Any]) -> FitResult:
    """Intercept-only fit at a location estimate of *y*."""
    centre = float(location(y))
    fitted = np.full(y.shape[0], centre)
    return FitResult(
        coefficients=np.empty(0),
        intercept=centre,
        fitted_values=fitted,
        residuals=y - fitted,
    )


def _run_batch(fit_one: Callable[[int], Any], n_replicates: int, n_jobs: int) -> list:
    """Evaluate ``fit_one(b)`` for every replicate, optionally on threads.

    The sequential path avoids joblib overhead for ``n_jobs=1``.  The
    solvers underneath (LAPACK, scipy's optimisers, statsmodels IRLS)
    spend most of their time in compiled code, so thread-based workers
    overlap without copying the data.
    """
    if n_jobs == 1:
        return [fit_one(b) for b in range(n_replicates)]
    return list(
        Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(fit_one)(b) for b in range(n_replicates)
        )
    )


class _LoopBatchMixin:
    """Generic batch methods expressed in terms of ``self.fit``.

    Fitters without a closed-form batch solution refit each replicate
    independently.  A :class:`FitFailedError` in one replicate yields a
    NaN row and a DEBUG log line, nothing more.
    """

    def batch_fit_and_score(
        self,
        X: np.ndarray,
        Y_matrix: np.ndarray,
        *,
        n_jobs: int = 1,
    ) -> tuple[np.ndarray, np.ndarray]:
        X = np.asarray(X, dtype=float)
        Y_matrix = np.atleast_2d(np.asarray(Y_matrix, dtype=float))
        n_rep = Y_matrix.shape[0]
        p = X.shape[1]

        def _fit_one(b: int) -> tuple[np.ndarray, float]:
            try:
                res = self.fit(X, Y_matrix[b])  # type: ignore[attr-defined]
            except FitFailedError as exc:
                logger.debug("Replicate %d failed: %s", b, exc)
                return np.full(p, np.nan), np.nan
            return res.coefficients, res.abs_residual_sum

        out = _run_batch(_fit_one, n_rep, n_jobs)
        coefs = np.empty((n_rep, p))
        scores = np.empty(n_rep)
        for b, (c, s) in enumerate(out):
            coefs[b] = c
            scores[b] = s
        return coefs, scores

    def batch_fit_paired(
        self,
        X_batch: np.ndarray,
        Y_batch: np.ndarray,
        *,
        n_jobs: int = 1,
    ) -> np.ndarray:
        X_batch = np.asarray(X_batch, dtype=float)
        Y_batch = np.asarray(Y_batch, dtype=float)
        n_rep, _n, p = X_batch.shape

        def _fit_one(b: int) -> np.ndarray:
            try:
                res = self.fit(X_batch[b], Y_batch[b])  # type: ignore[attr-defined]
                return res.coefficients
            except FitFailedError as exc:
                logger.debug("Paired replicate %d failed: %s", b, exc)
                return np.full(p, np.nan)

        return np.asarray(np.vstack(_run_batch(_fit_one, n_rep, n_jobs))).reshape(
            n_rep, p
        )


# ------------------------------------------------------------------ #
# Rank-based regression (Jaeckel 1972)
# ------------------------------------------------------------------ #
#
# Rank regression replaces the squared-error criterion with Jaeckel's
# dispersion
#
#   D(β) = Σᵢ a(R(eᵢ)) · eᵢ,      eᵢ = yᵢ − xᵢ'β
#
# where R(eᵢ) is the rank of the i-th residual and a(·) is a score
# function.  With Wilcoxon scores
#
#   a(i) = √12 · (i / (n + 1) − ½)
#
# D is a weighted sum of ordered residuals: D(β) = Σ a(i) · e₍ᵢ₎.  It is
# convex, piecewise linear and invariant to adding a constant to the
# residuals (the scores sum to zero), so it identifies the slopes only.
# The intercept is estimated afterwards as the median of y − Xβ̂.
#
# Because D has no gradient at its kinks, the slopes are found with
# Powell's derivative-free direction-set search started at the OLS
# solution, on standardised predictors so that one tolerance suits
# columns measured in very different units.
#
# Reference: Jaeckel, L. A. (1972). Estimating regression coefficients
# by minimizing the dispersion of the residuals. *Annals of
# Mathematical Statistics*, 43(5), 1449–1458.


def wilcoxon_scores(n: int) -> np.ndarray:
    """Wilcoxon rank scores ``a(i) = √12 (i/(n+1) − ½)`` for ``i = 1..n``."""
    i = np.arange(1, n + 1, dtype=float)
    return np.asarray(np.sqrt(12.0) * (i / (n + 1) - 0.5))


def jaeckel_dispersion(residuals: np.ndarray, scores: np.ndarray) -> float:
    """Jaeckel's dispersion of *residuals* under pre-computed *scores*."""
    return float(scores @ np.sort(residuals))


@dataclass(frozen=True)
class RankFitter(_LoopBatchMixin):
    """Rank-based (Wilcoxon-score) regression.

    Args:
        max_iter: Iteration cap for the Powell search.  Hitting it
            raises :class:`FitFailedError`.
        xtol: Line-search tolerance on the standardised slope scale.
        ftol: Relative tolerance on the dispersion.
    """

    max_iter: int = 5_000
    xtol: float = 1e-6
    ftol: float = 1e-10

    @property
    def name(self) -> str:
        return "rank"

    def fit(self, X: np.ndarray, y: np.ndarray) -> FitResult:
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        if X.ndim == 2 and X.shape[1] == 0:
            return _constant_fit(y, np.median)
        _check_design(X, y)

        centre = X.mean(axis=0)
        spread = X.std(axis=0)
        Z = (X - centre) / spread
        scores = wilcoxon_scores(y.shape[0])

        def _dispersion(beta: np.ndarray) -> float:
            return jaeckel_dispersion(y - Z @ beta, scores)

        start, *_ = np.linalg.lstsq(Z, y - y.mean(), rcond=None)
        opt = minimize(
            _dispersion,
            start,
            method="Powell",
            options={"maxiter": self.max_iter, "xtol": self.xtol, "ftol": self.ftol},
        )
        if not opt.success or not np.all(np.isfinite(opt.x)):
            raise FitFailedError(f"Rank regression did not converge: {opt.message}")

        slopes = np.atleast_1d(opt.x) / spread
        intercept = float(np.median(y - X @ slopes))
        fitted = intercept + X @ slopes
        return FitResult(
            coefficients=slopes,
            intercept=intercept,
            fitted_values=fitted,
            residuals=y - fitted,
        )


# ------------------------------------------------------------------ #
# Ordinary least squares
# ------------------------------------------------------------------ #
#
# The OLS pseudoinverse pinv([1 X]) depends only on X, which the
# significance test holds fixed across all B bootstrap responses.  One
# (p+1, n) @ (n, B) product therefore replaces B separate solves.


@dataclass(frozen=True)
class LeastSquaresFitter(_LoopBatchMixin):
    """Ordinary least squares via sklearn ``LinearRegression``."""

    @property
    def name(self) -> str:
        return "least_squares"

    def fit(self, X: np.ndarray, y: np.ndarray) -> FitResult:
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        if X.ndim == 2 and X.shape[1] == 0:
            return _constant_fit(y, np.mean)
        _check_design(X, y)
        model = LinearRegression()
        model.fit(X, y)
        fitted = np.asarray(model.predict(X)).ravel()
        return FitResult(
            coefficients=np.ravel(model.coef_),
            intercept=float(model.intercept_),
            fitted_values=fitted,
            residuals=y - fitted,
        )

    def batch_fit_and_score(
        self,
        X: np.ndarray,
        Y_matrix: np.ndarray,
        *,
        n_jobs: int = 1,  # noqa: ARG002
    ) -> tuple[np.ndarray, np.ndarray]:
        """Vectorised OLS over all responses; *n_jobs* has no effect."""
        X = np.asarray(X, dtype=float)
        Y_matrix = np.atleast_2d(np.asarray(Y_matrix, dtype=float))
        n_rep = Y_matrix.shape[0]
        p = X.shape[1]
        try:
            _check_design(X, Y_matrix[0])
        except FitFailedError as exc:
            logger.debug("Shared design is degenerate: %s", exc)
            return np.full((n_rep, p), np.nan), np.full(n_rep, np.nan)

        X_aug = np.column_stack([np.ones(X.shape[0]), X])  # (n, p+1)
        params = (np.linalg.pinv(X_aug) @ Y_matrix.T).T  # (B, p+1)
        fitted = params @ X_aug.T  # (B, n)
        scores = np.sum(np.abs(Y_matrix - fitted), axis=1)

        bad = ~np.isfinite(scores)
        coefs = params[:, 1:].copy()
        coefs[bad] = np.nan
        scores[bad] = np.nan
        return coefs, scores


# ------------------------------------------------------------------ #
# Huber M-estimation
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class HuberFitter(_LoopBatchMixin):
    """Huber M-estimator via statsmodels ``RLM`` (IRLS).

    Args:
        t: Huber tuning constant; residuals beyond ``t`` robust scale
            units are down-weighted.
        max_iter: IRLS iteration cap.  Reaching it unconverged raises
            :class:`FitFailedError`.
        tol: IRLS convergence tolerance.
    """

    t: float = 1.345
    max_iter: int = 100
    tol: float = 1e-8

    @property
    def name(self) -> str:
        return "huber"

    def fit(self, X: np.ndarray, y: np.ndarray) -> FitResult:
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        if X.ndim == 2 and X.shape[1] == 0:
            return _constant_fit(y, np.median)
        _check_design(X, y)

        X_sm = sm.add_constant(X, has_constant="add")
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", SmConvergenceWarning)
                warnings.simplefilter("ignore", RuntimeWarning)
                res = sm.RLM(y, X_sm, M=sm.robust.norms.HuberT(t=self.t)).fit(
                    maxiter=self.max_iter, tol=self.tol
                )
        except (np.linalg.LinAlgError, ValueError, ZeroDivisionError) as exc:
            raise FitFailedError(f"Huber IRLS failed: {exc}") from exc

        params = np.asarray(res.params, dtype=float)
        if not np.all(np.isfinite(params)):
            raise FitFailedError("Huber IRLS produced non-finite estimates.")
        # statsmodels stops at max_iter whether or not the last step met tol
        history = res.fit_history
        deviance = history["deviance"]
        if (
            history["iteration"] >= self.max_iter
            and abs(deviance[-1] - deviance[-2]) > self.tol
        ):
            raise FitFailedError(
                f"Huber IRLS did not converge within {self.max_iter} iterations."
            )

        fitted = X_sm @ params
        return FitResult(
            coefficients=params[1:],
            intercept=float(params[0]),
            fitted_values=fitted,
            residuals=y - fitted,
        )


# ------------------------------------------------------------------ #
# Registry and resolution
# ------------------------------------------------------------------ #

_FITTERS: dict[str, type] = {}
"""Registry mapping fitter name strings to concrete classes."""


def register_fitter(name: str, cls: type) -> None:
    """Register a concrete ``RobustFitter`` class under *name*.

    Args:
        name: Lookup key (e.g. ``"rank"``), stored lower-cased.
        cls: A class implementing the ``RobustFitter`` protocol whose
            constructor takes no required arguments.

    Raises:
        TypeError: If *cls* cannot be instantiated or does not satisfy
            the protocol.
    """
    try:
        instance = cls()
    except Exception:  # noqa: BLE001
        msg = f"{cls!r} could not be instantiated for protocol check."
        raise TypeError(msg) from None
    if not isinstance(instance, RobustFitter):
        msg = f"{cls!r} does not implement the RobustFitter protocol."
        raise TypeError(msg)
    _FITTERS[name.strip().lower()] = cls


def resolve_fitter(fitter: str | RobustFitter | None = None) -> RobustFitter:
    """Resolve a fitter name or instance to a ``RobustFitter``.

    Instances are returned unchanged, so pre-configured fitters (for
    example ``RankFitter(max_iter=500)``) pass straight through.

    Args:
        fitter: Registered name, instance, or ``None`` for the configured
            default (see :func:`~rank_bootstrap.get_default_fitter`).

    Raises:
        ValueError: If *fitter* is an unknown name.
        TypeError: If *fitter* is neither a string nor a ``RobustFitter``.
    """
    if fitter is None:
        fitter = get_default_fitter()
    if isinstance(fitter, str):
        cls = _FITTERS.get(fitter.strip().lower())
        if cls is None:
            valid = ", ".join(sorted(_FITTERS))
            raise ValueError(f"Unknown fitter '{fitter}'. Choose from: {valid}.")
        return cls()  # type: ignore[no-any-return]
    if isinstance(fitter, RobustFitter):
        return fitter
    raise TypeError(
        f"fitter must be a name or a RobustFitter instance, got "
        f"{type(fitter).__name__}."
    )


register_fitter("rank", RankFitter)
register_fitter("least_squares", LeastSquaresFitter)
register_fitter("huber", HuberFitter)
