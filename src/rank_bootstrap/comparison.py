"""Out-of-sample mean-absolute-error comparison of regressors.

Significance tests say whether a predictor matters *within* one model
family.  Choosing between families (a linear robust fit, a kernel
smoother, an additive spline model) is a question of predictive
accuracy, answered here by cross-validated MAE:

    MAE = (1/n) Σ |yᵢ − ŷ₋ᵢ|

where ŷ₋ᵢ is the prediction for row i from a model fit without the
fold containing i.  Leave-one-out is the default (every fold is a
single row); ``n_splits`` switches to shuffled k-fold, which is far
cheaper for the kernel smoother whose bandwidth search reruns per fold.

MAE rather than squared error keeps the comparison on the same
absolute-residual footing as the G statistic.
"""

from __future__ import annotations

import copy
import logging
import warnings

import numpy as np
from joblib import Parallel, delayed
from sklearn.metrics import mean_absolute_error
from sklearn.model_selection import KFold, LeaveOneOut

from ._results import ModelComparisonResult
from ._validation import (
    DataFrameLike,
    ensure_pandas_df,
    extract_design,
    resolve_predictors,
)
from .fitters import FitFailedError
from .resampling import RandomState, make_seed_sequence
from .smoothers import FitterRegressor, GAMRegressor, KernelRegressor, Regressor

logger = logging.getLogger(__name__)


def default_models() -> list[Regressor]:
    """Rank, least-squares, kernel and GAM candidates."""
    return [
        FitterRegressor("rank"),
        FitterRegressor("least_squares"),
        KernelRegressor(),
        GAMRegressor(),
    ]


def _fold_predictions(
    template: Regressor,
    X: np.ndarray,
    y: np.ndarray,
    train: np.ndarray,
    test: np.ndarray,
) -> np.ndarray:
    model = copy.deepcopy(template)
    try:
        model.fit(X[train], y[train])
    except FitFailedError as exc:
        logger.debug("%s failed on a fold: %s", template.name, exc)
        return np.full(test.size, np.nan)
    return model.predict(X[test])


def compare_models(
    data: DataFrameLike,
    outcome: str,
    predictors: list[str] | None = None,
    *,
    models: list[Regressor] | None = None,
    n_splits: int | None = None,
    random_state: RandomState = None,
    n_jobs: int = 1,
) -> ModelComparisonResult:
    """Cross-validated MAE for each candidate regressor.

    Args:
        data: DataFrame with outcome and predictors.
        outcome: Outcome column.
        predictors: Predictor columns; defaults to all but *outcome*.
        models: Unfitted :class:`~rank_bootstrap.smoothers.Regressor`
            instances; defaults to :func:`default_models`.  Names must be
            unique.
        n_splits: ``None`` for leave-one-out, otherwise the number of
            shuffled k-fold splits.
        random_state: Seed for the k-fold shuffle.
        n_jobs: joblib threads over folds.

    Returns:
        A :class:`~rank_bootstrap.ModelComparisonResult`.
    """
    frame = ensure_pandas_df(data, name="data")
    feature_names = resolve_predictors(frame, outcome, predictors)
    X, y, _ = extract_design(frame, outcome, feature_names)
    n = X.shape[0]

    candidates = default_models() if models is None else list(models)
    if not candidates:
        raise ValueError("At least one model is required.")
    names = [m.name for m in candidates]
    if len(set(names)) != len(names):
        raise ValueError(f"Model names must be unique, got {names}.")

    if n_splits is None:
        splitter: LeaveOneOut | KFold = LeaveOneOut()
        scheme = "leave-one-out"
        n_folds = n
    else:
        if isinstance(n_splits, bool) or not isinstance(n_splits, int):
            raise ValueError(f"n_splits must be an integer, got {n_splits!r}.")
        if not 2 <= n_splits <= n:
            raise ValueError(f"n_splits must be in [2, {n}], got {n_splits}.")
        seed = int(make_seed_sequence(random_state).generate_state(1)[0])
        splitter = KFold(n_splits=n_splits, shuffle=True, random_state=seed)
        scheme = "k-fold"
        n_folds = n_splits
    folds = list(splitter.split(X))

    cv_pred = np.full((len(candidates), n), np.nan)
    train_mae = np.full(len(candidates), np.nan)
    for i, template in enumerate(candidates):
        logger.debug("Cross-validating %s over %d folds.", template.name, n_folds)
        preds = Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(_fold_predictions)(template, X, y, train, test)
            for train, test in folds
        )
        for (_, test), pred in zip(folds, preds):
            cv_pred[i, test] = pred

        try:
            full = copy.deepcopy(template).fit(X, y)
            train_mae[i] = mean_absolute_error(y, full.predict(X))
        except FitFailedError as exc:
            logger.debug("%s failed on the full data: %s", template.name, exc)

    cv_mae = np.full(len(candidates), np.nan)
    for i, name in enumerate(names):
        ok = np.isfinite(cv_pred[i])
        if not ok.all():
            warnings.warn(
                f"{name}: {int((~ok).sum())} of {n} out-of-fold predictions "
                f"are missing because the fit failed.",
                UserWarning,
                stacklevel=2,
            )
        if ok.any():
            cv_mae[i] = mean_absolute_error(y[ok], cv_pred[i, ok])

    return ModelComparisonResult(
        model_names=names,
        cv_mae=cv_mae,
        train_mae=train_mae,
        cv_predictions=cv_pred,
        cv_scheme=scheme,
        n_splits=n_folds,
        feature_names=list(feature_names),
        target_name=str(outcome),
        n_observations=n,
    )


__all__ = ["compare_models", "default_models"]
