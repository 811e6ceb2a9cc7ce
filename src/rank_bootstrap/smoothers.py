"""Regressors for out-of-sample model comparison.

:func:`~rank_bootstrap.compare_models` needs a uniform ``fit`` /
``predict`` surface over very different estimators: the linear robust
fitters in :mod:`~rank_bootstrap.fitters` and two non-parametric
smoothers.

* :class:`KernelRegressor` — Nadaraya–Watson (local-constant) kernel
  regression from ``statsmodels``.  The bandwidth is chosen by
  least-squares cross-validation unless fixed values are given.
* :class:`GAMRegressor` — additive model with one penalised spline
  term per predictor (``pygam.LinearGAM``).
* :class:`FitterRegressor` — wraps any :class:`~rank_bootstrap.fitters.RobustFitter`.

All three follow the scikit-learn convention that ``fit`` returns
``self``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np
from pygam import LinearGAM, s
from statsmodels.nonparametric.kernel_regression import KernelReg

from .fitters import FitResult, RobustFitter, resolve_fitter


@runtime_checkable
class Regressor(Protocol):
    """Minimal fit / predict interface."""

    name: str

    def fit(self, X: np.ndarray, y: np.ndarray) -> Regressor: ...

    def predict(self, X: np.ndarray) -> np.ndarray: ...


def _not_fitted(name: str) -> RuntimeError:
    return RuntimeError(f"{name} is not fitted; call fit() first.")


class KernelRegressor:
    """Local-constant kernel regression.

    Args:
        bandwidth: ``"cv_ls"`` for least-squares cross-validation,
            ``"aic"`` for the AIC-Hurvich criterion, or a sequence of
            one fixed bandwidth per predictor.
    """

    name = "kernel"

    def __init__(self, bandwidth: str | list[float] | np.ndarray = "cv_ls") -> None:
        self.bandwidth = bandwidth
        self._model: KernelReg | None = None

    def fit(self, X: np.ndarray, y: np.ndarray) -> KernelRegressor:
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        if X.ndim == 1:
            X = X[:, np.newaxis]
        bw = self.bandwidth
        if not isinstance(bw, str):
            bw = np.asarray(bw, dtype=float)
            if bw.shape != (X.shape[1],):
                raise ValueError(
                    f"Expected {X.shape[1]} bandwidths, got shape {bw.shape}."
                )
        self._model = KernelReg(
            endog=y,
            exog=X,
            var_type="c" * X.shape[1],
            reg_type="lc",
            bw=bw,
        )
        return self

    @property
    def bandwidth_(self) -> np.ndarray:
        """Selected bandwidths, one per predictor.

        ``cv_ls`` searches without bounds and can land on a negative
        value; the Gaussian kernel is symmetric, so its magnitude is the
        bandwidth actually in effect.
        """
        if self._model is None:
            raise _not_fitted(type(self).__name__)
        return np.abs(np.asarray(self._model.bw, dtype=float))

    def predict(self, X: np.ndarray) -> np.ndarray:
        if self._model is None:
            raise _not_fitted(type(self).__name__)
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X[:, np.newaxis]
        mean, _ = self._model.fit(X)
        return np.asarray(mean, dtype=float)


class GAMRegressor:
    """Additive spline model ``y = β₀ + Σ f_j(x_j) + ε``.

    Args:
        n_splines: Basis functions per spline term.
        lam: Smoothing penalty applied to every term.
    """

    name = "gam"

    def __init__(self, n_splines: int = 20, lam: float = 0.6) -> None:
        self.n_splines = n_splines
        self.lam = lam
        self._model: LinearGAM | None = None

    def fit(self, X: np.ndarray, y: np.ndarray) -> GAMRegressor:
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)
        if X.ndim == 1:
            X = X[:, np.newaxis]
        # s(j) is the spline term for column j
        terms = s(0, n_splines=self.n_splines, lam=self.lam)
        for j in range(1, X.shape[1]):
            terms += s(j, n_splines=self.n_splines, lam=self.lam)
        self._model = LinearGAM(terms).fit(X, y)
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        if self._model is None:
            raise _not_fitted(type(self).__name__)
        X = np.asarray(X, dtype=float)
        if X.ndim == 1:
            X = X[:, np.newaxis]
        return np.asarray(self._model.predict(X), dtype=float)


class FitterRegressor:
    """Expose a :class:`RobustFitter` as a :class:`Regressor`."""

    def __init__(self, fitter: str | RobustFitter | None = None) -> None:
        self.fitter = resolve_fitter(fitter)
        self.name = self.fitter.name
        self.result_: FitResult | None = None

    def fit(self, X: np.ndarray, y: np.ndarray) -> FitterRegressor:
        self.result_ = self.fitter.fit(np.asarray(X, dtype=float), y)
        return self

    def predict(self, X: np.ndarray) -> np.ndarray:
        if self.result_ is None:
            raise _not_fitted(type(self).__name__)
        return self.result_.predict(np.asarray(X, dtype=float))


__all__ = ["FitterRegressor", "GAMRegressor", "KernelRegressor", "Regressor"]
