"""Tests for the kernel, GAM and fitter-adapter regressors."""

import numpy as np
import pytest

from rank_bootstrap.fitters import FitFailedError, RankFitter
from rank_bootstrap.smoothers import (
    FitterRegressor,
    GAMRegressor,
    KernelRegressor,
    Regressor,
)


def _make_curve(n=150, seed=0):
    rng = np.random.default_rng(seed)
    X = rng.uniform(-3, 3, (n, 1))
    y = np.sin(2 * X[:, 0]) + rng.standard_normal(n) * 0.1
    return X, y


class TestKernelRegressor:
    def test_fixed_bandwidth_tracks_curve(self):
        X, y = _make_curve()
        model = KernelRegressor(bandwidth=[0.2]).fit(X, y)
        pred = model.predict(X)
        assert pred.shape == (150,)
        assert np.mean(np.abs(pred - np.sin(2 * X[:, 0]))) < 0.15
        np.testing.assert_allclose(model.bandwidth_, [0.2])

    def test_cross_validated_bandwidth(self):
        X, y = _make_curve(n=60)
        model = KernelRegressor().fit(X, y)
        assert model.bandwidth_.shape == (1,)
        assert model.bandwidth_[0] > 0

    def test_reported_bandwidth_is_positive_magnitude(self):
        X, y = _make_curve(n=40)
        model = KernelRegressor(bandwidth=[0.2]).fit(X, y)
        before = model.predict(X[:10])
        model._model.bw = np.array([-0.2])
        np.testing.assert_allclose(model.bandwidth_, [0.2])
        np.testing.assert_allclose(model.predict(X[:10]), before)

    def test_accepts_one_dimensional_input(self):
        X, y = _make_curve(n=40)
        model = KernelRegressor(bandwidth=[0.3]).fit(X[:, 0], y)
        assert model.predict(X[:5, 0]).shape == (5,)

    def test_bandwidth_length_checked(self):
        X, y = _make_curve(n=20)
        with pytest.raises(ValueError, match="bandwidths"):
            KernelRegressor(bandwidth=[0.2, 0.3]).fit(X, y)

    def test_predict_before_fit(self):
        with pytest.raises(RuntimeError, match="not fitted"):
            KernelRegressor().predict(np.zeros((2, 1)))


class TestGAMRegressor:
    def test_tracks_curve(self):
        X, y = _make_curve()
        pred = GAMRegressor().fit(X, y).predict(X)
        assert np.mean(np.abs(pred - np.sin(2 * X[:, 0]))) < 0.15

    def test_multiple_predictors(self):
        rng = np.random.default_rng(1)
        X = rng.uniform(0, 1, (100, 3))
        y = X[:, 0] ** 2 + X[:, 1] + rng.standard_normal(100) * 0.05
        pred = GAMRegressor(n_splines=8).fit(X, y).predict(X)
        assert pred.shape == (100,)

    def test_predict_before_fit(self):
        with pytest.raises(RuntimeError, match="not fitted"):
            GAMRegressor().predict(np.zeros((2, 1)))


class TestFitterRegressor:
    def test_wraps_fit_result(self):
        rng = np.random.default_rng(2)
        X = rng.standard_normal((50, 2))
        y = 1.0 + X @ np.array([1.0, -2.0]) + rng.standard_normal(50) * 0.1
        model = FitterRegressor("rank").fit(X, y)
        assert model.name == "rank"
        expected = RankFitter().fit(X, y).predict(X)
        np.testing.assert_allclose(model.predict(X), expected)

    def test_default_fitter_name(self):
        assert FitterRegressor("huber").name == "huber"

    def test_fit_failure_propagates(self):
        X = np.ones((10, 1))
        with pytest.raises(FitFailedError):
            FitterRegressor("least_squares").fit(X, np.arange(10.0))

    def test_predict_before_fit(self):
        with pytest.raises(RuntimeError, match="not fitted"):
            FitterRegressor("rank").predict(np.zeros((2, 1)))


def test_all_satisfy_protocol():
    for model in (KernelRegressor(), GAMRegressor(), FitterRegressor("rank")):
        assert isinstance(model, Regressor)
