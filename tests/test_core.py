"""Tests for bootstrap_test_regression."""

import warnings
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import pytest

from rank_bootstrap import (
    BootstrapTestResult,
    FitFailedError,
    InsufficientReplicatesError,
    LeastSquaresFitter,
    bootstrap_test_regression,
    core,
)
from rank_bootstrap.fitters import _LoopBatchMixin


def _make_scenario(n=100, seed=42):
    """x1 carries signal, x2 does not; errors are heavy tailed."""
    rng = np.random.default_rng(seed)
    df = pd.DataFrame(
        {
            "x1": rng.uniform(0, 10, n),
            "x2": rng.standard_normal(n),
        }
    )
    df["y"] = 3.0 + 1.5 * df["x1"] + rng.standard_t(3, n)
    return df


def _run(df=None, **kwargs):
    kwargs.setdefault("fitter", "least_squares")
    kwargs.setdefault("n_bootstrap", 99)
    kwargs.setdefault("random_state", 0)
    return bootstrap_test_regression(
        _make_scenario() if df is None else df, "y", **kwargs
    )


@dataclass
class _FlakyFitter(_LoopBatchMixin):
    """Least squares that fails on scheduled call numbers."""

    fail_every: int = 20
    start_after: int = 0
    calls: int = field(default=0, repr=False)

    @property
    def name(self):
        return "flaky"

    def fit(self, X, y):
        self.calls += 1
        if self.calls > self.start_after and self.calls % self.fail_every == 0:
            raise FitFailedError("scheduled failure")
        return LeastSquaresFitter().fit(X, y)


class TestBasicContract:
    def test_returns_typed_result(self):
        result = _run()
        assert isinstance(result, BootstrapTestResult)
        assert result.feature_names == ["x1", "x2"]
        assert result.target_name == "y"
        assert result.fitter == "least_squares"
        assert result.noise == "resampled"
        assert result.n_observations == 100
        assert result.bootstrap_statistics.shape == (99, 2)
        assert result.overall is None

    def test_signal_predictor_significant(self):
        result = _run(fitter="rank")
        assert result.raw_p_values[0] < 0.05
        assert "(*" in result.p_values[0]

    def test_statistics_non_negative(self):
        result = _run(random_state=1)
        assert np.all(result.observed_statistics >= 0)
        assert np.all(result.bootstrap_statistics >= 0)
        assert np.all((result.raw_p_values >= 0) & (result.raw_p_values <= 1))

    def test_coefficients_from_full_fit(self):
        df = _make_scenario()
        result = _run(df, n_bootstrap=20)
        expected = LeastSquaresFitter().fit(
            df[["x1", "x2"]].to_numpy(), df["y"].to_numpy()
        )
        np.testing.assert_allclose(result.model_coefs, expected.coefficients)
        assert result.intercept == pytest.approx(expected.intercept)

    def test_row_index_carried(self):
        df = _make_scenario(n=30)
        df.index = np.arange(30)[::-1] + 1000
        result = _run(df, n_bootstrap=10)
        assert list(result.row_index) == list(df.index)

    def test_parametric_noise(self):
        result = _run(noise="parametric")
        assert result.noise == "parametric"
        assert result.raw_p_values[0] < 0.05

    def test_huber_fitter(self):
        result = _run(_make_scenario(n=60), fitter="huber", n_bootstrap=30)
        assert result.fitter == "huber"
        assert np.all(result.n_effective + result.n_failed == 30)

    def test_single_predictor(self):
        df = _make_scenario()[["x1", "y"]]
        result = _run(df, fitter="rank", n_bootstrap=30)
        assert result.raw_p_values.shape == (1,)
        assert result.raw_p_values[0] < 0.05

    def test_pvalue_ci_brackets_estimate(self):
        result = _run()
        p = result.raw_p_values
        assert np.all(result.pvalue_ci[:, 0] <= p)
        assert np.all(p <= result.pvalue_ci[:, 1])


class TestReproducibility:
    def test_same_seed_identical(self):
        a = _run(random_state=123)
        b = _run(random_state=123)
        np.testing.assert_array_equal(a.raw_p_values, b.raw_p_values)
        np.testing.assert_array_equal(a.bootstrap_statistics, b.bootstrap_statistics)

    def test_numpy_integer_seed_recorded(self):
        a = _run(n_bootstrap=20, random_state=np.int64(5))
        b = _run(n_bootstrap=20, random_state=5)
        assert a.random_state == 5
        assert type(a.random_state) is int
        np.testing.assert_array_equal(a.raw_p_values, b.raw_p_values)

    def test_different_seed_differs(self):
        a = _run(random_state=1)
        b = _run(random_state=2)
        assert not np.array_equal(a.bootstrap_statistics, b.bootstrap_statistics)

    def test_n_jobs_invariant(self):
        df = _make_scenario(n=50)
        a = _run(df, fitter="rank", n_bootstrap=30, random_state=7, n_jobs=1)
        b = _run(df, fitter="rank", n_bootstrap=30, random_state=7, n_jobs=2)
        np.testing.assert_array_equal(a.bootstrap_statistics, b.bootstrap_statistics)

    def test_overall_does_not_perturb_predictor_tests(self):
        a = _run(random_state=5)
        b = _run(random_state=5, include_overall=True)
        np.testing.assert_array_equal(a.raw_p_values, b.raw_p_values)


class TestOverall:
    def test_overall_block(self):
        df = _make_scenario()
        result = _run(df, fitter="rank", n_bootstrap=50, include_overall=True)
        ov = result.overall
        assert ov is not None
        assert ov.raw_p_value < 0.05
        assert ov.baseline == pytest.approx(df["y"].median())
        assert ov.bootstrap_statistics.shape == (50,)
        assert ov.pvalue_ci[0] <= ov.raw_p_value <= ov.pvalue_ci[1]

    def test_least_squares_baseline_is_mean(self):
        df = _make_scenario()
        result = _run(df, n_bootstrap=20, include_overall=True)
        assert result.overall.baseline == pytest.approx(df["y"].mean())


class TestFailures:
    def test_tolerated_failures_warn_and_shrink_b(self):
        with pytest.warns(UserWarning, match="effective B is reduced"):
            result = _run(fitter=_FlakyFitter(fail_every=20), n_bootstrap=100)
        assert result.n_failed.sum() > 0
        np.testing.assert_array_equal(
            result.n_effective + result.n_failed, [100, 100]
        )
        assert np.isnan(result.bootstrap_statistics).any()

    def test_excess_failures_raise(self):
        flaky = _FlakyFitter(fail_every=2, start_after=3)
        with pytest.raises(InsufficientReplicatesError):
            _run(fitter=flaky, n_bootstrap=100)

    def test_zero_tolerance(self):
        with pytest.raises(InsufficientReplicatesError):
            _run(
                fitter=_FlakyFitter(fail_every=20),
                n_bootstrap=100,
                max_failed_fraction=0.0,
            )

    def test_no_warning_without_failures(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", UserWarning)
            _run(n_bootstrap=20)


class TestValidation:
    def test_unknown_noise(self):
        with pytest.raises(ValueError, match="Invalid noise mode"):
            _run(noise="wild")

    def test_unknown_fitter(self):
        with pytest.raises(ValueError, match="Unknown fitter"):
            _run(fitter="ridge")

    def test_missing_outcome(self):
        with pytest.raises(ValueError, match="not found"):
            bootstrap_test_regression(_make_scenario(), "z")

    def test_non_dataframe(self):
        with pytest.raises(TypeError):
            bootstrap_test_regression(np.zeros((10, 3)), "y")

    def test_threshold_order(self):
        with pytest.raises(ValueError, match="thresholds"):
            _run(p_value_threshold_one=0.01, p_value_threshold_two=0.05)

    @pytest.mark.parametrize("level", [0.0, 1.0, 1.5])
    def test_confidence_level_checked_before_fitting(self, monkeypatch, level):
        def _no_engine(*args, **kwargs):
            raise AssertionError("engine built before validation")

        monkeypatch.setattr(core, "BootstrapEngine", _no_engine)
        with pytest.raises(ValueError, match="confidence_level"):
            _run(confidence_level=level)

    def test_missing_values(self):
        df = _make_scenario()
        df.loc[3, "x2"] = np.nan
        with pytest.raises(ValueError, match="Missing"):
            _run(df)

    def test_constant_predictor(self):
        df = _make_scenario()
        df["x2"] = 1.0
        with pytest.raises(FitFailedError):
            _run(df)


class TestSerialisation:
    def test_to_dict_is_plain(self):
        d = _run(n_bootstrap=20, include_overall=True).to_dict()
        assert "bootstrap_statistics" not in d
        assert isinstance(d["raw_p_values"], list)
        assert isinstance(d["overall"], dict)
        assert d["random_state"] == 0

    def test_dict_access(self):
        result = _run(n_bootstrap=20)
        assert result["fitter"] == "least_squares"
        assert result.get("nope", 1) == 1
        assert "p_values" in result
        with pytest.raises(KeyError):
            result["nope"]

    def test_to_frame(self):
        frame = _run(n_bootstrap=20).to_frame()
        assert list(frame.index) == ["x1", "x2"]
        assert {"coef", "G", "p_value", "ci_lower", "ci_upper"} <= set(frame.columns)


class TestPolarsInput:
    def test_polars_frame(self):
        pl = pytest.importorskip("polars")
        result = _run(pl.from_pandas(_make_scenario(n=40)), n_bootstrap=20)
        assert result.feature_names == ["x1", "x2"]


@pytest.mark.slow
class TestNullCalibration:
    def test_null_pvalues_not_concentrated_near_zero(self):
        """A null predictor is not flagged more often than the nominal rate.

        G* measures a refit on resampled noise against the original
        reduced residuals, so the test is conservative by construction.
        """
        p_null = []
        for s in range(100):
            rng = np.random.default_rng(1000 + s)
            df = pd.DataFrame(
                {"x1": rng.standard_normal(40), "x2": rng.standard_normal(40)}
            )
            df["y"] = 1.0 + df["x1"] + rng.standard_normal(40)
            result = _run(df, n_bootstrap=199, random_state=s)
            p_null.append(result.raw_p_values[1])
        p_null = np.array(p_null)
        assert np.mean(p_null < 0.05) <= 0.05 + 0.04
        assert p_null.mean() > 0.3

    def test_rank_signal_detected_across_seeds(self):
        for s in range(5):
            result = _run(
                _make_scenario(seed=s), fitter="rank", n_bootstrap=500, random_state=s
            )
            assert result.raw_p_values[0] < 0.01


@pytest.mark.slow
class TestReferenceScenario:
    @staticmethod
    def _make_two_predictor(seed=2024):
        rng = np.random.default_rng(seed)
        df = pd.DataFrame(
            {"x1": rng.standard_normal(100), "x2": rng.standard_normal(100)}
        )
        df["y"] = 2.0 * df["x1"] + rng.standard_normal(100)
        return df

    def test_signal_and_noise_predictors_separated(self):
        result = _run(
            self._make_two_predictor(),
            fitter="rank",
            n_bootstrap=1_000,
            random_state=7,
            include_overall=True,
        )
        assert result.raw_p_values[0] < 0.01
        assert result.raw_p_values[1] > 0.1
        assert result.overall.raw_p_value < 0.01

    def test_pvalues_converge_in_b(self):
        df = self._make_two_predictor()
        small = _run(df, n_bootstrap=1_000, random_state=11)
        large = _run(df, n_bootstrap=20_000, random_state=11)
        p = large.raw_p_values
        tol = 4.0 * np.sqrt(p * (1.0 - p) / 1_000) + 0.005
        assert np.all(np.abs(small.raw_p_values - p) <= tol)
