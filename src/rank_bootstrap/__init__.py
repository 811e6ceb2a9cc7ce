"""rank_bootstrap — Residual-bootstrap significance tests for robust regression.

Tests whether each predictor of a rank-based (Jaeckel 1972), Huber or
least-squares regression improves the fit beyond the remaining
predictors, by comparing an absolute-residual discrepancy statistic
against its residual-bootstrap null distribution.  Also provides nested
bootstrap-t coefficient intervals, cross-validated MAE comparison
against kernel and additive smoothers, and descriptive summaries.

Public API:
    .. autosummary::
        bootstrap_test_regression
        bootstrap_t_intervals
        compare_models
        default_models
        describe_columns
        describe_by_group
        print_results_table
        print_interval_table
        print_comparison_table
        print_descriptive_table
        get_default_fitter
        set_default_fitter
        RobustFitter
        RankFitter
        LeastSquaresFitter
        HuberFitter
        FitResult
        resolve_fitter
        register_fitter
        Regressor
        KernelRegressor
        GAMRegressor
        FitterRegressor
        BootstrapEngine
        FitFailedError
        InsufficientReplicatesError
        BootstrapTestResult
        OverallTestResult
        ConfidenceIntervalResult
        ModelComparisonResult
"""

from ._config import get_default_fitter, set_default_fitter
from ._results import (
    BootstrapTestResult,
    ConfidenceIntervalResult,
    ModelComparisonResult,
    OverallTestResult,
)
from .comparison import compare_models, default_models
from .core import bootstrap_test_regression
from .descriptive import describe_by_group, describe_columns
from .diagnostics import InsufficientReplicatesError
from .display import (
    print_comparison_table,
    print_descriptive_table,
    print_interval_table,
    print_results_table,
)
from .engine import BootstrapEngine
from .fitters import (
    FitFailedError,
    FitResult,
    HuberFitter,
    LeastSquaresFitter,
    RankFitter,
    RobustFitter,
    register_fitter,
    resolve_fitter,
)
from .intervals import bootstrap_t_intervals
from .smoothers import FitterRegressor, GAMRegressor, KernelRegressor, Regressor

__all__ = [
    "BootstrapTestResult",
    "ConfidenceIntervalResult",
    "ModelComparisonResult",
    "OverallTestResult",
    "bootstrap_test_regression",
    "bootstrap_t_intervals",
    "compare_models",
    "default_models",
    "describe_by_group",
    "describe_columns",
    "print_comparison_table",
    "print_descriptive_table",
    "print_interval_table",
    "print_results_table",
    "get_default_fitter",
    "set_default_fitter",
    "RobustFitter",
    "RankFitter",
    "LeastSquaresFitter",
    "HuberFitter",
    "FitResult",
    "resolve_fitter",
    "register_fitter",
    "Regressor",
    "KernelRegressor",
    "GAMRegressor",
    "FitterRegressor",
    "BootstrapEngine",
    "FitFailedError",
    "InsufficientReplicatesError",
]

__version__ = "0.1.0"
