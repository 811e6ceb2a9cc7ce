"""
Titanic Survival

Demonstrates:
- ``describe_by_group`` — age and fare summaries split by survival
- ``compare_models`` — 10-fold MAE of kernel and GAM smoothers
  against rank and least-squares fits for a 0/1 outcome
- ``bootstrap_test_regression`` on a binary outcome with the
  least-squares fitter (a linear probability model)

Usage
-----
    python examples/titanic_survival.py path/to/titanic.csv

The CSV is the standard Kaggle ``train.csv`` layout (``Survived``,
``Pclass``, ``Age``, ``Fare``, ...).  Rows with a missing age are
dropped.
"""

import sys

import pandas as pd

from rank_bootstrap import (
    FitterRegressor,
    GAMRegressor,
    KernelRegressor,
    bootstrap_test_regression,
    compare_models,
    describe_by_group,
    print_comparison_table,
    print_descriptive_table,
    print_results_table,
)

if len(sys.argv) != 2:
    sys.exit(f"usage: {sys.argv[0]} TITANIC_CSV")

# ============================================================================
# Load data
# ============================================================================

raw = pd.read_csv(sys.argv[1])
df = raw[["Survived", "Pclass", "Age", "Fare"]].dropna().astype(float)
df.columns = ["survived", "pclass", "age", "fare"]

print("Dataset: Titanic passengers")
print(f"  Observations:  {len(df)} (of {len(raw)}; missing ages dropped)")
print(f"  Survival rate: {df['survived'].mean():.1%}")
print()

print_descriptive_table(
    describe_by_group(df, ["age", "fare", "pclass"], by="survived"),
    title="Passengers by Survival",
)

# ============================================================================
# Smoothers versus linear fits
# ============================================================================

models = [
    FitterRegressor("rank"),
    FitterRegressor("least_squares"),
    KernelRegressor(),
    GAMRegressor(n_splines=10),
]
comparison = compare_models(
    df,
    "survived",
    ["age", "fare"],
    models=models,
    n_splits=10,
    random_state=42,
    n_jobs=-1,
)
print_comparison_table(comparison, title="Survival ~ Age + Fare (10-Fold MAE)")

# ============================================================================
# Linear probability model: residual bootstrap
# ============================================================================

results = bootstrap_test_regression(
    df,
    "survived",
    ["pclass", "age", "fare"],
    fitter="least_squares",
    n_bootstrap=5_000,
    random_state=42,
    include_overall=True,
)
print_results_table(results, title="Survival: Least-Squares Residual Bootstrap")
