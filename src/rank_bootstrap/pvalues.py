"""Discrepancy statistic and empirical p-values.

The discrepancy statistic
-------------------------
For a hypothesis that removes one predictor (or all of them), compare
the residual magnitude of the reduced model with that of the full
model:

    G = max(0, Σ|e_reduced| − Σ|e_full|)

A predictor that matters leaves the reduced model with visibly larger
absolute residuals, so G is large.  G is floored at zero: on a
bootstrap response the full-model refit can, by chance, leave larger
residuals than the reduced model left on the observed data, and a
negative discrepancy carries no evidence against H₀.

Under H₀ the bootstrap draws are

    G*_b = max(0, Σ|e_reduced| − Σ|e*_full,b|)

where e_reduced are the residuals of the reduced model on the
*original* data and e*_full,b the residuals of the full model refit on
replicate b.  Keeping the original reduced residuals as the baseline
of every draw is what puts G*_b and G on the same footing.

Empirical p-value
-----------------
    p = #{b : G*_b ≥ G} / B_eff

where B_eff is the number of replicates whose refit succeeded (failed
replicates are NaN and never counted).  No +1 correction is applied:
a p-value of exactly 0 means no replicate reached the observed
discrepancy, and a distribution of all-zero draws with G = 0 gives
p = 1.
"""

from __future__ import annotations

import numpy as np


def discrepancy_statistic(
    reduced_residuals: np.ndarray,
    full_residuals: np.ndarray,
) -> float:
    """Return ``max(0, Σ|reduced| − Σ|full|)`` for one pair of fits."""
    diff = np.sum(np.abs(reduced_residuals)) - np.sum(np.abs(full_residuals))
    return float(max(0.0, diff))


def bootstrap_discrepancies(
    reduced_residuals: np.ndarray,
    bootstrap_scores: np.ndarray,
) -> np.ndarray:
    """Vectorised G* for every replicate.

    Args:
        reduced_residuals: Reduced-model residuals on the original data,
            shape ``(n,)``.
        bootstrap_scores: ``Σ|e*_full,b|`` per replicate, shape ``(B,)``;
            NaN marks a failed refit.

    Returns:
        Array ``(B,)`` of floored discrepancies, NaN where the refit
        failed.
    """
    baseline = float(np.sum(np.abs(reduced_residuals)))
    scores = np.asarray(bootstrap_scores, dtype=float)
    # np.maximum propagates NaN, so failed replicates stay NaN.
    return np.asarray(np.maximum(0.0, baseline - scores))


def empirical_p_value(
    bootstrap_statistics: np.ndarray,
    observed: float,
) -> tuple[float, int, int]:
    """Fraction of valid replicates with ``G* ≥ G``.

    Args:
        bootstrap_statistics: Draws ``(B,)``; NaN entries are skipped.
        observed: Observed statistic G.

    Returns:
        ``(p_value, exceed_count, n_effective)``.  ``p_value`` is NaN
        when no replicate is valid.
    """
    stats = np.asarray(bootstrap_statistics, dtype=float)
    valid = stats[np.isfinite(stats)]
    n_eff = int(valid.size)
    if n_eff == 0:
        return float("nan"), 0, 0
    count = int(np.sum(valid >= observed))
    return count / n_eff, count, n_eff


def format_p_value(
    p: float,
    precision: int = 3,
    p_value_threshold_one: float = 0.05,
    p_value_threshold_two: float = 0.01,
    p_value_threshold_three: float = 0.001,
) -> str:
    """Format *p* with a significance marker.

    ``(***)`` below the third threshold, ``(**)`` below the second,
    ``(*)`` below the first, ``(ns)`` otherwise; ``"N/A"`` for NaN.
    """
    if not np.isfinite(p):
        return "N/A"
    val = f"{np.round(p, precision):.{precision}f}"
    if p < p_value_threshold_three:
        return f"{val} (***)"
    if p < p_value_threshold_two:
        return f"{val} (**)"
    if p < p_value_threshold_one:
        return f"{val} (*)"
    return f"{val} (ns)"
