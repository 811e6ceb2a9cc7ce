"""Monte Carlo precision and replicate-failure diagnostics.

Bootstrap p-values are estimates.  Two quantities tell a user how much
to trust the third decimal place:

* **Monte Carlo standard error** — the binomial SE of the estimated
  proportion, ``√[p̂(1 − p̂) / B_eff]``.  With B = 5000 and p̂ = 0.05 the
  SE is about 0.003.

* **Clopper–Pearson interval** — the exact binomial confidence
  interval for the true p-value given ``k`` exceedances out of
  ``B_eff`` replicates:

      lower = Beta⁻¹(α/2;  k, B_eff − k + 1)
      upper = Beta⁻¹(1 − α/2;  k + 1, B_eff − k)

  with the conventions lower = 0 at k = 0 and upper = 1 at k = B_eff.
  An interval that straddles a significance threshold means the
  conclusion at that threshold is not yet resolved and B should grow.

Failure accounting
------------------
A replicate whose refit raises :class:`~rank_bootstrap.fitters.FitFailedError`
is excluded and B shrinks to B_eff.  :func:`check_failures` enforces
the caller's tolerance: beyond ``max_failed_fraction`` the whole
estimate is refused with :class:`InsufficientReplicatesError`, because
a p-value from a small, self-selected subset of replicates is not the
quantity that was asked for.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from scipy import stats as sp_stats

logger = logging.getLogger(__name__)


class InsufficientReplicatesError(RuntimeError):
    """Raised when too many bootstrap replicates failed to fit."""


def compute_monte_carlo_se(
    raw_p_values: np.ndarray,
    n_effective: np.ndarray,
) -> np.ndarray:
    """Binomial standard error of each empirical p-value.

    Args:
        raw_p_values: p-values ``(k,)``.
        n_effective: Successful replicate counts ``(k,)``.

    Returns:
        ``√[p(1 − p) / B_eff]`` per entry; NaN where ``B_eff`` is 0.
    """
    p = np.asarray(raw_p_values, dtype=float)
    b = np.asarray(n_effective, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        se = np.sqrt(p * (1.0 - p) / b)
    return np.asarray(np.where(b > 0, se, np.nan))


def compute_pvalue_ci(
    exceed_counts: np.ndarray,
    n_effective: np.ndarray,
    confidence_level: float = 0.95,
) -> np.ndarray:
    """Clopper–Pearson interval for each empirical p-value.

    Args:
        exceed_counts: Replicates with ``G* ≥ G``, shape ``(k,)``.
        n_effective: Successful replicate counts, shape ``(k,)``.
        confidence_level: Coverage of the interval.

    Returns:
        Array ``(k, 2)`` of ``[lower, upper]`` bounds; NaN rows where
        ``B_eff`` is 0.

    Raises:
        ValueError: If *confidence_level* is not in ``(0, 1)``.
    """
    if not 0.0 < confidence_level < 1.0:
        raise ValueError(
            f"confidence_level must be in (0, 1), got {confidence_level}."
        )
    alpha = 1.0 - confidence_level
    k = np.asarray(exceed_counts, dtype=float)
    b = np.asarray(n_effective, dtype=float)
    out = np.full((k.size, 2), np.nan)
    for i, (ki, bi) in enumerate(zip(k, b)):
        if bi <= 0:
            continue
        lo = 0.0 if ki == 0 else sp_stats.beta.ppf(alpha / 2, ki, bi - ki + 1)
        hi = 1.0 if ki == bi else sp_stats.beta.ppf(1 - alpha / 2, ki + 1, bi - ki)
        out[i] = (float(lo), float(hi))
    return out


def recommend_n_bootstrap(
    p_hat: float,
    threshold: float,
    alpha: float = 0.05,
) -> int:
    """Smallest B whose normal-approximation CI excludes *threshold*.

    Solves ``z_{1−α/2} √[p(1−p)/B] ≤ |p̂ − threshold|`` for B, clamped to
    ``[100, 10_000_000]``.
    """
    gap = abs(p_hat - threshold)
    if gap < 1e-12:
        return 10_000_000
    z = sp_stats.norm.ppf(1 - alpha / 2)
    b_min = math.ceil((z**2) * p_hat * (1 - p_hat) / (gap**2))
    return int(max(100, min(b_min, 10_000_000)))


def check_failures(
    n_failed: int,
    n_requested: int,
    max_failed_fraction: float,
    *,
    label: str,
) -> None:
    """Raise if the failed share of replicates exceeds the tolerance.

    Args:
        n_failed: Replicates whose refit failed.
        n_requested: Replicates attempted.
        max_failed_fraction: Largest acceptable failed share.
        label: What the replicates belong to, for the message.

    Raises:
        InsufficientReplicatesError: If ``n_failed / n_requested``
            exceeds *max_failed_fraction*, or nothing succeeded.
    """
    if n_failed:
        logger.debug(
            "%s: %d of %d replicates failed to fit.", label, n_failed, n_requested
        )
    if n_failed >= n_requested or n_failed / n_requested > max_failed_fraction:
        raise InsufficientReplicatesError(
            f"{label}: {n_failed} of {n_requested} bootstrap replicates failed "
            f"to fit (tolerance {max_failed_fraction:.1%}).  Increase "
            f"max_failed_fraction, choose a different fitter, or inspect the "
            f"data for near-constant or collinear columns."
        )


def validate_failed_fraction(max_failed_fraction: float) -> None:
    """Reject tolerances outside ``[0, 1)``."""
    if not 0.0 <= max_failed_fraction < 1.0:
        raise ValueError(
            f"max_failed_fraction must be in [0, 1), got {max_failed_fraction}."
        )
