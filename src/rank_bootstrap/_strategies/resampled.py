"""Residual bootstrap — resample reduced-model residuals with replacement.

For a hypothesis that drops predictor X_j, the reduced model Y ~ X₋ⱼ
is fit once on the observed data, giving fitted values ŷ₋ⱼ and
residuals e₋ⱼ.  Each replicate draws ``n`` residuals from e₋ⱼ with
replacement and adds them back to ŷ₋ⱼ:

    Y*_b = ŷ₋ⱼ + e₋ⱼ[idx_b],     idx_b ~ Uniform{0, …, n−1}ⁿ

Under H₀ the reduced model is correct, so its residuals stand in for
the unknown error distribution; no normality is assumed.  Sampling
*with* replacement (a bootstrap) rather than without (a permutation,
as in ter Braak 1992) means each replicate sees a different empirical
error distribution, not merely a reordering of the same one.
"""

from __future__ import annotations

import numpy as np

from ..resampling import bootstrap_indices


class ResampledNoise:
    """Residual-bootstrap noise (with-replacement draws)."""

    name: str = "resampled"

    def draw(
        self,
        residuals: np.ndarray,
        n_replicates: int,
        rng: np.random.Generator,
    ) -> np.ndarray:
        """Return ``residuals[idx]`` for ``B`` bootstrap index rows.

        Returns:
            Noise matrix ``(B, n)``.
        """
        residuals = np.asarray(residuals, dtype=float)
        idx = bootstrap_indices(residuals.shape[0], n_replicates, rng)  # (B, n)
        # Fancy-indexing a 1-D vector with a (B, n) index array yields
        # B resampled copies in one call.
        return np.asarray(residuals[idx])
