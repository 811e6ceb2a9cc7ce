"""Parametric bootstrap — Gaussian noise scaled to the reduced residuals.

Instead of reusing the observed residuals, each replicate adds
independent draws from Normal(0, s²):

    Y*_b = ŷ₋ⱼ + ε_b,     ε_b ~ N(0, s² I),   s = SD(e₋ⱼ)  (ddof = 1)

This trades the distribution-free property of the residual bootstrap
for smoother null distributions when ``n`` is small and the residuals
take few distinct values.
"""

from __future__ import annotations

import numpy as np


class ParametricNoise:
    """Normal noise with the reduced model's residual standard deviation."""

    name: str = "parametric"

    def draw(
        self,
        residuals: np.ndarray,
        n_replicates: int,
        rng: np.random.Generator,
    ) -> np.ndarray:
        """Return a ``(B, n)`` matrix of N(0, SD(residuals)²) draws."""
        residuals = np.asarray(residuals, dtype=float)
        n = residuals.shape[0]
        if n_replicates < 1:
            raise ValueError(f"n_replicates must be positive, got {n_replicates}.")
        sd = float(np.std(residuals, ddof=1)) if n > 1 else 0.0
        return np.asarray(rng.normal(0.0, sd, size=(n_replicates, n)))
