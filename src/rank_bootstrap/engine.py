"""Bootstrap engine — resolution, validation, and the per-hypothesis loop.

The :class:`BootstrapEngine` centralises everything that happens before
and during the resampling of one hypothesis:

1. **Input validation** — DataFrame coercion, column contract, numeric
   and missing-value checks, parameter bounds.
2. **Fitter / noise resolution** — map names to a ``RobustFitter`` and
   a ``NoiseStrategy``.
3. **Observed full fit** — fit once on the original data.
4. **Hypotheses** — one "drop predictor j" hypothesis per predictor,
   plus the zero-predictor "overall" hypothesis.
5. **Random streams** — one spawned generator per hypothesis.

:meth:`BootstrapEngine.test_hypothesis` then runs the bootstrap body
for a single hypothesis.  The body is written once and parameterised by
which predictor columns the reduced model keeps, so the per-predictor
tests and the overall test share every line.

The engine is immutable after construction apart from the generators
it hands out; ``X`` and ``y`` are extracted from one column selection
so every fit sees the rows in the same order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from ._strategies import NoiseStrategy, resolve_noise
from ._validation import (
    DataFrameLike,
    ensure_pandas_df,
    extract_design,
    resolve_predictors,
)
from .diagnostics import check_failures, validate_failed_fraction
from .fitters import FitResult, RobustFitter, resolve_fitter
from .pvalues import bootstrap_discrepancies, discrepancy_statistic, empirical_p_value
from .resampling import RandomState, spawn_generators

logger = logging.getLogger(__name__)

OVERALL_LABEL = "(overall)"


@dataclass(frozen=True)
class Hypothesis:
    """A reduced model: which predictor columns it keeps."""

    label: str
    """Dropped predictor name, or ``"(overall)"``."""

    keep: tuple[int, ...]
    """Column positions of ``X`` retained by the reduced model."""


@dataclass(frozen=True)
class HypothesisOutcome:
    """Bootstrap evidence for one hypothesis."""

    hypothesis: Hypothesis
    reduced: FitResult
    observed_statistic: float
    bootstrap_statistics: np.ndarray
    p_value: float
    exceed_count: int
    n_effective: int
    n_failed: int


class BootstrapEngine:
    """Builder that validates inputs and runs per-hypothesis bootstraps.

    Attributes:
        X: Predictor matrix ``(n, p)``.
        y: Outcome vector ``(n,)``.
        row_index: Row labels of the analysed data.
        feature_names: Predictor names, in column order of ``X``.
        target_name: Outcome name.
        fitter: Resolved ``RobustFitter``.
        noise: Resolved ``NoiseStrategy``.
        full_fit: Full-model fit on the observed data.
        hypotheses: Per-predictor hypotheses, in column order.
        overall: The zero-predictor hypothesis.
    """

    def __init__(
        self,
        data: DataFrameLike,
        outcome: str,
        predictors: list[str] | None = None,
        *,
        fitter: str | RobustFitter | None = None,
        n_bootstrap: int = 5_000,
        noise: str = "resampled",
        random_state: RandomState = None,
        max_failed_fraction: float = 0.1,
        n_jobs: int = 1,
    ) -> None:
        # ---- Parameter validation ---------------------------------
        if (
            isinstance(n_bootstrap, bool)
            or not isinstance(n_bootstrap, (int, np.integer))
            or n_bootstrap < 1
        ):
            raise ValueError(
                f"n_bootstrap must be a positive integer, got {n_bootstrap!r}."
            )
        if isinstance(n_jobs, bool) or not isinstance(n_jobs, int) or n_jobs == 0:
            raise ValueError(f"n_jobs must be a non-zero integer, got {n_jobs!r}.")
        validate_failed_fraction(max_failed_fraction)
        self.noise: NoiseStrategy = resolve_noise(noise)
        self.fitter: RobustFitter = resolve_fitter(fitter)

        # ---- Data -------------------------------------------------
        frame = ensure_pandas_df(data, name="data")
        self.feature_names: list[str] = resolve_predictors(frame, outcome, predictors)
        self.target_name: str = str(outcome)
        self.X, self.y, self.row_index = extract_design(
            frame, outcome, self.feature_names
        )

        self.n_bootstrap = int(n_bootstrap)
        self.max_failed_fraction = float(max_failed_fraction)
        self.n_jobs = n_jobs

        # ---- Observed full fit ------------------------------------
        # Not a replicate failure: FitFailedError propagates.
        self.full_fit: FitResult = self.fitter.fit(self.X, self.y)

        # ---- Hypotheses -------------------------------------------
        p = self.X.shape[1]
        self.hypotheses: list[Hypothesis] = [
            Hypothesis(label=name, keep=tuple(k for k in range(p) if k != j))
            for j, name in enumerate(self.feature_names)
        ]
        self.overall = Hypothesis(label=OVERALL_LABEL, keep=())

        # ---- Random streams ---------------------------------------
        # Always spawn p + 1 children so the per-predictor streams are
        # the same whether or not the overall test is requested.
        self._generators = spawn_generators(random_state, p + 1)

        logger.debug(
            "BootstrapEngine: n=%d, p=%d, fitter=%s, noise=%s, B=%d",
            self.X.shape[0],
            p,
            self.fitter.name,
            self.noise.name,
            self.n_bootstrap,
        )

    def generator_for(self, hypothesis: Hypothesis) -> np.random.Generator:
        """Return the generator reserved for *hypothesis*."""
        if hypothesis is self.overall:
            return self._generators[-1]
        return self._generators[self.feature_names.index(hypothesis.label)]

    def test_hypothesis(self, hypothesis: Hypothesis) -> HypothesisOutcome:
        """Run the residual bootstrap for one reduced model.

        Steps:

        1. Fit the reduced model on the observed data.
        2. ``G = max(0, Σ|e_reduced| − Σ|e_full|)``.
        3. Draw ``B`` noise vectors from the reduced residuals and build
           ``Y* = ŷ_reduced + ε*``.
        4. Refit the **full** design on every ``Y*`` and compute
           ``G*_b`` against the *original* reduced residuals.
        5. ``p = #{G*_b ≥ G} / B_eff``.

        Raises:
            FitFailedError: If the reduced fit on the observed data
                fails.
            InsufficientReplicatesError: If more than
                ``max_failed_fraction`` of the refits fail.
        """
        X_reduced = self.X[:, list(hypothesis.keep)]
        reduced = self.fitter.fit(X_reduced, self.y)
        observed = discrepancy_statistic(reduced.residuals, self.full_fit.residuals)

        rng = self.generator_for(hypothesis)
        noise = self.noise.draw(reduced.residuals, self.n_bootstrap, rng)  # (B, n)
        Y_star = reduced.fitted_values[np.newaxis, :] + noise  # (B, n)

        _, scores = self.fitter.batch_fit_and_score(self.X, Y_star, n_jobs=self.n_jobs)
        boot = bootstrap_discrepancies(reduced.residuals, scores)

        n_failed = int(np.sum(~np.isfinite(boot)))
        check_failures(
            n_failed,
            self.n_bootstrap,
            self.max_failed_fraction,
            label=f"Hypothesis '{hypothesis.label}'",
        )
        p_value, count, n_eff = empirical_p_value(boot, observed)

        return HypothesisOutcome(
            hypothesis=hypothesis,
            reduced=reduced,
            observed_statistic=observed,
            bootstrap_statistics=boot,
            p_value=p_value,
            exceed_count=count,
            n_effective=n_eff,
            n_failed=n_failed,
        )


__all__ = ["BootstrapEngine", "Hypothesis", "HypothesisOutcome", "OVERALL_LABEL"]
