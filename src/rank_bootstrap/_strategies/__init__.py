"""Noise-generation strategy registry and protocol.

A bootstrap replicate of the significance test is built as

    y* = ŷ_reduced + ε*

where ε* is an ``n``-vector of synthetic noise.  Each strategy
encapsulates one way of producing ε* and exposes a uniform ``draw()``
interface that :func:`~rank_bootstrap.core.bootstrap_test_regression`
calls once per hypothesis, for all ``B`` replicates at once.

* ``"resampled"`` — draw the reduced model's residuals with
  replacement (residual bootstrap).
* ``"parametric"`` — draw independent Normal(0, s) noise, where *s* is
  the sample standard deviation of the reduced model's residuals.

Adding a new strategy
~~~~~~~~~~~~~~~~~~~~~
1. Create a module in this package with a class that satisfies the
   :class:`NoiseStrategy` protocol.
2. Register it in :data:`_STRATEGY_REGISTRY` below.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

# ------------------------------------------------------------------ #
# Strategy protocol
# ------------------------------------------------------------------ #


@runtime_checkable
class NoiseStrategy(Protocol):
    """Interface every noise strategy must satisfy."""

    name: str
    """Registry key, echoed in results and reports."""

    def draw(
        self,
        residuals: np.ndarray,
        n_replicates: int,
        rng: np.random.Generator,
    ) -> np.ndarray:
        """Generate synthetic noise for every replicate.

        Args:
            residuals: Reduced-model residuals ``(n,)`` on the original
                data.
            n_replicates: Number of replicates ``B``.
            rng: Generator owned by the calling hypothesis.

        Returns:
            Noise matrix of shape ``(B, n)``.
        """
        ...


# ------------------------------------------------------------------ #
# Registry
# ------------------------------------------------------------------ #

# Lazy imports keep the strategy modules free to import from the
# package root without a cycle.
_STRATEGY_REGISTRY: dict[str, type[NoiseStrategy]] = {}


def _ensure_registry() -> None:
    """Populate the registry on first access."""
    if _STRATEGY_REGISTRY:
        return

    from .parametric import ParametricNoise
    from .resampled import ResampledNoise

    _STRATEGY_REGISTRY.update(
        {
            "resampled": ResampledNoise,
            "parametric": ParametricNoise,
        }
    )


def resolve_noise(noise: str) -> NoiseStrategy:
    """Return a strategy instance for the given mode string.

    Args:
        noise: ``"resampled"`` or ``"parametric"``.

    Raises:
        ValueError: If *noise* is not recognised.
    """
    _ensure_registry()
    cls = _STRATEGY_REGISTRY.get(noise) if isinstance(noise, str) else None
    if cls is None:
        valid = ", ".join(sorted(_STRATEGY_REGISTRY))
        raise ValueError(f"Invalid noise mode '{noise}'. Choose from: {valid}.")
    return cls()


__all__ = [
    "NoiseStrategy",
    "resolve_noise",
]
