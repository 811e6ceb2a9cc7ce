"""Seeded random streams and bootstrap index generation.

Reproducibility model
~~~~~~~~~~~~~~~~~~~~~
Every public entry point accepts a single ``random_state`` and turns it
into a :class:`numpy.random.SeedSequence`.  Independent child sequences
are then *spawned* — one per hypothesis for the significance test, one
per outer replicate for the confidence-interval estimator — and each
child seeds its own :class:`numpy.random.Generator`.

Spawning (rather than drawing everything from one shared generator)
makes each unit of work depend only on its own position in the spawn
order.  Hypotheses can therefore be evaluated in any order, or on
joblib workers, and still reproduce bit-for-bit for a fixed seed.

With ``random_state=None`` fresh OS entropy is used and runs are not
reproducible; only the distributional properties of the p-values hold.
"""

from __future__ import annotations

import numpy as np

RandomState = int | np.random.SeedSequence | np.random.Generator | None
"""Seed sources accepted by the public API."""


def make_seed_sequence(random_state: RandomState) -> np.random.SeedSequence:
    """Normalise *random_state* to a :class:`~numpy.random.SeedSequence`.

    A ``Generator`` is consumed once to derive a 128-bit entropy value,
    so passing the same generator twice yields different sequences, as
    it would for any other draw.

    Raises:
        TypeError: If *random_state* is none of the accepted types.
        ValueError: If an integer seed is negative.
    """
    if isinstance(random_state, np.random.SeedSequence):
        return random_state
    if isinstance(random_state, np.random.Generator):
        entropy = random_state.integers(0, 2**63 - 1, size=2)
        return np.random.SeedSequence([int(e) for e in entropy])
    if random_state is None or isinstance(random_state, (int, np.integer)):
        if random_state is not None and random_state < 0:
            raise ValueError(f"random_state must be non-negative, got {random_state}.")
        return np.random.SeedSequence(
            None if random_state is None else int(random_state)
        )
    raise TypeError(
        "random_state must be an int, SeedSequence, Generator or None, got "
        f"{type(random_state).__name__}."
    )


def spawn_generators(random_state: RandomState, n: int) -> list[np.random.Generator]:
    """Return *n* statistically independent generators from one seed.

    Args:
        random_state: Seed source (see :func:`make_seed_sequence`).
        n: Number of child generators.

    Returns:
        List of ``n`` generators; element *k* depends only on the seed
        and *k*.
    """
    root = make_seed_sequence(random_state)
    return [np.random.default_rng(child) for child in root.spawn(n)]


def bootstrap_indices(
    n_samples: int,
    n_replicates: int,
    rng: np.random.Generator,
) -> np.ndarray:
    """Draw row indices for a nonparametric (pairs) bootstrap.

    Each row of the result is an independent sample of size
    *n_samples* drawn with replacement from ``range(n_samples)``.
    Unlike permutations, duplicates within a row are expected — on
    average only about 63% of the original rows appear in a replicate.

    Args:
        n_samples: Number of observations.
        n_replicates: Number of bootstrap replicates (rows).
        rng: Generator to draw from.

    Returns:
        Integer array of shape ``(n_replicates, n_samples)``.

    Raises:
        ValueError: If either size is not positive.
    """
    if n_samples < 1:
        raise ValueError(f"n_samples must be positive, got {n_samples}.")
    if n_replicates < 1:
        raise ValueError(f"n_replicates must be positive, got {n_replicates}.")
    return np.asarray(
        rng.integers(0, n_samples, size=(n_replicates, n_samples), dtype=np.intp)
    )
