"""Default-fitter configuration for the rank_bootstrap package.

Controls which robust fitting routine the public API uses when the
caller does not pass ``fitter=`` explicitly.

Resolution order (first match wins):
    1. Programmatic override via :func:`set_default_fitter`.
    2. The ``RANK_BOOTSTRAP_FITTER`` environment variable.
    3. ``"rank"`` (Jaeckel rank-based regression).

Valid names are those in the fitter registry (``"rank"``,
``"least_squares"``, ``"huber"`` and anything added with
:func:`~rank_bootstrap.register_fitter`), case-insensitive, plus
``"auto"`` to clear an override.

Examples:
    Switch every test to least squares from the shell::

        export RANK_BOOTSTRAP_FITTER=least_squares

    Or programmatically::

        import rank_bootstrap
        rank_bootstrap.set_default_fitter("huber")

    Restore the default resolution order::

        rank_bootstrap.set_default_fitter("auto")
"""

from __future__ import annotations

import os

_ENV_VAR = "RANK_BOOTSTRAP_FITTER"

# Sentinel indicating "no programmatic override has been set".
_fitter_override: str | None = None


def _registered_fitters() -> set[str]:
    # fitters imports this module at load time
    from .fitters import _FITTERS

    return set(_FITTERS)


def get_default_fitter() -> str:
    """Return the name of the fitter used when none is requested.

    Returns:
        A registered fitter name.
    """
    # 1. Programmatic override
    if _fitter_override is not None:
        return _fitter_override

    # 2. Environment variable.  Unknown values are ignored rather than
    #    raised so that a stale shell export cannot break imports.
    env = os.environ.get(_ENV_VAR, "").strip().lower()
    if env in _registered_fitters():
        return env

    # 3. Package default
    return "rank"


def set_default_fitter(name: str) -> None:
    """Override the default fitter.

    Args:
        name: A registered fitter name, or ``"auto"``
            (case-insensitive).  ``"auto"`` removes the
            override and restores the default resolution order.

    Raises:
        ValueError: If *name* is not a recognised fitter.
    """
    global _fitter_override
    normalised = name.strip().lower()
    if normalised == "auto":
        _fitter_override = None
        return
    valid = _registered_fitters()
    if normalised not in valid:
        raise ValueError(
            f"Unknown fitter '{name}'. Choose from: {sorted(valid | {'auto'})}"
        )
    _fitter_override = normalised
