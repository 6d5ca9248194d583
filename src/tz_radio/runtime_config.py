"""Runtime configuration normalization helpers.

These helpers keep CLI flag and persisted-setting interpretation deterministic
across entrypoints.
"""

from __future__ import annotations

import math

MIN_USER_REFRESH_INTERVAL_S = 5.0


def resolve_log_level(*, verbose: bool, quiet: bool) -> str:
    """Resolve effective log level from CLI flags.

    Precedence is deterministic: --quiet overrides --verbose.
    """
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"


def normalize_refresh_interval(value: object, default: float) -> float:
    """Normalize a user-supplied refresh interval in seconds.

    Non-numeric or non-finite values fall back to `default`; anything shorter
    than `MIN_USER_REFRESH_INTERVAL_S` is raised to it so a bad setting cannot
    hammer a provider.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return default
    try:
        seconds = float(value)
    except ValueError:
        return default
    if not math.isfinite(seconds):
        return default
    return max(MIN_USER_REFRESH_INTERVAL_S, seconds)
