"""Numeric validation and transformation utilities.

Reference exports arrive with empty cells, text, nulls and already-numeric
values mixed together. Everything the scoring model reads goes through these
helpers so that:
- non-finite values never leak into a result
- divisions are guarded
- rounding follows a single half-up rule
- percentage/fraction normalization happens in exactly one place
"""

from __future__ import annotations

import math
from typing import Any, Iterable, TypeVar

__all__ = [
    "NAN",
    "as_num",
    "is_finite",
    "clamp",
    "safe_div",
    "round_half_up",
    "normalize_percent",
    "finite_mean",
]


NAN = float("nan")

NumericT = TypeVar("NumericT", int, float)


def as_num(value: Any, fallback: float = NAN) -> float:
    """Convert ``value`` to a float, returning ``fallback`` if it is not finite.

    Strings are stripped before parsing; ``None`` and empty strings are treated
    as missing rather than zero.

    Example:
        >>> as_num("42.5")
        42.5
        >>> as_num("", 0.0)
        0.0
        >>> math.isnan(as_num(None))
        True
    """
    if value is None:
        return fallback
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return fallback
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return fallback
    return number if math.isfinite(number) else fallback


def is_finite(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers beyond float range cannot take part in float arithmetic.
        return False


def clamp(value: NumericT, min_value: NumericT, max_value: NumericT) -> NumericT:
    """Clamp a numeric value to be within the specified range.

    Example:
        >>> clamp(12, 0, 9)
        9
        >>> clamp(-1, 0, 9)
        0
    """
    if min_value > max_value:
        raise ValueError(f"min_value ({min_value}) must be <= max_value ({max_value})")
    return max(min_value, min(value, max_value))


def safe_div(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning ``default`` for a zero or non-finite denominator."""
    if not denominator or not math.isfinite(denominator):
        return default
    return numerator / denominator


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties going towards positive infinity.

    Python's ``round`` uses banker's rounding; score tiers and payment figures
    are published with ``.5`` always rounded up.

    Example:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(-2.5)
        -2
    """
    return int(math.floor(value + 0.5))


def normalize_percent(value: float) -> float:
    """Express a rate on the 0-100 scale.

    Values greater than 1 are taken to already be percentages; anything at or
    below 1 is a fraction and is scaled by 100. Non-finite input is returned
    unchanged so callers can keep filtering on finiteness.

    Example:
        >>> normalize_percent(0.5)
        50.0
        >>> normalize_percent(95.4)
        95.4
    """
    if not math.isfinite(value):
        return value
    return value if value > 1 else value * 100


def finite_mean(values: Iterable[float]) -> float:
    """Arithmetic mean of the finite members of ``values`` (NaN when none)."""
    finite = [v for v in values if is_finite(v)]
    if not finite:
        return NAN
    total = sum(finite)
    if not math.isfinite(total):
        return sum(v / len(finite) for v in finite)
    return total / len(finite)
