"""Display formatting for payment and rate figures.

Used by the command-line summary; the API returns raw numbers and leaves
presentation to the front-end.
"""

from __future__ import annotations

from typing import Optional

from app.core.numeric import is_finite, round_half_up

__all__ = ["PLACEHOLDER", "format_currency", "format_percent", "format_decimal"]

PLACEHOLDER = "n/a"


def format_currency(value: Optional[float]) -> str:
    """Whole-dollar amount with thousands separators, e.g. ``$1,875``."""

    if not is_finite(value):
        return PLACEHOLDER
    amount = round_half_up(float(value))
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,}"


def format_percent(value: Optional[float], *, decimals: int = 1) -> str:
    if not is_finite(value):
        return PLACEHOLDER
    return f"{float(value):.{decimals}f}%"


def format_decimal(value: Optional[float], *, decimals: int = 2) -> Optional[float]:
    """Round a nullable float half-up at ``decimals`` places."""

    if not is_finite(value):
        return None
    scale = 10 ** decimals
    return round_half_up(float(value) * scale) / scale
