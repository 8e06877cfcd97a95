"""Total-score to per-transplant payment mapping.

Upside is paid only at or above the upside threshold (60); downside is owed
only below the downside threshold (40) and is reported as a positive penalty
magnitude. Scores inside the neutral corridor earn and owe nothing.
"""

from __future__ import annotations

import random
from typing import List, Optional

from app.assessments.iota_v1 import load_config
from app.assessments.iota_v1.types import IotaParameters, PaymentDetail, PaymentQuote
from app.core.numeric import round_half_up

__all__ = ["quote_payments", "build_payment_details"]


def quote_payments(
    total_score: float,
    num_transplants: int,
    *,
    params: Optional[IotaParameters] = None,
) -> PaymentQuote:
    """Un-jittered per-transplant upside/downside for ``total_score``.

    Example:
        >>> quote_payments(65, 10).per_upside
        1875.0
        >>> quote_payments(25, 10).per_downside
        750.0
    """
    schedule = (params or load_config()).payments
    per_upside = schedule.upside_per_transplant * (total_score - schedule.upside_threshold) / schedule.span
    per_downside = schedule.downside_per_transplant * (schedule.downside_threshold - total_score) / schedule.span

    corridor_low, corridor_high = schedule.neutral_corridor
    if corridor_low <= total_score <= corridor_high:
        per_upside = 0.0
        per_downside = 0.0
    if total_score < schedule.upside_threshold:
        per_upside = 0.0
    if total_score >= schedule.downside_threshold:
        per_downside = 0.0

    return PaymentQuote(
        per_upside=float(per_upside),
        per_downside=float(per_downside),
        num_transplants=int(num_transplants),
    )


def build_payment_details(
    quote: PaymentQuote,
    *,
    rng: Optional[random.Random] = None,
    cap: Optional[int] = None,
    params: Optional[IotaParameters] = None,
) -> List[PaymentDetail]:
    """Illustrative per-transplant rows with each amount independently jittered.

    The jitter exists for display granularity only; aggregate totals are
    always taken from ``quote``. Pass a seeded ``random.Random`` to make the
    rows reproducible.
    """
    schedule = (params or load_config()).payments
    rng = rng or random.Random()
    limit = schedule.detail_row_cap if cap is None else min(cap, schedule.detail_row_cap)
    up_low, up_high = schedule.upside_jitter
    down_low, down_high = schedule.downside_jitter

    rows: List[PaymentDetail] = []
    for index in range(max(0, min(limit, quote.num_transplants))):
        upside = quote.per_upside * rng.uniform(up_low, up_high)
        downside = quote.per_downside * rng.uniform(down_low, down_high)
        rows.append(
            PaymentDetail(
                id=f"TX-{index + 1}",
                upside=round_half_up(upside),
                downside=round_half_up(downside),
            )
        )
    return rows
