"""Pure IOTA scoring calculations detached from I/O concerns.

Every function here is deterministic and side-effect free. Inputs are the
immutable reference tables from :mod:`app.assessments.iota_v1.reference`
and already-coerced floats; nothing in this module raises for bad data.
Missing or non-finite observations are dropped and empty populations degrade
to zero or to an absent distribution.

Tier thresholds come from ``config.yaml`` through :func:`load_config`.
"""

from __future__ import annotations

import math
from bisect import bisect_left
from types import MappingProxyType
from typing import Iterable, Optional, Sequence

from app.assessments.iota_v1 import load_config
from app.assessments.iota_v1.reference import CenterRow, ReferenceTable
from app.assessments.iota_v1.types import Distribution, EfficiencyBreakdown, IotaParameters
from app.core.numeric import clamp, is_finite, normalize_percent, round_half_up, safe_div

__all__ = [
    "percentile_rank",
    "build_distribution",
    "empty_distribution",
    "national_growth_rate",
    "center_target",
    "achievement_score",
    "acceptance_population",
    "efficiency_breakdown",
    "efficiency_score",
    "quality_population",
    "quality_score",
]


def percentile_rank(population: Iterable[float], value: float) -> int:
    """Share of ``population`` strictly below ``value``, as a 0-100 integer.

    Members equal to ``value`` are not counted, so the lowest member of a
    population ranks 0 rather than at a midpoint.

    Example:
        >>> percentile_rank([10, 20, 30, 40], 30)
        50
        >>> percentile_rank([], 5)
        0
    """
    ordered = sorted(v for v in population if is_finite(v))
    if not ordered or not is_finite(value):
        return 0
    below = bisect_left(ordered, value)
    return round_half_up(100 * below / len(ordered))


def build_distribution(
    values: Sequence[float],
    bins: Optional[int] = None,
    *,
    params: Optional[IotaParameters] = None,
) -> Optional[Distribution]:
    """Bucket ``values`` into equal-width bins and attach quantile markers.

    Bin labels are the half-up rounded midpoint of each bin. Frequencies are
    rounded percentages of the total, so they may not sum to exactly 100.
    Quantiles use the nearest-rank rule ``sorted[floor(q * n)]`` without
    interpolation. A population with a single distinct value gets a bin width
    of 1, putting everything in the first bin.

    Returns ``None`` for an empty population.
    """
    params = params or load_config()
    bin_count = int(bins or params.bins)
    observations = [float(v) for v in values if is_finite(v)]
    if not observations or bin_count < 1:
        return None

    ordered = sorted(observations)
    low, high = ordered[0], ordered[-1]
    bin_size = (high - low) / bin_count
    if not math.isfinite(bin_size):
        # The span of values near the float limits overflows; scale first.
        bin_size = high / bin_count - low / bin_count
    bin_size = bin_size or 1.0

    def bin_index(value: float) -> int:
        offset = value - low
        position = offset / bin_size if math.isfinite(offset) else value / bin_size - low / bin_size
        if not math.isfinite(position):
            return bin_count - 1 if position > 0 else 0
        return clamp(math.floor(position), 0, bin_count - 1)

    def edge(k: int) -> float:
        if not k:
            return low
        step = k * bin_size
        if math.isfinite(step):
            return low + step
        return high - (bin_count - k) * bin_size if k < bin_count else high

    def midpoint(i: int) -> float:
        return edge(i) / 2 + edge(i + 1) / 2

    counts = [0] * bin_count
    for value in ordered:
        counts[bin_index(value)] += 1

    labels = tuple(str(round_half_up(midpoint(i))) for i in range(bin_count))
    total = len(ordered)
    freqs = tuple(round_half_up(100 * count / total) for count in counts)

    def nearest_rank(q: float) -> Optional[float]:
        position = math.floor(total * q)
        return ordered[position] if 0 <= position < total else None

    markers = {name: nearest_rank(q) for name, q in params.quantiles.items()}
    return Distribution(bins=labels, freqs=freqs, values=tuple(ordered), percentiles=MappingProxyType(markers))


def empty_distribution(params: Optional[IotaParameters] = None) -> Distribution:
    """Placeholder used when there is nothing to bucket."""
    params = params or load_config()
    markers = {name: None for name in params.quantiles}
    return Distribution(bins=(), freqs=(), values=(), percentiles=MappingProxyType(markers))


def national_growth_rate(summary: ReferenceTable) -> float:
    """Pediatric-excluded year-over-year growth in national transplant volume.

    Baseline averages and performance-year counts are summed independently,
    so a row may contribute to one total without the other. Returns 0 when
    there is no baseline volume to compare against or the totals overflow.
    """
    baseline_total = 0.0
    perf_total = 0.0
    for row in summary.non_pediatric():
        average = row.baseline_average
        if is_finite(average):
            baseline_total += average
        if is_finite(row.performance_transplants):
            perf_total += row.performance_transplants
    if not baseline_total:
        return 0.0
    growth = perf_total / baseline_total - 1
    return growth if math.isfinite(growth) else 0.0


def center_target(row: CenterRow, growth_rate: float) -> float:
    """Center's own baseline average grown at the national rate (NaN if no baseline)."""
    return row.baseline_average * (1 + growth_rate)


def achievement_score(num_transplants: float, target: float, *, params: Optional[IotaParameters] = None) -> int:
    """Step-table score (0-60) on the ratio of proposed volume to target."""
    params = params or load_config()
    if not target or not is_finite(target):
        return 0
    return params.achievement.points_for(num_transplants / target)


def acceptance_population(summary: ReferenceTable, *, exclude_pediatric: bool = False) -> list[float]:
    rows = summary.non_pediatric() if exclude_pediatric else iter(summary)
    return [row.acceptance_rate for row in rows if is_finite(row.acceptance_rate)]


def efficiency_breakdown(
    summary: ReferenceTable,
    center_code: str,
    proposed_rate: float,
    *,
    params: Optional[IotaParameters] = None,
) -> EfficiencyBreakdown:
    """Both efficiency components for a proposed offer-acceptance rate.

    The achievement component ranks the proposed rate nationally (pediatric
    centers excluded). The improvement component compares it against the
    center's own current rate and a benchmark 20% above it. A center that is
    not in the table, or has no current rate, scores zero on both.
    """
    params = params or load_config()
    row = summary.find(center_code)
    if row is None or not is_finite(row.acceptance_rate):
        return EfficiencyBreakdown(achievement=0, improvement=0)

    rank = percentile_rank(acceptance_population(summary, exclude_pediatric=True), proposed_rate)
    achievement = params.efficiency.points_for(rank)

    current = row.acceptance_rate
    rule = params.improvement
    benchmark = current * rule.benchmark_multiplier
    if proposed_rate >= benchmark:
        improvement = rule.max_points
    elif proposed_rate >= current:
        improvement = round_half_up(
            rule.max_points * safe_div(proposed_rate - current, benchmark - current)
        )
    else:
        improvement = 0
    return EfficiencyBreakdown(achievement=achievement, improvement=improvement)


def efficiency_score(
    summary: ReferenceTable,
    center_code: str,
    proposed_rate: float,
    *,
    params: Optional[IotaParameters] = None,
) -> int:
    return efficiency_breakdown(summary, center_code, proposed_rate, params=params).score


def quality_population(summary: ReferenceTable, graft: ReferenceTable) -> list[float]:
    """Normalized (0-100) graft-survival population.

    The dedicated graft table is used whenever it has rows; otherwise the
    national summary stands in. Zero and negative rates are treated as
    missing.
    """
    source = graft if len(graft) else summary
    return [
        normalize_percent(row.graft_survival)
        for row in source
        if is_finite(row.graft_survival) and row.graft_survival > 0
    ]


def quality_score(
    population: Sequence[float],
    proposed_survival: float,
    *,
    params: Optional[IotaParameters] = None,
) -> int:
    """Tiered quality score (10-20); ``proposed_survival`` must already be normalized."""
    params = params or load_config()
    return params.quality.points_for(percentile_rank(population, proposed_survival))

