"""Sequence the IOTA calculations into a single :class:`ScoreResult`.

Two short-circuit states never raise: a center code that is missing or not
exactly the canonical length, and a center that cannot be found or has no
finite baseline average. Both return the all-zero result with empty
distributions.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Optional

from app.assessments.iota_v1 import load_config
from app.assessments.iota_v1.calculations import (
    achievement_score,
    acceptance_population,
    build_distribution,
    center_target,
    efficiency_breakdown,
    empty_distribution,
    national_growth_rate,
    percentile_rank,
    quality_population,
    quality_score,
)
from app.assessments.iota_v1.payments import build_payment_details, quote_payments
from app.assessments.iota_v1.reference import CenterRow, ReferenceTable
from app.assessments.iota_v1.types import Distribution, IotaParameters
from app.core.logging import get_logger
from app.core.metrics import inc_counter, observe_score, timer
from app.core.numeric import finite_mean, is_finite, normalize_percent, round_half_up
from app.schemas.score import (
    DistributionOut,
    DistributionPair,
    PaymentRow,
    PaymentTotals,
    PercentileMarkers,
    PerTransplantPayment,
    ResultMeta,
    ScoreBreakdown,
    ScoreRequest,
    ScoreResult,
    ScoreStatus,
    TransplantVolume,
)

logger = get_logger("iota.assessments.compiler", component="assessments")

__all__ = ["compile_center_results", "is_valid_center_code"]


def is_valid_center_code(code: Optional[str], params: Optional[IotaParameters] = None) -> bool:
    params = params or load_config()
    return isinstance(code, str) and len(code.strip()) == params.center_code_length


def compile_center_results(
    request: ScoreRequest,
    summary: ReferenceTable,
    graft: Optional[ReferenceTable] = None,
    *,
    params: Optional[IotaParameters] = None,
    rng: Optional[random.Random] = None,
    bins: Optional[int] = None,
    detail_cap: Optional[int] = None,
) -> ScoreResult:
    """Score one center's proposed metrics against the national reference tables.

    Args:
        request: Center code and proposed volume, acceptance and graft survival.
        summary: National per-center summary table.
        graft: Optional dedicated graft-survival table; when empty the summary
            supplies the graft-survival population.
        params: Model parameters, defaulting to the packaged ``config.yaml``.
        rng: Random source for payment detail rows. A ``request.seed`` takes
            precedence when no generator is supplied.
        bins: Histogram bin count override.
        detail_cap: Upper bound on payment detail rows (never above the model cap).

    Returns:
        A fully populated :class:`ScoreResult`; never raises for data issues.
    """
    params = params or load_config()
    graft = graft if graft is not None else ReferenceTable()

    with timer("iota.compile"):
        if not is_valid_center_code(request.center_code, params):
            return _short_circuit(request, "invalid-center", params)
        row = summary.find(request.center_code)
        if row is None:
            return _short_circuit(request, "unknown-center", params)
        if not is_finite(row.baseline_average):
            return _short_circuit(request, "no-baseline", params)
        result = _score_center(
            request, row, summary, graft, params=params, rng=rng, bins=bins, detail_cap=detail_cap
        )

    inc_counter("iota.compile.ok")
    observe_score("iota.total_score", result.scores.total_score)
    logger.info(
        "score_compiled",
        extra={
            "structured_data": {
                "center_code": row.code,
                "total_score": result.scores.total_score,
                "n_records": result.n_records,
            }
        },
    )
    return result


def _score_center(
    request: ScoreRequest,
    row: CenterRow,
    summary: ReferenceTable,
    graft: ReferenceTable,
    *,
    params: IotaParameters,
    rng: Optional[random.Random],
    bins: Optional[int],
    detail_cap: Optional[int],
) -> ScoreResult:
    n = request.num_transplants
    proposed_rate = request.offer_accept_rate
    proposed_graft = normalize_percent(request.graft_survival)

    acceptance_vals = acceptance_population(summary)
    graft_vals = quality_population(summary, graft)
    acceptance_dist = build_distribution(acceptance_vals, bins, params=params) or empty_distribution(params)
    graft_dist = build_distribution(graft_vals, bins, params=params) or empty_distribution(params)

    growth = national_growth_rate(summary)
    target = center_target(row, growth)
    logger.debug(
        "national_target_resolved",
        extra={"structured_data": {"growth_rate": growth, "target": target, "center_code": row.code}},
    )

    achievement = achievement_score(n, target, params=params)
    efficiency = efficiency_breakdown(summary, row.code, proposed_rate, params=params)
    quality = quality_score(graft_vals, proposed_graft, params=params)
    total = achievement + efficiency.score + quality

    quote = quote_payments(total, n, params=params)
    details = []
    if request.include_payments:
        if rng is None and request.seed is not None:
            rng = random.Random(request.seed)
        details = build_payment_details(quote, rng=rng, cap=detail_cap, params=params)

    benchmark_acceptance = finite_mean(acceptance_vals)
    if not is_finite(benchmark_acceptance) or not benchmark_acceptance:
        benchmark_acceptance = params.default_benchmark_acceptance_rate
    benchmark_graft = finite_mean(graft_vals)

    return ScoreResult(
        status="ok",
        meta=_meta(request, params),
        per_transplant=PerTransplantPayment(
            upside=round_half_up(quote.per_upside),
            downside=round_half_up(quote.per_downside),
        ),
        totals=PaymentTotals(
            upside_total=round_half_up(quote.upside_total),
            downside_total=round_half_up(quote.downside_total),
        ),
        distribution=DistributionPair(
            acceptance=_distribution_out(acceptance_dist),
            graft_survival=_distribution_out(graft_dist),
        ),
        transplant_volume=TransplantVolume(
            labels=_volume_labels(params),
            volumes=[v if is_finite(v) else None for v in row.baseline_transplants],
            projected=[float(n)],
            target=target,
        ),
        scores=ScoreBreakdown(
            transplant_target=target,
            current_transplants=n,
            distance_from_target=target - n,
            acceptance_percentile=percentile_rank(acceptance_vals, proposed_rate),
            graft_survival_percentile=percentile_rank(graft_vals, proposed_graft),
            benchmark_acceptance_rate=benchmark_acceptance,
            benchmark_graft_survival=benchmark_graft if is_finite(benchmark_graft) else None,
            center_offer_accept_rate=_finite_or_none(row.acceptance_rate),
            center_graft_survival=_finite_or_none(row.graft_survival_pct),
            center_transplants=_finite_or_none(row.performance_transplants),
            achievement_score=achievement,
            efficiency_score=efficiency.score,
            efficiency_achievement_component=efficiency.achievement,
            efficiency_improvement_component=efficiency.improvement,
            quality_score=quality,
            total_score=total,
        ),
        payments=[PaymentRow(id=d.id, upside=d.upside, downside=d.downside) for d in details],
        n_records=len(details),
    )


def _short_circuit(request: ScoreRequest, status: ScoreStatus, params: IotaParameters) -> ScoreResult:
    inc_counter(f"iota.compile.{status}")
    logger.info(
        "score_short_circuit",
        extra={"structured_data": {"status": status, "center_code": request.center_code}},
    )
    empty = _distribution_out(empty_distribution(params))
    return ScoreResult(
        status=status,
        meta=_meta(request, params),
        per_transplant=PerTransplantPayment(upside=0, downside=0),
        totals=PaymentTotals(upside_total=0, downside_total=0),
        distribution=DistributionPair(acceptance=empty, graft_survival=empty.model_copy(deep=True)),
        transplant_volume=TransplantVolume(
            labels=_volume_labels(params),
            volumes=[None] * len(params.years.baseline),
            projected=[0.0],
            target=0.0,
        ),
        scores=ScoreBreakdown(
            transplant_target=0.0,
            current_transplants=0,
            distance_from_target=0.0,
            acceptance_percentile=0,
            graft_survival_percentile=0,
            benchmark_acceptance_rate=0.0,
            benchmark_graft_survival=0.0,
            center_offer_accept_rate=0.0,
            center_graft_survival=0.0,
            center_transplants=0.0,
            achievement_score=0,
            efficiency_score=0,
            efficiency_achievement_component=0,
            efficiency_improvement_component=0,
            quality_score=0,
            total_score=0,
        ),
        payments=[],
        n_records=0,
    )


def _meta(request: ScoreRequest, params: IotaParameters) -> ResultMeta:
    return ResultMeta(
        inputs=request.model_dump(),
        timestamp=datetime.now(timezone.utc),
        model=params.model_label,
    )


def _volume_labels(params: IotaParameters) -> list[str]:
    return [*params.years.baseline, params.years.projection]


def _distribution_out(distribution: Distribution) -> DistributionOut:
    return DistributionOut(
        bins=list(distribution.bins),
        freqs=list(distribution.freqs),
        values=list(distribution.values),
        percentiles=PercentileMarkers(**dict(distribution.percentiles)),
    )


def _finite_or_none(value: float) -> Optional[float]:
    return value if is_finite(value) else None
