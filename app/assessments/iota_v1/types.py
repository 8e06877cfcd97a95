from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True, slots=True)
class TierTable:
    """Descending step table mapping a measure to points."""

    tiers: Tuple[Tuple[float, int], ...]
    floor: int
    max_points: int

    @classmethod
    def from_raw(cls, payload: Mapping[str, Any], key: str = "tiers") -> "TierTable":
        tiers = tuple((float(threshold), int(points)) for threshold, points in payload[key])
        if any(later[0] > earlier[0] for earlier, later in zip(tiers, tiers[1:])):
            raise ValueError(f"{key} must be ordered from highest threshold to lowest")
        return cls(tiers=tiers, floor=int(payload.get("floor", 0)), max_points=int(payload["max_points"]))

    def points_for(self, measure: float) -> int:
        for threshold, points in self.tiers:
            if measure >= threshold:
                return points
        return self.floor


@dataclass(frozen=True, slots=True)
class ImprovementRule:
    benchmark_multiplier: float
    max_points: int


@dataclass(frozen=True, slots=True)
class PaymentSchedule:
    """Piecewise per-transplant payment schedule keyed on total score."""

    upside_per_transplant: float
    upside_threshold: float
    downside_per_transplant: float
    downside_threshold: float
    span: float
    neutral_corridor: Tuple[float, float]
    detail_row_cap: int
    upside_jitter: Tuple[float, float]
    downside_jitter: Tuple[float, float]

    @classmethod
    def from_raw(cls, payload: Mapping[str, Any]) -> "PaymentSchedule":
        low, high = (float(v) for v in payload["neutral_corridor"])
        return cls(
            upside_per_transplant=float(payload["upside_per_transplant"]),
            upside_threshold=float(payload["upside_threshold"]),
            downside_per_transplant=float(payload["downside_per_transplant"]),
            downside_threshold=float(payload["downside_threshold"]),
            span=float(payload["span"]),
            neutral_corridor=(low, high),
            detail_row_cap=int(payload["detail_row_cap"]),
            upside_jitter=_pair(payload["upside_jitter"]),
            downside_jitter=_pair(payload["downside_jitter"]),
        )


@dataclass(frozen=True, slots=True)
class ReportingYears:
    baseline: Tuple[str, ...]
    performance: str
    projection: str


@dataclass(frozen=True, slots=True)
class ColumnTemplates:
    """Reference-table column names; ``{year}`` is substituted per reporting year."""

    center_code: str
    pediatric: str
    participation: str
    transplants: str
    acceptance_rate: str
    graft_survival: str


@dataclass(frozen=True, slots=True)
class IotaParameters:
    """Immutable container for the IOTA scoring configuration."""

    model_id: str
    version: str
    model_label: str
    center_code_length: int
    years: ReportingYears
    columns: ColumnTemplates
    achievement: TierTable
    efficiency: TierTable
    improvement: ImprovementRule
    quality: TierTable
    payments: PaymentSchedule
    bins: int
    quantiles: Mapping[str, float]
    default_benchmark_acceptance_rate: float

    @classmethod
    def from_raw(cls, payload: Mapping[str, Any]) -> "IotaParameters":
        years = payload["years"]
        efficiency = payload["efficiency"]
        improvement = efficiency["improvement"]
        distribution = payload["distribution"]
        return cls(
            model_id=str(payload["id"]),
            version=str(payload["version"]),
            model_label=str(payload["model_label"]),
            center_code_length=int(payload["center_code_length"]),
            years=ReportingYears(
                baseline=tuple(str(year) for year in years["baseline"]),
                performance=str(years["performance"]),
                projection=str(years["projection"]),
            ),
            columns=ColumnTemplates(**{key: str(value) for key, value in payload["columns"].items()}),
            achievement=TierTable.from_raw(payload["achievement"]),
            efficiency=TierTable.from_raw(efficiency, key="percentile_tiers"),
            improvement=ImprovementRule(
                benchmark_multiplier=float(improvement["benchmark_multiplier"]),
                max_points=int(improvement["max_points"]),
            ),
            quality=TierTable.from_raw(payload["quality"], key="percentile_tiers"),
            payments=PaymentSchedule.from_raw(payload["payments"]),
            bins=int(distribution["bins"]),
            quantiles=MappingProxyType({k: float(v) for k, v in distribution["quantiles"].items()}),
            default_benchmark_acceptance_rate=float(distribution["default_benchmark_acceptance_rate"]),
        )


@dataclass(frozen=True, slots=True)
class Distribution:
    """Equal-width histogram of a national population plus quantile markers."""

    bins: Tuple[str, ...]
    freqs: Tuple[int, ...]
    values: Tuple[float, ...]
    percentiles: Mapping[str, Optional[float]] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True, slots=True)
class EfficiencyBreakdown:
    achievement: int
    improvement: int

    @property
    def score(self) -> int:
        return max(self.achievement, self.improvement)


@dataclass(frozen=True, slots=True)
class PaymentQuote:
    """Un-jittered per-transplant amounts; downside is a penalty magnitude."""

    per_upside: float
    per_downside: float
    num_transplants: int

    @property
    def upside_total(self) -> float:
        return self.per_upside * self.num_transplants

    @property
    def downside_total(self) -> float:
        return self.per_downside * self.num_transplants


@dataclass(frozen=True, slots=True)
class PaymentDetail:
    id: str
    upside: int
    downside: int


def _pair(values: Sequence[Any]) -> Tuple[float, float]:
    if len(values) != 2:
        raise ValueError("Jitter bounds must contain exactly two elements: [low, high]")
    low, high = (float(v) for v in values)
    return low, high


__all__ = [
    "TierTable",
    "ImprovementRule",
    "PaymentSchedule",
    "ReportingYears",
    "ColumnTemplates",
    "IotaParameters",
    "Distribution",
    "EfficiencyBreakdown",
    "PaymentQuote",
    "PaymentDetail",
]
