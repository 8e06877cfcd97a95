from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from app.core.numeric import as_num, round_half_up

__all__ = [
    "MAX_TRANSPLANTS",
    "ScoreStatus",
    "ScoreRequest",
    "PercentileMarkers",
    "DistributionOut",
    "DistributionPair",
    "PerTransplantPayment",
    "PaymentTotals",
    "TransplantVolume",
    "ScoreBreakdown",
    "PaymentRow",
    "ResultMeta",
    "ScoreResult",
]

ScoreStatus = Literal["ok", "invalid-center", "unknown-center", "no-baseline"]

# Proposed volumes are clamped to this ceiling so payment totals stay finite.
MAX_TRANSPLANTS = 100_000


class ScoreRequest(BaseModel):
    """Center code plus the three proposed metrics.

    Metric fields are coerced rather than rejected: anything that is not a
    finite number becomes 0, and volume is rounded to a whole count between 0
    and ``MAX_TRANSPLANTS``. Camel-case keys from the browser form are
    accepted as well.
    """

    center_code: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("center_code", "centerCode", "centerId")
    )
    num_transplants: int = Field(
        default=0, ge=0, le=MAX_TRANSPLANTS, validation_alias=AliasChoices("num_transplants", "numTransplants")
    )
    offer_accept_rate: float = Field(
        default=0.0, validation_alias=AliasChoices("offer_accept_rate", "offerAcceptRate")
    )
    graft_survival: float = Field(default=0.0, validation_alias=AliasChoices("graft_survival", "graftSurvival"))
    include_payments: bool = Field(
        default=False, validation_alias=AliasChoices("include_payments", "includePayments")
    )
    seed: Optional[int] = Field(default=None, description="Seed for reproducible payment detail rows")

    @field_validator("center_code", mode="before")
    @classmethod
    def _code_as_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        return None

    @field_validator("num_transplants", mode="before")
    @classmethod
    def _coerce_volume(cls, value: Any) -> int:
        return min(MAX_TRANSPLANTS, max(0, round_half_up(as_num(value, 0.0))))

    @field_validator("offer_accept_rate", "graft_survival", mode="before")
    @classmethod
    def _coerce_rate(cls, value: Any) -> float:
        return as_num(value, 0.0)


class PercentileMarkers(BaseModel):
    p10: Optional[float] = None
    p25: Optional[float] = None
    p50: Optional[float] = None
    p75: Optional[float] = None
    p90: Optional[float] = None


class DistributionOut(BaseModel):
    bins: List[str] = Field(default_factory=list)
    freqs: List[int] = Field(default_factory=list)
    values: List[float] = Field(default_factory=list)
    percentiles: PercentileMarkers = Field(default_factory=PercentileMarkers)

    @model_validator(mode="after")
    def _aligned(self) -> "DistributionOut":  # noqa: D401
        """Every bin label has exactly one frequency."""
        if len(self.bins) != len(self.freqs):
            raise ValueError("bins and freqs must have the same length")
        return self


class DistributionPair(BaseModel):
    acceptance: DistributionOut
    graft_survival: DistributionOut


class PerTransplantPayment(BaseModel):
    upside: int = Field(ge=0)
    downside: int = Field(ge=0, description="Penalty magnitude per transplant")


class PaymentTotals(BaseModel):
    upside_total: int = Field(ge=0)
    downside_total: int = Field(ge=0)


class TransplantVolume(BaseModel):
    labels: List[str]
    volumes: List[Optional[float]]
    projected: List[float]
    target: float


class ScoreBreakdown(BaseModel):
    transplant_target: float
    current_transplants: int
    distance_from_target: float
    acceptance_percentile: int = Field(ge=0, le=100)
    graft_survival_percentile: int = Field(ge=0, le=100)
    benchmark_acceptance_rate: float
    benchmark_graft_survival: Optional[float]
    center_offer_accept_rate: Optional[float]
    center_graft_survival: Optional[float]
    center_transplants: Optional[float]
    achievement_score: int = Field(ge=0, le=60)
    efficiency_score: int = Field(ge=0, le=20)
    efficiency_achievement_component: int = Field(ge=0, le=20)
    efficiency_improvement_component: int = Field(ge=0, le=20)
    quality_score: int = Field(ge=0, le=20)
    total_score: int = Field(ge=0, le=100)

    @model_validator(mode="after")
    def _total_is_sum(self) -> "ScoreBreakdown":
        expected = self.achievement_score + self.efficiency_score + self.quality_score
        if self.total_score != expected:
            raise ValueError("total_score must equal the sum of the sub-scores")
        return self


class PaymentRow(BaseModel):
    id: str
    upside: int
    downside: int


class ResultMeta(BaseModel):
    inputs: dict[str, Any]
    timestamp: datetime
    model: str


class ScoreResult(BaseModel):
    status: ScoreStatus
    meta: ResultMeta
    per_transplant: PerTransplantPayment
    totals: PaymentTotals
    distribution: DistributionPair
    transplant_volume: TransplantVolume
    scores: ScoreBreakdown
    payments: List[PaymentRow] = Field(default_factory=list)
    n_records: int = 0
