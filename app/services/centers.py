from __future__ import annotations

from typing import Optional

from app.assessments.iota_v1 import load_config
from app.assessments.iota_v1.reference import CenterRow, canonical_code
from app.core.formatting import format_decimal
from app.core.numeric import is_finite
from app.data.reference_store import ReferenceSnapshot
from app.schemas.center import CenterProfile

__all__ = ["NO_BASELINE_WARNING", "NOT_PARTICIPATING_WARNING", "build_center_profile"]

NO_BASELINE_WARNING = "We don't have any baseline data for this center"
NOT_PARTICIPATING_WARNING = "This center is not participating in IOTA"


def _participation_warning(code: str, row: Optional[CenterRow]) -> Optional[str]:
    # Only complete codes get a warning; partial input is still being typed.
    if len(code) != load_config().center_code_length:
        return None
    if row is None:
        return NO_BASELINE_WARNING
    if not row.participating:
        return NOT_PARTICIPATING_WARNING
    return None


def _positive_or_none(value: float) -> Optional[float]:
    return value if is_finite(value) and value != 0 else None


def build_center_profile(snapshot: ReferenceSnapshot, code: str) -> CenterProfile:
    """Look up a center's display name, IOTA participation and last reported metrics."""
    normalized = canonical_code(code)
    row = snapshot.summary.find(normalized)
    graft = row.graft_survival_pct if row is not None else float("nan")
    return CenterProfile(
        code=normalized,
        name=snapshot.directory.name_for(normalized),
        exists=row is not None,
        is_iota=bool(row and row.participating),
        num_transplants=_positive_or_none(row.performance_transplants) if row else None,
        offer_accept_rate=_positive_or_none(row.acceptance_rate) if row else None,
        graft_survival=format_decimal(_positive_or_none(graft), decimals=1),
        warning=_participation_warning(normalized, row),
    )
