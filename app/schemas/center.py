from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

__all__ = ["CenterProfile", "ReferenceStats"]


class CenterProfile(BaseModel):
    """Last reported performance-year figures used to prefill the scoring form."""

    code: str
    name: Optional[str] = None
    exists: bool
    is_iota: bool = False
    num_transplants: Optional[float] = None
    offer_accept_rate: Optional[float] = None
    graft_survival: Optional[float] = Field(default=None, description="Percent, one decimal")
    warning: Optional[str] = None


class ReferenceStats(BaseModel):
    loaded: bool
    version: int
    loaded_at: Optional[str]
    summary_rows: int
    graft_rows: int
    centers_named: int
    source_configured: bool
