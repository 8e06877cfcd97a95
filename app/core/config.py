from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="IOTA Payment Estimator API")
    environment: Literal["dev", "test", "staging", "prod"] = Field(default="dev")

    # Reference exports. The scoring model never reads files; these paths are
    # only used by the application to populate the reference store.
    summary_csv_path: Optional[Path] = Field(default=None, description="National per-center summary export")
    graft_csv_path: Optional[Path] = Field(default=None, description="Optional graft-survival export")
    center_roster_path: Optional[Path] = Field(default=None, description="CTR_CD,Name roster for display names")
    load_reference_on_startup: bool = Field(default=True)

    distribution_bins: int = Field(default=10, ge=1, le=100)
    payment_detail_cap: int = Field(default=1000, ge=0, le=10_000)

    metrics_enabled: bool = Field(default=True)

    @field_validator("summary_csv_path", "graft_csv_path", "center_roster_path", mode="before")
    @classmethod
    def _normalize_blank_path(cls, value: object) -> Optional[object]:
        if value in (None, "", b""):
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
