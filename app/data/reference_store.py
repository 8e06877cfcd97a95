"""Caller-owned handle for the national reference tables.

The store holds one immutable :class:`ReferenceSnapshot` at a time. Loading
builds a complete new snapshot before swapping it in under a lock, so
scoring calls running concurrently always see either the old tables or the
new ones, never a mix. Snapshots are read-only and can be shared freely.

Lifecycle:
    - ``load(...)`` installs rows handed over by the caller.
    - ``refresh()`` re-reads the configured :class:`ReferenceSource`.
    - ``ensure_loaded()`` loads once from the source if nothing is installed.
    - ``snapshot()`` returns the current tables or raises
      :class:`ReferenceDataUnavailableError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import RLock
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from app.assessments.iota_v1 import load_config
from app.assessments.iota_v1.reference import CenterDirectory, ReferenceSchema, ReferenceTable
from app.assessments.iota_v1.types import IotaParameters
from app.core.config import Settings, settings as default_settings
from app.core.errors import ConfigurationError, ReferenceDataUnavailableError
from app.core.logging import get_logger
from app.core.metrics import inc_counter, timer
from app.data.tables import read_center_roster, read_table

__all__ = [
    "ReferencePayload",
    "ReferenceSnapshot",
    "ReferenceSource",
    "CsvReferenceSource",
    "ReferenceStore",
    "build_reference_store",
    "get_reference_store",
]

logger = get_logger("iota.data.reference_store", component="data")


@dataclass(frozen=True, slots=True)
class ReferencePayload:
    """Raw rows as handed over by a loader, before coercion."""

    summary_rows: Sequence[Mapping[str, Any]]
    graft_rows: Sequence[Mapping[str, Any]] = ()
    roster: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ReferenceSnapshot:
    summary: ReferenceTable
    graft: ReferenceTable
    directory: CenterDirectory
    version: int
    loaded_at: str


class ReferenceSource(Protocol):
    """Anything able to produce a fresh :class:`ReferencePayload`."""

    def fetch(self) -> ReferencePayload:
        ...


class CsvReferenceSource:
    """Read the summary, graft and roster exports from disk."""

    def __init__(
        self,
        summary_path: Path,
        *,
        graft_path: Optional[Path] = None,
        roster_path: Optional[Path] = None,
    ) -> None:
        self.summary_path = Path(summary_path)
        self.graft_path = Path(graft_path) if graft_path else None
        self.roster_path = Path(roster_path) if roster_path else None

    def fetch(self) -> ReferencePayload:
        return ReferencePayload(
            summary_rows=read_table(self.summary_path),
            graft_rows=read_table(self.graft_path) if self.graft_path else (),
            roster=read_center_roster(self.roster_path) if self.roster_path else {},
        )


class ReferenceStore:
    """Thread-safe owner of the current reference snapshot.

    Example:
        >>> store = ReferenceStore()
        >>> snapshot = store.load([{"Center Code": "CASF", "2022-2023 - Transplants": 300}])
        >>> snapshot.summary.find("casf").code
        'CASF'
    """

    def __init__(
        self,
        source: Optional[ReferenceSource] = None,
        *,
        params: Optional[IotaParameters] = None,
    ) -> None:
        self._source = source
        self._params = params or load_config()
        self._schema = ReferenceSchema.from_parameters(self._params)
        self._lock = RLock()
        self._snapshot: Optional[ReferenceSnapshot] = None
        self._loads = 0

    @property
    def schema(self) -> ReferenceSchema:
        return self._schema

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    def load(
        self,
        summary_rows: Iterable[Mapping[str, Any]],
        graft_rows: Iterable[Mapping[str, Any]] = (),
        roster: Optional[Mapping[str, str]] = None,
    ) -> ReferenceSnapshot:
        """Coerce the given rows and install them as the current snapshot."""
        with timer("iota.reference.load"):
            summary = ReferenceTable.from_records(summary_rows, self._schema)
            graft = ReferenceTable.from_records(graft_rows, self._schema)
            directory = CenterDirectory(roster)
            with self._lock:
                self._loads += 1
                snapshot = ReferenceSnapshot(
                    summary=summary,
                    graft=graft,
                    directory=directory,
                    version=self._loads,
                    loaded_at=datetime.now(timezone.utc).isoformat(),
                )
                self._snapshot = snapshot
        inc_counter("iota.reference.loads")
        logger.info(
            "reference_loaded",
            extra={
                "structured_data": {
                    "version": snapshot.version,
                    "summary_rows": len(summary),
                    "graft_rows": len(graft),
                    "centers_named": len(directory),
                }
            },
        )
        return snapshot

    def refresh(self) -> ReferenceSnapshot:
        """Re-read the configured source and swap in the result."""
        if self._source is None:
            raise ConfigurationError("No reference source configured; set SUMMARY_CSV_PATH")
        payload = self._source.fetch()
        return self.load(payload.summary_rows, payload.graft_rows, payload.roster)

    def ensure_loaded(self) -> ReferenceSnapshot:
        with self._lock:
            if self._snapshot is not None:
                return self._snapshot
            if self._source is None:
                raise ReferenceDataUnavailableError()
            return self.refresh()

    def snapshot(self) -> ReferenceSnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise ReferenceDataUnavailableError()
        return snapshot

    def clear(self) -> None:
        with self._lock:
            self._snapshot = None

    def stats(self) -> dict[str, Any]:
        snapshot = self._snapshot
        return {
            "loaded": snapshot is not None,
            "version": snapshot.version if snapshot else 0,
            "loaded_at": snapshot.loaded_at if snapshot else None,
            "summary_rows": len(snapshot.summary) if snapshot else 0,
            "graft_rows": len(snapshot.graft) if snapshot else 0,
            "centers_named": len(snapshot.directory) if snapshot else 0,
            "source_configured": self._source is not None,
        }


def build_reference_store(config: Settings) -> ReferenceStore:
    source: Optional[ReferenceSource] = None
    if config.summary_csv_path:
        source = CsvReferenceSource(
            config.summary_csv_path,
            graft_path=config.graft_csv_path,
            roster_path=config.center_roster_path,
        )
    return ReferenceStore(source)


@lru_cache
def get_reference_store() -> ReferenceStore:
    """Process-wide store created from application settings."""
    return build_reference_store(default_settings)
