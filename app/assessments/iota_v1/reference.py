"""Reference-table accessors for the national center summary.

A single column schema is authoritative: year-labelled columns such as
``"2024-2025 - Transplants"`` together with ``"Center Code"`` and the
``"Pediatric Center"`` flag. Rows are coerced once, on load, into immutable
:class:`CenterRow` records; scoring code never touches raw cells.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional, Tuple

from app.assessments.iota_v1.types import IotaParameters
from app.core.numeric import as_num, finite_mean, normalize_percent

__all__ = [
    "canonical_code",
    "is_pediatric_flag",
    "CenterRow",
    "ReferenceSchema",
    "ReferenceTable",
    "CenterDirectory",
]


def canonical_code(value: Any) -> str:
    """Strip and upper-case a center code; ``None`` becomes an empty string."""
    if value is None:
        return ""
    return str(value).strip().upper()


def is_pediatric_flag(value: Any) -> bool:
    """Pediatric centers are flagged as ``1``, ``1.0`` or the string ``"1.0"``."""
    if isinstance(value, str):
        return value == "1.0"
    if isinstance(value, (int, float)):
        return value == 1
    return False


@dataclass(frozen=True, slots=True)
class CenterRow:
    """One center's national reference record; missing cells are NaN."""

    code: str
    pediatric: bool
    participating: bool
    baseline_transplants: Tuple[float, ...]
    performance_transplants: float
    acceptance_rate: float
    graft_survival: float

    @property
    def baseline_average(self) -> float:
        """Mean of the finite baseline-year transplant counts (NaN if none)."""
        return finite_mean(self.baseline_transplants)

    @property
    def graft_survival_pct(self) -> float:
        return normalize_percent(self.graft_survival)


@dataclass(frozen=True, slots=True)
class ReferenceSchema:
    """Resolved column names for one set of reporting years."""

    center_code: str
    pediatric: str
    participation: str
    baseline_transplants: Tuple[str, ...]
    performance_transplants: str
    acceptance_rate: str
    graft_survival: str

    @classmethod
    def from_parameters(cls, params: IotaParameters) -> "ReferenceSchema":
        columns = params.columns
        performance = params.years.performance
        return cls(
            center_code=columns.center_code,
            pediatric=columns.pediatric,
            participation=columns.participation,
            baseline_transplants=tuple(
                columns.transplants.format(year=year) for year in params.years.baseline
            ),
            performance_transplants=columns.transplants.format(year=performance),
            acceptance_rate=columns.acceptance_rate.format(year=performance),
            graft_survival=columns.graft_survival.format(year=performance),
        )

    def parse(self, record: Mapping[str, Any]) -> CenterRow:
        return CenterRow(
            code=canonical_code(record.get(self.center_code)),
            pediatric=is_pediatric_flag(record.get(self.pediatric)),
            participating=as_num(record.get(self.participation)) == 1,
            baseline_transplants=tuple(as_num(record.get(key)) for key in self.baseline_transplants),
            performance_transplants=as_num(record.get(self.performance_transplants)),
            acceptance_rate=as_num(record.get(self.acceptance_rate)),
            graft_survival=as_num(record.get(self.graft_survival)),
        )


class ReferenceTable:
    """Read-only ordered collection of :class:`CenterRow` looked up by code."""

    __slots__ = ("_rows", "_index")

    def __init__(self, rows: Iterable[CenterRow] = ()) -> None:
        self._rows: Tuple[CenterRow, ...] = tuple(rows)
        index: dict[str, CenterRow] = {}
        for row in self._rows:
            # First occurrence wins for duplicated codes.
            if row.code and row.code not in index:
                index[row.code] = row
        self._index = MappingProxyType(index)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]], schema: ReferenceSchema) -> "ReferenceTable":
        return cls(schema.parse(record) for record in records)

    def find(self, code: Any) -> Optional[CenterRow]:
        return self._index.get(canonical_code(code))

    def non_pediatric(self) -> Iterator[CenterRow]:
        return (row for row in self._rows if not row.pediatric)

    def __iter__(self) -> Iterator[CenterRow]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __bool__(self) -> bool:
        return bool(self._rows)


class CenterDirectory:
    """Code to display-name lookup built from the center roster."""

    __slots__ = ("_names",)

    def __init__(self, names: Mapping[str, str] | None = None) -> None:
        self._names = MappingProxyType(
            {canonical_code(code): str(name).strip() for code, name in (names or {}).items() if code and name}
        )

    def name_for(self, code: Any) -> Optional[str]:
        return self._names.get(canonical_code(code))

    def __len__(self) -> int:
        return len(self._names)

    def as_dict(self) -> dict[str, str]:
        return dict(self._names)
