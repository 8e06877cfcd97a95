"""CSV readers for the national reference exports.

CSV columns for the summary export (one row per center)::

    Center Code,Pediatric Center,IOTA,2022-2023 - Transplants,...

Cells that look numeric are converted to ``int``/``float`` so downstream
coercion sees the same values the source spreadsheet held; identifier
columns are always kept as text so codes such as ``0123`` survive.
"""

from __future__ import annotations

import csv
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from app.core.errors import ReferenceDataError
from app.core.logging import get_logger

__all__ = ["TEXT_COLUMNS", "parse_cell", "rows_from_records", "read_table", "read_center_roster"]

logger = get_logger("iota.data.tables", component="data")

TEXT_COLUMNS: frozenset[str] = frozenset({"Center Code", "CTR_CD", "Name"})

_INT_RE = re.compile(r"^[+-]?\d+$")


def parse_cell(raw: str | None) -> Any:
    """Trim a CSV cell and convert it to a number when it parses as one."""
    if raw is None:
        return ""
    value = raw.strip()
    if not value:
        return ""
    if _INT_RE.match(value):
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _open_reader(path: Path) -> csv.DictReader[str]:
    try:
        content = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise ReferenceDataError(f"Reference file not found: {path}", detail={"path": str(path)}) from exc
    except OSError as exc:
        raise ReferenceDataError(f"Reference file unreadable: {path}", detail={"path": str(path)}) from exc
    reader = csv.DictReader(content.splitlines())
    if not reader.fieldnames:
        raise ReferenceDataError(f"Reference file has no header row: {path}", detail={"path": str(path)})
    return reader


def rows_from_records(
    records: Iterable[Mapping[str | None, Any]], *, text_columns: Iterable[str] = TEXT_COLUMNS
) -> List[Dict[str, Any]]:
    """Convert ``csv.DictReader`` records into typed row dictionaries."""
    keep_text = frozenset(text_columns)
    rows: List[Dict[str, Any]] = []
    for record in records:
        row: Dict[str, Any] = {}
        for header, raw in record.items():
            if header is None:
                continue
            key = header.strip()
            row[key] = (raw or "").strip() if key in keep_text else parse_cell(raw)
        if any(value != "" for value in row.values()):
            rows.append(row)
    return rows


def read_table(path: str | Path, *, text_columns: Iterable[str] = TEXT_COLUMNS) -> List[Dict[str, Any]]:
    """Read a reference CSV into a list of row dictionaries."""
    path = Path(path)
    rows = rows_from_records(_open_reader(path), text_columns=text_columns)
    logger.info("reference_table_read", extra={"structured_data": {"path": str(path), "rows": len(rows)}})
    return rows


def read_center_roster(path: str | Path) -> Dict[str, str]:
    """Map upper-cased ``CTR_CD`` codes to display names from a roster CSV."""
    path = Path(path)
    reader = _open_reader(path)
    fieldnames = [name.strip() for name in (reader.fieldnames or [])]
    if "CTR_CD" not in fieldnames or "Name" not in fieldnames:
        raise ReferenceDataError("Center roster header must include CTR_CD and Name", detail={"path": str(path)})
    names: Dict[str, str] = {}
    for record in reader:
        cleaned = {k.strip(): (v or "").strip() for k, v in record.items() if k is not None}
        code, name = cleaned.get("CTR_CD"), cleaned.get("Name")
        if code and name:
            names[code.upper()] = name
    logger.info("center_roster_read", extra={"structured_data": {"path": str(path), "centers": len(names)}})
    return names
