import csv
from io import StringIO
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from app.core.errors import ValidationError
from app.core.metrics import get_metrics
from app.data.reference_store import ReferenceStore, get_reference_store
from app.data.tables import rows_from_records
from app.schemas.center import ReferenceStats

router = APIRouter(prefix="/admin", tags=["admin"])


def _read_upload(upload: UploadFile) -> list[dict]:
    fname = upload.filename or "upload"
    if not fname.lower().endswith(".csv"):
        raise ValidationError(f"{fname} must be a .csv file", detail={"filename": fname})
    try:
        content = upload.file.read().decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError(f"{fname} is not UTF-8 encoded", detail={"filename": fname}) from None
    reader = csv.DictReader(StringIO(content))
    if not reader.fieldnames:
        raise ValidationError(f"{fname} has no header row", detail={"filename": fname})
    return rows_from_records(reader)


@router.get("/reference", response_model=ReferenceStats)
def reference_stats(store: ReferenceStore = Depends(get_reference_store)) -> ReferenceStats:
    return ReferenceStats(**store.stats())


@router.post("/reference/reload", response_model=ReferenceStats)
def reload_reference(store: ReferenceStore = Depends(get_reference_store)) -> ReferenceStats:
    """Re-read the configured exports and swap in a fresh snapshot."""
    store.refresh()
    return ReferenceStats(**store.stats())


@router.post("/reference/upload", response_model=ReferenceStats)
def upload_reference(
    summary: UploadFile = File(...),
    graft: Optional[UploadFile] = File(default=None),
    store: ReferenceStore = Depends(get_reference_store),
) -> ReferenceStats:
    """Install reference tables from uploaded CSV exports."""
    summary_rows = _read_upload(summary)
    if not summary_rows:
        raise ValidationError("Summary export contains no rows", detail={"filename": summary.filename})
    graft_rows = _read_upload(graft) if graft is not None else []
    # Uploads carry no roster; keep the display names already installed.
    roster = store.snapshot().directory.as_dict() if store.loaded else None
    store.load(summary_rows, graft_rows, roster=roster)
    return ReferenceStats(**store.stats())


@router.get("/metrics")
def metrics_snapshot():
    return get_metrics()
