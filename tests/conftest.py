import pytest
from fastapi.testclient import TestClient

from app.assessments.iota_v1 import load_config
from app.assessments.iota_v1.reference import ReferenceSchema, ReferenceTable
from app.core.metrics import metrics_registry, set_instrumentation_enabled
from app.data.reference_store import ReferenceStore, get_reference_store
from app.main import app


def summary_row(code, baseline, accept, graft, *, pediatric=0, iota=1):
    """One summary-export record in the year-labelled column layout."""
    y1, y2, y3 = baseline
    return {
        "Center Code": code,
        "Pediatric Center": pediatric,
        "IOTA": iota,
        "2022-2023 - Transplants": y1,
        "2023-2024 - Transplants": y2,
        "2024-2025 - Transplants": y3,
        "2024-2025 - Organ Offer Acceptance Rate": accept,
        "2024-2025 - Graft Survival Rate": graft,
    }


# Non-pediatric baseline averages sum to 400 and performance-year volumes to
# 440, so the national growth rate is 10%. PEDS would distort it if counted.
SUMMARY_ROWS = [
    summary_row("AAAA", (80, 100, 120), 1.0, 90),
    summary_row("BBBB", (190, 200, 210), 1.2, 95),
    summary_row("CCCC", (90, 100, 110), 0.8, 85, iota=0),
    summary_row("PEDS", (10, 10, 500), 2.0, 99, pediatric=1.0),
    summary_row("NOBL", ("", "", ""), "", "", iota=0),
]

ROSTER = {"AAAA": "Alpha Transplant Center", "BBBB": "Bravo Medical Center"}


@pytest.fixture()
def params():
    return load_config()


@pytest.fixture()
def schema(params):
    return ReferenceSchema.from_parameters(params)


@pytest.fixture()
def summary_table(schema):
    return ReferenceTable.from_records(SUMMARY_ROWS, schema)


@pytest.fixture()
def store():
    reference_store = ReferenceStore()
    reference_store.load(SUMMARY_ROWS, roster=ROSTER)
    return reference_store


@pytest.fixture()
def client(store):
    app.dependency_overrides[get_reference_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_reference_store, None)


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics_registry.reset()
    set_instrumentation_enabled(True)
    yield
    metrics_registry.reset()
    set_instrumentation_enabled(True)
