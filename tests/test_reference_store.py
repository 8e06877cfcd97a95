import pytest

from app.core.config import Settings
from app.core.errors import ConfigurationError, ReferenceDataUnavailableError
from app.data.reference_store import (
    ReferencePayload,
    ReferenceStore,
    build_reference_store,
)

from conftest import SUMMARY_ROWS


class _StaticSource:
    def __init__(self, rows):
        self.rows = rows
        self.calls = 0

    def fetch(self):
        self.calls += 1
        return ReferencePayload(summary_rows=self.rows, roster={"AAAA": "Alpha"})


def test_snapshot_unavailable_before_load():
    store = ReferenceStore()
    assert not store.loaded
    with pytest.raises(ReferenceDataUnavailableError):
        store.snapshot()
    with pytest.raises(ReferenceDataUnavailableError):
        store.ensure_loaded()


def test_refresh_without_source_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        ReferenceStore().refresh()


def test_load_installs_new_versioned_snapshot():
    store = ReferenceStore()
    first = store.load(SUMMARY_ROWS)
    second = store.load(SUMMARY_ROWS[:2])
    assert first.version == 1
    assert second.version == 2
    assert store.snapshot() is second
    # Earlier snapshots stay intact for in-flight readers.
    assert len(first.summary) == len(SUMMARY_ROWS)
    assert len(second.summary) == 2


def test_ensure_loaded_reads_source_once():
    source = _StaticSource(SUMMARY_ROWS)
    store = ReferenceStore(source)
    snapshot = store.ensure_loaded()
    assert store.ensure_loaded() is snapshot
    assert source.calls == 1
    assert snapshot.directory.name_for("aaaa") == "Alpha"
    store.refresh()
    assert source.calls == 2


def test_clear_and_stats():
    store = ReferenceStore(_StaticSource(SUMMARY_ROWS))
    assert store.stats()["loaded"] is False
    store.ensure_loaded()
    stats = store.stats()
    assert stats["loaded"] is True
    assert stats["summary_rows"] == len(SUMMARY_ROWS)
    assert stats["graft_rows"] == 0
    assert stats["centers_named"] == 1
    assert stats["source_configured"] is True
    store.clear()
    assert not store.loaded


def test_csv_source_reads_all_exports(tmp_path):
    summary = tmp_path / "summary.csv"
    summary.write_text("Center Code,2024-2025 - Transplants\nAAAA,12\n", encoding="utf-8")
    graft = tmp_path / "graft.csv"
    graft.write_text("Center Code,2024-2025 - Graft Survival Rate\nAAAA,0.9\nBBBB,0.8\n", encoding="utf-8")
    roster = tmp_path / "roster.csv"
    roster.write_text("CTR_CD,Name\nAAAA,Alpha\n", encoding="utf-8")

    store = build_reference_store(
        Settings(summary_csv_path=summary, graft_csv_path=graft, center_roster_path=roster)
    )
    snapshot = store.ensure_loaded()
    assert snapshot.summary.find("AAAA").performance_transplants == 12.0
    assert len(snapshot.graft) == 2
    assert snapshot.directory.name_for("AAAA") == "Alpha"


def test_build_store_without_paths_has_no_source():
    store = build_reference_store(Settings(summary_csv_path=""))
    assert store.stats()["source_configured"] is False
