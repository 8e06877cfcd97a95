import math

import pytest

from app.assessments.iota_v1.reference import (
    CenterDirectory,
    ReferenceTable,
    canonical_code,
    is_pediatric_flag,
)


@pytest.mark.parametrize("flag, expected", [(1, True), (1.0, True), ("1.0", True), ("1", False), (0, False), (None, False)])
def test_pediatric_flag_forms(flag, expected):
    assert is_pediatric_flag(flag) is expected


def test_canonical_code_strips_and_uppercases():
    assert canonical_code(" casf ") == "CASF"
    assert canonical_code(None) == ""


def test_schema_resolves_year_labelled_columns(schema):
    assert schema.baseline_transplants == (
        "2022-2023 - Transplants",
        "2023-2024 - Transplants",
        "2024-2025 - Transplants",
    )
    assert schema.performance_transplants == "2024-2025 - Transplants"
    assert schema.acceptance_rate == "2024-2025 - Organ Offer Acceptance Rate"
    assert schema.graft_survival == "2024-2025 - Graft Survival Rate"


def test_parse_coerces_cells(schema):
    row = schema.parse(
        {
            "Center Code": " abcd ",
            "Pediatric Center": "1.0",
            "IOTA": "1",
            "2022-2023 - Transplants": "12",
            "2023-2024 - Transplants": "",
            "2024-2025 - Transplants": 18,
            "2024-2025 - Organ Offer Acceptance Rate": "n/a",
            "2024-2025 - Graft Survival Rate": 0.91,
        }
    )
    assert row.code == "ABCD"
    assert row.pediatric is True
    assert row.participating is True
    assert row.baseline_average == pytest.approx(15.0)
    assert math.isnan(row.acceptance_rate)
    assert row.graft_survival_pct == pytest.approx(91.0)


def test_table_lookup_is_case_insensitive_and_first_wins(schema):
    table = ReferenceTable.from_records(
        [
            {"Center Code": "AAAA", "2024-2025 - Transplants": 1},
            {"Center Code": "aaaa", "2024-2025 - Transplants": 2},
            {"Center Code": "", "2024-2025 - Transplants": 3},
        ],
        schema,
    )
    assert len(table) == 3
    assert table.find(" aaaa ").performance_transplants == 1.0
    assert table.find("") is None
    assert table.find("ZZZZ") is None


def test_non_pediatric_filter(summary_table):
    codes = [row.code for row in summary_table.non_pediatric()]
    assert "PEDS" not in codes
    assert codes[:3] == ["AAAA", "BBBB", "CCCC"]


def test_center_directory_lookup():
    directory = CenterDirectory({"casf": " UCSF Medical Center ", "": "skip", "XXXX": ""})
    assert len(directory) == 1
    assert directory.name_for("CASF") == "UCSF Medical Center"
    assert directory.name_for("ZZZZ") is None
    assert directory.as_dict() == {"CASF": "UCSF Medical Center"}
