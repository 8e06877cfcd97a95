import math

import pytest

from app.assessments.iota_v1.calculations import (
    acceptance_population,
    achievement_score,
    build_distribution,
    center_target,
    efficiency_breakdown,
    efficiency_score,
    empty_distribution,
    national_growth_rate,
    percentile_rank,
    quality_population,
    quality_score,
)
from app.assessments.iota_v1.reference import ReferenceTable


def test_percentile_rank_counts_strictly_lower_members():
    assert percentile_rank([10, 20, 30, 40], 30) == 50
    assert percentile_rank([10, 20, 30, 40], 10) == 0
    assert percentile_rank([10, 20, 30, 40], 41) == 100


def test_percentile_rank_empty_or_non_finite_is_zero():
    assert percentile_rank([], 5) == 0
    assert percentile_rank([1, 2, 3], float("nan")) == 0
    assert percentile_rank([float("nan")], 5) == 0


def test_percentile_rank_is_monotonic_in_value():
    population = [0.8, 1.0, 1.2, 2.0, 0.5, 1.7]
    ranks = [percentile_rank(population, v / 10) for v in range(0, 25)]
    assert ranks == sorted(ranks)
    assert all(0 <= r <= 100 for r in ranks)


def test_distribution_buckets_and_quantiles():
    dist = build_distribution(list(range(1, 11)), 10)
    assert dist is not None
    assert len(dist.bins) == len(dist.freqs) == 10
    assert sum(dist.freqs) == 100
    assert dist.values == tuple(float(v) for v in range(1, 11))
    assert dist.percentiles["p10"] == 2
    assert dist.percentiles["p25"] == 3
    assert dist.percentiles["p50"] == 6
    assert dist.percentiles["p75"] == 8
    assert dist.percentiles["p90"] == 10


def test_distribution_of_identical_values_lands_in_first_bin():
    dist = build_distribution([5, 5, 5], 10)
    assert dist.freqs[0] == 100
    assert sum(dist.freqs[1:]) == 0
    assert dist.bins[0] == "6"


def test_distribution_drops_non_finite_and_handles_empty():
    assert build_distribution([], 10) is None
    assert build_distribution([float("nan")], 10) is None
    dist = build_distribution([1.0, float("nan"), 3.0], 2)
    assert dist.values == (1.0, 3.0)
    assert dist.freqs == (50, 50)


def test_empty_distribution_has_null_markers():
    dist = empty_distribution()
    assert dist.bins == ()
    assert dist.freqs == ()
    assert set(dist.percentiles) == {"p10", "p25", "p50", "p75", "p90"}
    assert all(v is None for v in dist.percentiles.values())


def test_national_growth_excludes_pediatric_centers(summary_table):
    assert national_growth_rate(summary_table) == pytest.approx(0.10)


def test_national_growth_without_baseline_is_zero():
    assert national_growth_rate(ReferenceTable()) == 0.0


def test_center_target_grows_baseline_average(summary_table):
    row = summary_table.find("aaaa")
    assert center_target(row, national_growth_rate(summary_table)) == pytest.approx(110.0)
    assert math.isnan(center_target(summary_table.find("NOBL"), 0.1))


@pytest.mark.parametrize(
    "volume, expected",
    [
        (130, 60),
        (125, 60),
        (124, 55),
        (120, 55),
        (115, 50),
        (114, 40),
        (105, 40),
        (104, 30),
        (95, 30),
        (94, 20),
        (85, 20),
        (84, 10),
        (75, 10),
        (74, 0),
        (50, 0),
    ],
)
def test_achievement_score_tiers(volume, expected):
    assert achievement_score(volume, 100.0) == expected


def test_achievement_score_without_target_is_zero():
    assert achievement_score(100, 0.0) == 0
    assert achievement_score(100, float("nan")) == 0


def test_acceptance_population_optionally_excludes_pediatric(summary_table):
    assert sorted(acceptance_population(summary_table)) == [0.8, 1.0, 1.2, 2.0]
    assert sorted(acceptance_population(summary_table, exclude_pediatric=True)) == [0.8, 1.0, 1.2]


def test_efficiency_achievement_component_dominates(summary_table):
    breakdown = efficiency_breakdown(summary_table, "AAAA", 1.3)
    assert breakdown.achievement == 20
    assert breakdown.improvement == 15
    assert breakdown.score == 20


def test_efficiency_improvement_component_dominates(summary_table):
    # Rank 33 earns 6 points; 0.95 closes most of the gap to the 0.96 benchmark.
    breakdown = efficiency_breakdown(summary_table, "CCCC", 0.95)
    assert breakdown.achievement == 6
    assert breakdown.improvement == 14
    assert efficiency_score(summary_table, "CCCC", 0.95) == 14


def test_efficiency_below_current_rate_earns_no_improvement(summary_table):
    breakdown = efficiency_breakdown(summary_table, "BBBB", 0.5)
    assert breakdown.improvement == 0
    assert breakdown.achievement == 0


def test_efficiency_is_zero_for_unknown_center_or_missing_rate(summary_table):
    assert efficiency_score(summary_table, "ZZZZ", 5.0) == 0
    assert efficiency_score(summary_table, "NOBL", 5.0) == 0


def test_quality_population_prefers_dedicated_graft_table(summary_table, schema):
    assert sorted(quality_population(summary_table, ReferenceTable())) == [85, 90, 95, 99]
    graft = ReferenceTable.from_records(
        [
            {"Center Code": "AAAA", "2024-2025 - Graft Survival Rate": 0.97},
            {"Center Code": "BBBB", "2024-2025 - Graft Survival Rate": 93.5},
            {"Center Code": "CCCC", "2024-2025 - Graft Survival Rate": 0},
            {"Center Code": "DDDD", "2024-2025 - Graft Survival Rate": ""},
        ],
        schema,
    )
    assert sorted(quality_population(summary_table, graft)) == pytest.approx([93.5, 97.0])


@pytest.mark.parametrize("proposed, expected", [(100.0, 20), (96.0, 18), (92.0, 16), (80.0, 10)])
def test_quality_score_tiers(proposed, expected):
    assert quality_score([90.0, 95.0, 85.0, 99.0], proposed) == expected


def test_quality_score_has_floor_for_empty_population():
    assert quality_score([], 99.0) == 10


def test_distribution_with_values_near_float_limits_stays_finite():
    dist = build_distribution([-1e308, 0.0, 1e308], 10)
    assert len(dist.bins) == 10
    assert dist.freqs[0] == 33
    assert dist.freqs[-1] == 33
    assert sum(dist.freqs) == 99
    assert all(math.isfinite(float(label)) for label in dist.bins)

    single = build_distribution([-1.7e308, 1.7e308], 1)
    assert single.freqs == (100,)
    assert single.bins == ("0",)
