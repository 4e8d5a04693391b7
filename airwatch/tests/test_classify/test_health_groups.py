"""Tests for sensitive-group advice."""

import pytest

from airwatch.classify.aqi import AqiCategory
from airwatch.classify.health_groups import HEALTH_GROUPS, group_statuses, risk_level


class TestRiskLevel:
    @pytest.mark.parametrize(
        "index, threshold, expected",
        [
            (30, 50, "low"),
            (60, 50, "moderate"),
            (60, 75, "low"),
            (90, 75, "moderate"),
            (100, 100, "low"),
            (120, 100, "moderate"),
            (180, 50, "high"),
            (250, 100, "very-high"),
        ],
    )
    def test_levels(self, index: int, threshold: int, expected: str):
        assert risk_level(index, threshold) == expected


class TestGroupStatuses:
    def test_all_groups_present(self):
        statuses = group_statuses(42)
        assert [s.group.name for s in statuses] == ["athletes", "children", "elderly", "asthmatics"]

    def test_recommendation_follows_category(self):
        statuses = group_statuses(158)
        athletes = statuses[0]
        assert athletes.recommendation == HEALTH_GROUPS[0].recommendations[AqiCategory.UNHEALTHY]
        assert athletes.risk_level == "high"

    def test_threshold_differs_per_group(self):
        by_name = {s.group.name: s.risk_level for s in group_statuses(80)}
        assert by_name["athletes"] == "low"
        assert by_name["children"] == "moderate"
        assert by_name["asthmatics"] == "moderate"

    def test_every_group_covers_every_category(self):
        for group in HEALTH_GROUPS:
            assert set(group.recommendations) == set(AqiCategory)
