"""Unit tests for seasonal task planning."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from habitta.models import ClimateZone, MaintenanceTaskCandidate, TaskPriority
from habitta.planner.seasonal import (
    add_months,
    build_known_systems,
    clamp_months,
    map_category,
    map_priority,
    next_occurrence,
    plan_seasonal_tasks,
    renovation_task,
    task_requires_absent_system,
)

TODAY = date(2025, 1, 10)


def _titles(tasks) -> list[str]:
    return [t.title for t in tasks]


class TestDateHelpers:
    def test_next_occurrence_this_year(self):
        assert next_occurrence(11, date(2025, 11, 15)) == date(2025, 11, 15)

    def test_next_occurrence_rolls_to_next_year(self):
        assert next_occurrence(11, date(2025, 11, 16)) == date(2026, 11, 15)

    def test_add_months_clamps_day(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)
        assert add_months(date(2025, 1, 10), 12) == date(2026, 1, 10)

    @pytest.mark.parametrize("value,expected", [(0, 1), (99, 24), ("6", 6), ("abc", 12), (None, 12)])
    def test_clamp_months(self, value, expected):
        assert clamp_months(value) == expected


class TestTemplates:
    def test_freeze_thaw_full_year(self):
        plan = plan_seasonal_tasks(ClimateZone.FREEZE_THAW, TODAY, 12)

        titles = _titles(plan.to_insert)
        assert len(titles) == 14
        assert "Winterize exterior plumbing" in titles
        assert "Test smoke/CO detectors (Fall)" in titles
        assert not any("pool" in t.lower() for t in titles)
        assert plan.horizon_end == date(2026, 1, 10)

    def test_description_mentions_do_not_filter(self):
        """The winterize task mentions a sprinkler only in its description."""
        plan = plan_seasonal_tasks(ClimateZone.FREEZE_THAW, TODAY, 12, known_systems=set())
        winterize = next(t for t in plan.to_insert if t.title == "Winterize exterior plumbing")
        assert "sprinkler" in winterize.description.lower()
        assert winterize.priority is TaskPriority.URGENT
        assert winterize.due_date == date(2025, 11, 15)

    def test_optional_systems_filtered_when_unknown(self):
        plan = plan_seasonal_tasks(ClimateZone.HIGH_HEAT, TODAY, 12)
        titles = _titles(plan.considered)
        assert "Pool pump & equipment service" not in titles
        assert "Irrigation system check" not in titles
        assert len(titles) == 10

    def test_optional_systems_kept_when_known(self):
        plan = plan_seasonal_tasks(
            ClimateZone.HIGH_HEAT, TODAY, 12, known_systems={"pool", "sprinkler"}
        )
        titles = _titles(plan.considered)
        assert "Pool pump & equipment service" in titles
        assert "Irrigation system check" in titles
        assert len(titles) == 12

    def test_horizon_drops_later_candidates(self):
        assert plan_seasonal_tasks(ClimateZone.FREEZE_THAW, TODAY, 1).to_insert == []

        plan = plan_seasonal_tasks(ClimateZone.FREEZE_THAW, date(2025, 2, 20), 1)
        assert sorted(_titles(plan.to_insert)) == ["Check sump pump", "HVAC cooling tune-up"]


class TestDeduplication:
    def test_second_run_inserts_nothing(self):
        first = plan_seasonal_tasks(ClimateZone.MODERATE, TODAY, 12)
        existing = [{"title": t.title, "due_date": t.due_date} for t in first.to_insert]

        second = plan_seasonal_tasks(ClimateZone.MODERATE, TODAY, 12, existing=existing)
        assert second.to_insert == []
        assert len(second.considered) == len(first.considered)

    def test_title_match_is_case_insensitive(self):
        existing = [{"title": "roof & FLASHING inspection", "due_date": "2025-10-15"}]
        plan = plan_seasonal_tasks(ClimateZone.MODERATE, TODAY, 12, existing=existing)
        assert "Roof & flashing inspection" not in _titles(plan.to_insert)

    def test_force_skips_dedup(self):
        first = plan_seasonal_tasks(ClimateZone.FREEZE_THAW, TODAY, 12)
        existing = [{"title": t.title, "due_date": t.due_date} for t in first.to_insert]

        forced = plan_seasonal_tasks(ClimateZone.FREEZE_THAW, TODAY, 12, existing=existing, force=True)
        assert len(forced.to_insert) == 14

    def test_short_horizon_rerun_is_idempotent(self):
        today = date(2025, 2, 20)
        first = plan_seasonal_tasks(ClimateZone.FREEZE_THAW, today, 3)
        existing = [{"title": t.title, "due_date": t.due_date} for t in first.to_insert]

        second = plan_seasonal_tasks(ClimateZone.FREEZE_THAW, today, 3, existing=existing)
        forced = plan_seasonal_tasks(ClimateZone.FREEZE_THAW, today, 3, existing=existing, force=True)

        assert first.to_insert
        assert all(t.due_date <= first.horizon_end for t in first.to_insert)
        assert second.to_insert == []
        assert forced.to_insert == first.considered

    def test_existing_outside_horizon_ignored(self):
        existing = [{"title": "Check sump pump", "due_date": date(2024, 3, 15)}]
        plan = plan_seasonal_tasks(ClimateZone.FREEZE_THAW, TODAY, 12, existing=existing)
        assert "Check sump pump" in _titles(plan.to_insert)


class TestConditionAndRenovations:
    def test_poor_condition_prepends_inspections(self):
        plan = plan_seasonal_tasks(ClimateZone.MODERATE, TODAY, 12, condition_score=55)
        first_four = plan.to_insert[:4]
        assert _titles(first_four) == [
            "Whole-home inspection",
            "Electrical safety check",
            "Plumbing leak check",
            "Roof & exterior review",
        ]
        assert all(t.priority is TaskPriority.HIGH for t in first_four)
        assert first_four[0].due_date == TODAY + timedelta(days=14)

    def test_high_tlc_is_poor_condition(self):
        plan = plan_seasonal_tasks(ClimateZone.MODERATE, TODAY, 12, condition_score=90, tlc_score=75)
        assert plan.to_insert[0].title == "Whole-home inspection"

    def test_good_condition_adds_nothing(self):
        plan = plan_seasonal_tasks(ClimateZone.MODERATE, TODAY, 12, condition_score=85, tlc_score=20)
        assert "Whole-home inspection" not in _titles(plan.to_insert)

    def test_renovation_item_becomes_task(self):
        task = renovation_task({"system": "roof", "urgency": "high", "est_cost": "12000"}, TODAY)
        assert task.title == "ROOF • high"
        assert task.priority is TaskPriority.URGENT
        assert task.due_date == TODAY + timedelta(days=7)
        assert task.category == "exterior"
        assert task.system_type == "roof"
        assert task.cost == 12000.0

    def test_renovations_follow_condition_tasks(self):
        plan = plan_seasonal_tasks(
            ClimateZone.MODERATE,
            TODAY,
            12,
            condition_score=40,
            renovations=[{"system": "plumbing", "urgency": "medium", "est_cost": None}],
        )
        assert plan.to_insert[4].title == "PLUMBING • medium"
        assert plan.to_insert[4].due_date == TODAY + timedelta(days=14)


@pytest.mark.parametrize(
    "urgency,expected",
    [("high", TaskPriority.URGENT), ("Medium", TaskPriority.HIGH), ("low", TaskPriority.MEDIUM), (None, TaskPriority.MEDIUM)],
)
def test_map_priority(urgency, expected):
    assert map_priority(urgency) is expected


def test_map_category():
    assert map_category("roof") == "exterior"
    assert map_category("Electrical panel") == "electrical"
    assert map_category("furnace") == "hvac"
    assert map_category(None) == "interior"


def test_build_known_systems_from_systems_and_permits():
    known = build_known_systems(
        ["Hot Tub", "HVAC", None],
        [{"system_tags": ["Swimming Pool"], "description": "Install irrigation", "trade": None}],
    )
    assert known == {"spa", "hvac", "pool", "sprinkler"}


def test_task_requires_absent_system_by_type():
    task = MaintenanceTaskCandidate(
        title="Service equipment",
        category="exterior",
        system_type="generator",
        priority=TaskPriority.LOW,
        due_date=TODAY,
    )
    assert task_requires_absent_system(task, set())
    assert not task_requires_absent_system(task, {"generator"})
