"""Unit tests for confidence-gated system copy."""

from __future__ import annotations

import pytest

from habitta.confidence.copy import (
    ActionsTier,
    get_actions_for_tier,
    get_actions_tier,
    get_replacement_window_spread,
    get_system_display_name,
    get_what_to_expect,
    get_why_showing_this,
    get_window_label,
    should_use_dashed_visualization,
)
from habitta.models import ConfidenceLevel, SystemType


@pytest.mark.parametrize("system", list(SystemType))
@pytest.mark.parametrize("level", list(ConfidenceLevel))
@pytest.mark.parametrize("years_remaining", [0, 2, 5, 12])
def test_every_combination_has_copy(system, level, years_remaining):
    copy = get_what_to_expect(system, level, years_remaining)
    assert copy.headline
    assert copy.body


@pytest.mark.parametrize("system", list(SystemType))
def test_low_confidence_never_shows_a_timeline(system):
    for years_remaining in (0, 1, 3, 8, 20):
        copy = get_what_to_expect(system, ConfidenceLevel.LOW, years_remaining)
        assert "within" not in copy.body.lower()
        assert "years of expected" not in copy.body.lower()


class TestHighConfidenceCopy:
    def test_near_end_of_life_windows(self):
        assert "1-2 years" in get_what_to_expect(SystemType.HVAC, ConfidenceLevel.HIGH, 1).body
        assert "2-3 years" in get_what_to_expect(SystemType.HVAC, ConfidenceLevel.HIGH, 3).body

    def test_mid_life_states_remaining_years(self):
        copy = get_what_to_expect(SystemType.ROOF, ConfidenceLevel.HIGH, 6)
        assert copy.headline == "Mid-life, replacement ahead"
        assert "approximately 6 years" in copy.body

    def test_electrical_has_its_own_copy(self):
        copy = get_what_to_expect(SystemType.ELECTRICAL, ConfidenceLevel.HIGH, 2)
        assert copy.headline == "Verified system standard"


def test_medium_bands():
    assert get_what_to_expect(SystemType.WATER_HEATER, ConfidenceLevel.MEDIUM, 2).headline == "In late service life"
    assert (
        get_what_to_expect(SystemType.WATER_HEATER, ConfidenceLevel.MEDIUM, 5).headline
        == "Approaching replacement window"
    )
    assert get_what_to_expect(SystemType.WATER_HEATER, ConfidenceLevel.MEDIUM, 9).headline == "Within expected lifespan"


def test_window_labels_and_visualization():
    assert get_window_label(ConfidenceLevel.LOW) == "Planning horizon"
    assert get_window_label(ConfidenceLevel.HIGH) == "Expected replacement window"
    assert get_replacement_window_spread(ConfidenceLevel.MEDIUM) == (3, 4)
    assert should_use_dashed_visualization(ConfidenceLevel.LOW)
    assert not should_use_dashed_visualization(ConfidenceLevel.MEDIUM)


def test_actions_follow_confidence():
    assert get_actions_tier(ConfidenceLevel.LOW) is ActionsTier.PREVENTIVE
    assert get_actions_tier(ConfidenceLevel.HIGH) is ActionsTier.DECISIVE
    actions = get_actions_for_tier(ActionsTier.PREPARATORY, SystemType.WATER_HEATER)
    assert actions[0] == "Compare tank vs tankless"


def test_why_showing_this_and_names():
    assert len(get_why_showing_this(ConfidenceLevel.LOW)) == 3
    assert get_system_display_name(SystemType.WATER_HEATER) == "Water Heater"
