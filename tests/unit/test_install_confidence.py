"""Unit tests for install-date confidence scoring."""

from __future__ import annotations

from datetime import date

import pytest

from habitta.confidence.install import (
    ConfidenceInput,
    confidence_level_from_score,
    confidence_state_from_score,
    format_installed_line,
    get_base_score,
    get_confidence_level_label,
    get_confidence_state_label,
    get_source_label,
    is_plausible_install_year,
    is_valid_install_source,
    is_valid_replacement_status,
    score_install_confidence,
)
from habitta.models import ConfidenceLevel, ConfidenceState, InstallSource, ReplacementStatus


class TestScoreInstallConfidence:
    def test_penalties_never_drop_below_base(self):
        result = score_install_confidence(
            ConfidenceInput(install_source=InstallSource.HEURISTIC, has_conflicting_dates=True)
        )
        assert result.score == 0.30
        assert result.level is ConfidenceLevel.LOW
        assert result.breakdown.penalties == 0.10

    def test_owner_reported_with_month_and_photo(self):
        result = score_install_confidence(
            ConfidenceInput(
                install_source=InstallSource.OWNER_REPORTED,
                has_month=True,
                has_photo=True,
            )
        )
        assert result.score == 0.72
        assert result.level is ConfidenceLevel.MEDIUM
        assert result.breakdown.base == 0.60
        assert result.breakdown.modifiers == 0.12

    def test_score_capped_at_one(self):
        result = score_install_confidence(
            ConfidenceInput(
                install_source=InstallSource.PERMIT_VERIFIED,
                has_month=True,
                has_corroboration=True,
                has_brand=True,
                has_model=True,
                has_photo=True,
            )
        )
        assert result.score == 1.0
        assert result.level is ConfidenceLevel.HIGH

    def test_penalties_offset_modifiers(self):
        result = score_install_confidence(
            ConfidenceInput(
                install_source=InstallSource.INSPECTION,
                has_model=True,
                has_photo=True,
                has_implausible_date=True,
            )
        )
        # 0.75 + 0.12 - 0.15
        assert result.score == 0.72

    def test_input_accepts_string_source(self):
        data = ConfidenceInput(install_source="owner_reported")
        assert data.install_source is InstallSource.OWNER_REPORTED

    @pytest.mark.parametrize(
        "source,expected",
        [
            (InstallSource.HEURISTIC, 0.30),
            (InstallSource.OWNER_REPORTED, 0.60),
            (InstallSource.INSPECTION, 0.75),
            (InstallSource.PERMIT_VERIFIED, 0.85),
        ],
    )
    def test_base_scores(self, source, expected):
        assert get_base_score(source) == expected


@pytest.mark.parametrize(
    "score,expected",
    [
        (0.49, ConfidenceLevel.LOW),
        (0.50, ConfidenceLevel.MEDIUM),
        (0.79, ConfidenceLevel.MEDIUM),
        (0.80, ConfidenceLevel.HIGH),
    ],
)
def test_confidence_level_thresholds(score, expected):
    assert confidence_level_from_score(score) is expected


class TestConfidenceState:
    def test_user_confirmation_dominates(self):
        assert confidence_state_from_score(0.50, user_confirmed=True) is ConfidenceState.HIGH
        assert confidence_state_from_score(0.10, user_confirmed=True) is ConfidenceState.HIGH

    @pytest.mark.parametrize(
        "score,expected",
        [
            (0.39, ConfidenceState.NEEDS_CONFIRMATION),
            (0.40, ConfidenceState.ESTIMATED),
            (0.50, ConfidenceState.ESTIMATED),
            (0.75, ConfidenceState.HIGH),
        ],
    )
    def test_thresholds(self, score, expected):
        assert confidence_state_from_score(score) is expected

    def test_high_state_has_no_badge(self):
        assert get_confidence_state_label(ConfidenceState.HIGH) is None
        assert get_confidence_state_label(ConfidenceState.ESTIMATED) == "Estimated"
        assert get_confidence_state_label(ConfidenceState.NEEDS_CONFIRMATION) == "Needs confirmation"


class TestLabels:
    def test_format_installed_line(self):
        assert format_installed_line(2005, InstallSource.HEURISTIC) == "Installed ~2005 (estimated)"
        assert format_installed_line(2018, InstallSource.PERMIT_VERIFIED) == "Installed 2018 (permit-verified)"
        assert (
            format_installed_line(1999, InstallSource.INSPECTION, ReplacementStatus.ORIGINAL)
            == "Installed 1999 (original system)"
        )
        assert format_installed_line(None, InstallSource.OWNER_REPORTED) == "Install date unknown"

    def test_source_and_level_labels(self):
        assert get_source_label(InstallSource.OWNER_REPORTED) == "Owner-reported"
        assert get_confidence_level_label(ConfidenceLevel.MEDIUM) == "Moderate confidence"


class TestValidators:
    def test_plausible_install_year(self):
        today = date(2025, 6, 1)
        assert is_plausible_install_year(2010, year_built=2000, today=today)
        assert not is_plausible_install_year(2026, today=today)
        assert not is_plausible_install_year(1899, today=today)
        assert not is_plausible_install_year(1995, year_built=2000, today=today)

    def test_enum_validators(self):
        assert is_valid_install_source("permit_verified")
        assert not is_valid_install_source("guess")
        assert is_valid_replacement_status("replaced")
        assert not is_valid_replacement_status("maybe")
