"""Unit tests for the operator CLI."""

from __future__ import annotations

from unittest.mock import AsyncMock

from typer.testing import CliRunner

from habitta.cli import app
from habitta.errors import PropertyNotFoundError

runner = CliRunner()


class TestZoneCommand:
    def test_state_and_city(self):
        result = runner.invoke(app, ["zone", "--state", "FL", "--city", "Miami"])

        assert result.exit_code == 0
        assert "high_heat" in result.output

    def test_latitude_only(self):
        result = runner.invoke(app, ["zone", "--lat", "45.0"])

        assert result.exit_code == 0
        assert "freeze_thaw" in result.output

    def test_no_signal(self):
        result = runner.invoke(app, ["zone"])

        assert "moderate" in result.output


class TestConfidenceCommand:
    def test_owner_reported_with_evidence(self):
        result = runner.invoke(app, ["confidence", "owner_reported", "--month", "--photo"])

        assert result.exit_code == 0
        assert "0.72" in result.output
        assert "Moderate confidence" in result.output
        assert "estimated" in result.output

    def test_user_confirmation_resolves_high(self):
        result = runner.invoke(app, ["confidence", "heuristic", "--confirmed"])

        assert result.exit_code == 0
        assert "0.30" in result.output
        assert "high" in result.output

    def test_rejects_unknown_source(self):
        result = runner.invoke(app, ["confidence", "guesswork"])

        assert result.exit_code != 0


def test_predict_reports_unknown_property(monkeypatch):
    """The predict command exits non-zero when the property is missing."""
    monkeypatch.setattr(
        "habitta.cli.run_predictions",
        AsyncMock(side_effect=PropertyNotFoundError("addr-x")),
    )

    result = runner.invoke(app, ["predict", "addr-x"])

    assert result.exit_code == 1
    assert "addr-x" in result.output


def test_timeline_reports_unknown_property(monkeypatch):
    monkeypatch.setattr(
        "habitta.cli.build_timelines",
        AsyncMock(side_effect=PropertyNotFoundError("addr-y")),
    )

    result = runner.invoke(app, ["timeline", "addr-y", "--as-of", "2025-06-01"])

    assert result.exit_code == 1
    assert "addr-y" in result.output
