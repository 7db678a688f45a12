"""Unit tests for replacement timelines."""

from __future__ import annotations

from datetime import datetime

import pytest

from habitta.models import ConfidenceLevel, EnrichmentSnapshot, PropertyRecord, SystemType
from habitta.prediction.context import build_context
from habitta.prediction.engine import PredictionEngine
from habitta.prediction.timeline import (
    SystemTimeline,
    cost_range,
    describe_timeline,
    infer_system_timeline,
)
from habitta.reference.lifespans import ClimateFactorTable, LifespanTable


def _permits(*records: dict) -> EnrichmentSnapshot:
    return EnrichmentSnapshot(
        address_id="addr-1",
        provider="shovels",
        payload={"items": list(records)},
        fetched_at=datetime(2025, 5, 1),
    )


def _by_system(timelines: list[SystemTimeline]) -> dict[SystemType, SystemTimeline]:
    return {t.system_type: t for t in timelines}


class TestInstallAnchor:
    def test_permit_anchors_narrow_window(self, engine, sample_property, roof_permit_snapshot, as_of):
        roof = _by_system(engine.timelines([roof_permit_snapshot], sample_property, as_of=as_of))[
            SystemType.ROOF
        ]

        assert roof.subtype == "asphalt"
        assert roof.install.year == 2024
        assert roof.install.source == "permit"
        assert roof.install.data_quality is ConfidenceLevel.HIGH
        assert roof.install.rationale == "Roof replacement verified via building permit"
        assert (roof.window.early_year, roof.window.likely_year, roof.window.late_year) == (2039, 2044, 2054)
        assert roof.window.uncertainty == "narrow"
        assert roof.years_remaining(as_of) == 19

    def test_missing_permit_infers_replacement(self, engine, sample_property, as_of):
        """Home age 25 with typical roof life 20: replaced around 2020."""
        roof = _by_system(engine.timelines([], sample_property, as_of=as_of))[SystemType.ROOF]

        assert roof.install.year == 2020
        assert roof.install.source == "inferred"
        assert roof.install.data_quality is ConfidenceLevel.LOW
        assert roof.window.uncertainty == "wide"
        assert roof.window.likely_year == 2040

    def test_home_past_max_lifespan_is_due_now(self, engine, sample_property, as_of):
        hvac = _by_system(engine.timelines([], sample_property, as_of=as_of))[SystemType.HVAC]

        assert hvac.install.year == 2010
        assert (hvac.window.early_year, hvac.window.likely_year, hvac.window.late_year) == (2020, 2025, 2030)
        assert hvac.years_remaining(as_of) == 0

    def test_newer_home_assumed_original(self, engine, as_of):
        prop = PropertyRecord(address_id="addr-new", year_built=2018)
        roof = _by_system(engine.timelines([], prop, as_of=as_of))[SystemType.ROOF]

        assert roof.install.year == 2018
        assert roof.install.data_quality is ConfidenceLevel.MEDIUM
        assert roof.window.uncertainty == "medium"
        assert roof.years_remaining(as_of) == 13

    def test_no_build_year_assumes_mid_life(self, engine, as_of):
        roof = _by_system(engine.timelines([], PropertyRecord(address_id="addr-x"), as_of=as_of))[
            SystemType.ROOF
        ]

        assert roof.install.year is None
        assert roof.install.source == "unknown"
        assert roof.window.likely_year == 2035


class TestCostAndDrivers:
    def test_cost_range_by_subtype(self):
        assert (cost_range(SystemType.ROOF, "tile").low, cost_range(SystemType.ROOF, "tile").high) == (
            18_000,
            35_000,
        )
        water_heater = cost_range(SystemType.WATER_HEATER, "tankless")
        assert (water_heater.low, water_heater.high) == (3_500, 6_000)

    def test_cost_range_falls_back_to_unknown_subtype(self):
        hvac = cost_range(SystemType.HVAC, "heat_pump")
        assert (hvac.low, hvac.high) == (9_000, 14_000)
        assert "SEER rating" in hvac.drivers

    def test_climate_factor_is_a_driver(self, engine, as_of):
        prop = PropertyRecord(address_id="addr-fl", state="FL", year_built=2000)
        roof = _by_system(engine.timelines([], prop, as_of=as_of))[SystemType.ROOF]

        climate = next(d for d in roof.drivers if d.factor == "Climate")
        assert climate.impact == "decrease"
        assert climate.severity == "medium"
        assert "20%" in climate.description

    def test_tile_roof_lasts_longer(self, sample_property, as_of):
        lifespans = LifespanTable.from_rows(
            [
                {"system_type": "roof", "system_subtype": "tile", "climate_zone": "default",
                 "min_years": 35, "typical_years": 42, "max_years": 50},
            ]
        )
        engine = PredictionEngine(lifespans, ClimateFactorTable({}))
        snapshot = _permits(
            {"number": "R-5", "description": "Reroof with concrete tile", "issue_date": "2015-04-01"}
        )
        roof = _by_system(engine.timelines([snapshot], sample_property, as_of=as_of))[SystemType.ROOF]

        assert roof.subtype == "tile"
        assert roof.window.likely_year == 2057
        assert (roof.cost.low, roof.cost.high) == (18_000, 35_000)
        assert [d.factor for d in roof.drivers] == ["Tile roofing"]

    def test_unlisted_subtype_uses_generic_lifespan(self, engine, sample_property, as_of):
        snapshot = _permits(
            {"number": "M-2", "type": "Mechanical", "description": "New gas furnace", "issue_date": "2020-10-01"}
        )
        hvac = _by_system(engine.timelines([snapshot], sample_property, as_of=as_of))[SystemType.HVAC]

        assert hvac.subtype == "unknown"
        assert hvac.install.year == 2020
        assert hvac.window.likely_year == 2035


class TestTimelineCopy:
    def test_verified_install_gets_decisive_copy(self, engine, sample_property, roof_permit_snapshot, as_of):
        roof = _by_system(engine.timelines([roof_permit_snapshot], sample_property, as_of=as_of))[
            SystemType.ROOF
        ]
        copy = describe_timeline(roof, as_of)

        assert copy.what_to_expect.headline == "Good condition"
        assert copy.window_label == "Expected replacement window"
        assert copy.dashed is False
        assert "Get replacement quotes" in copy.actions

    def test_inferred_install_gets_cautious_copy(self, engine, sample_property, as_of):
        hvac = _by_system(engine.timelines([], sample_property, as_of=as_of))[SystemType.HVAC]
        copy = describe_timeline(hvac, as_of)

        assert copy.what_to_expect.headline == "Based on typical patterns"
        assert "within" not in copy.what_to_expect.body.lower()
        assert copy.window_label == "Planning horizon"
        assert copy.dashed is True

    def test_as_dict_reports_years_remaining(self, engine, sample_property, roof_permit_snapshot, as_of):
        roof = _by_system(engine.timelines([roof_permit_snapshot], sample_property, as_of=as_of))[
            SystemType.ROOF
        ]
        data = roof.as_dict(as_of)

        assert data["years_remaining"] == 19
        assert data["capital_cost"] == {
            "low": 12_000,
            "high": 20_000,
            "drivers": ["Material", "Roof pitch", "Insurance requirements"],
        }
        assert data["install"]["data_quality"] == "high"


def test_no_lifespan_rows_skips_timelines(sample_property, as_of):
    engine = PredictionEngine(LifespanTable([]), ClimateFactorTable({}))
    assert engine.timelines([], sample_property, as_of=as_of) == []


def test_unsupported_system_rejected(engine, sample_property, as_of):
    ctx = build_context([], sample_property, engine.lifespans, engine.climate_factors, as_of)
    with pytest.raises(ValueError):
        infer_system_timeline(SystemType.ELECTRICAL, ctx)
