"""Pytest configuration and fixtures for Habitta tests.

Provides synthetic reference tables so engine assertions do not depend on the
bundled YAML values.
"""

from __future__ import annotations

from datetime import date, datetime

import pytest

from habitta.config import reset_config
from habitta.models import EnrichmentSnapshot, PropertyRecord
from habitta.prediction.engine import PredictionEngine
from habitta.reference.lifespans import ClimateFactorTable, LifespanTable


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables and drop any cached config."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.delenv("INTERNAL_API_SECRET", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def as_of() -> date:
    """Fixed run date for age arithmetic."""
    return date(2025, 6, 1)


@pytest.fixture
def lifespan_table() -> LifespanTable:
    """Default-zone lifespans with round numbers."""
    return LifespanTable.from_rows(
        [
            {"system_type": "roof", "system_subtype": "unknown", "climate_zone": "default",
             "min_years": 15, "typical_years": 20, "max_years": 30},
            {"system_type": "roof", "system_subtype": "asphalt", "climate_zone": "default",
             "min_years": 15, "typical_years": 20, "max_years": 30},
            {"system_type": "hvac", "system_subtype": "unknown", "climate_zone": "default",
             "min_years": 10, "typical_years": 15, "max_years": 20},
            {"system_type": "hvac", "system_subtype": "central_air", "climate_zone": "default",
             "min_years": 10, "typical_years": 15, "max_years": 20},
            {"system_type": "water_heater", "system_subtype": "unknown", "climate_zone": "default",
             "min_years": 8, "typical_years": 10, "max_years": 12},
            {"system_type": "water_heater", "system_subtype": "tank", "climate_zone": "default",
             "min_years": 8, "typical_years": 10, "max_years": 12},
        ]
    )


@pytest.fixture
def climate_factors() -> ClimateFactorTable:
    """High-heat multipliers only; other zones carry no factor."""
    return ClimateFactorTable(
        {
            ("high_heat", "roof_lifespan"): 0.8,
            ("high_heat", "hvac_lifespan"): 0.8,
            ("high_heat", "water_heater_lifespan"): 0.9,
        }
    )


@pytest.fixture
def engine(lifespan_table: LifespanTable, climate_factors: ClimateFactorTable) -> PredictionEngine:
    return PredictionEngine(lifespan_table, climate_factors)


@pytest.fixture
def sample_property() -> PropertyRecord:
    """Property built in 2000 with no location data."""
    return PropertyRecord(address_id="addr-1", year_built=2000)


@pytest.fixture
def assessor_snapshot() -> EnrichmentSnapshot:
    """Flat-shape assessor payload."""
    return EnrichmentSnapshot(
        address_id="addr-1",
        provider="attom",
        payload={
            "propertyDetails": {
                "yearBuilt": 2000,
                "sqft": 1850,
                "utilities": {
                    "heatingType": "Forced Air",
                    "heatingFuel": "Gas",
                    "cooling": "Central",
                },
            }
        },
        fetched_at=datetime(2025, 5, 1),
    )


@pytest.fixture
def roof_permit_snapshot() -> EnrichmentSnapshot:
    """Permits payload with a recent roof replacement."""
    return EnrichmentSnapshot(
        address_id="addr-1",
        provider="shovels",
        payload={
            "items": [
                {
                    "number": "R-2024-001",
                    "type": "Roofing",
                    "description": "Re-roof, tear off and replace asphalt shingles",
                    "issue_date": "2024-09-01",
                    "job_value": 1850000,
                }
            ]
        },
        fetched_at=datetime(2025, 5, 1),
    )
