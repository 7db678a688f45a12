"""Pydantic domain models for Habitta.

Shared by the rule engine, the confidence modules, the seasonal planner and
the web layer. Persistence uses the SQLAlchemy models in habitta.db.models.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ClimateZone(str, Enum):
    """Coarse climate classification driving lifespans and task timing."""

    HIGH_HEAT = "high_heat"
    COASTAL = "coastal"
    FREEZE_THAW = "freeze_thaw"
    MODERATE = "moderate"


class SystemType(str, Enum):
    """Major home systems tracked by the engine."""

    ROOF = "roof"
    HVAC = "hvac"
    WATER_HEATER = "water_heater"
    ELECTRICAL = "electrical"


class PredictionField(str, Enum):
    """Fields produced by a prediction run (one row each)."""

    ROOF_AGE_BUCKET = "roof_age_bucket"
    HVAC_PRESENT = "hvac_present"
    HVAC_SYSTEM_TYPE = "hvac_system_type"
    HVAC_AGE_BUCKET = "hvac_age_bucket"
    WATER_HEATER_TYPE = "water_heater_type"
    WATER_HEATER_AGE_BUCKET = "water_heater_age_bucket"


class EvidenceTier(str, Enum):
    """Evidence cascade tiers, strongest first."""

    PERMIT = "permit"
    ENRICHED_ASSESSOR = "enriched_assessor"
    BASIC_ASSESSOR = "basic_assessor"
    REGIONAL_INFERENCE = "regional_inference"
    DEFAULT = "default"


class Provider(str, Enum):
    """Upstream enrichment providers."""

    SHOVELS = "shovels"  # permits registry
    MIAMI_DADE = "miami_dade"  # county open-data permits
    ATTOM = "attom"  # assessor database
    SMARTY = "smarty"  # geocoder


class InstallSource(str, Enum):
    HEURISTIC = "heuristic"
    OWNER_REPORTED = "owner_reported"
    INSPECTION = "inspection"
    PERMIT_VERIFIED = "permit_verified"


class ReplacementStatus(str, Enum):
    ORIGINAL = "original"
    REPLACED = "replaced"
    UNKNOWN = "unknown"


class ConfidenceLevel(str, Enum):
    """Install-confidence level (0.80 / 0.50 thresholds)."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ConfidenceState(str, Enum):
    """UI disclosure tier (0.75 / 0.40 thresholds, user confirmation dominates)."""

    HIGH = "high"
    ESTIMATED = "estimated"
    NEEDS_CONFIRMATION = "needs_confirmation"


class TaskPriority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PropertyRecord(BaseModel):
    """Property row used as the immutable reference for age-based inference."""

    address_id: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    year_built: int | None = None
    square_feet: int | None = None
    latitude: float | None = None
    longitude: float | None = None

    class Config:
        json_schema_extra = {
            "example": {
                "address_id": "a1b2c3",
                "address": "123 Palm Way",
                "city": "Miami",
                "state": "FL",
                "year_built": 1998,
                "square_feet": 1850,
                "latitude": 25.76,
                "longitude": -80.19,
            }
        }


class EnrichmentSnapshot(BaseModel):
    """One opaque provider payload for a property."""

    address_id: str
    provider: str
    payload: dict[str, Any] = Field(default_factory=dict)
    fetched_at: datetime | None = None


class PredictionResult(BaseModel):
    """Value, confidence and provenance produced for a single field."""

    field: PredictionField
    value: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    provenance: dict[str, Any] = Field(default_factory=dict)

    @field_validator("confidence")
    @classmethod
    def round_confidence(cls, v: float) -> float:
        """Store confidence with fixed precision so reruns compare equal."""
        return round(v, 4)


class PredictionRecord(BaseModel):
    """Persistable prediction row keyed by (address_id, field, model_version)."""

    address_id: str
    field: PredictionField
    predicted_value: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    provenance: dict[str, Any] = Field(default_factory=dict)
    prediction_run_id: UUID
    model_version: str
    created_at: datetime | None = None


class PredictionRunSummary(BaseModel):
    """Outcome of one prediction run."""

    address_id: str
    prediction_run_id: UUID
    model_version: str
    predictions_generated: int
    failed_fields: list[str] = Field(default_factory=list)


class MaintenanceTaskCandidate(BaseModel):
    """Transient task generated by templating, deduplicated before insertion."""

    title: str
    description: str | None = None
    category: str
    system_type: str | None = None
    priority: TaskPriority
    due_date: date
    cost: float | None = None

    @property
    def dedup_key(self) -> tuple[str, date]:
        return (self.title.lower(), self.due_date)


class SeasonalPlanResult(BaseModel):
    """Outcome of one seasonal plan generation."""

    home_id: str
    inserted: int
    considered: int
    climate_zone: ClimateZone
    known_systems: list[str] = Field(default_factory=list)
