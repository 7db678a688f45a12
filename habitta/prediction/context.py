"""Evidence assembled once per prediction run and shared by every field rule."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from habitta.climate.zones import derive_climate_zone
from habitta.evidence.payloads import (
    AssessorFacts,
    GeocodeFacts,
    collect_permits,
    extract_assessor_facts,
    extract_geocode_facts,
    latest_snapshot,
)
from habitta.evidence.permits import (
    DEFAULT_MAX_YEAR,
    DEFAULT_MIN_YEAR,
    DEFAULT_VALUATION_CEILING,
    NormalizedPermit,
    PermitSignal,
    derive_permit_signal,
    extract_permit_date,
    is_permit_for,
)
from habitta.models import ClimateZone, EnrichmentSnapshot, PropertyRecord, Provider, SystemType
from habitta.prediction.scoring import CONFIDENCE_CEILING
from habitta.reference.lifespans import ClimateFactorTable, LifespanTable, ResolvedLifespan

logger = logging.getLogger(__name__)

OLDEST_PLAUSIBLE_HOME = 1800
RELATED_PERMIT_WINDOW_YEARS = 10

# Trades whose permits corroborate assessor data for a system without being
# direct evidence for it.
RELATED_TRADE_PATTERNS: dict[SystemType, re.Pattern[str]] = {
    SystemType.ROOF: re.compile(r"\b(?:building|remodel\w*|renovat\w*|addition|gutters?|siding)\b", re.I),
    SystemType.HVAC: re.compile(r"\b(?:electric\w*|duct\w*|thermostat|insulation)\b", re.I),
    SystemType.WATER_HEATER: re.compile(r"\b(?:plumb\w*|gas line|gas piping|repip\w*)\b", re.I),
}


@dataclass(frozen=True, slots=True)
class PredictionSettings:
    """Sanity bounds threaded through the engine."""

    permit_min_year: int = DEFAULT_MIN_YEAR
    permit_max_year: int = DEFAULT_MAX_YEAR
    valuation_ceiling: float = DEFAULT_VALUATION_CEILING
    confidence_ceiling: float = CONFIDENCE_CEILING


@dataclass
class EvidenceContext:
    as_of: date
    property: PropertyRecord
    permits: list[NormalizedPermit]
    assessor: AssessorFacts | None
    geocode: GeocodeFacts | None
    climate_zone: ClimateZone
    climate_zone_source: str | None
    lifespans: LifespanTable
    climate_factors: ClimateFactorTable
    settings: PredictionSettings = field(default_factory=PredictionSettings)
    _signals: dict[SystemType, PermitSignal | None] = field(default_factory=dict, repr=False)

    def permit_signal(self, system_type: SystemType) -> PermitSignal | None:
        if system_type not in self._signals:
            self._signals[system_type] = derive_permit_signal(
                system_type,
                self.permits,
                min_year=self.settings.permit_min_year,
                max_year=self.settings.permit_max_year,
                valuation_ceiling=self.settings.valuation_ceiling,
            )
        return self._signals[system_type]

    def has_permit_for(self, system_type: SystemType) -> bool:
        return any(is_permit_for(system_type, p) for p in self.permits)

    def related_trade_permit(self, system_type: SystemType, since_year: int | None) -> NormalizedPermit | None:
        """A recent, dated permit in a trade related to ``system_type``."""
        pattern = RELATED_TRADE_PATTERNS.get(system_type)
        if pattern is None:
            return None
        window_start = self.as_of.year - RELATED_PERMIT_WINDOW_YEARS
        for permit in self.permits:
            if not pattern.search(permit.text) or is_permit_for(system_type, permit):
                continue
            permit_date = extract_permit_date(
                permit, self.settings.permit_min_year, self.settings.permit_max_year
            )
            if permit_date is None or permit_date.year < window_start:
                continue
            if since_year is not None and permit_date.year < since_year:
                continue
            return permit
        return None

    def resolve_lifespan(self, system_type: SystemType, subtype: str | None) -> ResolvedLifespan | None:
        return self.lifespans.resolve(
            system_type.value, subtype, self.climate_zone, self.climate_factors
        )

    def age_from_year(self, year: int | None) -> int | None:
        """Whole years between ``year`` and the run date; None when implausible."""
        if year is None:
            return None
        if year < OLDEST_PLAUSIBLE_HOME or year > self.as_of.year:
            logger.warning(
                "Ignoring implausible year %s for %s", year, self.property.address_id
            )
            return None
        return self.as_of.year - year

    def years_since(self, when: date) -> float:
        return max(0.0, (self.as_of - when).days / 365.25)

    def base_provenance(self) -> dict[str, Any]:
        return {
            "as_of": self.as_of.isoformat(),
            "climate_zone": self.climate_zone.value,
            "climate_zone_source": self.climate_zone_source,
        }


def _resolve_zone(
    prop: PropertyRecord, geocode: GeocodeFacts | None, assessor: AssessorFacts | None
) -> tuple[ClimateZone, str | None]:
    candidates: list[tuple[str, Any]] = [
        ("geocoder", geocode),
        ("assessor", assessor),
        ("property", prop),
    ]
    for source, facts in candidates:
        if facts is None:
            continue
        state = getattr(facts, "state", None)
        city = getattr(facts, "city", None)
        lat = getattr(facts, "latitude", None)
        if state or city or lat is not None:
            return derive_climate_zone(state, city, lat), source
    return derive_climate_zone(), None


def build_context(
    snapshots: Iterable[EnrichmentSnapshot],
    prop: PropertyRecord,
    lifespans: LifespanTable,
    climate_factors: ClimateFactorTable,
    as_of: date,
    settings: PredictionSettings | None = None,
) -> EvidenceContext:
    """Extract typed evidence from raw snapshots for one property."""
    snapshots = list(snapshots)

    assessor_snap = latest_snapshot(snapshots, Provider.ATTOM.value)
    assessor = extract_assessor_facts(assessor_snap.payload) if assessor_snap else None

    geocode_snap = latest_snapshot(snapshots, Provider.SMARTY.value)
    geocode = extract_geocode_facts(geocode_snap.payload) if geocode_snap else None

    zone, zone_source = _resolve_zone(prop, geocode, assessor)

    return EvidenceContext(
        as_of=as_of,
        property=prop,
        permits=collect_permits(snapshots),
        assessor=assessor,
        geocode=geocode,
        climate_zone=zone,
        climate_zone_source=zone_source,
        lifespans=lifespans,
        climate_factors=climate_factors,
        settings=settings or PredictionSettings(),
    )
