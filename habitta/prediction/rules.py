"""Per-field rule cascades.

Each rule walks the evidence tiers in strict order (permit, enriched assessor,
basic assessor, regional inference, default) and stops at the first tier that
yields a usable value. The tier fixes the base confidence; the rule adds only
the named modifiers and penalties whose conditions hold.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from habitta.errors import PredictionError
from habitta.evidence.permits import PermitSignal, is_finaled
from habitta.models import (
    ClimateZone,
    EvidenceTier,
    PredictionField,
    PredictionResult,
    SystemType,
)
from habitta.prediction.buckets import BucketTable, bucket_table
from habitta.prediction.context import EvidenceContext
from habitta.prediction.scoring import (
    AGE_EXCEEDS_LIFESPAN_WITHOUT_PERMIT,
    CLIMATE_FACTOR_PRESENT,
    CROSS_VALIDATED,
    MATERIAL_CONFIRMED,
    RECENT_PERMIT,
    ConfidenceBreakdown,
)
from habitta.reference.lifespans import ResolvedLifespan

logger = logging.getLogger(__name__)

RECENT_PERMIT_YEARS = 2.0

KNOWN_ROOF_MATERIALS = frozenset({"asphalt", "tile", "metal"})
KNOWN_COOLING_TYPES = frozenset({"central_air", "heat_pump", "mini_split", "window_unit", "evaporative"})
KNOWN_FUELS = frozenset({"gas", "electric", "oil"})


@dataclass
class Inference:
    """What a single tier concluded."""

    value: str
    modifiers: list[str] = field(default_factory=list)
    penalties: list[str] = field(default_factory=list)
    details: dict[str, Any] = field(default_factory=dict)


TierFn = Callable[[EvidenceContext], "Inference | None"]


class FieldRule:
    """Base class: runs the tier cascade and composes the result."""

    field: PredictionField

    def tiers(self) -> list[tuple[EvidenceTier, TierFn]]:
        return [
            (EvidenceTier.PERMIT, self.from_permit),
            (EvidenceTier.ENRICHED_ASSESSOR, self.from_enriched_assessor),
            (EvidenceTier.BASIC_ASSESSOR, self.from_basic_assessor),
            (EvidenceTier.REGIONAL_INFERENCE, self.from_regional_inference),
            (EvidenceTier.DEFAULT, self.from_default),
        ]

    def evaluate(self, ctx: EvidenceContext) -> PredictionResult:
        for tier, fn in self.tiers():
            inference = fn(ctx)
            if inference is None:
                continue

            breakdown = ConfidenceBreakdown(tier=tier, ceiling=ctx.settings.confidence_ceiling)
            for name in inference.modifiers:
                breakdown.add_modifier(name)
            for name in inference.penalties:
                breakdown.add_penalty(name)

            provenance = {
                **ctx.base_provenance(),
                **breakdown.provenance(),
                **inference.details,
            }
            return PredictionResult(
                field=self.field,
                value=inference.value,
                confidence=breakdown.score,
                provenance=provenance,
            )

        raise PredictionError(f"No tier produced a value for {self.field.value}")

    def from_permit(self, ctx: EvidenceContext) -> Inference | None:
        return None

    def from_enriched_assessor(self, ctx: EvidenceContext) -> Inference | None:
        return None

    def from_basic_assessor(self, ctx: EvidenceContext) -> Inference | None:
        return None

    def from_regional_inference(self, ctx: EvidenceContext) -> Inference | None:
        return None

    def from_default(self, ctx: EvidenceContext) -> Inference | None:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Subtype inference shared by the age rules
# ---------------------------------------------------------------------------

_HVAC_TYPE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("heat_pump", re.compile(r"\bheat pump\b", re.I)),
    ("mini_split", re.compile(r"\b(?:mini[- ]?split|ductless)\b", re.I)),
    ("central_air", re.compile(r"\b(?:a/c|ac unit|air[- ]?condition\w*|condenser|air handler|central)\b", re.I)),
    ("furnace", re.compile(r"\bfurnace\b", re.I)),
)

_WATER_HEATER_TYPE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("tankless", re.compile(r"\btankless\b", re.I)),
    ("heat_pump", re.compile(r"\bheat pump\b", re.I)),
    ("gas_tank", re.compile(r"\b(?:gas|propane)\b", re.I)),
    ("electric_tank", re.compile(r"\belectric\w*\b", re.I)),
)

_ROOF_MATERIAL_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("metal", re.compile(r"\bmetal\b", re.I)),
    ("tile", re.compile(r"\btile\b", re.I)),
    ("asphalt", re.compile(r"\b(?:shingles?|asphalt)\b", re.I)),
)


def _match_first(text: str, patterns: tuple[tuple[str, re.Pattern[str]], ...]) -> str | None:
    for label, pattern in patterns:
        if pattern.search(text):
            return label
    return None


def hvac_type_from_text(text: str) -> str | None:
    return _match_first(text, _HVAC_TYPE_PATTERNS)


def water_heater_type_from_text(text: str) -> str | None:
    return _match_first(text, _WATER_HEATER_TYPE_PATTERNS)


def roof_material_from_text(text: str) -> str | None:
    return _match_first(text, _ROOF_MATERIAL_PATTERNS)


def _confirmed_material(system_type: SystemType, ctx: EvidenceContext) -> str | None:
    """Subtype confirmed by assessor data, if any."""
    assessor = ctx.assessor
    if assessor is None:
        return None
    if system_type is SystemType.ROOF and assessor.roof_material in KNOWN_ROOF_MATERIALS:
        return assessor.roof_material
    if system_type is SystemType.HVAC and assessor.cooling_type in KNOWN_COOLING_TYPES:
        return assessor.cooling_type if assessor.cooling_type in ("heat_pump", "mini_split") else "central_air"
    # Assessor fuel describes space heating, not the water heater.
    return None


def permit_subtype(system_type: SystemType, signal: PermitSignal | None) -> str | None:
    """Lifespan subtype named in the permit text, if any."""
    if signal is None:
        return None
    text = signal.permit.text
    if system_type is SystemType.ROOF:
        return roof_material_from_text(text)
    if system_type is SystemType.HVAC:
        return hvac_type_from_text(text)
    wh_type = water_heater_type_from_text(text)
    return {"gas_tank": "tank", "electric_tank": "tank"}.get(wh_type, wh_type)


def infer_subtype(system_type: SystemType, ctx: EvidenceContext) -> str:
    """Lifespan subtype for a system from permit text, then assessor data."""
    return (
        permit_subtype(system_type, ctx.permit_signal(system_type))
        or _confirmed_material(system_type, ctx)
        or "unknown"
    )


def permit_corroboration(system_type: SystemType, signal: PermitSignal, ctx: EvidenceContext) -> str | None:
    """Name of the independent signal backing a permit, or None.

    A permit is corroborated when it was closed out by final inspection, or
    when the material it names matches what the assessor has on record.
    """
    if is_finaled(signal.permit, ctx.settings.permit_min_year, ctx.settings.permit_max_year):
        return "final_inspection"
    named = permit_subtype(system_type, signal)
    if named is not None and named == _confirmed_material(system_type, ctx):
        return "assessor_material"
    return None


# ---------------------------------------------------------------------------
# Age bucket rules
# ---------------------------------------------------------------------------


def estimate_unpermitted_age(
    home_age: int,
    lifespan: ResolvedLifespan | None,
    buckets: BucketTable,
) -> tuple[float, list[str], dict[str, Any]]:
    """Estimate system age from home age when no permit is on file.

    A system older than its typical lifespan has probably been replaced, so the
    estimate resets to ``home_age - typical``. A home older than the max
    lifespan fires a penalty and floors the estimate at the highest-risk bucket.
    """
    details: dict[str, Any] = {"home_age": home_age}
    if lifespan is None:
        details.update(lifespan=None, replacement_inferred=False, estimated_age=home_age)
        return float(home_age), [], details

    entry = lifespan.entry
    age = float(home_age)
    penalties: list[str] = []
    replaced = home_age > entry.typical_years
    if replaced:
        age = home_age - entry.typical_years
    if home_age > entry.max_years:
        penalties.append(AGE_EXCEEDS_LIFESPAN_WITHOUT_PERMIT)
        age = max(age, float(buckets.highest_risk.min_age))

    details.update(
        lifespan=lifespan.provenance(),
        replacement_inferred=replaced,
        estimated_age=round(age, 2),
    )
    return age, penalties, details


class AgeBucketRule(FieldRule):
    """Bucketed age for one system."""

    default_bucket: str

    def __init__(self, field_name: PredictionField, system_type: SystemType, default_bucket: str):
        self.field = field_name
        self.system_type = system_type
        self.buckets = bucket_table(system_type)
        self.default_bucket = default_bucket

    def _climate_modifiers(self, lifespan: ResolvedLifespan | None) -> list[str]:
        return [CLIMATE_FACTOR_PRESENT] if lifespan is not None and lifespan.climate_adjusted else []

    def _from_home_age(
        self, ctx: EvidenceContext, home_age: int, subtype: str, source: str
    ) -> Inference:
        lifespan = ctx.resolve_lifespan(self.system_type, subtype)
        age, penalties, details = estimate_unpermitted_age(home_age, lifespan, self.buckets)
        details.update(source=source, system_subtype=subtype)
        return Inference(
            value=self.buckets.label_for(age),
            modifiers=self._climate_modifiers(lifespan),
            penalties=penalties,
            details=details,
        )

    def from_permit(self, ctx: EvidenceContext) -> Inference | None:
        signal = ctx.permit_signal(self.system_type)
        if signal is None:
            return None

        age = ctx.years_since(signal.permit_date.value)
        subtype = infer_subtype(self.system_type, ctx)
        lifespan = ctx.resolve_lifespan(self.system_type, subtype)

        modifiers = []
        if age < RECENT_PERMIT_YEARS:
            modifiers.append(RECENT_PERMIT)
        corroboration = permit_corroboration(self.system_type, signal, ctx)
        if corroboration is not None:
            modifiers.append(CROSS_VALIDATED)
        modifiers.extend(self._climate_modifiers(lifespan))

        return Inference(
            value=self.buckets.label_for(age),
            modifiers=modifiers,
            details={
                "source": "permit",
                "permit": signal.provenance(),
                "estimated_age": round(age, 2),
                "system_subtype": subtype,
                "corroboration": corroboration,
                "lifespan": lifespan.provenance() if lifespan else None,
            },
        )

    def from_enriched_assessor(self, ctx: EvidenceContext) -> Inference | None:
        assessor = ctx.assessor
        if assessor is None:
            return None
        home_age = ctx.age_from_year(assessor.best_year)
        if home_age is None:
            return None

        material = _confirmed_material(self.system_type, ctx)
        related = ctx.related_trade_permit(self.system_type, assessor.best_year)
        if material is None and related is None:
            return None

        inference = self._from_home_age(ctx, home_age, infer_subtype(self.system_type, ctx), "assessor")
        if related is not None:
            inference.modifiers.append(CROSS_VALIDATED)
            inference.details["related_permit"] = related.number
        if material is not None:
            inference.modifiers.append(MATERIAL_CONFIRMED)
            inference.details["material"] = material
        return inference

    def from_basic_assessor(self, ctx: EvidenceContext) -> Inference | None:
        if ctx.assessor is None:
            return None
        home_age = ctx.age_from_year(ctx.assessor.best_year)
        if home_age is None:
            return None
        return self._from_home_age(ctx, home_age, infer_subtype(self.system_type, ctx), "assessor")

    def from_regional_inference(self, ctx: EvidenceContext) -> Inference | None:
        subtype = infer_subtype(self.system_type, ctx)
        home_age = ctx.age_from_year(ctx.property.year_built)
        if home_age is not None:
            return self._from_home_age(ctx, home_age, subtype, "property")

        if ctx.climate_zone_source is None:
            return None
        lifespan = ctx.resolve_lifespan(self.system_type, subtype)
        if lifespan is None:
            return None
        # No home age at all: assume a system halfway through its regional life.
        age = lifespan.entry.typical_years / 2
        return Inference(
            value=self.buckets.label_for(age),
            modifiers=self._climate_modifiers(lifespan),
            details={
                "source": "climate_zone",
                "system_subtype": subtype,
                "estimated_age": round(age, 2),
                "lifespan": lifespan.provenance(),
            },
        )

    def from_default(self, ctx: EvidenceContext) -> Inference | None:
        return Inference(value=self.default_bucket, details={"source": "default"})


# ---------------------------------------------------------------------------
# HVAC presence and type
# ---------------------------------------------------------------------------

REGIONAL_HVAC_TYPES: dict[ClimateZone, str] = {
    ClimateZone.HIGH_HEAT: "central_air",
    ClimateZone.COASTAL: "heat_pump",
    ClimateZone.FREEZE_THAW: "furnace",
    ClimateZone.MODERATE: "central_air",
}

REGIONAL_WATER_HEATER_TYPES: dict[ClimateZone, str] = {
    ClimateZone.HIGH_HEAT: "electric_tank",
    ClimateZone.COASTAL: "electric_tank",
    ClimateZone.FREEZE_THAW: "gas_tank",
    ClimateZone.MODERATE: "gas_tank",
}


def _recent(ctx: EvidenceContext, system_type: SystemType) -> list[str]:
    signal = ctx.permit_signal(system_type)
    if signal is not None and ctx.years_since(signal.permit_date.value) < RECENT_PERMIT_YEARS:
        return [RECENT_PERMIT]
    return []


def _has_heating(ctx: EvidenceContext) -> bool:
    assessor = ctx.assessor
    if assessor is None:
        return False
    heating = (assessor.heating_type or "").lower()
    return bool(heating) and "none" not in heating


class HvacPresentRule(FieldRule):
    field = PredictionField.HVAC_PRESENT

    def from_permit(self, ctx: EvidenceContext) -> Inference | None:
        if not ctx.has_permit_for(SystemType.HVAC):
            return None
        signal = ctx.permit_signal(SystemType.HVAC)
        return Inference(
            value="true",
            modifiers=_recent(ctx, SystemType.HVAC),
            details={"source": "permit", "permit": signal.provenance() if signal else None},
        )

    def from_enriched_assessor(self, ctx: EvidenceContext) -> Inference | None:
        assessor = ctx.assessor
        if assessor is None or assessor.cooling_type is None or assessor.heating_type is None:
            return None
        cooling_none = assessor.cooling_type == "none"
        if cooling_none == _has_heating(ctx):
            # Cooling and heating disagree; not corroborated.
            return None
        return Inference(
            value="false" if cooling_none else "true",
            modifiers=[CROSS_VALIDATED],
            details={
                "source": "assessor",
                "cooling_type": assessor.cooling_type,
                "heating_type": assessor.heating_type,
            },
        )

    def from_basic_assessor(self, ctx: EvidenceContext) -> Inference | None:
        assessor = ctx.assessor
        if assessor is None:
            return None
        if assessor.cooling_type is not None:
            return Inference(
                value="false" if assessor.cooling_type == "none" else "true",
                details={"source": "assessor", "cooling_type": assessor.cooling_type},
            )
        if assessor.heating_type is not None:
            return Inference(
                value="true" if _has_heating(ctx) else "false",
                details={"source": "assessor", "heating_type": assessor.heating_type},
            )
        return None

    def from_regional_inference(self, ctx: EvidenceContext) -> Inference | None:
        if ctx.climate_zone_source is None:
            return None
        return Inference(value="true", details={"source": "climate_zone"})

    def from_default(self, ctx: EvidenceContext) -> Inference | None:
        return Inference(value="true", details={"source": "default"})


class HvacSystemTypeRule(FieldRule):
    field = PredictionField.HVAC_SYSTEM_TYPE

    def from_permit(self, ctx: EvidenceContext) -> Inference | None:
        signal = ctx.permit_signal(SystemType.HVAC)
        if signal is None:
            return None
        found = hvac_type_from_text(signal.permit.text)
        if found is None:
            return None
        return Inference(
            value=found,
            modifiers=_recent(ctx, SystemType.HVAC),
            details={"source": "permit", "permit": signal.provenance()},
        )

    def from_enriched_assessor(self, ctx: EvidenceContext) -> Inference | None:
        assessor = ctx.assessor
        if assessor is None or assessor.cooling_type not in KNOWN_COOLING_TYPES:
            return None
        if assessor.heating_fuel not in KNOWN_FUELS:
            return None
        value = assessor.cooling_type
        heating = (assessor.heating_type or "").lower()
        if value == "central_air" and assessor.heating_fuel == "electric" and "heat pump" in heating:
            value = "heat_pump"
        return Inference(
            value=value,
            modifiers=[CROSS_VALIDATED],
            details={
                "source": "assessor",
                "cooling_type": assessor.cooling_type,
                "heating_fuel": assessor.heating_fuel,
            },
        )

    def from_basic_assessor(self, ctx: EvidenceContext) -> Inference | None:
        assessor = ctx.assessor
        if assessor is None or assessor.cooling_type not in KNOWN_COOLING_TYPES:
            return None
        return Inference(
            value=assessor.cooling_type,
            details={"source": "assessor", "cooling_type": assessor.cooling_type},
        )

    def from_regional_inference(self, ctx: EvidenceContext) -> Inference | None:
        if ctx.climate_zone_source is None:
            return None
        return Inference(
            value=REGIONAL_HVAC_TYPES[ctx.climate_zone],
            details={"source": "climate_zone"},
        )

    def from_default(self, ctx: EvidenceContext) -> Inference | None:
        return Inference(value="central_air", details={"source": "default"})


# ---------------------------------------------------------------------------
# Water heater type
# ---------------------------------------------------------------------------


def _fuel_tank(fuel: str | None) -> str | None:
    return {"gas": "gas_tank", "electric": "electric_tank"}.get(fuel or "")


class WaterHeaterTypeRule(FieldRule):
    field = PredictionField.WATER_HEATER_TYPE

    def from_permit(self, ctx: EvidenceContext) -> Inference | None:
        signal = ctx.permit_signal(SystemType.WATER_HEATER)
        if signal is None:
            return None
        found = water_heater_type_from_text(signal.permit.text)
        if found is None:
            found = _fuel_tank(ctx.assessor.heating_fuel if ctx.assessor else None)
        if found is None:
            return None
        return Inference(
            value=found,
            modifiers=_recent(ctx, SystemType.WATER_HEATER),
            details={"source": "permit", "permit": signal.provenance()},
        )

    def from_enriched_assessor(self, ctx: EvidenceContext) -> Inference | None:
        assessor = ctx.assessor
        if assessor is None:
            return None
        value = _fuel_tank(assessor.heating_fuel)
        if value is None:
            return None
        related = ctx.related_trade_permit(SystemType.WATER_HEATER, assessor.best_year)
        if related is None:
            return None
        return Inference(
            value=value,
            modifiers=[CROSS_VALIDATED],
            details={
                "source": "assessor",
                "heating_fuel": assessor.heating_fuel,
                "related_permit": related.number,
            },
        )

    def from_basic_assessor(self, ctx: EvidenceContext) -> Inference | None:
        assessor = ctx.assessor
        value = _fuel_tank(assessor.heating_fuel) if assessor else None
        if value is None:
            return None
        return Inference(value=value, details={"source": "assessor", "heating_fuel": assessor.heating_fuel})

    def from_regional_inference(self, ctx: EvidenceContext) -> Inference | None:
        if ctx.climate_zone_source is None:
            return None
        return Inference(
            value=REGIONAL_WATER_HEATER_TYPES[ctx.climate_zone],
            details={"source": "climate_zone"},
        )

    def from_default(self, ctx: EvidenceContext) -> Inference | None:
        return Inference(value="gas_tank", details={"source": "default"})


def default_rules() -> list[FieldRule]:
    """Rules for every tracked field, in output order."""
    return [
        AgeBucketRule(PredictionField.ROOF_AGE_BUCKET, SystemType.ROOF, default_bucket="11-15"),
        HvacPresentRule(),
        HvacSystemTypeRule(),
        AgeBucketRule(PredictionField.HVAC_AGE_BUCKET, SystemType.HVAC, default_bucket="5-9"),
        WaterHeaterTypeRule(),
        AgeBucketRule(PredictionField.WATER_HEATER_AGE_BUCKET, SystemType.WATER_HEATER, default_bucket="4-7"),
    ]
