"""Replacement timelines for the major home systems.

A timeline anchors an install year, projects a replacement window from the
resolved lifespan, and attaches a capital cost range plus the factors that
move the window. A permit always sets the anchor. Without one the install
year is inferred from home age, and a missing permit never implies the
system is original: once a home outlives the typical lifespan the system is
assumed to have been replaced. Inferred anchors only ever widen the stated
uncertainty.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from habitta.confidence.copy import (
    ActionsTier,
    WhatToExpect,
    get_actions_for_tier,
    get_actions_tier,
    get_system_display_name,
    get_what_to_expect,
    get_why_showing_this,
    get_window_label,
    should_use_dashed_visualization,
)
from habitta.models import ConfidenceLevel, SystemType
from habitta.prediction.buckets import bucket_table
from habitta.prediction.context import EvidenceContext
from habitta.prediction.rules import estimate_unpermitted_age, infer_subtype
from habitta.reference.lifespans import UNKNOWN_SUBTYPE, ResolvedLifespan

logger = logging.getLogger(__name__)

TIMELINE_SYSTEMS = (SystemType.HVAC, SystemType.ROOF, SystemType.WATER_HEATER)

NARROW = "narrow"
MEDIUM = "medium"
WIDE = "wide"

SYSTEM_CATEGORIES: dict[SystemType, str] = {
    SystemType.HVAC: "mechanical",
    SystemType.ROOF: "structural",
    SystemType.WATER_HEATER: "utility",
}

# Installed replacement cost in dollars by (system, subtype). A subtype
# without its own row uses the system's "unknown" row.
COST_RANGES: dict[tuple[SystemType, str], tuple[int, int]] = {
    (SystemType.ROOF, "asphalt"): (12_000, 20_000),
    (SystemType.ROOF, "tile"): (18_000, 35_000),
    (SystemType.ROOF, "metal"): (20_000, 45_000),
    (SystemType.ROOF, UNKNOWN_SUBTYPE): (15_000, 30_000),
    (SystemType.HVAC, UNKNOWN_SUBTYPE): (9_000, 14_000),
    (SystemType.WATER_HEATER, "tank"): (1_800, 3_000),
    (SystemType.WATER_HEATER, "tankless"): (3_500, 6_000),
    (SystemType.WATER_HEATER, UNKNOWN_SUBTYPE): (1_800, 3_500),
}

COST_DRIVERS: dict[SystemType, tuple[str, ...]] = {
    SystemType.HVAC: ("System type", "SEER rating", "Labor rates"),
    SystemType.ROOF: ("Material", "Roof pitch", "Insurance requirements"),
    SystemType.WATER_HEATER: ("Tank type", "Fuel type", "Labor rates"),
}

DISCLOSURE_NOTES: dict[SystemType, str] = {
    SystemType.HVAC: "Based on typical HVAC replacement patterns for your region.",
    SystemType.ROOF: "Roofs vary widely; this window reflects typical outcomes for similar homes.",
    SystemType.WATER_HEATER: (
        "Water heaters are often replaced without permits; this estimate reflects typical patterns."
    ),
}

LONG_LIFE_ROOFS = {
    "tile": "Tile roofs typically outlast asphalt shingles.",
    "metal": "Metal roofs typically outlast asphalt shingles.",
}


@dataclass(frozen=True, slots=True)
class InstallInference:
    year: int | None
    source: str  # permit | inferred | unknown
    data_quality: ConfidenceLevel
    rationale: str


@dataclass(frozen=True, slots=True)
class ReplacementWindow:
    early_year: int
    likely_year: int
    late_year: int
    uncertainty: str
    rationale: str


@dataclass(frozen=True, slots=True)
class CostRange:
    low: int
    high: int
    drivers: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class LifespanDriver:
    factor: str
    impact: str  # increase | decrease
    severity: str  # low | medium | high
    description: str | None = None


@dataclass(frozen=True, slots=True)
class MaintenanceEffect:
    shifts_timeline: bool
    expected_delay_years: int
    uncertainty_reduction: str
    explanation: str


MAINTENANCE_EFFECTS: dict[SystemType, MaintenanceEffect] = {
    SystemType.HVAC: MaintenanceEffect(
        shifts_timeline=True,
        expected_delay_years=3,
        uncertainty_reduction=MEDIUM,
        explanation="Regular maintenance typically extends HVAC lifespan and narrows uncertainty.",
    ),
    SystemType.ROOF: MaintenanceEffect(
        shifts_timeline=False,
        expected_delay_years=0,
        uncertainty_reduction="low",
        explanation="Roof maintenance reduces leak risk but does not meaningfully extend lifespan.",
    ),
    SystemType.WATER_HEATER: MaintenanceEffect(
        shifts_timeline=False,
        expected_delay_years=1,
        uncertainty_reduction="low",
        explanation="Routine maintenance reduces surprise failures but has minimal lifespan impact.",
    ),
}


@dataclass(slots=True)
class SystemTimeline:
    """Install anchor, replacement window and cost outlook for one system."""

    system_type: SystemType
    subtype: str
    install: InstallInference
    window: ReplacementWindow
    cost: CostRange
    lifespan: ResolvedLifespan
    maintenance: MaintenanceEffect
    drivers: list[LifespanDriver] = field(default_factory=list)

    @property
    def label(self) -> str:
        return get_system_display_name(self.system_type)

    @property
    def category(self) -> str:
        return SYSTEM_CATEGORIES[self.system_type]

    @property
    def confidence_level(self) -> ConfidenceLevel:
        return self.install.data_quality

    @property
    def disclosure_note(self) -> str:
        return DISCLOSURE_NOTES[self.system_type]

    def years_remaining(self, as_of: date) -> int:
        """Whole years until the likely replacement year; 0 once it has passed."""
        return max(0, self.window.likely_year - as_of.year)

    def as_dict(self, as_of: date) -> dict[str, Any]:
        return {
            "system_type": self.system_type.value,
            "system_label": self.label,
            "category": self.category,
            "subtype": self.subtype,
            "install": {
                "year": self.install.year,
                "source": self.install.source,
                "data_quality": self.install.data_quality.value,
                "rationale": self.install.rationale,
            },
            "replacement_window": {
                "early_year": self.window.early_year,
                "likely_year": self.window.likely_year,
                "late_year": self.window.late_year,
                "uncertainty": self.window.uncertainty,
                "rationale": self.window.rationale,
            },
            "years_remaining": self.years_remaining(as_of),
            "capital_cost": {
                "low": self.cost.low,
                "high": self.cost.high,
                "drivers": list(self.cost.drivers),
            },
            "lifespan_drivers": [
                {
                    "factor": d.factor,
                    "impact": d.impact,
                    "severity": d.severity,
                    "description": d.description,
                }
                for d in self.drivers
            ],
            "maintenance_effect": {
                "shifts_timeline": self.maintenance.shifts_timeline,
                "expected_delay_years": self.maintenance.expected_delay_years,
                "uncertainty_reduction": self.maintenance.uncertainty_reduction,
                "explanation": self.maintenance.explanation,
            },
            "disclosure_note": self.disclosure_note,
            "lifespan": self.lifespan.provenance(),
        }


@dataclass(frozen=True, slots=True)
class TimelineCopy:
    """Confidence-gated copy for a timeline card."""

    what_to_expect: WhatToExpect
    window_label: str
    why_showing_this: list[str]
    actions_tier: ActionsTier
    actions: list[str]
    dashed: bool


def cost_range(system_type: SystemType, subtype: str | None) -> CostRange:
    key = (system_type, subtype or UNKNOWN_SUBTYPE)
    low, high = COST_RANGES.get(key) or COST_RANGES[(system_type, UNKNOWN_SUBTYPE)]
    return CostRange(low=low, high=high, drivers=COST_DRIVERS[system_type])


def _home_year(ctx: EvidenceContext) -> int | None:
    if ctx.assessor is not None and ctx.assessor.best_year is not None:
        return ctx.assessor.best_year
    return ctx.property.year_built


def infer_install(
    system_type: SystemType, ctx: EvidenceContext, lifespan: ResolvedLifespan
) -> tuple[InstallInference, str]:
    """Install anchor for a system and the window uncertainty it implies."""
    label = get_system_display_name(system_type)
    signal = ctx.permit_signal(system_type)
    if signal is not None:
        work = "installation" if signal.install_source == "permit_install" else "replacement"
        return (
            InstallInference(
                year=signal.install_year,
                source="permit",
                data_quality=ConfidenceLevel.HIGH,
                rationale=f"{label} {work} verified via building permit",
            ),
            NARROW,
        )

    home_age = ctx.age_from_year(_home_year(ctx))
    if home_age is None:
        return (
            InstallInference(
                year=None,
                source="unknown",
                data_quality=ConfidenceLevel.LOW,
                rationale="No build year or permit on file",
            ),
            WIDE,
        )

    age, _, details = estimate_unpermitted_age(home_age, lifespan, bucket_table(system_type))
    year = ctx.as_of.year - round(age)
    if details["replacement_inferred"]:
        return (
            InstallInference(
                year=year,
                source="inferred",
                data_quality=ConfidenceLevel.LOW,
                rationale=f"{label} replacement inferred from home age; no permit on file",
            ),
            WIDE,
        )
    return (
        InstallInference(
            year=year,
            source="inferred",
            data_quality=ConfidenceLevel.MEDIUM,
            rationale=f"{label} assumed original to the home",
        ),
        MEDIUM,
    )


def lifespan_drivers(system_type: SystemType, subtype: str, lifespan: ResolvedLifespan) -> list[LifespanDriver]:
    drivers = []
    factor = lifespan.climate_factor
    if factor is not None and factor != 1.0:
        shorter = factor < 1.0
        change = round(abs(1.0 - factor) * 100)
        drivers.append(
            LifespanDriver(
                factor="Climate",
                impact="decrease" if shorter else "increase",
                severity="medium" if abs(1.0 - factor) >= 0.15 else "low",
                description=f"Local climate {'shortens' if shorter else 'extends'} expected life by about {change}%",
            )
        )
    if system_type is SystemType.ROOF and subtype in LONG_LIFE_ROOFS:
        drivers.append(
            LifespanDriver(
                factor=f"{subtype.capitalize()} roofing",
                impact="increase",
                severity="high",
                description=LONG_LIFE_ROOFS[subtype],
            )
        )
    return drivers


def _resolve(system_type: SystemType, subtype: str, ctx: EvidenceContext) -> tuple[str, ResolvedLifespan | None]:
    lifespan = ctx.resolve_lifespan(system_type, subtype)
    if lifespan is None and subtype != UNKNOWN_SUBTYPE:
        subtype = UNKNOWN_SUBTYPE
        lifespan = ctx.resolve_lifespan(system_type, subtype)
    return subtype, lifespan


def infer_system_timeline(system_type: SystemType, ctx: EvidenceContext) -> SystemTimeline | None:
    """Build the replacement timeline for one system.

    Args:
        system_type: One of HVAC, roof or water heater
        ctx: Evidence for the property

    Returns:
        SystemTimeline, or None when no lifespan row covers the system

    Raises:
        ValueError: If the system has no timeline model
    """
    if system_type not in TIMELINE_SYSTEMS:
        raise ValueError(f"No timeline model for {system_type.value}")

    subtype, lifespan = _resolve(system_type, infer_subtype(system_type, ctx), ctx)
    if lifespan is None:
        logger.warning(
            "No lifespan for %s on %s; timeline skipped", system_type.value, ctx.property.address_id
        )
        return None

    install, uncertainty = infer_install(system_type, ctx, lifespan)
    entry = lifespan.entry
    # Without any anchor, assume the system is halfway through its life.
    anchor = install.year if install.year is not None else ctx.as_of.year - round(entry.typical_years / 2)
    window = ReplacementWindow(
        early_year=anchor + round(entry.min_years),
        likely_year=anchor + round(entry.typical_years),
        late_year=anchor + round(entry.max_years),
        uncertainty=uncertainty,
        rationale=install.rationale,
    )
    return SystemTimeline(
        system_type=system_type,
        subtype=subtype,
        install=install,
        window=window,
        cost=cost_range(system_type, subtype),
        lifespan=lifespan,
        maintenance=MAINTENANCE_EFFECTS[system_type],
        drivers=lifespan_drivers(system_type, subtype, lifespan),
    )


def infer_timelines(ctx: EvidenceContext) -> list[SystemTimeline]:
    timelines = []
    for system_type in TIMELINE_SYSTEMS:
        timeline = infer_system_timeline(system_type, ctx)
        if timeline is not None:
            timelines.append(timeline)
    return timelines


def describe_timeline(timeline: SystemTimeline, as_of: date) -> TimelineCopy:
    """Pick the card copy for a timeline from its install confidence."""
    level = timeline.confidence_level
    tier = get_actions_tier(level)
    return TimelineCopy(
        what_to_expect=get_what_to_expect(timeline.system_type, level, timeline.years_remaining(as_of)),
        window_label=get_window_label(level),
        why_showing_this=get_why_showing_this(level),
        actions_tier=tier,
        actions=get_actions_for_tier(tier, timeline.system_type),
        dashed=should_use_dashed_visualization(level),
    )
