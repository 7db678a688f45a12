"""Seasonal maintenance templates per climate zone."""

from __future__ import annotations

from dataclasses import dataclass

from habitta.models import ClimateZone, TaskPriority


@dataclass(frozen=True, slots=True)
class SeasonalTemplate:
    month: int
    title: str
    category: str
    system_type: str | None
    description: str
    priority: TaskPriority


def _t(month: int, title: str, category: str, system_type: str, description: str, priority: str) -> SeasonalTemplate:
    return SeasonalTemplate(month, title, category, system_type, description, TaskPriority(priority))


COMMON_TEMPLATES: tuple[SeasonalTemplate, ...] = (
    _t(4, "Test smoke/CO detectors (Spring)", "interior", "safety",
       "Test all smoke and CO detectors. Replace batteries.", "high"),
    _t(10, "Test smoke/CO detectors (Fall)", "interior", "safety",
       "Test all smoke and CO detectors. Replace batteries.", "high"),
)

ZONE_TEMPLATES: dict[ClimateZone, tuple[SeasonalTemplate, ...]] = {
    ClimateZone.FREEZE_THAW: (
        _t(3, "HVAC cooling tune-up", "hvac", "hvac",
           "Service AC. Replace filter. Check refrigerant levels before summer.", "medium"),
        _t(3, "Check sump pump", "plumbing", "plumbing",
           "Test sump pump operation before spring thaw and heavy rains.", "high"),
        _t(4, "Foundation crack inspection", "exterior", "foundation",
           "Inspect foundation for new cracks from freeze-thaw cycles.", "medium"),
        _t(4, "Gutter & downspout clean (Spring)", "exterior", "roof",
           "Clear winter debris. Check for ice dam damage.", "medium"),
        _t(5, "Exterior paint & caulk inspection", "exterior", "exterior",
           "Check caulking and paint for freeze damage. Reseal as needed.", "low"),
        _t(6, "Deck & patio inspection", "exterior", "exterior",
           "Check for wood rot, loose boards, and seal surfaces.", "low"),
        _t(9, "Furnace tune-up", "hvac", "hvac",
           "Professional furnace service before heating season.", "high"),
        _t(10, "Roof & flashing inspection", "exterior", "roof",
           "Inspect shingles and flashing before winter.", "high"),
        _t(10, "Gutter clean (leaf season)", "exterior", "roof",
           "Clear gutters before freeze to prevent ice dams.", "medium"),
        _t(11, "Winterize exterior plumbing", "plumbing", "plumbing",
           "Shut off hose bibs. Insulate exposed pipes. Drain sprinkler system.", "urgent"),
        _t(11, "Weatherstrip doors & windows", "exterior", "exterior",
           "Replace worn weatherstripping to reduce drafts and heating costs.", "medium"),
        _t(11, "Snow equipment check", "exterior", "exterior",
           "Service snow blower. Stock ice melt and shovels.", "low"),
    ),
    ClimateZone.HIGH_HEAT: (
        _t(3, "AC deep service", "hvac", "hvac",
           "Full AC tune-up. Clean coils, check refrigerant, replace filter. Critical before summer.", "high"),
        _t(3, "Pool pump & equipment service", "exterior", "pool",
           "Service pool pump, check filter, inspect equipment for wear.", "medium"),
        _t(4, "Irrigation system check", "exterior", "sprinkler",
           "Test irrigation zones. Check for leaks and adjust timers for dry season.", "medium"),
        _t(6, "AC filter replacement (Summer)", "hvac", "hvac",
           "Monthly filter check recommended in high-use months.", "medium"),
        _t(7, "Pest prevention sweep", "exterior", "exterior",
           "Inspect and seal entry points. Check for termites (high humidity risk).", "medium"),
        _t(7, "Water heater inspection", "plumbing", "water_heater",
           "Check anode rod. Flush sediment. Higher temps accelerate wear.", "medium"),
        _t(9, "Hurricane shutter & storm prep check", "exterior", "exterior",
           "Inspect shutters, secure loose outdoor items, check emergency supplies.", "high"),
        _t(10, "Roof inspection post-storm season", "exterior", "roof",
           "Inspect for storm damage. Check flashings and soft spots.", "high"),
        _t(10, "AC filter replacement (Fall)", "hvac", "hvac",
           "Replace filter after heavy summer use.", "medium"),
        _t(12, "Exterior paint & seal check", "exterior", "exterior",
           "UV and humidity degrade coatings faster. Inspect and touch up.", "low"),
    ),
    ClimateZone.COASTAL: (
        _t(3, "HVAC coil & condenser clean", "hvac", "hvac",
           "Salt air accelerates corrosion. Deep clean coils and rinse condenser.", "high"),
        _t(4, "Gutter & downspout check", "exterior", "roof",
           "Clear debris. Check for corrosion from salt air.", "medium"),
        _t(4, "Deck & exterior power wash", "exterior", "exterior",
           "Remove salt residue from siding, deck, and outdoor surfaces.", "medium"),
        _t(5, "Window seal inspection", "exterior", "exterior",
           "Salt air degrades seals faster. Check all windows and doors.", "medium"),
        _t(6, "Exterior metal corrosion check", "exterior", "exterior",
           "Inspect railings, fixtures, and hardware for rust. Treat early.", "medium"),
        _t(7, "Salt air HVAC rinse", "hvac", "hvac",
           "Mid-summer rinse of outdoor HVAC components to prevent salt buildup.", "medium"),
        _t(9, "Roof & flashing inspection", "exterior", "roof",
           "Salt air and moisture accelerate flashing deterioration.", "high"),
        _t(10, "Exterior stain & seal", "exterior", "exterior",
           "Reapply protective coatings before winter moisture season.", "medium"),
        _t(12, "Plumbing corrosion check", "plumbing", "plumbing",
           "Inspect exposed pipes and fixtures for salt-related corrosion.", "medium"),
    ),
    ClimateZone.MODERATE: (
        _t(3, "HVAC cooling tune-up", "hvac", "hvac",
           "Service AC. Replace filter. Standard spring prep.", "medium"),
        _t(3, "Gutter & downspout clean (Spring)", "exterior", "roof",
           "Clear winter debris. Ensure proper drainage.", "medium"),
        _t(4, "Exterior caulk & seal check", "exterior", "exterior",
           "Inspect and reseal windows, doors, and trim.", "low"),
        _t(6, "Pest prevention sweep", "exterior", "exterior",
           "Inspect and seal entry points.", "low"),
        _t(9, "HVAC heating tune-up", "hvac", "hvac",
           "Service furnace or heat pump before heating season.", "medium"),
        _t(10, "Roof & flashing inspection", "exterior", "roof",
           "Inspect shingles, flashings, and penetrations.", "high"),
        _t(10, "Gutter clean (leaf season)", "exterior", "roof",
           "Clear gutters to prevent water damage.", "medium"),
    ),
}

# (days out, title, description, category, system_type)
POOR_CONDITION_TASKS: tuple[tuple[int, str, str, str, str | None], ...] = (
    (14, "Whole-home inspection", "General condition check.", "interior", None),
    (21, "Electrical safety check", "Panel/breakers/outlets.", "electrical", "electrical"),
    (21, "Plumbing leak check", "Fixtures/traps/valves.", "plumbing", "plumbing"),
    (21, "Roof & exterior review", "Shingles/siding/trim.", "exterior", "roof"),
)


def seasonal_templates(zone: ClimateZone) -> list[SeasonalTemplate]:
    """Zone-specific templates followed by the common set."""
    return [*ZONE_TEMPLATES[zone], *COMMON_TEMPLATES]
