"""Confidence-gated copy for system cards.

All copy is chosen from explicit tables keyed by (system, confidence level).
Low confidence never carries a "within X years" style timeline.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from habitta.models import ConfidenceLevel, SystemType


class ActionsTier(str, Enum):
    PREVENTIVE = "preventive"
    PREPARATORY = "preparatory"
    DECISIVE = "decisive"


@dataclass(frozen=True, slots=True)
class WhatToExpect:
    headline: str
    body: str


SYSTEM_LABELS: dict[SystemType, str] = {
    SystemType.HVAC: "HVAC system",
    SystemType.ROOF: "Roof",
    SystemType.WATER_HEATER: "Water heater",
    SystemType.ELECTRICAL: "Electrical system",
}

SYSTEM_DISPLAY_NAMES: dict[SystemType, str] = {
    SystemType.HVAC: "HVAC",
    SystemType.ROOF: "Roof",
    SystemType.WATER_HEATER: "Water Heater",
    SystemType.ELECTRICAL: "Electrical",
}

WINDOW_LABELS: dict[ConfidenceLevel, str] = {
    ConfidenceLevel.LOW: "Planning horizon",
    ConfidenceLevel.MEDIUM: "Likely replacement window",
    ConfidenceLevel.HIGH: "Expected replacement window",
}

WHY_SHOWING_THIS: dict[ConfidenceLevel, tuple[str, ...]] = {
    ConfidenceLevel.LOW: (
        "This estimate is based on your home's age and typical replacement patterns.",
        "Systems are often replaced without permits, so this may not reflect the actual install date.",
        "You can update this information to improve accuracy.",
    ),
    ConfidenceLevel.MEDIUM: (
        "This information is based on details you provided.",
        "Adding service records or system details can further improve accuracy.",
    ),
    ConfidenceLevel.HIGH: ("This information is based on verified records for your home.",),
}

ACTIONS_TIERS: dict[ConfidenceLevel, ActionsTier] = {
    ConfidenceLevel.LOW: ActionsTier.PREVENTIVE,
    ConfidenceLevel.MEDIUM: ActionsTier.PREPARATORY,
    ConfidenceLevel.HIGH: ActionsTier.DECISIVE,
}

TIER_ACTIONS: dict[ActionsTier, dict[SystemType, tuple[str, ...]]] = {
    ActionsTier.PREVENTIVE: {
        SystemType.HVAC: ("Replace filters", "Schedule tune-up", "Monitor performance", "Learn warning signs"),
        SystemType.ROOF: ("Inspect after storms", "Clear debris", "Check for leaks", "Learn warning signs"),
        SystemType.WATER_HEATER: ("Flush annually", "Check anode rod", "Inspect for leaks", "Learn warning signs"),
        SystemType.ELECTRICAL: (
            "Safety inspection",
            "Check panel capacity",
            "Identify outdated components",
            "Test GFCI outlets",
        ),
    },
    ActionsTier.PREPARATORY: {
        SystemType.HVAC: (
            "Compare replacement options",
            "Budget for upgrade",
            "Get efficiency estimates",
            "Research contractors",
        ),
        SystemType.ROOF: (
            "Schedule professional inspection",
            "Start budgeting",
            "Compare material options",
            "Get preliminary quotes",
        ),
        SystemType.WATER_HEATER: (
            "Compare tank vs tankless",
            "Budget for replacement",
            "Research efficiency ratings",
            "Get quotes",
        ),
        SystemType.ELECTRICAL: (
            "Assess load capacity",
            "Plan for EV/solar needs",
            "Budget for upgrades",
            "Consult electrician",
        ),
    },
    ActionsTier.DECISIVE: {
        SystemType.HVAC: ("Schedule replacement", "Lock pricing", "Consider energy incentives", "Finalize contractor"),
        SystemType.ROOF: ("Get replacement quotes", "Schedule work", "Coordinate with insurance", "Choose materials"),
        SystemType.WATER_HEATER: ("Schedule replacement", "Choose model", "Lock pricing", "Arrange installation"),
        SystemType.ELECTRICAL: ("Schedule panel upgrade", "Finalize scope", "Pull permits", "Choose contractor"),
    },
}

REPLACEMENT_WINDOW_SPREAD: dict[ConfidenceLevel, tuple[int, int]] = {
    ConfidenceLevel.LOW: (5, 7),
    ConfidenceLevel.MEDIUM: (3, 4),
    ConfidenceLevel.HIGH: (1, 2),
}


def _low(label: str, years_remaining: int) -> WhatToExpect:
    return WhatToExpect(
        headline="Based on typical patterns",
        body=(
            f"Based on typical {label.lower()} lifespans and home age, this system may be "
            "in its later years. Planning ahead can help avoid surprises."
        ),
    )


def _low_electrical(label: str, years_remaining: int) -> WhatToExpect:
    return WhatToExpect(
        headline="System age unknown",
        body=(
            "Many older homes retain original electrical systems unless updated during "
            "renovations. An evaluation can help identify capacity limitations or safety "
            "considerations."
        ),
    )


def _medium(label: str, years_remaining: int) -> WhatToExpect:
    name = label.lower()
    if years_remaining <= 3:
        return WhatToExpect(
            headline="In late service life",
            body=(
                f"Given the reported install date, this {name} is likely in its later years. "
                "Monitoring performance and planning for replacement is recommended."
            ),
        )
    if years_remaining <= 7:
        return WhatToExpect(
            headline="Approaching replacement window",
            body=(
                f"This {name} is approaching the typical replacement window. "
                "Consider budgeting for future replacement."
            ),
        )
    return WhatToExpect(
        headline="Within expected lifespan",
        body=(
            f"This {name} appears to be within its expected service life. "
            "Regular maintenance will help maximize longevity."
        ),
    )


def _medium_electrical(label: str, years_remaining: int) -> WhatToExpect:
    return WhatToExpect(
        headline="System may need evaluation",
        body=(
            "Based on reported updates, this system may not fully meet modern electrical "
            "demands. An evaluation can help identify limitations."
        ),
    )


def _high(label: str, years_remaining: int) -> WhatToExpect:
    name = label.lower()
    if years_remaining <= 3:
        window = "1-2" if years_remaining <= 1 else "2-3"
        return WhatToExpect(
            headline="Nearing end of service life",
            body=(
                f"Based on verified installation data, this {name} is nearing the end of its "
                f"expected service life. Planning replacement within the next {window} years "
                "is advisable."
            ),
        )
    if years_remaining <= 7:
        return WhatToExpect(
            headline="Mid-life, replacement ahead",
            body=(
                f"This {name} has approximately {years_remaining} years of expected service "
                "remaining. Consider planning for replacement in the coming years."
            ),
        )
    return WhatToExpect(
        headline="Good condition",
        body=(
            f"This {name} has significant service life remaining based on verified "
            "installation records. Continue regular maintenance."
        ),
    )


def _high_electrical(label: str, years_remaining: int) -> WhatToExpect:
    return WhatToExpect(
        headline="Verified system standard",
        body=(
            "Based on verified records, this electrical system reflects modern standards for "
            "its time. Future upgrades may still be needed as usage increases."
        ),
    )


CopyFn = Callable[[str, int], WhatToExpect]

WHAT_TO_EXPECT: dict[tuple[SystemType, ConfidenceLevel], CopyFn] = {
    (SystemType.HVAC, ConfidenceLevel.LOW): _low,
    (SystemType.HVAC, ConfidenceLevel.MEDIUM): _medium,
    (SystemType.HVAC, ConfidenceLevel.HIGH): _high,
    (SystemType.ROOF, ConfidenceLevel.LOW): _low,
    (SystemType.ROOF, ConfidenceLevel.MEDIUM): _medium,
    (SystemType.ROOF, ConfidenceLevel.HIGH): _high,
    (SystemType.WATER_HEATER, ConfidenceLevel.LOW): _low,
    (SystemType.WATER_HEATER, ConfidenceLevel.MEDIUM): _medium,
    (SystemType.WATER_HEATER, ConfidenceLevel.HIGH): _high,
    (SystemType.ELECTRICAL, ConfidenceLevel.LOW): _low_electrical,
    (SystemType.ELECTRICAL, ConfidenceLevel.MEDIUM): _medium_electrical,
    (SystemType.ELECTRICAL, ConfidenceLevel.HIGH): _high_electrical,
}

_missing = {(s, c) for s in SystemType for c in ConfidenceLevel} - WHAT_TO_EXPECT.keys()
if _missing:
    raise RuntimeError(f"What-to-expect copy table is missing cases: {sorted(_missing)}")


def get_what_to_expect(
    system_key: SystemType,
    level: ConfidenceLevel,
    years_remaining: int,
) -> WhatToExpect:
    """Headline and body for a system card."""
    return WHAT_TO_EXPECT[(system_key, level)](SYSTEM_LABELS[system_key], years_remaining)


def get_window_label(level: ConfidenceLevel) -> str:
    return WINDOW_LABELS[level]


def get_why_showing_this(level: ConfidenceLevel) -> list[str]:
    return list(WHY_SHOWING_THIS[level])


def get_actions_tier(level: ConfidenceLevel) -> ActionsTier:
    return ACTIONS_TIERS[level]


def get_actions_for_tier(tier: ActionsTier, system_key: SystemType) -> list[str]:
    return list(TIER_ACTIONS[tier][system_key])


def get_replacement_window_spread(level: ConfidenceLevel) -> tuple[int, int]:
    """(min_years, max_years) width of the replacement window visualization."""
    return REPLACEMENT_WINDOW_SPREAD[level]


def should_use_dashed_visualization(level: ConfidenceLevel) -> bool:
    return level is ConfidenceLevel.LOW


def get_system_display_name(system_key: SystemType) -> str:
    return SYSTEM_DISPLAY_NAMES[system_key]
