"""Confidence composition for rule-engine predictions.

Every tier starts from a fixed base. Named modifiers add, named penalties
subtract, and the result is clamped to [base, ceiling]. Penalties can only
erode the modifiers a tier earned; they never take a score below its base.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from habitta.models import EvidenceTier

CONFIDENCE_CEILING = 0.98

TIER_BASE_CONFIDENCE: dict[EvidenceTier, float] = {
    EvidenceTier.PERMIT: 0.90,
    EvidenceTier.ENRICHED_ASSESSOR: 0.70,
    EvidenceTier.BASIC_ASSESSOR: 0.60,
    EvidenceTier.REGIONAL_INFERENCE: 0.50,
    EvidenceTier.DEFAULT: 0.28,
}

# Named modifiers; a rule may apply one only when its condition holds.
RECENT_PERMIT = "recent_permit"
CROSS_VALIDATED = "cross_validated"
CLIMATE_FACTOR_PRESENT = "climate_factor_present"
MATERIAL_CONFIRMED = "material_confirmed"

MODIFIER_VALUES: dict[str, float] = {
    RECENT_PERMIT: 0.05,
    CROSS_VALIDATED: 0.05,
    CLIMATE_FACTOR_PRESENT: 0.03,
    MATERIAL_CONFIRMED: 0.04,
}

AGE_EXCEEDS_LIFESPAN_WITHOUT_PERMIT = "age_exceeds_lifespan_without_permit"

PENALTY_VALUES: dict[str, float] = {
    AGE_EXCEEDS_LIFESPAN_WITHOUT_PERMIT: 0.10,
}


@dataclass
class ConfidenceBreakdown:
    """Accumulates the applicable modifiers and penalties for one prediction."""

    tier: EvidenceTier
    modifiers: dict[str, float] = field(default_factory=dict)
    penalties: dict[str, float] = field(default_factory=dict)
    ceiling: float = CONFIDENCE_CEILING

    @property
    def base(self) -> float:
        return TIER_BASE_CONFIDENCE[self.tier]

    def add_modifier(self, name: str) -> None:
        if name not in MODIFIER_VALUES:
            raise KeyError(f"Unknown confidence modifier: {name}")
        self.modifiers[name] = MODIFIER_VALUES[name]

    def add_penalty(self, name: str) -> None:
        if name not in PENALTY_VALUES:
            raise KeyError(f"Unknown confidence penalty: {name}")
        self.penalties[name] = PENALTY_VALUES[name]

    @property
    def score(self) -> float:
        return compose_confidence(
            self.base,
            self.modifiers.values(),
            self.penalties.values(),
            ceiling=self.ceiling,
        )

    def provenance(self) -> dict[str, Any]:
        return {
            "tier": self.tier.value,
            "base_confidence": self.base,
            "modifiers": dict(self.modifiers),
            "penalties": dict(self.penalties),
        }


def compose_confidence(
    base: float,
    modifiers: Any = (),
    penalties: Any = (),
    ceiling: float = CONFIDENCE_CEILING,
) -> float:
    """Clamp ``base + sum(modifiers) - sum(penalties)`` into [base, ceiling].

    Raises:
        ValueError: If a modifier or penalty is negative
    """
    modifiers = list(modifiers)
    penalties = list(penalties)
    if any(m < 0 for m in modifiers) or any(p < 0 for p in penalties):
        raise ValueError("Modifiers and penalties must be non-negative")

    raw = base + sum(modifiers) - sum(penalties)
    return round(min(ceiling, max(base, raw)), 4)
