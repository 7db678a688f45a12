"""Install-date confidence scoring and the UI disclosure state.

Two separate scales live here and must not be conflated:

* ``ConfidenceLevel`` (low / medium / high at 0.50 / 0.80) describes how
  trustworthy an install date is.
* ``ConfidenceState`` (needs_confirmation / estimated / high at 0.40 / 0.75)
  gates which certainty language the UI may show. User confirmation always
  resolves to ``high``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel

from habitta.models import ConfidenceLevel, ConfidenceState, InstallSource, ReplacementStatus

BASE_SCORES: dict[InstallSource, float] = {
    InstallSource.HEURISTIC: 0.30,
    InstallSource.OWNER_REPORTED: 0.60,
    InstallSource.INSPECTION: 0.75,
    InstallSource.PERMIT_VERIFIED: 0.85,
}

MODIFIERS = {
    "month": 0.05,
    "corroboration": 0.05,
    "brand": 0.03,
    "model": 0.05,
    "photo": 0.07,
}

PENALTIES = {
    "conflicting_dates": 0.10,
    "implausible_date": 0.15,
}

LEVEL_HIGH = 0.80
LEVEL_MEDIUM = 0.50

STATE_HIGH = 0.75
STATE_ESTIMATED = 0.40

EARLIEST_INSTALL_YEAR = 1900


class ConfidenceInput(BaseModel):
    install_source: InstallSource
    has_month: bool = False
    has_corroboration: bool = False
    has_brand: bool = False
    has_model: bool = False
    has_photo: bool = False
    has_conflicting_dates: bool = False
    has_implausible_date: bool = False


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    base: float
    modifiers: float
    penalties: float
    final: float


@dataclass(frozen=True, slots=True)
class InstallConfidence:
    score: float
    level: ConfidenceLevel
    breakdown: ScoreBreakdown


def score_install_confidence(data: ConfidenceInput) -> InstallConfidence:
    """Score an install date from its source and supporting evidence.

    The result never drops below the source's base score and never exceeds 1.0.
    """
    base = BASE_SCORES[data.install_source]

    modifiers = 0.0
    if data.has_month:
        modifiers += MODIFIERS["month"]
    if data.has_corroboration:
        modifiers += MODIFIERS["corroboration"]
    if data.has_brand:
        modifiers += MODIFIERS["brand"]
    if data.has_model:
        modifiers += MODIFIERS["model"]
    if data.has_photo:
        modifiers += MODIFIERS["photo"]

    penalties = 0.0
    if data.has_conflicting_dates:
        penalties += PENALTIES["conflicting_dates"]
    if data.has_implausible_date:
        penalties += PENALTIES["implausible_date"]

    final = round(max(base, min(1.0, base + modifiers - penalties)), 4)
    return InstallConfidence(
        score=final,
        level=confidence_level_from_score(final),
        breakdown=ScoreBreakdown(
            base=base,
            modifiers=round(modifiers, 4),
            penalties=round(penalties, 4),
            final=final,
        ),
    )


def confidence_level_from_score(score: float) -> ConfidenceLevel:
    if score >= LEVEL_HIGH:
        return ConfidenceLevel.HIGH
    if score >= LEVEL_MEDIUM:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def get_base_score(source: InstallSource) -> float:
    return BASE_SCORES[source]


def confidence_state_from_score(score: float, user_confirmed: bool = False) -> ConfidenceState:
    """Resolve the UI disclosure state; user confirmation always wins."""
    if user_confirmed:
        return ConfidenceState.HIGH
    if score >= STATE_HIGH:
        return ConfidenceState.HIGH
    if score >= STATE_ESTIMATED:
        return ConfidenceState.ESTIMATED
    return ConfidenceState.NEEDS_CONFIRMATION


def get_confidence_state_label(state: ConfidenceState) -> str | None:
    """Badge text for a state. ``high`` is deliberately silent (None)."""
    return {
        ConfidenceState.HIGH: None,
        ConfidenceState.ESTIMATED: "Estimated",
        ConfidenceState.NEEDS_CONFIRMATION: "Needs confirmation",
    }[state]


_INSTALL_LINE_SUFFIX = {
    InstallSource.HEURISTIC: "(estimated)",
    InstallSource.OWNER_REPORTED: "(owner-reported)",
    InstallSource.INSPECTION: "(verified)",
    InstallSource.PERMIT_VERIFIED: "(permit-verified)",
}


def format_installed_line(
    install_year: int | None,
    install_source: InstallSource,
    replacement_status: ReplacementStatus = ReplacementStatus.UNKNOWN,
) -> str:
    """Human-readable install line, e.g. ``Installed ~2005 (estimated)``."""
    if not install_year:
        return "Install date unknown"
    if replacement_status is ReplacementStatus.ORIGINAL:
        return f"Installed {install_year} (original system)"
    if install_source is InstallSource.HEURISTIC:
        return f"Installed ~{install_year} {_INSTALL_LINE_SUFFIX[install_source]}"
    return f"Installed {install_year} {_INSTALL_LINE_SUFFIX[install_source]}"


def get_source_label(source: InstallSource) -> str:
    return {
        InstallSource.HEURISTIC: "Estimated",
        InstallSource.OWNER_REPORTED: "Owner-reported",
        InstallSource.INSPECTION: "Verified",
        InstallSource.PERMIT_VERIFIED: "Permit-verified",
    }[source]


def get_confidence_level_label(level: ConfidenceLevel) -> str:
    return {
        ConfidenceLevel.LOW: "Low confidence",
        ConfidenceLevel.MEDIUM: "Moderate confidence",
        ConfidenceLevel.HIGH: "High confidence",
    }[level]


def is_plausible_install_year(year: int, year_built: int | None = None, today: date | None = None) -> bool:
    """An install year is plausible if not in the future, not before 1900, not before the home."""
    current_year = (today or date.today()).year
    if year > current_year:
        return False
    if year < EARLIEST_INSTALL_YEAR:
        return False
    if year_built and year < year_built:
        return False
    return True


def is_valid_install_source(value: str) -> bool:
    return value in {s.value for s in InstallSource}


def is_valid_replacement_status(value: str) -> bool:
    return value in {s.value for s in ReplacementStatus}
