"""Permit normalization, classification and signal extraction.

Free-text permit descriptions are noisy. A permit is tagged with a system only
when it matches that system's affirmative pattern and none of the exclusion
patterns for conflicting trades ("mechanical" on a hurricane shutter job is
not HVAC work).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from habitta.models import Provider, SystemType

logger = logging.getLogger(__name__)

DATE_FIELDS = ("issue_date", "start_date", "end_date", "filing_date")
DEFAULT_MIN_YEAR = 1980
DEFAULT_MAX_YEAR = 2030
DEFAULT_VALUATION_CEILING = 2_000_000.0

# Largest plausible single-permit job value (dollars) per trade.
TRADE_VALUATION_CEILINGS: dict[str, float] = {
    SystemType.HVAC.value: 60_000.0,
    SystemType.WATER_HEATER.value: 15_000.0,
    SystemType.ELECTRICAL.value: 75_000.0,
    SystemType.ROOF.value: 150_000.0,
}

MIAMI_DADE_TYPES = {
    "MECH": "Mechanical",
    "BLDG": "Building",
    "ELEC": "Electrical",
    "PLUM": "Plumbing",
    "ROOF": "Roofing",
    "DEMO": "Demolition",
    "FIRE": "Fire",
}


@dataclass(frozen=True, slots=True)
class PermitPattern:
    affirmative: re.Pattern[str]
    exclusions: re.Pattern[str]


def _words(*terms: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(terms) + r")\b", re.IGNORECASE)


SYSTEM_PATTERNS: dict[str, PermitPattern] = {
    SystemType.HVAC.value: PermitPattern(
        affirmative=_words(
            r"hvac",
            r"a/c",
            r"ac unit",
            r"air[- ]?condition\w*",
            r"heat pump",
            r"condenser",
            r"air handler",
            r"furnace",
            r"mini[- ]split",
            r"ductless",
            r"ductwork",
            r"package unit",
            r"mechanical",
            r"cooling",
            r"heating",
        ),
        exclusions=_words(
            r"pavers?",
            r"hurricane shutters?",
            r"shutters?",
            r"storm panels?",
            r"impact windows?",
            r"pool",
            r"spa",
            r"hot tub",
            r"solar",
            r"water heat\w*",
            r"hot water",
            r"fence",
            r"driveway",
            r"irrigation",
            r"fire sprinklers?",
            r"elevator",
            r"screen enclosure",
        ),
    ),
    SystemType.ROOF.value: PermitPattern(
        affirmative=_words(
            r"re-?roof\w*",
            r"roof\w*",
            r"shingles?",
            r"tear[- ]?off",
        ),
        exclusions=_words(
            r"solar",
            r"photovoltaic",
            r"pv",
            r"skylights?",
            r"patio roof",
            r"screen (?:room|enclosure)",
            r"carport",
            r"pergola",
            r"gazebo",
            r"roof[- ]?top (?:a/c|ac|unit|hvac)",
        ),
    ),
    SystemType.WATER_HEATER.value: PermitPattern(
        affirmative=_words(
            r"water heat\w*",
            r"hot water",
            r"tankless",
            r"tank water",
        ),
        exclusions=_words(
            r"pool",
            r"spa",
            r"hot tub",
            r"photovoltaic",
            r"solar panels?",
            r"boiler",
        ),
    ),
    SystemType.ELECTRICAL.value: PermitPattern(
        affirmative=_words(
            r"electric(?:al)?",
            r"panel",
            r"sub-?panel",
            r"service upgrade",
            r"breakers?",
            r"re-?wir\w*",
            r"wiring",
            r"\d{3}\s?amp",
        ),
        exclusions=_words(
            r"pool",
            r"spa",
            r"hot tub",
            r"solar",
            r"photovoltaic",
            r"generator",
            r"ev charg\w*",
            r"storm panels?",
            r"shutters?",
            r"low voltage",
            r"alarm",
            r"signs?",
            r"a/c",
            r"hvac",
            r"heat pump",
            r"water heat\w*",
        ),
    ),
}

REPLACEMENT_KEYWORDS: dict[str, tuple[str, ...]] = {
    SystemType.HVAC.value: ("replace", "change out", "changeout", "change-out", "upgrade", "new unit"),
    SystemType.ROOF.value: ("re-roof", "reroof", "tear off", "tear-off", "replacement", "new roof", "replace"),
    SystemType.WATER_HEATER.value: ("replace", "conversion", "upgrade"),
    SystemType.ELECTRICAL.value: ("replace", "upgrade", "change out", "changeout"),
}

INSTALL_KEYWORDS: dict[str, tuple[str, ...]] = {
    SystemType.HVAC.value: ("install", "new system", "conversion"),
    SystemType.ROOF.value: ("new roof", "install"),
    SystemType.WATER_HEATER.value: ("install", "new"),
    SystemType.ELECTRICAL.value: ("install", "new service"),
}

# Status text of a permit closed out by final inspection.
FINALED_STATUS = re.compile(r"\b(?:final(?:ed)?|completed?|closed)\b", re.IGNORECASE)

# Boost reported alongside a permit signal, by kind of work.
SIGNAL_BOOSTS = {
    "permit_replacement": 0.25,
    "permit_install": 0.30,
    None: 0.15,
}


@dataclass(slots=True)
class NormalizedPermit:
    """Provider-independent permit record."""

    number: str | None = None
    permit_type: str | None = None
    work_class: str | None = None
    description: str | None = None
    status: str | None = None
    issue_date: Any = None
    start_date: Any = None
    end_date: Any = None
    filing_date: Any = None
    valuation: Any = None
    jurisdiction: str | None = None
    parcel_id: str | None = None
    source: str = "unknown"
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False)

    @property
    def text(self) -> str:
        parts = (self.description, self.permit_type, self.work_class)
        return " ".join(p for p in parts if p).lower()


@dataclass(frozen=True, slots=True)
class PermitDate:
    field: str
    value: date

    @property
    def year(self) -> int:
        return self.value.year


@dataclass(frozen=True, slots=True)
class Valuation:
    amount: float
    raw: float
    normalized: bool

    def as_dict(self) -> dict[str, Any]:
        return {"amount": self.amount, "raw": self.raw, "normalized": self.normalized}


@dataclass(frozen=True, slots=True)
class PermitSignal:
    """Most recent classified permit for a system."""

    system_type: str
    permit: NormalizedPermit
    permit_date: PermitDate
    install_source: str | None
    confidence_boost: float
    valuation: Valuation | None = None

    @property
    def install_year(self) -> int:
        return self.permit_date.year

    def provenance(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "number": self.permit.number,
            "description": self.permit.description,
            "source": self.permit.source,
            "date_field": self.permit_date.field,
            "date": self.permit_date.value.isoformat(),
            "install_source": self.install_source,
            "confidence_boost": self.confidence_boost,
        }
        if self.valuation is not None:
            data["valuation"] = self.valuation.as_dict()
        return data


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is None:
            value = raw.get(key.lower())
        if value not in (None, ""):
            return value
    return None


def normalize_shovels_permit(raw: Mapping[str, Any]) -> NormalizedPermit:
    """Normalize a permits-registry record (also the generic fallback shape)."""
    return NormalizedPermit(
        number=_first(raw, "number", "permit_number"),
        permit_type=_first(raw, "type", "permit_type"),
        work_class=_first(raw, "subtype", "work_class"),
        description=_first(raw, "description"),
        status=_first(raw, "status"),
        issue_date=_first(raw, "issue_date", "date_issued"),
        start_date=_first(raw, "start_date"),
        end_date=_first(raw, "final_date", "end_date", "date_finaled"),
        filing_date=_first(raw, "file_date", "filing_date", "applied_date"),
        valuation=_first(raw, "job_value", "valuation"),
        jurisdiction=_first(raw, "jurisdiction"),
        parcel_id=_first(raw, "geo_id", "parcel_id"),
        source=Provider.SHOVELS.value,
        raw=raw,
    )


def normalize_miami_dade_permit(raw: Mapping[str, Any]) -> NormalizedPermit:
    """Normalize a county open-data record (DESC1..DESC10, TYPE codes, YYYYMMDD dates)."""
    description = " ".join(
        str(part) for part in (_first(raw, f"DESC{i}") for i in range(1, 11)) if part
    ).strip()
    raw_type = _first(raw, "TYPE")
    return NormalizedPermit(
        number=_first(raw, "PROCNUM", "ID"),
        permit_type=MIAMI_DADE_TYPES.get(str(raw_type).upper(), raw_type) if raw_type else None,
        work_class=_first(raw, "WORKCLASS"),
        description=description or None,
        status=_first(raw, "STATDESC", "STATUS"),
        issue_date=_first(raw, "ISSUDATE"),
        start_date=_first(raw, "LSTAPPRDT"),
        end_date=_first(raw, "LSTINSDT", "BLDCMPDT"),
        filing_date=_first(raw, "APPLDATE"),
        valuation=_first(raw, "PROJVAL"),
        jurisdiction="Miami-Dade County",
        parcel_id=_first(raw, "FOLIO"),
        source=Provider.MIAMI_DADE.value,
        raw=raw,
    )


def normalize_permit(raw: Any, provider: str | None = None) -> NormalizedPermit | None:
    """Normalize a raw permit record for ``provider``; None for non-mapping input."""
    if isinstance(raw, NormalizedPermit):
        return raw
    if not isinstance(raw, Mapping):
        return None
    if provider == Provider.MIAMI_DADE.value or any(k in raw for k in ("DESC1", "PROCNUM", "ISSUDATE")):
        return normalize_miami_dade_permit(raw)
    return normalize_shovels_permit(raw)


def normalize_permits(raws: Iterable[Any], provider: str | None = None) -> list[NormalizedPermit]:
    permits = []
    for raw in raws:
        permit = normalize_permit(raw, provider)
        if permit is not None:
            permits.append(permit)
    return permits


def _permit_text(permit: NormalizedPermit | Mapping[str, Any]) -> str:
    if isinstance(permit, NormalizedPermit):
        return permit.text
    parts = (
        permit.get("description"),
        permit.get("permit_type") or permit.get("type"),
        permit.get("work_class"),
        permit.get("trade"),
    )
    return " ".join(str(p) for p in parts if p).lower()


def is_permit_for(system_type: SystemType | str, permit: NormalizedPermit | Mapping[str, Any]) -> bool:
    """True when the permit matches the system's affirmative pattern and no exclusion."""
    key = system_type.value if isinstance(system_type, SystemType) else system_type
    pattern = SYSTEM_PATTERNS[key]
    text = _permit_text(permit)
    if not text or not pattern.affirmative.search(text):
        return False
    return pattern.exclusions.search(text) is None


def is_hvac_permit(permit: NormalizedPermit | Mapping[str, Any]) -> bool:
    return is_permit_for(SystemType.HVAC, permit)


def is_roof_permit(permit: NormalizedPermit | Mapping[str, Any]) -> bool:
    return is_permit_for(SystemType.ROOF, permit)


def is_water_heater_permit(permit: NormalizedPermit | Mapping[str, Any]) -> bool:
    return is_permit_for(SystemType.WATER_HEATER, permit)


def is_electrical_permit(permit: NormalizedPermit | Mapping[str, Any]) -> bool:
    return is_permit_for(SystemType.ELECTRICAL, permit)


def classify_permit(permit: NormalizedPermit | Mapping[str, Any]) -> list[str]:
    """Return every system tag the permit qualifies for."""
    return [system for system in SYSTEM_PATTERNS if is_permit_for(system, permit)]


def parse_permit_date(value: Any) -> date | None:
    """Parse ISO strings, YYYYMMDD, US m/d/Y, epoch milliseconds, or date objects."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if re.fullmatch(r"\d{12,13}", text):
        return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc).date()
    if re.fullmatch(r"\d{8}", text):
        try:
            return datetime.strptime(text, "%Y%m%d").date()
        except ValueError:
            return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    for fmt in ("%m/%d/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(text[:10], fmt).date()
        except ValueError:
            continue
    return None


def extract_permit_date(
    permit: NormalizedPermit,
    min_year: int = DEFAULT_MIN_YEAR,
    max_year: int = DEFAULT_MAX_YEAR,
) -> PermitDate | None:
    """Return the first candidate date whose year is plausible.

    Candidates are tried in order: issue, start, end, filing. Unparseable or
    out-of-range values are logged and skipped.
    """
    for field_name in DATE_FIELDS:
        raw_value = getattr(permit, field_name)
        if raw_value in (None, ""):
            continue
        parsed = parse_permit_date(raw_value)
        if parsed is None:
            logger.warning(
                "Unparseable %s %r on permit %s; skipping",
                field_name,
                raw_value,
                permit.number,
            )
            continue
        if not (min_year <= parsed.year <= max_year):
            logger.warning(
                "Permit %s %s year %d outside %d-%d; skipping",
                permit.number,
                field_name,
                parsed.year,
                min_year,
                max_year,
            )
            continue
        return PermitDate(field=field_name, value=parsed)
    return None


def is_finaled(
    permit: NormalizedPermit,
    min_year: int = DEFAULT_MIN_YEAR,
    max_year: int = DEFAULT_MAX_YEAR,
) -> bool:
    """True when the permit was closed out by a final inspection.

    Either the status says so, or the record carries a plausible completion date.
    """
    if permit.status and FINALED_STATUS.search(str(permit.status)):
        return True
    completed = parse_permit_date(permit.end_date)
    return completed is not None and min_year <= completed.year <= max_year


def normalize_valuation(
    value: Any,
    system_type: SystemType | str | None = None,
    ceiling: float = DEFAULT_VALUATION_CEILING,
) -> Valuation | None:
    """Correct job values that were recorded in cents.

    A value above the trade's plausible ceiling, or above the global sanity
    ceiling, is divided by 100 once.
    """
    if value is None or value == "":
        return None
    try:
        amount = float(str(value).replace(",", "").replace("$", ""))
    except ValueError:
        return None
    if amount < 0:
        return None

    key = system_type.value if isinstance(system_type, SystemType) else system_type
    trade_ceiling = TRADE_VALUATION_CEILINGS.get(key) if key else None
    suspicious = amount > ceiling or (trade_ceiling is not None and amount > trade_ceiling)
    if suspicious:
        return Valuation(amount=round(amount / 100, 2), raw=amount, normalized=True)
    return Valuation(amount=amount, raw=amount, normalized=False)


def classify_work(system_type: SystemType | str, permit: NormalizedPermit) -> str | None:
    """Label a permit as replacement, new install, or unclassified (None)."""
    key = system_type.value if isinstance(system_type, SystemType) else system_type
    desc = (permit.description or "").lower()
    if any(kw in desc for kw in REPLACEMENT_KEYWORDS[key]):
        return "permit_replacement"
    if any(kw in desc for kw in INSTALL_KEYWORDS[key]):
        return "permit_install"
    return None


def derive_permit_signal(
    system_type: SystemType | str,
    permits: Iterable[NormalizedPermit],
    min_year: int = DEFAULT_MIN_YEAR,
    max_year: int = DEFAULT_MAX_YEAR,
    valuation_ceiling: float = DEFAULT_VALUATION_CEILING,
) -> PermitSignal | None:
    """Pick the most recent dated permit classified for ``system_type``.

    Returns:
        PermitSignal, or None when no matching permit carries a plausible date
    """
    key = system_type.value if isinstance(system_type, SystemType) else system_type
    dated: list[tuple[NormalizedPermit, PermitDate]] = []
    for permit in permits:
        if not is_permit_for(key, permit):
            continue
        permit_date = extract_permit_date(permit, min_year, max_year)
        if permit_date is not None:
            dated.append((permit, permit_date))

    if not dated:
        return None

    permit, permit_date = max(dated, key=lambda pair: pair[1].value)
    install_source = classify_work(key, permit)
    return PermitSignal(
        system_type=key,
        permit=permit,
        permit_date=permit_date,
        install_source=install_source,
        confidence_boost=SIGNAL_BOOSTS[install_source],
        valuation=normalize_valuation(permit.valuation, key, valuation_ceiling),
    )
