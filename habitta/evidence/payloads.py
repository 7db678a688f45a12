"""Typed extraction from loosely-shaped provider payloads.

Provider payloads have changed shape over time. Each fact is read through an
ordered list of paths and the first non-empty value wins. The rule engine only
sees the typed records produced here, never the raw JSON.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from habitta.evidence.permits import NormalizedPermit, normalize_permits
from habitta.models import EnrichmentSnapshot, Provider

logger = logging.getLogger(__name__)

Path = tuple[Any, ...]

PERMIT_PROVIDERS = frozenset({Provider.SHOVELS.value, Provider.MIAMI_DADE.value})

# Assessor payloads: flat "propertyDetails" shape, the nested property[0]
# shape, and the same nested shape embedded under "_attomData".
_NESTED_ROOTS: tuple[Path, ...] = (("property", 0), ("_attomData", "property", 0))

YEAR_BUILT_PATHS: tuple[Path, ...] = (
    ("propertyDetails", "yearBuilt"),
    *((*root, "summary", "yearbuilt") for root in _NESTED_ROOTS),
    *((*root, "building", "summary", "yearBuilt") for root in _NESTED_ROOTS),
    ("year_built",),
)
EFFECTIVE_YEAR_PATHS: tuple[Path, ...] = (
    ("propertyDetails", "yearBuiltEffective"),
    *((*root, "building", "summary", "yearbuilteffective") for root in _NESTED_ROOTS),
    *((*root, "summary", "yearbuilteffective") for root in _NESTED_ROOTS),
    ("effective_year_built",),
)
ROOF_MATERIAL_PATHS: tuple[Path, ...] = (
    ("propertyDetails", "extendedDetails", "building", "roofMaterial"),
    *((*root, "building", "construction", "roofcover") for root in _NESTED_ROOTS),
    ("roof_material",),
)
HEATING_TYPE_PATHS: tuple[Path, ...] = (
    ("propertyDetails", "utilities", "heatingType"),
    *((*root, "utilities", "heatingtype") for root in _NESTED_ROOTS),
    ("heating_type",),
)
HEATING_FUEL_PATHS: tuple[Path, ...] = (
    ("propertyDetails", "utilities", "heatingFuel"),
    *((*root, "utilities", "heatingfuel") for root in _NESTED_ROOTS),
    ("heating_fuel",),
)
COOLING_TYPE_PATHS: tuple[Path, ...] = (
    ("propertyDetails", "utilities", "cooling"),
    ("propertyDetails", "utilities", "coolingType"),
    *((*root, "utilities", "coolingtype") for root in _NESTED_ROOTS),
    ("cooling_type",),
)
SQFT_PATHS: tuple[Path, ...] = (
    ("propertyDetails", "sqft"),
    *((*root, "building", "size", "livingsize") for root in _NESTED_ROOTS),
    *((*root, "building", "size", "bldgsize") for root in _NESTED_ROOTS),
    ("square_feet",),
)
LATITUDE_PATHS: tuple[Path, ...] = (
    ("metadata", "latitude"),
    (0, "metadata", "latitude"),
    *((*root, "location", "latitude") for root in _NESTED_ROOTS),
    ("latitude",),
)
LONGITUDE_PATHS: tuple[Path, ...] = (
    ("metadata", "longitude"),
    (0, "metadata", "longitude"),
    *((*root, "location", "longitude") for root in _NESTED_ROOTS),
    ("longitude",),
)
CITY_PATHS: tuple[Path, ...] = (
    ("components", "city_name"),
    (0, "components", "city_name"),
    *((*root, "address", "locality") for root in _NESTED_ROOTS),
    ("city",),
)
STATE_PATHS: tuple[Path, ...] = (
    ("components", "state_abbreviation"),
    (0, "components", "state_abbreviation"),
    *((*root, "address", "countrySubd") for root in _NESTED_ROOTS),
    ("state",),
)
PERMIT_LIST_PATHS: tuple[Path, ...] = (
    ("permits",),
    ("items",),
    ("results",),
    ("data", "permits"),
    ("data",),
    ("features",),
)

ROOF_MATERIALS = (
    ("metal", ("metal", "steel", "aluminum", "tin", "copper")),
    ("tile", ("tile", "clay", "concrete", "slate", "spanish")),
    ("asphalt", ("asphalt", "shingle", "composition", "comp", "architectural")),
)
HEATING_FUELS = (
    ("gas", ("gas", "natural", "propane", "lp")),
    ("electric", ("electric", "heat pump")),
    ("oil", ("oil",)),
    ("solar", ("solar",)),
)
COOLING_TYPES = (
    ("none", ("none", "no cooling", "no a/c")),
    ("heat_pump", ("heat pump",)),
    ("mini_split", ("mini split", "mini-split", "ductless")),
    ("window_unit", ("window", "wall unit", "wall")),
    ("evaporative", ("evaporative", "swamp")),
    ("central_air", ("central", "refrigeration", "yes", "a/c")),
)


@dataclass(slots=True)
class AssessorFacts:
    """Normalized facts from an assessor payload."""

    year_built: int | None = None
    effective_year_built: int | None = None
    roof_material: str | None = None
    heating_type: str | None = None
    heating_fuel: str | None = None
    cooling_type: str | None = None
    square_feet: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    city: str | None = None
    state: str | None = None
    raw_values: dict[str, Any] = field(default_factory=dict)

    @property
    def best_year(self) -> int | None:
        return self.effective_year_built or self.year_built


@dataclass(slots=True)
class GeocodeFacts:
    latitude: float | None = None
    longitude: float | None = None
    city: str | None = None
    state: str | None = None


def _walk(payload: Any, path: Path) -> Any:
    node = payload
    for key in path:
        if isinstance(key, int):
            if not isinstance(node, Sequence) or isinstance(node, (str, bytes)):
                return None
            if key >= len(node):
                return None
            node = node[key]
        else:
            if not isinstance(node, Mapping):
                return None
            node = node.get(key)
        if node is None:
            return None
    return node


def first_present(payload: Any, paths: Iterable[Path]) -> Any:
    """Return the value at the first path that resolves to a non-empty value."""
    for path in paths:
        value = _walk(payload, path)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _to_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        result = int(float(str(value).replace(",", "")))
    except ValueError:
        return None
    return result if result > 0 else None


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _normalize_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _match_vocabulary(value: Any, vocabulary: Sequence[tuple[str, Sequence[str]]]) -> str | None:
    text = _normalize_str(value)
    if text is None:
        return None
    lowered = text.lower()
    for label, keywords in vocabulary:
        if any(kw in lowered for kw in keywords):
            return label
    return "other"


def normalize_roof_material(value: Any) -> str | None:
    return _match_vocabulary(value, ROOF_MATERIALS)


def normalize_heating_fuel(value: Any) -> str | None:
    return _match_vocabulary(value, HEATING_FUELS)


def normalize_cooling_type(value: Any) -> str | None:
    return _match_vocabulary(value, COOLING_TYPES)


def extract_assessor_facts(payload: Any) -> AssessorFacts | None:
    """Extract assessor facts from any known payload shape.

    Returns:
        AssessorFacts, or None when the payload yields no recognizable fact
    """
    if not payload:
        return None

    raw = {
        "year_built": first_present(payload, YEAR_BUILT_PATHS),
        "effective_year_built": first_present(payload, EFFECTIVE_YEAR_PATHS),
        "roof_material": first_present(payload, ROOF_MATERIAL_PATHS),
        "heating_type": first_present(payload, HEATING_TYPE_PATHS),
        "heating_fuel": first_present(payload, HEATING_FUEL_PATHS),
        "cooling_type": first_present(payload, COOLING_TYPE_PATHS),
        "square_feet": first_present(payload, SQFT_PATHS),
        "latitude": first_present(payload, LATITUDE_PATHS),
        "longitude": first_present(payload, LONGITUDE_PATHS),
        "city": first_present(payload, CITY_PATHS),
        "state": first_present(payload, STATE_PATHS),
    }
    if all(value is None for value in raw.values()):
        return None

    heating_fuel = normalize_heating_fuel(raw["heating_fuel"])
    if heating_fuel is None:
        # Older payloads only carry a combined heating description.
        heating_fuel = normalize_heating_fuel(raw["heating_type"])

    return AssessorFacts(
        year_built=_to_int(raw["year_built"]),
        effective_year_built=_to_int(raw["effective_year_built"]),
        roof_material=normalize_roof_material(raw["roof_material"]),
        heating_type=_normalize_str(raw["heating_type"]),
        heating_fuel=heating_fuel,
        cooling_type=normalize_cooling_type(raw["cooling_type"]),
        square_feet=_to_int(raw["square_feet"]),
        latitude=_to_float(raw["latitude"]),
        longitude=_to_float(raw["longitude"]),
        city=_normalize_str(raw["city"]),
        state=_normalize_str(raw["state"]),
        raw_values={k: v for k, v in raw.items() if v is not None},
    )


def extract_geocode_facts(payload: Any) -> GeocodeFacts | None:
    if not payload:
        return None
    facts = GeocodeFacts(
        latitude=_to_float(first_present(payload, LATITUDE_PATHS)),
        longitude=_to_float(first_present(payload, LONGITUDE_PATHS)),
        city=_normalize_str(first_present(payload, CITY_PATHS)),
        state=_normalize_str(first_present(payload, STATE_PATHS)),
    )
    if facts.latitude is None and facts.state is None and facts.city is None:
        return None
    return facts


def extract_permit_records(payload: Any, provider: str | None = None) -> list[NormalizedPermit]:
    """Pull the permit list out of a permits payload and normalize each record."""
    if isinstance(payload, list):
        records = payload
    else:
        records = first_present(payload, PERMIT_LIST_PATHS) or []
    if not isinstance(records, list):
        return []
    # ArcGIS feature collections wrap each record in "attributes".
    records = [
        r.get("attributes", r) if isinstance(r, Mapping) else r for r in records
    ]
    return normalize_permits(records, provider)


def latest_snapshot(
    snapshots: Iterable[EnrichmentSnapshot], provider: str
) -> EnrichmentSnapshot | None:
    """Most recent snapshot for ``provider``; undated snapshots sort oldest."""
    latest: EnrichmentSnapshot | None = None
    for snap in snapshots:
        if snap.provider != provider:
            continue
        if latest is None or _snapshot_time(snap) >= _snapshot_time(latest):
            latest = snap
    return latest


def _snapshot_time(snapshot: EnrichmentSnapshot) -> datetime:
    if snapshot.fetched_at is None:
        return datetime.min
    return snapshot.fetched_at.replace(tzinfo=None)


def collect_permits(snapshots: Iterable[EnrichmentSnapshot]) -> list[NormalizedPermit]:
    """Permits from the latest snapshot of every permit provider."""
    snapshots = list(snapshots)
    permits: list[NormalizedPermit] = []
    for provider in sorted(PERMIT_PROVIDERS):
        snap = latest_snapshot(snapshots, provider)
        if snap is not None:
            permits.extend(extract_permit_records(snap.payload, provider))
    return permits
