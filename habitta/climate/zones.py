"""Climate zone classification from a home's location.

Rules are checked in order and the first match wins. High heat is evaluated
before freeze-thaw, so a location matching both resolves to high heat.
"""

from __future__ import annotations

from habitta.models import ClimateZone

HIGH_HEAT_PLACES = (
    "miami",
    "fort lauderdale",
    "west palm",
    "tampa",
    "orlando",
    "phoenix",
    "tucson",
    "las vegas",
    "houston",
    "san antonio",
)
HIGH_HEAT_STATES = frozenset({"florida", "fl", "az", "arizona"})
HIGH_HEAT_MAX_LATITUDE = 28.0

COASTAL_PLACES = (
    "beach",
    "coast",
    "key ",
    "island",
    "santa monica",
    "san diego",
    "malibu",
)

FREEZE_THAW_PLACES = (
    "boston",
    "chicago",
    "minneapolis",
    "denver",
    "detroit",
    "milwaukee",
    "buffalo",
    "cleveland",
    "pittsburgh",
    "new york",
    "nyc",
    "philadelphia",
)
FREEZE_THAW_STATES = frozenset(
    {
        "mn", "wi", "mi", "nd", "sd", "mt", "wy", "vt", "nh", "me", "ny", "pa",
        "nj", "ct", "ma", "ri", "oh", "il", "in", "ia", "ne", "ks", "mo", "co",
        "id", "wa", "or", "ut", "ak", "minnesota", "wisconsin", "michigan",
    }
)
FREEZE_THAW_MIN_LATITUDE = 42.0


def derive_climate_zone(
    state: str | None = None,
    city: str | None = None,
    lat: float | None = None,
) -> ClimateZone:
    """Classify a location into one of the four climate zones.

    Args:
        state: State name or two-letter code (case-insensitive)
        city: City or locality name
        lat: Latitude in decimal degrees

    Returns:
        ClimateZone, MODERATE when no signal is present
    """
    location = f"{city or ''} {state or ''}".lower()
    state_key = (state or "").strip().lower()

    if (
        any(place in location for place in HIGH_HEAT_PLACES)
        or state_key in HIGH_HEAT_STATES
        or (lat is not None and lat < HIGH_HEAT_MAX_LATITUDE)
    ):
        return ClimateZone.HIGH_HEAT

    if any(place in location for place in COASTAL_PLACES):
        return ClimateZone.COASTAL

    if (
        any(place in location for place in FREEZE_THAW_PLACES)
        or state_key in FREEZE_THAW_STATES
        or (lat is not None and lat > FREEZE_THAW_MIN_LATITUDE)
    ):
        return ClimateZone.FREEZE_THAW

    return ClimateZone.MODERATE


def coerce_climate_zone(value: str | ClimateZone | None) -> ClimateZone | None:
    """Parse an override label, returning None for blank or unknown values."""
    if value is None or isinstance(value, ClimateZone):
        return value
    try:
        return ClimateZone(value.strip().lower())
    except ValueError:
        return None
