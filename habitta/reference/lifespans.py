"""Immutable lifespan and climate-factor lookup tables.

Both tables are built once (from the bundled YAML, a deployment override, or
database rows) and passed into the rule engine as parameters. Lookups never
mutate the table.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from habitta.errors import ConfigurationError
from habitta.models import ClimateZone

logger = logging.getLogger(__name__)

DEFAULT_ZONE = "default"
UNKNOWN_SUBTYPE = "unknown"


@dataclass(frozen=True, slots=True)
class LifespanEntry:
    system_type: str
    system_subtype: str
    climate_zone: str
    min_years: float
    typical_years: float
    max_years: float
    quality_tier: str | None = None

    def scaled(self, factor: float) -> LifespanEntry:
        """Return a copy with every duration multiplied by ``factor``."""
        return replace(
            self,
            min_years=round(self.min_years * factor, 2),
            typical_years=round(self.typical_years * factor, 2),
            max_years=round(self.max_years * factor, 2),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "system_type": self.system_type,
            "system_subtype": self.system_subtype,
            "climate_zone": self.climate_zone,
            "min_years": self.min_years,
            "typical_years": self.typical_years,
            "max_years": self.max_years,
            "quality_tier": self.quality_tier,
        }


@dataclass(frozen=True, slots=True)
class ResolvedLifespan:
    """Lifespan chosen for a rule, with the adjustments that produced it."""

    entry: LifespanEntry
    zone_specific: bool
    climate_factor: float | None

    @property
    def climate_adjusted(self) -> bool:
        return self.zone_specific or self.climate_factor is not None

    def provenance(self) -> dict[str, Any]:
        return {
            **self.entry.as_dict(),
            "zone_specific": self.zone_specific,
            "climate_factor": self.climate_factor,
        }


def _zone_key(zone: ClimateZone | str | None) -> str:
    if zone is None:
        return DEFAULT_ZONE
    return zone.value if isinstance(zone, ClimateZone) else str(zone)


def _get(source: Any, key: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Reference data not found: {path}")
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}")
    return data


class LifespanTable:
    """Lookup keyed by (system_type, system_subtype, climate_zone)."""

    def __init__(self, entries: Iterable[LifespanEntry]):
        table: dict[tuple[str, str, str], LifespanEntry] = {}
        for entry in entries:
            if not (0 < entry.min_years <= entry.typical_years <= entry.max_years):
                raise ConfigurationError(
                    "Lifespan bounds must satisfy 0 < min <= typical <= max for "
                    f"{entry.system_type}/{entry.system_subtype}/{entry.climate_zone}"
                )
            table[(entry.system_type, entry.system_subtype, entry.climate_zone)] = entry
        self._entries = MappingProxyType(table)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def lookup(
        self,
        system_type: str,
        system_subtype: str | None,
        climate_zone: ClimateZone | str | None,
    ) -> LifespanEntry | None:
        """Return the zone-specific row, else the default-zone row, else None."""
        subtype = system_subtype or UNKNOWN_SUBTYPE
        zone = _zone_key(climate_zone)
        entry = self._entries.get((system_type, subtype, zone))
        if entry is None and zone != DEFAULT_ZONE:
            entry = self._entries.get((system_type, subtype, DEFAULT_ZONE))
        return entry

    def resolve(
        self,
        system_type: str,
        system_subtype: str | None,
        climate_zone: ClimateZone | str | None,
        factors: ClimateFactorTable | None = None,
    ) -> ResolvedLifespan | None:
        """Look up a lifespan and apply the climate factor where the row is generic.

        Zone-specific rows already encode the climate, so the multiplier is only
        applied to rows that fell back to the default zone.
        """
        entry = self.lookup(system_type, system_subtype, climate_zone)
        if entry is None:
            return None

        zone = _zone_key(climate_zone)
        zone_specific = entry.climate_zone != DEFAULT_ZONE
        factor = None
        if not zone_specific and factors is not None and zone != DEFAULT_ZONE:
            factor = factors.factor(zone, f"{system_type}_lifespan")
            if factor is not None:
                entry = entry.scaled(factor)
        return ResolvedLifespan(entry=entry, zone_specific=zone_specific, climate_factor=factor)

    @classmethod
    def from_rows(cls, rows: Iterable[Any]) -> LifespanTable:
        """Build from ORM rows or mappings carrying the LifespanEntry fields."""
        entries = []
        for row in rows:
            entries.append(
                LifespanEntry(
                    system_type=str(_get(row, "system_type")),
                    system_subtype=str(_get(row, "system_subtype") or UNKNOWN_SUBTYPE),
                    climate_zone=str(_get(row, "climate_zone") or DEFAULT_ZONE),
                    min_years=float(_get(row, "min_years")),
                    typical_years=float(_get(row, "typical_years")),
                    max_years=float(_get(row, "max_years")),
                    quality_tier=_get(row, "quality_tier"),
                )
            )
        return cls(entries)

    @classmethod
    def from_yaml(cls, path: Path) -> LifespanTable:
        """Load the table from a YAML file with an ``entries`` list.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        data = _load_yaml(path)
        rows = data.get("entries") or []
        if not rows:
            raise ConfigurationError(f"No lifespan entries defined in {path}")
        try:
            table = cls.from_rows(rows)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid lifespan entry in {path}: {e}")
        logger.debug("Loaded %d lifespan entries from %s", len(table), path)
        return table

    def entries(self) -> list[LifespanEntry]:
        return list(self._entries.values())


class ClimateFactorTable:
    """Lookup keyed by (climate_zone, factor_type) -> multiplier."""

    def __init__(self, factors: Mapping[tuple[str, str], float]):
        for key, value in factors.items():
            if value <= 0:
                raise ConfigurationError(f"Climate factor must be positive: {key}={value}")
        self._factors = MappingProxyType(dict(factors))

    def __len__(self) -> int:
        return len(self._factors)

    def factor(self, climate_zone: ClimateZone | str, factor_type: str) -> float | None:
        return self._factors.get((_zone_key(climate_zone), factor_type))

    def items(self) -> list[tuple[tuple[str, str], float]]:
        return list(self._factors.items())

    @classmethod
    def from_rows(cls, rows: Iterable[Any]) -> ClimateFactorTable:
        return cls(
            {
                (str(_get(row, "climate_zone")), str(_get(row, "factor_type"))): float(
                    _get(row, "multiplier")
                )
                for row in rows
            }
        )

    @classmethod
    def from_yaml(cls, path: Path) -> ClimateFactorTable:
        """Load factors from a YAML file shaped ``factors: {zone: {type: multiplier}}``.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        data = _load_yaml(path)
        zones = data.get("factors")
        if not isinstance(zones, dict):
            raise ConfigurationError(f"No climate factors defined in {path}")
        factors: dict[tuple[str, str], float] = {}
        try:
            for zone, by_type in zones.items():
                for factor_type, multiplier in (by_type or {}).items():
                    factors[(str(zone), str(factor_type))] = float(multiplier)
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid climate factor in {path}: {e}")
        return cls(factors)


def load_default_tables() -> tuple[LifespanTable, ClimateFactorTable]:
    """Load both tables from the configured YAML paths."""
    from habitta.config import get_config

    config = get_config()
    return (
        LifespanTable.from_yaml(config.lifespan_reference_path),
        ClimateFactorTable.from_yaml(config.climate_factors_path),
    )
