"""Per-system age bucket tables.

Each system has its own lifecycle granularity. Roofs are bucketed in five-year
bands up to twenty, HVAC in bands that break at its fifteen-year service life,
and water heaters in tighter bands that break at twelve.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from habitta.models import SystemType


@dataclass(frozen=True, slots=True)
class AgeBucket:
    label: str
    min_age: int
    max_age: int | None  # inclusive; None is open-ended

    def contains(self, age: int) -> bool:
        return age >= self.min_age and (self.max_age is None or age <= self.max_age)


@dataclass(frozen=True, slots=True)
class BucketTable:
    system_type: SystemType
    buckets: tuple[AgeBucket, ...]

    @property
    def highest_risk(self) -> AgeBucket:
        return self.buckets[-1]

    def bucket_for(self, age: float) -> AgeBucket:
        """Map a raw age in years to its bucket (negative ages count as new)."""
        whole = max(0, math.floor(age))
        for bucket in self.buckets:
            if bucket.contains(whole):
                return bucket
        return self.highest_risk

    def label_for(self, age: float) -> str:
        return self.bucket_for(age).label


ROOF_BUCKETS = BucketTable(
    SystemType.ROOF,
    (
        AgeBucket("0-5", 0, 5),
        AgeBucket("6-10", 6, 10),
        AgeBucket("11-15", 11, 15),
        AgeBucket("16-20", 16, 20),
        AgeBucket("20+", 21, None),
    ),
)

HVAC_BUCKETS = BucketTable(
    SystemType.HVAC,
    (
        AgeBucket("0-4", 0, 4),
        AgeBucket("5-9", 5, 9),
        AgeBucket("10-14", 10, 14),
        AgeBucket("15+", 15, None),
    ),
)

WATER_HEATER_BUCKETS = BucketTable(
    SystemType.WATER_HEATER,
    (
        AgeBucket("0-3", 0, 3),
        AgeBucket("4-7", 4, 7),
        AgeBucket("8-11", 8, 11),
        AgeBucket("12+", 12, None),
    ),
)

BUCKET_TABLES: dict[SystemType, BucketTable] = {
    table.system_type: table for table in (ROOF_BUCKETS, HVAC_BUCKETS, WATER_HEATER_BUCKETS)
}


def bucket_table(system_type: SystemType) -> BucketTable:
    return BUCKET_TABLES[system_type]
