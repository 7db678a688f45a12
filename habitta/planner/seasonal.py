"""Seasonal task candidate generation and deduplication.

Pure functions: the service layer fetches the home, its known systems,
condition signals, renovation items and existing tasks, then hands them here.
"""

from __future__ import annotations

import calendar
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any

from habitta.models import ClimateZone, MaintenanceTaskCandidate, TaskPriority
from habitta.planner.templates import POOR_CONDITION_TASKS, seasonal_templates

logger = logging.getLogger(__name__)

TEMPLATE_DAY = 15
MIN_MONTHS = 1
DEFAULT_MAX_MONTHS = 24

POOR_CONDITION_SCORE = 70  # condition_score below this is poor
POOR_TLC_SCORE = 60  # tlc above this is poor

PRIORITY_DUE_OFFSETS: dict[TaskPriority, int] = {
    TaskPriority.URGENT: 7,
    TaskPriority.HIGH: 14,
}
DEFAULT_DUE_OFFSET = 30

SYSTEM_ALIASES: dict[str, str] = {
    "swimming_pool": "pool",
    "inground_pool": "pool",
    "above_ground_pool": "pool",
    "spa_pool": "spa",
    "hot_tub": "spa",
    "jacuzzi": "spa",
    "irrigation": "sprinkler",
    "sprinkler_system": "sprinkler",
    "ac": "hvac",
    "furnace": "hvac",
    "heat_pump": "hvac",
    "air_conditioning": "hvac",
    "tankless": "water_heater",
    "boiler": "water_heater",
    "backup_generator": "generator",
}

OPTIONAL_SYSTEMS = frozenset(
    {"pool", "solar", "sprinkler", "spa", "generator", "septic", "well", "ev_charger"}
)

KEYWORD_SYSTEM_MAP: dict[str, str] = {
    "pool": "pool",
    "spa": "spa",
    "irrigation": "sprinkler",
    "sprinkler": "sprinkler",
    "solar": "solar",
    "generator": "generator",
}

CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("hvac", ("hvac", "furnace", "ac", "air", "heater")),
    ("plumbing", ("plumb", "water", "pipe", "drain")),
    ("electrical", ("elect", "panel", "breaker", "wire", "outlet", "gfi")),
    ("appliance", ("appliance", "fridge", "range", "stove", "washer", "dryer", "dishwasher", "oven")),
    ("exterior", ("roof", "gutter", "siding", "exterior", "yard", "landscape", "window", "door")),
)


@dataclass
class SeasonalPlan:
    """Candidates considered for a home and the subset to insert."""

    climate_zone: ClimateZone
    horizon_end: date
    considered: list[MaintenanceTaskCandidate] = field(default_factory=list)
    to_insert: list[MaintenanceTaskCandidate] = field(default_factory=list)
    known_systems: set[str] = field(default_factory=set)


def _get(source: Any, key: str) -> Any:
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def next_occurrence(month: int, today: date, day: int = TEMPLATE_DAY) -> date:
    """Nearest date on or after ``today`` falling on ``day`` of ``month``."""
    candidate = date(today.year, month, day)
    if candidate < today:
        candidate = date(today.year + 1, month, day)
    return candidate


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic, clamping the day to the target month's length."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def clamp_months(months: Any, max_months: int = DEFAULT_MAX_MONTHS, default: int = 12) -> int:
    try:
        value = int(months)
    except (TypeError, ValueError):
        value = default
    return max(MIN_MONTHS, min(max_months, value))


def map_priority(urgency: str | None) -> TaskPriority:
    """Renovation urgency to task priority: high->urgent, medium->high, else medium."""
    u = (urgency or "").strip().lower()
    if u == "high":
        return TaskPriority.URGENT
    if u in ("med", "medium"):
        return TaskPriority.HIGH
    return TaskPriority.MEDIUM


def map_category(system: str | None) -> str:
    s = (system or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(k in s for k in keywords):
            return category
    return "interior"


def due_offset_days(priority: TaskPriority) -> int:
    return PRIORITY_DUE_OFFSETS.get(priority, DEFAULT_DUE_OFFSET)


def normalize_system_type(value: str | None) -> str | None:
    if not value:
        return None
    key = re.sub(r"[\s-]+", "_", value.strip().lower())
    if not key:
        return None
    return SYSTEM_ALIASES.get(key, key)


def build_known_systems(
    system_kinds: Iterable[str | None],
    permits: Iterable[Any] = (),
) -> set[str]:
    """Systems a home is known to have, from its systems table and permits.

    Permits contribute their system tags plus keyword hits in the description
    and trade.
    """
    known: set[str] = set()
    for kind in system_kinds:
        normalized = normalize_system_type(kind)
        if normalized:
            known.add(normalized)

    for permit in permits:
        for tag in _get(permit, "system_tags") or []:
            normalized = normalize_system_type(tag)
            if normalized:
                known.add(normalized)
        text = f"{_get(permit, 'description') or ''} {_get(permit, 'trade') or ''}".lower()
        for keyword, system in KEYWORD_SYSTEM_MAP.items():
            if keyword in text:
                known.add(system)
    return known


def task_requires_absent_system(task: MaintenanceTaskCandidate, known_systems: set[str]) -> bool:
    """True when the task is tied to an optional system the home is not known to have.

    Only the title is keyword-checked; descriptions mention optional systems
    in passing (e.g. draining a sprinkler system while winterizing plumbing).
    """
    system = normalize_system_type(task.system_type)
    if system and system in OPTIONAL_SYSTEMS and system not in known_systems:
        return True
    title = task.title.lower()
    for keyword, system in KEYWORD_SYSTEM_MAP.items():
        if keyword in title and system not in known_systems:
            return True
    return False


def is_poor_condition(condition_score: float | None, tlc_score: float | None) -> bool:
    return (condition_score is not None and condition_score < POOR_CONDITION_SCORE) or (
        tlc_score is not None and tlc_score > POOR_TLC_SCORE
    )


def renovation_task(item: Any, today: date) -> MaintenanceTaskCandidate:
    """Convert a renovation item (system, urgency, est_cost) into a dated task."""
    system = _get(item, "system")
    urgency = _get(item, "urgency")
    priority = map_priority(urgency)
    category = map_category(system)
    cost = _get(item, "est_cost")
    return MaintenanceTaskCandidate(
        title=f"{(system or 'System').upper()} • {urgency or 'maintenance'}",
        description="Auto-created from property enrichment data.",
        category=category,
        system_type="roof" if category == "exterior" else category,
        priority=priority,
        due_date=today + timedelta(days=due_offset_days(priority)),
        cost=float(cost) if cost is not None else None,
    )


def build_candidates(
    zone: ClimateZone,
    today: date,
    condition_score: float | None = None,
    tlc_score: float | None = None,
    renovations: Iterable[Any] = (),
) -> list[MaintenanceTaskCandidate]:
    """Every task candidate for a home, before system filtering and dedup.

    Order: poor-condition inspections, renovation items, seasonal templates.
    """
    candidates: list[MaintenanceTaskCandidate] = []

    if is_poor_condition(condition_score, tlc_score):
        logger.info("Poor condition detected (condition=%s, tlc=%s)", condition_score, tlc_score)
        for days, title, description, category, system_type in POOR_CONDITION_TASKS:
            candidates.append(
                MaintenanceTaskCandidate(
                    title=title,
                    description=description,
                    category=category,
                    system_type=system_type,
                    priority=TaskPriority.HIGH,
                    due_date=today + timedelta(days=days),
                )
            )

    for item in renovations:
        candidates.append(renovation_task(item, today))

    for template in seasonal_templates(zone):
        candidates.append(
            MaintenanceTaskCandidate(
                title=template.title,
                description=template.description,
                category=template.category,
                system_type=template.system_type,
                priority=template.priority,
                due_date=next_occurrence(template.month, today),
            )
        )
    return candidates


def existing_task_keys(
    existing: Iterable[Any], today: date, horizon_end: date
) -> set[tuple[str, date]]:
    """Dedup keys (lowercased title, due date) for tasks due inside the horizon."""
    keys = set()
    for task in existing:
        title = _get(task, "title")
        due = _get(task, "due_date")
        if not title or due is None:
            continue
        if isinstance(due, str):
            due = date.fromisoformat(due[:10])
        if today <= due <= horizon_end:
            keys.add((str(title).lower(), due))
    return keys


def plan_seasonal_tasks(
    zone: ClimateZone,
    today: date,
    months: Any = 12,
    *,
    existing: Iterable[Any] = (),
    known_systems: set[str] | None = None,
    force: bool = False,
    condition_score: float | None = None,
    tlc_score: float | None = None,
    renovations: Iterable[Any] = (),
    max_months: int = DEFAULT_MAX_MONTHS,
) -> SeasonalPlan:
    """Build, filter and deduplicate seasonal task candidates.

    Args:
        zone: Climate zone selecting the template set
        today: Planning date
        months: Horizon in months (clamped to 1..max_months)
        existing: Persisted tasks (title, due_date) for the home
        known_systems: Systems the home is known to have
        force: Skip deduplication and return the full candidate set
        condition_score: Latest condition score signal
        tlc_score: Latest TLC signal
        renovations: Renovation items to convert into tasks
        max_months: Upper bound for ``months``

    Returns:
        SeasonalPlan with the considered candidates and those to insert
    """
    known = set(known_systems or ())
    horizon_end = add_months(today, clamp_months(months, max_months))

    candidates = build_candidates(zone, today, condition_score, tlc_score, renovations)
    # The horizon bounds both the candidates and the dedup lookup, so a rerun
    # never sees a task it scheduled earlier as new.
    considered = [
        task
        for task in candidates
        if task.due_date <= horizon_end and not task_requires_absent_system(task, known)
    ]
    logger.info(
        "System filter: %d candidates -> %d considered (zone=%s, known=%s)",
        len(candidates),
        len(considered),
        zone.value,
        sorted(known),
    )

    if force:
        to_insert = list(considered)
    else:
        seen = existing_task_keys(existing, today, horizon_end)
        to_insert = []
        for task in considered:
            if task.dedup_key in seen:
                continue
            seen.add(task.dedup_key)
            to_insert.append(task)

    return SeasonalPlan(
        climate_zone=zone,
        horizon_end=horizon_end,
        considered=considered,
        to_insert=to_insert,
        known_systems=known,
    )
