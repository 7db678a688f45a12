"""Seasonal plan generation for a home."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from habitta.climate.zones import coerce_climate_zone, derive_climate_zone
from habitta.config import get_config
from habitta.db import maintenance as repo
from habitta.errors import HomeNotFoundError
from habitta.models import ClimateZone, SeasonalPlanResult
from habitta.planner.seasonal import add_months, build_known_systems, clamp_months, plan_seasonal_tasks

logger = logging.getLogger(__name__)


async def generate_seasonal_plan(
    session: AsyncSession,
    home_id: str,
    months: int | None = None,
    force: bool = False,
    user_id: str | None = None,
    climate_zone_override: str | ClimateZone | None = None,
    today: date | None = None,
) -> SeasonalPlanResult:
    """Generate and persist seasonal maintenance tasks for a home.

    Args:
        session: Database session
        home_id: Target home
        months: Planning horizon in months (default from configuration)
        force: Insert the full candidate set without deduplication
        user_id: Owner the home must belong to; None for trusted callers
        climate_zone_override: Explicit zone label, ignored when unrecognized
        today: Planning date (defaults to today)

    Returns:
        SeasonalPlanResult with inserted and considered counts

    Raises:
        HomeNotFoundError: If the home does not exist or is not the caller's
    """
    planner_config = get_config().planner
    today = today or date.today()
    horizon_months = clamp_months(
        months if months is not None else planner_config.default_months,
        planner_config.max_months,
        default=planner_config.default_months,
    )

    home = await repo.get_home(session, home_id, user_id)
    if home is None:
        raise HomeNotFoundError(home_id)

    zone = coerce_climate_zone(climate_zone_override) or derive_climate_zone(
        home.state, home.city, home.latitude
    )

    known_systems = build_known_systems(
        await repo.get_system_kinds(session, home.id),
        await repo.get_permits(session, home.id),
    )

    condition_score = tlc_score = None
    renovations = []
    if home.property_id:
        condition_score = await repo.latest_signal(session, home.property_id, "condition_score")
        tlc_score = await repo.latest_signal(session, home.property_id, "tlc")
        renovations = await repo.latest_renovation_items(session, home.property_id)

    existing = []
    if not force:
        existing = await repo.get_tasks_due_between(
            session, home.id, today, add_months(today, horizon_months)
        )

    plan = plan_seasonal_tasks(
        zone,
        today,
        horizon_months,
        existing=existing,
        known_systems=known_systems,
        force=force,
        condition_score=condition_score,
        tlc_score=tlc_score,
        renovations=renovations,
        max_months=planner_config.max_months,
    )

    inserted = await repo.insert_tasks(session, home.id, home.user_id, plan.to_insert)
    await session.commit()

    logger.info(
        "Seasonal plan for home %s: inserted %d of %d considered (zone=%s, months=%d, force=%s)",
        home.id,
        inserted,
        len(plan.considered),
        zone.value,
        horizon_months,
        force,
    )
    return SeasonalPlanResult(
        home_id=home.id,
        inserted=inserted,
        considered=len(plan.considered),
        climate_zone=zone,
        known_systems=sorted(plan.known_systems),
    )
