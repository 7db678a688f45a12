"""Queries backing the seasonal maintenance planner."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from habitta.db.models import (
    HomeModel,
    HomeSystemModel,
    MaintenanceSignalModel,
    MaintenanceTaskModel,
    PermitModel,
    RenovationItemModel,
)
from habitta.models import MaintenanceTaskCandidate


async def get_home(session: AsyncSession, home_id: str, user_id: str | None = None) -> HomeModel | None:
    """Fetch a home, scoped to ``user_id`` when one is given."""
    query = select(HomeModel).where(HomeModel.id == home_id)
    if user_id is not None:
        query = query.where(HomeModel.user_id == user_id)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def get_system_kinds(session: AsyncSession, home_id: str) -> list[str]:
    result = await session.execute(
        select(HomeSystemModel.kind).where(HomeSystemModel.home_id == home_id)
    )
    return list(result.scalars().all())


async def get_permits(session: AsyncSession, home_id: str) -> list[PermitModel]:
    result = await session.execute(select(PermitModel).where(PermitModel.home_id == home_id))
    return list(result.scalars().all())


async def latest_signal(session: AsyncSession, property_id: str, signal: str) -> float | None:
    """Most recent value of a dated property signal."""
    result = await session.execute(
        select(MaintenanceSignalModel.value)
        .where(
            MaintenanceSignalModel.property_id == property_id,
            MaintenanceSignalModel.signal == signal,
        )
        .order_by(MaintenanceSignalModel.asof_date.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def latest_renovation_items(session: AsyncSession, property_id: str) -> list[RenovationItemModel]:
    """Renovation items from the most recent as-of date for the property."""
    latest = await session.execute(
        select(RenovationItemModel.asof_date)
        .where(RenovationItemModel.property_id == property_id)
        .order_by(RenovationItemModel.asof_date.desc())
        .limit(1)
    )
    asof = latest.scalar_one_or_none()
    if asof is None:
        return []
    result = await session.execute(
        select(RenovationItemModel)
        .where(
            RenovationItemModel.property_id == property_id,
            RenovationItemModel.asof_date == asof,
        )
        .order_by(RenovationItemModel.id)
    )
    return list(result.scalars().all())


async def get_tasks_due_between(
    session: AsyncSession, home_id: str, start: date, end: date
) -> list[MaintenanceTaskModel]:
    result = await session.execute(
        select(MaintenanceTaskModel).where(
            MaintenanceTaskModel.home_id == home_id,
            MaintenanceTaskModel.due_date >= start,
            MaintenanceTaskModel.due_date <= end,
        )
    )
    return list(result.scalars().all())


async def insert_tasks(
    session: AsyncSession,
    home_id: str,
    user_id: str | None,
    tasks: Iterable[MaintenanceTaskCandidate],
) -> int:
    """Insert generated tasks as ``pending`` rows; returns the count added."""
    rows = [
        MaintenanceTaskModel(
            home_id=home_id,
            user_id=user_id,
            title=task.title,
            description=task.description,
            category=task.category,
            system_type=task.system_type,
            priority=task.priority.value,
            status="pending",
            due_date=task.due_date,
            cost=task.cost,
        )
        for task in tasks
    ]
    session.add_all(rows)
    await session.flush()
    return len(rows)
