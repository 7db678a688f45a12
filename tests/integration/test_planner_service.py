"""Integration tests for seasonal plan generation against an in-memory database."""

from __future__ import annotations

from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from habitta.db.models import (
    Base,
    HomeModel,
    HomeSystemModel,
    MaintenanceSignalModel,
    MaintenanceTaskModel,
    PermitModel,
    RenovationItemModel,
)
from habitta.errors import HomeNotFoundError
from habitta.models import ClimateZone
from habitta.planner.service import generate_seasonal_plan

TODAY = date(2025, 1, 10)
FREEZE_THAW_TASKS = 14  # 12 zone templates + 2 detector checks


@pytest_asyncio.fixture()
async def db_session() -> AsyncSession:
    """Create in-memory database for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def home(db_session: AsyncSession) -> HomeModel:
    home = HomeModel(id="home-1", user_id="user-1", city="Minneapolis", state="MN")
    db_session.add(home)
    await db_session.commit()
    return home


async def _task_count(session: AsyncSession, home_id: str) -> int:
    result = await session.execute(
        select(func.count()).select_from(MaintenanceTaskModel).where(MaintenanceTaskModel.home_id == home_id)
    )
    return result.scalar_one()


@pytest.mark.asyncio
async def test_first_run_inserts_zone_templates(db_session, home):
    result = await generate_seasonal_plan(db_session, home.id, months=12, user_id="user-1", today=TODAY)

    assert result.climate_zone is ClimateZone.FREEZE_THAW
    assert result.inserted == FREEZE_THAW_TASKS
    assert result.considered == FREEZE_THAW_TASKS
    assert await _task_count(db_session, home.id) == FREEZE_THAW_TASKS

    rows = (await db_session.execute(select(MaintenanceTaskModel))).scalars().all()
    assert all(row.status == "pending" for row in rows)
    assert all(row.user_id == "user-1" for row in rows)


@pytest.mark.asyncio
async def test_second_run_is_idempotent(db_session, home):
    await generate_seasonal_plan(db_session, home.id, months=12, today=TODAY)
    again = await generate_seasonal_plan(db_session, home.id, months=12, today=TODAY)

    assert again.inserted == 0
    assert again.considered == FREEZE_THAW_TASKS
    assert await _task_count(db_session, home.id) == FREEZE_THAW_TASKS


@pytest.mark.asyncio
async def test_force_inserts_duplicates(db_session, home):
    await generate_seasonal_plan(db_session, home.id, months=12, today=TODAY)
    forced = await generate_seasonal_plan(db_session, home.id, months=12, force=True, today=TODAY)

    assert forced.inserted == FREEZE_THAW_TASKS
    assert await _task_count(db_session, home.id) == 2 * FREEZE_THAW_TASKS


@pytest.mark.asyncio
async def test_home_scoped_to_owner(db_session, home):
    with pytest.raises(HomeNotFoundError):
        await generate_seasonal_plan(db_session, home.id, user_id="someone-else", today=TODAY)

    with pytest.raises(HomeNotFoundError):
        await generate_seasonal_plan(db_session, "missing", today=TODAY)


@pytest.mark.asyncio
async def test_zone_override(db_session, home):
    result = await generate_seasonal_plan(
        db_session, home.id, months=12, climate_zone_override="moderate", today=TODAY
    )

    assert result.climate_zone is ClimateZone.MODERATE
    assert result.inserted == 9


@pytest.mark.asyncio
async def test_unknown_override_falls_back_to_location(db_session, home):
    result = await generate_seasonal_plan(
        db_session, home.id, months=12, climate_zone_override="tropical", today=TODAY
    )

    assert result.climate_zone is ClimateZone.FREEZE_THAW


@pytest.mark.asyncio
async def test_optional_systems_from_systems_and_permits(db_session):
    db_session.add(HomeModel(id="home-fl", user_id="user-2", city="Miami", state="FL"))
    db_session.add(HomeSystemModel(home_id="home-fl", kind="Swimming Pool"))
    db_session.add(PermitModel(home_id="home-fl", description="Install irrigation system", trade="Plumbing"))
    await db_session.commit()

    result = await generate_seasonal_plan(db_session, "home-fl", months=12, today=TODAY)

    assert result.climate_zone is ClimateZone.HIGH_HEAT
    assert result.known_systems == ["pool", "sprinkler"]
    assert result.inserted == 12


@pytest.mark.asyncio
async def test_condition_signals_and_renovations(db_session):
    db_session.add(HomeModel(id="home-2", user_id="user-1", state="TN", property_id="prop-2"))
    db_session.add(
        MaintenanceSignalModel(property_id="prop-2", signal="condition_score", value=80, asof_date=date(2024, 1, 1))
    )
    db_session.add(
        MaintenanceSignalModel(property_id="prop-2", signal="condition_score", value=55, asof_date=date(2024, 6, 1))
    )
    db_session.add(
        RenovationItemModel(property_id="prop-2", system="roof", urgency="high", est_cost=9000, asof_date=date(2024, 6, 1))
    )
    db_session.add(
        RenovationItemModel(property_id="prop-2", system="hvac", urgency="low", asof_date=date(2023, 1, 1))
    )
    await db_session.commit()

    result = await generate_seasonal_plan(db_session, "home-2", months=12, today=TODAY)

    # 4 condition inspections + 1 current renovation + 9 moderate templates
    assert result.inserted == 14
    titles = (await db_session.execute(select(MaintenanceTaskModel.title))).scalars().all()
    assert "Whole-home inspection" in titles
    assert "ROOF • high" in titles
    assert "HVAC • low" not in titles
