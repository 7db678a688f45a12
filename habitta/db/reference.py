"""Reference table persistence (lifespans and climate factors)."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from habitta.db.models import ClimateFactorModel, LifespanReferenceModel
from habitta.reference.lifespans import ClimateFactorTable, LifespanTable, load_default_tables

logger = logging.getLogger(__name__)


async def load_reference_tables(session: AsyncSession) -> tuple[LifespanTable, ClimateFactorTable]:
    """Load reference tables from the database.

    Each table falls back to the bundled YAML when its database table is empty.
    """
    lifespan_rows = (await session.execute(select(LifespanReferenceModel))).scalars().all()
    factor_rows = (await session.execute(select(ClimateFactorModel))).scalars().all()

    default_lifespans = default_factors = None
    if not lifespan_rows or not factor_rows:
        default_lifespans, default_factors = load_default_tables()

    if lifespan_rows:
        lifespans = LifespanTable.from_rows(lifespan_rows)
    else:
        logger.info("Lifespan reference table empty; using bundled defaults")
        lifespans = default_lifespans

    if factor_rows:
        factors = ClimateFactorTable.from_rows(factor_rows)
    else:
        logger.info("Climate factor table empty; using bundled defaults")
        factors = default_factors

    return lifespans, factors


async def seed_reference_tables(
    session: AsyncSession,
    lifespans: LifespanTable,
    factors: ClimateFactorTable,
) -> tuple[int, int]:
    """Replace both reference tables with the given contents.

    Returns:
        (lifespan rows written, climate factor rows written)
    """
    await session.execute(delete(LifespanReferenceModel))
    await session.execute(delete(ClimateFactorModel))

    entries = lifespans.entries()
    session.add_all(LifespanReferenceModel(**entry.as_dict()) for entry in entries)

    factor_items = factors.items()
    session.add_all(
        ClimateFactorModel(climate_zone=zone, factor_type=factor_type, multiplier=multiplier)
        for (zone, factor_type), multiplier in factor_items
    )
    await session.flush()

    logger.info("Seeded %d lifespan rows and %d climate factors", len(entries), len(factor_items))
    return len(entries), len(factor_items)
