"""Prediction run orchestration: fetch evidence, evaluate rules, persist."""

from __future__ import annotations

import logging
from datetime import date
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from habitta.config import get_config
from habitta.db.models import EnrichmentSnapshotModel, PropertyModel
from habitta.db.predictions import upsert_prediction
from habitta.db.reference import load_reference_tables
from habitta.errors import PropertyNotFoundError
from habitta.models import (
    EnrichmentSnapshot,
    PredictionRecord,
    PredictionRunSummary,
    PropertyRecord,
)
from habitta.prediction.context import PredictionSettings
from habitta.prediction.engine import PredictionEngine
from habitta.prediction.timeline import SystemTimeline

logger = logging.getLogger(__name__)


def _to_property_record(row: PropertyModel) -> PropertyRecord:
    return PropertyRecord(
        address_id=row.address_id,
        address=row.address,
        city=row.city,
        state=row.state,
        year_built=row.year_built,
        square_feet=row.square_feet,
        latitude=row.latitude,
        longitude=row.longitude,
    )


async def load_property(session: AsyncSession, address_id: str) -> PropertyRecord:
    """Fetch the property row.

    Raises:
        PropertyNotFoundError: If no property has this address_id
    """
    result = await session.execute(
        select(PropertyModel).where(PropertyModel.address_id == address_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise PropertyNotFoundError(address_id)
    return _to_property_record(row)


async def load_snapshots(session: AsyncSession, address_id: str) -> list[EnrichmentSnapshot]:
    result = await session.execute(
        select(EnrichmentSnapshotModel)
        .where(EnrichmentSnapshotModel.address_id == address_id)
        .order_by(EnrichmentSnapshotModel.fetched_at)
    )
    return [
        EnrichmentSnapshot(
            address_id=row.address_id,
            provider=row.provider,
            payload=row.payload or {},
            fetched_at=row.fetched_at,
        )
        for row in result.scalars().all()
    ]


async def build_engine(session: AsyncSession) -> PredictionEngine:
    """Engine wired with the stored reference tables and configured bounds."""
    config = get_config().prediction
    lifespans, factors = await load_reference_tables(session)
    return PredictionEngine(
        lifespans,
        factors,
        settings=PredictionSettings(
            permit_min_year=config.permit_min_year,
            permit_max_year=config.permit_max_year,
            valuation_ceiling=config.valuation_ceiling,
            confidence_ceiling=config.confidence_ceiling,
        ),
    )


async def run_predictions(
    session: AsyncSession,
    address_id: str,
    as_of: date | None = None,
    model_version: str | None = None,
    engine: PredictionEngine | None = None,
) -> PredictionRunSummary:
    """Run every field rule for one property and persist the results.

    Args:
        session: Database session
        address_id: Property to predict
        as_of: Date ages are measured against (defaults to today)
        model_version: Version tag for the rows (defaults to configuration)
        engine: Pre-built engine; built from stored reference tables if omitted

    Returns:
        PredictionRunSummary with the count of fields persisted

    Raises:
        PropertyNotFoundError: If the property does not exist
    """
    prop = await load_property(session, address_id)
    snapshots = await load_snapshots(session, address_id)
    if engine is None:
        engine = await build_engine(session)
    version = model_version or get_config().prediction.model_version
    run_id = uuid4()

    output = engine.predict(snapshots, prop, as_of=as_of)
    failed = [f.value for f in output.failed_fields]

    generated = 0
    for result in output.results:
        record = PredictionRecord(
            address_id=address_id,
            field=result.field,
            predicted_value=result.value,
            confidence=result.confidence,
            provenance=result.provenance,
            prediction_run_id=run_id,
            model_version=version,
        )
        if await upsert_prediction(session, record):
            generated += 1
        else:
            failed.append(result.field.value)

    logger.info(
        "Prediction run %s for %s: %d fields persisted, %d failed (%s)",
        run_id,
        address_id,
        generated,
        len(failed),
        version,
    )
    return PredictionRunSummary(
        address_id=address_id,
        prediction_run_id=run_id,
        model_version=version,
        predictions_generated=generated,
        failed_fields=failed,
    )


async def build_timelines(
    session: AsyncSession,
    address_id: str,
    as_of: date | None = None,
    engine: PredictionEngine | None = None,
) -> list[SystemTimeline]:
    """Replacement timelines for a stored property. Nothing is persisted.

    Raises:
        PropertyNotFoundError: If the property does not exist
    """
    prop = await load_property(session, address_id)
    snapshots = await load_snapshots(session, address_id)
    if engine is None:
        engine = await build_engine(session)
    return engine.timelines(snapshots, prop, as_of=as_of)
