"""Prediction persistence.

Each field is upserted and committed on its own so a failure on one field
never discards the others. If the dialect-level upsert fails, the row is
retried once with a plain ORM update-or-insert.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from habitta.db.models import PredictionModel
from habitta.models import PredictionRecord

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _row_values(record: PredictionRecord) -> dict:
    return {
        "address_id": record.address_id,
        "field": record.field.value,
        "predicted_value": record.predicted_value,
        "confidence": record.confidence,
        "provenance": record.provenance,
        "prediction_run_id": record.prediction_run_id,
        "model_version": record.model_version,
    }


async def _dialect_upsert(session: AsyncSession, record: PredictionRecord) -> None:
    dialect = session.get_bind().dialect.name
    insert_fn = _UPSERT_DIALECTS.get(dialect)
    if insert_fn is None:
        raise NotImplementedError(f"No upsert support for dialect {dialect!r}")

    values = _row_values(record)
    stmt = insert_fn(PredictionModel).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["address_id", "field", "model_version"],
        set_={
            "predicted_value": stmt.excluded.predicted_value,
            "confidence": stmt.excluded.confidence,
            "provenance": stmt.excluded.provenance,
            "prediction_run_id": stmt.excluded.prediction_run_id,
            "predicted_at": func.now(),
        },
    )
    await session.execute(stmt)


async def _orm_upsert(session: AsyncSession, record: PredictionRecord) -> None:
    result = await session.execute(
        select(PredictionModel).where(
            PredictionModel.address_id == record.address_id,
            PredictionModel.field == record.field.value,
            PredictionModel.model_version == record.model_version,
        )
    )
    row = result.scalar_one_or_none()
    values = _row_values(record)
    if row is None:
        session.add(PredictionModel(**values))
        return
    for key, value in values.items():
        setattr(row, key, value)
    row.predicted_at = datetime.now(timezone.utc)


async def upsert_prediction(session: AsyncSession, record: PredictionRecord) -> bool:
    """Persist one prediction field, keyed by (address_id, field, model_version).

    Args:
        session: Database session; committed after the write
        record: Prediction to store

    Returns:
        True if the row was written, False if both write paths failed
    """
    try:
        await _dialect_upsert(session, record)
        await session.commit()
        return True
    except (SQLAlchemyError, NotImplementedError) as e:
        await session.rollback()
        logger.warning(
            "Upsert failed for %s/%s, retrying with plain write: %s",
            record.address_id,
            record.field.value,
            e,
        )

    try:
        await _orm_upsert(session, record)
        await session.commit()
        return True
    except SQLAlchemyError:
        await session.rollback()
        logger.exception(
            "Failed to persist prediction %s/%s", record.address_id, record.field.value
        )
        return False


async def get_predictions(
    session: AsyncSession,
    address_id: str,
    model_version: str | None = None,
) -> list[PredictionModel]:
    """Stored predictions for an address, optionally for one model version."""
    query = select(PredictionModel).where(PredictionModel.address_id == address_id)
    if model_version:
        query = query.where(PredictionModel.model_version == model_version)
    result = await session.execute(query.order_by(PredictionModel.field))
    return list(result.scalars().all())
