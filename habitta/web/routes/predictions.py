"""Prediction run API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from habitta.db.connection import get_session
from habitta.errors import PropertyNotFoundError
from habitta.prediction.service import run_predictions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/predictions", tags=["predictions"])


class PredictionRunRequest(BaseModel):
    address_id: str | None = None

    class Config:
        json_schema_extra = {"example": {"address_id": "a1b2c3"}}


@router.post("/run")
async def run_prediction(payload: PredictionRunRequest | None = None):
    """Predict every system field for one property and persist the results."""
    address_id = payload.address_id if payload else None
    if not address_id:
        raise HTTPException(status_code=400, detail="address_id is required")

    try:
        async with get_session() as session:
            summary = await run_predictions(session, address_id)
    except PropertyNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception("Prediction run failed for %s", address_id)
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "status": "success",
        "predictions_generated": summary.predictions_generated,
        "prediction_run_id": str(summary.prediction_run_id),
        "model_version": summary.model_version,
    }
