"""Seasonal maintenance plan API routes."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from habitta.db.connection import get_session
from habitta.errors import HomeNotFoundError
from habitta.planner.service import generate_seasonal_plan
from habitta.web.dependencies import Caller, get_caller

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


class SeasonalPlanRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    home_id: str | None = Field(default=None, alias="homeId")
    months: int = 12
    force: bool = False
    climate_zone: str | None = Field(default=None, alias="climateZone")


@router.post("/seasonal-plan")
async def seasonal_plan(
    payload: SeasonalPlanRequest | None = None,
    caller: Caller = Depends(get_caller),
):
    """Generate seasonal maintenance tasks for a home."""
    if payload is None or not payload.home_id:
        raise HTTPException(status_code=400, detail="homeId is required")

    try:
        async with get_session() as session:
            result = await generate_seasonal_plan(
                session,
                payload.home_id,
                months=payload.months,
                force=payload.force,
                user_id=None if caller.internal else caller.user_id,
                climate_zone_override=payload.climate_zone,
            )
    except HomeNotFoundError:
        raise HTTPException(status_code=404, detail="Home not found")
    except Exception as e:
        logger.exception("Seasonal plan failed for home %s", payload.home_id)
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "ok": True,
        "inserted": result.inserted,
        "considered": result.considered,
        "climateZone": result.climate_zone.value,
        "knownSystems": result.known_systems,
    }
