"""
Sales Forecast API Endpoints
"""

import random
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ..core.clock import Clock, SystemClock
from ..core.config import settings
from ..core.database import get_db
from ..models.forecasts import ForecastPeriod, ForecastReport, PipelineSummary, Scenario
from ..models.opportunities import OpportunityStage
from ..services.forecast_service import ForecastService, default_rng

logger = structlog.get_logger()
router = APIRouter(prefix="/forecast", tags=["forecast"])


def get_clock() -> Clock:
    return SystemClock()


def get_rng() -> random.Random:
    return default_rng()


def get_forecast_service(
    user_id: Optional[UUID] = Query(None, description="Restrict to opportunities owned by this user"),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
    rng: random.Random = Depends(get_rng)
) -> ForecastService:
    return ForecastService(db, clock=clock, rng=rng, user_id=user_id)


@router.get("", response_model=ForecastReport)
async def get_forecast(
    period: Optional[str] = Query(None, description="quarter, semester or year"),
    scenario: Optional[str] = Query(None, description="pessimistic, realistic or optimistic"),
    service: ForecastService = Depends(get_forecast_service)
):
    """Forecast, historical, pipeline and conversion views"""
    try:
        return await service.generate_report(period=period, scenario=scenario)

    except Exception as e:
        logger.error("Forecast request failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate forecast"
        )


@router.get("/summary", response_model=PipelineSummary)
async def get_pipeline_summary(
    service: ForecastService = Depends(get_forecast_service)
):
    """Open pipeline, weighted pipeline and won this month"""
    try:
        return await service.get_pipeline_summary()

    except Exception as e:
        logger.error("Pipeline summary request failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve pipeline summary"
        )


@router.get("/stages")
async def get_stage_definitions():
    """Pipeline stage taxonomy"""
    return {
        "stages": OpportunityStage.options(),
        "progression": [stage.value for stage in OpportunityStage.progression()]
    }


@router.get("/scenarios")
async def get_scenario_definitions():
    """Available horizons and probability scenarios"""
    return {
        "periods": [
            {"value": period.value, "label": period.label}
            for period in ForecastPeriod
        ],
        "scenarios": [
            {
                "value": scenario.value,
                "label": scenario.label,
                "min_factor": scenario.factor_range.min,
                "max_factor": scenario.factor_range.max
            }
            for scenario in Scenario
        ],
        "defaults": {
            "period": ForecastPeriod.parse(settings.forecast_default_period).value,
            "scenario": Scenario.parse(settings.forecast_default_scenario).value
        }
    }
