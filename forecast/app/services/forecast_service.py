"""
Sales Forecast Service
Loads opportunities and assembles the forecast report
"""

import random
import time
from typing import Optional
from uuid import UUID

from prometheus_client import Counter, Histogram
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ..core.clock import Clock, SystemClock
from ..core.config import settings
from ..models.forecasts import (
    ForecastFilters,
    ForecastPeriod,
    ForecastReport,
    PipelineSummary,
    Scenario,
)
from ..models.opportunities import OpportunityStage
from .conversion_estimator import ConversionRateEstimator
from .forecast_calculator import ForecastCalculator, closing_window
from .historical_aggregator import HistoricalAggregator
from .opportunity_repository import OpportunityRepository
from .pipeline_analyzer import PipelineAnalyzer, summarize_pipeline

logger = structlog.get_logger()

FORECAST_REPORTS = Counter(
    'forecast_reports_total',
    'Forecast reports generated',
    ['period', 'scenario']
)

FORECAST_DURATION = Histogram(
    'forecast_generation_seconds',
    'Time spent building a forecast report'
)


def default_rng() -> random.Random:
    """Random source for probability adjustments, seeded when configured"""
    return random.Random(settings.forecast_random_seed)


class ForecastService:
    """Service for sales forecasting and pipeline analytics"""

    def __init__(
        self,
        db: AsyncSession,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        user_id: Optional[UUID] = None
    ):
        self.clock = clock or SystemClock()
        self.rng = rng or default_rng()
        self.user_id = user_id
        self.repository = OpportunityRepository(db, user_id=user_id)

        self.calculator = ForecastCalculator(clock=self.clock, rng=self.rng)
        self.historical = HistoricalAggregator(
            clock=self.clock,
            rng=self.rng,
            months=settings.historical_months,
            fallback_amount=settings.historical_fallback_amount
        )
        self.pipeline = PipelineAnalyzer(clock=self.clock)
        self.conversion = ConversionRateEstimator(
            clock=self.clock,
            window_months=settings.conversion_window_months
        )

    async def generate_report(
        self,
        period: Optional[str] = None,
        scenario: Optional[str] = None
    ) -> ForecastReport:
        """Build all four forecast sections for the requested horizon"""

        selected_period = ForecastPeriod.parse(
            period, default=ForecastPeriod.parse(settings.forecast_default_period)
        )
        selected_scenario = Scenario.parse(
            scenario, default=Scenario.parse(settings.forecast_default_scenario)
        )
        started = time.time()

        try:
            now = self.clock.now()

            window_start, window_end = closing_window(selected_period, now)
            closing = await self.repository.list_open_closing_between(window_start, window_end)
            forecasts = self.calculator.calculate(closing, selected_period, selected_scenario)

            won = await self.repository.list_won_closed_since(self.historical.window_start())
            average_amount = await self.repository.average_amount()
            historical_data = self.historical.aggregate(won, average_amount)

            open_opportunities = await self.repository.list_in_stages(OpportunityStage.open_stages())
            pipeline_analysis = self.pipeline.analyze(open_opportunities)

            recent = await self.repository.list_created_since(self.conversion.window_start())
            conversion_rates = self.conversion.estimate(recent)

            report = ForecastReport(
                forecasts=forecasts,
                historicalData=historical_data,
                pipelineAnalysis=pipeline_analysis,
                conversionRates=conversion_rates,
                filters=ForecastFilters(
                    period=selected_period,
                    scenario=selected_scenario,
                    user_id=str(self.user_id) if self.user_id else None
                ),
                generated_at=now
            )

            duration = time.time() - started
            FORECAST_REPORTS.labels(period=selected_period.value, scenario=selected_scenario.value).inc()
            FORECAST_DURATION.observe(duration)

            logger.info(
                "Forecast generated",
                period=selected_period.value,
                scenario=selected_scenario.value,
                months=len(forecasts.monthly),
                opportunities=forecasts.totals.opportunities_count,
                synthetic_history=historical_data.synthetic,
                duration_ms=round(duration * 1000, 2)
            )

            return report

        except Exception as e:
            logger.error(
                "Forecast generation failed",
                period=selected_period.value,
                scenario=selected_scenario.value,
                error=str(e)
            )
            raise

    async def get_pipeline_summary(self) -> PipelineSummary:
        """Headline pipeline figures for the dashboard"""
        try:
            opportunities = await self.repository.list_all()
            summary = summarize_pipeline(opportunities, self.clock.now(), currency=settings.currency)

            logger.info(
                "Pipeline summary generated",
                total_opportunities=summary.total_opportunities,
                open_opportunities=summary.open_opportunities
            )

            return summary

        except Exception as e:
            logger.error("Pipeline summary failed", error=str(e))
            raise
