"""
Sales Forecast Models
"""

from .opportunities import Opportunity, OpportunityStage, StageInfo, STAGE_TAXONOMY
from .forecasts import (
    ConversionEdge,
    ConversionRates,
    FactorRange,
    Forecast,
    ForecastFilters,
    ForecastPeriod,
    ForecastReport,
    ForecastTotals,
    HistoricalData,
    HistoricalMonth,
    MonthlyForecast,
    PipelineSummary,
    Scenario,
    StageBucket,
)

__all__ = [
    "Opportunity",
    "OpportunityStage",
    "StageInfo",
    "STAGE_TAXONOMY",
    "ConversionEdge",
    "ConversionRates",
    "FactorRange",
    "Forecast",
    "ForecastFilters",
    "ForecastPeriod",
    "ForecastReport",
    "ForecastTotals",
    "HistoricalData",
    "HistoricalMonth",
    "MonthlyForecast",
    "PipelineSummary",
    "Scenario",
    "StageBucket",
]
