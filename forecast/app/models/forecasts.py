"""
Sales Forecast Report Models
Derived views built per request, never persisted
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ForecastPeriod(str, Enum):
    """Forecast horizon selector"""
    QUARTER = "quarter"
    SEMESTER = "semester"
    YEAR = "year"

    @property
    def label(self) -> str:
        return {
            ForecastPeriod.QUARTER: "Current quarter",
            ForecastPeriod.SEMESTER: "Next six months",
            ForecastPeriod.YEAR: "Current year",
        }[self]

    @classmethod
    def parse(cls, value: Optional[str], default: "ForecastPeriod" = None) -> "ForecastPeriod":
        """Unknown or missing values fall back to the default horizon"""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return default or cls.QUARTER


class Scenario(str, Enum):
    """Probability adjustment scenario"""
    PESSIMISTIC = "pessimistic"
    REALISTIC = "realistic"
    OPTIMISTIC = "optimistic"

    @property
    def factor_range(self) -> "FactorRange":
        return SCENARIO_FACTORS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: Optional[str], default: "Scenario" = None) -> "Scenario":
        """Unknown or missing values fall back to the default scenario"""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return default or cls.REALISTIC


class FactorRange(BaseModel):
    """Inclusive multiplier range applied to stored probabilities"""
    min: float
    max: float


SCENARIO_FACTORS: Dict[Scenario, FactorRange] = {
    Scenario.PESSIMISTIC: FactorRange(min=0.6, max=0.8),
    Scenario.REALISTIC: FactorRange(min=0.9, max=1.0),
    Scenario.OPTIMISTIC: FactorRange(min=1.1, max=1.3),
}


class MonthlyForecast(BaseModel):
    """Projected revenue for one calendar month"""
    month: str = Field(..., description="Month key, YYYY-MM")
    month_label: str
    committed: float = 0.0
    best_case: float = 0.0
    pipeline: float = 0.0
    weighted: float = 0.0
    total: float = 0.0
    opportunities_count: int = 0


class ForecastTotals(BaseModel):
    """Column sums across all forecast months"""
    committed: float = 0.0
    best_case: float = 0.0
    pipeline: float = 0.0
    weighted: float = 0.0
    total: float = 0.0
    opportunities_count: int = 0


class Forecast(BaseModel):
    monthly: List[MonthlyForecast]
    totals: ForecastTotals
    period: ForecastPeriod
    period_label: str
    scenario: Scenario
    adjustment: FactorRange


class HistoricalMonth(BaseModel):
    """Won revenue for one calendar month"""
    month: str
    month_label: str
    count: int = Field(..., ge=0)
    total: float
    average: float


class HistoricalData(BaseModel):
    """Won revenue history; synthetic when no deal was closed in the window"""
    synthetic: bool
    months: List[HistoricalMonth]


class StageBucket(BaseModel):
    """Open opportunities aggregated for one pipeline stage"""
    stage: str
    label: str
    probability: int
    count: int = 0
    total_value: float = 0.0
    weighted_value: float = 0.0
    average_value: float = 0.0
    average_days_in_stage: int = 0


class ConversionEdge(BaseModel):
    """Progression rate between two adjacent stages"""
    from_stage: str
    to_stage: str
    from_label: str
    to_label: str
    rate: float = Field(..., ge=0, le=100)
    progressed: int
    total: int
    estimated: bool = False


class ConversionRates(BaseModel):
    stage_rates: List[ConversionEdge]
    overall_rate: float = Field(..., ge=0, le=100)
    total_opportunities: int
    won_opportunities: int
    estimated: bool = False


class ForecastFilters(BaseModel):
    period: ForecastPeriod
    scenario: Scenario
    user_id: Optional[str] = None


class ForecastReport(BaseModel):
    """Full forecast page payload"""
    forecasts: Forecast
    historicalData: HistoricalData
    pipelineAnalysis: List[StageBucket]
    conversionRates: ConversionRates
    filters: ForecastFilters
    generated_at: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "forecasts": {
                    "monthly": [
                        {
                            "month": "2026-10",
                            "month_label": "October 2026",
                            "committed": 10000.0,
                            "best_case": 0.0,
                            "pipeline": 2500.0,
                            "weighted": 9375.0,
                            "total": 12500.0,
                            "opportunities_count": 2
                        }
                    ],
                    "totals": {"committed": 10000.0, "total": 12500.0},
                    "period": "quarter",
                    "period_label": "Current quarter",
                    "scenario": "realistic",
                    "adjustment": {"min": 0.9, "max": 1.0}
                },
                "historicalData": {"synthetic": False, "months": []},
                "pipelineAnalysis": [],
                "conversionRates": {
                    "stage_rates": [],
                    "overall_rate": 20.0,
                    "total_opportunities": 20,
                    "won_opportunities": 4,
                    "estimated": True
                },
                "filters": {"period": "quarter", "scenario": "realistic"},
                "generated_at": "2026-10-17T09:00:00Z"
            }
        }


class PipelineSummary(BaseModel):
    """Headline pipeline figures for the dashboard"""
    total_opportunities: int
    open_opportunities: int
    pipeline_value: float
    weighted_pipeline: float
    won_this_month: float
    overdue_opportunities: int
    currency: str
