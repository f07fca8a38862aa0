"""
Sales Forecast Calculator
Monthly committed / best case / pipeline projection over a horizon
"""

import random
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.clock import (
    Clock,
    SystemClock,
    add_months,
    end_of_month,
    end_of_quarter,
    end_of_year,
    iter_months,
    month_key,
    month_label,
    start_of_month,
)
from ..models.forecasts import (
    Forecast,
    ForecastPeriod,
    ForecastTotals,
    MonthlyForecast,
    Scenario,
)
from ..models.opportunities import Opportunity

COMMITTED_THRESHOLD = 75
BEST_CASE_THRESHOLD = 50

COMMITTED = "committed"
BEST_CASE = "best_case"
PIPELINE = "pipeline"


def horizon_end(period: ForecastPeriod, now: datetime) -> datetime:
    """Last instant covered by the forecast horizon"""
    if period is ForecastPeriod.SEMESTER:
        return add_months(now, 6)
    if period is ForecastPeriod.YEAR:
        return end_of_year(now)
    return end_of_quarter(now)


def closing_window(period: ForecastPeriod, now: datetime) -> Tuple[date, date]:
    """Expected close dates that can land in one of the horizon months"""
    return start_of_month(now).date(), end_of_month(horizon_end(period, now)).date()


def classify(adjusted_probability: float) -> str:
    """Bucket for an adjusted probability"""
    if adjusted_probability > COMMITTED_THRESHOLD:
        return COMMITTED
    if adjusted_probability >= BEST_CASE_THRESHOLD:
        return BEST_CASE
    return PIPELINE


class ForecastCalculator:
    """Projects open opportunities onto the months of a forecast horizon.

    Every opportunity gets its own multiplier drawn from the scenario range,
    so two runs over the same data differ unless ``rng`` is seeded.
    """

    def __init__(self, clock: Optional[Clock] = None, rng: Optional[random.Random] = None):
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()

    def draw_factor(self, scenario: Scenario) -> float:
        """Uniform draw in whole percent within the scenario range"""
        factors = scenario.factor_range
        low = int(round(factors.min * 100))
        high = int(round(factors.max * 100))
        return self.rng.randint(low, high) / 100

    def adjusted_probability(self, probability: int, scenario: Scenario) -> float:
        return min(100.0, (probability or 0) * self.draw_factor(scenario))

    def calculate(
        self,
        opportunities: Iterable[Opportunity],
        period: ForecastPeriod = ForecastPeriod.QUARTER,
        scenario: Scenario = Scenario.REALISTIC,
    ) -> Forecast:
        now = self.clock.now()
        end = horizon_end(period, now)

        by_month: Dict[str, List[Opportunity]] = {}
        for opportunity in opportunities:
            if opportunity.is_closed or not opportunity.expected_close_date:
                continue
            by_month.setdefault(month_key(opportunity.expected_close_date), []).append(opportunity)

        monthly = [
            self._project_month(month_start, by_month.get(month_key(month_start), []), scenario)
            for month_start in iter_months(now, end)
        ]

        return Forecast(
            monthly=monthly,
            totals=self._totals(monthly),
            period=period,
            period_label=period.label,
            scenario=scenario,
            adjustment=scenario.factor_range,
        )

    def _project_month(
        self,
        month_start: datetime,
        opportunities: List[Opportunity],
        scenario: Scenario,
    ) -> MonthlyForecast:
        buckets = {COMMITTED: 0.0, BEST_CASE: 0.0, PIPELINE: 0.0}
        weighted = 0.0

        for opportunity in opportunities:
            adjusted = self.adjusted_probability(opportunity.probability, scenario)
            amount = opportunity.amount_value
            buckets[classify(adjusted)] += amount
            weighted += amount * (adjusted / 100)

        return MonthlyForecast(
            month=month_key(month_start),
            month_label=month_label(month_start),
            committed=round(buckets[COMMITTED], 2),
            best_case=round(buckets[BEST_CASE], 2),
            pipeline=round(buckets[PIPELINE], 2),
            weighted=round(weighted, 2),
            total=round(sum(buckets.values()), 2),
            opportunities_count=len(opportunities),
        )

    @staticmethod
    def _totals(monthly: List[MonthlyForecast]) -> ForecastTotals:
        return ForecastTotals(
            committed=round(sum(m.committed for m in monthly), 2),
            best_case=round(sum(m.best_case for m in monthly), 2),
            pipeline=round(sum(m.pipeline for m in monthly), 2),
            weighted=round(sum(m.weighted for m in monthly), 2),
            total=round(sum(m.total for m in monthly), 2),
            opportunities_count=sum(m.opportunities_count for m in monthly),
        )
