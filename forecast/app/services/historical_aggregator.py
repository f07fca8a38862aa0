"""
Sales Forecast Historical Aggregator
Won revenue per month over the trailing window
"""

import random
from collections import OrderedDict
from datetime import date
from typing import Iterable, List, Optional

import structlog

from ..core.clock import Clock, SystemClock, add_months, month_key, month_label, start_of_month
from ..models.forecasts import HistoricalData, HistoricalMonth
from ..models.opportunities import Opportunity

logger = structlog.get_logger()

DEFAULT_MONTHS = 6
DEFAULT_FALLBACK_AMOUNT = 50000.0
SAMPLE_COUNT_RANGE = (3, 8)
SAMPLE_VARIATION_RANGE = (80, 120)


class HistoricalAggregator:
    """Buckets won opportunities by close month.

    When nothing was won in the window a plausible sample is generated
    instead, and the result is tagged ``synthetic`` so callers can tell it
    apart from real history.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        months: int = DEFAULT_MONTHS,
        fallback_amount: float = DEFAULT_FALLBACK_AMOUNT,
    ):
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.months = months
        self.fallback_amount = fallback_amount

    def window_start(self) -> date:
        """First day of the month ``months`` months ago"""
        return start_of_month(add_months(self.clock.now(), -self.months)).date()

    def aggregate(
        self,
        won_opportunities: Iterable[Opportunity],
        average_amount: Optional[float] = None,
    ) -> HistoricalData:
        """Build the history from won opportunities.

        ``average_amount`` is the mean amount over all opportunities and only
        feeds the synthetic sample.
        """
        since = self.window_start()
        groups: "OrderedDict[str, List[float]]" = OrderedDict()

        closed = sorted(
            (
                opportunity for opportunity in won_opportunities
                if opportunity.is_won
                and opportunity.actual_close_date
                and opportunity.actual_close_date >= since
            ),
            key=lambda opportunity: opportunity.actual_close_date,
        )
        for opportunity in closed:
            groups.setdefault(month_key(opportunity.actual_close_date), []).append(opportunity.amount_value)

        if not groups:
            return self.synthesize(average_amount)

        months = []
        for key, amounts in groups.items():
            year, month = (int(part) for part in key.split("-"))
            total = sum(amounts)
            months.append(HistoricalMonth(
                month=key,
                month_label=month_label(date(year, month, 1)),
                count=len(amounts),
                total=round(total, 2),
                average=round(total / len(amounts), 2),
            ))

        return HistoricalData(synthetic=False, months=months)

    def synthesize(self, average_amount: Optional[float] = None) -> HistoricalData:
        """Sample history around the average opportunity amount"""
        base_amount = average_amount or self.fallback_amount
        now = self.clock.now()

        logger.info(
            "Historical data missing, using synthetic sample",
            months=self.months,
            base_amount=round(base_amount, 2)
        )

        months = []
        for offset in range(self.months - 1, -1, -1):
            month = add_months(now, -offset)
            count = self.rng.randint(*SAMPLE_COUNT_RANGE)
            variation = self.rng.randint(*SAMPLE_VARIATION_RANGE) / 100
            total = base_amount * count * variation
            months.append(HistoricalMonth(
                month=month_key(month),
                month_label=month_label(month),
                count=count,
                total=round(total, 2),
                average=round(total / count, 2),
            ))

        return HistoricalData(synthetic=True, months=months)
