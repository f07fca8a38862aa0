"""
Sales Forecast Conversion Rate Estimator
Stage-to-stage progression over the trailing creation window
"""

from collections import Counter
from datetime import datetime
from typing import Iterable, Optional

from ..core.clock import Clock, SystemClock, add_months, ensure_utc, start_of_month
from ..core.rounding import round_float, round_int
from ..models.forecasts import ConversionEdge, ConversionRates
from ..models.opportunities import Opportunity, OpportunityStage

DEFAULT_WINDOW_MONTHS = 3

# Substituted when a pair or the whole window has no data
PLACEHOLDER_PAIR_TOTAL = 10
PLACEHOLDER_OVERALL_TOTAL = 20
PLACEHOLDER_OVERALL_WON = 4


def _rate(part: int, whole: int) -> float:
    return round_float(part / whole * 100, 1) if whole > 0 else 0.0


def _placeholder_progressed(probability: int) -> int:
    """Share of the placeholder total expected to move on, rounded half up"""
    return round_int(PLACEHOLDER_PAIR_TOTAL * (100 - probability) / 100)


class ConversionRateEstimator:
    """Estimates how many opportunities made it past each stage.

    An opportunity counts as having progressed from a stage when it now sits
    in the next stage or any later one of the progression.
    """

    def __init__(self, clock: Optional[Clock] = None, window_months: int = DEFAULT_WINDOW_MONTHS):
        self.clock = clock or SystemClock()
        self.window_months = window_months

    def window_start(self) -> datetime:
        return start_of_month(add_months(self.clock.now(), -self.window_months))

    def estimate(self, opportunities: Iterable[Opportunity]) -> ConversionRates:
        since = self.window_start()
        in_window = [
            opportunity for opportunity in opportunities
            if opportunity.created_at is not None and ensure_utc(opportunity.created_at) >= since
        ]
        counts = Counter(opportunity.stage for opportunity in in_window)
        progression = OpportunityStage.progression()

        stage_rates = []
        for stage in progression:
            next_stage = stage.next_stage
            if next_stage is None:
                continue
            current_count = counts[stage.value]
            next_count = sum(
                counts[later.value] for later in progression
                if later.info.order >= next_stage.info.order
            )

            total = current_count + next_count
            progressed = next_count
            estimated = total == 0
            if estimated:
                total = PLACEHOLDER_PAIR_TOTAL
                progressed = _placeholder_progressed(stage.probability)

            stage_rates.append(ConversionEdge(
                from_stage=stage.value,
                to_stage=next_stage.value,
                from_label=stage.label,
                to_label=next_stage.label,
                rate=_rate(progressed, total),
                progressed=progressed,
                total=total,
                estimated=estimated,
            ))

        total_opportunities = len(in_window)
        won_opportunities = counts[OpportunityStage.CONVERTED.value]
        estimated = total_opportunities == 0
        if estimated:
            total_opportunities = PLACEHOLDER_OVERALL_TOTAL
            won_opportunities = PLACEHOLDER_OVERALL_WON

        return ConversionRates(
            stage_rates=stage_rates,
            overall_rate=_rate(won_opportunities, total_opportunities),
            total_opportunities=total_opportunities,
            won_opportunities=won_opportunities,
            estimated=estimated,
        )
