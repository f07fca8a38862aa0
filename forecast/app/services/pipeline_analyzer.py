"""
Sales Forecast Pipeline Analyzer
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..core.clock import Clock, SystemClock, month_key, whole_days_between
from ..core.rounding import round_int
from ..models.forecasts import PipelineSummary, StageBucket
from ..models.opportunities import Opportunity, OpportunityStage


class PipelineAnalyzer:
    """Aggregates open opportunities per pipeline stage"""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()

    def analyze(self, opportunities: Iterable[Opportunity]) -> List[StageBucket]:
        """One bucket per open stage, always in pipeline order"""
        now = self.clock.now()
        by_stage: Dict[str, List[Opportunity]] = {stage.value: [] for stage in OpportunityStage.open_stages()}
        for opportunity in opportunities:
            if opportunity.stage in by_stage:
                by_stage[opportunity.stage].append(opportunity)

        return [
            self._bucket(stage, by_stage[stage.value], now)
            for stage in OpportunityStage.open_stages()
        ]

    @staticmethod
    def _bucket(stage: OpportunityStage, opportunities: List[Opportunity], now: datetime) -> StageBucket:
        total_value = sum(opportunity.amount_value for opportunity in opportunities)
        count = len(opportunities)

        days = [
            whole_days_between(opportunity.updated_at, now)
            for opportunity in opportunities
            if opportunity.updated_at is not None
        ]

        return StageBucket(
            stage=stage.value,
            label=stage.label,
            probability=stage.probability,
            count=count,
            total_value=round(total_value, 2),
            weighted_value=round(total_value * (stage.probability / 100), 2),
            average_value=round(total_value / count, 2) if count else 0.0,
            average_days_in_stage=round_int(sum(days) / len(days)) if days else 0,
        )


def summarize_pipeline(
    opportunities: Iterable[Opportunity],
    now: datetime,
    currency: str = "EUR",
) -> PipelineSummary:
    """Headline figures: open pipeline, weighted pipeline, won this month"""
    opportunities = list(opportunities)
    today = now.date()
    current_month = month_key(now)

    open_opportunities = [opportunity for opportunity in opportunities if not opportunity.is_closed]
    won_this_month = sum(
        opportunity.amount_value
        for opportunity in opportunities
        if opportunity.is_won
        and opportunity.actual_close_date
        and month_key(opportunity.actual_close_date) == current_month
    )

    return PipelineSummary(
        total_opportunities=len(opportunities),
        open_opportunities=len(open_opportunities),
        pipeline_value=round(sum(o.amount_value for o in open_opportunities), 2),
        weighted_pipeline=round(sum(o.weighted_amount for o in open_opportunities), 2),
        won_this_month=round(won_this_month, 2),
        overdue_opportunities=sum(1 for o in open_opportunities if o.is_overdue(today)),
        currency=currency,
    )
