"""
Sales Forecast Opportunity Repository
Read-only queries over the opportunity store
"""

from datetime import date, datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import Select, and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.opportunities import CLOSED_STAGE_VALUES, Opportunity, OpportunityStage


class OpportunityRepository:
    """Opportunity queries, optionally scoped to a single owner"""

    def __init__(self, db: AsyncSession, user_id: Optional[UUID] = None):
        self.db = db
        self.user_id = user_id

    def _scoped(self, query: Select) -> Select:
        if self.user_id is not None:
            query = query.where(Opportunity.user_id == self.user_id)
        return query

    async def _all(self, query: Select) -> List[Opportunity]:
        result = await self.db.execute(self._scoped(query))
        return list(result.scalars().all())

    async def list_open_closing_between(self, start: date, end: date) -> List[Opportunity]:
        """Open opportunities expected to close within [start, end]"""
        query = select(Opportunity).where(
            and_(
                Opportunity.stage.notin_(CLOSED_STAGE_VALUES),
                Opportunity.expected_close_date >= start,
                Opportunity.expected_close_date <= end,
            )
        ).order_by(Opportunity.expected_close_date)
        return await self._all(query)

    async def list_won_closed_since(self, since: date) -> List[Opportunity]:
        query = select(Opportunity).where(
            and_(
                Opportunity.stage == OpportunityStage.CONVERTED.value,
                Opportunity.actual_close_date >= since,
            )
        ).order_by(Opportunity.actual_close_date)
        return await self._all(query)

    async def list_in_stages(self, stages: Sequence[OpportunityStage]) -> List[Opportunity]:
        query = select(Opportunity).where(Opportunity.stage.in_([stage.value for stage in stages]))
        return await self._all(query)

    async def list_created_since(self, since: datetime) -> List[Opportunity]:
        query = select(Opportunity).where(Opportunity.created_at >= since)
        return await self._all(query)

    async def list_all(self) -> List[Opportunity]:
        return await self._all(select(Opportunity))

    async def average_amount(self) -> Optional[float]:
        """Mean amount over every opportunity, None when there are none"""
        result = await self.db.execute(self._scoped(select(func.avg(Opportunity.amount))))
        average = result.scalar_one_or_none()
        return float(average) if average is not None else None

    async def count(self) -> int:
        result = await self.db.execute(self._scoped(select(func.count(Opportunity.id))))
        return result.scalar_one()
