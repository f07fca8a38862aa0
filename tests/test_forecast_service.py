"""
Test the forecast service against a real database session
"""

import random
import uuid
from datetime import date, timedelta

import pytest
import pytest_asyncio

from forecast.app.services.forecast_service import ForecastService
from forecast.app.services.opportunity_repository import OpportunityRepository


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest_asyncio.fixture
async def seeded_db(test_db, now, make_opportunity, owner_id):
    other_owner = uuid.uuid4()
    test_db.add_all([
        make_opportunity(amount=10000, probability=90, stage="negotiation",
                         expected_close_date=date(2026, 5, 25), user_id=owner_id,
                         created_at=now - timedelta(days=20), updated_at=now - timedelta(days=6)),
        make_opportunity(amount=6000, probability=25, stage="qualification",
                         expected_close_date=date(2026, 6, 12), user_id=owner_id,
                         created_at=now - timedelta(days=40), updated_at=now - timedelta(days=2)),
        make_opportunity(amount=3000, probability=10, stage="new",
                         expected_close_date=date(2026, 9, 1), user_id=other_owner,
                         created_at=now - timedelta(days=5)),
        make_opportunity(amount=8000, probability=100, stage="converted",
                         actual_close_date=date(2026, 4, 20), user_id=owner_id,
                         created_at=now - timedelta(days=60)),
        make_opportunity(amount=4000, probability=0, stage="lost",
                         actual_close_date=date(2026, 4, 22), user_id=other_owner,
                         created_at=now - timedelta(days=300)),
    ])
    await test_db.commit()
    return test_db


@pytest.mark.asyncio
async def test_repository_queries(seeded_db, owner_id):
    repository = OpportunityRepository(seeded_db)

    closing = await repository.list_open_closing_between(date(2026, 5, 1), date(2026, 6, 30))
    assert sorted(o.amount_value for o in closing) == [6000, 10000]

    won = await repository.list_won_closed_since(date(2026, 4, 1))
    assert [o.amount_value for o in won] == [8000]

    assert await repository.count() == 5
    assert await repository.average_amount() == pytest.approx(6200)

    scoped = OpportunityRepository(seeded_db, user_id=owner_id)
    assert await scoped.count() == 3
    assert await scoped.average_amount() == pytest.approx(8000)


@pytest.mark.asyncio
async def test_generate_report(seeded_db, clock):
    service = ForecastService(seeded_db, clock=clock, rng=random.Random(3))

    report = await service.generate_report(period="quarter", scenario="realistic")

    may, june = report.forecasts.monthly
    assert may.committed == 10000
    assert may.opportunities_count == 1
    assert june.pipeline == 6000
    assert report.forecasts.totals.total == 16000

    assert report.historicalData.synthetic is False
    assert [(m.month, m.total) for m in report.historicalData.months] == [("2026-04", 8000)]

    pipeline = {bucket.stage: bucket for bucket in report.pipelineAnalysis}
    assert pipeline["negotiation"].average_days_in_stage == 6
    assert pipeline["new"].total_value == 3000

    # lost deal was created before the window
    assert report.conversionRates.total_opportunities == 4
    assert report.conversionRates.won_opportunities == 1
    assert report.filters.period.value == "quarter"


@pytest.mark.asyncio
async def test_owner_scope(seeded_db, clock, owner_id):
    service = ForecastService(seeded_db, clock=clock, rng=random.Random(3), user_id=owner_id)

    report = await service.generate_report(period="year")

    assert report.forecasts.totals.opportunities_count == 2
    assert report.filters.user_id == str(owner_id)
    assert {b.stage: b.count for b in report.pipelineAnalysis}["new"] == 0


@pytest.mark.asyncio
async def test_empty_store_still_renders(test_db, clock):
    service = ForecastService(test_db, clock=clock, rng=random.Random(3))

    report = await service.generate_report(period="bogus", scenario="bogus")

    assert report.filters.period.value == "quarter"
    assert report.filters.scenario.value == "realistic"
    assert len(report.forecasts.monthly) == 2
    assert report.historicalData.synthetic is True
    assert len(report.historicalData.months) == 6
    assert len(report.pipelineAnalysis) == 4
    assert report.conversionRates.estimated is True


@pytest.mark.asyncio
async def test_pipeline_summary(seeded_db, clock):
    summary = await ForecastService(seeded_db, clock=clock).get_pipeline_summary()

    assert summary.total_opportunities == 5
    assert summary.open_opportunities == 3
    assert summary.pipeline_value == 19000
    assert summary.won_this_month == 0
