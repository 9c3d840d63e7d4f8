"""
Portfolio Routes
Snapshot, performance, allocation and upcoming maturities
"""

from fastapi import APIRouter, Depends, Query
from typing import Literal
import logging

from app.api.deps import (
    get_aggregator,
    get_clock,
    get_current_user_id,
    get_ledger,
    get_product_repository,
    snapshot_statuses,
)
from app.config import settings
from app.domain.models import InvestmentStatus
from app.domain.schemas.investment import to_investment_response, to_summary_response
from app.domain.schemas.portfolio import (
    AllocationResponse,
    MaturitiesResponse,
    PerformanceResponse,
    PortfolioMetricsSchema,
    PortfolioResponse,
    to_allocation_response,
    to_maturities_response,
    to_performance_response,
)
from app.domain.services import insight_engine
from app.domain.services.investment_ledger import InvestmentLedger
from app.domain.services.portfolio_aggregator import PortfolioAggregator, period_start
from app.infrastructure.db.repositories.product_repository import ProductRepository
from app.utils.time import Clock

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=PortfolioResponse)
async def get_portfolio(
    user_id: str = Depends(get_current_user_id),
    ledger: InvestmentLedger = Depends(get_ledger),
    products: ProductRepository = Depends(get_product_repository),
    aggregator: PortfolioAggregator = Depends(get_aggregator),
    clock: Clock = Depends(get_clock),
):
    """
    Full portfolio view

    Returns:
    - Totals with grouped sums
    - Every investment with its current valuation
    - Status counts and insights
    """
    investments = await ledger.list_for_user(user_id)
    products_by_id = await products.get_products_by_ids(i.product_id for i in investments)
    now = clock.now()

    snapshot = aggregator.snapshot(investments, products_by_id, now, statuses=snapshot_statuses())
    valuations = [
        aggregator.valuation_engine.value(i, products_by_id.get(i.product_id), now)
        for i in investments
    ]
    insights = await insight_engine.enrich_portfolio_insights(snapshot)

    return PortfolioResponse(
        summary=to_summary_response(snapshot),
        investments=[to_investment_response(v) for v in valuations],
        metrics=PortfolioMetricsSchema(
            active_investments=snapshot.status_counts[InvestmentStatus.ACTIVE.value],
            matured_investments=snapshot.status_counts[InvestmentStatus.MATURED.value],
            cancelled_investments=snapshot.status_counts[InvestmentStatus.CANCELLED.value],
            average_investment_amount=float(snapshot.average_investment_amount),
        ),
        insights=insights,
    )


@router.get("/performance", response_model=PerformanceResponse)
async def get_performance(
    period: Literal["1m", "3m", "6m", "1y", "2y"] = Query("1y"),
    user_id: str = Depends(get_current_user_id),
    ledger: InvestmentLedger = Depends(get_ledger),
    products: ProductRepository = Depends(get_product_repository),
    aggregator: PortfolioAggregator = Depends(get_aggregator),
    clock: Clock = Depends(get_clock),
):
    """Monthly invested vs current value for investments made in the period"""
    investments = await ledger.list_for_user(user_id)
    products_by_id = await products.get_products_by_ids(i.product_id for i in investments)
    now = clock.now()

    series = aggregator.performance_series(
        investments, products_by_id, period_start(period, now), now, now
    )
    return to_performance_response(period, series)


@router.get("/allocation", response_model=AllocationResponse)
async def get_allocation(
    user_id: str = Depends(get_current_user_id),
    ledger: InvestmentLedger = Depends(get_ledger),
    products: ProductRepository = Depends(get_product_repository),
    aggregator: PortfolioAggregator = Depends(get_aggregator),
    clock: Clock = Depends(get_clock),
):
    """Active holdings by type / risk / tenure range, with diversification score"""
    investments = await ledger.list_for_user(user_id, status=InvestmentStatus.ACTIVE)
    products_by_id = await products.get_products_by_ids(i.product_id for i in investments)

    breakdown = aggregator.allocation(investments, products_by_id, clock.now())
    return to_allocation_response(breakdown)


@router.get("/maturities", response_model=MaturitiesResponse)
async def get_upcoming_maturities(
    days: int = Query(settings.DEFAULT_MATURITY_HORIZON_DAYS, ge=0, le=3650),
    user_id: str = Depends(get_current_user_id),
    ledger: InvestmentLedger = Depends(get_ledger),
    products: ProductRepository = Depends(get_product_repository),
    aggregator: PortfolioAggregator = Depends(get_aggregator),
    clock: Clock = Depends(get_clock),
):
    """Active investments maturing within `days` (overdue ones included)"""
    investments = await ledger.list_for_user(user_id, status=InvestmentStatus.ACTIVE)
    products_by_id = await products.get_products_by_ids(i.product_id for i in investments)

    schedule = aggregator.upcoming_maturities(investments, products_by_id, clock.now(), days)
    return to_maturities_response(schedule)
