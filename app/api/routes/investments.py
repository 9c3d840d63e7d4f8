"""
Investment Routes
Create, list, annotate and cancel a user's investments
"""

from fastapi import APIRouter, Depends, Query
from decimal import Decimal
from typing import List, Optional
import logging
import math

from app.api.deps import (
    get_aggregator,
    get_clock,
    get_current_user_id,
    get_ledger,
    get_product_repository,
    get_valuation_engine,
    raise_for_rejection,
    snapshot_statuses,
)
from app.domain.models import (
    Investment,
    InvestmentStatus,
    InvestmentValuation,
    Rejection,
)
from app.domain.schemas.investment import (
    InvestmentCreateRequest,
    InvestmentListResponse,
    InvestmentResponse,
    InvestmentSummaryResponse,
    NotesUpdateRequest,
    to_investment_response,
    to_summary_response,
)
from app.domain.schemas.product import PaginationSchema
from app.domain.services.investment_ledger import InvestmentLedger
from app.domain.services.portfolio_aggregator import PortfolioAggregator
from app.domain.services.valuation_engine import ValuationEngine
from app.infrastructure.db.repositories.product_repository import ProductRepository
from app.utils.time import Clock

logger = logging.getLogger(__name__)
router = APIRouter()


async def value_investments(
    investments: List[Investment],
    products: ProductRepository,
    valuation_engine: ValuationEngine,
    clock: Clock,
) -> List[InvestmentValuation]:
    products_by_id = await products.get_products_by_ids(i.product_id for i in investments)
    now = clock.now()
    return [
        valuation_engine.value(investment, products_by_id.get(investment.product_id), now)
        for investment in investments
    ]


async def _respond(
    outcome,
    products: ProductRepository,
    valuation_engine: ValuationEngine,
    clock: Clock,
) -> InvestmentResponse:
    if isinstance(outcome, Rejection):
        raise_for_rejection(outcome)
    valuations = await value_investments([outcome], products, valuation_engine, clock)
    return to_investment_response(valuations[0])


@router.post("", response_model=InvestmentResponse, status_code=201)
async def create_investment(
    request: InvestmentCreateRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: InvestmentLedger = Depends(get_ledger),
    products: ProductRepository = Depends(get_product_repository),
    valuation_engine: ValuationEngine = Depends(get_valuation_engine),
    clock: Clock = Depends(get_clock),
):
    """
    Invest in a product

    Rules:
    - Product must exist and be active
    - Amount within the product's min / max bounds
    - expected_return and maturity_date fixed at creation
    """
    outcome = await ledger.create(
        user_id=user_id,
        product_id=request.product_id,
        amount=Decimal(str(request.amount)),
        notes=request.notes,
    )
    return await _respond(outcome, products, valuation_engine, clock)


@router.get("", response_model=InvestmentListResponse)
async def list_investments(
    status: Optional[InvestmentStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    ledger: InvestmentLedger = Depends(get_ledger),
    products: ProductRepository = Depends(get_product_repository),
    valuation_engine: ValuationEngine = Depends(get_valuation_engine),
    clock: Clock = Depends(get_clock),
):
    """User's investments (newest first) with current valuation"""
    investments = await ledger.list_for_user(user_id, status=status)
    total = len(investments)
    offset = (page - 1) * limit
    page_items = investments[offset:offset + limit]

    valuations = await value_investments(page_items, products, valuation_engine, clock)
    return InvestmentListResponse(
        investments=[to_investment_response(v) for v in valuations],
        pagination=PaginationSchema(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
    )


@router.get("/stats/summary", response_model=InvestmentSummaryResponse)
async def investment_summary(
    user_id: str = Depends(get_current_user_id),
    ledger: InvestmentLedger = Depends(get_ledger),
    products: ProductRepository = Depends(get_product_repository),
    aggregator: PortfolioAggregator = Depends(get_aggregator),
    clock: Clock = Depends(get_clock),
):
    """Totals grouped by product type, risk level and tenure range"""
    investments = await ledger.list_for_user(user_id)
    products_by_id = await products.get_products_by_ids(i.product_id for i in investments)

    snapshot = aggregator.snapshot(
        investments, products_by_id, clock.now(), statuses=snapshot_statuses()
    )
    return to_summary_response(snapshot)


@router.get("/{investment_id}", response_model=InvestmentResponse)
async def get_investment(
    investment_id: str,
    user_id: str = Depends(get_current_user_id),
    ledger: InvestmentLedger = Depends(get_ledger),
    products: ProductRepository = Depends(get_product_repository),
    valuation_engine: ValuationEngine = Depends(get_valuation_engine),
    clock: Clock = Depends(get_clock),
):
    outcome = await ledger.get(investment_id, user_id)
    return await _respond(outcome, products, valuation_engine, clock)


@router.put("/{investment_id}/notes", response_model=InvestmentResponse)
async def update_investment_notes(
    investment_id: str,
    request: NotesUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    ledger: InvestmentLedger = Depends(get_ledger),
    products: ProductRepository = Depends(get_product_repository),
    valuation_engine: ValuationEngine = Depends(get_valuation_engine),
    clock: Clock = Depends(get_clock),
):
    outcome = await ledger.update_notes(investment_id, user_id, request.notes)
    return await _respond(outcome, products, valuation_engine, clock)


@router.put("/{investment_id}/cancel", response_model=InvestmentResponse)
async def cancel_investment(
    investment_id: str,
    user_id: str = Depends(get_current_user_id),
    ledger: InvestmentLedger = Depends(get_ledger),
    products: ProductRepository = Depends(get_product_repository),
    valuation_engine: ValuationEngine = Depends(get_valuation_engine),
    clock: Clock = Depends(get_clock),
):
    """
    Cancel an active investment

    Matured or already-cancelled investments are rejected with 400.
    """
    outcome = await ledger.cancel(investment_id, user_id)
    return await _respond(outcome, products, valuation_engine, clock)
