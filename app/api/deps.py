"""
Shared route dependencies
Caller identity, clock, service wiring and rejection mapping
"""

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, NoReturn, Optional
import logging

from app.config import settings
from app.domain.models import InvestmentStatus, Rejection, RejectionKind
from app.domain.services.investment_ledger import InvestmentLedger
from app.domain.services.portfolio_aggregator import PortfolioAggregator
from app.domain.services.product_catalog import ProductCatalog
from app.domain.services.valuation_engine import ValuationEngine
from app.infrastructure.db.database import get_db
from app.infrastructure.db.repositories.investment_repository import InvestmentRepository
from app.infrastructure.db.repositories.product_repository import ProductRepository
from app.utils.time import Clock, SystemClock

logger = logging.getLogger(__name__)

_system_clock = SystemClock()
_valuation_engine = ValuationEngine()

REJECTION_STATUS = {
    RejectionKind.NOT_FOUND: 404,
    RejectionKind.INVALID_AMOUNT: 400,
    RejectionKind.INVALID_TRANSITION: 400,
}


def get_clock() -> Clock:
    return _system_clock


def get_valuation_engine() -> ValuationEngine:
    return _valuation_engine


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """Caller identity, asserted by the upstream gateway"""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return user_id


def get_product_repository(db: AsyncSession = Depends(get_db)) -> ProductRepository:
    return ProductRepository(db)


def get_investment_repository(db: AsyncSession = Depends(get_db)) -> InvestmentRepository:
    return InvestmentRepository(db)


def get_catalog(
    products: ProductRepository = Depends(get_product_repository),
    clock: Clock = Depends(get_clock),
) -> ProductCatalog:
    return ProductCatalog(products, clock)


def get_ledger(
    products: ProductRepository = Depends(get_product_repository),
    investments: InvestmentRepository = Depends(get_investment_repository),
    clock: Clock = Depends(get_clock),
    valuation_engine: ValuationEngine = Depends(get_valuation_engine),
) -> InvestmentLedger:
    return InvestmentLedger(products, investments, clock, valuation_engine)


def get_aggregator(
    valuation_engine: ValuationEngine = Depends(get_valuation_engine),
) -> PortfolioAggregator:
    return PortfolioAggregator(valuation_engine)


def snapshot_statuses() -> Optional[List[InvestmentStatus]]:
    """Statuses counted in portfolio totals (None = all)"""
    if settings.PORTFOLIO_INCLUDE_CANCELLED:
        return None
    return [InvestmentStatus.ACTIVE, InvestmentStatus.MATURED]


def raise_for_rejection(rejection: Rejection) -> NoReturn:
    """Translate a business rejection into an HTTP error"""
    raise HTTPException(
        status_code=REJECTION_STATUS[rejection.kind],
        detail={"reason": rejection.reason.value, "message": rejection.message},
    )
