from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from app.domain.models import InvestmentValuation, PortfolioSnapshot
from app.domain.models.entities import MAX_NOTES_LENGTH
from app.domain.schemas.product import PaginationSchema
from app.utils.time import to_ist_iso_db


class InvestmentCreateRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


class NotesUpdateRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)


class ProductSummarySchema(BaseModel):
    id: str
    name: str
    product_type: str
    annual_yield: float
    risk_level: str
    tenure_months: int
    is_active: bool


class GainLossSchema(BaseModel):
    absolute: float
    percentage: float


class InvestmentResponse(BaseModel):
    id: str
    user_id: str
    product_id: str
    amount: float
    invested_at: str
    status: str
    expected_return: Optional[float]
    maturity_date: Optional[str]
    actual_return: Optional[float]
    notes: Optional[str]
    current_value: float
    gain_loss: GainLossSchema
    days_to_maturity: int
    product: ProductSummarySchema


class InvestmentListResponse(BaseModel):
    investments: List[InvestmentResponse]
    pagination: PaginationSchema


class GroupTotalsSchema(BaseModel):
    count: int
    invested: float
    current_value: float


class InvestmentSummaryResponse(BaseModel):
    total_investments: int
    total_invested: float
    current_value: float
    total_gain: float
    total_gain_percentage: float
    average_investment_amount: float
    status_counts: Dict[str, int]
    by_type: Dict[str, GroupTotalsSchema]
    by_risk: Dict[str, GroupTotalsSchema]
    by_tenure: Dict[str, GroupTotalsSchema]


def to_investment_response(valuation: InvestmentValuation) -> InvestmentResponse:
    investment = valuation.investment
    product = valuation.product
    return InvestmentResponse(
        id=investment.id,
        user_id=investment.user_id,
        product_id=investment.product_id,
        amount=float(investment.amount),
        invested_at=to_ist_iso_db(investment.invested_at),
        status=investment.status.value,
        expected_return=float(investment.expected_return) if investment.expected_return is not None else None,
        maturity_date=to_ist_iso_db(investment.maturity_date) if investment.maturity_date else None,
        actual_return=float(investment.actual_return) if investment.actual_return is not None else None,
        notes=investment.notes,
        current_value=float(valuation.current_value),
        gain_loss=GainLossSchema(
            absolute=float(valuation.gain_loss.absolute),
            percentage=float(valuation.gain_loss.percentage),
        ),
        days_to_maturity=valuation.days_to_maturity,
        product=ProductSummarySchema(
            id=product.id,
            name=product.name,
            product_type=product.product_type.value,
            annual_yield=float(product.annual_yield),
            risk_level=product.risk_level.value,
            tenure_months=product.tenure_months,
            is_active=product.is_active,
        ),
    )


def _groups(groups) -> Dict[str, GroupTotalsSchema]:
    return {
        key: GroupTotalsSchema(
            count=totals.count,
            invested=float(totals.invested),
            current_value=float(totals.current_value),
        )
        for key, totals in groups.items()
    }


def to_summary_response(snapshot: PortfolioSnapshot) -> InvestmentSummaryResponse:
    return InvestmentSummaryResponse(
        total_investments=snapshot.investment_count,
        total_invested=float(snapshot.total_invested),
        current_value=float(snapshot.current_value),
        total_gain=float(snapshot.total_gain),
        total_gain_percentage=float(snapshot.total_gain_percentage),
        average_investment_amount=float(snapshot.average_investment_amount),
        status_counts=dict(snapshot.status_counts),
        by_type=_groups(snapshot.by_type),
        by_risk=_groups(snapshot.by_risk),
        by_tenure=_groups(snapshot.by_tenure),
    )
