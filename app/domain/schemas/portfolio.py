from pydantic import BaseModel
from typing import Dict, List

from app.domain.models import AllocationBreakdown, MaturitySchedule, PerformanceSeries
from app.domain.schemas.investment import (
    InvestmentResponse,
    InvestmentSummaryResponse,
    to_investment_response,
)
from app.utils.time import to_ist_iso_db


class PortfolioMetricsSchema(BaseModel):
    active_investments: int
    matured_investments: int
    cancelled_investments: int
    average_investment_amount: float


class PortfolioResponse(BaseModel):
    summary: InvestmentSummaryResponse
    investments: List[InvestmentResponse]
    metrics: PortfolioMetricsSchema
    insights: str


class PerformancePointSchema(BaseModel):
    month: str
    invested_amount: float
    current_value: float
    investment_count: int
    monthly_gain: float
    cumulative_invested: float
    cumulative_value: float
    cumulative_gain: float


class PerformanceSummarySchema(BaseModel):
    total_invested: float
    current_value: float
    total_gain: float
    total_gain_percentage: float


class PerformanceResponse(BaseModel):
    period: str
    start: str
    end: str
    performance: List[PerformancePointSchema]
    summary: PerformanceSummarySchema


class AllocationBucketSchema(BaseModel):
    value: float
    percentage: float


class AllocationResponse(BaseModel):
    total_value: float
    by_type: Dict[str, AllocationBucketSchema]
    by_risk: Dict[str, AllocationBucketSchema]
    by_tenure: Dict[str, AllocationBucketSchema]
    diversification_score: int


class MaturitySummarySchema(BaseModel):
    count: int
    total_maturity_value: float


class MaturitiesResponse(BaseModel):
    days: int
    maturities: List[InvestmentResponse]
    summary: MaturitySummarySchema


def to_performance_response(period: str, series: PerformanceSeries) -> PerformanceResponse:
    return PerformanceResponse(
        period=period,
        start=to_ist_iso_db(series.start),
        end=to_ist_iso_db(series.end),
        performance=[
            PerformancePointSchema(
                month=p.month,
                invested_amount=float(p.invested_amount),
                current_value=float(p.current_value),
                investment_count=p.investment_count,
                monthly_gain=float(p.monthly_gain),
                cumulative_invested=float(p.cumulative_invested),
                cumulative_value=float(p.cumulative_value),
                cumulative_gain=float(p.cumulative_gain),
            )
            for p in series.points
        ],
        summary=PerformanceSummarySchema(
            total_invested=float(series.total_invested),
            current_value=float(series.current_value),
            total_gain=float(series.total_gain),
            total_gain_percentage=float(series.total_gain_percentage),
        ),
    )


def to_allocation_response(breakdown: AllocationBreakdown) -> AllocationResponse:
    def buckets(values):
        return {
            key: AllocationBucketSchema(value=float(b.value), percentage=float(b.percentage))
            for key, b in values.items()
        }

    return AllocationResponse(
        total_value=float(breakdown.total_value),
        by_type=buckets(breakdown.by_type),
        by_risk=buckets(breakdown.by_risk),
        by_tenure=buckets(breakdown.by_tenure),
        diversification_score=breakdown.diversification_score,
    )


def to_maturities_response(schedule: MaturitySchedule) -> MaturitiesResponse:
    return MaturitiesResponse(
        days=schedule.horizon_days,
        maturities=[to_investment_response(entry) for entry in schedule.entries],
        summary=MaturitySummarySchema(
            count=schedule.count,
            total_maturity_value=float(schedule.total_maturity_value),
        ),
    )
