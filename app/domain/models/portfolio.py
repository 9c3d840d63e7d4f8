"""
DOMAIN MODELS - PORTFOLIO

Immutable structures derived from investments at query time.
No database access. Never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List

from .entities import InvestmentValuation


@dataclass(frozen=True)
class GroupTotals:
    """Totals for one group (product type, risk level or tenure bucket)"""
    count: int
    invested: Decimal
    current_value: Decimal


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Portfolio totals at a point in time."""
    total_invested: Decimal
    current_value: Decimal
    total_gain: Decimal
    total_gain_percentage: Decimal
    investment_count: int
    status_counts: Dict[str, int] = field(default_factory=dict)
    by_type: Dict[str, GroupTotals] = field(default_factory=dict)
    by_risk: Dict[str, GroupTotals] = field(default_factory=dict)
    by_tenure: Dict[str, GroupTotals] = field(default_factory=dict)

    @property
    def average_investment_amount(self) -> Decimal:
        if self.investment_count == 0:
            return Decimal("0")
        return (self.total_invested / self.investment_count).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class AllocationBucket:
    value: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class AllocationBreakdown:
    """Active holdings split by type, risk and tenure range."""
    total_value: Decimal
    by_type: Dict[str, AllocationBucket]
    by_risk: Dict[str, AllocationBucket]
    by_tenure: Dict[str, AllocationBucket]
    diversification_score: int


@dataclass(frozen=True)
class PerformancePoint:
    """One calendar month of investments."""
    month: str
    invested_amount: Decimal
    current_value: Decimal
    investment_count: int
    monthly_gain: Decimal
    cumulative_invested: Decimal
    cumulative_value: Decimal
    cumulative_gain: Decimal


@dataclass(frozen=True)
class PerformanceSeries:
    start: datetime
    end: datetime
    points: List[PerformancePoint]
    total_invested: Decimal
    current_value: Decimal
    total_gain: Decimal
    total_gain_percentage: Decimal


@dataclass(frozen=True)
class MaturitySchedule:
    """Active investments maturing within a horizon."""
    horizon_days: int
    entries: List[InvestmentValuation]
    total_maturity_value: Decimal

    @property
    def count(self) -> int:
        return len(self.entries)
