"""
PORTFOLIO AGGREGATOR
Roll a user's investments into portfolio level views

RESPONSIBILITIES:
- Portfolio totals (snapshot) with grouped sums
- Allocation of active holdings by type / risk / tenure range
- Diversification score
- Monthly performance series
- Upcoming maturities

RULES:
❌ No I/O, no per-investment external calls
❌ No hidden status filtering in snapshot (callers choose)
✅ Single linear pass over investments
✅ Every value goes through ValuationEngine
"""

from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from app.domain.models import (
    AllocationBreakdown,
    AllocationBucket,
    GroupTotals,
    InconsistentSnapshotError,
    Investment,
    InvestmentStatus,
    MaturitySchedule,
    PerformancePoint,
    PerformanceSeries,
    PortfolioSnapshot,
    Product,
)
from app.domain.services.valuation_engine import CENT, ValuationEngine
from app.utils.time import add_months

ZERO = Decimal("0")
HUNDRED = Decimal("100")

MAX_PRODUCT_TYPES = 5
MAX_RISK_LEVELS = 3
TYPE_WEIGHT = Decimal("60")
RISK_WEIGHT = Decimal("40")

PERFORMANCE_PERIODS: Dict[str, int] = {
    "1m": 1,
    "3m": 3,
    "6m": 6,
    "1y": 12,
    "2y": 24,
}
DEFAULT_PERIOD = "1y"


def tenure_bucket(tenure_months: int) -> str:
    """Fixed tenure ranges used for allocation and grouping."""
    if tenure_months <= 12:
        return "0-12 months"
    if tenure_months <= 24:
        return "13-24 months"
    if tenure_months <= 36:
        return "25-36 months"
    return "37+ months"


def period_start(period: str, end: datetime) -> datetime:
    """Start of a named lookback period (unknown names fall back to 1y)."""
    months = PERFORMANCE_PERIODS.get(period, PERFORMANCE_PERIODS[DEFAULT_PERIOD])
    return add_months(end, -months)


def _percentage(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= ZERO:
        return ZERO
    return (part / whole * HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)


class _GroupAccumulator:
    __slots__ = ("count", "invested", "current_value")

    def __init__(self):
        self.count = 0
        self.invested = ZERO
        self.current_value = ZERO

    def add(self, invested: Decimal, current_value: Decimal) -> None:
        self.count += 1
        self.invested += invested
        self.current_value += current_value

    def freeze(self) -> GroupTotals:
        return GroupTotals(
            count=self.count,
            invested=self.invested,
            current_value=self.current_value,
        )


def _freeze_groups(groups: Mapping[str, _GroupAccumulator]) -> Dict[str, GroupTotals]:
    return {key: acc.freeze() for key, acc in groups.items()}


class PortfolioAggregator:
    """
    Portfolio Aggregator
    Pure fan-in over a point-in-time snapshot of investments + products
    """

    def __init__(self, valuation_engine: Optional[ValuationEngine] = None):
        self.valuation_engine = valuation_engine or ValuationEngine()

    def snapshot(
        self,
        investments: Iterable[Investment],
        products_by_id: Mapping[str, Product],
        now: datetime,
        statuses: Optional[Iterable[InvestmentStatus]] = None
    ) -> PortfolioSnapshot:
        """
        Portfolio totals

        Args:
            investments: A user's investments
            products_by_id: Products referenced by those investments
            now: Valuation instant
            statuses: Only include these statuses (None = all, cancelled
                investments included)

        Returns:
            PortfolioSnapshot
        """
        allowed = set(statuses) if statuses is not None else None

        total_invested = ZERO
        current_total = ZERO
        count = 0
        status_counts = {status.value: 0 for status in InvestmentStatus}
        by_type: Dict[str, _GroupAccumulator] = defaultdict(_GroupAccumulator)
        by_risk: Dict[str, _GroupAccumulator] = defaultdict(_GroupAccumulator)
        by_tenure: Dict[str, _GroupAccumulator] = defaultdict(_GroupAccumulator)

        for investment in investments:
            if allowed is not None and investment.status not in allowed:
                continue

            product = products_by_id.get(investment.product_id)
            value = self.valuation_engine.current_value(investment, product, now)

            count += 1
            total_invested += investment.amount
            current_total += value
            status_counts[investment.status.value] += 1

            by_type[product.product_type.value].add(investment.amount, value)
            by_risk[product.risk_level.value].add(investment.amount, value)
            by_tenure[tenure_bucket(product.tenure_months)].add(investment.amount, value)

        total_gain = current_total - total_invested
        return PortfolioSnapshot(
            total_invested=total_invested,
            current_value=current_total,
            total_gain=total_gain,
            total_gain_percentage=_percentage(total_gain, total_invested),
            investment_count=count,
            status_counts=status_counts,
            by_type=_freeze_groups(by_type),
            by_risk=_freeze_groups(by_risk),
            by_tenure=_freeze_groups(by_tenure),
        )

    def allocation(
        self,
        investments: Iterable[Investment],
        products_by_id: Mapping[str, Product],
        now: datetime
    ) -> AllocationBreakdown:
        """
        Allocation of active holdings by current value

        Non-active investments are ignored. Each bucket carries its value
        and its percentage of total active value (0% when the total is 0).
        """
        total = ZERO
        by_type: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_risk: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_tenure: Dict[str, Decimal] = defaultdict(lambda: ZERO)

        for investment in investments:
            if investment.status != InvestmentStatus.ACTIVE:
                continue

            product = products_by_id.get(investment.product_id)
            value = self.valuation_engine.current_value(investment, product, now)

            total += value
            by_type[product.product_type.value] += value
            by_risk[product.risk_level.value] += value
            by_tenure[tenure_bucket(product.tenure_months)] += value

        def to_buckets(values: Mapping[str, Decimal]) -> Dict[str, AllocationBucket]:
            return {
                key: AllocationBucket(value=value, percentage=_percentage(value, total))
                for key, value in values.items()
            }

        return AllocationBreakdown(
            total_value=total,
            by_type=to_buckets(by_type),
            by_risk=to_buckets(by_risk),
            by_tenure=to_buckets(by_tenure),
            diversification_score=self.diversification_score(by_type, by_risk),
        )

    @staticmethod
    def diversification_score(
        type_buckets: Iterable[str],
        risk_buckets: Iterable[str]
    ) -> int:
        """
        0-100 score: 60 points for spread across product types (full at 5),
        40 points for spread across risk levels (full at 3)
        """
        type_count = Decimal(len(set(type_buckets)))
        risk_count = Decimal(len(set(risk_buckets)))

        type_score = min(type_count / MAX_PRODUCT_TYPES, Decimal("1")) * TYPE_WEIGHT
        risk_score = min(risk_count / MAX_RISK_LEVELS, Decimal("1")) * RISK_WEIGHT
        return int((type_score + risk_score).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def performance_series(
        self,
        investments: Iterable[Investment],
        products_by_id: Mapping[str, Product],
        start: datetime,
        end: datetime,
        now: datetime
    ) -> PerformanceSeries:
        """
        Monthly performance for investments made within [start, end]

        Points are keyed by the calendar month of invested_at, ascending;
        months without investments are omitted.
        """
        monthly: Dict[str, List] = {}

        for investment in investments:
            if not start <= investment.invested_at <= end:
                continue

            product = products_by_id.get(investment.product_id)
            value = self.valuation_engine.current_value(investment, product, now)

            key = investment.invested_at.strftime("%Y-%m")
            bucket = monthly.setdefault(key, [ZERO, ZERO, 0])
            bucket[0] += investment.amount
            bucket[1] += value
            bucket[2] += 1

        points: List[PerformancePoint] = []
        cumulative_invested = ZERO
        cumulative_value = ZERO
        for month in sorted(monthly):
            invested, value, count = monthly[month]
            cumulative_invested += invested
            cumulative_value += value
            points.append(PerformancePoint(
                month=month,
                invested_amount=invested,
                current_value=value,
                investment_count=count,
                monthly_gain=value - invested,
                cumulative_invested=cumulative_invested,
                cumulative_value=cumulative_value,
                cumulative_gain=cumulative_value - cumulative_invested,
            ))

        total_gain = cumulative_value - cumulative_invested
        return PerformanceSeries(
            start=start,
            end=end,
            points=points,
            total_invested=cumulative_invested,
            current_value=cumulative_value,
            total_gain=total_gain,
            total_gain_percentage=_percentage(total_gain, cumulative_invested),
        )

    def upcoming_maturities(
        self,
        investments: Sequence[Investment],
        products_by_id: Mapping[str, Product],
        now: datetime,
        horizon_days: int
    ) -> MaturitySchedule:
        """
        Active investments maturing on or before now + horizon_days

        Overdue (unsettled) investments are included. Entries are ordered by
        ascending maturity date and valued at `now`.
        """
        cutoff = now + timedelta(days=horizon_days)

        entries = []
        for investment in investments:
            if investment.status != InvestmentStatus.ACTIVE:
                continue
            if investment.maturity_date is None:
                raise InconsistentSnapshotError(
                    f"Investment {investment.id} has no maturity_date"
                )
            if investment.maturity_date <= cutoff:
                entries.append(self.valuation_engine.value(
                    investment, products_by_id.get(investment.product_id), now
                ))
        entries.sort(key=lambda entry: entry.investment.maturity_date)

        total = sum(
            (entry.investment.expected_return for entry in entries),
            ZERO,
        )
        return MaturitySchedule(
            horizon_days=horizon_days,
            entries=entries,
            total_maturity_value=total,
        )
