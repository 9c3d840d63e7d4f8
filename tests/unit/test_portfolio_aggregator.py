"""
Unit Tests for PortfolioAggregator
"""

import pytest
from datetime import datetime
from decimal import Decimal

from app.domain.models import (
    InconsistentSnapshotError,
    Investment,
    InvestmentStatus,
    Product,
    ProductType,
    RiskLevel,
)
from app.domain.services.portfolio_aggregator import (
    PortfolioAggregator,
    period_start,
    tenure_bucket,
)
from app.domain.services.valuation_engine import ValuationEngine


ENGINE = ValuationEngine()

BOND = Product(
    id="bond",
    name="Secure Bond",
    product_type=ProductType.BOND,
    tenure_months=12,
    annual_yield=Decimal("12"),
    risk_level=RiskLevel.LOW,
)
FD = Product(
    id="fd",
    name="Zero Coupon FD",
    product_type=ProductType.FD,
    tenure_months=24,
    annual_yield=Decimal("0"),
    risk_level=RiskLevel.MODERATE,
)
PRODUCTS = {p.id: p for p in (BOND, FD)}


def make_investment(
    investment_id: str,
    product: Product,
    amount: str,
    invested_at: datetime,
    status: InvestmentStatus = InvestmentStatus.ACTIVE,
) -> Investment:
    principal = Decimal(amount)
    return Investment(
        id=investment_id,
        user_id="user-1",
        product_id=product.id,
        amount=principal,
        invested_at=invested_at,
        status=status,
        expected_return=ENGINE.expected_return(principal, product.annual_yield, product.tenure_months),
        maturity_date=ENGINE.maturity_date(invested_at, product.tenure_months),
    )


@pytest.fixture
def aggregator():
    return PortfolioAggregator(ENGINE)


@pytest.fixture
def holdings():
    start = datetime(2026, 1, 15, 10, 0)
    return [
        make_investment("a", BOND, "10000", start),
        make_investment("b", FD, "5000", start),
        make_investment("c", BOND, "2000", start, status=InvestmentStatus.CANCELLED),
    ]


# Past every maturity in `holdings`: values equal expected returns
LATER = datetime(2028, 6, 1)


class TestSnapshot:
    def test_empty_portfolio(self, aggregator):
        snapshot = aggregator.snapshot([], {}, LATER)

        assert snapshot.total_invested == Decimal("0")
        assert snapshot.current_value == Decimal("0")
        assert snapshot.total_gain_percentage == Decimal("0")
        assert snapshot.investment_count == 0
        assert snapshot.average_investment_amount == Decimal("0")

    def test_includes_all_statuses_by_default(self, aggregator, holdings):
        snapshot = aggregator.snapshot(holdings, PRODUCTS, LATER)

        # 11268.25 + 5000 + 2253.65
        assert snapshot.total_invested == Decimal("17000")
        assert snapshot.current_value == Decimal("18521.90")
        assert snapshot.total_gain == Decimal("1521.90")
        assert snapshot.total_gain_percentage == Decimal("8.95")
        assert snapshot.investment_count == 3
        assert snapshot.status_counts == {"active": 2, "matured": 0, "cancelled": 1}
        assert snapshot.average_investment_amount == Decimal("5666.67")

    def test_status_filter(self, aggregator, holdings):
        snapshot = aggregator.snapshot(
            holdings, PRODUCTS, LATER,
            statuses=[InvestmentStatus.ACTIVE, InvestmentStatus.MATURED],
        )

        assert snapshot.total_invested == Decimal("15000")
        assert snapshot.current_value == Decimal("16268.25")
        # 1268.25 / 15000 = 8.455% -> half-up
        assert snapshot.total_gain_percentage == Decimal("8.46")
        assert snapshot.status_counts["cancelled"] == 0

    def test_grouped_totals(self, aggregator, holdings):
        snapshot = aggregator.snapshot(holdings, PRODUCTS, LATER)

        assert snapshot.by_type["bond"].count == 2
        assert snapshot.by_type["bond"].invested == Decimal("12000")
        assert snapshot.by_type["bond"].current_value == Decimal("13521.90")
        assert snapshot.by_type["fd"].count == 1
        assert set(snapshot.by_risk) == {"low", "moderate"}
        assert snapshot.by_tenure["0-12 months"].count == 2
        assert snapshot.by_tenure["13-24 months"].count == 1

    def test_missing_product_raises(self, aggregator, holdings):
        with pytest.raises(InconsistentSnapshotError):
            aggregator.snapshot(holdings, {"bond": BOND}, LATER)


class TestAllocation:
    def test_active_only_with_percentages(self, aggregator, holdings):
        allocation = aggregator.allocation(holdings, PRODUCTS, LATER)

        assert allocation.total_value == Decimal("16268.25")
        assert allocation.by_type["bond"].value == Decimal("11268.25")
        assert allocation.by_type["bond"].percentage == Decimal("69.27")
        assert allocation.by_type["fd"].percentage == Decimal("30.73")
        assert allocation.by_risk["low"].value == Decimal("11268.25")
        assert set(allocation.by_tenure) == {"0-12 months", "13-24 months"}
        assert allocation.diversification_score == 51

    def test_empty_allocation(self, aggregator):
        allocation = aggregator.allocation([], PRODUCTS, LATER)

        assert allocation.total_value == Decimal("0")
        assert allocation.by_type == {}
        assert allocation.diversification_score == 0

    def test_cancelled_only_is_empty(self, aggregator):
        cancelled = make_investment(
            "x", BOND, "1000", datetime(2026, 1, 1), status=InvestmentStatus.CANCELLED
        )
        allocation = aggregator.allocation([cancelled], PRODUCTS, LATER)
        assert allocation.total_value == Decimal("0")


class TestDiversificationScore:
    @pytest.mark.parametrize(
        "types,risks,expected",
        [
            ([], [], 0),
            (["bond"], ["low"], 25),
            (["bond", "fd"], ["low"], 37),
            (["bond", "fd", "mf"], ["low", "high"], 63),
            (["bond", "fd", "mf", "etf", "other"], ["low", "moderate", "high"], 100),
        ],
    )
    def test_score(self, types, risks, expected):
        assert PortfolioAggregator.diversification_score(types, risks) == expected

    def test_duplicates_do_not_count(self):
        assert PortfolioAggregator.diversification_score(["bond", "bond"], ["low", "low"]) == 25


class TestTenureBucket:
    @pytest.mark.parametrize(
        "months,bucket",
        [
            (1, "0-12 months"),
            (12, "0-12 months"),
            (13, "13-24 months"),
            (24, "13-24 months"),
            (25, "25-36 months"),
            (36, "25-36 months"),
            (37, "37+ months"),
            (600, "37+ months"),
        ],
    )
    def test_bucket_boundaries(self, months, bucket):
        assert tenure_bucket(months) == bucket


class TestPerformanceSeries:
    def test_monthly_points_with_running_totals(self, aggregator):
        investments = [
            make_investment("a", BOND, "10000", datetime(2026, 1, 15, 10, 0)),
            make_investment("b", FD, "5000", datetime(2026, 1, 20, 10, 0)),
            make_investment("d", BOND, "3000", datetime(2026, 3, 10, 10, 0)),
            # outside the window
            make_investment("e", BOND, "7000", datetime(2025, 11, 1, 10, 0)),
        ]

        series = aggregator.performance_series(
            investments, PRODUCTS, datetime(2026, 1, 1), datetime(2026, 12, 31), LATER
        )

        assert [p.month for p in series.points] == ["2026-01", "2026-03"]
        january, march = series.points
        assert january.invested_amount == Decimal("15000")
        assert january.current_value == Decimal("16268.25")
        assert january.investment_count == 2
        assert january.monthly_gain == Decimal("1268.25")
        assert march.current_value == Decimal("3380.48")
        assert march.cumulative_invested == Decimal("18000")
        assert march.cumulative_value == Decimal("19648.73")
        assert march.cumulative_gain == Decimal("1648.73")
        assert series.total_gain_percentage == Decimal("9.16")

    def test_empty_window(self, aggregator):
        series = aggregator.performance_series(
            [], PRODUCTS, datetime(2026, 1, 1), datetime(2026, 2, 1), LATER
        )
        assert series.points == []
        assert series.total_gain_percentage == Decimal("0")

    def test_period_start(self):
        end = datetime(2026, 3, 31, 12, 0)
        assert period_start("1m", end) == datetime(2026, 2, 28, 12, 0)
        assert period_start("1y", end) == datetime(2025, 3, 31, 12, 0)
        assert period_start("unknown", end) == period_start("1y", end)


class TestUpcomingMaturities:
    def test_window_ordering_and_totals(self, aggregator):
        now = datetime(2026, 1, 15, 10, 0)
        investments = [
            make_investment("soon", BOND, "1000", datetime(2025, 1, 20, 10, 0)),
            make_investment("later", BOND, "1000", datetime(2025, 2, 1, 10, 0)),
            make_investment("overdue", BOND, "1000", datetime(2025, 1, 1, 10, 0)),
            make_investment("outside", BOND, "1000", datetime(2025, 6, 1, 10, 0)),
            make_investment(
                "cancelled", BOND, "1000", datetime(2025, 1, 25, 10, 0),
                status=InvestmentStatus.CANCELLED,
            ),
        ]

        schedule = aggregator.upcoming_maturities(investments, PRODUCTS, now, 30)

        assert [e.investment.id for e in schedule.entries] == ["overdue", "soon", "later"]
        assert [e.days_to_maturity for e in schedule.entries] == [0, 5, 17]
        assert schedule.count == 3
        assert schedule.total_maturity_value == Decimal("3380.49")
        assert schedule.horizon_days == 30

    def test_missing_maturity_date_raises(self, aggregator):
        broken = Investment(
            id="broken",
            user_id="user-1",
            product_id="bond",
            amount=Decimal("1000"),
            invested_at=datetime(2026, 1, 1),
            status=InvestmentStatus.ACTIVE,
            expected_return=Decimal("1126.83"),
            maturity_date=None,
        )
        with pytest.raises(InconsistentSnapshotError):
            aggregator.upcoming_maturities([broken], PRODUCTS, datetime(2026, 1, 2), 30)
