"""
VALUATION ENGINE
Price a single investment at any instant between purchase and maturity

RESPONSIBILITIES:
- Project the maturity value at investment time (monthly compounding)
- Interpolate current value linearly over the holding period
- Derive gain/loss and days to maturity

RULES (LOCKED):
❌ No I/O, no clock reads ("now" is always passed in)
❌ No extrapolation past maturity without a settlement
❌ No silent defaults for missing terms
✅ Settled actual_return overrides interpolation
✅ Currency values quantized to 2 places (half-up)
"""

from datetime import datetime, timedelta
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP, localcontext
from typing import Optional, Union

from app.domain.models import (
    GainLoss,
    InconsistentSnapshotError,
    Investment,
    InvestmentStatus,
    InvestmentValuation,
    Product,
)
from app.utils.time import add_months

CENT = Decimal("0.01")
_MICROSECOND = timedelta(microseconds=1)
_DAY_MICROS = timedelta(days=1) // _MICROSECOND

Number = Union[Decimal, int, float, str]


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _micros(delta: timedelta) -> int:
    return delta // _MICROSECOND


class ValuationEngine:
    """
    Valuation Engine
    Stateless; safe to share across requests and tasks.
    """

    def expected_return(
        self,
        amount: Number,
        annual_yield_pct: Number,
        tenure_months: int
    ) -> Decimal:
        """
        Projected maturity value with monthly compounding

        amount * (1 + annual_yield_pct / 100 / 12) ** tenure_months

        Args:
            amount: Principal
            annual_yield_pct: Annual yield in percent (12 means 12%)
            tenure_months: Holding period in whole months

        Returns:
            Maturity value rounded to currency precision
        """
        principal = _to_decimal(amount)
        tenure = int(tenure_months)
        with localcontext() as ctx:
            # Enough digits for the integer part of the result plus cents
            growth = (Decimal("1") + _to_decimal(annual_yield_pct) / Decimal("1200")).log10() * tenure
            digits = max(principal.adjusted(), 0) + int(growth.to_integral_value(rounding=ROUND_CEILING))
            ctx.prec = max(ctx.prec, digits + 30)

            monthly_rate = _to_decimal(annual_yield_pct) / Decimal("100") / Decimal("12")
            projected = principal * (Decimal("1") + monthly_rate) ** tenure
            return projected.quantize(CENT, rounding=ROUND_HALF_UP)

    def maturity_date(self, invested_at: datetime, tenure_months: int) -> datetime:
        """Purchase instant shifted by the product tenure."""
        return add_months(invested_at, int(tenure_months))

    def current_value(
        self,
        investment: Investment,
        product: Optional[Product],
        now: datetime
    ) -> Decimal:
        """
        Time-interpolated value of an investment

        Args:
            investment: Investment record
            product: Product the investment was priced against
            now: Valuation instant

        Returns:
            Settled value for matured investments, otherwise the linear
            interpolation between amount and expected_return

        Raises:
            InconsistentSnapshotError: Investment/product pair is unusable
        """
        self._check_snapshot(investment, product)

        if investment.status == InvestmentStatus.MATURED and investment.actual_return is not None:
            return investment.actual_return

        if now <= investment.invested_at:
            return investment.amount
        if now >= investment.maturity_date:
            return investment.expected_return

        total = _micros(investment.maturity_date - investment.invested_at)
        elapsed = _micros(now - investment.invested_at)
        progress = Decimal(elapsed) / Decimal(total)

        value = investment.amount + (investment.expected_return - investment.amount) * progress
        return value.quantize(CENT, rounding=ROUND_HALF_UP)

    def gain_loss(
        self,
        investment: Investment,
        product: Optional[Product],
        now: datetime
    ) -> GainLoss:
        """Gain over the invested amount, absolute and in percent."""
        current = self.current_value(investment, product, now)
        return self._gain_loss(current, investment.amount)

    def days_to_maturity(self, investment: Investment, now: datetime) -> int:
        """Whole days left until maturity (ceiling), never negative."""
        if investment.status == InvestmentStatus.MATURED:
            return 0
        if investment.maturity_date is None:
            raise InconsistentSnapshotError(
                f"Investment {investment.id} has no maturity_date"
            )

        remaining = _micros(investment.maturity_date - now)
        days = -(-remaining // _DAY_MICROS)
        return max(0, days)

    def value(
        self,
        investment: Investment,
        product: Optional[Product],
        now: datetime
    ) -> InvestmentValuation:
        """Attach all derived fields to an investment for a response."""
        current = self.current_value(investment, product, now)
        return InvestmentValuation(
            investment=investment,
            product=product,
            current_value=current,
            gain_loss=self._gain_loss(current, investment.amount),
            days_to_maturity=self.days_to_maturity(investment, now),
        )

    @staticmethod
    def _gain_loss(current: Decimal, amount: Decimal) -> GainLoss:
        absolute = current - amount
        percentage = (absolute / amount * Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
        return GainLoss(absolute=absolute, percentage=percentage)

    @staticmethod
    def _check_snapshot(investment: Investment, product: Optional[Product]) -> None:
        if product is None:
            raise InconsistentSnapshotError(
                f"Investment {investment.id} references missing product {investment.product_id}"
            )
        if product.id != investment.product_id:
            raise InconsistentSnapshotError(
                f"Investment {investment.id} valued against product {product.id}, "
                f"expected {investment.product_id}"
            )
        if product.tenure_months is None or product.annual_yield is None:
            raise InconsistentSnapshotError(
                f"Product {product.id} is missing tenure_months or annual_yield"
            )
        if investment.expected_return is None or investment.maturity_date is None:
            raise InconsistentSnapshotError(
                f"Investment {investment.id} is missing expected_return or maturity_date"
            )
