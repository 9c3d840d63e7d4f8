"""
INVESTMENT LEDGER - ASYNC
Owns investment records and their status transitions

RESPONSIBILITIES:
- Price new investments (expected_return, maturity_date) from the product
  snapshot read at creation time
- Enforce amount bounds and the status state machine
- Delegate every write to the storage collaborator

STATE MACHINE:
  active -> cancelled   (owner)
  active -> matured     (settlement process)
  matured / cancelled   terminal

RULES:
❌ No engine-side locks (status changes are compare-and-swap in storage)
❌ No exceptions for business rejections (Rejection values instead)
✅ Product edits never touch existing investments
✅ Exactly one of two concurrent cancels succeeds
"""

import logging
from dataclasses import replace
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Protocol

from app.domain.models import (
    Investment,
    InvestmentDraft,
    InvestmentStatus,
    Outcome,
    Product,
    Rejection,
    RejectionReason,
)
from app.domain.models.entities import MAX_AMOUNT
from app.domain.services.valuation_engine import CENT, ValuationEngine
from app.utils.time import Clock

logger = logging.getLogger(__name__)


class ProductStore(Protocol):
    """Protocol for product data access - ASYNC"""

    async def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by id, active or not"""
        ...


class InvestmentStore(Protocol):
    """Protocol for investment data access - ASYNC"""

    async def get_investment(self, investment_id: str) -> Optional[Investment]:
        """Get an investment by id"""
        ...

    async def get_investments_by_user(
        self,
        user_id: str,
        status: Optional[InvestmentStatus] = None
    ) -> List[Investment]:
        """Get a user's investments, newest first"""
        ...

    async def create_investment(self, draft: InvestmentDraft) -> Investment:
        """Persist a priced investment atomically"""
        ...

    async def update_investment_status(
        self,
        investment_id: str,
        expected_status: InvestmentStatus,
        new_status: InvestmentStatus,
        actual_return: Optional[Decimal] = None
    ) -> bool:
        """Conditional status update; False when the current status differs"""
        ...

    async def update_investment_notes(self, investment_id: str, notes: Optional[str]) -> bool:
        """Replace the notes of an investment"""
        ...


_TERMINAL_REJECTIONS = {
    InvestmentStatus.MATURED: (
        RejectionReason.ALREADY_MATURED,
        "This investment has already matured",
    ),
    InvestmentStatus.CANCELLED: (
        RejectionReason.ALREADY_CANCELLED,
        "This investment is already cancelled",
    ),
}


def _not_found(investment_id: str) -> Rejection:
    return Rejection(
        reason=RejectionReason.INVESTMENT_NOT_FOUND,
        message=f"Investment {investment_id} does not exist or does not belong to you",
    )


def _terminal_rejection(status: InvestmentStatus) -> Rejection:
    reason, message = _TERMINAL_REJECTIONS[status]
    return Rejection(reason=reason, message=message)


def _too_large(message: str) -> Rejection:
    return Rejection(reason=RejectionReason.AMOUNT_TOO_LARGE, message=message)


class InvestmentLedger:
    """
    Investment Ledger
    Business rules in front of the storage collaborator
    """

    def __init__(
        self,
        product_store: ProductStore,
        investment_store: InvestmentStore,
        clock: Clock,
        valuation_engine: Optional[ValuationEngine] = None
    ):
        """Initialize with storage, clock and valuation dependencies"""
        self.product_store = product_store
        self.investment_store = investment_store
        self.clock = clock
        self.valuation_engine = valuation_engine or ValuationEngine()

    @staticmethod
    def check_amount(product: Product, amount: Decimal) -> Optional[Rejection]:
        """
        Validate an amount against product bounds

        Returns:
            Rejection when out of bounds, None when acceptable
        """
        if amount < product.min_investment:
            return Rejection(
                reason=RejectionReason.BELOW_MINIMUM,
                message=f"Minimum investment amount is ₹{product.min_investment}",
            )
        if amount > product.upper_bound:
            return Rejection(
                reason=RejectionReason.ABOVE_MAXIMUM,
                message=f"Maximum investment amount is ₹{product.max_investment}",
            )
        if amount > MAX_AMOUNT:
            return _too_large(f"Investment amount cannot exceed ₹{MAX_AMOUNT}")
        return None

    async def create(
        self,
        user_id: str,
        product_id: str,
        amount: Decimal,
        notes: Optional[str] = None
    ) -> Outcome[Investment]:
        """
        Price and record a new investment

        Args:
            user_id: Owner
            product_id: Product to invest in (must be active)
            amount: Principal
            notes: Optional free text

        Returns:
            Created Investment, or a Rejection (NotFound / InvalidAmount)
        """
        product = await self.product_store.get_product(product_id)
        if product is None or not product.is_active:
            return Rejection(
                reason=RejectionReason.PRODUCT_NOT_FOUND,
                message="The selected investment product is not available",
            )

        amount = Decimal(str(amount))
        if amount <= MAX_AMOUNT:
            amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
        rejection = self.check_amount(product, amount)
        if rejection is not None:
            logger.info(
                "Investment rejected (%s): user=%s product=%s amount=%s",
                rejection.reason.value, user_id, product_id, amount,
            )
            return rejection

        expected_return = self.valuation_engine.expected_return(
            amount, product.annual_yield, product.tenure_months
        )
        if expected_return > MAX_AMOUNT:
            logger.info(
                "Investment rejected (amount_too_large): user=%s product=%s amount=%s expected=%s",
                user_id, product_id, amount, expected_return,
            )
            return _too_large(f"Projected maturity value exceeds ₹{MAX_AMOUNT}")

        invested_at = self.clock.now()
        draft = InvestmentDraft(
            user_id=user_id,
            product_id=product.id,
            amount=amount,
            invested_at=invested_at,
            expected_return=expected_return,
            maturity_date=self.valuation_engine.maturity_date(invested_at, product.tenure_months),
            status=InvestmentStatus.ACTIVE,
            notes=notes,
        )

        investment = await self.investment_store.create_investment(draft)
        logger.info(
            "Investment created: %s ₹%s in %s by %s (expected ₹%s on %s)",
            investment.id, amount, product.name, user_id,
            investment.expected_return, investment.maturity_date.date(),
        )
        return investment

    async def get(self, investment_id: str, user_id: str) -> Outcome[Investment]:
        """Get an investment owned by the user"""
        investment = await self.investment_store.get_investment(investment_id)
        if investment is None or investment.user_id != user_id:
            return _not_found(investment_id)
        return investment

    async def list_for_user(
        self,
        user_id: str,
        status: Optional[InvestmentStatus] = None
    ) -> List[Investment]:
        """All investments of a user, optionally restricted to one status"""
        return await self.investment_store.get_investments_by_user(user_id, status=status)

    async def cancel(self, investment_id: str, user_id: str) -> Outcome[Investment]:
        """
        Cancel an active investment

        expected_return and maturity_date are kept (informational only).

        Returns:
            Cancelled Investment, or a Rejection
            (NotFound / AlreadyMatured / AlreadyCancelled)
        """
        current = await self.get(investment_id, user_id)
        if isinstance(current, Rejection):
            return current
        if current.status.is_terminal:
            return _terminal_rejection(current.status)

        swapped = await self.investment_store.update_investment_status(
            investment_id,
            expected_status=InvestmentStatus.ACTIVE,
            new_status=InvestmentStatus.CANCELLED,
        )
        if not swapped:
            # Lost the race: report the state that won
            winner = await self.investment_store.get_investment(investment_id)
            if winner is None or not winner.status.is_terminal:
                return _not_found(investment_id)
            logger.info(
                "Cancel conflict on %s: status is already %s",
                investment_id, winner.status.value,
            )
            return _terminal_rejection(winner.status)

        logger.info("Investment cancelled: %s by %s", investment_id, user_id)
        return replace(current, status=InvestmentStatus.CANCELLED)

    async def update_notes(
        self,
        investment_id: str,
        user_id: str,
        notes: Optional[str]
    ) -> Outcome[Investment]:
        """Replace notes on an owned investment (any status)"""
        current = await self.get(investment_id, user_id)
        if isinstance(current, Rejection):
            return current

        updated = await self.investment_store.update_investment_notes(investment_id, notes)
        if not updated:
            return _not_found(investment_id)

        logger.info("Investment notes updated: %s by %s", investment_id, user_id)
        refreshed = await self.investment_store.get_investment(investment_id)
        return refreshed if refreshed is not None else replace(current, notes=notes)

    async def settle(
        self,
        investment_id: str,
        actual_return: Decimal
    ) -> Outcome[Investment]:
        """
        Record a maturity settlement (called by the settlement process)

        Transitions active -> matured and stores actual_return, which then
        overrides interpolated valuation.
        """
        current = await self.investment_store.get_investment(investment_id)
        if current is None:
            return _not_found(investment_id)
        if current.status.is_terminal:
            return _terminal_rejection(current.status)

        actual_return = Decimal(str(actual_return)).quantize(CENT, rounding=ROUND_HALF_UP)
        swapped = await self.investment_store.update_investment_status(
            investment_id,
            expected_status=InvestmentStatus.ACTIVE,
            new_status=InvestmentStatus.MATURED,
            actual_return=actual_return,
        )
        if not swapped:
            winner = await self.investment_store.get_investment(investment_id)
            if winner is not None and winner.status.is_terminal:
                return _terminal_rejection(winner.status)
            return _not_found(investment_id)

        logger.info(
            "Investment settled: %s actual_return=₹%s at %s",
            investment_id, actual_return, self.clock.now(),
        )
        return replace(current, status=InvestmentStatus.MATURED, actual_return=actual_return)
