"""
Investment Repository
Insert and conditional-update storage for investments (no deletes)
"""

import uuid
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from decimal import Decimal
from typing import Optional, List

from app.infrastructure.db.models import InvestmentModel
from app.domain.models import Investment, InvestmentDraft, InvestmentStatus
from app.utils.time import now_ist_naive


class InvestmentRepository:
    """Repository for Investment"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def create_investment(self, draft: InvestmentDraft) -> Investment:
        """
        Persist a priced investment

        Args:
            draft: InvestmentDraft from the ledger

        Returns:
            Created Investment (with id)
        """
        model = InvestmentModel(
            id=str(uuid.uuid4()),
            user_id=draft.user_id,
            product_id=draft.product_id,
            amount=draft.amount,
            invested_at=draft.invested_at,
            status=draft.status,
            expected_return=draft.expected_return,
            maturity_date=draft.maturity_date,
            notes=draft.notes,
            created_at=draft.invested_at,
            updated_at=draft.invested_at,
        )

        self.session.add(model)
        await self.session.flush()

        return self._to_domain(model)

    async def get_investment(self, investment_id: str) -> Optional[Investment]:
        """
        Get investment by id

        Always re-reads the row so that a status changed by a conditional
        update is visible.
        """
        model = await self.session.get(InvestmentModel, investment_id, populate_existing=True)
        return self._to_domain(model) if model else None

    async def get_investments_by_user(
        self,
        user_id: str,
        status: Optional[InvestmentStatus] = None
    ) -> List[Investment]:
        """
        Get a user's investments, newest first

        Args:
            user_id: Owner
            status: Optional status filter

        Returns:
            List of Investments
        """
        query = select(InvestmentModel).where(InvestmentModel.user_id == user_id)
        if status is not None:
            query = query.where(InvestmentModel.status == status)
        query = query.order_by(InvestmentModel.invested_at.desc(), InvestmentModel.id.desc())

        result = await self.session.execute(query.execution_options(populate_existing=True))
        return [self._to_domain(m) for m in result.scalars().all()]

    async def update_investment_status(
        self,
        investment_id: str,
        expected_status: InvestmentStatus,
        new_status: InvestmentStatus,
        actual_return: Optional[Decimal] = None
    ) -> bool:
        """
        Compare-and-swap status update

        Returns:
            True when exactly one row moved from expected_status to new_status
        """
        values = {"status": new_status, "updated_at": now_ist_naive()}
        if actual_return is not None:
            values["actual_return"] = actual_return

        result = await self.session.execute(
            update(InvestmentModel)
            .where(
                InvestmentModel.id == investment_id,
                InvestmentModel.status == expected_status
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()

        return result.rowcount == 1

    async def update_investment_notes(self, investment_id: str, notes: Optional[str]) -> bool:
        result = await self.session.execute(
            update(InvestmentModel)
            .where(InvestmentModel.id == investment_id)
            .values(notes=notes, updated_at=now_ist_naive())
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()

        return result.rowcount == 1

    def _to_domain(self, model: InvestmentModel) -> Investment:
        """Convert model to domain entity"""
        return Investment(
            id=model.id,
            user_id=model.user_id,
            product_id=model.product_id,
            amount=model.amount,
            invested_at=model.invested_at,
            status=model.status,
            expected_return=model.expected_return,
            maturity_date=model.maturity_date,
            actual_return=model.actual_return,
            notes=model.notes,
        )
