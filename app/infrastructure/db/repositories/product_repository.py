"""
Product Repository
Catalog storage for investment products (soft delete only)
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from app.infrastructure.db.models import ProductModel
from app.domain.models import (
    Product,
    ProductFilter,
    ProductGroupStats,
    ProductStatistics,
    ProductType,
    RiskLevel,
)
from app.domain.services.valuation_engine import CENT


class ProductRepository:
    """Repository for Product"""

    def __init__(self, session: AsyncSession):
        """Initialize with database session"""
        self.session = session

    async def get_product(self, product_id: str) -> Optional[Product]:
        """
        Get product by id (active or not)

        Args:
            product_id: Product id

        Returns:
            Product or None
        """
        model = await self.session.get(ProductModel, product_id)
        return self._to_domain(model) if model else None

    async def get_products_by_ids(self, product_ids: Iterable[str]) -> Dict[str, Product]:
        """
        Resolve many products in one query

        Inactive products are included so that existing investments keep
        valuing against their product.
        """
        ids = set(product_ids)
        if not ids:
            return {}

        result = await self.session.execute(
            select(ProductModel).where(ProductModel.id.in_(ids))
        )
        return {model.id: self._to_domain(model) for model in result.scalars().all()}

    async def get_active_products(self, product_filter: ProductFilter) -> List[Product]:
        """
        All active products matching the filter, sorted as requested

        Pagination is applied by the caller.
        """
        query = select(ProductModel).where(ProductModel.is_active.is_(True))

        if product_filter.product_type is not None:
            query = query.where(ProductModel.product_type == product_filter.product_type)
        if product_filter.risk_level is not None:
            query = query.where(ProductModel.risk_level == product_filter.risk_level)
        if product_filter.min_yield is not None:
            query = query.where(ProductModel.annual_yield >= product_filter.min_yield)
        if product_filter.max_yield is not None:
            query = query.where(ProductModel.annual_yield <= product_filter.max_yield)

        column = getattr(ProductModel, product_filter.sort_by)
        primary = column.desc() if product_filter.descending else column.asc()
        query = query.order_by(primary, ProductModel.created_at.asc(), ProductModel.id.asc())

        result = await self.session.execute(query)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def product_statistics(self) -> ProductStatistics:
        """
        Catalog counts plus yield spread per (type, risk) group

        Groups cover active products only.
        """
        counts = await self.session.execute(
            select(ProductModel.is_active, func.count(ProductModel.id))
            .group_by(ProductModel.is_active)
        )
        by_state = {bool(active): count for active, count in counts.all()}

        grouped = await self.session.execute(
            select(
                ProductModel.product_type,
                ProductModel.risk_level,
                func.count(ProductModel.id),
                func.avg(ProductModel.annual_yield),
                func.min(ProductModel.annual_yield),
                func.max(ProductModel.annual_yield),
            )
            .where(ProductModel.is_active.is_(True))
            .group_by(ProductModel.product_type, ProductModel.risk_level)
            .order_by(ProductModel.product_type, ProductModel.risk_level)
        )
        groups = [
            ProductGroupStats(
                product_type=ProductType(product_type),
                risk_level=RiskLevel(risk_level),
                count=count,
                avg_yield=_to_cents(avg_yield),
                min_yield=_to_cents(min_yield),
                max_yield=_to_cents(max_yield),
            )
            for product_type, risk_level, count, avg_yield, min_yield, max_yield in grouped.all()
        ]

        return ProductStatistics(
            total_active=by_state.get(True, 0),
            total_inactive=by_state.get(False, 0),
            groups=groups,
        )

    async def create_product(self, product: Product) -> Product:
        model = ProductModel(
            id=product.id,
            name=product.name,
            product_type=product.product_type,
            tenure_months=product.tenure_months,
            annual_yield=product.annual_yield,
            risk_level=product.risk_level,
            min_investment=product.min_investment,
            max_investment=product.max_investment,
            description=product.description,
            is_active=product.is_active,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )
        self.session.add(model)
        await self.session.flush()

        return self._to_domain(model)

    async def update_product(self, product: Product) -> Optional[Product]:
        model = await self.session.get(ProductModel, product.id)
        if model is None:
            return None

        model.name = product.name
        model.product_type = product.product_type
        model.tenure_months = product.tenure_months
        model.annual_yield = product.annual_yield
        model.risk_level = product.risk_level
        model.min_investment = product.min_investment
        model.max_investment = product.max_investment
        model.description = product.description
        model.is_active = product.is_active
        model.updated_at = product.updated_at
        await self.session.flush()

        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: ProductModel) -> Product:
        """Convert model to domain entity"""
        return Product(
            id=model.id,
            name=model.name,
            product_type=model.product_type,
            tenure_months=model.tenure_months,
            annual_yield=model.annual_yield,
            risk_level=model.risk_level,
            min_investment=model.min_investment,
            max_investment=model.max_investment,
            description=model.description,
            is_active=model.is_active,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


def _to_cents(value) -> Decimal:
    # AVG comes back as float on SQLite and Decimal on PostgreSQL
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
