"""
PRODUCT CATALOG - ASYNC
Investment product terms and their lifecycle

RESPONSIBILITIES:
- Filtered / sorted / paginated search over active products
- Create, update and soft-delete products
- Risk-matched recommendations (ordering owned by RecommendationRanker)
- Catalog statistics and description regeneration

RULES:
❌ Never hard-delete (investments keep resolving their product)
❌ Never touch existing investments on edit
✅ Term validation applies to the merged result of an update
"""

import logging
import uuid
from dataclasses import replace
from typing import Any, List, Mapping, Optional, Protocol, Union

from app.domain.models import (
    Product,
    ProductFilter,
    ProductPage,
    ProductStatistics,
    RiskLevel,
)
from app.domain.services import insight_engine
from app.domain.services.recommendation_ranker import RecommendationRanker
from app.utils.time import Clock

logger = logging.getLogger(__name__)

# Fields callers may change through update()
MUTABLE_FIELDS = frozenset({
    "name",
    "product_type",
    "tenure_months",
    "annual_yield",
    "risk_level",
    "min_investment",
    "max_investment",
    "description",
    "is_active",
})

# Fields that may not be cleared to None
REQUIRED_FIELDS = MUTABLE_FIELDS - {"max_investment", "description"}


class CatalogStore(Protocol):
    """Protocol for product data access - ASYNC"""

    async def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by id, active or not"""
        ...

    async def get_active_products(self, product_filter: ProductFilter) -> List[Product]:
        """All active products matching the filter, in the filter's sort order"""
        ...

    async def create_product(self, product: Product) -> Product:
        """Persist a new product"""
        ...

    async def update_product(self, product: Product) -> Optional[Product]:
        """Overwrite a product's terms; None when it does not exist"""
        ...

    async def product_statistics(self) -> ProductStatistics:
        """Active / inactive counts and per-group yield spread"""
        ...


class ProductCatalog:
    """
    Product Catalog
    Business rules in front of the product store
    """

    def __init__(
        self,
        store: CatalogStore,
        clock: Clock,
        ranker: Optional[RecommendationRanker] = None
    ):
        self.store = store
        self.clock = clock
        self.ranker = ranker or RecommendationRanker()

    async def get(self, product_id: str) -> Optional[Product]:
        return await self.store.get_product(product_id)

    async def get_active(self, product_id: str) -> Optional[Product]:
        product = await self.store.get_product(product_id)
        if product is None or not product.is_active:
            return None
        return product

    async def search(self, product_filter: ProductFilter) -> ProductPage:
        """
        Search active products

        Args:
            product_filter: Criteria, sort order and page

        Returns:
            ProductPage with the requested slice and the total match count
        """
        matches = await self.store.get_active_products(product_filter)
        start = product_filter.offset
        return ProductPage(
            items=matches[start:start + product_filter.limit],
            total=len(matches),
            page=product_filter.page,
            limit=product_filter.limit,
        )

    async def create(self, **terms: Any) -> Product:
        """
        Create a product

        Raises:
            ValueError: Invalid product terms
        """
        now = self.clock.now()
        product = Product(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            **terms,
        )
        if not product.description:
            product = replace(
                product,
                description=await insight_engine.generate_product_description(product),
            )

        created = await self.store.create_product(product)
        logger.info(
            "Product created: %s (%s, %s%% over %s months, %s risk)",
            created.name, created.product_type.value, created.annual_yield,
            created.tenure_months, created.risk_level.value,
        )
        return created

    async def update(self, product_id: str, changes: Mapping[str, Any]) -> Optional[Product]:
        """
        Update product terms

        Returns:
            Updated product, None when it does not exist

        Raises:
            ValueError: Unknown field or invalid merged terms
        """
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        cleared = sorted(key for key in REQUIRED_FIELDS if key in changes and changes[key] is None)
        if cleared:
            raise ValueError(f"Fields cannot be empty: {', '.join(cleared)}")

        current = await self.store.get_product(product_id)
        if current is None:
            return None

        # replace() re-runs __post_init__ on the merged terms
        merged = replace(current, updated_at=self.clock.now(), **changes)
        updated = await self.store.update_product(merged)
        if updated is not None:
            logger.info("Product updated: %s (%s)", product_id, ", ".join(sorted(changes)))
        return updated

    async def deactivate(self, product_id: str) -> Optional[Product]:
        """Soft delete; the product stays resolvable by id"""
        current = await self.store.get_product(product_id)
        if current is None:
            return None
        if not current.is_active:
            return current

        updated = await self.store.update_product(
            replace(current, is_active=False, updated_at=self.clock.now())
        )
        logger.info("Product deactivated: %s", product_id)
        return updated

    async def recommendations(
        self,
        risk_profile: Union[RiskLevel, str],
        limit: int
    ) -> List[Product]:
        risk = RiskLevel(risk_profile)
        candidates = await self.store.get_active_products(
            ProductFilter(risk_level=risk, sort_by="created_at", descending=False)
        )
        return self.ranker.recommend(risk, candidates, limit)

    async def statistics(self) -> ProductStatistics:
        return await self.store.product_statistics()

    async def regenerate_description(self, product_id: str) -> Optional[Product]:
        """
        Replace a product's description with freshly generated text

        Works on inactive products too. Returns None when the product does
        not exist.
        """
        current = await self.store.get_product(product_id)
        if current is None:
            return None

        description = await insight_engine.generate_product_description(current)
        updated = await self.store.update_product(
            replace(current, description=description, updated_at=self.clock.now())
        )
        logger.info("Product description regenerated: %s", product_id)
        return updated
