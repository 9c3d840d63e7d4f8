"""
DOMAIN MODELS - CATALOG QUERIES
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from .entities import Product, ProductType, RiskLevel

SORTABLE_COLUMNS = ("annual_yield", "tenure_months", "min_investment", "name", "created_at")
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class ProductFilter:
    """Search criteria over active products"""
    product_type: Optional[ProductType] = None
    risk_level: Optional[RiskLevel] = None
    min_yield: Optional[Decimal] = None
    max_yield: Optional[Decimal] = None
    sort_by: str = "annual_yield"
    descending: bool = True
    page: int = 1
    limit: int = 10

    def __post_init__(self):
        if self.sort_by not in SORTABLE_COLUMNS:
            raise ValueError(f"sort_by must be one of: {', '.join(SORTABLE_COLUMNS)}")
        if self.page < 1:
            raise ValueError("Page must be a positive integer")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise ValueError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

    def matches(self, product: Product) -> bool:
        if not product.is_active:
            return False
        if self.product_type is not None and product.product_type != self.product_type:
            return False
        if self.risk_level is not None and product.risk_level != self.risk_level:
            return False
        if self.min_yield is not None and product.annual_yield < self.min_yield:
            return False
        if self.max_yield is not None and product.annual_yield > self.max_yield:
            return False
        return True

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class ProductPage:
    items: List[Product]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass(frozen=True)
class ProductGroupStats:
    """Yield spread of active products sharing a type and risk level"""
    product_type: ProductType
    risk_level: RiskLevel
    count: int
    avg_yield: Decimal
    min_yield: Decimal
    max_yield: Decimal


@dataclass(frozen=True)
class ProductStatistics:
    total_active: int
    total_inactive: int
    groups: List[ProductGroupStats]
