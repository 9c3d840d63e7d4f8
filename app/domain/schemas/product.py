from pydantic import BaseModel, Field
from typing import List, Optional

from app.domain.models import Product, ProductPage, ProductStatistics, ProductType, RiskLevel
from app.domain.models.entities import MAX_AMOUNT, MAX_TENURE_MONTHS
from app.utils.time import to_ist_iso_db


class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    product_type: ProductType
    tenure_months: int = Field(..., ge=1, le=MAX_TENURE_MONTHS)
    annual_yield: float = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    min_investment: float = Field(1000.0, gt=0, le=float(MAX_AMOUNT))
    max_investment: Optional[float] = Field(None, gt=0, le=float(MAX_AMOUNT))
    description: Optional[str] = None


class ProductUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    product_type: Optional[ProductType] = None
    tenure_months: Optional[int] = Field(None, ge=1, le=MAX_TENURE_MONTHS)
    annual_yield: Optional[float] = Field(None, ge=0, le=100)
    risk_level: Optional[RiskLevel] = None
    min_investment: Optional[float] = Field(None, gt=0, le=float(MAX_AMOUNT))
    max_investment: Optional[float] = Field(None, gt=0, le=float(MAX_AMOUNT))
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ProductResponse(BaseModel):
    id: str
    name: str
    product_type: str
    tenure_months: int
    annual_yield: float
    risk_level: str
    min_investment: float
    max_investment: Optional[float]
    description: Optional[str]
    is_active: bool
    created_at: Optional[str]
    updated_at: Optional[str]


class PaginationSchema(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    pagination: PaginationSchema


class RecommendationResponse(BaseModel):
    risk_level: str
    recommendations: List[ProductResponse]


class ProductGroupStatsSchema(BaseModel):
    product_type: str
    risk_level: str
    count: int
    avg_yield: float
    min_yield: float
    max_yield: float


class ProductStatisticsResponse(BaseModel):
    total_active_products: int
    total_inactive_products: int
    statistics_by_type_and_risk: List[ProductGroupStatsSchema]


class DescriptionResponse(BaseModel):
    message: str
    description: Optional[str]
    product: ProductResponse


def to_product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        name=product.name,
        product_type=product.product_type.value,
        tenure_months=product.tenure_months,
        annual_yield=float(product.annual_yield),
        risk_level=product.risk_level.value,
        min_investment=float(product.min_investment),
        max_investment=float(product.max_investment) if product.max_investment is not None else None,
        description=product.description,
        is_active=product.is_active,
        created_at=to_ist_iso_db(product.created_at) if product.created_at else None,
        updated_at=to_ist_iso_db(product.updated_at) if product.updated_at else None,
    )


def to_product_list_response(page: ProductPage) -> ProductListResponse:
    return ProductListResponse(
        products=[to_product_response(p) for p in page.items],
        pagination=PaginationSchema(
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
        ),
    )


def to_statistics_response(stats: ProductStatistics) -> ProductStatisticsResponse:
    return ProductStatisticsResponse(
        total_active_products=stats.total_active,
        total_inactive_products=stats.total_inactive,
        statistics_by_type_and_risk=[
            ProductGroupStatsSchema(
                product_type=group.product_type.value,
                risk_level=group.risk_level.value,
                count=group.count,
                avg_yield=float(group.avg_yield),
                min_yield=float(group.min_yield),
                max_yield=float(group.max_yield),
            )
            for group in stats.groups
        ],
    )
