"""
Product Catalog Routes
Search, recommendations and product administration
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Literal, Optional
import logging

from app.api.deps import get_catalog
from app.config import settings
from app.domain.models import ProductFilter, ProductType, RiskLevel
from app.domain.models.catalog import MAX_PAGE_SIZE, SORTABLE_COLUMNS
from app.domain.schemas.product import (
    DescriptionResponse,
    ProductCreateRequest,
    ProductListResponse,
    ProductResponse,
    ProductStatisticsResponse,
    ProductUpdateRequest,
    RecommendationResponse,
    to_product_list_response,
    to_product_response,
    to_statistics_response,
)
from app.domain.services.product_catalog import ProductCatalog
from app.domain.services.valuation_engine import CENT

logger = logging.getLogger(__name__)
router = APIRouter()

_MONEY_FIELDS = ("annual_yield", "min_investment", "max_investment")


def _to_terms(data: Dict[str, Any]) -> Dict[str, Any]:
    terms = dict(data)
    for key in _MONEY_FIELDS:
        if terms.get(key) is not None:
            terms[key] = Decimal(str(terms[key])).quantize(CENT, rounding=ROUND_HALF_UP)
    return terms


@router.get("", response_model=ProductListResponse)
async def list_products(
    product_type: Optional[ProductType] = Query(None),
    risk_level: Optional[RiskLevel] = Query(None),
    min_yield: Optional[float] = Query(None, ge=0, le=100),
    max_yield: Optional[float] = Query(None, ge=0, le=100),
    sort_by: str = Query("annual_yield"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Active products, filtered, sorted and paginated"""
    if sort_by not in SORTABLE_COLUMNS:
        raise HTTPException(
            status_code=400,
            detail=f"sort_by must be one of: {', '.join(SORTABLE_COLUMNS)}",
        )

    product_filter = ProductFilter(
        product_type=product_type,
        risk_level=risk_level,
        min_yield=Decimal(str(min_yield)) if min_yield is not None else None,
        max_yield=Decimal(str(max_yield)) if max_yield is not None else None,
        sort_by=sort_by,
        descending=sort_order == "desc",
        page=page,
        limit=limit,
    )
    page_result = await catalog.search(product_filter)
    return to_product_list_response(page_result)


@router.get("/recommendations", response_model=RecommendationResponse)
async def product_recommendations(
    risk_level: RiskLevel = Query(...),
    limit: int = Query(settings.DEFAULT_RECOMMENDATION_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Highest-yield active products for a risk appetite"""
    products = await catalog.recommendations(risk_level, limit)
    return RecommendationResponse(
        risk_level=risk_level.value,
        recommendations=[to_product_response(p) for p in products],
    )


@router.get("/admin/statistics", response_model=ProductStatisticsResponse)
async def product_statistics(
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Active / inactive counts and yield spread per type and risk level"""
    stats = await catalog.statistics()
    return to_statistics_response(stats)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str,
    catalog: ProductCatalog = Depends(get_catalog),
):
    product = await catalog.get_active(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return to_product_response(product)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    request: ProductCreateRequest,
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Create a product (description generated when omitted)"""
    try:
        product = await catalog.create(**_to_terms(request.model_dump()))
    except ValueError as e:
        logger.error(f"Product creation rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    return to_product_response(product)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    request: ProductUpdateRequest,
    catalog: ProductCatalog = Depends(get_catalog),
):
    """
    Update product terms

    Existing investments keep the terms they were priced with.
    """
    changes = _to_terms(request.model_dump(exclude_unset=True))
    try:
        product = await catalog.update(product_id, changes)
    except ValueError as e:
        logger.error(f"Product update rejected for {product_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return to_product_response(product)


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Soft delete; investments in the product are unaffected"""
    product = await catalog.deactivate(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return {
        "message": "Product deactivated",
        "product": to_product_response(product),
    }


@router.post("/{product_id}/generate-description", response_model=DescriptionResponse)
async def generate_description(
    product_id: str,
    catalog: ProductCatalog = Depends(get_catalog),
):
    """Regenerate and store a product description"""
    product = await catalog.regenerate_description(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return DescriptionResponse(
        message="Description generated",
        description=product.description,
        product=to_product_response(product),
    )
