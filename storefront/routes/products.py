"""Catalog search routes"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..core.errors import StorefrontError
from ..models.product import Brand, Category, Product, ProductSearchResponse
from ..services.search import search, suggest
from ..services.woocommerce_client import WooCommerceClient
from .deps import get_woocommerce, http_error

router = APIRouter(prefix="/api/products", tags=["Products"])

# Listing pulled from the store before relevance ranking
SEARCH_POOL_SIZE = 100


@router.get("", response_model=ProductSearchResponse)
async def search_products(
    q: Optional[str] = Query(None, description="Free-text search"),
    category: Optional[str] = Query(None, description="Store category id"),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, le=100),
    min_score: float = Query(0.1, ge=0),
    woocommerce: WooCommerceClient = Depends(get_woocommerce),
):
    """
    List products, ranked by relevance when a query is given.

    Without `q` this is a plain paged listing from the store.
    """
    try:
        if not q or not q.strip():
            products = await woocommerce.get_products(category=category, page=page, per_page=per_page)
            return ProductSearchResponse(products=products, total=len(products))

        pool = await woocommerce.get_products(category=category, per_page=SEARCH_POOL_SIZE)
    except StorefrontError as e:
        raise http_error(e)

    results = search(pool, q, min_score=min_score)
    return ProductSearchResponse(
        products=[result.product for result in results],
        total=len(results),
        query=q,
    )


@router.get("/suggestions", response_model=list[str])
async def search_suggestions(
    q: str = Query(..., min_length=1),
    limit: int = Query(5, ge=1, le=20),
    woocommerce: WooCommerceClient = Depends(get_woocommerce),
):
    """Autocomplete terms drawn from product names, brands and categories"""
    try:
        pool = await woocommerce.get_products(per_page=SEARCH_POOL_SIZE)
    except StorefrontError as e:
        raise http_error(e)
    return suggest(pool, q, max_suggestions=limit)


@router.get("/categories", response_model=list[Category])
async def list_categories(woocommerce: WooCommerceClient = Depends(get_woocommerce)):
    """List product categories"""
    try:
        return await woocommerce.get_categories()
    except StorefrontError as e:
        raise http_error(e)


@router.get("/brands", response_model=list[Brand])
async def list_brands(woocommerce: WooCommerceClient = Depends(get_woocommerce)):
    """List brands"""
    try:
        return await woocommerce.get_brands()
    except StorefrontError as e:
        raise http_error(e)


@router.get("/{product_id}", response_model=Product)
async def get_product(
    product_id: int,
    woocommerce: WooCommerceClient = Depends(get_woocommerce),
):
    """Get a product by ID"""
    try:
        return await woocommerce.get_product(product_id)
    except StorefrontError as e:
        raise http_error(e)
