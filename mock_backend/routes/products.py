"""Product API routes for the mock storefront"""

from typing import Optional
from fastapi import APIRouter, Query

from ..models.product import ProductCategory
from ..database.products import product_db
from .envelope import ok, fail

router = APIRouter(prefix="/api/v2/products", tags=["Products"])


@router.get("")
async def list_products(
    category: Optional[ProductCategory] = Query(None, description="Filter by category"),
    limit: int = Query(20, ge=1, le=100, description="Max results"),
    offset: int = Query(0, ge=0, description="Offset for pagination"),
):
    """List products in the catalog"""
    products, total = product_db.list_products(category=category, limit=limit, offset=offset)
    return ok(
        {
            "products": [p.to_api() for p in products],
            "total": total,
            "limit": limit,
            "offset": offset,
        }
    )


@router.get("/slug/{slug}")
async def get_product_by_slug(slug: str):
    """Get a product by slug, including its variants"""
    product = product_db.get_by_slug(slug)
    if not product:
        return fail("Product not found", status_code=404)
    return ok(product.to_api())


@router.get("/{product_id}")
async def get_product(product_id: str):
    """Get a product by ID"""
    product = product_db.get_product(product_id)
    if not product:
        return fail("Product not found", status_code=404)
    return ok(product.to_api())
