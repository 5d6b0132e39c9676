"""FastAPI routes for the Catalogue domain.

Storefront product/category endpoints plus the catalog feed the carrier's
hosted checkout pulls from.
"""

import json

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from catalogue.api.schemas import (
    AddCategoryRequest,
    AddProductRequest,
    CategoryIdResponse,
    ProductIdResponse,
)
from catalogue.category.management import AddCategory
from catalogue.feed import DEFAULT_PAGE_SIZE, all_collections, paginated_products
from catalogue.product.creation import AddProduct
from catalogue.product.product import Product

product_router = APIRouter(prefix="/products", tags=["products"])
category_router = APIRouter(prefix="/categories", tags=["categories"])
catalog_feed_router = APIRouter(prefix="/catalog", tags=["catalog"])


# --- Product endpoints ---


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def add_product(body: AddProductRequest) -> ProductIdResponse:
    command = AddProduct(
        name=body.name,
        slug=body.slug,
        price=body.price,
        discount_price=body.discount_price,
        stock_remaining=body.stock_remaining,
        description=body.description,
        vendor=body.vendor,
        product_type=body.product_type,
        category_id=body.category_id,
        sizes=json.dumps([s.model_dump() for s in body.sizes]) if body.sizes else None,
        images=json.dumps([i.model_dump() for i in body.images]) if body.images else None,
    )
    product_id = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=product_id)


@product_router.get("")
async def list_products(
    category_id: str | None = None,
    search: str | None = None,
    include_inactive: bool = False,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """List products, newest first."""
    criteria = {}
    if not include_inactive:
        criteria["is_active"] = True
    if category_id:
        criteria["category_id"] = category_id
    if search:
        criteria["name__icontains"] = search

    results = (
        current_domain.repository_for(Product)
        ._dao.query.filter(**criteria)
        .order_by("-created_at")
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {
        "products": [p.to_dict() for p in results.items],
        "pagination": {"limit": limit, "offset": offset, "total": results.total},
    }


@product_router.get("/{product_id}")
async def get_product(product_id: str):
    return current_domain.repository_for(Product).get(product_id).to_dict()


# --- Category endpoints ---


@category_router.post("", status_code=201, response_model=CategoryIdResponse)
async def add_category(body: AddCategoryRequest) -> CategoryIdResponse:
    command = AddCategory(
        name=body.name,
        slug=body.slug,
        description=body.description,
        image_url=body.image_url,
        display_order=body.display_order,
    )
    category_id = current_domain.process(command, asynchronous=False)
    return CategoryIdResponse(category_id=category_id)


# --- Carrier catalog feed ---


@catalog_feed_router.get("/products")
async def feed_products(page: int = Query(1, ge=1), limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100)):
    return paginated_products(page=page, limit=limit)


@catalog_feed_router.get("/collections")
async def feed_collections():
    return all_collections()


@catalog_feed_router.get("/collections/{collection_id}/products")
async def feed_collection_products(
    collection_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
):
    return paginated_products(page=page, limit=limit, category_id=collection_id)
