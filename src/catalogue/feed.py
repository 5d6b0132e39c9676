"""Carrier catalog feed: products and collections in the carrier's format.

The carrier's hosted checkout syncs the storefront catalog by pulling
paginated products and collections. Every function here expects an active
Catalogue domain context.
"""

import math

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from catalogue.category.category import Category
from catalogue.product.product import DEFAULT_SIZE_WEIGHT, Product

DEFAULT_PAGE_SIZE = 50
FALLBACK_PRODUCT_TYPE = "Kurti"


def format_product(product: Product, category_name: str | None = None) -> dict:
    """Render a product and its sizes as a carrier catalog product."""
    images = product.sorted_images()
    primary_image = images[0].image_url if images else ""
    unit_price = product.unit_price()

    variants = []
    for index, size in enumerate(product.sizes or []):
        variants.append(
            {
                "id": str(size.id),
                "product_id": str(product.id),
                "title": f"{product.name} - {size.size}",
                "price": unit_price,
                "quantity": size.stock_count or 0,
                "sku": f"{product.slug}-{size.size}".upper(),
                "weight": size.weight or DEFAULT_SIZE_WEIGHT,
                "image_url": images[index].image_url if index < len(images) else primary_image,
            }
        )

    return {
        "id": str(product.id),
        "title": product.name,
        "description": product.description or "",
        "vendor": product.vendor,
        "product_type": product.product_type or category_name or FALLBACK_PRODUCT_TYPE,
        "status": "active" if product.is_active else "draft",
        "image_url": primary_image,
        "updated_at": product.updated_at.isoformat() if product.updated_at else None,
        "variants": variants,
    }


def format_collection(category: Category) -> dict:
    return {
        "id": str(category.id),
        "title": category.name,
        "description": category.description or f"{category.name} collection",
        "image_url": category.image_url or "",
    }


def _category_name(category_id, cache: dict) -> str | None:
    if not category_id:
        return None
    if category_id not in cache:
        try:
            cache[category_id] = current_domain.repository_for(Category).get(category_id).name
        except ObjectNotFoundError:
            cache[category_id] = None
    return cache[category_id]


def paginated_products(page: int = 1, limit: int = DEFAULT_PAGE_SIZE, category_id: str | None = None) -> dict:
    """Active products, newest first, one page at a time."""
    page = max(page, 1)
    limit = max(limit, 1)
    criteria = {"is_active": True}
    if category_id:
        criteria["category_id"] = category_id

    results = (
        current_domain.repository_for(Product)
        ._dao.query.filter(**criteria)
        .order_by("-created_at")
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    names: dict = {}
    return {
        "products": [format_product(p, _category_name(p.category_id, names)) for p in results.items],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": results.total,
            "total_pages": math.ceil(results.total / limit),
        },
    }


def all_collections() -> dict:
    results = (
        current_domain.repository_for(Category)._dao.query.filter(is_active=True).order_by("display_order").all()
    )
    return {"collections": [format_collection(c) for c in results.items]}
