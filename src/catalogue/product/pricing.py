"""Order-line pricing against the live catalogue.

Both functions expect an active Catalogue domain context.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from catalogue.product.product import DEFAULT_SIZE_WEIGHT, Product
from catalogue.product.stock import ReserveStock


def quote_items(items: list[dict]) -> list[dict]:
    """Price requested items and check them against stock.

    Each item carries `product_id`, `quantity` and an optional `size`.
    Returns one priced line per item, in request order.
    """
    if not items:
        raise ValidationError({"items": ["No items provided"]})

    repo = current_domain.repository_for(Product)
    lines = []
    # Running demand across lines, so repeated products or sizes are checked together
    wanted: dict[str, int] = {}
    wanted_by_size: dict[tuple[str, str], int] = {}
    for item in items:
        quantity = int(item.get("quantity") or 0)
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        try:
            product = repo.get(item["product_id"])
        except ObjectNotFoundError:
            raise ValidationError({"items": [f"Product not found: {item['product_id']}"]}) from None

        if not product.is_active:
            raise ValidationError({"items": [f"Product not available: {product.name}"]})
        product_id = str(product.id)
        wanted[product_id] = wanted.get(product_id, 0) + quantity
        if product.stock_remaining < wanted[product_id]:
            raise ValidationError({"stock": [f"Insufficient stock for {product.name}"]})

        size = item.get("size")
        product_size = product.size_named(size) if size else None
        if product_size is not None:
            key = (product_id, size)
            wanted_by_size[key] = wanted_by_size.get(key, 0) + quantity
            if product_size.stock_count < wanted_by_size[key]:
                raise ValidationError({"stock": [f"Insufficient stock for {product.name} in size {size}"]})

        unit_price = product.unit_price()
        lines.append(
            {
                "product_id": product_id,
                "product_name": product.name,
                "product_image": product.primary_image_url(),
                "size": size,
                "sku": f"{product.slug}-{size}".upper() if size else product.slug.upper(),
                "weight": product_size.weight if product_size else DEFAULT_SIZE_WEIGHT,
                "quantity": quantity,
                "unit_price": unit_price,
                "total_price": round(unit_price * quantity, 2),
            }
        )
    return lines


def reserve_items(lines: list[dict]) -> None:
    """Decrement stock for every priced line."""
    for line in lines:
        current_domain.process(
            ReserveStock(
                product_id=line["product_id"],
                quantity=line["quantity"],
                size=line.get("size"),
            ),
            asynchronous=False,
        )
