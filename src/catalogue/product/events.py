"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from catalogue.domain import catalogue


@catalogue.event(part_of="Product")
class ProductAdded:
    __version__ = 1

    product_id: Identifier(required=True)
    name: String(required=True)
    slug: String(required=True)
    price: Float(required=True)
    stock_remaining: Integer(required=True)
    added_at: DateTime(required=True)


@catalogue.event(part_of="Product")
class StockReserved:
    """Units were taken out of stock for an order."""

    __version__ = 1

    product_id: Identifier(required=True)
    size: String()
    quantity: Integer(required=True)
    stock_remaining: Integer(required=True)
    reserved_at: DateTime(required=True)
