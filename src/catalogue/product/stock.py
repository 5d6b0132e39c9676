"""Stock reservation: command and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from catalogue.domain import catalogue
from catalogue.product.product import Product


@catalogue.command(part_of="Product")
class ReserveStock:
    """Take units of a product (optionally of one size) out of stock."""

    product_id: Identifier(required=True)
    quantity: Integer(required=True, min_value=1)
    size: String(max_length=20)


@catalogue.command_handler(part_of=Product)
class ReserveStockHandler:
    @handle(ReserveStock)
    def reserve_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.reserve(command.quantity, command.size)
        repo.add(product)
