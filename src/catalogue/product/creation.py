"""Product creation: command and handler."""

import json

from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from catalogue.domain import catalogue
from catalogue.product.product import Product


@catalogue.command(part_of="Product")
class AddProduct:
    name: String(required=True, max_length=255)
    slug: String(required=True, max_length=200)
    price: Float(required=True)
    discount_price: Float()
    stock_remaining: Integer(default=0)
    description: Text()
    vendor: String(max_length=100)
    product_type: String(max_length=100)
    category_id: Identifier()
    sizes: Text()  # JSON list of {size, stock_count, weight}
    images: Text()  # JSON list of {image_url, display_order}


@catalogue.command_handler(part_of=Product)
class AddProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        product = Product.create(
            name=command.name,
            slug=command.slug,
            price=command.price,
            discount_price=command.discount_price,
            stock_remaining=command.stock_remaining or 0,
            description=command.description,
            vendor=command.vendor,
            product_type=command.product_type,
            category_id=command.category_id,
            sizes=json.loads(command.sizes) if command.sizes else None,
            images=json.loads(command.images) if command.images else None,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)
