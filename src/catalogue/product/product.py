"""Product aggregate root with ProductSize and ProductImage entities."""

import re
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from catalogue.domain import catalogue

DEFAULT_VENDOR = "Kurtis Boutique"
DEFAULT_SIZE_WEIGHT = 0.5  # kg

_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


@catalogue.entity(part_of="Product")
class ProductSize:
    """A purchasable size of a product, stocked separately."""

    size: String(required=True, max_length=20)
    stock_count: Integer(default=0, min_value=0)
    weight: Float(default=DEFAULT_SIZE_WEIGHT, min_value=0.0)


@catalogue.entity(part_of="Product")
class ProductImage:
    image_url: String(required=True, max_length=500)
    display_order: Integer(default=0)


@catalogue.aggregate
class Product:
    """A sellable product.

    Stock is tracked twice: `stock_remaining` is the product-wide figure used
    at checkout, `ProductSize.stock_count` is what the carrier's catalog feed
    advertises per variant.
    """

    name: String(required=True, max_length=255)
    slug: String(required=True, max_length=200)
    description: Text()
    vendor: String(max_length=100, default=DEFAULT_VENDOR)
    product_type: String(max_length=100)
    category_id: Identifier()
    price: Float(required=True, min_value=0.01)
    discount_price: Float(min_value=0.0)
    stock_remaining: Integer(default=0, min_value=0)
    is_active: Boolean(default=True)
    sizes: HasMany(ProductSize)
    images: HasMany(ProductImage)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def slug_must_be_url_safe(self):
        if self.slug and not _SLUG_PATTERN.match(self.slug):
            raise ValidationError({"slug": ["Slug must be lowercase alphanumeric words separated by single hyphens"]})

    @invariant.post
    def discount_must_be_below_price(self):
        if self.discount_price and self.discount_price >= self.price:
            raise ValidationError({"discount_price": ["Discount price must be lower than the price"]})

    @classmethod
    def create(
        cls,
        name: str,
        slug: str,
        price: float,
        discount_price: float | None = None,
        stock_remaining: int = 0,
        description: str | None = None,
        vendor: str | None = None,
        product_type: str | None = None,
        category_id: str | None = None,
        sizes: list[dict] | None = None,
        images: list[dict] | None = None,
    ):
        from catalogue.product.events import ProductAdded

        now = datetime.now(UTC)
        product = cls(
            name=name,
            slug=slug,
            price=price,
            discount_price=discount_price,
            stock_remaining=stock_remaining,
            description=description,
            vendor=vendor or DEFAULT_VENDOR,
            product_type=product_type,
            category_id=category_id,
            created_at=now,
            updated_at=now,
        )
        for size_data in sizes or []:
            product.add_sizes(ProductSize(**size_data))
        for image_data in images or []:
            product.add_images(ProductImage(**image_data))

        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                name=name,
                slug=slug,
                price=price,
                stock_remaining=stock_remaining,
                added_at=now,
            )
        )
        return product

    def unit_price(self) -> float:
        """The price a customer pays for one unit."""
        return self.discount_price or self.price

    def sorted_images(self) -> list:
        return sorted(self.images or [], key=lambda image: image.display_order or 0)

    def primary_image_url(self) -> str | None:
        images = self.sorted_images()
        return images[0].image_url if images else None

    def size_named(self, size: str):
        return next((s for s in (self.sizes or []) if s.size == size), None)

    def reserve(self, quantity: int, size: str | None = None) -> None:
        """Take units out of stock for a placed order."""
        from catalogue.product.events import StockReserved

        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if self.stock_remaining < quantity:
            raise ValidationError({"stock": [f"Insufficient stock for {self.name}"]})

        product_size = self.size_named(size) if size else None
        if product_size is not None:
            if product_size.stock_count < quantity:
                raise ValidationError({"stock": [f"Insufficient stock for {self.name} in size {size}"]})
            product_size.stock_count = product_size.stock_count - quantity

        now = datetime.now(UTC)
        self.stock_remaining = self.stock_remaining - quantity
        self.updated_at = now
        self.raise_(
            StockReserved(
                product_id=str(self.id),
                size=size or "",
                quantity=quantity,
                stock_remaining=self.stock_remaining,
                reserved_at=now,
            )
        )
