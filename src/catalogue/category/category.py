"""Category aggregate: a collection of products in the storefront."""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Integer, String, Text

from catalogue.domain import catalogue


@catalogue.aggregate
class Category:
    """A flat grouping of products, published to the carrier as a collection."""

    name: String(required=True, max_length=100)
    slug: String(max_length=200)
    description: Text()
    image_url: String(max_length=500)
    is_active: Boolean(default=True)
    display_order: Integer(default=0)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(cls, name, slug=None, description=None, image_url=None, display_order=0):
        from catalogue.category.events import CategoryCreated

        now = datetime.now(UTC)
        category = cls(
            name=name,
            slug=slug,
            description=description,
            image_url=image_url,
            display_order=display_order,
            created_at=now,
            updated_at=now,
        )
        category.raise_(
            CategoryCreated(
                category_id=category.id,
                name=name,
                display_order=display_order,
            )
        )
        return category

    def deactivate(self):
        self.is_active = False
        self.updated_at = datetime.now(UTC)
