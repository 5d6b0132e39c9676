"""Domain events for the Category aggregate."""

from protean.fields import Identifier, Integer, String

from catalogue.domain import catalogue


@catalogue.event(part_of="Category")
class CategoryCreated:
    __version__ = 1

    category_id: Identifier(required=True)
    name: String(required=True)
    display_order: Integer()
