"""Category management: commands and handlers."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from catalogue.category.category import Category
from catalogue.domain import catalogue


@catalogue.command(part_of="Category")
class AddCategory:
    name: String(required=True, max_length=100)
    slug: String(max_length=200)
    description: Text()
    image_url: String(max_length=500)
    display_order: Integer(default=0)


@catalogue.command(part_of="Category")
class DeactivateCategory:
    category_id: Identifier(required=True)


@catalogue.command_handler(part_of=Category)
class ManageCategoryHandler:
    @handle(AddCategory)
    def add_category(self, command):
        category = Category.create(
            name=command.name,
            slug=command.slug,
            description=command.description,
            image_url=command.image_url,
            display_order=command.display_order or 0,
        )
        current_domain.repository_for(Category).add(category)
        return str(category.id)

    @handle(DeactivateCategory)
    def deactivate_category(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)
        category.deactivate()
        repo.add(category)
