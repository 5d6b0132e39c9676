"""Application tests for pricing order lines against the catalogue."""

import pytest
from catalogue.product.pricing import quote_items, reserve_items
from catalogue.product.product import Product
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain


@pytest.fixture()
def kurti():
    product = Product.create(
        name="Rayon Kurti",
        slug="rayon-kurti",
        price=899.0,
        discount_price=749.0,
        stock_remaining=5,
        sizes=[{"size": "S", "stock_count": 2, "weight": 0.3}, {"size": "M", "stock_count": 3}],
        images=[{"image_url": "https://cdn/rayon.jpg"}],
    )
    current_domain.repository_for(Product).add(product)
    return product


class TestQuoteItems:
    def test_prices_each_line(self, kurti):
        lines = quote_items([{"product_id": kurti.id, "quantity": 2, "size": "S"}])
        assert lines == [
            {
                "product_id": kurti.id,
                "product_name": "Rayon Kurti",
                "product_image": "https://cdn/rayon.jpg",
                "size": "S",
                "sku": "RAYON-KURTI-S",
                "weight": 0.3,
                "quantity": 2,
                "unit_price": 749.0,
                "total_price": 1498.0,
            }
        ]

    def test_line_without_size_uses_default_weight(self, kurti):
        line = quote_items([{"product_id": kurti.id, "quantity": 1}])[0]
        assert line["sku"] == "RAYON-KURTI"
        assert line["weight"] == 0.5

    def test_empty_cart(self):
        with pytest.raises(ValidationError) as exc:
            quote_items([])
        assert "items" in exc.value.messages

    def test_unknown_product(self):
        with pytest.raises(ValidationError) as exc:
            quote_items([{"product_id": "missing", "quantity": 1}])
        assert "Product not found: missing" in exc.value.messages["items"]

    def test_inactive_product(self, kurti):
        kurti.is_active = False
        current_domain.repository_for(Product).add(kurti)
        with pytest.raises(ValidationError) as exc:
            quote_items([{"product_id": kurti.id, "quantity": 1}])
        assert "items" in exc.value.messages

    def test_insufficient_stock(self, kurti):
        with pytest.raises(ValidationError) as exc:
            quote_items([{"product_id": kurti.id, "quantity": 6}])
        assert "stock" in exc.value.messages

    def test_zero_quantity(self, kurti):
        with pytest.raises(ValidationError):
            quote_items([{"product_id": kurti.id, "quantity": 0}])


class TestReserveItems:
    def test_reserves_every_line(self, kurti):
        lines = quote_items([{"product_id": kurti.id, "quantity": 2, "size": "M"}])
        reserve_items(lines)

        product = current_domain.repository_for(Product).get(kurti.id)
        assert product.stock_remaining == 3
        assert product.size_named("M").stock_count == 1
