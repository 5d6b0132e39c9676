"""Pydantic request/response schemas for the Catalogue API."""

from __future__ import annotations

from pydantic import BaseModel, Field


# --- Product Request Schemas ---


class ProductSizeRequest(BaseModel):
    size: str = Field(..., max_length=20)
    stock_count: int = Field(0, ge=0)
    weight: float = Field(0.5, ge=0)


class ProductImageRequest(BaseModel):
    image_url: str = Field(..., max_length=500)
    display_order: int = 0


class AddProductRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Indigo Block Print Kurti",
                    "slug": "indigo-block-print-kurti",
                    "price": 1499.0,
                    "discount_price": 1199.0,
                    "stock_remaining": 12,
                    "category_id": "cat-kurtis",
                    "sizes": [{"size": "M", "stock_count": 6, "weight": 0.4}],
                    "images": [{"image_url": "https://cdn.example.com/kurti.jpg", "display_order": 0}],
                }
            ]
        }
    }

    name: str = Field(..., max_length=255)
    slug: str = Field(..., max_length=200)
    price: float = Field(..., gt=0)
    discount_price: float | None = Field(None, ge=0)
    stock_remaining: int = Field(0, ge=0)
    description: str | None = None
    vendor: str | None = Field(None, max_length=100)
    product_type: str | None = Field(None, max_length=100)
    category_id: str | None = None
    sizes: list[ProductSizeRequest] = []
    images: list[ProductImageRequest] = []


# --- Category Request Schemas ---


class AddCategoryRequest(BaseModel):
    name: str = Field(..., max_length=100)
    slug: str | None = Field(None, max_length=200)
    description: str | None = None
    image_url: str | None = Field(None, max_length=500)
    display_order: int = 0


# --- Response Schemas ---


class ProductIdResponse(BaseModel):
    product_id: str


class CategoryIdResponse(BaseModel):
    category_id: str
