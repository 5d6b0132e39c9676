"""Catalogue domain API package."""

from catalogue.api.routes import catalog_feed_router, category_router, product_router

__all__ = ["product_router", "category_router", "catalog_feed_router"]
