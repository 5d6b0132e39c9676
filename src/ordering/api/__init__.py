"""Ordering domain API package."""

from ordering.api.routes import checkout_router, order_router, shipment_router

__all__ = ["order_router", "shipment_router", "checkout_router"]
