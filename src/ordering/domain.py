"""Ordering bounded context: Orders, Shipments and Checkout.

Takes priced orders from the storefront, pushes them to the shipping
carrier and keeps local order state in line with the carrier's tracking
updates.
"""

from protean.domain import Domain

from shared.logging import get_logger

ordering = Domain(name="ordering")

logger = get_logger(__name__)
