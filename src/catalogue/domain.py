"""Catalogue bounded context: Products, Sizes, Categories and Stock.

Owns what the storefront sells: pricing, per-size stock and the catalog
feed the carrier's checkout pulls products and collections from.
"""

from protean.domain import Domain

from shared.logging import get_logger

logger = get_logger(__name__)

catalogue = Domain(name="catalogue")
