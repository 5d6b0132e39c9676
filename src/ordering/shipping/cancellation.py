"""Shipment cancellation: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.carrier import get_carrier
from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelShipment:
    """Cancel an order, and its carrier order when one exists."""

    order_id = Identifier(required=True)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class ShipmentCancellationHandler:
    @handle(CancelShipment)
    def cancel_shipment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        # Local rules first; a carrier failure afterwards rolls this back
        order.cancel(command.reason)
        if order.carrier_order_id:
            get_carrier().cancel_orders([order.carrier_order_id])
            logger.info(
                "Carrier order cancelled",
                order_id=str(order.id),
                carrier_order_id=order.carrier_order_id,
            )
        repo.add(order)
