"""Carrier update reconciliation: command and handler.

Applies a carrier tracking callback to the order it belongs to. Updates for
unknown orders are logged and dropped; repeated or out-of-date updates leave
the order untouched.
"""

import json

import structlog
from protean import handle
from protean.fields import Text
from protean.utils.globals import current_domain

from ordering.carrier.webhook import CarrierUpdate
from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


def find_order_for_update(update: CarrierUpdate) -> Order | None:
    """The order a carrier update refers to, by carrier order id or AWB."""
    repo = current_domain.repository_for(Order)
    if update.carrier_order_id:
        results = repo._dao.query.filter(carrier_order_id=update.carrier_order_id).all()
        if results.items:
            return results.first
    if update.awb_code:
        results = repo._dao.query.filter(awb_code=update.awb_code).all()
        if results.items:
            return results.first
    return None


@ordering.command(part_of="Order")
class ReconcileCarrierUpdate:
    body = Text(required=True)  # raw callback JSON


@ordering.command_handler(part_of=Order)
class CarrierUpdateHandler:
    @handle(ReconcileCarrierUpdate)
    def reconcile(self, command) -> str | None:
        """Returns the order id when the update changed the order."""
        update = CarrierUpdate.from_payload(json.loads(command.body))
        logger.info(
            "Carrier update received",
            awb_code=update.awb_code,
            carrier_order_id=update.carrier_order_id,
            shipment_status_id=update.shipment_status_id,
            current_status=update.current_status,
        )

        order = find_order_for_update(update)
        if order is None:
            logger.warning(
                "No order found for carrier update",
                awb_code=update.awb_code,
                carrier_order_id=update.carrier_order_id,
            )
            return None

        if not order.apply_carrier_update(update):
            logger.info(
                "Carrier update already applied or out of date",
                order_id=str(order.id),
                shipment_status_id=update.shipment_status_id,
            )
            return None

        current_domain.repository_for(Order).add(order)
        logger.info("Order updated from carrier", order_id=str(order.id), status=order.status)
        return str(order.id)
