"""Tracking refresh: pull the carrier's view of a shipment.

For shipments whose callbacks went missing. The pulled status goes through
the same path as a callback, so it is just as idempotent.
"""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.carrier import get_carrier
from ordering.carrier.port import Tracking
from ordering.carrier.webhook import CarrierUpdate
from ordering.domain import ordering
from ordering.order.order import Order


def update_from_tracking(order: Order, tracking: Tracking) -> CarrierUpdate:
    latest = tracking.activities[0] if tracking.activities else None
    return CarrierUpdate(
        shipment_status_id=tracking.shipment_status,
        shipment_status=tracking.current_status,
        current_status=tracking.current_status,
        carrier_timestamp=latest.date if latest else None,
        awb_code=order.awb_code,
        carrier_order_id=order.carrier_order_id,
        courier_name=order.shipment.courier_name if order.shipment else None,
        etd=tracking.etd,
        # Carrier lists activities newest first; scans run oldest first
        scans=[
            {"date": a.date, "activity": a.activity, "location": a.location, "sr-status-label": a.status_label}
            for a in reversed(tracking.activities)
        ],
    )


@ordering.command(part_of="Order")
class RefreshTracking:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class TrackingRefreshHandler:
    @handle(RefreshTracking)
    def refresh_tracking(self, command) -> dict:
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if not order.awb_code:
            raise ValidationError({"awb_code": ["Order has no AWB to track"]})

        tracking = get_carrier().track_awb(order.awb_code)
        applied = order.apply_carrier_update(update_from_tracking(order, tracking))
        if applied:
            repo.add(order)
        return {
            "order_id": str(order.id),
            "applied": applied,
            "status": order.status,
            "carrier_status": order.shipment.carrier_status if order.shipment else None,
        }
